"""
Router for PDF upload.

Handles:
- Invoice PDF upload into the in-process file cache
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, File, UploadFile

from ..config import Settings, get_settings
from ..exceptions import FileTooLargeError, ValidationError
from ..models import ApiResponse, UploadResponse
from ..services.file_cache import FileCache
from .dependencies import get_file_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["upload"])

PDF_CONTENT_TYPE = "application/pdf"


@router.post("/upload", response_model=ApiResponse[UploadResponse])
async def upload_file(
    file: Annotated[UploadFile | None, File(description="Invoice PDF")] = None,
    cache: FileCache = Depends(get_file_cache),
    settings: Settings = Depends(get_settings),
) -> ApiResponse[UploadResponse]:
    """
    Upload an invoice PDF.

    The file is checked for type and size before anything is cached;
    the returned fileId is used for extraction and preview.
    """
    if file is None:
        raise ValidationError("No file uploaded")

    try:
        if file.content_type != PDF_CONTENT_TYPE:
            raise ValidationError("Only PDF files are allowed")

        limit_mb = settings.max_upload_bytes // (1024 * 1024)
        if file.size is not None and file.size > settings.max_upload_bytes:
            raise FileTooLargeError(f"File exceeds the {limit_mb} MB upload limit")

        file_bytes = await file.read()

        if len(file_bytes) > settings.max_upload_bytes:
            raise FileTooLargeError(f"File exceeds the {limit_mb} MB upload limit")
        if not file_bytes:
            raise ValidationError("Empty file provided")

        file_name = file.filename or "invoice.pdf"
        cached = cache.put(file_bytes, file_name)

        logger.info("Uploaded PDF: %s (%d bytes) as %s", file_name, len(file_bytes), cached.file_id)

        return ApiResponse(
            data=UploadResponse(
                file_id=cached.file_id,
                file_name=file_name,
                file_size=len(file_bytes),
                uploaded_at=cached.uploaded_at,
            )
        )
    finally:
        await file.close()
