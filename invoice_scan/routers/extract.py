"""
Router for AI extraction of uploaded invoices.
"""

import logging

from fastapi import APIRouter, Depends

from ..exceptions import NotFoundError
from ..models import ApiResponse, ExtractionResult, ExtractRequest
from ..services.extraction import ExtractionService, get_extraction_service
from ..services.file_cache import FileCache
from .dependencies import get_file_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["extract"])


@router.post(
    "/extract",
    response_model=ApiResponse[ExtractionResult],
    response_model_exclude_none=True,
)
async def extract_invoice(
    request: ExtractRequest,
    cache: FileCache = Depends(get_file_cache),
    extraction_service: ExtractionService = Depends(get_extraction_service),
) -> ApiResponse[ExtractionResult]:
    """
    Extract vendor, invoice and line item data from an uploaded PDF.

    Unknown file ids are rejected before the AI service is contacted.
    """
    cached = cache.get(request.file_id)
    if cached is None:
        raise NotFoundError("File not found")

    result = await extraction_service.extract(
        cached.buffer,
        cached.file_name,
        model=request.model,
    )
    return ApiResponse(data=result)
