"""
Router for uploaded file retrieval.

Handles:
- PDF content retrieval for preview
- Lookup of the invoice saved for an upload
"""

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, Response

from ..exceptions import NotFoundError
from ..models import ApiResponse, InvoiceRecord
from ..services.file_cache import FileCache
from ..services.invoice_store import InvoiceStore, get_invoice_store
from .dependencies import get_file_cache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["files"])


def content_disposition(file_name: str) -> str:
    """Inline disposition with an ASCII fallback and the RFC 5987 UTF-8 name."""
    fallback = file_name.encode("ascii", "replace").decode("ascii")
    fallback = fallback.replace("\\", "_").replace('"', "_")
    return f"inline; filename=\"{fallback}\"; filename*=UTF-8''{quote(file_name)}"


@router.get("/{file_id}")
async def get_file_content(
    file_id: str,
    cache: FileCache = Depends(get_file_cache),
) -> Response:
    """
    Retrieve the uploaded PDF for preview.

    Files live only as long as the process; a restart makes every
    earlier fileId return 404.
    """
    cached = cache.get(file_id)
    if cached is None:
        raise NotFoundError("File not found")

    return Response(
        content=cached.buffer,
        media_type="application/pdf",
        headers={"Content-Disposition": content_disposition(cached.file_name)},
    )


@router.get(
    "/{file_id}/invoice",
    response_model=ApiResponse[InvoiceRecord],
    response_model_exclude_none=True,
)
def get_invoice_for_file(
    file_id: str,
    store: InvoiceStore = Depends(get_invoice_store),
) -> ApiResponse[InvoiceRecord]:
    """Get the invoice that was saved from an upload."""
    invoice = store.get_by_file_id(file_id)
    if invoice is None:
        raise NotFoundError("No invoice saved for this file")
    return ApiResponse(data=invoice)
