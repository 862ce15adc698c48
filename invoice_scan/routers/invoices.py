"""
Router for invoice record management.

Handles:
- Listing and searching saved invoices
- Invoice retrieval, creation, update (human corrections) and deletion
"""

import logging

from fastapi import APIRouter, Depends, status

from ..exceptions import NotFoundError
from ..models import (
    ApiResponse,
    InvoiceCreate,
    InvoiceListResponse,
    InvoiceRecord,
    InvoiceUpdate,
    MessageResponse,
)
from ..services.invoice_store import InvoiceStore, get_invoice_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/invoices", tags=["invoices"])


@router.get(
    "",
    response_model=ApiResponse[InvoiceListResponse],
    response_model_exclude_none=True,
)
def list_invoices(
    q: str | None = None,
    limit: int = 10,
    offset: int = 0,
    store: InvoiceStore = Depends(get_invoice_store),
) -> ApiResponse[InvoiceListResponse]:
    """
    List saved invoices, newest first.

    Args:
        q: Optional case-insensitive search on vendor name or invoice number.
        limit: Maximum number of invoices to return.
        offset: Number of invoices to skip.
        store: Invoice store.

    Returns:
        One page of invoices with the total match count and the
        limit and offset actually applied.
    """
    page = store.list(q, limit=limit, offset=offset)
    return ApiResponse(
        data=InvoiceListResponse(
            invoices=page.records,
            total=page.total,
            limit=page.limit,
            offset=page.offset,
        )
    )


@router.get(
    "/{invoice_id}",
    response_model=ApiResponse[InvoiceRecord],
    response_model_exclude_none=True,
)
def get_invoice(
    invoice_id: str,
    store: InvoiceStore = Depends(get_invoice_store),
) -> ApiResponse[InvoiceRecord]:
    """Get a single invoice."""
    invoice = store.get(invoice_id)
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return ApiResponse(data=invoice)


@router.post(
    "",
    response_model=ApiResponse[InvoiceRecord],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
)
def create_invoice(
    request: InvoiceCreate,
    store: InvoiceStore = Depends(get_invoice_store),
) -> ApiResponse[InvoiceRecord]:
    """Save a reviewed invoice."""
    return ApiResponse(data=store.create(request))


@router.put(
    "/{invoice_id}",
    response_model=ApiResponse[InvoiceRecord],
    response_model_exclude_none=True,
)
def update_invoice(
    invoice_id: str,
    request: InvoiceUpdate,
    store: InvoiceStore = Depends(get_invoice_store),
) -> ApiResponse[InvoiceRecord]:
    """
    Update an invoice (human correction).

    Only the supplied fields change; vendor and invoice blocks are
    merged with the stored values.
    """
    invoice = store.update(invoice_id, request)
    if invoice is None:
        raise NotFoundError("Invoice not found")
    return ApiResponse(data=invoice)


@router.delete("/{invoice_id}", response_model=ApiResponse[MessageResponse])
def delete_invoice(
    invoice_id: str,
    store: InvoiceStore = Depends(get_invoice_store),
) -> ApiResponse[MessageResponse]:
    """Delete an invoice."""
    if not store.delete(invoice_id):
        raise NotFoundError("Invoice not found")
    return ApiResponse(data=MessageResponse(message="Invoice deleted successfully"))
