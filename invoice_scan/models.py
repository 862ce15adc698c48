"""
Pydantic models for the invoice scan API.

Defines the invoice document shape shared by manual form submission
and AI extraction, the request/response bodies of every endpoint, and
the uniform response envelope.
"""

from typing import Any, ClassVar, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .services.normalization import parse_date

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base model exposing camelCase names on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _calendar_date(value: str | None) -> str | None:
    """Normalize a calendar date to YYYY-MM-DD or reject it."""
    if value is None:
        return None
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid calendar date: {value!r}")
    return parsed


# =============================================================================
# Invoice Document Shape
# =============================================================================


class LineItem(CamelModel):
    """
    A single row of an invoice.

    The server does not check that total == unit_price * quantity;
    the client recomputes line totals.
    """

    description: str = Field(..., description="What was billed")
    unit_price: float = Field(..., ge=0, description="Price per unit")
    quantity: float = Field(..., gt=0, description="Billed quantity")
    total: float = Field(..., ge=0, description="Line total")


class Vendor(CamelModel):
    """Issuer of the invoice."""

    name: str = Field(..., min_length=1, description="Vendor name")
    address: str | None = Field(default=None, description="Postal address")
    tax_id: str | None = Field(default=None, description="VAT / tax identifier")


class InvoiceDetails(CamelModel):
    """Header fields and line items of an invoice."""

    number: str = Field(..., min_length=1, description="Invoice number")
    date: str = Field(..., description="Invoice date (YYYY-MM-DD)")
    currency: str | None = Field(default=None, examples=["USD", "EUR"])
    subtotal: float | None = None
    tax_percent: float | None = None
    total: float | None = None
    po_number: str | None = None
    po_date: str | None = None
    line_items: list[LineItem] = Field(default_factory=list)

    @field_validator("date", "po_date")
    @classmethod
    def validate_dates(cls, v: str | None) -> str | None:
        return _calendar_date(v)


class ExtractionResult(CamelModel):
    """Structured payload returned by the extraction adapter."""

    vendor: Vendor
    invoice: InvoiceDetails


# =============================================================================
# Invoice Requests
# =============================================================================


class InvoiceCreate(CamelModel):
    """Body of POST /api/invoices."""

    file_id: str = Field(..., min_length=1)
    file_name: str = Field(..., min_length=1)
    vendor: Vendor
    invoice: InvoiceDetails

    @field_validator("invoice")
    @classmethod
    def require_line_items(cls, v: InvoiceDetails) -> InvoiceDetails:
        if not v.line_items:
            raise ValueError("At least one line item is required")
        return v

    def to_document(self) -> dict[str, Any]:
        """Dump to the stored document shape, omitting unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class PartialModel(CamelModel):
    """Model where every field is optional but some may not be nulled."""

    non_nullable_fields: ClassVar[tuple[str, ...]] = ()

    @model_validator(mode="after")
    def reject_null_required(self):
        for name in self.non_nullable_fields:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self


class VendorUpdate(PartialModel):
    non_nullable_fields: ClassVar[tuple[str, ...]] = ("name",)

    name: str | None = Field(default=None, min_length=1)
    address: str | None = None
    tax_id: str | None = None


class InvoiceDetailsUpdate(PartialModel):
    non_nullable_fields: ClassVar[tuple[str, ...]] = ("number", "date", "line_items")

    number: str | None = Field(default=None, min_length=1)
    date: str | None = None
    currency: str | None = None
    subtotal: float | None = None
    tax_percent: float | None = None
    total: float | None = None
    po_number: str | None = None
    po_date: str | None = None
    line_items: list[LineItem] | None = None

    @field_validator("date", "po_date")
    @classmethod
    def validate_dates(cls, v: str | None) -> str | None:
        return _calendar_date(v)


class InvoiceUpdate(PartialModel):
    """Body of PUT /api/invoices/{id}; nested objects are merged."""

    non_nullable_fields: ClassVar[tuple[str, ...]] = (
        "file_id",
        "file_name",
        "vendor",
        "invoice",
    )

    file_id: str | None = Field(default=None, min_length=1)
    file_name: str | None = Field(default=None, min_length=1)
    vendor: VendorUpdate | None = None
    invoice: InvoiceDetailsUpdate | None = None

    def to_patch(self) -> dict[str, Any]:
        """Dump only the fields the client actually sent."""
        return self.model_dump(by_alias=True, exclude_unset=True)


class InvoiceRecord(CamelModel):
    """A persisted invoice as returned by the API."""

    id: str
    file_id: str
    file_name: str
    vendor: Vendor
    invoice: InvoiceDetails
    created_at: str
    updated_at: str | None = None


class InvoicePage(BaseModel):
    """One page of a store listing."""

    records: list[InvoiceRecord]
    total: int
    limit: int
    offset: int


# =============================================================================
# Endpoint Models
# =============================================================================


class UploadResponse(CamelModel):
    """Response data for POST /api/upload."""

    file_id: str
    file_name: str
    file_size: int = Field(..., ge=0)
    uploaded_at: str


class ExtractRequest(CamelModel):
    """Body of POST /api/extract."""

    file_id: str = Field(..., min_length=1, description="Id returned by upload")
    model: str | None = Field(
        default=None,
        description="Override the configured OpenAI model",
    )


class InvoiceListResponse(CamelModel):
    """Response data for GET /api/invoices."""

    invoices: list[InvoiceRecord]
    total: int = Field(..., ge=0)
    limit: int
    offset: int


class MessageResponse(CamelModel):
    message: str


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(default="healthy")
    message: str | None = None
    version: str = Field(default="1.0.0")


# =============================================================================
# Response Envelope
# =============================================================================


class ApiResponse(BaseModel, Generic[T]):
    """Successful response envelope."""

    success: bool = True
    data: T


class ErrorDetail(BaseModel):
    message: str
    code: str | None = None


class ErrorResponse(BaseModel):
    """Failed response envelope."""

    success: bool = False
    error: ErrorDetail
