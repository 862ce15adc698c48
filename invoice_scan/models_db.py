"""
SQLAlchemy database models for the invoice scan application.

An invoice is stored as a single document: the vendor and invoice
blocks live in JSON columns in their wire shape, while the vendor name
and invoice number are copied into indexed columns for searching.
"""

import uuid
from datetime import datetime

from sqlalchemy import JSON, DateTime, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from .database import Base


class Invoice(Base):
    """
    Persisted invoice record.

    Stores the reviewed vendor/invoice data together with the id of
    the upload it was extracted from.
    """

    __tablename__ = "invoices"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    file_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
        comment="Id of the uploaded file (not a foreign key)",
    )
    file_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
    )
    vendor: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="Vendor block as JSON",
    )
    invoice: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        comment="Invoice details and line items as JSON",
    )
    vendor_name: Mapped[str] = mapped_column(
        String(512),
        nullable=False,
        index=True,
    )
    invoice_number: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime,
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime,
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Invoice(id={self.id}, number='{self.invoice_number}', vendor='{self.vendor_name}')>"
