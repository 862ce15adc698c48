"""
Invoice persistence and search backed by SQLAlchemy.

The store connects lazily: the engine is created and the tables are
ensured on the first operation, and a missing or unreachable database
surfaces as a ConfigurationError at that point rather than at startup.

Absence is never an exception here. Lookups return None, deletes
return False, and callers decide what "not found" means for them.
"""

import logging
import threading
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import Engine, func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ..config import get_settings
from ..database import create_db_engine, create_session_factory, init_db
from ..exceptions import ConfigurationError, PersistenceError
from ..models import (
    InvoiceCreate,
    InvoiceDetails,
    InvoicePage,
    InvoiceRecord,
    InvoiceUpdate,
    Vendor,
)
from ..models_db import Invoice
from .normalization import utc_timestamp

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def _parse_id(invoice_id: Any) -> uuid.UUID | None:
    try:
        return uuid.UUID(str(invoice_id))
    except (ValueError, TypeError):
        return None


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _merge(current: dict[str, Any], changes: dict[str, Any]) -> dict[str, Any]:
    """Apply a partial block; None clears an optional key, lists are replaced."""
    merged = dict(current)
    for key, value in changes.items():
        if value is None:
            merged.pop(key, None)
        else:
            merged[key] = value
    return merged


class InvoiceStore:
    """
    CRUD and search over invoice records.

    Timestamps issued by one store are strictly increasing, so an update
    always produces an updatedAt later than any earlier createdAt or
    updatedAt, even within the same clock tick.
    """

    def __init__(self, database_url: str | None = None, echo: bool = False):
        """
        Initialize the store without connecting.

        Args:
            database_url: SQLAlchemy connection URL. None fails on first use.
            echo: Log every SQL statement.
        """
        self.database_url = database_url
        self.echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None
        self._connect_lock = threading.Lock()
        self._clock_lock = threading.Lock()
        self._last_timestamp: datetime | None = None

    # =========================================================================
    # Connection lifecycle
    # =========================================================================

    @property
    def is_connected(self) -> bool:
        return self._session_factory is not None

    def _sessions(self) -> sessionmaker:
        """Return the session factory, connecting on first use."""
        if self._session_factory is not None:
            return self._session_factory

        with self._connect_lock:
            if self._session_factory is not None:
                return self._session_factory

            if not self.database_url:
                raise ConfigurationError("DATABASE_URL environment variable is not set")

            engine = create_db_engine(self.database_url, echo=self.echo)
            try:
                init_db(engine)
            except SQLAlchemyError as e:
                engine.dispose()
                logger.error("Database connection failed: %s", e)
                raise ConfigurationError(f"Could not connect to database: {e}") from e

            self._engine = engine
            self._session_factory = create_session_factory(engine)
            logger.info(
                "Connected to database %s",
                engine.url.render_as_string(hide_password=True),
            )
            return self._session_factory

    def dispose(self) -> None:
        """Close pooled connections; the next operation reconnects."""
        with self._connect_lock:
            if self._engine is not None:
                self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def _now(self) -> datetime:
        with self._clock_lock:
            now = datetime.now(timezone.utc).replace(tzinfo=None)
            if self._last_timestamp is not None and now <= self._last_timestamp:
                now = self._last_timestamp + timedelta(microseconds=1)
            self._last_timestamp = now
            return now

    @staticmethod
    def _to_record(row: Invoice) -> InvoiceRecord:
        return InvoiceRecord(
            id=str(row.id),
            file_id=row.file_id,
            file_name=row.file_name,
            vendor=Vendor.model_validate(row.vendor),
            invoice=InvoiceDetails.model_validate(row.invoice),
            created_at=utc_timestamp(row.created_at),
            updated_at=utc_timestamp(row.updated_at) if row.updated_at else None,
        )

    # =========================================================================
    # Operations
    # =========================================================================

    def create(self, data: InvoiceCreate) -> InvoiceRecord:
        """
        Persist a new invoice.

        Raises:
            PersistenceError: If the write fails.
            ConfigurationError: If the database is not configured or reachable.
        """
        document = data.to_document()
        sessions = self._sessions()
        row = Invoice(
            file_id=document["fileId"],
            file_name=document["fileName"],
            vendor=document["vendor"],
            invoice=document["invoice"],
            vendor_name=document["vendor"]["name"],
            invoice_number=document["invoice"]["number"],
            created_at=self._now(),
        )
        try:
            with sessions() as session:
                session.add(row)
                session.commit()
        except SQLAlchemyError as e:
            logger.exception("Error creating invoice")
            raise PersistenceError("Failed to create invoice") from e

        logger.info("Created invoice %s (%s)", row.id, row.invoice_number)
        return self._to_record(row)

    def get(self, invoice_id: str) -> InvoiceRecord | None:
        """Return the invoice, or None if the id is absent or malformed."""
        uid = _parse_id(invoice_id)
        if uid is None:
            return None
        sessions = self._sessions()
        try:
            with sessions() as session:
                row = session.get(Invoice, uid)
                return self._to_record(row) if row else None
        except SQLAlchemyError:
            logger.exception("Error getting invoice %s", invoice_id)
            return None

    def list(
        self,
        search: str | None = None,
        limit: int = 10,
        offset: int = 0,
    ) -> InvoicePage:
        """
        List invoices, newest first.

        Args:
            search: Case-insensitive substring of the vendor name or invoice number.
            limit: Page size, clamped to 0..MAX_PAGE_SIZE.
            offset: Number of matches to skip, clamped to >= 0.

        Returns:
            The page, the total number of matches and the bounds applied.
        """
        limit = max(0, min(limit, MAX_PAGE_SIZE))
        offset = max(0, offset)

        query = select(Invoice)
        count_query = select(func.count()).select_from(Invoice)
        if search:
            pattern = f"%{_escape_like(search)}%"
            condition = or_(
                Invoice.vendor_name.ilike(pattern, escape="\\"),
                Invoice.invoice_number.ilike(pattern, escape="\\"),
            )
            query = query.where(condition)
            count_query = count_query.where(condition)

        query = (
            query.order_by(Invoice.created_at.desc(), Invoice.id)
            .offset(offset)
            .limit(limit)
        )

        sessions = self._sessions()
        try:
            with sessions() as session:
                total = session.scalar(count_query) or 0
                rows = session.scalars(query).all()
                return InvoicePage(
                    records=[self._to_record(row) for row in rows],
                    total=total,
                    limit=limit,
                    offset=offset,
                )
        except SQLAlchemyError as e:
            logger.exception("Error listing invoices")
            raise PersistenceError("Failed to fetch invoices") from e

    def update(self, invoice_id: str, data: InvoiceUpdate) -> InvoiceRecord | None:
        """
        Merge a partial update into an invoice.

        Nested vendor/invoice blocks are merged key by key; lineItems is
        replaced as a whole. createdAt is never touched.

        Returns:
            The updated invoice, or None if the id is absent or malformed.
        """
        uid = _parse_id(invoice_id)
        if uid is None:
            return None
        patch = data.to_patch()
        sessions = self._sessions()
        try:
            with sessions() as session:
                row = session.get(Invoice, uid)
                if row is None:
                    return None

                if "fileId" in patch:
                    row.file_id = patch["fileId"]
                if "fileName" in patch:
                    row.file_name = patch["fileName"]
                if "vendor" in patch:
                    row.vendor = _merge(row.vendor, patch["vendor"])
                    row.vendor_name = row.vendor["name"]
                if "invoice" in patch:
                    row.invoice = _merge(row.invoice, patch["invoice"])
                    row.invoice_number = row.invoice["number"]
                row.updated_at = self._now()

                session.commit()
        except SQLAlchemyError as e:
            logger.exception("Error updating invoice %s", invoice_id)
            raise PersistenceError("Failed to update invoice") from e

        logger.info("Updated invoice %s: %s", invoice_id, sorted(patch))
        return self._to_record(row)

    def delete(self, invoice_id: str) -> bool:
        """Delete an invoice; False if it did not exist."""
        uid = _parse_id(invoice_id)
        if uid is None:
            return False
        sessions = self._sessions()
        try:
            with sessions() as session:
                row = session.get(Invoice, uid)
                if row is None:
                    return False
                session.delete(row)
                session.commit()
        except SQLAlchemyError as e:
            logger.exception("Error deleting invoice %s", invoice_id)
            raise PersistenceError("Failed to delete invoice") from e

        logger.info("Deleted invoice %s", invoice_id)
        return True

    def get_by_file_id(self, file_id: str) -> InvoiceRecord | None:
        """Return the most recent invoice saved for an upload, or None."""
        sessions = self._sessions()
        query = (
            select(Invoice)
            .where(Invoice.file_id == file_id)
            .order_by(Invoice.created_at.desc())
            .limit(1)
        )
        try:
            with sessions() as session:
                row = session.scalars(query).first()
                return self._to_record(row) if row else None
        except SQLAlchemyError:
            logger.exception("Error getting invoice by file id %s", file_id)
            return None


# =============================================================================
# Singleton Factory
# =============================================================================

_invoice_store: InvoiceStore | None = None


def get_invoice_store() -> InvoiceStore:
    """Get or create the invoice store singleton (not yet connected)."""
    global _invoice_store
    if _invoice_store is None:
        settings = get_settings()
        _invoice_store = InvoiceStore(settings.database_url, echo=settings.sql_debug)
    return _invoice_store
