"""Pytest configuration and fixtures."""

import copy
from typing import Any, Generator

import pytest
from fastapi.testclient import TestClient

from invoice_scan.main import app
from invoice_scan.models import ExtractionResult
from invoice_scan.routers.dependencies import get_file_cache
from invoice_scan.services.extraction import get_extraction_service
from invoice_scan.services.file_cache import FileCache
from invoice_scan.services.invoice_store import InvoiceStore, get_invoice_store

SAMPLE_INVOICE: dict[str, Any] = {
    "vendor": {
        "name": "TechCorp Solutions",
        "address": "123 Innovation Drive, San Francisco, CA 94105",
        "taxId": "US-123456789",
    },
    "invoice": {
        "number": "INV-2024-001",
        "date": "2024-01-15",
        "currency": "USD",
        "subtotal": 6000,
        "taxPercent": 8.5,
        "total": 6510,
        "lineItems": [
            {
                "description": "Software Development Services",
                "unitPrice": 150,
                "quantity": 40,
                "total": 6000,
            }
        ],
    },
}


class StubExtractionService:
    """Extraction service double that records calls instead of calling OpenAI."""

    def __init__(self, result: dict[str, Any] | None = None):
        self.result = result or SAMPLE_INVOICE
        self.calls: list[tuple[bytes, str, str | None]] = []
        self.error: Exception | None = None
        self.is_configured = True

    async def extract(self, data: bytes, file_name: str, model: str | None = None):
        self.calls.append((data, file_name, model))
        if self.error is not None:
            raise self.error
        return ExtractionResult.model_validate(self.result)


@pytest.fixture
def store() -> Generator[InvoiceStore, None, None]:
    """An invoice store backed by an in-memory SQLite database."""
    invoice_store = InvoiceStore("sqlite://")
    yield invoice_store
    invoice_store.dispose()


@pytest.fixture
def file_cache() -> FileCache:
    return FileCache()


@pytest.fixture
def extraction_service() -> StubExtractionService:
    return StubExtractionService()


@pytest.fixture
def client(
    store: InvoiceStore,
    file_cache: FileCache,
    extraction_service: StubExtractionService,
) -> Generator[TestClient, None, None]:
    """Create a test client with in-memory collaborators."""
    app.dependency_overrides[get_invoice_store] = lambda: store
    app.dependency_overrides[get_file_cache] = lambda: file_cache
    app.dependency_overrides[get_extraction_service] = lambda: extraction_service
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def invoice_payload() -> dict[str, Any]:
    """A valid POST /api/invoices body."""
    payload = copy.deepcopy(SAMPLE_INVOICE)
    payload["fileId"] = "3f1c2a9e-0000-4000-8000-000000000001"
    payload["fileName"] = "invoice_sample.pdf"
    return payload


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """
    Create a minimal valid PDF for testing.

    This is a minimal PDF structure that should be recognized as a valid PDF.
    """
    pdf_content = b"""%PDF-1.4
1 0 obj
<< /Type /Catalog /Pages 2 0 R >>
endobj
2 0 obj
<< /Type /Pages /Kids [3 0 R] /Count 1 >>
endobj
3 0 obj
<< /Type /Page /Parent 2 0 R /MediaBox [0 0 612 792] /Contents 4 0 R >>
endobj
4 0 obj
<< /Length 44 >>
stream
BT
/F1 12 Tf
100 700 Td
(Test) Tj
ET
endstream
endobj
xref
0 5
0000000000 65535 f
0000000009 00000 n
0000000058 00000 n
0000000115 00000 n
0000000214 00000 n
trailer
<< /Size 5 /Root 1 0 R >>
startxref
306
%%EOF"""
    return pdf_content
