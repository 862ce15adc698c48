"""Tests for Pydantic models."""

import copy

import pytest
from pydantic import ValidationError

from invoice_scan.models import (
    ApiResponse,
    InvoiceCreate,
    InvoiceDetails,
    InvoiceUpdate,
    LineItem,
    Vendor,
)


class TestLineItem:
    """Tests for LineItem model."""

    def test_camel_case_aliases(self):
        item = LineItem.model_validate(
            {"description": "Hosting", "unitPrice": 10, "quantity": 3, "total": 30}
        )
        assert item.unit_price == 10
        assert item.model_dump(by_alias=True)["unitPrice"] == 10

    def test_total_is_not_recomputed(self):
        """The server keeps whatever total the client sent."""
        item = LineItem(description="Hosting", unit_price=10, quantity=3, total=99)
        assert item.total == 99

    def test_negative_unit_price_rejected(self):
        with pytest.raises(ValidationError):
            LineItem(description="x", unit_price=-1, quantity=1, total=0)

    def test_zero_quantity_rejected(self):
        with pytest.raises(ValidationError):
            LineItem(description="x", unit_price=1, quantity=0, total=0)


class TestVendor:
    def test_name_required(self):
        with pytest.raises(ValidationError):
            Vendor.model_validate({"address": "Somewhere"})

    def test_empty_name_rejected(self):
        with pytest.raises(ValidationError):
            Vendor(name="")


class TestInvoiceDetails:
    """Tests for InvoiceDetails model."""

    def test_dates_are_normalized(self):
        details = InvoiceDetails(number="1", date="01/15/2024", po_date="January 2, 2024")
        assert details.date == "2024-01-15"
        assert details.po_date == "2024-01-02"

    def test_invalid_date_rejected(self):
        with pytest.raises(ValidationError):
            InvoiceDetails(number="1", date="not a date")

    def test_number_required(self):
        with pytest.raises(ValidationError):
            InvoiceDetails.model_validate({"date": "2024-01-15"})

    @pytest.mark.parametrize("value", ["5", "June", "1.5"])
    def test_partial_date_rejected(self, value):
        with pytest.raises(ValidationError):
            InvoiceDetails(number="1", date=value)


class TestInvoiceCreate:
    """Tests for InvoiceCreate model."""

    def test_valid_payload(self, invoice_payload):
        invoice = InvoiceCreate.model_validate(invoice_payload)
        assert invoice.file_name == "invoice_sample.pdf"
        assert invoice.invoice.tax_percent == 8.5

    def test_line_items_required(self, invoice_payload):
        payload = copy.deepcopy(invoice_payload)
        payload["invoice"]["lineItems"] = []
        with pytest.raises(ValidationError) as exc_info:
            InvoiceCreate.model_validate(payload)
        assert "line item" in str(exc_info.value)

    def test_file_name_required(self, invoice_payload):
        payload = copy.deepcopy(invoice_payload)
        del payload["fileName"]
        with pytest.raises(ValidationError):
            InvoiceCreate.model_validate(payload)

    def test_document_omits_unset_optionals(self, invoice_payload):
        document = InvoiceCreate.model_validate(invoice_payload).to_document()
        assert "poNumber" not in document["invoice"]
        assert document["vendor"]["taxId"] == "US-123456789"

    def test_server_fields_are_ignored(self, invoice_payload):
        payload = dict(invoice_payload, id="abc", createdAt="2020-01-01T00:00:00Z")
        document = InvoiceCreate.model_validate(payload).to_document()
        assert "id" not in document
        assert "createdAt" not in document


class TestInvoiceUpdate:
    """Tests for InvoiceUpdate model."""

    def test_patch_contains_only_sent_fields(self):
        patch = InvoiceUpdate.model_validate({"invoice": {"total": 500}}).to_patch()
        assert patch == {"invoice": {"total": 500.0}}

    def test_empty_update_is_valid(self):
        assert InvoiceUpdate.model_validate({}).to_patch() == {}

    @pytest.mark.parametrize(
        "body",
        [
            {"vendor": {"name": None}},
            {"invoice": {"number": None}},
            {"invoice": {"date": None}},
            {"invoice": {"lineItems": None}},
            {"vendor": None},
            {"fileName": None},
        ],
    )
    def test_required_fields_cannot_be_nulled(self, body):
        with pytest.raises(ValidationError):
            InvoiceUpdate.model_validate(body)

    def test_partial_date_rejected(self):
        with pytest.raises(ValidationError):
            InvoiceUpdate.model_validate({"invoice": {"date": "June"}})

    def test_optional_fields_can_be_nulled(self):
        patch = InvoiceUpdate.model_validate({"invoice": {"poNumber": None}}).to_patch()
        assert patch == {"invoice": {"poNumber": None}}


class TestEnvelope:
    def test_success_envelope(self):
        body = ApiResponse(data={"message": "ok"}).model_dump()
        assert body == {"success": True, "data": {"message": "ok"}}
