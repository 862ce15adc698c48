"""
Invoice data extraction using the OpenAI API.

Sends the uploaded PDF directly to the model as a file input together
with a strict JSON schema for the vendor, invoice header and line
items, then validates the answer against the same models used for
manual form submission.
"""

import base64
import json
import logging
from typing import Any

from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from ..config import get_settings
from ..exceptions import ConfigurationError, ExtractionError
from ..models import ExtractionResult
from .normalization import normalize_extraction

logger = logging.getLogger(__name__)


# =============================================================================
# Prompt and Output Schema
# =============================================================================

EXTRACTION_SYSTEM_PROMPT = """You are an expert invoice data extraction system.
Extract structured data from the invoice PDF and return it as JSON.

Extract the following information:
- Vendor information (name, address, tax ID)
- Invoice details (number, date, currency, amounts, PO details)
- Line items with descriptions, quantities, unit prices, and totals

## Rules:
1. Only extract information that is clearly visible in the document. DO NOT HALLUCINATE.
2. For optional fields that are not present, return null.
3. For dates, use YYYY-MM-DD format.
4. For numbers, use decimal format without currency symbols or thousands separators.
5. For currency, use the ISO 4217 code (e.g. "USD", "EUR") when it can be determined.
6. taxPercent is the tax rate in percent (e.g. 8.5), not the tax amount.
7. Capture EVERY line item row, not just the first one."""

EXTRACTION_USER_PROMPT = "Extract the vendor, invoice details and all line items from this invoice."

_NULLABLE_STRING = {"type": ["string", "null"]}
_NULLABLE_NUMBER = {"type": ["number", "null"]}

INVOICE_JSON_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "vendor": {
            "type": "object",
            "properties": {
                "name": {"type": "string"},
                "address": _NULLABLE_STRING,
                "taxId": _NULLABLE_STRING,
            },
            "required": ["name", "address", "taxId"],
            "additionalProperties": False,
        },
        "invoice": {
            "type": "object",
            "properties": {
                "number": {"type": "string"},
                "date": {"type": "string"},
                "currency": _NULLABLE_STRING,
                "subtotal": _NULLABLE_NUMBER,
                "taxPercent": _NULLABLE_NUMBER,
                "total": _NULLABLE_NUMBER,
                "poNumber": _NULLABLE_STRING,
                "poDate": _NULLABLE_STRING,
                "lineItems": {
                    "type": "array",
                    "items": {
                        "type": "object",
                        "properties": {
                            "description": {"type": "string"},
                            "unitPrice": {"type": "number"},
                            "quantity": {"type": "number"},
                            "total": {"type": "number"},
                        },
                        "required": ["description", "unitPrice", "quantity", "total"],
                        "additionalProperties": False,
                    },
                },
            },
            "required": [
                "number",
                "date",
                "currency",
                "subtotal",
                "taxPercent",
                "total",
                "poNumber",
                "poDate",
                "lineItems",
            ],
            "additionalProperties": False,
        },
    },
    "required": ["vendor", "invoice"],
    "additionalProperties": False,
}


# =============================================================================
# Response Parsing
# =============================================================================


def parse_extraction_response(content: str | None) -> ExtractionResult:
    """
    Parse and validate the model's JSON answer.

    Args:
        content: Raw message content returned by the model.

    Returns:
        The validated vendor/invoice payload.

    Raises:
        ExtractionError: If the content is empty, not JSON, or fails validation.
    """
    if not content:
        raise ExtractionError("Failed to extract invoice data: empty response from OpenAI")

    try:
        payload = json.loads(content)
    except json.JSONDecodeError as e:
        logger.error("Failed to parse extraction response: %s", content[:500])
        raise ExtractionError(f"Failed to extract invoice data: invalid JSON ({e})") from e

    if not isinstance(payload, dict):
        raise ExtractionError("Failed to extract invoice data: expected a JSON object")

    try:
        return ExtractionResult.model_validate(normalize_extraction(payload))
    except ValidationError as e:
        logger.error("Extraction output failed validation: %s", e)
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ExtractionError(f"Failed to extract invoice data: {problems}") from e


# =============================================================================
# ExtractionService
# =============================================================================


class ExtractionService:
    """
    Adapter between uploaded PDFs and the OpenAI chat completions API.

    One request per extraction, no retries and no caching of results.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4.1",
        use_mock: bool = False,
        client: Any = None,
    ):
        """
        Initialize the extraction service.

        Args:
            api_key: OpenAI API key. Extraction fails with ConfigurationError without one.
            model: Default OpenAI model (must accept PDF file inputs).
            use_mock: If True, return a fixed sample invoice instead of calling OpenAI.
            client: Pre-built AsyncOpenAI-compatible client, mainly for tests.
        """
        self.api_key = api_key
        self.model = model
        self.use_mock = use_mock
        self._client = client

        if self.use_mock:
            logger.warning(
                "Extraction running in MOCK MODE. Unset EXTRACTION_MOCK for real extraction."
            )

    @property
    def is_configured(self) -> bool:
        return self.use_mock or self._client is not None or bool(self.api_key)

    @property
    def client(self) -> Any:
        """Lazy-load the OpenAI client."""
        if self._client is None:
            if not self.api_key:
                raise ConfigurationError(
                    "OpenAI API key not provided. Set OPENAI_API_KEY environment variable."
                )
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def extract(
        self,
        data: bytes,
        file_name: str,
        model: str | None = None,
    ) -> ExtractionResult:
        """
        Extract vendor and invoice data from a PDF.

        Args:
            data: Raw PDF bytes.
            file_name: Original file name, passed along with the file.
            model: Override for the configured model.

        Returns:
            ExtractionResult with vendor and invoice blocks.

        Raises:
            ConfigurationError: If no API key is configured.
            ExtractionError: If the call fails or its output is unusable.
        """
        if self.use_mock:
            return self._get_mock_extraction()

        client = self.client
        model = model or self.model
        file_data = base64.b64encode(data).decode("utf-8")

        logger.info("Extracting %s (%d bytes) with %s", file_name, len(data), model)

        try:
            response = await client.chat.completions.create(
                model=model,
                messages=[
                    {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {
                                "type": "file",
                                "file": {
                                    "filename": file_name,
                                    "file_data": f"data:application/pdf;base64,{file_data}",
                                },
                            },
                            {"type": "text", "text": EXTRACTION_USER_PROMPT},
                        ],
                    },
                ],
                response_format={
                    "type": "json_schema",
                    "json_schema": {
                        "name": "invoice_extraction",
                        "strict": True,
                        "schema": INVOICE_JSON_SCHEMA,
                    },
                },
            )
        except OpenAIError as e:
            logger.error("OpenAI extraction call failed: %s", e)
            raise ExtractionError(f"Failed to extract invoice data: {e}") from e
        except Exception as e:
            logger.exception("Invoice extraction failed")
            raise ExtractionError(f"Failed to extract invoice data: {e}") from e

        if not response.choices:
            raise ExtractionError("Failed to extract invoice data: empty response from OpenAI")

        message = response.choices[0].message
        if getattr(message, "refusal", None):
            raise ExtractionError(f"Failed to extract invoice data: {message.refusal}")

        result = parse_extraction_response(message.content)
        logger.info(
            "Extracted invoice %s from %s with %d line items",
            result.invoice.number,
            file_name,
            len(result.invoice.line_items),
        )
        return result

    def _get_mock_extraction(self) -> ExtractionResult:
        """Return a fixed sample invoice for development."""
        return ExtractionResult.model_validate(
            {
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
        )


# =============================================================================
# Singleton Factory
# =============================================================================

_extraction_service: ExtractionService | None = None


def get_extraction_service() -> ExtractionService:
    """Get or create the extraction service singleton."""
    global _extraction_service
    if _extraction_service is None:
        settings = get_settings()
        _extraction_service = ExtractionService(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            use_mock=settings.extraction_mock,
        )
    return _extraction_service
