"""
Normalization utilities for extracted invoice data.

Handles:
- Currency/amount parsing to floats (price-parser)
- Date parsing to YYYY-MM-DD (dateutil)
- Data cleaning (null removal from arrays and objects)
- ISO-8601 timestamp formatting
"""

import logging
import re
from datetime import datetime, timezone
from typing import Any

from dateutil import parser as date_parser
from price_parser import Price

logger = logging.getLogger(__name__)

AMOUNT_FIELDS = ("subtotal", "taxPercent", "total")
LINE_ITEM_AMOUNT_FIELDS = ("unitPrice", "quantity", "total")
DATE_FIELDS = ("date", "poDate")

# Written dates must name a year, month and day on their own.
_DATE_DEFAULTS = (datetime(2000, 1, 1), datetime(2011, 12, 28))


def utc_timestamp(dt: datetime | None = None) -> str:
    """Format a (naive or aware) UTC datetime as ISO-8601 with a Z suffix."""
    dt = dt or datetime.now(timezone.utc)
    return dt.replace(tzinfo=None).isoformat(timespec="microseconds") + "Z"


def parse_currency(value: Any) -> float | None:
    """
    Parse a currency string to float using price-parser.

    Handles international formats such as "$1,234.56", "€1.234,56",
    "1000 USD" and "15%".
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str):
        return None

    value = value.strip()
    if not value:
        return None

    price = Price.fromstring(value.rstrip("%"))
    if price.amount_float is not None:
        return price.amount_float

    # Fallback for bare numbers price-parser does not recognise
    cleaned = re.sub(r"[^\d.,\-]", "", value)
    if not cleaned:
        return None
    if "," in cleaned and "." in cleaned:
        if cleaned.rfind(",") > cleaned.rfind("."):
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    elif "," in cleaned:
        parts = cleaned.split(",")
        if len(parts) == 2 and len(parts[1]) == 2:
            cleaned = cleaned.replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_date(value: Any) -> str | None:
    """
    Parse various date formats to YYYY-MM-DD.

    Slash dates are read as MM/DD/YYYY first and as DD/MM/YYYY when the
    first part cannot be a month. Returns None if parsing fails.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        value = str(value)

    value = value.strip()
    if not value:
        return None

    if re.match(r"^\d{4}-\d{2}-\d{2}$", value):
        try:
            return datetime.strptime(value, "%Y-%m-%d").strftime("%Y-%m-%d")
        except ValueError:
            return None

    match = re.match(r"^(\d{1,2})/(\d{1,2})/(\d{4})$", value)
    if match:
        first, second, year = (int(part) for part in match.groups())
        for month, day in ((first, second), (second, first)):
            try:
                return datetime(year, month, day).strftime("%Y-%m-%d")
            except ValueError:
                continue
        return None

    # Written formats ("January 15, 2024", "15 Jan 2024", ...). Parsing
    # against two unrelated defaults exposes any component dateutil filled in.
    try:
        parsed = {date_parser.parse(value, default=default).date() for default in _DATE_DEFAULTS}
    except (ValueError, OverflowError):
        return None
    if len(parsed) != 1:
        return None
    return parsed.pop().strftime("%Y-%m-%d")


def clean_nulls(data: Any) -> Any:
    """
    Recursively drop None values from arrays and objects.

    Models answering with a JSON schema tend to emit explicit nulls for
    optional fields and sometimes pad arrays with null rows.
    """
    if isinstance(data, dict):
        return {k: clean_nulls(v) for k, v in data.items() if v is not None}
    if isinstance(data, list):
        return [clean_nulls(item) for item in data if item is not None]
    return data


def normalize_extraction(payload: dict[str, Any]) -> dict[str, Any]:
    """
    Normalize a raw `{vendor, invoice}` payload before validation.

    Amounts given as strings become floats, dates become YYYY-MM-DD and
    nulls are dropped. Values that cannot be normalized are left as-is
    so that model validation reports them.
    """
    data = clean_nulls(payload)
    invoice = data.get("invoice")
    if not isinstance(invoice, dict):
        return data

    for key in AMOUNT_FIELDS:
        if isinstance(invoice.get(key), str):
            parsed = parse_currency(invoice[key])
            if parsed is not None:
                invoice[key] = parsed

    for key in DATE_FIELDS:
        if key in invoice:
            parsed = parse_date(invoice[key])
            if parsed is not None:
                invoice[key] = parsed
            else:
                logger.warning("Could not normalize %s=%r", key, invoice[key])

    for item in invoice.get("lineItems") or []:
        if not isinstance(item, dict):
            continue
        for key in LINE_ITEM_AMOUNT_FIELDS:
            if isinstance(item.get(key), str):
                parsed = parse_currency(item[key])
                if parsed is not None:
                    item[key] = parsed

    return data
