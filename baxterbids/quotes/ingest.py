"""
ingest.py — Quote store rows → typed VendorQuote objects

This is the validation boundary. Rows arrive as loosely-typed JSON from
the quote store (one row per vendor quote, nested "items"). Everything
downstream (normalizer, comparison engine) assumes the numbers here are
real numbers or None, so anything that isn't gets rejected here with a
QuoteParseError that names the quote and field.

Accepted numeric inputs: int, float, and money strings like "12.50",
"$1,200.00". Rejected: booleans, "call for price", lists, NaN/inf.
"""

import logging
import math
import re
from datetime import date, datetime, timezone
from typing import Optional

from dateutil import parser as date_parser

from baxterbids.quotes.models import QuoteItem, QuoteStatus, VendorQuote

log = logging.getLogger("baxterbids.ingest")

_MONEY_RE = re.compile(r"^\s*\$?\s*(-?[\d,]*\.?\d+)\s*$")


class QuoteParseError(ValueError):
    """A quote row could not be converted into a VendorQuote."""

    def __init__(self, message: str, quote_id: str = "", field: str = ""):
        self.quote_id = quote_id
        self.field = field
        prefix = f"quote {quote_id}: " if quote_id else ""
        super().__init__(f"{prefix}{message}")


# ─── Field parsers ───────────────────────────────────────────────────────────

def parse_number(value, field: str = "", quote_id: str = "") -> Optional[float]:
    """Coerce a numeric field. None/"" → None; junk → QuoteParseError."""
    if value is None:
        return None
    if isinstance(value, bool):
        raise QuoteParseError(f"{field} must be numeric, got boolean", quote_id, field)
    if isinstance(value, (int, float)):
        num = float(value)
    elif isinstance(value, str):
        if not value.strip():
            return None
        m = _MONEY_RE.match(value)
        if not m:
            raise QuoteParseError(f"{field} is not numeric: {value!r}", quote_id, field)
        num = float(m.group(1).replace(",", ""))
    else:
        raise QuoteParseError(
            f"{field} must be numeric, got {type(value).__name__}", quote_id, field)
    if not math.isfinite(num):
        raise QuoteParseError(f"{field} is not finite: {value!r}", quote_id, field)
    return num


def parse_line_number(value, quote_id: str = "") -> Optional[int]:
    num = parse_number(value, "line_number", quote_id)
    if num is None:
        return None
    if num != int(num):
        raise QuoteParseError(f"line_number must be whole: {value!r}", quote_id, "line_number")
    return int(num)


def parse_timestamp(value, field: str = "", quote_id: str = "") -> Optional[datetime]:
    """ISO-ish string / datetime → timezone-aware datetime (naive = UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    elif isinstance(value, date):
        dt = datetime(value.year, value.month, value.day)
    elif isinstance(value, str):
        try:
            dt = date_parser.parse(value)
        except (ValueError, OverflowError) as e:
            raise QuoteParseError(f"{field} is not a date: {value!r} ({e})", quote_id, field)
    else:
        raise QuoteParseError(
            f"{field} must be a date string, got {type(value).__name__}", quote_id, field)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_date(value, field: str = "", quote_id: str = "") -> Optional[date]:
    dt = parse_timestamp(value, field, quote_id)
    return dt.date() if dt else None


def _text(value) -> str:
    if value is None:
        return ""
    return str(value)


def _optional_text(value) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text or None


# ─── Row parsers ─────────────────────────────────────────────────────────────

def parse_item(row: dict, quote_id: str = "", position: int = 0) -> QuoteItem:
    """Parse one nested line item row.

    Items with neither part number nor description are kept (the raw
    quote still shows them); the normalizer leaves them out of the
    comparison.
    """
    if not isinstance(row, dict):
        raise QuoteParseError(f"item #{position} is not an object", quote_id, "items")

    qty = parse_number(row.get("qty", row.get("quantity")), "qty", quote_id)
    unit_price = parse_number(row.get("unit_price"), "unit_price", quote_id)
    extended = parse_number(row.get("extended_price"), "extended_price", quote_id)

    item = QuoteItem(
        id=_text(row.get("id")),
        line_number=parse_line_number(row.get("line_number"), quote_id),
        part_number=_optional_text(row.get("part_number")),
        description=_optional_text(row.get("description")),
        qty=qty,
        uom=_text(row.get("uom")),
        unit_price=unit_price,
        extended_price=extended,
        lead_time=_text(row.get("lead_time")),
        manufacturer=_text(row.get("manufacturer")),
    )
    if not item.is_comparable():
        log.debug("quote %s item #%d has no part number or description", quote_id, position)
    return item


def parse_quote(row: dict) -> VendorQuote:
    """Parse one quote row (with nested items) into a VendorQuote."""
    if not isinstance(row, dict):
        raise QuoteParseError(f"quote row must be an object, got {type(row).__name__}")

    quote_id = _text(row.get("id")).strip()
    if not quote_id:
        raise QuoteParseError("missing id", field="id")

    vendor_name = (_text(row.get("vendor_name")).strip()
                   or _text(row.get("vendor_email")).strip())
    if not vendor_name:
        raise QuoteParseError("missing vendor_name", quote_id, "vendor_name")

    raw_status = row.get("status") or QuoteStatus.PENDING.value
    try:
        status = QuoteStatus.parse(raw_status)
    except ValueError:
        raise QuoteParseError(f"unknown status {raw_status!r}", quote_id, "status")

    confidence = parse_number(row.get("parse_confidence"), "parse_confidence", quote_id)
    if confidence is not None and not 0 <= confidence <= 1:
        raise QuoteParseError(
            f"parse_confidence must be between 0 and 1, got {confidence}",
            quote_id, "parse_confidence")

    raw_items = row.get("items")
    if raw_items is None:
        raw_items = row.get("quote_items") or []
    if not isinstance(raw_items, list):
        raise QuoteParseError("items must be a list", quote_id, "items")
    items = [parse_item(r, quote_id, i) for i, r in enumerate(raw_items, start=1)]

    # RFQ send tracking may be embedded as rfqs(sent_date, received_date)
    rfq = row.get("rfqs") if isinstance(row.get("rfqs"), dict) else {}
    sent_at = row.get("sent_at") or rfq.get("sent_date")
    received_at = row.get("received_at") or rfq.get("received_date")

    return VendorQuote(
        id=quote_id,
        bid_id=_text(row.get("bid_id")),
        rfq_id=_optional_text(row.get("rfq_id")),
        vendor_name=vendor_name,
        vendor_email=_text(row.get("vendor_email")),
        shipping=parse_number(row.get("shipping"), "shipping", quote_id),
        terms=_text(row.get("terms")),
        valid_until=parse_date(row.get("valid_until"), "valid_until", quote_id),
        total_cost=parse_number(row.get("total_cost"), "total_cost", quote_id),
        status=status,
        response_date=parse_timestamp(row.get("response_date"), "response_date", quote_id),
        parse_confidence=confidence,
        notes=_text(row.get("notes")),
        items=items,
        sent_at=parse_timestamp(sent_at, "sent_at", quote_id),
        received_at=parse_timestamp(received_at, "received_at", quote_id),
    )


def parse_quotes(rows: list, skip_invalid: bool = False) -> list:
    """Parse a list of quote rows, preserving order.

    With skip_invalid=True bad rows are logged and dropped; otherwise the
    first QuoteParseError propagates.
    """
    quotes = []
    for row in rows or []:
        try:
            quotes.append(parse_quote(row))
        except QuoteParseError as e:
            if not skip_invalid:
                raise
            log.warning("Skipping quote row: %s", e,
                        extra={"quote_id": e.quote_id})
    return quotes
