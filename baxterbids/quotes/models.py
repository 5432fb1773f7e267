"""
models.py — Vendor quote data model

VendorQuote owns its QuoteItems. ComparisonRow/VendorCell are derived,
request-scoped views built by the normalizer and never persisted.

Objects here are treated as values: the comparison engine never mutates
them, it builds new ones. The only sanctioned "change" is a status
change, which returns a new VendorQuote.
"""

import copy
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class QuoteStatus(Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    PARTIAL = "partial"
    REJECTED = "rejected"
    COUNTERED = "countered"
    EXPIRED = "expired"

    @classmethod
    def parse(cls, value) -> "QuoteStatus":
        """Accept a QuoteStatus or its string value ("Accepted " works too)."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ValueError(f"Unknown quote status: {value!r}")


def _iso(value) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    """Naive timestamps are UTC (same rule as ingest.parse_timestamp)."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ─── Quote line items ────────────────────────────────────────────────────────

class QuoteItem:
    """One priced line within a vendor quote."""

    def __init__(self, id: str = "", line_number: Optional[int] = None,
                 part_number: Optional[str] = None, description: Optional[str] = None,
                 qty: float = 0, uom: str = "", unit_price: Optional[float] = None,
                 extended_price: Optional[float] = None, lead_time: str = "",
                 manufacturer: str = "", is_best_price: bool = False):
        self.id = id
        self.line_number = line_number
        self.part_number = part_number
        self.description = description
        self.qty = qty if qty is not None else 0
        self.uom = uom or ""
        self.unit_price = unit_price
        # Only derive when the vendor left it blank and both inputs exist
        if extended_price is None and unit_price is not None and qty is not None:
            extended_price = unit_price * qty
        self.extended_price = extended_price
        self.lead_time = lead_time or ""
        self.manufacturer = manufacturer or ""
        self.is_best_price = is_best_price

    def is_comparable(self) -> bool:
        """True when the item has a part number or description to align on."""
        return bool(self.part_number or self.description)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "line_number": self.line_number,
            "part_number": self.part_number,
            "description": self.description,
            "qty": self.qty,
            "uom": self.uom,
            "unit_price": self.unit_price,
            "extended_price": self.extended_price,
            "lead_time": self.lead_time,
            "manufacturer": self.manufacturer,
            "is_best_price": self.is_best_price,
        }

    def __repr__(self):
        return (f"QuoteItem(line={self.line_number!r}, part={self.part_number!r}, "
                f"unit_price={self.unit_price!r})")


# ─── Vendor quotes ───────────────────────────────────────────────────────────

class VendorQuote:
    """One vendor's response to an RFQ for a bid."""

    def __init__(self, id: str, bid_id: str, vendor_name: str,
                 vendor_email: str = "", rfq_id: Optional[str] = None,
                 shipping: Optional[float] = None, terms: str = "",
                 valid_until=None, total_cost: Optional[float] = None,
                 status: QuoteStatus = QuoteStatus.PENDING,
                 response_date: Optional[datetime] = None,
                 parse_confidence: Optional[float] = None, notes: str = "",
                 items: Optional[list] = None,
                 sent_at: Optional[datetime] = None,
                 received_at: Optional[datetime] = None):
        self.id = id
        self.bid_id = bid_id
        self.rfq_id = rfq_id
        self.vendor_name = vendor_name
        self.vendor_email = vendor_email or ""
        self.shipping = shipping
        self.terms = terms or ""
        self.valid_until = valid_until
        self.total_cost = total_cost
        self.status = QuoteStatus.parse(status)
        self.response_date = _aware(response_date)
        self.parse_confidence = parse_confidence
        self.notes = notes or ""
        self.items = list(items or [])
        self.sent_at = _aware(sent_at)
        self.received_at = _aware(received_at)

    @property
    def has_declared_total(self) -> bool:
        return self.total_cost is not None

    def with_status(self, new_status, notes: Optional[str] = None) -> "VendorQuote":
        """Return a copy with a new status.

        Transitions are flat: any status may move to any other, including
        rejected back to pending.
        """
        changed = copy.copy(self)
        changed.status = QuoteStatus.parse(new_status)
        if notes is not None:
            changed.notes = notes
        return changed

    def to_dict(self, include_items: bool = True) -> dict:
        d = {
            "id": self.id,
            "bid_id": self.bid_id,
            "rfq_id": self.rfq_id,
            "vendor_name": self.vendor_name,
            "vendor_email": self.vendor_email,
            "shipping": self.shipping,
            "terms": self.terms,
            "valid_until": _iso(self.valid_until),
            "total_cost": self.total_cost,
            "status": self.status.value,
            "response_date": _iso(self.response_date),
            "parse_confidence": self.parse_confidence,
            "notes": self.notes,
            "sent_at": _iso(self.sent_at),
            "received_at": _iso(self.received_at),
        }
        if include_items:
            d["items"] = [i.to_dict() for i in self.items]
        return d

    def __repr__(self):
        return (f"VendorQuote(id={self.id!r}, vendor={self.vendor_name!r}, "
                f"status={self.status.value}, items={len(self.items)})")


# ─── Comparison view ─────────────────────────────────────────────────────────

class VendorCell:
    """One vendor's offer for one comparison row."""

    def __init__(self, vendor_name: str, quote_id: str, item_id: str,
                 unit_price: Optional[float], extended_price: Optional[float],
                 lead_time: str = "", manufacturer: str = "",
                 is_best_price: bool = False):
        self.vendor_name = vendor_name
        self.quote_id = quote_id
        self.item_id = item_id
        self.unit_price = unit_price
        self.extended_price = extended_price
        self.lead_time = lead_time
        self.manufacturer = manufacturer
        self.is_best_price = is_best_price

    def to_dict(self) -> dict:
        return {
            "vendor_name": self.vendor_name,
            "quote_id": self.quote_id,
            "item_id": self.item_id,
            "unit_price": self.unit_price,
            "extended_price": self.extended_price,
            "lead_time": self.lead_time,
            "manufacturer": self.manufacturer,
            "is_best_price": self.is_best_price,
        }


class ComparisonRow:
    """Cross-vendor alignment of one part."""

    def __init__(self, part_key: str, part_number: str = "", description: str = "",
                 qty: float = 0, vendors: Optional[list] = None):
        self.part_key = part_key
        self.part_number = part_number
        self.description = description
        self.qty = qty
        self.vendors = list(vendors or [])

    def cell_for(self, vendor_name: str) -> Optional[VendorCell]:
        """First cell offered by vendor_name, or None (rendered as "—")."""
        for cell in self.vendors:
            if cell.vendor_name == vendor_name:
                return cell
        return None

    def cells_for_quote(self, quote_id: str) -> list:
        return [c for c in self.vendors if c.quote_id == quote_id]

    def copy(self) -> "ComparisonRow":
        return ComparisonRow(self.part_key, self.part_number, self.description,
                             self.qty, [copy.copy(c) for c in self.vendors])

    def to_dict(self) -> dict:
        return {
            "part_key": self.part_key,
            "part_number": self.part_number,
            "description": self.description,
            "qty": self.qty,
            "vendors": [c.to_dict() for c in self.vendors],
        }

    def __repr__(self):
        return f"ComparisonRow({self.part_key!r}, vendors={len(self.vendors)})"
