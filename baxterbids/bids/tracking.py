"""
tracking.py — Bid and RFQ display derivations

Rendering-only labels computed from stored rows:
    bid status:  active | closing-soon | closed   (from close_date)
    RFQ status:  draft | sent | received | overdue (overdue is never stored)

Nothing here writes back to the store. Bad dates from scrapers are
treated as missing rather than failing the whole dashboard.
"""

import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Optional

from dateutil import parser as date_parser

from baxterbids.core.config import DEFAULT_CONFIG

log = logging.getLogger("baxterbids.tracking")

BID_HIDDEN_STATUSES = {"no bid"}
TRIAGE_STATUSES = {"interested", "no bid"}


def _parse_dt(value) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        try:
            dt = date_parser.parse(str(value))
        except (ValueError, OverflowError):
            log.debug("Unparseable date %r", value)
            return None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _now(now: Optional[datetime]) -> datetime:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now


def _date_only(value) -> str:
    if not value:
        return ""
    return str(value).split("T")[0]


# ─── Bids ────────────────────────────────────────────────────────────────────

def days_left(bid: dict, now: Optional[datetime] = None) -> Optional[int]:
    """Whole days until close (rounded up); None when no close date."""
    close = _parse_dt(bid.get("close_date"))
    if close is None:
        return None
    return math.ceil((close - _now(now)).total_seconds() / 86400)


def bid_display_status(bid: dict, now: Optional[datetime] = None,
                       closing_soon_days: int = None) -> str:
    if closing_soon_days is None:
        closing_soon_days = DEFAULT_CONFIG["closing_soon_days"]
    left = days_left(bid, now)
    if bid.get("status") == "closed" or (left is not None and left <= 0):
        return "closed"
    if left is not None and left <= closing_soon_days:
        return "closing-soon"
    return "active"


def transform_bid(bid: dict, now: Optional[datetime] = None) -> dict:
    """Store row → dashboard bid."""
    return {
        "id": bid.get("external_id") or bid.get("id") or "",
        "title": bid.get("title") or "",
        "agency": bid.get("agency") or "",
        "close_date": bid.get("close_date") or "",
        "status": bid_display_status(bid, now),
        "value": bid.get("estimated_value") or "",
        "category": bid.get("category") or "",
        "url": bid.get("url") or "#",
        "sheet_status": bid.get("status") or "",
    }


def filter_visible_bids(bids: list, now: Optional[datetime] = None,
                        grace_days: int = None) -> list:
    """Drop "no bid" rows and bids that closed more than grace_days ago.

    Bids without a close date always stay.
    """
    if grace_days is None:
        grace_days = DEFAULT_CONFIG["bid_grace_days"]
    cutoff = (_now(now) - timedelta(days=grace_days)).replace(
        hour=0, minute=0, second=0, microsecond=0)
    visible = []
    for bid in bids:
        if (bid.get("status") or "").lower() in BID_HIDDEN_STATUSES:
            continue
        close = _parse_dt(bid.get("close_date"))
        if close is not None and close < cutoff:
            continue
        visible.append(bid)
    return visible


# ─── RFQs ────────────────────────────────────────────────────────────────────

def rfq_display_status(rfq: dict, now: Optional[datetime] = None,
                       overdue_days: int = None) -> str:
    """Stored status, or "overdue" for a sent RFQ nobody answered.

    Overdue = sent, has a sent date, no received date, and more than
    overdue_days whole days since sending.
    """
    if overdue_days is None:
        overdue_days = DEFAULT_CONFIG["rfq_overdue_days"]
    status = rfq.get("status") or "draft"
    sent = _parse_dt(rfq.get("sent_date"))
    if status == "sent" and sent is not None and not rfq.get("received_date"):
        days_since_sent = math.floor((_now(now) - sent).total_seconds() / 86400)
        if days_since_sent > overdue_days:
            return "overdue"
    return status


def transform_rfq(rfq: dict, now: Optional[datetime] = None) -> dict:
    """Store row (with embedded companies/bids) → dashboard RFQ."""
    company = rfq.get("companies") or {}
    bid = rfq.get("bids") or {}
    amount = rfq.get("quote_amount")
    return {
        "id": rfq.get("id"),
        "bid_id": bid.get("external_id") or rfq.get("bid_id") or "",
        "vendor": company.get("name") or "",
        "status": rfq_display_status(rfq, now),
        "sent_date": _date_only(rfq.get("sent_date")),
        "due_date": _date_only(rfq.get("due_date")),
        "received_date": _date_only(rfq.get("received_date")),
        "quote_amount": (f"${amount:,.2f}" if isinstance(amount, (int, float)) and amount
                         else str(amount or "")),
        "notes": rfq.get("notes") or "",
    }


# ─── Dashboard counters ──────────────────────────────────────────────────────

def dashboard_stats(bids: list, rfqs: list) -> dict:
    """Header counters from already-transformed bids and RFQs."""
    return {
        "total_bids": len(bids),
        "closing_soon": sum(1 for b in bids if b.get("status") == "closing-soon"),
        "rfqs_sent": sum(1 for r in rfqs if r.get("status") == "sent"),
        "rfqs_overdue": sum(1 for r in rfqs if r.get("status") == "overdue"),
    }
