"""
comparison.py — Cross-vendor quote comparison and ranking engine

Takes normalized comparison rows (see normalizer.py) and the vendor
quotes they came from and derives:

    - best-price flags per row (all tied minimums are marked)
    - per-vendor grand totals (declared total_cost always wins)
    - vendor ranking by effective total, ties by earliest response
    - summary stats (lowest / highest / average, % above lowest,
      response time)
    - markup-tier bid recommendations from the lowest quote

Everything here is a pure function over in-memory data: no I/O, no
config lookups, inputs are never mutated. Degenerate data (no responses,
all-null prices, zero lowest) falls back to 0/None instead of raising.
Inputs are assumed to have passed ingest.parse_quote already.
"""

import logging
from collections import OrderedDict
from collections.abc import Mapping
from typing import Optional

from baxterbids.core.config import DEFAULT_CONFIG
from baxterbids.quotes.models import VendorQuote
from baxterbids.quotes.normalizer import build_comparison, vendor_names

log = logging.getLogger("baxterbids.comparison")

DEFAULT_MARKUP_TIERS = tuple(DEFAULT_CONFIG["markup_tiers"])


def _rows(rows) -> list:
    if isinstance(rows, Mapping):
        return list(rows.values())
    return list(rows or [])


# ─── Best price ──────────────────────────────────────────────────────────────

def compute_best_price(rows):
    """Flag the cheapest unit price in every row.

    Returns new rows (same container shape as given: mapping in, OrderedDict
    out; sequence in, list out). Every cell whose unit_price equals the
    row's minimum non-null price is marked; rows with no prices mark none.
    """
    flagged = []
    for row in _rows(rows):
        new_row = row.copy()
        prices = [c.unit_price for c in new_row.vendors if c.unit_price is not None]
        best = min(prices) if prices else None
        for cell in new_row.vendors:
            cell.is_best_price = best is not None and cell.unit_price == best
        flagged.append(new_row)

    if isinstance(rows, Mapping):
        return OrderedDict((r.part_key, r) for r in flagged)
    return flagged


# ─── Totals ──────────────────────────────────────────────────────────────────

def items_total(quote: VendorQuote, rows) -> float:
    """Sum of this quote's extended prices across the comparison rows."""
    total = 0.0
    for row in _rows(rows):
        for cell in row.cells_for_quote(quote.id):
            if cell.extended_price is not None:
                total += cell.extended_price
    return round(total, 2)


def compute_vendor_total(quote: VendorQuote, rows) -> float:
    """Grand total for one vendor.

    A declared total_cost is authoritative (it may include taxes or fees
    that never appear as line items). Otherwise: extended prices + shipping,
    with missing shipping counted as 0.
    """
    if quote.total_cost is not None:
        return quote.total_cost
    return round(items_total(quote, rows) + (quote.shipping or 0), 2)


def has_known_total(quote: VendorQuote, rows) -> bool:
    """True when the quote declares a total or prices at least one line."""
    if quote.total_cost is not None:
        return True
    for row in _rows(rows):
        for cell in row.cells_for_quote(quote.id):
            if cell.extended_price is not None:
                return True
    return False


def effective_total(quote: VendorQuote, rows=None) -> float:
    """compute_vendor_total, building rows from this quote alone if not given."""
    if rows is None:
        rows = build_comparison([quote])
    return compute_vendor_total(quote, rows)


# ─── Ranking ─────────────────────────────────────────────────────────────────

class RankedVendor:
    """A responding vendor's place in the price ranking (rank 0 = lowest)."""

    def __init__(self, rank: int, quote: VendorQuote, total: float):
        self.rank = rank
        self.quote = quote
        self.total = total

    @property
    def vendor_name(self) -> str:
        return self.quote.vendor_name

    def to_dict(self) -> dict:
        return {
            "rank": self.rank,
            "vendor_name": self.quote.vendor_name,
            "quote_id": self.quote.id,
            "total": self.total,
            "declared_total": self.quote.total_cost is not None,
            "response_date": (self.quote.response_date.isoformat()
                              if self.quote.response_date else None),
        }

    def __repr__(self):
        return f"RankedVendor({self.rank}, {self.vendor_name!r}, {self.total})"


def rank_vendors(quotes: list, rows=None) -> list:
    """Responding vendors sorted ascending by effective total.

    Only quotes with a known total take part. Ties go to the earlier
    response_date; quotes without one sort after dated ones, then by
    input order.
    """
    if rows is None:
        rows = build_comparison(quotes)

    candidates = []
    for index, quote in enumerate(quotes):
        if not has_known_total(quote, rows):
            continue
        rd = quote.response_date
        sort_key = (compute_vendor_total(quote, rows),
                    rd is None,
                    rd.timestamp() if rd else 0.0,
                    index)
        candidates.append((sort_key, quote))

    candidates.sort(key=lambda c: c[0])
    ranked = [RankedVendor(i, quote, key[0]) for i, (key, quote) in enumerate(candidates)]
    log.debug("Ranked %d of %d quotes", len(ranked), len(quotes))
    return ranked


# ─── Summary stats ───────────────────────────────────────────────────────────

def percent_above_lowest(total: float, lowest: float) -> Optional[float]:
    """How far a total sits above the lowest quote, in percent.

    None when lowest is 0 (nothing meaningful to compare against).
    """
    if not lowest:
        return None
    return round((total - lowest) / lowest * 100, 2)


def response_time_hours(quote: VendorQuote) -> Optional[float]:
    """Hours from RFQ sent to quote received; None if either is unknown."""
    if quote.sent_at is None or quote.received_at is None:
        return None
    return round((quote.received_at - quote.sent_at).total_seconds() / 3600, 2)


def compute_summary_stats(quotes: list, rows=None, ranked: list = None) -> dict:
    """Lowest / highest / average over responding vendors.

    Zero responses → all zeros, no division.
    """
    if ranked is None:
        ranked = rank_vendors(quotes, rows)

    totals = [r.total for r in ranked]
    lowest = totals[0] if totals else 0
    highest = max(totals) if totals else 0
    average = round(sum(totals) / len(totals), 2) if totals else 0

    vendors = [{
        "rank": r.rank,
        "vendor_name": r.vendor_name,
        "quote_id": r.quote.id,
        "total": r.total,
        "percent_above_lowest": percent_above_lowest(r.total, lowest),
        "response_time_hours": response_time_hours(r.quote),
    } for r in ranked]

    return {
        "lowest": lowest,
        "highest": highest,
        "average": average,
        "count": len(ranked),
        "vendors": vendors,
    }


# ─── Recommendation ──────────────────────────────────────────────────────────

def compute_bid_recommendation(lowest: float, markup_tiers=None) -> list:
    """Candidate bid prices: lowest × (1 + tier) for each markup tier.

    Returns [{"markup_pct": 0.15, "price": 28.75}, ...] in tier order.
    """
    tiers = DEFAULT_MARKUP_TIERS if markup_tiers is None else markup_tiers
    return [{"markup_pct": tier, "price": round(lowest * (1 + tier), 2)}
            for tier in tiers]


# ─── One-call comparison ─────────────────────────────────────────────────────

def build_quote_comparison(quotes: list, markup_tiers=None) -> dict:
    """Full comparison for a bid as plain data, ready to render or export.

    {
      "vendors": [vendor names, quote order],
      "rows": [row dicts with is_best_price set],
      "totals": [{vendor_name, quote_id, items_total, shipping, total, declared_total}],
      "ranking": [RankedVendor dicts],
      "summary": compute_summary_stats(...),
      "recommendation": compute_bid_recommendation(lowest, markup_tiers),
    }
    """
    rows = compute_best_price(build_comparison(quotes))
    ranked = rank_vendors(quotes, rows)
    summary = compute_summary_stats(quotes, rows, ranked)

    totals = [{
        "vendor_name": q.vendor_name,
        "quote_id": q.id,
        "items_total": items_total(q, rows),
        "shipping": q.shipping,
        "total": compute_vendor_total(q, rows),
        "declared_total": q.total_cost is not None,
    } for q in quotes]

    return {
        "vendors": vendor_names(quotes),
        "rows": [r.to_dict() for r in rows.values()],
        "totals": totals,
        "ranking": [r.to_dict() for r in ranked],
        "summary": summary,
        "recommendation": compute_bid_recommendation(summary["lowest"], markup_tiers),
    }
