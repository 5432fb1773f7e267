"""
normalizer.py — Align vendor line items into comparison rows

Vendors identify the same part inconsistently, so every comparable line
item gets a part key and items sharing a key land in the same
ComparisonRow:

    1. part_number, if non-empty (exact match, no case folding or trimming;
       a whitespace-only part number is still a key)
    2. else description, if non-empty
    3. else "line-<line_number>"

Rule 3 gives unidentified items a key for raw display; two such items
from different vendors with the same line number would share it. The
comparison itself leaves items with neither a part number nor a
description out.

Pure functions: same quotes in the same order → identical rows in the
same order.
"""

import logging
from collections import OrderedDict

from baxterbids.quotes.models import ComparisonRow, QuoteItem, VendorCell

log = logging.getLogger("baxterbids.normalizer")


def part_key(item: QuoteItem) -> str:
    """Identity key used to align this item with other vendors' items."""
    if item.part_number:
        return item.part_number
    if item.description:
        return item.description
    return f"line-{item.line_number}"


def _ordered_items(items: list) -> list:
    """Items in line_number order; unnumbered items keep their relative
    position after the numbered ones (stable sort)."""
    return sorted(items, key=lambda i: (i.line_number is None, i.line_number or 0))


def build_comparison(quotes: list) -> "OrderedDict[str, ComparisonRow]":
    """Build the part-keyed comparison map in first-seen order.

    Quotes are scanned in input order, items in line_number order within
    each quote. A quote with no items contributes no rows (its declared
    total still counts in vendor totals).
    """
    rows = OrderedDict()
    dropped = 0

    for quote in quotes:
        for item in _ordered_items(quote.items):
            if not item.is_comparable():
                dropped += 1
                continue
            key = part_key(item)
            row = rows.get(key)
            if row is None:
                row = ComparisonRow(
                    part_key=key,
                    part_number=item.part_number or "",
                    description=item.description or "",
                    qty=item.qty or 0,
                )
                rows[key] = row
            elif not row.qty and item.qty:
                row.qty = item.qty

            row.vendors.append(VendorCell(
                vendor_name=quote.vendor_name,
                quote_id=quote.id,
                item_id=item.id,
                unit_price=item.unit_price,
                extended_price=item.extended_price,
                lead_time=item.lead_time,
                manufacturer=item.manufacturer,
            ))

    if dropped:
        log.debug("Comparison: %d unidentified items left out", dropped)
    return rows


def vendor_names(quotes: list) -> list:
    """Column headers: vendor names in quote order, each once."""
    seen = []
    for quote in quotes:
        if quote.vendor_name not in seen:
            seen.append(quote.vendor_name)
    return seen
