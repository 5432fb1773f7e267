"""Vendor quote comparison.

Modules:
    models      — QuoteStatus, QuoteItem, VendorQuote, ComparisonRow
    ingest      — Parse quote store rows into typed quotes (validation boundary)
    normalizer  — Align line items across vendors by part key
    comparison  — Best price, vendor totals, ranking, summary stats, markup tiers
"""
