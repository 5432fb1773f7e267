"""Bid and RFQ tracking derivations (status labels, dashboard counters)."""
