"""Tests for bid/RFQ display statuses and dashboard counters."""

import os
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from baxterbids.bids.tracking import (
    bid_display_status, dashboard_stats, days_left, filter_visible_bids,
    rfq_display_status, transform_bid, transform_rfq,
)

NOW = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


class TestBidStatus:
    def test_days_left_rounds_up(self):
        assert days_left({"close_date": "2026-10-19T00:00:00Z"}, NOW) == 1

    def test_no_close_date(self):
        assert days_left({}, NOW) is None
        assert bid_display_status({}, NOW) == "active"

    def test_unparseable_close_date_treated_as_missing(self):
        assert bid_display_status({"close_date": "TBD"}, NOW) == "active"

    @pytest.mark.parametrize("close,expected", [
        ("2026-10-17", "closed"),
        ("2026-10-20", "closing-soon"),
        ("2026-10-21T12:00:00Z", "closing-soon"),
        ("2026-11-30", "active"),
    ])
    def test_status_from_close_date(self, close, expected):
        assert bid_display_status({"close_date": close}, NOW) == expected

    def test_stored_closed_wins(self):
        assert bid_display_status({"status": "closed", "close_date": "2026-12-01"}, NOW) == "closed"

    def test_closing_soon_window_configurable(self):
        bid = {"close_date": "2026-10-25"}
        assert bid_display_status(bid, NOW, closing_soon_days=7) == "closing-soon"

    def test_transform_bid_defaults(self):
        b = transform_bid({"external_id": "X-1", "title": "Lifts"}, NOW)
        assert b["id"] == "X-1"
        assert b["url"] == "#"
        assert b["status"] == "active"
        assert b["sheet_status"] == ""


class TestVisibleBids:
    def test_hides_no_bid(self):
        bids = [{"id": 1, "status": "No Bid"}, {"id": 2, "status": "interested"}]
        assert [b["id"] for b in filter_visible_bids(bids, NOW)] == [2]

    def test_grace_period(self):
        bids = [
            {"id": "recent", "close_date": "2026-10-16T08:00:00Z"},
            {"id": "old", "close_date": "2026-10-15T23:00:00Z"},
            {"id": "undated"},
        ]
        assert [b["id"] for b in filter_visible_bids(bids, NOW)] == ["recent", "undated"]


class TestRfqStatus:
    def test_overdue_after_two_full_days(self):
        rfq = {"status": "sent", "sent_date": "2026-10-15T11:00:00Z"}
        assert rfq_display_status(rfq, NOW) == "overdue"

    def test_not_overdue_at_two_days(self):
        rfq = {"status": "sent", "sent_date": "2026-10-16T11:00:00Z"}
        assert rfq_display_status(rfq, NOW) == "sent"

    def test_received_never_overdue(self):
        rfq = {"status": "sent", "sent_date": "2026-01-01", "received_date": "2026-01-03"}
        assert rfq_display_status(rfq, NOW) == "sent"

    def test_missing_status_is_draft(self):
        assert rfq_display_status({}, NOW) == "draft"

    def test_transform_rfq(self):
        r = transform_rfq({"id": "r1", "status": "received", "quote_amount": 1234.5,
                           "sent_date": "2026-10-01T09:00:00Z",
                           "companies": {"name": "Acme"}, "bids": {"external_id": "X-1"}}, NOW)
        assert r["vendor"] == "Acme"
        assert r["bid_id"] == "X-1"
        assert r["sent_date"] == "2026-10-01"
        assert r["quote_amount"] == "$1,234.50"

    def test_transform_rfq_text_amount(self):
        assert transform_rfq({"quote_amount": "see attached"}, NOW)["quote_amount"] == "see attached"


class TestDashboardStats:
    def test_counts(self):
        bids = [{"status": "closing-soon"}, {"status": "active"}]
        rfqs = [{"status": "sent"}, {"status": "overdue"}, {"status": "overdue"}]
        assert dashboard_stats(bids, rfqs) == {
            "total_bids": 2, "closing_soon": 1, "rfqs_sent": 1, "rfqs_overdue": 2}

    def test_empty(self):
        assert dashboard_stats([], [])["total_bids"] == 0
