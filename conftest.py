"""
Shared pytest fixtures for the BaxterBids test suite.

The bid store is replaced by FakeStore (same method names as
SupabaseClient), so route tests never touch the network.
"""
import base64
import copy
import os

import pytest

from baxterbids.integrations.supabase import SupabaseError
from baxterbids.quotes.ingest import parse_quotes
from baxterbids.quotes.models import QuoteStatus


# ── Temp data directory (per-test isolation) ──────────────────────────────────

@pytest.fixture(autouse=True)
def temp_data_dir(tmp_path, monkeypatch):
    """Redirect output/config paths to an isolated tmp directory."""
    data = str(tmp_path / "data")
    output = os.path.join(data, "output")
    os.makedirs(output, exist_ok=True)

    from baxterbids.core import config, paths
    monkeypatch.setattr(paths, "DATA_DIR", data)
    monkeypatch.setattr(paths, "OUTPUT_DIR", output)
    monkeypatch.setattr(paths, "LOG_DIR", os.path.join(data, "logs"))
    config_path = os.path.join(data, "baxterbids_config.json")
    monkeypatch.setattr(paths, "CONFIG_PATH", config_path)
    monkeypatch.setattr(config, "CONFIG_PATH", config_path)
    return data


# ── Sample quote rows (as the store returns them) ─────────────────────────────

@pytest.fixture
def quote_rows():
    """Three vendors answering BID-1.

    A: P100 2 @ $10 + $5 shipping, no declared total     → $25 computed
    B: P100 2 @ $9, declared total $25                   → $25 declared
    C: no items, declared total $50                      → $50
    A responded before B, so A wins the $25 tie.
    """
    return [
        {
            "id": "q-a", "bid_id": "BID-1", "rfq_id": "rfq-a",
            "vendor_name": "Vendor A", "vendor_email": "a@vendor-a.com",
            "shipping": 5, "terms": "Net 30", "valid_until": "2026-11-30",
            "total_cost": None, "status": "pending",
            "response_date": "2026-10-01T09:00:00Z", "parse_confidence": 0.92,
            "rfqs": {"sent_date": "2026-09-29T09:00:00Z",
                     "received_date": "2026-10-01T09:00:00Z"},
            "items": [
                {"id": "a-1", "line_number": 1, "part_number": "P100",
                 "description": "Hydraulic lift cylinder", "qty": 2, "uom": "EA",
                 "unit_price": 10, "extended_price": 20, "lead_time": "2 weeks",
                 "manufacturer": "Rotary"},
            ],
        },
        {
            "id": "q-b", "bid_id": "BID-1", "rfq_id": "rfq-b",
            "vendor_name": "Vendor B", "vendor_email": "sales@vendor-b.com",
            "shipping": None, "terms": "Net 45", "valid_until": "2026-12-15",
            "total_cost": 25, "status": "pending",
            "response_date": "2026-10-02T14:30:00Z", "parse_confidence": 0.75,
            "items": [
                {"id": "b-1", "line_number": 1, "part_number": "P100",
                 "description": "Lift cylinder, hydraulic", "qty": 2, "uom": "EA",
                 "unit_price": 9, "extended_price": 18, "lead_time": "3 weeks",
                 "manufacturer": "Stertil-Koni"},
            ],
        },
        {
            "id": "q-c", "bid_id": "BID-1", "rfq_id": "rfq-c",
            "vendor_name": "Vendor C", "vendor_email": "quotes@vendor-c.com",
            "shipping": None, "terms": "", "valid_until": None,
            "total_cost": 50, "status": "pending",
            "response_date": "2026-10-03T08:00:00Z", "parse_confidence": None,
            "notes": "Lump-sum quote, no line detail",
            "items": [],
        },
    ]


@pytest.fixture
def sample_quotes(quote_rows):
    return parse_quotes(quote_rows)


@pytest.fixture
def bid_rows():
    return [
        {"id": "b1", "source_id": "s1", "external_id": "MBTA-2026-001",
         "title": "Vehicle lift replacement", "agency": "MBTA", "status": "open",
         "close_date": "2099-01-01", "estimated_value": "$150,000",
         "category": "Equipment", "url": "https://example.gov/bids/1"},
        {"id": "b2", "source_id": "s1", "external_id": "MBTA-2026-002",
         "title": "Shop air compressors", "agency": "MBTA", "status": "no bid",
         "close_date": "2099-01-01", "estimated_value": None,
         "category": None, "url": None},
    ]


@pytest.fixture
def rfq_rows():
    return [
        {"id": "rfq-a", "bid_id": "b1", "status": "sent",
         "sent_date": "2020-01-01T10:00:00Z", "due_date": None, "received_date": None,
         "quote_amount": None, "companies": {"name": "Vendor A"},
         "bids": {"external_id": "MBTA-2026-001", "title": "Vehicle lift replacement"}},
        {"id": "rfq-b", "bid_id": "b1", "status": "received",
         "sent_date": "2020-01-01T10:00:00Z", "due_date": None,
         "received_date": "2020-01-02T10:00:00Z", "quote_amount": 142500,
         "companies": {"name": "Vendor B"},
         "bids": {"external_id": "MBTA-2026-001", "title": "Vehicle lift replacement"}},
    ]


# ── Fake bid store ────────────────────────────────────────────────────────────

class FakeStore:
    """In-memory stand-in for SupabaseClient."""

    def __init__(self, quote_rows=None, bids=None, rfqs=None, fail=False):
        self.quote_rows = copy.deepcopy(quote_rows or [])
        self.bids = bids or []
        self.rfqs = rfqs or []
        self.fail = fail
        self.status_updates = []
        self.dismissed = []
        self.triaged = []
        self.source_lookups = []
        self.sources = [{"id": "s1", "name": "CACI"}, {"id": "s2", "name": "SAM.gov"}]
        self.vendors = [
            {"id": "c1", "name": "Acme Hydraulics", "website": "acme.example", "email": "sales@acme.example"},
            {"id": "c2", "name": "Beacon Lift", "website": "", "email": ""},
        ]

    def _check(self):
        if self.fail:
            raise SupabaseError("GET vendor_quotes returned 503", status_code=503)

    def fetch_bids(self):
        self._check()
        return list(self.bids)

    def fetch_bids_by_source(self, name):
        self._check()
        self.source_lookups.append(name)
        return list(self.bids) if name == "CACI" else []

    def fetch_rfqs(self):
        self._check()
        return list(self.rfqs)

    def fetch_sources(self):
        self._check()
        return list(self.sources)

    def search_vendors(self, query, limit=10):
        self._check()
        query = (query or "").strip()
        if len(query) < 2:
            return []
        return [v for v in self.vendors if query.lower() in v["name"].lower()][:limit]

    def fetch_quotes_for_bid(self, bid_id, skip_invalid=False):
        self._check()
        rows = [r for r in self.quote_rows if r.get("bid_id") == bid_id]
        return parse_quotes(rows, skip_invalid=skip_invalid)

    def update_quote_status(self, quote_id, status):
        self._check()
        new_status = QuoteStatus.parse(status)
        self.status_updates.append((quote_id, new_status.value))
        return new_status

    def dismiss_bid(self, external_id, source_id=None):
        self._check()
        self.dismissed.append((external_id, source_id))
        return True

    def set_bid_status(self, external_id, status):
        self._check()
        status = (status or "").strip().lower()
        if status not in ("interested", "no bid"):
            raise ValueError(f"Unknown triage status: {status!r}")
        self.triaged.append((external_id, status))
        return True


@pytest.fixture
def store(quote_rows, bid_rows, rfq_rows, monkeypatch):
    fake = FakeStore(quote_rows, bid_rows, rfq_rows)
    from baxterbids.api import dashboard
    monkeypatch.setattr(dashboard, "_store", lambda: fake)
    return fake


# ── Flask test client ─────────────────────────────────────────────────────────

def _basic_auth_header(user="baxter", pw="changeme"):
    creds = base64.b64encode(f"{user}:{pw}".encode()).decode()
    return {"Authorization": f"Basic {creds}"}


class AuthenticatedClient:
    """Wraps Flask test client to add Basic Auth headers to every request."""
    def __init__(self, client, headers):
        self._client = client
        self._headers = headers

    def get(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.get(*args, **kwargs)

    def post(self, *args, **kwargs):
        kwargs.setdefault("headers", {}).update(self._headers)
        return self._client.post(*args, **kwargs)


@pytest.fixture
def app(temp_data_dir, monkeypatch):
    """Create Flask app configured for testing."""
    monkeypatch.setenv("DASH_USER", "baxter")
    monkeypatch.setenv("DASH_PASS", "changeme")
    from app import create_app
    return create_app(testing=True)


@pytest.fixture
def client(app):
    """Authenticated Flask test client (HTTP Basic Auth on every request)."""
    with app.test_client() as c:
        yield AuthenticatedClient(c, _basic_auth_header())


@pytest.fixture
def anon_client(app):
    """Unauthenticated test client."""
    with app.test_client() as c:
        yield c
