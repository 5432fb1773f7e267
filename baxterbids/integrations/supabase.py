"""
Supabase (PostgREST) client for the bid store
==============================================

Tables (populated by the scrapers and the RFQ mailer):
  bids            - scraped opportunities (external_id, title, close_date, status, ...)
  sources         - scraper sources (id, name, active)
  rfqs            - RFQs sent to vendors (sent_date, received_date, quote_amount)
  vendor_quotes   - vendor responses, one row per quote
  quote_items     - priced lines, FK quote_id → vendor_quotes.id
  companies       - vendors (id, name, website)
  contacts        - vendor contacts, FK company_id → companies.id

Required env vars:
  SUPABASE_URL                           - project URL
  SUPABASE_SERVICE_KEY or SUPABASE_ANON_KEY

Every failure (HTTP error, network error, bad JSON) raises SupabaseError.
Quote rows go through quotes.ingest before they leave this module, so
callers only ever see validated VendorQuote objects.
"""

import logging

import requests

from baxterbids.bids.tracking import TRIAGE_STATUSES
from baxterbids.core.config import supabase_settings
from baxterbids.quotes.ingest import parse_quotes
from baxterbids.quotes.models import QuoteStatus

log = logging.getLogger("baxterbids.supabase")

QUOTE_SELECT = "*,items:quote_items(*),rfqs(sent_date,received_date)"
RFQ_SELECT = "*,companies(name),bids(external_id,title)"


class SupabaseError(RuntimeError):
    """The bid store could not be read or written."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class SupabaseClient:
    """Thin REST wrapper. One instance per request is fine; it holds no state
    beyond connection settings."""

    def __init__(self, url: str, key: str, timeout: float = 15):
        self.url = url.rstrip("/")
        self.key = key
        self.timeout = timeout

    @classmethod
    def from_config(cls) -> "SupabaseClient":
        settings = supabase_settings()
        if not settings["key"]:
            log.warning("No SUPABASE_SERVICE_KEY / SUPABASE_ANON_KEY set")
        return cls(settings["url"], settings["key"], settings["timeout"])

    # ─── HTTP ────────────────────────────────────────────────────────────────

    def _headers(self, prefer: str = None) -> dict:
        headers = {
            "apikey": self.key,
            "Authorization": f"Bearer {self.key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _request(self, method: str, table: str, params: dict = None,
                 json: dict = None, prefer: str = None):
        url = f"{self.url}/rest/v1/{table}"
        try:
            resp = requests.request(method, url, params=params, json=json,
                                    headers=self._headers(prefer), timeout=self.timeout)
        except requests.RequestException as e:
            log.error("Supabase %s %s failed: %s", method, table, e)
            raise SupabaseError(f"{method} {table}: {e}") from e

        if not resp.ok:
            log.error("Supabase %s %s → %d: %s", method, table, resp.status_code,
                      resp.text[:200])
            raise SupabaseError(f"{method} {table} returned {resp.status_code}",
                                status_code=resp.status_code)
        if method != "GET":
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise SupabaseError(f"{method} {table}: invalid JSON ({e})",
                                status_code=resp.status_code) from e

    def _query(self, table: str, select: str = None, filters: dict = None,
               order: str = None, limit: int = None) -> list:
        params = dict(filters or {})
        if select:
            params["select"] = select
        if order:
            params["order"] = order
        if limit:
            params["limit"] = str(limit)
        rows = self._request("GET", table, params=params)
        return rows if isinstance(rows, list) else []

    # ─── Bids / sources / RFQs ───────────────────────────────────────────────

    def fetch_bids(self) -> list:
        return self._query("bids", select="*", order="close_date.asc.nullslast")

    def fetch_sources(self) -> list:
        return self._query("sources", select="id,name", filters={"active": "eq.true"})

    def search_vendors(self, query: str, limit: int = 10) -> list:
        """Companies whose name contains query (case-insensitive), each with
        the first contact email on file. Queries under 2 chars return []."""
        query = (query or "").strip()
        if len(query) < 2:
            return []
        companies = self._query("companies", select="id,name,website",
                                filters={"name": f"ilike.*{query}*"}, limit=limit)
        results = []
        for company in companies[:limit]:
            contacts = self._query("contacts", select="email",
                                   filters={"company_id": f"eq.{company['id']}"}, limit=1)
            results.append({
                "id": company["id"],
                "name": company.get("name") or "",
                "website": company.get("website") or "",
                "email": (contacts[0].get("email") or "") if contacts else "",
            })
        log.info("Vendor search %r → %d results", query, len(results))
        return results

    def fetch_bids_by_source(self, source_name: str) -> list:
        sources = self._query("sources", select="id,name",
                              filters={"name": f"eq.{source_name}"})
        if not sources:
            return []
        return self._query("bids", select="*",
                           filters={"source_id": f"eq.{sources[0]['id']}"},
                           order="close_date.asc.nullslast")

    def fetch_rfqs(self) -> list:
        return self._query("rfqs", select=RFQ_SELECT, order="created_at.desc")

    def dismiss_bid(self, external_id: str, source_id: str = None) -> bool:
        filters = {"external_id": f"eq.{external_id}"}
        if source_id:
            filters["source_id"] = f"eq.{source_id}"
        self._request("PATCH", "bids", params=filters, json={"dismissed": True},
                      prefer="return=minimal")
        log.info("Dismissed bid %s", external_id, extra={"bid_id": external_id})
        return True

    def set_bid_status(self, external_id: str, status: str) -> bool:
        """Triage a bid: "interested" or "no bid"."""
        status = (status or "").strip().lower()
        if status not in TRIAGE_STATUSES:
            raise ValueError(f"Unknown triage status: {status!r}")
        self._request("PATCH", "bids", params={"external_id": f"eq.{external_id}"},
                      json={"status": status}, prefer="return=minimal")
        log.info("Bid %s → %s", external_id, status, extra={"bid_id": external_id})
        return True

    # ─── Vendor quotes ───────────────────────────────────────────────────────

    def fetch_quote_rows(self, bid_id: str) -> list:
        return self._query("vendor_quotes", select=QUOTE_SELECT,
                           filters={"bid_id": f"eq.{bid_id}"},
                           order="response_date.asc.nullslast")

    def fetch_quotes_for_bid(self, bid_id: str, skip_invalid: bool = False) -> list:
        """Validated VendorQuote objects for a bid, oldest response first."""
        quotes = parse_quotes(self.fetch_quote_rows(bid_id), skip_invalid=skip_invalid)
        log.info("Loaded %d quotes for bid %s", len(quotes), bid_id,
                 extra={"bid_id": bid_id})
        return quotes

    def update_quote_status(self, quote_id: str, status) -> QuoteStatus:
        """Persist a status change. Invalid statuses fail before any request."""
        new_status = QuoteStatus.parse(status)
        self._request("PATCH", "vendor_quotes", params={"id": f"eq.{quote_id}"},
                      json={"status": new_status.value}, prefer="return=minimal")
        log.info("Quote %s → %s", quote_id, new_status.value,
                 extra={"quote_id": quote_id})
        return new_status
