"""
BaxterBids dashboard API
JSON routes behind HTTP Basic auth. Bids/RFQs are read straight from the
store and decorated with display statuses; vendor quotes go through the
comparison engine before they leave.

Envelope: {"success": bool, "data": ..., "timestamp": iso} on success,
{"success": false, "error": str} with 4xx/5xx on failure.
"""
import functools
import io
import logging
import math
import os
import re
import time
from datetime import datetime, timezone

from flask import Blueprint, Response, g, jsonify, request, send_file

from baxterbids.bids.tracking import (dashboard_stats, filter_visible_bids,
                                      transform_bid, transform_rfq)
from baxterbids.core.config import get_markup_tiers
from baxterbids.forms.comparison_export import comparison_to_csv, generate_comparison_pdf
from baxterbids.integrations.supabase import SupabaseClient, SupabaseError
from baxterbids.quotes.comparison import build_quote_comparison
from baxterbids.quotes.ingest import QuoteParseError

log = logging.getLogger("baxterbids.dashboard")

bp = Blueprint("dashboard", __name__)

# URL slugs → source names in the store
SOURCE_NAMES = {
    "caci": "CACI",
    "highergov-hubzone": "HigherGov HUBZone",
    "highergov hubzone": "HigherGov HUBZone",
    "sam.gov": "SAM.gov",
}


def _store() -> SupabaseClient:
    return SupabaseClient.from_config()


# ═══════════════════════════════════════════════════════════════════════
# Auth + request logging
# ═══════════════════════════════════════════════════════════════════════

def check_auth(username, password):
    return (username == os.environ.get("DASH_USER", "baxter")
            and password == os.environ.get("DASH_PASS", "changeme"))


def auth_required(f):
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        auth = request.authorization
        if not auth or not check_auth(auth.username, auth.password):
            return Response(
                "BaxterBids Dashboard — Login Required",
                401, {"WWW-Authenticate": 'Basic realm="BaxterBids Dashboard"'})
        return f(*args, **kwargs)
    return decorated


@bp.before_request
def _log_request_start():
    g.start_time = time.time()


@bp.after_request
def _log_request_end(response):
    if "start_time" in g and request.path != "/api/health":
        duration_ms = round((time.time() - g.start_time) * 1000, 1)
        log.info("%s %s → %d (%.0fms)",
                 request.method, request.path, response.status_code, duration_ms,
                 extra={"route": request.path, "method": request.method,
                        "status": response.status_code, "duration_ms": duration_ms})
    return response


# ═══════════════════════════════════════════════════════════════════════
# Envelopes + error mapping
# ═══════════════════════════════════════════════════════════════════════

def _now_iso():
    return datetime.now(timezone.utc).isoformat()


def _ok(data, **extra):
    payload = {"success": True, "data": data, "timestamp": _now_iso()}
    payload.update(extra)
    return jsonify(payload)


def _fail(error, status):
    return jsonify({"success": False, "error": error, "timestamp": _now_iso()}), status


@bp.errorhandler(SupabaseError)
def _store_error(e):
    log.error("Store error on %s: %s", request.path, e)
    return _fail(f"Bid store unavailable: {e}", 502)


@bp.errorhandler(QuoteParseError)
def _quote_error(e):
    log.warning("Rejected quote data on %s: %s", request.path, e,
                extra={"quote_id": e.quote_id})
    return _fail(f"Invalid quote data: {e}", 422)


def _json_body() -> dict:
    body = request.get_json(silent=True)
    return body if isinstance(body, dict) else {}


def _parse_markup_arg(raw):
    """"0.1,0.2" → [0.1, 0.2]; None when absent; ValueError on junk.

    Tiers must be finite and non-negative (NaN/inf would not serialize
    as JSON).
    """
    if raw is None or not raw.strip():
        return None
    tiers = [float(part) for part in raw.split(",") if part.strip()]
    for tier in tiers:
        if not math.isfinite(tier) or tier < 0:
            raise ValueError(f"invalid markup tier: {tier!r}")
    return tiers


# ═══════════════════════════════════════════════════════════════════════
# Health
# ═══════════════════════════════════════════════════════════════════════

@bp.route("/api/health")
def health():
    return jsonify({"ok": True, "service": "baxterbids", "timestamp": _now_iso()})


# ═══════════════════════════════════════════════════════════════════════
# Bids / RFQs / stats
# ═══════════════════════════════════════════════════════════════════════

def _load_bids(source=None):
    store = _store()
    if not source:
        return store.fetch_bids()
    normalized = source.lower()
    mapped = SOURCE_NAMES.get(normalized) or SOURCE_NAMES.get(normalized.replace(" ", "-"))
    if mapped:
        return store.fetch_bids_by_source(mapped)
    # Title case first, then uppercase for acronyms (CACI, SAM)
    bids = store.fetch_bids_by_source(source[:1].upper() + source[1:])
    if not bids:
        bids = store.fetch_bids_by_source(source.upper())
    return bids


@bp.route("/api/bids")
@auth_required
def api_bids():
    source = request.args.get("source")
    bids = [transform_bid(b) for b in filter_visible_bids(_load_bids(source))]
    return _ok(bids, source=source or "all")


@bp.route("/api/rfqs")
@auth_required
def api_rfqs():
    return _ok([transform_rfq(r) for r in _store().fetch_rfqs()])


@bp.route("/api/stats")
@auth_required
def api_stats():
    bids = [transform_bid(b) for b in filter_visible_bids(_load_bids())]
    rfqs = [transform_rfq(r) for r in _store().fetch_rfqs()]
    return _ok(dashboard_stats(bids, rfqs))


@bp.route("/api/sources")
@auth_required
def api_sources():
    return _ok(_store().fetch_sources())


@bp.route("/api/vendors/search")
@auth_required
def api_vendor_search():
    query = request.args.get("q", "")
    return _ok(_store().search_vendors(query), query=query)


@bp.route("/api/bids/<bid_id>/dismiss", methods=["POST"])
@auth_required
def api_dismiss_bid(bid_id):
    _store().dismiss_bid(bid_id, _json_body().get("source_id"))
    return _ok({"bid_id": bid_id, "dismissed": True})


@bp.route("/api/bids/<bid_id>/triage", methods=["POST"])
@auth_required
def api_triage_bid(bid_id):
    status = _json_body().get("status", "")
    try:
        _store().set_bid_status(bid_id, status)
    except ValueError as e:
        return _fail(str(e), 400)
    return _ok({"bid_id": bid_id, "status": status.strip().lower()})


# ═══════════════════════════════════════════════════════════════════════
# Vendor quotes
# ═══════════════════════════════════════════════════════════════════════

def _comparison_for(bid_id):
    """(comparison dict, error response). Tiers come from ?markup= or config."""
    try:
        tiers = _parse_markup_arg(request.args.get("markup"))
    except ValueError:
        return None, _fail("markup must be comma-separated numbers", 400)
    if tiers is None:
        tiers = get_markup_tiers()
    quotes = _store().fetch_quotes_for_bid(bid_id)
    comparison = build_quote_comparison(quotes, markup_tiers=tiers)
    log.info("Compared %d quotes for bid %s (lowest %.2f)",
             len(quotes), bid_id, comparison["summary"]["lowest"],
             extra={"bid_id": bid_id, "rows": len(comparison["rows"]),
                    "total": comparison["summary"]["lowest"]})
    return comparison, None


@bp.route("/api/bids/<bid_id>/quotes")
@auth_required
def api_quotes(bid_id):
    quotes = _store().fetch_quotes_for_bid(bid_id)
    return _ok([q.to_dict() for q in quotes])


@bp.route("/api/bids/<bid_id>/quotes/comparison")
@auth_required
def api_quote_comparison(bid_id):
    comparison, error = _comparison_for(bid_id)
    if error:
        return error
    return _ok(comparison, bid_id=bid_id)


@bp.route("/api/bids/<bid_id>/quotes/export.csv")
@auth_required
def api_quote_export_csv(bid_id):
    comparison, error = _comparison_for(bid_id)
    if error:
        return error
    filename = f"quotes_{_safe_name(bid_id)}.csv"
    return Response(comparison_to_csv(comparison), mimetype="text/csv",
                    headers={"Content-Disposition": f"attachment; filename={filename}"})


@bp.route("/api/bids/<bid_id>/quotes/export.pdf")
@auth_required
def api_quote_export_pdf(bid_id):
    comparison, error = _comparison_for(bid_id)
    if error:
        return error
    # Rendered in memory; nothing is left behind in OUTPUT_DIR
    buf = io.BytesIO()
    generate_comparison_pdf(buf, comparison, bid_id=bid_id,
                            bid_title=request.args.get("title", ""))
    buf.seek(0)
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    return send_file(buf, mimetype="application/pdf", as_attachment=True,
                     download_name=f"quotes_{_safe_name(bid_id)}_{stamp}.pdf")


@bp.route("/api/quotes/<quote_id>/status", methods=["POST"])
@auth_required
def api_quote_status(quote_id):
    status = _json_body().get("status")
    try:
        new_status = _store().update_quote_status(quote_id, status)
    except ValueError as e:
        return _fail(str(e), 400)
    return _ok({"quote_id": quote_id, "status": new_status.value})


def _safe_name(value):
    return re.sub(r"[^A-Za-z0-9_.-]", "_", value)[:80] or "bid"
