"""
config.py — Runtime configuration for BaxterBids

Defaults live in DEFAULT_CONFIG. An optional JSON file (CONFIG_PATH) can
override them under its "comparison" key; connection settings come from
the environment.
"""

import json
import logging
import os

from baxterbids.core.paths import CONFIG_PATH

log = logging.getLogger("baxterbids.config")

# ─── Defaults ────────────────────────────────────────────────────────────────

DEFAULT_CONFIG = {
    "markup_tiers": [0.15, 0.20, 0.25],   # bid price = lowest quote × (1 + tier)
    "rfq_overdue_days": 2,                # sent RFQ with no reply after N days
    "closing_soon_days": 3,               # bid closes within N days
    "bid_grace_days": 2,                  # keep closed bids visible for N days
    "http_timeout_seconds": 15,
}

DEFAULT_SUPABASE_URL = "http://localhost:54321"


def load_config(path: str = None) -> dict:
    """Load comparison config, merging file config with defaults."""
    config = json.loads(json.dumps(DEFAULT_CONFIG))
    path = path or CONFIG_PATH
    if os.path.exists(path):
        try:
            with open(path, "r") as f:
                file_config = json.load(f)
            config.update(file_config.get("comparison", {}))
        except (json.JSONDecodeError, IOError) as e:
            log.warning("Ignoring unreadable config %s: %s", path, e)
    return config


def get_markup_tiers(config_overrides: dict = None) -> list:
    """Markup tiers as floats, with call-site overrides applied."""
    config = load_config()
    if config_overrides:
        config.update(config_overrides)
    return [float(t) for t in config["markup_tiers"]]


def supabase_settings() -> dict:
    """Connection settings for the quote/bid store."""
    return {
        "url": os.environ.get("SUPABASE_URL", DEFAULT_SUPABASE_URL).rstrip("/"),
        "key": (os.environ.get("SUPABASE_SERVICE_KEY")
                or os.environ.get("SUPABASE_ANON_KEY", "")),
        "timeout": load_config()["http_timeout_seconds"],
    }
