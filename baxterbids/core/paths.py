"""
baxterbids/core/paths.py — Centralized Path Configuration

Single source of truth for directory paths. Every module imports from
here instead of computing its own DATA_DIR.

Priority for DATA_DIR: BAXTERBIDS_DATA_DIR env → project data/ folder.
"""

import os
import logging

log = logging.getLogger("baxterbids.paths")

# ── Project Root ──────────────────────────────────────────────────────────────
_THIS_FILE = os.path.abspath(__file__)
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(_THIS_FILE)))

_DEFAULT_DATA_DIR = os.path.join(PROJECT_ROOT, "data")


def _resolve_data_dir() -> str:
    """Find the data directory (env override wins when it exists)."""
    env_dir = os.environ.get("BAXTERBIDS_DATA_DIR", "")
    if env_dir and os.path.isdir(env_dir):
        return env_dir
    return _DEFAULT_DATA_DIR


DATA_DIR = _resolve_data_dir()

# ── Core Directories ─────────────────────────────────────────────────────────
OUTPUT_DIR = os.path.join(DATA_DIR, "output")
LOG_DIR = os.path.join(DATA_DIR, "logs")

# ── Key File Paths ───────────────────────────────────────────────────────────
CONFIG_PATH = os.environ.get(
    "BAXTERBIDS_CONFIG", os.path.join(DATA_DIR, "baxterbids_config.json"))


def ensure_dirs():
    """Create the data, output and log directories if missing."""
    for d in (DATA_DIR, OUTPUT_DIR, LOG_DIR):
        os.makedirs(d, exist_ok=True)


def validate_paths() -> dict:
    """Runtime validation — call at app startup to catch path issues early.

    Returns:
        {"ok": bool, "errors": [str], "warnings": [str], "resolved": {name: path}}
    """
    result = {"ok": True, "errors": [], "warnings": [], "resolved": {}}

    checks = {
        "PROJECT_ROOT": (PROJECT_ROOT, True),
        "DATA_DIR": (DATA_DIR, True),
        "OUTPUT_DIR": (OUTPUT_DIR, True),
        "CONFIG_PATH": (CONFIG_PATH, False),
    }

    for name, (path, required) in checks.items():
        result["resolved"][name] = path
        if not os.path.exists(path):
            if required:
                result["errors"].append(f"{name} not found: {path}")
                result["ok"] = False
            else:
                result["warnings"].append(f"{name} not found: {path}")

    # Exports are written under OUTPUT_DIR
    test_file = os.path.join(OUTPUT_DIR, ".write_test")
    try:
        with open(test_file, "w") as f:
            f.write("ok")
        os.remove(test_file)
    except OSError as e:
        result["errors"].append(f"OUTPUT_DIR not writable: {e}")
        result["ok"] = False

    return result
