#!/usr/bin/env python3
"""
BaxterBids — Application Entry Point
Creates Flask app and registers the dashboard Blueprint.
"""

import logging
import os

from flask import Flask

from logging_config import setup_logging


def create_app(testing=False):
    """Application factory."""
    if not testing:
        setup_logging()
    log = logging.getLogger("baxterbids")

    app = Flask(__name__)
    app.secret_key = os.environ.get("SECRET_KEY", "baxterbids-dev")
    app.config["TESTING"] = testing

    from baxterbids.core.paths import ensure_dirs, validate_paths
    ensure_dirs()
    checks = validate_paths()
    for err in checks["errors"]:
        log.error("STARTUP: %s", err)
    for warn in checks["warnings"]:
        log.warning("STARTUP: %s", warn)

    from baxterbids.api.dashboard import bp
    app.register_blueprint(bp)
    return app


if __name__ == "__main__":
    port = int(os.environ.get("PORT", 5000))
    create_app().run(host="0.0.0.0", port=port, debug=False)
