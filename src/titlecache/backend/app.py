"""Flask application factory for the title cache HTTP interface."""

from __future__ import annotations

import logging

from flask import Flask, jsonify
from flask_cors import CORS

from titlecache.backend.config import Config
from titlecache.config import deep_merge, load_config_file

logger = logging.getLogger(__name__)


def register_error_handlers(app: Flask) -> None:
    """Register consistent JSON error handlers.

    Title cache failures are reported inside result envelopes; these
    handlers only cover HTTP-level problems.
    """

    @app.errorhandler(404)
    def not_found(exc):
        return jsonify({"status": "error", "data": None, "message": "Resource not found"}), 404

    @app.errorhandler(405)
    def method_not_allowed(exc):
        return jsonify({"status": "error", "data": None, "message": "Method not allowed"}), 405

    @app.errorhandler(Exception)
    def unhandled(exc):
        app.logger.exception("Unhandled exception")
        return jsonify({"status": "error", "data": None, "message": "Internal server error"}), 500


def create_app(config_class: type[Config] = Config) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    config_class:
        Configuration class (default :class:`Config`).

    Returns
    -------
    Flask
        Configured Flask application.
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    # ── CORS ──────────────────────────────────────────────────────────
    CORS(app, resources={
        r"/*": {
            "origins": config_class.CORS_ORIGINS,
            "methods": ["GET", "POST", "OPTIONS"],
        },
    })

    # ── Title cache overrides ─────────────────────────────────────────
    overrides = {}
    if config_class.TITLECACHE_CONFIG:
        overrides = load_config_file(config_class.TITLECACHE_CONFIG)
        logger.info("Loaded title cache configuration from %s", config_class.TITLECACHE_CONFIG)
    app.config["TITLECACHE"] = deep_merge(overrides, config_class.TITLECACHE_OVERRIDES)

    # ── Blueprints ────────────────────────────────────────────────────
    from titlecache.backend.routes.titles import titles_bp

    app.register_blueprint(titles_bp, url_prefix="/api/titles")
    # The bare root keeps the ?action=...&uris=... interface of old clients
    app.add_url_rule(
        "/", "root", app.view_functions["titles.handle"], methods=["GET", "POST"],
    )

    # ── Error handlers ────────────────────────────────────────────────
    register_error_handlers(app)

    # ── Health check ──────────────────────────────────────────────────
    @app.route("/api/health")
    def health():
        return jsonify({"status": "ok"})

    return app


if __name__ == "__main__":
    create_app().run(host="0.0.0.0", port=5000, debug=True)
