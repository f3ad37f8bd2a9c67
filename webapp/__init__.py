# webapp/__init__.py

import logging
import os
from typing import Any, Mapping, Optional, Tuple

from flask import Flask, abort, jsonify, send_from_directory
from flask_cors import CORS
from sqlalchemy.exc import SQLAlchemyError

from db import init_db
from .config import Config
from .errors import YahooApiError, YahooAuthError
from .logging_setup import configure_logging
from .routes.analysis import analysis_bp
from .routes.auth import auth_bp
from .routes.cron import cron_bp
from .routes.league import league_bp
from .routes.rankings import rankings_bp
from .services.yahoo_auth import YahooTokenStore
from .services.yahoo_client import YahooFantasyClient

logger = logging.getLogger(__name__)


def _resolve_static_folder() -> str:
    """
    Point Flask at the built frontend: frontend/dist
    """
    here = os.path.dirname(__file__)
    return os.path.abspath(os.path.join(here, "..", "frontend", "dist"))


def build_yahoo_services(config: Optional[Mapping[str, Any]] = None) -> Tuple[YahooTokenStore, YahooFantasyClient]:
    """
    Token store + API client wired from config (app.config, or the
    module-level settings when called from a script).
    """
    cfg = config or {}

    def get(key):
        return cfg.get(key, getattr(Config, key))

    tokens = YahooTokenStore(
        get("YAHOO_CLIENT_ID"),
        get("YAHOO_CLIENT_SECRET"),
        redis_url=get("REDIS_URL"),
        token_file=get("TOKEN_FILE"),
        timeout=get("YAHOO_HTTP_TIMEOUT"),
    )
    client = YahooFantasyClient(tokens, timeout=get("YAHOO_HTTP_TIMEOUT"))
    return tokens, client


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(YahooAuthError)
    def _yahoo_auth_error(e):
        logger.error("Yahoo auth error: %s", e)
        return jsonify({"error": str(e)}), 500

    @app.errorhandler(YahooApiError)
    def _yahoo_api_error(e):
        logger.error("Yahoo API error: %s", e)
        return jsonify({"error": str(e), "status": e.status_code}), 502

    @app.errorhandler(SQLAlchemyError)
    def _db_error(e):
        logger.exception("Database error")
        return jsonify({"error": "Database error"}), 500


def create_app() -> Flask:
    # static_url_path="/" so "/" serves index.html nicely
    app = Flask(
        "webapp",
        static_folder=_resolve_static_folder(),
        static_url_path="/",
    )

    # Core config
    app.config.from_object(Config)
    configure_logging(app.config["LOG_LEVEL"])

    # CORS: allow a dev frontend on another port to hit /api/*
    CORS(app, resources={r"/api/*": {"origins": "*"}})

    # Init DB (tables etc.)
    init_db()

    # One token store + client per app; routes reach them via app.extensions
    tokens, client = build_yahoo_services(app.config)
    app.extensions["yahoo_tokens"] = tokens
    app.extensions["yahoo_client"] = client

    # Register blueprints
    app.register_blueprint(league_bp)
    app.register_blueprint(rankings_bp)
    app.register_blueprint(analysis_bp)
    app.register_blueprint(cron_bp)
    app.register_blueprint(auth_bp)

    _register_error_handlers(app)

    # ---------- SPA routes (prod build) ----------

    @app.route("/")
    def spa_index():
        """
        Serve the built frontend (frontend/dist/index.html).
        """
        return send_from_directory(app.static_folder, "index.html")

    @app.route("/<path:path>")
    def spa_app(path: str):
        """
        For any non-API path, serve index.html and let the client router handle it.
        """
        if path.startswith("api/"):
            abort(404)
        # Try to serve static file first (js/css/assets)
        full_path = os.path.join(app.static_folder, path)
        if os.path.exists(full_path):
            return send_from_directory(app.static_folder, path)
        # Fallback to SPA index
        return send_from_directory(app.static_folder, "index.html")

    return app
