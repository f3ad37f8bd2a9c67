# webapp/routes/cron.py

from __future__ import annotations

import hmac
import logging

from flask import Blueprint, current_app, jsonify, request

from db import SessionLocal
from webapp.services.aggregate_stats import run_aggregation

logger = logging.getLogger(__name__)

cron_bp = Blueprint("cron", __name__, url_prefix="/api/cron")


@cron_bp.route("/aggregate-stats")
def aggregate_stats():
    """
    Scheduler hook. When CRON_SECRET is set the caller must send
    `Authorization: Bearer <CRON_SECRET>`.
    """
    secret = current_app.config.get("CRON_SECRET")
    given = request.headers.get("Authorization", "")
    if secret and not hmac.compare_digest(given.encode(), f"Bearer {secret}".encode()):
        return jsonify({"error": "Unauthorized"}), 401

    cfg = current_app.config
    logger.info("Starting scheduled stats update")
    try:
        summary = run_aggregation(
            SessionLocal,
            current_app.extensions["yahoo_client"],
            request_delay=cfg["PROVIDER_REQUEST_DELAY_MS"] / 1000.0,
            league_delay=cfg["PROVIDER_LEAGUE_DELAY_MS"] / 1000.0,
            championship_requires_finished=cfg["CHAMPIONSHIP_REQUIRES_FINISHED"],
            game_code=cfg["YAHOO_GAME_CODE"],
        )
    except Exception as e:
        logger.exception("Scheduled stats update failed")
        return jsonify({"error": str(e) or "Failed to update stats"}), 500

    return jsonify({"success": True, **summary.to_json()})
