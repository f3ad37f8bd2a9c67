# webapp/routes/auth.py

from __future__ import annotations

import hmac
import logging

from flask import Blueprint, current_app, jsonify, request

from webapp.services.yahoo_auth import TokenData

logger = logging.getLogger(__name__)

auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@auth_bp.route("/setup-tokens", methods=["POST"])
def setup_tokens():
    """
    Body: {accessToken, refreshToken, expiresAt, secret}

    Seeds the token store on hosts where the interactive setup script
    can't run.
    """
    body = request.get_json(silent=True) or {}

    expected = current_app.config.get("SETUP_SECRET")
    given = body.get("secret")
    if not expected or not isinstance(given, str) or not hmac.compare_digest(given.encode(), expected.encode()):
        return jsonify({"error": "Unauthorized"}), 401

    access_token = body.get("accessToken")
    refresh_token = body.get("refreshToken")
    expires_at = body.get("expiresAt")
    if not access_token or not refresh_token or not expires_at:
        return (
            jsonify({"error": "Missing required fields: accessToken, refreshToken, expiresAt"}),
            400,
        )

    try:
        expires_at = int(float(expires_at))
    except (TypeError, ValueError):
        return jsonify({"error": "expiresAt must be a number (epoch ms)"}), 400

    store = current_app.extensions["yahoo_tokens"]
    store.set_tokens(
        TokenData(access_token=access_token, refresh_token=refresh_token, expires_at=expires_at)
    )

    where = "redis" if store.kv is not None else store.token_file
    logger.info("Yahoo tokens saved to %s", where)
    return jsonify({"success": True, "message": f"Tokens saved to {where}"})
