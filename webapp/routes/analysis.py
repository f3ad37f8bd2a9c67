from __future__ import annotations

from flask import Blueprint, jsonify

from analysis.constants import CACHE_MAX_AGE
from db import SessionLocal
from webapp.services.http_cache import with_cache
from webapp.services.payloads import build_fun_facts

analysis_bp = Blueprint("analysis", __name__, url_prefix="/api")


@analysis_bp.route("/fun-facts")
def fun_facts():
    session = SessionLocal()
    try:
        facts = build_fun_facts(session)
    finally:
        session.close()
    return with_cache(jsonify(facts), CACHE_MAX_AGE["fun_facts"])
