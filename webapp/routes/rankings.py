# webapp/routes/rankings.py

from __future__ import annotations

from flask import Blueprint, jsonify, request

from analysis.constants import CACHE_MAX_AGE, ONE_YEAR
from db import SessionLocal
from models_normalized import League, Manager
from webapp.services.http_cache import is_historical_season, max_age_for, with_cache
from webapp.services.payloads import (
    build_manager_detail,
    build_managers,
    build_rankings,
    build_weekly_rankings,
)

rankings_bp = Blueprint("rankings", __name__, url_prefix="/api")


@rankings_bp.route("/rankings")
def all_time_rankings():
    session = SessionLocal()
    try:
        rankings = build_rankings(session)
    finally:
        session.close()

    payload = {"rankings": rankings}
    if not rankings:
        payload["error"] = "No rankings data available. Run the aggregation job first."
    return with_cache(jsonify(payload), CACHE_MAX_AGE["rankings"])


@rankings_bp.route("/rankings/weekly")
def weekly_rankings():
    league_key = request.args.get("leagueKey")
    league_id = request.args.get("leagueId")

    if not league_key and not league_id:
        return jsonify({"error": "leagueId or leagueKey parameter is required"}), 400

    session = SessionLocal()
    try:
        if league_key:
            league = session.query(League).filter_by(league_key=league_key).one_or_none()
            if league is None:
                return jsonify({"error": "League not found"}), 404
        else:
            try:
                db_id = int(league_id)
            except ValueError:
                return jsonify({"error": "leagueId must be an integer"}), 400
            league = session.get(League, db_id)

        if league is None:
            weeks = []
            historical = False
        else:
            weeks = build_weekly_rankings(session, league.id)
            historical = is_historical_season(league.season)
    finally:
        session.close()

    payload = {"weeklyRankings": weeks}
    if not weeks:
        payload["error"] = "No weekly ranking data available for this league. Run the aggregation job first."
    return with_cache(jsonify(payload), max_age_for(historical, CACHE_MAX_AGE["weekly_rankings"]))


@rankings_bp.route("/managers")
def managers():
    session = SessionLocal()
    try:
        payload = {"managers": build_managers(session)}
    finally:
        session.close()
    return with_cache(jsonify(payload), ONE_YEAR)


@rankings_bp.route("/managers/<guid>")
def manager_detail(guid: str):
    session = SessionLocal()
    try:
        manager = session.query(Manager).filter_by(guid=guid).one_or_none()
        if manager is None:
            return jsonify({"error": "Manager not found"}), 404
        payload = build_manager_detail(session, manager)
    finally:
        session.close()
    return with_cache(jsonify(payload), CACHE_MAX_AGE["manager"])
