# webapp/routes/league.py

from __future__ import annotations

import logging
from typing import Optional

from flask import Blueprint, current_app, jsonify, request

from analysis.constants import CACHE_MAX_AGE
from db import SessionLocal
from models_normalized import League
from webapp.services.http_cache import (
    is_historical_key,
    is_historical_season,
    max_age_for,
    resolve_league_key,
    with_cache,
)
from webapp.services.payloads import build_scoreboard, build_standings, league_json
from webapp.services.yahoo_parse import group_leagues_by_season

logger = logging.getLogger(__name__)

league_bp = Blueprint("league", __name__, url_prefix="/api/fantasy")


def _client():
    return current_app.extensions["yahoo_client"]


def _league_key(league_id: str) -> str:
    return resolve_league_key(league_id, current_app.config["CURRENT_GAME_KEY"])


def _week_arg() -> Optional[int]:
    """int ?week=, None when absent. Raises ValueError on junk."""
    raw = request.args.get("week")
    if raw is None or raw == "":
        return None
    return int(raw)


@league_bp.route("/my-leagues")
def my_leagues():
    leagues = _client().get_user_leagues(current_app.config["YAHOO_GAME_CODE"])
    resp = jsonify({"seasons": group_leagues_by_season(leagues)})
    return with_cache(resp, CACHE_MAX_AGE["my_leagues"])


@league_bp.route("/league/<league_id>/standings")
def league_standings(league_id: str):
    league_key = _league_key(league_id)

    session = SessionLocal()
    try:
        league = session.query(League).filter_by(league_key=league_key).one_or_none()
        if league is not None:
            standings = build_standings(session, league)
            if standings:
                resp = jsonify({"standings": standings, "leagueKey": league_key, "source": "db"})
                max_age = max_age_for(is_historical_season(league.season), CACHE_MAX_AGE["standings"])
                return with_cache(resp, max_age)
    finally:
        session.close()

    # not seeded yet: ask Yahoo directly
    standings = _client().get_league_standings(league_key)
    if not standings and league is None:
        return jsonify({"error": "League not found"}), 404

    resp = jsonify(
        {
            "standings": [s.to_json() for s in standings],
            "leagueKey": league_key,
            "source": "yahoo",
        }
    )
    historical = is_historical_key(league_key, current_app.config["CURRENT_GAME_KEY"])
    return with_cache(resp, max_age_for(historical, CACHE_MAX_AGE["standings"]))


@league_bp.route("/league/<league_id>/scoreboard")
def league_scoreboard(league_id: str):
    league_key = _league_key(league_id)
    try:
        week = _week_arg()
    except ValueError:
        return jsonify({"error": "week must be an integer"}), 400

    session = SessionLocal()
    try:
        league = session.query(League).filter_by(league_key=league_key).one_or_none()
        if league is None:
            logger.info("Scoreboard requested for unknown league %s", league_key)
            return jsonify({"error": "League not found"}), 404

        if week is None:
            week = int(league.current_week or 1)

        matchups = build_scoreboard(session, league, week)
        resp = jsonify({"matchups": matchups, "week": week, "leagueKey": league.league_key})
        max_age = max_age_for(is_historical_season(league.season), CACHE_MAX_AGE["scoreboard"])
        return with_cache(resp, max_age)
    finally:
        session.close()


@league_bp.route("/league/<league_id>/team/<team_id>")
def team_roster(league_id: str, team_id: str):
    league_key = _league_key(league_id)
    try:
        week = _week_arg()
    except ValueError:
        return jsonify({"error": "week must be an integer"}), 400

    team_key = f"{league_key}.t.{team_id}"
    roster = _client().get_team_roster(team_key, week)

    resp = jsonify({"roster": [p.to_json() for p in roster], "teamKey": team_key, "week": week})
    historical = is_historical_key(league_key, current_app.config["CURRENT_GAME_KEY"])
    return with_cache(resp, max_age_for(historical, CACHE_MAX_AGE["roster"]))


@league_bp.route("/league/<league_id>")
def league_detail(league_id: str):
    league_key = _league_key(league_id)

    session = SessionLocal()
    try:
        league = session.query(League).filter_by(league_key=league_key).one_or_none()
        if league is not None:
            resp = jsonify({"league": league_json(league), "source": "db"})
            max_age = max_age_for(is_historical_season(league.season), CACHE_MAX_AGE["league"])
            return with_cache(resp, max_age)
    finally:
        session.close()

    record = _client().get_league(league_key)
    if record is None:
        return jsonify({"error": "League not found"}), 404

    resp = jsonify({"league": record.to_json(), "source": "yahoo"})
    max_age = max_age_for(is_historical_season(record.season), CACHE_MAX_AGE["league"])
    return with_cache(resp, max_age)
