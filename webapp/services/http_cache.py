# webapp/services/http_cache.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional
from urllib.parse import unquote

from analysis.constants import ONE_YEAR


def cache_control(max_age: int) -> str:
    max_age = int(max_age)
    return f"public, s-maxage={max_age}, stale-while-revalidate={max_age * 2}"


def with_cache(resp, max_age: int):
    """Stamp Cache-Control on a Flask response and return it."""
    resp.headers["Cache-Control"] = cache_control(max_age)
    return resp


def resolve_league_key(league_id: str, current_game_key: str) -> str:
    """
    "449.l.123456" (possibly URL-encoded) stays a full key; a bare "123456"
    means the current season's league.
    """
    decoded = unquote(str(league_id))
    if ".l." in decoded:
        return decoded
    return f"{current_game_key}.l.{decoded}"


def is_historical_season(season: Any, now_year: Optional[int] = None) -> bool:
    try:
        year = int(season)
    except (TypeError, ValueError):
        return False
    return year < int(now_year or datetime.now().year)


def is_historical_key(league_key: str, current_game_key: str) -> bool:
    return league_key.split(".")[0] != str(current_game_key)


def max_age_for(historical: bool, current_max_age: int) -> int:
    return ONE_YEAR if historical else int(current_max_age)
