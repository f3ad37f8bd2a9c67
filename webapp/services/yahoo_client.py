# webapp/services/yahoo_client.py
"""
Thin HTTP client for the Yahoo Fantasy Sports v2 API.

The client owns no token state: it asks `token_provider.get_valid_token()`
for a bearer token on every request, so a refresh performed elsewhere is
picked up immediately. All JSON decoding lives in `yahoo_parse`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from analysis.constants import YAHOO_FANTASY_API_BASE
from webapp.errors import YahooApiError

from . import yahoo_parse
from .yahoo_records import LeagueRecord, MatchupRecord, RosterPlayer, TeamStanding

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class YahooFantasyClient:
    def __init__(
        self,
        token_provider,
        http: Optional[requests.Session] = None,
        base_url: str = YAHOO_FANTASY_API_BASE,
        timeout: float = DEFAULT_TIMEOUT,
    ):
        self.token_provider = token_provider
        self.http = http or requests.Session()
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    # ---------- transport ----------

    def _request(self, path: str) -> Dict[str, Any]:
        token = self.token_provider.get_valid_token()
        sep = "&" if "?" in path else "?"
        url = f"{self.base_url}{path}{sep}format=json"

        logger.debug("GET %s", url)
        resp = self.http.get(
            url,
            headers={
                "Authorization": f"Bearer {token}",
                "Accept": "application/json",
            },
            timeout=self.timeout,
        )
        if not 200 <= resp.status_code < 300:
            logger.warning("Yahoo API %s for %s", resp.status_code, path)
            raise YahooApiError(resp.status_code, resp.text)
        return resp.json()

    def get_raw(self, path: str) -> Dict[str, Any]:
        """Decoded JSON for an arbitrary API path (debugging / scripts)."""
        if not path.startswith("/"):
            path = "/" + path
        return self._request(path)

    # ---------- resources ----------

    def get_user_leagues(self, game_code: str = "nfl") -> List[LeagueRecord]:
        data = self._request(f"/users;use_login=1/games;game_codes={game_code}/leagues")
        return yahoo_parse.parse_user_leagues(data)

    def get_league(self, league_key: str) -> Optional[LeagueRecord]:
        leagues = yahoo_parse.parse_league(self._request(f"/league/{league_key}"))
        return leagues[0] if leagues else None

    def get_league_standings(self, league_key: str) -> List[TeamStanding]:
        return yahoo_parse.parse_standings(self._request(f"/league/{league_key}/standings"))

    def get_league_scoreboard(self, league_key: str, week: int) -> List[MatchupRecord]:
        data = self._request(f"/league/{league_key}/scoreboard;week={int(week)}")
        return yahoo_parse.parse_scoreboard(data, week=int(week))

    def get_team_roster(self, team_key: str, week: Optional[int] = None) -> List[RosterPlayer]:
        week_param = f";week={int(week)}" if week else ""
        data = self._request(f"/team/{team_key}/roster{week_param}/players/stats")
        return yahoo_parse.parse_roster(data)
