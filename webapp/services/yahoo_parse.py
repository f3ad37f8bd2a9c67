# webapp/services/yahoo_parse.py
"""
Deserializers for Yahoo Fantasy API JSON.

Yahoo's JSON is a literal translation of its XML, so:
- collections look like {"count": N, "0": {...}, "1": {...}, ...}
- "objects" are often lists of single-key dicts that must be merged
- numbers arrive as strings

Every public `parse_*` function is pure: it takes the decoded response
body and returns a list of records from `yahoo_records`. A malformed
payload is logged and yields an empty list.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, Iterator, List, Optional

from .yahoo_records import LeagueRecord, MatchupRecord, RosterPlayer, TeamStanding

logger = logging.getLogger(__name__)

PARSE_ERRORS = (KeyError, TypeError, ValueError, IndexError, AttributeError)


# ---------- Helpers ----------


def _collection(obj: Any) -> Iterator[Any]:
    """Yield the members of a {"count": N, "0": ..., "1": ...} collection."""
    if not isinstance(obj, dict):
        return
    count = _to_int(obj.get("count"), 0)
    for i in range(count):
        item = obj.get(str(i))
        if item is not None:
            yield item


def _flatten(items: Any) -> Dict[str, Any]:
    """Merge a list of single-key dicts into one dict; non-dicts (Yahoo pads with []) are skipped."""
    flat: Dict[str, Any] = {}
    if isinstance(items, dict):
        return dict(items)
    for item in items or []:
        if isinstance(item, dict):
            flat.update(item)
    return flat


def _to_int(value: Any, default: Optional[int] = 0) -> Optional[int]:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError):
            return default


def _to_float(value: Any, default: Optional[float] = 0.0) -> Optional[float]:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _flag(value: Any) -> bool:
    return value in (1, "1", True, "true")


def _game_key_from(league_key: str) -> str:
    return league_key.split(".l.")[0] if ".l." in league_key else ""


def _league_record(info: Dict[str, Any], game_info: Optional[Dict[str, Any]] = None) -> LeagueRecord:
    game_info = game_info or {}
    league_key = str(info["league_key"])
    return LeagueRecord(
        league_key=league_key,
        league_id=str(info.get("league_id", "")),
        name=info.get("name") or "",
        season=str(game_info.get("season") or info.get("season") or ""),
        game_key=str(game_info.get("game_key") or _game_key_from(league_key)),
        num_teams=_to_int(info.get("num_teams"), 0),
        current_week=_to_int(info.get("current_week"), 1) or 1,
        start_week=_to_int(info.get("start_week"), 1) or 1,
        end_week=_to_int(info.get("end_week"), None),
        is_finished=_flag(info.get("is_finished")),
        draft_status=info.get("draft_status"),
        scoring_type=info.get("scoring_type"),
        url=info.get("url"),
        logo_url=info.get("logo_url") or None,
    )


def _team_logo(flat: Dict[str, Any]) -> Optional[str]:
    for logo in flat.get("team_logos") or []:
        url = (logo or {}).get("team_logo", {}).get("url")
        if url:
            return url
    return None


def _first_manager(flat: Dict[str, Any]) -> Dict[str, Any]:
    managers = flat.get("managers")
    if isinstance(managers, dict):
        managers = list(_collection(managers))
    for m in managers or []:
        manager = (m or {}).get("manager")
        if manager:
            return manager
    return {}


def _team_points(entry: Any) -> float:
    return _to_float(_flatten(entry).get("team_points", {}).get("total"), 0.0)


# ---------- Leagues ----------


def parse_league(data: Dict[str, Any]) -> List[LeagueRecord]:
    """`/league/{key}` -> at most one LeagueRecord."""
    try:
        league = data["fantasy_content"]["league"]
        if not league:
            return []
        return [_league_record(_flatten(league[0]))]
    except PARSE_ERRORS:
        logger.exception("Error parsing league response")
        return []


def parse_user_leagues(data: Dict[str, Any]) -> List[LeagueRecord]:
    """
    `/users;use_login=1/games;game_codes=.../leagues` -> every league the
    logged-in user belongs to, across all seasons. Predraft leagues are skipped.
    """
    records: List[LeagueRecord] = []
    try:
        user = data["fantasy_content"]["users"]["0"]["user"]
        games = user[1].get("games") if len(user) > 1 else None

        for game_wrapper in _collection(games):
            game = game_wrapper.get("game")
            if not game:
                continue
            game_info = _flatten(game[0])
            leagues = game[1].get("leagues") if len(game) > 1 and isinstance(game[1], dict) else None

            for league_wrapper in _collection(leagues):
                league = league_wrapper.get("league") or []
                if not league:
                    continue
                info = _flatten(league[0])
                if info.get("draft_status") == "predraft":
                    continue
                records.append(_league_record(info, game_info))
    except PARSE_ERRORS:
        logger.exception("Error parsing user leagues")
        return []
    return records


def group_leagues_by_season(records: Iterable[LeagueRecord]) -> List[Dict[str, Any]]:
    """
    Shape for /api/fantasy/my-leagues: one entry per season, newest first,
    each carrying its game key and the leagues in provider order.
    """
    seasons: Dict[str, Dict[str, Any]] = {}
    for rec in records:
        entry = seasons.setdefault(
            rec.season,
            {"season": rec.season, "gameKey": rec.game_key, "leagues": []},
        )
        entry["leagues"].append(rec.to_json())

    return sorted(
        seasons.values(),
        key=lambda s: _to_int(s["season"], 0),
        reverse=True,
    )


# ---------- Standings ----------


def _team_standing(team: List[Any]) -> TeamStanding:
    # team[0] = info list, team[1] = team_points, team[2] = team_standings
    flat = _flatten(team[0])
    manager = _first_manager(flat)

    standings = {}
    for entry in team[1:]:
        if isinstance(entry, dict) and "team_standings" in entry:
            standings = entry["team_standings"] or {}
    totals = standings.get("outcome_totals") or {}

    seed = _to_int(standings.get("playoff_seed"), None)
    wins = _to_int(totals.get("wins"), 0)
    losses = _to_int(totals.get("losses"), 0)
    ties = _to_int(totals.get("ties"), 0)

    return TeamStanding(
        team_key=str(flat["team_key"]),
        team_id=str(flat.get("team_id", "")),
        name=flat.get("name") or "",
        manager_guid=manager.get("guid"),
        manager_nickname=manager.get("nickname"),
        manager_image_url=manager.get("image_url"),
        url=flat.get("url"),
        logo_url=_team_logo(flat),
        wins=wins,
        losses=losses,
        ties=ties,
        win_pct=_to_float(totals.get("percentage"), 0.0),
        points_for=_to_float(standings.get("points_for"), 0.0),
        points_against=_to_float(standings.get("points_against"), 0.0),
        rank=_to_int(standings.get("rank"), 0),
        playoff_seed=seed,
        is_playoff_team=_flag(flat.get("clinched_playoffs")) or (seed is not None and seed > 0),
    )


def parse_standings(data: Dict[str, Any]) -> List[TeamStanding]:
    """`/league/{key}/standings` -> one TeamStanding per team, provider order."""
    try:
        league = data["fantasy_content"]["league"]
        if len(league) < 2:
            return []
        teams = league[1]["standings"][0]["teams"]
        return [_team_standing(t["team"]) for t in _collection(teams) if t.get("team")]
    except PARSE_ERRORS:
        logger.exception("Error parsing standings")
        return []


# ---------- Scoreboard ----------


def _matchup_record(matchup: Dict[str, Any], week: Optional[int]) -> Optional[MatchupRecord]:
    teams = (matchup.get("0") or {}).get("teams")
    if not isinstance(teams, dict) or _to_int(teams.get("count"), 0) != 2:
        return None

    sides = [t["team"] for t in _collection(teams)]
    if len(sides) != 2:
        return None

    key1 = str(_flatten(sides[0][0])["team_key"])
    key2 = str(_flatten(sides[1][0])["team_key"])
    p1 = _team_points(sides[0][1:])
    p2 = _team_points(sides[1][1:])

    is_tie = p1 == p2 and p1 > 0
    winner_key = None
    if not is_tie and (p1 > 0 or p2 > 0):
        winner_key = key1 if p1 > p2 else key2

    return MatchupRecord(
        week=int(week) if week is not None else _to_int(matchup.get("week"), 0),
        team1_key=key1,
        team2_key=key2,
        team1_points=p1,
        team2_points=p2,
        is_playoff=_flag(matchup.get("is_playoffs")),
        is_consolation=_flag(matchup.get("is_consolation")),
        is_tie=is_tie,
        winner_key=winner_key,
        status=matchup.get("status"),
    )


def parse_scoreboard(data: Dict[str, Any], week: Optional[int] = None) -> List[MatchupRecord]:
    """
    `/league/{key}/scoreboard;week=N` -> head-to-head results.

    Matchups that don't have exactly two teams are dropped. The winner is
    derived from points, not from Yahoo's winner_team_key, so in-progress
    weeks report the current leader.
    """
    records: List[MatchupRecord] = []
    try:
        league = data["fantasy_content"]["league"]
        if len(league) < 2:
            return []
        matchups = league[1]["scoreboard"]["0"]["matchups"]
        for wrapper in _collection(matchups):
            matchup = wrapper.get("matchup")
            if not matchup:
                continue
            rec = _matchup_record(matchup, week)
            if rec is not None:
                records.append(rec)
    except PARSE_ERRORS:
        logger.exception("Error parsing scoreboard")
        return []
    return records


# ---------- Roster ----------


def _roster_player(player: List[Any]) -> RosterPlayer:
    flat = _flatten(player[0])
    extra = _flatten(player[1:])

    name = flat.get("name") or {}
    selected = _flatten(extra.get("selected_position") or flat.get("selected_position"))
    points = (extra.get("player_points") or {}).get("total")
    headshot = flat.get("headshot") or {}
    bye = flat.get("bye_weeks") or {}

    return RosterPlayer(
        player_key=str(flat["player_key"]),
        player_id=str(flat.get("player_id", "")),
        full_name=name.get("full") or "",
        first_name=name.get("first") or "",
        last_name=name.get("last") or "",
        team_abbr=flat.get("editorial_team_abbr"),
        display_position=flat.get("display_position"),
        selected_position=selected.get("position"),
        status=flat.get("status"),
        injury_note=flat.get("injury_note"),
        image_url=flat.get("image_url") or headshot.get("url"),
        points=_to_float(points, None),
        bye_week=_to_int(bye.get("week"), None),
    )


def parse_roster(data: Dict[str, Any]) -> List[RosterPlayer]:
    """`/team/{key}/roster;week=N/players/stats` -> players with their points for that week."""
    try:
        team = data["fantasy_content"]["team"]
        if len(team) < 2:
            return []
        players = team[1]["roster"]["0"]["players"]
        return [_roster_player(p["player"]) for p in _collection(players) if p.get("player")]
    except PARSE_ERRORS:
        logger.exception("Error parsing roster")
        return []
