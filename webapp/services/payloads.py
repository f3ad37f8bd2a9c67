# webapp/services/payloads.py
"""
JSON shapes for the store-backed read endpoints.

Each `build_*` function takes an open Session and returns plain dicts/lists
ready for `jsonify`. Nothing here writes.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from analysis.fun_facts import (
    find_biggest_blowout,
    find_closest_matchup,
    find_longest_win_streak,
    margin,
    split_winner_loser,
)
from analysis.metrics import win_pct
from models_aggregates import Ranking, WeeklyRanking
from models_normalized import League, Manager, Matchup, Team


# ---------- Row -> dict ----------


def league_json(league: League) -> Dict[str, Any]:
    return {
        "id": league.id,
        "leagueKey": league.league_key,
        "leagueId": league.league_id,
        "gameKey": league.game_key,
        "name": league.name,
        "season": league.season,
        "numTeams": league.num_teams,
        "currentWeek": league.current_week,
        "startWeek": league.start_week,
        "endWeek": league.end_week,
        "isFinished": bool(league.is_finished),
        "logoUrl": league.logo_url,
        "url": league.url,
    }


def manager_json(manager: Optional[Manager]) -> Optional[Dict[str, Any]]:
    if manager is None:
        return None
    return {
        "id": manager.id,
        "guid": manager.guid,
        "nickname": manager.nickname,
        "imageUrl": manager.image_url,
    }


def team_json(team: Team, manager: Optional[Manager] = None) -> Dict[str, Any]:
    return {
        "id": team.id,
        "teamKey": team.team_key,
        "teamId": team.team_id,
        "name": team.name,
        "logoUrl": team.logo_url,
        "url": team.url,
        "wins": team.wins,
        "losses": team.losses,
        "ties": team.ties,
        "winPct": win_pct(team.wins, team.losses, team.ties),
        "pointsFor": team.points_for,
        "pointsAgainst": team.points_against,
        "rank": team.rank,
        "playoffSeed": team.playoff_seed,
        "isPlayoffTeam": bool(team.is_playoff_team),
        "manager": manager_json(manager),
    }


# ---------- League views ----------


def build_standings(session: Session, league: League) -> List[Dict[str, Any]]:
    rows = (
        session.query(Team, Manager)
        .join(Manager, Team.manager_id == Manager.id)
        .filter(Team.league_id == league.id)
        .order_by(Team.rank.is_(None), Team.rank, Team.id)
        .all()
    )
    return [team_json(team, manager) for team, manager in rows]


def build_scoreboard(session: Session, league: League, week: int) -> List[Dict[str, Any]]:
    matchups = (
        session.query(Matchup)
        .filter(Matchup.league_id == league.id, Matchup.week == int(week))
        .order_by(Matchup.id)
        .all()
    )
    if not matchups:
        return []

    team_ids = {m.team1_id for m in matchups} | {m.team2_id for m in matchups}
    rows = (
        session.query(Team, Manager)
        .join(Manager, Team.manager_id == Manager.id)
        .filter(Team.id.in_(team_ids))
        .all()
    )
    by_id = {team.id: (team, manager) for team, manager in rows}

    def side(team_id: int, points: Optional[float], winner_id: Optional[int]):
        if team_id not in by_id:
            return None
        team, manager = by_id[team_id]
        return {
            "teamKey": team.team_key,
            "teamId": team.team_id,
            "name": team.name,
            "logoUrl": team.logo_url,
            "points": points,
            "isWinner": winner_id is not None and winner_id == team.id,
            "manager": manager_json(manager),
        }

    out = []
    for m in matchups:
        sides = [
            side(m.team1_id, m.team1_points, m.winner_id),
            side(m.team2_id, m.team2_points, m.winner_id),
        ]
        out.append(
            {
                "week": m.week,
                "isPlayoff": bool(m.is_playoff),
                "isTie": bool(m.is_tie),
                "teams": [s for s in sides if s is not None],
            }
        )
    return out


# ---------- Rankings ----------


def _seasons_by_manager(session: Session) -> Dict[int, List[str]]:
    rows = (
        session.query(Team.manager_id, League.season)
        .join(League, Team.league_id == League.id)
        .order_by(League.season)
        .all()
    )
    out: Dict[int, List[str]] = {}
    for manager_id, season in rows:
        seasons = out.setdefault(int(manager_id), [])
        if season not in seasons:
            seasons.append(season)
    return out


def build_rankings(session: Session) -> List[Dict[str, Any]]:
    """All-time table: win pct desc, then point diff desc, then manager id."""
    rows = (
        session.query(Ranking, Manager)
        .join(Manager, Ranking.manager_id == Manager.id)
        .order_by(Ranking.win_pct.desc(), Ranking.point_diff.desc(), Manager.id)
        .all()
    )
    seasons = _seasons_by_manager(session)

    out = []
    for idx, (r, manager) in enumerate(rows, start=1):
        out.append(
            {
                "rank": idx,
                "managerId": manager.id,
                "guid": manager.guid,
                "nickname": manager.nickname,
                "imageUrl": manager.image_url,
                "wins": r.total_wins,
                "losses": r.total_losses,
                "ties": r.total_ties,
                "winPct": r.win_pct,
                "pointsFor": r.total_points_for,
                "pointsAgainst": r.total_points_against,
                "pointDiff": r.point_diff,
                "seasonsPlayed": r.seasons_played,
                "championships": r.championships,
                "playoffAppearances": r.playoff_appearances,
                "seasons": seasons.get(manager.id, []),
                "updatedAt": r.updated_at.isoformat() if r.updated_at else None,
            }
        )
    return out


def build_weekly_rankings(session: Session, league_id: int) -> List[Dict[str, Any]]:
    rows = (
        session.query(WeeklyRanking, Manager.nickname)
        .join(Manager, WeeklyRanking.manager_id == Manager.id)
        .filter(WeeklyRanking.league_id == league_id)
        .order_by(WeeklyRanking.week, WeeklyRanking.rank)
        .all()
    )

    weeks: "OrderedDict[int, Dict[str, Any]]" = OrderedDict()
    for wr, nickname in rows:
        entry = weeks.setdefault(wr.week, {"week": wr.week, "rankings": []})
        entry["rankings"].append(
            {
                "managerId": wr.manager_id,
                "managerName": nickname,
                "rank": wr.rank,
                "wins": wr.wins,
                "losses": wr.losses,
                "ties": wr.ties,
                "winPct": wr.win_pct,
                "pointsFor": wr.points_for,
                "pointsAgainst": wr.points_against,
            }
        )
    return list(weeks.values())


# ---------- Managers ----------


def build_managers(session: Session) -> List[Dict[str, Any]]:
    managers = session.query(Manager).order_by(Manager.nickname, Manager.id).all()
    rows = (
        session.query(Team, League)
        .join(League, Team.league_id == League.id)
        .order_by(League.season, Team.id)
        .all()
    )
    teams_by_manager: Dict[int, List[Dict[str, Any]]] = {}
    for team, league in rows:
        item = team_json(team)
        item.pop("manager")
        item["season"] = league.season
        item["leagueName"] = league.name
        item["leagueKey"] = league.league_key
        teams_by_manager.setdefault(team.manager_id, []).append(item)

    out = []
    for manager in managers:
        item = manager_json(manager)
        item["teams"] = teams_by_manager.get(manager.id, [])
        out.append(item)
    return out


def _season_line(team: Team, league: League) -> Dict[str, Any]:
    return {
        "season": league.season,
        "leagueName": league.name,
        "wins": team.wins,
        "losses": team.losses,
        "ties": team.ties,
        "rank": team.rank,
    }


def build_manager_detail(session: Session, manager: Manager) -> Dict[str, Any]:
    """
    Career view for one manager: ranking totals, playoff record, scoring
    average, best/worst season and every team they've run.
    """
    ranking = session.query(Ranking).filter_by(manager_id=manager.id).one_or_none()
    team_rows = (
        session.query(Team, League)
        .join(League, Team.league_id == League.id)
        .filter(Team.manager_id == manager.id)
        .order_by(League.season, Team.id)
        .all()
    )
    team_ids = [team.id for team, _ in team_rows]

    playoff_wins = 0
    playoff_losses = 0
    if team_ids:
        playoff = (
            session.query(Matchup)
            .filter(
                Matchup.is_playoff.is_(True),
                or_(Matchup.team1_id.in_(team_ids), Matchup.team2_id.in_(team_ids)),
            )
            .all()
        )
        for m in playoff:
            if m.winner_id is not None and m.winner_id in team_ids:
                playoff_wins += 1
            elif m.winner_id is not None and not m.is_tie:
                playoff_losses += 1

    by_pct = sorted(
        team_rows,
        key=lambda tl: win_pct(tl[0].wins, tl[0].losses, tl[0].ties),
        reverse=True,
    )
    best = _season_line(*by_pct[0]) if by_pct else None
    worst = _season_line(*by_pct[-1]) if by_pct else None

    total_wins = ranking.total_wins if ranking else 0
    total_losses = ranking.total_losses if ranking else 0
    total_ties = ranking.total_ties if ranking else 0
    points_for = ranking.total_points_for if ranking else 0.0
    games = total_wins + total_losses + total_ties

    teams = []
    for team, league in team_rows:
        item = team_json(team)
        item.pop("manager")
        item["season"] = league.season
        item["leagueName"] = league.name
        item["leagueKey"] = league.league_key
        teams.append(item)

    return {
        "manager": manager_json(manager),
        "stats": {
            "totalWins": total_wins,
            "totalLosses": total_losses,
            "totalTies": total_ties,
            "winPct": ranking.win_pct if ranking else 0.0,
            "totalPointsFor": points_for,
            "totalPointsAgainst": ranking.total_points_against if ranking else 0.0,
            "pointDiff": ranking.point_diff if ranking else 0.0,
            "seasonsPlayed": ranking.seasons_played if ranking else len(team_rows),
            "championships": ranking.championships if ranking else 0,
            "playoffAppearances": ranking.playoff_appearances if ranking else 0,
            "playoffWins": playoff_wins,
            "playoffLosses": playoff_losses,
            "avgPointsPerGame": (points_for / games) if games else 0.0,
            "bestSeason": best,
            "worstSeason": worst,
        },
        "teams": teams,
    }


# ---------- Fun facts ----------


def _matchup_fact(kind: str, m: Optional[Matchup], teams: Dict[int, Team], leagues: Dict[int, League]):
    if m is None:
        return {
            "type": kind,
            "week": None,
            "year": None,
            "isPlayoff": None,
            "winner": None,
            "loser": None,
            "margin": None,
        }

    winner_id, winner_pts, loser_id, loser_pts = split_winner_loser(m)
    winner = teams.get(winner_id)
    loser = teams.get(loser_id)
    league = leagues.get(m.league_id)
    return {
        "type": kind,
        "week": m.week,
        "year": league.season if league else None,
        "isPlayoff": bool(m.is_playoff),
        "winner": {"name": winner.name if winner else "Unknown", "points": winner_pts},
        "loser": {"name": loser.name if loser else "Unknown", "points": loser_pts},
        "margin": margin(m),
    }


def build_fun_facts(session: Session) -> List[Dict[str, Any]]:
    """[biggestBlowout, closestMatchup, longestWinStreak]; facts with no data have null fields."""
    matchups: Iterable[Matchup] = session.query(Matchup).all()
    teams = {t.id: t for t in session.query(Team).all()}
    leagues = {lg.id: lg for lg in session.query(League).all()}

    blowout = find_biggest_blowout(matchups)
    closest = find_closest_matchup(matchups)
    streak = find_longest_win_streak(matchups)

    if streak is None:
        streak_fact = {
            "type": "longestWinStreak",
            "team": None,
            "league": None,
            "year": None,
            "streak": None,
            "startWeek": None,
            "endWeek": None,
        }
    else:
        team = teams.get(streak.team_id)
        league = leagues.get(streak.league_id)
        streak_fact = {
            "type": "longestWinStreak",
            "team": team.name if team else "Unknown",
            "league": league.name if league else "Unknown",
            "year": league.season if league else None,
            "streak": streak.length,
            "startWeek": streak.start_week,
            "endWeek": streak.end_week,
        }

    return [
        _matchup_fact("biggestBlowout", blowout, teams, leagues),
        _matchup_fact("closestMatchup", closest, teams, leagues),
        streak_fact,
    ]
