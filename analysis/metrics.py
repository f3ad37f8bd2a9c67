from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


def _clean_float(value: Any, default: float = 0.0) -> float:
    """
    Make sure anything we emit is a finite float.
    """
    try:
        f = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(f) or math.isinf(f):
        return default
    return f


def win_pct(wins: int, losses: int, ties: int) -> float:
    """wins / games played, 0.0 before any games."""
    games = int(wins or 0) + int(losses or 0) + int(ties or 0)
    if games <= 0:
        return 0.0
    return int(wins or 0) / games


# ---------- Cumulative records ----------


@dataclass
class RecordLine:
    """
    Running W/L/T + points for one manager within one league.
    """
    manager_id: int
    wins: int = 0
    losses: int = 0
    ties: int = 0
    points_for: float = 0.0
    points_against: float = 0.0
    rank: Optional[int] = field(default=None)

    @property
    def win_pct(self) -> float:
        return win_pct(self.wins, self.losses, self.ties)

    @property
    def point_diff(self) -> float:
        return self.points_for - self.points_against


def accumulate_records(
    team_to_manager: Dict[int, int],
    matchups: Iterable[Any],
) -> Dict[int, RecordLine]:
    """
    Fold matchup rows into per-team records.

    `team_to_manager` maps Team.id -> Manager.id for every team in the league;
    every team starts at 0-0-0 even if it has no matchups yet.
    `matchups` are objects with team1_id/team2_id/team1_points/team2_points/
    winner_id/is_tie (Matchup rows work as-is).

    Only matchups with both scores recorded count.
    """
    lines: Dict[int, RecordLine] = {
        int(tid): RecordLine(manager_id=int(mid)) for tid, mid in team_to_manager.items()
    }

    for m in matchups:
        if m.team1_points is None or m.team2_points is None:
            continue

        t1 = lines.get(int(m.team1_id))
        t2 = lines.get(int(m.team2_id))
        if t1 is None or t2 is None:
            continue

        p1 = float(m.team1_points)
        p2 = float(m.team2_points)
        t1.points_for += p1
        t1.points_against += p2
        t2.points_for += p2
        t2.points_against += p1

        if m.is_tie:
            t1.ties += 1
            t2.ties += 1
        elif m.winner_id is not None and int(m.winner_id) == int(m.team1_id):
            t1.wins += 1
            t2.losses += 1
        elif m.winner_id is not None and int(m.winner_id) == int(m.team2_id):
            t2.wins += 1
            t1.losses += 1

    return lines


def standings_sort_key(line: RecordLine):
    # win pct desc, wins desc, point diff desc, then manager id so that
    # identical records always land in the same order
    return (-line.win_pct, -line.wins, -line.point_diff, line.manager_id)


def assign_ranks(lines: Iterable[RecordLine]) -> List[RecordLine]:
    """Sort records into standings order and stamp rank 1..N."""
    ordered = sorted(lines, key=standings_sort_key)
    for idx, line in enumerate(ordered, start=1):
        line.rank = idx
    return ordered


# ---------- All-time totals ----------


@dataclass
class CareerTotals:
    manager_id: int
    total_wins: int = 0
    total_losses: int = 0
    total_ties: int = 0
    total_points_for: float = 0.0
    total_points_against: float = 0.0
    seasons_played: int = 0
    championships: int = 0
    playoff_appearances: int = 0

    @property
    def win_pct(self) -> float:
        return win_pct(self.total_wins, self.total_losses, self.total_ties)

    @property
    def point_diff(self) -> float:
        return self.total_points_for - self.total_points_against


def is_championship(rank: Optional[int], league_finished: bool, require_finished: bool) -> bool:
    if rank is None or int(rank) != 1:
        return False
    if require_finished:
        return bool(league_finished)
    return True


def is_playoff_appearance(is_playoff_team: Optional[bool], playoff_seed: Optional[int]) -> bool:
    if is_playoff_team:
        return True
    return playoff_seed is not None and int(playoff_seed) > 0


def career_totals(
    team_rows: Iterable[Any],
    require_finished: bool = False,
) -> Dict[int, CareerTotals]:
    """
    Sum season rows into all-time totals per manager.

    `team_rows` are (Team, League) pairs, as returned by a joined query.
    """
    totals: Dict[int, CareerTotals] = {}
    leagues_seen: Dict[int, set] = {}

    for team, league in team_rows:
        mid = int(team.manager_id)
        agg = totals.get(mid)
        if agg is None:
            agg = totals[mid] = CareerTotals(manager_id=mid)
            leagues_seen[mid] = set()

        agg.total_wins += int(team.wins or 0)
        agg.total_losses += int(team.losses or 0)
        agg.total_ties += int(team.ties or 0)
        agg.total_points_for += _clean_float(team.points_for)
        agg.total_points_against += _clean_float(team.points_against)
        leagues_seen[mid].add(int(team.league_id))

        if is_championship(team.rank, bool(league.is_finished), require_finished):
            agg.championships += 1
        if is_playoff_appearance(team.is_playoff_team, team.playoff_seed):
            agg.playoff_appearances += 1

    for mid, agg in totals.items():
        agg.seasons_played = len(leagues_seen[mid])

    return totals
