# analysis/fun_facts.py

"""
Highlight facts computed from stored matchup history.

All helpers take plain matchup-like objects (Matchup ORM rows work) with:
league_id, week, team1_id, team2_id, team1_points, team2_points, winner_id.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, List, Optional


def _has_both_scores(m: Any) -> bool:
    return m.team1_points is not None and m.team2_points is not None


def margin(m: Any) -> float:
    return abs(float(m.team1_points) - float(m.team2_points))


def find_biggest_blowout(matchups: Iterable[Any]) -> Optional[Any]:
    """Matchup with the largest point margin among those with both scores recorded."""
    best = None
    for m in matchups:
        if not _has_both_scores(m):
            continue
        if best is None or margin(m) > margin(best):
            best = m
    return best


def find_closest_matchup(matchups: Iterable[Any]) -> Optional[Any]:
    """
    Matchup with the smallest margin where both teams actually scored.
    Unplayed weeks (0-0) would otherwise always win.
    """
    best = None
    for m in matchups:
        if not _has_both_scores(m):
            continue
        if float(m.team1_points) <= 0 or float(m.team2_points) <= 0:
            continue
        if best is None or margin(m) < margin(best):
            best = m
    return best


def split_winner_loser(m: Any):
    """
    (winner_team_id, winner_points, loser_team_id, loser_points) by score.
    An exact tie reports team2 as the "winner".
    """
    p1 = float(m.team1_points or 0)
    p2 = float(m.team2_points or 0)
    if p1 > p2:
        return m.team1_id, p1, m.team2_id, p2
    return m.team2_id, p2, m.team1_id, p1


# ---------- Win streaks ----------


@dataclass
class WinStreak:
    team_id: int
    league_id: int
    length: int
    start_week: int
    end_week: int


def find_win_streaks(matchups: Iterable[Any]) -> List[WinStreak]:
    """
    Every maximal run of consecutive weeks won by the same team in the same league.

    Single ordered scan over decided matchups sorted by (league, winner, week);
    the current run closes whenever the team, the league, or week continuity
    changes.
    """
    wins = sorted(
        (m for m in matchups if m.winner_id is not None),
        key=lambda m: (int(m.league_id), int(m.winner_id), int(m.week)),
    )

    streaks: List[WinStreak] = []
    current: Optional[WinStreak] = None

    for m in wins:
        team_id = int(m.winner_id)
        league_id = int(m.league_id)
        week = int(m.week)

        if (
            current is not None
            and current.team_id == team_id
            and current.league_id == league_id
            and week == current.end_week + 1
        ):
            current.length += 1
            current.end_week = week
            continue

        if current is not None:
            streaks.append(current)
        current = WinStreak(
            team_id=team_id,
            league_id=league_id,
            length=1,
            start_week=week,
            end_week=week,
        )

    if current is not None:
        streaks.append(current)

    return streaks


def find_longest_win_streak(matchups: Iterable[Any]) -> Optional[WinStreak]:
    """Longest streak; the first one found wins a tie."""
    longest = None
    for s in find_win_streaks(matchups):
        if longest is None or s.length > longest.length:
            longest = s
    return longest
