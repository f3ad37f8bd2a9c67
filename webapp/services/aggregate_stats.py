# webapp/services/aggregate_stats.py
"""
Aggregation job: pull Yahoo data into the normalized tables and rebuild
the derived ones.

Public entrypoints:

    run_aggregation(session_factory, client, ...)
    recompute_weekly_rankings(session, league_id, week)
    recompute_all_weekly_rankings(session)
    compute_rankings(session, championship_requires_finished=False)

`run_aggregation` is the only function here that commits; it commits once
per phase of each league so a failure in one league never discards
another league's rows. The recompute helpers only flush; callers commit.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from analysis.constants import DEFAULT_END_WEEK
from analysis.metrics import accumulate_records, assign_ranks, career_totals
from models_aggregates import Ranking, WeeklyRanking
from models_normalized import League, Manager, Matchup, Team

from .yahoo_records import LeagueRecord, MatchupRecord, TeamStanding

logger = logging.getLogger(__name__)


@dataclass
class AggregationSummary:
    leagues_processed: int = 0
    leagues_failed: int = 0
    teams_updated: int = 0
    matchups_updated: int = 0
    weekly_rankings_updated: int = 0
    rankings_updated: int = 0
    updated_at: str = field(default_factory=lambda: _utcnow().isoformat())

    def to_json(self) -> Dict[str, Any]:
        return {
            "leaguesProcessed": self.leagues_processed,
            "leaguesFailed": self.leagues_failed,
            "teamsUpdated": self.teams_updated,
            "matchupsUpdated": self.matchups_updated,
            "weeklyRankingsUpdated": self.weekly_rankings_updated,
            "rankingsUpdated": self.rankings_updated,
            "updatedAt": self.updated_at,
        }


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------- Public API ----------


def run_aggregation(
    session_factory: Callable[[], Session],
    client,
    season: Optional[str] = None,
    all_seasons: bool = False,
    request_delay: float = 0.05,
    league_delay: float = 0.1,
    championship_requires_finished: bool = False,
    game_code: str = "nfl",
) -> AggregationSummary:
    """
    Sync every selected league, then recompute all-time rankings.

    Parameters
    ----------
    session_factory : callable
        Returns a new SQLAlchemy Session (SessionLocal).
    client : YahooFantasyClient
        Anything with get_user_leagues / get_league_standings /
        get_league_scoreboard.
    season : str, optional
        Only leagues from this season. Defaults to the current calendar year.
    all_seasons : bool
        Seed mode: process every league the user has ever been in.
    request_delay, league_delay : float
        Seconds to sleep between scoreboard calls / between leagues.
    """
    summary = AggregationSummary()

    # Errors here (no tokens, provider down) abort the whole run
    leagues = client.get_user_leagues(game_code)
    if not all_seasons:
        wanted = str(season or _utcnow().year)
        leagues = [lg for lg in leagues if str(lg.season) == wanted]

    logger.info("Aggregating %d league(s)", len(leagues))

    session = session_factory()
    try:
        for idx, record in enumerate(leagues):
            if idx > 0 and league_delay:
                time.sleep(league_delay)
            try:
                _sync_league(session, client, record, summary, request_delay)
                summary.leagues_processed += 1
            except Exception:
                session.rollback()
                summary.leagues_failed += 1
                logger.exception("Failed to update league %s (%s)", record.name, record.league_key)

        summary.rankings_updated = compute_rankings(
            session, championship_requires_finished=championship_requires_finished
        )
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()

    summary.updated_at = _utcnow().isoformat()
    logger.info(
        "Aggregation done: %d leagues (%d failed), %d teams, %d matchups, %d rankings",
        summary.leagues_processed,
        summary.leagues_failed,
        summary.teams_updated,
        summary.matchups_updated,
        summary.rankings_updated,
    )
    return summary


def recompute_weekly_rankings(session: Session, league_id: int, week: int) -> int:
    """
    Rebuild the standings snapshot of `league_id` as of `week`.

    Every team in the league gets a row, including teams with no decided
    matchups yet. Running it twice gives the same rows.
    """
    teams = session.query(Team.id, Team.manager_id).filter(Team.league_id == league_id).all()
    team_to_manager = {int(tid): int(mid) for tid, mid in teams if mid is not None}
    if not team_to_manager:
        return 0

    matchups = (
        session.query(Matchup)
        .filter(Matchup.league_id == league_id, Matchup.week <= int(week))
        .all()
    )
    lines = assign_ranks(accumulate_records(team_to_manager, matchups).values())

    for line in lines:
        row = (
            session.query(WeeklyRanking)
            .filter_by(league_id=league_id, manager_id=line.manager_id, week=int(week))
            .one_or_none()
        )
        if row is None:
            row = WeeklyRanking(league_id=league_id, manager_id=line.manager_id, week=int(week))
            session.add(row)

        row.rank = line.rank
        row.wins = line.wins
        row.losses = line.losses
        row.ties = line.ties
        row.win_pct = line.win_pct
        row.points_for = line.points_for
        row.points_against = line.points_against

    session.flush()
    return len(lines)


def recompute_league_weekly_rankings(session: Session, league_id: int) -> int:
    """Snapshots for every week of one league that has stored matchups."""
    total = 0
    for week in matchup_weeks(session, league_id):
        total += recompute_weekly_rankings(session, league_id, week)
    return total


def recompute_all_weekly_rankings(session: Session) -> int:
    """Weekly snapshots for every stored league, from stored matchups only."""
    total = 0
    for (league_id,) in session.query(League.id).order_by(League.id).all():
        total += recompute_league_weekly_rankings(session, league_id)
    return total


def compute_rankings(session: Session, championship_requires_finished: bool = False) -> int:
    """One all-time Ranking row per manager with at least one team; rows for anyone else are removed."""
    rows = session.query(Team, League).join(League, Team.league_id == League.id).all()
    totals = career_totals(rows, require_finished=championship_requires_finished)
    now = _utcnow().replace(tzinfo=None)

    stale = session.query(Ranking)
    if totals:
        stale = stale.filter(~Ranking.manager_id.in_(list(totals)))
    removed = stale.delete(synchronize_session="fetch")
    if removed:
        logger.info("Dropped %d ranking(s) for managers without teams", removed)

    for manager_id, agg in totals.items():
        ranking = session.query(Ranking).filter_by(manager_id=manager_id).one_or_none()
        if ranking is None:
            ranking = Ranking(manager_id=manager_id)
            session.add(ranking)

        ranking.total_wins = agg.total_wins
        ranking.total_losses = agg.total_losses
        ranking.total_ties = agg.total_ties
        ranking.win_pct = agg.win_pct
        ranking.total_points_for = agg.total_points_for
        ranking.total_points_against = agg.total_points_against
        ranking.point_diff = agg.point_diff
        ranking.seasons_played = agg.seasons_played
        ranking.championships = agg.championships
        ranking.playoff_appearances = agg.playoff_appearances
        ranking.updated_at = now

    session.flush()
    return len(totals)


# ---------- Per-league phases ----------


def _sync_league(
    session: Session,
    client,
    record: LeagueRecord,
    summary: AggregationSummary,
    request_delay: float,
) -> None:
    logger.info("Updating %s (%s, %s)", record.name, record.league_key, record.season)

    # 1. league row
    league, first_week = _upsert_league(session, record)
    session.commit()

    # 2. managers + teams
    standings = client.get_league_standings(record.league_key)
    for standing in standings:
        if _upsert_team(session, league, standing) is not None:
            summary.teams_updated += 1
    session.commit()

    team_ids = {
        key: tid
        for key, tid in session.query(Team.team_key, Team.id).filter(Team.league_id == league.id).all()
    }

    # 3. matchups
    if record.is_finished:
        last_week = int(record.end_week or league.end_week or DEFAULT_END_WEEK)
    else:
        last_week = int(record.current_week)

    if last_week >= first_week:
        logger.info("  matchups for weeks %d-%d", first_week, last_week)
    for week in range(first_week, last_week + 1):
        for m in client.get_league_scoreboard(record.league_key, week):
            if _upsert_matchup(session, league.id, m, team_ids) is not None:
                summary.matchups_updated += 1
        if request_delay:
            time.sleep(request_delay)
    # resume point moves only together with the matchups it covers
    league.current_week = record.current_week
    session.commit()

    # 4. weekly snapshots for every week we have results for
    summary.weekly_rankings_updated += recompute_league_weekly_rankings(session, league.id)
    session.commit()


def _upsert_league(session: Session, record: LeagueRecord):
    """Returns (league, first_week_to_fetch). current_week is advanced in phase 3."""
    league = session.query(League).filter_by(league_key=record.league_key).one_or_none()
    if league is None:
        league = League(league_key=record.league_key)
        session.add(league)
        first_week = int(record.start_week or 1)
    else:
        first_week = int(league.current_week or league.start_week or 1)

    league.league_id = record.league_id
    league.game_key = record.game_key
    league.name = record.name
    league.season = str(record.season)
    league.num_teams = record.num_teams
    league.start_week = record.start_week
    league.end_week = record.end_week
    league.is_finished = bool(record.is_finished)
    league.logo_url = record.logo_url
    league.url = record.url

    session.flush()
    return league, first_week


def _upsert_manager(session: Session, standing: TeamStanding) -> Optional[Manager]:
    if not standing.manager_guid:
        return None

    manager = session.query(Manager).filter_by(guid=standing.manager_guid).one_or_none()
    if manager is None:
        manager = Manager(guid=standing.manager_guid)
        session.add(manager)

    manager.nickname = standing.manager_nickname or manager.nickname or "Unknown"
    if standing.manager_image_url:
        manager.image_url = standing.manager_image_url
    session.flush()
    return manager


def _upsert_team(session: Session, league: League, standing: TeamStanding) -> Optional[Team]:
    manager = _upsert_manager(session, standing)
    if manager is None:
        logger.warning("  team %s has no manager guid, skipping", standing.team_key)
        return None

    team = session.query(Team).filter_by(team_key=standing.team_key).one_or_none()
    if team is None:
        team = Team(team_key=standing.team_key)
        session.add(team)

    team.team_id = standing.team_id
    team.league_id = league.id
    team.manager_id = manager.id
    team.name = standing.name
    team.logo_url = standing.logo_url
    team.url = standing.url
    team.wins = standing.wins
    team.losses = standing.losses
    team.ties = standing.ties
    team.win_pct = standing.win_pct
    team.points_for = standing.points_for
    team.points_against = standing.points_against
    team.rank = standing.rank
    team.playoff_seed = standing.playoff_seed
    team.is_playoff_team = bool(standing.is_playoff_team)

    session.flush()
    return team


def _upsert_matchup(
    session: Session,
    league_id: int,
    m: MatchupRecord,
    team_ids: Dict[str, int],
) -> Optional[Matchup]:
    team1_id = team_ids.get(m.team1_key)
    team2_id = team_ids.get(m.team2_key)
    if team1_id is None or team2_id is None:
        return None
    winner_id = team_ids.get(m.winner_key) if m.winner_key else None

    row = (
        session.query(Matchup)
        .filter_by(league_id=league_id, week=int(m.week), team1_id=team1_id, team2_id=team2_id)
        .one_or_none()
    )
    if row is None:
        row = Matchup(league_id=league_id, week=int(m.week), team1_id=team1_id, team2_id=team2_id)
        session.add(row)

    row.team1_points = m.team1_points
    row.team2_points = m.team2_points
    row.winner_id = winner_id
    row.is_playoff = bool(m.is_playoff)
    row.is_tie = bool(m.is_tie)

    session.flush()
    return row


def matchup_weeks(session: Session, league_id: int) -> List[int]:
    rows = (
        session.query(Matchup.week)
        .filter(Matchup.league_id == league_id)
        .distinct()
        .order_by(Matchup.week)
        .all()
    )
    return [int(w[0]) for w in rows if w[0] is not None]
