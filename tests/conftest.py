import os

# Must be set before db / webapp.config are imported
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["REDIS_URL"] = ""
os.environ["CRON_SECRET"] = ""
os.environ["SETUP_SECRET"] = ""

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402

from db import Base, SessionLocal  # noqa: E402
from webapp import create_app  # noqa: E402
from webapp.services.aggregate_stats import run_aggregation  # noqa: E402
from webapp.services.yahoo_records import (  # noqa: E402
    LeagueRecord,
    MatchupRecord,
    TeamStanding,
)

CURRENT_SEASON = str(datetime.now().year)


class FakeYahooClient:
    """In-memory stand-in for YahooFantasyClient."""

    def __init__(self, leagues=None, standings=None, scoreboards=None, rosters=None):
        self.leagues = list(leagues or [])
        self.standings = dict(standings or {})
        self.scoreboards = dict(scoreboards or {})
        self.rosters = dict(rosters or {})
        self.calls = []

    def get_user_leagues(self, game_code="nfl"):
        self.calls.append(("leagues", game_code))
        return list(self.leagues)

    def get_league(self, league_key):
        self.calls.append(("league", league_key))
        for lg in self.leagues:
            if lg.league_key == league_key:
                return lg
        return None

    def get_league_standings(self, league_key):
        self.calls.append(("standings", league_key))
        result = self.standings.get(league_key, [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def get_league_scoreboard(self, league_key, week):
        self.calls.append(("scoreboard", league_key, week))
        result = self.scoreboards.get((league_key, week), [])
        if isinstance(result, Exception):
            raise result
        return list(result)

    def get_team_roster(self, team_key, week=None):
        self.calls.append(("roster", team_key, week))
        return list(self.rosters.get(team_key, []))


def two_team_league(league_key="461.l.100", season=CURRENT_SEASON, scores=((20, 10), (15, 14), (30, 5))):
    """
    One league, two managers, team 1 vs team 2 every week with the given
    (team1, team2) scores. Returns a FakeYahooClient.
    """
    weeks = len(scores)
    t1 = f"{league_key}.t.1"
    t2 = f"{league_key}.t.2"

    league = LeagueRecord(
        league_key=league_key,
        league_id=league_key.split(".l.")[1],
        name="Sunday Funday",
        season=season,
        game_key=league_key.split(".l.")[0],
        num_teams=2,
        current_week=weeks,
        start_week=1,
        end_week=weeks,
        is_finished=True,
    )

    wins1 = sum(1 for a, b in scores if a > b)
    wins2 = sum(1 for a, b in scores if b > a)
    pf1 = float(sum(a for a, _ in scores))
    pf2 = float(sum(b for _, b in scores))
    standings = [
        TeamStanding(
            team_key=t1, team_id="1", name="Team Alpha",
            manager_guid="GUID_A", manager_nickname="Alice",
            wins=wins1, losses=wins2, points_for=pf1, points_against=pf2,
            rank=1, playoff_seed=1, is_playoff_team=True,
        ),
        TeamStanding(
            team_key=t2, team_id="2", name="Team Bravo",
            manager_guid="GUID_B", manager_nickname="Bob",
            wins=wins2, losses=wins1, points_for=pf2, points_against=pf1,
            rank=2, playoff_seed=None, is_playoff_team=False,
        ),
    ]

    scoreboards = {}
    for week, (a, b) in enumerate(scores, start=1):
        is_tie = a == b and a > 0
        winner = None
        if not is_tie and (a > 0 or b > 0):
            winner = t1 if a > b else t2
        scoreboards[(league_key, week)] = [
            MatchupRecord(
                week=week, team1_key=t1, team2_key=t2,
                team1_points=float(a), team2_points=float(b),
                is_tie=is_tie, winner_key=winner,
            )
        ]

    return FakeYahooClient(
        leagues=[league],
        standings={league_key: standings},
        scoreboards=scoreboards,
    )


def merge_clients(*fakes):
    """Fold several FakeYahooClients into the first one."""
    base = fakes[0]
    for other in fakes[1:]:
        base.leagues.extend(other.leagues)
        base.standings.update(other.standings)
        base.scoreboards.update(other.scoreboards)
        base.rosters.update(other.rosters)
    return base


def seed_store(client, **kwargs):
    """Run the aggregation job against `client` with no rate-limit sleeps."""
    kwargs.setdefault("request_delay", 0)
    kwargs.setdefault("league_delay", 0)
    return run_aggregation(SessionLocal, client, **kwargs)


@pytest.fixture(scope="session")
def app():
    # Ensure Flask is in testing mode
    os.environ["FLASK_ENV"] = "testing"

    app = create_app()
    app.config.update(
        TESTING=True,
    )
    return app


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def session(app):
    """Fresh tables per test. Commit before calling routes or the job; they share one connection."""
    s = SessionLocal()
    for table in reversed(Base.metadata.sorted_tables):
        s.execute(table.delete())
    s.commit()
    try:
        yield s
    finally:
        s.close()


@pytest.fixture()
def fake_yahoo(app):
    """Swap the app's Yahoo client for a FakeYahooClient for one test."""
    original = app.extensions["yahoo_client"]
    fake = FakeYahooClient()
    app.extensions["yahoo_client"] = fake
    try:
        yield fake
    finally:
        app.extensions["yahoo_client"] = original


@pytest.fixture()
def make_league():
    """Factory for a seeded FakeYahooClient (see two_team_league)."""
    return two_team_league
