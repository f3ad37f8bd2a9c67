import pytest

from conftest import merge_clients, seed_store, two_team_league
from models_aggregates import Ranking, WeeklyRanking
from models_normalized import League, Manager, Matchup, Team
from webapp.services.aggregate_stats import compute_rankings, recompute_weekly_rankings
from webapp.services.yahoo_records import MatchupRecord


def _ranking(session, guid):
    return (
        session.query(Ranking)
        .join(Manager, Manager.id == Ranking.manager_id)
        .filter(Manager.guid == guid)
        .one()
    )


def test_full_run_populates_every_table(session):
    fake = two_team_league()
    # matchup against a team we never saw in standings is ignored
    fake.scoreboards[("461.l.100", 1)].append(
        MatchupRecord(week=1, team1_key="461.l.100.t.9", team2_key="461.l.100.t.1",
                      team1_points=1.0, team2_points=2.0, winner_key="461.l.100.t.1")
    )

    summary = seed_store(fake)

    assert summary.leagues_processed == 1
    assert summary.leagues_failed == 0
    assert summary.teams_updated == 2
    assert summary.matchups_updated == 3
    assert summary.weekly_rankings_updated == 6
    assert summary.rankings_updated == 2

    session.expire_all()
    league = session.query(League).one()
    assert league.league_key == "461.l.100"
    assert league.is_finished is True
    assert session.query(Team).count() == 2
    assert session.query(Matchup).count() == 3

    alice = _ranking(session, "GUID_A")
    assert (alice.total_wins, alice.total_losses, alice.total_ties) == (3, 0, 0)
    assert alice.win_pct == pytest.approx(1.0)
    assert alice.total_points_for == pytest.approx(65.0)
    assert alice.point_diff == pytest.approx(36.0)
    assert alice.championships == 1
    assert alice.playoff_appearances == 1
    assert alice.seasons_played == 1

    bob = _ranking(session, "GUID_B")
    assert bob.total_losses == 3
    assert bob.championships == 0
    assert bob.playoff_appearances == 0


def test_summary_json_is_camel_case(session):
    payload = seed_store(two_team_league()).to_json()
    assert payload["leaguesProcessed"] == 1
    assert payload["matchupsUpdated"] == 3
    assert "updatedAt" in payload


def test_weekly_snapshots_are_cumulative(session):
    seed_store(two_team_league())
    session.expire_all()

    week2 = (
        session.query(WeeklyRanking, Manager.guid)
        .join(Manager, Manager.id == WeeklyRanking.manager_id)
        .filter(WeeklyRanking.week == 2)
        .order_by(WeeklyRanking.rank)
        .all()
    )
    assert [guid for _, guid in week2] == ["GUID_A", "GUID_B"]

    alice, _ = week2[0]
    assert (alice.wins, alice.losses, alice.ties) == (2, 0, 0)
    assert alice.points_for == pytest.approx(35.0)
    assert alice.points_against == pytest.approx(24.0)


def test_rerun_is_idempotent_and_resumes_from_current_week(session):
    fake = two_team_league()
    seed_store(fake)
    fake.calls.clear()

    summary = seed_store(fake)

    scoreboard_weeks = [c[2] for c in fake.calls if c[0] == "scoreboard"]
    assert scoreboard_weeks == [3]
    assert summary.weekly_rankings_updated == 6

    session.expire_all()
    assert session.query(League).count() == 1
    assert session.query(Manager).count() == 2
    assert session.query(Team).count() == 2
    assert session.query(Matchup).count() == 3
    assert session.query(WeeklyRanking).count() == 6
    assert session.query(Ranking).count() == 2


def test_recompute_weekly_rankings_twice_gives_same_rows(session):
    seed_store(two_team_league())
    session.expire_all()
    league = session.query(League).one()

    def snapshot():
        return sorted(
            (r.manager_id, r.week, r.rank, r.wins, r.losses, r.points_for)
            for r in session.query(WeeklyRanking).all()
        )

    before = snapshot()
    assert recompute_weekly_rankings(session, league.id, 3) == 2
    session.commit()
    assert snapshot() == before


def test_tied_records_rank_by_manager_id(session):
    seed_store(two_team_league(scores=((10, 10),)))
    session.expire_all()

    rows = session.query(WeeklyRanking).order_by(WeeklyRanking.rank).all()
    assert [(r.ties, r.rank) for r in rows] == [(1, 1), (1, 2)]
    assert rows[0].manager_id < rows[1].manager_id


def test_default_season_is_current_year(session):
    fake = merge_clients(two_team_league(), two_team_league("390.l.5", season="2019"))

    summary = seed_store(fake)

    assert summary.leagues_processed == 1
    assert not any(c[0] == "standings" and c[1] == "390.l.5" for c in fake.calls)


def test_explicit_season_filter(session):
    fake = merge_clients(two_team_league(), two_team_league("390.l.5", season="2019"))

    summary = seed_store(fake, season="2019")

    assert summary.leagues_processed == 1
    session.expire_all()
    assert [lg.league_key for lg in session.query(League).all()] == ["390.l.5"]


def test_all_seasons_seeds_history(session):
    fake = merge_clients(two_team_league(), two_team_league("390.l.5", season="2019"))

    summary = seed_store(fake, all_seasons=True)

    assert summary.leagues_processed == 2
    session.expire_all()
    alice = _ranking(session, "GUID_A")
    assert alice.seasons_played == 2
    assert alice.championships == 2
    assert alice.total_wins == 6


def test_league_failure_does_not_stop_the_run(session):
    fake = merge_clients(two_team_league("461.l.100"), two_team_league("461.l.200"))
    fake.standings["461.l.100"] = RuntimeError("provider hiccup")

    summary = seed_store(fake)

    assert summary.leagues_processed == 1
    assert summary.leagues_failed == 1

    session.expire_all()
    assert session.query(Matchup).count() == 3
    assert _ranking(session, "GUID_A").seasons_played == 1


def test_provider_failure_listing_leagues_propagates(session):
    class Broken:
        def get_user_leagues(self, game_code="nfl"):
            raise RuntimeError("no tokens")

    with pytest.raises(RuntimeError):
        seed_store(Broken())


def test_championship_requires_finished_setting(session):
    fake = two_team_league()
    fake.leagues[0].is_finished = False
    seed_store(fake)
    session.expire_all()

    assert _ranking(session, "GUID_A").championships == 1

    compute_rankings(session, championship_requires_finished=True)
    session.commit()
    assert _ranking(session, "GUID_A").championships == 0



def test_failed_week_is_refetched_on_next_run(session):
    fake = two_team_league(scores=((20, 10), (15, 14), (30, 5), (12, 18)))
    fake.leagues[0].is_finished = False
    fake.leagues[0].current_week = 1
    seed_store(fake)

    # provider moves on to week 4 but week 2 fails mid-run
    fake.leagues[0].current_week = 4
    week2 = fake.scoreboards[("461.l.100", 2)]
    fake.scoreboards[("461.l.100", 2)] = RuntimeError("scoreboard timeout")
    summary = seed_store(fake)
    assert summary.leagues_failed == 1

    session.expire_all()
    assert session.query(League).one().current_week == 1

    fake.scoreboards[("461.l.100", 2)] = week2
    fake.calls.clear()
    summary = seed_store(fake)
    assert summary.leagues_failed == 0

    scoreboard_weeks = [c[2] for c in fake.calls if c[0] == "scoreboard"]
    assert scoreboard_weeks == [1, 2, 3, 4]

    session.expire_all()
    weeks = sorted(w for (w,) in session.query(Matchup.week).all())
    assert weeks == [1, 2, 3, 4]
    assert session.query(League).one().current_week == 4


def test_rankings_drop_managers_without_teams(session):
    seed_store(two_team_league())
    ghost = Manager(guid="GUID_GHOST", nickname="Ghost")
    session.add(ghost)
    session.flush()
    session.add(Ranking(manager_id=ghost.id, total_wins=9))
    session.commit()

    assert compute_rankings(session) == 2
    session.commit()
    session.expire_all()

    guids = sorted(
        guid for (guid,) in session.query(Manager.guid).join(Ranking, Ranking.manager_id == Manager.id).all()
    )
    assert guids == ["GUID_A", "GUID_B"]
