from types import SimpleNamespace as NS

from analysis.fun_facts import (
    find_biggest_blowout,
    find_closest_matchup,
    find_longest_win_streak,
    find_win_streaks,
    split_winner_loser,
)


def _m(week, p1, p2, team1_id=1, team2_id=2, league_id=1, winner_id="auto"):
    if winner_id == "auto":
        winner_id = None if p1 is None or p1 == p2 else (team1_id if p1 > p2 else team2_id)
    return NS(
        league_id=league_id, week=week,
        team1_id=team1_id, team2_id=team2_id,
        team1_points=p1, team2_points=p2,
        winner_id=winner_id,
    )


def test_blowout_is_max_margin_among_scored_matchups():
    ms = [_m(1, 100, 60), _m(2, 80, 150), _m(3, None, None), _m(4, 90, 89)]
    assert find_biggest_blowout(ms).week == 2


def test_closest_ignores_unplayed_and_shutouts():
    ms = [
        _m(1, 0, 0),       # unplayed
        _m(2, 50, 0),      # one side didn't score
        _m(3, 101.5, 100),
        _m(4, 120, 119.8),
    ]
    assert find_closest_matchup(ms).week == 4


def test_no_matchups_gives_none():
    assert find_biggest_blowout([]) is None
    assert find_closest_matchup([]) is None
    assert find_longest_win_streak([]) is None


def test_split_winner_loser():
    assert split_winner_loser(_m(1, 30, 5, team1_id=7, team2_id=8)) == (7, 30.0, 8, 5.0)
    assert split_winner_loser(_m(1, 5, 30, team1_id=7, team2_id=8)) == (8, 30.0, 7, 5.0)


def test_streak_breaks_on_week_gap():
    A, B = 1, 2
    ms = [
        _m(1, 10, 5, team1_id=A, team2_id=B),
        _m(2, 10, 5, team1_id=A, team2_id=B),
        _m(3, 10, 5, team1_id=A, team2_id=B),
        _m(4, 5, 10, team1_id=A, team2_id=B),  # B wins
        # week 5 missing
        _m(6, 10, 5, team1_id=A, team2_id=B),
        _m(7, 10, 5, team1_id=A, team2_id=B),
    ]
    longest = find_longest_win_streak(ms)
    assert longest.team_id == A
    assert longest.length == 3
    assert (longest.start_week, longest.end_week) == (1, 3)

    a_runs = sorted((s.start_week, s.end_week) for s in find_win_streaks(ms) if s.team_id == A)
    assert a_runs == [(1, 3), (6, 7)]


def test_streak_does_not_span_leagues():
    ms = [
        _m(1, 10, 5, league_id=1),
        _m(2, 10, 5, league_id=1),
        _m(3, 10, 5, league_id=2),
    ]
    lengths = sorted(s.length for s in find_win_streaks(ms))
    assert lengths == [1, 2]


def test_streak_order_independent_of_input_order():
    ms = [_m(w, 10, 5) for w in (3, 1, 2)]
    assert find_longest_win_streak(ms).length == 3
