# analysis/__init__.py

from .constants import CACHE_MAX_AGE, ONE_YEAR
from .metrics import (
    RecordLine,
    CareerTotals,
    win_pct,
    accumulate_records,
    assign_ranks,
    career_totals,
    is_championship,
    is_playoff_appearance,
)
from .fun_facts import (
    WinStreak,
    find_biggest_blowout,
    find_closest_matchup,
    find_longest_win_streak,
    find_win_streaks,
)

__all__ = [
    # constants
    "CACHE_MAX_AGE",
    "ONE_YEAR",

    # standings math
    "RecordLine",
    "CareerTotals",
    "win_pct",
    "accumulate_records",
    "assign_ranks",
    "career_totals",
    "is_championship",
    "is_playoff_appearance",

    # fun facts
    "WinStreak",
    "find_biggest_blowout",
    "find_closest_matchup",
    "find_longest_win_streak",
    "find_win_streaks",
]
