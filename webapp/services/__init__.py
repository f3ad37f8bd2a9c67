# webapp/services/__init__.py

from .aggregate_stats import (
    AggregationSummary,
    compute_rankings,
    recompute_all_weekly_rankings,
    recompute_league_weekly_rankings,
    recompute_weekly_rankings,
    run_aggregation,
)
from .yahoo_auth import TokenData, YahooTokenStore
from .yahoo_client import YahooFantasyClient

__all__ = [
    "AggregationSummary",
    "compute_rankings",
    "recompute_all_weekly_rankings",
    "recompute_league_weekly_rankings",
    "recompute_weekly_rankings",
    "run_aggregation",
    "TokenData",
    "YahooTokenStore",
    "YahooFantasyClient",
]
