#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

import argparse

from db import SessionLocal, init_db
from webapp import build_yahoo_services
from webapp.config import (
    CHAMPIONSHIP_REQUIRES_FINISHED,
    LOG_LEVEL,
    PROVIDER_LEAGUE_DELAY_MS,
    PROVIDER_REQUEST_DELAY_MS,
    YAHOO_GAME_CODE,
)
from webapp.logging_setup import configure_logging
from webapp.services.aggregate_stats import run_aggregation


def main():
    parser = argparse.ArgumentParser(description="Update the current (or a given) season from Yahoo")
    parser.add_argument("--season", default=None, help="e.g. 2024; defaults to this calendar year")
    parser.add_argument("--require-finished", action="store_true", default=CHAMPIONSHIP_REQUIRES_FINISHED,
                        help="only count rank 1 as a title once the league is finished")
    args = parser.parse_args()

    configure_logging(LOG_LEVEL)
    init_db()
    _, client = build_yahoo_services()

    summary = run_aggregation(
        SessionLocal,
        client,
        season=args.season,
        request_delay=PROVIDER_REQUEST_DELAY_MS / 1000.0,
        league_delay=PROVIDER_LEAGUE_DELAY_MS / 1000.0,
        championship_requires_finished=bool(args.require_finished),
        game_code=YAHOO_GAME_CODE,
    )

    print(
        f"[OK] {summary.leagues_processed} leagues ({summary.leagues_failed} failed), "
        f"{summary.teams_updated} teams, {summary.matchups_updated} matchups, "
        f"{summary.weekly_rankings_updated} weekly rows, {summary.rankings_updated} rankings"
    )
    if summary.leagues_failed:
        sys.exit(1)


if __name__ == "__main__":
    main()
