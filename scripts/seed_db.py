#!/usr/bin/env python3
"""
Initial load: every league the Yahoo account has ever been in, every week.
Safe to re-run; all writes are upserts.
"""
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
    parser = argparse.ArgumentParser(description="Seed the database with all seasons from Yahoo")
    parser.add_argument("--game-code", default=YAHOO_GAME_CODE)
    args = parser.parse_args()

    configure_logging(LOG_LEVEL)
    init_db()
    _, client = build_yahoo_services()

    print("Seeding all seasons...")
    summary = run_aggregation(
        SessionLocal,
        client,
        all_seasons=True,
        request_delay=PROVIDER_REQUEST_DELAY_MS / 1000.0,
        league_delay=PROVIDER_LEAGUE_DELAY_MS / 1000.0,
        championship_requires_finished=CHAMPIONSHIP_REQUIRES_FINISHED,
        game_code=args.game_code,
    )
    print(
        f"[OK] seeded {summary.leagues_processed} leagues "
        f"({summary.leagues_failed} failed): {summary.teams_updated} teams, "
        f"{summary.matchups_updated} matchups, {summary.rankings_updated} managers ranked"
    )


if __name__ == "__main__":
    main()
