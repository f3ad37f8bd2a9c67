#!/usr/bin/env python3
"""
Rebuild the all-time rankings table from stored teams (no Yahoo calls)
and list rank-1 teams whose league isn't finished yet, i.e. the rows the
championship rule disagrees on.
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

import argparse

from db import SessionLocal, init_db
from models_normalized import League, Manager, Team
from webapp.config import CHAMPIONSHIP_REQUIRES_FINISHED, LOG_LEVEL
from webapp.logging_setup import configure_logging
from webapp.services.aggregate_stats import compute_rankings


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("--require-finished", action="store_true", default=CHAMPIONSHIP_REQUIRES_FINISHED)
    args = parser.parse_args()

    configure_logging(LOG_LEVEL)
    init_db()

    session = SessionLocal()
    try:
        provisional = (
            session.query(Team, League, Manager)
            .join(League, Team.league_id == League.id)
            .join(Manager, Team.manager_id == Manager.id)
            .filter(Team.rank == 1, League.is_finished.isnot(True))
            .order_by(League.season)
            .all()
        )
        for team, league, manager in provisional:
            print(f"[WARN] {league.season} {league.name}: {manager.nickname} is rank 1 but the league isn't finished")

        n = compute_rankings(session, championship_requires_finished=bool(args.require_finished))
        session.commit()
        rule = "rank 1 + finished" if args.require_finished else "rank 1"
        print(f"[OK] rebuilt rankings for {n} managers (championship = {rule})")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
