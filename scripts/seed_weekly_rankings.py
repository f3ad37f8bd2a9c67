#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

import argparse

from db import SessionLocal, init_db
from models_normalized import League
from webapp.config import LOG_LEVEL
from webapp.logging_setup import configure_logging
from webapp.services.aggregate_stats import (
    recompute_all_weekly_rankings,
    recompute_league_weekly_rankings,
)


def main():
    parser = argparse.ArgumentParser(description="Rebuild weekly ranking snapshots from stored matchups")
    parser.add_argument("--league-key", default=None, help="only this league (e.g. 449.l.730730)")
    args = parser.parse_args()

    configure_logging(LOG_LEVEL)
    init_db()

    session = SessionLocal()
    try:
        if args.league_key:
            league = session.query(League).filter_by(league_key=args.league_key).one_or_none()
            if league is None:
                print(f"[ERR] unknown league {args.league_key}")
                sys.exit(1)
            n = recompute_league_weekly_rankings(session, league.id)
        else:
            n = recompute_all_weekly_rankings(session)
        session.commit()
        print(f"[OK] wrote {n} weekly ranking rows")
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


if __name__ == "__main__":
    main()
