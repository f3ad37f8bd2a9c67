#!/usr/bin/env python3
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

import argparse
from datetime import datetime, timezone

from webapp import build_yahoo_services
from webapp.config import LOG_LEVEL
from webapp.logging_setup import configure_logging


def main():
    parser = argparse.ArgumentParser(description="Force a Yahoo token refresh")
    parser.parse_args()

    configure_logging(LOG_LEVEL)
    tokens, _ = build_yahoo_services()

    current = tokens.load_stored()
    if current is None:
        print("[ERR] No stored tokens. Run scripts/setup_yahoo.py first.")
        sys.exit(1)

    fresh = tokens.refresh(current)
    expires = datetime.fromtimestamp(fresh.expires_at / 1000, tz=timezone.utc)
    rotated = "rotated" if fresh.refresh_token != current.refresh_token else "unchanged"
    print(f"[OK] new access token expires {expires.isoformat()} (refresh token {rotated})")


if __name__ == "__main__":
    main()
