#!/usr/bin/env python3
"""
Check that the stored Yahoo tokens work and list the leagues they can see.

Reports when the access token expires, then fetches the logged-in user's
leagues straight from the API. `--path` fetches any other API path instead
and prints the raw JSON.
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

import argparse
import json
import time
from datetime import datetime, timezone

from webapp import build_yahoo_services
from webapp.config import LOG_LEVEL, YAHOO_GAME_CODE
from webapp.errors import YahooApiError, YahooAuthError
from webapp.logging_setup import configure_logging
from webapp.services.yahoo_parse import group_leagues_by_season, parse_user_leagues


def main(argv=None):
    parser = argparse.ArgumentParser(description="Verify Yahoo API access and list your leagues")
    parser.add_argument("--game-code", default=YAHOO_GAME_CODE)
    parser.add_argument("--path", default=None, help="fetch this API path and dump the JSON")
    args = parser.parse_args(argv)

    configure_logging(LOG_LEVEL)
    tokens, client = build_yahoo_services()

    stored = tokens.load_stored()
    if stored is None:
        print("[ERR] No stored tokens. Run scripts/setup_yahoo.py first.")
        sys.exit(1)

    expires = datetime.fromtimestamp(stored.expires_at / 1000, tz=timezone.utc)
    expired = "yes, will refresh" if not stored.is_valid(int(time.time() * 1000)) else "no"
    print(f"[OK] tokens found; access token expires {expires.isoformat()} (expired: {expired})")

    path = args.path or f"/users;use_login=1/games;game_codes={args.game_code}/leagues"
    try:
        data = client.get_raw(path)
    except YahooApiError as e:
        print(f"[ERR] Yahoo API returned {e.status_code}: {e.body[:500]}")
        if e.status_code == 401:
            print("      The token may be revoked. Run scripts/setup_yahoo.py again.")
        sys.exit(1)
    except YahooAuthError as e:
        print(f"[ERR] {e}")
        sys.exit(1)

    if args.path:
        print(json.dumps(data, indent=2))
        return

    seasons = group_leagues_by_season(parse_user_leagues(data))
    if not seasons:
        print(f"No {args.game_code} leagues found for this account.")
        return

    for season in seasons:
        print(f"\n{season['season']} season (game key {season['gameKey']})")
        for lg in season["leagues"]:
            print(
                f"  {lg['name']}  key={lg['leagueKey']}  id={lg['leagueId']}"
                f"  teams={lg['numTeams']}  week={lg['currentWeek']}"
            )


if __name__ == "__main__":
    main()
