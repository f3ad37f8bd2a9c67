#!/usr/bin/env python3
"""
One-time Yahoo OAuth setup.

Prints the consent URL, waits for the `code` from the redirect, trades it
for tokens and saves them (redis when REDIS_URL is set, else the token file).
"""
from __future__ import annotations

import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
sys.path.append(str(ROOT))

import argparse
import webbrowser

from webapp import build_yahoo_services
from webapp.config import LOG_LEVEL, YAHOO_REDIRECT_URI
from webapp.errors import YahooAuthError
from webapp.logging_setup import configure_logging


def main():
    parser = argparse.ArgumentParser(description="Authorize this app against Yahoo Fantasy")
    parser.add_argument("--redirect-uri", default=YAHOO_REDIRECT_URI)
    parser.add_argument("--code", default=None, help="skip the prompt and use this code")
    parser.add_argument("--no-browser", action="store_true")
    args = parser.parse_args()

    configure_logging(LOG_LEVEL)
    tokens, _ = build_yahoo_services()

    try:
        url = tokens.authorization_url(args.redirect_uri)
    except YahooAuthError as e:
        print(f"[ERR] {e}")
        sys.exit(1)

    code = args.code
    if not code:
        print("\nYahoo Fantasy OAuth setup\n")
        print("Open this URL and approve access:\n")
        print(f"  {url}\n")
        if not args.no_browser:
            webbrowser.open(url)
        print("You'll be redirected to a page that won't load. That's expected.")
        print(f"Copy the 'code' parameter from the URL ({args.redirect_uri}?code=XXXX).\n")
        code = input("Paste the code here: ").strip()

    if not code:
        print("[ERR] No code provided")
        sys.exit(1)

    print("Exchanging code for tokens...")
    try:
        saved = tokens.exchange_code(code, args.redirect_uri)
    except YahooAuthError as e:
        print(f"[ERR] {e}")
        sys.exit(1)

    where = "redis" if tokens.kv is not None else tokens.token_file
    print(f"[OK] tokens saved to {where} (access token expires at {saved.expires_at} ms)")


if __name__ == "__main__":
    main()
