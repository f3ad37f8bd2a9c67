from typing import Dict

YAHOO_FANTASY_API_BASE = "https://fantasysports.yahooapis.com/fantasy/v2"
YAHOO_TOKEN_URL = "https://api.login.yahoo.com/oauth2/get_token"
YAHOO_AUTH_URL = "https://api.login.yahoo.com/oauth2/request_auth"
YAHOO_SCOPE = "fspt-r"

# Refresh this many ms before the provider says the token expires
TOKEN_EXPIRY_MARGIN_MS = 60_000

TOKEN_KV_KEY = "yahoo-tokens"

# Used when the provider omits end_week on a finished league
DEFAULT_END_WEEK = 17

# ---------------------------------------------------------------------------
# HTTP cache windows (seconds) for the read API
# ---------------------------------------------------------------------------

ONE_YEAR = 31_536_000

# Current-season max-age per resource. Historical seasons always get ONE_YEAR.
CACHE_MAX_AGE: Dict[str, int] = {
    "league": 300,
    "my_leagues": 300,
    "standings": 120,
    "scoreboard": 60,
    "roster": 120,
    "rankings": 300,
    "weekly_rankings": 300,
    "fun_facts": 300,
    "manager": 300,
}
