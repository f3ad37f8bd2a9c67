# webapp/config.py

import os
from dotenv import load_dotenv

# Load .env into environment variables
load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# ---------------------------------------------------------------------------
# Module-level constants (for services and scripts)
# ---------------------------------------------------------------------------

# Yahoo OAuth app credentials
YAHOO_CLIENT_ID = os.getenv("YAHOO_CLIENT_ID")
YAHOO_CLIENT_SECRET = os.getenv("YAHOO_CLIENT_SECRET")
YAHOO_REDIRECT_URI = os.getenv("YAHOO_REDIRECT_URI", "https://localhost:3000/callback")

# Which sport's leagues to pull, and the game key of the running season.
# Bare league ids in URLs are resolved against CURRENT_GAME_KEY.
YAHOO_GAME_CODE = os.getenv("YAHOO_GAME_CODE", "nfl")
CURRENT_GAME_KEY = os.getenv("CURRENT_GAME_KEY", "461")

YAHOO_HTTP_TIMEOUT = float(os.getenv("YAHOO_HTTP_TIMEOUT", "30"))

# Token persistence: redis when configured, local JSON file otherwise
REDIS_URL = os.getenv("REDIS_URL")
TOKEN_FILE = os.getenv("TOKEN_FILE", ".yahoo-tokens.json")

# Shared secrets for the cron + token setup endpoints
CRON_SECRET = os.getenv("CRON_SECRET")
SETUP_SECRET = os.getenv("SETUP_SECRET")

# Fixed pauses between provider calls (rate limiting), in milliseconds
PROVIDER_REQUEST_DELAY_MS = int(os.getenv("PROVIDER_REQUEST_DELAY_MS", "50"))
PROVIDER_LEAGUE_DELAY_MS = int(os.getenv("PROVIDER_LEAGUE_DELAY_MS", "100"))

# rank == 1 alone counts as a title unless this is on
CHAMPIONSHIP_REQUIRES_FINISHED = _env_bool("CHAMPIONSHIP_REQUIRES_FINISHED", False)

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Flask Config object (used by create_app)
# ---------------------------------------------------------------------------

class Config:
    YAHOO_CLIENT_ID = YAHOO_CLIENT_ID
    YAHOO_CLIENT_SECRET = YAHOO_CLIENT_SECRET
    YAHOO_REDIRECT_URI = YAHOO_REDIRECT_URI
    YAHOO_GAME_CODE = YAHOO_GAME_CODE
    YAHOO_HTTP_TIMEOUT = YAHOO_HTTP_TIMEOUT
    CURRENT_GAME_KEY = CURRENT_GAME_KEY

    REDIS_URL = REDIS_URL
    TOKEN_FILE = TOKEN_FILE

    CRON_SECRET = CRON_SECRET
    SETUP_SECRET = SETUP_SECRET

    PROVIDER_REQUEST_DELAY_MS = PROVIDER_REQUEST_DELAY_MS
    PROVIDER_LEAGUE_DELAY_MS = PROVIDER_LEAGUE_DELAY_MS
    CHAMPIONSHIP_REQUIRES_FINISHED = CHAMPIONSHIP_REQUIRES_FINISHED

    LOG_LEVEL = LOG_LEVEL
