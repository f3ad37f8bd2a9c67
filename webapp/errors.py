# webapp/errors.py
"""
Exceptions raised by the Yahoo client and token store.

Routes don't catch these; the handlers registered in `create_app`
turn them into JSON error responses.
"""

from __future__ import annotations


class YahooApiError(Exception):
    """Non-2xx response from the Yahoo Fantasy API."""

    def __init__(self, status_code: int, body: str = ""):
        self.status_code = int(status_code)
        self.body = body or ""
        super().__init__(f"Yahoo API Error: {self.status_code} - {self.body[:500]}")


class YahooAuthError(Exception):
    """Base class for OAuth token problems."""


class TokensNotConfiguredError(YahooAuthError):
    def __init__(self, message: str | None = None):
        super().__init__(
            message
            or "No Yahoo tokens found. Run 'python scripts/setup_yahoo.py' "
            "or POST them to /api/auth/setup-tokens."
        )


class TokenRefreshError(YahooAuthError):
    """The OAuth endpoint rejected a refresh / code exchange, or credentials are missing."""
