# webapp/services/yahoo_auth.py
"""
Yahoo OAuth2 token management.

Tokens live in redis (key `yahoo-tokens`) when REDIS_URL is configured and
in a local JSON file otherwise. The stored JSON keeps the camelCase shape
`{"accessToken", "refreshToken", "expiresAt"}` with `expiresAt` in epoch
milliseconds, so tokens written by older tooling load unchanged.

Expired access tokens are refreshed lazily on the next `get_valid_token()`;
there are no background timers.
"""

from __future__ import annotations

import json
import logging
import os
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

import redis
from oauthlib.oauth2 import OAuth2Error
from requests.auth import HTTPBasicAuth
from requests_oauthlib import OAuth2Session

from analysis.constants import (
    TOKEN_EXPIRY_MARGIN_MS,
    TOKEN_KV_KEY,
    YAHOO_AUTH_URL,
    YAHOO_SCOPE,
    YAHOO_TOKEN_URL,
)
from webapp.errors import TokenRefreshError, TokensNotConfiguredError

logger = logging.getLogger(__name__)


@dataclass
class TokenData:
    access_token: str
    refresh_token: str
    expires_at: int  # epoch ms

    def is_valid(self, now_ms: int) -> bool:
        return now_ms < self.expires_at - TOKEN_EXPIRY_MARGIN_MS

    def to_json(self) -> Dict[str, Any]:
        return {
            "accessToken": self.access_token,
            "refreshToken": self.refresh_token,
            "expiresAt": self.expires_at,
        }

    @classmethod
    def from_json(cls, payload: Union[str, bytes, Dict[str, Any]]) -> "TokenData":
        if isinstance(payload, (str, bytes)):
            payload = json.loads(payload)
        return cls(
            access_token=payload["accessToken"],
            refresh_token=payload["refreshToken"],
            expires_at=int(payload["expiresAt"]),
        )


class YahooTokenStore:
    """
    One instance per process. Holds the in-memory token cache and knows
    where the durable copy lives.
    """

    def __init__(
        self,
        client_id: Optional[str],
        client_secret: Optional[str],
        redis_url: Optional[str] = None,
        token_file: str = ".yahoo-tokens.json",
        kv=None,
        oauth_session: Callable[..., OAuth2Session] = OAuth2Session,
        clock: Callable[[], float] = time.time,
        token_url: str = YAHOO_TOKEN_URL,
        timeout: float = 30,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.token_file = token_file
        self.oauth_session = oauth_session
        self.clock = clock
        self.token_url = token_url
        self.timeout = timeout

        if kv is None and redis_url:
            kv = redis.from_url(redis_url, decode_responses=True)
        self.kv = kv

        self._cached: Optional[TokenData] = None

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    # ---------- public API ----------

    def get_valid_token(self) -> str:
        now = self._now_ms()
        if self._cached is not None and self._cached.is_valid(now):
            return self._cached.access_token

        stored = self.load_stored()
        if stored is None:
            raise TokensNotConfiguredError()

        if stored.is_valid(now):
            self._cached = stored
            return stored.access_token

        logger.info("Yahoo access token expired, refreshing")
        self._cached = self.refresh(stored)
        return self._cached.access_token

    def refresh(self, tokens: TokenData) -> TokenData:
        """
        Trade `tokens.refresh_token` for a new pair and persist it.

        If another process rotated the stored token first, its pair is kept
        and returned instead of ours.
        """
        try:
            with self._session() as oauth:
                data = oauth.refresh_token(
                    self.token_url,
                    refresh_token=tokens.refresh_token,
                    auth=HTTPBasicAuth(self.client_id, self.client_secret),
                    timeout=self.timeout,
                )
        except (OAuth2Error, ValueError) as exc:
            logger.error("Failed to refresh Yahoo token: %s", exc)
            raise TokenRefreshError(f"Failed to refresh Yahoo token: {exc}") from exc

        fresh = self._from_response(data, fallback_refresh=tokens.refresh_token)
        saved = self._swap(tokens.refresh_token, fresh)
        self._cached = saved
        return saved

    def exchange_code(self, code: str, redirect_uri: str) -> TokenData:
        try:
            with self._session(redirect_uri=redirect_uri) as oauth:
                data = oauth.fetch_token(
                    self.token_url,
                    code=code,
                    auth=HTTPBasicAuth(self.client_id, self.client_secret),
                    timeout=self.timeout,
                )
        except (OAuth2Error, ValueError) as exc:
            logger.error("Failed to exchange code for tokens: %s", exc)
            raise TokenRefreshError(f"Failed to exchange code for tokens: {exc}") from exc

        tokens = self._from_response(data)
        self.set_tokens(tokens)
        return tokens

    def set_tokens(self, tokens: TokenData) -> None:
        if self.kv is not None:
            self.kv.set(TOKEN_KV_KEY, json.dumps(tokens.to_json()))
        else:
            self._write_file(tokens)
        self._cached = tokens

    def authorization_url(self, redirect_uri: str) -> str:
        if not self.client_id:
            raise TokenRefreshError("Missing YAHOO_CLIENT_ID")
        oauth = self.oauth_session(self.client_id, redirect_uri=redirect_uri, scope=[YAHOO_SCOPE])
        url, _state = oauth.authorization_url(YAHOO_AUTH_URL)
        return url

    # ---------- OAuth endpoint ----------

    def _session(self, redirect_uri: Optional[str] = None) -> OAuth2Session:
        if not self.client_id or not self.client_secret:
            raise TokenRefreshError(
                "Missing Yahoo API credentials. Set YAHOO_CLIENT_ID and YAHOO_CLIENT_SECRET."
            )
        return self.oauth_session(self.client_id, redirect_uri=redirect_uri)

    def _from_response(self, data: Dict[str, Any], fallback_refresh: Optional[str] = None) -> TokenData:
        # Yahoo rotates refresh tokens; keep the old one only if none came back
        return TokenData(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or fallback_refresh,
            expires_at=self._now_ms() + int(data.get("expires_in", 3600)) * 1000,
        )

    # ---------- persistence ----------

    def load_stored(self) -> Optional[TokenData]:
        """Durable copy (redis, else file), migrating a file token into redis once."""
        if self.kv is None:
            return self._read_file()

        raw = self.kv.get(TOKEN_KV_KEY)
        if raw:
            return TokenData.from_json(raw)

        # one-time move from the local file into redis
        file_tokens = self._read_file()
        if file_tokens is not None:
            logger.info("Migrating Yahoo tokens from %s to redis", self.token_file)
            self.kv.set(TOKEN_KV_KEY, json.dumps(file_tokens.to_json()))
        return file_tokens

    def _swap(self, rotated_refresh: str, fresh: TokenData) -> TokenData:
        """Write `fresh` only if the stored refresh token is still `rotated_refresh`."""
        if self.kv is None:
            current = self._read_file()
            if current is not None and current.refresh_token != rotated_refresh:
                logger.info("Token file changed during refresh; keeping stored tokens")
                return current
            self._write_file(fresh)
            return fresh

        def _txn(pipe) -> TokenData:
            raw = pipe.get(TOKEN_KV_KEY)
            current = TokenData.from_json(raw) if raw else None
            if current is not None and current.refresh_token != rotated_refresh:
                logger.info("Tokens rotated concurrently; adopting stored tokens")
                return current
            pipe.multi()
            pipe.set(TOKEN_KV_KEY, json.dumps(fresh.to_json()))
            return fresh

        return self.kv.transaction(_txn, TOKEN_KV_KEY, value_from_callable=True)

    def _read_file(self) -> Optional[TokenData]:
        if not self.token_file or not os.path.exists(self.token_file):
            return None
        try:
            with open(self.token_file, "r", encoding="utf-8") as f:
                return TokenData.from_json(json.load(f))
        except (OSError, ValueError, KeyError) as exc:
            logger.warning("Ignoring unreadable token file %s: %s", self.token_file, exc)
            return None

    def _write_file(self, tokens: TokenData) -> None:
        with open(self.token_file, "w", encoding="utf-8") as f:
            json.dump(tokens.to_json(), f, indent=2)
