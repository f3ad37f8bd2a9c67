import base64
import json
from urllib.parse import parse_qs, urlparse

import pytest
import requests
from requests.adapters import BaseAdapter
from requests_oauthlib import OAuth2Session

from analysis.constants import TOKEN_KV_KEY
from webapp.errors import TokenRefreshError, TokensNotConfiguredError
from webapp.services.yahoo_auth import TokenData, YahooTokenStore

NOW = 1_700_000_000.0
NOW_MS = int(NOW * 1000)


class FakeRedis:
    """Just enough of redis.Redis for the token store (decode_responses=True)."""

    def __init__(self):
        self.data = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value
        return True

    def multi(self):
        pass

    def transaction(self, func, *watches, value_from_callable=False):
        result = func(self)
        return result if value_from_callable else [True]


class FakeTokenEndpoint(BaseAdapter):
    """Transport adapter answering token requests with canned JSON bodies."""

    def __init__(self, *replies):
        super().__init__()
        self.replies = list(replies)
        self.requests = []

    def send(self, request, **kwargs):
        self.requests.append(request)
        status_code, payload = self.replies.pop(0)
        resp = requests.Response()
        resp.status_code = status_code
        resp._content = json.dumps(payload).encode("utf-8")
        resp.encoding = "utf-8"
        resp.headers["Content-Type"] = "application/json"
        resp.url = request.url
        resp.request = request
        return resp

    def close(self):
        pass

    def form(self, i=0):
        body = self.requests[i].body
        if isinstance(body, bytes):
            body = body.decode("utf-8")
        return {k: v[0] for k, v in parse_qs(body).items()}


def _sessions(endpoint):
    """OAuth2Session factory whose sessions talk to `endpoint`."""

    def factory(*args, **kwargs):
        s = OAuth2Session(*args, **kwargs)
        s.mount("https://", endpoint)
        return s

    return factory


def _tokens(access="old-access", refresh="old-refresh", expires_at=NOW_MS + 3_600_000):
    return TokenData(access_token=access, refresh_token=refresh, expires_at=expires_at)


def _store(tmp_path, kv=None, endpoint=None, client_id="cid", client_secret="secret"):
    return YahooTokenStore(
        client_id,
        client_secret,
        token_file=str(tmp_path / "tokens.json"),
        kv=kv,
        oauth_session=_sessions(endpoint or FakeTokenEndpoint()),
        clock=lambda: NOW,
    )


def _refreshed(access="new-access", refresh="new-refresh", expires_in=3600):
    payload = {"access_token": access, "token_type": "bearer", "expires_in": expires_in}
    if refresh is not None:
        payload["refresh_token"] = refresh
    return 200, payload


# ---------- TokenData ----------


def test_token_validity_uses_sixty_second_margin():
    t = _tokens(expires_at=NOW_MS + 60_000)
    assert not t.is_valid(NOW_MS)
    assert t.is_valid(NOW_MS - 1)


def test_token_json_is_camel_case_and_loads_back():
    raw = json.dumps(_tokens().to_json())
    assert json.loads(raw)["refreshToken"] == "old-refresh"
    assert TokenData.from_json(raw) == _tokens()


# ---------- get_valid_token ----------


def test_nothing_stored_raises(tmp_path):
    with pytest.raises(TokensNotConfiguredError):
        _store(tmp_path).get_valid_token()

    with pytest.raises(TokensNotConfiguredError):
        _store(tmp_path, kv=FakeRedis()).get_valid_token()

def test_valid_stored_token_returned_without_refresh(tmp_path):
    kv = FakeRedis()
    kv.set(TOKEN_KV_KEY, json.dumps(_tokens().to_json()))
    endpoint = FakeTokenEndpoint()
    store = _store(tmp_path, kv=kv, endpoint=endpoint)

    assert store.get_valid_token() == "old-access"

    # served from cache afterwards, even if the kv goes away
    kv.data.clear()
    assert store.get_valid_token() == "old-access"
    assert endpoint.requests == []


def test_expired_token_is_refreshed_and_persisted(tmp_path):
    kv = FakeRedis()
    kv.set(TOKEN_KV_KEY, json.dumps(_tokens(expires_at=NOW_MS - 1).to_json()))
    endpoint = FakeTokenEndpoint(_refreshed())
    store = _store(tmp_path, kv=kv, endpoint=endpoint)

    assert store.get_valid_token() == "new-access"

    [req] = endpoint.requests
    assert req.method == "POST"
    assert req.url == "https://api.login.yahoo.com/oauth2/get_token"
    form = endpoint.form()
    assert form["grant_type"] == "refresh_token"
    assert form["refresh_token"] == "old-refresh"
    assert "client_secret" not in form
    basic = base64.b64encode(b"cid:secret").decode("ascii")
    assert req.headers["Authorization"] == f"Basic {basic}"

    saved = TokenData.from_json(kv.get(TOKEN_KV_KEY))
    assert saved.refresh_token == "new-refresh"
    assert saved.expires_at == NOW_MS + 3_600_000


def test_refresh_keeps_old_refresh_token_when_none_returned(tmp_path):
    store = _store(tmp_path, kv=FakeRedis(), endpoint=FakeTokenEndpoint(_refreshed(refresh=None)))
    fresh = store.refresh(_tokens())
    assert fresh.access_token == "new-access"
    assert fresh.refresh_token == "old-refresh"


def test_concurrent_rotation_adopts_stored_tokens(tmp_path):
    kv = FakeRedis()
    winner = _tokens(access="their-access", refresh="their-refresh")
    kv.set(TOKEN_KV_KEY, json.dumps(winner.to_json()))
    store = _store(tmp_path, kv=kv, endpoint=FakeTokenEndpoint(_refreshed()))

    # we still hold the pre-rotation pair
    result = store.refresh(_tokens(expires_at=NOW_MS - 1))

    assert result == winner
    assert TokenData.from_json(kv.get(TOKEN_KV_KEY)) == winner
    assert store.get_valid_token() == "their-access"


def test_refresh_failure_raises(tmp_path):
    kv = FakeRedis()
    kv.set(TOKEN_KV_KEY, json.dumps(_tokens().to_json()))
    endpoint = FakeTokenEndpoint((400, {"error": "invalid_grant", "error_description": "token revoked"}))
    store = _store(tmp_path, kv=kv, endpoint=endpoint)

    with pytest.raises(TokenRefreshError) as exc:
        store.refresh(_tokens())
    assert "invalid_grant" in str(exc.value)
    assert TokenData.from_json(kv.get(TOKEN_KV_KEY)) == _tokens()


def test_response_without_access_token_raises(tmp_path):
    store = _store(tmp_path, kv=FakeRedis(), endpoint=FakeTokenEndpoint((200, {"expires_in": 3600})))

    with pytest.raises(TokenRefreshError):
        store.refresh(_tokens())


@pytest.mark.parametrize("cid,secret", [(None, "secret"), ("cid", None), ("", "")])
def test_missing_credentials_raise_before_any_request(tmp_path, cid, secret):
    endpoint = FakeTokenEndpoint()
    store = _store(tmp_path, endpoint=endpoint, client_id=cid, client_secret=secret)

    with pytest.raises(TokenRefreshError):
        store.refresh(_tokens())
    with pytest.raises(TokenRefreshError):
        store.exchange_code("abc", "https://localhost:3000/callback")
    assert endpoint.requests == []


# ---------- file mode ----------


def test_file_mode_round_trip(tmp_path):
    store = _store(tmp_path)
    store.set_tokens(_tokens())

    with open(store.token_file, encoding="utf-8") as f:
        assert json.load(f)["accessToken"] == "old-access"

    fresh_store = _store(tmp_path)
    assert fresh_store.get_valid_token() == "old-access"


def test_file_mode_refresh_writes_file(tmp_path):
    store = _store(tmp_path, endpoint=FakeTokenEndpoint(_refreshed()))
    store.set_tokens(_tokens(expires_at=NOW_MS - 1))
    store._cached = None

    assert store.get_valid_token() == "new-access"
    assert store.load_stored().refresh_token == "new-refresh"


def test_unreadable_token_file_counts_as_missing(tmp_path):
    path = tmp_path / "tokens.json"
    path.write_text("{not json", encoding="utf-8")

    with pytest.raises(TokensNotConfiguredError):
        _store(tmp_path).get_valid_token()


def test_file_token_migrates_into_redis_once(tmp_path):
    _store(tmp_path).set_tokens(_tokens())
    kv = FakeRedis()

    store = _store(tmp_path, kv=kv)
    assert store.get_valid_token() == "old-access"
    assert TokenData.from_json(kv.get(TOKEN_KV_KEY)) == _tokens()


# ---------- code exchange ----------


def test_exchange_code_stores_tokens(tmp_path):
    kv = FakeRedis()
    endpoint = FakeTokenEndpoint(_refreshed(access="a1", refresh="r1"))
    store = _store(tmp_path, kv=kv, endpoint=endpoint)

    tokens = store.exchange_code("abc", "https://localhost:3000/callback")

    assert tokens.access_token == "a1"
    form = endpoint.form()
    assert form["grant_type"] == "authorization_code"
    assert form["code"] == "abc"
    assert form["redirect_uri"] == "https://localhost:3000/callback"
    assert endpoint.requests[0].headers["Authorization"].startswith("Basic ")
    assert TokenData.from_json(kv.get(TOKEN_KV_KEY)).refresh_token == "r1"


def test_authorization_url(tmp_path):
    url = _store(tmp_path).authorization_url("https://localhost:3000/callback")
    assert url.startswith("https://api.login.yahoo.com/oauth2/request_auth?")

    query = parse_qs(urlparse(url).query)
    assert query["client_id"] == ["cid"]
    assert query["response_type"] == ["code"]
    assert query["redirect_uri"] == ["https://localhost:3000/callback"]
    assert query["scope"] == ["fspt-r"]
    assert query["state"][0]

    with pytest.raises(TokenRefreshError):
        _store(tmp_path, client_id=None).authorization_url("x")
