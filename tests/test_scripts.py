import importlib.util
from pathlib import Path

import pytest

from test_yahoo_parse import USER_LEAGUES
from webapp.errors import YahooApiError
from webapp.services.yahoo_auth import TokenData

SCRIPTS = Path(__file__).resolve().parents[1] / "scripts"


def _load(name):
    spec = importlib.util.spec_from_file_location(name, SCRIPTS / f"{name}.py")
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


class StoredTokens:
    def __init__(self, tokens=None):
        self.tokens = tokens

    def load_stored(self):
        return self.tokens


class RawClient:
    def __init__(self, payload=None, error=None):
        self.payload = payload
        self.error = error
        self.paths = []

    def get_raw(self, path):
        self.paths.append(path)
        if self.error is not None:
            raise self.error
        return self.payload


@pytest.fixture()
def debug_yahoo():
    return _load("debug_yahoo")


def _wire(monkeypatch, module, tokens, client):
    monkeypatch.setattr(module, "build_yahoo_services", lambda: (tokens, client))


def test_debug_yahoo_lists_leagues_by_season(debug_yahoo, monkeypatch, capsys):
    client = RawClient(payload=USER_LEAGUES)
    _wire(monkeypatch, debug_yahoo, StoredTokens(TokenData("a", "r", 1_700_000_000_000)), client)

    debug_yahoo.main([])

    assert client.paths == ["/users;use_login=1/games;game_codes=nfl/leagues"]
    out = capsys.readouterr().out
    assert "[OK] tokens found" in out
    assert "expired: yes" in out
    assert out.index("2025 season") < out.index("2024 season")
    assert "key=461.l.3" in out
    assert "461.l.2" not in out


def test_debug_yahoo_dumps_custom_path(debug_yahoo, monkeypatch, capsys):
    client = RawClient(payload={"fantasy_content": {"game": []}})
    _wire(monkeypatch, debug_yahoo, StoredTokens(TokenData("a", "r", 1_700_000_000_000)), client)

    debug_yahoo.main(["--path", "/game/nfl"])

    assert client.paths == ["/game/nfl"]
    assert '"fantasy_content"' in capsys.readouterr().out


def test_debug_yahoo_without_tokens_exits(debug_yahoo, monkeypatch, capsys):
    client = RawClient()
    _wire(monkeypatch, debug_yahoo, StoredTokens(None), client)

    with pytest.raises(SystemExit) as exc:
        debug_yahoo.main([])

    assert exc.value.code == 1
    assert client.paths == []
    assert "No stored tokens" in capsys.readouterr().out


def test_debug_yahoo_reports_api_errors(debug_yahoo, monkeypatch, capsys):
    client = RawClient(error=YahooApiError(401, "token_rejected"))
    _wire(monkeypatch, debug_yahoo, StoredTokens(TokenData("a", "r", 1_700_000_000_000)), client)

    with pytest.raises(SystemExit):
        debug_yahoo.main([])

    out = capsys.readouterr().out
    assert "401" in out
    assert "setup_yahoo.py" in out
