import pytest

from analysis.constants import ONE_YEAR
from webapp.services.http_cache import (
    cache_control,
    is_historical_key,
    is_historical_season,
    max_age_for,
    resolve_league_key,
)


def test_cache_control_doubles_stale_window():
    assert cache_control(60) == "public, s-maxage=60, stale-while-revalidate=120"


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("730730", "461.l.730730"),
        ("449.l.730730", "449.l.730730"),
        ("449%2El%2E730730", "449.l.730730"),
    ],
)
def test_resolve_league_key(raw, expected):
    assert resolve_league_key(raw, "461") == expected


def test_historical_season():
    assert is_historical_season("2019", now_year=2025)
    assert not is_historical_season("2025", now_year=2025)
    assert not is_historical_season(None, now_year=2025)
    assert not is_historical_season("soon", now_year=2025)


def test_historical_key_compares_game_key():
    assert is_historical_key("449.l.1", "461")
    assert not is_historical_key("461.l.1", "461")


def test_max_age_for():
    assert max_age_for(True, 60) == ONE_YEAR
    assert max_age_for(False, 60) == 60
