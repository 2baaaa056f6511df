"""Tests for price sources and the fallback policy."""
import http.client
import io
import json
from datetime import date
from urllib.error import HTTPError, URLError

import pandas as pd
import pytest

from btc_dca.config import DCAConfig, FallbackPolicy, PriceSourceKind
from btc_dca.credentials import get_coingecko_key
from btc_dca.errors import PriceSourceUnavailable
from btc_dca.prices import coingecko, yahoo
from btc_dca.prices.base import PricePoint, PriceSource
from btc_dca.prices.coingecko import CoinGeckoPriceSource, format_history_date
from btc_dca.prices.fallback import FallbackPriceSource, build_price_source
from btc_dca.prices.static import StaticPriceSource
from btc_dca.prices.synthetic import REFERENCE_PRICES, SyntheticPriceSource, reference_price
from btc_dca.prices.yahoo import YahooPriceSource
from btc_dca.simulation.engine import DCASimulator
from btc_dca.simulation.params import Frequency, SimulationParams


class FakeResponse:
    def __init__(self, payload, status=200):
        self.body = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        self.status = status

    def read(self):
        return self.body

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


def install_urlopen(monkeypatch, response=None, error=None):
    calls = []

    def fake_urlopen(req, timeout=None):
        calls.append({"url": req.full_url, "headers": dict(req.header_items()),
                      "timeout": timeout})
        if error is not None:
            raise error
        return response

    monkeypatch.setattr(coingecko, "urlopen", fake_urlopen)
    return calls


class FailingSource(PriceSource):
    def __init__(self):
        self.calls = 0

    def historical_price(self, day):
        self.calls += 1
        raise PriceSourceUnavailable("down")

    def current_price(self):
        raise PriceSourceUnavailable("down")


# ── Synthetic ──

def test_reference_price_nearest_month():
    assert reference_price(date(2024, 3, 17)) == 67000
    assert reference_price(date(2019, 6, 1)) == 42000
    assert reference_price(date(2026, 1, 1)) == 103000


def test_synthetic_within_five_percent():
    source = SyntheticPriceSource(seed=1)
    for ref_date, ref_price in REFERENCE_PRICES.items():
        price = source.historical_price(ref_date)
        assert ref_price * 0.95 - 1 <= price <= ref_price * 1.05 + 1
        assert price == round(price)


def test_synthetic_seed_reproducible():
    days = [date(2024, m, 1) for m in range(1, 13)]
    a = [SyntheticPriceSource(seed=7).historical_price(d) for d in days]
    b = [SyntheticPriceSource(seed=7).historical_price(d) for d in days]
    assert a == b


def test_synthetic_perturbs():
    source = SyntheticPriceSource(seed=3)
    prices = {source.historical_price(date(2024, 6, 1)) for _ in range(20)}
    assert len(prices) > 1


def test_synthetic_current_price_is_last_reference():
    assert SyntheticPriceSource().current_price() == 103000.0


def test_synthetic_rejects_negative_variation():
    with pytest.raises(ValueError, match="non-negative"):
        SyntheticPriceSource(variation=-0.1)


# ── Static ──

def test_static_absent_for_unknown_date():
    source = StaticPriceSource({date(2024, 1, 1): 42000.0}, current=50000.0)
    assert source.historical_price(date(2024, 1, 1)) == 42000.0
    assert source.historical_price(date(2024, 1, 2)) is None
    assert source.price_point(date(2024, 1, 1)) == PricePoint(date(2024, 1, 1), 42000.0)
    assert source.price_point(date(2024, 1, 2)) is None


# ── CoinGecko ──

def test_history_date_format():
    assert format_history_date(date(2024, 3, 5)) == "05-03-2024"


def test_coingecko_historical_price(monkeypatch):
    payload = {"market_data": {"current_price": {"usd": 61234.5, "eur": 56000.0}}}
    calls = install_urlopen(monkeypatch, FakeResponse(payload))

    source = CoinGeckoPriceSource(timeout=3.0)
    assert source.historical_price(date(2024, 3, 15)) == 61234.5

    assert "/coins/bitcoin/history" in calls[0]["url"]
    assert "date=15-03-2024" in calls[0]["url"]
    assert calls[0]["timeout"] == 3.0


def test_coingecko_current_price(monkeypatch):
    calls = install_urlopen(monkeypatch, FakeResponse({"bitcoin": {"usd": 103500}}))
    assert CoinGeckoPriceSource().current_price() == 103500.0
    assert "/simple/price" in calls[0]["url"]
    assert "ids=bitcoin" in calls[0]["url"]


def test_coingecko_sends_api_key(monkeypatch):
    calls = install_urlopen(monkeypatch, FakeResponse({"bitcoin": {"usd": 1.0}}))
    CoinGeckoPriceSource(api_key="demo-key").current_price()
    headers = {k.lower(): v for k, v in calls[0]["headers"].items()}
    assert headers["x-cg-demo-api-key"] == "demo-key"


@pytest.mark.parametrize("payload", [
    {},
    {"market_data": None},
    {"market_data": {"current_price": {"eur": 1.0}}},
    {"market_data": {"current_price": {"usd": "61000"}}},
    {"market_data": {"current_price": {"usd": 0}}},
])
def test_coingecko_malformed_history(monkeypatch, payload):
    install_urlopen(monkeypatch, FakeResponse(payload))
    with pytest.raises(PriceSourceUnavailable):
        CoinGeckoPriceSource().historical_price(date(2024, 1, 1))


def test_coingecko_bad_json(monkeypatch):
    install_urlopen(monkeypatch, FakeResponse(b"<html>rate limited</html>"))
    with pytest.raises(PriceSourceUnavailable, match="malformed"):
        CoinGeckoPriceSource().current_price()


def test_coingecko_non_2xx_status(monkeypatch):
    install_urlopen(monkeypatch, FakeResponse({"bitcoin": {"usd": 1.0}}, status=503))
    with pytest.raises(PriceSourceUnavailable, match="503"):
        CoinGeckoPriceSource().current_price()


@pytest.mark.parametrize("error", [
    URLError("no route"),
    HTTPError("https://x", 429, "Too Many Requests", {}, io.BytesIO(b"")),
    TimeoutError("timed out"),
])
def test_coingecko_transport_errors(monkeypatch, error):
    install_urlopen(monkeypatch, error=error)
    with pytest.raises(PriceSourceUnavailable):
        CoinGeckoPriceSource().historical_price(date(2024, 1, 1))


class TruncatedResponse(FakeResponse):
    def read(self):
        raise http.client.IncompleteRead(b"{\"bitc", 40)


def test_coingecko_incomplete_read_is_unavailable(monkeypatch):
    install_urlopen(monkeypatch, TruncatedResponse({}))
    with pytest.raises(PriceSourceUnavailable, match="failed"):
        CoinGeckoPriceSource().historical_price(date(2024, 1, 1))


def test_coingecko_bad_status_line_falls_back(monkeypatch):
    install_urlopen(monkeypatch, error=http.client.BadStatusLine("garbage"))
    source = FallbackPriceSource(CoinGeckoPriceSource(), SyntheticPriceSource(seed=0))
    assert source.current_price() == 103000.0
    assert source.fallback_count == 1


def test_truncated_responses_do_not_abort_simulation(monkeypatch):
    install_urlopen(monkeypatch, TruncatedResponse({}))
    source = FallbackPriceSource(CoinGeckoPriceSource(), SyntheticPriceSource(seed=0))
    params = SimulationParams(100.0, Frequency.MONTHLY, date(2024, 1, 1))

    summary = DCASimulator(source, today=date(2024, 6, 1)).run(params)

    assert summary.investment_count == 6
    assert summary.current_price == 103000.0
    assert source.fallback_count == 7


def test_coingecko_rejects_bad_timeout():
    with pytest.raises(ValueError, match="positive"):
        CoinGeckoPriceSource(timeout=0)


# ── Yahoo ──

def _closes_frame(prices):
    index = pd.to_datetime([d.isoformat() for d in prices])
    return pd.DataFrame({"Close": list(prices.values())}, index=index)


def test_yahoo_serves_from_single_download(monkeypatch):
    downloads = []
    frame = _closes_frame({date(2024, 1, 1): 42000.0, date(2024, 1, 8): 46000.0})

    def fake_download(symbol, start, end):
        downloads.append((symbol, start, end))
        return frame

    monkeypatch.setattr(yahoo, "_download", fake_download)
    source = YahooPriceSource(today=date(2024, 1, 10))

    assert source.historical_price(date(2024, 1, 1)) == 42000.0
    assert source.historical_price(date(2024, 1, 8)) == 46000.0
    assert source.historical_price(date(2024, 1, 5)) is None
    assert downloads == [("BTC-USD", date(2024, 1, 1), date(2024, 1, 11))]


def test_yahoo_current_price_is_latest_close(monkeypatch):
    frame = _closes_frame({date(2024, 1, 9): 45000.0, date(2024, 1, 10): 47000.0})
    monkeypatch.setattr(yahoo, "_download", lambda symbol, start, end: frame)
    assert YahooPriceSource(today=date(2024, 1, 10)).current_price() == 47000.0


def test_yahoo_failures_are_unavailable(monkeypatch):
    def boom(symbol, start, end):
        raise ConnectionError("offline")

    monkeypatch.setattr(yahoo, "_download", boom)
    with pytest.raises(PriceSourceUnavailable, match="offline"):
        YahooPriceSource(today=date(2024, 1, 10)).historical_price(date(2024, 1, 1))

    monkeypatch.setattr(yahoo, "_download", lambda symbol, start, end: pd.DataFrame())
    with pytest.raises(PriceSourceUnavailable):
        YahooPriceSource(today=date(2024, 1, 10)).current_price()


def test_yahoo_does_not_retry_after_failure(monkeypatch):
    downloads = []

    def offline(symbol, start, end):
        downloads.append(start)
        raise ConnectionError("offline")

    monkeypatch.setattr(yahoo, "_download", offline)
    source = FallbackPriceSource(
        YahooPriceSource(today=date(2024, 12, 31)), SyntheticPriceSource(seed=0),
    )
    params = SimulationParams(100.0, Frequency.WEEKLY, date(2024, 1, 1))

    summary = DCASimulator(source, today=date(2024, 12, 31)).run(params)

    assert summary.period_count == 53
    assert summary.investment_count == 53
    assert len(downloads) == 1

    with pytest.raises(PriceSourceUnavailable, match="earlier failure"):
        source.primary.historical_price(date(2024, 6, 3))
    assert len(downloads) == 1


# ── Fallback policy ──

def test_fallback_synthetic_answers_failures():
    source = FallbackPriceSource(FailingSource(), SyntheticPriceSource(seed=0))
    price = source.historical_price(date(2024, 3, 1))
    assert 67000 * 0.95 - 1 <= price <= 67000 * 1.05 + 1
    assert source.current_price() == 103000.0
    assert source.fallback_count == 2


def test_fallback_skip_makes_history_absent():
    source = FallbackPriceSource(FailingSource(), policy=FallbackPolicy.SKIP)
    assert source.historical_price(date(2024, 3, 1)) is None
    assert source.current_price() == 103000.0


def test_fallback_raise_propagates():
    source = FallbackPriceSource(FailingSource(), policy="raise")
    with pytest.raises(PriceSourceUnavailable):
        source.historical_price(date(2024, 3, 1))
    with pytest.raises(PriceSourceUnavailable):
        source.current_price()


def test_fallback_passes_absent_through():
    primary = StaticPriceSource({}, current=50000.0)
    source = FallbackPriceSource(primary)
    assert source.historical_price(date(2024, 3, 1)) is None
    assert source.current_price() == 50000.0
    assert source.fallback_count == 0


def test_fallback_logs_warning(caplog):
    source = FallbackPriceSource(FailingSource())
    with caplog.at_level("WARNING", logger="btc_dca.prices.fallback"):
        source.historical_price(date(2024, 3, 1))
    assert "synthetic" in caplog.text


# ── Factory / credentials ──

def test_build_synthetic_source():
    source = build_price_source(DCAConfig(source=PriceSourceKind.SYNTHETIC))
    assert isinstance(source, SyntheticPriceSource)


def test_build_coingecko_source(monkeypatch):
    monkeypatch.setenv("COINGECKO_API_KEY", "abc")
    config = DCAConfig(timeout=4.0, fallback=FallbackPolicy.SKIP)
    source = build_price_source(config)

    assert isinstance(source, FallbackPriceSource)
    assert isinstance(source.primary, CoinGeckoPriceSource)
    assert source.primary.api_key == "abc"
    assert source.primary.timeout == 4.0
    assert source.policy is FallbackPolicy.SKIP


def test_build_yahoo_source():
    source = build_price_source(DCAConfig(source="yahoo"), today=date(2024, 5, 1))
    assert isinstance(source.primary, YahooPriceSource)
    assert source.primary.today == date(2024, 5, 1)


def test_coingecko_key_resolution(monkeypatch):
    monkeypatch.delenv("COINGECKO_API_KEY", raising=False)
    monkeypatch.delenv("COINGECKO_DEMO_API_KEY", raising=False)
    assert get_coingecko_key() == ""

    monkeypatch.setenv("COINGECKO_DEMO_API_KEY", " demo ")
    assert get_coingecko_key() == "demo"

    monkeypatch.setenv("COINGECKO_API_KEY", "primary")
    assert get_coingecko_key() == "primary"
