"""BTC-USD daily closes from Yahoo Finance via yfinance."""

import logging
import math
from datetime import date, timedelta

import pandas as pd

from btc_dca.errors import PriceSourceUnavailable
from btc_dca.prices.base import PriceSource

logger = logging.getLogger(__name__)


def _download(symbol: str, start: date, end: date) -> pd.DataFrame:
    """Fetch daily bars for [start, end) from yfinance."""
    import yfinance as yf

    df = yf.download(
        symbol,
        start=start.strftime("%Y-%m-%d"),
        end=end.strftime("%Y-%m-%d"),
        auto_adjust=True,
        progress=False,
    )
    if hasattr(df.columns, "levels") and len(df.columns.levels) > 1:
        df.columns = df.columns.droplevel(1)
    return df


def _closes(df: pd.DataFrame) -> pd.Series:
    if df is None or df.empty or "Close" not in df.columns:
        raise PriceSourceUnavailable("no BTC data returned from yfinance")
    closes = df["Close"].dropna()
    if closes.empty:
        raise PriceSourceUnavailable("yfinance returned no closes")
    index = pd.to_datetime(closes.index)
    if index.tz is not None:
        index = index.tz_localize(None)
    closes.index = index.date
    return closes


class YahooPriceSource(PriceSource):
    """
    Loads closes once from the first requested date through ``today`` and
    answers later lookups from memory. Dates missing from the download
    (before the symbol's history, exchange gaps) are absent. After a failed
    download every later lookup raises PriceSourceUnavailable without
    downloading again.
    """

    def __init__(self, symbol: str = "BTC-USD", today: date | None = None):
        self.symbol = symbol
        self.today = today
        self._closes: pd.Series | None = None
        self._loaded_from: date | None = None
        self._failure: PriceSourceUnavailable | None = None

    def _end(self) -> date:
        # yfinance treats `end` as exclusive
        return (self.today or date.today()) + timedelta(days=1)

    def _load(self, start: date) -> pd.Series:
        if self._failure is not None:
            raise PriceSourceUnavailable(
                f"yfinance unavailable after earlier failure: {self._failure}"
            )
        try:
            return _closes(_download(self.symbol, start, self._end()))
        except PriceSourceUnavailable as e:
            self._failure = e
            raise
        except Exception as e:
            self._failure = PriceSourceUnavailable(f"yfinance download failed: {e}")
            raise self._failure from e

    def historical_price(self, day: date) -> float | None:
        if self._loaded_from is None or day < self._loaded_from:
            self._closes = self._load(day)
            self._loaded_from = day
            logger.info("Loaded %d %s closes from %s", len(self._closes), self.symbol, day)

        value = self._closes.get(day)
        if value is None or not math.isfinite(float(value)):
            return None
        return float(value)

    def current_price(self) -> float:
        closes = self._load((self.today or date.today()) - timedelta(days=7))
        price = float(closes.iloc[-1])
        if not math.isfinite(price) or price <= 0:
            raise PriceSourceUnavailable(f"unusable latest close: {price}")
        return price
