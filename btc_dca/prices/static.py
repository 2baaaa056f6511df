"""Mapping-backed price source for mocked runs and tests."""

from datetime import date
from typing import Mapping

from btc_dca.prices.base import PriceSource


class StaticPriceSource(PriceSource):
    """Serves prices from a fixed date -> price table. Unknown dates are absent."""

    def __init__(self, prices: Mapping[date, float], current: float):
        self.prices = dict(prices)
        self.current = current
        self.requested: list[date] = []

    def historical_price(self, day: date) -> float | None:
        self.requested.append(day)
        return self.prices.get(day)

    def current_price(self) -> float:
        return self.current
