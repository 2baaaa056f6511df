"""Price source contract shared by the live, synthetic and static sources."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class PricePoint:
    date: date
    price: float    # USD per BTC


class PriceSource(ABC):
    """
    Supplies BTC prices to the simulator.

    ``historical_price`` returns None when no price exists for the date
    (the simulator skips that period). Live sources signal transport or
    payload problems with PriceSourceUnavailable; FallbackPriceSource
    decides what happens next.
    """

    @abstractmethod
    def historical_price(self, day: date) -> float | None:
        ...

    @abstractmethod
    def current_price(self) -> float:
        ...

    def price_point(self, day: date) -> PricePoint | None:
        price = self.historical_price(day)
        if price is None:
            return None
        return PricePoint(date=day, price=price)
