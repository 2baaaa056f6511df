from datetime import date

import pytest

from btc_dca.prices.base import PriceSource
from btc_dca.prices.static import StaticPriceSource
from btc_dca.simulation.params import Frequency, SimulationParams


class ConstantPriceSource(PriceSource):
    """Same price for every date; records what was asked."""

    def __init__(self, price=50_000.0, current=None):
        self.price = price
        self.current = price if current is None else current
        self.requested = []

    def historical_price(self, day):
        self.requested.append(day)
        return self.price

    def current_price(self):
        return self.current


class AbsentPriceSource(PriceSource):
    """No historical data at all."""

    def __init__(self, current=60_000.0):
        self.current = current

    def historical_price(self, day):
        return None

    def current_price(self):
        return self.current


@pytest.fixture
def monthly_2024_prices():
    return {
        date(2024, 1, 1): 42000.0,
        date(2024, 2, 1): 43500.0,
        date(2024, 3, 1): 67000.0,
    }


@pytest.fixture
def three_month_source(monthly_2024_prices):
    return StaticPriceSource(monthly_2024_prices, current=67000.0)


@pytest.fixture
def monthly_params():
    return SimulationParams(
        periodic_amount=100.0,
        frequency=Frequency.MONTHLY,
        start_date=date(2024, 1, 1),
    )
