"""
Synthetic BTC prices for when no live data is available.

Prices come from a small table of monthly reference prices. A lookup picks
the reference month closest to the requested month and perturbs it by up to
+/-5% so repeated purchases do not flat-line.
"""

from datetime import date

import numpy as np

from btc_dca.prices.base import PriceSource


REFERENCE_PRICES = {
    date(2024, 1, 1): 42000,
    date(2024, 2, 1): 43500,
    date(2024, 3, 1): 67000,
    date(2024, 4, 1): 71000,
    date(2024, 5, 1): 63000,
    date(2024, 6, 1): 67500,
    date(2024, 7, 1): 63500,
    date(2024, 8, 1): 59000,
    date(2024, 9, 1): 62000,
    date(2024, 10, 1): 67000,
    date(2024, 11, 1): 75000,
    date(2024, 12, 1): 95000,
    date(2025, 1, 1): 92000,
    date(2025, 2, 1): 95000,
    date(2025, 3, 1): 98000,
    date(2025, 4, 1): 101000,
    date(2025, 5, 1): 103000,
}

VARIATION = 0.05


def reference_price(day: date) -> float:
    """Reference price of the table month nearest to ``day``'s month."""
    month_start = day.replace(day=1)
    nearest = min(
        sorted(REFERENCE_PRICES),
        key=lambda ref: abs((ref - month_start).days),
    )
    return float(REFERENCE_PRICES[nearest])


class SyntheticPriceSource(PriceSource):
    """Seeded reference-table generator. Never raises, never returns None."""

    def __init__(self, seed: int | None = 42, variation: float = VARIATION):
        if variation < 0:
            raise ValueError(f"variation must be non-negative, got {variation}")
        self.rng = np.random.default_rng(seed)
        self.variation = variation

    def historical_price(self, day: date) -> float:
        base = reference_price(day)
        shock = self.rng.uniform(-self.variation, self.variation)
        return float(round(base * (1 + shock)))

    def current_price(self) -> float:
        # Last known reference price, unperturbed.
        return float(REFERENCE_PRICES[max(REFERENCE_PRICES)])
