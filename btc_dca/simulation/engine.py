"""
Dollar-cost-averaging replay engine.

For each period from the start date through today:
    btc_bought = periodic_amount / price(date)
Periods without a price are skipped and do not count as investments.
After the walk the position is valued once at the current price.
"""

import logging
import math
import threading
from dataclasses import dataclass
from datetime import date
from typing import Callable, Iterator

from btc_dca.errors import ComputationError, SimulationCancelled
from btc_dca.prices.base import PriceSource
from btc_dca.simulation.params import Frequency, SimulationParams
from btc_dca.simulation.schedule import iter_schedule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Purchase:
    index: int              # period number, 0 = start date
    date: date
    price: float
    usd_amount: float
    btc_bought: float
    btc_total: float        # running BTC after this purchase
    invested_total: float   # running USD after this purchase


@dataclass(frozen=True)
class PeriodOutcome:
    index: int
    date: date
    purchase: Purchase | None   # None when the price was absent


@dataclass(frozen=True)
class GoalProgress:
    goal_btc: float
    remaining_btc: float
    periods_remaining: int
    achieved: bool


@dataclass(frozen=True)
class SimulationSummary:
    total_invested: float
    btc_accumulated: float
    current_value: float
    current_price: float
    average_price: float | None     # None when nothing was bought
    roi: float                      # percent
    investment_count: int
    period_count: int
    frequency: Frequency
    start_date: date
    end_date: date
    goal: GoalProgress | None = None
    purchases: tuple[Purchase, ...] = ()

    @property
    def skipped_count(self) -> int:
        return self.period_count - self.investment_count


def _usable(price: float | None) -> bool:
    return price is not None and math.isfinite(price) and price > 0


def project_goal(
    goal_btc: float,
    btc_accumulated: float,
    periodic_amount: float,
    current_price: float,
) -> GoalProgress:
    """
    Periods still needed to reach ``goal_btc`` if every future purchase
    happens at ``current_price``. An approximation, not a forecast.
    """
    if not math.isfinite(current_price) or current_price <= 0:
        raise ComputationError(
            f"cannot project goal with current price {current_price}"
        )

    remaining = max(0.0, goal_btc - btc_accumulated)
    periods = 0
    if remaining > 0:
        btc_per_period = periodic_amount / current_price
        # Round before ceil so 500.0000000001 does not become 501
        periods = math.ceil(round(remaining / btc_per_period, 9))

    return GoalProgress(
        goal_btc=goal_btc,
        remaining_btc=remaining,
        periods_remaining=periods,
        achieved=btc_accumulated >= goal_btc,
    )


def roi_pct(current_value: float, total_invested: float) -> float:
    if total_invested <= 0:
        return 0.0
    return (current_value - total_invested) / total_invested * 100


class DCASimulator:
    """Replays a DCA schedule against a PriceSource."""

    def __init__(self, source: PriceSource, today: date | None = None):
        self.source = source
        self.today = today

    def _today(self) -> date:
        return self.today or date.today()

    def iter_periods(
        self, params: SimulationParams, today: date | None = None,
    ) -> Iterator[PeriodOutcome]:
        """
        Walk the schedule, one price lookup per period, in date order.

        Raises InvalidInput at call time, before any lookup, when the start
        date is not in the past.
        """
        today = today or self._today()
        params.check_start(today)
        return self._walk(params, today)

    def _walk(self, params: SimulationParams, today: date) -> Iterator[PeriodOutcome]:
        btc_total = 0.0
        invested_total = 0.0

        schedule = iter_schedule(params.start_date, params.frequency, today)
        for index, day in enumerate(schedule):
            price = self.source.historical_price(day)
            purchase = None

            if _usable(price):
                btc_bought = params.periodic_amount / price
                btc_total += btc_bought
                invested_total += params.periodic_amount
                purchase = Purchase(
                    index=index,
                    date=day,
                    price=float(price),
                    usd_amount=params.periodic_amount,
                    btc_bought=btc_bought,
                    btc_total=btc_total,
                    invested_total=invested_total,
                )
                logger.debug(
                    "Period %d (%s): $%.2f bought %.8f BTC at $%.2f",
                    index, day, params.periodic_amount, btc_bought, price,
                )
            elif price is None:
                logger.info("No price for %s, period skipped", day)
            else:
                logger.warning("Unusable price %r for %s, period skipped", price, day)

            yield PeriodOutcome(index=index, date=day, purchase=purchase)

    def run(
        self,
        params: SimulationParams,
        on_progress: Callable[[PeriodOutcome], None] | None = None,
        cancel: threading.Event | None = None,
    ) -> SimulationSummary:
        today = self._today()
        purchases = []
        period_count = 0

        for outcome in self.iter_periods(params, today=today):
            period_count += 1
            if outcome.purchase is not None:
                purchases.append(outcome.purchase)
            if on_progress is not None:
                on_progress(outcome)
            if cancel is not None and cancel.is_set():
                raise SimulationCancelled(period_count)

        btc_accumulated = purchases[-1].btc_total if purchases else 0.0
        total_invested = purchases[-1].invested_total if purchases else 0.0

        current_price = self.source.current_price()
        if not _usable(current_price):
            raise ComputationError(f"unusable current price: {current_price!r}")

        current_value = btc_accumulated * current_price
        average_price = total_invested / btc_accumulated if btc_accumulated > 0 else None

        goal = None
        if params.goal_btc is not None:
            goal = project_goal(
                params.goal_btc, btc_accumulated, params.periodic_amount, current_price,
            )

        return SimulationSummary(
            total_invested=total_invested,
            btc_accumulated=btc_accumulated,
            current_value=current_value,
            current_price=float(current_price),
            average_price=average_price,
            roi=roi_pct(current_value, total_invested),
            investment_count=len(purchases),
            period_count=period_count,
            frequency=params.frequency,
            start_date=params.start_date,
            end_date=today,
            goal=goal,
            purchases=tuple(purchases),
        )


def simulate_dca(
    params: SimulationParams,
    source: PriceSource,
    today: date | None = None,
    **kwargs,
) -> SimulationSummary:
    """Convenience wrapper: ``DCASimulator(source, today).run(params)``."""
    return DCASimulator(source, today=today).run(params, **kwargs)
