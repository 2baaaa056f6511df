"""
Raw form values -> SimulationParams.

Messages on InvalidInput are meant to be shown to the user as-is.
"""

import math
from datetime import date

from btc_dca.errors import InvalidInput
from btc_dca.simulation.params import Frequency, SimulationParams


def _parse_number(raw: str) -> float | None:
    try:
        value = float(raw.strip().replace(",", ""))
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def parse_inputs(
    amount: str | None,
    frequency: str | None,
    start_date: str | None,
    goal: str | None = None,
    today: date | None = None,
) -> SimulationParams:
    today = today or date.today()

    if not amount or not amount.strip() or not start_date or not start_date.strip():
        raise InvalidInput("Please fill all required fields correctly.")

    periodic_amount = _parse_number(amount)
    if periodic_amount is None or periodic_amount <= 0:
        raise InvalidInput("Please enter a valid investment amount.")

    try:
        freq = Frequency((frequency or Frequency.MONTHLY.value).strip().lower())
    except ValueError:
        raise InvalidInput("Frequency must be 'weekly' or 'monthly'.") from None

    try:
        start = date.fromisoformat(start_date.strip())
    except ValueError:
        raise InvalidInput("Please enter a valid start date (YYYY-MM-DD).") from None
    if start >= today:
        raise InvalidInput("Start date must be in the past.")

    goal_btc = None
    if goal is not None and goal.strip():
        goal_btc = _parse_number(goal)
        if goal_btc is None or goal_btc <= 0:
            raise InvalidInput("Please enter a valid BTC goal.")

    return SimulationParams(
        periodic_amount=periodic_amount,
        frequency=freq,
        start_date=start,
        goal_btc=goal_btc,
    )
