import math
from dataclasses import dataclass
from datetime import date
from enum import Enum

from btc_dca.errors import InvalidInput


class Frequency(str, Enum):
    WEEKLY = "weekly"
    MONTHLY = "monthly"

    @property
    def unit(self) -> str:
        return "week" if self is Frequency.WEEKLY else "month"


@dataclass(frozen=True)
class SimulationParams:
    periodic_amount: float          # USD per period
    frequency: Frequency
    start_date: date
    goal_btc: float | None = None

    def __post_init__(self):
        if not math.isfinite(self.periodic_amount) or self.periodic_amount <= 0:
            raise InvalidInput(
                f"periodic_amount must be positive, got {self.periodic_amount}"
            )
        if self.goal_btc is not None and (
            not math.isfinite(self.goal_btc) or self.goal_btc <= 0
        ):
            raise InvalidInput(f"goal_btc must be positive, got {self.goal_btc}")
        # Accept "weekly"/"monthly" strings as well as the enum
        try:
            frequency = Frequency(self.frequency)
        except ValueError as e:
            raise InvalidInput(f"unknown frequency: {self.frequency!r}") from e
        object.__setattr__(self, "frequency", frequency)

    def check_start(self, today: date):
        if self.start_date >= today:
            raise InvalidInput(
                f"start_date must be before {today.isoformat()}, "
                f"got {self.start_date.isoformat()}"
            )
