"""Historical dollar-cost-averaging simulation for BTC."""
from .params import Frequency, SimulationParams
from .engine import (
    DCASimulator, SimulationSummary, GoalProgress, Purchase, PeriodOutcome,
    project_goal, simulate_dca,
)
from .inputs import parse_inputs
