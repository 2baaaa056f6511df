"""Exception types raised by the DCA calculator."""


class InvalidInput(ValueError):
    """Rejected user input. Raised before any price lookup happens."""


class PriceSourceUnavailable(RuntimeError):
    """A live price source could not be reached or returned unusable data."""


class ComputationError(ArithmeticError):
    """Degenerate arithmetic, e.g. a zero current price during goal projection."""


class SimulationCancelled(RuntimeError):
    """The caller set the cancel event before the schedule was exhausted."""

    def __init__(self, periods_processed: int):
        super().__init__(f"simulation cancelled after {periods_processed} periods")
        self.periods_processed = periods_processed
