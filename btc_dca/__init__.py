"""Bitcoin dollar-cost-averaging calculator."""

__version__ = "0.1.0"
