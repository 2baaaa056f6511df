from dataclasses import dataclass
from enum import Enum


class PriceSourceKind(str, Enum):
    COINGECKO = "coingecko"
    YAHOO = "yahoo"
    SYNTHETIC = "synthetic"


class FallbackPolicy(str, Enum):
    """What to do when the live price source fails."""

    SYNTHETIC = "synthetic"   # answer from the synthetic generator
    SKIP = "skip"             # historical lookups become absent
    RAISE = "raise"           # propagate PriceSourceUnavailable


@dataclass
class DCAConfig:
    """Price source configuration for a DCA run."""

    source: PriceSourceKind = PriceSourceKind.COINGECKO
    fallback: FallbackPolicy = FallbackPolicy.SYNTHETIC

    # CoinGecko
    api_base_url: str = "https://api.coingecko.com/api/v3"
    coin_id: str = "bitcoin"
    vs_currency: str = "usd"
    timeout: float = 10.0             # seconds per HTTP call
    request_interval: float = 0.0     # pause between live calls (rate limits)
    user_agent: str = "btc-dca/0.1"

    # Yahoo Finance
    yahoo_symbol: str = "BTC-USD"

    # Synthetic fallback
    seed: int | None = 42
