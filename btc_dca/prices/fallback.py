"""
Fallback policy around a live price source, plus the source factory.

Absent prices from the primary pass straight through. Only
PriceSourceUnavailable triggers the policy.
"""

import logging
from datetime import date

from btc_dca.config import DCAConfig, FallbackPolicy, PriceSourceKind
from btc_dca.credentials import get_coingecko_key
from btc_dca.errors import PriceSourceUnavailable
from btc_dca.prices.base import PriceSource
from btc_dca.prices.coingecko import CoinGeckoPriceSource
from btc_dca.prices.synthetic import SyntheticPriceSource
from btc_dca.prices.yahoo import YahooPriceSource

logger = logging.getLogger(__name__)


class FallbackPriceSource(PriceSource):
    """
    Policies:
      synthetic  failures are answered by the synthetic source
      skip       historical failures become absent, current price
                 still comes from the synthetic source
      raise      failures propagate
    """

    def __init__(
        self,
        primary: PriceSource,
        fallback: PriceSource | None = None,
        policy: FallbackPolicy = FallbackPolicy.SYNTHETIC,
    ):
        self.primary = primary
        self.fallback = fallback if fallback is not None else SyntheticPriceSource()
        self.policy = FallbackPolicy(policy)
        self.fallback_count = 0

    def historical_price(self, day: date) -> float | None:
        try:
            return self.primary.historical_price(day)
        except PriceSourceUnavailable as e:
            if self.policy is FallbackPolicy.RAISE:
                raise
            self.fallback_count += 1
            if self.policy is FallbackPolicy.SKIP:
                logger.warning("Price source failed for %s, skipping period: %s", day, e)
                return None
            logger.warning("Price source failed for %s, using synthetic data: %s", day, e)
            return self.fallback.historical_price(day)

    def current_price(self) -> float:
        try:
            return self.primary.current_price()
        except PriceSourceUnavailable as e:
            if self.policy is FallbackPolicy.RAISE:
                raise
            self.fallback_count += 1
            logger.warning("Current price unavailable, using synthetic data: %s", e)
            return self.fallback.current_price()


def build_price_source(config: DCAConfig, today: date | None = None) -> PriceSource:
    """Construct the configured source wrapped in its fallback policy."""
    synthetic = SyntheticPriceSource(seed=config.seed)
    kind = PriceSourceKind(config.source)

    if kind is PriceSourceKind.SYNTHETIC:
        return synthetic

    if kind is PriceSourceKind.YAHOO:
        primary = YahooPriceSource(symbol=config.yahoo_symbol, today=today)
    else:
        primary = CoinGeckoPriceSource(
            base_url=config.api_base_url,
            coin_id=config.coin_id,
            vs_currency=config.vs_currency,
            timeout=config.timeout,
            api_key=get_coingecko_key(),
            user_agent=config.user_agent,
            request_interval=config.request_interval,
        )

    return FallbackPriceSource(primary, synthetic, policy=config.fallback)
