"""BTC price sources: live, synthetic and static."""
from .base import PriceSource, PricePoint
from .static import StaticPriceSource
from .synthetic import SyntheticPriceSource, REFERENCE_PRICES
from .coingecko import CoinGeckoPriceSource
from .yahoo import YahooPriceSource
from .fallback import FallbackPriceSource, build_price_source
