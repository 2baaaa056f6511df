"""
CoinGecko API key resolution from the environment.

Usage:
    from btc_dca.credentials import get_coingecko_key
    api_key = get_coingecko_key()   # "" when unset (public rate limits apply)
"""

import os
import logging

logger = logging.getLogger(__name__)

KEY_VARS = ("COINGECKO_API_KEY", "COINGECKO_DEMO_API_KEY")


def get_coingecko_key() -> str:
    """
    Resolve a CoinGecko demo API key.

    Priority:
      1. COINGECKO_API_KEY env var
      2. COINGECKO_DEMO_API_KEY env var
    """
    for name in KEY_VARS:
        value = os.getenv(name, "").strip()
        if value:
            logger.info("Loaded CoinGecko key from %s", name)
            return value

    logger.info(
        "No CoinGecko key found in %s, using the keyless public API",
        " / ".join(KEY_VARS),
    )
    return ""
