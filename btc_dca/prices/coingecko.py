"""
Live BTC prices from the CoinGecko public API.

    historical: GET /coins/bitcoin/history?date=DD-MM-YYYY
                -> market_data.current_price.usd
    current:    GET /simple/price?ids=bitcoin&vs_currencies=usd
                -> bitcoin.usd

Every failure (unreachable host, timeout, non-2xx, bad JSON, missing field)
raises PriceSourceUnavailable. This class does not retry and does not fall
back; wrap it in FallbackPriceSource for that.
"""

import json
import logging
import math
import time
from datetime import date
from http.client import HTTPException
from urllib.error import URLError
from urllib.parse import urlencode
from urllib.request import urlopen, Request

from btc_dca.errors import PriceSourceUnavailable
from btc_dca.prices.base import PriceSource

logger = logging.getLogger(__name__)


def format_history_date(day: date) -> str:
    return day.strftime("%d-%m-%Y")


def _as_price(value) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PriceSourceUnavailable(f"price is not numeric: {value!r}")
    price = float(value)
    if not math.isfinite(price) or price <= 0:
        raise PriceSourceUnavailable(f"price is not positive: {value!r}")
    return price


class CoinGeckoPriceSource(PriceSource):

    def __init__(
        self,
        base_url: str = "https://api.coingecko.com/api/v3",
        coin_id: str = "bitcoin",
        vs_currency: str = "usd",
        timeout: float = 10.0,
        api_key: str = "",
        user_agent: str = "btc-dca/0.1",
        request_interval: float = 0.0,
    ):
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")
        self.base_url = base_url.rstrip("/")
        self.coin_id = coin_id
        self.vs_currency = vs_currency
        self.timeout = timeout
        self.api_key = api_key
        self.user_agent = user_agent
        self.request_interval = request_interval
        self._last_request: float | None = None

    def _throttle(self):
        if self.request_interval <= 0 or self._last_request is None:
            return
        wait = self.request_interval - (time.monotonic() - self._last_request)
        if wait > 0:
            time.sleep(wait)

    def _get_json(self, path: str, params: dict):
        url = f"{self.base_url}{path}?{urlencode(params)}"
        headers = {"User-Agent": self.user_agent, "Accept": "application/json"}
        if self.api_key:
            headers["x-cg-demo-api-key"] = self.api_key

        self._throttle()
        try:
            req = Request(url, headers=headers)
            with urlopen(req, timeout=self.timeout) as resp:
                status = getattr(resp, "status", 200)
                if not 200 <= status < 300:
                    raise PriceSourceUnavailable(f"HTTP {status} from {url}")
                return json.loads(resp.read().decode())
        except (URLError, OSError, HTTPException) as e:
            # HTTPError is a URLError, so non-2xx raised by urlopen lands here.
            # IncompleteRead, BadStatusLine etc. are not wrapped by urlopen.
            raise PriceSourceUnavailable(f"request to {url} failed: {e}") from e
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PriceSourceUnavailable(f"malformed JSON from {url}: {e}") from e
        finally:
            self._last_request = time.monotonic()

    def historical_price(self, day: date) -> float:
        data = self._get_json(
            f"/coins/{self.coin_id}/history",
            {"date": format_history_date(day), "localization": "false"},
        )
        try:
            value = data["market_data"]["current_price"][self.vs_currency]
        except (KeyError, TypeError) as e:
            raise PriceSourceUnavailable(
                f"no {self.vs_currency} price in history for {day}"
            ) from e
        price = _as_price(value)
        logger.debug("CoinGecko price for %s: %.2f", day, price)
        return price

    def current_price(self) -> float:
        data = self._get_json(
            "/simple/price",
            {"ids": self.coin_id, "vs_currencies": self.vs_currency},
        )
        try:
            value = data[self.coin_id][self.vs_currency]
        except (KeyError, TypeError) as e:
            raise PriceSourceUnavailable("no current price in response") from e
        price = _as_price(value)
        logger.debug("CoinGecko current price: %.2f", price)
        return price
