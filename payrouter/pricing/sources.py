"""Price sources consulted by the PriceOracle, in priority order.

Each source is independent: a failure raises PriceSourceError (or any other
exception) and the oracle moves on to the next source.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime
from typing import Any, Protocol

import httpx
import structlog

from payrouter.constants import COINGECKO_IDS, FALLBACK_PRICES_USD
from payrouter.errors import PriceSourceError
from payrouter.models.types import Confidence, normalize_symbol
from payrouter.pricing.types import PriceObservation

logger = structlog.get_logger()

DEFAULT_HTTP_TIMEOUT = 10.0


class PriceSource(Protocol):
    """Protocol for a ranked USD price source.

    Attributes:
        name: Tag recorded as TokenPrice.source
        priority: Lower values are tried first
        confidence: Confidence assigned to prices from this source
    """

    name: str
    priority: int
    confidence: Confidence

    async def fetch_price(self, symbol: str) -> PriceObservation:
        """Fetch the current USD price of a symbol.

        Raises:
            PriceSourceError: If the source has no usable price for the symbol
        """
        ...


class _HttpPriceSource:
    """Shared HTTP plumbing for live sources.

    A caller-supplied httpx.AsyncClient is reused; otherwise a short-lived
    client is opened per request.
    """

    base_url: str = ""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        self._client = client
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    async def _get_json(self, path: str, params: Mapping[str, Any]) -> Any:
        url = f"{self.base_url}{path}"
        if self._client is not None:
            response = await self._client.get(
                url, params=params, headers=self._headers(), timeout=self._timeout
            )
            response.raise_for_status()
            return response.json()

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            response = await client.get(url, params=params, headers=self._headers())
            response.raise_for_status()
            return response.json()


class CoinGeckoSource(_HttpPriceSource):
    """Primary live feed: CoinGecko simple price API (free tier)."""

    name = "coingecko"
    priority = 1
    confidence = Confidence.HIGH
    base_url = "https://api.coingecko.com/api/v3"

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        ids: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(client, timeout)
        ids = COINGECKO_IDS if ids is None else ids
        self._ids = {normalize_symbol(k): v for k, v in ids.items()}

    @property
    def tracked_symbols(self) -> list[str]:
        return sorted(self._ids)

    async def fetch_price(self, symbol: str) -> PriceObservation:
        key = normalize_symbol(symbol)
        prices = await self.fetch_prices([key])
        if key not in prices:
            raise PriceSourceError(f"CoinGecko returned no data for {key}")
        return prices[key]

    async def fetch_prices(self, symbols: Iterable[str]) -> dict[str, PriceObservation]:
        """Batch fetch; symbols without a CoinGecko id or data are left out."""
        wanted = {normalize_symbol(s) for s in symbols}
        by_id: dict[str, list[str]] = {}
        for symbol in sorted(wanted):
            gecko_id = self._ids.get(symbol)
            if gecko_id is not None:
                by_id.setdefault(gecko_id, []).append(symbol)

        if not by_id:
            raise PriceSourceError(f"Unknown tokens for CoinGecko: {sorted(wanted)}")

        data = await self._get_json(
            "/simple/price",
            {
                "ids": ",".join(sorted(by_id)),
                "vs_currencies": "usd",
                "include_last_updated_at": "true",
            },
        )

        result: dict[str, PriceObservation] = {}
        for gecko_id, id_symbols in by_id.items():
            entry = data.get(gecko_id) if isinstance(data, dict) else None
            if not entry or entry.get("usd") is None:
                continue
            observation = PriceObservation(
                price=float(entry["usd"]),
                updated_at=float(entry.get("last_updated_at") or time.time()),
            )
            for symbol in id_symbols:
                result[symbol] = observation
        return result


class CoinMarketCapSource(_HttpPriceSource):
    """Secondary live feed: CoinMarketCap quotes (requires an API key)."""

    name = "coinmarketcap"
    priority = 2
    confidence = Confidence.MEDIUM
    base_url = "https://pro-api.coinmarketcap.com/v1"

    def __init__(
        self,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
    ) -> None:
        super().__init__(client, timeout)
        self._api_key = api_key

    def _headers(self) -> dict[str, str]:
        return {"Accept": "application/json", "X-CMC_PRO_API_KEY": self._api_key}

    async def fetch_price(self, symbol: str) -> PriceObservation:
        key = normalize_symbol(symbol)
        data = await self._get_json(
            "/cryptocurrency/quotes/latest", {"symbol": key, "convert": "USD"}
        )
        try:
            quote = data["data"][key]["quote"]["USD"]
            price = float(quote["price"])
            updated_at = datetime.fromisoformat(
                str(quote["last_updated"]).replace("Z", "+00:00")
            ).timestamp()
        except (KeyError, TypeError, ValueError) as err:
            raise PriceSourceError(f"CoinMarketCap returned no data for {key}") from err
        return PriceObservation(price=price, updated_at=updated_at)


class StaticPriceSource:
    """Last-resort hardcoded prices. Never fails for a known symbol."""

    name = "fallback"
    priority = 99
    confidence = Confidence.LOW

    def __init__(
        self,
        prices: Mapping[str, float] | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        prices = FALLBACK_PRICES_USD if prices is None else prices
        self._prices = {normalize_symbol(k): v for k, v in prices.items()}
        self._clock = clock

    def __contains__(self, symbol: str) -> bool:
        return normalize_symbol(symbol) in self._prices

    async def fetch_price(self, symbol: str) -> PriceObservation:
        key = normalize_symbol(symbol)
        price = self._prices.get(key)
        if price is None:
            raise PriceSourceError(f"No fallback price for {key}")
        logger.warning("using_fallback_price", token=key, price=price)
        return PriceObservation(price=price, updated_at=self._clock())


__all__ = [
    "PriceSource",
    "CoinGeckoSource",
    "CoinMarketCapSource",
    "StaticPriceSource",
]
