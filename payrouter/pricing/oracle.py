"""USD price oracle with ranked sources and a two-tier cache.

Lookup order for get_price():
1. In-process cache, if the entry is within its confidence tier's staleness
2. Shared cache, same validity rule
3. Sources in ascending priority (live feeds, then the fallback table)

An expired entry is treated as absent: the oracle refetches rather than
serving a degraded value.
"""

from __future__ import annotations

import asyncio
import contextlib
import math
import time
from collections.abc import Callable, Sequence
from decimal import Decimal

import structlog
from pydantic import ValidationError

from payrouter.cache import MemoryCache, SharedCache, cache_read, cache_write
from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.errors import PriceSourceError, PriceUnavailable
from payrouter.models.types import Chain, normalize_symbol
from payrouter.pricing.sources import (
    CoinGeckoSource,
    CoinMarketCapSource,
    PriceSource,
    StaticPriceSource,
)
from payrouter.pricing.types import CachedPrice, TokenPrice

logger = structlog.get_logger()

PRICE_KEY_PREFIX = "price:"


def default_price_sources(
    config: RouterConfig, clock: Callable[[], float] = time.time
) -> list[PriceSource]:
    """Build the standard source chain for a config."""
    sources: list[PriceSource] = [CoinGeckoSource(timeout=config.fetch_timeout_seconds)]
    if config.coinmarketcap_api_key:
        sources.append(
            CoinMarketCapSource(config.coinmarketcap_api_key, timeout=config.fetch_timeout_seconds)
        )
    sources.append(StaticPriceSource(config.fallback_prices, clock=clock))
    return sources


class PriceOracle:
    """Resolves token USD prices from ranked sources with caching.

    Args:
        sources: Price sources; tried in ascending `priority`. Defaults to
            CoinGecko, CoinMarketCap (if an API key is configured), fallback table.
        cache: Shared cache handle for cross-instance reuse
        config: Router configuration (staleness thresholds, TTLs, timeouts)
        clock: Source of the current time in seconds
    """

    def __init__(
        self,
        sources: Sequence[PriceSource] | None = None,
        cache: SharedCache | None = None,
        config: RouterConfig = DEFAULT_ROUTER_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._config = config
        self._clock = clock
        self._cache: SharedCache = cache if cache is not None else MemoryCache(clock=clock)
        raw_sources = sources if sources is not None else default_price_sources(config, clock)
        self._sources = sorted(raw_sources, key=lambda s: s.priority)
        self._memory: dict[str, CachedPrice] = {}
        self._refresh_task: asyncio.Task[None] | None = None

    @property
    def sources(self) -> list[PriceSource]:
        return list(self._sources)

    async def get_price(self, token: str) -> TokenPrice:
        """Get the USD price of a token.

        Raises:
            PriceUnavailable: If every source, including the fallback table, failed
        """
        key = normalize_symbol(token)

        cached = self._memory.get(key)
        if cached is not None and self._is_valid(cached):
            return cached.to_price()

        shared = await self._read_shared(key)
        if shared is not None and self._is_valid(shared):
            self._memory[key] = shared
            return shared.to_price()

        return await self._fetch_price(key)

    async def get_native_token_price(self, chain: Chain) -> float:
        """USD price of the token that pays fees on `chain`."""
        price = await self.get_price(self._config.native_token(chain))
        return price.price

    async def convert_to_usd(self, token: str, amount: float | str | Decimal) -> float:
        """Convert a whole-token amount to USD."""
        price = await self.get_price(token)
        return float(Decimal(str(amount)) * Decimal(str(price.price)))

    async def convert_from_usd(self, token: str, usd_amount: float) -> float:
        """Convert a USD amount to whole tokens."""
        price = await self.get_price(token)
        return usd_amount / price.price

    async def base_units_to_usd(self, token: str, amount: int | str, decimals: int) -> float:
        """Value an integer base-unit amount in USD."""
        whole = Decimal(int(amount)) / (Decimal(10) ** decimals)
        return await self.convert_to_usd(token, whole)

    def get_all_cached_prices(self) -> dict[str, TokenPrice]:
        """Snapshot of the in-process cache, regardless of staleness."""
        return {symbol: cached.to_price() for symbol, cached in sorted(self._memory.items())}

    async def refresh_price(self, token: str) -> TokenPrice:
        """Drop any cached price for `token` and fetch it again."""
        key = normalize_symbol(token)
        self._memory.pop(key, None)
        try:
            await asyncio.wait_for(
                self._cache.delete(f"{PRICE_KEY_PREFIX}{key}"),
                timeout=self._config.fetch_timeout_seconds,
            )
        except Exception as e:
            logger.warning("price_cache_delete_failed", token=key, error=str(e))
        return await self._fetch_price(key)

    async def refresh_all(self) -> int:
        """Batch-refresh tracked symbols from the first batch-capable source.

        Returns:
            Number of symbols updated
        """
        primary = next((s for s in self._sources if hasattr(s, "fetch_prices")), None)
        if primary is None:
            logger.debug("price_refresh_skipped", reason="no batch-capable source")
            return 0

        symbols = sorted(
            set(getattr(primary, "tracked_symbols", ()))
            | {normalize_symbol(s) for s in self._config.fallback_prices}
        )
        observations = await asyncio.wait_for(
            primary.fetch_prices(symbols), timeout=self._config.fetch_timeout_seconds
        )
        for symbol, observation in observations.items():
            await self._store(
                symbol,
                TokenPrice(
                    price=observation.price,
                    source=primary.name,
                    timestamp=observation.updated_at,
                    confidence=primary.confidence,
                ),
            )

        logger.debug("price_refresh_completed", tokens_updated=len(observations))
        return len(observations)

    def start_auto_refresh(self, interval_seconds: float | None = None) -> None:
        """Start the periodic background refresh on the running event loop."""
        interval = (
            self._config.price_refresh_interval_seconds
            if interval_seconds is None
            else interval_seconds
        )
        if self._refresh_task is not None:
            self._refresh_task.cancel()
        self._refresh_task = asyncio.get_running_loop().create_task(self._refresh_loop(interval))
        logger.info("price_auto_refresh_started", interval_seconds=interval)

    async def stop_auto_refresh(self) -> None:
        if self._refresh_task is None:
            return
        self._refresh_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._refresh_task
        self._refresh_task = None
        logger.info("price_auto_refresh_stopped")

    async def _refresh_loop(self, interval: float) -> None:
        while True:
            try:
                await self.refresh_all()
            except Exception:
                logger.exception("price_refresh_failed")
            await asyncio.sleep(interval)

    async def _fetch_price(self, key: str) -> TokenPrice:
        failures: list[str] = []

        for source in self._sources:
            try:
                observation = await asyncio.wait_for(
                    source.fetch_price(key), timeout=self._config.fetch_timeout_seconds
                )
                if not math.isfinite(observation.price) or observation.price <= 0:
                    raise PriceSourceError(f"invalid price {observation.price!r}")

                price = TokenPrice(
                    price=observation.price,
                    source=source.name,
                    timestamp=observation.updated_at,
                    confidence=source.confidence,
                )
            except Exception as e:
                detail = str(e) or type(e).__name__
                failures.append(f"{source.name}: {detail}")
                logger.warning("price_source_failed", source=source.name, token=key, error=detail)
                continue

            await self._store(key, price)
            return price

        raise PriceUnavailable(key, "; ".join(failures) or "no price sources configured")

    async def _store(self, key: str, price: TokenPrice) -> None:
        cached = CachedPrice(**price.model_dump(), cached_at=self._clock())
        self._memory[key] = cached
        await cache_write(
            self._cache,
            f"{PRICE_KEY_PREFIX}{key}",
            cached.model_dump_json(by_alias=True),
            ttl=self._config.price_cache_ttl_seconds,
            timeout=self._config.fetch_timeout_seconds,
        )

    async def _read_shared(self, key: str) -> CachedPrice | None:
        raw = await cache_read(
            self._cache, f"{PRICE_KEY_PREFIX}{key}", timeout=self._config.fetch_timeout_seconds
        )
        if raw is None:
            return None
        try:
            return CachedPrice.model_validate_json(raw)
        except ValidationError:
            logger.warning("price_cache_entry_invalid", token=key)
            return None

    def _is_valid(self, cached: CachedPrice) -> bool:
        age = self._clock() - cached.cached_at
        return age < self._config.staleness_thresholds[cached.confidence]


__all__ = ["PriceOracle", "default_price_sources", "PRICE_KEY_PREFIX"]
