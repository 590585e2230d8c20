"""USD cost of a single on-chain operation.

gas_units = BASE_GAS_UNITS[tx_type] * chain multiplier
cost_usd  = gas_price(chain) * gas_units / 1e18 * native token price

Gas prices come from live fee data on EVM chains and degrade to a static
per-chain constant on any failure; estimation itself never fails because of
an RPC problem.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable

import structlog

from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.constants import BASE_GAS_UNITS, BRIDGE_FINALITY_SECONDS
from payrouter.gas.fee_data import FeeDataSource, Web3FeeDataSource
from payrouter.models.types import Chain, TxType
from payrouter.pricing.oracle import PriceOracle

logger = structlog.get_logger()

WEI_PER_NATIVE = 10**18


class GasEstimator:
    """Estimates gas costs in USD.

    Args:
        price_oracle: Oracle used to price the chain's native token
        fee_data: Live fee data source. Defaults to web3 against config.rpc_urls.
        config: Router configuration
        clock: Source of the current time in seconds
    """

    def __init__(
        self,
        price_oracle: PriceOracle,
        fee_data: FeeDataSource | None = None,
        config: RouterConfig = DEFAULT_ROUTER_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._oracle = price_oracle
        self._fee_data = fee_data if fee_data is not None else Web3FeeDataSource(config.rpc_urls)
        self._config = config
        self._clock = clock
        # chain -> (gas price in wei, fetched at)
        self._gas_price_cache: dict[Chain, tuple[int, float]] = {}
        self._locks: dict[Chain, asyncio.Lock] = {}

    async def estimate(self, chain: Chain, tx_type: TxType, amount: str | int = "0") -> float:
        """Estimate the USD cost of one operation on `chain`.

        `amount` does not change the estimate today; it is accepted so callers
        can pass the step they are costing.
        """
        gas_price = await self.get_gas_price(chain)
        gas_units = self.gas_units(tx_type, chain)
        native_cost = gas_price * gas_units / WEI_PER_NATIVE
        if native_cost == 0:
            return 0.0

        native_price = await self._oracle.get_native_token_price(chain)
        cost_usd = native_cost * native_price

        logger.debug(
            "gas_estimation",
            chain=chain.value,
            tx_type=tx_type.value,
            gas_price_gwei=gas_price / 10**9,
            gas_units=gas_units,
            native_cost=round(native_cost, 8),
            native_price=native_price,
            cost_usd=round(cost_usd, 6),
        )
        return cost_usd

    async def estimate_route_gas(self, steps: Iterable[tuple[Chain, TxType]]) -> float:
        """Sum of estimates for (chain, tx_type) steps."""
        total = 0.0
        for chain, tx_type in steps:
            total += await self.estimate(chain, tx_type)
        return total

    def gas_units(self, tx_type: TxType, chain: Chain) -> int:
        return int(BASE_GAS_UNITS[tx_type] * self._config.chains[chain].gas_multiplier)

    def estimated_time(self, chain: Chain, tx_type: TxType) -> float:
        """Expected confirmation time in seconds for one operation."""
        base_time = self._config.chains[chain].block_time_seconds
        if tx_type is TxType.BRIDGE:
            return base_time + BRIDGE_FINALITY_SECONDS
        return base_time

    def fallback_gas_price(self, chain: Chain) -> int:
        return self._config.chains[chain].fallback_gas_price_wei

    async def get_gas_price(self, chain: Chain) -> int:
        """Current gas price in wei; never raises for a configured chain."""
        if not self._config.is_evm(chain):
            return self.fallback_gas_price(chain)

        cached = self._gas_price_cache.get(chain)
        if cached is not None and self._clock() - cached[1] < self._config.gas_price_cache_seconds:
            return cached[0]

        lock = self._locks.setdefault(chain, asyncio.Lock())
        async with lock:
            # Another task may have refreshed while we waited
            cached = self._gas_price_cache.get(chain)
            if (
                cached is not None
                and self._clock() - cached[1] < self._config.gas_price_cache_seconds
            ):
                return cached[0]

            try:
                fee_data = await asyncio.wait_for(
                    self._fee_data.get_fee_data(chain),
                    timeout=self._config.fetch_timeout_seconds,
                )
                gas_price = fee_data.native_fee_per_unit
                if gas_price is None or gas_price <= 0:
                    raise ValueError(f"malformed fee data: {fee_data!r}")
            except Exception as e:
                fallback = self.fallback_gas_price(chain)
                logger.warning(
                    "gas_estimation_degraded",
                    chain=chain.value,
                    error=str(e) or type(e).__name__,
                    fallback_gas_price_wei=fallback,
                )
                # Cached like a live value so a dead RPC is not retried per edge
                self._gas_price_cache[chain] = (fallback, self._clock())
                return fallback

            self._gas_price_cache[chain] = (int(gas_price), self._clock())
            return int(gas_price)


__all__ = ["GasEstimator", "WEI_PER_NATIVE"]
