"""Provider liquidity lookups used to annotate graph edges."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Protocol

from payrouter.constants import (
    BRIDGE_FEES,
    DEFAULT_BRIDGE_ETA_SECONDS,
    DEFAULT_BRIDGE_FEE,
    DEFAULT_BRIDGE_LIQUIDITY_USD,
    DEFAULT_DEX_FEE,
    DEFAULT_POOL_TVL_USD,
    DEX_FEES,
    FALLBACK_POOL_TVL_USD,
)
from payrouter.models.types import Chain


@dataclass(frozen=True)
class PoolLiquidity:
    """Depth and fee of a DEX pool (best effort)."""

    tvl_usd: float
    fee_fraction: float


@dataclass(frozen=True)
class BridgeLiquidity:
    """Depth, fee and expected delivery time of a bridge route."""

    liquidity_usd: float
    fee_fraction: float
    eta_seconds: float


class LiquiditySource(Protocol):
    """Protocol for provider liquidity lookups.

    Implementations may raise; the graph builder omits the affected edge.
    """

    async def pool_liquidity(
        self, chain: Chain, token_a: str, token_b: str, provider: str
    ) -> PoolLiquidity: ...

    async def bridge_liquidity(
        self, from_chain: Chain, to_chain: Chain, token: str, provider: str
    ) -> BridgeLiquidity: ...


class StaticLiquiditySource:
    """Table-driven estimates: typical pool depth per chain, fee per provider."""

    def __init__(
        self,
        pool_tvl_usd: Mapping[Chain, float] | None = None,
        dex_fees: Mapping[str, float] | None = None,
        bridge_fees: Mapping[str, float] | None = None,
        bridge_liquidity_usd: float = DEFAULT_BRIDGE_LIQUIDITY_USD,
        bridge_eta_seconds: float = DEFAULT_BRIDGE_ETA_SECONDS,
    ) -> None:
        self._pool_tvl = dict(DEFAULT_POOL_TVL_USD if pool_tvl_usd is None else pool_tvl_usd)
        self._dex_fees = dict(DEX_FEES if dex_fees is None else dex_fees)
        self._bridge_fees = dict(BRIDGE_FEES if bridge_fees is None else bridge_fees)
        self._bridge_liquidity = bridge_liquidity_usd
        self._bridge_eta = bridge_eta_seconds

    async def pool_liquidity(
        self, chain: Chain, token_a: str, token_b: str, provider: str
    ) -> PoolLiquidity:
        return PoolLiquidity(
            tvl_usd=self._pool_tvl.get(chain, FALLBACK_POOL_TVL_USD),
            fee_fraction=self._dex_fees.get(provider, DEFAULT_DEX_FEE),
        )

    async def bridge_liquidity(
        self, from_chain: Chain, to_chain: Chain, token: str, provider: str
    ) -> BridgeLiquidity:
        return BridgeLiquidity(
            liquidity_usd=self._bridge_liquidity,
            fee_fraction=self._bridge_fees.get(provider, DEFAULT_BRIDGE_FEE),
            eta_seconds=self._bridge_eta,
        )


__all__ = ["PoolLiquidity", "BridgeLiquidity", "LiquiditySource", "StaticLiquiditySource"]
