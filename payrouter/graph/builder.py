"""Liquidity graph construction.

A graph is built per payment intent: the source chain's swap subgraph, bridge
edges out of the source chain, and the settlement chain's swap subgraph. Edge
annotations (fees, slippage, gas, input price) come from the liquidity source,
the gas estimator and the price oracle. Built graphs are published to the
shared cache keyed by source chain and token.
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass

import structlog
from pydantic import ValidationError

from payrouter.cache import MemoryCache, SharedCache, cache_read, cache_write
from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.constants import BRIDGE_SLIPPAGE, TokenInfo
from payrouter.errors import GraphBuildFailure
from payrouter.gas.estimator import GasEstimator
from payrouter.graph.liquidity import LiquiditySource, StaticLiquiditySource
from payrouter.graph.types import GraphEdge, GraphNode, GraphSnapshot, GraphWorkingSet, edge_id
from payrouter.models.intent import PaymentIntent
from payrouter.models.types import Chain, TxType, normalize_symbol
from payrouter.pricing.oracle import PriceOracle
from payrouter.pricing.types import TokenPrice

logger = structlog.get_logger()

GRAPH_KEY_PREFIX = "graph:"


@dataclass(frozen=True)
class _EdgeSpec:
    """An edge to be priced: endpoints, kind and provider."""

    from_node: GraphNode
    to_node: GraphNode
    type: TxType
    provider: str

    @property
    def id(self) -> str:
        return edge_id(self.from_node, self.to_node, self.provider)


def graph_cache_key(chain: Chain, token: str) -> str:
    return f"{GRAPH_KEY_PREFIX}{chain.value}:{token}"


def swap_slippage(liquidity_usd: float, reference_usd: float, cap: float) -> float:
    """Modeled slippage of a reference-sized trade against `liquidity_usd`."""
    if liquidity_usd <= 0:
        return cap
    return min(reference_usd / liquidity_usd * 2, cap)


class LiquidityGraph:
    """Builds GraphSnapshots for payment intents.

    Concurrent build() calls are safe: each call owns its working set and the
    only shared state is the cache.

    Args:
        price_oracle: Prices edge input tokens
        gas_estimator: Costs the on-chain operation of each edge
        liquidity_source: Pool and bridge lookups. Defaults to the static tables.
        cache: Shared cache for published graphs
        config: Router configuration
        clock: Source of the current time in seconds
    """

    def __init__(
        self,
        price_oracle: PriceOracle,
        gas_estimator: GasEstimator,
        liquidity_source: LiquiditySource | None = None,
        cache: SharedCache | None = None,
        config: RouterConfig = DEFAULT_ROUTER_CONFIG,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._oracle = price_oracle
        self._gas = gas_estimator
        self._liquidity = (
            liquidity_source if liquidity_source is not None else StaticLiquiditySource()
        )
        self._cache: SharedCache = cache if cache is not None else MemoryCache(clock=clock)
        self._config = config
        self._clock = clock

    def resolve_token(self, chain: Chain, symbol: str) -> TokenInfo | None:
        """Configured token on `chain` matching `symbol` case-insensitively."""
        chain_tokens = self._config.tokens.get(chain, {})
        if symbol in chain_tokens:
            return chain_tokens[symbol]
        wanted = normalize_symbol(symbol)
        for candidate, info in chain_tokens.items():
            if normalize_symbol(candidate) == wanted:
                return info
        return None

    def create_node(
        self,
        chain: Chain,
        token: str,
        token_address: str | None = None,
        decimals: int | None = None,
    ) -> GraphNode:
        info = self.resolve_token(chain, token)
        if info is not None:
            return GraphNode(
                chain=chain, token=info.symbol, token_address=info.address, decimals=info.decimals
            )
        return GraphNode(
            chain=chain,
            token=token,
            token_address=token_address,
            decimals=decimals if decimals is not None else 18,
        )

    def source_node(self, intent: PaymentIntent) -> GraphNode:
        return self.create_node(
            intent.source_chain,
            intent.source_token,
            intent.source_token_address,
            intent.source_token_decimals,
        )

    def destination_node(self, intent: PaymentIntent) -> GraphNode:
        return self.create_node(self._config.settlement_chain, intent.destination_token)

    async def build(self, intent: PaymentIntent) -> GraphSnapshot:
        """Build (or reuse) the liquidity graph for an intent.

        Raises:
            GraphBuildFailure: If the destination token is unknown on the
                settlement chain or no edge reaches it
        """
        source = self.source_node(intent)
        destination = self.destination_node(intent)
        if self.resolve_token(destination.chain, destination.token) is None:
            raise GraphBuildFailure(
                f"Destination token {intent.destination_token} is not configured "
                f"on {destination.chain.value}"
            )

        cache_key = graph_cache_key(source.chain, source.token)
        cached = await self._read_cached(cache_key)
        if cached is not None and cached.get_node(source.id) not in (None, source):
            # Same symbol declared with another address or decimals
            logger.info("graph_cache_source_mismatch", key=cache_key, node=source.id)
            cached = None
        if cached is not None:
            logger.debug("graph_cache_hit", key=cache_key, edges=cached.edge_count)
            return cached

        start = time.perf_counter()
        working = GraphWorkingSet()
        working.add_node(source)
        working.add_node(destination)

        specs: list[_EdgeSpec] = []
        specs.extend(self._swap_specs(working, source.chain, extra=source))
        if source.chain != destination.chain:
            specs.extend(self._bridge_specs(working, source.chain))
            specs.extend(self._swap_specs(working, destination.chain))

        edges = await self._build_edges(specs)
        for edge in edges:
            if edge is not None:
                working.add_edge(edge)

        if source.id != destination.id and not any(
            edge.to_node.id == destination.id for edge in working.edges.values()
        ):
            raise GraphBuildFailure(f"No edge reaches destination {destination.id}")

        snapshot = working.snapshot(built_at=self._clock())
        await cache_write(
            self._cache,
            cache_key,
            snapshot.model_dump_json(by_alias=True),
            ttl=self._config.graph_cache_ttl_seconds,
            timeout=self._config.fetch_timeout_seconds,
        )

        logger.info(
            "graph_built",
            source=source.id,
            destination=destination.id,
            nodes=snapshot.node_count,
            edges=snapshot.edge_count,
            omitted=sum(1 for edge in edges if edge is None),
            elapsed_ms=round((time.perf_counter() - start) * 1000, 2),
        )
        return snapshot

    def _swap_specs(
        self, working: GraphWorkingSet, chain: Chain, extra: GraphNode | None = None
    ) -> list[_EdgeSpec]:
        """Bidirectional swap edges for every token pair on `chain` and every DEX."""
        nodes = [
            working.add_node(self.create_node(chain, symbol))
            for symbol in self._config.tokens.get(chain, {})
        ]
        if extra is not None and extra.id not in {node.id for node in nodes}:
            nodes.append(working.add_node(extra))

        specs = []
        for provider in self._config.dex_providers.get(chain, ()):
            for i, token_a in enumerate(nodes):
                for token_b in nodes[i + 1 :]:
                    specs.append(_EdgeSpec(token_a, token_b, TxType.SWAP, provider))
                    specs.append(_EdgeSpec(token_b, token_a, TxType.SWAP, provider))
        return specs

    def _bridge_specs(self, working: GraphWorkingSet, source_chain: Chain) -> list[_EdgeSpec]:
        """Bridge edges out of `source_chain` for every shared bridgeable token."""
        specs = []
        for bridge in self._config.bridge_providers:
            if source_chain not in bridge.chains:
                continue
            for symbol in self._config.bridge_tokens:
                if self.resolve_token(source_chain, symbol) is None:
                    continue
                from_node = working.add_node(self.create_node(source_chain, symbol))
                for target_chain in bridge.chains:
                    if target_chain == source_chain:
                        continue
                    if self.resolve_token(target_chain, symbol) is None:
                        continue
                    to_node = working.add_node(self.create_node(target_chain, symbol))
                    specs.append(_EdgeSpec(from_node, to_node, TxType.BRIDGE, bridge.name))
        return specs

    async def _build_edges(self, specs: list[_EdgeSpec]) -> list[GraphEdge | None]:
        """Annotate specs concurrently; results keep the order of `specs`."""
        prices = await self._price_inputs(spec.from_node.token for spec in specs)
        gas = await self._gas_costs((spec.from_node.chain, spec.type) for spec in specs)
        built_at = self._clock()
        return await asyncio.gather(
            *(self._build_edge(spec, prices, gas, built_at) for spec in specs)
        )

    async def _price_inputs(self, tokens: Iterable[str]) -> dict[str, TokenPrice | None]:
        """Price each distinct input token once; None marks an unpriceable token."""
        symbols = list(dict.fromkeys(tokens))
        results = await asyncio.gather(
            *(self._oracle.get_price(symbol) for symbol in symbols), return_exceptions=True
        )
        prices: dict[str, TokenPrice | None] = {}
        for symbol, result in zip(symbols, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning("edge_input_unpriced", token=symbol, error=str(result))
                prices[symbol] = None
            else:
                prices[symbol] = result
        return prices

    async def _gas_costs(
        self, operations: Iterable[tuple[Chain, TxType]]
    ) -> dict[tuple[Chain, TxType], float | None]:
        keys = list(dict.fromkeys(operations))
        results = await asyncio.gather(
            *(self._gas.estimate(chain, tx_type) for chain, tx_type in keys),
            return_exceptions=True,
        )
        costs: dict[tuple[Chain, TxType], float | None] = {}
        for (chain, tx_type), result in zip(keys, results):
            if isinstance(result, BaseException):
                if not isinstance(result, Exception):
                    raise result
                logger.warning(
                    "edge_gas_unavailable",
                    chain=chain.value,
                    tx_type=tx_type.value,
                    error=str(result),
                )
                costs[(chain, tx_type)] = None
            else:
                costs[(chain, tx_type)] = result
        return costs

    async def _build_edge(
        self,
        spec: _EdgeSpec,
        prices: dict[str, TokenPrice | None],
        gas: dict[tuple[Chain, TxType], float | None],
        built_at: float,
    ) -> GraphEdge | None:
        price = prices.get(spec.from_node.token)
        gas_usd = gas.get((spec.from_node.chain, spec.type))
        if price is None or gas_usd is None:
            return None

        try:
            if spec.type is TxType.BRIDGE:
                bridge = await asyncio.wait_for(
                    self._liquidity.bridge_liquidity(
                        spec.from_node.chain,
                        spec.to_node.chain,
                        spec.from_node.token,
                        spec.provider,
                    ),
                    timeout=self._config.fetch_timeout_seconds,
                )
                liquidity_usd = bridge.liquidity_usd
                fee_fraction = bridge.fee_fraction
                slippage = BRIDGE_SLIPPAGE
                eta = bridge.eta_seconds
            else:
                pool = await asyncio.wait_for(
                    self._liquidity.pool_liquidity(
                        spec.from_node.chain,
                        spec.from_node.token,
                        spec.to_node.token,
                        spec.provider,
                    ),
                    timeout=self._config.fetch_timeout_seconds,
                )
                liquidity_usd = pool.tvl_usd
                fee_fraction = pool.fee_fraction
                slippage = swap_slippage(
                    liquidity_usd, self._config.reference_notional_usd, self._config.slippage_cap
                )
                eta = self._gas.estimated_time(spec.from_node.chain, spec.type)

            return GraphEdge(
                id=spec.id,
                from_node=spec.from_node,
                to_node=spec.to_node,
                type=spec.type,
                provider=spec.provider,
                fee_fraction=fee_fraction,
                cost_usd=self._config.reference_notional_usd * fee_fraction,
                liquidity_usd=max(liquidity_usd, 0.0),
                gas_estimate_usd=gas_usd,
                slippage=slippage,
                eta_seconds=eta,
                last_updated=built_at,
                token_price_usd=price.price,
                price_source=price.source,
                price_confidence=price.confidence,
            )
        except Exception as e:
            logger.warning(
                "edge_omitted",
                edge=spec.id,
                type=spec.type.value,
                error=str(e) or type(e).__name__,
            )
            return None

    async def _read_cached(self, key: str) -> GraphSnapshot | None:
        raw = await cache_read(self._cache, key, timeout=self._config.fetch_timeout_seconds)
        if raw is None:
            return None
        try:
            snapshot = GraphSnapshot.model_validate_json(raw)
        except ValidationError:
            logger.warning("graph_cache_entry_invalid", key=key)
            return None
        if self._clock() - snapshot.built_at >= self._config.graph_freshness_seconds:
            return None
        return snapshot


__all__ = ["LiquidityGraph", "graph_cache_key", "swap_slippage", "GRAPH_KEY_PREFIX"]
