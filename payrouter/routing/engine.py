"""Route selection.

RoutingEngine builds the liquidity graph for an intent, enumerates candidate
routes and rescores each one for the intent's actual amount:

    gas      = sum of GasEstimator.estimate() per step
    fees     = sum of step input USD * edge fee fraction
    slippage = sum of step input USD * edge slippage (swap steps only)
    total    = gas + fees + slippage

Routes are ranked by (total cost, hop count, estimated time, path signature)
so the selection never depends on dict or task completion order.
"""

from __future__ import annotations

import time
from collections.abc import Callable
from decimal import ROUND_DOWN, Decimal

import structlog

from payrouter.cache import MemoryCache, RedisCache, SharedCache
from payrouter.config import DEFAULT_ROUTER_CONFIG, RouterConfig
from payrouter.errors import NoRouteFound, PriceUnavailable
from payrouter.gas.estimator import GasEstimator
from payrouter.gas.fee_data import FeeDataSource
from payrouter.graph.builder import LiquidityGraph
from payrouter.graph.liquidity import LiquiditySource
from payrouter.graph.types import GraphNode, GraphSnapshot
from payrouter.models.intent import PaymentIntent
from payrouter.models.route import Route, RouteStep
from payrouter.models.types import RouteType, TxType
from payrouter.pricing.oracle import PriceOracle
from payrouter.pricing.sources import PriceSource
from payrouter.routing.optimizer import RouteOptimizer

logger = structlog.get_logger()

NOOP_PROVIDER = "none"


def rank_key(route: Route) -> tuple[float, int, float, str]:
    return (
        route.total_cost_usd,
        route.hop_count,
        route.estimated_time_seconds,
        route.signature,
    )


def _to_base_units(whole: Decimal, decimals: int) -> int:
    return int((whole * (Decimal(10) ** decimals)).to_integral_value(rounding=ROUND_DOWN))


class RoutingEngine:
    """Finds the cheapest route for a payment intent.

    Args:
        price_oracle: Token pricing
        gas_estimator: Per-step gas costing
        graph: Liquidity graph builder
        optimizer: Candidate route enumeration
        config: Router configuration
    """

    def __init__(
        self,
        price_oracle: PriceOracle,
        gas_estimator: GasEstimator,
        graph: LiquidityGraph,
        optimizer: RouteOptimizer | None = None,
        config: RouterConfig = DEFAULT_ROUTER_CONFIG,
    ) -> None:
        self.price_oracle = price_oracle
        self.gas_estimator = gas_estimator
        self.graph = graph
        self.optimizer = optimizer if optimizer is not None else RouteOptimizer(config.max_hops)
        self.config = config

    @classmethod
    def from_config(
        cls,
        config: RouterConfig = DEFAULT_ROUTER_CONFIG,
        cache: SharedCache | None = None,
        price_sources: list[PriceSource] | None = None,
        fee_data: FeeDataSource | None = None,
        liquidity_source: LiquiditySource | None = None,
        clock: Callable[[], float] = time.time,
    ) -> RoutingEngine:
        """Wire an engine and its collaborators around one shared cache."""
        shared: SharedCache = cache if cache is not None else MemoryCache(clock=clock)
        oracle = PriceOracle(sources=price_sources, cache=shared, config=config, clock=clock)
        gas = GasEstimator(oracle, fee_data=fee_data, config=config, clock=clock)
        graph = LiquidityGraph(
            oracle,
            gas,
            liquidity_source=liquidity_source,
            cache=shared,
            config=config,
            clock=clock,
        )
        return cls(oracle, gas, graph, RouteOptimizer(config.max_hops), config)

    async def find_optimal_route(self, intent: PaymentIntent) -> Route:
        """Cheapest route for `intent`.

        Raises:
            PriceUnavailable: The source or destination token cannot be priced
            GraphBuildFailure: The graph has no edge into the destination
            NoRouteFound: No path within the hop bound
        """
        routes = await self.rank_routes(intent)
        best = routes[0]
        logger.info(
            "optimal_route_selected",
            intent_id=intent.id,
            route_type=best.route_type.value,
            hops=best.hop_count,
            total_cost_usd=round(best.total_cost_usd, 6),
            candidates=len(routes),
        )
        return best

    async def rank_routes(self, intent: PaymentIntent) -> list[Route]:
        """All scored candidate routes for `intent`, best first."""
        source = self.graph.source_node(intent)
        destination = self.graph.destination_node(intent)

        if source.id == destination.id:
            return [self._noop_route(intent, source)]

        # Fatal: without these prices no route can be valued
        await self.price_oracle.get_price(source.token)
        await self.price_oracle.get_price(destination.token)

        snapshot = await self.graph.build(intent)
        candidates = self.optimizer.find_all_routes(snapshot, source, destination, intent.amount)
        logger.debug("route_candidates", intent_id=intent.id, count=len(candidates))

        scored: list[Route] = []
        for candidate in candidates:
            try:
                scored.append(await self.score_route(candidate, snapshot, intent))
            except PriceUnavailable as e:
                logger.warning(
                    "route_unscored",
                    intent_id=intent.id,
                    route=candidate.signature,
                    token=e.symbol,
                )

        if not scored:
            raise NoRouteFound(source.id, destination.id, self.optimizer.max_hops)

        scored.sort(key=rank_key)
        return scored

    async def score_route(
        self, route: Route, graph: GraphSnapshot, intent: PaymentIntent
    ) -> Route:
        """Reprice `route` for the intent amount, propagating amounts through its steps."""
        gas_usd = 0.0
        fees_usd = 0.0
        slippage_usd = 0.0
        input_usd: float | None = None
        amount = int(route.steps[0].amount)
        steps: list[RouteStep] = []

        for step in route.steps:
            edge = graph.get_edge(step.edge_id)
            if edge is None:
                raise ValueError(f"Route references unknown edge {step.edge_id}")

            from_price = (await self.price_oracle.get_price(step.from_token)).price
            in_whole = Decimal(amount) / (Decimal(10) ** edge.from_node.decimals)
            in_usd = float(in_whole * Decimal(str(from_price)))
            if input_usd is None:
                input_usd = in_usd

            step_gas = await self.gas_estimator.estimate(step.from_chain, step.type, str(amount))
            fee = in_usd * edge.fee_fraction
            step_slippage = in_usd * edge.slippage if step.type is TxType.SWAP else 0.0

            gas_usd += step_gas
            fees_usd += fee
            slippage_usd += step_slippage

            steps.append(
                step.model_copy(
                    update={"amount": str(amount), "gas_estimate": step_gas, "fee": fee}
                )
            )
            logger.debug(
                "route_step_scored",
                edge=edge.id,
                in_usd=round(in_usd, 6),
                gas_usd=round(step_gas, 6),
                fee_usd=round(fee, 6),
                slippage_usd=round(step_slippage, 6),
            )

            out_usd = max(in_usd - fee - step_slippage, 0.0)
            to_price = (await self.price_oracle.get_price(step.to_token)).price
            amount = _to_base_units(
                Decimal(str(out_usd)) / Decimal(str(to_price)), edge.to_node.decimals
            )

        total = gas_usd + fees_usd + slippage_usd
        return route.model_copy(
            update={
                "payment_intent_id": intent.id,
                "steps": steps,
                "estimated_gas_cost_usd": gas_usd,
                "estimated_slippage": slippage_usd / input_usd if input_usd else 0.0,
                "total_cost_usd": total,
            }
        )

    def _noop_route(self, intent: PaymentIntent, node: GraphNode) -> Route:
        logger.info("noop_route", intent_id=intent.id, node=node.id)
        step = RouteStep(
            type=TxType.TRANSFER,
            from_chain=node.chain,
            to_chain=node.chain,
            from_token=node.token,
            to_token=node.token,
            from_token_address=node.token_address,
            to_token_address=node.token_address,
            amount=intent.amount,
            provider=NOOP_PROVIDER,
        )
        return Route(
            payment_intent_id=intent.id,
            route_type=RouteType.DIRECT,
            steps=[step],
        )


_default_engine: RoutingEngine | None = None


def get_default_engine() -> RoutingEngine:
    """Lazily build the process-wide engine from environment configuration."""
    global _default_engine
    if _default_engine is None:
        config = RouterConfig.from_env()
        cache = RedisCache(config.redis_url) if config.redis_url else None
        _default_engine = RoutingEngine.from_config(config, cache=cache)
    return _default_engine


__all__ = ["RoutingEngine", "get_default_engine", "rank_key", "NOOP_PROVIDER"]
