"""Candidate route enumeration over a liquidity graph."""

from __future__ import annotations

import structlog

from payrouter.graph.types import GraphEdge, GraphNode, GraphSnapshot
from payrouter.models.route import Route, RouteStep
from payrouter.models.types import RouteType, TxType

logger = structlog.get_logger()

DEFAULT_MAX_HOPS = 4


def classify_route(steps: list[RouteStep]) -> RouteType:
    """direct for a single non-bridge hop, bridge for exactly one bridge hop, else multi_hop."""
    bridges = sum(1 for step in steps if step.type is TxType.BRIDGE)
    if len(steps) == 1 and bridges == 0:
        return RouteType.DIRECT
    if bridges == 1:
        return RouteType.BRIDGE
    return RouteType.MULTI_HOP


def edge_to_step(edge: GraphEdge, amount: str = "0") -> RouteStep:
    return RouteStep(
        type=edge.type,
        from_chain=edge.from_node.chain,
        to_chain=edge.to_node.chain,
        from_token=edge.from_node.token,
        to_token=edge.to_node.token,
        from_token_address=edge.from_node.token_address,
        to_token_address=edge.to_node.token_address,
        amount=amount,
        provider=edge.provider,
        gas_estimate=edge.gas_estimate_usd,
        fee=edge.cost_usd,
        estimated_slippage=edge.slippage if edge.type is TxType.SWAP else None,
    )


class RouteOptimizer:
    """Enumerates simple paths between two graph nodes.

    Routes come back in depth-first order over the graph's adjacency lists,
    so the same graph always yields the same list. Costs on the returned
    routes are the graph's reference-notional annotations; RoutingEngine
    rescores them for the actual amount.

    Args:
        max_hops: Longest path to enumerate
    """

    def __init__(self, max_hops: int = DEFAULT_MAX_HOPS) -> None:
        if max_hops < 1:
            raise ValueError(f"max_hops must be >= 1, got {max_hops}")
        self.max_hops = max_hops

    def find_all_routes(
        self,
        graph: GraphSnapshot,
        source: GraphNode,
        destination: GraphNode,
        amount: str = "0",
    ) -> list[Route]:
        """Every simple path from `source` to `destination` within max_hops.

        `amount` is set on the first step; later step amounts depend on
        pricing and are filled in by the caller.
        """
        if source.id not in graph.nodes or destination.id not in graph.nodes:
            logger.debug("route_endpoint_missing", source=source.id, destination=destination.id)
            return []

        paths: list[list[GraphEdge]] = []
        self._walk(graph, source.id, destination.id, [], {source.id}, paths)

        routes = [self._to_route(path, amount) for path in paths]
        logger.debug(
            "routes_enumerated",
            source=source.id,
            destination=destination.id,
            max_hops=self.max_hops,
            count=len(routes),
        )
        return routes

    def _walk(
        self,
        graph: GraphSnapshot,
        current: str,
        target: str,
        path: list[GraphEdge],
        visited: set[str],
        out: list[list[GraphEdge]],
    ) -> None:
        if len(path) >= self.max_hops:
            return
        for edge in graph.edges_from(current):
            next_id = edge.to_node.id
            if next_id in visited:
                continue
            path.append(edge)
            if next_id == target:
                out.append(list(path))
            else:
                visited.add(next_id)
                self._walk(graph, next_id, target, path, visited, out)
                visited.remove(next_id)
            path.pop()

    def _to_route(self, path: list[GraphEdge], amount: str) -> Route:
        steps = [edge_to_step(edge, amount if i == 0 else "0") for i, edge in enumerate(path)]
        gas = sum(edge.gas_estimate_usd for edge in path)
        fees = sum(edge.cost_usd for edge in path)
        return Route(
            route_type=classify_route(steps),
            steps=steps,
            estimated_gas_cost_usd=gas,
            estimated_time_seconds=sum(edge.eta_seconds for edge in path),
            total_cost_usd=gas + fees,
        )


__all__ = ["RouteOptimizer", "classify_route", "edge_to_step", "DEFAULT_MAX_HOPS"]
