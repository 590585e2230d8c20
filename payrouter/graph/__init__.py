from payrouter.graph.builder import LiquidityGraph, graph_cache_key, swap_slippage
from payrouter.graph.liquidity import (
    BridgeLiquidity,
    LiquiditySource,
    PoolLiquidity,
    StaticLiquiditySource,
)
from payrouter.graph.types import GraphEdge, GraphNode, GraphSnapshot, GraphWorkingSet, edge_id

__all__ = [
    "LiquidityGraph",
    "graph_cache_key",
    "swap_slippage",
    "BridgeLiquidity",
    "LiquiditySource",
    "PoolLiquidity",
    "StaticLiquiditySource",
    "GraphEdge",
    "GraphNode",
    "GraphSnapshot",
    "GraphWorkingSet",
    "edge_id",
]
