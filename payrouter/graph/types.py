"""Liquidity graph data structures.

Nodes are identified by "<chain>:<token>" and edges by
"<from id>-><to id>:<provider>". Several providers between the same pair of
nodes are distinct edges.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from payrouter.models.types import Chain, Confidence, TxType, node_id


class GraphNode(BaseModel):
    """A (chain, token) vertex."""

    chain: Chain
    token: str
    token_address: str | None = Field(default=None, alias="tokenAddress")
    decimals: int = Field(default=18, ge=0, le=77)

    model_config = {"populate_by_name": True, "frozen": True}

    @property
    def id(self) -> str:
        return node_id(self.chain, self.token)


def edge_id(from_node: GraphNode, to_node: GraphNode, provider: str) -> str:
    return f"{from_node.id}->{to_node.id}:{provider}"


class GraphEdge(BaseModel):
    """A directed swap, bridge or transfer offered by one provider.

    Cost fields are annotated at the reference notional; `liquidity_usd` only
    feeds the slippage model and is not a capacity limit. The price fields
    record the input-token price the edge was valued with.
    """

    id: str
    from_node: GraphNode = Field(alias="from")
    to_node: GraphNode = Field(alias="to")
    type: TxType
    provider: str
    fee_fraction: float = Field(alias="feeFraction", ge=0.0, le=1.0)
    cost_usd: float = Field(alias="costUSD", ge=0.0)
    liquidity_usd: float = Field(alias="liquidityUSD", ge=0.0)
    gas_estimate_usd: float = Field(alias="gasEstimateUSD", ge=0.0)
    slippage: float = Field(ge=0.0, le=1.0)
    eta_seconds: float = Field(alias="etaSeconds", ge=0.0)
    last_updated: float = Field(alias="lastUpdated")
    token_price_usd: float = Field(alias="tokenPriceUSD", gt=0.0)
    price_source: str = Field(alias="priceSource")
    price_confidence: Confidence = Field(alias="priceConfidence")

    model_config = {"populate_by_name": True, "frozen": True}


class GraphSnapshot(BaseModel):
    """Immutable result of one LiquidityGraph.build() call.

    `adjacency` lists outgoing edge ids per node id in insertion order, which
    makes traversal order reproducible.
    """

    nodes: dict[str, GraphNode] = Field(default_factory=dict)
    edges: dict[str, GraphEdge] = Field(default_factory=dict)
    adjacency: dict[str, list[str]] = Field(default_factory=dict)
    built_at: float = Field(alias="builtAt")

    model_config = {"populate_by_name": True}

    def get_node(self, node_id_: str) -> GraphNode | None:
        return self.nodes.get(node_id_)

    def get_edge(self, edge_id_: str) -> GraphEdge | None:
        return self.edges.get(edge_id_)

    def edges_from(self, node_id_: str) -> list[GraphEdge]:
        return [self.edges[eid] for eid in self.adjacency.get(node_id_, []) if eid in self.edges]

    def edges_into(self, node_id_: str) -> list[GraphEdge]:
        return [edge for edge in self.edges.values() if edge.to_node.id == node_id_]

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)


class GraphWorkingSet:
    """Mutable node/edge maps owned by a single build() call.

    Both add methods are idempotent, so exhaustive pairwise insertion never
    duplicates a node or an edge.
    """

    def __init__(self) -> None:
        self.nodes: dict[str, GraphNode] = {}
        self.edges: dict[str, GraphEdge] = {}
        self.adjacency: dict[str, list[str]] = {}

    def add_node(self, node: GraphNode) -> GraphNode:
        """Add a node unless its id exists; return the stored node."""
        existing = self.nodes.get(node.id)
        if existing is not None:
            return existing
        self.nodes[node.id] = node
        self.adjacency[node.id] = []
        return node

    def add_edge(self, edge: GraphEdge) -> bool:
        """Add an edge unless its id exists. Returns True if it was added."""
        if edge.id in self.edges:
            return False
        self.add_node(edge.from_node)
        self.add_node(edge.to_node)
        self.edges[edge.id] = edge
        self.adjacency[edge.from_node.id].append(edge.id)
        return True

    def snapshot(self, built_at: float) -> GraphSnapshot:
        return GraphSnapshot(
            nodes=dict(self.nodes),
            edges=dict(self.edges),
            adjacency={k: list(v) for k, v in self.adjacency.items()},
            built_at=built_at,
        )


__all__ = ["GraphNode", "GraphEdge", "GraphSnapshot", "GraphWorkingSet", "edge_id"]
