"""Tests for RouteOptimizer path enumeration."""

import pytest

from payrouter.graph.types import GraphWorkingSet
from payrouter.models.types import Chain, RouteType, TxType
from payrouter.routing.optimizer import RouteOptimizer, classify_route, edge_to_step
from tests.helpers.factories import make_edge, make_node


def chain_graph(length: int):
    """Linear graph T0 -> T1 -> ... -> T<length> on stacks."""
    working = GraphWorkingSet()
    nodes = [make_node(token=f"T{i}") for i in range(length + 1)]
    for a, b in zip(nodes, nodes[1:]):
        working.add_edge(make_edge(a, b))
    return working.snapshot(built_at=0.0), nodes[0], nodes[-1]


def diamond_graph():
    """A -> B -> D, A -> C -> D, A -> D, plus B <-> C and D -> A back edges."""
    a, b, c, d = (make_node(token=t) for t in "ABCD")
    working = GraphWorkingSet()
    for src, dst in [(a, b), (a, c), (a, d), (b, d), (c, d), (b, c), (c, b), (d, a)]:
        working.add_edge(make_edge(src, dst))
    return working.snapshot(built_at=0.0), a, d


class TestEnumeration:
    """Simple paths within the hop bound."""

    def test_finds_all_simple_paths(self):
        graph, a, d = diamond_graph()

        routes = RouteOptimizer().find_all_routes(graph, a, d)

        paths = {tuple(r.node_ids) for r in routes}
        assert paths == {
            ("stacks:A", "stacks:B", "stacks:D"),
            ("stacks:A", "stacks:C", "stacks:D"),
            ("stacks:A", "stacks:D"),
            ("stacks:A", "stacks:B", "stacks:C", "stacks:D"),
            ("stacks:A", "stacks:C", "stacks:B", "stacks:D"),
        }

    def test_no_route_revisits_a_node(self):
        graph, a, d = diamond_graph()

        for route in RouteOptimizer(max_hops=10).find_all_routes(graph, a, d):
            assert len(route.node_ids) == len(set(route.node_ids))

    def test_routes_chain_end_to_end(self):
        graph, a, d = diamond_graph()

        for route in RouteOptimizer().find_all_routes(graph, a, d, amount="1000"):
            assert route.steps[0].from_node_id == a.id
            assert route.steps[-1].to_node_id == d.id
            assert route.steps[0].amount == "1000"
            assert 1 <= route.hop_count <= 4

    def test_parallel_providers_give_separate_routes(self):
        a, b = make_node(token="A"), make_node(token="B")
        working = GraphWorkingSet()
        working.add_edge(make_edge(a, b, provider="velar"))
        working.add_edge(make_edge(a, b, provider="alex"))

        routes = RouteOptimizer().find_all_routes(working.snapshot(0.0), a, b)

        assert [r.steps[0].provider for r in routes] == ["velar", "alex"]

    def test_same_order_every_time(self):
        graph, a, d = diamond_graph()
        optimizer = RouteOptimizer()

        first = [r.signature for r in optimizer.find_all_routes(graph, a, d)]
        second = [r.signature for r in optimizer.find_all_routes(graph, a, d)]

        assert first == second


class TestHopBound:
    """max_hops limits path length."""

    def test_four_hops_found(self):
        graph, source, dest = chain_graph(4)
        assert len(RouteOptimizer(max_hops=4).find_all_routes(graph, source, dest)) == 1

    def test_five_hops_exceed_default_bound(self):
        graph, source, dest = chain_graph(5)
        assert RouteOptimizer(max_hops=4).find_all_routes(graph, source, dest) == []

    def test_bound_is_configurable(self):
        graph, source, dest = chain_graph(5)
        routes = RouteOptimizer(max_hops=5).find_all_routes(graph, source, dest)
        assert routes[0].hop_count == 5

    def test_invalid_bound(self):
        with pytest.raises(ValueError):
            RouteOptimizer(max_hops=0)

    def test_missing_endpoint(self):
        graph, source, _ = chain_graph(2)
        assert RouteOptimizer().find_all_routes(graph, source, make_node(token="ZZZ")) == []


class TestClassification:
    """direct / bridge / multi_hop."""

    def _step(self, tx_type, from_chain=Chain.STACKS, to_chain=Chain.STACKS, token="USDC"):
        edge = make_edge(
            make_node(from_chain, token), make_node(to_chain, token + "x"), tx_type=tx_type
        )
        return edge_to_step(edge)

    def test_single_swap_is_direct(self):
        assert classify_route([self._step(TxType.SWAP)]) == RouteType.DIRECT

    def test_single_bridge_is_bridge(self):
        assert classify_route([self._step(TxType.BRIDGE)]) == RouteType.BRIDGE

    def test_bridge_then_swap_is_bridge(self):
        edges = [
            make_edge(
                make_node(Chain.ETHEREUM, "USDC"),
                make_node(Chain.STACKS, "USDC"),
                provider="allbridge",
                tx_type=TxType.BRIDGE,
            ),
            make_edge(make_node(Chain.STACKS, "USDC"), make_node(Chain.STACKS, "USDh")),
        ]
        steps = [edge_to_step(e) for e in edges]
        assert classify_route(steps) == RouteType.BRIDGE

    def test_two_swaps_are_multi_hop(self):
        edges = [
            make_edge(make_node(token="STX"), make_node(token="USDC")),
            make_edge(make_node(token="USDC"), make_node(token="USDh")),
        ]
        assert classify_route([edge_to_step(e) for e in edges]) == RouteType.MULTI_HOP

    def test_swap_steps_carry_slippage_bridges_do_not(self):
        assert self._step(TxType.SWAP).estimated_slippage == pytest.approx(0.002)
        assert self._step(TxType.BRIDGE).estimated_slippage is None
