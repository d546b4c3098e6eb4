"""Tests for post-processing stages and their contracts."""

import networkx as nx
import pytest

from transitgen.density_grid import Point
from transitgen.network import generate_network
from transitgen.postprocess import (
    ConnectivityRepair,
    RouteMerger,
    RoutePostProcessor,
    check_merge_contract,
    edges_near_duplicate,
)
from transitgen.routes import Edge, TransitNetwork


A = Point(0, 0, 5.0)
B = Point(3, 0, 4.0)
C = Point(3, 4, 3.0)
D = Point(20, 0, 2.0)
E = Point(21, 1, 6.0)
F = Point(40, 40, 1.0)
G = Point(41, 40, 1.5)


class ExactDuplicateMerger(RouteMerger):
    """Drop edges that repeat an earlier edge within tolerance."""

    def merge_edges(self, edges):
        kept = []
        for edge in edges:
            if not any(edges_near_duplicate(edge, k, self.tolerance) for k in kept):
                kept.append(edge)
        return kept


class DroppingMerger(RouteMerger):
    """Violates the contract by discarding the last edge."""

    def merge_edges(self, edges):
        return edges[:-1]


def _network(*routes):
    network = TransitNetwork()
    for edges in routes:
        network.add_route(list(edges))
    return network


def test_base_stages_require_override():
    network = _network([Edge(A, B)])
    with pytest.raises(NotImplementedError):
        RoutePostProcessor().process(network)
    with pytest.raises(NotImplementedError):
        RouteMerger().process(network)


class TestNearDuplicate:
    def test_same_direction(self):
        assert edges_near_duplicate(Edge(A, B), Edge(A, B), 0.0)

    def test_reverse_direction(self):
        assert edges_near_duplicate(Edge(A, B), Edge(B, A), 0.0)

    def test_tolerance(self):
        shifted = Edge(Point(0, 1, 5.0), Point(3, 1, 4.0))
        assert not edges_near_duplicate(Edge(A, B), shifted, 0.5)
        assert edges_near_duplicate(Edge(A, B), shifted, 1.0)


class TestMergeContract:
    def test_clean_merge_has_no_issues(self):
        before = [Edge(A, B), Edge(B, A), Edge(B, C)]
        after = [Edge(A, B), Edge(B, C)]
        assert check_merge_contract(before, after, 0.0) == []

    def test_reports_remaining_duplicates(self):
        after = [Edge(A, B), Edge(B, A)]
        issues = check_merge_contract(after, after, 0.0)
        assert len(issues) == 1
        assert "near-duplicates" in issues[0]

    def test_reports_lost_stations(self):
        issues = check_merge_contract([Edge(A, B), Edge(B, C)], [Edge(A, B)], 0.0)
        assert issues == ["station (3, 4) lost by merge"]

    def test_merger_remaps_routes(self):
        network = _network([Edge(A, B), Edge(B, C)], [Edge(C, B), Edge(B, A)])
        merged = ExactDuplicateMerger(tolerance=0.0).process(network)

        assert merged.edges == [Edge(A, B), Edge(B, C)]
        assert merged.routes[0].edge_ids == (0, 1)
        assert merged.routes[1].edge_ids == (1, 0)
        assert merged.metadata["merged_edges"] == 2
        # Input network is untouched
        assert len(network.edges) == 4

    def test_contract_violation_raises(self):
        network = _network([Edge(A, B), Edge(B, C)])
        with pytest.raises(ValueError, match="merge contract"):
            DroppingMerger(tolerance=0.0).process(network)


class TestConnectivityRepair:
    def test_connected_network_unchanged(self):
        network = _network([Edge(A, B), Edge(B, C)])
        repaired = ConnectivityRepair().process(network)
        assert repaired.edges == network.edges
        assert repaired.metadata["repair_edges"] == 0

    def test_empty_network(self):
        repaired = ConnectivityRepair().process(TransitNetwork())
        assert repaired.edges == []
        assert repaired.metadata["repair_edges"] == 0

    def test_joins_clusters_through_largest_stations(self):
        network = _network([Edge(A, B), Edge(B, C)], [Edge(D, E)], [Edge(F, G)])
        repaired = ConnectivityRepair().process(network)

        n = len(network.edges)
        assert repaired.edges[:n] == network.edges
        assert repaired.metadata["repair_edges"] == 2
        assert nx.is_connected(repaired.to_networkx())

        added = repaired.edges[n:]
        # Closest anchors first: A (5.0) and E (6.0), then E (kept) and G
        assert {added[0].source, added[0].target} == {A, E}
        assert {added[1].source, added[1].target} == {E, G}

    def test_repair_routes_are_appended(self):
        network = _network([Edge(A, B)], [Edge(D, E)])
        repaired = ConnectivityRepair().process(network)
        assert [r.route_id for r in repaired.routes] == [0, 1, 2]
        assert repaired.routes[2].edge_ids == (2,)
        assert len(network.routes) == 2

    def test_repair_on_generated_network(self, city_grid, generation_config):
        generation_config.routes = 15
        network = generate_network(
            city_grid, generation_config, post_processors=[ConnectivityRepair()]
        )
        graph = network.to_networkx()
        if graph.number_of_nodes():
            assert nx.is_connected(graph)
