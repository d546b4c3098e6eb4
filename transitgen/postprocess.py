"""Post-processing stages applied to a synthesized network.

Two stages are defined:

- Route merging coalesces near-duplicate edges. Only the contract is
  provided here (:class:`RouteMerger` and :func:`check_merge_contract`);
  concrete merge algorithms subclass :class:`RouteMerger`.
- Connectivity repair joins disconnected clusters of stations.
  :class:`ConnectivityRepair` connects the most significant stations of the
  two closest clusters until a single cluster remains, appending one
  single-edge route per connection.

Stages never modify the network they receive; they return a new one whose
previously committed edges are unchanged.
"""

from __future__ import annotations

import networkx as nx
import numpy as np

from transitgen.density_grid import Point
from transitgen.log_config import get_logger
from transitgen.routes import Edge, Route, TransitNetwork

logger = get_logger(__name__)


class RoutePostProcessor:
    """Stage that transforms an assembled network."""

    def process(self, network: TransitNetwork) -> TransitNetwork:
        """Return the processed network; ``network`` is left untouched."""
        raise NotImplementedError("Subclasses must implement process()")


def _within(a: Point, b: Point, tolerance: float) -> bool:
    return a.distance_to(b) <= tolerance


def edges_near_duplicate(first: Edge, second: Edge, tolerance: float) -> bool:
    """True if both endpoints match within ``tolerance``, in either direction."""
    same = _within(first.source, second.source, tolerance) and _within(
        first.target, second.target, tolerance
    )
    reverse = _within(first.source, second.target, tolerance) and _within(
        first.target, second.source, tolerance
    )
    return same or reverse


def check_merge_contract(
    before: list[Edge], after: list[Edge], tolerance: float
) -> list[str]:
    """Check a merge result against the route merging contract.

    The merged edge list must not contain two edges whose endpoints are within
    ``tolerance`` of each other, and every station of the input must still be
    covered by a station of the output within ``tolerance``.

    Args:
        before: Edge list given to the merger.
        after: Edge list produced by the merger.
        tolerance: Endpoint distance under which edges count as duplicates.

    Returns:
        List of issue strings; empty when the contract holds.
    """
    issues: list[str] = []
    for i in range(len(after)):
        for j in range(i + 1, len(after)):
            if edges_near_duplicate(after[i], after[j], tolerance):
                issues.append(
                    f"edges {i} and {j} are near-duplicates: "
                    f"{after[i].endpoints} ~ {after[j].endpoints}"
                )

    after_stations = {p for e in after for p in (e.source, e.target)}
    before_stations = sorted(
        {p for e in before for p in (e.source, e.target)},
        key=lambda p: (p.x, p.y),
    )
    for station in before_stations:
        if not any(_within(station, s, tolerance) for s in after_stations):
            issues.append(f"station ({station.x}, {station.y}) lost by merge")
    return issues


class RouteMerger(RoutePostProcessor):
    """Contract for stages that coalesce near-duplicate edges.

    Subclasses implement :meth:`merge_edges`. :meth:`process` checks the
    result with :func:`check_merge_contract` and re-points every route at the
    first merged edge that matches each of its original edges.

    Args:
        tolerance: Endpoint distance under which two edges are duplicates.
    """

    def __init__(self, tolerance: float = 1.0) -> None:
        self.tolerance = tolerance

    def merge_edges(self, edges: list[Edge]) -> list[Edge]:
        """Return an equivalent edge list without near-duplicate edges."""
        raise NotImplementedError("Subclasses must implement merge_edges()")

    def process(self, network: TransitNetwork) -> TransitNetwork:
        merged = self.merge_edges(list(network.edges))
        issues = check_merge_contract(network.edges, merged, self.tolerance)
        if issues:
            raise ValueError(
                f"{type(self).__name__} violated the merge contract: "
                + "; ".join(issues[:5])
            )

        routes: list[Route] = []
        for route in network.routes:
            edge_ids: list[int] = []
            for edge_id in route.edge_ids:
                original = network.edges[edge_id]
                match = next(
                    (
                        i
                        for i, e in enumerate(merged)
                        if edges_near_duplicate(original, e, self.tolerance)
                    ),
                    None,
                )
                if match is not None and (not edge_ids or edge_ids[-1] != match):
                    edge_ids.append(match)
            routes.append(
                Route(
                    route_id=route.route_id,
                    edge_ids=tuple(edge_ids),
                    required_trips=route.required_trips,
                    stalled=route.stalled,
                )
            )

        logger.info(f"Merged {len(network.edges):,} edges into {len(merged):,}")
        return TransitNetwork(
            edges=merged,
            routes=routes,
            metadata={
                **network.metadata,
                "merged_edges": len(network.edges) - len(merged),
            },
        )


def _most_significant(cluster: set[tuple[int, int]], graph: nx.Graph) -> Point:
    """Largest-value station of a cluster; ties go to the smallest (x, y)."""
    best = min(cluster, key=lambda n: (-graph.nodes[n]["value"], n))
    return Point(best[0], best[1], graph.nodes[best]["value"])


class ConnectivityRepair(RoutePostProcessor):
    """Join disconnected station clusters into a single connected network.

    Clusters are the connected components of the undirected route graph.
    While more than one cluster remains, the two clusters whose most
    significant stations are closest are joined by an edge between those two
    stations, committed as a new single-edge route.
    """

    def process(self, network: TransitNetwork) -> TransitNetwork:
        repaired = TransitNetwork(
            edges=list(network.edges),
            routes=list(network.routes),
            metadata=dict(network.metadata),
        )
        graph = network.to_networkx()
        clusters = [set(c) for c in nx.connected_components(graph)]
        # Deterministic cluster order regardless of graph iteration order
        clusters.sort(key=min)
        anchors = [_most_significant(c, graph) for c in clusters]
        logger.info(f"Connectivity repair: {len(clusters):,} clusters")

        added = 0
        while len(anchors) > 1:
            coords = np.array([[p.x, p.y] for p in anchors], dtype=float)
            diff = coords[:, None, :] - coords[None, :, :]
            dist = np.sqrt((diff**2).sum(axis=-1))
            np.fill_diagonal(dist, np.inf)
            i, j = np.unravel_index(int(np.argmin(dist)), dist.shape)
            i, j = int(min(i, j)), int(max(i, j))

            source, target = anchors[i], anchors[j]
            repaired.add_route([Edge(source, target)])
            added += 1
            logger.debug(
                f"Connected cluster anchors ({source.x}, {source.y}) and "
                f"({target.x}, {target.y}), distance {dist[i, j]:.1f}"
            )

            # The merged cluster keeps the more significant of the two anchors
            source_key = (-source.value, source.coordinates)
            target_key = (-target.value, target.coordinates)
            anchors[i] = source if source_key <= target_key else target
            del anchors[j]

        repaired.metadata["repair_edges"] = added
        if added:
            logger.info(f"Connectivity repair added {added:,} edges")
        return repaired
