"""Edges, routes and the assembled transit network."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import networkx as nx

from transitgen.density_grid import Point


@dataclass(frozen=True, slots=True)
class Edge:
    """One directed trip segment between two stations.

    Attributes:
        source: Station the trip departs from.
        target: Station the trip arrives at.
    """

    source: Point
    target: Point

    @property
    def length(self) -> float:
        return self.source.distance_to(self.target)

    @property
    def endpoints(self) -> tuple[tuple[int, int], tuple[int, int]]:
        """Return endpoint coordinates as ((x, y), (x, y))."""
        return (self.source.coordinates, self.target.coordinates)


@dataclass(frozen=True)
class Route:
    """A route and the ids of the edges it owns, in travel order.

    Attributes:
        route_id: Insertion order within the network.
        edge_ids: Indexes into the network's flat edge list.
        required_trips: Number of trips sampled for the route, when known.
        stalled: True if the walk ended before reaching ``required_trips``.
    """

    route_id: int
    edge_ids: tuple[int, ...]
    required_trips: int | None = None
    stalled: bool = False


@dataclass
class TransitNetwork:
    """Flat edge list plus routes referencing it by edge id.

    Edges and routes are append-only; ids equal insertion order.
    """

    edges: list[Edge] = field(default_factory=list)
    routes: list[Route] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_route(
        self,
        edges: list[Edge],
        required_trips: int | None = None,
        stalled: bool = False,
    ) -> Route:
        """Append ``edges`` and register them as a new route.

        Args:
            edges: Edges of the route in travel order.
            required_trips: Trip count the route was sampled with.
            stalled: Whether the route ended early.

        Returns:
            The committed route.
        """
        first_id = len(self.edges)
        self.edges.extend(edges)
        route = Route(
            route_id=len(self.routes),
            edge_ids=tuple(range(first_id, first_id + len(edges))),
            required_trips=required_trips,
            stalled=stalled,
        )
        self.routes.append(route)
        return route

    def route_edges(self, route: Route | int) -> list[Edge]:
        """Return the edges of a route (by object or id) in travel order."""
        if isinstance(route, int):
            route = self.routes[route]
        return [self.edges[i] for i in route.edge_ids]

    def stations(self) -> list[Point]:
        """Distinct edge endpoints ordered by (x, y)."""
        seen: dict[tuple[int, int], Point] = {}
        for edge in self.edges:
            seen.setdefault(edge.source.coordinates, edge.source)
            seen.setdefault(edge.target.coordinates, edge.target)
        return [seen[k] for k in sorted(seen)]

    def to_networkx(self) -> nx.Graph:
        """Return an undirected graph keyed by station coordinates.

        Nodes carry ``value``; edges carry the list of ``route_ids`` that
        travel along them in either direction.
        """
        graph = nx.Graph()
        for station in self.stations():
            graph.add_node(station.coordinates, value=station.value)
        for route in self.routes:
            for edge_id in route.edge_ids:
                u, v = self.edges[edge_id].endpoints
                if graph.has_edge(u, v):
                    graph.edges[u, v]["route_ids"].append(route.route_id)
                else:
                    graph.add_edge(u, v, route_ids=[route.route_id])
        return graph
