"""Network assembly from independent route walks.

``NetworkBuilder`` runs a fixed number of route syntheses one after the
other, in route-id order, against a single sampler. The order is part of the
reproducibility contract: the same seed, configuration and grid always
consume the same uniform sequence and yield the same edge list.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from transitgen.log_config import get_logger
from transitgen.route_walker import RouteWalker, WalkOutcome, WalkResult
from transitgen.routes import TransitNetwork
from transitgen.sampler import SeededSampler
from transitgen.station_pool import EmptyPoolError, StationPool

if TYPE_CHECKING:
    from transitgen.config import GenerationConfig
    from transitgen.density_grid import DensityGrid
    from transitgen.postprocess import RoutePostProcessor

logger = get_logger(__name__)


class RouteSynthesisStrategy:
    """Capability that produces the edges of one route.

    No default variant exists; callers supply a concrete strategy such as
    :class:`RandomWalkStrategy`.
    """

    def synthesize(self, sampler: SeededSampler) -> WalkResult:
        """Produce one route using ``sampler`` as the only random source."""
        raise NotImplementedError("Subclasses must implement synthesize()")


class RandomWalkStrategy(RouteSynthesisStrategy):
    """Density-biased directional random walk over a spatial index."""

    def __init__(
        self, index: DensityGrid, pool: StationPool, config: GenerationConfig
    ) -> None:
        self.walker = RouteWalker(index, pool, config)

    def synthesize(self, sampler: SeededSampler) -> WalkResult:
        return self.walker.walk(sampler)


class NetworkBuilder:
    """Collect routes from repeated strategy invocations.

    Args:
        strategy: Route synthesis capability.
        routes: Number of routes to synthesize.
        sampler: Random source shared by all routes of this network.
        post_processors: Stages applied in order to the assembled network.
    """

    def __init__(
        self,
        strategy: RouteSynthesisStrategy,
        routes: int,
        sampler: SeededSampler,
        post_processors: Sequence[RoutePostProcessor] = (),
    ) -> None:
        self.strategy = strategy
        self.routes = routes
        self.sampler = sampler
        self.post_processors = list(post_processors)

    def build(self) -> TransitNetwork:
        """Run every route synthesis and post-processing stage.

        Returns:
            Assembled network.

        Raises:
            EmptyPoolError: If no eligible station exists; no network is
                returned in that case.
        """
        network = TransitNetwork()
        stalled = 0
        for route_index in range(self.routes):
            result = self.strategy.synthesize(self.sampler)
            network.add_route(
                result.edges,
                required_trips=result.required_trips,
                stalled=result.stalled,
            )
            if result.outcome is WalkOutcome.STALLED:
                stalled += 1
            logger.debug(
                f"Route {route_index}: {len(result.edges)}/{result.required_trips} "
                f"trips ({result.outcome.value})"
            )

        logger.info(
            f"Generated {len(network.routes):,} routes with "
            f"{len(network.edges):,} edges ({stalled:,} stalled)"
        )

        for stage in self.post_processors:
            logger.info(f"Running post-processing stage: {type(stage).__name__}")
            network = stage.process(network)

        network.metadata.update(
            {
                "seed": self.sampler.seed,
                "routes": len(network.routes),
                "edges": len(network.edges),
                "stalled_routes": stalled,
                "uniform_draws": self.sampler.draws,
            }
        )
        return network


def generate_network(
    grid: DensityGrid,
    config: GenerationConfig,
    post_processors: Sequence[RoutePostProcessor] = (),
) -> TransitNetwork:
    """Synthesize a transit network from a density grid.

    Builds the station pool, then runs ``config.routes`` random walks with a
    sampler seeded from ``config.seed``. Walk side effects (station marks)
    are written to ``grid``.

    Args:
        grid: Density grid; also serves as the spatial index.
        config: Generation parameters.
        post_processors: Optional stages applied after all walks.

    Returns:
        Generated network.

    Raises:
        EmptyPoolError: If no grid point reaches ``config.min_station_size``.
    """
    pool = StationPool.filter_and_sort(grid, config.min_station_size)
    if len(pool) == 0:
        raise EmptyPoolError(
            f"No grid point has value >= {config.min_station_size}; "
            "cannot place any station"
        )

    builder = NetworkBuilder(
        RandomWalkStrategy(grid, pool, config),
        routes=config.routes,
        sampler=SeededSampler(config.seed),
        post_processors=post_processors,
    )
    network = builder.build()
    network.metadata["eligible_stations"] = len(pool)
    return network
