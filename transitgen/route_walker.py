"""Stochastic random walk that grows one route edge by edge.

A walk starts at a station drawn from the pool with a bias toward large
values, then repeatedly looks for a next stop of similar size inside a radius
proportional to the current stop's value. After the first step the radius is
halved and the search center is pushed half a step further along the previous
direction, which straightens routes compared to a plain random walk.

A walk ends either after its sampled number of trips (completed) or as soon
as no candidate is in range (stalled). Stalling is a normal outcome and keeps
the edges emitted so far.
"""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from transitgen.log_config import get_logger
from transitgen.routes import Edge

if TYPE_CHECKING:
    from transitgen.config import GenerationConfig
    from transitgen.density_grid import DensityGrid, Point
    from transitgen.sampler import SeededSampler
    from transitgen.station_pool import StationPool

logger = get_logger(__name__)


class WalkOutcome(enum.Enum):
    """How a walk terminated."""

    COMPLETED = "completed"
    STALLED = "stalled"


@dataclass
class WalkState:
    """Mutable state owned by a single in-progress walk."""

    anchor: Point
    remaining_steps: int
    offset_x: int = 0
    offset_y: int = 0
    is_first_step: bool = True


@dataclass
class WalkResult:
    """Edges produced by one walk and how it ended.

    Attributes:
        edges: Emitted edges in walk order; consecutive edges share endpoints.
        required_trips: Number of trips sampled for this walk.
        outcome: Whether all trips were produced or the walk stalled.
    """

    edges: list[Edge] = field(default_factory=list)
    required_trips: int = 0
    outcome: WalkOutcome = WalkOutcome.COMPLETED

    @property
    def stalled(self) -> bool:
        return self.outcome is WalkOutcome.STALLED


def sample_required_trips(
    sampler: SeededSampler, average: float, variation: float
) -> int:
    """Draw the number of trips of a route, uniform in ``average ± variation``."""
    return math.ceil((sampler.next_uniform() - 0.5) * 2 * variation + average)


def candidate_rank(anchor: Point, candidate: Point) -> float:
    """Ranking key favoring candidates whose size matches the anchor."""
    return anchor.value - abs(candidate.value - anchor.value)


class RouteWalker:
    """Grow routes over a shared spatial index.

    The index handle is shared with every other walker of the same network
    and is written through ``mark_station``; walkers must run one at a time.

    Args:
        index: Density grid used for candidate queries and station marks.
        pool: Eligible stations used to seed walks and scale radii.
        config: Generation parameters.
    """

    def __init__(
        self, index: DensityGrid, pool: StationPool, config: GenerationConfig
    ) -> None:
        self.index = index
        self.pool = pool
        self.config = config
        self._max_value = pool.max_value
        self._max_distance = pool.max_distance

    def search_radius(self, state: WalkState) -> float:
        """Radius around the search center for the next step."""
        if self._max_value <= 0:
            return 0.0
        step_factor = 1.0 if state.is_first_step else 0.5
        return (
            state.anchor.value
            / self._max_value
            * self._max_distance
            * self.config.max_edge_distance_factor
            * step_factor
        )

    def find_candidates(self, state: WalkState) -> list[Point]:
        """Return next-stop candidates, best match first.

        Candidates come from the index around the anchor shifted by the
        carried offset, within ``ceil(radius)`` and with a value no further
        than ``anchor.value * max_size_difference_factor`` from the anchor's.
        The anchor itself is excluded.
        """
        anchor = state.anchor
        radius = math.ceil(self.search_radius(state))
        points = self.index.query(
            anchor.x + state.offset_x,
            anchor.y + state.offset_y,
            radius,
            anchor.value,
            anchor.value * self.config.max_size_difference_factor,
        )
        candidates = [p for p in points if (p.x, p.y) != (anchor.x, anchor.y)]
        candidates.sort(key=lambda p: candidate_rank(anchor, p), reverse=True)
        return candidates

    def walk(self, sampler: SeededSampler) -> WalkResult:
        """Run one walk to completion or stall.

        Args:
            sampler: Random source; consumed in a fixed order (trip count,
                start station, then one draw per successful step).

        Returns:
            Walk result with the emitted edges.

        Raises:
            EmptyPoolError: If the station pool is empty.
        """
        required_trips = sample_required_trips(
            sampler,
            self.config.edges_per_route_average,
            self.config.edges_per_route_variation,
        )
        start = self.pool.sample_weighted(sampler, self.config.start_stop_choice_power)
        state = WalkState(anchor=start, remaining_steps=required_trips)
        result = WalkResult(required_trips=required_trips)

        while state.remaining_steps > 0:
            candidates = self.find_candidates(state)
            if not candidates:
                result.outcome = WalkOutcome.STALLED
                logger.debug(
                    f"Walk stalled at ({state.anchor.x}, {state.anchor.y}) after "
                    f"{len(result.edges)}/{required_trips} trips"
                )
                break

            target = sampler.choose(
                candidates, self.config.target_stop_in_radius_choice_power
            )
            anchor = state.anchor
            self.index.mark_station(anchor.x, anchor.y)
            self.index.mark_station(target.x, target.y)
            result.edges.append(Edge(anchor, target))

            state.offset_x = math.ceil((target.x - anchor.x) / 2)
            state.offset_y = math.ceil((target.y - anchor.y) / 2)
            state.anchor = target
            state.is_first_step = False
            state.remaining_steps -= 1

        return result
