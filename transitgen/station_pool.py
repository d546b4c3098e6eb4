"""Eligible station pool derived from the density grid."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from transitgen.density_grid import Point
from transitgen.log_config import get_logger
from transitgen.sampler import EmptyInputError, SeededSampler

logger = get_logger(__name__)


class EmptyPoolError(EmptyInputError):
    """Raised when no point passes the minimum station size filter."""


class StationPool:
    """Points eligible as route endpoints, sorted by descending value.

    The order is fixed at construction. Weighted sampling interprets indices
    relative to it, so the pool must not be re-sorted afterwards.
    """

    def __init__(self, points: list[Point], min_station_size: float) -> None:
        self._points = points
        self.min_station_size = min_station_size

    @classmethod
    def filter_and_sort(
        cls, points: Iterable[Point], min_station_size: float
    ) -> StationPool:
        """Keep points with ``value >= min_station_size``, largest first.

        Args:
            points: Candidate points, e.g. every point of a density grid.
            min_station_size: Minimum value for a point to become a station.

        Returns:
            New pool. Ties keep their input order.
        """
        eligible = [p for p in points if p.value >= min_station_size]
        eligible.sort(key=lambda p: p.value, reverse=True)
        logger.info(
            f"Station pool: {len(eligible):,} eligible points "
            f"(min_station_size={min_station_size})"
        )
        return cls(eligible, min_station_size)

    @property
    def points(self) -> tuple[Point, ...]:
        return tuple(self._points)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points)

    def __getitem__(self, index: int) -> Point:
        return self._points[index]

    @property
    def max_value(self) -> float:
        """Largest value in the pool, or 0.0 if empty."""
        return self._points[0].value if self._points else 0.0

    @property
    def max_distance(self) -> int:
        """Largest coordinate over eligible points, used to scale radii."""
        max_x = max((p.x for p in self._points), default=0)
        max_y = max((p.y for p in self._points), default=0)
        return max(max_x, max_y, 0)

    def sample_weighted(self, sampler: SeededSampler, power: float) -> Point:
        """Draw a station biased toward the largest values.

        Args:
            sampler: Source of randomness.
            power: Bias exponent passed to ``weighted_index``.

        Returns:
            Selected point with ``value >= min_station_size``.

        Raises:
            EmptyPoolError: If no point of the pool reaches ``min_station_size``.
        """
        if not any(p.value >= self.min_station_size for p in self._points):
            raise EmptyPoolError(
                f"No stations with value >= {self.min_station_size} available"
            )
        point = sampler.choose(self._points, power)
        while point.value < self.min_station_size:
            point = sampler.choose(self._points, power)
        return point
