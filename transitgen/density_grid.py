"""Population density grid ingestion and spatial index.

Reads raw density samples from a CSV file, log-scales them into point values,
and stores them in a grid keyed by integer coordinate. The grid answers radius
queries through a ``scipy.spatial.KDTree`` that is rebuilt lazily after
inserts, and keeps the set of cells that have been marked as stations.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd
from scipy.spatial import KDTree  # type: ignore[import-untyped]

from transitgen.log_config import get_logger

if TYPE_CHECKING:
    from transitgen.config import DensityColumns

logger = get_logger(__name__)

RawSample = tuple[int, int, float]


@dataclass(frozen=True, slots=True)
class Point:
    """Grid sample with integer coordinates and a non-negative size value."""

    x: int
    y: int
    value: float

    @property
    def coordinates(self) -> tuple[int, int]:
        """Return coordinates as (x, y) tuple."""
        return (self.x, self.y)

    def distance_to(self, other: Point) -> float:
        """Euclidean distance to another point in grid units."""
        return math.hypot(self.x - other.x, self.y - other.y)


def scale_density(raw_value: float) -> float:
    """Map a raw density to a point value with ``log(raw + 1)``.

    Non-positive raw values are kept as-is except that negatives clamp to
    zero, so the returned value is never negative.
    """
    if raw_value > 0:
        return math.log(raw_value + 1)
    return max(float(raw_value), 0.0)


def load_density_samples(path: Path, columns: DensityColumns) -> list[RawSample]:
    """Load raw ``(x, y, density)`` samples from a CSV file.

    Args:
        path: CSV file with a header row.
        columns: Column names for the x, y and density fields.

    Returns:
        Samples in file order.

    Raises:
        FileNotFoundError: If the CSV file does not exist.
        ValueError: If required columns are missing.
    """
    path = Path(path)
    logger.info(f"Loading density grid from: {path}")
    if not path.exists():
        raise FileNotFoundError(f"Density grid file not found: {path}")

    df = pd.read_csv(path)
    required = [columns.x, columns.y, columns.value]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            f"Missing required columns in density grid: {missing} "
            f"(available: {list(df.columns)})"
        )

    xs = pd.to_numeric(df[columns.x], errors="coerce")
    ys = pd.to_numeric(df[columns.y], errors="coerce")
    values = pd.to_numeric(df[columns.value], errors="coerce")
    valid = xs.notna() & ys.notna() & values.notna()
    dropped = int((~valid).sum())
    if dropped:
        logger.warning(f"Skipped {dropped:,} rows with missing or non-numeric fields")
    if not valid.any():
        logger.warning(f"Density grid {path} contains no usable rows")

    samples = [
        (int(x), int(y), float(v))
        for x, y, v in zip(xs[valid], ys[valid], values[valid])
    ]
    logger.info(f"Loaded {len(samples):,} density samples")
    return samples


class DensityGrid:
    """Weighted points keyed by integer coordinate with radius queries.

    Only one point is stored per coordinate; a later ``put`` replaces the
    value of an earlier one. Station marks are kept separately and survive
    value replacement.
    """

    def __init__(self) -> None:
        self._points: dict[tuple[int, int], Point] = {}
        self._stations: set[tuple[int, int]] = set()
        self._tree: KDTree | None = None
        self._tree_points: list[Point] = []

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Point]:
        return iter(self._points.values())

    def __contains__(self, key: object) -> bool:
        return key in self._points

    def put(self, x: int, y: int, value: float) -> Point:
        """Store a point, replacing any previous value at ``(x, y)``."""
        point = Point(int(x), int(y), float(value))
        self._points[point.coordinates] = point
        # Rebuild tree on next query
        self._tree = None
        return point

    def get(self, x: int, y: int) -> Point | None:
        """Return the point stored at ``(x, y)``, if any."""
        return self._points.get((int(x), int(y)))

    def mark_station(self, x: int, y: int) -> None:
        """Flag ``(x, y)`` as a station. Marking twice has no further effect."""
        self._stations.add((int(x), int(y)))

    def is_station(self, x: int, y: int) -> bool:
        return (int(x), int(y)) in self._stations

    def stations(self) -> list[Point]:
        """Return marked points that exist in the grid, ordered by (x, y)."""
        return [
            self._points[key] for key in sorted(self._stations) if key in self._points
        ]

    def _ensure_tree(self) -> None:
        if self._tree is None and self._points:
            self._tree_points = sorted(
                self._points.values(), key=lambda p: (p.x, p.y)
            )
            coords = np.array(
                [[p.x, p.y] for p in self._tree_points], dtype=float
            )
            self._tree = KDTree(coords)

    def query(
        self,
        x: int,
        y: int,
        radius: float,
        reference_value: float,
        max_value_delta: float,
    ) -> list[Point]:
        """Return points near ``(x, y)`` whose value is close to a reference.

        Args:
            x: Query center x.
            y: Query center y.
            radius: Euclidean radius, inclusive.
            reference_value: Value candidates are compared against.
            max_value_delta: Largest allowed ``|value - reference_value|``.

        Returns:
            Matching points ordered by (x, y).
        """
        self._ensure_tree()
        if self._tree is None or radius < 0:
            return []

        indices = self._tree.query_ball_point([float(x), float(y)], r=float(radius))
        matches = []
        for idx in sorted(indices):
            point = self._tree_points[idx]
            if abs(point.value - reference_value) <= max_value_delta:
                matches.append(point)
        return matches


def build_density_grid(samples: Iterable[RawSample]) -> DensityGrid:
    """Create a grid from raw samples, applying :func:`scale_density`.

    Every sample is stored, including those too small to become a station,
    so that they remain visible to radius queries.
    """
    grid = DensityGrid()
    for x, y, raw in samples:
        grid.put(x, y, scale_density(raw))
    logger.info(f"Built density grid with {len(grid):,} points")
    return grid
