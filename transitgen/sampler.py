"""Deterministic pseudo-random source and weighted index selection.

The sampler is a counter-based generator: every draw hashes the current
counter with ``frac(sin(counter) * 10000)`` and then increments it. Two
samplers created with the same seed therefore produce identical sequences,
and the full generator state is a single integer that can be captured and
restored between walks.
"""

from __future__ import annotations

import math
from typing import Sequence, TypeVar

T = TypeVar("T")


class EmptyInputError(ValueError):
    """Raised when a selection is requested from an empty sequence."""


class SeededSampler:
    """Reproducible uniform source with a power-law weighted selection.

    Attributes:
        seed: Counter value the sampler was created with.
    """

    def __init__(self, seed: int = 1) -> None:
        self.seed = int(seed)
        self._counter = int(seed)

    @classmethod
    def from_state(cls, state: int) -> SeededSampler:
        """Return a sampler that continues from a previously captured state."""
        return cls(state)

    @property
    def state(self) -> int:
        """Current counter value; the next draw hashes this value."""
        return self._counter

    @property
    def draws(self) -> int:
        """Number of uniforms consumed since construction."""
        return self._counter - self.seed

    def next_uniform(self) -> float:
        """Return the next uniform value in ``[0, 1)``."""
        x = math.sin(self._counter) * 10000
        self._counter += 1
        u = x - math.floor(x)
        # frac() of a float can round up to exactly 1.0 for tiny negatives
        if u >= 1.0:
            u = 0.0
        return u

    def weighted_index(self, n: int, power: float) -> int:
        """Pick an index in ``[0, n)`` biased toward 0.

        Candidates are assumed sorted by descending desirability. The draw is
        shaped as ``beta = sin(u * pi / 2) ** power`` and folded around 0.5,
        so low ranks are favored, the middle ranks are least likely and the
        tail is slightly favored over the middle.

        Args:
            n: Number of candidates.
            power: Sharpness of the bias toward index 0.

        Returns:
            Selected index.

        Raises:
            EmptyInputError: If ``n`` is zero or negative.
        """
        if n <= 0:
            raise EmptyInputError("Cannot select an index from an empty sequence")

        uniform = self.next_uniform()
        beta = math.pow(math.sin(uniform * math.pi / 2), power)
        beta = 2 * beta if beta <= 0.5 else 2 * (1 - beta)
        return min(int(math.floor(beta * n)), n - 1)

    def choose(self, elements: Sequence[T], power: float) -> T:
        """Return one element of ``elements`` chosen by :meth:`weighted_index`."""
        return elements[self.weighted_index(len(elements), power)]

    def __repr__(self) -> str:
        return f"SeededSampler(seed={self.seed}, state={self._counter})"
