"""Tests for the seeded sampler and weighted index selection."""

import math
from collections import Counter

import pytest

from transitgen.sampler import EmptyInputError, SeededSampler


def _expected_uniform(counter: int) -> float:
    x = math.sin(counter) * 10000
    return x - math.floor(x)


class TestNextUniform:
    """Uniform source behavior."""

    def test_matches_counter_hash(self):
        sampler = SeededSampler(1)
        values = [sampler.next_uniform() for _ in range(5)]
        assert values == [_expected_uniform(c) for c in range(1, 6)]

    def test_range(self):
        sampler = SeededSampler(12345)
        for _ in range(2000):
            u = sampler.next_uniform()
            assert 0.0 <= u < 1.0

    def test_same_seed_same_sequence(self):
        a = SeededSampler(42)
        b = SeededSampler(42)
        assert [a.next_uniform() for _ in range(50)] == [
            b.next_uniform() for _ in range(50)
        ]

    def test_different_seeds_differ(self):
        a = SeededSampler(1)
        b = SeededSampler(2)
        assert [a.next_uniform() for _ in range(5)] != [
            b.next_uniform() for _ in range(5)
        ]

    def test_state_round_trip(self):
        sampler = SeededSampler(9)
        for _ in range(10):
            sampler.next_uniform()
        restored = SeededSampler.from_state(sampler.state)
        assert [sampler.next_uniform() for _ in range(5)] == [
            restored.next_uniform() for _ in range(5)
        ]

    def test_draw_count(self):
        sampler = SeededSampler(5)
        assert sampler.draws == 0
        sampler.next_uniform()
        sampler.weighted_index(3, 2.0)
        assert sampler.draws == 2
        assert sampler.state == 7


class TestWeightedIndex:
    """Fold-and-power weighted index selection."""

    @pytest.mark.parametrize("n", [1, 2, 3, 10, 97])
    @pytest.mark.parametrize("power", [0.5, 1.0, 3.0, 4.0])
    def test_index_in_range(self, n, power):
        sampler = SeededSampler(3)
        for _ in range(300):
            assert 0 <= sampler.weighted_index(n, power) < n

    def test_single_candidate_always_zero(self):
        sampler = SeededSampler(1)
        assert all(sampler.weighted_index(1, 4.0) == 0 for _ in range(100))

    def test_empty_raises(self):
        sampler = SeededSampler(1)
        with pytest.raises(EmptyInputError):
            sampler.weighted_index(0, 4.0)
        # No draw is consumed on failure
        assert sampler.draws == 0

    def test_matches_fold_formula(self):
        sampler = SeededSampler(11)
        probe = SeededSampler(11)
        n, power = 20, 3.0
        for _ in range(100):
            u = probe.next_uniform()
            beta = math.sin(u * math.pi / 2) ** power
            beta = 2 * beta if beta <= 0.5 else 2 * (1 - beta)
            expected = min(math.floor(beta * n), n - 1)
            assert sampler.weighted_index(n, power) == expected

    def test_bias_toward_low_ranks(self):
        sampler = SeededSampler(1)
        n = 10
        counts = Counter(sampler.weighted_index(n, 4.0) for _ in range(5000))
        low = sum(counts[i] for i in range(3))
        middle = sum(counts[i] for i in range(3, 7))
        assert low > middle

    def test_higher_power_sharpens_bias(self):
        n = 10
        soft = SeededSampler(1)
        sharp = SeededSampler(1)
        soft_zero = sum(soft.weighted_index(n, 1.0) == 0 for _ in range(5000))
        sharp_zero = sum(sharp.weighted_index(n, 6.0) == 0 for _ in range(5000))
        assert sharp_zero > soft_zero

    def test_choose_returns_element(self):
        sampler = SeededSampler(4)
        elements = ["a", "b", "c"]
        for _ in range(20):
            assert sampler.choose(elements, 3.0) in elements

    def test_choose_empty_raises(self):
        with pytest.raises(EmptyInputError):
            SeededSampler(1).choose([], 3.0)
