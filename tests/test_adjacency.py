"""Tests for the propagator table."""

import numpy as np
import pytest

from mimic_wfc.adjacency import Propagator, overlap_slices
from mimic_wfc.source_patterns import DIRECTIONS, Direction, SourcePatterns


def brute_force_agrees(p1, p2, N, dx, dy):
    xmin, xmax = (0, dx + N) if dx < 0 else (dx, N)
    ymin, ymax = (0, dy + N) if dy < 0 else (dy, N)
    for y in range(ymin, ymax):
        for x in range(xmin, xmax):
            if p1.cells[x + N * y] != p2.cells[x - dx + N * (y - dy)]:
                return False
    return True


@pytest.fixture
def noisy_source() -> SourcePatterns:
    sample = np.random.default_rng(11).integers(0, 3, size=(5, 5))
    return SourcePatterns(sample, 2, periodic_input=True, symmetry=8)


class TestOverlapSlices:
    """Test the overlap window between shifted patterns."""

    def test_shift_right(self):
        first, second = overlap_slices(3, 1, 0)
        assert first == (slice(0, 3), slice(1, 3))
        assert second == (slice(0, 3), slice(0, 2))

    def test_shift_up(self):
        first, second = overlap_slices(3, 0, -1)
        assert first == (slice(0, 2), slice(0, 3))
        assert second == (slice(1, 3), slice(0, 3))


class TestPropagator:
    """Test which patterns may sit next to which."""

    def test_matches_brute_force(self, noisy_source):
        """Every entry agrees with a cell-by-cell overlap comparison."""
        propagator = Propagator(noisy_source)
        patterns = noisy_source.patterns
        for direction in DIRECTIONS:
            for t1, p1 in enumerate(patterns):
                expected = [
                    t2
                    for t2, p2 in enumerate(patterns)
                    if brute_force_agrees(p1, p2, 2, direction.dx, direction.dy)
                ]
                assert propagator.compatible(direction, t1).tolist() == expected

    def test_opposite_directions_mirror(self, noisy_source):
        """t2 fits right of t1 exactly when t1 fits left of t2."""
        propagator = Propagator(noisy_source)
        for direction in DIRECTIONS:
            np.testing.assert_array_equal(
                propagator.agreements[direction.index],
                propagator.agreements[direction.opposite.index].T,
            )

    def test_initial_compatibility_counts_opposite_lists(self, noisy_source):
        """Cells start with one supporter per pattern on the opposite list."""
        propagator = Propagator(noisy_source)
        for t in range(propagator.total_options):
            for direction in DIRECTIONS:
                assert propagator.initial_compatibility[t, direction.index] == len(
                    propagator.compatible(direction.opposite, t)
                )

    def test_order_one_allows_everything(self):
        """1x1 patterns do not overlap their neighbors at all."""
        source = SourcePatterns([[0, 1], [2, 3]], 1)
        propagator = Propagator(source)
        for direction in DIRECTIONS:
            for t in range(4):
                assert propagator.compatible(direction, t).tolist() == [0, 1, 2, 3]

    def test_stripes_alternate_horizontally(self, stripe_sample):
        """Stripe columns must alternate sideways and repeat vertically."""
        source = SourcePatterns(stripe_sample, 2)
        propagator = Propagator(source)
        assert len(source) == 2
        assert propagator.compatible(Direction.RIGHT, 0).tolist() == [1]
        assert propagator.compatible(Direction.RIGHT, 1).tolist() == [0]
        assert propagator.compatible(Direction.LEFT, 0).tolist() == [1]
        assert propagator.compatible(Direction.DOWN, 0).tolist() == [0]
        assert propagator.compatible(Direction.UP, 1).tolist() == [1]
        assert not propagator.agrees(0, 0, Direction.RIGHT)
        assert propagator.agrees(0, 1, Direction.RIGHT)
