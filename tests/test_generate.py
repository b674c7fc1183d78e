"""
Tests for transformation generation and pool construction.

Every generated transformation must keep both disks inside the canvas and
respect dst_radius <= src_radius <= clearance(src_center).
"""

import math
import random

import pytest

from disk_fractal import Transformation, build_pool, clearance, generate


class TestClearance:
    """Tests for the boundary clearance of a disk center."""

    def test_corner_has_zero_clearance(self):
        """A corner pixel cannot host a disk of any positive radius."""
        assert clearance((0, 0), 10) == 0
        assert clearance((9, 9), 10) == 0

    def test_center_clearance(self):
        """The middle of an odd canvas reaches every edge equally."""
        assert clearance((5, 5), 11) == 5

    def test_nearest_edge_wins(self):
        """Clearance is limited by the closest edge."""
        assert clearance((2, 7), 10) == 2
        assert clearance((6, 8), 10) == 1


class TestGenerate:
    """Tests for a single generated transformation."""

    @pytest.mark.parametrize("size", [1, 2, 3, 7, 16, 33])
    def test_disks_fit_inside_canvas(self, size):
        """Source and destination disks never cross the canvas boundary."""
        rng = random.Random(size)
        for _ in range(200):
            trans = generate(size, rng)
            src_row, src_col = trans.src_center
            dst_row, dst_col = trans.dst_center
            assert 0 <= src_row < size and 0 <= src_col < size
            assert trans.dst_radius <= trans.src_radius <= clearance(trans.src_center, size)
            assert trans.dst_radius <= dst_row <= size - 1 - trans.dst_radius
            assert trans.dst_radius <= dst_col <= size - 1 - trans.dst_radius

    def test_rotation_range(self):
        """Rotation lies in [0, 2*pi)."""
        rng = random.Random(3)
        for _ in range(200):
            assert 0.0 <= generate(20, rng).rotation < math.tau

    def test_color_offset_has_three_channels(self):
        """Color offsets are real-valued RGB triples."""
        trans = generate(10, random.Random(0))
        assert len(trans.color_offset) == 3
        assert all(isinstance(channel, float) for channel in trans.color_offset)

    def test_size_one_is_degenerate_but_valid(self):
        """A 1x1 canvas yields zero-radius disks at the only pixel."""
        trans = generate(1, random.Random(42))
        assert trans.src_center == (0, 0)
        assert trans.dst_center == (0, 0)
        assert trans.src_radius == 0
        assert trans.dst_radius == 0

    def test_transformation_is_immutable(self):
        """Transformations are frozen value records."""
        trans = generate(10, random.Random(0))
        with pytest.raises(AttributeError):
            trans.rotation = 0.0  # type: ignore[misc]


class TestBuildPool:
    """Tests for the transformation pool."""

    def test_pool_length(self):
        """Pool holds exactly unique_trans transformations."""
        pool = build_pool(25, 30, random.Random(1))
        assert len(pool) == 25
        assert all(isinstance(trans, Transformation) for trans in pool)

    def test_pool_is_deterministic(self):
        """Same seed produces the same pool."""
        assert build_pool(10, 40, random.Random(9)) == build_pool(10, 40, random.Random(9))

    def test_pool_consumes_shared_stream(self):
        """Pool generation advances the shared random stream in order."""
        rng = random.Random(5)
        pool = build_pool(3, 20, rng)
        replay = random.Random(5)
        assert [generate(20, replay) for _ in range(3)] == pool
        assert rng.random() == replay.random()
