"""Tests for MaskedCursor across every cursor kind."""

import numpy as np
import pytest

from gridwalk.config import RandomConfig, SubsampledConfig
from gridwalk.cursors import (
    CURSOR_KINDS,
    RandomCursor,
    RegionCursor,
    SequentialCursor,
    SubsampledCursor,
)
from gridwalk.errors import CursorCapabilityError, TraversalError
from gridwalk.masked_cursor import MaskedCursor
from gridwalk.region import Region

ALL_KINDS = list(CURSOR_KINDS.values())
BIDIRECTIONAL_KINDS = [kind for kind in ALL_KINDS if kind.bidirectional]
# Random draws with replacement may revisit the first included position
NON_REPEATING_KINDS = [kind for kind in ALL_KINDS if kind is not RandomCursor]


def assert_synchronized(it: MaskedCursor):
    assert it.is_synchronized()
    if not it.is_at_end():
        assert it.position() == it.image_cursor.position() == it.mask_cursor.position()


def plain_masked_walk(kind, mask, image, region, **options) -> list:
    """Positions an undecorated cursor visits where the mask is non-zero."""
    cursor = kind(image, region, **options)
    out = []
    cursor.go_to_begin()
    while not cursor.is_at_end():
        if np.any(mask[cursor.position()]):
            out.append(cursor.position())
        cursor.advance()
    return out


def forward_walk(it: MaskedCursor) -> list:
    out = []
    it.go_to_begin()
    assert it.is_at_begin() or it.is_at_end()
    while not it.is_at_end():
        if out:
            assert not it.is_at_begin()
        assert_synchronized(it)
        assert it.mask_cursor.value() != 0
        out.append(it.position())
        it.advance()
    assert_synchronized(it)
    return out


def reverse_walk(it: MaskedCursor) -> list:
    out = []
    it.go_to_end()
    assert it.is_at_end()
    while True:
        it.retreat()
        assert not it.is_at_end()
        assert_synchronized(it)
        assert it.mask_cursor.value() != 0
        out.append(it.position())
        if it.is_at_begin():
            break
    return out


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_bijection_with_plain_cursor(kind, half_mask, image, region):
    it = MaskedCursor(half_mask, image, region, kind)
    visited = []
    it.go_to_begin()
    while not it.is_at_end():
        assert_synchronized(it)
        visited.append(it.position())
        it.advance()

    expected = plain_masked_walk(kind, half_mask, image, region)
    assert visited == expected
    assert len(expected) > 0


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_bijection_irregular_mask_narrow_region(kind, blob_mask, image):
    region = Region(start=(1, 2), size=(8, 6))
    it = MaskedCursor(blob_mask, image, region, kind)
    assert list(it.positions()) == plain_masked_walk(kind, blob_mask, image, region)


@pytest.mark.parametrize("kind", NON_REPEATING_KINDS)
def test_forward_begin_reported_once(kind, half_mask, image, region):
    walk = forward_walk(MaskedCursor(half_mask, image, region, kind))
    assert len(set(walk)) == len(walk)


@pytest.mark.parametrize("kind", BIDIRECTIONAL_KINDS)
def test_reverse_reaches_begin_once(kind, half_mask, image, region):
    walk = reverse_walk(MaskedCursor(half_mask, image, region, kind))
    assert len(walk) > 0


@pytest.mark.parametrize("kind", BIDIRECTIONAL_KINDS)
def test_reverse_symmetry(kind, blob_mask, image, region):
    it = MaskedCursor(blob_mask, image, region, kind)
    forward = forward_walk(it)
    assert reverse_walk(it) == forward[::-1]
    assert list(it.reversed_positions()) == forward[::-1]


def test_reverse_symmetry_per_axis_subsampling(blob_mask, image, region):
    it = MaskedCursor(blob_mask, image, region, SubsampledCursor, subsample_factor=(2, 3))
    assert reverse_walk(it) == forward_walk(it)[::-1]


def test_begin_idempotence(blob_mask, image, region):
    it = MaskedCursor(blob_mask, image, region)
    it.go_to_begin()
    first = it.position()
    it.go_to_begin()
    assert it.position() == first
    assert it.is_at_begin()
    # first row of blob_mask is empty
    assert first[0] > 0


def diagonal_mask() -> np.ndarray:
    mask = np.zeros((10, 10), dtype=np.uint8)
    for i in range(3):
        mask[i, i] = 1
    return mask


def test_begin_follows_mask_written_through_mask_cursor(image, region):
    it = MaskedCursor(diagonal_mask(), image, region)
    it.go_to_begin()
    assert it.position() == (0, 0)
    it.mask_cursor.set_value(0)

    it.go_to_begin()
    assert it.position() == (1, 1)
    assert it.is_at_begin()
    with pytest.raises(TraversalError):
        it.retreat()


def test_reverse_stops_on_new_begin_after_mask_edit(image, region):
    mask = diagonal_mask()
    it = MaskedCursor(mask, image, region)
    it.go_to_begin()
    assert it.is_at_begin()
    mask[0, 0] = 0

    backward = list(it.reversed_positions())
    assert backward == [(2, 2), (1, 1)]
    assert all(mask[p] != 0 for p in backward)
    assert it.is_at_begin()


def test_same_array_as_mask_and_image(region):
    grid = diagonal_mask()
    it = MaskedCursor(grid, grid, region)
    it.go_to_begin()
    it.image_cursor.set_value(0)
    assert list(it.reversed_positions()) == [(2, 2), (1, 1)]
    assert list(it) == [(1, 1), (2, 2)]


def test_end_stability(half_mask, image, region):
    it = MaskedCursor(half_mask, image, region)
    it.go_to_end()
    for _ in range(3):
        assert it.is_at_end()
    assert not it.is_at_begin()
    with pytest.raises(TraversalError):
        it.position()


def test_is_at_begin_resolved_without_go_to_begin(blob_mask, image, region):
    it = MaskedCursor(blob_mask, image, region)
    it.go_to_end()
    while True:
        it.retreat()
        if it.is_at_begin():
            break
    expected = next(iter(plain_masked_walk(RegionCursor, blob_mask, image, region)))
    assert it.position() == expected


def test_even_cells_with_forward_only_kind(half_mask, image, region):
    it = MaskedCursor(half_mask, image, region, SequentialCursor)
    it.go_to_begin()
    assert it.position() == (0, 0)
    for k in range(1, 50):
        it.advance()
        assert region.offset_of(it.position()) == 2 * k
    assert it.position() == (9, 8)
    it.advance()
    assert it.is_at_end()


def test_forward_only_kind_rejects_reverse(half_mask, image, region):
    it = MaskedCursor(half_mask, image, region, SequentialCursor)
    assert not it.bidirectional
    it.go_to_end()
    with pytest.raises(CursorCapabilityError):
        it.retreat()
    assert it.is_at_end()
    with pytest.raises(CursorCapabilityError):
        list(it.reversed_positions())


def test_random_with_replacement_rejects_reverse(half_mask, image, region):
    it = MaskedCursor(half_mask, image, region, RandomCursor, seed=5)
    assert not it.bidirectional
    assert len(list(it)) > 0
    it.go_to_end()
    with pytest.raises(CursorCapabilityError):
        it.retreat()
    with pytest.raises(CursorCapabilityError):
        list(it.reversed_positions())


def test_advance_at_end_raises(half_mask, image, region):
    it = MaskedCursor(half_mask, image, region)
    it.go_to_end()
    with pytest.raises(TraversalError):
        it.advance()
    assert it.is_at_end()


def test_retreat_at_begin_raises(half_mask, image, region):
    it = MaskedCursor(half_mask, image, region)
    it.go_to_begin()
    with pytest.raises(TraversalError):
        it.retreat()
    assert it.is_at_begin()
    assert it.position() == (0, 0)


@pytest.mark.parametrize("kind", ALL_KINDS)
def test_fully_masked_is_empty(kind, zero_mask, image, region):
    it = MaskedCursor(zero_mask, image, region, kind)
    it.go_to_begin()
    assert it.is_at_end()
    assert not it.is_at_begin()
    assert it.count() == 0


@pytest.mark.parametrize("kind", BIDIRECTIONAL_KINDS)
def test_fully_masked_reverse_is_empty(kind, zero_mask, image, region):
    it = MaskedCursor(zero_mask, image, region, kind)
    assert list(it.reversed_positions()) == []
    it.go_to_end()
    with pytest.raises(TraversalError):
        it.retreat()
    assert it.is_at_end()


def test_image_smaller_than_mask():
    image = np.full((9, 9), 10.0)
    mask = np.zeros((100, 100))
    # non-zero everywhere outside the image extent, never reached
    mask[9:, :] = 1
    mask[:, 9:] = 1
    region = Region.from_shape(image.shape)

    it = MaskedCursor(mask, image, region)
    it.go_to_begin()
    assert it.is_at_end()
    assert list(it.reversed_positions()) == []


def test_empty_region():
    image = np.ones((10, 10))
    it = MaskedCursor(np.ones((10, 10)), image, Region(start=(3, 3), size=(4, 0)))
    it.go_to_begin()
    assert it.is_at_end()
    assert not it.is_at_begin()


def test_region_must_fit_both_grids(image):
    small_mask = np.ones((5, 5))
    with pytest.raises(ValueError, match="mask"):
        MaskedCursor(small_mask, image, Region.from_shape(image.shape))
    with pytest.raises(ValueError, match="image"):
        MaskedCursor(np.ones((20, 20)), image, Region.from_shape((20, 20)))


def test_incompatible_kind_rejected(half_mask, image, region):
    class NoEnd:
        def __init__(self, grid, region):
            pass

        def go_to_begin(self):
            pass

        def advance(self):
            pass

        def is_at_end(self):
            return True

        def position(self):
            return ()

        def value_is_zero(self):
            return True

    with pytest.raises(CursorCapabilityError, match="go_to_end"):
        MaskedCursor(half_mask, image, region, NoEnd)


def test_write_through_image_cursor(half_mask, image, region):
    it = MaskedCursor(half_mask, image, region)
    it.go_to_begin()
    while not it.is_at_end():
        it.image_cursor.set_value(it.image_cursor.value() * 2)
        it.advance()

    assert np.all(image[half_mask != 0] == 20.0)
    assert np.all(image[half_mask == 0] == 10.0)


def test_boolean_mask_color_image():
    image = np.zeros((4, 5, 3), dtype=np.uint8)
    mask = np.zeros((4, 5), dtype=bool)
    mask[1, 2] = mask[3, 0] = True

    it = MaskedCursor(mask, image, Region.from_shape(mask.shape))
    assert list(it) == [(1, 2), (3, 0)]
    it.go_to_begin()
    assert it.image_cursor.value().shape == (3,)


def test_three_dimensional_grid():
    rng = np.random.default_rng(1)
    mask = (rng.random((4, 3, 5)) > 0.5).astype(np.int32)
    image = rng.random((4, 3, 5))
    region = Region(start=(1, 0, 1), size=(3, 3, 4))

    it = MaskedCursor(mask, image, region)
    forward = list(it.positions())
    assert forward == [p for p in region.positions() if mask[p] != 0]
    assert list(it.reversed_positions()) == forward[::-1]


def test_from_config(half_mask, image, region):
    it = MaskedCursor.from_config(half_mask, image, region, SubsampledConfig())
    assert it.cursor_kind is SubsampledCursor
    assert list(it) == plain_masked_walk(SubsampledCursor, half_mask, image, region, subsample_factor=2)

    it = MaskedCursor.from_config(half_mask, image, region, RandomConfig(number_of_samples=30))
    assert list(it) == plain_masked_walk(
        RandomCursor, half_mask, image, region, number_of_samples=30, seed=42
    )


def test_independent_cursors_over_same_grids(blob_mask, image, region):
    a = MaskedCursor(blob_mask, image, region)
    b = MaskedCursor(blob_mask, image, region)
    a.go_to_begin()
    b.go_to_begin()
    b.advance()
    assert a.position() != b.position()
    assert a.is_at_begin()
    assert not b.is_at_begin()
