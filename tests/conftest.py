"""Shared test fixtures."""

import numpy as np
import pytest

from gridwalk.cursors import RegionCursor
from gridwalk.region import Region


def filled(size, value, dtype=np.float64) -> np.ndarray:
    """Square-ish grid of `size` (int or shape) filled with `value`."""
    shape = (size, size) if isinstance(size, int) else tuple(size)
    return np.full(shape, value, dtype=dtype)


def fill_half(grid: np.ndarray, region: Region, value) -> np.ndarray:
    """Set every even-numbered position of the region (in C order) to `value`."""
    cursor = RegionCursor(grid, region)
    count = 0
    cursor.go_to_begin()
    while not cursor.is_at_end():
        if count % 2 == 0:
            cursor.set_value(value)
        cursor.advance()
        count += 1
    return grid


@pytest.fixture
def image() -> np.ndarray:
    return filled(10, 10.0)


@pytest.fixture
def region(image) -> Region:
    return Region.from_shape(image.shape)


@pytest.fixture
def half_mask(region) -> np.ndarray:
    return fill_half(filled(10, 0.0), region, 1.0)


@pytest.fixture
def zero_mask() -> np.ndarray:
    return filled(10, 0.0)


@pytest.fixture
def blob_mask() -> np.ndarray:
    """Irregular mask: random pixels plus a solid block, first row empty."""
    rng = np.random.default_rng(7)
    mask = (rng.random((10, 10)) > 0.6).astype(np.uint8)
    mask[0, :] = 0
    mask[6:9, 2:5] = 1
    return mask
