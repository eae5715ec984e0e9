"""
Positions and rectangular regions over N-dimensional grids.

A position is a plain tuple of ints that indexes a numpy array directly,
e.g. (row, col) for an image. A region is the half-open box
[start, start + size) on every axis; it restricts where cursors walk.

Usage:
    from gridwalk.region import Region

    region = Region.from_shape(image.shape[:2])
    inner = Region(start=(2, 2), size=(4, 4))
    inner.contains((3, 5))  # True
"""

from collections.abc import Iterator, Sequence
from dataclasses import dataclass

import numpy as np

Position = tuple[int, ...]


def as_position(index: Sequence[int] | np.ndarray) -> Position:
    """Normalize an index sequence (list, tuple, numpy array) to a Position."""
    return tuple(int(i) for i in index)


@dataclass(frozen=True)
class Region:
    """Rectangular index range restricting a traversal."""

    start: Position
    size: Position

    def __post_init__(self):
        start = as_position(self.start)
        size = as_position(self.size)

        if len(start) != len(size):
            raise ValueError(
                f"Region start {start} and size {size} have different dimensions"
            )
        if any(s < 0 for s in size):
            raise ValueError(f"Region size must be non-negative, got {size}")

        # Frozen dataclass: write the normalized tuples through object.__setattr__
        object.__setattr__(self, "start", start)
        object.__setattr__(self, "size", size)

    @classmethod
    def from_shape(cls, shape: Sequence[int]) -> "Region":
        """Largest possible region of an array with the given shape."""
        return cls(start=(0,) * len(shape), size=as_position(shape))

    @property
    def ndim(self) -> int:
        return len(self.size)

    @property
    def shape(self) -> Position:
        return self.size

    @property
    def end(self) -> Position:
        """Exclusive upper corner."""
        return tuple(s + n for s, n in zip(self.start, self.size))

    @property
    def is_empty(self) -> bool:
        return any(n == 0 for n in self.size)

    @property
    def number_of_positions(self) -> int:
        if self.ndim == 0:
            return 0
        return int(np.prod(self.size, dtype=np.int64))

    def __len__(self) -> int:
        return self.number_of_positions

    def contains(self, position: Sequence[int]) -> bool:
        """True iff position lies inside [start, start + size) on every axis."""
        if len(position) != self.ndim:
            return False
        return all(s <= p < s + n for p, s, n in zip(position, self.start, self.size))

    def fits(self, shape: Sequence[int]) -> bool:
        """
        Check that every position of this region indexes an array of `shape`.

        Trailing axes of `shape` beyond the region's dimensionality (e.g. color
        channels) are ignored. Empty regions always fit.
        """
        if self.is_empty:
            return True
        if len(shape) < self.ndim:
            return False
        return all(s >= 0 and e <= extent for s, e, extent in zip(self.start, self.end, shape))

    def intersection(self, other: "Region") -> "Region":
        """Overlap of two regions; empty (zero size) when they are disjoint."""
        if other.ndim != self.ndim:
            raise ValueError(f"Cannot intersect {self.ndim}-D and {other.ndim}-D regions")

        start = tuple(max(a, b) for a, b in zip(self.start, other.start))
        end = tuple(min(a, b) for a, b in zip(self.end, other.end))
        size = tuple(max(0, e - s) for s, e in zip(start, end))
        return Region(start=start, size=size)

    def position_at(self, offset: int) -> Position:
        """Position at a flat C-order offset (last axis fastest)."""
        local = np.unravel_index(offset, self.size)
        return tuple(int(s + i) for s, i in zip(self.start, local))

    def offset_of(self, position: Sequence[int]) -> int:
        """Flat C-order offset of a position inside this region."""
        if not self.contains(position):
            raise ValueError(f"Position {tuple(position)} is outside {self}")
        local = tuple(p - s for p, s in zip(position, self.start))
        return int(np.ravel_multi_index(local, self.size))

    def positions(self) -> Iterator[Position]:
        """All positions in C order."""
        if self.is_empty or self.ndim == 0:
            return
        for local in np.ndindex(*self.size):
            yield tuple(s + i for s, i in zip(self.start, local))
