"""
Masked traversal - walk only the positions where a mask is non-zero.

MaskedCursor decorates any cursor kind from gridwalk.cursors. It owns two
cursors of that kind over the same region, one on the image and one on the
mask, moves them in lockstep and skips every position whose mask value is
zero, forwards and backwards.

Usage:
    from gridwalk import MaskedCursor, Region, RegionCursor

    it = MaskedCursor(mask, image, Region.from_shape(mask.shape), RegionCursor)
    it.go_to_begin()
    while not it.is_at_end():
        it.image_cursor.set_value(it.image_cursor.value() * 0.5)
        it.advance()
"""

import logging
from collections.abc import Iterator

import numpy as np

from .cursors import RegionCursor, check_cursor_kind, is_bidirectional
from .errors import CursorCapabilityError, TraversalError
from .region import Position, Region

logger = logging.getLogger(__name__)


def _skip_masked(mask_cursor, *followers) -> None:
    """Advance until the mask cursor is at end or on a non-zero value."""
    while not mask_cursor.is_at_end() and mask_cursor.value_is_zero():
        mask_cursor.advance()
        for cursor in followers:
            cursor.advance()


class MaskedCursor:
    """
    Synchronized image + mask cursor visiting only non-zero mask positions.

    Whenever the cursor is not at end, the image cursor and the mask cursor
    report the same position and the mask value there is non-zero.

    The first included position is resolved by the masked cursor itself, never
    taken from the wrapped kind's own notion of begin: skipping can put it
    anywhere in the region.
    """

    def __init__(
        self,
        mask: np.ndarray,
        image: np.ndarray,
        region: Region,
        cursor_kind: type = RegionCursor,
        **cursor_options,
    ):
        """
        Args:
            mask: Mask grid, a position is included iff its value is non-zero
            image: Data grid walked in lockstep with the mask
            region: Positions to walk, authoritative over both grid extents
            cursor_kind: Cursor class used for both grids
            **cursor_options: Extra keyword arguments for cursor_kind
                (e.g. seed, number_of_samples, subsample_factor)

        Call go_to_begin() or go_to_end() before reading a position.
        """
        check_cursor_kind(cursor_kind)

        for name, grid in (("mask", mask), ("image", image)):
            if not region.fits(grid.shape):
                raise ValueError(f"{region} does not fit the {name} grid of shape {grid.shape}")

        self.region = region
        self.cursor_kind = cursor_kind
        self._mask = mask
        self._image = image
        self._cursor_options = dict(cursor_options)

        self._image_cursor = cursor_kind(image, region, **cursor_options)
        self._mask_cursor = cursor_kind(mask, region, **cursor_options)

        self._begin_resolved = False
        self._begin: Position | None = None

        logger.debug(
            "MaskedCursor over %s with %s %s", region, cursor_kind.__name__, self._cursor_options
        )

    @classmethod
    def from_config(cls, mask: np.ndarray, image: np.ndarray, region: Region, config) -> "MaskedCursor":
        """Build from a TraversalConfig."""
        return cls(mask, image, region, config.resolve_cursor_kind(), **config.cursor_options())

    @property
    def image_cursor(self):
        """Wrapped image cursor, for reading and writing values at the current position."""
        return self._image_cursor

    @property
    def mask_cursor(self):
        return self._mask_cursor

    @property
    def bidirectional(self) -> bool:
        return is_bidirectional(self.cursor_kind)

    def _resolve_begin(self) -> Position | None:
        """First included position, found with a private mask cursor when not yet known."""
        if not self._begin_resolved:
            begin_cursor = self.cursor_kind(self._mask, self.region, **self._cursor_options)
            begin_cursor.go_to_begin()
            _skip_masked(begin_cursor)
            self._begin = None if begin_cursor.is_at_end() else begin_cursor.position()
            self._begin_resolved = True
            logger.debug("Resolved first included position: %s", self._begin)
        return self._begin

    def go_to_begin(self) -> None:
        self._image_cursor.go_to_begin()
        self._mask_cursor.go_to_begin()
        _skip_masked(self._mask_cursor, self._image_cursor)

        # the mask may have been written since the last traversal
        self._begin = None if self.is_at_end() else self.position()
        self._begin_resolved = True

    def go_to_end(self) -> None:
        self._image_cursor.go_to_end()
        self._mask_cursor.go_to_end()
        self._begin_resolved = False

    def advance(self) -> None:
        if self.is_at_end():
            raise TraversalError("Cannot advance a masked cursor that is at end")

        self._image_cursor.advance()
        self._mask_cursor.advance()
        _skip_masked(self._mask_cursor, self._image_cursor)

    def retreat(self) -> None:
        if not self.bidirectional:
            raise CursorCapabilityError(
                f"{self.cursor_kind.__name__} is forward-only, masked reverse traversal needs retreat()"
            )
        if self._resolve_begin() is None:
            raise TraversalError("Cannot retreat, no position in the region has a non-zero mask")
        if self.is_at_begin():
            raise TraversalError("Cannot retreat a masked cursor that is at begin")

        self._image_cursor.retreat()
        self._mask_cursor.retreat()
        while not self.is_at_begin() and self._mask_cursor.value_is_zero():
            self._image_cursor.retreat()
            self._mask_cursor.retreat()

    def is_at_end(self) -> bool:
        # Both cursors move together, the image cursor speaks for the pair
        return self._image_cursor.is_at_end()

    def is_at_begin(self) -> bool:
        """True iff on the first position go_to_begin() would land on."""
        if self.is_at_end():
            return False
        begin = self._resolve_begin()
        return begin is not None and self._image_cursor.position() == begin

    def position(self) -> Position:
        if self.is_at_end():
            raise TraversalError("Masked cursor is at end and has no position")
        return self._image_cursor.position()

    def is_synchronized(self) -> bool:
        """Both wrapped cursors at end together, or on the same position."""
        image_at_end = self._image_cursor.is_at_end()
        if image_at_end or self._mask_cursor.is_at_end():
            return image_at_end and self._mask_cursor.is_at_end()
        return self._image_cursor.position() == self._mask_cursor.position()

    def positions(self) -> Iterator[Position]:
        """Visited positions from begin to end. Restarts the traversal."""
        self.go_to_begin()
        while not self.is_at_end():
            yield self.position()
            self.advance()

    def reversed_positions(self) -> Iterator[Position]:
        """Visited positions from the last one back to begin."""
        if not self.bidirectional:
            raise CursorCapabilityError(f"{self.cursor_kind.__name__} is forward-only")

        self.go_to_end()
        if self._resolve_begin() is None:
            return
        while True:
            self.retreat()
            yield self.position()
            if self.is_at_begin():
                break

    def __iter__(self) -> Iterator[Position]:
        return self.positions()

    def count(self) -> int:
        """Number of steps in a full forward traversal."""
        return sum(1 for _ in self.positions())

    def __repr__(self) -> str:
        state = "end" if self.is_at_end() else self.position()
        return f"MaskedCursor({self.cursor_kind.__name__}, region={self.region}, at={state})"
