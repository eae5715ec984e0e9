"""
Grid cursors - stateful traversal objects bound to one grid and one region.

Every cursor kind walks the positions of a Region in its own order and
supports the same small set of movements, so that it can be decorated by
MaskedCursor:

    go_to_begin()    first position (or at end when the region is empty)
    go_to_end()      past the last position
    advance()        next position, no-op when already at end
    retreat()        previous position (bidirectional kinds only)
    is_at_end()      pure query
    position()       current position, CursorError when at end
    value_is_zero()  is the grid value here the zero of its dtype

Kinds:
- RegionCursor: C order (last axis fastest)
- ScanlineCursor: C order, one line at a time, with next_line()
- SubsampledCursor: every `factor`-th index along each axis
- RandomCursor: seeded draws with replacement
- RandomNonRepeatingCursor: seeded permutation of the region
- SequentialCursor: forward-only stream in C order

Usage:
    from gridwalk.cursors import RegionCursor
    from gridwalk.region import Region

    cursor = RegionCursor(image, Region.from_shape(image.shape[:2]))
    cursor.go_to_begin()
    while not cursor.is_at_end():
        cursor.set_value(cursor.value() * 2)
        cursor.advance()
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence

import numpy as np

from .errors import CursorCapabilityError, CursorError
from .region import Position, Region

# Operations MaskedCursor calls on every cursor, in either direction
FORWARD_CAPABILITIES = (
    "go_to_begin",
    "go_to_end",
    "advance",
    "is_at_end",
    "position",
    "value_is_zero",
)


class GridCursor(ABC):
    """Abstract base class for cursor kinds."""

    # Set to False on kinds that can only move forward
    bidirectional = True

    def __init__(self, grid: np.ndarray, region: Region):
        """
        Args:
            grid: Array walked by the cursor, indexed by positions of `region`.
                Extra trailing axes (e.g. color channels) are allowed.
            region: Positions the cursor is allowed to visit
        """
        if not region.fits(grid.shape):
            raise ValueError(f"{region} does not fit a grid of shape {grid.shape}")

        self.grid = grid
        self.region = region

    @abstractmethod
    def go_to_begin(self) -> None:
        pass

    @abstractmethod
    def go_to_end(self) -> None:
        pass

    @abstractmethod
    def advance(self) -> None:
        pass

    @abstractmethod
    def retreat(self) -> None:
        pass

    @abstractmethod
    def is_at_end(self) -> bool:
        pass

    @abstractmethod
    def position(self) -> Position:
        pass

    def value(self):
        """Grid value at the current position (an array for multi-channel grids)."""
        return self.grid[self.position()]

    def set_value(self, value) -> None:
        self.grid[self.position()] = value

    def value_is_zero(self) -> bool:
        """True iff the value here is zero on every channel."""
        return not np.any(self.value())

    def get_name(self) -> str:
        return type(self).__name__

    def __repr__(self) -> str:
        state = "end" if self.is_at_end() else self.position()
        return f"{self.get_name()}(region={self.region}, at={state})"


class _IndexedCursor(GridCursor):
    """
    Cursor over a finite, indexable sequence of positions.

    Subclasses only say how many steps the walk has and which position a step
    lands on; the step counter runs from 0 to `_number_of_steps` (= at end).
    """

    def __init__(self, grid: np.ndarray, region: Region):
        super().__init__(grid, region)
        self._number_of_steps = 0
        self._step = 0

    @abstractmethod
    def _position_for(self, step: int) -> Position:
        pass

    def go_to_begin(self) -> None:
        self._step = 0

    def go_to_end(self) -> None:
        self._step = self._number_of_steps

    def advance(self) -> None:
        if self._step < self._number_of_steps:
            self._step += 1

    def retreat(self) -> None:
        if self._step == 0:
            raise CursorError(f"{self.get_name()} cannot retreat before its first position")
        self._step -= 1

    def is_at_end(self) -> bool:
        return self._step >= self._number_of_steps

    def position(self) -> Position:
        if self.is_at_end():
            raise CursorError(f"{self.get_name()} is at end and has no position")
        return self._position_for(self._step)


class RegionCursor(_IndexedCursor):
    """Walk every position of the region in C order."""

    def __init__(self, grid: np.ndarray, region: Region):
        super().__init__(grid, region)
        self._number_of_steps = region.number_of_positions

    def _position_for(self, step: int) -> Position:
        return self.region.position_at(step)

    def is_at_begin(self) -> bool:
        return self._step == 0 and not self.is_at_end()


class SubsampledCursor(_IndexedCursor):
    """Walk every `factor`-th index along each axis, starting at region start."""

    def __init__(self, grid: np.ndarray, region: Region, subsample_factor: int | Sequence[int] = 1):
        """
        Args:
            grid: Array to walk
            region: Positions allowed
            subsample_factor: Stride, either one int for all axes or one per axis
        """
        super().__init__(grid, region)

        if isinstance(subsample_factor, (int, np.integer)):
            factors = (int(subsample_factor),) * region.ndim
        else:
            factors = tuple(int(f) for f in subsample_factor)

        if len(factors) != region.ndim or any(f < 1 for f in factors):
            raise ValueError(
                f"subsample_factor must be >= 1 for each of {region.ndim} axes, got {subsample_factor}"
            )

        self.factors = factors
        self._sub_size = tuple((n + f - 1) // f for n, f in zip(region.size, factors))
        self._number_of_steps = Region(start=(0,) * region.ndim, size=self._sub_size).number_of_positions

    def _position_for(self, step: int) -> Position:
        local = np.unravel_index(step, self._sub_size)
        return tuple(int(s + i * f) for s, i, f in zip(self.region.start, local, self.factors))

    def is_at_begin(self) -> bool:
        return self._step == 0 and not self.is_at_end()


class RandomCursor(_IndexedCursor):
    """
    Visit `number_of_samples` positions drawn uniformly with replacement.

    The draws are fixed at construction from `seed`, so two cursors built with
    the same arguments walk the same positions. A position can come up more
    than once, which leaves no single first position to stop at when walking
    backwards: the kind is forward-only.
    """

    bidirectional = False

    def __init__(
        self,
        grid: np.ndarray,
        region: Region,
        number_of_samples: int | None = None,
        seed: int = 0,
    ):
        """
        Args:
            grid: Array to walk
            region: Positions allowed
            number_of_samples: Length of the walk. If None, one draw per position.
            seed: Seed for the numpy random generator
        """
        super().__init__(grid, region)

        n = region.number_of_positions
        if number_of_samples is None:
            number_of_samples = n
        if number_of_samples < 0:
            raise ValueError(f"number_of_samples must be non-negative, got {number_of_samples}")

        rng = np.random.default_rng(seed)
        if n == 0:
            self._offsets = np.empty(0, dtype=np.int64)
        else:
            self._offsets = rng.integers(0, n, size=number_of_samples)
        self._number_of_steps = len(self._offsets)

    def retreat(self) -> None:
        raise CursorCapabilityError(f"{self.get_name()} draws with replacement and cannot retreat")

    def _position_for(self, step: int) -> Position:
        return self.region.position_at(int(self._offsets[step]))


class RandomNonRepeatingCursor(_IndexedCursor):
    """Visit every position of the region exactly once in seeded random order."""

    def __init__(self, grid: np.ndarray, region: Region, seed: int = 0):
        super().__init__(grid, region)

        rng = np.random.default_rng(seed)
        self._offsets = rng.permutation(region.number_of_positions)
        self._number_of_steps = len(self._offsets)

    def _position_for(self, step: int) -> Position:
        return self.region.position_at(int(self._offsets[step]))


class ScanlineCursor(GridCursor):
    """
    Walk the region one line (last axis) at a time.

    advance() moves along the line and wraps to the next one; next_line()
    jumps straight to the start of the following line.
    """

    def __init__(self, grid: np.ndarray, region: Region):
        super().__init__(grid, region)

        if region.is_empty or region.ndim == 0:
            self._number_of_lines = 0
            self._line_length = 0
        else:
            self._number_of_lines = int(np.prod(region.size[:-1], dtype=np.int64))
            self._line_length = region.size[-1]

        self._line = 0
        self._column = 0

    def go_to_begin(self) -> None:
        self._line = 0
        self._column = 0

    def go_to_end(self) -> None:
        self._line = self._number_of_lines
        self._column = 0

    def advance(self) -> None:
        if self.is_at_end():
            return
        self._column += 1
        if self._column == self._line_length:
            self.next_line()

    def next_line(self) -> None:
        if self.is_at_end():
            return
        self._line += 1
        self._column = 0

    def retreat(self) -> None:
        if not self.is_at_end() and self._column > 0:
            self._column -= 1
        elif self._line > 0:
            self._line -= 1
            self._column = self._line_length - 1
        else:
            raise CursorError(f"{self.get_name()} cannot retreat before its first position")

    def is_at_end(self) -> bool:
        return self._line >= self._number_of_lines

    def is_at_begin(self) -> bool:
        return self._line == 0 and self._column == 0 and not self.is_at_end()

    def is_at_end_of_line(self) -> bool:
        """True when on the last position of the current line."""
        return not self.is_at_end() and self._column == self._line_length - 1

    def position(self) -> Position:
        if self.is_at_end():
            raise CursorError(f"{self.get_name()} is at end and has no position")

        start = self.region.start
        if self.region.ndim == 1:
            leading = ()
        else:
            local = np.unravel_index(self._line, self.region.size[:-1])
            leading = tuple(int(s + i) for s, i in zip(start[:-1], local))
        return leading + (start[-1] + self._column,)


class SequentialCursor(GridCursor):
    """
    Forward-only cursor consuming a one-shot stream of positions in C order.

    go_to_begin() restarts the stream; there is no way back, so retreat()
    always raises.
    """

    bidirectional = False

    def __init__(self, grid: np.ndarray, region: Region):
        super().__init__(grid, region)
        self._stream: Iterator[Position] = iter(())
        self._current: Position | None = None
        self.go_to_begin()

    def go_to_begin(self) -> None:
        self._stream = self.region.positions()
        self._current = next(self._stream, None)

    def go_to_end(self) -> None:
        self._stream = iter(())
        self._current = None

    def advance(self) -> None:
        if self._current is not None:
            self._current = next(self._stream, None)

    def retreat(self) -> None:
        raise CursorCapabilityError(f"{self.get_name()} is forward-only and cannot retreat")

    def is_at_end(self) -> bool:
        return self._current is None

    def position(self) -> Position:
        if self._current is None:
            raise CursorError(f"{self.get_name()} is at end and has no position")
        return self._current


CURSOR_KINDS = {
    "region": RegionCursor,
    "scanline": ScanlineCursor,
    "subsampled": SubsampledCursor,
    "random": RandomCursor,
    "random_non_repeating": RandomNonRepeatingCursor,
    "sequential": SequentialCursor,
}


def get_cursor_kind(name: str = "region") -> type:
    """
    Get a cursor kind by name.

    Args:
        name: One of the keys of CURSOR_KINDS

    Returns:
        cursor_kind: Cursor class
    """
    if name not in CURSOR_KINDS:
        raise ValueError(f"Unknown cursor kind: {name}. Available: {list(CURSOR_KINDS.keys())}")

    return CURSOR_KINDS[name]


def is_bidirectional(cursor_kind: type) -> bool:
    """Declared `bidirectional` flag, falling back to whether retreat() exists."""
    has_retreat = callable(getattr(cursor_kind, "retreat", None))
    return bool(getattr(cursor_kind, "bidirectional", has_retreat)) and has_retreat


def missing_capabilities(cursor_kind, reverse: bool = False) -> list[str]:
    """
    List the operations a cursor kind lacks for masked traversal.

    Works on GridCursor subclasses and duck-typed classes alike. Abstract
    methods count as missing.

    Args:
        cursor_kind: Cursor class to inspect
        reverse: Also require backward movement

    Returns:
        Names of missing operations (empty when the kind is usable)
    """
    if not isinstance(cursor_kind, type):
        return ["<not a class>"]

    missing = []
    for name in FORWARD_CAPABILITIES:
        attr = getattr(cursor_kind, name, None)
        if not callable(attr) or getattr(attr, "__isabstractmethod__", False):
            missing.append(name)

    if reverse and not is_bidirectional(cursor_kind):
        missing.append("retreat")

    return missing


def check_cursor_kind(cursor_kind, reverse: bool = False) -> None:
    """Raise CursorCapabilityError if the kind cannot be decorated."""
    missing = missing_capabilities(cursor_kind, reverse=reverse)
    if missing:
        name = getattr(cursor_kind, "__name__", repr(cursor_kind))
        raise CursorCapabilityError(f"{name} cannot be used for masked traversal, missing: {missing}")
