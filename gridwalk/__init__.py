"""Masked traversal of N-dimensional grids."""

from .config import CONFIGS, TraversalConfig, get_config
from .cursors import (
    CURSOR_KINDS,
    GridCursor,
    RandomCursor,
    RandomNonRepeatingCursor,
    RegionCursor,
    ScanlineCursor,
    SequentialCursor,
    SubsampledCursor,
    check_cursor_kind,
    get_cursor_kind,
    missing_capabilities,
)
from .errors import CursorCapabilityError, CursorError, GridWalkError, TraversalError
from .masked_cursor import MaskedCursor
from .masked_walker import MaskedWalker, WalkStep
from .region import Position, Region, as_position

__all__ = [
    # Region
    "Position",
    "Region",
    "as_position",
    # Cursors
    "GridCursor",
    "RegionCursor",
    "ScanlineCursor",
    "SubsampledCursor",
    "RandomCursor",
    "RandomNonRepeatingCursor",
    "SequentialCursor",
    "CURSOR_KINDS",
    "get_cursor_kind",
    "check_cursor_kind",
    "missing_capabilities",
    # Masked traversal
    "MaskedCursor",
    "MaskedWalker",
    "WalkStep",
    # Config
    "TraversalConfig",
    "CONFIGS",
    "get_config",
    # Errors
    "GridWalkError",
    "CursorError",
    "TraversalError",
    "CursorCapabilityError",
]
