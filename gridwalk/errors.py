"""Exceptions raised by grid cursors and the masked traversal."""


class GridWalkError(Exception):
    """Base class for all gridwalk errors."""


class CursorError(GridWalkError, IndexError):
    """Cursor read or moved outside its region (past end, before begin)."""


class TraversalError(GridWalkError, RuntimeError):
    """Masked traversal used against its preconditions."""


class CursorCapabilityError(GridWalkError, TypeError):
    """Cursor kind lacks an operation the traversal needs."""
