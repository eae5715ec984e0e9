"""
Masked Walker - record, transform and draw masked traversals of an image.

Wraps MaskedCursor with the image-level conveniences experiments need:
a walk as a list of steps, in-place edits restricted to the mask, and a
path overlay.

Usage:
    from gridwalk.masked_walker import MaskedWalker

    walker = MaskedWalker(image, mask)
    path = walker.walk()
    walker.visualize(path)
"""

from collections.abc import Callable
from dataclasses import dataclass

import cv2
import numpy as np

from .config import TraversalConfig
from .cursors import check_cursor_kind
from .masked_cursor import MaskedCursor
from .region import Position, Region


@dataclass
class WalkStep:
    """Single step of a masked walk."""

    position: Position
    value: np.ndarray | float  # Image value at this position
    index: int  # Order of the step in the walk


class MaskedWalker:
    """Run masked traversals over one image."""

    def __init__(
        self,
        image: np.ndarray,
        mask: np.ndarray,
        region: Region | None = None,
        config: TraversalConfig | None = None,
    ):
        """
        Args:
            image: Input image (H, W, C) or (H, W)
            mask: Mask (H, W), non-zero where the walk may go
            region: Region to walk. If None, the overlap of image and mask.
            config: Walk order and cursor options. If None, TraversalConfig().

        Raises:
            CursorCapabilityError: config.reverse is set for a forward-only kind
        """
        self.image = image.copy()
        self.mask = mask

        if region is None:
            region = Region.from_shape(mask.shape).intersection(
                Region.from_shape(image.shape[: mask.ndim])
            )
        self.region = region
        self.config = config or TraversalConfig()
        check_cursor_kind(self.config.resolve_cursor_kind(), reverse=self.config.reverse)

    def cursor(self) -> MaskedCursor:
        """Fresh masked cursor over the walker's image, mask and region."""
        return MaskedCursor.from_config(self.mask, self.image, self.region, self.config)

    def walk(self, reverse: bool | None = None, max_steps: int | None = None) -> list[WalkStep]:
        """
        Execute a masked walk.

        Args:
            reverse: Walk from the last included position back to begin.
                If None, use config.reverse.
            max_steps: Maximum number of steps. If None, walk to the end.

        Returns:
            List of WalkStep objects in visiting order
        """
        if reverse is None:
            reverse = self.config.reverse

        cursor = self.cursor()
        positions = cursor.reversed_positions() if reverse else cursor.positions()

        walk_history = []
        for index, position in enumerate(positions):
            if max_steps is not None and index >= max_steps:
                break
            walk_history.append(
                WalkStep(position=position, value=cursor.image_cursor.value(), index=index)
            )

        return walk_history

    def apply(self, fn: Callable) -> int:
        """
        Replace every visited image value v by fn(v), in place.

        Kinds that revisit positions (random with replacement) apply fn once
        per visit.

        Returns:
            Number of values written
        """
        cursor = self.cursor()
        written = 0

        cursor.go_to_begin()
        while not cursor.is_at_end():
            image_cursor = cursor.image_cursor
            image_cursor.set_value(fn(image_cursor.value()))
            written += 1
            cursor.advance()

        return written

    def coverage(self) -> float:
        """Fraction of region positions the walk visits at least once."""
        if self.region.number_of_positions == 0:
            return 0.0
        visited = set(self.cursor().positions())
        return len(visited) / self.region.number_of_positions

    def visualize(
        self,
        walk_path: list[WalkStep],
        line_thickness: int = 1,
        color: tuple[int, int, int] = (255, 0, 0),
        show_start: bool = True,
        show_end: bool = True,
        show_mask: bool = True,
    ) -> np.ndarray:
        """
        Visualize walk path on a 2-D image.

        Args:
            walk_path: Path from walk()
            line_thickness: Thickness of path line
            color: RGB color for path
            show_start: Mark start position
            show_end: Mark end position
            show_mask: Darken positions outside the mask

        Returns:
            Image with path drawn
        """
        if len(self.image.shape) == 2:
            output = cv2.cvtColor(self.image.astype(np.uint8), cv2.COLOR_GRAY2RGB)
        else:
            output = self.image.astype(np.uint8).copy()

        if show_mask and self.mask.shape == output.shape[:2]:
            excluded = self.mask == 0
            output[excluded] = (output[excluded] * 0.3).astype(np.uint8)

        for i in range(len(walk_path) - 1):
            pt1 = (walk_path[i].position[1], walk_path[i].position[0])  # (col, row) for cv2
            pt2 = (walk_path[i + 1].position[1], walk_path[i + 1].position[0])
            cv2.line(output, pt1, pt2, color, line_thickness)

        if show_start and len(walk_path) > 0:
            start = (walk_path[0].position[1], walk_path[0].position[0])
            cv2.circle(output, start, 5, (0, 255, 0), -1)  # Green circle

        if show_end and len(walk_path) > 0:
            end = (walk_path[-1].position[1], walk_path[-1].position[0])
            cv2.circle(output, end, 5, (0, 0, 255), -1)  # Red circle

        return output
