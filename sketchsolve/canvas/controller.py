"""
Canvas controller.

Single owner of the pixel surface and its undo history. Every input source
(pointer, file upload, camera) goes through here so that each completed
operation leaves exactly one snapshot behind.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PIL import Image

from ..models import PenMode
from ..input.camera import CameraCapture
from ..input.normalizer import map_pointer, decode_image, load_image_file
from ..utils.constants import PEN_WIDTH_DEFAULT
from .history import SnapshotHistory
from .surface import PixelSurface, Placement

logger = logging.getLogger(__name__)


class CanvasController:
    """
    Exclusive-mutation front end for the drawing canvas.

    Snapshots are recorded after the initial reset, each completed stroke,
    each successful image load and each clear.

    Usage:
        canvas = CanvasController()
        canvas.pointer_down(12, 30, widget_w, widget_h)
        canvas.pointer_move(80, 44, widget_w, widget_h)
        canvas.pointer_up()
        canvas.undo()
    """

    def __init__(
        self,
        surface: Optional[PixelSurface] = None,
        history: Optional[SnapshotHistory] = None,
    ):
        self.surface = surface if surface is not None else PixelSurface()
        self.history = history if history is not None else SnapshotHistory()
        self._decode_generation = 0

        self.surface.reset()
        self.history.reset(self.surface.export_image())

    @property
    def snapshot_count(self) -> int:
        return len(self.history)

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def drawing(self) -> bool:
        return self.surface.stroke_active

    def _record(self, reason: str) -> None:
        count = self.history.record(self.surface.export_image())
        logger.debug("Snapshot recorded after %s (%d held)", reason, count)

    # === Pointer input ===

    def pointer_down(
        self,
        x: float,
        y: float,
        rendered_width: float,
        rendered_height: float,
        pen_width: float = PEN_WIDTH_DEFAULT,
        mode: PenMode = PenMode.INK,
    ) -> None:
        """Start a stroke at a display-space position."""
        point = map_pointer(x, y, rendered_width, rendered_height)
        self.surface.begin_stroke(point, pen_width, mode)

    def pointer_move(
        self, x: float, y: float, rendered_width: float, rendered_height: float
    ) -> None:
        """Extend the active stroke; ignored when no stroke is active."""
        if not self.surface.stroke_active:
            return
        self.surface.extend_stroke(map_pointer(x, y, rendered_width, rendered_height))

    def pointer_up(self) -> bool:
        """
        Finish the active stroke.

        Returns:
            True if a stroke was completed (and a snapshot recorded).
        """
        if not self.surface.stroke_active:
            return False
        self.surface.end_stroke()
        self._record("stroke")
        return True

    # === Image input ===

    def load_image(self, image: Image.Image) -> Placement:
        """Composite a decoded image onto a cleared canvas."""
        placement = self.surface.composite_image(image, image.width, image.height)
        self._record("image load")
        return placement

    def load_bytes(self, data: bytes) -> Placement:
        """Decode encoded image bytes and composite them."""
        return self.load_image(decode_image(data))

    def load_file(self, path: Union[str, Path]) -> Placement:
        """Decode an image file and composite it."""
        return self.load_image(load_image_file(path))

    def capture_camera(self, camera: CameraCapture) -> Placement:
        """Grab a photo from an open camera and composite it."""
        return self.load_image(camera.capture_frame())

    # === Asynchronous decode ===

    def begin_decode(self) -> int:
        """
        Register a pending background decode.

        Returns:
            Generation number to hand back to finish_decode().
        """
        self._decode_generation += 1
        return self._decode_generation

    def finish_decode(self, generation: int, image: Image.Image) -> Optional[Placement]:
        """
        Apply a completed background decode unless a newer one was started.

        Returns:
            The placement, or None if the result was stale and discarded.
        """
        if generation != self._decode_generation:
            logger.debug(
                "Discarding stale decode %d (latest is %d)",
                generation,
                self._decode_generation,
            )
            return None
        return self.load_image(image)

    # === Whole-canvas operations ===

    def clear(self) -> None:
        """Reset to background and grid."""
        self.surface.reset()
        self._record("clear")

    def undo(self) -> bool:
        """
        Step back one snapshot.

        An unfinished stroke is dropped on its own, without popping a
        snapshot. At the floor nothing changes.

        Returns:
            True if the canvas was redrawn.
        """
        if self.surface.stroke_active:
            self.surface.load_snapshot(self.history.current)
            return True
        if not self.history.can_undo:
            return False
        self.surface.load_snapshot(self.history.undo())
        logger.debug("Undo (%d snapshots left)", len(self.history))
        return True

    def export_png(self) -> bytes:
        return self.surface.export_image()

    def to_data_url(self) -> str:
        return self.surface.to_data_url()
