"""Canvas layer: pixel surface, snapshot history, and the controller that owns them."""

from .surface import PixelSurface, Placement, fit_and_center
from .history import SnapshotHistory
from .controller import CanvasController

__all__ = [
    "PixelSurface",
    "Placement",
    "fit_and_center",
    "SnapshotHistory",
    "CanvasController",
]
