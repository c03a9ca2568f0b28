"""
Camera capture via OpenCV.

Captures a single frame at the camera's native resolution and round-trips
it through PNG so camera photos reach the canvas through the same
decode-and-composite path as uploaded files.
"""

import logging
from typing import Any, Callable, Optional

import cv2
from PIL import Image

from ..utils.errors import CameraError
from .normalizer import decode_image

logger = logging.getLogger(__name__)


class CameraCapture:
    """
    Live camera wrapper with explicit acquire/release.

    The device is held only between open() and close(); close() is safe to
    call more than once and runs automatically when used as a context manager.

    Usage:
        with CameraCapture() as camera:
            image = camera.capture_frame()
    """

    def __init__(
        self,
        device_index: int = 0,
        capture_factory: Optional[Callable[[int], Any]] = None,
    ):
        """
        Args:
            device_index: OpenCV camera index.
            capture_factory: Callable returning a cv2.VideoCapture-like object.
                Defaults to cv2.VideoCapture.
        """
        self.device_index = device_index
        self._capture_factory = capture_factory or cv2.VideoCapture
        self._capture = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None

    def open(self) -> None:
        """
        Acquire the camera device.

        Raises:
            CameraError: If no camera is available or access was denied. The
                wrapper stays closed in that case.
        """
        if self.is_open:
            return

        try:
            capture = self._capture_factory(self.device_index)
        except cv2.error as e:
            raise CameraError(
                f"Could not access camera {self.device_index}",
                technical_details=str(e),
            )

        if capture is None or not capture.isOpened():
            if capture is not None:
                capture.release()
            raise CameraError(
                f"Could not open camera {self.device_index}: "
                "no device found or access denied"
            )

        self._capture = capture
        logger.info("Camera %d opened", self.device_index)

    def read_frame(self):
        """
        Read one raw BGR frame (numpy array) from the open camera.

        Raises:
            CameraError: If the camera is not open or returned no frame.
        """
        if not self.is_open:
            raise CameraError("The camera is not open")

        ok, frame = self._capture.read()
        if not ok or frame is None:
            raise CameraError(
                "The camera did not return a frame",
                suggestions=["Wait a moment and try again", "Reopen the camera"],
            )
        return frame

    def read_rgb(self):
        """Read one frame converted to RGB channel order, for previews."""
        return cv2.cvtColor(self.read_frame(), cv2.COLOR_BGR2RGB)

    def capture_frame(self) -> Image.Image:
        """
        Capture a still photo at native resolution.

        Returns:
            Decoded Pillow image ready for compositing.

        Raises:
            CameraError: If reading or encoding the frame fails.
        """
        return frame_to_image(self.read_frame())

    def close(self) -> None:
        """Release the device."""
        if self._capture is None:
            return
        self._capture.release()
        self._capture = None
        logger.info("Camera %d released", self.device_index)

    def __enter__(self) -> "CameraCapture":
        self.open()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def frame_to_image(frame) -> Image.Image:
    """
    Encode a BGR frame to PNG and decode it back into a Pillow image.

    Raises:
        CameraError: If the frame cannot be encoded.
    """
    try:
        ok, encoded = cv2.imencode(".png", frame)
    except cv2.error as e:
        raise CameraError("Failed to encode camera frame", technical_details=str(e))
    if not ok:
        raise CameraError("Failed to encode camera frame")

    height, width = frame.shape[:2]
    logger.debug("Captured %dx%d camera frame", width, height)
    return decode_image(encoded.tobytes())
