"""
Tests for camera capture using fake OpenCV capture objects.
"""

import numpy as np
import pytest
import cv2

from sketchsolve.canvas.controller import CanvasController
from sketchsolve.input.camera import CameraCapture, frame_to_image
from sketchsolve.utils.errors import CameraError, ErrorSeverity


class FakeCapture:
    """Stand-in for cv2.VideoCapture."""

    def __init__(self, opened=True, frames=None):
        self.opened = opened
        self.frames = list(frames or [])
        self.released = 0

    def isOpened(self):
        return self.opened

    def read(self):
        if not self.frames:
            return False, None
        return True, self.frames.pop(0)

    def release(self):
        self.released += 1


def bgr_frame(width=80, height=60, bgr=(255, 0, 0)):
    frame = np.zeros((height, width, 3), dtype=np.uint8)
    frame[:, :] = bgr
    return frame


def camera_with(capture):
    return CameraCapture(capture_factory=lambda index: capture)


class TestOpenClose:
    """Test acquire/release lifecycle."""

    def test_open_and_close(self):
        fake = FakeCapture()
        camera = camera_with(fake)

        camera.open()
        assert camera.is_open

        camera.close()
        assert not camera.is_open
        assert fake.released == 1

    def test_close_is_idempotent(self):
        fake = FakeCapture()
        camera = camera_with(fake)
        camera.open()

        camera.close()
        camera.close()

        assert fake.released == 1

    def test_open_failure_leaves_closed(self):
        """A device that fails to open is released and reported."""
        fake = FakeCapture(opened=False)
        camera = camera_with(fake)

        with pytest.raises(CameraError) as exc_info:
            camera.open()

        assert not camera.is_open
        assert fake.released == 1
        assert exc_info.value.severity == ErrorSeverity.WARNING

    def test_factory_error(self):
        def broken(index):
            raise cv2.error("no backend")

        with pytest.raises(CameraError):
            CameraCapture(capture_factory=broken).open()

    def test_context_manager_releases(self):
        fake = FakeCapture(frames=[bgr_frame()])

        with camera_with(fake) as camera:
            assert camera.is_open

        assert fake.released == 1


class TestCapture:
    """Test frame reading and conversion."""

    def test_capture_frame_native_size(self):
        """Captured photos keep the camera's resolution and channel order."""
        fake = FakeCapture(frames=[bgr_frame(80, 60, bgr=(255, 0, 0))])

        with camera_with(fake) as camera:
            image = camera.capture_frame()

        assert image.size == (80, 60)
        assert image.getpixel((10, 10)) == (0, 0, 255)

    def test_read_rgb(self):
        fake = FakeCapture(frames=[bgr_frame(bgr=(0, 0, 255))])

        with camera_with(fake) as camera:
            rgb = camera.read_rgb()

        assert tuple(rgb[0, 0]) == (255, 0, 0)

    def test_read_when_closed(self):
        with pytest.raises(CameraError):
            camera_with(FakeCapture()).read_frame()

    def test_no_frame(self):
        with camera_with(FakeCapture(frames=[])) as camera:
            with pytest.raises(CameraError):
                camera.capture_frame()

    def test_frame_to_image(self):
        image = frame_to_image(bgr_frame(4, 3, bgr=(0, 255, 0)))
        assert image.size == (4, 3)
        assert image.getpixel((0, 0)) == (0, 255, 0)


class TestCameraToCanvas:
    """Camera photos go through the same composite path as uploads."""

    def test_capture_composites_and_records(self):
        canvas = CanvasController()
        fake = FakeCapture(frames=[bgr_frame(400, 200, bgr=(0, 0, 200))])

        with camera_with(fake) as camera:
            placement = canvas.capture_camera(camera)

        assert placement.scale == pytest.approx(2.25)
        assert canvas.snapshot_count == 2
        assert canvas.surface.pixel(450, 300) == (200, 0, 0)
