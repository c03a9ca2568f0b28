"""
Camera dialog with live preview.

The camera is held only while the dialog is open; it is released on
capture, cancel and window close alike.
"""

import logging
from typing import Optional

from PyQt6.QtWidgets import QDialog, QVBoxLayout, QHBoxLayout, QLabel, QPushButton
from PyQt6.QtGui import QImage, QPixmap
from PyQt6.QtCore import Qt, QTimer

from ..input.camera import CameraCapture
from ..utils.errors import CameraError

logger = logging.getLogger(__name__)

PREVIEW_INTERVAL_MS = 33


class CameraDialog(QDialog):
    """
    Preview the camera and capture one photo.

    After exec() returns Accepted, `captured` holds the PIL image.

    Usage:
        dialog = CameraDialog(parent)
        if dialog.open_camera() and dialog.exec():
            controller.load_image(dialog.captured)
    """

    def __init__(self, parent=None, camera: Optional[CameraCapture] = None):
        super().__init__(parent)
        self.setWindowTitle("Camera")
        self.setMinimumSize(480, 400)

        self.camera = camera or CameraCapture()
        self.captured = None
        self.error: Optional[CameraError] = None

        self._timer = QTimer(self)
        self._timer.setInterval(PREVIEW_INTERVAL_MS)
        self._timer.timeout.connect(self._update_preview)

        self._init_ui()
        self.finished.connect(self._release)

    def _init_ui(self):
        layout = QVBoxLayout(self)

        self.preview = QLabel("Starting camera...")
        self.preview.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.preview.setMinimumSize(320, 240)
        self.preview.setStyleSheet("background: #0b0f19; color: #e6edf7;")
        layout.addWidget(self.preview, stretch=1)

        btn_layout = QHBoxLayout()
        btn_layout.addStretch()

        self.capture_btn = QPushButton("Capture")
        self.capture_btn.setStyleSheet("font-weight: bold; padding: 5px 20px;")
        self.capture_btn.clicked.connect(self._on_capture)
        btn_layout.addWidget(self.capture_btn)

        cancel_btn = QPushButton("Cancel")
        cancel_btn.clicked.connect(self.reject)
        btn_layout.addWidget(cancel_btn)

        layout.addLayout(btn_layout)

    def open_camera(self) -> bool:
        """
        Acquire the camera and start the preview.

        Returns:
            False if the camera could not be opened (see `error`).
        """
        try:
            self.camera.open()
        except CameraError as e:
            self.error = e
            return False
        self._timer.start()
        return True

    def _update_preview(self):
        try:
            frame = self.camera.read_rgb()
        except CameraError as e:
            logger.debug("Preview frame dropped: %s", e)
            return

        height, width = frame.shape[:2]
        image = QImage(frame.data, width, height, width * 3, QImage.Format.Format_RGB888)
        pixmap = QPixmap.fromImage(image.copy()).scaled(
            self.preview.size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.SmoothTransformation,
        )
        self.preview.setPixmap(pixmap)

    def _on_capture(self):
        self._timer.stop()
        try:
            self.captured = self.camera.capture_frame()
        except CameraError as e:
            self.error = e
            self.reject()
            return
        self.accept()

    def _release(self, *_):
        self._timer.stop()
        self.camera.close()

    def closeEvent(self, event):
        self._release()
        super().closeEvent(event)
