"""
Drawing canvas widget.

Paints the controller's pixel surface stretched to the widget and feeds
mouse, tablet and touch input back to it in widget coordinates.
"""

from PyQt6.QtWidgets import QWidget, QSizePolicy
from PyQt6.QtGui import QImage, QPainter, QTabletEvent
from PyQt6.QtCore import Qt, QEvent, QSize, pyqtSignal

from ..canvas.controller import CanvasController
from ..models import PenMode
from ..utils.constants import CANVAS_WIDTH, CANVAS_HEIGHT, PEN_WIDTH_DEFAULT, clamp_pen_width


def pil_to_qimage(image) -> QImage:
    """Convert an RGB PIL image into a QImage that owns its pixels."""
    image = image.convert("RGB")
    data = image.tobytes("raw", "RGB")
    qimage = QImage(
        data, image.width, image.height, image.width * 3, QImage.Format.Format_RGB888
    )
    # QImage does not copy the buffer; detach before `data` goes away
    return qimage.copy()


class CanvasWidget(QWidget):
    """
    Widget view of a CanvasController.

    Signals:
        strokeFinished: A stroke was committed to the undo history.
        canvasChanged: The visible canvas changed for any reason.
    """

    strokeFinished = pyqtSignal()
    canvasChanged = pyqtSignal()

    def __init__(self, controller: CanvasController, parent=None):
        super().__init__(parent)
        self.controller = controller
        self.pen_width = PEN_WIDTH_DEFAULT
        self.mode = PenMode.INK
        self._frame = None

        self.setAttribute(Qt.WidgetAttribute.WA_AcceptTouchEvents, True)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setMinimumSize(CANVAS_WIDTH // 3, CANVAS_HEIGHT // 3)
        self.setCursor(Qt.CursorShape.CrossCursor)
        self.refresh()

    def sizeHint(self) -> QSize:
        return QSize(CANVAS_WIDTH, CANVAS_HEIGHT)

    def set_pen_width(self, width: float):
        self.pen_width = clamp_pen_width(width)

    def set_mode(self, mode: PenMode):
        self.mode = mode

    def refresh(self):
        """Re-read the surface and repaint."""
        self._frame = pil_to_qimage(self.controller.surface.image)
        self.update()
        self.canvasChanged.emit()

    # === Painting ===

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform)
        painter.drawImage(self.rect(), self._frame)
        painter.end()

    # === Pointer plumbing ===

    def _press(self, x: float, y: float):
        self.controller.pointer_down(
            x, y, self.width(), self.height(), pen_width=self.pen_width, mode=self.mode
        )
        self.refresh()

    def _move(self, x: float, y: float):
        if not self.controller.drawing:
            return
        self.controller.pointer_move(x, y, self.width(), self.height())
        self.refresh()

    def _release(self):
        if self.controller.pointer_up():
            self.refresh()
            self.strokeFinished.emit()

    def mousePressEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            pos = event.position()
            self._press(pos.x(), pos.y())

    def mouseMoveEvent(self, event):
        pos = event.position()
        self._move(pos.x(), pos.y())

    def mouseReleaseEvent(self, event):
        if event.button() == Qt.MouseButton.LeftButton:
            self._release()

    def leaveEvent(self, event):
        # Leaving the canvas ends the stroke
        self._release()
        super().leaveEvent(event)

    def tabletEvent(self, event: QTabletEvent):
        pos = event.position()
        kind = event.type()
        if kind == QEvent.Type.TabletPress:
            self._press(pos.x(), pos.y())
        elif kind == QEvent.Type.TabletMove:
            self._move(pos.x(), pos.y())
        elif kind == QEvent.Type.TabletRelease:
            self._release()
        event.accept()

    def event(self, event):
        kind = event.type()
        if kind in (
            QEvent.Type.TouchBegin,
            QEvent.Type.TouchUpdate,
            QEvent.Type.TouchEnd,
            QEvent.Type.TouchCancel,
        ):
            points = event.points()
            if kind in (QEvent.Type.TouchEnd, QEvent.Type.TouchCancel) or not points:
                self._release()
            else:
                # Only the first finger draws
                pos = points[0].position()
                if kind == QEvent.Type.TouchBegin:
                    self._press(pos.x(), pos.y())
                else:
                    self._move(pos.x(), pos.y())
            event.accept()
            return True
        return super().event(event)
