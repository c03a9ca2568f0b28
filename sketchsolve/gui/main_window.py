"""
Main application window for SketchSolve.

PyQt6-based GUI with a drawing canvas, solution view and equivalence checker.
"""

import sys
import time
from typing import Optional
from PyQt6.QtWidgets import (
    QMainWindow,
    QWidget,
    QVBoxLayout,
    QHBoxLayout,
    QPushButton,
    QLabel,
    QLineEdit,
    QGroupBox,
    QToolBar,
    QMessageBox,
    QApplication,
    QSplitter,
    QSlider,
    QFileDialog,
)
from PyQt6.QtCore import Qt, QThread, pyqtSignal
from PyQt6.QtGui import QAction, QFont, QKeySequence

from ..canvas.controller import CanvasController
from ..models import PenMode, Settings, SolveResult, VerdictKind
from ..output.mathjax_widget import MathJaxWidget
from ..utils.constants import PEN_WIDTH_MIN, PEN_WIDTH_MAX, PEN_WIDTH_DEFAULT
from ..utils.errors import format_error_for_dialog, format_error_for_user
from ..utils.settings import SettingsStore
from .canvas_widget import CanvasWidget

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.bmp *.gif *.webp);;All files (*)"


class DecodeWorker(QThread):
    """Background thread for decoding an uploaded image."""

    finished = pyqtSignal(int, object)  # generation, PIL image
    error = pyqtSignal(object)

    def __init__(self, generation: int, path: str):
        super().__init__()
        self.generation = generation
        self.path = path

    def run(self):
        from ..input.normalizer import load_image_file

        try:
            image = load_image_file(self.path)
            self.finished.emit(self.generation, image)
        except Exception as e:
            self.error.emit(e)


class SolveWorker(QThread):
    """Background thread for the relay round trip."""

    finished = pyqtSignal(object)  # SolveResult
    error = pyqtSignal(object)

    def __init__(self, client, settings: Settings, image_png: bytes, data_url: str):
        super().__init__()
        self.client = client
        self.settings = settings
        self.image_png = image_png
        self.data_url = data_url

    def run(self):
        start = time.perf_counter()
        try:
            content = self.client.solve(self.settings, self.data_url)
            self.finished.emit(
                SolveResult(
                    content=content,
                    settings=self.settings,
                    image_png=self.image_png,
                    elapsed_ms=int((time.perf_counter() - start) * 1000),
                )
            )
        except Exception as e:
            self.error.emit(e)


class MainWindow(QMainWindow):
    """
    Main application window for SketchSolve.

    Layout:
    - Toolbar: Upload, Camera, Clear, Undo, Save PNG, Export PDF, Settings
    - Canvas Panel: Drawing surface with pen size and eraser controls
    - Solution Panel: Rendered answer with copy button
    - Checker Panel: Two expressions and an equivalence verdict
    - Status Bar: Processing status and timing
    """

    def __init__(self, settings_store: Optional[SettingsStore] = None):
        super().__init__()

        self.setWindowTitle("SketchSolve")
        self.setGeometry(100, 100, 1400, 800)
        self.setMinimumSize(900, 500)

        self.controller = CanvasController()
        self.settings_store = settings_store or SettingsStore()
        self.settings = self.settings_store.load()

        # Initialize components (lazy-loaded)
        self._relay_client = None
        self._checker = None

        # Current state
        self._current_result: Optional[SolveResult] = None
        self._decode_workers = set()
        self._solve_worker = None

        # Setup UI
        self._init_ui()
        self._init_toolbar()
        self._init_statusbar()
        self._update_actions()

        self.statusBar().showMessage("Ready. Draw a problem or upload a photo.")

    def _init_ui(self):
        """Initialize the main UI layout."""
        central_widget = QWidget()
        self.setCentralWidget(central_widget)

        main_layout = QVBoxLayout(central_widget)
        main_layout.setSpacing(10)
        main_layout.setContentsMargins(10, 10, 10, 10)

        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self._create_canvas_panel())

        right = QSplitter(Qt.Orientation.Vertical)
        right.addWidget(self._create_solution_panel())
        right.addWidget(self._create_checker_panel())
        right.setSizes([500, 150])
        splitter.addWidget(right)

        splitter.setSizes([900, 500])
        main_layout.addWidget(splitter)

    def _create_canvas_panel(self) -> QGroupBox:
        """Create the canvas with pen controls and solve button."""
        group = QGroupBox("Canvas")
        layout = QVBoxLayout(group)

        self.canvas_widget = CanvasWidget(self.controller)
        self.canvas_widget.strokeFinished.connect(self._update_actions)
        layout.addWidget(self.canvas_widget, stretch=1)

        controls = QHBoxLayout()
        controls.addWidget(QLabel("Pen:"))

        self.pen_slider = QSlider(Qt.Orientation.Horizontal)
        self.pen_slider.setRange(PEN_WIDTH_MIN, PEN_WIDTH_MAX)
        self.pen_slider.setValue(PEN_WIDTH_DEFAULT)
        self.pen_slider.setMaximumWidth(160)
        self.pen_slider.valueChanged.connect(self._on_pen_width_changed)
        controls.addWidget(self.pen_slider)

        self.pen_label = QLabel(f"{PEN_WIDTH_DEFAULT}px")
        self.pen_label.setMinimumWidth(36)
        controls.addWidget(self.pen_label)

        self.eraser_btn = QPushButton("Eraser")
        self.eraser_btn.setCheckable(True)
        self.eraser_btn.toggled.connect(self._on_eraser_toggled)
        controls.addWidget(self.eraser_btn)

        controls.addStretch()

        self.solve_btn = QPushButton("Solve")
        self.solve_btn.clicked.connect(self._on_solve_clicked)
        self.solve_btn.setStyleSheet("font-weight: bold; padding: 5px 20px;")
        controls.addWidget(self.solve_btn)

        layout.addLayout(controls)
        return group

    def _create_solution_panel(self) -> QGroupBox:
        """Create the solution display panel."""
        group = QGroupBox("Solution")
        layout = QVBoxLayout(group)

        self.solution_display = MathJaxWidget(dark_mode=True)
        layout.addWidget(self.solution_display, stretch=1)

        btn_layout = QHBoxLayout()
        self.timing_label = QLabel("")
        self.timing_label.setStyleSheet("color: gray;")
        btn_layout.addWidget(self.timing_label)
        btn_layout.addStretch()

        self.copy_btn = QPushButton("Copy")
        self.copy_btn.clicked.connect(self._on_copy_solution)
        btn_layout.addWidget(self.copy_btn)

        layout.addLayout(btn_layout)
        return group

    def _create_checker_panel(self) -> QGroupBox:
        """Create the expression equivalence checker."""
        group = QGroupBox("Check equivalence")
        layout = QVBoxLayout(group)

        row = QHBoxLayout()
        self.lhs_input = QLineEdit()
        self.lhs_input.setPlaceholderText("(x+1)^2")
        self.lhs_input.setFont(QFont("Monospace", 11))
        self.lhs_input.returnPressed.connect(self._on_check_clicked)
        row.addWidget(self.lhs_input)

        row.addWidget(QLabel("="))

        self.rhs_input = QLineEdit()
        self.rhs_input.setPlaceholderText("x^2+2x+1")
        self.rhs_input.setFont(QFont("Monospace", 11))
        self.rhs_input.returnPressed.connect(self._on_check_clicked)
        row.addWidget(self.rhs_input)

        check_btn = QPushButton("Check")
        check_btn.clicked.connect(self._on_check_clicked)
        row.addWidget(check_btn)
        layout.addLayout(row)

        self.verdict_label = QLabel("")
        self.verdict_label.setWordWrap(True)
        self.verdict_label.setTextInteractionFlags(
            Qt.TextInteractionFlag.TextSelectableByMouse
        )
        layout.addWidget(self.verdict_label)
        return group

    def _init_toolbar(self):
        """Initialize the toolbar."""
        toolbar = QToolBar("Main Toolbar")
        toolbar.setMovable(False)
        self.addToolBar(toolbar)

        upload_action = QAction("Upload", self)
        upload_action.setStatusTip("Load a photo or image onto the canvas")
        upload_action.setShortcut(QKeySequence.StandardKey.Open)
        upload_action.triggered.connect(self._on_upload_clicked)
        toolbar.addAction(upload_action)

        camera_action = QAction("Camera", self)
        camera_action.setStatusTip("Take a photo with the camera")
        camera_action.triggered.connect(self._on_camera_clicked)
        toolbar.addAction(camera_action)

        toolbar.addSeparator()

        clear_action = QAction("Clear", self)
        clear_action.setStatusTip("Clear the canvas")
        clear_action.triggered.connect(self._on_clear_clicked)
        toolbar.addAction(clear_action)

        self.undo_action = QAction("Undo", self)
        self.undo_action.setStatusTip("Undo the last canvas change")
        self.undo_action.setShortcut(QKeySequence.StandardKey.Undo)
        self.undo_action.triggered.connect(self._on_undo_clicked)
        toolbar.addAction(self.undo_action)

        toolbar.addSeparator()

        save_action = QAction("Save PNG", self)
        save_action.setStatusTip("Save the canvas as a PNG image")
        save_action.triggered.connect(self._on_save_png)
        toolbar.addAction(save_action)

        pdf_action = QAction("Export PDF", self)
        pdf_action.setStatusTip("Export canvas and solution as a PDF report")
        pdf_action.triggered.connect(self._on_export_pdf)
        toolbar.addAction(pdf_action)

        toolbar.addSeparator()

        settings_action = QAction("Settings", self)
        settings_action.setStatusTip("Provider, model, temperature and prompt")
        settings_action.triggered.connect(self._on_settings_clicked)
        toolbar.addAction(settings_action)

    def _init_statusbar(self):
        """Initialize the status bar."""
        self.statusBar().showMessage("Ready")

    # === Component Lazy Loading ===

    def _get_relay_client(self):
        """Lazy-load relay client."""
        if self._relay_client is None:
            from ..relay.client import RelayClient

            self._relay_client = RelayClient()
        return self._relay_client

    def _get_checker(self):
        """Lazy-load equivalence checker."""
        if self._checker is None:
            from ..checking.equivalence import EquivalenceChecker

            self._checker = EquivalenceChecker()
        return self._checker

    # === Error Handling ===

    def _show_error(self, exc: Exception, context: str = "") -> None:
        """Show an error dialog with suggestions and a status bar summary."""
        error_info = format_error_for_dialog(exc, context)

        msg_box = QMessageBox(self)
        msg_box.setWindowTitle(error_info["title"])
        msg_box.setText(error_info["text"])
        msg_box.setIcon(error_info["icon"])

        if error_info["detailed_text"]:
            msg_box.setDetailedText(error_info["detailed_text"])

        msg_box.exec()

        self.statusBar().showMessage(format_error_for_user(exc, context))

    def _update_actions(self):
        self.undo_action.setEnabled(self.controller.can_undo or self.controller.drawing)

    def _canvas_changed(self, message: str):
        self.canvas_widget.refresh()
        self._update_actions()
        self.statusBar().showMessage(message)

    # === Canvas Handlers ===

    def _on_pen_width_changed(self, value: int):
        self.canvas_widget.set_pen_width(value)
        self.pen_label.setText(f"{value}px")

    def _on_eraser_toggled(self, checked: bool):
        self.canvas_widget.set_mode(PenMode.ERASE if checked else PenMode.INK)

    def _on_upload_clicked(self):
        """Pick an image file and decode it off the UI thread."""
        path, _ = QFileDialog.getOpenFileName(self, "Upload image", "", IMAGE_FILTER)
        if not path:
            return

        self._start_decode(path)

    def _start_decode(self, path: str) -> DecodeWorker:
        generation = self.controller.begin_decode()
        worker = DecodeWorker(generation, path)
        worker.finished.connect(self._on_decode_finished)
        worker.error.connect(lambda e: self._show_error(e, "Upload"))
        # Superseded workers must stay referenced until their thread exits
        worker.finished.connect(lambda *_: self._release_decode_worker(worker))
        worker.error.connect(lambda *_: self._release_decode_worker(worker))
        self._decode_workers.add(worker)
        self.statusBar().showMessage("Loading image...")
        worker.start()
        return worker

    def _release_decode_worker(self, worker: DecodeWorker):
        worker.wait()
        self._decode_workers.discard(worker)

    def _on_decode_finished(self, generation: int, image):
        try:
            placement = self.controller.finish_decode(generation, image)
        except Exception as e:
            self._show_error(e, "Upload")
            return

        if placement is None:
            return
        self._canvas_changed(
            f"Image loaded at {placement.scale:.2f}x ({image.width}x{image.height})"
        )

    def _on_camera_clicked(self):
        from .camera_dialog import CameraDialog

        dialog = CameraDialog(self)
        if not dialog.open_camera():
            self._show_error(dialog.error, "Camera")
            return

        if dialog.exec() and dialog.captured is not None:
            try:
                self.controller.load_image(dialog.captured)
            except Exception as e:
                self._show_error(e, "Camera")
                return
            self._canvas_changed("Photo captured")
        elif dialog.error is not None:
            self._show_error(dialog.error, "Camera")

    def _on_clear_clicked(self):
        self.controller.clear()
        self._canvas_changed("Canvas cleared")

    def _on_undo_clicked(self):
        if self.controller.undo():
            self._canvas_changed("Undone")
        else:
            self.statusBar().showMessage("Nothing to undo")

    def _on_save_png(self):
        path, _ = QFileDialog.getSaveFileName(
            self, "Save canvas", "canvas.png", "PNG image (*.png)"
        )
        if not path:
            return

        from ..output.exporter import SolutionExporter

        try:
            SolutionExporter(self.controller.export_png()).to_png(path)
        except Exception as e:
            self._show_error(e, "Save")
            return
        self.statusBar().showMessage(f"Saved {path}")

    def _on_export_pdf(self):
        path, _ = QFileDialog.getSaveFileName(
            self, "Export PDF", "solution.pdf", "PDF document (*.pdf)"
        )
        if not path:
            return

        from ..output.exporter import SolutionExporter

        text = self._current_result.content if self._current_result else ""
        try:
            SolutionExporter(self.controller.export_png(), text).to_pdf(path)
        except Exception as e:
            self._show_error(e, "Export")
            return
        self.statusBar().showMessage(f"Exported {path}")

    # === Solve Handlers ===

    def _on_solve_clicked(self):
        """Send the canvas through the relay in a worker thread."""
        if self._solve_worker is not None and self._solve_worker.isRunning():
            return

        self.solve_btn.setEnabled(False)
        self.solve_btn.setText("Solving...")
        self.solution_display.display_status("Solving...")
        self.statusBar().showMessage(
            f"Solving with {self.settings.provider} / {self.settings.model}..."
        )

        worker = SolveWorker(
            self._get_relay_client(),
            self.settings,
            self.controller.export_png(),
            self.controller.to_data_url(),
        )
        worker.finished.connect(self._on_solve_finished)
        worker.error.connect(self._on_solve_error)
        self._solve_worker = worker
        worker.start()

    def _on_solve_finished(self, result: SolveResult):
        self._reset_solve_button()
        self._current_result = result
        self.solution_display.display_markdown(result.content)
        self.timing_label.setText(f"{result.elapsed_ms} ms")
        self.statusBar().showMessage(f"Solved in {result.elapsed_ms} ms")

    def _on_solve_error(self, exc: Exception):
        self._reset_solve_button()
        self._current_result = None
        # Raw relay/upstream error text goes inline under the summary
        inline = format_error_for_user(exc, "Solve")
        details = getattr(exc, "details", None)
        if details:
            inline += f"\n\n{details}"
        self.solution_display.display_error(inline)
        self.statusBar().showMessage(str(exc))

    def _reset_solve_button(self):
        self.solve_btn.setEnabled(True)
        self.solve_btn.setText("Solve")

    def _on_copy_solution(self):
        """Copy the raw solution text to the clipboard."""
        text = self.solution_display.text
        if text:
            QApplication.clipboard().setText(text)
            self.statusBar().showMessage("Solution copied to clipboard")

    # === Checker Handlers ===

    def _on_check_clicked(self):
        verdict = self._get_checker().check(self.lhs_input.text(), self.rhs_input.text())

        colors = {
            VerdictKind.EQUIVALENT: "#28a745",
            VerdictKind.DIFFERENT: "#d39e00",
            VerdictKind.ERROR: "#dc3545",
        }
        self.verdict_label.setStyleSheet(f"color: {colors[verdict.kind]};")
        self.verdict_label.setText(verdict.message)
        self.statusBar().showMessage(f"Check finished ({verdict.method or 'error'})")

    # === Settings ===

    def _on_settings_clicked(self):
        from .settings_dialog import SettingsDialog

        dialog = SettingsDialog(self.settings, self)
        if not dialog.exec():
            return

        self.settings = dialog.settings
        try:
            self.settings_store.save(self.settings)
        except Exception as e:
            self._show_error(e, "Settings")
            return
        self.statusBar().showMessage("Settings saved")

    def closeEvent(self, event):
        for worker in [*self._decode_workers, self._solve_worker]:
            if worker is not None and worker.isRunning():
                worker.wait(2000)
        super().closeEvent(event)


def run_app():
    """Run the SketchSolve application."""
    app = QApplication(sys.argv)
    app.setApplicationName("SketchSolve")

    window = MainWindow()
    window.show()

    sys.exit(app.exec())
