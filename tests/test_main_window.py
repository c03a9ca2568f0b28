"""
Tests for background work in the main window.
"""

import gc
import os
import time

import pytest
from PIL import Image

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PyQt6.QtWidgets import QApplication

from sketchsolve.gui.main_window import MainWindow
from sketchsolve.utils.settings import SettingsStore


@pytest.fixture(scope="module")
def app():
    instance = QApplication.instance() or QApplication([])
    yield instance


@pytest.fixture
def window(app, tmp_path):
    win = MainWindow(SettingsStore(tmp_path / "settings.json"))
    yield win
    win.close()


def wait_until(app, predicate, timeout=5.0):
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        app.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


class TestOverlappingUploads:
    """Test that a second upload does not drop the first decode thread."""

    @pytest.fixture
    def slow_decode(self, monkeypatch):
        from sketchsolve.input import normalizer

        def slow_load(path):
            time.sleep(0.3)
            return Image.new("RGB", (300, 200), (200, 0, 0))

        monkeypatch.setattr(normalizer, "load_image_file", slow_load)

    def test_both_workers_kept_alive(self, app, window, slow_decode):
        first = window._start_decode("first.png")
        second = window._start_decode("second.png")
        del first, second
        gc.collect()

        assert len(window._decode_workers) == 2
        assert wait_until(app, lambda: not window._decode_workers)

    def test_latest_upload_wins(self, app, window, slow_decode):
        window._start_decode("first.png")
        window._start_decode("second.png")

        assert wait_until(app, lambda: not window._decode_workers)
        # One image applied, one stale result discarded
        assert len(window.controller.history) == 2
