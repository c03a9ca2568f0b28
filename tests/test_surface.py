"""
Tests for the pixel surface: grid, compositing, strokes and export.
"""

import io

import pytest
from PIL import Image

from sketchsolve.canvas.surface import PixelSurface, Placement, fit_and_center, render_backdrop
from sketchsolve.models import PenMode
from sketchsolve.utils.constants import BACKGROUND_COLOR, GRID_COLOR, INK_COLOR
from sketchsolve.utils.errors import ImageGeometryError, ImageDecodeError


@pytest.fixture
def surface():
    return PixelSurface()


def solid(width, height, color=(200, 30, 30), mode="RGB"):
    return Image.new(mode, (width, height), color)


class TestFitAndCenter:
    """Test the uniform scale-and-center policy."""

    def test_wide_image(self):
        """A 400x200 image fills the width and is centered vertically."""
        placement = fit_and_center(400, 200)

        assert placement.scale == pytest.approx(2.25)
        assert placement.width == pytest.approx(900)
        assert placement.height == pytest.approx(450)
        assert placement.dx == pytest.approx(0)
        assert placement.dy == pytest.approx(75)

    def test_tall_image(self):
        """A tall image fills the height and is centered horizontally."""
        placement = fit_and_center(300, 1200)

        assert placement.scale == pytest.approx(0.5)
        assert placement.height == pytest.approx(600)
        assert placement.dx == pytest.approx((900 - 150) / 2)
        assert placement.dy == pytest.approx(0)

    def test_same_aspect_fills_canvas(self):
        """A 3:2 image covers the whole canvas."""
        placement = fit_and_center(1800, 1200)
        assert placement.box == (0, 0, 900, 600)

    @pytest.mark.parametrize("width,height", [(0, 100), (100, 0), (-5, 10)])
    def test_invalid_dimensions(self, width, height):
        """Zero or negative sizes are rejected."""
        with pytest.raises(ImageGeometryError):
            fit_and_center(width, height)


class TestReset:
    """Test the blank canvas."""

    def test_background_and_grid(self, surface):
        """Grid lines every 30 units over the background color."""
        assert surface.pixel(15, 15) == BACKGROUND_COLOR
        assert surface.pixel(30, 15) == GRID_COLOR
        assert surface.pixel(15, 60) == GRID_COLOR
        assert surface.pixel(0, 0) == GRID_COLOR

    def test_reset_matches_backdrop(self, surface):
        """Reset after drawing restores the exact backdrop."""
        surface.begin_stroke((100, 100), 10, PenMode.INK)
        surface.extend_stroke((300, 200))
        surface.end_stroke()

        surface.reset()

        assert surface.image.tobytes() == render_backdrop().tobytes()


class TestComposite:
    """Test image compositing."""

    def test_wide_image_letterboxed(self, surface):
        """Image pixels land inside the placement; bands show the grid."""
        placement = surface.composite_image(solid(400, 200))

        assert isinstance(placement, Placement)
        assert placement.box == (0, 75, 900, 525)
        assert surface.pixel(450, 300) == (200, 30, 30)
        assert surface.pixel(455, 20) == surface.backdrop_pixel(455, 20)
        assert surface.pixel(455, 580) == surface.backdrop_pixel(455, 580)

    def test_explicit_source_dimensions(self, surface):
        """Explicit dimensions drive the placement."""
        placement = surface.composite_image(solid(40, 20), 400, 200)
        assert placement.scale == pytest.approx(2.25)

    def test_transparent_areas_show_grid(self, surface):
        """Fully transparent sources leave the backdrop visible."""
        surface.composite_image(solid(90, 60, (255, 0, 0, 0), mode="RGBA"))
        assert surface.image.tobytes() == render_backdrop().tobytes()

    def test_composite_clears_previous_content(self, surface):
        """Loading an image replaces earlier ink."""
        surface.begin_stroke((5, 5), 20, PenMode.INK)
        surface.extend_stroke((100, 5))
        surface.end_stroke()

        surface.composite_image(solid(100, 600))

        assert surface.pixel(50, 5) == surface.backdrop_pixel(50, 5)

    def test_zero_dimension_leaves_buffer_untouched(self, surface):
        """Rejected images do not clear the canvas."""
        surface.begin_stroke((100, 105), 8, PenMode.INK)
        surface.extend_stroke((200, 105))
        surface.end_stroke()
        before = surface.image.tobytes()

        with pytest.raises(ImageGeometryError):
            surface.composite_image(solid(10, 10), 0, 10)

        assert surface.image.tobytes() == before


class TestStrokes:
    """Test ink and erase strokes."""

    def test_ink_paints_foreground(self, surface):
        """An ink segment paints the ink color along its path."""
        surface.begin_stroke((100, 105), 6, PenMode.INK)
        surface.extend_stroke((200, 105))
        surface.end_stroke()

        assert surface.pixel(155, 105) == INK_COLOR
        assert surface.pixel(155, 140) == BACKGROUND_COLOR

    def test_segments_continue_from_last_point(self, surface):
        """Each move draws from the previous move, not from the press."""
        surface.begin_stroke((100, 105), 6, PenMode.INK)
        surface.extend_stroke((200, 105))
        surface.extend_stroke((200, 205))
        surface.end_stroke()

        assert surface.pixel(200, 155) == INK_COLOR
        assert surface.pixel(140, 145) == BACKGROUND_COLOR

    def test_begin_alone_paints_nothing(self, surface):
        """A press without movement leaves no mark."""
        surface.begin_stroke((155, 105), 6, PenMode.INK)
        surface.end_stroke()
        assert surface.pixel(155, 105) == BACKGROUND_COLOR

    def test_extend_without_stroke_is_ignored(self, surface):
        """Moves outside a stroke do nothing."""
        surface.extend_stroke((155, 105))
        assert surface.image.tobytes() == render_backdrop().tobytes()

    def test_erase_restores_background_and_grid(self, surface):
        """Erasing over ink restores background and grid pixels exactly."""
        surface.begin_stroke((100, 105), 6, PenMode.INK)
        surface.extend_stroke((200, 105))
        surface.end_stroke()
        assert surface.pixel(120, 105) == INK_COLOR

        surface.begin_stroke((100, 105), 12, PenMode.ERASE)
        surface.extend_stroke((200, 105))
        surface.end_stroke()

        assert surface.pixel(120, 105) == GRID_COLOR
        assert surface.pixel(155, 105) == BACKGROUND_COLOR
        assert surface.image.tobytes() == render_backdrop().tobytes()

    def test_pen_width_clamped(self, surface):
        """Out-of-range widths are clamped to 1..20."""
        surface.begin_stroke((100, 105), 500, PenMode.INK)
        surface.extend_stroke((200, 105))
        surface.end_stroke()

        # 20 px wide: 10 above the center line is inked, 15 is not
        assert surface.pixel(155, 96) == INK_COLOR
        assert surface.pixel(155, 90) != INK_COLOR


class TestSnapshots:
    """Test export and restore."""

    def test_export_is_png(self, surface):
        data = surface.export_image()
        assert data[:8] == b"\x89PNG\r\n\x1a\n"

    def test_round_trip_is_lossless(self, surface):
        """Exported snapshots restore pixel-for-pixel."""
        surface.begin_stroke((100, 105), 6, PenMode.INK)
        surface.extend_stroke((200, 140))
        surface.end_stroke()
        data = surface.export_image()
        drawn = surface.image.tobytes()

        surface.reset()
        surface.load_snapshot(data)

        assert surface.image.tobytes() == drawn

    def test_load_rejects_garbage(self, surface):
        with pytest.raises(ImageDecodeError):
            surface.load_snapshot(b"not a png")

    def test_load_rejects_wrong_size(self, surface):
        buf = io.BytesIO()
        solid(10, 10).save(buf, format="PNG")
        with pytest.raises(ImageGeometryError):
            surface.load_snapshot(buf.getvalue())

    def test_data_url(self, surface):
        assert surface.to_data_url().startswith("data:image/png;base64,")
