"""
Fixed-size raster drawing surface.

Owns the 900x600 canvas buffer and is the only code that writes pixels.
Strokes are painted segment by segment as points arrive; images are
composited with a uniform scale-and-center policy shared by every source.
"""

import base64
import io
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import Image, ImageDraw

from ..models import PenMode, Point, Stroke
from ..utils.constants import (
    CANVAS_WIDTH,
    CANVAS_HEIGHT,
    GRID_PITCH,
    GRID_LINE_WIDTH,
    BACKGROUND_COLOR,
    GRID_COLOR,
    INK_COLOR,
    clamp_pen_width,
)
from ..utils.errors import ImageGeometryError, ImageDecodeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Placement:
    """Where a scaled source image lands on the canvas."""

    scale: float
    width: float
    height: float
    dx: float
    dy: float

    @property
    def box(self) -> Tuple[int, int, int, int]:
        """Integer (left, top, right, bottom) box of the drawn image."""
        left = round(self.dx)
        top = round(self.dy)
        return left, top, left + round(self.width), top + round(self.height)


def fit_and_center(
    source_width: float,
    source_height: float,
    target_width: int = CANVAS_WIDTH,
    target_height: int = CANVAS_HEIGHT,
) -> Placement:
    """
    Compute the largest aspect-preserving placement of a source in the target.

    Raises:
        ImageGeometryError: If either source dimension is zero or negative.
    """
    if source_width <= 0 or source_height <= 0:
        raise ImageGeometryError(source_width, source_height)

    scale = min(target_width / source_width, target_height / source_height)
    width = source_width * scale
    height = source_height * scale
    return Placement(
        scale=scale,
        width=width,
        height=height,
        dx=(target_width - width) / 2,
        dy=(target_height - height) / 2,
    )


def render_backdrop(width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT) -> Image.Image:
    """Render the blank canvas: background fill plus the fixed grid."""
    image = Image.new("RGB", (width, height), BACKGROUND_COLOR)
    draw = ImageDraw.Draw(image)
    for x in range(0, width, GRID_PITCH):
        draw.line([(x, 0), (x, height)], fill=GRID_COLOR, width=GRID_LINE_WIDTH)
    for y in range(0, height, GRID_PITCH):
        draw.line([(0, y), (width, y)], fill=GRID_COLOR, width=GRID_LINE_WIDTH)
    return image


class PixelSurface:
    """
    Canvas buffer with stroke, composite and export operations.

    The buffer is always fully opaque RGB. Erasing restores the pristine
    background and grid under the stroke rather than painting a color.

    Usage:
        surface = PixelSurface()
        surface.begin_stroke((10, 10), 4, PenMode.INK)
        surface.extend_stroke((120, 40))
        surface.end_stroke()
        png = surface.export_image()
    """

    def __init__(self, width: int = CANVAS_WIDTH, height: int = CANVAS_HEIGHT):
        self.width = width
        self.height = height
        self._backdrop = render_backdrop(width, height)
        self._image = self._backdrop.copy()
        self._draw = ImageDraw.Draw(self._image)
        self._stroke: Optional[Stroke] = None

    @property
    def size(self) -> Tuple[int, int]:
        return self.width, self.height

    @property
    def image(self) -> Image.Image:
        """A copy of the current buffer."""
        return self._image.copy()

    @property
    def stroke_active(self) -> bool:
        return self._stroke is not None

    def pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        """Read one pixel of the buffer."""
        return self._image.getpixel((x, y))

    def backdrop_pixel(self, x: int, y: int) -> Tuple[int, int, int]:
        """Read the blank background+grid color at a position."""
        return self._backdrop.getpixel((x, y))

    # === Whole-buffer operations ===

    def reset(self) -> None:
        """Fill with the background color and redraw the grid."""
        self._image.paste(self._backdrop, (0, 0))
        self._stroke = None

    def composite_image(
        self,
        image: Image.Image,
        source_width: Optional[float] = None,
        source_height: Optional[float] = None,
    ) -> Placement:
        """
        Clear the canvas and draw an image scaled to fit, centered.

        Transparent areas of the source show the background and grid.

        Args:
            image: Decoded source image.
            source_width: Source width (defaults to the image's own width).
            source_height: Source height (defaults to the image's own height).

        Returns:
            The placement used.

        Raises:
            ImageGeometryError: For zero or negative dimensions; the buffer
                is left untouched.
        """
        if source_width is None:
            source_width = image.width
        if source_height is None:
            source_height = image.height

        placement = fit_and_center(source_width, source_height, self.width, self.height)
        left, top, right, bottom = placement.box
        drawn_size = (max(1, right - left), max(1, bottom - top))

        source = image.convert("RGBA")
        if source.size != drawn_size:
            source = source.resize(drawn_size, Image.Resampling.LANCZOS)

        self.reset()
        self._image.paste(source, (left, top), source)

        logger.debug(
            "Composited %sx%s image at scale %.4f, offset (%.1f, %.1f)",
            source_width,
            source_height,
            placement.scale,
            placement.dx,
            placement.dy,
        )
        return placement

    def load_snapshot(self, data: bytes) -> None:
        """Redraw the full buffer from an encoded snapshot."""
        try:
            with Image.open(io.BytesIO(data)) as snapshot:
                snapshot.load()
                restored = snapshot.convert("RGB")
        except OSError as e:
            raise ImageDecodeError(
                "Failed to decode canvas snapshot", technical_details=str(e)
            )

        if restored.size != self.size:
            raise ImageGeometryError(*restored.size)

        self._image.paste(restored, (0, 0))
        self._stroke = None

    # === Strokes ===

    def begin_stroke(self, point: Point, pen_width: float, mode: PenMode) -> None:
        """Start a new path at point; nothing is painted until it is extended."""
        self._stroke = Stroke(
            last_point=point, pen_width=clamp_pen_width(pen_width), mode=mode
        )

    def extend_stroke(self, point: Point) -> None:
        """Paint a segment from the previous point to this one."""
        if self._stroke is None:
            return

        start = self._stroke.last_point
        self._stroke.last_point = point
        if self._stroke.mode is PenMode.ERASE:
            self._erase_segment(start, point, self._stroke.pen_width)
        else:
            self._paint_segment(self._draw, start, point, self._stroke.pen_width, INK_COLOR)

    def end_stroke(self) -> None:
        """Close the current path."""
        self._stroke = None

    @staticmethod
    def _paint_segment(draw, start: Point, end: Point, width: int, fill, offset=(0, 0)):
        """Line with round caps and joins: a wide line plus a disc at each end."""
        ox, oy = offset
        x0, y0 = start[0] - ox, start[1] - oy
        x1, y1 = end[0] - ox, end[1] - oy
        radius = width / 2

        if (x0, y0) != (x1, y1):
            draw.line([(x0, y0), (x1, y1)], fill=fill, width=width)
        for cx, cy in ((x0, y0), (x1, y1)):
            draw.ellipse(
                [cx - radius, cy - radius, cx + radius, cy + radius], fill=fill
            )

    def _erase_segment(self, start: Point, end: Point, width: int) -> None:
        """Copy the backdrop back in under the segment's footprint."""
        pad = width // 2 + 2
        left = max(0, int(min(start[0], end[0])) - pad)
        top = max(0, int(min(start[1], end[1])) - pad)
        right = min(self.width, int(max(start[0], end[0])) + pad + 1)
        bottom = min(self.height, int(max(start[1], end[1])) + pad + 1)
        if left >= right or top >= bottom:
            return

        box = (left, top, right, bottom)
        mask = Image.new("L", (right - left, bottom - top), 0)
        self._paint_segment(
            ImageDraw.Draw(mask), start, end, width, 255, offset=(left, top)
        )
        self._image.paste(self._backdrop.crop(box), box, mask)

    # === Export ===

    def export_image(self) -> bytes:
        """Serialize the buffer losslessly as PNG."""
        buf = io.BytesIO()
        self._image.save(buf, format="PNG")
        return buf.getvalue()

    def to_data_url(self) -> str:
        """PNG export as a data: URL for the relay."""
        encoded = base64.b64encode(self.export_image()).decode("ascii")
        return f"data:image/png;base64,{encoded}"
