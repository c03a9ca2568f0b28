"""
Input normalization.

Maps display-space pointer coordinates into the fixed canvas space and
decodes uploaded or captured image data into Pillow images that the
surface can composite.
"""

import io
import logging
from pathlib import Path
from typing import Union

from PIL import Image, UnidentifiedImageError

from ..models import Point
from ..utils.constants import CANVAS_WIDTH, CANVAS_HEIGHT
from ..utils.errors import ImageDecodeError, ImageGeometryError

logger = logging.getLogger(__name__)


def map_pointer(
    x: float,
    y: float,
    rendered_width: float,
    rendered_height: float,
    canvas_width: int = CANVAS_WIDTH,
    canvas_height: int = CANVAS_HEIGHT,
) -> Point:
    """
    Rescale a pointer position from the rendered widget into canvas space.

    Args:
        x, y: Position relative to the widget's top-left corner, in
            device/display units.
        rendered_width, rendered_height: The widget's current on-screen size.

    Returns:
        (x, y) in canvas units. No rounding is applied.

    Raises:
        ImageGeometryError: If the rendered size is zero or negative.
    """
    if rendered_width <= 0 or rendered_height <= 0:
        raise ImageGeometryError(rendered_width, rendered_height)
    return (
        x / rendered_width * canvas_width,
        y / rendered_height * canvas_height,
    )


def decode_image(data: bytes) -> Image.Image:
    """
    Decode encoded image bytes (PNG, JPEG, ...) into a loaded Pillow image.

    Images with transparency are returned as RGBA, everything else as RGB.

    Raises:
        ImageDecodeError: If the data is not a readable image.
    """
    if not data:
        raise ImageDecodeError("The image file is empty")

    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            has_alpha = img.mode in ("RGBA", "LA", "PA") or (
                img.mode == "P" and "transparency" in img.info
            )
            decoded = img.convert("RGBA" if has_alpha else "RGB")
    except UnidentifiedImageError as e:
        raise ImageDecodeError(
            "The file is not a recognized image format", technical_details=str(e)
        )
    except (OSError, ValueError) as e:
        raise ImageDecodeError("Failed to decode image", technical_details=str(e))

    logger.debug("Decoded %dx%d image (%s)", decoded.width, decoded.height, decoded.mode)
    return decoded


def read_image_file(path: Union[str, Path]) -> bytes:
    """
    Read an image file from disk.

    Raises:
        ImageDecodeError: If the file cannot be read.
    """
    path = Path(path)
    try:
        return path.read_bytes()
    except OSError as e:
        raise ImageDecodeError(
            f"Could not open '{path.name}'",
            technical_details=str(e),
            suggestions=["Check that the file exists and is readable"],
        )


def load_image_file(path: Union[str, Path]) -> Image.Image:
    """Read and decode an image file."""
    return decode_image(read_image_file(path))
