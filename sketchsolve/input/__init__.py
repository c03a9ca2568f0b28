"""Input layer: pointer mapping, image decoding, and camera capture."""

from .normalizer import map_pointer, decode_image, load_image_file
from .camera import CameraCapture

__all__ = ["map_pointer", "decode_image", "load_image_file", "CameraCapture"]
