"""Utilities: constants, errors, logging, settings persistence."""

from .constants import CANVAS_WIDTH, CANVAS_HEIGHT, PROVIDERS
from .errors import SketchSolveError

__all__ = ["CANVAS_WIDTH", "CANVAS_HEIGHT", "PROVIDERS", "SketchSolveError"]
