"""Output layer: PNG/PDF export and Markdown math handling."""

from .exporter import SolutionExporter, ExportOptions
from .markdown_math import protect_math, restore_math

__all__ = ["SolutionExporter", "ExportOptions", "protect_math", "restore_math"]
