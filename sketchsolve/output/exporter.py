"""
Export a canvas image and its solution to PNG or PDF.

The PDF is a simple report: title, timestamp, the canvas image scaled to the
page width, then the solution as wrapped plain text (LaTeX is not typeset).
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen.canvas import Canvas

from ..utils.errors import ExportError

logger = logging.getLogger(__name__)


@dataclass
class ExportOptions:
    """Layout options for PDF export."""

    title: str = "SketchSolve - Report"
    margin: float = 40.0
    title_font: str = "Helvetica-Bold"
    title_size: int = 14
    body_font: str = "Helvetica"
    body_size: int = 10
    leading: float = 14.0
    timestamp: Optional[datetime] = None
    pagesize: tuple = field(default=A4)


class SolutionExporter:
    """
    Write the canvas snapshot and solution text to files.

    Usage:
        exporter = SolutionExporter(canvas.export_png(), solution_text)
        exporter.to_png("problem.png")
        exporter.to_pdf("solution.pdf")
    """

    def __init__(
        self,
        image_png: bytes,
        solution_text: str = "",
        options: Optional[ExportOptions] = None,
    ):
        self.image_png = image_png
        self.solution_text = solution_text or ""
        self.options = options or ExportOptions()
        self.page_count = 0

    def to_png(self, path: Union[str, Path]) -> Path:
        """
        Write the canvas image as-is.

        Raises:
            ExportError: If the file cannot be written.
        """
        path = Path(path)
        try:
            path.write_bytes(self.image_png)
        except OSError as e:
            raise ExportError(f"Could not write {path.name}", technical_details=str(e))
        logger.info("Saved canvas image to %s", path)
        return path

    def to_pdf(self, path: Union[str, Path]) -> Path:
        """
        Write the PDF report.

        Returns:
            The path written.

        Raises:
            ExportError: If the image is unreadable or the file cannot be written.
        """
        path = Path(path)
        try:
            data = self.to_pdf_bytes()
            path.write_bytes(data)
        except OSError as e:
            raise ExportError(f"Could not write {path.name}", technical_details=str(e))
        logger.info("Saved PDF report to %s", path)
        return path

    def to_pdf_bytes(self) -> bytes:
        """Render the PDF report into memory."""
        opts = self.options
        page_w, page_h = opts.pagesize
        margin = opts.margin
        text_width = page_w - margin * 2

        buf = io.BytesIO()
        pdf = Canvas(buf, pagesize=opts.pagesize)
        pdf.setTitle(opts.title)

        # Header (reportlab's origin is bottom-left; y counts down from the top)
        y = page_h - margin
        pdf.setFont(opts.title_font, opts.title_size)
        pdf.drawString(margin, y, opts.title)
        y -= 18
        pdf.setFont(opts.body_font, opts.body_size)
        timestamp = opts.timestamp or datetime.now()
        pdf.drawString(margin, y, timestamp.strftime("%Y-%m-%d %H:%M:%S"))
        y -= 12

        # Canvas image at page width, keeping its aspect ratio
        try:
            reader = ImageReader(io.BytesIO(self.image_png))
            img_w, img_h = reader.getSize()
        except Exception as e:
            raise ExportError("The canvas image could not be read", technical_details=str(e))

        draw_w = text_width
        draw_h = draw_w * img_h / img_w
        pdf.drawImage(reader, margin, y - draw_h, width=draw_w, height=draw_h)
        y -= draw_h + 18

        for line in self.wrap_text(text_width):
            if y < margin:
                pdf.showPage()
                pdf.setFont(opts.body_font, opts.body_size)
                y = page_h - margin
            pdf.drawString(margin, y, line)
            y -= opts.leading

        self.page_count = pdf.getPageNumber()
        pdf.showPage()
        pdf.save()
        return buf.getvalue()

    def wrap_text(self, width: float) -> List[str]:
        """Split the solution into lines that fit the given width."""
        opts = self.options
        lines: List[str] = []
        for paragraph in self.solution_text.splitlines():
            if not paragraph.strip():
                lines.append("")
                continue
            lines.extend(simpleSplit(paragraph, opts.body_font, opts.body_size, width))
        return lines
