"""reportlab-backed document writer.

The exporter lays pages out in millimetres from the top-left corner, the
way a printed page is read; this writer converts to reportlab's
bottom-left point coordinates.

Text uses the built-in Helvetica, which only covers Latin-1. Point
``SKED_PDF_FONT_PATH`` at a Unicode TrueType font to render other scripts.
"""

import io
import os

from django.conf import settings
from reportlab.graphics import renderPDF
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

DEFAULT_FONT = "Helvetica"
LEADING_FACTOR = 1.15
ASCENT_FACTOR = 0.8


def register_font(path):
    """Register the TrueType font at *path* once and return its font name."""
    name = os.path.splitext(os.path.basename(path))[0]
    if name not in pdfmetrics.getRegisteredFontNames():
        pdfmetrics.registerFont(TTFont(name, path))
    return name


class PdfWriter:
    def __init__(self, page_size=A4, font_path=None):
        if font_path is None:
            font_path = getattr(settings, "SKED_PDF_FONT_PATH", "")
        self.font_name = register_font(font_path) if font_path else DEFAULT_FONT
        self._buffer = io.BytesIO()
        self._canvas = canvas.Canvas(self._buffer, pagesize=page_size)
        self._page_height = page_size[1]

    def _lines(self, content, max_width, size):
        return simpleSplit(content, self.font_name, size, max_width * mm) or [""]

    def measure_text(self, content, max_width, size=10):
        """Height in millimetres of *content* wrapped to *max_width* millimetres."""
        lines = self._lines(content, max_width, size)
        return len(lines) * size * LEADING_FACTOR / mm

    def write_text(self, content, x, y, max_width, size=10):
        """Write wrapped text whose first line's top edge sits at *y*."""
        self._canvas.setFont(self.font_name, size)
        leading = size * LEADING_FACTOR
        baseline = self._page_height - y * mm - size * ASCENT_FACTOR
        for line in self._lines(content, max_width, size):
            self._canvas.drawString(x * mm, baseline, line)
            baseline -= leading

    def write_image(self, image, x, y, width, height):
        """Embed a reportlab Drawing scaled into the given box."""
        self._canvas.saveState()
        self._canvas.translate(x * mm, self._page_height - (y + height) * mm)
        self._canvas.scale(width * mm / image.width, height * mm / image.height)
        renderPDF.draw(image, self._canvas, 0, 0)
        self._canvas.restoreState()

    def add_page(self):
        self._canvas.showPage()

    def save(self, filename):
        """Finish the document and return its bytes."""
        self._canvas.setTitle(filename)
        self._canvas.save()
        return self._buffer.getvalue()
