"""Lay out advising sessions as a paginated PDF.

Layout is done by hand against a small drawing-surface interface: a running
vertical cursor ``y`` (top-down, in points) and a horizontal cursor
``current_x`` within the current line. ``ReportLabSurface`` backs the
interface with a reportlab canvas.
"""

import io
import logging
from datetime import datetime
from typing import Optional, Protocol

from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import simpleSplit
from reportlab.pdfbase.pdfmetrics import stringWidth
from reportlab.pdfgen import canvas

from ..core import Message, format_timestamp, role_label
from .blocks import ListBlock, Paragraph, markdown_to_elements
from .inline import InlineRun
from .plain import TRANSCRIPT_TITLE

logger = logging.getLogger(__name__)

MARGIN = 50
LINE_HEIGHT = 15
BOTTOM_THRESHOLD = 60
PARAGRAPH_GAP = 8
LIST_ITEM_GAP = 4
LIST_INDENT = 15

TITLE_FONT_SIZE = 20
META_FONT_SIZE = 10
HEADER_FONT_SIZE = 12
BODY_FONT_SIZE = 11

TEXT_COLOR = (0, 0, 0)
META_COLOR = (0.4, 0.4, 0.4)
LINK_COLOR = (0.0, 0.2, 0.8)
SEPARATOR_COLOR = (0.8, 0.8, 0.8)

BULLET = "•"

RGB = tuple[float, float, float]


class PdfSurface(Protocol):
    """Drawing primitives the layout code needs. Coordinates are top-down."""

    page_width: float
    page_height: float

    def set_font_size(self, size: float) -> None: ...

    def set_font_style(self, style: str) -> None: ...

    def wrap_text(self, text: str, max_width: float) -> list[str]: ...

    def text_width(self, line: str) -> float: ...

    def draw_text(self, line: str, x: float, y: float) -> None: ...

    def draw_link_text(self, line: str, x: float, y: float, url: str) -> None: ...

    def set_text_color(self, rgb: RGB) -> None: ...

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, rgb: RGB) -> None: ...

    def add_page(self) -> None: ...

    def finish(self) -> bytes: ...


class ReportLabSurface:
    """PdfSurface on top of ``reportlab.pdfgen.canvas.Canvas``."""

    FONTS = {
        "normal": "Helvetica",
        "bold": "Helvetica-Bold",
        "italic": "Helvetica-Oblique",
        "bolditalic": "Helvetica-BoldOblique",
    }

    def __init__(self, pagesize=A4):
        self._buffer = io.BytesIO()
        # invariant=1 pins creation date and document id so output is reproducible
        self._canvas = canvas.Canvas(self._buffer, pagesize=pagesize, invariant=1)
        self.page_width, self.page_height = pagesize
        self._font_size = BODY_FONT_SIZE
        self._font_style = "normal"
        self._color: RGB = TEXT_COLOR
        self._apply_state()

    @property
    def _font_name(self) -> str:
        return self.FONTS.get(self._font_style, self.FONTS["normal"])

    def _apply_state(self):
        self._canvas.setFont(self._font_name, self._font_size)
        self._canvas.setFillColorRGB(*self._color)

    def set_font_size(self, size: float) -> None:
        self._font_size = size
        self._canvas.setFont(self._font_name, size)

    def set_font_style(self, style: str) -> None:
        self._font_style = style
        self._canvas.setFont(self._font_name, self._font_size)

    def wrap_text(self, text: str, max_width: float) -> list[str]:
        return simpleSplit(text, self._font_name, self._font_size, max_width)

    def text_width(self, line: str) -> float:
        return stringWidth(line, self._font_name, self._font_size)

    def draw_text(self, line: str, x: float, y: float) -> None:
        self._canvas.drawString(x, self.page_height - y, line)

    def draw_link_text(self, line: str, x: float, y: float, url: str) -> None:
        self.draw_text(line, x, y)
        baseline = self.page_height - y
        rect = (
            x,
            baseline - self._font_size * 0.25,
            x + self.text_width(line),
            baseline + self._font_size,
        )
        self._canvas.linkURL(url, rect, relative=0, thickness=0)

    def set_text_color(self, rgb: RGB) -> None:
        self._color = rgb
        self._canvas.setFillColorRGB(*rgb)

    def draw_line(self, x1: float, y1: float, x2: float, y2: float, rgb: RGB) -> None:
        self._canvas.setStrokeColorRGB(*rgb)
        self._canvas.line(x1, self.page_height - y1, x2, self.page_height - y2)

    def add_page(self) -> None:
        self._canvas.showPage()
        # showPage resets the graphics state
        self._apply_state()

    def finish(self) -> bytes:
        self._canvas.save()
        return self._buffer.getvalue()


def _font_style(bold: bool, italic: bool) -> str:
    if bold and italic:
        return "bolditalic"
    if bold:
        return "bold"
    if italic:
        return "italic"
    return "normal"


class PdfRenderer:
    """Lays out messages on a PdfSurface, one renderer per document."""

    def __init__(self, surface: PdfSurface):
        self.surface = surface
        self.y: float = MARGIN
        self.current_x: float = MARGIN

    @property
    def usable_width(self) -> float:
        return self.surface.page_width - 2 * MARGIN

    @property
    def line_end(self) -> float:
        return MARGIN + self.usable_width

    def render(self, messages: list[Message], generated_at: datetime) -> bytes:
        self._draw_document_header(len(messages), generated_at)
        for idx, msg in enumerate(messages):
            self._draw_message(msg)
            if idx < len(messages) - 1:
                self._draw_separator()
        return self.surface.finish()

    # ── Cursor management ────────────────────────────────────────────

    def _paginate(self, line_start: float) -> bool:
        """Start a new page when the cursor passed the bottom threshold."""
        if self.y > self.surface.page_height - BOTTOM_THRESHOLD:
            self.surface.add_page()
            self.y = MARGIN
            self.current_x = line_start
            return True
        return False

    def _new_line(self, line_start: float, advance: float = LINE_HEIGHT):
        self.current_x = line_start
        self.y += advance

    # ── Document pieces ──────────────────────────────────────────────

    def _draw_plain_line(self, text: str, size: float, style: str, color: RGB = TEXT_COLOR):
        self.surface.set_font_size(size)
        self.surface.set_font_style(style)
        self.surface.set_text_color(color)
        for line in self.surface.wrap_text(text, self.usable_width) or [text]:
            self._paginate(MARGIN)
            self.surface.draw_text(line, MARGIN, self.y)
            self._new_line(MARGIN, max(LINE_HEIGHT, size * 1.2))
        self.surface.set_font_style("normal")
        self.surface.set_text_color(TEXT_COLOR)

    def _draw_document_header(self, total: int, generated_at: datetime):
        self._draw_plain_line(TRANSCRIPT_TITLE, TITLE_FONT_SIZE, "bold")
        self.y += PARAGRAPH_GAP
        self._draw_plain_line(f"Generated: {format_timestamp(generated_at)}", META_FONT_SIZE, "normal", META_COLOR)
        self._draw_plain_line(f"Total Messages: {total}", META_FONT_SIZE, "normal", META_COLOR)
        self.y += PARAGRAPH_GAP * 2

    def _draw_message(self, msg: Message):
        header = f"{role_label(msg.role)} - {format_timestamp(msg.timestamp)}"
        self._draw_plain_line(header, HEADER_FONT_SIZE, "bold")
        self.y += LIST_ITEM_GAP

        self.surface.set_font_size(BODY_FONT_SIZE)
        for element in markdown_to_elements(msg.content):
            if isinstance(element, Paragraph):
                self._draw_runs(element.runs, MARGIN)
                self._new_line(MARGIN, LINE_HEIGHT + PARAGRAPH_GAP)
            elif isinstance(element, ListBlock):
                self._draw_list(element.items)

        if msg.citations:
            self._draw_plain_line("Sources:", BODY_FONT_SIZE, "bold")
            self.surface.set_font_size(BODY_FONT_SIZE)
            self._draw_list([[InlineRun(text=url, link=url)] for url in msg.citations])

    def _draw_list(self, items: list[list[InlineRun]]):
        text_start = MARGIN + LIST_INDENT
        for item in items:
            self._paginate(text_start)
            self.surface.set_font_style("normal")
            self.surface.draw_text(BULLET, MARGIN, self.y)
            self._draw_runs(item, text_start)
            self._new_line(MARGIN, LINE_HEIGHT + LIST_ITEM_GAP)
        self.y += PARAGRAPH_GAP - LIST_ITEM_GAP

    def _draw_separator(self):
        self.y += PARAGRAPH_GAP
        self._paginate(MARGIN)
        self.surface.draw_line(MARGIN, self.y, self.surface.page_width - MARGIN, self.y, SEPARATOR_COLOR)
        self.y += LINE_HEIGHT + PARAGRAPH_GAP

    # ── Inline layout ────────────────────────────────────────────────

    def _draw_runs(self, runs: list[InlineRun], line_start: float):
        self.current_x = line_start
        for run in runs:
            self._paginate(line_start)
            self.surface.set_font_style(_font_style(run.bold, run.italic))
            if run.link:
                self.surface.set_text_color(LINK_COLOR)
            self._draw_run_text(run.text, line_start, run.link)
            if run.link:
                self.surface.set_text_color(TEXT_COLOR)
            self.surface.set_font_style("normal")

    def _draw_run_text(self, text: str, line_start: float, url: Optional[str]):
        space = self.surface.text_width(" ")
        if text[:1].isspace() and self.current_x > line_start:
            self.current_x += space

        words = text.strip()
        if not words:
            return

        remaining = self.line_end - self.current_x
        lines = self.surface.wrap_text(words, remaining)
        if self.current_x > line_start and lines and self.surface.text_width(lines[0]) > remaining:
            # not even the first word fits after the previous run
            self._new_line(line_start)
            lines = self.surface.wrap_text(words, self.line_end - line_start)
        elif len(lines) > 1:
            # only the first line is limited by the space left after earlier runs
            lines = lines[:1] + self.surface.wrap_text(" ".join(lines[1:]), self.line_end - line_start)

        for n, line in enumerate(lines):
            if n:
                self._new_line(line_start)
            self._paginate(line_start)
            if url:
                self.surface.draw_link_text(line, self.current_x, self.y, url)
            else:
                self.surface.draw_text(line, self.current_x, self.y)
            self.current_x += self.surface.text_width(line)

        if text[-1:].isspace():
            self.current_x += space


def render_pdf(
    messages: list[Message],
    generated_at: datetime,
    surface: Optional[PdfSurface] = None,
) -> bytes:
    """Render messages to PDF bytes."""
    renderer = PdfRenderer(surface or ReportLabSurface())
    pdf_bytes = renderer.render(messages, generated_at)
    logger.info("Rendered %d messages to a %d-byte PDF", len(messages), len(pdf_bytes))
    return pdf_bytes
