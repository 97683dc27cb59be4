# app/domain/services/invoice_renderer.py
"""
Render an ``InvoiceDocument`` to a paginated PDF.

Pipeline:
  1. rasterize the document tree onto one fixed-width Pillow image whose
     height follows the content,
  2. cut that image into A4-proportioned bands (ceil(H / P) pages),
  3. place each band full-page on a ReportLab canvas,
  4. write the PDF atomically (temp file + rename) when a path is wanted.
"""

from __future__ import annotations

import asyncio
import io
import logging
import math
import os
import re
import tempfile
from dataclasses import dataclass
from pathlib import Path

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib.pagesizes import A4
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from app.core.config import settings
from app.domain.exceptions import RenderError
from app.domain.models.sales import SalesTransaction
from app.domain.services.invoice_document import (
    ColumnsBlock,
    Heading,
    InvoiceDocument,
    KeyValueBlock,
    Section,
    SignatureBlock,
    TableBlock,
    TextBlock,
)

logger = logging.getLogger("invoice_renderer")

_FONT_CANDIDATES = {
    False: ("/usr/share/fonts/truetype/dejavu/DejaVuSans.ttf", "DejaVuSans.ttf", "arial.ttf"),
    True: ("/usr/share/fonts/truetype/dejavu/DejaVuSans-Bold.ttf", "DejaVuSans-Bold.ttf", "arialbd.ttf"),
}

HEADER_FILL = (235, 235, 235)
TITLE_FILL = (210, 220, 235)
SECTION_GAP = 14


# ---------------------------------------------------------------------------
# Pagination
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PageBand:
    """Vertical slice ``[top, bottom)`` of the rendered image shown on one page."""
    index: int
    top: int
    bottom: int

    @property
    def height(self) -> int:
        return self.bottom - self.top


def page_height_for(width_px: int) -> int:
    """Pixel height of an A4 page for a given pixel width."""
    page_w, page_h = A4
    return round(width_px * page_h / page_w)


def paginate(content_height: int, page_height: int) -> list[PageBand]:
    """Split ``content_height`` into ``ceil(H / P)`` contiguous bands (at least one)."""
    if page_height <= 0:
        raise ValueError("page_height must be positive")
    if content_height < 0:
        raise ValueError("content_height cannot be negative")
    pages = max(1, math.ceil(content_height / page_height))
    return [
        PageBand(index=i, top=i * page_height, bottom=min((i + 1) * page_height, content_height))
        for i in range(pages)
    ]


# ---------------------------------------------------------------------------
# Fonts / text
# ---------------------------------------------------------------------------

def _load_font(size: int, bold: bool = False):
    paths = ([settings.RENDER_FONT_PATH] if settings.RENDER_FONT_PATH else []) + list(_FONT_CANDIDATES[bold])
    for path in paths:
        try:
            return ImageFont.truetype(path, size)
        except OSError:
            continue
    return ImageFont.load_default(size=size)


def _text_width(font, text: str) -> float:
    return font.getlength(text)


def _wrap(text: str, font, max_width: float) -> list[str]:
    """Greedy word wrap; honours embedded newlines and breaks over-long words."""
    lines: list[str] = []
    for paragraph in (text or "").split("\n"):
        current = ""
        for word in paragraph.split(" "):
            candidate = f"{current} {word}" if current else word
            if _text_width(font, candidate) <= max_width:
                current = candidate
                continue
            if current:
                lines.append(current)
            # Hard-break words wider than the cell
            while word and _text_width(font, word) > max_width:
                cut = len(word)
                while cut > 1 and _text_width(font, word[:cut]) > max_width:
                    cut -= 1
                lines.append(word[:cut])
                word = word[cut:]
            current = word
        lines.append(current)
    return lines or [""]


# ---------------------------------------------------------------------------
# Rasterizer
# ---------------------------------------------------------------------------

class _Rasterizer:
    """Lays out sections top-down. With ``draw=None`` it only measures."""

    def __init__(self, width: int):
        self.width = width
        self.margin = max(16, width // 25)
        self.content_width = width - 2 * self.margin
        base = max(8, round(settings.RENDER_FONT_SIZE * width / 1240))
        self.font = _load_font(base)
        self.bold = _load_font(base, bold=True)
        self.title_font = _load_font(round(base * 1.6), bold=True)
        self.pad = max(4, base // 3)
        top, bottom = self.font.getbbox("Hg")[1], self.font.getbbox("Hg")[3]
        self.line_height = (bottom - top) + max(4, base // 3)
        self.draw: ImageDraw.ImageDraw | None = None

    # -- primitives ---------------------------------------------------------

    def _rect(self, box, fill=None):
        if self.draw is not None:
            self.draw.rectangle(box, outline=(0, 0, 0), width=1, fill=fill)

    def _lines(self, x: float, y: float, width: float, lines: list[str], font, align: str = "left"):
        if self.draw is None:
            return
        for i, line in enumerate(lines):
            if align == "right":
                lx = x + width - _text_width(font, line)
            elif align == "center":
                lx = x + (width - _text_width(font, line)) / 2
            else:
                lx = x
            self.draw.text((lx, y + i * self.line_height), line, fill=(0, 0, 0), font=font)

    def _row(self, x, y, widths, texts, fonts, aligns, fill=None) -> int:
        """Draw one bordered row of cells; returns its height."""
        wrapped = [
            _wrap(t, f, w - 2 * self.pad) for t, f, w in zip(texts, fonts, widths)
        ]
        height = max(len(w) for w in wrapped) * self.line_height + 2 * self.pad
        cx = x
        for lines, font, w, align in zip(wrapped, fonts, widths, aligns):
            self._rect([cx, y, cx + w, y + height], fill=fill)
            self._lines(cx + self.pad, y + self.pad, w - 2 * self.pad, lines, font, align)
            cx += w
        return height

    def _title_bar(self, x, y, width, title) -> int:
        return self._row(x, y, [width], [title], [self.bold], ["left"], fill=TITLE_FILL)

    def _kv_rows(self, x, y, width, rows) -> int:
        label_w = round(width * 0.38)
        start = y
        for label, value in rows:
            y += self._row(
                x, y, [label_w, width - label_w], [label, value],
                [self.bold, self.font], ["left", "left"],
            )
        return y - start

    # -- sections -----------------------------------------------------------

    def heading(self, s: Heading, y: int) -> int:
        x = self.margin
        if self.draw is not None:
            tw = _text_width(self.title_font, s.title)
            self.draw.text(((self.width - tw) / 2, y), s.title, fill=(0, 0, 0), font=self.title_font)
        tb = self.title_font.getbbox(s.title)
        y += (tb[3] - tb[1]) + 3 * self.pad
        return y + self._kv_rows(x, y, self.content_width, s.rows)

    def key_values(self, s: KeyValueBlock, y: int) -> int:
        x = self.margin
        y += self._title_bar(x, y, self.content_width, s.title)
        return y + self._kv_rows(x, y, self.content_width, s.rows)

    def columns(self, s: ColumnsBlock, y: int) -> int:
        x = self.margin
        y += self._title_bar(x, y, self.content_width, s.title)
        n = max(1, len(s.columns))
        col_w = self.content_width // n
        bottoms = []
        for i, col in enumerate(s.columns):
            cx = x + i * col_w
            w = self.content_width - col_w * (n - 1) if i == n - 1 else col_w
            cy = y + self._row(cx, y, [w], [col.title], [self.bold], ["left"], fill=HEADER_FILL)
            cy += self._kv_rows(cx, cy, w, col.rows)
            bottoms.append(cy)
        return max(bottoms) if bottoms else y

    def table(self, s: TableBlock, y: int) -> int:
        x = self.margin
        y += self._title_bar(x, y, self.content_width, s.title)
        weights = s.weights or tuple(1 for _ in s.headers)
        total = sum(weights)
        widths = [self.content_width * w // total for w in weights]
        widths[-1] = self.content_width - sum(widths[:-1])
        aligns = list(s.align) if s.align else ["left"] * len(s.headers)
        y += self._row(
            x, y, widths, list(s.headers), [self.bold] * len(widths),
            ["center"] * len(widths), fill=HEADER_FILL,
        )
        for row in s.rows:
            y += self._row(x, y, widths, list(row), [self.font] * len(widths), aligns)
        return y

    def text(self, s: TextBlock, y: int) -> int:
        x = self.margin
        y += self._title_bar(x, y, self.content_width, s.title)
        return y + self._row(x, y, [self.content_width], [s.text], [self.font], ["left"])

    def signature(self, s: SignatureBlock, y: int) -> int:
        x = self.margin
        half = self.content_width // 2
        left = _wrap(s.declaration, self.font, half - 2 * self.pad)
        right = [s.signatory_for, "", "", s.label]
        height = max(len(left), len(right)) * self.line_height + 2 * self.pad
        self._rect([x, y, x + half, y + height])
        self._rect([x + half, y, x + self.content_width, y + height])
        self._lines(x + self.pad, y + self.pad, half - 2 * self.pad, left, self.font)
        self._lines(x + half + self.pad, y + self.pad, self.content_width - half - 2 * self.pad, right, self.bold, "right")
        return y + height

    def section(self, s: Section, y: int) -> int:
        if isinstance(s, Heading):
            return self.heading(s, y)
        if isinstance(s, KeyValueBlock):
            return self.key_values(s, y)
        if isinstance(s, ColumnsBlock):
            return self.columns(s, y)
        if isinstance(s, TableBlock):
            return self.table(s, y)
        if isinstance(s, TextBlock):
            return self.text(s, y)
        if isinstance(s, SignatureBlock):
            return self.signature(s, y)
        raise TypeError(f"Unknown document section: {type(s).__name__}")

    def layout(self, document: InvoiceDocument) -> int:
        y = self.margin
        for s in document.sections:
            y = self.section(s, y) + SECTION_GAP
        return y - SECTION_GAP + self.margin


def rasterize(document: InvoiceDocument, width_px: int | None = None) -> Image.Image:
    """Draw ``document`` onto a white image of fixed width and content height."""
    width = width_px or settings.RENDER_PAGE_WIDTH_PX
    r = _Rasterizer(width)
    height = r.layout(document)  # measure pass

    image = Image.new("RGB", (width, height), color="white")
    r.draw = ImageDraw.Draw(image)
    r.layout(document)
    return image


def assemble_pdf(image: Image.Image, page_height: int, title: str = "") -> bytes:
    """Place each page band of ``image`` full-width on its own A4 page."""
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=A4)
    if title:
        c.setTitle(title)
    page_w, page_h = A4
    scale = page_w / image.width

    for band in paginate(image.height, page_height):
        if band.height > 0:
            piece = image.crop((0, band.top, image.width, band.bottom))
            draw_h = band.height * scale
            c.drawImage(ImageReader(piece), 0, page_h - draw_h, width=page_w, height=draw_h)
        c.showPage()

    c.save()
    return buf.getvalue()


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def invoice_filename(txn: SalesTransaction) -> str:
    """``invoice_<invoice no>.pdf``; falls back to the record id, then ``draft``."""
    stem = txn.invoice_number or txn.id or "draft"
    stem = re.sub(r"[^A-Za-z0-9._-]+", "_", str(stem)).strip("._") or "draft"
    return f"invoice_{stem}.pdf"


def render_invoice_pdf(document: InvoiceDocument, width_px: int | None = None, title: str = "") -> bytes:
    """Render ``document`` to PDF bytes. Raises RenderError on any failure."""
    try:
        image = rasterize(document, width_px)
        pdf = assemble_pdf(image, page_height_for(image.width), title=title)
    except Exception as exc:
        logger.exception("Invoice rasterization failed")
        raise RenderError() from exc

    logger.info(
        "Rendered invoice %s: %dpx tall, %d page(s), %d bytes",
        title or "(untitled)", image.height, len(paginate(image.height, page_height_for(image.width))), len(pdf),
    )
    return pdf


def write_pdf_atomic(pdf: bytes, target: Path) -> Path:
    """Write ``pdf`` to ``target`` via a temp file and rename; no partial files."""
    tmp_name = None
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".invoice-", suffix=".part")
        with os.fdopen(fd, "wb") as fh:
            fh.write(pdf)
            fh.flush()
            os.fsync(fh.fileno())
        os.replace(tmp_name, target)
    except OSError as exc:
        if tmp_name and os.path.exists(tmp_name):
            os.unlink(tmp_name)
        logger.error("Could not write invoice PDF %s: %s", target, exc)
        raise RenderError() from exc
    return target


def write_invoice_pdf(
    document: InvoiceDocument,
    txn: SalesTransaction,
    output_dir: str | Path | None = None,
) -> Path:
    """Render and save as ``<output_dir>/invoice_<no>.pdf``."""
    filename = invoice_filename(txn)
    pdf = render_invoice_pdf(document, title=filename)
    target = Path(output_dir or settings.INVOICE_OUTPUT_DIR) / filename
    return write_pdf_atomic(pdf, target)


async def render_invoice_pdf_async(document: InvoiceDocument, title: str = "") -> bytes:
    """Render in a worker thread.

    Cancelling the awaiting task abandons the render: the thread finishes on
    its own but its result is dropped.
    """
    return await asyncio.to_thread(render_invoice_pdf, document, None, title)


async def write_invoice_pdf_async(
    document: InvoiceDocument,
    txn: SalesTransaction,
    output_dir: str | Path | None = None,
) -> Path:
    filename = invoice_filename(txn)
    pdf = await render_invoice_pdf_async(document, title=filename)
    # Only reached if the render was not cancelled
    target = Path(output_dir or settings.INVOICE_OUTPUT_DIR) / filename
    return write_pdf_atomic(pdf, target)
