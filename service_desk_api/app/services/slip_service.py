"""
Service slip composition and rendering.

A slip is produced in two steps.  ``SlipComposer`` draws the slip
layout (shop header, slip number and date, customer, product and
warranty sections, footer) onto a Pillow canvas of fixed logical width,
oversampled so text stays sharp when scaled onto paper.  That capture
is a ``VisualSnapshot``.  ``SlipRenderer`` then fits the capture inside
an A4 or A5 page, centres it, and emits either a one-page PDF (via
fpdf2) or an HTML print request that opens the browser's print dialog.

The fit never crops or stretches: the capture fills the page width
unless that would make it taller than the page, in which case it fills
the page height instead.  PDFs are built completely in memory, so a
failed render never leaves a partial file behind.
"""

from __future__ import annotations

import asyncio
import base64
import html
import io
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple, Union

from fpdf import FPDF
from PIL import Image, ImageDraw, ImageFont

from service_desk_api.app.core.exceptions import RenderPreconditionError
from service_desk_api.app.schemas.service_record import ServiceRecord, WarrantyClass


logger = logging.getLogger(__name__)


class PageFormat(str, Enum):
    A4 = "a4"
    A5 = "a5"

    @classmethod
    def _missing_(cls, value):
        if isinstance(value, str):
            for member in cls:
                if member.value == value.strip().lower():
                    return member
        return None

    @property
    def size_mm(self) -> Tuple[float, float]:
        """Portrait (width, height) in millimetres."""
        return _PAGE_SIZES_MM[self]


_PAGE_SIZES_MM = {
    PageFormat.A4: (210.0, 297.0),
    PageFormat.A5: (148.0, 210.0),
}


class DocumentMode(str, Enum):
    DOWNLOAD = "download"
    PRINT = "print"


@dataclass(frozen=True)
class Placement:
    """Where the capture lands on the page, in millimetres."""

    x: float
    y: float
    width: float
    height: float


def fit_to_page(captured_width: float, captured_height: float, page_format: PageFormat) -> Placement:
    """Fit a capture inside ``page_format`` preserving its aspect ratio, centred."""
    if captured_width <= 0 or captured_height <= 0:
        raise RenderPreconditionError("Slip capture has no area")
    page_width, page_height = page_format.size_mm
    aspect_ratio = captured_width / captured_height

    img_width = page_width
    img_height = img_width / aspect_ratio
    if img_height > page_height:
        img_height = page_height
        img_width = img_height * aspect_ratio

    return Placement(
        x=(page_width - img_width) / 2,
        y=(page_height - img_height) / 2,
        width=img_width,
        height=img_height,
    )


def slip_filename(customer_name: str, sequence_no: str, extension: str = "pdf") -> str:
    """``Roshan Kumar`` + ``42`` -> ``Roshan_Kumar_42.pdf``."""
    safe_name = re.sub(r"\s", "_", customer_name)
    return f"{safe_name}_{sequence_no}.{extension}"


@dataclass
class VisualSnapshot:
    """A rasterised slip, ready for pagination once ``ready`` is true."""

    image: Optional[Image.Image]
    sequence_no: str = ""
    customer_name: str = ""
    scale: int = 2

    @property
    def width(self) -> int:
        return self.image.width if self.image is not None else 0

    @property
    def height(self) -> int:
        return self.image.height if self.image is not None else 0

    @property
    def ready(self) -> bool:
        return self.image is not None and self.width > 0 and self.height > 0


@dataclass
class SlipDocument:
    """A downloadable slip."""

    filename: str
    content: bytes
    page_format: PageFormat
    placement: Placement
    media_type: str = "application/pdf"


@dataclass
class PrintRequest:
    """An HTML page that shows the slip at page size and opens the print dialog."""

    title: str
    html: str
    page_format: PageFormat
    placement: Placement
    media_type: str = "text/html"


# ----------------------------------------------------------------------
# Composition
# ----------------------------------------------------------------------

@dataclass
class ShopDetails:
    name: str
    department: str = ""
    address_lines: List[str] = field(default_factory=list)
    phone: str = ""
    email: str = ""
    gst: str = ""

    @classmethod
    def from_settings(cls, settings) -> "ShopDetails":
        return cls(
            name=settings.shop_name,
            department=settings.shop_department,
            address_lines=list(settings.shop_address),
            phone=settings.shop_phone,
            email=settings.shop_email,
            gst=settings.shop_gst,
        )


WHITE = (255, 255, 255)
PURPLE_50 = (250, 245, 255)
PURPLE_600 = (147, 51, 234)
PURPLE_700 = (126, 34, 206)
PURPLE_800 = (107, 33, 168)
GRAY_200 = (229, 231, 235)
GRAY_500 = (107, 114, 128)
GRAY_600 = (75, 85, 99)
GRAY_700 = (55, 65, 81)
GRAY_900 = (17, 24, 39)

PADDING = 32
LINE_SPACING = 1.35
GRID_COLUMNS = 3
GRID_GAP = 24
# Starting canvas height; the canvas grows whenever content goes past it.
INITIAL_HEIGHT = 1200

_FONT_FILES = {False: "DejaVuSans.ttf", True: "DejaVuSans-Bold.ttf"}


def _load_font(size_px: int, bold: bool):
    try:
        return ImageFont.truetype(_FONT_FILES[bold], size_px)
    except OSError:
        # No DejaVu on this host; Pillow's bundled font has no bold face.
        return ImageFont.load_default(size=size_px)


class _SlipCanvas:
    """Drawing surface working in logical pixels, scaled on output."""

    def __init__(self, width: int, scale: int) -> None:
        self.width = width
        self.scale = scale
        self.image = Image.new("RGB", (self.px(width), self.px(INITIAL_HEIGHT)), WHITE)
        self.draw = ImageDraw.Draw(self.image)
        self.y: float = PADDING
        self._fonts = {}

    def reserve(self, bottom: float) -> None:
        """Make sure the canvas reaches at least ``bottom`` logical pixels."""
        needed = self.px(bottom)
        if needed <= self.image.height:
            return
        grown = Image.new("RGB", (self.image.width, max(needed, self.image.height * 2)), WHITE)
        grown.paste(self.image, (0, 0))
        self.image = grown
        self.draw = ImageDraw.Draw(self.image)

    @property
    def content_width(self) -> float:
        return self.width - 2 * PADDING

    def px(self, value: float) -> int:
        return int(round(value * self.scale))

    def font(self, size: int, bold: bool = False):
        key = (size, bold)
        if key not in self._fonts:
            self._fonts[key] = _load_font(self.px(size), bold)
        return self._fonts[key]

    def text_width(self, text: str, size: int, bold: bool = False) -> float:
        return self.draw.textlength(text, font=self.font(size, bold)) / self.scale

    def text(self, x: float, y: float, text: str, size: int, bold: bool = False, fill=GRAY_900) -> float:
        """Draw one line at (x, y); return the line height."""
        self.reserve(y + size * LINE_SPACING)
        self.draw.text((self.px(x), self.px(y)), text, font=self.font(size, bold), fill=fill)
        return size * LINE_SPACING

    def text_right(self, right: float, y: float, text: str, size: int, bold: bool = False, fill=GRAY_900) -> float:
        return self.text(right - self.text_width(text, size, bold), y, text, size, bold, fill)

    def text_center(self, y: float, text: str, size: int, bold: bool = False, fill=GRAY_900) -> float:
        return self.text((self.width - self.text_width(text, size, bold)) / 2, y, text, size, bold, fill)

    def wrap(self, text: str, size: int, bold: bool, max_width: float) -> List[str]:
        """Break ``text`` into lines no wider than ``max_width``.

        Lines break at spaces; a single word wider than the column is
        split between characters.
        """
        lines: List[str] = []
        current = ""
        for word in text.split():
            for piece in self._split_word(word, size, bold, max_width):
                candidate = f"{current} {piece}" if current else piece
                if current and self.text_width(candidate, size, bold) > max_width:
                    lines.append(current)
                    current = piece
                else:
                    current = candidate
        if current:
            lines.append(current)
        return lines or [""]

    def _split_word(self, word: str, size: int, bold: bool, max_width: float) -> List[str]:
        if self.text_width(word, size, bold) <= max_width:
            return [word]
        pieces: List[str] = []
        current = ""
        for char in word:
            if current and self.text_width(current + char, size, bold) > max_width:
                pieces.append(current)
                current = char
            else:
                current += char
        if current:
            pieces.append(current)
        return pieces

    def paragraph(self, x: float, y: float, text: str, size: int, max_width: float,
                  bold: bool = False, fill=GRAY_900) -> float:
        height = 0.0
        for line in self.wrap(text, size, bold, max_width):
            height += self.text(x, y + height, line, size, bold, fill)
        return height

    def rule(self, y: float) -> None:
        self.reserve(y + 1)
        self.draw.line(
            [(self.px(PADDING), self.px(y)), (self.px(self.width - PADDING), self.px(y))],
            fill=GRAY_200,
            width=max(1, self.px(1)),
        )

    def finish(self) -> Image.Image:
        bottom = self.y + PADDING
        self.reserve(bottom)
        return self.image.crop((0, 0, self.px(self.width), self.px(bottom)))


# (label, value, column span, bold value)
DetailItem = Tuple[str, str, int, bool]


class SlipComposer:
    """Draws the slip layout for a record.

    Args:
        shop: Details printed in the header.
        width: Logical width of the layout in pixels.
        scale: Oversampling factor; the capture is ``width * scale``
            pixels wide.  Must be at least 2.
    """

    def __init__(self, shop: ShopDetails, width: int = 800, scale: int = 2) -> None:
        if scale < 2:
            raise ValueError("Slip capture oversampling factor must be at least 2")
        self.shop = shop
        self.width = width
        self.scale = scale

    async def capture(self, record: ServiceRecord) -> VisualSnapshot:
        """Compose the slip off the event loop."""
        return await asyncio.to_thread(self.compose, record)

    def compose(self, record: ServiceRecord) -> VisualSnapshot:
        canvas = _SlipCanvas(self.width, self.scale)
        self._header(canvas)
        self._title(canvas)
        self._slip_line(canvas, record)
        canvas.rule(canvas.y)
        canvas.y += 24
        self._section(canvas, "Customer Information", [
            ("Customer Name", record.customer_name, 2, True),
            ("Contact Number", record.contact_number, 1, True),
        ])
        self._section(canvas, "Product Information", [
            ("Product Name", record.product_name, 1, True),
            ("Brand", record.brand, 1, True),
            ("Color / Size", record.color_and_size, 1, True),
            ("Service Required", record.service_description, 3, False),
        ])
        self._section(canvas, "Warranty & Estimate", self._warranty_items(record), rule=False)
        self._footer(canvas)
        image = canvas.finish()
        logger.debug("Composed slip %s at %dx%d px", record.sequence_no, image.width, image.height)
        return VisualSnapshot(
            image=image,
            sequence_no=record.sequence_no,
            customer_name=record.customer_name,
            scale=self.scale,
        )

    @staticmethod
    def _warranty_items(record: ServiceRecord) -> List[DetailItem]:
        status = record.warranty_class.value if record.warranty_class else ""
        items: List[DetailItem] = [("Warranty Status", status, 1, True)]
        if record.warranty_class is WarrantyClass.WARRANTY:
            items.append(("Warranty Invoice", record.warranty_invoice_number, 1, True))
            items.append(("Warranty Date", record.warranty_date, 1, True))
        else:
            estimate = f"₹ {record.estimate_amount}" if record.estimate_amount else ""
            items.append(("Estimate Amount", estimate, 1, True))
        return items

    def _header(self, canvas: _SlipCanvas) -> None:
        top = canvas.y
        badge = 56
        canvas.draw.rounded_rectangle(
            [canvas.px(PADDING), canvas.px(top), canvas.px(PADDING + badge), canvas.px(top + badge)],
            radius=canvas.px(8),
            fill=PURPLE_600,
        )
        initial = (self.shop.name[:1] or "S").upper()
        canvas.text(PADDING + (badge - canvas.text_width(initial, 28, True)) / 2, top + 10,
                    initial, 28, bold=True, fill=WHITE)

        left = PADDING + badge + 16
        y = top
        y += canvas.text(left, y, self.shop.name, 30, bold=True, fill=GRAY_900)
        if self.shop.department:
            y += canvas.text(left, y, self.shop.department, 16, fill=GRAY_500)
        left_bottom = max(y, top + badge)

        right = canvas.width - PADDING
        ry = top
        for line in self.shop.address_lines:
            ry += canvas.text_right(right, ry, line, 11, fill=GRAY_600)
        contact = " | ".join(
            part for part in (
                f"Ph: {self.shop.phone}" if self.shop.phone else "",
                f"E-Mail: {self.shop.email}" if self.shop.email else "",
            ) if part
        )
        if contact:
            ry += 6
            ry += canvas.text_right(right, ry, contact, 11, fill=GRAY_600)
        if self.shop.gst:
            ry += 6
            ry += canvas.text_right(right, ry, f"GST: {self.shop.gst}", 11, bold=True, fill=GRAY_700)

        canvas.y = max(left_bottom, ry) + 20
        canvas.rule(canvas.y)
        canvas.y += 20

    def _title(self, canvas: _SlipCanvas) -> None:
        band = 40
        canvas.reserve(canvas.y + band)
        canvas.draw.rectangle(
            [canvas.px(PADDING), canvas.px(canvas.y), canvas.px(canvas.width - PADDING), canvas.px(canvas.y + band)],
            fill=PURPLE_50,
        )
        canvas.text_center(canvas.y + 9, "SERVICE SLIP", 18, bold=True, fill=PURPLE_800)
        canvas.y += band + 24

    def _slip_line(self, canvas: _SlipCanvas, record: ServiceRecord) -> None:
        half = (canvas.content_width - GRID_GAP) / 2
        heights = [
            self._detail(canvas, PADDING, canvas.y, half, "Slip No.", record.sequence_no, large=True),
            self._detail(canvas, PADDING + half + GRID_GAP, canvas.y, half, "Date", record.created_date, large=True),
        ]
        canvas.y += max(heights) + 24

    def _section(self, canvas: _SlipCanvas, title: str, items: Sequence[DetailItem], rule: bool = True) -> None:
        canvas.y += canvas.text(PADDING, canvas.y, title, 17, bold=True, fill=PURPLE_700) + 8
        column_width = (canvas.content_width - GRID_GAP * (GRID_COLUMNS - 1)) / GRID_COLUMNS
        for row in self._rows(items):
            column = 0
            row_height = 0.0
            for label, value, span, bold in row:
                x = PADDING + column * (column_width + GRID_GAP)
                width = column_width * span + GRID_GAP * (span - 1)
                row_height = max(row_height, self._detail(canvas, x, canvas.y, width, label, value, bold=bold))
                column += span
            canvas.y += row_height + 16
        canvas.y += 8
        if rule:
            canvas.rule(canvas.y)
            canvas.y += 24

    @staticmethod
    def _rows(items: Iterable[DetailItem]) -> List[List[DetailItem]]:
        rows: List[List[DetailItem]] = []
        used = GRID_COLUMNS
        for item in items:
            span = min(max(item[2], 1), GRID_COLUMNS)
            if used + span > GRID_COLUMNS:
                rows.append([])
                used = 0
            rows[-1].append((item[0], item[1], span, item[3]))
            used += span
        return rows

    @staticmethod
    def _detail(canvas: _SlipCanvas, x: float, y: float, width: float, label: str, value: str,
                bold: bool = True, large: bool = False) -> float:
        height = canvas.text(x, y, label.upper(), 11, fill=GRAY_500) + 2
        height += canvas.paragraph(x, y + height, value or "-", 20 if large else 15, width, bold=bold)
        return height

    def _footer(self, canvas: _SlipCanvas) -> None:
        canvas.y += 24
        canvas.rule(canvas.y)
        canvas.y += 20
        canvas.y += canvas.text_center(canvas.y, "Thank you for your business!", 15, bold=True, fill=GRAY_600) + 4
        canvas.y += canvas.text_center(canvas.y, "This is a computer-generated slip and does not require a signature.",
                                       12, fill=GRAY_500)
        canvas.y += canvas.text_center(canvas.y, "Please keep this slip for future reference.", 12, fill=GRAY_500)


# ----------------------------------------------------------------------
# Rendering
# ----------------------------------------------------------------------

_PRINT_TEMPLATE = """<!DOCTYPE html>
<html>
<head>
<meta charset="utf-8">
<title>{title}</title>
<style>
@page {{ size: {page} portrait; margin: 0; }}
html, body {{ margin: 0; padding: 0; }}
.page {{ position: relative; width: {page_width:.3f}mm; height: {page_height:.3f}mm; }}
.page img {{ position: absolute; left: {x:.3f}mm; top: {y:.3f}mm; width: {width:.3f}mm; height: {height:.3f}mm; }}
</style>
</head>
<body onload="window.print()">
<div class="page"><img src="data:image/png;base64,{data}" alt="{title}"></div>
</body>
</html>
"""


class SlipRenderer:
    """Turns a ``VisualSnapshot`` into a single-page document."""

    def __init__(self, creator: str = "Service Desk API") -> None:
        self.creator = creator

    def render(
        self,
        snapshot: Optional[VisualSnapshot],
        page_format: PageFormat,
        mode: DocumentMode = DocumentMode.DOWNLOAD,
    ) -> Union[SlipDocument, PrintRequest]:
        """Fit ``snapshot`` onto one ``page_format`` page.

        Raises:
            RenderPreconditionError: ``snapshot`` is missing or empty.
        """
        if snapshot is None or not snapshot.ready:
            raise RenderPreconditionError("Slip capture is not available; compose the slip before rendering")
        placement = fit_to_page(snapshot.width, snapshot.height, page_format)
        if mode is DocumentMode.PRINT:
            return self._print_request(snapshot, page_format, placement)
        return self._pdf(snapshot, page_format, placement)

    def _pdf(self, snapshot: VisualSnapshot, page_format: PageFormat, placement: Placement) -> SlipDocument:
        pdf = FPDF(orientation="P", unit="mm", format=page_format.value)
        # A full-height image would otherwise trip the automatic page break.
        pdf.set_auto_page_break(auto=False)
        pdf.set_creator(self.creator)
        pdf.set_title(f"Service Slip {snapshot.sequence_no}")
        pdf.add_page()
        pdf.image(snapshot.image, x=placement.x, y=placement.y, w=placement.width, h=placement.height)
        content = bytes(pdf.output())
        if not content:
            raise RenderPreconditionError("PDF rendering produced no output")
        filename = slip_filename(snapshot.customer_name, snapshot.sequence_no)
        logger.info("Rendered %s on %s (%d bytes)", filename, page_format.value.upper(), len(content))
        return SlipDocument(filename=filename, content=content, page_format=page_format, placement=placement)

    @staticmethod
    def _print_request(snapshot: VisualSnapshot, page_format: PageFormat, placement: Placement) -> PrintRequest:
        buffer = io.BytesIO()
        snapshot.image.save(buffer, format="PNG")
        title = f"Service Slip {snapshot.sequence_no}"
        page_width, page_height = page_format.size_mm
        document = _PRINT_TEMPLATE.format(
            title=html.escape(title),
            page=page_format.value.upper(),
            page_width=page_width,
            page_height=page_height,
            x=placement.x,
            y=placement.y,
            width=placement.width,
            height=placement.height,
            data=base64.b64encode(buffer.getvalue()).decode("ascii"),
        )
        return PrintRequest(title=title, html=document, page_format=page_format, placement=placement)
