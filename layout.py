"""Receipt layout: ordered section table folded over a vertical cursor.

Every section declares when it applies, how far it advances the cursor and
which draw operations it emits at a given cursor position. :func:`plan` walks
the table once, so a skipped section contributes neither height nor drawing.
The resulting height is known before any pixels exist, so :func:`render`
allocates a single surface of exactly that size.

Advances are fixed per section (item rows are 55 units no matter how many name
lines they hold) and horizontal anchors are fixed offsets of the width; long
text is not wrapped and may overflow.
"""

from __future__ import annotations

import io
import logging
from dataclasses import dataclass
from typing import Callable, List, Tuple, Union

from PIL import Image

from barcodes import SYMBOL_SIZE
from drawing import (
    MARGIN_X,
    BarcodeOp,
    BoxOp,
    DrawOp,
    TextOp,
    TextStyle,
    divider,
    paint,
)
from numerals import format_money, format_number, line_total
from receipt_data import ReceiptData

logger = logging.getLogger(__name__)

DEFAULT_WIDTH = 512
TOP_MARGIN = 30
ITEM_ROW_HEIGHT = 55
# Latin name sits under the Arabic one when both are present
ITEM_SECOND_LINE = 28
DEFAULT_TAX_RATE = 14


@dataclass(frozen=True)
class Frame:
    """Per-render drawing context."""

    width: int = DEFAULT_WIDTH
    arabic_digits: bool = False

    @property
    def center(self) -> int:
        return self.width // 2

    @property
    def right(self) -> int:
        return self.width - MARGIN_X

    @property
    def qty_x(self) -> int:
        return self.width // 2 - 30

    @property
    def price_x(self) -> int:
        return self.width // 2 + 50

    def money(self, value) -> str:
        return format_money(value, self.arabic_digits)

    def number(self, value) -> str:
        return format_number(value, self.arabic_digits)


Draw = Callable[[ReceiptData, int, Frame], List[DrawOp]]


@dataclass(frozen=True)
class Section:
    name: str
    applies: Callable[[ReceiptData], bool]
    advance: Union[int, Callable[[ReceiptData], int]]
    draw: Draw

    def height(self, data: ReceiptData) -> int:
        if callable(self.advance):
            return self.advance(data)
        return self.advance


@dataclass(frozen=True)
class Layout:
    height: int
    ops: Tuple[DrawOp, ...]
    sections: Tuple[str, ...]


def _always(data: ReceiptData) -> bool:
    return True


def _field_centered(getter: Callable[[ReceiptData], str], size: int, direction: str = "ltr") -> Draw:
    def draw(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
        style = TextStyle(size=size, align="center", direction=direction)
        return [TextOp(text=getter(data), x=frame.center, y=y, style=style)]

    return draw


def _field_left(getter: Callable[[ReceiptData], str], size: int) -> Draw:
    def draw(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
        return [TextOp(text=getter(data), x=MARGIN_X, y=y, style=TextStyle(size=size))]

    return draw


def _label_value(label: Callable[[ReceiptData, Frame], str], value: Callable[[ReceiptData, Frame], str], size: int) -> Draw:
    def draw(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
        return [
            TextOp(text=label(data, frame), x=MARGIN_X, y=y, style=TextStyle(size=size)),
            TextOp(
                text=value(data, frame),
                x=frame.right,
                y=y,
                style=TextStyle(size=size, align="right"),
            ),
        ]

    return draw


def _rule(stroke: int = 3, offset: int = 0) -> Draw:
    def draw(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
        return [divider(y + offset, frame.width, stroke)]

    return draw


def _draw_logo(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
    # Placeholder glyph: black square with a white inset
    return [
        BoxOp(x=frame.center - 50, y=y, width=100, height=100, fill="black"),
        BoxOp(x=frame.center - 40, y=y + 10, width=80, height=80, fill="white"),
    ]


def _draw_column_headers(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
    return [
        TextOp("Item", MARGIN_X, y, TextStyle(size=28)),
        TextOp("Qty", frame.qty_x, y, TextStyle(size=28, align="center")),
        TextOp("Price", frame.price_x, y, TextStyle(size=28, align="center")),
        TextOp("Total", frame.right, y, TextStyle(size=28, align="right")),
    ]


def _draw_items(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
    ops: List[DrawOp] = []
    for item in data.items:
        if item.name_arabic:
            ops.append(
                TextOp(item.name_arabic, MARGIN_X, y, TextStyle(size=28, direction="rtl"))
            )
        if item.name:
            name_y = y + (ITEM_SECOND_LINE if item.name_arabic else 0)
            ops.append(TextOp(item.name, MARGIN_X, name_y, TextStyle(size=22)))

        ops.append(TextOp(frame.number(item.qty), frame.qty_x, y, TextStyle(size=28, align="center")))
        ops.append(TextOp(frame.money(item.price), frame.price_x, y, TextStyle(size=28, align="center")))
        ops.append(
            TextOp(
                frame.money(line_total(item.qty, item.price)),
                frame.right,
                y,
                TextStyle(size=28, align="right"),
            )
        )
        y += ITEM_ROW_HEIGHT
    return ops


def _draw_barcode(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
    symbol_width, _ = SYMBOL_SIZE
    return [
        BarcodeOp(
            barcode=data.barcode,
            x=(frame.width - symbol_width) // 2,
            y=y,
            size=SYMBOL_SIZE,
        )
    ]


def _draw_change(data: ReceiptData, y: int, frame: Frame) -> List[DrawOp]:
    text = f"Change: {frame.money(data.payment.change)} {data.currency}"
    return [TextOp(text, MARGIN_X, y, TextStyle(size=26))]


def _tax_label(data: ReceiptData, frame: Frame) -> str:
    # A zero or missing rate falls back to the default rate
    rate = data.tax_rate or DEFAULT_TAX_RATE
    return f"Tax ({frame.number(rate)}%):"


# Subtotal and tax are skipped when zero;
# change is printed unless it was never supplied.
SECTIONS: Tuple[Section, ...] = (
    Section("logo", lambda d: bool(d.logo), 110, _draw_logo),
    Section(
        "store_name_arabic",
        lambda d: bool(d.store_name_arabic),
        65,
        _field_centered(lambda d: d.store_name_arabic, 56, "rtl"),
    ),
    Section(
        "store_name",
        lambda d: bool(d.store_name),
        40,
        _field_centered(lambda d: d.store_name, 28),
    ),
    Section(
        "address",
        lambda d: bool(d.store_info.address),
        35,
        _field_centered(lambda d: d.store_info.address, 24),
    ),
    Section(
        "phone",
        lambda d: bool(d.store_info.phone),
        45,
        _field_centered(lambda d: d.store_info.phone, 24),
    ),
    Section("store_divider", _always, 35, _rule()),
    Section(
        "date",
        lambda d: bool(d.receipt_info.date),
        32,
        _field_left(lambda d: f"Date: {d.receipt_info.date}", 26),
    ),
    Section(
        "receipt_number",
        lambda d: bool(d.receipt_info.receipt_number),
        32,
        _field_left(lambda d: f"Receipt #: {d.receipt_info.receipt_number}", 26),
    ),
    Section(
        "cashier",
        lambda d: bool(d.receipt_info.cashier),
        # same 32 as date and receipt number; older receipt layouts used 35
        32,
        _field_left(lambda d: f"Cashier: {d.receipt_info.cashier}", 26),
    ),
    Section("info_divider", _always, 35, _rule()),
    Section("column_headers", _always, 35, _draw_column_headers),
    Section("header_divider", _always, 35, _rule()),
    Section(
        "items",
        lambda d: bool(d.items),
        lambda d: ITEM_ROW_HEIGHT * len(d.items),
        _draw_items,
    ),
    Section("items_divider", _always, 15 + 35, _rule(offset=15)),
    Section(
        "subtotal",
        lambda d: bool(d.subtotal),
        35,
        _label_value(lambda d, f: "Subtotal:", lambda d, f: f.money(d.subtotal), 30),
    ),
    Section(
        "tax",
        lambda d: bool(d.tax),
        40,
        _label_value(_tax_label, lambda d, f: f.money(d.tax), 28),
    ),
    Section("totals_divider", _always, 45, _rule(stroke=4)),
    Section(
        "total",
        _always,
        50,
        _label_value(
            lambda d, f: "TOTAL:",
            lambda d, f: f"{f.money(d.total)} {d.currency}",
            42,
        ),
    ),
    Section("total_divider", _always, 40, _rule()),
    Section(
        "payment_method",
        lambda d: bool(d.payment.method),
        32,
        _field_left(lambda d: f"Payment: {d.payment.method}", 26),
    ),
    Section(
        "change",
        lambda d: d.payment.change is not None,
        50,
        _draw_change,
    ),
    Section(
        "thank_you_arabic",
        lambda d: bool(d.thank_you_message_arabic),
        45,
        _field_centered(lambda d: d.thank_you_message_arabic, 34, "rtl"),
    ),
    Section(
        "thank_you",
        lambda d: bool(d.thank_you_message),
        55,
        _field_centered(lambda d: d.thank_you_message, 28),
    ),
    # Advance stays 150 whatever height the symbol actually has
    Section("barcode", lambda d: d.barcode is not None, 150, _draw_barcode),
    Section(
        "website",
        lambda d: bool(d.website),
        50,
        _field_centered(lambda d: d.website, 22),
    ),
)


def plan(data: ReceiptData, width: int = DEFAULT_WIDTH, arabic_digits: bool = False) -> Layout:
    """Dry layout pass: fold SECTIONS over the cursor.

    Returns the final content height, every draw operation in paint order and
    the names of the sections that rendered.
    """
    frame = Frame(width=width, arabic_digits=arabic_digits)
    cursor = TOP_MARGIN
    ops: List[DrawOp] = []
    rendered: List[str] = []

    for section in SECTIONS:
        if not section.applies(data):
            continue
        # draw first: a section that raises never advances the cursor
        section_ops = section.draw(data, cursor, frame)
        ops.extend(section_ops)
        rendered.append(section.name)
        cursor += section.height(data)

    return Layout(height=cursor, ops=tuple(ops), sections=tuple(rendered))


def render(data: ReceiptData, width: int = DEFAULT_WIDTH, arabic_digits: bool = False) -> Image.Image:
    """Render ``data`` into a white RGBA image exactly as tall as its content."""

    layout = plan(data, width, arabic_digits)
    image = Image.new("RGBA", (width, layout.height), "white")
    paint(image, layout.ops)
    logger.debug("Rendered receipt %sx%s (%s sections)", width, layout.height, len(layout.sections))
    return image


def encode_png(image: Image.Image) -> bytes:
    """Encode the raster as PNG bytes."""
    buf = io.BytesIO()
    image.save(buf, format="PNG")
    return buf.getvalue()
