"""Drawing primitives for the receipt raster.

Layout code never touches a Pillow canvas directly. Each section returns plain
draw operations (text, rule, box, barcode) carrying their own explicit style,
and :func:`paint` rasterises a list of them onto an image in one pass. There is
no shared "current font / alignment / direction" state to reset between calls.

Text is positioned on its alphabetic baseline: ``TextOp.y`` is where the
baseline sits, glyphs extend above it.

Arabic text is shaped with ``arabic_reshaper`` and reordered for display with
``python-bidi`` before Pillow draws it, so no libraqm build is required.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Iterable, Tuple, Union

import arabic_reshaper
from bidi.algorithm import get_display
from PIL import Image, ImageDraw, ImageFont

import config
from barcodes import render_barcode
from receipt_data import Barcode

logger = logging.getLogger(__name__)

# Horizontal inset of dividers and left/right aligned text
MARGIN_X = 10

_ANCHORS = {"left": "ls", "center": "ms", "right": "rs"}

# Tried by name when no font is configured; Pillow searches system font dirs.
_FALLBACK_FONTS = {
    False: ("DejaVuSans.ttf", "Arial.ttf"),
    True: ("DejaVuSans-Bold.ttf", "Arial Bold.ttf"),
}


@dataclass(frozen=True)
class TextStyle:
    """Explicit style of a single text run."""

    size: int
    bold: bool = True
    align: str = "left"
    direction: str = "ltr"


@dataclass(frozen=True)
class TextOp:
    text: str
    x: int
    y: int
    style: TextStyle


@dataclass(frozen=True)
class RuleOp:
    """Horizontal rule centred on ``y``."""

    y: int
    x0: int
    x1: int
    stroke: int


@dataclass(frozen=True)
class BoxOp:
    x: int
    y: int
    width: int
    height: int
    fill: str


@dataclass(frozen=True)
class BarcodeOp:
    barcode: Barcode
    x: int
    y: int
    size: Tuple[int, int]


DrawOp = Union[TextOp, RuleOp, BoxOp, BarcodeOp]


def divider(y: int, width: int, stroke: int = 3) -> RuleOp:
    """Full-width rule at ``y`` inset by MARGIN_X on both sides."""
    return RuleOp(y=y, x0=MARGIN_X, x1=width - MARGIN_X, stroke=stroke)


def has_arabic(text: str) -> bool:
    """Detect Arabic script (base block, supplements and presentation forms)."""
    for ch in text:
        code = ord(ch)
        if (
            0x0600 <= code <= 0x06FF
            or 0x0750 <= code <= 0x077F
            or 0x08A0 <= code <= 0x08FF
            or 0xFB50 <= code <= 0xFDFF
            or 0xFE70 <= code <= 0xFEFF
        ):
            return True
    return False


def shape_text(text: str, direction: str = "ltr") -> str:
    """Return ``text`` in visual order with Arabic letters joined.

    Latin-only text is returned unchanged. ``direction`` sets the paragraph
    base direction used to order mixed Arabic/Latin runs.
    """
    if not has_arabic(text):
        return text
    reshaped = arabic_reshaper.reshape(text)
    return get_display(reshaped, base_dir="R" if direction == "rtl" else "L")


@lru_cache(maxsize=None)
def load_font(size: int, bold: bool = True) -> ImageFont.FreeTypeFont:
    """Load TrueType font at ``size``.

    Order: configured FONT_BOLD_PATH / FONT_PATH, well-known system fonts,
    then Pillow's bundled default font.
    """
    configured = (config.FONT_BOLD_PATH or config.FONT_PATH) if bold else config.FONT_PATH
    if configured:
        try:
            return ImageFont.truetype(configured, size=size)
        except OSError as e:
            logger.warning("Could not load font %s (size %s): %s", configured, size, e)

    for name in _FALLBACK_FONTS[bold]:
        try:
            return ImageFont.truetype(name, size=size)
        except OSError:
            continue

    logger.info("No TrueType font found, using Pillow default font (size %s)", size)
    return ImageFont.load_default(size=size)


def paint(image: Image.Image, ops: Iterable[DrawOp]) -> None:
    """Rasterise draw operations onto ``image`` in order."""

    draw = ImageDraw.Draw(image)
    for op in ops:
        if isinstance(op, TextOp):
            style = op.style
            draw.text(
                (op.x, op.y),
                shape_text(op.text, style.direction),
                fill="black",
                font=load_font(style.size, style.bold),
                anchor=_ANCHORS[style.align],
            )
        elif isinstance(op, RuleOp):
            draw.line(((op.x0, op.y), (op.x1, op.y)), fill="black", width=op.stroke)
        elif isinstance(op, BoxOp):
            draw.rectangle(
                (op.x, op.y, op.x + op.width - 1, op.y + op.height - 1),
                fill=op.fill,
            )
        elif isinstance(op, BarcodeOp):
            symbol = render_barcode(op.barcode, op.size)
            image.paste(symbol.convert(image.mode), (op.x, op.y))
        else:
            raise ValueError(f"Unknown draw operation: {type(op)}")
