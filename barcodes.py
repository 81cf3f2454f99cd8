"""Barcode symbol rendering via python-barcode's Pillow ImageWriter."""

from __future__ import annotations

import logging
from typing import Tuple

import barcode
from barcode.writer import ImageWriter
from PIL import Image, ImageOps

from receipt_data import Barcode

logger = logging.getLogger(__name__)

# Receipt format names -> python-barcode symbology names
FORMATS = {
    "CODE128": "code128",
    "CODE39": "code39",
    "EAN13": "ean13",
    "EAN8": "ean8",
    "UPC": "upca",
}

# At 300 dpi: 2px modules, 71px bars and the text line fit a 140px box.
WRITER_OPTIONS = {
    "module_width": 0.1693,
    "module_height": 6.0,
    "font_size": 10,
    "text_distance": 2.0,
    "quiet_zone": 2.0,
    "dpi": 300,
    "write_text": True,
}

SYMBOL_SIZE: Tuple[int, int] = (450, 140)


def render_barcode(code: Barcode, size: Tuple[int, int] = SYMBOL_SIZE) -> Image.Image:
    """Render ``code`` centred on a white box of exactly ``size``.

    Raises ValueError for unknown formats; python-barcode raises its own
    errors for values its symbology cannot encode.
    """
    name = FORMATS.get(code.format.upper())
    if name is None:
        raise ValueError(f"Unsupported barcode format: {code.format}")

    symbology = barcode.get_barcode_class(name)
    symbol = symbology(code.value, writer=ImageWriter()).render(WRITER_OPTIONS)
    logger.debug("Barcode %s %r rendered at %s", name, code.value, symbol.size)
    return _fit(symbol.convert("RGB"), size)


def _fit(symbol: Image.Image, size: Tuple[int, int]) -> Image.Image:
    # Bars keep their natural width; only oversized symbols shrink, evenly.
    if symbol.width > size[0] or symbol.height > size[1]:
        symbol = ImageOps.contain(symbol, size, method=Image.Resampling.NEAREST)
    canvas = Image.new("RGB", size, "white")
    canvas.paste(symbol, ((size[0] - symbol.width) // 2, (size[1] - symbol.height) // 2))
    return canvas
