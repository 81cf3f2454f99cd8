#!/usr/bin/env python3
"""Command line entry point: preview, print and open the cash drawer.

Usage examples (from project root, with venv activated):

  python cli.py init
      → writes a template .env next to this file.

  python cli.py preview receipt.json -o receipt_preview.png
      → renders the receipt to a PNG without touching the printer.

  python cli.py print receipt.json --density d24 --open-drawer
      → prints the receipt, then kicks the cash drawer.

  python cli.py drawer --kick-code 27,112,0,148,49
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Sequence

import config
from printer import DENSITY_PRESETS, ReceiptPrinter

logger = logging.getLogger(__name__)

# Default .env template (placeholders, safe for first-run)
ENV_TEMPLATE = """# Receipt Printer - Config
# Set the USB ids of your printer (lsusb) before printing

USB_VENDOR_ID=0x0416
USB_PRODUCT_ID=0x5011
USB_IN_EP=0x82
USB_OUT_EP=0x01
MOCK_PRINTER=false
RECEIPT_WIDTH=512
PRINT_DENSITY=d24
DRAWER_KICK_CODE=27,112,0,25,250
ARABIC_DIGITS=false
# FONT_PATH=/usr/share/fonts/truetype/noto/NotoSansArabic-Regular.ttf
# FONT_BOLD_PATH=/usr/share/fonts/truetype/noto/NotoSansArabic-Bold.ttf
"""


def setup_logging() -> None:
    """Rotating file logging under LOG_DIR."""
    log_dir = Path(config.LOG_DIR)
    log_dir.mkdir(exist_ok=True)
    handler = RotatingFileHandler(
        log_dir / "app.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
    )
    logging.basicConfig(
        handlers=[handler],
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def load_receipt(path: str) -> dict[str, Any]:
    """Read receipt JSON from ``path`` ("-" for stdin)."""
    if path == "-":
        return json.load(sys.stdin)
    return json.loads(Path(path).read_text(encoding="utf-8"))


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Render and print 80mm thermal receipts")
    parser.add_argument(
        "--width",
        type=int,
        default=None,
        help="Raster width in dots (default from RECEIPT_WIDTH, 512).",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    init = sub.add_parser("init", help="Create a template .env if missing")
    init.add_argument(
        "--path",
        default=str(Path(__file__).resolve().parent / ".env"),
        help="Where to write the .env file.",
    )

    preview = sub.add_parser("preview", help="Render receipt JSON to a PNG file")
    preview.add_argument("receipt", help="Receipt JSON file, or - for stdin")
    preview.add_argument(
        "-o",
        "--output",
        default="receipt_preview.png",
        help="Output PNG path (default: receipt_preview.png).",
    )

    prn = sub.add_parser("print", help="Print receipt JSON on the USB printer")
    prn.add_argument("receipt", help="Receipt JSON file, or - for stdin")
    prn.add_argument(
        "--density",
        choices=sorted(DENSITY_PRESETS),
        default=None,
        help="Image density preset (default from PRINT_DENSITY, d24).",
    )
    prn.add_argument(
        "--open-drawer",
        action="store_true",
        help="Kick the cash drawer after printing.",
    )

    drawer = sub.add_parser("drawer", help="Open the cash drawer")
    drawer.add_argument(
        "--kick-code",
        default=None,
        help="Comma-separated kick bytes (default from DRAWER_KICK_CODE).",
    )
    return parser


def init_config(path: Path) -> int:
    if path.exists():
        print(f"Config already exists: {path}")
        return 0
    path.write_text(ENV_TEMPLATE, encoding="utf-8")
    print(f"Created config: {path}")
    print("  → Edit USB_VENDOR_ID / USB_PRODUCT_ID before printing.")
    return 0


async def run(args: argparse.Namespace) -> int:
    receipt_printer = ReceiptPrinter(width=args.width)

    if args.command == "preview":
        png = receipt_printer.get_image(load_receipt(args.receipt))
        Path(args.output).write_bytes(png)
        logger.info("Preview written to %s (%d bytes)", args.output, len(png))
        print(f"Receipt preview saved to: {args.output}")
        return 0

    if args.command == "print":
        result = await receipt_printer.print_receipt(
            load_receipt(args.receipt), density=args.density
        )
        print(result.message)
        if args.open_drawer:
            drawer = await receipt_printer.open_cash_drawer()
            print(drawer.message)
        return 0

    if args.command == "drawer":
        result = await receipt_printer.open_cash_drawer(args.kick_code)
        print(result.message)
        return 0

    raise ValueError(f"Unknown command: {args.command}")


def main(argv: Sequence[str] | None = None) -> int:
    args = build_arg_parser().parse_args(argv)
    if args.command == "init":
        return init_config(Path(args.path))

    setup_logging()
    try:
        return asyncio.run(run(args))
    except Exception as e:
        logger.exception("Command %s failed: %s", args.command, e)
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
