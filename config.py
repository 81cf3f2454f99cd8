"""Configuration module - loads settings from .env file."""

import logging
import os

from dotenv import load_dotenv

# A missing .env is fine: every setting has a default.
load_dotenv()

logger = logging.getLogger(__name__)


def _parse_int(value: str | None, default: int | None = None) -> int | None:
    """Parse decimal or 0x-prefixed hex integer; default for missing/empty."""
    if not value or not value.strip():
        return default
    try:
        return int(value.strip(), 0)
    except ValueError:
        logger.warning("Invalid integer in .env: %r, using %r", value, default)
        return default


def _parse_bool(value: str | None) -> bool:
    """Parse string to bool; default False for missing/invalid."""
    if not value:
        return False
    return value.strip().lower() in ("true", "1", "yes", "on")


def _optional(key: str) -> str | None:
    """Return stripped env var or None when missing/empty."""
    value = os.getenv(key)
    if not value or not value.strip():
        return None
    return value.strip()


# Receipt rendering
# 512 dots is the printable width of the common 80mm ESC/POS head.
RECEIPT_WIDTH: int = _parse_int(os.getenv("RECEIPT_WIDTH"), 512)
TEMP_DIR: str | None = _optional("TEMP_DIR")
ARABIC_DIGITS: bool = _parse_bool(os.getenv("ARABIC_DIGITS", "false"))
FONT_PATH: str | None = _optional("FONT_PATH")
FONT_BOLD_PATH: str | None = _optional("FONT_BOLD_PATH")

# USB printer (python-escpos Usb)
MOCK_PRINTER: bool = _parse_bool(os.getenv("MOCK_PRINTER", "false"))
USB_VENDOR_ID: int | None = _parse_int(os.getenv("USB_VENDOR_ID"))
USB_PRODUCT_ID: int | None = _parse_int(os.getenv("USB_PRODUCT_ID"))
USB_INTERFACE: int = _parse_int(os.getenv("USB_INTERFACE"), 0)
USB_IN_EP: int = _parse_int(os.getenv("USB_IN_EP"), 0x82)
USB_OUT_EP: int = _parse_int(os.getenv("USB_OUT_EP"), 0x01)
USB_TIMEOUT: int = _parse_int(os.getenv("USB_TIMEOUT"), 0)
PRINTER_PROFILE: str | None = _optional("PRINTER_PROFILE")

# Print-time defaults
PRINT_DENSITY: str = os.getenv("PRINT_DENSITY", "d24").strip()
# ESC p 0 25 250: pulse drawer pin 2 for 50ms on / 500ms off
DRAWER_KICK_CODE: str = os.getenv("DRAWER_KICK_CODE", "27,112,0,25,250").strip()

LOG_DIR: str = os.getenv("LOG_DIR", "logs").strip()
