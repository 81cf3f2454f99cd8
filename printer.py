"""Async USB transport for 80mm ESC/POS receipt printers."""

import asyncio
import logging
import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Union

from PIL import Image

import config
import layout
from receipt_data import ReceiptData

logger = logging.getLogger(__name__)

# Column-image modes understood by the printer firmware:
# s/d = single/double horizontal density, 8/24 = dot rows per band.
DENSITY_PRESETS: dict[str, dict[str, Any]] = {
    "s8": {"high_density_vertical": False, "high_density_horizontal": False},
    "d8": {"high_density_vertical": False, "high_density_horizontal": True},
    "s24": {"high_density_vertical": True, "high_density_horizontal": False},
    "d24": {"high_density_vertical": True, "high_density_horizontal": True},
}
DEFAULT_DENSITY = "d24"

KICK_LENGTH = 6


def parse_kick_code(code: str) -> bytes:
    """Parse comma-separated byte list into a 6-byte drawer kick sequence.

    Shorter lists are padded with trailing NUL bytes, so the common 5-byte
    ``ESC p m t1 t2`` form (``"27,112,0,25,250"``) is accepted as is.
    """
    raw = code.strip()
    if raw.startswith("[") and raw.endswith("]"):
        raw = raw[1:-1]
    try:
        values = [int(x.strip(), 0) for x in raw.split(",") if x.strip()]
    except ValueError as e:
        raise ValueError(f"Invalid drawer kick code: {code!r}") from e
    if not values or len(values) > KICK_LENGTH:
        raise ValueError(
            f"Drawer kick code must have 1-{KICK_LENGTH} bytes, got {len(values)}: {code!r}"
        )
    if any(not 0 <= v <= 255 for v in values):
        raise ValueError(f"Drawer kick code bytes must be 0-255: {code!r}")
    return bytes(values).ljust(KICK_LENGTH, b"\x00")


@dataclass(frozen=True)
class PrintResult:
    success: bool
    message: str


class MockPrinter:
    """Stub device for running without hardware; records every command."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...], dict[str, Any]]] = []

    def _record(self, name: str, *args: Any, **kwargs: Any) -> None:
        self.calls.append((name, args, kwargs))

    def open(self, *args: Any, **kwargs: Any) -> None:
        self._record("open")

    def set(self, **kwargs: Any) -> None:
        self._record("set", **kwargs)

    def image(self, img_source: Any, **kwargs: Any) -> None:
        self._record("image", img_source, **kwargs)
        if isinstance(img_source, (str, os.PathLike)):
            with Image.open(img_source) as img:
                logger.debug("Mock image print: mode=%s, size=%s", img.mode, img.size)

    def cut(self, *args: Any, **kwargs: Any) -> None:
        self._record("cut", *args, **kwargs)

    def _raw(self, data: bytes) -> None:
        self._record("_raw", data)

    def close(self) -> None:
        self._record("close")

    def command_names(self) -> list[str]:
        return [name for name, _, _ in self.calls]


ReceiptInput = Union[ReceiptData, Mapping[str, Any]]


class ReceiptPrinter:
    """Render receipts to a raster and send them to a USB ESC/POS printer."""

    def __init__(
        self,
        width: int | None = None,
        temp_dir: str | os.PathLike | None = None,
        arabic_digits: bool | None = None,
    ) -> None:
        self.width = width or config.RECEIPT_WIDTH
        self.temp_dir = Path(temp_dir or config.TEMP_DIR or os.getcwd())
        self.arabic_digits = config.ARABIC_DIGITS if arabic_digits is None else arabic_digits
        self._mock = config.MOCK_PRINTER

    @staticmethod
    def _coerce(data: ReceiptInput) -> ReceiptData:
        if isinstance(data, ReceiptData):
            return data
        return ReceiptData.from_dict(data)

    def render(self, data: ReceiptInput) -> Image.Image:
        """Render receipt raster (no device access)."""
        return layout.render(self._coerce(data), self.width, self.arabic_digits)

    def get_image(self, data: ReceiptInput) -> bytes:
        """Return the receipt as PNG bytes for preview (no device access)."""
        return layout.encode_png(self.render(data))

    def _open_device(self) -> Any:
        """Open the USB printer (blocking, single attempt)."""
        if self._mock:
            device = MockPrinter()
            device.open()
            logger.info("Opened mock printer")
            return device

        # Import lazily so previews and tests run without libusb present
        from escpos.printer import Usb  # type: ignore

        if config.USB_VENDOR_ID is None or config.USB_PRODUCT_ID is None:
            raise ValueError("USB_VENDOR_ID and USB_PRODUCT_ID must be set to print")

        device = Usb(
            idVendor=config.USB_VENDOR_ID,
            idProduct=config.USB_PRODUCT_ID,
            timeout=config.USB_TIMEOUT,
            in_ep=config.USB_IN_EP,
            out_ep=config.USB_OUT_EP,
            profile=config.PRINTER_PROFILE,
        )
        device.open()
        logger.info(
            "Opened USB printer %04x:%04x", config.USB_VENDOR_ID, config.USB_PRODUCT_ID
        )
        return device

    def _temp_path(self) -> Path:
        # Millisecond timestamp; two prints in the same ms share a name.
        return self.temp_dir / f"receipt_{int(time.time() * 1000)}.png"

    def _do_print_receipt(self, device: Any, data: ReceiptData, density: str) -> None:
        """Blocking print (runs in executor)."""

        try:
            image = layout.render(data, self.width, self.arabic_digits)
            temp_file = self._temp_path()
            image.save(temp_file, format="PNG")

            try:
                device.set(align="center")
                device.image(str(temp_file), impl="bitImageColumn", **DENSITY_PRESETS[density])
                device.cut()
            except Exception:
                try:
                    temp_file.unlink(missing_ok=True)
                except OSError as e:
                    logger.warning("Failed to delete temp image file %s: %s", temp_file, e)
                raise
        except Exception:
            self._release(device)
            raise

        device.close()
        temp_file.unlink()

    @staticmethod
    def _release(device: Any) -> None:
        """Close the device after a failure without masking the original error."""
        try:
            device.close()
        except Exception as e:
            logger.warning("Failed to close printer after error: %s", e)

    async def print_receipt(
        self, data: ReceiptInput, density: str | None = None
    ) -> PrintResult:
        """Print a receipt: open device, render, send image, cut, close.

        No retries; any device, rendering or filesystem error propagates.
        """
        density = density or config.PRINT_DENSITY or DEFAULT_DENSITY
        if density not in DENSITY_PRESETS:
            raise ValueError(
                f"Unknown density {density!r}, expected one of {sorted(DENSITY_PRESETS)}"
            )
        receipt = self._coerce(data)

        loop = asyncio.get_running_loop()
        try:
            device = await loop.run_in_executor(None, self._open_device)
            await loop.run_in_executor(
                None, self._do_print_receipt, device, receipt, density
            )
        except Exception as e:
            logger.error("Receipt print failed: %s", e)
            raise

        logger.info(
            "Printed receipt%s (%d items, density %s)",
            " (mock)" if self._mock else "",
            len(receipt.items),
            density,
        )
        return PrintResult(success=True, message="Receipt printed successfully")

    def _do_kick(self, device: Any, kick: bytes) -> None:
        """Blocking drawer kick (runs in executor)."""
        try:
            device._raw(kick)
        except Exception:
            self._release(device)
            raise
        device.close()

    async def open_cash_drawer(self, kick_code: str | None = None) -> PrintResult:
        """Send the drawer kick pulse; ``kick_code`` overrides DRAWER_KICK_CODE."""

        kick = parse_kick_code(kick_code or config.DRAWER_KICK_CODE)
        loop = asyncio.get_running_loop()
        try:
            device = await loop.run_in_executor(None, self._open_device)
            await loop.run_in_executor(None, self._do_kick, device, kick)
        except Exception as e:
            logger.error("Cash drawer kick failed: %s", e)
            raise

        logger.info("Cash drawer opened: %s", list(kick))
        return PrintResult(success=True, message="Cash drawer opened successfully")
