"""Pytest tests for printer module with MOCK_PRINTER=True."""

import logging
from unittest.mock import patch

import pytest

import printer
from printer import (
    DENSITY_PRESETS,
    MockPrinter,
    PrintResult,
    ReceiptPrinter,
    parse_kick_code,
)


@pytest.fixture(autouse=True)
def mock_config():
    """Force MOCK_PRINTER=True for all tests."""
    with patch("printer.config") as mock_cfg:
        mock_cfg.MOCK_PRINTER = True
        mock_cfg.RECEIPT_WIDTH = 512
        mock_cfg.TEMP_DIR = None
        mock_cfg.ARABIC_DIGITS = False
        mock_cfg.PRINT_DENSITY = "d24"
        mock_cfg.DRAWER_KICK_CODE = "27,112,0,25,250"
        yield mock_cfg


@pytest.fixture
def device(monkeypatch):
    """MockPrinter instance handed out by ReceiptPrinter._open_device."""
    dev = MockPrinter()
    monkeypatch.setattr(printer, "MockPrinter", lambda: dev)
    return dev


class FailingImagePrinter(MockPrinter):
    def image(self, img_source, **kwargs):
        super().image(img_source, **kwargs)
        raise RuntimeError("USB write failed")


class FailingRawPrinter(MockPrinter):
    def _raw(self, data):
        super()._raw(data)
        raise RuntimeError("USB write failed")


class FailingClosePrinter(FailingImagePrinter):
    def close(self):
        super().close()
        raise OSError("device gone")


class TestReceiptPrinterInit:
    """Tests for ReceiptPrinter.__init__."""

    def test_defaults_from_config(self, mock_config, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        p = ReceiptPrinter()
        assert p.width == 512
        assert p.temp_dir == tmp_path
        assert p.arabic_digits is False
        assert p._mock is True

    def test_explicit_options(self, tmp_path):
        p = ReceiptPrinter(width=384, temp_dir=tmp_path, arabic_digits=True)
        assert p.width == 384
        assert p.temp_dir == tmp_path
        assert p.arabic_digits is True

    def test_temp_dir_from_config(self, mock_config, tmp_path):
        mock_config.TEMP_DIR = str(tmp_path)
        assert ReceiptPrinter().temp_dir == tmp_path


class TestGetImage:
    """Tests for the side-effect free image accessors."""

    def test_get_image_returns_png(self, big_store_receipt, tmp_path):
        p = ReceiptPrinter(temp_dir=tmp_path)
        png = p.get_image(big_store_receipt)
        assert png.startswith(b"\x89PNG")
        assert list(tmp_path.iterdir()) == []

    def test_render_uses_configured_width(self, big_store_receipt):
        image = ReceiptPrinter(width=384).render(big_store_receipt)
        assert image.size == (384, 505)

    def test_get_image_is_deterministic(self, arabic_receipt):
        p = ReceiptPrinter()
        assert p.get_image(arabic_receipt) == p.get_image(arabic_receipt)


@pytest.mark.asyncio
class TestPrintReceipt:
    """Tests for ReceiptPrinter.print_receipt."""

    async def test_print_sends_image_then_cut_and_close(self, device, big_store_receipt, tmp_path):
        p = ReceiptPrinter(temp_dir=tmp_path)
        result = await p.print_receipt(big_store_receipt)

        assert result == PrintResult(success=True, message="Receipt printed successfully")
        assert device.command_names() == ["open", "set", "image", "cut", "close"]
        assert device.calls[1] == ("set", (), {"align": "center"})

    async def test_image_uses_temp_png_with_density_preset(self, device, big_store_receipt, tmp_path):
        p = ReceiptPrinter(temp_dir=tmp_path)
        await p.print_receipt(big_store_receipt, density="s8")

        _, args, kwargs = device.calls[2]
        path = args[0]
        assert path.startswith(str(tmp_path))
        assert path.endswith(".png")
        assert "receipt_" in path
        assert kwargs == {"impl": "bitImageColumn", **DENSITY_PRESETS["s8"]}

    async def test_default_density_is_d24(self, device, big_store_receipt, tmp_path):
        await ReceiptPrinter(temp_dir=tmp_path).print_receipt(big_store_receipt)
        _, _, kwargs = device.calls[2]
        assert kwargs["high_density_vertical"] is True
        assert kwargs["high_density_horizontal"] is True

    async def test_temp_file_deleted_after_print(self, device, big_store_receipt, tmp_path):
        await ReceiptPrinter(temp_dir=tmp_path).print_receipt(big_store_receipt)
        assert list(tmp_path.iterdir()) == []

    async def test_unknown_density_rejected_before_opening(self, device, big_store_receipt, tmp_path):
        with pytest.raises(ValueError, match="Unknown density"):
            await ReceiptPrinter(temp_dir=tmp_path).print_receipt(big_store_receipt, density="x")
        assert device.calls == []

    async def test_device_open_error_propagates(self, big_store_receipt, tmp_path):
        p = ReceiptPrinter(temp_dir=tmp_path)

        def fail_open():
            raise OSError("USB device not found")

        p._open_device = fail_open
        with pytest.raises(OSError, match="USB device not found"):
            await p.print_receipt(big_store_receipt)
        assert list(tmp_path.iterdir()) == []

    async def test_transfer_error_propagates_and_cleans_temp(self, monkeypatch, big_store_receipt, tmp_path):
        dev = FailingImagePrinter()
        monkeypatch.setattr(printer, "MockPrinter", lambda: dev)

        with pytest.raises(RuntimeError, match="USB write failed"):
            await ReceiptPrinter(temp_dir=tmp_path).print_receipt(big_store_receipt)
        assert "cut" not in dev.command_names()
        assert dev.command_names()[-1] == "close"
        assert list(tmp_path.iterdir()) == []

    async def test_close_failure_does_not_mask_write_error(self, monkeypatch, big_store_receipt, tmp_path, caplog):
        dev = FailingClosePrinter()
        monkeypatch.setattr(printer, "MockPrinter", lambda: dev)

        with pytest.raises(RuntimeError, match="USB write failed"):
            await ReceiptPrinter(temp_dir=tmp_path).print_receipt(big_store_receipt)
        assert dev.command_names()[-1] == "close"
        assert "Failed to close printer" in caplog.text

    async def test_rendering_error_propagates(self, device, tmp_path):
        bad = {"items": [{"name": "X", "qty": "many", "price": 1}], "total": 1}
        with pytest.raises(ValueError):
            await ReceiptPrinter(temp_dir=tmp_path).print_receipt(bad)
        assert "image" not in device.command_names()
        assert device.command_names() == ["open", "close"]

    async def test_print_logs_when_mock(self, device, big_store_receipt, tmp_path, caplog):
        caplog.set_level(logging.INFO)
        await ReceiptPrinter(temp_dir=tmp_path).print_receipt(big_store_receipt)
        assert "Printed receipt (mock)" in caplog.text


class TestParseKickCode:
    """Tests for parse_kick_code."""

    def test_five_bytes_padded_to_six(self):
        assert parse_kick_code("27,112,0,148,49") == bytes([27, 112, 0, 148, 49, 0])

    def test_six_bytes_kept(self):
        assert parse_kick_code("16,20,1,0,5,0") == bytes([16, 20, 1, 0, 5, 0])

    def test_hex_and_brackets(self):
        assert parse_kick_code("[0x1b, 0x70, 0, 25, 250]") == bytes([27, 112, 0, 25, 250, 0])

    @pytest.mark.parametrize("code", ["", "1,2,3,4,5,6,7", "27,112,256", "27,p,0"])
    def test_invalid_codes(self, code):
        with pytest.raises(ValueError):
            parse_kick_code(code)


@pytest.mark.asyncio
class TestOpenCashDrawer:
    """Tests for ReceiptPrinter.open_cash_drawer."""

    async def test_default_kick(self, device):
        result = await ReceiptPrinter().open_cash_drawer()
        assert result.success is True
        assert device.command_names() == ["open", "_raw", "close"]
        assert device.calls[1][1] == (bytes([27, 112, 0, 25, 250, 0]),)

    async def test_custom_kick_differs_from_default(self, monkeypatch):
        sent = []
        for code in (None, "27,112,0,148,49"):
            dev = MockPrinter()
            monkeypatch.setattr(printer, "MockPrinter", lambda: dev)
            await ReceiptPrinter().open_cash_drawer(code)
            sent.append(dev.calls[1][1][0])

        assert all(len(kick) == 6 for kick in sent)
        assert sent[0] != sent[1]
        assert sent[1] == bytes([27, 112, 0, 148, 49, 0])

    async def test_invalid_kick_code_does_not_open_device(self, device):
        with pytest.raises(ValueError):
            await ReceiptPrinter().open_cash_drawer("999")
        assert device.calls == []

    async def test_write_error_closes_device_and_propagates(self, monkeypatch):
        dev = FailingRawPrinter()
        monkeypatch.setattr(printer, "MockPrinter", lambda: dev)

        with pytest.raises(RuntimeError, match="USB write failed"):
            await ReceiptPrinter().open_cash_drawer()
        assert dev.command_names() == ["open", "_raw", "close"]


class TestUsbDevice:
    """Tests for the real USB path without hardware."""

    def test_missing_usb_ids_raise(self, mock_config):
        mock_config.MOCK_PRINTER = False
        mock_config.USB_VENDOR_ID = None
        mock_config.USB_PRODUCT_ID = None
        with patch("escpos.printer.Usb") as usb:
            with pytest.raises(ValueError, match="USB_VENDOR_ID"):
                ReceiptPrinter()._open_device()
            usb.assert_not_called()

    def test_usb_opened_with_config(self, mock_config):
        mock_config.MOCK_PRINTER = False
        mock_config.USB_VENDOR_ID = 0x0416
        mock_config.USB_PRODUCT_ID = 0x5011
        mock_config.USB_TIMEOUT = 0
        mock_config.USB_IN_EP = 0x82
        mock_config.USB_OUT_EP = 0x01
        mock_config.PRINTER_PROFILE = None
        with patch("escpos.printer.Usb") as usb:
            dev = ReceiptPrinter()._open_device()
        usb.assert_called_once_with(
            idVendor=0x0416,
            idProduct=0x5011,
            timeout=0,
            in_ep=0x82,
            out_ep=0x01,
            profile=None,
        )
        dev.open.assert_called_once_with()
