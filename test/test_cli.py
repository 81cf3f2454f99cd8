"""Tests for the command line entry point (mock printer)."""

import json
from unittest.mock import patch

import pytest

import cli


@pytest.fixture(autouse=True)
def mock_config(tmp_path, monkeypatch):
    """Run from tmp_path with MOCK_PRINTER=True."""
    monkeypatch.chdir(tmp_path)
    with patch("printer.config") as mock_cfg:
        mock_cfg.MOCK_PRINTER = True
        mock_cfg.RECEIPT_WIDTH = 512
        mock_cfg.TEMP_DIR = str(tmp_path)
        mock_cfg.ARABIC_DIGITS = False
        mock_cfg.PRINT_DENSITY = "d24"
        mock_cfg.DRAWER_KICK_CODE = "27,112,0,25,250"
        yield mock_cfg


@pytest.fixture
def receipt_file(tmp_path, big_store_receipt):
    path = tmp_path / "receipt.json"
    path.write_text(json.dumps(big_store_receipt), encoding="utf-8")
    return path


def test_init_writes_env_template(tmp_path, capsys):
    env = tmp_path / ".env"
    assert cli.main(["init", "--path", str(env)]) == 0
    content = env.read_text(encoding="utf-8")
    assert "USB_VENDOR_ID=" in content
    assert "PRINT_DENSITY=d24" in content
    assert "Created config" in capsys.readouterr().out


def test_init_keeps_existing_env(tmp_path, capsys):
    env = tmp_path / ".env"
    env.write_text("MOCK_PRINTER=true\n", encoding="utf-8")
    assert cli.main(["init", "--path", str(env)]) == 0
    assert env.read_text(encoding="utf-8") == "MOCK_PRINTER=true\n"
    assert "already exists" in capsys.readouterr().out


def test_preview_writes_png(tmp_path, receipt_file):
    out = tmp_path / "preview.png"
    assert cli.main(["preview", str(receipt_file), "-o", str(out)]) == 0
    assert out.read_bytes().startswith(b"\x89PNG")


def test_preview_respects_width(tmp_path, receipt_file):
    from PIL import Image

    out = tmp_path / "narrow.png"
    assert cli.main(["--width", "384", "preview", str(receipt_file), "-o", str(out)]) == 0
    with Image.open(out) as img:
        assert img.size == (384, 505)


def test_print_with_drawer(receipt_file, capsys):
    assert cli.main(["print", str(receipt_file), "--density", "s24", "--open-drawer"]) == 0
    out = capsys.readouterr().out
    assert "Receipt printed successfully" in out
    assert "Cash drawer opened successfully" in out


def test_drawer_with_custom_kick_code(capsys):
    assert cli.main(["drawer", "--kick-code", "27,112,0,148,49"]) == 0
    assert "Cash drawer opened successfully" in capsys.readouterr().out


def test_failure_returns_nonzero(capsys):
    assert cli.main(["drawer", "--kick-code", "1,2,3,4,5,6,7"]) == 1
    assert "Error:" in capsys.readouterr().err


def test_unknown_density_rejected_by_parser(receipt_file):
    with pytest.raises(SystemExit):
        cli.main(["print", str(receipt_file), "--density", "q9"])
