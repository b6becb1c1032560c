"""Tests for file encoding detection."""

import logging

from fintrack.utils.encoding import decode_bytes, detect_encoding

TEXT = "Date,Description,Amount\n2024-01-15,Café,-3.50\n"


def test_utf8_with_bom():
    """A UTF-8 BOM is detected and stripped."""
    raw = b"\xef\xbb\xbf" + TEXT.encode("utf-8")

    assert detect_encoding(raw) == "utf-8"
    assert decode_bytes(raw) == TEXT


def test_utf16_with_bom():
    """UTF-16 with a BOM decodes to the same text."""
    raw = TEXT.encode("utf-16")

    assert detect_encoding(raw) == "utf-16"
    assert decode_bytes(raw) == TEXT


def test_utf16_le_without_bom():
    """NUL-padded text without a BOM is read as UTF-16."""
    raw = TEXT.encode("utf-16-le")

    assert detect_encoding(raw) == "utf-16-le"
    assert decode_bytes(raw) == TEXT


def test_windows_1252():
    """Bytes that are not UTF-8 fall through to Windows-1252."""
    raw = "Café £5".encode("cp1252")

    assert detect_encoding(raw) == "cp1252"
    assert decode_bytes(raw) == "Café £5"


def test_fallback_logs_warning(caplog):
    """When no candidate decodes, text is still returned and a warning logged."""
    with caplog.at_level(logging.WARNING, logger="fintrack.utils.encoding"):
        text = decode_bytes(b"Caf\xe9", candidates=("utf-8",))

    assert text == "Café"
    assert "Could not detect file encoding" in caplog.text


def test_empty_input():
    """Empty input decodes to an empty string."""
    assert decode_bytes(b"") == ""


def test_bytes_undefined_in_cp1252_use_latin1(caplog):
    """Bytes cp1252 leaves unassigned decode as latin-1 without a warning."""
    raw = b"Ref \x81\x8d 10.00"

    with caplog.at_level(logging.WARNING, logger="fintrack.utils.encoding"):
        text = decode_bytes(raw)

    assert detect_encoding(raw) == "latin-1"
    assert text == raw.decode("latin-1")
    assert caplog.text == ""
