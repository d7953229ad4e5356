import pytest

from clipboard_errors import InvalidUtf8, TextTooLarge
from clipboard_validator import validate_text
from settings_manager import MAX_TEXT_BYTES


def test_max_text_bytes_is_ten_mebibytes():
    assert MAX_TEXT_BYTES == 10485760


@pytest.mark.parametrize("text", [
    "",
    "Hello, World!",
    "line one\nline two\r\n\ttabbed",
    "\x00\x07 control chars",
    "Hello 世界 🌍",
])
def test_ordinary_text_is_accepted(text):
    assert validate_text(text) is None


def test_text_exactly_at_limit_is_accepted():
    validate_text("a" * MAX_TEXT_BYTES)


def test_text_over_limit_is_rejected_with_size_and_limit():
    with pytest.raises(TextTooLarge) as exc_info:
        validate_text("a" * (MAX_TEXT_BYTES + 1))
    err = exc_info.value
    assert err.size == MAX_TEXT_BYTES + 1
    assert err.max == MAX_TEXT_BYTES
    assert "10485761" in str(err)
    assert "10485760" in str(err)


def test_limit_is_measured_in_utf8_bytes_not_characters():
    # 4 символа, но 12 байт
    validate_text("世界世界", max_bytes=12)
    with pytest.raises(TextTooLarge) as exc_info:
        validate_text("世界世界", max_bytes=11)
    assert exc_info.value.size == 12


def test_lone_surrogate_is_rejected():
    with pytest.raises(InvalidUtf8):
        validate_text("broken \ud800 text")
