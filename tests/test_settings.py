import pytest

from settings_manager import (
    MAX_TEXT_BYTES,
    OPERATION_TIMEOUT,
    ServerSettings,
    SettingsError,
    load_settings,
)


def test_defaults_when_environment_is_empty():
    settings = load_settings({})
    assert settings == ServerSettings(MAX_TEXT_BYTES, OPERATION_TIMEOUT, "INFO")
    assert settings.max_text_bytes == 10485760
    assert settings.timeout_seconds == 5


def test_values_are_read_from_environment():
    settings = load_settings({
        "MCP_CLIPBOARD_MAX_TEXT_BYTES": "1024",
        "MCP_CLIPBOARD_TIMEOUT": "2.5",
        "MCP_CLIPBOARD_LOG_LEVEL": "debug",
    })
    assert settings.max_text_bytes == 1024
    assert settings.timeout_seconds == 2.5
    assert settings.log_level == "DEBUG"


def test_blank_values_fall_back_to_defaults():
    settings = load_settings({"MCP_CLIPBOARD_TIMEOUT": "  "})
    assert settings.timeout_seconds == OPERATION_TIMEOUT


@pytest.mark.parametrize("env", [
    {"MCP_CLIPBOARD_MAX_TEXT_BYTES": "lots"},
    {"MCP_CLIPBOARD_MAX_TEXT_BYTES": "0"},
    {"MCP_CLIPBOARD_TIMEOUT": "-1"},
    {"MCP_CLIPBOARD_TIMEOUT": "inf"},
    {"MCP_CLIPBOARD_TIMEOUT": "nan"},
    {"MCP_CLIPBOARD_LOG_LEVEL": "LOUD"},
])
def test_invalid_values_raise(env):
    with pytest.raises(SettingsError):
        load_settings(env)


def test_settings_are_immutable():
    settings = load_settings({})
    with pytest.raises(AttributeError):
        settings.timeout_seconds = 10
