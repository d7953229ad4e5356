# settings_manager.py
import math
import os
from dataclasses import dataclass

from dotenv import load_dotenv, find_dotenv

MAX_TEXT_BYTES = 10 * 1024 * 1024
OPERATION_TIMEOUT = 5.0

# Переменная окружения -> (имя поля, значение по умолчанию)
ENV_SETTINGS = {
    "MCP_CLIPBOARD_MAX_TEXT_BYTES": ("max_text_bytes", MAX_TEXT_BYTES),
    "MCP_CLIPBOARD_TIMEOUT": ("timeout_seconds", OPERATION_TIMEOUT),
    "MCP_CLIPBOARD_LOG_LEVEL": ("log_level", "INFO"),
}

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class SettingsError(ValueError):
    pass


@dataclass(frozen=True)
class ServerSettings:
    """Настройки сервера. Читаются один раз при старте и больше не меняются."""
    max_text_bytes: int = MAX_TEXT_BYTES
    timeout_seconds: float = OPERATION_TIMEOUT
    log_level: str = "INFO"


def _parse_int(name, raw):
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise SettingsError(f"{name} must be an integer, got {raw!r}")
    if value <= 0:
        raise SettingsError(f"{name} must be positive, got {value}")
    return value


def _parse_float(name, raw):
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise SettingsError(f"{name} must be a number, got {raw!r}")
    if not math.isfinite(value) or value <= 0:
        raise SettingsError(f"{name} must be a positive finite number, got {value}")
    return value


def parse_log_level(name, raw):
    level = str(raw).strip().upper()
    if level not in _LOG_LEVELS:
        raise SettingsError(f"{name} must be one of {', '.join(_LOG_LEVELS)}, got {raw!r}")
    return level


_PARSERS = {
    "max_text_bytes": _parse_int,
    "timeout_seconds": _parse_float,
    "log_level": parse_log_level,
}


def load_settings(environ=None, use_dotenv=True) -> ServerSettings:
    """
    Собирает ServerSettings из окружения.
    Если environ не передан, сначала подтягивается .env (не перезаписывая уже
    заданные переменные), затем читается os.environ.
    """
    if environ is None:
        if use_dotenv:
            load_dotenv(find_dotenv(usecwd=True), override=False)
        environ = os.environ

    values = {}
    for env_name, (field, default) in ENV_SETTINGS.items():
        raw = environ.get(env_name)
        if raw is None or str(raw).strip() == "":
            values[field] = default
        else:
            values[field] = _PARSERS[field](env_name, raw)
    return ServerSettings(**values)
