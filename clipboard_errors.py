# clipboard_errors.py
"""
Таксономия ошибок MCP-сервера буфера обмена.

Две независимые семьи ошибок:
- ValidationError - текст не прошел проверку до обращения к ОС;
- ClipboardError - сбой самого буфера обмена (или его платформенного бэкенда).

Обе семьи локальны для валидатора и шлюза. Диспетчер перехватывает их и
превращает в JsonRpcError, который уже уходит клиенту.
"""

# --- Коды JSON-RPC (те же, что и во всех наших MCP) ---
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
DOMAIN_ERROR = -32000


class JsonRpcError(Exception):
    def __init__(self, code, message):
        super().__init__(message)
        self.code, self.message = code, message

    def to_dict(self):
        return {"code": self.code, "message": self.message}


class ToolNotFound(JsonRpcError):
    def __init__(self, name):
        super().__init__(METHOD_NOT_FOUND, f"Tool not found: {name}")
        self.name = name


class InvalidParameters(JsonRpcError):
    def __init__(self, message):
        super().__init__(INVALID_PARAMS, f"Invalid parameters: {message}")


# --- Ошибки валидации ---

class ValidationError(Exception):
    """Базовый класс: текст отклонен до побочных эффектов."""


class TextTooLarge(ValidationError):
    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max = max_size
        super().__init__(f"Text too large: {size} bytes exceeds maximum of {max_size} bytes")


class InvalidUtf8(ValidationError):
    def __init__(self):
        super().__init__("Text is not valid UTF-8")


class EmptyText(ValidationError):
    # Объявлено, но не используется: пустая строка - допустимая запись.
    def __init__(self):
        super().__init__("Text is empty")


# --- Ошибки буфера обмена ---

class ClipboardError(Exception):
    """Базовый класс для сбоев буфера обмена ОС."""

    description = "Clipboard error"

    def __init__(self, details: str = ""):
        self.details = details
        super().__init__(self._format())

    def _format(self):
        if self.details:
            return f"{self.description}: {self.details}"
        return self.description


class Unavailable(ClipboardError):
    description = "Clipboard is unavailable"


class PermissionDenied(ClipboardError):
    description = "Permission denied while accessing the clipboard"


class OperationTimeout(ClipboardError):
    def __init__(self, timeout: float):
        self.timeout = timeout
        super().__init__()

    def _format(self):
        return f"Clipboard operation timed out after {self.timeout:g} seconds"


class NoTextContent(ClipboardError):
    description = "Clipboard contains non-text data"


class PlatformError(ClipboardError):
    description = "Clipboard platform error"

    def _format(self):
        # У платформенной ошибки детали есть всегда, даже если пустые.
        return f"{self.description}: {self.details or 'unknown error'}"


class ClipboardInitError(Exception):
    """Фатально: механизм копирования/вставки не найден при старте процесса."""

    def __init__(self, details: str):
        self.details = details
        super().__init__(f"Failed to initialize clipboard: {details}")
