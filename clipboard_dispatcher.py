# clipboard_dispatcher.py
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from clipboard_errors import (
    ClipboardError,
    DOMAIN_ERROR,
    INTERNAL_ERROR,
    InvalidParameters,
    JsonRpcError,
    ToolNotFound,
    ValidationError,
)
from clipboard_validator import validate_text
from mcp_registry import CLIPBOARD_GET, CLIPBOARD_SET, resolve_tool_name
from settings_manager import MAX_TEXT_BYTES

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolRequest:
    id: Any
    name: str
    arguments: dict = field(default_factory=dict)


@dataclass(frozen=True)
class ToolResult:
    content: Optional[str] = None
    error: Optional[JsonRpcError] = None

    @property
    def ok(self):
        return self.error is None

    @classmethod
    def success(cls, content):
        return cls(content=content)

    @classmethod
    def failure(cls, error):
        return cls(error=error)


class ToolDispatcher:
    """
    Сопоставляет имя инструмента с цепочкой Validator -> ClipboardGateway и
    упаковывает итог в ToolResult. Никогда не бросает исключений наружу:
    на каждый запрос Session Loop получает ровно один результат.
    """

    def __init__(self, gateway, max_text_bytes=MAX_TEXT_BYTES):
        self.gateway = gateway
        self.max_text_bytes = max_text_bytes
        self._tools = {
            CLIPBOARD_SET: self.clipboard_set,
            CLIPBOARD_GET: self.clipboard_get,
        }

    def dispatch(self, request: ToolRequest) -> ToolResult:
        tool_name = resolve_tool_name(request.name)
        if tool_name is None:
            logger.warning("Запрошен неизвестный инструмент: %r", request.name)
            return ToolResult.failure(ToolNotFound(request.name))

        logger.info("TOOL_CALL -> %s (id=%s)", tool_name, request.id)
        try:
            content = self._tools[tool_name](request.arguments)
        except JsonRpcError as e:
            result = ToolResult.failure(e)
        except (ValidationError, ClipboardError) as e:
            result = ToolResult.failure(JsonRpcError(DOMAIN_ERROR, str(e)))
        except Exception as e:
            logger.error("Непредвиденная ошибка в инструменте %s: %s", tool_name, e, exc_info=True)
            result = ToolResult.failure(JsonRpcError(INTERNAL_ERROR, f"Internal error: {e}"))
        else:
            result = ToolResult.success(content)

        if result.ok:
            logger.info("TOOL_CALL <- %s: ok, %d chars", tool_name, len(result.content))
        else:
            logger.info("TOOL_CALL <- %s: error %s: %s", tool_name, result.error.code, result.error.message)
        return result

    # --- Реализация инструментов ---

    def clipboard_set(self, arguments):
        if not isinstance(arguments, dict):
            raise InvalidParameters("arguments must be an object")
        if "text" not in arguments:
            raise InvalidParameters("missing required parameter 'text'")
        text = arguments["text"]
        if not isinstance(text, str):
            raise InvalidParameters("parameter 'text' must be a string")

        validate_text(text, self.max_text_bytes)
        self.gateway.set(text)
        # len() считает кодовые точки Unicode, а не байты UTF-8.
        return f"Successfully copied {len(text)} characters to clipboard"

    def clipboard_get(self, arguments):
        return self.gateway.get()
