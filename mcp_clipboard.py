# mcp_clipboard.py
"""
MCP-сервер буфера обмена поверх stdio.

Одна строка = один JSON-RPC документ (UTF-8). Входящие сообщения читаются из
stdin, ответы пишутся в stdout, журнал уходит в stderr.
"""

import json
import logging
import queue
import sys
import threading
from typing import Optional

import typer

from clipboard_dispatcher import ToolDispatcher, ToolRequest
from clipboard_errors import (
    ClipboardInitError,
    INTERNAL_ERROR,
    INVALID_REQUEST,
    InvalidParameters,
    JsonRpcError,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
)
from clipboard_gateway import ClipboardGateway, open_clipboard
from mcp_registry import (
    SERVER_INSTRUCTIONS,
    SERVER_NAME,
    SERVER_VERSION,
    list_tools,
    resolve_tool_name,
)
from settings_manager import SettingsError, load_settings, parse_log_level

logger = logging.getLogger(__name__)

DEFAULT_PROTOCOL_VERSION = "2024-11-05"
LOG_FORMAT = "%(asctime)s %(levelname)s: %(message)s"

# Состояния сессии
AWAITING_MESSAGE = "awaiting-message"
DISPATCHING = "dispatching"
CLOSED = "closed"

_EOF = object()


# --- Хелперы (стандартные) ---
def make_error_response(id_, code, message): return {"jsonrpc": "2.0", "id": id_, "error": {"code": code, "message": message}}
def make_success_response(id_, result): return {"jsonrpc": "2.0", "id": id_, "result": result}


class ClipboardServer:
    """
    Session Loop: читает сообщения, передает их диспетчеру, пишет ответы.
    Сообщения обрабатываются строго по одному, в порядке поступления.
    Отдельный поток-читатель продолжает принимать байты в очередь, пока
    идет медленная операция с буфером обмена.
    """

    def __init__(self, dispatcher: ToolDispatcher, instream=None, outstream=None):
        self.dispatcher = dispatcher
        self.instream = instream if instream is not None else sys.stdin.buffer
        self.outstream = outstream if outstream is not None else sys.stdout
        self.state = AWAITING_MESSAGE
        self._inbox = queue.Queue()

    # --- Основной цикл ---

    def serve_forever(self):
        reader = threading.Thread(target=self._read_stream, name="stdio-reader", daemon=True)
        reader.start()
        logger.info("Сервер %s %s готов принимать запросы.", SERVER_NAME, SERVER_VERSION)

        while self.state != CLOSED:
            line = self._inbox.get()
            if line is _EOF:
                self.state = CLOSED
                break
            self.state = DISPATCHING
            try:
                response = self.handle_line(line)
            except Exception as e:
                # Последний рубеж: на каждое сообщение ровно один ответ, сессия живет дальше.
                logger.error("Необработанная ошибка при разборе сообщения: %s", e, exc_info=True)
                response = make_error_response(None, INTERNAL_ERROR, f"Internal error: {e}")
            if response is not None and not self._write(response):
                self.state = CLOSED
                break
            self.state = AWAITING_MESSAGE

        logger.info("Входной поток закрыт, сервер завершает работу.")

    def _read_stream(self):
        try:
            for line in self.instream:
                self._inbox.put(line)
        except (OSError, ValueError) as e:
            logger.error("Ошибка чтения входного потока: %s", e)
        finally:
            self._inbox.put(_EOF)

    def _write(self, response):
        # ASCII-экранирование: одиночные суррогаты из входа не ломают UTF-8 stdout.
        try:
            self.outstream.write(json.dumps(response) + "\n")
            self.outstream.flush()
        except (OSError, ValueError) as e:
            logger.error("Выходной поток недоступен, сессия закрывается: %s", e)
            return False
        return True

    # --- Разбор и маршрутизация ---

    def handle_line(self, line) -> Optional[dict]:
        """Декодирует одну строку и возвращает ответ (или None для уведомлений и пустых строк)."""
        if isinstance(line, bytes):
            try:
                line = line.decode("utf-8")
            except UnicodeDecodeError as e:
                logger.warning("Сообщение не в UTF-8: %s", e)
                return make_error_response(None, PARSE_ERROR, "Parse error: message is not valid UTF-8")
        line = line.strip()
        if not line:
            return None
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.warning("Некорректный JSON: %s", e)
            return make_error_response(None, PARSE_ERROR, f"Parse error: {e.msg}")
        except RecursionError:
            logger.warning("Слишком глубокая вложенность JSON, сообщение отклонено.")
            return make_error_response(None, PARSE_ERROR, "Parse error: message is nested too deeply")
        return self.handle_message(message)

    def handle_message(self, message) -> Optional[dict]:
        if not isinstance(message, dict):
            return make_error_response(None, INVALID_REQUEST, "Invalid JSON-RPC request format")

        id_ = message.get("id")
        method = message.get("method")
        is_notification = "id" not in message

        if not isinstance(method, str) or not method:
            if is_notification:
                # Ответ клиента или мусор без id - отвечать некому.
                logger.debug("Пропущено сообщение без метода и id: %r", message)
                return None
            return make_error_response(id_, INVALID_REQUEST, "Invalid JSON-RPC request format")

        if is_notification and method.startswith("notifications/"):
            logger.debug("Уведомление: %s", method)
            return None

        try:
            result = self.call_method(id_, method, message.get("params"))
        except JsonRpcError as e:
            response = make_error_response(id_, e.code, e.message)
        else:
            response = make_success_response(id_, result)
        return None if is_notification else response

    def call_method(self, id_, method, params):
        if params is None:
            params = {}
        if not isinstance(params, dict):
            raise InvalidParameters("params must be an object")

        if method == "initialize":
            return {
                "protocolVersion": params.get("protocolVersion") or DEFAULT_PROTOCOL_VERSION,
                "capabilities": {"tools": {}},
                "serverInfo": {"name": SERVER_NAME, "version": SERVER_VERSION},
                "instructions": SERVER_INSTRUCTIONS,
            }
        if method == "ping":
            return {}
        if method == "tools/list":
            return {"tools": list_tools()}
        if method == "tools/call":
            name = params.get("name")
            if not isinstance(name, str) or not name:
                raise InvalidParameters("missing tool name")
            arguments = params.get("arguments")
            return self._call_tool(ToolRequest(id_, name, arguments if arguments is not None else {}))
        if resolve_tool_name(method) is not None:
            # Старый стиль наших MCP: имя инструмента прямо в method.
            return self._call_tool(ToolRequest(id_, method, params))
        raise JsonRpcError(METHOD_NOT_FOUND, f"Method not found: {method}")

    def _call_tool(self, request):
        result = self.dispatcher.dispatch(request)
        if not result.ok:
            raise result.error
        return {"content": [{"type": "text", "text": result.content}], "isError": False}


# --- Точка входа ---

app = typer.Typer(
    name="mcp-clipboard",
    help="Cross-platform MCP server for clipboard operations over stdio.",
    add_completion=False,
)


def _version_callback(value: bool):
    if value:
        typer.echo(f"{SERVER_NAME} {SERVER_VERSION}")
        raise typer.Exit()


def configure_logging(level):
    # stdout занят протоколом, поэтому журнал только в stderr.
    logging.basicConfig(stream=sys.stderr, level=level, format=LOG_FORMAT, force=True)


@app.command()
def serve(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="DEBUG, INFO, WARNING, ERROR"),
    version: bool = typer.Option(False, "--version", callback=_version_callback, is_eager=True,
                                 help="Show the version and exit."),
):
    """Serve clipboard tools over stdin/stdout until the input stream closes."""
    try:
        settings = load_settings()
        level = parse_log_level("--log-level", log_level) if log_level else settings.log_level
    except SettingsError as e:
        typer.echo(f"Configuration error: {e}", err=True)
        raise typer.Exit(2)

    configure_logging(level)
    logger.info("Запуск %s (лимит %d байт, таймаут %ss)", SERVER_NAME, settings.max_text_bytes, settings.timeout_seconds)

    try:
        handle = open_clipboard()
    except ClipboardInitError as e:
        logger.error("Критическая ошибка: %s", e)
        typer.echo(f"Error starting server: {e}", err=True)
        raise typer.Exit(1)

    gateway = ClipboardGateway(handle, timeout=settings.timeout_seconds)
    dispatcher = ToolDispatcher(gateway, max_text_bytes=settings.max_text_bytes)
    if hasattr(sys.stdout, "reconfigure"):
        sys.stdout.reconfigure(encoding="utf-8")
    ClipboardServer(dispatcher).serve_forever()


def main():
    app()


if __name__ == "__main__":
    main()
