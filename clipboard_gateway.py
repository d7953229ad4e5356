# clipboard_gateway.py
"""
Шлюз к системному буферу обмена.

Буфер обмена ОС - единственный разделяемый изменяемый ресурс процесса.
Шлюз владеет его дескриптором (ClipboardHandle), пропускает к нему ровно
одну операцию за раз и переводит платформенные сбои в таксономию
ClipboardError. Никто, кроме шлюза, дескриптор не видит.
"""

import logging
import subprocess
import threading

import pyperclip

from clipboard_errors import (
    ClipboardError,
    ClipboardInitError,
    NoTextContent,
    OperationTimeout,
    PermissionDenied,
    PlatformError,
    Unavailable,
)
from settings_manager import OPERATION_TIMEOUT

logger = logging.getLogger(__name__)

# Фрагменты сообщений платформенных бэкендов (xclip, xsel, wl-clipboard,
# pbcopy, WinAPI), по которым мы узнаем вид ошибки. Сравнение в нижнем регистре.
_PERMISSION_MARKERS = ("permission denied", "access is denied", "not permitted")
_UNAVAILABLE_MARKERS = (
    "could not find a copy/paste mechanism",
    "can't open display",
    "cannot open display",
    "no display",
    "failed to connect to a wayland server",
)
_NO_TEXT_MARKERS = (
    "target string not available",
    "target utf8_string not available",
    "no suitable type of content",
    "nothing is copied",
)
_TIMEOUT_MARKERS = ("timed out", "timeout")


class PyperclipHandle:
    """
    Единственная живая привязка к буферу обмена ОС: пара функций copy/paste,
    которую pyperclip выбрал для текущей платформы.
    """

    def __init__(self, copy_func, paste_func):
        self._copy = copy_func
        self._paste = paste_func

    def set(self, text):
        self._copy(text)

    def get(self):
        return self._paste()


def open_clipboard():
    """
    Захватывает буфер обмена при старте процесса.
    Если pyperclip не нашел ни одного механизма, бросает ClipboardInitError:
    без буфера обслуживать запросы бессмысленно.
    """
    try:
        copy_func, paste_func = pyperclip.determine_clipboard()
    except Exception as e:
        raise ClipboardInitError(str(e)) from e
    # Заглушка pyperclip для "нет буфера" ложна в булевом контексте.
    if not copy_func or not paste_func:
        raise ClipboardInitError("no copy/paste mechanism found for this system")
    logger.info("Буфер обмена инициализирован: %s", getattr(copy_func, "__name__", copy_func))
    return PyperclipHandle(copy_func, paste_func)


def _windows_error_code(exc):
    code = getattr(exc, "winerror", None)
    if code is None and exc.__cause__ is not None:
        code = getattr(exc.__cause__, "winerror", None)
    return code


def classify_platform_error(exc, timeout=OPERATION_TIMEOUT) -> ClipboardError:
    """Переводит исключение платформенного бэкенда в ClipboardError."""
    if isinstance(exc, ClipboardError):
        return exc
    if isinstance(exc, (pyperclip.PyperclipTimeoutException, TimeoutError, subprocess.TimeoutExpired)):
        return OperationTimeout(timeout)
    if isinstance(exc, PermissionError) or _windows_error_code(exc) == 5:
        return PermissionDenied(str(exc))
    if isinstance(exc, FileNotFoundError):
        return Unavailable(str(exc))

    message = str(exc)
    if isinstance(exc, subprocess.CalledProcessError) and exc.stderr:
        stderr = exc.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        message = f"{message} {stderr.strip()}"
    lowered = message.lower()

    if any(marker in lowered for marker in _PERMISSION_MARKERS):
        return PermissionDenied(message)
    if any(marker in lowered for marker in _UNAVAILABLE_MARKERS):
        return Unavailable(message)
    if any(marker in lowered for marker in _NO_TEXT_MARKERS):
        return NoTextContent()
    if any(marker in lowered for marker in _TIMEOUT_MARKERS):
        return OperationTimeout(timeout)
    return PlatformError(message or type(exc).__name__)


class ClipboardGateway:
    def __init__(self, handle, timeout=OPERATION_TIMEOUT):
        self._handle = handle
        self.timeout = timeout
        # Один замок на весь процесс: API буфера обмена ОС нереентерабельны.
        self._lock = threading.Lock()
        self._stuck_worker = None

    def set(self, text):
        """Заменяет содержимое буфера обмена текстом text."""
        self._run("set", self._handle.set, text)

    def get(self):
        """Читает текст из буфера обмена."""
        content = self._run("get", self._handle.get)
        if content is None or not isinstance(content, str):
            raise NoTextContent()
        return content

    def _run(self, op_name, func, *args):
        """
        Выполняет операцию в отдельном потоке под замком.
        Ожидание замка, ожидание ранее зависшего потока и сама операция
        ограничены self.timeout каждое; по истечении срока замок все равно
        освобождается, а зависший поток запоминается.
        """
        if not self._lock.acquire(timeout=self.timeout):
            logger.warning("Буфер обмена занят дольше %ss, операция '%s' отклонена.", self.timeout, op_name)
            raise OperationTimeout(self.timeout)
        try:
            # Брошенный по таймауту поток может все еще сидеть в нативном вызове.
            # Пока он жив, новых операций к буферу обмена не пускаем.
            if self._stuck_worker is not None:
                self._stuck_worker.join(self.timeout)
                if self._stuck_worker.is_alive():
                    logger.error("Предыдущая операция с буфером обмена все еще висит, операция '%s' отклонена.", op_name)
                    raise OperationTimeout(self.timeout)
                self._stuck_worker = None

            outcome = {}

            def target():
                try:
                    outcome["value"] = func(*args)
                except Exception as e:
                    outcome["error"] = e

            worker = threading.Thread(target=target, name=f"clipboard-{op_name}", daemon=True)
            worker.start()
            worker.join(self.timeout)

            if worker.is_alive():
                self._stuck_worker = worker
                logger.error("Операция '%s' с буфером обмена не завершилась за %ss. Поток брошен, но может "
                             "оставаться в нативном вызове; следующие операции ждут его завершения.",
                             op_name, self.timeout)
                raise OperationTimeout(self.timeout)
            if "error" in outcome:
                error = classify_platform_error(outcome["error"], self.timeout)
                logger.warning("Операция '%s' с буфером обмена не удалась: %s", op_name, error)
                if error is outcome["error"]:
                    raise error
                raise error from outcome["error"]
            return outcome.get("value")
        finally:
            self._lock.release()
