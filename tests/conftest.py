import threading
import time

import pytest

from clipboard_dispatcher import ToolDispatcher
from clipboard_gateway import ClipboardGateway


class FakeClipboard:
    """ClipboardHandle в памяти. Пишет посимвольно, чтобы гонки были видны."""

    def __init__(self):
        self.value = ""
        self.calls = 0
        self.active = 0
        self.max_active = 0
        self._counter_lock = threading.Lock()

    def _enter(self):
        with self._counter_lock:
            self.calls += 1
            self.active += 1
            self.max_active = max(self.max_active, self.active)

    def _leave(self):
        with self._counter_lock:
            self.active -= 1

    def set(self, text):
        self._enter()
        try:
            self.value = ""
            for ch in text:
                self.value += ch
                time.sleep(0)
        finally:
            self._leave()

    def get(self):
        self._enter()
        try:
            return self.value
        finally:
            self._leave()


class FailingClipboard(FakeClipboard):
    """Бросает заданное исключение первые `failures` раз, потом работает нормально."""

    def __init__(self, exc, failures=1):
        super().__init__()
        self.exc = exc
        self.failures = failures

    def set(self, text):
        if self.failures > 0:
            self.failures -= 1
            raise self.exc
        super().set(text)

    def get(self):
        if self.failures > 0:
            self.failures -= 1
            raise self.exc
        return super().get()


class HangingClipboard(FakeClipboard):
    """Зависает на тексте "hang", пока тест не отпустит release."""

    def __init__(self):
        super().__init__()
        self.release = threading.Event()
        self.entered = threading.Event()

    def set(self, text):
        if text == "hang":
            self.entered.set()
            self.release.wait(10)
            return
        super().set(text)


@pytest.fixture()
def fake_clipboard():
    return FakeClipboard()


@pytest.fixture()
def gateway(fake_clipboard):
    return ClipboardGateway(fake_clipboard, timeout=5)


@pytest.fixture()
def dispatcher(gateway):
    return ToolDispatcher(gateway)


@pytest.fixture()
def hanging_clipboard():
    handle = HangingClipboard()
    yield handle
    handle.release.set()
