"""Shared fakes for the Selenium driver and suite observers."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Any, Callable, Iterator, Optional

import pytest
from selenium.common.exceptions import NoSuchElementException

from playback_harness.runtime import RunObserver


class FakeDriver:
    """Stands in for a Selenium WebDriver connected to the harness page.

    ``responder`` decides what ``execute_async_script`` returns: it receives
    the script and its arguments and returns a record, or raises. Commands
    that start while another one is still running are listed in
    ``overlapping``.
    """

    def __init__(
        self,
        session_id: Optional[str] = "fake-session",
        responder: Optional[Callable[[str, tuple], Any]] = None,
        ready_after: int = 1,
        get_error: Optional[Exception] = None,
        find_element_error: Optional[Exception] = None,
        log_error: Optional[Exception] = None,
        remote_log: str = "[test] > remote log",
    ):
        self.session_id = session_id
        self.capabilities = {"browserName": "chrome"}
        self.responder = responder or (lambda script, args: {"code": "loadeddata"})
        self.ready_after = ready_after
        self.get_error = get_error
        self.find_element_error = find_element_error
        self.log_error = log_error
        self.remote_log = remote_log
        self.page_source = "<html><body id='other-page'></body></html>"
        self.script_timeout: Optional[float] = None
        self.visited: list[str] = []
        self.executed: list[tuple[str, tuple]] = []
        self.quit_calls = 0
        self.overlapping: list[str] = []
        self._in_flight = 0
        self._lock = threading.Lock()

    @contextmanager
    def _command(self, name: str) -> Iterator[None]:
        with self._lock:
            if self._in_flight:
                self.overlapping.append(name)
            self._in_flight += 1
        try:
            yield
        finally:
            with self._lock:
                self._in_flight -= 1

    def set_script_timeout(self, seconds: float) -> None:
        self.script_timeout = seconds

    def get(self, url: str) -> None:
        with self._command("get"):
            if self.get_error is not None:
                raise self.get_error
            self.visited.append(url)

    def find_element(self, by: str, value: str) -> object:
        with self._command("find_element"):
            if self.find_element_error is not None:
                raise self.find_element_error
            if self.ready_after and len(self.visited) >= self.ready_after:
                return object()
            raise NoSuchElementException(f"no element matching {value}")

    def execute_async_script(self, script: str, *args: Any) -> Any:
        with self._command("execute_async_script"):
            self.executed.append((script, args))
            return self.responder(script, args)

    def execute_script(self, script: str, *args: Any) -> Any:
        with self._command("execute_script"):
            if self.log_error is not None:
                raise self.log_error
            return self.remote_log

    def quit(self) -> None:
        with self._command("quit"):
            self.quit_calls += 1


class FakeDriverFactory:
    """Driver factory that replays a list of outcomes, then keeps returning ``default``."""

    def __init__(self, outcomes: Optional[list[Any]] = None, default: Optional[FakeDriver] = None):
        self.outcomes = list(outcomes or [])
        self.default = default
        self.calls: list[tuple[Any, Any, str]] = []
        self.created: list[FakeDriver] = []

    def __call__(self, browser: Any, grid: Any, session_name: str) -> FakeDriver:
        self.calls.append((browser, grid, session_name))
        outcome = self.outcomes.pop(0) if self.outcomes else (self.default or FakeDriver())
        if isinstance(outcome, Exception):
            raise outcome
        self.created.append(outcome)
        return outcome


class RecordingObserver(RunObserver):
    """Observer that keeps every event for assertions."""

    def __init__(self) -> None:
        self.statuses: list[tuple[str, str]] = []
        self.started: list[Any] = []
        self.finished: list[Any] = []
        self.remote_logs: list[tuple[str, str]] = []

    async def on_status(self, message: str, level: str = "info") -> None:
        self.statuses.append((message, level))

    async def on_case_started(self, case: Any) -> None:
        self.started.append(case)

    async def on_case_finished(self, result: Any) -> None:
        self.finished.append(result)

    async def on_remote_log(self, label: str, log: str) -> None:
        self.remote_logs.append((label, log))

    def messages(self, level: Optional[str] = None) -> list[str]:
        return [message for message, lvl in self.statuses if level is None or lvl == level]


class SleepRecorder:
    """Awaitable sleep replacement that records requested delays."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleep_recorder() -> SleepRecorder:
    return SleepRecorder()


@pytest.fixture
def observer() -> RecordingObserver:
    return RecordingObserver()
