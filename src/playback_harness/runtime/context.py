"""Runtime context for suite execution."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from .events import RunObserver

if TYPE_CHECKING:
    from ..harness.orchestrator import RunResult, TestCase


@dataclass
class RunContext:
    """Runtime context shared by the session manager, probe runner and suite driver.

    Centralizes:
    - Unique run ID used for result directories
    - Event observers for console output and reporting
    - Run metadata saved with the results
    """

    run_id: str = field(default_factory=lambda: str(uuid4()))
    observers: list[RunObserver] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def add_observer(self, observer: RunObserver) -> None:
        """Add an event observer."""
        self.observers.append(observer)

    async def notify_status(self, message: str, level: str = "info") -> None:
        """Notify observers of status updates."""
        for observer in self.observers:
            await observer.on_status(message, level)

    async def notify_case_started(self, case: "TestCase") -> None:
        for observer in self.observers:
            await observer.on_case_started(case)

    async def notify_case_finished(self, result: "RunResult") -> None:
        for observer in self.observers:
            await observer.on_case_finished(result)

    async def notify_remote_log(self, label: str, log: str) -> None:
        for observer in self.observers:
            await observer.on_remote_log(label, log)
