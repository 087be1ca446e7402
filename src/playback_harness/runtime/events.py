"""Observer pattern for suite execution events."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..harness.orchestrator import RunResult, TestCase


class RunObserver(ABC):
    """Observer interface for suite execution events."""

    @abstractmethod
    async def on_status(self, message: str, level: str = "info") -> None:
        """Called for status updates.

        Args:
            message: Status message
            level: Log level (debug, info, warning, error)
        """

    @abstractmethod
    async def on_case_started(self, case: "TestCase") -> None:
        """Called right before a test case navigates and injects its probe.

        Args:
            case: The test case about to run
        """

    @abstractmethod
    async def on_case_finished(self, result: "RunResult") -> None:
        """Called once a test case has a final outcome.

        Args:
            result: Outcome of the test case
        """

    @abstractmethod
    async def on_remote_log(self, label: str, log: str) -> None:
        """Called with the harness page log collected after a test case.

        Args:
            label: Test case label
            log: Text log gathered from the remote runtime
        """
