"""Quiet observer - minimal output, no streaming logs."""

from typing import TYPE_CHECKING

from ..runtime import RunObserver

if TYPE_CHECKING:
    from ..harness.orchestrator import RunResult, TestCase


class QuietObserver(RunObserver):
    """Observer that produces no output - for summary-only mode."""

    async def on_status(self, message: str, level: str = "info") -> None:
        """Suppress status output."""
        pass

    async def on_case_started(self, case: "TestCase") -> None:
        pass

    async def on_case_finished(self, result: "RunResult") -> None:
        pass

    async def on_remote_log(self, label: str, log: str) -> None:
        """Suppress remote log output."""
        pass
