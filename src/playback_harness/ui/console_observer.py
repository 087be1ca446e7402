"""Console observer for displaying suite execution."""

from typing import TYPE_CHECKING, Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from ..runtime import RunObserver
from ..verifiers import VerifierResult

if TYPE_CHECKING:
    from ..harness.orchestrator import RunResult, TestCase

_STATUS_STYLES = {
    "passed": "[green]PASS[/green]",
    "failed": "[red]FAIL[/red]",
    "error": "[bold red]ERROR[/bold red]",
    "not_run": "[dim]NOT RUN[/dim]",
}


class ConsoleObserver(RunObserver):
    """Observer that prints suite execution to console using Rich."""

    def __init__(self, console: Optional[Console] = None):
        """Initialize console observer.

        Args:
            console: Rich console instance (created if not provided)
        """
        self.console = console or Console()

    async def on_case_started(self, case: "TestCase") -> None:
        self.console.print(f"[bold cyan]→ {escape(case.title)}[/bold cyan] [dim]({escape(case.label)})[/dim]")

    async def on_case_finished(self, result: "RunResult") -> None:
        status = _STATUS_STYLES.get(result.status, result.status)
        timing = f" [dim]{result.execution_time_ms}ms[/dim]" if result.execution_time_ms is not None else ""
        self.console.print(f"{status} {escape(result.title)}{timing}")

        if result.error:
            self.console.print(f"[red]{escape(result.error)}[/red]")
        if result.verifier_results and not result.success:
            self._display_verifier_results(result.verifier_results)

    def _display_verifier_results(self, verifier_results: list[VerifierResult]) -> None:
        """Display verifier results."""
        table = Table(title="Expectation", show_lines=True)
        table.add_column("Check")
        table.add_column("Expected")
        table.add_column("Actual")
        table.add_column("Status")

        for result in verifier_results:
            status = "[green]PASS[/green]" if result.success else "[red]FAIL[/red]"
            if result.error:
                status = f"[red]FAIL[/red]\n[dim]{escape(result.error)}[/dim]"

            table.add_row(
                escape(result.name),
                escape(repr(result.expected_value)),
                escape(repr(result.actual_value)),
                status,
            )

        self.console.print(table)

    async def on_remote_log(self, label: str, log: str) -> None:
        self.console.print(Panel(Text(log.rstrip()), title=f"Remote log: {escape(label)}", border_style="dim"))

    async def on_status(self, message: str, level: str = "info") -> None:
        """Display status message."""
        if level == "error":
            self.console.print(f"[bold red]Error:[/bold red] {escape(message)}")
        elif level == "warning":
            self.console.print(f"[yellow]Warning:[/yellow] {escape(message)}")
        else:
            self.console.print(f"[dim]{escape(message)}[/dim]")
