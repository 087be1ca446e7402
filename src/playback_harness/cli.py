"""Main CLI entry point for the playback harness."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .constants import HARNESS_PORT, RESULTS_ROOT, SCRIPT_TIMEOUT_SECONDS
from .exceptions import CatalogError, ConfigurationError
from .grid import BrowserCapabilities, GridSettings, RemoteSessionManager, load_browser_capabilities
from .harness import (
    ResultBundle,
    TestHarness,
    TestHarnessConfig,
    harness_page_url,
    load_stream_catalog,
)
from .probes import SCENARIOS
from .reporting import ReportManager
from .runtime import RunContext
from .ui import ConsoleObserver, QuietObserver

app = typer.Typer(help="Run adaptive streaming playback scenarios in a remote browser")
console = Console()

_STATUS_LABELS = {
    "passed": "[green]✓ passed[/green]",
    "failed": "[red]✗ failed[/red]",
    "error": "[bold red]✗ error[/bold red]",
    "not_run": "[dim]- not run[/dim]",
}


@app.command()
def main(
    streams: Path = typer.Option(
        Path("streams.json"),
        "--streams",
        help="Path to the JSON stream catalog",
    ),
    browser_name: Optional[str] = typer.Option(
        None,
        "--browser",
        help="Browser name (defaults to UA, then chrome)",
    ),
    browser_version: Optional[str] = typer.Option(
        None,
        "--browser-version",
        help="Browser version (defaults to UA_VERSION, then latest)",
    ),
    platform: Optional[str] = typer.Option(
        None,
        "--platform",
        help="Operating system requested from the grid (defaults to OS)",
    ),
    grid_url: Optional[str] = typer.Option(
        None,
        "--grid-url",
        help="WebDriver hub URL (defaults to Sauce Labs when SAUCE_USERNAME/SAUCE_ACCESS_KEY are set)",
    ),
    harness_url: Optional[str] = typer.Option(
        None,
        "--harness-url",
        help="Harness page URL (defaults to the locally served functional test page)",
    ),
    port: int = typer.Option(
        HARNESS_PORT,
        "--port",
        help="Port of the locally served harness page",
    ),
    scenario: list[str] = typer.Option(
        [],
        "--scenario",
        help="Only run this scenario id (can be specified multiple times)",
    ),
    stream: list[str] = typer.Option(
        [],
        "--stream",
        help="Only run this stream (can be specified multiple times)",
    ),
    script_timeout: float = typer.Option(
        SCRIPT_TIMEOUT_SECONDS,
        "--script-timeout",
        help="Seconds a probe may run before it is reported as timed out",
    ),
    debug_logs: bool = typer.Option(
        False,
        "--debug-logs",
        help="Print the remote log for every case, not just failures",
    ),
    ui: str = typer.Option(
        "plain",
        "--ui",
        help="UI mode: plain (streaming output) or quiet (summary only)",
    ),
    results_dir: Path = typer.Option(
        Path(RESULTS_ROOT),
        "--results-dir",
        help="Directory where result files are written",
    ),
    env_file: Optional[Path] = typer.Option(
        None,
        "--env-file",
        help="Path to .env file",
    ),
    list_cases: bool = typer.Option(
        False,
        "--list",
        help="List the test cases that would run and exit",
    ),
) -> None:
    """Run the playback scenarios of every stream in the catalog."""
    load_dotenv(override=False)
    if env_file:
        load_dotenv(env_file, override=True)

    if ui not in ("plain", "quiet"):
        console.print(f"[red]Error:[/red] Unknown UI mode: {ui}")
        raise typer.Exit(1)

    known_scenarios = {definition.scenario_id for definition in SCENARIOS}
    unknown = [scenario_id for scenario_id in scenario if scenario_id not in known_scenarios]
    if unknown:
        console.print(f"[red]Error:[/red] Unknown scenario(s): {', '.join(unknown)}")
        console.print(f"[dim]Available: {', '.join(sorted(known_scenarios))}[/dim]")
        raise typer.Exit(1)

    try:
        grid = GridSettings.from_env(url=grid_url)
        browser = load_browser_capabilities(
            remote=grid.is_remote,
            name=browser_name,
            version=browser_version,
            platform=platform,
        )
        catalog = load_stream_catalog(streams)
    except (ConfigurationError, CatalogError) as exc:
        console.print(f"[red]Error:[/red] {escape(str(exc))}")
        raise typer.Exit(1)

    run_context = RunContext()
    if ui == "plain":
        run_context.add_observer(ConsoleObserver(console=console))
    else:
        run_context.add_observer(QuietObserver())

    suite_name = streams.stem
    session_manager = RemoteSessionManager(
        grid,
        session_name=f'"{suite_name}" on "{browser.description}"',
        run_context=run_context,
        script_timeout=script_timeout,
    )
    harness = TestHarness(
        streams=catalog,
        browser=browser,
        session_manager=session_manager,
        config=TestHarnessConfig(
            harness_url=harness_url or harness_page_url(remote=grid.is_remote, port=port),
            debug_logs=debug_logs,
            scenario_ids=set(scenario) or None,
            stream_names=set(stream) or None,
        ),
        run_context=run_context,
        suite_name=suite_name,
    )

    if list_cases:
        _print_cases(harness)
        return

    run_context.metadata.update(_run_metadata(browser, grid, harness.config))
    run_context.metadata["run_id"] = run_context.run_id

    console.print(f"[bold]Browser:[/bold] {escape(browser.description)}")
    console.print(f"[bold]Grid:[/bold] {escape(grid.redacted_url() or 'local browser')}")

    try:
        bundle = asyncio.run(harness.run())
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        raise typer.Exit(130)

    report_dir = ReportManager(results_dir).save_bundle(
        bundle,
        name=f"{suite_name}_{browser.name}_{run_context.run_id[:8]}",
        metadata=run_context.metadata,
    )

    _print_summary(bundle)
    console.print(f"[dim]Results: {report_dir}[/dim]")

    if not bundle.success:
        raise typer.Exit(1)


def _print_cases(harness: TestHarness) -> None:
    cases = harness.build_test_cases()
    table = Table(title=f"{len(cases)} test case(s)")
    table.add_column("#", justify="right")
    table.add_column("Stream")
    table.add_column("Scenario")
    table.add_column("Title")
    for case in cases:
        table.add_row(
            str(case.index + 1),
            escape(case.stream.name),
            case.scenario.scenario_id,
            escape(case.title),
        )
    console.print(table)


def _print_summary(bundle: ResultBundle) -> None:
    console.print("\n")
    console.rule("[bold]Summary[/bold]")

    if bundle.aborted:
        console.print(f"[bold red]Suite aborted:[/bold red] {escape(bundle.aborted)}")

    table = Table(show_lines=False)
    table.add_column("Test")
    table.add_column("Status")
    table.add_column("Time", justify="right")
    for result in bundle:
        timing = f"{result.execution_time_ms}ms" if result.execution_time_ms is not None else "-"
        table.add_row(
            escape(result.title),
            _STATUS_LABELS.get(result.status, result.status),
            timing,
        )
    console.print(table)

    summary = bundle.summary()
    console.print(f"\nTotal cases: {summary['total']}")
    console.print(f"Passed: [green]{summary['passed']}[/green]")
    console.print(f"Failed: [red]{summary['failed']}[/red]")
    console.print(f"Errors: [red]{summary['error']}[/red]")
    if summary["not_run"]:
        console.print(f"Not run: [dim]{summary['not_run']}[/dim]")


def _run_metadata(
    browser: BrowserCapabilities,
    grid: GridSettings,
    config: TestHarnessConfig,
) -> dict:
    return {
        "browser": browser.name,
        "browser_version": browser.version,
        "platform": browser.platform,
        "grid_url": grid.redacted_url(),
        "build": grid.build,
        "harness_url": config.harness_url,
        "scenarios": sorted(config.scenario_ids) if config.scenario_ids else None,
        "streams": sorted(config.stream_names) if config.stream_names else None,
    }


if __name__ == "__main__":
    app()
