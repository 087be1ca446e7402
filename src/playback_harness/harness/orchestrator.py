"""Suite driver: builds the test case list and runs it on one remote session."""

from __future__ import annotations

import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Optional, overload

from ..constants import HARNESS_PAGE_PATH, HARNESS_PORT
from ..exceptions import (
    ExpectationFailure,
    NavigationError,
    PageNotReadyError,
    ProbeError,
    SessionAcquisitionError,
    SessionStalledError,
)
from ..grid import BrowserCapabilities, RemoteSession, RemoteSessionManager
from ..probes import ProbeRunner, ScenarioDefinition, scenarios_for
from ..runtime import RunContext
from ..tasks import ProbeResult, StreamDescriptor
from ..verifiers import VerifierResult

STATUS_PASSED = "passed"
STATUS_FAILED = "failed"
STATUS_ERROR = "error"
STATUS_NOT_RUN = "not_run"


def harness_page_url(
    remote: bool,
    port: int = HARNESS_PORT,
    path: str = HARNESS_PAGE_PATH,
) -> str:
    """URL of the harness page as seen from the browser.

    Remote grids reach the page through a tunnel on ``localhost``; local
    browsers use the loopback address directly.
    """
    host = "localhost" if remote else "127.0.0.1"
    return f"http://{host}:{port}{path}"


@dataclass(frozen=True)
class TestCase:
    """One (stream, scenario) pair, fixed before the suite starts."""

    __test__ = False

    index: int
    label: str
    title: str
    stream: StreamDescriptor
    scenario: ScenarioDefinition


@dataclass
class RunResult:
    """Outcome of a single test case.

    Attributes:
        case_index: Position of the case in the suite
        label: Short identifier, ``<stream>_<scenario>``
        title: Human-readable test title
        stream_name: Catalog key of the stream
        scenario_id: Scenario identifier
        status: passed, failed (expectation not met), error (probe or page
            failure) or not_run (suite aborted before the case)
        record: Probe record, when the probe completed
        verifier_results: Results of the scenario expectation
        error: Error message if the case did not pass
        error_type: Exception class name behind ``error``
        remote_log: Harness page log collected after the case
        page_source: Source of the page shown instead of the harness, when it
            never became ready
        execution_time_ms: Duration of the case in milliseconds
    """

    case_index: int
    label: str
    title: str
    stream_name: str
    scenario_id: str
    status: str
    record: Optional[ProbeResult] = None
    verifier_results: list[VerifierResult] = field(default_factory=list)
    error: Optional[str] = None
    error_type: Optional[str] = None
    remote_log: Optional[str] = None
    page_source: Optional[str] = None
    execution_time_ms: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == STATUS_PASSED

    @classmethod
    def for_case(cls, case: TestCase, status: str, **kwargs: Any) -> "RunResult":
        return cls(
            case_index=case.index,
            label=case.label,
            title=case.title,
            stream_name=case.stream.name,
            scenario_id=case.scenario.scenario_id,
            status=status,
            **kwargs,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert RunResult to dictionary for serialization.

        Returns:
            Dictionary representation suitable for JSON export
        """
        return {
            "case_index": self.case_index,
            "label": self.label,
            "title": self.title,
            "stream": self.stream_name,
            "scenario_id": self.scenario_id,
            "status": self.status,
            "success": self.success,
            "error": self.error,
            "error_type": self.error_type,
            "execution_time_ms": self.execution_time_ms,
            "record": self.record.without_logs() if self.record is not None else None,
            "verifier_results": [vr.to_dict() for vr in self.verifier_results],
            "remote_log": self.remote_log,
            "page_source": self.page_source,
        }


@dataclass
class ResultBundle(Sequence[RunResult]):
    """Wrapper around run results with summary helpers."""

    suite_name: str
    run_results: list[RunResult]
    browser: Optional[str] = None
    aborted: Optional[str] = None

    def __post_init__(self) -> None:
        self._run_results = list(self.run_results)

    def __len__(self) -> int:  # pragma: no cover - trivial
        return len(self._run_results)

    def __iter__(self):  # pragma: no cover - trivial
        return iter(self._run_results)

    @overload
    def __getitem__(self, index: int) -> RunResult: ...

    @overload
    def __getitem__(self, index: slice) -> Sequence[RunResult]: ...

    def __getitem__(self, index: int | slice) -> RunResult | Sequence[RunResult]:
        return self._run_results[index]

    @property
    def success(self) -> bool:
        return bool(self._run_results) and all(r.success for r in self._run_results)

    def summary(self) -> dict[str, int]:
        counts = {
            "total": len(self._run_results),
            STATUS_PASSED: 0,
            STATUS_FAILED: 0,
            STATUS_ERROR: 0,
            STATUS_NOT_RUN: 0,
        }
        for result in self._run_results:
            counts[result.status] = counts.get(result.status, 0) + 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        return {
            "suite_name": self.suite_name,
            "browser": self.browser,
            "aborted": self.aborted,
            "summary": self.summary(),
            "results": [result.to_dict() for result in self._run_results],
        }


@dataclass
class TestHarnessConfig:
    """Configuration for suite execution."""

    __test__ = False

    harness_url: str
    debug_logs: bool = False
    scenario_ids: Optional[set[str]] = None
    stream_names: Optional[set[str]] = None


class TestHarness:
    """Runs every applicable scenario of every stream on one remote session.

    The case list is built up front, so its size and order are known before
    any session is requested:

    ```python
    harness = TestHarness(
        streams=load_stream_catalog(Path("streams.json")),
        browser=browser,
        session_manager=RemoteSessionManager(grid, session_name="suite"),
        config=TestHarnessConfig(harness_url=harness_page_url(remote=True)),
    )
    bundle = await harness.run()
    ```

    Scenario failures are recorded and the next case runs. Session-level
    failures abort the remaining cases. The session is released exactly once.
    """

    __test__ = False

    def __init__(
        self,
        streams: Sequence[StreamDescriptor],
        browser: BrowserCapabilities,
        session_manager: RemoteSessionManager,
        config: TestHarnessConfig,
        probe_runner: Optional[ProbeRunner] = None,
        run_context: Optional[RunContext] = None,
        suite_name: str = "functional",
    ):
        """Initialize test harness.

        Args:
            streams: Stream descriptors in catalog order
            browser: Target browser descriptor
            session_manager: Owner of the remote session
            config: Suite configuration
            probe_runner: Runner used for probe injection
            run_context: Context whose observers receive suite events
            suite_name: Name used in the result bundle
        """
        self.streams = list(streams)
        self.browser = browser
        self.session_manager = session_manager
        self.config = config
        self.run_context = run_context or session_manager.run_context
        self.probe_runner = probe_runner or ProbeRunner(run_context=self.run_context)
        self.suite_name = suite_name

    def build_test_cases(self) -> list[TestCase]:
        """Enumerate the (stream, scenario) pairs to run, in execution order.

        Returns:
            Static list of test cases. Blacklisted streams contribute none.
        """
        cases: list[TestCase] = []
        for stream in self.streams:
            if self.config.stream_names is not None and stream.name not in self.config.stream_names:
                continue
            for scenario in scenarios_for(stream, self.browser.name, self.config.scenario_ids):
                cases.append(
                    TestCase(
                        index=len(cases),
                        label=f"{stream.name}_{scenario.scenario_id}",
                        title=scenario.title_for(stream),
                        stream=stream,
                        scenario=scenario,
                    )
                )
        return cases

    async def run(self) -> ResultBundle:
        """Acquire the session, run every case in order and release the session.

        Returns:
            ResultBundle with one RunResult per test case
        """
        cases = self.build_test_cases()
        results: list[RunResult] = []
        aborted: Optional[str] = None

        await self.run_context.notify_status(
            f"Running {len(cases)} test case(s) from {len(self.streams)} stream(s) "
            f"on {self.browser.description}"
        )

        try:
            if not cases:
                return self._bundle(results, aborted)

            try:
                session = await self.session_manager.acquire(self.browser)
            except SessionAcquisitionError as exc:
                aborted = str(exc)
                await self.run_context.notify_status(f"Aborting suite: {exc}", "error")
                await self._skip_remaining(cases, results, exc)
                return self._bundle(results, aborted)

            for position, case in enumerate(cases):
                try:
                    result = await self._run_case(session, case)
                except (NavigationError, PageNotReadyError) as exc:
                    aborted = str(exc)
                    await self.run_context.notify_status(
                        f"Aborting suite after {case.label}: {exc}", "error"
                    )
                    page_source = exc.page_source if isinstance(exc, PageNotReadyError) else None
                    result = RunResult.for_case(
                        case,
                        STATUS_ERROR,
                        error=str(exc),
                        error_type=type(exc).__name__,
                        page_source=page_source,
                    )
                    results.append(result)
                    await self.run_context.notify_case_finished(result)
                    await self._skip_remaining(cases[position + 1:], results, exc)
                    break
                results.append(result)
                await self.run_context.notify_case_finished(result)
                if session.stalled:
                    stalled = SessionStalledError(
                        f"session still busy with the probe of {case.label}"
                    )
                    aborted = str(stalled)
                    await self.run_context.notify_status(f"Aborting suite: {stalled}", "error")
                    await self._skip_remaining(cases[position + 1:], results, stalled)
                    break
        finally:
            await self.session_manager.release()

        return self._bundle(results, aborted)

    async def _run_case(self, session: RemoteSession, case: TestCase) -> RunResult:
        """Run a single test case.

        Navigation and readiness failures propagate: without the page no
        later case can run either. Probe and expectation failures are
        recorded on the returned RunResult. A stalled session is not asked
        for its log.
        """
        await self.run_context.notify_case_started(case)
        start_time = time.perf_counter()

        await self.session_manager.navigate_and_wait_ready(self.config.harness_url)

        record: Optional[ProbeResult] = None
        verifier_results: list[VerifierResult] = []
        error: Optional[str] = None
        error_type: Optional[str] = None

        try:
            record = await self.probe_runner.run_probe(
                session,
                case.scenario.body,
                case.scenario.probe_args(case.stream),
            )
            verifier_results = [case.scenario.expectation.verify(record)]
            self._check_expectation(verifier_results[0], record)
            status = STATUS_PASSED
        except ExpectationFailure as exc:
            status = STATUS_FAILED
            error = str(exc)
            error_type = type(exc).__name__
        except ProbeError as exc:
            status = STATUS_ERROR
            error = str(exc)
            error_type = type(exc).__name__
        except Exception as exc:
            status = STATUS_ERROR
            error = str(exc)
            error_type = type(exc).__name__

        remote_log = None
        if status != STATUS_PASSED or self.config.debug_logs:
            if record is not None:
                remote_log = record.logs
            elif not session.stalled:
                remote_log = await self.session_manager.fetch_remote_log()
            if remote_log:
                await self.run_context.notify_remote_log(case.label, remote_log)

        return RunResult.for_case(
            case,
            status,
            record=record,
            verifier_results=verifier_results,
            error=error,
            error_type=error_type,
            remote_log=remote_log,
            execution_time_ms=int((time.perf_counter() - start_time) * 1000),
        )

    @staticmethod
    def _check_expectation(verifier_result: VerifierResult, record: ProbeResult) -> None:
        if verifier_result.success:
            return
        detail = verifier_result.error or "Comparison failed"
        raise ExpectationFailure(
            f"Expected {verifier_result.name}: {detail}\n{record.describe()}"
        )

    async def _skip_remaining(
        self,
        cases: Sequence[TestCase],
        results: list[RunResult],
        cause: Exception,
    ) -> None:
        for case in cases:
            result = RunResult.for_case(
                case,
                STATUS_NOT_RUN,
                error=f"Not run: {cause}",
                error_type=type(cause).__name__,
            )
            results.append(result)
            await self.run_context.notify_case_finished(result)

    def _bundle(self, results: list[RunResult], aborted: Optional[str]) -> ResultBundle:
        return ResultBundle(
            suite_name=self.suite_name,
            run_results=results,
            browser=self.browser.description,
            aborted=aborted,
        )
