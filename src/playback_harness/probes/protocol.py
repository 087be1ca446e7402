"""Injection of instrumented probes into the remote runtime.

A probe body is plain JavaScript that runs inside the harness page. It never
touches page globals directly; it receives a ``probe`` context object built by
the prelude below:

- ``probe.url``, ``probe.config``, ``probe.settings``: the stream and tuning values
- ``probe.player``, ``probe.events``: the player instance and its event names
- ``probe.video``: the media element
- ``probe.log(message)``, ``probe.logs()``: write to / read the page log
- ``probe.switchToHighestLevel(mode)``: force the top quality level
- ``probe.later(fn, ms)``: schedule a callback
- ``probe.complete(record)``: deliver the single result record

``probe.complete`` only delivers its first call; later calls are written to the
page log. On the controller side the delivered record goes through a
``ProbeCompletion``, which is single-assignment as well, and the wait is
bounded by the session's script timeout.
"""

from __future__ import annotations

import asyncio
import copy
from collections.abc import Mapping
from typing import Any, Optional, Sequence

from selenium.common.exceptions import JavascriptException, TimeoutException, WebDriverException

from ..constants import PROBE_DRAIN_SECONDS, PROBE_GRACE_SECONDS
from ..exceptions import ProbeExecutionError, ProbeTimeoutError, SessionStalledError
from ..grid.session import RemoteSession
from ..runtime import RunContext
from ..tasks import ProbeResult

PROBE_PRELUDE = """
var onComplete = arguments[arguments.length - 1];
var url = arguments[0];
var config = arguments[1] || {};
var autoplay = arguments[2] !== false;
var settings = arguments[3] || {};
var settled = false;
var ignoredCompletions = 0;

function log(message) {
  console.log('[test] > ' + message);
}

function complete(record) {
  if (settled) {
    ignoredCompletions += 1;
    log('ignored extra completion (' + ignoredCompletions + ')');
    return;
  }
  settled = true;
  record = record || {};
  if (record.logs === undefined) {
    record.logs = self.logString;
  }
  onComplete(record);
}

self.startStream(url, config, complete, autoplay);

var probe = {
  url: url,
  config: config,
  settings: settings,
  player: self.hls,
  events: self.Hls.Events,
  video: self.video,
  log: log,
  logs: function () { return self.logString; },
  switchToHighestLevel: function (mode) { self.switchToHighestLevel(mode); },
  later: function (fn, ms) { return self.setTimeout(fn, ms); },
  complete: complete
};
"""


def build_probe_script(body: str) -> str:
    """Wrap a probe body with the prelude that builds its context."""
    return f"{PROBE_PRELUDE}\n(function (probe) {{\n{body.strip()}\n}})(probe);\n"


class ProbeCompletion:
    """Single-assignment result channel for one probe invocation.

    The first ``resolve`` or ``fail`` wins. Later calls return False and never
    change what ``wait`` returns. Resolved records are
    deep-copied so later mutation of the source cannot leak into the result.
    """

    def __init__(self) -> None:
        self._future: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()

    @property
    def done(self) -> bool:
        return self._future.done()

    def resolve(self, record: Mapping[str, Any]) -> bool:
        if self._future.done():
            return False
        self._future.set_result(copy.deepcopy(dict(record)))
        return True

    def fail(self, exc: BaseException) -> bool:
        if self._future.done():
            return False
        self._future.set_exception(exc)
        return True

    async def wait(self, timeout: float) -> dict[str, Any]:
        """Wait for the first delivered outcome.

        Raises:
            ProbeTimeoutError: If nothing was delivered within ``timeout``
        """
        try:
            return await asyncio.wait_for(asyncio.shield(self._future), timeout)
        except asyncio.TimeoutError as exc:
            raise ProbeTimeoutError(
                f"Probe did not complete within {timeout:g}s"
            ) from exc


class ProbeRunner:
    """Runs instrumented scripts against a borrowed remote session.

    Timeouts are never retried here: a stalled playback probe is a scenario
    failure. Listeners left in the page are discarded by the next navigation.

    A WebDriver session takes one command at a time. When the controller-side
    bound fires first, the runner keeps waiting up to ``drain_seconds`` for
    the blocked ``execute_async_script`` to return before handing the session
    back. If it never does, the session is marked stalled.
    """

    def __init__(
        self,
        run_context: Optional[RunContext] = None,
        grace_seconds: float = PROBE_GRACE_SECONDS,
        drain_seconds: float = PROBE_DRAIN_SECONDS,
    ):
        """Initialize probe runner.

        Args:
            run_context: Context whose observers receive status updates
            grace_seconds: Controller-side wait added to the session's script
                timeout, so the grid's own timeout normally fires first
            drain_seconds: How long a timed-out command may stay in flight
                before the session is marked stalled
        """
        self.run_context = run_context or RunContext()
        self.grace_seconds = grace_seconds
        self.drain_seconds = drain_seconds

    async def run_probe(
        self,
        session: RemoteSession,
        body: str,
        args: Sequence[Any],
    ) -> ProbeResult:
        """Inject a probe body and wait for its single result record.

        Args:
            session: Open remote session (borrowed for this call only)
            body: Probe body, wrapped with the context prelude before injection
            args: Positional script arguments: url, config, autoplay, settings

        Returns:
            The first record the probe delivered

        Raises:
            ProbeTimeoutError: If the probe never completed in time
            SessionStalledError: If it timed out and its command never returned
            ProbeExecutionError: If the script raised or returned a non-record
        """
        script = build_probe_script(body)
        completion = ProbeCompletion()
        execution = asyncio.ensure_future(self._execute(session, script, args, completion))
        try:
            record = await completion.wait(session.script_timeout + self.grace_seconds)
        except ProbeTimeoutError as exc:
            if not execution.done():
                await self.run_context.notify_status(
                    f"{exc}; waiting up to {self.drain_seconds:g}s for the remote command",
                    "warning",
                )
                done, _ = await asyncio.wait({execution}, timeout=self.drain_seconds)
                if not done:
                    session.stalled = True
                    raise SessionStalledError(
                        f"{exc}; the remote command was still running "
                        f"{self.drain_seconds:g}s later"
                    ) from exc
            raise
        return ProbeResult(record)

    async def _execute(
        self,
        session: RemoteSession,
        script: str,
        args: Sequence[Any],
        completion: ProbeCompletion,
    ) -> None:
        try:
            value = await session.execute_async_script(script, *args)
        except TimeoutException as exc:
            completion.fail(
                ProbeTimeoutError(
                    f"Probe did not complete within the {session.script_timeout:g}s "
                    f"script timeout: {exc.msg or exc}"
                )
            )
        except JavascriptException as exc:
            message = exc.msg or str(exc)
            completion.fail(
                ProbeExecutionError(f"Probe script raised: {message}", remote_message=message)
            )
        except WebDriverException as exc:
            message = exc.msg or str(exc)
            completion.fail(
                ProbeExecutionError(f"Probe execution failed: {message}", remote_message=message)
            )
        except Exception as exc:
            completion.fail(exc)
        else:
            if isinstance(value, Mapping):
                completion.resolve(value)
            else:
                completion.fail(
                    ProbeExecutionError(
                        f"Probe completed with {type(value).__name__} instead of a record"
                    )
                )
