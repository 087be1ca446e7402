import asyncio
import threading
import time

import pytest
from selenium.common.exceptions import JavascriptException, TimeoutException, WebDriverException

from conftest import FakeDriver
from playback_harness.exceptions import ProbeExecutionError, ProbeTimeoutError, SessionStalledError
from playback_harness.grid import RemoteSession
from playback_harness.probes import PROBE_PRELUDE, ProbeCompletion, ProbeRunner, build_probe_script
from playback_harness.runtime import RunContext
from playback_harness.tasks import ProbeResult

BODY = "probe.video.onloadeddata = function () { probe.complete({ code: 'loadeddata' }); };"
ARGS = ["https://example.com/stream.m3u8", {"debug": True}, True, {}]


def _session(responder, script_timeout: float = 1.0) -> RemoteSession:
    return RemoteSession(
        driver=FakeDriver(responder=responder),
        session_id="probe-session",
        script_timeout=script_timeout,
    )


def _raise(exc: Exception):
    def responder(script, args):
        raise exc

    return responder


async def test_completion_keeps_first_record() -> None:
    completion = ProbeCompletion()

    assert completion.resolve({"code": "loadeddata"})
    assert not completion.resolve({"code": "seeked"})
    assert not completion.fail(RuntimeError("late failure"))

    assert await completion.wait(0.1) == {"code": "loadeddata"}
    assert completion.done


async def test_completion_copies_record() -> None:
    completion = ProbeCompletion()
    source = {"code": "buffer-gaps", "ranges": [[0, 5], [10, 15]]}

    completion.resolve(source)
    source["code"] = "ended"
    source["ranges"].append([20, 25])

    record = await completion.wait(0.1)
    assert record == {"code": "buffer-gaps", "ranges": [[0, 5], [10, 15]]}


async def test_completion_failure_wins_when_first() -> None:
    completion = ProbeCompletion()
    assert completion.fail(ProbeExecutionError("boom"))
    assert not completion.resolve({"code": "loadeddata"})

    with pytest.raises(ProbeExecutionError, match="boom"):
        await completion.wait(0.1)


async def test_completion_wait_times_out() -> None:
    completion = ProbeCompletion()

    with pytest.raises(ProbeTimeoutError):
        await completion.wait(0.01)
    assert not completion.done


def test_probe_script_wraps_body_with_context() -> None:
    script = build_probe_script(BODY)

    assert script.startswith(PROBE_PRELUDE)
    assert "self.startStream(url, config, complete, autoplay);" in script
    assert BODY in script
    assert script.rstrip().endswith("})(probe);")


async def test_run_probe_returns_record_with_logs() -> None:
    session = _session(lambda script, args: {"code": "loadeddata", "logs": "[test] > ok"})

    record = await ProbeRunner().run_probe(session, BODY, ARGS)

    assert isinstance(record, ProbeResult)
    assert record["code"] == "loadeddata"
    assert record.logs == "[test] > ok"
    script, args = session.driver.executed[0]
    assert BODY in script
    assert list(args) == ARGS


async def test_run_probe_fills_missing_logs() -> None:
    session = _session(lambda script, args: {"playing": True})

    record = await ProbeRunner().run_probe(session, BODY, ARGS)

    assert record.logs == ""
    assert record.without_logs() == {"playing": True}


async def test_script_error_surfaces_remote_message() -> None:
    session = _session(_raise(JavascriptException("hls is not defined")))

    with pytest.raises(ProbeExecutionError, match="hls is not defined") as excinfo:
        await ProbeRunner().run_probe(session, BODY, ARGS)

    assert excinfo.value.remote_message == "hls is not defined"


async def test_grid_script_timeout_maps_to_probe_timeout() -> None:
    session = _session(_raise(TimeoutException("script timeout")))

    with pytest.raises(ProbeTimeoutError, match="script timeout"):
        await ProbeRunner().run_probe(session, BODY, ARGS)


async def test_driver_failure_maps_to_execution_error() -> None:
    session = _session(_raise(WebDriverException("session deleted")))

    with pytest.raises(ProbeExecutionError, match="session deleted"):
        await ProbeRunner().run_probe(session, BODY, ARGS)


async def test_non_record_result_is_an_error() -> None:
    session = _session(lambda script, args: None)

    with pytest.raises(ProbeExecutionError, match="NoneType"):
        await ProbeRunner().run_probe(session, BODY, ARGS)


async def test_timeout_waits_for_the_command_to_return(observer) -> None:
    def stall(script, args):
        time.sleep(0.3)
        return {"code": "loadeddata"}

    session = _session(stall, script_timeout=0.02)
    run_context = RunContext()
    run_context.add_observer(observer)
    runner = ProbeRunner(run_context=run_context, grace_seconds=0.02, drain_seconds=2.0)

    start = time.perf_counter()
    with pytest.raises(ProbeTimeoutError) as excinfo:
        await runner.run_probe(session, BODY, ARGS)

    assert not isinstance(excinfo.value, SessionStalledError)
    assert time.perf_counter() - start >= 0.3
    assert not session.stalled
    assert any("waiting up to 2s" in message for message in observer.messages("warning"))


async def test_command_that_never_returns_stalls_the_session() -> None:
    unblock = threading.Event()

    def hang(script, args):
        unblock.wait(5)
        return {"code": "loadeddata"}

    session = _session(hang, script_timeout=0.02)
    runner = ProbeRunner(grace_seconds=0.02, drain_seconds=0.05)

    try:
        with pytest.raises(SessionStalledError, match="still running"):
            await runner.run_probe(session, BODY, ARGS)
        assert session.stalled
    finally:
        unblock.set()
        await asyncio.sleep(0.1)


async def test_run_probe_is_not_retried(observer) -> None:
    session = _session(_raise(TimeoutException("script timeout")))
    run_context = RunContext()
    run_context.add_observer(observer)

    with pytest.raises(ProbeTimeoutError):
        await ProbeRunner(run_context=run_context).run_probe(session, BODY, ARGS)

    assert len(session.driver.executed) == 1
