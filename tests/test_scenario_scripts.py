import pytest

from harness_page import HarnessPage
from playback_harness.probes import get_scenario
from playback_harness.tasks import StreamDescriptor

VOD = StreamDescriptor(name="vod", description="VOD stream", url="https://example.com/vod.m3u8")
ABR = StreamDescriptor(name="abr", description="ABR stream", url="https://example.com/abr.m3u8", abr=True)
LIVE = StreamDescriptor(name="live", description="Live stream", url="https://example.com/live.m3u8", live=True)
START_SEEK = StreamDescriptor(
    name="start", description="Start seek stream", url="https://example.com/start.m3u8", start_seek=True
)


def _start(scenario_id: str, stream: StreamDescriptor = VOD, **page_options) -> HarnessPage:
    page = HarnessPage(**page_options)
    page.start(get_scenario(scenario_id), stream)
    return page


def test_stream_is_started_with_injected_arguments() -> None:
    stream = StreamDescriptor(
        name="offset",
        description="Offset stream",
        url="https://example.com/offset.m3u8",
        config={"avBufferOffset": 2},
    )

    page = _start("idle-buffer-length", stream)

    assert page.value("harnessPage.started") == {
        "url": "https://example.com/offset.m3u8",
        "config": {"avBufferOffset": 2},
        "autoplay": False,
    }


def test_loaded_data_delivers_one_record() -> None:
    page = _start("loaded-data")

    page.fire("loadeddata")
    page.fire("loadeddata")

    assert page.records == [{"code": "loadeddata"}]
    assert "ignored extra completion (1)" in page.log


def test_page_error_completion_keeps_the_first_record() -> None:
    page = _start("loaded-data")

    page.page_error({"code": "hlsError", "details": "manifestLoadError"})
    page.fire("loadeddata")

    assert page.records == [{"code": "hlsError", "details": "manifestLoadError"}]
    assert page.delivered[0]["logs"] == ""
    assert "ignored extra completion (1)" in page.log


def test_delivered_record_carries_page_log() -> None:
    page = _start("seek-on-vod")
    page.set_video(duration=20)

    page.fire("loadeddata")
    page.advance(5000)
    page.set_buffered((0, 5), (10, 12), (15, 16))
    page.fire("progress")

    assert "[test] > found 3 buffered ranges" in page.delivered[0]["logs"]


@pytest.mark.parametrize(
    "max_buffer_length, buffer_end, completes",
    [
        (30, 29.9, False),
        (30, 30.0, True),
        (90, 58.9, False),
        (90, 59.0, True),
    ],
)
def test_idle_buffer_length_threshold(max_buffer_length, buffer_end, completes) -> None:
    page = _start("idle-buffer-length", max_buffer_length=max_buffer_length)
    page.set_video(duration=60)

    page.set_buffered((0, buffer_end))
    page.fire("progress")

    expected = [{"code": "loadeddata", "bufferEnd": buffer_end}] if completes else []
    assert page.records == expected


def test_idle_buffer_length_uses_stream_tolerance() -> None:
    stream = StreamDescriptor(
        name="offset",
        description="Offset stream",
        url="https://example.com/offset.m3u8",
        config={"avBufferOffset": 2},
    )
    page = _start("idle-buffer-length", stream, max_buffer_length=90)
    page.set_video(duration=60)

    page.fire("progress")
    page.set_buffered((0, 58))
    page.fire("progress")

    assert page.records == [{"code": "loadeddata", "bufferEnd": 58}]


def test_seek_on_vod_reports_buffer_gaps() -> None:
    page = _start("seek-on-vod")
    page.set_video(duration=20)

    page.set_buffered((0, 5), (8, 9), (12, 13))
    page.fire("progress")
    page.fire("loadeddata")
    page.advance(4999)
    assert page.seeks == []

    page.advance(1)
    assert page.seeks == [15]

    page.set_buffered((0, 5), (15, 16))
    page.fire("progress")
    assert page.records == []

    page.set_buffered((0, 5), (10, 12), (15, 16))
    page.fire("progress")
    page.fire("ended")

    assert page.records == [{"code": "buffer-gaps", "bufferedRanges": 3}]
    assert "ignored extra completion" not in page.log


def test_seek_on_vod_reaches_the_end() -> None:
    page = _start("seek-on-vod")
    page.set_video(duration=20)

    page.fire("loadeddata")
    page.fire("ended")
    assert page.records == []

    page.advance(5000)
    page.set_buffered((0, 5), (15, 20))
    page.fire("progress")
    page.fire("ended")

    assert page.records == [{"code": "ended"}]


def test_smooth_switch_measures_progress_after_reaching_top_level() -> None:
    page = _start("smooth-switch", ABR)

    page.trigger("FRAG_CHANGED")
    page.trigger("FRAG_CHANGED")
    assert page.value("harnessPage.switchRequests") == ["next"]

    page.trigger("LEVEL_SWITCHED", level=1)
    page.set_playhead(10)
    page.trigger("LEVEL_SWITCHED", level=2)
    page.set_playhead(11.8)
    page.advance(1999)
    assert page.records == []

    page.advance(1)
    page.trigger("LEVEL_SWITCHED", level=2)
    page.advance(2000)

    (record,) = page.records
    assert record["highestLevel"] == 2
    assert record["currentTimeDelta"] == pytest.approx(1.8)
    assert get_scenario("smooth-switch").expectation.verify(record).success


def test_smooth_switch_with_frozen_playback_fails_expectation() -> None:
    page = _start("smooth-switch", ABR, levels=2)

    page.trigger("FRAG_CHANGED")
    page.set_playhead(4)
    page.trigger("LEVEL_SWITCHED", level=1)
    page.advance(2000)

    assert page.records == [{"highestLevel": 1, "currentTimeDelta": 0}]
    assert not get_scenario("smooth-switch").expectation.verify(page.records[0]).success


def test_seek_on_live_waits_for_its_own_seek() -> None:
    page = _start("seek-on-live", LIVE)
    page.set_video(duration=120)

    page.fire("loadeddata")
    page.fire("seeked")
    assert page.records == []

    page.advance(5000)
    assert page.seeks == [115]

    page.fire("seeked")

    assert page.records == [{"code": "seeked"}]


@pytest.mark.parametrize(
    "buffered, later_playhead, expected",
    [
        ([(0, 10)], 3.0, True),
        ([(0, 10)], 1.0, False),
        ([], 3.0, False),
    ],
)
def test_is_playing_vod(buffered, later_playhead, expected) -> None:
    page = _start("is-playing-vod")
    page.set_buffered(*buffered)
    page.set_playhead(1.0)

    page.trigger("FRAG_CHANGED")
    page.set_playhead(later_playhead)
    page.advance(5000)

    assert page.records == [{"playing": expected}]


def test_seek_back_to_start_plays_again_after_seek() -> None:
    page = _start("seek-back-to-start", START_SEEK)

    page.fire("timeupdate")
    page.set_playhead(2)
    page.fire("timeupdate")
    page.fire("seeked")
    page.advance(500)
    assert page.seeks == [0]

    page.fire("timeupdate")
    assert page.records == []

    page.fire("seeked")
    page.set_playhead(0.5)
    page.fire("timeupdate")

    assert page.records == [{"playing": True}]


def test_seek_back_to_start_ignores_playback_while_paused() -> None:
    page = _start("seek-back-to-start", START_SEEK)
    page.set_video(paused=True)

    page.set_playhead(2)
    page.fire("timeupdate")
    page.advance(500)

    assert page.seeks == []
    assert page.records == []
