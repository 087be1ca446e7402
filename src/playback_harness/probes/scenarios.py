"""Scenario library: the playback checks run against each stream.

Every scenario is a small state machine written as a probe body. It listens to
player and media element events through the ``probe`` context and completes
with one record. The controller side only knows which streams a scenario
applies to, the arguments it is injected with and what its record must hold.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from ..tasks import StreamDescriptor
from ..verifiers import RecordVerifier, Verifier
from .protocol import build_probe_script

LOADED_DATA_BODY = """
probe.video.onloadeddata = function () {
  probe.complete({ code: 'loadeddata' });
};
"""

IDLE_BUFFER_LENGTH_BODY = """
var video = probe.video;
var maxBufferLength = probe.player.config.maxBufferLength;
var tolerance = probe.config.avBufferOffset || 1;

video.onprogress = function () {
  var buffered = video.buffered;
  if (!buffered.length) {
    return;
  }
  var bufferEnd = buffered.end(buffered.length - 1);
  var duration = video.duration;
  probe.log('buffered up to ' + bufferEnd + 's of ' + duration + 's, max ' + maxBufferLength + 's');
  if (bufferEnd >= maxBufferLength || (duration > 0 && bufferEnd >= duration - tolerance)) {
    probe.complete({ code: 'loadeddata', bufferEnd: bufferEnd });
  }
};
"""

SMOOTH_SWITCH_BODY = """
var player = probe.player;
var video = probe.video;
var state = 'WAITING_SWITCH';

player.once(probe.events.FRAG_CHANGED, function () {
  state = 'SWITCHING';
  probe.switchToHighestLevel('next');
});

player.on(probe.events.LEVEL_SWITCHED, function (eventName, data) {
  var highestLevel = player.levels.length - 1;
  probe.log('level switched to ' + data.level + ' (highest ' + highestLevel + ')');
  if (state === 'DONE' || data.level !== highestLevel) {
    return;
  }
  state = 'DONE';
  var currentTime = video.currentTime;
  probe.later(function () {
    probe.complete({
      highestLevel: highestLevel,
      currentTimeDelta: video.currentTime - currentTime
    });
  }, probe.settings.switchSettleMs);
});
"""

SEEK_ON_LIVE_BODY = """
var video = probe.video;
var settings = probe.settings;
var state = 'WAITING_LOAD';

video.onloadeddata = function () {
  if (state !== 'WAITING_LOAD') {
    return;
  }
  state = 'SEEK_SCHEDULED';
  probe.later(function () {
    state = 'WAITING_SEEK';
    video.currentTime = video.duration - settings.seekFromEndSeconds;
  }, settings.seekDelayMs);
};

video.onseeked = function () {
  if (state !== 'WAITING_SEEK') {
    return;
  }
  state = 'DONE';
  probe.complete({ code: 'seeked' });
};
"""

SEEK_ON_VOD_BODY = """
var video = probe.video;
var settings = probe.settings;
var state = 'WAITING_LOAD';

video.onloadeddata = function () {
  if (state !== 'WAITING_LOAD') {
    return;
  }
  state = 'SEEK_SCHEDULED';
  probe.later(function () {
    video.currentTime = video.duration - settings.seekFromEndSeconds;
    state = 'WAITING_END';
  }, settings.seekDelayMs);
};

video.onprogress = function () {
  if (state !== 'WAITING_END') {
    return;
  }
  var ranges = video.buffered.length;
  if (ranges > settings.maxBufferedRanges) {
    state = 'DONE';
    probe.log('found ' + ranges + ' buffered ranges');
    probe.complete({ code: 'buffer-gaps', bufferedRanges: ranges });
  }
};

video.onended = function () {
  if (state !== 'WAITING_END') {
    return;
  }
  state = 'DONE';
  probe.complete({ code: 'ended' });
};
"""

IS_PLAYING_VOD_BODY = """
var video = probe.video;

probe.player.once(probe.events.FRAG_CHANGED, function () {
  var expectedPlaying = !(video.paused || video.ended || video.buffered.length === 0);
  var currentTime = video.currentTime;
  probe.log('expected playing: ' + expectedPlaying);
  if (!expectedPlaying) {
    probe.complete({ playing: false });
    return;
  }
  probe.later(function () {
    probe.complete({ playing: currentTime !== video.currentTime });
  }, probe.settings.playCheckDelayMs);
});
"""

SEEK_BACK_TO_START_BODY = """
var video = probe.video;
var state = 'PLAYING1';
var seekIssued = false;

function progressing() {
  return video.currentTime > 0 && !video.paused;
}

video.ontimeupdate = function () {
  if (!progressing()) {
    return;
  }
  if (state === 'PLAYING1') {
    state = 'SEEKING';
    probe.later(function () {
      seekIssued = true;
      video.currentTime = 0;
    }, probe.settings.seekBackDelayMs);
  } else if (state === 'PLAYING2') {
    state = 'DONE';
    probe.complete({ playing: true });
  }
};

video.onseeked = function () {
  if (state === 'SEEKING' && seekIssued) {
    state = 'PLAYING2';
  }
};
"""


def _always(stream: StreamDescriptor) -> bool:
    return True


def _live(stream: StreamDescriptor) -> bool:
    return stream.live


def _vod(stream: StreamDescriptor) -> bool:
    return not stream.live


@dataclass(frozen=True)
class ScenarioDefinition:
    """One scenario of the library.

    Attributes:
        scenario_id: Stable identifier, used in case labels and reports
        title: Test title template, formatted with the stream ``description``
        body: Probe body run in the harness page
        expectation: Check the returned record must pass
        applies: Static predicate over the stream descriptor
        autoplay: Whether the stream starts playing once loaded
        settings: Timing and threshold values handed to the body
    """

    scenario_id: str
    title: str
    body: str
    expectation: Verifier
    applies: Callable[[StreamDescriptor], bool] = _always
    autoplay: bool = True
    settings: Mapping[str, Any] = field(default_factory=dict)

    def applies_to(self, stream: StreamDescriptor, browser_name: str) -> bool:
        if stream.is_blacklisted_for(browser_name):
            return False
        return self.applies(stream)

    def title_for(self, stream: StreamDescriptor) -> str:
        return self.title.format(description=stream.description)

    def script(self) -> str:
        return build_probe_script(self.body)

    def probe_args(self, stream: StreamDescriptor) -> list[Any]:
        """Positional arguments for injection: url, config, autoplay, settings."""
        return [stream.url, stream.player_config(), self.autoplay, dict(self.settings)]


SCENARIOS: tuple[ScenarioDefinition, ...] = (
    ScenarioDefinition(
        scenario_id="loaded-data",
        title="should receive video loadeddata event for {description}",
        body=LOADED_DATA_BODY,
        expectation=RecordVerifier("code", "loadeddata"),
    ),
    ScenarioDefinition(
        scenario_id="seek-back-to-start",
        title="seek back to start and play for {description}",
        body=SEEK_BACK_TO_START_BODY,
        expectation=RecordVerifier("playing", True, "is"),
        applies=lambda stream: stream.start_seek,
        settings={"seekBackDelayMs": 500},
    ),
    ScenarioDefinition(
        scenario_id="smooth-switch",
        title=(
            'should "smooth switch" to highest level and still play(readyState === 4) '
            "after 12s for {description}"
        ),
        body=SMOOTH_SWITCH_BODY,
        expectation=RecordVerifier("currentTimeDelta", 0, "gt"),
        applies=lambda stream: stream.abr,
        settings={"switchSettleMs": 2000},
    ),
    ScenarioDefinition(
        scenario_id="seek-on-live",
        title="should seek near the end and receive video seeked event for {description}",
        body=SEEK_ON_LIVE_BODY,
        expectation=RecordVerifier("code", "seeked"),
        applies=_live,
        settings={"seekDelayMs": 5000, "seekFromEndSeconds": 5},
    ),
    ScenarioDefinition(
        scenario_id="idle-buffer-length",
        title="should buffer up to maxBufferLength or video.duration for {description}",
        body=IDLE_BUFFER_LENGTH_BODY,
        expectation=RecordVerifier("code", "loadeddata"),
        applies=_vod,
        autoplay=False,
    ),
    ScenarioDefinition(
        scenario_id="is-playing-vod",
        title="should play {description}",
        body=IS_PLAYING_VOD_BODY,
        expectation=RecordVerifier("playing", True, "is"),
        applies=_vod,
        settings={"playCheckDelayMs": 5000},
    ),
    ScenarioDefinition(
        scenario_id="seek-on-vod",
        title=(
            "should seek 5s from end and receive video ended event for {description} "
            "with 2 or less buffered ranges"
        ),
        body=SEEK_ON_VOD_BODY,
        expectation=RecordVerifier("code", "ended"),
        applies=_vod,
        settings={"seekDelayMs": 5000, "seekFromEndSeconds": 5, "maxBufferedRanges": 2},
    ),
)


def get_scenario(scenario_id: str) -> ScenarioDefinition:
    """Look up a scenario by id.

    Raises:
        KeyError: If no scenario has that id
    """
    for scenario in SCENARIOS:
        if scenario.scenario_id == scenario_id:
            return scenario
    raise KeyError(f"Unknown scenario: {scenario_id}")


def scenarios_for(
    stream: StreamDescriptor,
    browser_name: str,
    only: Optional[set[str]] = None,
) -> list[ScenarioDefinition]:
    """Scenarios that apply to a stream, in execution order.

    Args:
        stream: Stream descriptor
        browser_name: Active browser name, checked against the blacklist
        only: Optional set of scenario ids to restrict the selection to
    """
    return [
        scenario
        for scenario in SCENARIOS
        if scenario.applies_to(stream, browser_name)
        and (only is None or scenario.scenario_id in only)
    ]
