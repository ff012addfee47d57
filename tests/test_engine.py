"""Tests for the monitoring worker loop.

The worker's run() is called directly on the test thread with a
scripted frame source, so no event loop or camera is needed.

Verifies that:
- State changes and stats are emitted per tick
- Stopping while Active emits the final Silent state and one stop signal
- Source failures end the run with source_failed
- Missing frames and bad frames are reported without ending the run
"""

from typing import Callable, Optional

import numpy as np
import pytest

from colorwatch.core.capture import CaptureError, CaptureReason
from colorwatch.core.constants import MISSED_FRAMES_WARNING
from colorwatch.core.engine import MonitorWorker, SignalPlaybackSink
from colorwatch.core.logging import Logger
from colorwatch.core.model import AlarmState, MonitorSettings, PlaybackResult
from colorwatch.core.presets import GREEN_ONLY_CONFIG


def solid_frame(rgba: tuple) -> np.ndarray:
    frame = np.zeros((4, 4, 4), dtype=np.uint8)
    frame[:, :] = rgba
    return frame


GREEN_FRAME = solid_frame((0, 255, 0, 255))
GRAY_FRAME = solid_frame((128, 128, 128, 255))


class ScriptedSource:
    """Frame source replaying a fixed list, then requesting stop."""

    def __init__(self, frames: list, open_error: Optional[CaptureError] = None) -> None:
        self._frames = list(frames)
        self._open_error = open_error
        self.on_exhausted: Callable[[], None] = lambda: None
        self.opened = False
        self.closed = False

    def open(self) -> None:
        if self._open_error is not None:
            raise self._open_error
        self.opened = True

    def read(self) -> Optional[np.ndarray]:
        if self._frames:
            return self._frames.pop(0)
        self.on_exhausted()
        return None

    def close(self) -> None:
        self.closed = True


class RecordingSink:
    def __init__(self) -> None:
        self.calls: list[str] = []

    def start_looping_playback(self) -> PlaybackResult:
        self.calls.append("start")
        return PlaybackResult.STARTED

    def stop_playback(self) -> None:
        self.calls.append("stop")


class Recorder:
    """Collects emitted signal arguments."""

    def __init__(self) -> None:
        self.events: list[tuple] = []

    def record(self, *args) -> None:
        self.events.append(args)


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


def make_worker(source: ScriptedSource, sink: RecordingSink) -> MonitorWorker:
    settings = MonitorSettings(config=GREEN_ONLY_CONFIG, interval_ms=1)
    worker = MonitorWorker(settings, sink, Logger(), source_factory=lambda s: source)
    source.on_exhausted = worker.request_stop
    return worker


class TestMonitorWorker:
    """Test the tick loop."""

    def test_alarm_edges(self, sink: RecordingSink) -> None:
        """green, gray, gray, green -> Active then Silent, one start and one stop."""
        source = ScriptedSource([GREEN_FRAME, GRAY_FRAME, GRAY_FRAME, GREEN_FRAME])
        worker = make_worker(source, sink)
        states = Recorder()
        stats = Recorder()
        finished = Recorder()
        worker.state_changed.connect(states.record)
        worker.stats_updated.connect(stats.record)
        worker.monitoring_finished.connect(finished.record)

        worker.run()

        assert [e[0] for e in states.events] == [AlarmState.Active, AlarmState.Silent]
        assert len(stats.events) == 4
        assert sink.calls == ["start", "stop"]
        assert len(finished.events) == 1
        assert source.opened and source.closed

    def test_stop_while_active(self, sink: RecordingSink) -> None:
        """Ending the run silences the alarm."""
        source = ScriptedSource([GRAY_FRAME])
        worker = make_worker(source, sink)
        states = Recorder()
        worker.state_changed.connect(states.record)

        worker.run()

        assert [e[0] for e in states.events] == [AlarmState.Active, AlarmState.Silent]
        assert sink.calls == ["start", "stop"]

    def test_open_failure(self, sink: RecordingSink) -> None:
        """A source that cannot open ends the run immediately."""
        error = CaptureError("no camera", CaptureReason.NOT_FOUND)
        source = ScriptedSource([], open_error=error)
        worker = make_worker(source, sink)
        failed = Recorder()
        finished = Recorder()
        worker.source_failed.connect(failed.record)
        worker.monitoring_finished.connect(finished.record)

        worker.run()

        assert failed.events == [("no camera", CaptureReason.NOT_FOUND)]
        assert len(finished.events) == 1
        assert sink.calls == []

    def test_missing_frames_warning(self, sink: RecordingSink) -> None:
        """A run of missing frames is reported once."""
        source = ScriptedSource([None] * MISSED_FRAMES_WARNING)
        worker = make_worker(source, sink)
        missing = Recorder()
        worker.frames_missing.connect(missing.record)

        worker.run()

        assert missing.events == [(MISSED_FRAMES_WARNING,)]

    def test_bad_frame_does_not_end_run(self, sink: RecordingSink) -> None:
        """An empty frame is reported and the next frame is processed."""
        empty = np.zeros((0, 4), dtype=np.uint8)
        source = ScriptedSource([empty, GRAY_FRAME])
        worker = make_worker(source, sink)
        failed = Recorder()
        states = Recorder()
        worker.tick_failed.connect(failed.record)
        worker.state_changed.connect(states.record)

        worker.run()

        assert len(failed.events) == 1
        assert states.events[0] == (AlarmState.Active,)


class TestSignalPlaybackSink:
    """Test the cross-thread playback forwarder."""

    def test_forwards_requests(self) -> None:
        """Requests are emitted as signals."""
        forwarder = SignalPlaybackSink()
        started = Recorder()
        stopped = Recorder()
        forwarder.start_requested.connect(started.record)
        forwarder.stop_requested.connect(stopped.record)

        assert forwarder.start_looping_playback() == PlaybackResult.STARTED
        forwarder.stop_playback()

        assert len(started.events) == 1
        assert len(stopped.events) == 1
