"""Monitoring engine.

Runs the periodic tick loop in a worker thread:
acquire frame -> aggregate -> evaluate alarm -> (maybe) signal playback.
Frames are processed one at a time in arrival order; results reach the UI
thread as immutable FrameStats through queued Qt signals.
"""

import threading
import time
from typing import TYPE_CHECKING, Callable, Optional

from PySide6.QtCore import QObject, QThread, Signal

from .aggregate import EmptyFrameError
from .alarm import PlaybackSink
from .capture import (
    CameraFrameSource,
    CaptureError,
    CaptureReason,
    FrameSource,
    ScreenFrameSource,
)
from .classify import InvalidChannelValueError
from .constants import MISSED_FRAMES_WARNING
from .logging import Logger, get_logger
from .model import AlarmState, FrameStats, MonitorSettings, PlaybackResult
from .monitor import ColorMonitor

if TYPE_CHECKING:
    from .playback import QtPlaybackSink


def create_frame_source(settings: MonitorSettings) -> FrameSource:
    """Create the frame source selected by the settings."""
    if settings.region is not None:
        return ScreenFrameSource(settings.region)
    return CameraFrameSource(settings.camera_index)


class SignalPlaybackSink(QObject):
    """Playback sink for the worker thread.

    Forwards playback calls as signals; connected to a QtPlaybackSink on
    the UI thread they are delivered queued. The request is reported as
    STARTED since the outcome is only known on the UI thread, which
    reports failures through QtPlaybackSink.playback_blocked.
    """

    start_requested = Signal()
    stop_requested = Signal()

    def start_looping_playback(self) -> PlaybackResult:
        self.start_requested.emit()
        return PlaybackResult.STARTED

    def stop_playback(self) -> None:
        self.stop_requested.emit()

    def connect_to(self, sink: "QtPlaybackSink") -> None:
        """Forward requests to a UI-thread sink."""
        self.start_requested.connect(sink.start_looping_playback)
        self.stop_requested.connect(sink.stop_playback)


class MonitorWorker(QObject):
    """Worker that runs the tick loop in a separate thread."""

    # Signals for status updates
    state_changed = Signal(AlarmState)
    stats_updated = Signal(object, AlarmState)  # FrameStats, state
    frame_ready = Signal(object)  # RGBA np.ndarray for preview
    source_failed = Signal(str, CaptureReason)  # error message, reason; run ends
    frames_missing = Signal(int)  # consecutive ticks without a frame
    tick_failed = Signal(str)  # core error for one tick, run continues
    monitoring_finished = Signal()

    def __init__(
        self,
        settings: MonitorSettings,
        sink: PlaybackSink,
        logger: Optional[Logger] = None,
        source_factory: Callable[[MonitorSettings], FrameSource] = create_frame_source,
    ) -> None:
        """Initialize the worker.

        Args:
            settings: Monitor settings for this run
            sink: Playback sink (must be safe to call from the worker thread)
            logger: Logger instance (uses global if None)
            source_factory: Creates the frame source for the settings
        """
        super().__init__()

        self._settings = settings
        self._sink = sink
        self._logger = logger or get_logger()
        self._source_factory = source_factory

        self._stop_event = threading.Event()
        self._monitor: Optional[ColorMonitor] = None
        self._missed = 0

    @property
    def state(self) -> AlarmState:
        """Current alarm state."""
        if self._monitor is None:
            return AlarmState.Silent
        return self._monitor.state

    @property
    def latest_stats(self) -> Optional[FrameStats]:
        """Stats of the most recently processed frame."""
        if self._monitor is None:
            return None
        return self._monitor.latest_stats

    def request_stop(self) -> None:
        """Request stop (thread-safe)."""
        self._stop_event.set()

    def run(self) -> None:
        """Run the tick loop until stop is requested.

        This is called in the worker thread.
        """
        source = self._source_factory(self._settings)
        try:
            source.open()
        except CaptureError as e:
            self._logger.error(f"无法打开画面来源: {e}")
            self.source_failed.emit(str(e), e.reason)
            self.monitoring_finished.emit()
            return

        self._monitor = ColorMonitor(self._settings.config, self._sink, self._logger)
        self._logger.info(f"开始监控 (采样周期 {self._settings.interval_ms}ms)")
        interval = self._settings.interval_ms / 1000.0

        try:
            while not self._stop_event.is_set():
                started = time.monotonic()
                self._tick(source, self._monitor)
                elapsed = time.monotonic() - started
                self._stop_event.wait(max(0.0, interval - elapsed))
        except Exception as e:
            self._logger.error(f"监控错误: {e}")
            self.source_failed.emit(str(e), CaptureReason.UNKNOWN)
        finally:
            transition = self._monitor.stop()
            if transition is not None:
                self.state_changed.emit(transition.current)
            source.close()
            self.monitoring_finished.emit()

    def _tick(self, source: FrameSource, monitor: ColorMonitor) -> None:
        """Run one tick: read, aggregate, evaluate, report."""
        try:
            frame = source.read()
        except CaptureError as e:
            self._logger.error(f"获取画面失败: {e}")
            frame = None

        if frame is None:
            self._missed += 1
            if self._missed == MISSED_FRAMES_WARNING:
                self._logger.warning(f"连续{self._missed}次未获取到画面")
                self.frames_missing.emit(self._missed)
            return
        self._missed = 0

        try:
            result = monitor.tick(frame)
        except (EmptyFrameError, InvalidChannelValueError) as e:
            self._logger.error(f"帧处理失败: {e}")
            self.tick_failed.emit(str(e))
            return

        self.frame_ready.emit(frame)
        if result.stats is not None:
            self.stats_updated.emit(result.stats, result.state)
        if result.transition is not None:
            self.state_changed.emit(result.transition.current)


class MonitorEngine(QObject):
    """Main monitoring engine controller.

    Manages the worker thread and provides the interface for UI.
    """

    # Signals (forwarded from worker)
    state_changed = Signal(AlarmState)
    stats_updated = Signal(object, AlarmState)
    frame_ready = Signal(object)
    source_failed = Signal(str, CaptureReason)
    frames_missing = Signal(int)
    tick_failed = Signal(str)
    monitoring_finished = Signal()

    def __init__(self, parent: Optional[QObject] = None) -> None:
        """Initialize the engine."""
        super().__init__(parent)

        self._worker: Optional[MonitorWorker] = None
        self._thread: Optional[QThread] = None
        self._logger = get_logger()
        self._signal_sink = SignalPlaybackSink(self)

    @property
    def is_running(self) -> bool:
        """Check if monitoring is currently running."""
        return self._thread is not None and self._thread.isRunning()

    @property
    def state(self) -> AlarmState:
        """Get current alarm state."""
        if self._worker:
            return self._worker.state
        return AlarmState.Silent

    @property
    def latest_stats(self) -> Optional[FrameStats]:
        """Get the latest frame stats, if any."""
        if self._worker:
            return self._worker.latest_stats
        return None

    def set_playback_sink(self, sink: "QtPlaybackSink") -> None:
        """Route alarm playback to a UI-thread sink."""
        self._signal_sink.connect_to(sink)

    def start(self, settings: MonitorSettings) -> bool:
        """Start monitoring.

        Args:
            settings: Monitor settings

        Returns:
            True if started, False if already running
        """
        if self.is_running:
            self._logger.warning("监控已在运行中")
            return False

        # Create worker
        self._worker = MonitorWorker(settings, self._signal_sink, self._logger)

        # Connect signals
        self._worker.state_changed.connect(self.state_changed.emit)
        self._worker.stats_updated.connect(self.stats_updated.emit)
        self._worker.frame_ready.connect(self.frame_ready.emit)
        self._worker.source_failed.connect(self.source_failed.emit)
        self._worker.frames_missing.connect(self.frames_missing.emit)
        self._worker.tick_failed.connect(self.tick_failed.emit)
        self._worker.monitoring_finished.connect(self._on_finished)

        # Create thread
        self._thread = QThread()
        self._worker.moveToThread(self._thread)
        self._thread.started.connect(self._worker.run)
        self._worker.monitoring_finished.connect(self._thread.quit)
        self._thread.finished.connect(self._cleanup_thread)

        # Start
        self._thread.start()
        return True

    def stop(self) -> None:
        """Stop monitoring (no-op when not running)."""
        if self._worker:
            self._worker.request_stop()

    def shutdown(self) -> None:
        """Stop monitoring and wait for the worker thread to exit."""
        self.stop()
        if self._thread is not None:
            self._thread.quit()
            self._thread.wait()

    def _on_finished(self) -> None:
        """Handle worker finished."""
        self.monitoring_finished.emit()

    def _cleanup_thread(self) -> None:
        """Clean up thread resources."""
        if self._thread:
            self._thread.wait()
            self._thread = None
        self._worker = None
