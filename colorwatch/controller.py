"""Application controller that wires UI to the monitoring engine.

Handles all signal connections between MainWindow, MonitorEngine and
the alarm sound player, plus error handling and validation.
"""

from typing import Optional

from PySide6.QtCore import QObject, Slot

from colorwatch.core.capture import CaptureReason
from colorwatch.core.engine import MonitorEngine
from colorwatch.core.logging import get_logger
from colorwatch.core.model import AlarmState, FrameStats, MonitorSettings
from colorwatch.core.os_adapter.validation import validate_monitor_settings
from colorwatch.core.playback import QtPlaybackSink
from colorwatch.ui.main_window import MainWindow


class ApplicationController(QObject):
    """Controller that connects UI to the monitoring engine.

    Responsibilities:
    - Wire signals between MainWindow, MonitorEngine and QtPlaybackSink
    - Validate settings before starting
    - Manage error dialogs and recovery
    """

    def __init__(
        self,
        window: MainWindow,
        sink: QtPlaybackSink,
        engine: Optional[MonitorEngine] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        """Initialize the controller.

        Args:
            window: Main application window
            sink: Alarm sound player (UI thread)
            engine: Monitoring engine (created if None)
            parent: Parent QObject
        """
        super().__init__(parent)

        self._window = window
        self._sink = sink
        self._engine = engine or MonitorEngine(self)
        self._logger = get_logger()

        self._engine.set_playback_sink(sink)
        self._connect_signals()

    @property
    def engine(self) -> MonitorEngine:
        return self._engine

    def _connect_signals(self) -> None:
        """Connect all signals between window, engine and sink."""
        # Window -> Controller -> Engine / Sink
        self._window.start_monitoring.connect(self._on_start_requested)
        self._window.stop_monitoring.connect(self._on_stop_requested)
        self._window.alarm_file_selected.connect(self._on_alarm_file_selected)
        self._window.retry_playback.connect(self._on_retry_playback)

        # Engine -> Controller -> Window
        self._engine.state_changed.connect(self._on_state_changed)
        self._engine.stats_updated.connect(self._on_stats_updated)
        self._engine.frame_ready.connect(self._window.show_frame)
        self._engine.source_failed.connect(self._on_source_failed)
        self._engine.frames_missing.connect(self._on_frames_missing)
        self._engine.tick_failed.connect(self._on_tick_failed)
        self._engine.monitoring_finished.connect(self._on_monitoring_finished)

        # Sink -> Controller -> Window
        self._sink.playback_blocked.connect(self._on_playback_blocked)
        self._sink.source_loaded.connect(self._window.set_alarm_file)

    # Start/Stop handlers

    @Slot(object)
    def _on_start_requested(self, settings: MonitorSettings) -> None:
        """Handle start request from UI.

        Args:
            settings: Monitor settings for the run
        """
        validation = validate_monitor_settings(settings)
        if not validation.valid:
            error_msg = "\n".join(validation.errors)
            self._window.show_error_dialog("设置无效", error_msg)
            self._logger.error(f"设置验证失败: {error_msg}")
            return

        if not self._sink.has_source:
            self._logger.warning("未加载警报音文件,报警时将不会播放声音")

        if self._engine.start(settings):
            self._window.set_running(True)
        else:
            self._window.show_error_dialog(
                "启动失败",
                "无法启动监控,请检查日志",
            )

    @Slot()
    def _on_stop_requested(self) -> None:
        """Handle stop request."""
        self._engine.stop()

    @Slot(str)
    def _on_alarm_file_selected(self, path: str) -> None:
        """Load a new alarm sound."""
        if not self._sink.load(path):
            self._window.show_error_dialog("加载失败", f"无法加载警报音文件:\n{path}")

    @Slot()
    def _on_retry_playback(self) -> None:
        """Retry blocked playback from the user's click."""
        self._sink.retry_if_blocked()
        if not self._sink.is_blocked:
            self._window.clear_playback_blocked()

    # Engine handlers

    @Slot(AlarmState)
    def _on_state_changed(self, state: AlarmState) -> None:
        """Handle alarm state change from engine."""
        self._window.update_state(state)

    @Slot(object, AlarmState)
    def _on_stats_updated(self, stats: FrameStats, state: AlarmState) -> None:
        self._window.update_stats(stats, state)

    @Slot(str, CaptureReason)
    def _on_source_failed(self, message: str, reason: CaptureReason) -> None:
        """Handle a frame source that could not be used."""
        if self._window.show_capture_error_dialog(reason, message):
            self._logger.info("用户选择重试")
            self._on_start_requested(self._window.settings)
        else:
            self._logger.info("用户选择关闭")

    @Slot(int)
    def _on_frames_missing(self, count: int) -> None:
        self._window.show_warning(f"连续{count}次未获取到画面,请检查摄像头或屏幕区域")

    @Slot(str)
    def _on_tick_failed(self, message: str) -> None:
        self._window.show_warning(f"帧处理失败: {message}")

    @Slot()
    def _on_monitoring_finished(self) -> None:
        """Handle end of a run."""
        self._window.set_running(False)

    @Slot(str)
    def _on_playback_blocked(self, message: str) -> None:
        """Handle alarm sound that could not start."""
        self._window.show_playback_blocked(message)

    def shutdown(self) -> None:
        """Stop monitoring and silence the alarm before exit."""
        self._engine.shutdown()
        self._sink.stop_playback()
