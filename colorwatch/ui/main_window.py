"""Main window for ColorWatch application.

Combines all UI components into the main application window:
- Live video preview
- Run panel with status, settings and log
- Warning banner for missed frames and blocked playback
"""

from dataclasses import replace
from typing import Optional

import numpy as np
from PySide6.QtCore import Qt, Signal, Slot
from PySide6.QtGui import QImage, QPixmap
from PySide6.QtWidgets import (
    QLabel,
    QMainWindow,
    QMessageBox,
    QSizePolicy,
    QSplitter,
    QVBoxLayout,
    QWidget,
)

from colorwatch.core.capture import CaptureReason
from colorwatch.core.constants import PREVIEW_MAX_WIDTH
from colorwatch.core.logging import get_logger
from colorwatch.core.model import AlarmState, FrameStats, MonitorSettings, ThresholdConfig

from .run_panel import RunPanel
from .widgets import WarningBanner


def frame_to_qimage(frame: np.ndarray) -> QImage:
    """Convert an (H, W, 4) RGBA uint8 frame to a QImage.

    The image is copied, so it does not reference the frame's memory.
    """
    if frame.ndim != 3 or frame.shape[2] not in (3, 4):
        raise ValueError(f"Expected an (H, W, 3|4) frame, got shape {frame.shape}")

    frame = np.ascontiguousarray(frame, dtype=np.uint8)
    height, width, channels = frame.shape
    fmt = QImage.Format.Format_RGBA8888 if channels == 4 else QImage.Format.Format_RGB888
    image = QImage(frame.data, width, height, width * channels, fmt)
    return image.copy()


class VideoPreview(QLabel):
    """Shows the most recent frame, scaled down to the preview width."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.setMinimumSize(320, 240)
        self.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.setStyleSheet("background-color: #222; color: #aaa;")
        self.show_placeholder()

    def show_placeholder(self, text: str = "无画面") -> None:
        """Clear the preview."""
        self.clear()
        self.setText(text)

    def show_frame(self, frame: np.ndarray) -> None:
        """Display a frame."""
        pixmap = QPixmap.fromImage(frame_to_qimage(frame))
        width = min(PREVIEW_MAX_WIDTH, max(1, self.width()))
        if pixmap.width() > width:
            pixmap = pixmap.scaledToWidth(width, Qt.TransformationMode.SmoothTransformation)
        self.setPixmap(pixmap)


class MainWindow(QMainWindow):
    """Main application window.

    Contains:
    - Video preview (left panel)
    - Run panel with status and controls (right panel)
    """

    # Signals for engine communication
    start_monitoring = Signal(object)  # MonitorSettings
    stop_monitoring = Signal()
    alarm_file_selected = Signal(str)
    retry_playback = Signal()

    def __init__(
        self,
        configs: dict[str, ThresholdConfig],
        settings: MonitorSettings,
        parent: Optional[QWidget] = None,
    ) -> None:
        """Initialize the window.

        Args:
            configs: Selectable detection configurations by name
            settings: Initial settings; the selected configuration
                replaces settings.config on start
            parent: Parent widget
        """
        super().__init__(parent)

        self.setWindowTitle("ColorWatch - 颜色监控报警")
        self.setMinimumSize(960, 600)

        self._configs = dict(configs)
        self._settings = settings
        self._logger = get_logger()

        self._setup_ui()
        self._connect_signals()

        self._run_panel.set_presets(list(self._configs), settings.config.name)
        self._run_panel.set_class_names(settings.config.class_names)
        self._run_panel.set_source_description(self._describe_source(settings))

    def _setup_ui(self) -> None:
        """Setup the main UI layout."""
        central = QWidget()
        self.setCentralWidget(central)

        main_layout = QVBoxLayout(central)

        # Warning banner (shown if needed)
        self._banner = WarningBanner("", dismissible=True)
        self._banner.hide()
        main_layout.addWidget(self._banner)

        # Main content splitter
        splitter = QSplitter(Qt.Orientation.Horizontal)

        # Left: video preview
        self._preview = VideoPreview()
        splitter.addWidget(self._preview)

        # Right: run panel
        self._run_panel = RunPanel()
        splitter.addWidget(self._run_panel)

        splitter.setSizes([640, 320])

        main_layout.addWidget(splitter)

    def _connect_signals(self) -> None:
        """Connect UI signals."""
        self._run_panel.start_requested.connect(self._on_start_requested)
        self._run_panel.stop_requested.connect(self.stop_monitoring.emit)
        self._run_panel.alarm_file_selected.connect(self.alarm_file_selected.emit)
        self._run_panel.retry_playback_requested.connect(self.retry_playback.emit)

        self._run_panel.set_log_buffer(self._logger.buffer)

    @staticmethod
    def _describe_source(settings: MonitorSettings) -> str:
        if settings.region is not None:
            r = settings.region
            return f"来源: 屏幕区域 ({r.x}, {r.y}) {r.w}x{r.h}"
        return f"来源: 摄像头 #{settings.camera_index}"

    # Control handlers

    @property
    def settings(self) -> MonitorSettings:
        """Settings for the next run."""
        return self._settings

    def current_settings(self) -> MonitorSettings:
        """Settings with the selected configuration applied."""
        name = self._run_panel.selected_preset()
        config = self._configs.get(name, self._settings.config)
        return replace(self._settings, config=config)

    def _on_start_requested(self) -> None:
        """Handle start button click."""
        settings = self.current_settings()
        self._settings = settings
        self._banner.hide()
        self._run_panel.set_class_names(settings.config.class_names)
        self.start_monitoring.emit(settings)

    # Updates from engine

    def set_running(self, running: bool) -> None:
        """Update UI for a started or finished run."""
        self._run_panel.set_running(running)
        if not running:
            self._preview.show_placeholder()

    @Slot(AlarmState)
    def update_state(self, state: AlarmState) -> None:
        """Update UI for new alarm state.

        Args:
            state: New alarm state
        """
        self._run_panel.set_state(state)

    @Slot(object, AlarmState)
    def update_stats(self, stats: FrameStats, state: AlarmState) -> None:
        """Show the stats of the latest frame."""
        self._run_panel.set_stats(stats)
        self._run_panel.set_state(state)

    @Slot(object)
    def show_frame(self, frame: np.ndarray) -> None:
        """Show the latest frame in the preview."""
        self._preview.show_frame(frame)

    def set_alarm_file(self, path: str) -> None:
        """Show the loaded alarm file."""
        self._run_panel.set_alarm_file(path)

    # Warnings

    def show_warning(self, message: str) -> None:
        """Show the warning banner.

        Args:
            message: Warning message to display
        """
        self._banner.set_message(message)
        self._banner.show()

    def show_playback_blocked(self, message: str) -> None:
        """Ask for a click to enable the alarm sound."""
        self.show_warning(f"警报音无法播放: {message}\n请点击「点击以启用警报音」重试")
        self._run_panel.set_playback_blocked(True)

    def clear_playback_blocked(self) -> None:
        self._run_panel.set_playback_blocked(False)

    # Dialogs

    def show_error_dialog(self, title: str, message: str) -> None:
        """Show error dialog.

        Args:
            title: Dialog title
            message: Error message
        """
        QMessageBox.critical(self, title, message)

    def show_capture_error_dialog(self, reason: CaptureReason, detail: str) -> bool:
        """Show frame source error dialog.

        Args:
            reason: Failure classification
            detail: Error message from the source

        Returns:
            True if the user chose to retry
        """
        if reason == CaptureReason.NOT_ALLOWED:
            text = (
                "访问被拒绝\n\n"
                "请在系统设置中允许本应用使用摄像头或屏幕录制,然后重试。"
            )
        elif reason == CaptureReason.NOT_FOUND:
            text = "未找到摄像头\n\n请检查摄像头是否已连接,或使用其他摄像头编号。"
        else:
            text = f"无法获取画面\n\n{detail}"

        result = QMessageBox.critical(
            self,
            "无法获取画面",
            text,
            QMessageBox.StandardButton.Retry |
            QMessageBox.StandardButton.Close,
            QMessageBox.StandardButton.Close,
        )
        return result == QMessageBox.StandardButton.Retry

    # Window behavior

    def closeEvent(self, event) -> None:
        """Handle close event - request stop if running."""
        if self._run_panel.is_running:
            self.stop_monitoring.emit()
        self._run_panel.detach_log_buffer()
        event.accept()
