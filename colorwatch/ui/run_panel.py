"""Run panel for ColorWatch monitoring control.

The control column beside the video preview:
- Alarm state and per-class percentages
- Detection configuration and alarm sound selection
- Start/Stop controls and a retry button for blocked playback
- Log view
"""

from typing import Optional

from PySide6.QtCore import Signal, Slot
from PySide6.QtWidgets import (
    QCheckBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from colorwatch.core.constants import LOG_BUFFER_SIZE
from colorwatch.core.logging import LogBuffer, LogEntry, LogLevel
from colorwatch.core.model import AlarmState, FrameStats

from .widgets import (
    AlarmFilePicker,
    ControlButtons,
    PresetSelector,
    StatsDisplay,
    StatusIndicator,
)


class LogView(QPlainTextEdit):
    """Log viewer with circular buffer display.

    Per-frame sampling entries are DEBUG level and hidden unless
    show_debug is enabled.
    """

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setReadOnly(True)
        self.setMaximumBlockCount(LOG_BUFFER_SIZE)  # Circular buffer
        self.setLineWrapMode(QPlainTextEdit.LineWrapMode.WidgetWidth)
        self.setStyleSheet(
            "font-family: Consolas, Monaco, monospace; font-size: 11px;"
        )
        self._show_debug = False

    @property
    def show_debug(self) -> bool:
        return self._show_debug

    def set_show_debug(self, show: bool) -> None:
        """Show or hide DEBUG entries for new lines."""
        self._show_debug = show

    def accepts(self, entry: LogEntry) -> bool:
        """Whether the entry passes the level filter."""
        return self._show_debug or entry.level != LogLevel.DEBUG

    @Slot(object)
    def add_entry(self, entry: LogEntry) -> None:
        """Add a log entry."""
        if self.accepts(entry):
            self.appendPlainText(entry.format())

    def set_entries(self, entries: list[LogEntry]) -> None:
        """Set all log entries."""
        self.clear()
        for entry in entries:
            self.add_entry(entry)


class RunPanel(QWidget):
    """Control panel for monitoring."""

    # Signals for control actions
    start_requested = Signal()
    stop_requested = Signal()
    alarm_file_selected = Signal(str)
    retry_playback_requested = Signal()

    # Carries entries from any thread to the log view
    _log_entry_added = Signal(object)

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self.setMinimumWidth(320)

        self._is_running = False
        self._buffer: Optional[LogBuffer] = None

        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self) -> None:
        """Setup the UI layout."""
        layout = QVBoxLayout(self)
        layout.setSpacing(8)

        # Status section
        status_frame = QFrame()
        status_frame.setFrameStyle(QFrame.Shape.StyledPanel)
        status_layout = QVBoxLayout(status_frame)

        self._status = StatusIndicator()
        status_layout.addWidget(self._status)

        self._stats = StatsDisplay()
        status_layout.addWidget(self._stats)

        layout.addWidget(status_frame)

        # Settings section
        settings_frame = QFrame()
        settings_frame.setFrameStyle(QFrame.Shape.StyledPanel)
        settings_layout = QVBoxLayout(settings_frame)

        settings_label = QLabel("设置")
        settings_label.setStyleSheet("font-weight: bold;")
        settings_layout.addWidget(settings_label)

        self._preset_selector = PresetSelector()
        settings_layout.addWidget(self._preset_selector)

        self._alarm_picker = AlarmFilePicker()
        settings_layout.addWidget(self._alarm_picker)

        self._source_label = QLabel()
        self._source_label.setStyleSheet("color: #666;")
        settings_layout.addWidget(self._source_label)

        layout.addWidget(settings_frame)

        # Control buttons
        self._controls = ControlButtons()
        layout.addWidget(self._controls)

        # Retry for blocked playback (hidden by default)
        self._retry_btn = QPushButton("🔊 点击以启用警报音")
        self._retry_btn.setStyleSheet(
            "background-color: #ffc107; font-weight: bold;"
        )
        self._retry_btn.hide()
        layout.addWidget(self._retry_btn)

        # Log section
        log_header = QHBoxLayout()
        log_label = QLabel("日志")
        log_label.setStyleSheet("font-weight: bold;")
        log_header.addWidget(log_label)
        log_header.addStretch()

        self._debug_check = QCheckBox("显示采样")
        log_header.addWidget(self._debug_check)
        layout.addLayout(log_header)

        self._log_view = LogView()
        layout.addWidget(self._log_view, 1)

    def _connect_signals(self) -> None:
        """Connect internal signals."""
        self._controls.start_clicked.connect(self.start_requested.emit)
        self._controls.stop_clicked.connect(self.stop_requested.emit)
        self._alarm_picker.file_selected.connect(self.alarm_file_selected.emit)
        self._retry_btn.clicked.connect(self.retry_playback_requested.emit)
        self._debug_check.toggled.connect(self._on_debug_toggled)
        self._log_entry_added.connect(self._log_view.add_entry)

    @Slot(bool)
    def _on_debug_toggled(self, checked: bool) -> None:
        self._log_view.set_show_debug(checked)
        if self._buffer is not None:
            self._log_view.set_entries(self._buffer.get_all())

    # State updates

    @property
    def is_running(self) -> bool:
        return self._is_running

    def set_running(self, running: bool) -> None:
        """Update controls for a started or finished run.

        Args:
            running: Whether monitoring is running
        """
        self._is_running = running
        self._controls.set_running(running)
        self._preset_selector.set_enabled(not running)
        if not running:
            self._status.set_state("Stopped")
            self.set_playback_blocked(False)

    def set_state(self, state: AlarmState) -> None:
        """Update displayed alarm state.

        Args:
            state: Current alarm state
        """
        if self._is_running:
            self._status.set_state(state.name)
        if state == AlarmState.Silent:
            self.set_playback_blocked(False)

    def set_stats(self, stats: FrameStats) -> None:
        """Update the percentage display."""
        self._stats.set_stats(stats)

    def set_class_names(self, class_names: tuple[str, ...]) -> None:
        """Prepare stats rows for a configuration."""
        self._stats.clear()
        self._stats.set_classes(class_names)

    def set_presets(self, names: list[str], current: Optional[str] = None) -> None:
        """Fill the configuration selector."""
        self._preset_selector.set_names(names, current)

    def selected_preset(self) -> str:
        """Name of the selected configuration."""
        return self._preset_selector.current_name()

    def set_alarm_file(self, path: str) -> None:
        """Show the loaded alarm file."""
        self._alarm_picker.set_loaded(path)

    def set_source_description(self, text: str) -> None:
        """Describe where frames come from."""
        self._source_label.setText(text)

    def set_playback_blocked(self, blocked: bool) -> None:
        """Show or hide the retry button for blocked playback."""
        self._retry_btn.setVisible(blocked)

    # Logging

    def set_log_buffer(self, buffer: LogBuffer) -> None:
        """Set log buffer and display existing entries.

        Args:
            buffer: Log buffer to use
        """
        self._buffer = buffer
        self._log_view.set_entries(buffer.get_all())

        # Listener may run on the worker thread; the signal queues it
        buffer.add_listener(self._forward_log_entry)

    def _forward_log_entry(self, entry: LogEntry) -> None:
        self._log_entry_added.emit(entry)

    def detach_log_buffer(self) -> None:
        """Stop receiving entries from the log buffer."""
        if self._buffer is not None:
            self._buffer.remove_listener(self._forward_log_entry)
            self._buffer = None

    def clear_log(self) -> None:
        """Clear the log view."""
        self._log_view.clear()
