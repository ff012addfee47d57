"""Common UI widgets for ColorWatch.

Provides reusable UI components used across the application.
"""

from pathlib import Path
from typing import Optional

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QColor, QPalette
from PySide6.QtWidgets import (
    QComboBox,
    QFileDialog,
    QFrame,
    QGridLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QWidget,
)

from colorwatch.core.constants import RED_SWATCH_SCALE
from colorwatch.core.model import FrameStats

# Display precision per class; red is shown finer since its threshold is small
_PRECISION = {"green": 1, "red": 2}


def red_swatch_color(red_pct: float) -> QColor:
    """Swatch colour for a red percentage: rgb(min(255, red * 2.55), 0, 0)."""
    return QColor(round(min(255.0, max(0.0, red_pct) * RED_SWATCH_SCALE)), 0, 0)


class WarningBanner(QFrame):
    """A dismissible warning banner with yellow background.

    Used for missing-frame and blocked-playback warnings.
    """

    dismissed = Signal()

    def __init__(
        self,
        message: str,
        dismissible: bool = True,
        parent: Optional[QWidget] = None,
    ) -> None:
        """Initialize the warning banner.

        Args:
            message: Warning message to display
            dismissible: Whether to show close button
            parent: Parent widget
        """
        super().__init__(parent)

        self.setAutoFillBackground(True)
        self.setFrameStyle(QFrame.Shape.StyledPanel)

        # Yellow background
        palette = self.palette()
        palette.setColor(QPalette.ColorRole.Window, QColor(255, 243, 205))
        palette.setColor(QPalette.ColorRole.WindowText, QColor(133, 100, 4))
        self.setPalette(palette)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(12, 8, 12, 8)

        self._label = QLabel(message)
        self._label.setWordWrap(True)
        layout.addWidget(self._label, 1)

        if dismissible:
            close_btn = QPushButton("×")
            close_btn.setFixedSize(24, 24)
            close_btn.setFlat(True)
            close_btn.clicked.connect(self._on_dismiss)
            layout.addWidget(close_btn)

    def _on_dismiss(self) -> None:
        """Handle dismiss button click."""
        self.hide()
        self.dismissed.emit()

    def set_message(self, message: str) -> None:
        """Update the warning message."""
        self._label.setText(message)


class StatusIndicator(QWidget):
    """Status indicator showing the alarm state."""

    # State to color mapping
    STATE_COLORS = {
        "Stopped": QColor(128, 128, 128),    # Gray
        "Silent": QColor(40, 167, 69),       # Green
        "Active": QColor(220, 53, 69),       # Red
    }

    STATE_TEXT = {
        "Stopped": "系统已停止",
        "Silent": "监控中",
        "Active": "🚨 报警! 检测到异常颜色",
    }

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        # Status dot
        self._dot = QLabel("●")
        self._dot.setFixedWidth(20)
        layout.addWidget(self._dot)

        # Status text
        self._text = QLabel()
        layout.addWidget(self._text, 1)

        self.set_state("Stopped")

    def set_state(self, state: str) -> None:
        """Update the displayed state.

        Args:
            state: "Stopped" or an AlarmState name
        """
        self._text.setText(self.STATE_TEXT.get(state, state))
        color = self.STATE_COLORS.get(state, QColor(128, 128, 128))
        self._dot.setStyleSheet(f"color: {color.name()};")
        self._text.setStyleSheet(
            f"color: {color.name()}; font-weight: bold;" if state == "Active" else ""
        )


class ColorSwatch(QFrame):
    """Small preview square tinted by the red percentage."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)
        self.setFixedSize(32, 32)
        self.setFrameStyle(QFrame.Shape.Box)
        self.set_red(0.0)

    def set_red(self, red_pct: float) -> None:
        """Tint the swatch for a red percentage."""
        self.setStyleSheet(f"background-color: {red_swatch_color(red_pct).name()};")


class StatsDisplay(QWidget):
    """Per-class percentage display with a red swatch."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        self._layout = QGridLayout(self)
        self._layout.setContentsMargins(0, 0, 0, 0)
        self._labels: dict[str, QLabel] = {}

        self._swatch = ColorSwatch()
        self._layout.addWidget(self._swatch, 0, 2, Qt.AlignmentFlag.AlignRight)

    def set_classes(self, class_names: tuple[str, ...]) -> None:
        """Create one row per colour class. Existing rows are kept."""
        for row, name in enumerate(class_names):
            if name in self._labels:
                continue
            self._layout.addWidget(QLabel(f"{name}:"), row, 0)
            value = QLabel("—")
            value.setStyleSheet("font-size: 18px; font-weight: bold;")
            self._layout.addWidget(value, row, 1)
            self._labels[name] = value

    def set_stats(self, stats: FrameStats) -> None:
        """Show the percentages of a frame."""
        for name in stats:
            if name not in self._labels:
                self.set_classes(tuple(self._labels) + (name,))
            precision = _PRECISION.get(name, 2)
            self._labels[name].setText(f"{stats[name]:.{precision}f}%")
        self._swatch.set_red(stats.get("red", 0.0))

    def clear(self) -> None:
        """Reset all values."""
        for label in self._labels.values():
            label.setText("—")
        self._swatch.set_red(0.0)


class ControlButtons(QWidget):
    """Control buttons for Start/Stop."""

    start_clicked = Signal()
    stop_clicked = Signal()

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self._start_btn = QPushButton("开始监控")
        self._start_btn.setStyleSheet(
            "background-color: #28a745; color: white; font-weight: bold;"
        )
        self._start_btn.clicked.connect(self.start_clicked.emit)
        layout.addWidget(self._start_btn)

        self._stop_btn = QPushButton("停止")
        self._stop_btn.setStyleSheet("background-color: #dc3545; color: white;")
        self._stop_btn.clicked.connect(self.stop_clicked.emit)
        self._stop_btn.setEnabled(False)
        layout.addWidget(self._stop_btn)

    def set_running(self, running: bool) -> None:
        """Enable Start when idle and Stop while running.

        Args:
            running: Whether monitoring is running
        """
        self._start_btn.setEnabled(not running)
        self._stop_btn.setEnabled(running)


class PresetSelector(QWidget):
    """Combo box selecting the detection configuration."""

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(QLabel("检测配置:"))

        self._combo = QComboBox()
        layout.addWidget(self._combo, 1)

    def set_names(self, names: list[str], current: Optional[str] = None) -> None:
        """Fill the selector."""
        self._combo.clear()
        self._combo.addItems(names)
        if current is not None and current in names:
            self._combo.setCurrentText(current)

    def current_name(self) -> str:
        """Selected configuration name."""
        return self._combo.currentText()

    def set_enabled(self, enabled: bool) -> None:
        """Enable or disable selection."""
        self._combo.setEnabled(enabled)


class AlarmFilePicker(QWidget):
    """Button and label for choosing the alarm sound file."""

    file_selected = Signal(str)

    FILE_FILTER = "音频文件 (*.wav *.mp3 *.ogg *.m4a *.flac);;所有文件 (*)"

    def __init__(self, parent: Optional[QWidget] = None) -> None:
        super().__init__(parent)

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self._button = QPushButton("选择警报音...")
        self._button.clicked.connect(self._on_clicked)
        layout.addWidget(self._button)

        self._label = QLabel("未加载警报音")
        self._label.setStyleSheet("color: #666;")
        layout.addWidget(self._label, 1)

    def _on_clicked(self) -> None:
        path, _ = QFileDialog.getOpenFileName(
            self, "选择警报音文件", "", self.FILE_FILTER
        )
        if path:
            self.file_selected.emit(path)

    def set_loaded(self, path: str) -> None:
        """Show the loaded file name."""
        self._label.setText(f"🔊 {Path(path).name}")
        self._label.setStyleSheet("color: #28a745;")
