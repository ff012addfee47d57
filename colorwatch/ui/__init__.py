"""UI components for ColorWatch.

This package provides PySide6-based UI components:
- MainWindow: Main application window with video preview
- RunPanel: Control panel with status, settings and log
- Common widgets: Banners, indicators, buttons
"""

from .main_window import MainWindow, VideoPreview, frame_to_qimage
from .run_panel import LogView, RunPanel
from .widgets import (
    AlarmFilePicker,
    ColorSwatch,
    ControlButtons,
    PresetSelector,
    StatsDisplay,
    StatusIndicator,
    WarningBanner,
    red_swatch_color,
)

__all__ = [
    # Main window
    "MainWindow",
    "VideoPreview",
    "frame_to_qimage",
    # Run panel
    "RunPanel",
    "LogView",
    # Widgets
    "WarningBanner",
    "StatusIndicator",
    "StatsDisplay",
    "ColorSwatch",
    "ControlButtons",
    "PresetSelector",
    "AlarmFilePicker",
    "red_swatch_color",
]
