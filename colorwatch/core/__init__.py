"""Core detection kernel and utilities.

This package provides the core functionality for ColorWatch:
- Data models (ThresholdConfig, FrameStats, AlarmState, etc.)
- RGB to HSV conversion and pixel classification
- Frame aggregation and the alarm state machine
- Named detection presets and config files
- Frame sources (camera, screen region)
- Logging with circular buffer
"""

from .aggregate import EmptyFrameError, aggregate
from .alarm import AlarmStateMachine, NullPlaybackSink, PlaybackSink, next_state
from .classify import InvalidChannelValueError, class_masks, classify
from .colorspace import rgb_to_hsv, rgb_to_hsv_array
from .constants import (
    CAPTURE_RETRY_INTERVAL_MS,
    CAPTURE_RETRY_N,
    GREEN_THRESHOLD_DEFAULT,
    LOG_BUFFER_SIZE,
    RED_THRESHOLD_DEFAULT,
    TICK_INTERVAL_MS,
)
from .model import (
    HSV,
    AlarmState,
    AlarmTransition,
    ChannelRule,
    ColorClass,
    Comparison,
    FrameStats,
    HsvRule,
    MonitorSettings,
    PlaybackResult,
    ScreenRegion,
    ThresholdConfig,
    TriggerCondition,
    TriggerMode,
    TriggerPredicate,
)
from .monitor import ColorMonitor, TickResult
from .presets import PRESETS, get_preset, load_threshold_config, save_threshold_config

__all__ = [
    # Constants
    "TICK_INTERVAL_MS",
    "GREEN_THRESHOLD_DEFAULT",
    "RED_THRESHOLD_DEFAULT",
    "CAPTURE_RETRY_N",
    "CAPTURE_RETRY_INTERVAL_MS",
    "LOG_BUFFER_SIZE",
    # Models
    "HSV",
    "AlarmState",
    "AlarmTransition",
    "ChannelRule",
    "ColorClass",
    "Comparison",
    "FrameStats",
    "HsvRule",
    "MonitorSettings",
    "PlaybackResult",
    "ScreenRegion",
    "ThresholdConfig",
    "TriggerCondition",
    "TriggerMode",
    "TriggerPredicate",
    # Kernel
    "rgb_to_hsv",
    "rgb_to_hsv_array",
    "classify",
    "class_masks",
    "InvalidChannelValueError",
    "aggregate",
    "EmptyFrameError",
    "next_state",
    "AlarmStateMachine",
    "PlaybackSink",
    "NullPlaybackSink",
    "ColorMonitor",
    "TickResult",
    # Presets
    "PRESETS",
    "get_preset",
    "load_threshold_config",
    "save_threshold_config",
]
