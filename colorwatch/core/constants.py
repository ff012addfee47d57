"""Global constants for ColorWatch."""

from typing import Final

# Timing constants
TICK_INTERVAL_MS: Final[int] = 250
"""采样周期毫秒"""

TICK_INTERVAL_MIN_MS: Final[int] = 100
"""采样周期下限"""

TICK_INTERVAL_MAX_MS: Final[int] = 2000
"""采样周期上限"""

# Alarm trigger thresholds (percent of frame)
GREEN_THRESHOLD_DEFAULT: Final[float] = 7.0
"""绿色占比低于此值触发报警"""

RED_THRESHOLD_DEFAULT: Final[float] = 0.5
"""红色占比高于此值触发报警"""

# Camera settings
CAMERA_INDEX_DEFAULT: Final[int] = 0
"""默认摄像头编号"""

CAMERA_IDEAL_WIDTH: Final[int] = 1280
CAMERA_IDEAL_HEIGHT: Final[int] = 720

# Pixel buffer layout
FRAME_CHANNELS: Final[int] = 4
"""帧缓冲每像素通道数 (RGBA)"""

CHANNEL_MIN: Final[int] = 0
CHANNEL_MAX: Final[int] = 255

# Error handling
CAPTURE_RETRY_N: Final[int] = 3
"""截图失败重试次数"""

CAPTURE_RETRY_INTERVAL_MS: Final[int] = 500
"""截图重试间隔毫秒"""

MISSED_FRAMES_WARNING: Final[int] = 8
"""连续无帧多少次后提示"""

# UI constants
LOG_BUFFER_SIZE: Final[int] = 200
"""日志环形缓冲最大条数"""

PREVIEW_MAX_WIDTH: Final[int] = 640
"""预览画面最大宽度 (像素)"""

RED_SWATCH_SCALE: Final[float] = 2.55
"""红色占比 -> 预览色块红色分量的缩放系数"""
