"""Frame-level aggregation of pixel classifications.

Scans a full pixel buffer once, counts the pixels matching each colour
class and normalizes the counts to percentages of the frame.
"""

from typing import Sequence, Union

import numpy as np

from .classify import check_channels, class_masks
from .constants import FRAME_CHANNELS
from .model import FrameStats, ThresholdConfig

PixelBuffer = Union[np.ndarray, Sequence[int], Sequence[Sequence[int]]]


class EmptyFrameError(ValueError):
    """Raised when aggregation is invoked on a frame with no pixels."""

    pass


def as_pixel_array(buffer: PixelBuffer, channels: int = FRAME_CHANNELS) -> np.ndarray:
    """Reshape a pixel buffer to an (N, 3) RGB view.

    Accepted layouts:
    - flat interleaved sequence, `channels` values per pixel
    - (N, C) array or sequence of pixel tuples, C >= 3
    - (H, W, C) image array, C >= 3

    Trailing channels beyond RGB are dropped without copying.

    Args:
        buffer: Pixel buffer in one of the layouts above
        channels: Values per pixel for flat buffers

    Returns:
        Array of shape (N, 3)

    Raises:
        ValueError: If the layout is not recognized
    """
    arr = np.asarray(buffer)

    if arr.ndim == 1:
        if channels < 3:
            raise ValueError(f"channels must be >= 3, got {channels}")
        if arr.size % channels != 0:
            raise ValueError(
                f"Flat buffer length {arr.size} is not a multiple of {channels} channels"
            )
        arr = arr.reshape(-1, channels)
    elif arr.ndim == 3:
        arr = arr.reshape(-1, arr.shape[2])
    elif arr.ndim != 2:
        raise ValueError(f"Unsupported pixel buffer shape: {arr.shape}")

    if arr.shape[0] > 0 and arr.shape[1] < 3:
        raise ValueError(f"Pixels need at least 3 channels, got {arr.shape[1]}")

    return arr[:, :3]


def aggregate(
    buffer: PixelBuffer,
    config: ThresholdConfig,
    channels: int = FRAME_CHANNELS,
    validate: bool = False,
) -> FrameStats:
    """Compute per-class percentages for a whole frame.

    Args:
        buffer: Pixel buffer (see as_pixel_array() for layouts)
        config: Detection configuration
        channels: Values per pixel for flat buffers (default RGBA)
        validate: Raise InvalidChannelValueError for out-of-range values

    Returns:
        FrameStats with 100 * count / total for every configured class

    Raises:
        EmptyFrameError: If the buffer contains no pixels
    """
    rgb = as_pixel_array(buffer, channels)
    total = rgb.shape[0]
    if total == 0:
        raise EmptyFrameError("Cannot aggregate an empty frame")

    if validate:
        check_channels(rgb)

    masks = class_masks(rgb, config)
    percentages = {
        name: 100.0 * int(np.count_nonzero(mask)) / total
        for name, mask in masks.items()
    }

    return FrameStats(percentages=percentages, pixel_count=total)
