"""Pixel classification into named colour classes.

Each ColorClass is a conjunction of an optional raw-channel rule and an
optional HSV rule. The predicate code below only uses comparison and
bitwise operators, so the same function evaluates a single pixel (Python
floats) and a whole frame (numpy arrays).
"""

from typing import Sequence, Union

import numpy as np

from .colorspace import quantize_hsv, rgb_to_hsv, rgb_to_hsv_array
from .constants import CHANNEL_MAX, CHANNEL_MIN
from .model import ChannelRule, ColorClass, HsvRule, ThresholdConfig

Scalar = Union[float, np.ndarray]


class InvalidChannelValueError(ValueError):
    """Raised when a channel value is outside [0, 255]."""

    pass


def _match_channel_rule(rule: ChannelRule, channels: dict[str, Scalar]) -> Scalar:
    """Evaluate a raw-channel rule."""
    value = channels[rule.channel]
    first, second = (channels[c] for c in rule.others)
    matched: Scalar = True

    if rule.min_value is not None:
        matched = matched & (value > rule.min_value)
    if rule.dominance is not None:
        matched = matched & (value > first * rule.dominance) & (value > second * rule.dominance)
    if rule.max_others is not None:
        matched = matched & (first < rule.max_others) & (second < rule.max_others)

    return matched


def _match_hsv_rule(rule: HsvRule, h: Scalar, s: Scalar, v: Scalar) -> Scalar:
    """Evaluate an HSV rule."""
    if rule.quantize:
        h, s, v = quantize_hsv(h, s, v)

    in_hue: Scalar = False
    for lo, hi in rule.hue_ranges:
        in_hue = in_hue | ((h >= lo) & (h <= hi))

    return in_hue & (s >= rule.s_min) & (v >= rule.v_min)


def match_class(
    color_class: ColorClass,
    channels: dict[str, Scalar],
    h: Scalar,
    s: Scalar,
    v: Scalar,
) -> Scalar:
    """Evaluate one colour class predicate.

    Args:
        color_class: Class to evaluate
        channels: Mapping 'r'/'g'/'b' -> channel value(s)
        h: Hue value(s) in degrees
        s: Saturation value(s) in percent
        v: Value value(s) in percent

    Returns:
        bool for scalar input, boolean array for array input. A class
        with no rules matches everything.
    """
    matched: Scalar = True
    if color_class.channel_rule is not None:
        matched = matched & _match_channel_rule(color_class.channel_rule, channels)
    if color_class.hsv_rule is not None:
        matched = matched & _match_hsv_rule(color_class.hsv_rule, h, s, v)
    return matched


def check_channels(values: Union[Sequence[float], np.ndarray]) -> None:
    """Fail fast on channel values outside [0, 255].

    Raises:
        InvalidChannelValueError: If any value is out of range
    """
    arr = np.asarray(values)
    if arr.size == 0:
        return
    lo = arr.min()
    hi = arr.max()
    if lo < CHANNEL_MIN or hi > CHANNEL_MAX:
        raise InvalidChannelValueError(
            f"Channel values must be in [{CHANNEL_MIN}, {CHANNEL_MAX}], "
            f"got range [{lo}, {hi}]"
        )


def classify(
    pixel: Sequence[float],
    config: ThresholdConfig,
    validate: bool = False,
) -> frozenset[str]:
    """Classify a single pixel.

    Args:
        pixel: (r, g, b) or (r, g, b, a); channels beyond RGB are ignored
        config: Detection configuration
        validate: Raise InvalidChannelValueError for out-of-range input

    Returns:
        Names of all classes the pixel belongs to (may be empty)
    """
    r, g, b = (float(c) for c in pixel[:3])
    if validate:
        check_channels((r, g, b))

    hsv = rgb_to_hsv(r, g, b)
    channels: dict[str, Scalar] = {"r": r, "g": g, "b": b}

    return frozenset(
        color_class.name
        for color_class in config.classes
        if match_class(color_class, channels, hsv.h, hsv.s, hsv.v)
    )


def class_masks(rgb: np.ndarray, config: ThresholdConfig) -> dict[str, np.ndarray]:
    """Classify every pixel of an (N, 3) RGB array.

    Args:
        rgb: Pixel array of shape (N, 3)
        config: Detection configuration

    Returns:
        Class name -> boolean mask of shape (N,)
    """
    n = rgb.shape[0]
    values = rgb.astype(np.float64)
    channels: dict[str, Scalar] = {
        "r": values[:, 0],
        "g": values[:, 1],
        "b": values[:, 2],
    }

    needs_hsv = any(c.hsv_rule is not None for c in config.classes)
    if needs_hsv:
        h, s, v = rgb_to_hsv_array(rgb)
    else:
        h = s = v = np.zeros(n)

    masks: dict[str, np.ndarray] = {}
    for color_class in config.classes:
        matched = match_class(color_class, channels, h, s, v)
        if not isinstance(matched, np.ndarray):
            matched = np.full(n, bool(matched))
        masks[color_class.name] = matched
    return masks
