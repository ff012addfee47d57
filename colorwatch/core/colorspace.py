"""RGB to HSV conversion.

Provides a scalar converter for single pixels and an array converter
for whole frames. Both perform the same float64 operations in the same
order so that classification decisions near threshold boundaries are
identical whichever path is used.

Sector selection on ties follows the channel order r, g, b: when two
channels share the maximum, the earlier one picks the hue formula.
"""

import math

import numpy as np

from .model import HSV


def rgb_to_hsv(r: float, g: float, b: float) -> HSV:
    """Convert an RGB triple to HSV.

    Args:
        r: Red channel, [0, 255]
        g: Green channel, [0, 255]
        b: Blue channel, [0, 255]

    Returns:
        HSV with hue in degrees [0, 360) and saturation/value in
        percent [0, 100]. Achromatic input (r == g == b) has hue 0.
    """
    r, g, b = r / 255.0, g / 255.0, b / 255.0
    mx = max(r, g, b)
    mn = min(r, g, b)
    d = mx - mn

    s = d / mx if mx != 0 else 0.0

    if mx == mn:
        h = 0.0
    else:
        if mx == r:
            h = (g - b) / d + (6.0 if g < b else 0.0)
        elif mx == g:
            h = (b - r) / d + 2.0
        else:
            h = (r - g) / d + 4.0
        h *= 60.0
        if h < 0:
            h += 360.0

    return HSV(h=h, s=s * 100.0, v=mx * 100.0)


def rgb_to_hsv_array(rgb: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Convert an (N, 3) RGB array to HSV component arrays.

    Args:
        rgb: Array of shape (N, 3), channels in r, g, b order

    Returns:
        Tuple (h, s, v) of float64 arrays of shape (N,), same units as
        rgb_to_hsv()
    """
    c = rgb.astype(np.float64) / 255.0
    r, g, b = c[:, 0], c[:, 1], c[:, 2]

    mx = np.maximum(np.maximum(r, g), b)
    mn = np.minimum(np.minimum(r, g), b)
    d = mx - mn

    s = np.divide(d, mx, out=np.zeros_like(mx), where=mx != 0)

    # Avoid division by zero; achromatic pixels are overwritten below
    safe_d = np.where(d == 0, 1.0, d)
    h = np.select(
        [mx == r, mx == g],
        [
            (g - b) / safe_d + np.where(g < b, 6.0, 0.0),
            (b - r) / safe_d + 2.0,
        ],
        default=(r - g) / safe_d + 4.0,
    )
    h = np.where(d == 0, 0.0, h * 60.0)
    h = np.where(h < 0, h + 360.0, h)

    return h, s * 100.0, mx * 100.0


def round_half_up(x):
    """Round half away from zero for non-negative input (scalar or array)."""
    if isinstance(x, np.ndarray):
        return np.floor(x + 0.5)
    return float(math.floor(x + 0.5))


def quantize_hsv(h, s, v):
    """Round HSV components to whole numbers.

    Hue that rounds up to 360 wraps to 0 so it stays in [0, 360).
    Works on scalars and numpy arrays.
    """
    return round_half_up(h) % 360.0, round_half_up(s), round_half_up(v)
