"""Tests for frame aggregation.

Verifies that:
- Percentages are 100 * count / total per class
- Flat RGBA, (N, C) and (H, W, C) buffers give the same result
- Empty frames raise EmptyFrameError instead of dividing by zero
- Malformed buffers are rejected
"""

import numpy as np
import pytest

from colorwatch.core.aggregate import EmptyFrameError, aggregate, as_pixel_array
from colorwatch.core.classify import InvalidChannelValueError
from colorwatch.core.model import FrameStats
from colorwatch.core.presets import DEFAULT_CONFIG, GREEN_ONLY_CONFIG

GREEN = (0, 255, 0, 255)
RED = (255, 0, 0, 255)
BLACK = (0, 0, 0, 255)
GRAY = (128, 128, 128, 255)


def flat(*pixels: tuple) -> list[int]:
    """Interleave RGBA tuples into a flat buffer."""
    return [value for pixel in pixels for value in pixel]


class TestPercentages:
    """Test per-class percentage computation."""

    def test_one_green_of_four(self) -> None:
        """1 green + 3 non-matching pixels gives green 25%."""
        stats = aggregate(flat(GREEN, BLACK, GRAY, BLACK), DEFAULT_CONFIG)

        assert stats["green"] == 25.0
        assert stats["red"] == 0.0
        assert stats.pixel_count == 4

    def test_mixed_frame(self) -> None:
        """Green and red are counted independently."""
        stats = aggregate(flat(GREEN, GREEN, RED, BLACK, BLACK), DEFAULT_CONFIG)

        assert stats["green"] == pytest.approx(40.0)
        assert stats["red"] == pytest.approx(20.0)

    def test_every_class_is_reported(self) -> None:
        """Classes with no matching pixels still appear with 0%."""
        stats = aggregate(flat(BLACK), DEFAULT_CONFIG)
        assert set(stats) == {"green", "red"}

    def test_percentages_within_bounds(self) -> None:
        """Random frames stay within [0, 100] for each class."""
        rng = np.random.default_rng(7)
        frame = rng.integers(0, 256, size=(48, 64, 4), dtype=np.uint8)

        stats = aggregate(frame, DEFAULT_CONFIG)

        for name in stats:
            assert 0.0 <= stats[name] <= 100.0

    def test_stats_are_read_only(self) -> None:
        """Percentages cannot be changed after aggregation."""
        stats = aggregate(flat(GREEN, BLACK), DEFAULT_CONFIG)

        with pytest.raises(TypeError):
            stats.percentages["green"] = 0.0  # type: ignore[index]
        assert stats["green"] == pytest.approx(50.0)

    def test_stats_do_not_share_source_dict(self) -> None:
        """Later changes to the input dict do not leak into the stats."""
        source = {"green": 10.0}
        stats = FrameStats(source)
        source["green"] = 90.0

        assert stats["green"] == 10.0

    def test_full_green_frame(self) -> None:
        """A uniformly green frame is 100% green."""
        frame = np.zeros((10, 10, 4), dtype=np.uint8)
        frame[:, :] = GREEN
        assert aggregate(frame, GREEN_ONLY_CONFIG)["green"] == 100.0


class TestLayouts:
    """Test the accepted pixel buffer layouts."""

    def test_flat_and_image_layouts_agree(self) -> None:
        """Flat, (N, 4) and (H, W, 4) layouts give identical stats."""
        pixels = [GREEN, RED, BLACK, GRAY]
        flat_stats = aggregate(flat(*pixels), DEFAULT_CONFIG)
        rows_stats = aggregate(np.array(pixels, dtype=np.uint8), DEFAULT_CONFIG)
        image_stats = aggregate(
            np.array(pixels, dtype=np.uint8).reshape(2, 2, 4), DEFAULT_CONFIG
        )

        assert flat_stats == rows_stats == image_stats

    def test_flat_rgb_buffer(self) -> None:
        """Flat RGB buffers are read with channels=3."""
        stats = aggregate([0, 255, 0, 0, 0, 0], DEFAULT_CONFIG, channels=3)
        assert stats["green"] == 50.0

    def test_as_pixel_array_drops_alpha(self) -> None:
        """Only the RGB channels are kept."""
        arr = as_pixel_array(np.zeros((2, 3, 4), dtype=np.uint8))
        assert arr.shape == (6, 3)

    def test_flat_length_not_multiple_of_channels(self) -> None:
        """A truncated flat buffer is rejected."""
        with pytest.raises(ValueError, match="multiple"):
            aggregate([0, 255, 0, 255, 0], DEFAULT_CONFIG)

    def test_too_few_channels(self) -> None:
        """Pixels need at least r, g and b."""
        with pytest.raises(ValueError):
            as_pixel_array(np.zeros((4, 2), dtype=np.uint8))

    def test_unsupported_shape(self) -> None:
        """4-D buffers are rejected."""
        with pytest.raises(ValueError):
            as_pixel_array(np.zeros((1, 2, 2, 4), dtype=np.uint8))


class TestEmptyFrame:
    """Test that empty frames fail explicitly."""

    @pytest.mark.parametrize(
        "buffer",
        [
            [],
            np.zeros((0, 4), dtype=np.uint8),
            np.zeros((0, 10, 4), dtype=np.uint8),
        ],
    )
    def test_empty_raises(self, buffer) -> None:
        """No pixels means no percentages."""
        with pytest.raises(EmptyFrameError):
            aggregate(buffer, DEFAULT_CONFIG)

    def test_empty_frame_error_is_value_error(self) -> None:
        """EmptyFrameError can be caught as ValueError."""
        assert issubclass(EmptyFrameError, ValueError)


class TestValidation:
    """Test optional channel validation."""

    def test_out_of_range_values_raise_when_validating(self) -> None:
        """Values above 255 are reported when validation is on."""
        frame = np.array([[0, 300, 0, 255]], dtype=np.int32)
        with pytest.raises(InvalidChannelValueError):
            aggregate(frame, DEFAULT_CONFIG, validate=True)

    def test_alpha_is_not_validated(self) -> None:
        """Only RGB channels are checked."""
        frame = np.array([[0, 255, 0, 999]], dtype=np.int32)
        stats = aggregate(frame, DEFAULT_CONFIG, validate=True)
        assert stats["green"] == 100.0
