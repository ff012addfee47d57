"""Tests for frame sources.

Verifies that:
- Camera and screen frames are converted to RGBA
- A missing camera is reported as CaptureError(NOT_FOUND)
- A camera without a ready frame yields None
- Screen grabs are retried and fail with CaptureError after N attempts
"""

from unittest.mock import MagicMock, patch

import mss.exception
import numpy as np
import pytest

from colorwatch.core.capture import (
    CameraFrameSource,
    CaptureError,
    CaptureReason,
    ScreenFrameSource,
    bgr_to_rgba,
    bgra_to_rgba,
)
from colorwatch.core.model import ScreenRegion


class TestConversions:
    """Test channel order conversions."""

    def test_bgr_to_rgba(self) -> None:
        """OpenCV blue-green-red becomes red-green-blue with opaque alpha."""
        bgr = np.array([[[255, 0, 0], [0, 0, 255]]], dtype=np.uint8)
        rgba = bgr_to_rgba(bgr)

        assert rgba.shape == (1, 2, 4)
        assert tuple(rgba[0, 0]) == (0, 0, 255, 255)
        assert tuple(rgba[0, 1]) == (255, 0, 0, 255)

    def test_bgra_to_rgba(self) -> None:
        """mss BGRA is reordered and alpha kept."""
        bgra = np.array([[[10, 20, 30, 40]]], dtype=np.uint8)
        rgba = bgra_to_rgba(bgra)

        assert tuple(rgba[0, 0]) == (30, 20, 10, 40)
        assert rgba.flags["C_CONTIGUOUS"]


class TestCameraFrameSource:
    """Test the OpenCV camera source with a mocked VideoCapture."""

    def _capture(self, opened: bool = True) -> MagicMock:
        cap = MagicMock()
        cap.isOpened.return_value = opened
        return cap

    def test_missing_camera(self) -> None:
        """An unopenable device raises CaptureError(NOT_FOUND)."""
        cap = self._capture(opened=False)
        with patch("colorwatch.core.capture.cv2.VideoCapture", return_value=cap):
            source = CameraFrameSource(3)
            with pytest.raises(CaptureError) as exc_info:
                source.open()

        assert exc_info.value.reason == CaptureReason.NOT_FOUND
        cap.release.assert_called_once()
        assert not source.is_open

    def test_read_converts_frame(self) -> None:
        """Frames come back as RGBA."""
        cap = self._capture()
        bgr = np.zeros((2, 2, 3), dtype=np.uint8)
        bgr[:, :, 1] = 255
        cap.read.return_value = (True, bgr)

        with patch("colorwatch.core.capture.cv2.VideoCapture", return_value=cap):
            with CameraFrameSource(0) as source:
                frame = source.read()

        assert frame is not None
        assert frame.shape == (2, 2, 4)
        assert tuple(frame[0, 0]) == (0, 255, 0, 255)
        cap.release.assert_called_once()

    def test_no_frame_ready(self) -> None:
        """A failed read yields None instead of raising."""
        cap = self._capture()
        cap.read.return_value = (False, None)

        with patch("colorwatch.core.capture.cv2.VideoCapture", return_value=cap):
            with CameraFrameSource(0) as source:
                assert source.read() is None

    def test_read_before_open(self) -> None:
        """Reading a closed source yields None."""
        assert CameraFrameSource(0).read() is None

    def test_requested_resolution(self) -> None:
        """The ideal resolution is requested from the driver."""
        cap = self._capture()
        with patch("colorwatch.core.capture.cv2.VideoCapture", return_value=cap):
            source = CameraFrameSource(0, width=640, height=480)
            source.open()

        values = [c.args[1] for c in cap.set.call_args_list]
        assert values == [640, 480]


class TestScreenFrameSource:
    """Test the mss screen source with a mocked mss instance."""

    REGION = ScreenRegion(x=10, y=20, w=2, h=2)

    def test_invalid_region(self) -> None:
        with pytest.raises(ValueError):
            ScreenFrameSource(ScreenRegion(0, 0, 0, 10))

    def test_read_grabs_region(self) -> None:
        """The region is passed to mss and converted to RGBA."""
        sct = MagicMock()
        sct.grab.return_value = np.full((2, 2, 4), (1, 2, 3, 255), dtype=np.uint8)

        with patch("colorwatch.core.capture.mss.mss", return_value=sct):
            with ScreenFrameSource(self.REGION) as source:
                frame = source.read()

        sct.grab.assert_called_once_with(
            {"left": 10, "top": 20, "width": 2, "height": 2}
        )
        assert tuple(frame[0, 0]) == (3, 2, 1, 255)
        sct.close.assert_called_once()

    def test_retry_then_success(self) -> None:
        """A transient failure is retried."""
        sct = MagicMock()
        sct.grab.side_effect = [
            mss.exception.ScreenShotError("transient"),
            np.zeros((2, 2, 4), dtype=np.uint8),
        ]

        with patch("colorwatch.core.capture.mss.mss", return_value=sct):
            source = ScreenFrameSource(self.REGION, retry_count=3, retry_interval_ms=0)
            frame = source.read()

        assert frame is not None
        assert sct.grab.call_count == 2

    def test_gives_up_after_retries(self) -> None:
        """Persistent failure raises CaptureError after N attempts."""
        sct = MagicMock()
        sct.grab.side_effect = mss.exception.ScreenShotError("denied")

        with patch("colorwatch.core.capture.mss.mss", return_value=sct), \
                patch("colorwatch.core.capture.IS_MACOS", False):
            source = ScreenFrameSource(self.REGION, retry_count=3, retry_interval_ms=0)
            with pytest.raises(CaptureError) as exc_info:
                source.read()

        assert sct.grab.call_count == 3
        assert exc_info.value.reason == CaptureReason.UNKNOWN

    def test_macos_failure_is_permission(self) -> None:
        """On macOS a failing grab usually means missing permission."""
        sct = MagicMock()
        sct.grab.side_effect = mss.exception.ScreenShotError("denied")

        with patch("colorwatch.core.capture.mss.mss", return_value=sct), \
                patch("colorwatch.core.capture.IS_MACOS", True):
            source = ScreenFrameSource(self.REGION, retry_count=1, retry_interval_ms=0)
            with pytest.raises(CaptureError) as exc_info:
                source.read()

        assert exc_info.value.reason == CaptureReason.NOT_ALLOWED
