"""Frame sources: camera capture via OpenCV and screen capture via mss.

Every source returns frames as (H, W, 4) RGBA uint8 arrays, or None when
no frame is ready this tick. Failing to open a source raises CaptureError.
"""

import time
from enum import Enum
from typing import Optional, Protocol

import cv2
import mss
import mss.base
import mss.exception
import numpy as np

from .constants import (
    CAMERA_IDEAL_HEIGHT,
    CAMERA_IDEAL_WIDTH,
    CAMERA_INDEX_DEFAULT,
    CAPTURE_RETRY_INTERVAL_MS,
    CAPTURE_RETRY_N,
)
from .model import ScreenRegion
from .os_adapter import IS_MACOS


class CaptureReason(Enum):
    """Why a frame source could not be used."""

    NOT_FOUND = "not_found"
    NOT_ALLOWED = "not_allowed"
    UNKNOWN = "unknown"


class CaptureError(Exception):
    """Exception raised when a frame source cannot deliver frames."""

    def __init__(self, message: str, reason: CaptureReason = CaptureReason.UNKNOWN) -> None:
        super().__init__(message)
        self.reason = reason


class FrameSource(Protocol):
    """Collaborator supplying one RGBA frame per tick."""

    def open(self) -> None:
        ...

    def read(self) -> Optional[np.ndarray]:
        ...

    def close(self) -> None:
        ...


def bgr_to_rgba(image: np.ndarray) -> np.ndarray:
    """Convert an OpenCV BGR frame to RGBA (opaque alpha)."""
    return cv2.cvtColor(image, cv2.COLOR_BGR2RGBA)


def bgra_to_rgba(image: np.ndarray) -> np.ndarray:
    """Convert an mss BGRA screenshot to RGBA.

    Args:
        image: Array of shape (H, W, 4) in B, G, R, A order

    Returns:
        New array of shape (H, W, 4) in R, G, B, A order
    """
    return np.ascontiguousarray(image[:, :, [2, 1, 0, 3]])


class CameraFrameSource:
    """Camera frame source backed by cv2.VideoCapture."""

    def __init__(
        self,
        device: int = CAMERA_INDEX_DEFAULT,
        width: int = CAMERA_IDEAL_WIDTH,
        height: int = CAMERA_IDEAL_HEIGHT,
    ) -> None:
        """Initialize the source (the device is opened by open()).

        Args:
            device: Camera index
            width: Requested frame width
            height: Requested frame height
        """
        self._device = device
        self._width = width
        self._height = height
        self._cap: Optional[cv2.VideoCapture] = None

    @property
    def is_open(self) -> bool:
        """Whether the camera is open."""
        return self._cap is not None

    def open(self) -> None:
        """Open the camera.

        Raises:
            CaptureError: If the camera cannot be opened
        """
        if self._cap is not None:
            return

        try:
            cap = cv2.VideoCapture(self._device)
        except cv2.error as e:
            raise CaptureError(f"摄像头{self._device}打开失败: {e}") from e

        if not cap.isOpened():
            cap.release()
            raise CaptureError(
                f"未找到摄像头{self._device}或无访问权限",
                CaptureReason.NOT_FOUND,
            )

        # Requested size is a hint; the driver picks the closest mode
        cap.set(cv2.CAP_PROP_FRAME_WIDTH, self._width)
        cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self._height)
        self._cap = cap

    def read(self) -> Optional[np.ndarray]:
        """Read the current frame.

        Returns:
            RGBA frame, or None if the camera has no frame ready
        """
        if self._cap is None:
            return None

        ok, frame = self._cap.read()
        if not ok or frame is None or frame.size == 0:
            return None
        return bgr_to_rgba(frame)

    def close(self) -> None:
        """Release the camera (safe to call repeatedly)."""
        if self._cap is not None:
            self._cap.release()
            self._cap = None

    def __enter__(self) -> "CameraFrameSource":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


class ScreenFrameSource:
    """Screen-region frame source backed by mss.

    mss keeps per-thread GDI handles on Windows, so open() must be called
    on the thread that later calls read(); the engine opens sources from
    its worker thread.
    """

    def __init__(
        self,
        region: ScreenRegion,
        retry_count: int = CAPTURE_RETRY_N,
        retry_interval_ms: int = CAPTURE_RETRY_INTERVAL_MS,
    ) -> None:
        """Initialize the source.

        Args:
            region: Virtual desktop region to capture
            retry_count: Grab attempts per read before giving up
            retry_interval_ms: Milliseconds between attempts
        """
        if not region.is_valid():
            raise ValueError(f"Invalid screen region: {region}")
        self._region = region
        self._retry_count = max(1, retry_count)
        self._retry_interval_ms = retry_interval_ms
        self._sct: Optional[mss.base.MSSBase] = None

    @property
    def region(self) -> ScreenRegion:
        """The captured region."""
        return self._region

    def open(self) -> None:
        """Create the mss instance."""
        if self._sct is None:
            self._sct = mss.mss()

    def read(self) -> Optional[np.ndarray]:
        """Grab the region.

        Retries on failure, recreating the mss instance since it may be
        left in a bad state.

        Returns:
            RGBA frame

        Raises:
            CaptureError: If every attempt failed
        """
        last_error: Optional[Exception] = None

        for attempt in range(self._retry_count):
            try:
                self.open()
                shot = self._sct.grab(self._region.as_monitor())  # type: ignore[union-attr]
                return bgra_to_rgba(np.array(shot))
            except mss.exception.ScreenShotError as e:
                last_error = e
                self.close()
                if attempt < self._retry_count - 1:
                    time.sleep(self._retry_interval_ms / 1000.0)

        reason = CaptureReason.NOT_ALLOWED if IS_MACOS else CaptureReason.UNKNOWN
        raise CaptureError(
            f"截图失败,已重试{self._retry_count}次。最后错误: {last_error}",
            reason,
        )

    def close(self) -> None:
        """Close the mss instance (safe to call repeatedly)."""
        if self._sct is not None:
            try:
                self._sct.close()
            finally:
                self._sct = None

    def __enter__(self) -> "ScreenFrameSource":
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
