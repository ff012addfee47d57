"""Tests for monitor settings validation.

Verifies that:
- Screen regions outside virtual desktop bounds are blocked
- Regions with non-positive size are blocked
- The tick interval must be within its allowed range
- Start is prevented when validation fails
"""

import pytest

from colorwatch.core.constants import TICK_INTERVAL_MAX_MS, TICK_INTERVAL_MIN_MS
from colorwatch.core.model import MonitorSettings, ScreenRegion, VirtualDesktopInfo
from colorwatch.core.os_adapter.validation import (
    ValidationResult,
    validate_interval,
    validate_monitor_settings,
    validate_region,
)
from colorwatch.core.presets import DEFAULT_CONFIG


# Test fixtures
@pytest.fixture
def standard_desktop() -> VirtualDesktopInfo:
    """Standard single monitor virtual desktop."""
    return VirtualDesktopInfo(left=0, top=0, width=1920, height=1080)


@pytest.fixture
def multi_monitor_desktop() -> VirtualDesktopInfo:
    """Multi-monitor setup with negative coordinates."""
    # Primary: 0,0 to 1920,1080
    # Secondary to the left: -1920,0 to 0,1080
    return VirtualDesktopInfo(left=-1920, top=0, width=3840, height=1080)


class TestValidationResult:
    """Test ValidationResult helper class."""

    def test_success_is_valid(self) -> None:
        """Success result should be valid with no errors."""
        result = ValidationResult.success()
        assert result.valid is True
        assert result.errors == []
        assert bool(result) is True

    def test_failure_is_invalid(self) -> None:
        """Failure result should be invalid with errors."""
        result = ValidationResult.failure("Error 1", "Error 2")
        assert result.valid is False
        assert result.errors == ["Error 1", "Error 2"]
        assert bool(result) is False


class TestRegionValidation:
    """Test screen region validation."""

    def test_region_inside_bounds_valid(
        self, standard_desktop: VirtualDesktopInfo
    ) -> None:
        """Region fully inside should be valid."""
        region = ScreenRegion(x=100, y=100, w=640, h=480)
        assert validate_region(region, standard_desktop).valid

    def test_full_screen_region_valid(
        self, standard_desktop: VirtualDesktopInfo
    ) -> None:
        """Region touching all edges is still inside."""
        region = ScreenRegion(x=0, y=0, w=1920, h=1080)
        assert validate_region(region, standard_desktop).valid

    def test_region_past_right_edge_invalid(
        self, standard_desktop: VirtualDesktopInfo
    ) -> None:
        """Region extending past the right edge should be invalid."""
        region = ScreenRegion(x=1800, y=100, w=200, h=100)  # Extends to 2000
        result = validate_region(region, standard_desktop)
        assert result.valid is False
        assert len(result.errors) == 1

    def test_region_past_bottom_edge_invalid(
        self, standard_desktop: VirtualDesktopInfo
    ) -> None:
        """Region extending past the bottom edge should be invalid."""
        region = ScreenRegion(x=100, y=1000, w=100, h=200)  # Extends to 1200
        assert not validate_region(region, standard_desktop).valid

    def test_zero_width_invalid(self, standard_desktop: VirtualDesktopInfo) -> None:
        region = ScreenRegion(x=100, y=100, w=0, h=200)
        result = validate_region(region, standard_desktop)
        assert result.valid is False
        assert any("宽度" in err for err in result.errors)

    def test_negative_height_invalid(self, standard_desktop: VirtualDesktopInfo) -> None:
        region = ScreenRegion(x=100, y=100, w=200, h=-5)
        result = validate_region(region, standard_desktop)
        assert result.valid is False
        assert any("高度" in err for err in result.errors)

    def test_negative_origin_on_single_monitor_invalid(
        self, standard_desktop: VirtualDesktopInfo
    ) -> None:
        region = ScreenRegion(x=-50, y=100, w=100, h=100)
        assert not validate_region(region, standard_desktop).valid

    def test_left_monitor_region_valid(
        self, multi_monitor_desktop: VirtualDesktopInfo
    ) -> None:
        """Negative coordinates on a left-hand monitor can be valid."""
        region = ScreenRegion(x=-1800, y=100, w=200, h=200)
        assert validate_region(region, multi_monitor_desktop).valid

    def test_region_spanning_monitors_valid(
        self, multi_monitor_desktop: VirtualDesktopInfo
    ) -> None:
        """A region across the monitor boundary is fine within the desktop."""
        region = ScreenRegion(x=-100, y=100, w=200, h=200)
        assert validate_region(region, multi_monitor_desktop).valid


class TestIntervalValidation:
    """Test tick interval bounds."""

    @pytest.mark.parametrize("ms", [TICK_INTERVAL_MIN_MS, 250, TICK_INTERVAL_MAX_MS])
    def test_in_range(self, ms: int) -> None:
        assert validate_interval(ms).valid

    @pytest.mark.parametrize("ms", [0, TICK_INTERVAL_MIN_MS - 1, TICK_INTERVAL_MAX_MS + 1])
    def test_out_of_range(self, ms: int) -> None:
        assert not validate_interval(ms).valid


class TestStartPrevention:
    """Test that Start is blocked when validation fails."""

    def test_camera_settings_valid(self, standard_desktop: VirtualDesktopInfo) -> None:
        """Default camera settings pass."""
        settings = MonitorSettings(config=DEFAULT_CONFIG)
        assert validate_monitor_settings(settings, standard_desktop)

    def test_negative_camera_index_blocked(
        self, standard_desktop: VirtualDesktopInfo
    ) -> None:
        settings = MonitorSettings(config=DEFAULT_CONFIG, camera_index=-1)
        result = validate_monitor_settings(settings, standard_desktop)
        assert not result
        assert any("摄像头" in err for err in result.errors)

    def test_multiple_errors_collected(self, standard_desktop: VirtualDesktopInfo) -> None:
        """Interval and region errors are reported together."""
        settings = MonitorSettings(
            config=DEFAULT_CONFIG,
            region=ScreenRegion(x=5000, y=0, w=100, h=100),
            interval_ms=10,
        )
        result = validate_monitor_settings(settings, standard_desktop)
        assert result.valid is False
        assert len(result.errors) == 2

    def test_region_settings_valid(self, standard_desktop: VirtualDesktopInfo) -> None:
        settings = MonitorSettings(
            config=DEFAULT_CONFIG,
            region=ScreenRegion(x=0, y=0, w=800, h=600),
        )
        assert validate_monitor_settings(settings, standard_desktop).valid
