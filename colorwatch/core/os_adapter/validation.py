"""Monitor settings validation.

Checks the capture region against the virtual desktop and the tick
interval against its allowed range before a run is started.
"""

from dataclasses import dataclass
from typing import Optional

from ..constants import TICK_INTERVAL_MAX_MS, TICK_INTERVAL_MIN_MS
from ..model import MonitorSettings, ScreenRegion, VirtualDesktopInfo
from . import get_virtual_desktop_info


@dataclass
class ValidationResult:
    """Result of a validation check.

    Attributes:
        valid: True if validation passed
        errors: List of error messages if validation failed
    """

    valid: bool
    errors: list[str]

    @classmethod
    def success(cls) -> "ValidationResult":
        """Create a successful validation result."""
        return cls(valid=True, errors=[])

    @classmethod
    def failure(cls, *errors: str) -> "ValidationResult":
        """Create a failed validation result with error messages."""
        return cls(valid=False, errors=list(errors))

    def __bool__(self) -> bool:
        """Allow using result in boolean context."""
        return self.valid


def validate_region(
    region: ScreenRegion,
    desktop: Optional[VirtualDesktopInfo] = None,
) -> ValidationResult:
    """Validate capture region dimensions and bounds.

    Args:
        region: The region to validate
        desktop: Virtual desktop info (fetched automatically if None)

    Returns:
        ValidationResult indicating success or failure
    """
    errors: list[str] = []
    if region.w <= 0:
        errors.append("监控区域宽度必须大于0")
    if region.h <= 0:
        errors.append("监控区域高度必须大于0")
    if errors:
        return ValidationResult.failure(*errors)

    if desktop is None:
        desktop = get_virtual_desktop_info()

    if not desktop.contains_region(region):
        return ValidationResult.failure(
            f"监控区域 ({region.x}, {region.y}, {region.w}x{region.h}) 超出虚拟桌面范围 "
            f"[{desktop.left}, {desktop.top}] - [{desktop.right}, {desktop.bottom}]"
        )

    return ValidationResult.success()


def validate_interval(interval_ms: int) -> ValidationResult:
    """Validate the tick interval."""
    if not TICK_INTERVAL_MIN_MS <= interval_ms <= TICK_INTERVAL_MAX_MS:
        return ValidationResult.failure(
            f"采样周期 {interval_ms}ms 超出范围 "
            f"[{TICK_INTERVAL_MIN_MS}, {TICK_INTERVAL_MAX_MS}]"
        )
    return ValidationResult.success()


def validate_monitor_settings(
    settings: MonitorSettings,
    desktop: Optional[VirtualDesktopInfo] = None,
) -> ValidationResult:
    """Validate complete monitor settings before Start.

    Checks:
    - Tick interval within range
    - Camera index is not negative (camera source)
    - Region has positive size and lies within the desktop (screen source)

    Args:
        settings: The settings to validate
        desktop: Virtual desktop info (fetched automatically if needed)

    Returns:
        ValidationResult with all validation errors
    """
    all_errors: list[str] = []

    interval_result = validate_interval(settings.interval_ms)
    if not interval_result.valid:
        all_errors.extend(interval_result.errors)

    if settings.region is not None:
        region_result = validate_region(settings.region, desktop)
        if not region_result.valid:
            all_errors.extend(region_result.errors)
    elif settings.camera_index < 0:
        all_errors.append(f"摄像头编号无效: {settings.camera_index}")

    if all_errors:
        return ValidationResult.failure(*all_errors)

    return ValidationResult.success()
