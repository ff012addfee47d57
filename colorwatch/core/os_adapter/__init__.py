"""Platform detection and desktop geometry helpers.

This module provides cross-platform abstractions for:
- Platform flag (macOS, for screen-capture permission errors)
- Virtual desktop information (for screen-region frame sources)
"""

import sys
from typing import TYPE_CHECKING

# Platform detection
IS_MACOS: bool = sys.platform == "darwin"

if TYPE_CHECKING:
    from ..model import VirtualDesktopInfo


def get_virtual_desktop_info() -> "VirtualDesktopInfo":
    """Get information about the virtual desktop (all monitors combined).

    Returns:
        VirtualDesktopInfo with bounds of the entire virtual desktop.

    Note:
        On Windows with multiple monitors, coordinates may include
        negative values if monitors are positioned to the left of
        or above the primary monitor.
    """
    from ..model import VirtualDesktopInfo

    try:
        import mss

        with mss.mss() as sct:
            # Monitor 0 is the "all monitors" virtual screen
            all_monitors = sct.monitors[0]
            return VirtualDesktopInfo(
                left=all_monitors["left"],
                top=all_monitors["top"],
                width=all_monitors["width"],
                height=all_monitors["height"],
            )
    except Exception:
        # Fall back to Qt when mss cannot reach the display
        from PySide6.QtWidgets import QApplication

        if QApplication.instance():
            screen = QApplication.primaryScreen()
            if screen:
                geom = screen.virtualGeometry()
                return VirtualDesktopInfo(
                    left=geom.x(),
                    top=geom.y(),
                    width=geom.width(),
                    height=geom.height(),
                )

        return VirtualDesktopInfo(left=0, top=0, width=1920, height=1080)


__all__ = [
    "IS_MACOS",
    "get_virtual_desktop_info",
]
