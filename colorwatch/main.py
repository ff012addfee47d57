"""ColorWatch application entry point.

Parses command line options into monitor settings, then creates the
Qt application, the alarm sound player and the main window.

Usage:
  python -m colorwatch.main --preset strict --alarm alarm.wav
  python -m colorwatch.main --screen 0 0 800 600 --interval 500
  python -m colorwatch.main --preset green-only --export-config green.json
"""

import argparse
import sys
from pathlib import Path
from typing import Optional, Sequence

from colorwatch.core.constants import CAMERA_INDEX_DEFAULT, TICK_INTERVAL_MS
from colorwatch.core.model import MonitorSettings, ScreenRegion, ThresholdConfig
from colorwatch.core.presets import (
    PRESETS,
    get_preset,
    load_threshold_config,
    save_threshold_config,
)


def build_parser() -> argparse.ArgumentParser:
    """Create the command line parser."""
    p = argparse.ArgumentParser(
        prog="colorwatch",
        description="监控视频画面中的绿色/红色像素比例并在异常时报警",
    )
    p.add_argument(
        "--preset",
        default="default",
        choices=sorted(PRESETS),
        help="内置检测配置",
    )
    p.add_argument("--config", type=Path, help="JSON检测配置文件 (优先于 --preset)")
    p.add_argument(
        "--camera",
        type=int,
        default=CAMERA_INDEX_DEFAULT,
        help="摄像头编号",
    )
    p.add_argument(
        "--screen",
        type=int,
        nargs=4,
        metavar=("X", "Y", "W", "H"),
        help="监控屏幕区域而不是摄像头",
    )
    p.add_argument(
        "--interval",
        type=int,
        default=TICK_INTERVAL_MS,
        help="采样周期 (毫秒)",
    )
    p.add_argument("--alarm", type=Path, help="警报音文件")
    p.add_argument(
        "--export-config",
        type=Path,
        metavar="PATH",
        help="将所选检测配置写入JSON文件后退出",
    )
    return p


def resolve_configs(args: argparse.Namespace) -> tuple[dict[str, ThresholdConfig], ThresholdConfig]:
    """Collect the selectable configurations and the initial one.

    Returns:
        Tuple of (configurations by name, selected configuration)

    Raises:
        ValueError: If the config file is invalid
        OSError: If the config file cannot be read
    """
    configs = dict(PRESETS)
    if args.config is not None:
        selected = load_threshold_config(args.config)
        configs[selected.name] = selected
    else:
        selected = get_preset(args.preset)
    return configs, selected


def settings_from_args(args: argparse.Namespace, config: ThresholdConfig) -> MonitorSettings:
    """Build monitor settings from parsed arguments."""
    region = ScreenRegion(*args.screen) if args.screen else None
    return MonitorSettings(
        config=config,
        camera_index=args.camera,
        region=region,
        interval_ms=args.interval,
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Application entry point.

    Returns:
        Exit code (0 for success, non-zero for failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        configs, selected = resolve_configs(args)
    except (OSError, ValueError) as e:
        parser.error(f"无法加载检测配置: {e}")

    if args.export_config is not None:
        save_threshold_config(selected, args.export_config)
        print(f"检测配置已写入: {args.export_config}")
        return 0

    settings = settings_from_args(args, selected)

    # Qt is only needed for the window
    from PySide6.QtWidgets import QApplication

    from colorwatch.controller import ApplicationController
    from colorwatch.core.playback import QtPlaybackSink
    from colorwatch.ui import MainWindow

    app = QApplication(sys.argv[:1])
    app.setApplicationName("ColorWatch")
    app.setApplicationVersion("1.0.0")
    app.setOrganizationName("ColorWatch")

    sink = QtPlaybackSink()
    window = MainWindow(configs, settings)
    controller = ApplicationController(window, sink)
    app.aboutToQuit.connect(controller.shutdown)

    if args.alarm is not None:
        sink.load(args.alarm)

    window.show()

    # Run event loop
    return app.exec()


if __name__ == "__main__":
    sys.exit(main())
