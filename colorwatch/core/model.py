"""Core data models for ColorWatch.

Defines the pixel predicate rules, threshold configuration, frame
statistics and alarm state enums used by the detection kernel.
"""

from dataclasses import dataclass
from enum import Enum, auto
from types import MappingProxyType
from typing import Any, Iterator, Literal, Mapping, Optional

from .constants import CAMERA_INDEX_DEFAULT, TICK_INTERVAL_MS

Channel = Literal["r", "g", "b"]

CHANNELS: tuple[Channel, ...] = ("r", "g", "b")


class AlarmState(Enum):
    """Alarm state machine states."""

    Silent = auto()
    """未报警"""

    Active = auto()
    """报警中,循环播放警报音"""


class Comparison(Enum):
    """How a trigger condition compares a class percentage to its threshold."""

    BELOW = "below"
    """pct < threshold"""

    ABOVE = "above"
    """pct > threshold"""


class TriggerMode(Enum):
    """How trigger conditions are combined."""

    ANY = "any"
    ALL = "all"


class PlaybackResult(Enum):
    """Outcome of a start-playback request reported by a playback sink."""

    STARTED = auto()
    """已开始播放"""

    BLOCKED = auto()
    """播放被阻止 (解码失败/设备不可用),需用户操作后重试"""

    NO_SOURCE = auto()
    """尚未加载警报音文件"""


@dataclass(frozen=True)
class HSV:
    """A colour in HSV space.

    Attributes:
        h: Hue in degrees, [0, 360)
        s: Saturation in percent, [0, 100]
        v: Value in percent, [0, 100]
    """

    h: float
    s: float
    v: float


def _optional_float(value: Any) -> Optional[float]:
    return None if value is None else float(value)


@dataclass(frozen=True)
class ChannelRule:
    """Raw-channel predicate around one dominant channel.

    Every field that is set must hold for a pixel to match.

    Attributes:
        channel: Dominant channel ('r', 'g' or 'b')
        min_value: Dominant channel must be strictly greater than this
        dominance: Dominant channel must exceed each other channel times this
        max_others: Both other channels must be strictly less than this
    """

    channel: Channel
    min_value: Optional[float] = None
    dominance: Optional[float] = None
    max_others: Optional[float] = None

    def __post_init__(self) -> None:
        if self.channel not in CHANNELS:
            raise ValueError(f"Unknown channel: {self.channel!r}")

    @property
    def others(self) -> tuple[Channel, Channel]:
        """The two non-dominant channels, in r/g/b order."""
        a, b = (c for c in CHANNELS if c != self.channel)
        return (a, b)


@dataclass(frozen=True)
class HsvRule:
    """HSV-space predicate.

    Attributes:
        hue_ranges: Inclusive (lo, hi) hue ranges in degrees; a pixel
            matches if its hue falls in any of them. Wrap-around is
            written as two ranges, e.g. ((0, 10), (350, 360)).
        s_min: Minimum saturation percent (inclusive)
        v_min: Minimum value percent (inclusive)
        quantize: Round h/s/v half-up to whole numbers before comparing
    """

    hue_ranges: tuple[tuple[float, float], ...] = ((0.0, 360.0),)
    s_min: float = 0.0
    v_min: float = 0.0
    quantize: bool = False

    def __post_init__(self) -> None:
        if not self.hue_ranges:
            raise ValueError("hue_ranges must not be empty")
        for lo, hi in self.hue_ranges:
            if lo > hi:
                raise ValueError(f"Invalid hue range ({lo}, {hi}): lo > hi")


@dataclass(frozen=True)
class ColorClass:
    """A named colour class: the conjunction of its rules.

    Attributes:
        name: Class name used as key in FrameStats
        channel_rule: Optional raw-channel predicate
        hsv_rule: Optional HSV predicate
    """

    name: str
    channel_rule: Optional[ChannelRule] = None
    hsv_rule: Optional[HsvRule] = None


@dataclass(frozen=True)
class TriggerCondition:
    """One comparison of a class percentage against a threshold."""

    class_name: str
    comparison: Comparison
    threshold: float

    def holds(self, pct: float) -> bool:
        """Check whether the condition holds for the given percentage."""
        if self.comparison == Comparison.BELOW:
            return pct < self.threshold
        return pct > self.threshold


@dataclass(frozen=True)
class TriggerPredicate:
    """Boolean function over FrameStats deciding whether to alarm.

    Attributes:
        conditions: Conditions to evaluate
        mode: ANY (logical OR) or ALL (logical AND)
    """

    conditions: tuple[TriggerCondition, ...]
    mode: TriggerMode = TriggerMode.ANY

    def __post_init__(self) -> None:
        if not self.conditions:
            raise ValueError("Trigger predicate needs at least one condition")

    def __call__(self, stats: "FrameStats") -> bool:
        results = (c.holds(stats[c.class_name]) for c in self.conditions)
        if self.mode == TriggerMode.ALL:
            return all(results)
        return any(results)


@dataclass(frozen=True)
class ThresholdConfig:
    """Immutable detection configuration: classes plus alarm trigger.

    Attributes:
        name: Variant name (shown in the UI and logs)
        classes: Colour classes to classify
        trigger: Alarm trigger predicate over the class percentages
        resignal_steady_state: Re-issue the playback signal on every
            sample instead of only on state changes
    """

    name: str
    classes: tuple[ColorClass, ...]
    trigger: TriggerPredicate
    resignal_steady_state: bool = False

    def __post_init__(self) -> None:
        names = [c.name for c in self.classes]
        if not names:
            raise ValueError("ThresholdConfig needs at least one colour class")
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate colour class names: {names}")
        for condition in self.trigger.conditions:
            if condition.class_name not in names:
                raise ValueError(
                    f"Trigger refers to unknown class {condition.class_name!r}"
                )

    @property
    def class_names(self) -> tuple[str, ...]:
        """Configured class names in declaration order."""
        return tuple(c.name for c in self.classes)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to plain JSON-compatible data."""
        classes = []
        for color_class in self.classes:
            entry: dict[str, Any] = {"name": color_class.name}
            rule = color_class.channel_rule
            if rule is not None:
                entry["channel"] = {
                    "channel": rule.channel,
                    "min_value": rule.min_value,
                    "dominance": rule.dominance,
                    "max_others": rule.max_others,
                }
            hsv = color_class.hsv_rule
            if hsv is not None:
                entry["hsv"] = {
                    "hue_ranges": [list(r) for r in hsv.hue_ranges],
                    "s_min": hsv.s_min,
                    "v_min": hsv.v_min,
                    "quantize": hsv.quantize,
                }
            classes.append(entry)

        return {
            "name": self.name,
            "classes": classes,
            "trigger": {
                "mode": self.trigger.mode.value,
                "conditions": [
                    {
                        "class": c.class_name,
                        "comparison": c.comparison.value,
                        "threshold": c.threshold,
                    }
                    for c in self.trigger.conditions
                ],
            },
            "resignal_steady_state": self.resignal_steady_state,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ThresholdConfig":
        """Build a config from data produced by to_dict() or a JSON file.

        Raises:
            ValueError: If required keys are missing or values are invalid
        """
        try:
            classes = []
            for entry in data["classes"]:
                channel_rule = None
                if entry.get("channel") is not None:
                    ch = entry["channel"]
                    channel_rule = ChannelRule(
                        channel=ch["channel"],
                        min_value=_optional_float(ch.get("min_value")),
                        dominance=_optional_float(ch.get("dominance")),
                        max_others=_optional_float(ch.get("max_others")),
                    )
                hsv_rule = None
                if entry.get("hsv") is not None:
                    hsv = entry["hsv"]
                    hsv_rule = HsvRule(
                        hue_ranges=tuple(
                            (float(lo), float(hi))
                            for lo, hi in hsv.get("hue_ranges", [(0.0, 360.0)])
                        ),
                        s_min=float(hsv.get("s_min", 0.0)),
                        v_min=float(hsv.get("v_min", 0.0)),
                        quantize=bool(hsv.get("quantize", False)),
                    )
                classes.append(
                    ColorClass(
                        name=entry["name"],
                        channel_rule=channel_rule,
                        hsv_rule=hsv_rule,
                    )
                )

            trigger_data = data["trigger"]
            trigger = TriggerPredicate(
                conditions=tuple(
                    TriggerCondition(
                        class_name=c["class"],
                        comparison=Comparison(c["comparison"]),
                        threshold=float(c["threshold"]),
                    )
                    for c in trigger_data["conditions"]
                ),
                mode=TriggerMode(trigger_data.get("mode", "any")),
            )
        except KeyError as e:
            raise ValueError(f"Missing config key: {e}") from e
        except (AttributeError, TypeError, ValueError) as e:
            raise ValueError(f"Invalid config value: {e}") from e

        return cls(
            name=data.get("name", "custom"),
            classes=tuple(classes),
            trigger=trigger,
            resignal_steady_state=bool(data.get("resignal_steady_state", False)),
        )


@dataclass(frozen=True)
class FrameStats:
    """Per-frame percentage of pixels matching each colour class.

    Attributes:
        percentages: Class name -> percent of frame pixels, [0, 100]
        pixel_count: Number of pixels scanned
    """

    percentages: Mapping[str, float]
    pixel_count: int = 0

    def __post_init__(self) -> None:
        # Read-only copy; stats cross from the worker to the UI thread
        object.__setattr__(
            self, "percentages", MappingProxyType(dict(self.percentages))
        )

    def __getitem__(self, class_name: str) -> float:
        return self.percentages[class_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.percentages)

    def get(self, class_name: str, default: float = 0.0) -> float:
        """Get a class percentage, with default for unknown classes."""
        return self.percentages.get(class_name, default)


@dataclass(frozen=True)
class AlarmTransition:
    """A state change produced by the alarm state machine."""

    previous: AlarmState
    current: AlarmState


@dataclass(frozen=True)
class ScreenRegion:
    """A rectangle on the virtual desktop to use as frame source.

    Attributes:
        x: Left edge X coordinate (may be negative on multi-monitor setups)
        y: Top edge Y coordinate
        w: Width (must be > 0)
        h: Height (must be > 0)
    """

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        """Right edge X coordinate."""
        return self.x + self.w

    @property
    def bottom(self) -> int:
        """Bottom edge Y coordinate."""
        return self.y + self.h

    def is_valid(self) -> bool:
        """Check if region has positive dimensions."""
        return self.w > 0 and self.h > 0

    def as_monitor(self) -> dict[str, int]:
        """Return as an mss monitor dict."""
        return {"left": self.x, "top": self.y, "width": self.w, "height": self.h}


@dataclass
class VirtualDesktopInfo:
    """Information about the virtual desktop (all monitors combined)."""

    left: int
    top: int
    width: int
    height: int

    @property
    def right(self) -> int:
        """Rightmost X coordinate."""
        return self.left + self.width

    @property
    def bottom(self) -> int:
        """Bottommost Y coordinate."""
        return self.top + self.height

    def contains_region(self, region: ScreenRegion) -> bool:
        """Check if region is entirely within virtual desktop bounds."""
        return (self.left <= region.x and
                self.top <= region.y and
                region.right <= self.right and
                region.bottom <= self.bottom)


@dataclass
class MonitorSettings:
    """Settings for one monitoring run.

    Attributes:
        config: Detection configuration
        camera_index: Camera device index (used when region is None)
        region: Screen region to watch instead of a camera
        interval_ms: Tick period in milliseconds
    """

    config: ThresholdConfig
    camera_index: int = CAMERA_INDEX_DEFAULT
    region: Optional[ScreenRegion] = None
    interval_ms: int = TICK_INTERVAL_MS
