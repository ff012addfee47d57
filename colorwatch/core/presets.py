"""Named detection configurations and config file loading.

Each observed threshold/trigger variant is a ThresholdConfig selected by
name at startup. A custom variant can be loaded from a JSON file written
in the ThresholdConfig.to_dict() layout.
"""

import json
from pathlib import Path
from typing import Union

from .constants import GREEN_THRESHOLD_DEFAULT, RED_THRESHOLD_DEFAULT
from .model import (
    ChannelRule,
    ColorClass,
    Comparison,
    HsvRule,
    ThresholdConfig,
    TriggerCondition,
    TriggerMode,
    TriggerPredicate,
)

RED_HUE_RANGES: tuple[tuple[float, float], ...] = ((0.0, 10.0), (350.0, 360.0))

GREEN = ColorClass(
    name="green",
    channel_rule=ChannelRule(channel="g", min_value=100, dominance=1.8),
)

RED = ColorClass(
    name="red",
    channel_rule=ChannelRule(channel="r", min_value=150, dominance=3.0),
    hsv_rule=HsvRule(hue_ranges=RED_HUE_RANGES, s_min=85, v_min=85, quantize=True),
)

GREEN_STRICT = ColorClass(
    name="green",
    channel_rule=ChannelRule(channel="g", min_value=80, dominance=1.5),
)

RED_STRICT = ColorClass(
    name="red",
    channel_rule=ChannelRule(channel="r", min_value=200, max_others=50),
    hsv_rule=HsvRule(hue_ranges=RED_HUE_RANGES, s_min=90, v_min=90),
)

GREEN_LOW_OR_RED_HIGH = TriggerPredicate(
    conditions=(
        TriggerCondition("green", Comparison.BELOW, GREEN_THRESHOLD_DEFAULT),
        TriggerCondition("red", Comparison.ABOVE, RED_THRESHOLD_DEFAULT),
    ),
    mode=TriggerMode.ANY,
)

DEFAULT_CONFIG = ThresholdConfig(
    name="default",
    classes=(GREEN, RED),
    trigger=GREEN_LOW_OR_RED_HIGH,
)

STRICT_CONFIG = ThresholdConfig(
    name="strict",
    classes=(GREEN_STRICT, RED_STRICT),
    trigger=GREEN_LOW_OR_RED_HIGH,
)

GREEN_ONLY_CONFIG = ThresholdConfig(
    name="green-only",
    classes=(GREEN_STRICT,),
    trigger=TriggerPredicate(
        conditions=(TriggerCondition("green", Comparison.BELOW, 10.0),),
    ),
)

CONTINUOUS_CONFIG = ThresholdConfig(
    name="continuous",
    classes=(GREEN, RED),
    trigger=GREEN_LOW_OR_RED_HIGH,
    resignal_steady_state=True,
)

PRESETS: dict[str, ThresholdConfig] = {
    config.name: config
    for config in (DEFAULT_CONFIG, STRICT_CONFIG, GREEN_ONLY_CONFIG, CONTINUOUS_CONFIG)
}


def get_preset(name: str) -> ThresholdConfig:
    """Look up a named configuration.

    Raises:
        ValueError: If no preset has that name
    """
    try:
        return PRESETS[name]
    except KeyError:
        raise ValueError(
            f"Unknown preset {name!r}, available: {', '.join(sorted(PRESETS))}"
        ) from None


def load_threshold_config(path: Union[str, Path]) -> ThresholdConfig:
    """Load a configuration from a JSON file.

    Args:
        path: JSON file in ThresholdConfig.to_dict() layout

    Returns:
        The loaded configuration

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If the file is not valid JSON or not a valid config
    """
    path = Path(path)
    try:
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if not isinstance(data, dict):
        raise ValueError(f"Config file {path} must contain a JSON object")

    data.setdefault("name", path.stem)
    return ThresholdConfig.from_dict(data)


def save_threshold_config(config: ThresholdConfig, path: Union[str, Path]) -> None:
    """Write a configuration as JSON."""
    path = Path(path)
    with path.open("w", encoding="utf-8") as f:
        json.dump(config.to_dict(), f, indent=2, ensure_ascii=False)
