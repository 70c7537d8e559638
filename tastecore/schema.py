"""Shared names, bounds and numeric helpers for visual and taste parameters.

Wire names are camelCase because the browser front end and the 3D scene
consume them verbatim; Python attributes use the snake_case equivalents.
"""

from __future__ import annotations

import math
from types import MappingProxyType
from typing import Any, Literal, Mapping

PERCENT_MIN = 0
PERCENT_MAX = 100

# Value carried by the one active sphere bucket.
SPHERE_ACTIVE = 250

PitchClass = Literal["A", "A#", "B", "C", "C#", "D", "D#", "E", "F", "F#", "G", "G#"]
PITCH_CLASSES: tuple[PitchClass, ...] = (
    "C",
    "C#",
    "D",
    "D#",
    "E",
    "F",
    "F#",
    "G",
    "G#",
    "A",
    "A#",
    "B",
)
DEFAULT_KEY: PitchClass = "C"

VisualField = Literal[
    "fresnel",
    "depthDarkTop",
    "depthDarkBottom",
    "red",
    "green",
    "blue",
    "noise",
    "displace",
    "speed",
    "normal",
]
VISUAL_FIELDS: tuple[VisualField, ...] = (
    "fresnel",
    "depthDarkTop",
    "depthDarkBottom",
    "red",
    "green",
    "blue",
    "noise",
    "displace",
    "speed",
    "normal",
)

TasteField = Literal[
    "instrumentalness",
    "popularity",
    "valence",
    "artistDiversity",
    "energy",
    "internalCoherence",
    "averageKey",
]
TASTE_FIELDS: tuple[TasteField, ...] = (
    "instrumentalness",
    "popularity",
    "valence",
    "artistDiversity",
    "energy",
    "internalCoherence",
    "averageKey",
)

VISUAL_DEFAULTS: Mapping[VisualField, int] = MappingProxyType(
    {
        "fresnel": 50,
        "depthDarkTop": 50,
        "depthDarkBottom": 50,
        "red": 33,
        "green": 33,
        "blue": 33,
        "noise": 30,
        "displace": 50,
        "speed": 50,
        "normal": 20,
    }
)

# Upper bound of the normal map strength produced from internal coherence.
NORMAL_RANGE_MAX = 30


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up, like the browser's Math.round."""
    return int(math.floor(value + 0.5))


def to_number(value: Any) -> float | None:
    """Best-effort numeric coercion; returns None for anything non-numeric or NaN."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number):
        return None
    return number


def clamp_percent(value: float) -> int:
    if math.isinf(value):
        return PERCENT_MAX if value > 0 else PERCENT_MIN
    return max(PERCENT_MIN, min(PERCENT_MAX, round_half_up(value)))


def in_percent_range(value: float) -> bool:
    return PERCENT_MIN <= value <= PERCENT_MAX


def normalize_key(label: Any) -> PitchClass | None:
    """Return the canonical pitch-class label, or None when it is not one of the twelve."""
    if not isinstance(label, str):
        return None
    cleaned = label.strip().upper()
    for pitch in PITCH_CLASSES:
        if pitch == cleaned:
            return pitch
    return None


def key_from_index(index: int) -> PitchClass | None:
    """Map a 0-11 pitch-class index (0 = C) to its label; -1 and other values map to None."""
    if 0 <= index < len(PITCH_CLASSES):
        return PITCH_CLASSES[index]
    return None


def to_snake(name: str) -> str:
    chars: list[str] = []
    for ch in name:
        if ch.isupper():
            chars.append("_")
            chars.append(ch.lower())
        else:
            chars.append(ch)
    return "".join(chars)
