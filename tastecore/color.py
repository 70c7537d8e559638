from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

import numpy as np

from .schema import DEFAULT_KEY, PitchClass, clamp_percent, normalize_key

_LOGGER = logging.getLogger("tastecore.color")

# Sum of the three channels when valence is 0.
MAX_BUDGET = 300.0
# Fraction of the budget a single channel may drift at popularity 0.
JITTER_RATIO = 0.3

# Hue wheel walked in 30 degree steps per semitone, starting at red for C.
KEY_BASE_COLORS: Mapping[PitchClass, tuple[int, int, int]] = MappingProxyType(
    {
        "C": (100, 0, 0),
        "C#": (100, 50, 0),
        "D": (100, 100, 0),
        "D#": (50, 100, 0),
        "E": (0, 100, 0),
        "F": (0, 100, 50),
        "F#": (0, 100, 100),
        "G": (0, 50, 100),
        "G#": (0, 0, 100),
        "A": (50, 0, 100),
        "A#": (100, 0, 100),
        "B": (100, 0, 50),
    }
)


@dataclass(frozen=True, slots=True)
class RGB:
    red: int
    green: int
    blue: int

    def as_tuple(self) -> tuple[int, int, int]:
        return (self.red, self.green, self.blue)


SAFE_COLOR = RGB(33, 33, 33)


def color_budget(valence: float) -> float:
    """Total channel budget; happier music gets a darker aggregate color."""
    return (100 - valence) / 100 * MAX_BUDGET


def base_color(key: object) -> tuple[int, int, int]:
    pitch = normalize_key(key)
    if pitch is None:
        _LOGGER.debug("Unknown key %r, using %s", key, DEFAULT_KEY)
        pitch = DEFAULT_KEY
    return KEY_BASE_COLORS[pitch]


def _distribute(
    total: float,
    base: tuple[int, int, int],
    popularity: int,
    rng: np.random.Generator,
) -> np.ndarray:
    if popularity == 100:
        return np.full(3, total / 3)

    base_arr = np.asarray(base, dtype=float)
    scaled = base_arr * (total / base_arr.sum())

    spread = total * JITTER_RATIO * (1 - popularity / 100)
    jittered = scaled + rng.uniform(-spread, spread, size=3)

    return jittered * (total / jittered.sum())


def synthesize_color(
    valence: float,
    key: object,
    popularity: float,
    *,
    rng: np.random.Generator | None = None,
) -> RGB:
    """Turn mood, key and popularity into an RGB triple with channels in [0, 100].

    Valence sets the budget the three channels share, the key picks the hue the
    budget is split along, and popularity controls how far each channel may
    wander from that hue: at 100 the budget is split evenly, lower values add
    more random jitter before the channels are renormalised to the budget.
    Channels are clamped last, so a renormalised channel above 100 loses the
    excess.

    Args:
        valence: 0-100, clamped.
        key: Pitch-class label; anything unrecognised behaves like "C".
        popularity: 0-100, clamped.
        rng: Generator used for the jitter. Pass a seeded one for
            reproducible output.
    """
    local_rng = rng or np.random.default_rng()
    try:
        valence = clamp_percent(float(valence))
        popularity = clamp_percent(float(popularity))
        total = color_budget(valence)
        if total <= 0:
            return RGB(0, 0, 0)
        with np.errstate(divide="raise", invalid="raise", over="raise"):
            channels = _distribute(total, base_color(key), popularity, local_rng)
        if not np.all(np.isfinite(channels)):
            raise FloatingPointError("non-finite color channel")
    except (ArithmeticError, ValueError) as exc:
        _LOGGER.warning(
            "Color synthesis failed for valence=%s key=%r popularity=%s: %s",
            valence,
            key,
            popularity,
            exc,
        )
        return SAFE_COLOR

    red, green, blue = (clamp_percent(float(value)) for value in channels)
    return RGB(red, green, blue)


class ColorSynthesizer:
    """Holds the random generator used for color jitter."""

    def __init__(
        self,
        *,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
    ) -> None:
        self._rng = rng if rng is not None else np.random.default_rng(seed)

    @property
    def rng(self) -> np.random.Generator:
        return self._rng

    def synthesize(self, valence: float, key: object, popularity: float) -> RGB:
        return synthesize_color(valence, key, popularity, rng=self._rng)
