from __future__ import annotations

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import Literal, Mapping

from .schema import SPHERE_ACTIVE

Tier = Literal["low", "mid", "high"]
SpeedTier = Literal["slow", "medium", "fast"]

TIERS: tuple[Tier, ...] = ("low", "mid", "high")


@dataclass(frozen=True, slots=True)
class Band:
    """Numeric range of one tier. `inclusive_upper` closes the top end."""

    lower: float
    upper: float
    inclusive_upper: bool = False

    def contains(self, value: float) -> bool:
        if value < self.lower:
            return False
        if self.inclusive_upper:
            return value <= self.upper
        return value < self.upper


TIER_BANDS: Mapping[Tier, Band] = MappingProxyType(
    {
        "low": Band(0, 33),
        "mid": Band(33, 66),
        "high": Band(66, 100, inclusive_upper=True),
    }
)

SPEED_TIERS: Mapping[SpeedTier, Tier] = MappingProxyType(
    {
        "slow": "low",
        "medium": "mid",
        "fast": "high",
    }
)


@dataclass(frozen=True, slots=True)
class SphereBucket:
    low: int = 0
    mid: int = 0
    high: int = 0

    @property
    def tier(self) -> Tier:
        if self.low:
            return "low"
        if self.mid:
            return "mid"
        return "high"


def band_contains(tier: Tier, value: float | None) -> bool:
    """Strict membership test: undefined or out-of-range values belong to no band."""
    if value is None or math.isnan(value):
        return False
    return TIER_BANDS[tier].contains(value)


def classify(value: float | None) -> Tier:
    """Pick the tier for `value`.

    Only the low and mid bands are tested; everything else, including
    negative numbers, NaN and None, lands in "high".
    """
    if band_contains("low", value):
        return "low"
    if band_contains("mid", value):
        return "mid"
    return "high"


def bucket(displace: float | None) -> SphereBucket:
    match classify(displace):
        case "low":
            return SphereBucket(low=SPHERE_ACTIVE)
        case "mid":
            return SphereBucket(mid=SPHERE_ACTIVE)
        case _:
            return SphereBucket(high=SPHERE_ACTIVE)


def speed_in_tier(speed: float | None, tier: SpeedTier) -> bool:
    return band_contains(SPEED_TIERS[tier], speed)
