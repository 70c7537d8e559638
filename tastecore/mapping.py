from __future__ import annotations

import logging
from typing import Union

from .color import ColorSynthesizer
from .params import (
    ArtistDiversityChange,
    AverageKeyChange,
    EnergyChange,
    InstrumentalnessChange,
    InternalCoherenceChange,
    MusicTasteParameters,
    PopularityChange,
    TasteChange,
    ValenceChange,
    VisualParameters,
    change_from_taste,
)
from .schema import NORMAL_RANGE_MAX, PERCENT_MAX, TasteField, round_half_up

_LOGGER = logging.getLogger("tastecore.mapping")

ChangeInput = Union[TasteChange, str]

_LINEAR_FIELDS: tuple[TasteField, ...] = (
    "instrumentalness",
    "artistDiversity",
    "energy",
    "internalCoherence",
    "valence",
)
_COLOR_FIELDS: tuple[TasteField, ...] = ("averageKey", "popularity")


def coherence_to_normal(coherence: int) -> int:
    return round_half_up(coherence / PERCENT_MAX * NORMAL_RANGE_MAX)


def resolve_change(taste: MusicTasteParameters, change: ChangeInput) -> TasteChange | None:
    if isinstance(change, str):
        return change_from_taste(taste, change)
    return change


def _color_updates(taste: MusicTasteParameters, synthesizer: ColorSynthesizer) -> dict[str, int]:
    rgb = synthesizer.synthesize(taste.valence, taste.average_key, taste.popularity)
    return {"red": rgb.red, "green": rgb.green, "blue": rgb.blue}


def apply_taste_mapping(
    current: VisualParameters,
    taste: MusicTasteParameters,
    change: ChangeInput,
    *,
    synthesizer: ColorSynthesizer | None = None,
) -> VisualParameters:
    """Map one taste change onto the visual parameters.

    Only the fields driven by the changed taste parameter are touched; every
    other visual value passes through. `change` may be a change event or the
    name of a taste field, in which case the value is read from `taste`.
    Changes without a value, names that are not taste fields, and fields
    `taste` does not supply return `current` unchanged.
    """
    event = resolve_change(taste, change)
    if event is None or event.value is None:
        return current

    taste = taste.with_change(event)
    updates: dict[str, int] = {}
    match event:
        case InstrumentalnessChange(value=value):
            updates["fresnel"] = value
        case ArtistDiversityChange(value=value):
            updates["displace"] = value
        case EnergyChange(value=value):
            updates["speed"] = value
        case InternalCoherenceChange(value=value):
            updates["normal"] = coherence_to_normal(value)
        case ValenceChange(value=value):
            inverse = PERCENT_MAX - value
            updates["noise"] = inverse
            updates["depth_dark_bottom"] = inverse
            updates["depth_dark_top"] = inverse
        case AverageKeyChange() | PopularityChange():
            updates.update(_color_updates(taste, synthesizer or ColorSynthesizer()))

    _LOGGER.debug("Mapped %s=%r onto %s", event.field, event.value, sorted(updates))
    return current.model_copy(update=updates)


def apply_taste_profile(
    current: VisualParameters,
    taste: MusicTasteParameters,
    *,
    synthesizer: ColorSynthesizer | None = None,
) -> VisualParameters:
    """Apply the mapping of every supplied taste field, e.g. after taste was aggregated from tracks.

    Color is synthesized once, when the key or popularity was supplied.
    """
    result = current
    for field in _LINEAR_FIELDS:
        result = apply_taste_mapping(result, taste, field)
    if any(taste.supplies(field) for field in _COLOR_FIELDS):
        result = result.model_copy(update=_color_updates(taste, synthesizer or ColorSynthesizer()))
    return result


class ParameterMapper:
    """Taste-to-visual mapping bound to one color synthesizer."""

    def __init__(self, synthesizer: ColorSynthesizer | None = None) -> None:
        self.synthesizer = synthesizer or ColorSynthesizer()

    def apply(
        self,
        current: VisualParameters,
        taste: MusicTasteParameters,
        change: ChangeInput,
    ) -> VisualParameters:
        return apply_taste_mapping(current, taste, change, synthesizer=self.synthesizer)

    def apply_profile(
        self,
        current: VisualParameters,
        taste: MusicTasteParameters,
    ) -> VisualParameters:
        return apply_taste_profile(current, taste, synthesizer=self.synthesizer)
