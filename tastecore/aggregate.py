from __future__ import annotations

import logging
from collections import Counter
from typing import Iterable, Sequence

import numpy as np
from pydantic import BaseModel, ConfigDict, Field

from .params import MusicTasteParameters
from .schema import PERCENT_MAX, clamp_percent, key_from_index

_LOGGER = logging.getLogger("tastecore.aggregate")

# Largest possible std-dev of values in [0, 1]; scales spread to 0-100.
_MAX_UNIT_STD = 0.5


class TrackFeatures(BaseModel):
    """Audio features of one track as reported by the music provider."""

    key: int = Field(default=-1, ge=-1, le=11)
    instrumentalness: float = Field(default=0.0, ge=0.0, le=1.0)
    valence: float = Field(default=0.5, ge=0.0, le=1.0)
    energy: float = Field(default=0.5, ge=0.0, le=1.0)
    popularity: float = Field(default=50.0, ge=0.0, le=100.0)
    artist_ids: list[str] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")


def _percent_mean(values: Sequence[float]) -> int:
    return clamp_percent(float(np.mean(values)) * PERCENT_MAX)


def modal_key(tracks: Sequence[TrackFeatures]) -> str | None:
    """Most common pitch class; ties go to the key seen first. Unknown keys (-1) are ignored."""
    counts = Counter(track.key for track in tracks if track.key >= 0)
    if not counts:
        return None
    index, _ = counts.most_common(1)[0]
    return key_from_index(index)


def artist_diversity(tracks: Sequence[TrackFeatures]) -> int:
    if not tracks:
        return 0
    unique = {artist for track in tracks for artist in track.artist_ids}
    return clamp_percent(len(unique) / len(tracks) * PERCENT_MAX)


def internal_coherence(tracks: Sequence[TrackFeatures]) -> int:
    """100 when energy and valence are uniform across tracks, falling as they spread."""
    energy_std = float(np.std([track.energy for track in tracks]))
    valence_std = float(np.std([track.valence for track in tracks]))
    spread = (energy_std + valence_std) / 2 / _MAX_UNIT_STD
    return clamp_percent((1 - spread) * PERCENT_MAX)


def aggregate_taste(tracks: Iterable[TrackFeatures]) -> MusicTasteParameters:
    items = list(tracks)
    if not items:
        _LOGGER.info("No tracks to aggregate, using default taste parameters")
        return MusicTasteParameters()

    key = modal_key(items)
    return MusicTasteParameters(
        instrumentalness=_percent_mean([track.instrumentalness for track in items]),
        popularity=clamp_percent(float(np.mean([track.popularity for track in items]))),
        valence=_percent_mean([track.valence for track in items]),
        artist_diversity=artist_diversity(items),
        energy=_percent_mean([track.energy for track in items]),
        internal_coherence=internal_coherence(items),
        average_key=key if key is not None else MusicTasteParameters().average_key,
    )
