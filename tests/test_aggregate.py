from __future__ import annotations

import pytest
from pydantic import ValidationError

from tastecore.aggregate import (
    TrackFeatures,
    aggregate_taste,
    artist_diversity,
    internal_coherence,
    modal_key,
)
from tastecore.params import MusicTasteParameters


def _tracks() -> list[TrackFeatures]:
    return [
        TrackFeatures(key=0, instrumentalness=0.2, valence=0.4, energy=0.6, popularity=60, artist_ids=["a"]),
        TrackFeatures(key=7, instrumentalness=0.4, valence=0.4, energy=0.6, popularity=80, artist_ids=["a", "b"]),
        TrackFeatures(key=7, instrumentalness=0.6, valence=0.4, energy=0.6, popularity=70, artist_ids=["c"]),
    ]


def test_aggregate_taste_reduces_tracks() -> None:
    taste = aggregate_taste(_tracks())
    assert taste.instrumentalness == 40
    assert taste.valence == 40
    assert taste.energy == 60
    assert taste.popularity == 70
    assert taste.artist_diversity == 100
    assert taste.internal_coherence == 100
    assert taste.average_key == "G"


def test_empty_track_list_gives_default_taste() -> None:
    assert aggregate_taste([]) == MusicTasteParameters()


def test_modal_key_ties_go_to_first_seen_and_ignore_unknown() -> None:
    tracks = [TrackFeatures(key=k) for k in (5, -1, 2, 2, 5, -1, -1)]
    assert modal_key(tracks) == "F"
    assert modal_key([TrackFeatures(key=-1)]) is None
    assert aggregate_taste([TrackFeatures(key=-1)]).average_key == "C"


def test_artist_diversity_counts_unique_artists_per_track() -> None:
    tracks = [
        TrackFeatures(artist_ids=["a"]),
        TrackFeatures(artist_ids=["a"]),
        TrackFeatures(artist_ids=["b"]),
        TrackFeatures(artist_ids=["a"]),
    ]
    assert artist_diversity(tracks) == 50
    assert artist_diversity([]) == 0


def test_featured_artists_can_push_diversity_to_the_cap() -> None:
    tracks = [TrackFeatures(artist_ids=["a", "b", "c"])]
    assert artist_diversity(tracks) == 100


def test_internal_coherence_drops_with_spread() -> None:
    spread = [
        TrackFeatures(energy=0.0, valence=0.0),
        TrackFeatures(energy=1.0, valence=1.0),
    ]
    assert internal_coherence(spread) == 0
    half = [
        TrackFeatures(energy=0.25, valence=0.5),
        TrackFeatures(energy=0.75, valence=0.5),
    ]
    # energy std 0.25, valence std 0 -> mean 0.125 of a possible 0.5
    assert internal_coherence(half) == 75


def test_track_features_validate_ranges() -> None:
    with pytest.raises(ValidationError):
        TrackFeatures(key=12)
    with pytest.raises(ValidationError):
        TrackFeatures(energy=1.5)
    assert TrackFeatures.model_validate({"key": 3, "tempo": 120}).key == 3
