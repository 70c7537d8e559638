from __future__ import annotations

from .aggregate import TrackFeatures, aggregate_taste
from .buckets import SphereBucket, Tier, band_contains, bucket, classify, speed_in_tier
from .color import RGB, ColorSynthesizer, synthesize_color
from .errors import InvalidParametersError, ProfileNotFoundError, TasteCoreError
from .logging_utils import configure_logging as _configure_logging
from .mapping import ParameterMapper, apply_taste_mapping, apply_taste_profile
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
    VisualParametersUpdate,
    parse_change,
    parse_taste,
    parse_update,
    parse_visual,
)
from .schema import PITCH_CLASSES, TASTE_FIELDS, VISUAL_DEFAULTS, VISUAL_FIELDS, PitchClass
from .service import ProfileService
from .session import TasteSession
from .store import InMemoryProfileStore, ProfileStore, SqliteProfileStore

__all__ = [
    "PITCH_CLASSES",
    "RGB",
    "TASTE_FIELDS",
    "VISUAL_DEFAULTS",
    "VISUAL_FIELDS",
    "ArtistDiversityChange",
    "AverageKeyChange",
    "ColorSynthesizer",
    "EnergyChange",
    "InMemoryProfileStore",
    "InstrumentalnessChange",
    "InternalCoherenceChange",
    "InvalidParametersError",
    "MusicTasteParameters",
    "ParameterMapper",
    "PitchClass",
    "PopularityChange",
    "ProfileNotFoundError",
    "ProfileService",
    "ProfileStore",
    "SphereBucket",
    "SqliteProfileStore",
    "TasteChange",
    "TasteCoreError",
    "TasteSession",
    "Tier",
    "TrackFeatures",
    "ValenceChange",
    "VisualParameters",
    "VisualParametersUpdate",
    "aggregate_taste",
    "apply_taste_mapping",
    "apply_taste_profile",
    "band_contains",
    "bucket",
    "classify",
    "parse_change",
    "parse_taste",
    "parse_update",
    "parse_visual",
    "speed_in_tier",
    "synthesize_color",
]

__version__ = "0.1.0"

_configure_logging()
del _configure_logging
