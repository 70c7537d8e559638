from __future__ import annotations

import logging
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    computed_field,
    field_validator,
)
from pydantic.alias_generators import to_camel

from .buckets import SphereBucket, bucket
from .errors import InvalidParametersError
from .schema import (
    DEFAULT_KEY,
    TASTE_FIELDS,
    VISUAL_DEFAULTS,
    VISUAL_FIELDS,
    PitchClass,
    TasteField,
    clamp_percent,
    in_percent_range,
    normalize_key,
    round_half_up,
    to_number,
    to_snake,
)

_LOGGER = logging.getLogger("tastecore.params")

OutOfRangePolicy = Literal["drop", "clamp"]


def _clamp_numeric(value: Any) -> Any:
    number = to_number(value)
    if number is None:
        # Leave it to the field type to accept or reject.
        return value
    return clamp_percent(number)


def _coerce_key(value: Any) -> PitchClass:
    pitch = normalize_key(value)
    if pitch is None:
        _LOGGER.debug("Unknown key label %r, falling back to %s", value, DEFAULT_KEY)
        return DEFAULT_KEY
    return pitch


class VisualParameters(BaseModel):
    """Control values of one profile, as consumed by the 3D scene.

    Every stored field is an integer in [0, 100]; numeric input outside the
    range is clamped. The three sphere fields are derived from `displace` each
    time they are read or serialized and are never stored.
    """

    fresnel: int = VISUAL_DEFAULTS["fresnel"]
    depth_dark_top: int = VISUAL_DEFAULTS["depthDarkTop"]
    depth_dark_bottom: int = VISUAL_DEFAULTS["depthDarkBottom"]
    red: int = VISUAL_DEFAULTS["red"]
    green: int = VISUAL_DEFAULTS["green"]
    blue: int = VISUAL_DEFAULTS["blue"]
    noise: int = VISUAL_DEFAULTS["noise"]
    displace: int = VISUAL_DEFAULTS["displace"]
    speed: int = VISUAL_DEFAULTS["speed"]
    normal: int = VISUAL_DEFAULTS["normal"]

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator("*", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> Any:
        return _clamp_numeric(value)

    @property
    def sphere(self) -> SphereBucket:
        return bucket(self.displace)

    @computed_field(alias="sphereLow")  # type: ignore[prop-decorator]
    @property
    def sphere_low(self) -> int:
        return self.sphere.low

    @computed_field(alias="sphereMid")  # type: ignore[prop-decorator]
    @property
    def sphere_mid(self) -> int:
        return self.sphere.mid

    @computed_field(alias="sphereHigh")  # type: ignore[prop-decorator]
    @property
    def sphere_high(self) -> int:
        return self.sphere.high

    def stored_values(self) -> dict[str, int]:
        """Persistable fields only, keyed by attribute name."""
        return {name: getattr(self, name) for name in type(self).model_fields}

    def to_wire(self) -> dict[str, int]:
        return self.model_dump(by_alias=True)


class VisualParametersUpdate(BaseModel):
    """Partial update of a VisualParameters record; unset fields keep their value."""

    fresnel: Optional[int] = Field(default=None, ge=0, le=100)
    depth_dark_top: Optional[int] = Field(default=None, ge=0, le=100)
    depth_dark_bottom: Optional[int] = Field(default=None, ge=0, le=100)
    red: Optional[int] = Field(default=None, ge=0, le=100)
    green: Optional[int] = Field(default=None, ge=0, le=100)
    blue: Optional[int] = Field(default=None, ge=0, le=100)
    noise: Optional[int] = Field(default=None, ge=0, le=100)
    displace: Optional[int] = Field(default=None, ge=0, le=100)
    speed: Optional[int] = Field(default=None, ge=0, le=100)
    normal: Optional[int] = Field(default=None, ge=0, le=100)

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")

    def changes(self) -> dict[str, int]:
        return self.model_dump(exclude_none=True)

    def apply_to(self, base: VisualParameters) -> VisualParameters:
        return base.model_copy(update=self.changes())


def parse_update(
    payload: Mapping[str, Any],
    *,
    out_of_range: OutOfRangePolicy = "drop",
) -> VisualParametersUpdate:
    """Keep the recognised, numeric visual fields of an untrusted payload.

    Keys may be camelCase or snake_case. Unknown keys and non-numeric values
    are ignored. Values outside [0, 100] are dropped, or clamped when
    `out_of_range="clamp"`.
    """

    accepted: dict[str, int] = {}
    for name in VISUAL_FIELDS:
        attr = to_snake(name)
        if name in payload:
            raw = payload[name]
        elif attr in payload:
            raw = payload[attr]
        else:
            continue
        number = to_number(raw)
        if number is None:
            _LOGGER.debug("Dropping non-numeric %s=%r", name, raw)
            continue
        if not in_percent_range(number):
            if out_of_range == "drop":
                _LOGGER.debug("Dropping out-of-range %s=%r", name, raw)
                continue
            accepted[attr] = clamp_percent(number)
            continue
        accepted[attr] = round_half_up(number)
    return VisualParametersUpdate.model_validate(accepted)


def parse_visual(payload: Mapping[str, Any]) -> VisualParameters:
    """Parse a full record, raising InvalidParametersError on failure."""

    try:
        return VisualParameters.model_validate(payload)
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse visual parameters: %s", exc)
        raise InvalidParametersError(str(exc)) from exc


class MusicTasteParameters(BaseModel):
    """Music taste sliders. Not persisted; the client sends them with each change.

    Fields the caller did not supply read as their defaults but are left out of
    `model_fields_set`; mappings keyed by field name skip them.
    """

    instrumentalness: int = 50
    popularity: int = 50
    valence: int = 50
    artist_diversity: int = 50
    energy: int = 50
    internal_coherence: int = 50
    average_key: PitchClass = DEFAULT_KEY

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )

    @field_validator(
        "instrumentalness",
        "popularity",
        "valence",
        "artist_diversity",
        "energy",
        "internal_coherence",
        mode="before",
    )
    @classmethod
    def _clamp(cls, value: Any) -> Any:
        return _clamp_numeric(value)

    @field_validator("average_key", mode="before")
    @classmethod
    def _key(cls, value: Any) -> PitchClass:
        return _coerce_key(value)

    def supplies(self, field: str) -> bool:
        return to_snake(field) in self.model_fields_set

    def value_of(self, field: TasteField) -> int | str:
        return getattr(self, to_snake(field))

    def with_change(self, change: "TasteChange") -> "MusicTasteParameters":
        if change.value is None:
            return self
        return self.model_copy(update={to_snake(change.field): change.value})

    def to_wire(self) -> dict[str, int | str]:
        return self.model_dump(by_alias=True)


def parse_taste(payload: Mapping[str, Any]) -> MusicTasteParameters:
    """Keep the usable taste fields of an untrusted payload.

    Keys may be camelCase or snake_case. Null and non-numeric slider values,
    and non-string keys, are left out so they count as not supplied.
    """

    accepted: dict[str, Any] = {}
    for name in TASTE_FIELDS:
        attr = to_snake(name)
        raw = payload.get(name) if name in payload else payload.get(attr)
        if name == "averageKey":
            if isinstance(raw, str):
                accepted[attr] = raw
            continue
        number = to_number(raw)
        if number is None:
            if raw is not None:
                _LOGGER.debug("Skipping non-numeric taste %s=%r", name, raw)
            continue
        accepted[attr] = number
    return MusicTasteParameters.model_validate(accepted)


# -----------------------------------------------------------------------------
# Change events: one variant per taste field
# -----------------------------------------------------------------------------


class _NumericChange(BaseModel):
    value: Optional[int] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("value", mode="before")
    @classmethod
    def _clamp(cls, value: Any) -> Any:
        number = to_number(value)
        if number is None:
            # Undefined or garbage input means "no change".
            return None
        return clamp_percent(number)


class InstrumentalnessChange(_NumericChange):
    field: Literal["instrumentalness"] = "instrumentalness"


class PopularityChange(_NumericChange):
    field: Literal["popularity"] = "popularity"


class ValenceChange(_NumericChange):
    field: Literal["valence"] = "valence"


class ArtistDiversityChange(_NumericChange):
    field: Literal["artistDiversity"] = "artistDiversity"


class EnergyChange(_NumericChange):
    field: Literal["energy"] = "energy"


class InternalCoherenceChange(_NumericChange):
    field: Literal["internalCoherence"] = "internalCoherence"


class AverageKeyChange(BaseModel):
    field: Literal["averageKey"] = "averageKey"
    value: Optional[PitchClass] = None

    model_config = ConfigDict(frozen=True, extra="forbid")

    @field_validator("value", mode="before")
    @classmethod
    def _key(cls, value: Any) -> PitchClass | None:
        if value is None:
            return None
        return _coerce_key(value)


TasteChange = Annotated[
    Union[
        InstrumentalnessChange,
        PopularityChange,
        ValenceChange,
        ArtistDiversityChange,
        EnergyChange,
        InternalCoherenceChange,
        AverageKeyChange,
    ],
    Field(discriminator="field"),
]

_TASTE_CHANGE_ADAPTER: TypeAdapter[TasteChange] = TypeAdapter(TasteChange)


def parse_change(payload: Mapping[str, Any]) -> TasteChange:
    """Parse `{"field": ..., "value": ...}`, raising InvalidParametersError on failure."""

    try:
        return _TASTE_CHANGE_ADAPTER.validate_python(dict(payload))
    except ValidationError as exc:
        _LOGGER.warning("Failed to parse taste change: %s", exc)
        raise InvalidParametersError(str(exc)) from exc


def change_from_taste(taste: MusicTasteParameters, field: str) -> TasteChange | None:
    """Build the change event for `field` from the current taste values.

    Returns None for names that are not taste fields and for fields the
    caller never supplied.
    """
    if field in TASTE_FIELDS and not taste.supplies(field):
        _LOGGER.debug("Taste field %r not supplied, skipping", field)
        return None
    try:
        return _TASTE_CHANGE_ADAPTER.validate_python(
            {"field": field, "value": getattr(taste, to_snake(field), None)}
        )
    except ValidationError:
        _LOGGER.debug("Ignoring change of unknown taste field %r", field)
        return None
