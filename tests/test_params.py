from __future__ import annotations

import pytest
from pydantic import ValidationError

from tastecore.errors import InvalidParametersError
from tastecore.params import (
    AverageKeyChange,
    InstrumentalnessChange,
    MusicTasteParameters,
    ValenceChange,
    VisualParameters,
    VisualParametersUpdate,
    change_from_taste,
    parse_change,
    parse_taste,
    parse_update,
    parse_visual,
)
from tastecore.schema import VISUAL_DEFAULTS


def test_default_visual_parameters_on_the_wire() -> None:
    assert VisualParameters().to_wire() == {
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
        "sphereLow": 0,
        "sphereMid": 250,
        "sphereHigh": 0,
    }


def test_defaults_match_schema_table() -> None:
    wire = VisualParameters().to_wire()
    for name, value in VISUAL_DEFAULTS.items():
        assert wire[name] == value


def test_visual_parameters_accept_camel_and_snake_names() -> None:
    camel = VisualParameters.model_validate({"depthDarkTop": 10, "depthDarkBottom": 20})
    snake = VisualParameters(depth_dark_top=10, depth_dark_bottom=20)
    assert camel == snake


def test_visual_parameters_clamp_numbers() -> None:
    params = VisualParameters(fresnel=150, noise=-3, speed="42", normal=12.5)
    assert params.fresnel == 100
    assert params.noise == 0
    assert params.speed == 42
    assert params.normal == 13


def test_visual_parameters_reject_non_numeric() -> None:
    with pytest.raises(ValidationError):
        VisualParameters(fresnel="bright")


def test_parse_visual_wraps_validation_errors() -> None:
    with pytest.raises(InvalidParametersError):
        parse_visual({"displace": "far"})


def test_sphere_fields_follow_displace() -> None:
    params = VisualParameters(displace=10)
    assert (params.sphere_low, params.sphere_mid, params.sphere_high) == (250, 0, 0)
    moved = params.model_copy(update={"displace": 80})
    assert (moved.sphere_low, moved.sphere_mid, moved.sphere_high) == (0, 0, 250)


def test_sphere_fields_are_not_stored() -> None:
    stored = VisualParameters().stored_values()
    assert set(stored) == {
        "fresnel",
        "depth_dark_top",
        "depth_dark_bottom",
        "red",
        "green",
        "blue",
        "noise",
        "displace",
        "speed",
        "normal",
    }


def test_visual_parameters_are_immutable() -> None:
    params = VisualParameters()
    with pytest.raises(ValidationError):
        params.displace = 10  # type: ignore[misc]


# -----------------------------------------------------------------------------
# Partial updates
# -----------------------------------------------------------------------------


def test_parse_update_drops_invalid_entries() -> None:
    update = parse_update(
        {
            "fresnel": 150,
            "noise": "abc",
            "bogus": 1,
            "speed": 20,
            "depth_dark_top": 5,
            "red": None,
            "blue": "7",
        }
    )
    assert update.changes() == {"speed": 20, "depth_dark_top": 5, "blue": 7}


def test_parse_update_can_clamp_instead_of_drop() -> None:
    update = parse_update({"fresnel": 150, "noise": -10}, out_of_range="clamp")
    assert update.changes() == {"fresnel": 100, "noise": 0}


def test_camel_key_wins_over_snake_key() -> None:
    update = parse_update({"depthDarkTop": 1, "depth_dark_top": 99})
    assert update.changes() == {"depth_dark_top": 1}


def test_update_applies_only_given_fields() -> None:
    base = VisualParameters(fresnel=10, red=90)
    result = VisualParametersUpdate(fresnel=70).apply_to(base)
    assert result.fresnel == 70
    assert result.red == 90
    assert base.fresnel == 10


def test_update_model_rejects_unknown_keys_and_ranges() -> None:
    with pytest.raises(ValidationError):
        VisualParametersUpdate.model_validate({"sparkle": 3})
    with pytest.raises(ValidationError):
        VisualParametersUpdate(speed=101)


# -----------------------------------------------------------------------------
# Taste parameters and change events
# -----------------------------------------------------------------------------


def test_taste_defaults() -> None:
    taste = MusicTasteParameters()
    assert taste.to_wire() == {
        "instrumentalness": 50,
        "popularity": 50,
        "valence": 50,
        "artistDiversity": 50,
        "energy": 50,
        "internalCoherence": 50,
        "averageKey": "C",
    }


def test_taste_normalises_key_labels() -> None:
    assert MusicTasteParameters(average_key="f#").average_key == "F#"
    assert MusicTasteParameters.model_validate({"averageKey": "Z-invalid"}).average_key == "C"


def test_taste_clamps_numbers() -> None:
    taste = parse_taste({"valence": 120, "energy": -5, "artistDiversity": "33"})
    assert taste.valence == 100
    assert taste.energy == 0
    assert taste.artist_diversity == 33


def test_parse_taste_skips_null_and_garbage() -> None:
    taste = parse_taste({"valence": "happy", "energy": None, "averageKey": 4, "popularity": 70})
    assert taste.model_fields_set == {"popularity"}
    assert taste.popularity == 70
    assert not taste.supplies("valence")
    assert taste.valence == 50


def test_parse_change_dispatches_on_field() -> None:
    change = parse_change({"field": "valence", "value": 70})
    assert isinstance(change, ValenceChange)
    assert change.value == 70

    key_change = parse_change({"field": "averageKey", "value": "g#"})
    assert isinstance(key_change, AverageKeyChange)
    assert key_change.value == "G#"


def test_parse_change_rejects_unknown_field() -> None:
    with pytest.raises(InvalidParametersError):
        parse_change({"field": "loudness", "value": 3})


def test_change_values_are_clamped_or_skipped() -> None:
    assert InstrumentalnessChange(value=140).value == 100
    assert InstrumentalnessChange(value="loud").value is None
    assert InstrumentalnessChange().value is None
    assert AverageKeyChange(value="nope").value == "C"
    assert AverageKeyChange().value is None


def test_change_from_taste_reads_current_value() -> None:
    taste = MusicTasteParameters(energy=80, average_key="D")
    energy = change_from_taste(taste, "energy")
    key = change_from_taste(taste, "averageKey")
    assert energy is not None and energy.value == 80
    assert key is not None and key.value == "D"
    assert change_from_taste(taste, "loudness") is None


def test_change_from_taste_skips_unsupplied_fields() -> None:
    taste = parse_taste({"energy": 80})
    assert change_from_taste(taste, "valence") is None
    assert change_from_taste(taste, "averageKey") is None


def test_with_change_updates_one_field() -> None:
    taste = MusicTasteParameters()
    updated = taste.with_change(ValenceChange(value=10))
    assert updated.valence == 10
    assert updated.energy == taste.energy
    assert taste.with_change(ValenceChange()) is taste
