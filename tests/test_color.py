from __future__ import annotations

import math
from typing import Sequence

import numpy as np
import pytest

from tastecore.color import (
    KEY_BASE_COLORS,
    RGB,
    SAFE_COLOR,
    ColorSynthesizer,
    base_color,
    color_budget,
    synthesize_color,
)
from tastecore.schema import PITCH_CLASSES, round_half_up


class FixedJitter:
    """Stands in for a numpy Generator, returning preset jitter."""

    def __init__(self, values: Sequence[float]) -> None:
        self.values = np.asarray(values, dtype=float)
        self.calls: list[tuple[float, float]] = []

    def uniform(self, low: float, high: float, size: int) -> np.ndarray:
        self.calls.append((low, high))
        return self.values[:size]


def test_budget_is_inverse_to_valence() -> None:
    assert color_budget(0) == pytest.approx(300.0)
    assert color_budget(50) == pytest.approx(150.0)
    assert color_budget(100) == pytest.approx(0.0)


def test_key_table_covers_every_pitch_class() -> None:
    assert set(KEY_BASE_COLORS) == set(PITCH_CLASSES)
    assert KEY_BASE_COLORS["C"] == (100, 0, 0)
    assert KEY_BASE_COLORS["G#"] == (0, 0, 100)
    assert all(sum(triple) > 0 for triple in KEY_BASE_COLORS.values())


def test_base_color_normalises_labels() -> None:
    assert base_color("c#") == KEY_BASE_COLORS["C#"]
    assert base_color(" e ") == KEY_BASE_COLORS["E"]
    assert base_color("H") == KEY_BASE_COLORS["C"]
    assert base_color(None) == KEY_BASE_COLORS["C"]


def test_full_popularity_splits_budget_evenly() -> None:
    assert synthesize_color(0, "C", 100) == RGB(100, 100, 100)
    assert synthesize_color(50, "G#", 100) == RGB(50, 50, 50)
    assert synthesize_color(70, "D", 100) == RGB(30, 30, 30)


def test_full_popularity_conserves_budget_for_all_inputs() -> None:
    for valence in range(0, 101):
        expected = round_half_up((100 - valence) / 100 * 300)
        for key in PITCH_CLASSES:
            rgb = synthesize_color(valence, key, 100)
            assert abs(sum(rgb.as_tuple()) - expected) <= 2, (valence, key)


def test_full_popularity_does_not_draw_randomness() -> None:
    rng = FixedJitter([5.0, 5.0, 5.0])
    synthesize_color(20, "A", 100, rng=rng)  # type: ignore[arg-type]
    assert rng.calls == []


def test_channels_always_within_bounds() -> None:
    rng = np.random.default_rng(1234)
    for valence in range(0, 101, 5):
        for popularity in range(0, 101, 10):
            for key in PITCH_CLASSES:
                rgb = synthesize_color(valence, key, popularity, rng=rng)
                assert all(0 <= channel <= 100 for channel in rgb.as_tuple())


def test_jitter_is_scaled_by_popularity_and_renormalised() -> None:
    rng = FixedJitter([0.0, 15.0, 30.0])
    rgb = synthesize_color(50, "C", 0, rng=rng)  # type: ignore[arg-type]

    # budget 150, spread 150 * 0.3 = 45
    assert rng.calls[0] == pytest.approx((-45.0, 45.0))
    # [150, 15, 30] rescaled by 150 / 195, red clipped at 100
    assert rgb == RGB(100, 12, 23)


def test_jitter_range_shrinks_as_popularity_grows() -> None:
    rng = FixedJitter([0.0, 0.0, 0.0])
    synthesize_color(0, "C", 50, rng=rng)  # type: ignore[arg-type]
    low, high = rng.calls[0]
    assert high == pytest.approx(300 * 0.3 * 0.5)
    assert low == pytest.approx(-high)


def test_zero_jitter_keeps_base_ratio() -> None:
    rng = FixedJitter([0.0, 0.0, 0.0])
    rgb = synthesize_color(80, "C#", 30, rng=rng)  # type: ignore[arg-type]
    # budget 60 split 2:1 along the C# base triple
    assert rgb == RGB(40, 20, 0)


def test_inputs_are_clamped() -> None:
    assert synthesize_color(-40, "C", 250) == RGB(100, 100, 100)
    assert synthesize_color(180, "C", 100) == RGB(0, 0, 0)


def test_zero_budget_is_black() -> None:
    assert synthesize_color(100, "F", 0, rng=np.random.default_rng(0)) == RGB(0, 0, 0)


def test_arithmetic_failure_falls_back_to_safe_color() -> None:
    rng = FixedJitter([math.nan, 0.0, 0.0])
    assert synthesize_color(30, "E", 10, rng=rng) == SAFE_COLOR  # type: ignore[arg-type]
    assert synthesize_color(math.nan, "E", 10) == SAFE_COLOR
    assert SAFE_COLOR == RGB(33, 33, 33)


def test_unknown_key_behaves_like_c() -> None:
    assert synthesize_color(50, "Z-invalid", 100) == synthesize_color(50, "C", 100)
    first = ColorSynthesizer(seed=3).synthesize(40, "Z-invalid", 40)
    second = ColorSynthesizer(seed=3).synthesize(40, "C", 40)
    assert first == second


def test_seeded_synthesizers_are_reproducible() -> None:
    first = ColorSynthesizer(seed=99)
    second = ColorSynthesizer(seed=99)
    for key in ("A", "D#", "G"):
        assert first.synthesize(25, key, 20) == second.synthesize(25, key, 20)


def test_synthesizer_accepts_an_existing_generator() -> None:
    rng = np.random.default_rng(5)
    synthesizer = ColorSynthesizer(rng=rng)
    assert synthesizer.rng is rng
