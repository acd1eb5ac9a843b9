from __future__ import annotations

import math

import pytest

from brewmate.schema.brew import MoodCategory, WeatherCondition, WeatherContext
from brewmate.schema.taste_profile import PreferredStrength, SeasonalDelta, TasteProfileVector
from brewmate.utils.numeric import clamp, clamp_preference, mean, to_number
from brewmate.utils.vectors import taste_cosine_similarity


def test_cosine_similarity_of_vector_with_itself_is_one() -> None:
    vector = TasteProfileVector(sweetness=6.5, acidity=2.0, bitterness=7.5, body=4.0)
    assert taste_cosine_similarity(vector, vector) == pytest.approx(1.0)


def test_cosine_similarity_with_zero_vector_is_zero() -> None:
    zero = TasteProfileVector(sweetness=0, acidity=0, bitterness=0, body=0)
    other = TasteProfileVector(sweetness=8, acidity=3, bitterness=2, body=6)
    assert taste_cosine_similarity(zero, other) == 0.0
    assert taste_cosine_similarity(other, zero) == 0.0


def test_cosine_similarity_of_disjoint_vectors_is_zero() -> None:
    sweet = TasteProfileVector(sweetness=10, acidity=0, bitterness=0, body=0)
    bitter = TasteProfileVector(sweetness=0, acidity=0, bitterness=10, body=0)
    assert taste_cosine_similarity(sweet, bitter) == pytest.approx(0.0)


def test_taste_vector_clamps_on_construction_and_assignment() -> None:
    vector = TasteProfileVector(sweetness=12, acidity=-1)
    assert vector.sweetness == 10.0
    assert vector.acidity == 0.0

    vector.body = 42
    assert vector.body == 10.0


def test_seasonal_delta_is_bounded() -> None:
    delta = SeasonalDelta(sweetness=5)
    assert delta.sweetness == 3.0
    delta.body = -9
    assert delta.body == -3.0


def test_clamp_helpers() -> None:
    assert clamp(math.nan) == 0.0
    assert clamp(11.2) == 10.0
    assert clamp(-0.5, -3, 3) == -0.5
    assert clamp_preference(5.123456) == 5.123
    assert mean([]) == 0.0
    assert mean([1, 2, 3]) == 2.0


def test_to_number_reads_free_form_values() -> None:
    assert to_number("18") == 18.0
    assert to_number(17.5) == 17.5
    assert to_number("18g") == 0.0
    assert to_number(None) == 0.0
    assert to_number(True) == 0.0
    assert to_number("nan") == 0.0
    assert to_number([18], default=-1.0) == -1.0


def test_preferred_strength_steps_down() -> None:
    assert PreferredStrength.STRONG.weaker() == PreferredStrength.BALANCED
    assert PreferredStrength.BALANCED.weaker() == PreferredStrength.LIGHT
    assert PreferredStrength.LIGHT.weaker() == PreferredStrength.LIGHT


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Light rain showers", WeatherCondition.RAIN),
        ("Thunderstorm", WeatherCondition.STORM),
        ("Jasno", WeatherCondition.CLEAR),
        ("overcast", WeatherCondition.CLOUDY),
        ("", WeatherCondition.UNKNOWN),
        ("volcanic ash", WeatherCondition.UNKNOWN),
    ],
)
def test_weather_condition_from_text(text: str, expected: WeatherCondition) -> None:
    assert WeatherCondition.from_text(text) == expected
    assert WeatherContext(condition=text).condition == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("Happy", MoodCategory.HAPPY),
        ("a bit anxious", MoodCategory.STRESSED),
        ("šťastný", MoodCategory.HAPPY),
        ("unhappy", MoodCategory.NEUTRAL),
        ("nešťastný", MoodCategory.NEUTRAL),
        ("not stressed, just tired", MoodCategory.TIRED),
        ("Relaxed", MoodCategory.CALM),
        (None, MoodCategory.NEUTRAL),
        ("meh", MoodCategory.NEUTRAL),
    ],
)
def test_mood_category_from_text(text: str | None, expected: MoodCategory) -> None:
    assert MoodCategory.from_text(text) == expected
