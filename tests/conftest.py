"""Shared fixtures."""

from datetime import date, datetime, timedelta

import pytest

from src.models import AgroClimaticPrediction, WeatherObservation
from src.utils.config import (
    AlertThresholds,
    ObservationStoreConfig,
    PatternConfig,
    PredictionConfig,
    RecommendationConfig,
    SeasonConfig,
)


def obs(
    day: date,
    temperature: float = 25.0,
    humidity: float = 60.0,
    precipitation: float = 0.0,
    wind_speed=3.0,
    location: str = "Harare",
    hour: int = 12,
    **extra,
) -> WeatherObservation:
    return WeatherObservation(
        location=location,
        timestamp=datetime(day.year, day.month, day.day, hour),
        temperature=temperature,
        humidity=humidity,
        precipitation=precipitation,
        wind_speed=wind_speed,
        **extra,
    )


def daily_series(start: date, values: list, metric: str = "temperature", **base) -> list:
    """One observation per day with `metric` taking each value in turn."""
    return [
        obs(start + timedelta(days=i), **{**base, metric: v})
        for i, v in enumerate(values)
    ]


@pytest.fixture
def make_obs():
    return obs


@pytest.fixture
def make_series():
    return daily_series


@pytest.fixture
def make_prediction():
    def _make(**overrides) -> AgroClimaticPrediction:
        fields = dict(
            id="pred_test",
            date=date(2024, 1, 15),
            location="Harare",
            temperature=25.0,
            humidity=60.0,
            precipitation=2.0,
            wind_speed=3.0,
            evapotranspiration=4.0,
            soil_moisture=50.0,
            crop_recommendation="maize",
            irrigation_advice="Monitor soil moisture - irrigation may be needed soon",
            pest_risk="low",
            disease_risk="low",
            yield_prediction=80.0,
            planting_advice="",
            harvesting_advice="",
        )
        fields.update(overrides)
        return AgroClimaticPrediction(**fields)

    return _make


@pytest.fixture
def pattern_config():
    return PatternConfig()


@pytest.fixture
def seasons():
    return SeasonConfig()


@pytest.fixture
def prediction_config():
    return PredictionConfig()


@pytest.fixture
def thresholds():
    return AlertThresholds()


@pytest.fixture
def recommendation_config():
    return RecommendationConfig()


@pytest.fixture
def store_config():
    return ObservationStoreConfig(fetch_timeout_seconds=0.2, max_workers=2)
