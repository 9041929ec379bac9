"""
Unit tests for agronomic indicators
"""

from datetime import date

import pytest

from src.core import agronomy
from src.core.alert_evaluator import AlertEvaluator
from src.utils.config import AlertThresholds
from src.utils.errors import PartialComputeFailure


class TestEvapotranspiration:
    """FAO-56 reference ET."""

    def test_wind_height_conversion(self):
        assert agronomy.wind_at_2m(10.0, 10.0) == pytest.approx(7.48, abs=0.01)
        assert agronomy.wind_at_2m(10.0, 2.0) == pytest.approx(10.0, abs=0.01)

    def test_missing_wind_raises_partial_failure(self, prediction_config):
        with pytest.raises(PartialComputeFailure) as exc:
            agronomy.reference_et(25.0, 60.0, None, None, prediction_config)
        assert exc.value.field_name == "evapotranspiration"

    def test_typical_value(self, prediction_config):
        et = agronomy.reference_et(25.0, 30.0, 1.0, None, prediction_config)
        assert et == pytest.approx(4.62, abs=0.05)

    def test_drier_windier_air_evaporates_more(self, prediction_config):
        calm = agronomy.reference_et(25.0, 30.0, 1.0, 1013.0, prediction_config)
        windy = agronomy.reference_et(25.0, 30.0, 5.0, 1013.0, prediction_config)
        humid = agronomy.reference_et(25.0, 90.0, 5.0, 1013.0, prediction_config)

        assert windy > calm
        assert humid < windy

    def test_never_negative(self, prediction_config):
        assert agronomy.reference_et(-5.0, 100.0, 0.0, None, prediction_config) >= 0.0


class TestSoilMoisture:
    """Single-bucket balance."""

    def test_loss(self):
        assert agronomy.next_soil_moisture(50.0, 0.0, 5.0, 100.0) == pytest.approx(45.0)

    def test_gain_relative_to_capacity(self):
        assert agronomy.next_soil_moisture(50.0, 10.0, 0.0, 200.0) == pytest.approx(55.0)

    def test_clamped(self):
        assert agronomy.next_soil_moisture(99.0, 10.0, 0.0, 100.0) == 100.0
        assert agronomy.next_soil_moisture(1.0, 0.0, 5.0, 100.0) == 0.0


class TestRisk:
    """Pest and disease risk levels."""

    @pytest.mark.parametrize("temperature,humidity,expected", [
        (30.0, 80.0, "high"),
        (30.0, 70.0, "medium"),
        (20.0, 80.0, "medium"),
        (20.0, 50.0, "low"),
        (30.0, 60.0, "low"),
    ])
    def test_pest_risk(self, prediction_config, temperature, humidity, expected):
        assert agronomy.pest_risk(temperature, humidity, prediction_config.pest) == expected

    @pytest.mark.parametrize("humidity,precipitation,expected", [
        (85.0, 6.0, "high"),
        (75.0, 4.0, "medium"),
        (85.0, 2.0, "low"),
        (60.0, 10.0, "low"),
    ])
    def test_disease_risk(self, prediction_config, humidity, precipitation, expected):
        assert agronomy.disease_risk(humidity, precipitation, prediction_config.disease) == expected


class TestCrops:
    """Crop scoring and yield."""

    def test_ties_keep_configuration_order(self, prediction_config):
        crop, profile = agronomy.recommend_crop(prediction_config.crops, 22.0, 70.0, 5.0)
        assert crop == "maize"
        assert profile is prediction_config.crops["maize"]

    def test_dry_heat_prefers_sorghum(self, prediction_config):
        crop, _ = agronomy.recommend_crop(prediction_config.crops, 29.0, 45.0, 3.0)
        assert crop == "sorghum"

    def test_yield_baseline_inside_bounds(self, prediction_config):
        maize = prediction_config.crops["maize"]
        assert agronomy.predict_yield(maize, 22.0, 70.0, 60.0, prediction_config) == pytest.approx(85.0)

    def test_yield_penalties(self, prediction_config):
        maize = prediction_config.crops["maize"]
        assert agronomy.predict_yield(maize, 27.0, 70.0, 60.0, prediction_config) == pytest.approx(76.0)
        assert agronomy.predict_yield(maize, 22.0, 90.0, 60.0, prediction_config) == pytest.approx(82.0)
        assert agronomy.predict_yield(maize, 22.0, 70.0, 30.0, prediction_config) == pytest.approx(77.0)

    def test_yield_ignores_unknown_moisture(self, prediction_config):
        maize = prediction_config.crops["maize"]
        assert agronomy.predict_yield(maize, 22.0, 70.0, None, prediction_config) == pytest.approx(85.0)

    def test_yield_clamped(self, prediction_config):
        maize = prediction_config.crops["maize"]
        assert agronomy.predict_yield(maize, 60.0, 70.0, 60.0, prediction_config) == 0.0


class TestAdvice:
    """Advice strings."""

    def test_irrigation(self):
        assert "unknown" in agronomy.irrigation_advice(None, 0.0)
        assert agronomy.irrigation_advice(20.0, 0.0).startswith("Immediate irrigation")
        assert agronomy.irrigation_advice(40.0, 0.0) == "Irrigation recommended within 24 hours"
        assert agronomy.irrigation_advice(60.0, 6.0).startswith("No irrigation needed")
        assert agronomy.irrigation_advice(60.0, 0.0).startswith("Monitor soil moisture")

    def test_planting(self, prediction_config):
        maize = prediction_config.crops["maize"]
        assert agronomy.planting_advice("maize", maize, 22.0, 5.0) == "Optimal conditions for planting maize"
        assert agronomy.planting_advice("maize", maize, 12.0, 5.0).startswith("Wait for warmer")
        assert agronomy.planting_advice("maize", maize, 28.0, 0.0).startswith("Ensure adequate irrigation")

    def test_harvesting(self):
        assert agronomy.harvesting_advice(25.0, 15.0).startswith("Delay harvesting")
        assert agronomy.harvesting_advice(32.0, 0.0).startswith("Harvest early morning")
        assert agronomy.harvesting_advice(25.0, 0.0) == "Good conditions for harvesting"

    def test_weather_alert_notes(self, thresholds):
        assert agronomy.weather_alert_notes(36.0, 90.0, 25.0, thresholds) == [
            "High temperature warning",
            "High humidity - disease risk",
            "Heavy rainfall expected",
        ]
        assert agronomy.weather_alert_notes(28.0, 50.0, 0.0, thresholds) == ["Drought conditions"]

    def test_weather_alert_notes_follow_configured_bands(self, seasons, make_obs):
        raised = AlertThresholds(heat_warning=40.0, heat_advisory=35.0)
        observation = make_obs(date(2024, 1, 15), temperature=37.0, humidity=60.0, precipitation=0.0)

        notes = agronomy.weather_alert_notes(37.0, 60.0, 0.0, raised)
        breaches = AlertEvaluator(raised, seasons).breaches(observation)

        assert "High temperature warning" not in notes
        assert [(b.category, b.severity) for b in breaches] == [("heat", "medium")]

    def test_soil_conditions(self):
        wet = agronomy.soil_conditions(85.0, 20.0)
        unknown = agronomy.soil_conditions(None, 20.0)

        assert (wet.nutrient_status, wet.drainage) == ("good", "poor")
        assert (unknown.nutrient_status, unknown.drainage) == ("unknown", "unknown")
