"""
Unit tests for the recommendation generator
"""

from datetime import date, datetime, timezone

import pytest

from src.core.recommendations import RecommendationGenerator, priority_for
from src.models import PatternType, RecommendationCategory, WeatherPattern

FIXED_NOW = datetime(2024, 1, 15, 6, 0, tzinfo=timezone.utc)


def pattern(pattern_type: PatternType, severity: float, trend="increasing", recommendations=None) -> WeatherPattern:
    return WeatherPattern(
        id=f"pat_{pattern_type.value}_{severity}",
        location="Harare",
        start_date=date(2024, 1, 1),
        end_date=date(2024, 1, 14),
        pattern_type=pattern_type,
        description=f"{pattern_type.value} changed",
        severity=severity,
        trend=trend,
        recommendations=recommendations or [],
    )


@pytest.fixture
def generator(recommendation_config):
    return RecommendationGenerator(recommendation_config, clock=lambda: FIXED_NOW)


class TestPriority:
    """Normalized severity buckets."""

    @pytest.mark.parametrize("severity,expected", [
        (0.71, "high"),
        (0.7, "medium"),
        (0.41, "medium"),
        (0.4, "low"),
        (0.0, "low"),
    ])
    def test_buckets(self, severity, expected):
        assert priority_for(severity) == expected


class TestFromPatterns:
    """Pattern-driven recommendations."""

    def test_category_lookup(self, generator):
        recs = generator.from_patterns([
            pattern(PatternType.TEMPERATURE_TREND, 5.0),
            pattern(PatternType.PRECIPITATION_PATTERN, 5.0),
            pattern(PatternType.HUMIDITY_PATTERN, 5.0),
            pattern(PatternType.ANOMALY, 5.0, trend=None),
        ])

        assert [r.category for r in recs] == [
            RecommendationCategory.TEMPERATURE_MANAGEMENT,
            RecommendationCategory.IRRIGATION,
            RecommendationCategory.HUMIDITY_CONTROL,
            RecommendationCategory.GENERAL,
        ]

    def test_priority_uses_normalized_severity(self, generator):
        high, medium, low = generator.from_patterns([
            pattern(PatternType.TEMPERATURE_TREND, 8.0),
            pattern(PatternType.TEMPERATURE_TREND, 5.0),
            pattern(PatternType.TEMPERATURE_TREND, 2.0),
        ])

        assert (high.priority, medium.priority, low.priority) == ("high", "medium", "low")

    def test_low_severity_is_skipped(self, generator):
        assert generator.from_patterns([pattern(PatternType.ANOMALY, 0.5, trend=None)]) == []

    def test_snapshot_and_actions(self, generator):
        rec = generator.from_patterns(
            [pattern(PatternType.PRECIPITATION_PATTERN, 6.0, recommendations=["Improve drainage"])],
            crop_type="maize",
        )[0]

        assert rec.actions == ["Improve drainage"]
        assert rec.crop_type == "maize"
        assert rec.target_date == date(2024, 1, 14)
        assert rec.created_at == FIXED_NOW
        assert rec.conditions.to_dict() == {
            "trend": "increasing",
            "severity": 0.6,
            "metric": "precipitation_pattern",
        }
        assert not rec.is_read

    def test_default_actions_when_pattern_has_none(self, generator):
        rec = generator.from_patterns([pattern(PatternType.PRECIPITATION_PATTERN, 6.0)])[0]
        assert rec.actions == ["Check soil moisture", "Adjust irrigation schedule", "Monitor water usage"]

    def test_ids_are_stable(self, generator):
        p = pattern(PatternType.HUMIDITY_PATTERN, 6.0)
        assert generator.from_patterns([p])[0].id == generator.from_patterns([p])[0].id


class TestFromPredictions:
    """Pest and disease recommendations."""

    def test_only_high_risk_predictions(self, generator, make_prediction):
        recs = generator.from_predictions([
            make_prediction(id="pred_a", pest_risk="high"),
            make_prediction(id="pred_b", disease_risk="high"),
            make_prediction(id="pred_c", pest_risk="medium", disease_risk="medium"),
        ])

        assert len(recs) == 2
        assert all(r.priority == "high" for r in recs)
        assert all(r.category == RecommendationCategory.PEST_CONTROL for r in recs)

    def test_risk_values_in_snapshot(self, generator, make_prediction):
        rec = generator.from_predictions([make_prediction(pest_risk="high", disease_risk="medium")])[0]

        assert rec.conditions.pest_risk == "high"
        assert rec.conditions.disease_risk == "medium"
        assert rec.actions == ["Scout for pests", "Apply control measures", "Monitor effectiveness"]
        assert rec.crop_type == "maize"

    def test_mark_read(self, generator, make_prediction):
        rec = generator.from_predictions([make_prediction(pest_risk="high")])[0]
        rec.mark_read()
        assert rec.is_read
