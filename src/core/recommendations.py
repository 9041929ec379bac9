"""Turn patterns and predictions into prioritized recommendations."""

from datetime import datetime, timezone
from typing import Callable, Iterable, List, Optional

from loguru import logger

from src.models import (
    AgroClimaticPrediction,
    ConditionSnapshot,
    PatternType,
    Recommendation,
    RecommendationCategory,
    WeatherPattern,
    stable_id,
)
from src.utils.config import RecommendationConfig, settings
from src.utils.constants import PRIORITY_BUCKETS, RISK_HIGH, RISK_LOW

PATTERN_CATEGORIES = {
    PatternType.TEMPERATURE_TREND: RecommendationCategory.TEMPERATURE_MANAGEMENT,
    PatternType.PRECIPITATION_PATTERN: RecommendationCategory.IRRIGATION,
    PatternType.HUMIDITY_PATTERN: RecommendationCategory.HUMIDITY_CONTROL,
    PatternType.ANOMALY: RecommendationCategory.GENERAL,
}

TITLES = {
    RecommendationCategory.TEMPERATURE_MANAGEMENT: "Manage Temperature Stress",
    RecommendationCategory.IRRIGATION: "Optimize Irrigation Schedule",
    RecommendationCategory.HUMIDITY_CONTROL: "Control Humidity-Related Risk",
    RecommendationCategory.GENERAL: "Monitor Unusual Weather",
    RecommendationCategory.PEST_CONTROL: "Pest Monitoring Alert",
}

DEFAULT_ACTIONS = {
    RecommendationCategory.TEMPERATURE_MANAGEMENT: ["Provide shade", "Adjust irrigation", "Monitor crop stress"],
    RecommendationCategory.IRRIGATION: ["Check soil moisture", "Adjust irrigation schedule", "Monitor water usage"],
    RecommendationCategory.HUMIDITY_CONTROL: ["Increase air circulation", "Monitor disease"],
    RecommendationCategory.GENERAL: ["Implement recommendation", "Monitor results"],
}

PEST_ACTIONS = ["Scout for pests", "Apply control measures", "Monitor effectiveness"]


def priority_for(normalized_severity: float) -> str:
    for cutoff, priority in PRIORITY_BUCKETS:
        if normalized_severity > cutoff:
            return priority
    return RISK_LOW


class RecommendationGenerator:
    """Pure mapping; delivery is the dispatcher's job."""

    def __init__(
        self,
        config: Optional[RecommendationConfig] = None,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self.config = config or settings.recommendations
        self.clock = clock

    def from_patterns(self, patterns: Iterable[WeatherPattern], crop_type: Optional[str] = None) -> List[Recommendation]:
        crop_type = crop_type or self.config.default_crop_type
        recommendations = []
        for pattern in patterns:
            severity = pattern.normalized_severity
            if severity < self.config.min_pattern_severity:
                continue
            category = PATTERN_CATEGORIES[pattern.pattern_type]
            recommendations.append(Recommendation(
                id=stable_id("rec", pattern.id),
                title=TITLES[category],
                description=f"{pattern.description}. Adjust management for {crop_type}.",
                category=category,
                priority=priority_for(severity),
                target_date=pattern.end_date,
                location=pattern.location,
                crop_type=crop_type,
                actions=list(pattern.recommendations) or list(DEFAULT_ACTIONS[category]),
                conditions=ConditionSnapshot(
                    trend=pattern.trend,
                    severity=severity,
                    metric=pattern.pattern_type.value,
                ),
                created_at=self.clock(),
            ))
        logger.debug(f"{len(recommendations)} recommendation(s) from patterns")
        return recommendations

    def from_predictions(self, predictions: Iterable[AgroClimaticPrediction]) -> List[Recommendation]:
        recommendations = []
        for prediction in predictions:
            if RISK_HIGH not in (prediction.pest_risk, prediction.disease_risk):
                continue
            crop_type = prediction.crop_recommendation
            recommendations.append(Recommendation(
                id=stable_id("rec", prediction.id, "pest"),
                title=TITLES[RecommendationCategory.PEST_CONTROL],
                description=(
                    f"Current conditions favor pest and disease development. "
                    f"Implement monitoring and control measures for {crop_type}."
                ),
                category=RecommendationCategory.PEST_CONTROL,
                priority=RISK_HIGH,
                target_date=prediction.date,
                location=prediction.location,
                crop_type=crop_type,
                actions=list(PEST_ACTIONS),
                conditions=ConditionSnapshot(
                    temperature=prediction.temperature,
                    humidity=prediction.humidity,
                    precipitation=prediction.precipitation,
                    pest_risk=prediction.pest_risk,
                    disease_risk=prediction.disease_risk,
                ),
                created_at=self.clock(),
            ))
        logger.debug(f"{len(recommendations)} recommendation(s) from predictions")
        return recommendations
