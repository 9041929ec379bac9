"""Record models."""
from src.models.agro import AgroClimaticPrediction, ClimateIndicators, DataGap, PredictionRun, SoilConditions
from src.models.alerts import (
    AlertEvent,
    AlertKey,
    ConditionSnapshot,
    NotificationPayload,
    Recommendation,
    RecommendationCategory,
)
from src.models.base import stable_id
from src.models.patterns import (
    HistoricalWeatherPattern,
    PatternStatistics,
    PatternType,
    TrendStatistics,
    WeatherPattern,
)
from src.models.weather import WeatherObservation
