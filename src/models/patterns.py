"""Weather pattern records produced by pattern analysis."""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Optional

from src.models.base import round_opt


class PatternType(str, Enum):
    TEMPERATURE_TREND = "temperature_trend"
    PRECIPITATION_PATTERN = "precipitation_pattern"
    HUMIDITY_PATTERN = "humidity_pattern"
    ANOMALY = "anomaly"


@dataclass(frozen=True)
class PatternStatistics:
    """Window statistics for one metric (or the anomaly summary)."""
    first_half_mean: Optional[float] = None
    second_half_mean: Optional[float] = None
    change_pct: Optional[float] = None
    slope: Optional[float] = None
    mean: Optional[float] = None
    variance: Optional[float] = None
    std_dev: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    anomaly_count: int = 0

    def to_dict(self) -> dict:
        return {
            "first_half_mean": round_opt(self.first_half_mean, 3),
            "second_half_mean": round_opt(self.second_half_mean, 3),
            "change_pct": round_opt(self.change_pct, 2),
            "slope": round_opt(self.slope, 4),
            "mean": round_opt(self.mean, 3),
            "variance": round_opt(self.variance, 3),
            "std_dev": round_opt(self.std_dev, 3),
            "minimum": round_opt(self.minimum, 3),
            "maximum": round_opt(self.maximum, 3),
            "anomaly_count": self.anomaly_count,
        }


@dataclass(frozen=True)
class WeatherPattern:
    """Classified pattern over an analysis window. Superseded, never updated."""
    id: str
    location: str
    start_date: date
    end_date: date
    pattern_type: PatternType
    description: str
    severity: float  # 0-10
    trend: Optional[str] = None
    season: str = "unknown"
    indicators: list = field(default_factory=list)
    statistics: PatternStatistics = field(default_factory=PatternStatistics)
    impacts: list = field(default_factory=list)
    recommendations: list = field(default_factory=list)

    @property
    def normalized_severity(self) -> float:
        return self.severity / 10.0

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "location": self.location,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "pattern_type": self.pattern_type.value,
            "description": self.description,
            "severity": round(self.severity, 2),
            "trend": self.trend,
            "season": self.season,
            "indicators": list(self.indicators),
            "statistics": self.statistics.to_dict(),
            "impacts": list(self.impacts),
            "recommendations": list(self.recommendations),
        }


@dataclass(frozen=True)
class TrendStatistics:
    """Least-squares slope and variance per metric."""
    temperature_slope: float = 0.0
    humidity_slope: float = 0.0
    precipitation_slope: float = 0.0
    temperature_variance: float = 0.0
    humidity_variance: float = 0.0
    precipitation_variance: float = 0.0

    def to_dict(self) -> dict:
        return {k: round(v, 4) for k, v in self.__dict__.items()}


@dataclass(frozen=True)
class HistoricalWeatherPattern:
    """Seasonal or monthly summary over a long retrospective window."""
    id: str
    location: str
    start_date: date
    end_date: date
    period: str
    period_type: str  # "season" or "month"
    average_temperature: float
    total_precipitation: float
    average_humidity: float
    pattern_type: str
    anomalies: list = field(default_factory=list)
    trends: TrendStatistics = field(default_factory=TrendStatistics)
    summary: str = ""

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "location": self.location,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "period": self.period,
            "period_type": self.period_type,
            "average_temperature": round(self.average_temperature, 2),
            "total_precipitation": round(self.total_precipitation, 2),
            "average_humidity": round(self.average_humidity, 2),
            "pattern_type": self.pattern_type,
            "anomalies": list(self.anomalies),
            "trends": self.trends.to_dict(),
            "summary": self.summary,
        }
