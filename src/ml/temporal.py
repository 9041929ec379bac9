"""Temporal pattern analysis for weather series."""

from datetime import date, timedelta
from typing import List, Optional, Sequence

import numpy as np
import pandas as pd
from loguru import logger

from src.ml.anomaly import AnomalyDetector, AnomalyResult
from src.models import (
    HistoricalWeatherPattern,
    PatternStatistics,
    PatternType,
    TrendStatistics,
    WeatherObservation,
    WeatherPattern,
    stable_id,
)
from src.utils.config import PatternConfig, SeasonConfig, settings
from src.utils.constants import (
    METRICS,
    MONTH_NAMES,
    SEASON_MONTHS,
    TREND_DECREASING,
    TREND_INCREASING,
    TREND_STABLE,
)

PATTERN_TYPES = {
    "temperature": PatternType.TEMPERATURE_TREND,
    "precipitation": PatternType.PRECIPITATION_PATTERN,
    "humidity": PatternType.HUMIDITY_PATTERN,
}

UNITS = {"temperature": "°C", "precipitation": "mm", "humidity": "%"}

# (impacts, recommendations) per metric and direction
PATTERN_NOTES = {
    ("temperature", TREND_INCREASING): (
        ["Heat stress", "Reduced pollination", "Quality issues"],
        ["Provide shade", "Adjust irrigation", "Monitor crop stress"],
    ),
    ("temperature", TREND_DECREASING): (
        ["Slowed crop development", "Frost exposure", "Delayed maturity"],
        ["Protect seedlings from cold", "Delay planting of warm-season crops", "Monitor crop stress"],
    ),
    ("precipitation", TREND_INCREASING): (
        ["Soil erosion", "Nutrient leaching", "Disease spread"],
        ["Improve drainage", "Use cover crops", "Monitor soil health"],
    ),
    ("precipitation", TREND_DECREASING): (
        ["Reduced crop yield", "Water stress", "Delayed planting"],
        ["Implement water conservation", "Use drought-resistant varieties", "Adjust planting dates"],
    ),
    ("humidity", TREND_INCREASING): (
        ["Fungal diseases", "Pest outbreaks", "Harvest delays"],
        ["Increase air circulation", "Apply fungicides", "Monitor disease"],
    ),
    ("humidity", TREND_DECREASING): (
        ["Plant stress", "Higher water demand"],
        ["Monitor plant health", "Adjust irrigation"],
    ),
}

ANOMALY_NOTES = (
    ["Crop stress from abrupt changes", "Unreliable short-term planning"],
    ["Monitor crops closely", "Verify readings against nearby stations"],
)

SEASON_OF_MONTH = {m: season for season, months in SEASON_MONTHS.items() for m in months}


def classify_trend(first: float, second: float, band: float = 0.05) -> str:
    """Direction of change between two means, with a dead-band relative to `first`."""
    margin = band * abs(first)
    if second - first > margin:
        return TREND_INCREASING
    if first - second > margin:
        return TREND_DECREASING
    return TREND_STABLE


def change_ratio(first: float, second: float) -> float:
    if abs(first) < 1e-9:
        return 0.0 if second == first else 1.0
    return (second - first) / abs(first)


def linear_slope(values: Sequence[float]) -> float:
    """Least-squares slope over the point index."""
    if len(values) < 2:
        return 0.0
    x = np.arange(len(values), dtype=float)
    return float(np.polyfit(x, np.asarray(values, dtype=float), 1)[0])


def classify_climate(avg_temperature: float, total_precipitation: float) -> str:
    if avg_temperature > 25 and total_precipitation > 100:
        return "hot_wet"
    if avg_temperature > 25 and total_precipitation < 50:
        return "hot_dry"
    if avg_temperature < 15 and total_precipitation > 100:
        return "cool_wet"
    if avg_temperature < 15 and total_precipitation < 50:
        return "cool_dry"
    return "moderate"


class PatternAnalyzer:
    """Classify trends and anomalies over an observation window."""

    def __init__(
        self,
        config: Optional[PatternConfig] = None,
        seasons: Optional[SeasonConfig] = None,
        anomaly_detector: Optional[AnomalyDetector] = None,
    ):
        self.config = config or settings.patterns
        self.seasons = seasons or settings.seasons
        self.anomaly_detector = anomaly_detector or AnomalyDetector(self.config)

    def season_label(self, start_date: date, end_date: date) -> str:
        months = [
            (start_date + timedelta(days=i)).month
            for i in range((end_date - start_date).days + 1)
        ]
        return self.seasons.label(months)

    def analyze(
        self,
        location: str,
        start_date: date,
        end_date: date,
        observations: List[WeatherObservation],
    ) -> List[WeatherPattern]:
        """Patterns for the window: one per non-stable metric, plus one anomaly pattern."""
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")

        window = sorted(
            (o for o in observations if start_date <= o.day <= end_date),
            key=lambda o: o.timestamp,
        )
        if len(window) < 2:
            logger.debug(f"Too few observations for pattern analysis at {location}: {len(window)}")
            return []

        series = {metric: [getattr(o, metric) for o in window] for metric in METRICS}
        anomalies = {r.metric: r for r in self.anomaly_detector.detect_all(series)}
        season = self.season_label(start_date, end_date)
        half = len(window) // 2

        patterns = []
        for metric in METRICS:
            values = series[metric]
            first = float(np.mean(values[:half]))
            second = float(np.mean(values[half:]))
            trend = classify_trend(first, second, self.config.trend_band)
            if trend == TREND_STABLE:
                continue
            patterns.append(self._trend_pattern(
                location, start_date, end_date, metric, values, first, second, trend,
                season, anomalies.get(metric),
            ))

        if anomalies:
            patterns.append(self._anomaly_pattern(
                location, start_date, end_date, list(anomalies.values()), season,
            ))

        logger.info(f"Pattern analysis for {location} {start_date} -> {end_date}: {len(patterns)} patterns")
        return patterns

    def _severity(self, ratio: float, anomaly_count: int) -> float:
        raw = self.config.trend_weight * abs(ratio) + self.config.anomaly_weight * anomaly_count
        return float(min(10.0, max(0.0, raw)))

    def _trend_pattern(
        self,
        location: str,
        start_date: date,
        end_date: date,
        metric: str,
        values: List[float],
        first: float,
        second: float,
        trend: str,
        season: str,
        anomaly: Optional[AnomalyResult],
    ) -> WeatherPattern:
        pattern_type = PATTERN_TYPES[metric]
        ratio = change_ratio(first, second)
        anomaly_count = anomaly.count if anomaly else 0
        arr = np.asarray(values, dtype=float)
        unit = UNITS[metric]
        impacts, recommendations = PATTERN_NOTES[(metric, trend)]

        indicators = [f"Mean {metric} {trend}: {first:.1f}{unit} -> {second:.1f}{unit}"]
        if anomaly:
            indicators.append(anomaly.explanation)

        return WeatherPattern(
            id=stable_id("pat", location, start_date, end_date, pattern_type.value),
            location=location,
            start_date=start_date,
            end_date=end_date,
            pattern_type=pattern_type,
            description=f"{metric.capitalize()} {trend} by {abs(ratio) * 100:.1f}% over the period",
            severity=self._severity(ratio, anomaly_count),
            trend=trend,
            season=season,
            indicators=indicators,
            statistics=PatternStatistics(
                first_half_mean=first,
                second_half_mean=second,
                change_pct=ratio * 100,
                slope=linear_slope(values),
                mean=float(arr.mean()),
                variance=float(arr.var()),
                std_dev=float(arr.std()),
                minimum=float(arr.min()),
                maximum=float(arr.max()),
                anomaly_count=anomaly_count,
            ),
            impacts=list(impacts),
            recommendations=list(recommendations),
        )

    def _anomaly_pattern(
        self,
        location: str,
        start_date: date,
        end_date: date,
        anomalies: List[AnomalyResult],
        season: str,
    ) -> WeatherPattern:
        count = sum(a.count for a in anomalies)
        metrics = ", ".join(a.metric for a in anomalies)
        impacts, recommendations = ANOMALY_NOTES
        return WeatherPattern(
            id=stable_id("pat", location, start_date, end_date, PatternType.ANOMALY.value),
            location=location,
            start_date=start_date,
            end_date=end_date,
            pattern_type=PatternType.ANOMALY,
            description=f"Anomalous readings in {metrics}",
            severity=self._severity(0.0, count),
            trend=None,
            season=season,
            indicators=[a.explanation for a in anomalies],
            statistics=PatternStatistics(anomaly_count=count),
            impacts=list(impacts),
            recommendations=list(recommendations),
        )

    # ============ HISTORY ============

    def summarize_history(
        self,
        location: str,
        start_date: date,
        end_date: date,
        observations: List[WeatherObservation],
    ) -> List[HistoricalWeatherPattern]:
        """Seasonal summaries, then monthly ones with enough points."""
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")

        rows = [
            {
                "timestamp": o.timestamp,
                "temperature": o.temperature,
                "humidity": o.humidity,
                "precipitation": o.precipitation,
            }
            for o in observations
            if start_date <= o.day <= end_date
        ]
        if not rows:
            return []

        frame = pd.DataFrame(rows).sort_values("timestamp").reset_index(drop=True)
        frame["timestamp"] = pd.to_datetime(frame["timestamp"])
        frame["year"] = frame["timestamp"].dt.year
        frame["month"] = frame["timestamp"].dt.month
        frame["season"] = frame["month"].map(SEASON_OF_MONTH)

        patterns = []
        for season in SEASON_MONTHS:
            group = frame[frame["season"] == season]
            if not group.empty:
                patterns.append(self._historical(location, season, "season", group))

        for (year, month), group in frame.groupby(["year", "month"], sort=True):
            if len(group) < self.config.history_min_month_points:
                continue
            period = f"{MONTH_NAMES[int(month) - 1]} {int(year)}"
            patterns.append(self._historical(location, period, "month", group))

        logger.info(f"History for {location} {start_date} -> {end_date}: {len(patterns)} summaries")
        return patterns

    def _historical(self, location: str, period: str, period_type: str, group: pd.DataFrame) -> HistoricalWeatherPattern:
        temps = group["temperature"].to_numpy(dtype=float)
        hums = group["humidity"].to_numpy(dtype=float)
        precip = group["precipitation"].to_numpy(dtype=float)

        avg_temp = float(temps.mean())
        total_precip = float(precip.sum())
        avg_hum = float(hums.mean())
        pattern_type = classify_climate(avg_temp, total_precip)

        anomalies = []
        if temps.max() > avg_temp + 10:
            anomalies.append("extreme_high_temperature")
        if temps.min() < avg_temp - 10:
            anomalies.append("extreme_low_temperature")

        trends = TrendStatistics()
        if len(group) >= 3:
            trends = TrendStatistics(
                temperature_slope=linear_slope(temps),
                humidity_slope=linear_slope(hums),
                precipitation_slope=linear_slope(precip),
                temperature_variance=float(temps.var()),
                humidity_variance=float(hums.var()),
                precipitation_variance=float(precip.var()),
            )

        start = group["timestamp"].min().date()
        end = group["timestamp"].max().date()
        summary = (
            f"{period.capitalize()}: avg {avg_temp:.1f}°C, {total_precip:.1f}mm rain, "
            f"{avg_hum:.0f}% humidity ({pattern_type.replace('_', ' ')})"
        )
        if anomalies:
            summary += f"; {len(anomalies)} temperature extreme(s)"

        return HistoricalWeatherPattern(
            id=stable_id("hist", location, period_type, period, start, end),
            location=location,
            start_date=start,
            end_date=end,
            period=period,
            period_type=period_type,
            average_temperature=avg_temp,
            total_precipitation=total_precip,
            average_humidity=avg_hum,
            pattern_type=pattern_type,
            anomalies=anomalies,
            trends=trends,
            summary=summary,
        )
