"""Forward agro-climatic predictions and historical summaries."""

from datetime import date, timedelta
from typing import Callable, Dict, List, Optional, Set, Tuple

import numpy as np
import pandas as pd
from loguru import logger

from src.core import agronomy
from src.data_sources.store import ObservationStore
from src.ml.temporal import PatternAnalyzer, classify_trend
from src.models import (
    AgroClimaticPrediction,
    ClimateIndicators,
    DataGap,
    HistoricalWeatherPattern,
    PredictionRun,
    WeatherObservation,
    stable_id,
)
from src.utils.config import AlertThresholds, PatternConfig, PredictionConfig, SeasonConfig, settings
from src.utils.constants import METRICS
from src.utils.errors import DataUnavailable, PartialComputeFailure, SourceFailure

GAP_NO_DATA = "no_data"
GAP_SOURCE_FAILURE = "source_failure"

OPTIONAL_COLUMNS = ["wind_speed", "pressure", "uv_index"]


def daily_frame(observations: List[WeatherObservation]) -> pd.DataFrame:
    """Aggregate raw readings to one row per day.

    Means for temperature, humidity, wind and pressure, sum for precipitation,
    max for UV.
    """
    if not observations:
        return pd.DataFrame()

    frame = pd.DataFrame([
        {
            "day": o.day,
            "temperature": o.temperature,
            "humidity": o.humidity,
            "precipitation": o.precipitation,
            "wind_speed": o.wind_speed,
            "pressure": o.pressure,
            "uv_index": o.uv_index,
        }
        for o in observations
    ])
    for col in OPTIONAL_COLUMNS:
        frame[col] = pd.to_numeric(frame[col], errors="coerce")

    return frame.groupby("day").agg(
        temperature=("temperature", "mean"),
        humidity=("humidity", "mean"),
        precipitation=("precipitation", "sum"),
        wind_speed=("wind_speed", "mean"),
        pressure=("pressure", "mean"),
        uv_index=("uv_index", "max"),
    )


def _num(value) -> Optional[float]:
    return None if value is None or pd.isna(value) else float(value)


class PredictionEngine:
    """Per-day predictions from an observation store.

    Days up to the injected clock's today are read as observations, later days
    as forecasts. Missing days are reported as gaps rather than invented.
    """

    def __init__(
        self,
        store: ObservationStore,
        config: Optional[PredictionConfig] = None,
        seasons: Optional[SeasonConfig] = None,
        pattern_config: Optional[PatternConfig] = None,
        analyzer: Optional[PatternAnalyzer] = None,
        clock: Callable[[], date] = date.today,
        thresholds: Optional[AlertThresholds] = None,
    ):
        self.store = store
        self.config = config or settings.prediction
        self.seasons = seasons or settings.seasons
        self.pattern_config = pattern_config or settings.patterns
        self.analyzer = analyzer or PatternAnalyzer(self.pattern_config, self.seasons)
        self.clock = clock
        self.thresholds = thresholds or settings.alerts

    # ============ FETCH ============

    def _segments(self, start: date, end: date) -> List[Tuple[str, date, date]]:
        today = self.clock()
        segments = []
        if start <= today:
            segments.append(("observations", start, min(end, today)))
        if end > today:
            segments.append(("forecast", max(start, today + timedelta(days=1)), end))
        return segments

    def _fetch(self, location: str, start: date, end: date) -> Tuple[List[WeatherObservation], Set[date]]:
        records: List[WeatherObservation] = []
        failed_days: Set[date] = set()
        for kind, seg_start, seg_end in self._segments(start, end):
            fetch = self.store.get_observations if kind == "observations" else self.store.get_forecast
            try:
                records.extend(fetch(location, seg_start, seg_end))
            except DataUnavailable as e:
                logger.warning(f"No {kind} for {location} {seg_start} -> {seg_end}: {e}")
            except SourceFailure as e:
                logger.warning(f"{kind} source failed for {location} {seg_start} -> {seg_end}: {e}")
                failed_days.update(seg_start + timedelta(days=i) for i in range((seg_end - seg_start).days + 1))
        return [r for r in records if start <= r.day <= end], failed_days

    # ============ PREDICT ============

    def predict_range(self, location: str, start_date: date, days_ahead: int) -> PredictionRun:
        """One prediction per day with data; the rest are reported as gaps."""
        if days_ahead < 1:
            raise ValueError(f"days_ahead must be >= 1, got {days_ahead}")

        end_date = start_date + timedelta(days=days_ahead - 1)
        records, failed_days = self._fetch(location, start_date, end_date)
        daily = daily_frame(records)
        rows: Dict[date, dict] = daily.to_dict("index") if not daily.empty else {}

        trends = self._run_trends(daily)
        run = PredictionRun(location=location, start_date=start_date, days_ahead=days_ahead)
        moisture = self.config.initial_soil_moisture_pct

        for offset in range(days_ahead):
            day = start_date + timedelta(days=offset)
            row = rows.get(day)
            if row is None:
                reason = GAP_SOURCE_FAILURE if day in failed_days else GAP_NO_DATA
                run.gaps.append(DataGap(date=day, reason=reason))
                continue
            prediction, moisture = self._predict_day(location, day, row, moisture, trends)
            run.predictions.append(prediction)

        if not run.predictions:
            logger.error(f"No data for {location} {start_date} -> {end_date}")
            raise DataUnavailable(
                f"No observations or forecasts for {location} {start_date} -> {end_date}",
                location=location,
            )

        if run.gaps:
            logger.warning(f"Prediction run for {location} has {len(run.gaps)} gap day(s)")
        logger.info(f"Predicted {len(run)} day(s) for {location} from {start_date}")
        return run

    def _run_trends(self, daily: pd.DataFrame) -> Dict[str, str]:
        trends = {}
        for metric in METRICS:
            values = daily[metric].to_numpy(dtype=float) if not daily.empty else np.array([])
            if len(values) < 2:
                trends[metric] = classify_trend(0.0, 0.0)
                continue
            half = len(values) // 2
            trends[metric] = classify_trend(
                float(values[:half].mean()), float(values[half:].mean()), self.pattern_config.trend_band
            )
        return trends

    def _predict_day(
        self,
        location: str,
        day: date,
        row: dict,
        prior_moisture: float,
        trends: Dict[str, str],
    ) -> Tuple[AgroClimaticPrediction, float]:
        temperature = float(row["temperature"])
        humidity = float(row["humidity"])
        precipitation = float(row["precipitation"])
        wind_speed = _num(row.get("wind_speed"))
        pressure = _num(row.get("pressure"))

        missing = []
        try:
            et = agronomy.reference_et(temperature, humidity, wind_speed, pressure, self.config)
            moisture = agronomy.next_soil_moisture(
                prior_moisture, precipitation, et, self.config.soil_water_capacity_mm
            )
            carry = moisture
        except PartialComputeFailure as e:
            logger.warning(f"Partial prediction for {location} {day}: {e}")
            et, moisture, carry = None, None, prior_moisture
            missing = ["evapotranspiration", "soil_moisture"]

        crop, profile = agronomy.recommend_crop(self.config.crops, temperature, humidity, precipitation)

        indicators = ClimateIndicators(
            temperature_trend=trends["temperature"],
            precipitation_trend=trends["precipitation"],
            humidity_trend=trends["humidity"],
            season=self.seasons.label([day.month]),
            water_balance_mm=None if et is None else precipitation - et,
            aridity_index=precipitation / et if et else None,
        )

        prediction = AgroClimaticPrediction(
            id=stable_id("pred", location, day, temperature, humidity, precipitation, wind_speed, pressure),
            date=day,
            location=location,
            temperature=temperature,
            humidity=humidity,
            precipitation=precipitation,
            wind_speed=wind_speed,
            evapotranspiration=et,
            soil_moisture=moisture,
            crop_recommendation=crop,
            irrigation_advice=agronomy.irrigation_advice(moisture, precipitation),
            pest_risk=agronomy.pest_risk(temperature, humidity, self.config.pest),
            disease_risk=agronomy.disease_risk(humidity, precipitation, self.config.disease),
            yield_prediction=agronomy.predict_yield(profile, temperature, humidity, moisture, self.config),
            planting_advice=agronomy.planting_advice(crop, profile, temperature, precipitation),
            harvesting_advice=agronomy.harvesting_advice(temperature, precipitation),
            weather_alerts=agronomy.weather_alert_notes(temperature, humidity, precipitation, self.thresholds),
            soil_conditions=agronomy.soil_conditions(moisture, temperature),
            climate_indicators=indicators,
            missing_fields=missing,
        )
        return prediction, carry

    # ============ HISTORY ============

    def analyze_history(self, location: str, start_date: date, end_date: date) -> List[HistoricalWeatherPattern]:
        """Seasonal and monthly summaries over a retrospective window."""
        if start_date > end_date:
            raise ValueError(f"start_date {start_date} is after end_date {end_date}")
        observations = self.store.get_observations(location, start_date, end_date)
        if not observations:
            raise DataUnavailable(
                f"No observations for {location} {start_date} -> {end_date}", location=location
            )
        return self.analyzer.summarize_history(location, start_date, end_date, observations)
