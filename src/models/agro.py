"""Agro-climatic prediction records."""

from dataclasses import dataclass, field
from datetime import date
from typing import Optional

from src.models.base import round_opt


@dataclass(frozen=True)
class SoilConditions:
    moisture_level: Optional[float]
    temperature: float
    nutrient_status: str  # good / poor / unknown
    drainage: str  # good / poor / unknown

    def to_dict(self) -> dict:
        return {
            "moisture_level": round_opt(self.moisture_level),
            "temperature": round(self.temperature, 2),
            "nutrient_status": self.nutrient_status,
            "drainage": self.drainage,
        }


@dataclass(frozen=True)
class ClimateIndicators:
    temperature_trend: str
    precipitation_trend: str
    humidity_trend: str
    season: str
    water_balance_mm: Optional[float] = None  # precipitation - ET
    aridity_index: Optional[float] = None  # precipitation / ET

    def to_dict(self) -> dict:
        return {
            "temperature_trend": self.temperature_trend,
            "precipitation_trend": self.precipitation_trend,
            "humidity_trend": self.humidity_trend,
            "season": self.season,
            "water_balance_mm": round_opt(self.water_balance_mm),
            "aridity_index": round_opt(self.aridity_index, 3),
        }


@dataclass(frozen=True)
class AgroClimaticPrediction:
    """One (location, date) prediction. A later run supersedes, never mutates."""
    id: str
    date: date
    location: str
    temperature: float
    humidity: float
    precipitation: float
    wind_speed: Optional[float]
    evapotranspiration: Optional[float]
    soil_moisture: Optional[float]
    crop_recommendation: str
    irrigation_advice: str
    pest_risk: str
    disease_risk: str
    yield_prediction: float
    planting_advice: str
    harvesting_advice: str
    weather_alerts: list = field(default_factory=list)
    soil_conditions: Optional[SoilConditions] = None
    climate_indicators: Optional[ClimateIndicators] = None
    missing_fields: list = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.missing_fields)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": self.date.isoformat(),
            "location": self.location,
            "temperature": round(self.temperature, 2),
            "humidity": round(self.humidity, 2),
            "precipitation": round(self.precipitation, 2),
            "wind_speed": round_opt(self.wind_speed),
            "evapotranspiration": round_opt(self.evapotranspiration, 3),
            "soil_moisture": round_opt(self.soil_moisture),
            "crop_recommendation": self.crop_recommendation,
            "irrigation_advice": self.irrigation_advice,
            "pest_risk": self.pest_risk,
            "disease_risk": self.disease_risk,
            "yield_prediction": round(self.yield_prediction, 2),
            "planting_advice": self.planting_advice,
            "harvesting_advice": self.harvesting_advice,
            "weather_alerts": list(self.weather_alerts),
            "soil_conditions": self.soil_conditions.to_dict() if self.soil_conditions else None,
            "climate_indicators": self.climate_indicators.to_dict() if self.climate_indicators else None,
            "missing_fields": list(self.missing_fields),
        }


@dataclass(frozen=True)
class DataGap:
    """A requested day that produced no prediction."""
    date: date
    reason: str  # no_data / source_failure


@dataclass
class PredictionRun:
    """Result of a prediction range request: records plus reported gaps."""
    location: str
    start_date: date
    days_ahead: int
    predictions: list = field(default_factory=list)
    gaps: list = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.gaps) or any(p.is_partial for p in self.predictions)

    def __iter__(self):
        return iter(self.predictions)

    def __len__(self) -> int:
        return len(self.predictions)

    def to_dict(self) -> dict:
        return {
            "location": self.location,
            "start_date": self.start_date.isoformat(),
            "days_ahead": self.days_ahead,
            "predictions": [p.to_dict() for p in self.predictions],
            "gaps": [{"date": g.date.isoformat(), "reason": g.reason} for g in self.gaps],
        }
