"""Agronomic indicators: evapotranspiration, soil water, risk, crop fit and advice."""

import math
from typing import Dict, List, Optional, Tuple

from src.models import SoilConditions
from src.utils.config import AlertThresholds, CropProfile, DiseaseThresholds, PestThresholds, PredictionConfig
from src.utils.constants import RISK_HIGH, RISK_LOW, RISK_MEDIUM
from src.utils.errors import PartialComputeFailure

STANDARD_PRESSURE_KPA = 101.3

# ============ EVAPOTRANSPIRATION ============

def wind_at_2m(wind_speed: float, measured_at_m: float = 10.0) -> float:
    """FAO-56 eq. 47 log wind profile."""
    return wind_speed * 4.87 / math.log(67.8 * measured_at_m - 5.42)


def reference_et(
    temperature: float,
    humidity: float,
    wind_speed: Optional[float],
    pressure_hpa: Optional[float],
    config: PredictionConfig,
) -> float:
    """FAO-56 Penman-Monteith reference evapotranspiration (mm/day).

    Net radiation is a configured constant and soil heat flux is taken as zero
    at daily scale. Wind is required; pressure falls back to the standard
    atmosphere.
    """
    if wind_speed is None:
        raise PartialComputeFailure("evapotranspiration", "wind speed missing")

    u2 = wind_at_2m(wind_speed, config.wind_measurement_height_m)
    pressure = pressure_hpa / 10.0 if pressure_hpa else STANDARD_PRESSURE_KPA

    es = 0.6108 * math.exp(17.27 * temperature / (temperature + 237.3))
    ea = es * humidity / 100.0
    delta = 4098.0 * es / (temperature + 237.3) ** 2
    gamma = 0.000665 * pressure

    numerator = 0.408 * delta * config.net_radiation_mj + gamma * 900.0 / (temperature + 273.0) * u2 * (es - ea)
    denominator = delta + gamma * (1 + 0.34 * u2)
    return max(0.0, numerator / denominator)


def next_soil_moisture(prior_pct: float, precipitation: float, et: float, capacity_mm: float) -> float:
    """Single-bucket water balance, as percent of holding capacity."""
    moisture = prior_pct + (precipitation - et) / capacity_mm * 100.0
    return min(100.0, max(0.0, moisture))


# ============ RISK ============

def pest_risk(temperature: float, humidity: float, thresholds: PestThresholds) -> str:
    in_band = thresholds.temp_band_min <= temperature <= thresholds.temp_band_max
    if in_band and humidity > thresholds.humidity_high:
        return RISK_HIGH
    if in_band and humidity > thresholds.humidity_moderate:
        return RISK_MEDIUM
    if humidity > thresholds.humidity_high:
        return RISK_MEDIUM
    return RISK_LOW


def disease_risk(humidity: float, precipitation: float, thresholds: DiseaseThresholds) -> str:
    if humidity > thresholds.humidity_high and precipitation > thresholds.precipitation_high:
        return RISK_HIGH
    if humidity > thresholds.humidity_moderate and precipitation > thresholds.precipitation_moderate:
        return RISK_MEDIUM
    return RISK_LOW


# ============ CROPS ============

def crop_score(profile: CropProfile, temperature: float, humidity: float, precipitation: float) -> float:
    score = 0.0
    if profile.optimal_temp_min <= temperature <= profile.optimal_temp_max:
        score += 3
    elif profile.optimal_temp_min - 3 <= temperature <= profile.optimal_temp_max + 3:
        score += 1

    if profile.optimal_humidity_min <= humidity <= profile.optimal_humidity_max:
        score += 2
    elif profile.optimal_humidity_min - 10 <= humidity <= profile.optimal_humidity_max + 10:
        score += 0.5

    need = profile.daily_water_need_mm
    if precipitation >= need:
        score += 2
    elif precipitation >= need * 0.5:
        score += 0.5
    return score


def recommend_crop(
    crops: Dict[str, CropProfile], temperature: float, humidity: float, precipitation: float
) -> Tuple[str, CropProfile]:
    """Best scoring crop; ties keep configuration order."""
    best_name, best_profile, best_score = None, None, -1.0
    for name, profile in crops.items():
        score = crop_score(profile, temperature, humidity, precipitation)
        if score > best_score:
            best_name, best_profile, best_score = name, profile, score
    return best_name, best_profile


def _outside(value: float, low: float, high: float) -> float:
    if value < low:
        return low - value
    if value > high:
        return value - high
    return 0.0


def predict_yield(
    profile: CropProfile,
    temperature: float,
    humidity: float,
    soil_moisture: Optional[float],
    config: PredictionConfig,
) -> float:
    """Baseline yield less penalties for conditions outside the crop's bounds (0-100)."""
    value = config.baseline_yield
    value -= config.temp_penalty_per_degree * _outside(
        temperature, profile.optimal_temp_min, profile.optimal_temp_max)
    value -= config.humidity_penalty_per_pct * _outside(
        humidity, profile.optimal_humidity_min, profile.optimal_humidity_max)
    if soil_moisture is not None:
        value -= config.moisture_penalty_per_pct * _outside(
            soil_moisture, profile.soil_moisture_min, profile.soil_moisture_max)
    return min(100.0, max(0.0, value))


# ============ ADVICE ============

def irrigation_advice(soil_moisture: Optional[float], precipitation: float) -> str:
    if soil_moisture is None:
        return "Soil moisture unknown - check field conditions before irrigating"
    if soil_moisture < 30:
        return "Immediate irrigation required - soil moisture critically low"
    if soil_moisture < 50:
        return "Irrigation recommended within 24 hours"
    if precipitation > 5:
        return "No irrigation needed - sufficient rainfall expected"
    return "Monitor soil moisture - irrigation may be needed soon"


def planting_advice(crop: str, profile: CropProfile, temperature: float, precipitation: float) -> str:
    if profile.optimal_temp_min <= temperature <= profile.optimal_temp_max and precipitation > 2:
        return f"Optimal conditions for planting {crop}"
    if temperature < profile.optimal_temp_min:
        return f"Wait for warmer temperatures before planting {crop}"
    if precipitation < 1:
        return f"Ensure adequate irrigation before planting {crop}"
    return f"Conditions are suitable for planting {crop} with proper preparation"


def harvesting_advice(temperature: float, precipitation: float) -> str:
    if precipitation > 10:
        return "Delay harvesting due to expected heavy rainfall"
    if temperature > 30:
        return "Harvest early morning to avoid heat stress"
    return "Good conditions for harvesting"


def weather_alert_notes(
    temperature: float, humidity: float, precipitation: float, thresholds: AlertThresholds
) -> List[str]:
    """Short alert references attached to a prediction, on the same bands as the alert evaluator."""
    notes = []
    if temperature > thresholds.heat_warning:
        notes.append("High temperature warning")
    if temperature < thresholds.frost_warning:
        notes.append("Frost warning")
    if humidity > thresholds.humidity_high:
        notes.append("High humidity - disease risk")
    if precipitation > thresholds.heavy_rain:
        notes.append("Heavy rainfall expected")
    if precipitation < 1 and temperature > 25:
        notes.append("Drought conditions")
    return notes


def soil_conditions(soil_moisture: Optional[float], temperature: float) -> SoilConditions:
    if soil_moisture is None:
        return SoilConditions(moisture_level=None, temperature=temperature,
                              nutrient_status="unknown", drainage="unknown")
    return SoilConditions(
        moisture_level=soil_moisture,
        temperature=temperature,
        nutrient_status="good" if soil_moisture > 50 else "poor",
        drainage="poor" if soil_moisture > 80 else "good",
    )
