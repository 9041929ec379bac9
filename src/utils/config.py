"""Configuration loader for the agro-climate core."""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from src.utils.errors import ConfigurationError

load_dotenv()


class AppConfig(BaseModel):
    name: str = "agro_climate_core"
    version: str = "0.1.0"
    environment: str = "development"
    debug: bool = True


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
    rotation: str = "10 MB"
    retention: str = "7 days"
    log_to_file: bool = True


class OpenMeteoConfig(BaseModel):
    base_url: str = "https://api.open-meteo.com/v1/forecast"
    archive_url: str = "https://archive-api.open-meteo.com/v1/archive"
    timezone: str = "Africa/Harare"
    cache_dir: str = "data/cache/open_meteo"
    cache_ttl_hours: int = 1
    timeout_seconds: float = 30.0
    # The archive trails real time; newer days come from the forecast endpoint
    archive_lag_days: int = 5

    @field_validator("timeout_seconds")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("timeout_seconds must be positive")
        return v


class ObservationStoreConfig(BaseModel):
    fetch_timeout_seconds: float = 10.0
    max_workers: int = 4

    @field_validator("fetch_timeout_seconds")
    @classmethod
    def _positive_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("fetch_timeout_seconds must be positive")
        return v


class SeasonConfig(BaseModel):
    # Southern Hemisphere: rains Nov-Mar
    wet_months: list[int] = [11, 12, 1, 2, 3]

    @field_validator("wet_months")
    @classmethod
    def _valid_months(cls, v: list[int]) -> list[int]:
        bad = [m for m in v if m < 1 or m > 12]
        if bad:
            raise ValueError(f"invalid months in wet_months: {bad}")
        return v

    def is_wet_month(self, month: int) -> bool:
        return month in self.wet_months

    def is_dry_season(self, month: int) -> bool:
        return month not in self.wet_months

    def label(self, months: list[int]) -> str:
        """Season label for a run of months: wet, dry or transition."""
        if not months:
            return "unknown"
        wet = sum(1 for m in months if self.is_wet_month(m))
        if wet == len(months):
            return "wet"
        if wet == 0:
            return "dry"
        return "transition"


class PatternConfig(BaseModel):
    trend_band: float = 0.05
    anomaly_sigma: float = 2.0
    # Absolute fallback when the window std-dev is degenerate
    anomaly_abs_deviation: dict[str, float] = {
        "temperature": 10.0,
        "humidity": 30.0,
        "precipitation": 25.0,
    }
    trend_weight: float = 5.0
    anomaly_weight: float = 2.0
    history_min_month_points: int = 5

    @field_validator("trend_band")
    @classmethod
    def _band_range(cls, v: float) -> float:
        if not 0 <= v < 1:
            raise ValueError("trend_band must be in [0, 1)")
        return v

    @field_validator("anomaly_sigma")
    @classmethod
    def _sigma_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("anomaly_sigma must be positive")
        return v


class CropProfile(BaseModel):
    optimal_temp_min: float
    optimal_temp_max: float
    optimal_humidity_min: float
    optimal_humidity_max: float
    water_requirement_mm: float  # per season
    growing_period_days: int
    soil_moisture_min: float = 40.0
    soil_moisture_max: float = 80.0

    @model_validator(mode="after")
    def _bounds_ordered(self) -> "CropProfile":
        if self.optimal_temp_min > self.optimal_temp_max:
            raise ValueError("optimal_temp_min > optimal_temp_max")
        if self.optimal_humidity_min > self.optimal_humidity_max:
            raise ValueError("optimal_humidity_min > optimal_humidity_max")
        if self.soil_moisture_min > self.soil_moisture_max:
            raise ValueError("soil_moisture_min > soil_moisture_max")
        if self.growing_period_days <= 0:
            raise ValueError("growing_period_days must be positive")
        return self

    @property
    def daily_water_need_mm(self) -> float:
        return self.water_requirement_mm / self.growing_period_days


def _default_crops() -> dict[str, CropProfile]:
    return {
        "maize": CropProfile(optimal_temp_min=18, optimal_temp_max=24, optimal_humidity_min=60,
                             optimal_humidity_max=80, water_requirement_mm=500, growing_period_days=120),
        "wheat": CropProfile(optimal_temp_min=15, optimal_temp_max=20, optimal_humidity_min=50,
                             optimal_humidity_max=70, water_requirement_mm=400, growing_period_days=150),
        "sorghum": CropProfile(optimal_temp_min=20, optimal_temp_max=30, optimal_humidity_min=40,
                               optimal_humidity_max=60, water_requirement_mm=300, growing_period_days=100,
                               soil_moisture_min=30),
        "cotton": CropProfile(optimal_temp_min=21, optimal_temp_max=30, optimal_humidity_min=50,
                              optimal_humidity_max=70, water_requirement_mm=600, growing_period_days=180),
        "tobacco": CropProfile(optimal_temp_min=20, optimal_temp_max=28, optimal_humidity_min=60,
                               optimal_humidity_max=80, water_requirement_mm=400, growing_period_days=120),
    }


class PestThresholds(BaseModel):
    temp_band_min: float = 25.0
    temp_band_max: float = 35.0
    humidity_high: float = 75.0
    humidity_moderate: float = 65.0

    @model_validator(mode="after")
    def _ordered(self) -> "PestThresholds":
        if self.temp_band_min > self.temp_band_max:
            raise ValueError("pest temp_band_min > temp_band_max")
        if self.humidity_moderate > self.humidity_high:
            raise ValueError("pest humidity_moderate > humidity_high")
        return self


class DiseaseThresholds(BaseModel):
    humidity_high: float = 80.0
    humidity_moderate: float = 70.0
    precipitation_high: float = 5.0
    precipitation_moderate: float = 3.0

    @model_validator(mode="after")
    def _ordered(self) -> "DiseaseThresholds":
        if self.humidity_moderate > self.humidity_high:
            raise ValueError("disease humidity_moderate > humidity_high")
        if self.precipitation_moderate > self.precipitation_high:
            raise ValueError("disease precipitation_moderate > precipitation_high")
        return self


class PredictionConfig(BaseModel):
    initial_soil_moisture_pct: float = 50.0
    soil_water_capacity_mm: float = 100.0
    net_radiation_mj: float = 12.0  # MJ/m2/day, assumed constant
    wind_measurement_height_m: float = 10.0
    baseline_yield: float = 85.0
    temp_penalty_per_degree: float = 3.0
    moisture_penalty_per_pct: float = 0.8
    humidity_penalty_per_pct: float = 0.3
    pest: PestThresholds = PestThresholds()
    disease: DiseaseThresholds = DiseaseThresholds()
    crops: dict[str, CropProfile] = _default_crops()

    @field_validator("soil_water_capacity_mm")
    @classmethod
    def _capacity_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("soil_water_capacity_mm must be positive")
        return v

    @field_validator("initial_soil_moisture_pct", "baseline_yield")
    @classmethod
    def _percentage(cls, v: float) -> float:
        if not 0 <= v <= 100:
            raise ValueError("value must be within [0, 100]")
        return v

    @field_validator("crops")
    @classmethod
    def _has_crops(cls, v: dict[str, CropProfile]) -> dict[str, CropProfile]:
        if not v:
            raise ValueError("at least one crop profile is required")
        return v


class RecommendationConfig(BaseModel):
    min_pattern_severity: float = 0.1
    default_crop_type: str = "general"


class AlertThresholds(BaseModel):
    """Alert bands. Exact threshold values fall into the lower branch."""
    heat_warning: float = 35.0
    heat_advisory: float = 30.0
    frost_warning: float = 5.0
    cold_advisory: float = 10.0
    humidity_high: float = 85.0
    humidity_low: float = 30.0
    heavy_rain: float = 20.0
    rainfall_advisory: float = 10.0
    wind_warning: float = 25.0
    wind_advisory: float = 15.0
    uv_extreme: float = 8.0
    uv_high: float = 6.0

    @model_validator(mode="after")
    def _bands_ordered(self) -> "AlertThresholds":
        pairs = [
            ("heat_advisory", "heat_warning"),
            ("frost_warning", "cold_advisory"),
            ("humidity_low", "humidity_high"),
            ("rainfall_advisory", "heavy_rain"),
            ("wind_advisory", "wind_warning"),
            ("uv_high", "uv_extreme"),
        ]
        for low, high in pairs:
            if getattr(self, low) >= getattr(self, high):
                raise ValueError(f"{low} must be below {high}")
        if self.cold_advisory > self.heat_advisory:
            raise ValueError("cold_advisory must not exceed heat_advisory")
        return self


class ScannerConfig(BaseModel):
    history_days: int = 30
    horizon_days: int = 7
    max_workers: int = 3
    default_location: str = "Harare"


class LocationConfig(BaseModel):
    lat: float
    lon: float


def _default_locations() -> dict[str, LocationConfig]:
    coords = {
        "Harare": (-17.8252, 31.0335),
        "Bulawayo": (-20.1569, 28.5891),
        "Chitungwiza": (-18.0128, 31.0756),
        "Mutare": (-18.9707, 32.6729),
        "Gweru": (-19.4500, 29.8167),
        "Kwekwe": (-18.9289, 29.8149),
        "Kadoma": (-18.3333, 29.9167),
        "Masvingo": (-20.0737, 30.8278),
        "Chinhoyi": (-17.3667, 30.2000),
        "Marondera": (-18.1853, 31.5519),
        "Bindura": (-17.3019, 31.3306),
        "Beitbridge": (-22.2167, 30.0000),
        "Hwange": (-18.3667, 26.5000),
        "Victoria Falls": (-17.9243, 25.8572),
        "Chipinge": (-20.2000, 32.6167),
        "Chiredzi": (-21.0500, 31.6667),
    }
    return {name: LocationConfig(lat=lat, lon=lon) for name, (lat, lon) in coords.items()}


class Settings(BaseModel):
    app: AppConfig = AppConfig()
    logging: LoggingConfig = LoggingConfig()
    open_meteo: OpenMeteoConfig = OpenMeteoConfig()
    store: ObservationStoreConfig = ObservationStoreConfig()
    seasons: SeasonConfig = SeasonConfig()
    patterns: PatternConfig = PatternConfig()
    prediction: PredictionConfig = PredictionConfig()
    recommendations: RecommendationConfig = RecommendationConfig()
    alerts: AlertThresholds = AlertThresholds()
    scanner: ScannerConfig = ScannerConfig()
    locations: dict[str, LocationConfig] = _default_locations()


def get_project_root() -> Path:
    return Path(__file__).parent.parent.parent


def load_yaml_config(env: str = "development") -> dict[str, Any]:
    config_path = get_project_root() / "config" / "environments" / f"{env}.yaml"
    if not config_path.exists():
        return {}
    try:
        with open(config_path, "r") as f:
            return yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Cannot parse {config_path}: {e}") from e


def get_settings(env: Optional[str] = None, overrides: Optional[dict[str, Any]] = None) -> Settings:
    env = env or os.getenv("APP_ENV", "development")
    yaml_config = load_yaml_config(env)

    # Override with env vars
    if os.getenv("OPEN_METEO_BASE_URL"):
        yaml_config.setdefault("open_meteo", {})["base_url"] = os.getenv("OPEN_METEO_BASE_URL")
    if os.getenv("LOG_LEVEL"):
        yaml_config.setdefault("logging", {})["level"] = os.getenv("LOG_LEVEL")

    if overrides:
        for section, values in overrides.items():
            if isinstance(values, dict):
                yaml_config.setdefault(section, {}).update(values)
            else:
                yaml_config[section] = values

    try:
        return Settings(**yaml_config) if yaml_config else Settings()
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration ({env}): {e}") from e


settings = get_settings()
