"""Weather observations and forecasts via the Open-Meteo API."""

import hashlib
import json
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import Callable, List, Optional

import httpx
from loguru import logger

from src.models import WeatherObservation
from src.utils.config import LocationConfig, OpenMeteoConfig, settings
from src.utils.errors import DataUnavailable, SourceFailure

HOURLY_VARS = "temperature_2m,relative_humidity_2m,wind_speed_10m,precipitation,surface_pressure"
FORECAST_HOURLY_VARS = HOURLY_VARS + ",uv_index,visibility"
CURRENT_VARS = "temperature_2m,relative_humidity_2m,wind_speed_10m,precipitation,surface_pressure,uv_index,visibility"


class OpenMeteoClient:
    """Client for weather data via Open-Meteo (free, no API key)."""

    source_name = "open-meteo"

    def __init__(
        self,
        config: Optional[OpenMeteoConfig] = None,
        locations: Optional[dict[str, LocationConfig]] = None,
        transport: Optional[httpx.BaseTransport] = None,
        use_cache: bool = True,
        clock: Callable[[], date] = date.today,
    ):
        self.config = config or settings.open_meteo
        self.clock = clock
        self.locations = locations if locations is not None else settings.locations
        self.timeout = self.config.timeout_seconds
        self.transport = transport
        self.use_cache = use_cache
        self.cache_dir = Path(self.config.cache_dir)
        if self.use_cache:
            self.cache_dir.mkdir(parents=True, exist_ok=True)

    # ============ CACHE ============

    def _cache_path(self, key: str) -> Path:
        return self.cache_dir / f"{key}.json"

    def _read_cache(self, key: str) -> Optional[dict]:
        if not self.use_cache:
            return None
        path = self._cache_path(key)
        if not path.exists():
            return None
        try:
            with open(path) as f:
                data = json.load(f)
            cached_at = datetime.fromisoformat(data["cached_at"])
            if datetime.utcnow() - cached_at < timedelta(hours=self.config.cache_ttl_hours):
                return data["data"]
        except (OSError, ValueError, KeyError) as e:
            logger.debug(f"Ignoring unreadable cache entry {path.name}: {e}")
        return None

    def _write_cache(self, key: str, data: dict):
        if not self.use_cache:
            return
        path = self._cache_path(key)
        with open(path, "w") as f:
            json.dump({"cached_at": datetime.utcnow().isoformat(), "data": data}, f)

    # ============ HTTP ============

    def _coords(self, location: str) -> LocationConfig:
        coords = self.locations.get(location)
        if coords is None:
            raise DataUnavailable(f"No coordinates configured for {location}", location=location)
        return coords

    def _get(self, url: str, params: dict) -> dict:
        key = hashlib.sha1(f"{url}?{sorted(params.items())}".encode()).hexdigest()[:20]
        cached = self._read_cache(key)
        if cached:
            return cached

        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                resp = client.get(url, params=params)
                resp.raise_for_status()
                data = resp.json()
        except httpx.HTTPError as e:
            logger.error(f"Open-Meteo request failed: {e}")
            raise SourceFailure(f"Open-Meteo request failed: {e}", source=self.source_name) from e
        except ValueError as e:
            raise SourceFailure(f"Open-Meteo returned invalid JSON: {e}", source=self.source_name) from e

        self._write_cache(key, data)
        return data

    def _base_params(self, coords: LocationConfig) -> dict:
        return {
            "latitude": coords.lat,
            "longitude": coords.lon,
            "timezone": self.config.timezone,
            "wind_speed_unit": "ms",
        }

    # ============ PUBLIC ============

    def get_observations(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        """Hourly observations for [start, end].

        Days older than the archive lag come from the archive API, recent days
        from the forecast API, which also serves the past few weeks.
        """
        coords = self._coords(location)
        cutoff = self.clock() - timedelta(days=self.config.archive_lag_days)
        observations = []
        if start <= cutoff:
            observations.extend(self._hourly(location, coords, self.config.archive_url,
                                             start, min(end, cutoff), HOURLY_VARS))
        if end > cutoff:
            observations.extend(self._hourly(location, coords, self.config.base_url,
                                             max(start, cutoff + timedelta(days=1)), end, HOURLY_VARS))
        logger.info(f"Fetched {len(observations)} observations for {location} ({start} -> {end})")
        return observations

    def get_forecast(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        """Hourly forecast for [start, end]."""
        coords = self._coords(location)
        forecast = self._hourly(location, coords, self.config.base_url, start, end, FORECAST_HOURLY_VARS)
        logger.info(f"Fetched {len(forecast)} forecast hours for {location} ({start} -> {end})")
        return forecast

    def get_latest(self, location: str) -> WeatherObservation:
        """Current conditions."""
        coords = self._coords(location)
        params = {**self._base_params(coords), "current": CURRENT_VARS}
        data = self._get(self.config.base_url, params)

        current = data.get("current") or {}
        if current.get("temperature_2m") is None or current.get("relative_humidity_2m") is None:
            raise DataUnavailable(f"No current conditions for {location}", location=location)

        return WeatherObservation(
            location=location,
            timestamp=datetime.fromisoformat(current["time"]),
            temperature=float(current["temperature_2m"]),
            humidity=float(current["relative_humidity_2m"]),
            wind_speed=_opt(current.get("wind_speed_10m")),
            precipitation=float(current.get("precipitation") or 0.0),
            uv_index=_opt(current.get("uv_index")),
            pressure=_opt(current.get("surface_pressure")),
            visibility=_opt(current.get("visibility")),
            source=self.source_name,
        )

    def _hourly(self, location: str, coords: LocationConfig, url: str,
                start: date, end: date, variables: str) -> List[WeatherObservation]:
        params = {
            **self._base_params(coords),
            "start_date": start.isoformat(),
            "end_date": end.isoformat(),
            "hourly": variables,
        }
        return self._parse_hourly(location, self._get(url, params))

    def _parse_hourly(self, location: str, data: dict) -> List[WeatherObservation]:
        hourly = data.get("hourly", {})
        times = hourly.get("time", [])

        def col(name: str) -> list:
            values = hourly.get(name) or []
            return values if len(values) == len(times) else [None] * len(times)

        temps = col("temperature_2m")
        hums = col("relative_humidity_2m")
        winds = col("wind_speed_10m")
        precip = col("precipitation")
        pressure = col("surface_pressure")
        uv = col("uv_index")
        vis = col("visibility")

        observations = []
        for i, t in enumerate(times):
            # Rows without the core readings are gaps, not zeros
            if temps[i] is None or hums[i] is None:
                continue
            observations.append(WeatherObservation(
                location=location,
                timestamp=datetime.fromisoformat(t),
                temperature=float(temps[i]),
                humidity=float(hums[i]),
                wind_speed=_opt(winds[i]),
                precipitation=float(precip[i] or 0.0),
                uv_index=_opt(uv[i]),
                pressure=_opt(pressure[i]),
                visibility=_opt(vis[i]),
                source=self.source_name,
            ))
        return observations


def _opt(value) -> Optional[float]:
    return None if value is None else float(value)
