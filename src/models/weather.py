"""Weather observation records."""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional


@dataclass(frozen=True)
class WeatherObservation:
    """Single recorded or forecast reading. Immutable once recorded."""
    location: str
    timestamp: datetime
    temperature: float  # °C
    humidity: float  # %
    wind_speed: Optional[float] = None  # m/s
    precipitation: float = 0.0  # mm
    uv_index: Optional[float] = None
    pressure: Optional[float] = None  # hPa
    visibility: Optional[float] = None  # m
    source: str = ""

    @property
    def day(self) -> date:
        return self.timestamp.date()

    def to_dict(self) -> dict:
        return {
            "location": self.location,
            "timestamp": self.timestamp.isoformat(),
            "temperature": self.temperature,
            "humidity": self.humidity,
            "wind_speed": self.wind_speed,
            "precipitation": self.precipitation,
            "uv_index": self.uv_index,
            "pressure": self.pressure,
            "visibility": self.visibility,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WeatherObservation":
        ts = data["timestamp"]
        return cls(
            location=data["location"],
            timestamp=ts if isinstance(ts, datetime) else datetime.fromisoformat(ts),
            temperature=float(data["temperature"]),
            humidity=float(data["humidity"]),
            wind_speed=_opt_float(data.get("wind_speed")),
            precipitation=float(data.get("precipitation") or 0.0),
            uv_index=_opt_float(data.get("uv_index")),
            pressure=_opt_float(data.get("pressure")),
            visibility=_opt_float(data.get("visibility")),
            source=data.get("source", ""),
        )


def _opt_float(value) -> Optional[float]:
    return None if value is None else float(value)
