"""Alert and recommendation records."""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from src.models.base import round_opt, stable_id


class RecommendationCategory(str, Enum):
    PLANTING = "Planting"
    IRRIGATION = "Irrigation"
    PEST_CONTROL = "PestControl"
    TEMPERATURE_MANAGEMENT = "TemperatureManagement"
    HUMIDITY_CONTROL = "HumidityControl"
    GENERAL = "General"


@dataclass(frozen=True)
class ConditionSnapshot:
    """Conditions that triggered a recommendation."""
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    precipitation: Optional[float] = None
    wind_speed: Optional[float] = None
    uv_index: Optional[float] = None
    soil_moisture: Optional[float] = None
    pest_risk: Optional[str] = None
    disease_risk: Optional[str] = None
    trend: Optional[str] = None
    severity: Optional[float] = None
    metric: Optional[str] = None
    threshold: Optional[float] = None

    def to_dict(self) -> dict:
        # Only populated keys
        return {k: round_opt(v) if isinstance(v, float) else v
                for k, v in self.__dict__.items() if v is not None}


@dataclass
class Recommendation:
    """Prioritized, human-readable guidance."""
    id: str
    title: str
    description: str
    category: RecommendationCategory
    priority: str
    target_date: date
    location: str
    crop_type: str
    actions: list = field(default_factory=list)
    conditions: ConditionSnapshot = field(default_factory=ConditionSnapshot)
    is_read: bool = False
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def mark_read(self) -> None:
        self.is_read = True

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "category": self.category.value,
            "priority": self.priority,
            "target_date": self.target_date.isoformat(),
            "location": self.location,
            "crop_type": self.crop_type,
            "actions": list(self.actions),
            "conditions": self.conditions.to_dict(),
            "is_read": self.is_read,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AlertKey:
    """Dedup identity: location + category + severity bucket + day."""
    location: str
    category: str
    severity: str
    day: date

    def as_string(self) -> str:
        return f"{self.location}|{self.category}|{self.severity}|{self.day.isoformat()}"

    @classmethod
    def parse(cls, raw: str) -> "AlertKey":
        location, category, severity, day = raw.rsplit("|", 3)
        return cls(location=location, category=category, severity=severity, day=date.fromisoformat(day))


@dataclass(frozen=True)
class NotificationPayload:
    """What the external dispatcher receives."""
    title: str
    message: str
    severity: str
    location: str
    urgent: bool = False


@dataclass(frozen=True)
class AlertEvent:
    """Emitted alert. Delivery is owned by the dispatcher."""
    key: AlertKey
    title: str
    message: str
    metric: str
    value: float
    threshold: float
    escalate: bool
    observed_at: datetime

    @property
    def id(self) -> str:
        return stable_id("alert", self.key.as_string())

    @property
    def location(self) -> str:
        return self.key.location

    @property
    def category(self) -> str:
        return self.key.category

    @property
    def severity(self) -> str:
        return self.key.severity

    def notification_payload(self) -> NotificationPayload:
        return NotificationPayload(
            title=self.title,
            message=self.message,
            severity=self.severity,
            location=self.location,
            urgent=self.escalate,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "key": self.key.as_string(),
            "location": self.location,
            "category": self.category,
            "severity": self.severity,
            "title": self.title,
            "message": self.message,
            "metric": self.metric,
            "value": self.value,
            "threshold": self.threshold,
            "escalate": self.escalate,
            "observed_at": self.observed_at.isoformat(),
        }
