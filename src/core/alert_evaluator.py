"""Threshold alerts with per-day deduplication."""

import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Callable, Dict, Iterator, List, Mapping, Optional, Protocol, Tuple

from loguru import logger

from src.models import (
    AlertEvent,
    AlertKey,
    ConditionSnapshot,
    Recommendation,
    RecommendationCategory,
    WeatherObservation,
    stable_id,
)
from src.utils.config import AlertThresholds, SeasonConfig, settings
from src.utils.constants import RISK_HIGH, RISK_LOW, RISK_MEDIUM


@dataclass(frozen=True)
class Breach:
    """One metric crossing one band."""
    metric: str
    category: str
    severity: str
    value: float
    threshold: float
    escalate: bool
    title: str
    message: str


class AlertEvaluator:
    """Evaluate one observation against the threshold table.

    Every metric yields at most one band. A value sitting exactly on a
    threshold belongs to the lower-severity band.
    """

    def __init__(self, thresholds: Optional[AlertThresholds] = None, seasons: Optional[SeasonConfig] = None):
        self.thresholds = thresholds or settings.alerts
        self.seasons = seasons or settings.seasons

    # ============ RULES ============

    def _temperature(self, obs: WeatherObservation) -> Optional[Breach]:
        t, th = obs.temperature, self.thresholds
        if t > th.heat_warning:
            return Breach("temperature", "heat", RISK_HIGH, t, th.heat_warning, True,
                          "Extreme Heat Warning",
                          f"Temperature {t:.1f}°C in {obs.location}. Protect crops and livestock from heat stress.")
        if t > th.heat_advisory:
            return Breach("temperature", "heat", RISK_MEDIUM, t, th.heat_advisory, False,
                          "Heat Advisory",
                          f"Temperature {t:.1f}°C in {obs.location}. Irrigate early and provide shade.")
        if t < th.frost_warning:
            return Breach("temperature", "cold", RISK_HIGH, t, th.frost_warning, True,
                          "Frost Warning",
                          f"Temperature {t:.1f}°C in {obs.location}. Cover sensitive crops against frost.")
        if t < th.cold_advisory:
            return Breach("temperature", "cold", RISK_MEDIUM, t, th.cold_advisory, False,
                          "Cold Advisory",
                          f"Temperature {t:.1f}°C in {obs.location}. Growth of warm-season crops will slow.")
        return None

    def _humidity(self, obs: WeatherObservation) -> Optional[Breach]:
        h, th = obs.humidity, self.thresholds
        if h > th.humidity_high:
            return Breach("humidity", "fungal_disease", RISK_MEDIUM, h, th.humidity_high, False,
                          "Fungal Disease Risk",
                          f"Humidity {h:.0f}% in {obs.location}. Scout for fungal disease.")
        if h < th.humidity_low:
            return Breach("humidity", "dry_conditions", RISK_MEDIUM, h, th.humidity_low, False,
                          "Dry Conditions",
                          f"Humidity {h:.0f}% in {obs.location}. Expect higher crop water demand.")
        return None

    def _precipitation(self, obs: WeatherObservation) -> Optional[Breach]:
        p, th = obs.precipitation, self.thresholds
        if p > th.heavy_rain:
            return Breach("precipitation", "rainfall", RISK_HIGH, p, th.heavy_rain, True,
                          "Heavy Rain Warning",
                          f"{p:.1f}mm rainfall in {obs.location}. Clear drainage and delay field work.")
        if p > th.rainfall_advisory:
            return Breach("precipitation", "rainfall", RISK_MEDIUM, p, th.rainfall_advisory, False,
                          "Rainfall Advisory",
                          f"{p:.1f}mm rainfall in {obs.location}. Skip scheduled irrigation.")
        if p == 0 and self.seasons.is_dry_season(obs.timestamp.month):
            return Breach("precipitation", "irrigation", RISK_LOW, p, 0.0, False,
                          "Irrigation Reminder",
                          f"No rainfall in {obs.location} during the dry season. Check irrigation schedule.")
        return None

    def _wind(self, obs: WeatherObservation) -> Optional[Breach]:
        w, th = obs.wind_speed, self.thresholds
        if w is None:
            return None
        if w > th.wind_warning:
            return Breach("wind_speed", "wind", RISK_HIGH, w, th.wind_warning, True,
                          "High Wind Warning",
                          f"Wind {w:.1f} m/s in {obs.location}. Secure structures and postpone spraying.")
        if w > th.wind_advisory:
            return Breach("wind_speed", "wind", RISK_MEDIUM, w, th.wind_advisory, False,
                          "Wind Advisory",
                          f"Wind {w:.1f} m/s in {obs.location}. Avoid spraying in gusty conditions.")
        return None

    def _uv(self, obs: WeatherObservation) -> Optional[Breach]:
        u, th = obs.uv_index, self.thresholds
        if u is None:
            return None
        if u > th.uv_extreme:
            return Breach("uv_index", "uv", RISK_HIGH, u, th.uv_extreme, True,
                          "Extreme UV Warning",
                          f"UV index {u:.1f} in {obs.location}. Limit midday field work.")
        if u > th.uv_high:
            return Breach("uv_index", "uv", RISK_MEDIUM, u, th.uv_high, False,
                          "High UV Advisory",
                          f"UV index {u:.1f} in {obs.location}. Use sun protection outdoors.")
        return None

    def breaches(self, obs: WeatherObservation) -> List[Breach]:
        rules = [self._temperature, self._humidity, self._precipitation, self._wind, self._uv]
        return [b for b in (rule(obs) for rule in rules) if b is not None]

    # ============ DEDUP ============

    def evaluate(
        self,
        observation: WeatherObservation,
        prior_keys: Mapping[AlertKey, date],
    ) -> Tuple[List[AlertEvent], Dict[AlertKey, date]]:
        """New alerts for this observation plus the updated key table.

        For the observation's location: keys from earlier days expire, keys of
        today whose condition no longer holds are cleared, and only keys not
        already present are emitted. Other locations' keys pass through.
        """
        location = observation.location
        today = observation.day

        fired: Dict[AlertKey, Breach] = {}
        for breach in self.breaches(observation):
            key = AlertKey(location=location, category=breach.category, severity=breach.severity, day=today)
            fired[key] = breach

        updated: Dict[AlertKey, date] = {}
        for key, emitted_on in prior_keys.items():
            if key.location != location:
                updated[key] = emitted_on
            elif key.day >= today and (key.day > today or key in fired):
                updated[key] = emitted_on

        alerts = []
        for key, breach in fired.items():
            if key in updated:
                logger.debug(f"Suppressed repeat alert {key.as_string()}")
                continue
            updated[key] = today
            alerts.append(AlertEvent(
                key=key,
                title=breach.title,
                message=breach.message,
                metric=breach.metric,
                value=breach.value,
                threshold=breach.threshold,
                escalate=breach.escalate,
                observed_at=observation.timestamp,
            ))

        if alerts:
            logger.info(f"{len(alerts)} new alert(s) for {location}: {', '.join(a.category for a in alerts)}")
        return alerts, updated


RECOMMENDATION_CATEGORIES = {
    "heat": RecommendationCategory.TEMPERATURE_MANAGEMENT,
    "cold": RecommendationCategory.TEMPERATURE_MANAGEMENT,
    "fungal_disease": RecommendationCategory.PEST_CONTROL,
    "dry_conditions": RecommendationCategory.IRRIGATION,
    "rainfall": RecommendationCategory.IRRIGATION,
    "irrigation": RecommendationCategory.IRRIGATION,
    "wind": RecommendationCategory.GENERAL,
    "uv": RecommendationCategory.GENERAL,
}

ALERT_ACTIONS = {
    "heat": ["Irrigate early morning", "Provide shade for seedlings", "Monitor livestock water"],
    "cold": ["Cover sensitive crops", "Delay transplanting", "Check for frost damage"],
    "fungal_disease": ["Scout for fungal symptoms", "Improve air circulation", "Apply preventive fungicide"],
    "dry_conditions": ["Check soil moisture", "Mulch exposed soil"],
    "rainfall": ["Clear drainage channels", "Postpone fertilizer application", "Skip scheduled irrigation"],
    "irrigation": ["Check soil moisture", "Adjust irrigation schedule", "Monitor water usage"],
    "wind": ["Secure structures", "Postpone spraying"],
    "uv": ["Limit midday field work", "Use sun protection"],
}


def recommendation_for(
    alert: AlertEvent,
    crop_type: Optional[str] = None,
    clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
) -> Recommendation:
    """Recommendation that accompanies an emitted alert."""
    return Recommendation(
        id=stable_id("rec", alert.id),
        title=alert.title,
        description=alert.message,
        category=RECOMMENDATION_CATEGORIES.get(alert.category, RecommendationCategory.GENERAL),
        priority=alert.severity,
        target_date=alert.key.day,
        location=alert.location,
        crop_type=crop_type or settings.recommendations.default_crop_type,
        actions=list(ALERT_ACTIONS.get(alert.category, ["Monitor conditions"])),
        conditions=ConditionSnapshot(
            metric=alert.metric,
            threshold=alert.threshold,
            **{alert.metric: alert.value},
        ),
        created_at=clock(),
    )


# ============ KEY STORE ============

class DedupKeyStore(Protocol):
    """Persistence for emitted alert keys, one writer per location."""

    def load(self, location: str) -> Dict[AlertKey, date]:
        ...

    def save(self, location: str, keys: Mapping[AlertKey, date]) -> None:
        ...

    def lock(self, location: str):
        ...


class InMemoryDedupStore:
    def __init__(self):
        self._keys: Dict[str, Dict[AlertKey, date]] = {}
        self._locks: Dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def load(self, location: str) -> Dict[AlertKey, date]:
        with self._guard:
            return dict(self._keys.get(location, {}))

    def save(self, location: str, keys: Mapping[AlertKey, date]) -> None:
        with self._guard:
            self._keys[location] = {k: v for k, v in keys.items() if k.location == location}

    @contextmanager
    def lock(self, location: str) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(location, threading.Lock())
        with lock:
            yield


class AlertMonitor:
    """Evaluator plus key store; serializes evaluation per location."""

    def __init__(self, evaluator: AlertEvaluator, key_store: DedupKeyStore):
        self.evaluator = evaluator
        self.key_store = key_store

    def check(self, observation: WeatherObservation) -> List[AlertEvent]:
        location = observation.location
        with self.key_store.lock(location):
            prior = self.key_store.load(location)
            alerts, updated = self.evaluator.evaluate(observation, prior)
            self.key_store.save(location, updated)
        return alerts
