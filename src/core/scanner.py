"""One evaluation cycle per location: patterns, predictions, alerts, recommendations."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from loguru import logger

from src.core.alert_evaluator import AlertMonitor, recommendation_for
from src.core.dispatch import NotificationDispatcher
from src.core.prediction_engine import PredictionEngine
from src.core.recommendations import RecommendationGenerator
from src.data_sources.store import ObservationStore
from src.ml.temporal import PatternAnalyzer
from src.models import AlertEvent, PredictionRun, Recommendation, WeatherPattern
from src.utils.config import ScannerConfig, settings


@dataclass
class CycleResult:
    cycle_id: str
    location: str
    timestamp: datetime
    patterns: List[WeatherPattern] = field(default_factory=list)
    predictions: Optional[PredictionRun] = None
    alerts: List[AlertEvent] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def summary(self) -> str:
        urgent = sum(1 for a in self.alerts if a.escalate)
        parts = [
            f"{len(self.patterns)} patterns",
            f"{len(self.predictions) if self.predictions else 0} predictions",
            f"{len(self.alerts)} alerts ({urgent} urgent)",
            f"{len(self.recommendations)} recommendations",
        ]
        text = ", ".join(parts)
        if self.failures:
            text += f". Failed: {', '.join(sorted(self.failures))}"
        return text

    def to_dict(self) -> dict:
        return {
            "cycle_id": self.cycle_id,
            "location": self.location,
            "timestamp": self.timestamp.isoformat(),
            "patterns": [p.to_dict() for p in self.patterns],
            "predictions": self.predictions.to_dict() if self.predictions else None,
            "alerts": [a.to_dict() for a in self.alerts],
            "recommendations": [r.to_dict() for r in self.recommendations],
            "failures": dict(self.failures),
            "duration_seconds": self.duration_seconds,
            "summary": self.summary,
        }


class AgroClimateScanner:
    """Pull cycle: analysis, prediction and alert checks run side by side."""

    def __init__(
        self,
        store: ObservationStore,
        analyzer: PatternAnalyzer,
        engine: PredictionEngine,
        generator: RecommendationGenerator,
        monitor: AlertMonitor,
        dispatcher: NotificationDispatcher,
        config: Optional[ScannerConfig] = None,
        clock: Callable[[], date] = date.today,
    ):
        self.store = store
        self.analyzer = analyzer
        self.engine = engine
        self.generator = generator
        self.monitor = monitor
        self.dispatcher = dispatcher
        self.config = config or settings.scanner
        self.clock = clock

    def _patterns(self, location: str, today: date) -> List[WeatherPattern]:
        start = today - timedelta(days=self.config.history_days)
        observations = self.store.get_observations(location, start, today)
        return self.analyzer.analyze(location, start, today, observations)

    def _predictions(self, location: str, today: date) -> PredictionRun:
        return self.engine.predict_range(location, today, self.config.horizon_days)

    def _alerts(self, location: str) -> List[AlertEvent]:
        return self.monitor.check(self.store.get_latest(location))

    def run_cycle(self, location: str) -> CycleResult:
        start = datetime.now(timezone.utc)
        today = self.clock()
        result = CycleResult(
            cycle_id=f"{location}-{start.strftime('%Y%m%d-%H%M%S')}",
            location=location,
            timestamp=start,
        )
        logger.info(f"Cycle {result.cycle_id}: {location} as of {today}")

        with ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix="cycle") as pool:
            futures = {
                "patterns": pool.submit(self._patterns, location, today),
                "predictions": pool.submit(self._predictions, location, today),
                "alerts": pool.submit(self._alerts, location),
            }
            for name, future in futures.items():
                try:
                    value = future.result()
                except Exception as e:
                    logger.error(f"Cycle {result.cycle_id}: {name} failed: {e}")
                    result.failures[name] = str(e)
                    continue
                if name == "patterns":
                    result.patterns = value
                elif name == "predictions":
                    result.predictions = value
                else:
                    result.alerts = value

        result.recommendations = (
            self.generator.from_patterns(result.patterns)
            + self.generator.from_predictions(result.predictions or [])
            + [recommendation_for(a, clock=self.generator.clock) for a in result.alerts]
        )

        self._dispatch(result)
        result.duration_seconds = (datetime.now(timezone.utc) - start).total_seconds()
        logger.info(f"Cycle {result.cycle_id} done in {result.duration_seconds:.2f}s: {result.summary}")
        return result

    def _dispatch(self, result: CycleResult) -> None:
        try:
            for alert in result.alerts:
                self.dispatcher.dispatch_alert(alert)
            for rec in result.recommendations:
                self.dispatcher.dispatch_recommendation(rec)
        except Exception as e:
            logger.error(f"Cycle {result.cycle_id}: dispatch failed: {e}")
            result.failures["dispatch"] = str(e)
