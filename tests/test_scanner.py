"""
Integration tests for the evaluation cycle
"""

from datetime import date, datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

from src.core import (
    AgroClimateScanner,
    AlertEvaluator,
    AlertMonitor,
    InMemoryDedupStore,
    LoggingDispatcher,
    PredictionEngine,
    RecommendationGenerator,
)
from src.data_sources.store import InMemoryObservationStore
from src.ml.temporal import PatternAnalyzer
from src.models import RecommendationCategory
from src.utils.config import ScannerConfig
from src.utils.errors import SourceFailure

TODAY = date(2024, 1, 15)


class BrokenLatestStore(InMemoryObservationStore):
    def get_latest(self, location):
        raise SourceFailure("latest unavailable", source="primary")


@pytest.fixture
def observations(make_obs):
    history = []
    for i in range(31):
        day = TODAY - timedelta(days=30 - i)
        history.append(make_obs(day, precipitation=2.0 if i < 15 else 20.0, humidity=60.0))
    history[-1] = make_obs(TODAY, temperature=36.0, humidity=55.0, precipitation=0.0, wind_speed=10.0)
    forecasts = [make_obs(TODAY + timedelta(days=i), temperature=30.0, humidity=80.0, precipitation=1.0)
                 for i in range(1, 7)]
    return history, forecasts


@pytest.fixture
def build(pattern_config, seasons, prediction_config, recommendation_config, thresholds):
    def _build(store, dispatcher=None):
        analyzer = PatternAnalyzer(pattern_config, seasons)
        return AgroClimateScanner(
            store=store,
            analyzer=analyzer,
            engine=PredictionEngine(store, prediction_config, seasons, pattern_config, analyzer,
                                    clock=lambda: TODAY),
            generator=RecommendationGenerator(recommendation_config,
                                              clock=lambda: datetime(2024, 1, 15, tzinfo=timezone.utc)),
            monitor=AlertMonitor(AlertEvaluator(thresholds, seasons), InMemoryDedupStore()),
            dispatcher=dispatcher or LoggingDispatcher(),
            config=ScannerConfig(history_days=30, horizon_days=7, max_workers=3),
            clock=lambda: TODAY,
        )
    return _build


class TestAgroClimateScanner:
    """run_cycle end to end."""

    def test_full_cycle(self, build, observations):
        history, forecasts = observations
        dispatcher = LoggingDispatcher()
        scanner = build(InMemoryObservationStore(history, forecasts), dispatcher)

        result = scanner.run_cycle("Harare")

        assert result.ok
        assert result.patterns
        assert len(result.predictions) == 7
        assert [(a.category, a.severity, a.escalate) for a in result.alerts] == [("heat", "high", True)]

        categories = {r.category for r in result.recommendations}
        assert RecommendationCategory.PEST_CONTROL in categories
        assert RecommendationCategory.TEMPERATURE_MANAGEMENT in categories
        assert RecommendationCategory.IRRIGATION in categories
        assert len(dispatcher.sent) == len(result.alerts) + len(result.recommendations)
        assert dispatcher.sent[0].urgent

    def test_second_cycle_does_not_repeat_alerts(self, build, observations):
        history, forecasts = observations
        scanner = build(InMemoryObservationStore(history, forecasts))

        first = scanner.run_cycle("Harare")
        second = scanner.run_cycle("Harare")

        assert len(first.alerts) == 1
        assert second.alerts == []
        assert [p.id for p in first.patterns] == [p.id for p in second.patterns]

    def test_failed_task_is_recorded(self, build, observations):
        history, forecasts = observations
        scanner = build(BrokenLatestStore(history, forecasts))

        result = scanner.run_cycle("Harare")

        assert not result.ok
        assert set(result.failures) == {"alerts"}
        assert result.patterns
        assert result.predictions is not None
        assert "Failed: alerts" in result.summary

    def test_dispatch_failure_is_recorded(self, build, observations):
        history, forecasts = observations
        dispatcher = MagicMock()
        dispatcher.dispatch_alert.side_effect = RuntimeError("transport down")

        result = build(InMemoryObservationStore(history, forecasts), dispatcher).run_cycle("Harare")

        assert "dispatch" in result.failures
        assert len(result.alerts) == 1

    def test_to_dict(self, build, observations):
        history, forecasts = observations
        data = build(InMemoryObservationStore(history, forecasts)).run_cycle("Harare").to_dict()

        assert data["location"] == "Harare"
        assert data["alerts"][0]["key"] == "Harare|heat|high|2024-01-15"
        assert data["failures"] == {}
