"""
Unit tests for observation stores and the fallback chain
"""

import threading
import time
from datetime import date, timedelta
from unittest.mock import MagicMock

import pytest

from src.data_sources.store import FallbackObservationStore, InMemoryObservationStore
from src.utils.errors import DataUnavailable, SourceFailure

DAY = date(2024, 1, 10)


def failing(exc):
    source = MagicMock()
    source.get_observations.side_effect = exc
    source.get_forecast.side_effect = exc
    source.get_latest.side_effect = exc
    return source


def serving(records):
    source = MagicMock()
    source.get_observations.return_value = records
    source.get_forecast.return_value = records
    source.get_latest.return_value = records[-1]
    return source


class SlowSource:
    def __init__(self, records, delay):
        self.records = records
        self.delay = delay

    def get_observations(self, location, start, end):
        time.sleep(self.delay)
        return self.records


class HangingSource:
    def __init__(self, release):
        self.release = release

    def get_latest(self, location):
        self.release.wait()
        raise SourceFailure("released", source="primary")


@pytest.fixture
def fallback_for(store_config):
    created = []

    def _build(primary, secondary=None, cache=None):
        store = FallbackObservationStore(primary, secondary, cache, config=store_config)
        created.append(store)
        return store

    yield _build
    for store in created:
        store.close()


class TestInMemoryObservationStore:
    """Time-ordered in-memory store."""

    def test_window_is_sorted_and_bounded(self, make_obs):
        store = InMemoryObservationStore([
            make_obs(DAY, hour=15),
            make_obs(DAY - timedelta(days=5)),
            make_obs(DAY, hour=6),
        ])

        window = store.get_observations("Harare", DAY - timedelta(days=1), DAY)

        assert [o.timestamp.hour for o in window] == [6, 15]

    def test_forecasts_are_separate(self, make_obs):
        store = InMemoryObservationStore(forecasts=[make_obs(DAY + timedelta(days=1))])

        assert store.get_observations("Harare", DAY, DAY + timedelta(days=1)) == []
        assert len(store.get_forecast("Harare", DAY, DAY + timedelta(days=1))) == 1

    def test_latest(self, make_obs):
        store = InMemoryObservationStore([make_obs(DAY, hour=6), make_obs(DAY, hour=18)])
        assert store.get_latest("Harare").timestamp.hour == 18

    def test_latest_without_data_raises(self):
        with pytest.raises(DataUnavailable):
            InMemoryObservationStore().get_latest("Harare")

    def test_same_timestamp_replaces(self, make_obs):
        store = InMemoryObservationStore([make_obs(DAY, temperature=20.0)])
        store.add_observations([make_obs(DAY, temperature=22.0)])

        assert [o.temperature for o in store.get_observations("Harare", DAY, DAY)] == [22.0]


class TestFallbackObservationStore:
    """Primary -> secondary -> cache."""

    def test_primary_success_refreshes_cache(self, fallback_for, make_obs):
        records = [make_obs(DAY)]
        cache = InMemoryObservationStore()
        store = fallback_for(serving(records), cache=cache)

        assert store.get_observations("Harare", DAY, DAY) == records
        assert cache.get_observations("Harare", DAY, DAY) == records

    def test_secondary_used_on_failure(self, fallback_for, make_obs):
        records = [make_obs(DAY)]
        secondary = serving(records)
        store = fallback_for(failing(SourceFailure("down")), secondary)

        assert store.get_observations("Harare", DAY, DAY) == records
        secondary.get_observations.assert_called_once_with("Harare", DAY, DAY)

    def test_timeout_falls_back(self, fallback_for, make_obs):
        records = [make_obs(DAY)]
        store = fallback_for(SlowSource([], delay=1.0), serving(records))

        started = time.monotonic()
        result = store.get_observations("Harare", DAY, DAY)

        assert result == records
        assert time.monotonic() - started < 0.9

    def test_stalled_primary_does_not_starve_secondary(self, fallback_for, make_obs, store_config):
        release = threading.Event()
        secondary = MagicMock()
        secondary.get_latest.side_effect = [
            make_obs(DAY, temperature=31.0, hour=6),
            make_obs(DAY, temperature=32.0, hour=7),
            make_obs(DAY, temperature=33.0, hour=8),
        ]
        store = fallback_for(HangingSource(release), secondary)

        try:
            # More calls than the pool has workers; every primary call stays stuck
            temps = [store.get_latest("Harare").temperature for _ in range(store_config.max_workers + 1)]
        finally:
            release.set()

        assert temps == [31.0, 32.0, 33.0]

    def test_cache_used_when_sources_fail(self, fallback_for, make_obs):
        cache = InMemoryObservationStore([make_obs(DAY)])
        store = fallback_for(failing(RuntimeError("boom")), failing(SourceFailure("down")), cache)

        assert len(store.get_observations("Harare", DAY, DAY)) == 1
        assert store.get_latest("Harare").day == DAY

    def test_all_sources_failing_raises(self, fallback_for):
        store = fallback_for(failing(SourceFailure("down")), failing(SourceFailure("down")))

        with pytest.raises(SourceFailure):
            store.get_observations("Harare", DAY, DAY)

    def test_no_data_anywhere_raises_unavailable(self, fallback_for):
        store = fallback_for(failing(DataUnavailable("none")))

        with pytest.raises(DataUnavailable):
            store.get_latest("Harare")

    def test_empty_primary_result_is_returned(self, fallback_for):
        primary = serving([MagicMock()])
        primary.get_forecast.return_value = []
        store = fallback_for(primary)

        assert store.get_forecast("Harare", DAY, DAY) == []
