"""Observation store contract, in-memory store and fallback chain."""

import threading
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeout
from datetime import date
from typing import Callable, List, Optional, Protocol

from loguru import logger

from src.models import WeatherObservation
from src.utils.config import ObservationStoreConfig, settings
from src.utils.errors import DataUnavailable, SourceFailure


class ObservationStore(Protocol):
    """Anything that can supply observations and forecasts for a location."""

    def get_observations(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        ...

    def get_forecast(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        ...

    def get_latest(self, location: str) -> WeatherObservation:
        ...


class InMemoryObservationStore:
    """Time-ordered observations held in memory. Also serves as last-known cache."""

    def __init__(self, observations: Optional[List[WeatherObservation]] = None,
                 forecasts: Optional[List[WeatherObservation]] = None):
        self._lock = threading.Lock()
        self._observations: dict[str, dict] = {}
        self._forecasts: dict[str, dict] = {}
        self.add_observations(observations or [])
        self.add_forecasts(forecasts or [])

    def add_observations(self, observations: List[WeatherObservation]) -> None:
        self._merge(self._observations, observations)

    def add_forecasts(self, forecasts: List[WeatherObservation]) -> None:
        self._merge(self._forecasts, forecasts)

    def _merge(self, target: dict, records: List[WeatherObservation]) -> None:
        with self._lock:
            for obs in records:
                series = target.setdefault(obs.location, {})
                series[obs.timestamp] = obs

    def _window(self, target: dict, location: str, start: date, end: date) -> List[WeatherObservation]:
        with self._lock:
            series = target.get(location, {})
            return [series[ts] for ts in sorted(series) if start <= ts.date() <= end]

    def get_observations(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        return self._window(self._observations, location, start, end)

    def get_forecast(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        return self._window(self._forecasts, location, start, end)

    def get_latest(self, location: str) -> WeatherObservation:
        with self._lock:
            series = self._observations.get(location)
            if not series:
                raise DataUnavailable(f"No observations recorded for {location}", location=location)
            return series[max(series)]


class FallbackObservationStore:
    """Primary -> secondary -> last-known cache, each fetch bounded by a timeout."""

    def __init__(
        self,
        primary: ObservationStore,
        secondary: Optional[ObservationStore] = None,
        cache: Optional[InMemoryObservationStore] = None,
        config: Optional[ObservationStoreConfig] = None,
    ):
        self.config = config or settings.store
        self.primary = primary
        self.secondary = secondary
        self.cache = cache if cache is not None else InMemoryObservationStore()
        self.timeout = self.config.fetch_timeout_seconds
        # One pool per source so a stalled primary cannot starve the secondary
        self._executors = {
            name: ThreadPoolExecutor(max_workers=self.config.max_workers, thread_name_prefix=f"obs-{name}")
            for name, _ in self._sources()
            if name != "cache"
        }

    def _sources(self) -> list:
        sources = [("primary", self.primary)]
        if self.secondary is not None:
            sources.append(("secondary", self.secondary))
        sources.append(("cache", self.cache))
        return sources

    def _call(self, name: str, fn: Callable):
        if name == "cache":
            return fn()
        future = self._executors[name].submit(fn)
        try:
            return future.result(timeout=self.timeout)
        except FutureTimeout as e:
            future.cancel()
            raise SourceFailure(f"{name} timed out after {self.timeout}s", source=name) from e

    def _fetch(self, op: str, location: str, pick: Callable[[ObservationStore], Callable]):
        errors = []
        failed = False
        for name, source in self._sources():
            try:
                result = self._call(name, pick(source))
            except DataUnavailable as e:
                errors.append(f"{name}: {e}")
                continue
            except Exception as e:
                failed = True
                logger.warning(f"{op} for {location} failed on {name} source: {e}")
                errors.append(f"{name}: {e}")
                continue
            if name == "cache" and not result:
                errors.append("cache: empty")
                continue
            if name != "primary":
                logger.warning(f"{op} for {location} served from {name} source")
            return name, result

        if not failed:
            raise DataUnavailable(f"No {op} data for {location}: {'; '.join(errors)}", location=location)
        logger.error(f"{op} for {location}: all sources failed")
        raise SourceFailure(f"All sources failed for {op} {location}: {'; '.join(errors)}")

    def get_observations(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        name, result = self._fetch(
            "observations", location, lambda s: lambda: s.get_observations(location, start, end)
        )
        if name != "cache":
            self.cache.add_observations(result)
        return result

    def get_forecast(self, location: str, start: date, end: date) -> List[WeatherObservation]:
        name, result = self._fetch(
            "forecast", location, lambda s: lambda: s.get_forecast(location, start, end)
        )
        if name != "cache":
            self.cache.add_forecasts(result)
        return result

    def get_latest(self, location: str) -> WeatherObservation:
        name, result = self._fetch("latest", location, lambda s: lambda: s.get_latest(location))
        if name != "cache":
            self.cache.add_observations([result])
        return result

    def close(self) -> None:
        for executor in self._executors.values():
            executor.shutdown(wait=False, cancel_futures=True)
