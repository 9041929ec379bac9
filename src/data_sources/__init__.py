"""Data sources module."""

from src.data_sources.open_meteo_client import OpenMeteoClient
from src.data_sources.store import FallbackObservationStore, InMemoryObservationStore, ObservationStore

__all__ = ["OpenMeteoClient", "FallbackObservationStore", "InMemoryObservationStore", "ObservationStore"]
