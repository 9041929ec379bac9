"""Error taxonomy for the agro-climate core."""

from datetime import date
from typing import Optional


class AgroClimateError(Exception):
    """Base class for all core errors."""


class DataUnavailable(AgroClimateError):
    """No observation or forecast exists for the requested date/location."""

    def __init__(self, message: str, location: Optional[str] = None, day: Optional[date] = None):
        super().__init__(message)
        self.location = location
        self.day = day


class SourceFailure(AgroClimateError):
    """A weather data source errored or timed out."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class ConfigurationError(AgroClimateError):
    """Invalid configuration. Fatal at startup."""


class PartialComputeFailure(AgroClimateError):
    """A single derived indicator could not be computed."""

    def __init__(self, field_name: str, reason: str):
        super().__init__(f"{field_name}: {reason}")
        self.field_name = field_name
        self.reason = reason
