"""Error taxonomy shared by clients, stores and pipelines."""

from typing import Optional


class WeatherServiceError(Exception):
    """Base class for all service errors."""


class TransportError(WeatherServiceError):
    """Network failure talking to the provider, a store or the queue."""


class UpstreamError(WeatherServiceError):
    """An external call answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class DataError(WeatherServiceError):
    """A response could not be decoded into the expected shape."""


class NotFoundError(WeatherServiceError):
    """A lookup yielded nothing (no geocoding candidate, unknown user)."""


class ValidationError(WeatherServiceError):
    """A request is missing required fields."""


class ConflictError(WeatherServiceError):
    """The record already exists."""
