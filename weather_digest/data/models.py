"""Data models for cities, observations and forecasts."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Tuple


def normalize_city_name(name: str) -> str:
    """Registry key for a city name: collapsed whitespace, case-folded."""
    return " ".join(name.split()).casefold()


@dataclass(frozen=True)
class Coordinates:
    """Geographic position of a city."""

    latitude: float
    longitude: float

    def __post_init__(self):
        """Validate coordinates."""
        if not -90 <= self.latitude <= 90:
            raise ValueError(f"Invalid latitude: {self.latitude}")
        if not -180 <= self.longitude <= 180:
            raise ValueError(f"Invalid longitude: {self.longitude}")


@dataclass(frozen=True)
class City:
    """A monitored city."""

    name: str
    latitude: float
    longitude: float

    def __post_init__(self):
        """Validate city data."""
        if not self.name or not self.name.strip():
            raise ValueError("City name must not be empty")
        Coordinates(self.latitude, self.longitude)

    @property
    def key(self) -> str:
        return normalize_city_name(self.name)

    @property
    def coordinates(self) -> Coordinates:
        return Coordinates(self.latitude, self.longitude)


@dataclass(frozen=True)
class Observation:
    """Current weather at a position, as reported by the provider."""

    timestamp: datetime
    temperature: float
    feels_like: float
    pressure: int
    wind_speed: float
    wind_direction: int


@dataclass(frozen=True)
class WeatherMetricSample:
    """One row of the weather_metrics table."""

    timestamp: datetime
    city: str
    temperature: float
    feels_like: float
    pressure: int
    wind_speed: float
    wind_direction: int

    @classmethod
    def from_observation(cls, city: str, observation: Observation) -> "WeatherMetricSample":
        return cls(
            timestamp=observation.timestamp,
            city=city,
            temperature=observation.temperature,
            feels_like=observation.feels_like,
            pressure=observation.pressure,
            wind_speed=observation.wind_speed,
            wind_direction=observation.wind_direction,
        )

    def as_record(self) -> dict:
        return {
            "timestamp": self.timestamp,
            "city": self.city,
            "temperature": self.temperature,
            "feels_like": self.feels_like,
            "pressure": self.pressure,
            "wind_speed": self.wind_speed,
            "wind_direction": self.wind_direction,
        }


@dataclass(frozen=True)
class ForecastPoint:
    """A single hourly forecast entry."""

    timestamp: datetime
    temperature: float
    feels_like: float
    pressure: int
    wind_speed: float
    description: Optional[str] = None


# Exactly `forecast_hours` points, ordered by time
ForecastSeries = Tuple[ForecastPoint, ...]


@dataclass(frozen=True)
class User:
    """A subscriber as read from the user store."""

    email: str
    cities: List[str] = field(default_factory=list)
