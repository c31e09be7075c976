"""Pydantic models for OpenWeather response payloads."""

from typing import List, Optional

from pydantic import BaseModel, Field, TypeAdapter


class GeocodeCandidate(BaseModel):
    """One entry of the /geo/1.0/direct reply."""

    name: Optional[str] = None
    lat: float
    lon: float
    country: Optional[str] = None


class MainBlock(BaseModel):
    temp: float
    feels_like: float
    pressure: int


class WindBlock(BaseModel):
    speed: float
    deg: int = 0


class WeatherDescription(BaseModel):
    description: Optional[str] = None


class CurrentWeatherResponse(BaseModel):
    """Reply of /data/2.5/weather."""

    dt: int
    main: MainBlock
    wind: WindBlock
    name: Optional[str] = None


class ForecastEntry(BaseModel):
    dt: int
    main: MainBlock
    wind: WindBlock
    weather: List[WeatherDescription] = Field(default_factory=list)


class HourlyForecastResponse(BaseModel):
    """Reply of /data/2.5/forecast/hourly."""

    cnt: int = 0
    entries: List[ForecastEntry] = Field(default_factory=list, alias="list")


geocode_adapter = TypeAdapter(List[GeocodeCandidate])
