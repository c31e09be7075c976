"""OpenWeather API client for geocoding, current weather and forecasts."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import httpx
from pydantic import SecretStr
from pydantic import ValidationError as PydanticValidationError

from weather_digest.api.schemas import (
    CurrentWeatherResponse,
    HourlyForecastResponse,
    geocode_adapter,
)
from weather_digest.config import settings
from weather_digest.data.models import Coordinates, ForecastPoint, ForecastSeries, Observation
from weather_digest.errors import DataError, TransportError, UpstreamError
from weather_digest.utils.logger import setup_logger
from weather_digest.utils.rate_limiter import RateLimiter

logger = setup_logger(__name__)


class OpenWeatherClient:
    """Read-only client for the OpenWeather API."""

    def __init__(
        self,
        api_key: Optional[SecretStr] = None,
        geo_url: str = None,
        data_url: str = None,
        rate_limit: int = None,
        timeout: float = None,
        forecast_hours: int = None,
    ):
        """
        Initialize OpenWeather client.

        Args:
            api_key: API key, sent as the `appid` query parameter
            geo_url: Geocoding API base URL
            data_url: Weather data API base URL
            rate_limit: Requests per minute limit
            timeout: Per-request timeout in seconds
            forecast_hours: Number of hourly points kept from a forecast
        """
        self.api_key = api_key if api_key is not None else settings.openweather_api_key
        self.geo_url = (geo_url or settings.openweather_geo_url).rstrip("/")
        self.data_url = (data_url or settings.openweather_data_url).rstrip("/")
        self.forecast_hours = forecast_hours or settings.forecast_hours
        self.rate_limiter = RateLimiter(
            max_requests=rate_limit or settings.openweather_rate_limit, time_window=60
        )

        if not self.api_key.get_secret_value():
            logger.warning("OpenWeather API key not provided, requests will be rejected")

        timeout_seconds = timeout or settings.http_timeout_seconds
        self.client = httpx.Client(
            headers={"Accept": "application/json"},
            timeout=httpx.Timeout(timeout_seconds, connect=timeout_seconds),
        )

    def _make_request(self, url: str, params: Dict[str, Any]) -> Any:
        """GET a JSON document, translating failures into service errors."""
        self.rate_limiter.wait_if_needed()

        # params are logged without the key
        logger.debug(f"GET {url} params={params}")
        query = dict(params, appid=self.api_key.get_secret_value())

        try:
            response = self.client.get(url, params=query)
        except httpx.TransportError as e:
            raise TransportError(f"Request to {url} failed: {type(e).__name__}") from e

        logger.debug(f"GET {url} status={response.status_code}")

        if not response.is_success:
            raise UpstreamError(
                f"Non-success response from {url}: {response.status_code}",
                status_code=response.status_code,
            )

        try:
            return response.json()
        except ValueError as e:
            raise DataError(f"Undecodable response from {url}: {e}") from e

    def geocode(self, name: str) -> List[Coordinates]:
        """
        Resolve a city name to candidate coordinates.

        Returns:
            Candidates ranked by the provider (best first); empty if none
        """
        payload = self._make_request(
            f"{self.geo_url}/direct", params={"q": name, "limit": 1}
        )
        try:
            candidates = geocode_adapter.validate_python(payload)
            return [Coordinates(c.lat, c.lon) for c in candidates]
        except (PydanticValidationError, ValueError) as e:
            raise DataError(f"Malformed geocoding reply for {name!r}: {e}") from e

    def current_observation(self, coords: Coordinates) -> Observation:
        """Fetch the current weather at a position (metric units)."""
        payload = self._make_request(
            f"{self.data_url}/weather",
            params={"lat": coords.latitude, "lon": coords.longitude, "units": "metric"},
        )
        try:
            reply = CurrentWeatherResponse.model_validate(payload)
        except PydanticValidationError as e:
            raise DataError(f"Malformed weather reply: {e}") from e

        return Observation(
            timestamp=datetime.fromtimestamp(reply.dt, tz=timezone.utc),
            temperature=reply.main.temp,
            feels_like=reply.main.feels_like,
            pressure=reply.main.pressure,
            wind_speed=reply.wind.speed,
            wind_direction=reply.wind.deg,
        )

    def hourly_forecast(self, coords: Coordinates) -> ForecastSeries:
        """
        Fetch the hourly forecast at a position.

        Returns:
            The first `forecast_hours` points, ordered by time

        Raises:
            DataError: If the reply is malformed or holds too few points
        """
        payload = self._make_request(
            f"{self.data_url}/forecast/hourly",
            params={"lat": coords.latitude, "lon": coords.longitude, "units": "metric"},
        )
        try:
            reply = HourlyForecastResponse.model_validate(payload)
        except PydanticValidationError as e:
            raise DataError(f"Malformed forecast reply: {e}") from e

        if len(reply.entries) < self.forecast_hours:
            raise DataError(
                f"Forecast holds {len(reply.entries)} points, expected {self.forecast_hours}"
            )

        return tuple(
            ForecastPoint(
                timestamp=datetime.fromtimestamp(entry.dt, tz=timezone.utc),
                temperature=entry.main.temp,
                feels_like=entry.main.feels_like,
                pressure=entry.main.pressure,
                wind_speed=entry.wind.speed,
                description=entry.weather[0].description if entry.weather else None,
            )
            for entry in reply.entries[: self.forecast_hours]
        )

    def close(self):
        """Close HTTP client."""
        self.client.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()
