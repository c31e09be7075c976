"""Tests for the OpenWeather client."""

from datetime import datetime, timezone
from unittest.mock import Mock, patch

import httpx
import pytest
from pydantic import SecretStr

from weather_digest.api.openweather import OpenWeatherClient
from weather_digest.data.models import Coordinates
from weather_digest.errors import DataError, TransportError, UpstreamError

PARIS = Coordinates(48.8566, 2.3522)


def mock_response(payload=None, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.is_success = 200 <= status_code < 300
    if isinstance(payload, Exception):
        response.json.side_effect = payload
    else:
        response.json.return_value = payload
    return response


def forecast_entry(dt, description="light rain"):
    entry = {
        "dt": dt,
        "main": {"temp": 4.5, "feels_like": 1.2, "pressure": 1008},
        "wind": {"speed": 5.1},
        "weather": [{"description": description}] if description else [],
    }
    return entry


class TestOpenWeatherClient:
    """Tests for OpenWeather client."""

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_client_initialization(self, mock_client_class):
        """Test client initialization."""
        client = OpenWeatherClient(api_key=SecretStr("secret"))
        assert "openweathermap.org" in client.data_url
        assert client.rate_limiter is not None
        assert client.forecast_hours == 24

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_geocode(self, mock_client_class):
        """Test geocoding returns ranked coordinates and sends the key."""
        mock_client = Mock()
        mock_client.get.return_value = mock_response(
            [{"name": "Paris", "lat": 48.8566, "lon": 2.3522, "country": "FR"}]
        )
        mock_client_class.return_value = mock_client

        client = OpenWeatherClient(api_key=SecretStr("secret"))
        candidates = client.geocode("Paris")

        assert candidates == [PARIS]
        params = mock_client.get.call_args.kwargs["params"]
        assert params["q"] == "Paris"
        assert params["appid"] == "secret"
        assert mock_client.get.call_args.args[0].endswith("/geo/1.0/direct")

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_geocode_no_results(self, mock_client_class):
        """Test an empty geocoding reply yields no candidates."""
        mock_client = Mock()
        mock_client.get.return_value = mock_response([])
        mock_client_class.return_value = mock_client

        assert OpenWeatherClient(api_key=SecretStr("secret")).geocode("Atlantis") == []

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_current_observation(self, mock_client_class):
        """Test decoding of the current weather reply."""
        mock_client = Mock()
        mock_client.get.return_value = mock_response(
            {
                "dt": 1704067200,
                "main": {"temp": 3.2, "feels_like": 0.4, "pressure": 1021},
                "wind": {"speed": 2.6, "deg": 200},
                "name": "Paris",
            }
        )
        mock_client_class.return_value = mock_client

        client = OpenWeatherClient(api_key=SecretStr("secret"))
        observation = client.current_observation(PARIS)

        assert observation.timestamp == datetime(2024, 1, 1, tzinfo=timezone.utc)
        assert observation.pressure == 1021
        assert observation.wind_direction == 200
        assert mock_client.get.call_args.kwargs["params"]["units"] == "metric"

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_hourly_forecast_keeps_first_24(self, mock_client_class):
        """Test the forecast is cut to 24 points and descriptions are optional."""
        entries = [forecast_entry(1704067200 + 3600 * i) for i in range(96)]
        entries[1] = forecast_entry(1704067200 + 3600, description=None)
        mock_client = Mock()
        mock_client.get.return_value = mock_response({"cnt": 96, "list": entries})
        mock_client_class.return_value = mock_client

        series = OpenWeatherClient(api_key=SecretStr("secret")).hourly_forecast(PARIS)

        assert len(series) == 24
        assert series[0].description == "light rain"
        assert series[1].description is None
        assert series[0].timestamp < series[23].timestamp

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_short_forecast_is_data_error(self, mock_client_class):
        """Test fewer than 24 points is rejected."""
        mock_client = Mock()
        mock_client.get.return_value = mock_response(
            {"cnt": 2, "list": [forecast_entry(1), forecast_entry(2)]}
        )
        mock_client_class.return_value = mock_client

        with pytest.raises(DataError):
            OpenWeatherClient(api_key=SecretStr("secret")).hourly_forecast(PARIS)

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_non_success_status(self, mock_client_class):
        """Test non-2xx replies raise UpstreamError."""
        mock_client = Mock()
        mock_client.get.return_value = mock_response({"message": "Invalid API key"}, status_code=401)
        mock_client_class.return_value = mock_client

        with pytest.raises(UpstreamError) as exc_info:
            OpenWeatherClient(api_key=SecretStr("secret")).current_observation(PARIS)
        assert exc_info.value.status_code == 401

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_network_failure(self, mock_client_class):
        """Test transport failures raise TransportError without leaking the key."""
        mock_client = Mock()
        mock_client.get.side_effect = httpx.ConnectError("connection refused")
        mock_client_class.return_value = mock_client

        with pytest.raises(TransportError) as exc_info:
            OpenWeatherClient(api_key=SecretStr("secret")).geocode("Paris")
        assert "secret" not in str(exc_info.value)

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_malformed_payload(self, mock_client_class):
        """Test undecodable and mis-shaped replies raise DataError."""
        mock_client = Mock()
        mock_client.get.side_effect = [
            mock_response(ValueError("Expecting value")),
            mock_response({"dt": 1}),
        ]
        mock_client_class.return_value = mock_client
        client = OpenWeatherClient(api_key=SecretStr("secret"))

        with pytest.raises(DataError):
            client.current_observation(PARIS)
        with pytest.raises(DataError):
            client.current_observation(PARIS)

    @patch("weather_digest.api.openweather.httpx.Client")
    def test_rate_limiting(self, mock_client_class):
        """Test rate limit configuration."""
        client = OpenWeatherClient(api_key=SecretStr("secret"), rate_limit=10)
        assert client.rate_limiter.max_requests == 10
