"""Pytest configuration and fixtures."""

from unittest.mock import Mock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.pool import StaticPool

from weather_digest.api.openweather import OpenWeatherClient
from weather_digest.data.models import City, Coordinates
from weather_digest.data.registry import CityRegistry
from weather_digest.database.metrics_store import MetricsStore
from weather_digest.database.schema import create_metrics_schema, create_users_schema
from weather_digest.database.user_store import UserStore
from tests.helpers import FakePublisher, make_observation, make_series


@pytest.fixture
def engine():
    """In-memory SQLite engine with every table created."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_metrics_schema(engine)
    create_users_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def metrics_store(engine):
    return MetricsStore(engine)


@pytest.fixture
def user_store(engine):
    return UserStore(engine)


@pytest.fixture
def registry():
    return CityRegistry()


@pytest.fixture
def berlin():
    return City(name="Berlin", latitude=52.52, longitude=13.405)


@pytest.fixture
def weather_client():
    """Provider mock; tests set side effects per operation."""
    client = Mock(spec=OpenWeatherClient)
    client.geocode.return_value = [Coordinates(48.8566, 2.3522)]
    client.current_observation.return_value = make_observation()
    client.hourly_forecast.return_value = make_series()
    return client


@pytest.fixture
def publisher():
    return FakePublisher()
