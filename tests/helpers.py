"""Shared builders and fakes for tests."""

from concurrent.futures import Future
from datetime import datetime, timedelta, timezone

from weather_digest.data.models import ForecastPoint, Observation
from weather_digest.errors import TransportError

BASE_TIME = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)


def make_series(hours: int = 24, description: str = "clear sky", temperature: float = 5.0):
    """A forecast series starting at BASE_TIME."""
    return tuple(
        ForecastPoint(
            timestamp=BASE_TIME + timedelta(hours=i),
            temperature=temperature + i,
            feels_like=temperature + i - 2,
            pressure=1000,
            wind_speed=3.0,
            description=description,
        )
        for i in range(hours)
    )


def make_observation(temperature: float = 10.0) -> Observation:
    return Observation(
        timestamp=BASE_TIME,
        temperature=temperature,
        feels_like=temperature - 1.5,
        pressure=1013,
        wind_speed=4.2,
        wind_direction=270,
    )


class FakePublisher:
    """Publisher stand-in that completes futures immediately."""

    def __init__(self):
        self.published = []
        self.failing = set()

    def submit(self, task, started=None):
        if started is not None:
            started.set()
        future = Future()
        if task.to in self.failing:
            future.set_exception(TransportError("broker unreachable"))
        else:
            self.published.append(task)
            future.set_result(None)
        return future
