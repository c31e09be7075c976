"""Periodic collection of current weather for every registered city."""

from typing import List

from weather_digest.api.openweather import OpenWeatherClient
from weather_digest.data.models import WeatherMetricSample
from weather_digest.data.registry import CityRegistry
from weather_digest.database.metrics_store import MetricsStore
from weather_digest.errors import WeatherServiceError
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class MetricsCollector:
    """Snapshot current weather for all registered cities into the metrics store."""

    def __init__(
        self,
        registry: CityRegistry,
        weather_client: OpenWeatherClient,
        metrics_store: MetricsStore,
    ):
        """
        Initialize metrics collector.

        Args:
            registry: Cities to collect for
            weather_client: Provider of current observations
            metrics_store: Destination of the samples
        """
        self.registry = registry
        self.weather_client = weather_client
        self.metrics_store = metrics_store

    def extract(self) -> List[WeatherMetricSample]:
        """
        Fetch one sample per city, one city at a time.

        Raises:
            TransportError, UpstreamError, DataError: On the first failed fetch
        """
        snapshot = self.registry.snapshot()
        samples = []
        for city in snapshot.values():
            try:
                observation = self.weather_client.current_observation(city.coordinates)
            except WeatherServiceError as e:
                logger.error(f"Error fetching weather for {city.name}: {e}")
                raise
            samples.append(WeatherMetricSample.from_observation(city.name, observation))
        return samples

    def collect(self) -> int:
        """
        Run one collection tick.

        A single failed city aborts the tick, so either every city's sample
        is written or none is.

        Returns:
            Number of records written
        """
        samples = self.extract()
        if not samples:
            logger.info("No registered cities, nothing to collect")
            return 0
        return self.metrics_store.insert_samples(samples)

    def run_tick(self) -> None:
        """Scheduler entry point; failures are logged and retried next tick."""
        try:
            written = self.collect()
        except Exception as e:
            logger.error(f"Collection tick aborted, no samples written: {e}", exc_info=True)
            return
        logger.info(f"Collection tick complete: {written} weather records")
