"""Time-series store for weather samples and the persisted city table."""

from typing import List, Sequence

from sqlalchemy import Engine, func, insert, select
from sqlalchemy.exc import SQLAlchemyError

from weather_digest.data.models import City, WeatherMetricSample
from weather_digest.database.schema import cities as cities_table
from weather_digest.database.schema import weather_metrics
from weather_digest.errors import TransportError
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class MetricsStore:
    """Load weather samples and cities into the metrics database."""

    def __init__(self, engine: Engine):
        """Initialize metrics store."""
        self.engine = engine

    def load_cities(self) -> List[City]:
        """Read every persisted city, used to seed the registry at startup."""
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(
                    select(cities_table.c.name, cities_table.c.lat, cities_table.c.lon)
                ).all()
        except SQLAlchemyError as e:
            logger.error(f"Error reading cities: {e}")
            raise TransportError(f"Could not read cities: {e}") from e

        loaded = []
        for row in rows:
            try:
                loaded.append(City(name=row.name, latitude=row.lat, longitude=row.lon))
            except ValueError as e:
                logger.warning(f"Skipping invalid city row {row.name!r}: {e}")
        return loaded

    def insert_cities(self, cities: Sequence[City]) -> int:
        """
        Persist newly resolved cities in a single transaction.

        Returns:
            Number of records inserted
        """
        if not cities:
            return 0

        records = [
            {"name": city.name, "lat": city.latitude, "lon": city.longitude}
            for city in cities
        ]
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(cities_table), records)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting cities: {e}")
            raise TransportError(f"Could not insert cities: {e}") from e

        logger.info(f"Inserted {len(records)} cities")
        return len(records)

    def insert_samples(self, samples: Sequence[WeatherMetricSample]) -> int:
        """
        Write one collection tick's samples, all or nothing.

        Returns:
            Number of records inserted
        """
        if not samples:
            return 0

        records = [sample.as_record() for sample in samples]
        try:
            with self.engine.begin() as conn:
                conn.execute(insert(weather_metrics), records)
        except SQLAlchemyError as e:
            logger.error(f"Error inserting weather samples: {e}")
            raise TransportError(f"Could not insert weather samples: {e}") from e

        logger.info(f"Inserted {len(records)} weather records")
        return len(records)

    def count_samples(self) -> int:
        """Total number of stored samples."""
        with self.engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(weather_metrics)).scalar_one()
