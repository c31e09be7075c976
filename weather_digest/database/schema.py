"""Database schema definitions and initialization."""

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Engine,
    Float,
    Index,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
)

from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)

# Time-series store
metrics_metadata = MetaData()

cities = Table(
    "cities",
    metrics_metadata,
    Column("name", String(100), primary_key=True),
    Column("lat", Float, nullable=False),
    Column("lon", Float, nullable=False),
)

weather_metrics = Table(
    "weather_metrics",
    metrics_metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("timestamp", DateTime(timezone=True), nullable=False),
    Column("city", String(100), nullable=False),
    Column("temperature", Float, nullable=False),
    Column("feels_like", Float, nullable=False),
    Column("pressure", SmallInteger, nullable=False),
    Column("wind_speed", Float, nullable=False),
    Column("wind_direction", SmallInteger, nullable=False),
    Index("idx_weather_metrics_timestamp", "timestamp"),
    Index("idx_weather_metrics_city_timestamp", "city", "timestamp"),
)

# User store
users_metadata = MetaData()

users = Table(
    "users",
    users_metadata,
    Column("email", String(255), primary_key=True),
    Column("password_hash", String(255), nullable=False),
    Column("cities", JSON, nullable=False, default=list),
)


def create_metrics_schema(engine: Engine) -> None:
    """Create the metrics and city tables if missing."""
    metrics_metadata.create_all(engine)
    logger.info("Metrics schema created")


def create_users_schema(engine: Engine) -> None:
    """Create the users table if missing."""
    users_metadata.create_all(engine)
    logger.info("Users schema created")
