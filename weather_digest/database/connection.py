"""Database connection management."""

from typing import Optional

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import make_url

from weather_digest.config import settings
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


def create_db_engine(url: Optional[str] = None, **kwargs) -> Engine:
    """
    Create a database engine.

    Args:
        url: SQLAlchemy URL (default: the users database from settings)
        **kwargs: Extra arguments for create_engine

    Returns:
        A new Engine; the caller owns it and must dispose it
    """
    url = url or settings.database_url
    kwargs.setdefault("pool_pre_ping", True)
    engine = create_engine(url, echo=False, **kwargs)
    # never log the password
    logger.info(f"Database engine created for {make_url(url).render_as_string(hide_password=True)}")
    return engine


def dispose_engine(engine: Optional[Engine]) -> None:
    """Close every pooled connection of an engine."""
    if engine is not None:
        engine.dispose()
        logger.info("Database engine closed")
