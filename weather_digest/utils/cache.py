"""Caching utilities."""

import math
from typing import Optional

from cachetools import Cache

from weather_digest.data.models import ForecastSeries, normalize_city_name
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class ForecastCache:
    """
    Forecasts fetched during one dispatch cycle, keyed by city.

    Only successful fetches are stored, so a city whose fetch failed is
    tried again when the next user subscribed to it comes up. Nothing is
    evicted: a city fetched once is reused for the rest of the cycle. Build
    a new instance for every cycle.
    """

    def __init__(self):
        """Initialize forecast cache."""
        self.cache = Cache(maxsize=math.inf)
        self.hits = 0
        self.misses = 0

    def get(self, city: str) -> Optional[ForecastSeries]:
        """Get a cached series, None on miss."""
        series = self.cache.get(normalize_city_name(city))
        if series is None:
            self.misses += 1
        else:
            self.hits += 1
            logger.debug(f"Forecast cache hit for {city}")
        return series

    def set(self, city: str, series: ForecastSeries) -> None:
        """Store a successfully fetched series."""
        if not series:
            return
        self.cache[normalize_city_name(city)] = series

    def __contains__(self, city: str) -> bool:
        return normalize_city_name(city) in self.cache

    def __len__(self) -> int:
        return len(self.cache)
