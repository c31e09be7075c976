"""In-memory registry of monitored cities."""

import threading
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional

from weather_digest.data.models import City, Coordinates, normalize_city_name
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class CityRegistry:
    """
    Mapping of city name to coordinates, shared by every pipeline.

    Readers never lock: they dereference the current read-only mapping,
    which is replaced wholesale on every write. Writers serialize on a lock,
    copy the mapping, insert and swap the reference.
    """

    def __init__(self, cities: Iterable[City] = ()):
        self._write_lock = threading.Lock()
        self._cities: Mapping[str, City] = MappingProxyType({})
        if cities:
            self.load(cities)

    def load(self, cities: Iterable[City]) -> int:
        """Seed the registry, typically from the persisted city table."""
        inserted = self.register_many(cities)
        logger.info(f"Loaded {len(inserted)} cities into registry")
        return len(inserted)

    def get(self, name: str) -> Optional[City]:
        return self._cities.get(normalize_city_name(name))

    def lookup(self, name: str) -> Optional[Coordinates]:
        """Coordinates of a known city, None if it is not registered."""
        city = self.get(name)
        return city.coordinates if city else None

    def register(self, name: str, coords: Coordinates) -> bool:
        """
        Insert a city unless it is already known.

        Returns:
            True if newly inserted, False if the name was already present
            (existing coordinates are never overwritten)
        """
        city = City(name=" ".join(name.split()), latitude=coords.latitude, longitude=coords.longitude)
        return bool(self.register_many([city]))

    def register_many(self, cities: Iterable[City]) -> List[City]:
        """Atomically insert every city not yet present; return those inserted."""
        with self._write_lock:
            current = self._cities
            updated: Dict[str, City] = dict(current)
            inserted = []
            for city in cities:
                if city.key in updated:
                    continue
                updated[city.key] = city
                inserted.append(city)
            if inserted:
                self._cities = MappingProxyType(updated)
        return inserted

    def snapshot(self) -> Mapping[str, City]:
        """Consistent read-only view of the registry at this instant."""
        return self._cities

    def names(self) -> List[str]:
        return [city.name for city in self._cities.values()]

    def __contains__(self, name: str) -> bool:
        return normalize_city_name(name) in self._cities

    def __len__(self) -> int:
        return len(self._cities)
