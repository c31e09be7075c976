"""Resolve unknown city names and grow the registry."""

import threading
from typing import Dict, Iterable, List

from weather_digest.api.openweather import OpenWeatherClient
from weather_digest.data.models import City, normalize_city_name
from weather_digest.data.registry import CityRegistry
from weather_digest.database.metrics_store import MetricsStore
from weather_digest.errors import NotFoundError, ValidationError
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class CityResolver:
    """Geocode city names the registry does not know yet."""

    def __init__(
        self,
        registry: CityRegistry,
        weather_client: OpenWeatherClient,
        metrics_store: MetricsStore,
    ):
        self.registry = registry
        self.weather_client = weather_client
        self.metrics_store = metrics_store
        # serializes resolutions so two callers never persist the same city
        self._lock = threading.Lock()

    def resolve_and_register(self, names: Iterable[str]) -> List[str]:
        """
        Make every name known to the registry.

        Args:
            names: City names as entered by the user, duplicates allowed

        Returns:
            Registry names of all input cities, deduplicated, in input order

        Raises:
            ValidationError: If a name is blank
            NotFoundError: If geocoding yields no candidate for a name
            UpstreamError, TransportError, DataError: On provider or store failure

        The first failure aborts the call: nothing is persisted and the
        registry is left unchanged.
        """
        ordered: Dict[str, str] = {}
        for name in names:
            if not isinstance(name, str) or not name.strip():
                raise ValidationError("City names must be non-empty strings")
            ordered.setdefault(normalize_city_name(name), " ".join(name.split()))

        with self._lock:
            resolved: Dict[str, City] = {}
            for key, name in ordered.items():
                if key in self.registry:
                    continue
                candidates = self.weather_client.geocode(name)
                if not candidates:
                    logger.warning(f"No geocoding results for city {name!r}")
                    raise NotFoundError(f"No geocoding results for city {name!r}")
                best = candidates[0]
                resolved[key] = City(name=name, latitude=best.latitude, longitude=best.longitude)

            if resolved:
                self.metrics_store.insert_cities(list(resolved.values()))
                self.registry.register_many(resolved.values())
                logger.info(f"Registered {len(resolved)} new cities: {sorted(c.name for c in resolved.values())}")

        return [self.registry.get(key).name for key in ordered]
