"""Wiring of clients, stores and pipelines with an explicit lifecycle."""

from typing import Optional

from sqlalchemy import Engine

from weather_digest.accounts import AccountService
from weather_digest.api.openweather import OpenWeatherClient
from weather_digest.config import Settings, settings as default_settings
from weather_digest.data.registry import CityRegistry
from weather_digest.data.resolver import CityResolver
from weather_digest.database.connection import create_db_engine, dispose_engine
from weather_digest.database.metrics_store import MetricsStore
from weather_digest.database.schema import create_metrics_schema, create_users_schema
from weather_digest.database.user_store import UserStore
from weather_digest.etl.collector import MetricsCollector
from weather_digest.etl.digest import DigestPipeline
from weather_digest.notify.dispatcher import NotificationDispatcher
from weather_digest.notify.publisher import AmqpPublisher
from weather_digest.scheduler import PeriodicScheduler
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)

COLLECT_JOB = "collect_metrics"
DISPATCH_JOB = "dispatch_digests"


class WeatherService:
    """Owns every long-lived resource of the process."""

    def __init__(self, config: Settings = None, scheduler: Optional[PeriodicScheduler] = None):
        self.config = config or default_settings
        self.scheduler = scheduler or PeriodicScheduler()
        self.registry = CityRegistry()

        self.users_engine: Optional[Engine] = None
        self.metrics_engine: Optional[Engine] = None
        self.weather_client: Optional[OpenWeatherClient] = None
        self.publisher: Optional[AmqpPublisher] = None

        self.collector: Optional[MetricsCollector] = None
        self.digests: Optional[DigestPipeline] = None
        self.accounts: Optional[AccountService] = None

    def open(self) -> None:
        """Connect stores, queue and provider, and seed the registry."""
        try:
            self._open()
        except Exception:
            logger.error("Service startup failed, releasing resources")
            self.stop()
            raise

    def _open(self) -> None:
        cfg = self.config
        self.users_engine = create_db_engine(cfg.database_url)
        if cfg.metrics_url == cfg.database_url:
            self.metrics_engine = self.users_engine
        else:
            self.metrics_engine = create_db_engine(cfg.metrics_url)
        create_users_schema(self.users_engine)
        create_metrics_schema(self.metrics_engine)

        user_store = UserStore(self.users_engine)
        metrics_store = MetricsStore(self.metrics_engine)
        self.registry.load(metrics_store.load_cities())

        self.weather_client = OpenWeatherClient(
            api_key=cfg.openweather_api_key,
            geo_url=cfg.openweather_geo_url,
            data_url=cfg.openweather_data_url,
            rate_limit=cfg.openweather_rate_limit,
            timeout=cfg.http_timeout_seconds,
            forecast_hours=cfg.forecast_hours,
        )
        self.publisher = AmqpPublisher(
            url=cfg.rabbitmq_url,
            exchange=cfg.email_exchange,
            queue=cfg.email_queue,
            routing_key=cfg.email_routing_key,
            connect_timeout=cfg.publish_timeout_seconds,
        )
        self.publisher.start()

        dispatcher = NotificationDispatcher(
            self.publisher,
            publish_timeout=cfg.publish_timeout_seconds,
            queue_timeout=cfg.publish_queue_timeout_seconds,
        )
        resolver = CityResolver(self.registry, self.weather_client, metrics_store)
        self.collector = MetricsCollector(self.registry, self.weather_client, metrics_store)
        self.digests = DigestPipeline(self.registry, self.weather_client, user_store, dispatcher)
        self.accounts = AccountService(user_store, resolver, dispatcher)
        logger.info(f"Service ready with {len(self.registry)} cities")

    def start(self) -> None:
        """Open resources and start both periodic pipelines."""
        if self.collector is None:
            self.open()
        self.scheduler.add_job(
            COLLECT_JOB,
            self.collector.run_tick,
            self.config.collection_interval_seconds,
            name="Weather metrics collection",
        )
        self.scheduler.add_job(
            DISPATCH_JOB,
            self.digests.run_tick,
            self.config.dispatch_interval_seconds,
            name="Forecast digest dispatch",
        )
        self.scheduler.start()

    def stop(self) -> None:
        """Stop timers, then release resources in reverse order."""
        self.scheduler.stop(wait=True)
        if self.publisher is not None:
            self.publisher.close()
        if self.weather_client is not None:
            self.weather_client.close()
        if self.metrics_engine is not None and self.metrics_engine is not self.users_engine:
            dispose_engine(self.metrics_engine)
        dispose_engine(self.users_engine)
        self.collector = self.digests = self.accounts = None
        self.publisher = self.weather_client = None
        self.metrics_engine = self.users_engine = None

    def __enter__(self):
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
