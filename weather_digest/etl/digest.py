"""Per-user forecast digests, composed and dispatched every cycle."""

import html
from dataclasses import asdict, dataclass
from datetime import tzinfo
from typing import List, Optional, Sequence, Tuple

from weather_digest.api.openweather import OpenWeatherClient
from weather_digest.data.models import ForecastSeries, User
from weather_digest.data.registry import CityRegistry
from weather_digest.database.user_store import UserStore
from weather_digest.errors import WeatherServiceError
from weather_digest.notify.dispatcher import NotificationDispatcher
from weather_digest.notify.tasks import DAILY_FORECAST, SENT_BY_META, NotificationTask
from weather_digest.utils.cache import ForecastCache
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)

DIGEST_SUBJECT = "Daily weather forecast"

# hPa to mmHg, as the digest has always shown it
PRESSURE_FACTOR = 0.75


@dataclass
class DispatchReport:
    """Outcome of one dispatch cycle."""

    users_processed: int = 0
    digests_published: int = 0
    users_skipped: int = 0
    publish_failures: int = 0
    forecast_requests: int = 0


class DigestComposer:
    """Render a user's forecasts as an HTML email body."""

    def __init__(self, tz: Optional[tzinfo] = None):
        """
        Args:
            tz: Zone used to print entry times (default: the host's local zone)
        """
        self.tz = tz

    def compose(self, sections: Sequence[Tuple[str, ForecastSeries]]) -> str:
        """
        Build the digest body.

        Args:
            sections: (city name, forecast series) pairs in subscription order
        """
        parts = [
            "<html>\n<body>\n<h1>Hello!</h1>\n<p>Here is your daily weather forecast:</p>"
        ]
        for city, series in sections:
            if not series:
                continue
            logger.debug(f"Composing forecast for city {city} with {len(series)} entries")
            parts.append(f"<h2><b>{html.escape(city)}</b></h2>")
            parts.append("<ul>")
            for point in series:
                local_time = point.timestamp.astimezone(self.tz).strftime("%d %b %H:%M")
                description = html.escape(point.description) if point.description else "N/A"
                parts.append(
                    f"<li>{local_time}: {point.temperature:.1f}°C "
                    f"(feels like {point.feels_like:.1f}°C), "
                    f"pressure {point.pressure * PRESSURE_FACTOR:.1f} mmHg, "
                    f"wind {point.wind_speed:.1f} m/s, {description}</li>"
                )
            parts.append("</ul>")
        parts.append("<p>Thank you for using our service!</p>\n</body>\n</html>")
        return "\n".join(parts)


class DigestPipeline:
    """Compose and publish a forecast digest for every user."""

    def __init__(
        self,
        registry: CityRegistry,
        weather_client: OpenWeatherClient,
        user_store: UserStore,
        dispatcher: NotificationDispatcher,
        composer: DigestComposer = None,
    ):
        self.registry = registry
        self.weather_client = weather_client
        self.user_store = user_store
        self.dispatcher = dispatcher
        self.composer = composer or DigestComposer()

    def _forecast_for(
        self, city: str, cache: ForecastCache, report: DispatchReport
    ) -> Optional[ForecastSeries]:
        """Cached series for a city, fetching it on a miss. None if unavailable."""
        series = cache.get(city)
        if series is not None:
            return series

        coords = self.registry.lookup(city)
        if coords is None:
            logger.warning(f"City {city} not found in registry")
            return None

        report.forecast_requests += 1
        try:
            series = self.weather_client.hourly_forecast(coords)
        except WeatherServiceError as e:
            logger.error(f"Forecast error for city {city}: {e}")
            return None

        cache.set(city, series)
        return series

    def build_task(self, user: User, cache: ForecastCache, report: DispatchReport) -> Optional[NotificationTask]:
        """Digest task for one user, None when no forecast could be obtained."""
        sections: List[Tuple[str, ForecastSeries]] = []
        for city in user.cities:
            series = self._forecast_for(city, cache, report)
            if series:
                sections.append((city, series))

        if not sections:
            logger.info(f"No valid cities for user {user.email}")
            return None

        return NotificationTask(
            to=user.email,
            subject=DIGEST_SUBJECT,
            body=self.composer.compose(sections),
            type=DAILY_FORECAST,
            meta=dict(SENT_BY_META),
        )

    def run_cycle(self) -> DispatchReport:
        """
        Process every user once, sequentially.

        A failure for one city or one user never stops the others. Forecasts
        are shared across users within the cycle.
        """
        report = DispatchReport()
        cache = ForecastCache()

        for user in self.user_store.iter_users():
            report.users_processed += 1
            logger.debug(f"Processing user {user.email} with cities {user.cities}")

            task = self.build_task(user, cache, report)
            if task is None:
                report.users_skipped += 1
                continue

            if self.dispatcher.dispatch_digest(task):
                report.digests_published += 1
            else:
                report.publish_failures += 1

        logger.info(f"Dispatch cycle complete: {asdict(report)}")
        return report

    def run_tick(self) -> None:
        """Scheduler entry point; a failure ends this cycle only."""
        try:
            self.run_cycle()
        except Exception as e:
            logger.error(f"Dispatch cycle aborted: {e}", exc_info=True)
