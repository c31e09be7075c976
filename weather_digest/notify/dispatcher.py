"""Hand notification tasks to the queue publisher."""

import threading
from concurrent.futures import CancelledError, Future
from concurrent.futures import TimeoutError as FuturesTimeoutError

from weather_digest.config import settings
from weather_digest.errors import TransportError, WeatherServiceError
from weather_digest.notify.publisher import AmqpPublisher
from weather_digest.notify.tasks import NotificationTask, welcome_task
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class NotificationDispatcher:
    """Best-effort publishing of digests and welcome messages."""

    def __init__(
        self,
        publisher: AmqpPublisher,
        publish_timeout: float = None,
        queue_timeout: float = None,
    ):
        """
        Args:
            publisher: Publisher owning the broker connection
            publish_timeout: Longest wait for one publish once it has started
            queue_timeout: Longest wait for the publisher thread to pick a task up
        """
        self.publisher = publisher
        self.publish_timeout = publish_timeout or settings.publish_timeout_seconds
        self.queue_timeout = queue_timeout or settings.publish_queue_timeout_seconds

    def publish(self, task: NotificationTask, timeout: float = None) -> None:
        """
        Publish and wait at most `timeout` seconds once the publish starts.

        Time spent queued behind an earlier, still running publish does not
        count against `timeout`, so one stalled send never fails the tasks
        behind it. A task that is not picked up within `queue_timeout` is
        cancelled. A publish that times out after starting cannot be stopped
        and may still reach the broker.

        Raises:
            TransportError: On timeout or broker failure
        """
        timeout = timeout or self.publish_timeout
        started = threading.Event()
        future = self.publisher.submit(task, started=started)

        if not started.wait(self.queue_timeout) and future.cancel():
            raise TransportError(f"Publish to {task.to} not started within {self.queue_timeout}s")

        try:
            future.result(timeout=timeout)
        except FuturesTimeoutError as e:
            raise TransportError(f"Publish to {task.to} timed out after {timeout}s") from e
        except CancelledError as e:
            raise TransportError(f"Publish to {task.to} was cancelled") from e

    def dispatch_digest(self, task: NotificationTask) -> bool:
        """Publish a digest; on failure log and drop it. Returns True if published."""
        try:
            self.publish(task)
        except WeatherServiceError as e:
            logger.error(f"Publish error for {task.to}, digest dropped: {e}")
            return False
        logger.info(f"Email task published for {task.to}")
        return True

    def send_welcome(self, email: str) -> Future:
        """
        Publish a welcome message without waiting for it.

        Nothing waits on the returned future and a failed publish is not
        retried: the message is lost and only a log line records it.
        """
        try:
            future = self.publisher.submit(welcome_task(email))
        except WeatherServiceError as e:
            logger.error(f"Failed to publish welcome email for {email}: {e}")
            future = Future()
            future.set_exception(e)
            return future

        def _log_outcome(done: Future) -> None:
            if done.cancelled():
                logger.error(f"Welcome email for {email} was cancelled")
            elif done.exception() is not None:
                logger.error(f"Failed to publish welcome email for {email}: {done.exception()}")
            else:
                logger.info(f"Welcome email task published for {email}")

        future.add_done_callback(_log_outcome)
        return future
