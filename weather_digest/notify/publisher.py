"""RabbitMQ publisher for email tasks."""

import threading
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Optional

import pika
from pika.delivery_mode import DeliveryMode
from pika.exceptions import AMQPChannelError, AMQPConnectionError, AMQPError
from pika.exchange_type import ExchangeType

from weather_digest.config import settings
from weather_digest.errors import TransportError
from weather_digest.notify.tasks import NotificationTask
from weather_digest.utils.logger import setup_logger

logger = setup_logger(__name__)


class AmqpPublisher:
    """
    Publishes NotificationTasks onto the email exchange.

    pika connections are not thread-safe, so a single worker thread owns the
    connection and every publish runs there. Callers get a Future back and
    decide themselves how long to wait for it.
    """

    def __init__(
        self,
        url: str = None,
        exchange: str = None,
        queue: str = None,
        routing_key: str = None,
        connect_timeout: float = None,
        connection_factory: Callable[[pika.ConnectionParameters], pika.BlockingConnection] = None,
    ):
        """
        Initialize publisher.

        Args:
            url: AMQP URL of the broker
            exchange: Durable direct exchange for email tasks
            queue: Durable queue bound to the exchange
            routing_key: Routing key used for both binding and publishing
            connect_timeout: Socket and connection timeout in seconds
            connection_factory: Builds a connection from parameters
        """
        self.url = url or settings.rabbitmq_url
        self.exchange = exchange or settings.email_exchange
        self.queue = queue or settings.email_queue
        self.routing_key = routing_key or settings.email_routing_key
        self.connect_timeout = connect_timeout or settings.publish_timeout_seconds
        self._connection_factory = connection_factory or pika.BlockingConnection
        self._executor: Optional[ThreadPoolExecutor] = None
        self._connection = None
        self._channel = None

    def start(self) -> None:
        """Connect and declare the exchange, queue and binding."""
        if self._executor is not None:
            return
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="amqp-publisher")
        try:
            self._executor.submit(self._connect).result()
        except TransportError:
            self._executor.shutdown(wait=False)
            self._executor = None
            raise
        logger.info(f"Publisher connected, exchange={self.exchange} routing_key={self.routing_key}")

    def _connect(self) -> None:
        params = pika.URLParameters(self.url)
        params.socket_timeout = self.connect_timeout
        params.blocked_connection_timeout = self.connect_timeout
        try:
            connection = self._connection_factory(params)
            channel = connection.channel()
            channel.exchange_declare(
                exchange=self.exchange, exchange_type=ExchangeType.direct, durable=True
            )
            channel.queue_declare(queue=self.queue, durable=True)
            channel.queue_bind(queue=self.queue, exchange=self.exchange, routing_key=self.routing_key)
        except AMQPError as e:
            logger.error(f"Could not connect to broker: {type(e).__name__}")
            raise TransportError(f"Broker connection failed: {type(e).__name__}") from e
        self._connection = connection
        self._channel = channel

    def _ensure_channel(self) -> None:
        """Reconnect if the connection died while nothing was being published."""
        if self._channel is not None and self._channel.is_open:
            try:
                # a BlockingConnection only reads from the socket when asked,
                # so a close sent by the broker while idle is seen here
                self._connection.process_data_events(time_limit=0)
            except AMQPError as e:
                logger.warning(f"Broker connection lost while idle ({type(e).__name__}), reconnecting")
                self._disconnect()
        if self._channel is None or not self._channel.is_open:
            self._connect()

    def _basic_publish(self, body: bytes) -> None:
        self._channel.basic_publish(
            exchange=self.exchange,
            routing_key=self.routing_key,
            body=body,
            properties=pika.BasicProperties(
                content_type="application/json",
                delivery_mode=DeliveryMode.Persistent,
                timestamp=int(time.time()),
            ),
        )

    def _publish(self, body: bytes, started: Optional[threading.Event] = None) -> None:
        if started is not None:
            started.set()
        self._ensure_channel()
        try:
            self._basic_publish(body)
            return
        except (AMQPConnectionError, AMQPChannelError) as e:
            logger.warning(f"Publish on stale connection failed ({type(e).__name__}), reconnecting once")
            self._disconnect()
        except AMQPError as e:
            self._disconnect()
            raise TransportError(f"Publish failed: {type(e).__name__}") from e

        self._connect()
        try:
            self._basic_publish(body)
        except AMQPError as e:
            # drop the broken connection; the next publish reconnects
            self._disconnect()
            raise TransportError(f"Publish failed after reconnect: {type(e).__name__}") from e

    def submit(self, task: NotificationTask, started: Optional[threading.Event] = None) -> Future:
        """
        Queue a task for publishing on the publisher thread.

        Args:
            task: Task to publish
            started: Set once the publisher thread picks the task up
        """
        if self._executor is None:
            raise TransportError("Publisher is not started")
        return self._executor.submit(self._publish, task.encode(), started)

    def _disconnect(self) -> None:
        if self._connection is not None and self._connection.is_open:
            try:
                self._connection.close()
            except AMQPError as e:
                logger.warning(f"Error closing broker connection: {e}")
        self._connection = None
        self._channel = None

    def close(self) -> None:
        """Flush pending publishes and close the connection."""
        if self._executor is None:
            return
        self._executor.submit(self._disconnect)
        self._executor.shutdown(wait=True)
        self._executor = None
        logger.info("Publisher closed")
