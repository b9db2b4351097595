import logging
import socket

import pika
from pika.exceptions import (AMQPConnectionError, AMQPError, ChannelClosedByBroker,
                             ChannelWrongStateError, ConnectionWrongStateError)

from queue_autoscaler.errors import QueueError, TransientQueueError

# Failures of a connection the broker has already dropped
STALE_CONNECTION_ERRORS = (AMQPConnectionError, ChannelWrongStateError, ConnectionWrongStateError, socket.error)


class RabbitMQQueue:
    """
    Reads the backlog of a RabbitMQ queue over a long-lived connection.

    The connection is opened on first use and reused between calls. When the
    connection breaks it is dropped, so the next call reconnects.
    """

    def __init__(self, amqp_url: str, connection_factory=pika.BlockingConnection):
        self._params = pika.URLParameters(amqp_url)
        self._connection_factory = connection_factory
        self._connection = None
        self._channel = None

    def _get_channel(self):
        if self._channel is None or not self._channel.is_open:
            if self._connection is None or not self._connection.is_open:
                logging.info(f"Connecting to RabbitMQ at {self._params.host}:{self._params.port}")
                self._connection = self._connection_factory(self._params)
            self._channel = self._connection.channel()
        return self._channel

    def _declare(self, queue_name):
        # Passive declare only checks the queue, it never creates it
        return self._get_channel().queue_declare(queue=queue_name, passive=True)

    def inspect(self, queue_name: str) -> int:
        """
        Get the number of messages ready in a queue.

        A reused connection the broker has dropped while idle is replaced once
        before the failure is reported.

        Args:
            queue_name: Name of the queue to inspect

        Returns:
            int: Messages waiting to be consumed

        Raises:
            QueueError: If the broker rejects the inspection (e.g. queue missing)
            TransientQueueError: If the connection to the broker fails
        """
        reused = self._connection is not None and self._connection.is_open
        try:
            try:
                queue_info = self._declare(queue_name)
            except STALE_CONNECTION_ERRORS as e:
                if not reused:
                    raise
                logging.warning(f"RabbitMQ connection went stale ({e!r}), reconnecting")
                self.close()
                queue_info = self._declare(queue_name)
        except ChannelClosedByBroker as e:
            self._channel = None
            logging.error(f"Broker refused inspection of queue {queue_name}: {e}", exc_info=True)
            raise QueueError(f"Error inspecting queue {queue_name}: {e}") from e
        except (AMQPError, socket.error) as e:
            self.close()
            logging.error(f"Error connecting to RabbitMQ: {e}", exc_info=True)
            raise TransientQueueError(f"Error inspecting queue {queue_name}: {e!r}") from e

        message_count = queue_info.method.message_count
        logging.debug(f"RabbitMQ queue {queue_name} has {message_count} ready messages")
        return message_count

    def close(self):
        """Close the channel and connection, ignoring ones already closed."""
        channel, connection = self._channel, self._connection
        self._channel = None
        self._connection = None
        for resource in (channel, connection):
            if resource is None or not resource.is_open:
                continue
            try:
                resource.close()
            except (AMQPError, socket.error) as e:
                logging.warning(f"Error closing RabbitMQ {type(resource).__name__}: {e}")
