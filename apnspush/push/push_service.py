"""
Push service: delivery queue and retry loop.

Usage:
    push = Push(Environment.SANDBOX, "AuthKey_ABCDE12345.p8",
                team_id="TEAMID1234", key_id="ABCDE12345")
    push.connect()

    message = Message(device_token, text="Hello", topic="com.example.app")
    push.add(message)
    push.send()
    push.disconnect()

    for message_id, queued in push.get_errors().items():
        ...

send() sweeps the queue in id order. Before each transmission the
message's recorded attempts are checked: delivered and permanently failed
messages leave the queue, the latter into the errors container, and so do
messages that used up their retry budget. A failed transmission stops the
sweep, forces a reconnect and starts a new run with the failed message
first in line.
"""

import logging
import time
import uuid
from pathlib import Path
from typing import Dict, List, Optional, Union

from apnspush.core.config import Settings
from apnspush.core.logging_config import (
    clear_delivery_id,
    sanitize_log_value,
    set_delivery_id,
)
from apnspush.push import classifier
from apnspush.push.connection import ApnsConnection
from apnspush.push.constants import SEND_RETRY_TIMES
from apnspush.push.delivery_queue import DeliveryQueue
from apnspush.push.environment import Environment
from apnspush.push.exceptions import PushError
from apnspush.push.models import AttemptRecord, Disposition, PushMessage, QueuedMessage

logger = logging.getLogger(__name__)


class Push(ApnsConnection):
    """
    Sends queued messages to APNS with per-message retry bookkeeping.

    Not thread safe: a single instance owns its queue, errors container and
    connection. Hosts sharing an instance between threads must serialize
    calls to add(), send(), get_message_queue() and get_errors().

    Attributes:
        send_retry_times: Failed attempts after which a message is given up
    """

    def __init__(
        self,
        environment: Union[Environment, str],
        certificate_file: Union[str, Path],
        **kwargs,
    ):
        super().__init__(environment, certificate_file, **kwargs)
        self.send_retry_times = SEND_RETRY_TIMES
        self._queue = DeliveryQueue()

    @classmethod
    def from_settings(cls, settings: Settings) -> "Push":
        """
        Build a Push instance from application settings.

        Raises:
            ConfigurationError: If no credential file is configured or the
                settings are otherwise unusable
        """
        push = cls(
            settings.APNS_ENVIRONMENT,
            settings.APNS_CERTIFICATE_FILE or "",
            certificate_passphrase=settings.APNS_CERTIFICATE_PASSPHRASE,
            team_id=settings.APNS_TEAM_ID,
            key_id=settings.APNS_KEY_ID,
            root_ca_file=settings.APNS_ROOT_CA_FILE,
        )
        push.send_retry_times = settings.APNS_SEND_RETRY_TIMES
        push.connect_retry_times = settings.APNS_CONNECT_RETRY_TIMES
        push.connect_retry_interval = settings.APNS_CONNECT_RETRY_INTERVAL
        push.write_interval = settings.APNS_WRITE_INTERVAL
        push.connect_timeout = settings.APNS_CONNECT_TIMEOUT
        return push

    def __enter__(self) -> "Push":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.disconnect()

    def add(self, message: PushMessage) -> List[int]:
        """
        Queue a message, one entry per recipient.

        The payload is built up front so oversized messages are rejected
        here rather than during send().

        Returns:
            Ids assigned to the queued entries

        Raises:
            MessageError: If the payload cannot be built
        """
        message.get_payload()
        return self._queue.enqueue(message)

    def send(self) -> None:
        """
        Send all queued messages.

        Delivery failures never raise; inspect get_errors() afterwards.

        Raises:
            PushError: If not connected or nothing is queued
            ApnsConnectionError: If reconnecting after a failure is impossible
        """
        if not self.is_connected:
            raise PushError("Not connected to Push Notification Service")

        if not len(self._queue):
            raise PushError("No notifications queued to be sent")

        self._queue.clear_errors()
        token = set_delivery_id(str(uuid.uuid4()))
        try:
            run = 1
            while len(self._queue) > 0:
                logger.info(
                    f"Sending messages queue, run #{run}: {len(self._queue)} message(s) left in queue."
                )

                error = False
                for queued in self._queue:
                    if self._resolve(queued):
                        continue

                    error = self._send_queued(queued)
                    if error:
                        break

                if not error:
                    self._queue.clear()

                run += 1
        finally:
            clear_delivery_id(token)

    def get_message_queue(self, empty: bool = True) -> Dict[int, QueuedMessage]:
        """
        Return messages left in the queue.

        Args:
            empty: Empty the queue as well
        """
        return self._queue.drain(empty)

    def get_errors(self, empty: bool = True) -> Dict[int, QueuedMessage]:
        """
        Return messages that were not delivered because of errors.

        Args:
            empty: Empty the errors container as well
        """
        return self._queue.drain_errors(empty)

    def _resolve(self, queued: QueuedMessage) -> bool:
        """
        Apply the retry policy to a queued message.

        Returns:
            True if the message left the queue and must not be sent
        """
        disposition = classifier.evaluate(queued.attempts, self.send_retry_times)
        if disposition is Disposition.PENDING:
            return False

        label = _custom_identifier_label(queued)
        if disposition is Disposition.SUCCESS:
            logger.info(f"Message ID {queued.id} {label} has no error, removing from queue...")
            self._queue.remove(queued.id)
        elif disposition is Disposition.PERMANENT_FAILURE:
            status_code = next(
                a.status_code for a in queued.attempts
                if classifier.classify_status(a.status_code) is Disposition.PERMANENT_FAILURE
            )
            logger.warning(
                f"Message ID {queued.id} {label} has an unrecoverable error ({status_code}), "
                "removing from queue without retrying..."
            )
            self._queue.remove(queued.id, mark_as_error=True)
        else:
            logger.warning(
                f"Message ID {queued.id} {label} has {len(queued.attempts)} errors, removing from queue..."
            )
            self._queue.remove(queued.id, mark_as_error=True)
        return True

    def _send_queued(self, queued: QueuedMessage) -> bool:
        """
        Transmit one queued message.

        Returns:
            True if the transmission failed and the run must stop
        """
        payload_size = len(queued.message.get_payload())
        logger.debug(
            f"Sending message ID {queued.id} {_custom_identifier_label(queued)} "
            f"({len(queued.attempts) + 1}/{self.send_retry_times}): {payload_size} bytes."
        )

        response = self._transport.send(queued.message)
        time.sleep(self.write_interval / 1_000_000)

        attempt = None
        if not response.success:
            attempt = AttemptRecord(
                identifier=queued.id,
                status_code=response.status_code,
                status_message=response.body,
            )
        return self._update_queue(attempt)

    def _update_queue(self, attempt: Optional[AttemptRecord] = None) -> bool:
        """
        Record a failed attempt and reconnect.

        Returns:
            True if an attempt was recorded
        """
        if attempt is None:
            return False

        logger.error(
            f"Unable to send message ID {attempt.identifier}: "
            f"{sanitize_log_value(attempt.status_message)} ({attempt.status_code})."
        )

        self.disconnect()
        self._queue.record_failure(attempt)
        self.connect()

        return True


def _custom_identifier_label(queued: QueuedMessage) -> str:
    custom_identifier = queued.message.custom_identifier
    return f"[custom identifier: {custom_identifier or 'unset'}]"
