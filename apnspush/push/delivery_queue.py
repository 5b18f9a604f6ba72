"""
Ordered delivery queue and error container.
"""

import logging
from typing import Dict, Iterator, List

from apnspush.push.exceptions import InvalidMessageIdError, MessageNotFoundError
from apnspush.push.models import AttemptRecord, PushMessage, QueuedMessage

logger = logging.getLogger(__name__)


class DeliveryQueue:
    """
    Pending messages keyed by id, in insertion order.

    Ids are assigned when a message is enqueued and never reused for the
    lifetime of the queue, even after entries are drained or removed.
    Messages that end in a failure can be archived into a separate errors
    container that shares the same id space.
    """

    def __init__(self) -> None:
        self._messages: Dict[int, QueuedMessage] = {}
        self._errors: Dict[int, QueuedMessage] = {}
        self._last_id = 0

    def __len__(self) -> int:
        return len(self._messages)

    def __contains__(self, message_id: object) -> bool:
        return message_id in self._messages

    def __iter__(self) -> Iterator[QueuedMessage]:
        # Snapshot, entries may be removed while iterating
        return iter(list(self._messages.values()))

    def enqueue(self, message: PushMessage) -> List[int]:
        """
        Add one queue entry per recipient of the message.

        Returns:
            Ids assigned to the new entries, empty if the message has no
            recipients
        """
        ids = []
        for index in range(message.recipients_count):
            message_id = self._last_id + index + 1
            self._messages[message_id] = QueuedMessage(
                id=message_id,
                message=message.self_for_recipient(index),
            )
            ids.append(message_id)

        if ids:
            self._last_id = ids[-1]
            logger.debug(
                f"Queued {len(ids)} message(s) with IDs {ids[0]}-{ids[-1]}",
                extra={"queue_length": len(self._messages)},
            )
        return ids

    def get(self, message_id: int) -> QueuedMessage:
        if message_id not in self._messages:
            raise MessageNotFoundError(f"The Message ID {message_id} does not exists.")
        return self._messages[message_id]

    def drain(self, empty: bool = True) -> Dict[int, QueuedMessage]:
        """Return the pending messages, emptying the queue unless empty=False."""
        messages = dict(self._messages)
        if empty:
            self._messages.clear()
        return messages

    def drain_errors(self, empty: bool = True) -> Dict[int, QueuedMessage]:
        """Return the archived failures, emptying the container unless empty=False."""
        errors = dict(self._errors)
        if empty:
            self._errors.clear()
        return errors

    def clear(self) -> None:
        self._messages.clear()

    def clear_errors(self) -> None:
        self._errors.clear()

    def remove(self, message_id: int, mark_as_error: bool = False) -> None:
        """
        Remove a message from the queue.

        Args:
            message_id: Id of the queued message
            mark_as_error: Copy the message into the errors container first

        Raises:
            InvalidMessageIdError: If the id is not a positive integer
            MessageNotFoundError: If no message with this id is queued
        """
        if isinstance(message_id, bool) or not isinstance(message_id, int) or message_id <= 0:
            raise InvalidMessageIdError("Message ID format is not valid.")
        queued = self.get(message_id)
        if mark_as_error:
            self._errors[message_id] = queued
        del self._messages[message_id]

    def record_failure(self, attempt: AttemptRecord) -> None:
        """
        Reconcile the queue after a failed send.

        Entries are processed in id order and a failure stops the pass, so
        every entry before the failed one went out in this pass and is
        dropped without being archived. The attempt is appended to the
        failed entry and later entries are left untouched.
        """
        for message_id, queued in list(self._messages.items()):
            if message_id < attempt.identifier:
                del self._messages[message_id]
            elif message_id == attempt.identifier:
                queued.attempts.append(attempt)
            else:
                break
