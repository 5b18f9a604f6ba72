"""
Retry policy for queued messages.

A queued message carries the attempts recorded for it so far. Before each
send attempt these are replayed in chronological order to decide whether the
message is already delivered, failed for good, or still worth sending.
"""

from typing import Sequence

from apnspush.push.constants import PERMANENT_FAILURE_MAX_STATUS
from apnspush.push.models import AttemptRecord, Disposition


def classify_status(status_code: int) -> Disposition:
    """
    Map a status code to a delivery disposition.

    0 and 200 are successes. Codes above 200 up to and including 413 are
    client errors that repeating the same request cannot fix (bad request,
    certificate problems, unregistered token, oversized payload). Anything
    else, including 429, 5xx and the internal transport error code, may
    succeed on a later attempt.
    """
    if status_code in (0, 200):
        return Disposition.SUCCESS
    if 200 < status_code <= PERMANENT_FAILURE_MAX_STATUS:
        return Disposition.PERMANENT_FAILURE
    return Disposition.RETRYABLE


def evaluate(attempts: Sequence[AttemptRecord], send_retry_times: int) -> Disposition:
    """
    Decide what to do with a queued message given its recorded attempts.

    Args:
        attempts: Attempt records in the order they were recorded
        send_retry_times: Retry budget per message

    Returns:
        SUCCESS or PERMANENT_FAILURE if a recorded attempt settles the
        message, RETRY_EXHAUSTED if the retry budget is spent, PENDING if
        the message should be sent again.
    """
    if not attempts:
        return Disposition.PENDING

    for attempt in attempts:
        disposition = classify_status(attempt.status_code)
        if disposition is not Disposition.RETRYABLE:
            return disposition

    if len(attempts) >= send_retry_times:
        return Disposition.RETRY_EXHAUSTED
    return Disposition.PENDING
