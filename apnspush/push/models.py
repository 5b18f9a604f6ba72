"""
Queue and delivery models for the push client.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Protocol


class PushMessage(Protocol):
    """What the delivery queue and transport need from a message."""

    topic: Optional[str]
    expiry: int
    priority: Optional[int]
    collapse_id: Optional[str]
    custom_identifier: Optional[str]
    push_type: Optional[str]

    @property
    def recipients_count(self) -> int: ...

    def get_payload(self) -> bytes: ...

    def get_recipient(self, index: int = 0) -> str: ...

    def self_for_recipient(self, index: int = 0) -> "PushMessage": ...


class Disposition(str, Enum):
    """Outcome of evaluating a queued message before the next send attempt."""

    SUCCESS = "success"
    PERMANENT_FAILURE = "permanent_failure"
    RETRYABLE = "retryable"
    RETRY_EXHAUSTED = "retry_exhausted"
    PENDING = "pending"


@dataclass(frozen=True)
class AttemptRecord:
    """A single failed (or reported) delivery attempt for a queued message."""

    identifier: int
    status_code: int
    status_message: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class QueuedMessage:
    """A per-recipient message waiting in the delivery queue."""

    id: int
    message: PushMessage
    attempts: List[AttemptRecord] = field(default_factory=list)


@dataclass(frozen=True)
class TransportResponse:
    """Result of a single HTTP/2 POST to APNS."""

    success: bool
    status_code: int
    body: str = ""
