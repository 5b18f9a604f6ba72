"""
APNS push components.

- Push: delivery queue and retry loop (push_service)
- ApnsConnection / HttpTransport: HTTP/2 connection lifecycle and requests
- DeliveryQueue and the retry classifier
- Message builders: Message, CustomMessage, SafariMessage, LiveActivity
"""

from apnspush.push.connection import ApnsConnection
from apnspush.push.delivery_queue import DeliveryQueue
from apnspush.push.environment import Environment
from apnspush.push.exceptions import (
    ApnsConnectionError,
    ApnsError,
    ConfigurationError,
    InvalidMessageIdError,
    MessageError,
    MessageNotFoundError,
    PushError,
)
from apnspush.push.message import (
    CustomMessage,
    LiveActivity,
    LiveActivityEvent,
    Message,
    Priority,
    PushType,
    SafariMessage,
)
from apnspush.push.models import (
    AttemptRecord,
    Disposition,
    PushMessage,
    QueuedMessage,
    TransportResponse,
)
from apnspush.push.push_service import Push
from apnspush.push.transport import HttpTransport

__all__ = [
    # Service
    "Push",
    "ApnsConnection",
    "HttpTransport",
    "DeliveryQueue",
    "Environment",
    # Messages
    "Message",
    "CustomMessage",
    "SafariMessage",
    "LiveActivity",
    "LiveActivityEvent",
    "PushType",
    "Priority",
    "PushMessage",
    # Models
    "AttemptRecord",
    "Disposition",
    "QueuedMessage",
    "TransportResponse",
    # Errors
    "ApnsError",
    "ApnsConnectionError",
    "ConfigurationError",
    "InvalidMessageIdError",
    "MessageError",
    "MessageNotFoundError",
    "PushError",
]
