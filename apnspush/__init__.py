"""APNS HTTP/2 push notification client."""

from apnspush.push import (
    CustomMessage,
    Environment,
    LiveActivity,
    LiveActivityEvent,
    Message,
    Priority,
    Push,
    PushType,
    SafariMessage,
)

__version__ = "1.0.0"

__all__ = [
    "Push",
    "Environment",
    "Message",
    "CustomMessage",
    "SafariMessage",
    "LiveActivity",
    "LiveActivityEvent",
    "PushType",
    "Priority",
]
