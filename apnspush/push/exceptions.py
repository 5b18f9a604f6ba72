"""Exception hierarchy for the APNS push client."""


class ApnsError(Exception):
    """Base class for all errors raised by apnspush."""


class ConfigurationError(ApnsError):
    """Invalid environment, credential file or authentication settings."""


class ApnsConnectionError(ApnsError, ConnectionError):
    """The HTTP/2 backend could not be initialized."""


class PushError(ApnsError):
    """Misuse of the push queue (not connected, nothing queued, bad id)."""


class InvalidMessageIdError(PushError, ValueError):
    """A message id is not a positive integer."""


class MessageNotFoundError(PushError, KeyError):
    """A message id is not present in the queue."""

    def __str__(self) -> str:
        # KeyError would repr() the message
        return str(self.args[0]) if self.args else ""


class MessageError(ApnsError, ValueError):
    """Invalid message content or recipient."""
