"""APNS service environments."""

from enum import Enum
from typing import Union

from apnspush.push.constants import (
    APNS_ALT_PORT,
    APNS_PORT,
    APNS_PRODUCTION_HOST,
    APNS_SANDBOX_HOST,
)
from apnspush.push.exceptions import ConfigurationError


class Environment(str, Enum):
    """APNS environment, each mapping to an HTTP/2 service URL."""

    PRODUCTION = "production"
    ALT_PRODUCTION = "alt_production"
    SANDBOX = "sandbox"
    ALT_SANDBOX = "alt_sandbox"

    @property
    def url(self) -> str:
        """Base URL of the HTTP/2 API for this environment."""
        host = APNS_SANDBOX_HOST if self in (Environment.SANDBOX, Environment.ALT_SANDBOX) else APNS_PRODUCTION_HOST
        port = APNS_ALT_PORT if self in (Environment.ALT_PRODUCTION, Environment.ALT_SANDBOX) else APNS_PORT
        return f"https://{host}:{port}"

    @classmethod
    def parse(cls, value: Union["Environment", str]) -> "Environment":
        """Resolve an environment selector, raising ConfigurationError if unknown."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise ConfigurationError(f"Invalid environment '{value}'")
