"""
Connection lifecycle for the APNS HTTP/2 backend.

ApnsConnection validates the environment and credential file at
construction, then owns a single optional HttpTransport. connect() retries
backend initialization with a fixed delay; disconnect() releases it.
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union

from apnspush.core.retry import fixed_interval, retry_sync
from apnspush.push.auth import CredentialKind, credential_kind, mint_token
from apnspush.push.constants import (
    CONNECT_RETRY_INTERVAL,
    CONNECT_RETRY_TIMES,
    CONNECT_TIMEOUT,
    WRITE_INTERVAL,
)
from apnspush.push.environment import Environment
from apnspush.push.exceptions import ApnsConnectionError, ConfigurationError
from apnspush.push.transport import HttpTransport

logger = logging.getLogger(__name__)


def _ensure_readable(path: Union[str, Path], description: str) -> str:
    if not os.path.isfile(path) or not os.access(path, os.R_OK):
        raise ConfigurationError(f"Unable to read {description} '{path}'")
    return str(path)


class ApnsConnection:
    """
    Base class holding APNS connection settings and the transport handle.

    Attributes:
        environment: Selected APNS environment
        certificate_file: .pem certificate bundle or .p8 auth key
        connect_timeout: Connect timeout in seconds
        connect_retry_times: Retries after a failed connect attempt
        connect_retry_interval: Delay between connect attempts in microseconds
        write_interval: Pause after each transmission in microseconds
    """

    def __init__(
        self,
        environment: Union[Environment, str],
        certificate_file: Union[str, Path],
        *,
        certificate_passphrase: Optional[str] = None,
        team_id: Optional[str] = None,
        key_id: Optional[str] = None,
        root_ca_file: Optional[Union[str, Path]] = None,
    ):
        """
        Args:
            environment: Environment or its name
            certificate_file: Provider credential file
            certificate_passphrase: Passphrase for a .pem certificate key
            team_id: Apple team identifier, required with a .p8 key
            key_id: Apple key identifier, required with a .p8 key
            root_ca_file: CA bundle used to verify the APNS server

        Raises:
            ConfigurationError: If the environment is unknown or a
                credential file cannot be used
        """
        self.environment = Environment.parse(environment)
        self.certificate_file = _ensure_readable(certificate_file, "certificate file")
        self.credential_kind = credential_kind(self.certificate_file)
        self.certificate_passphrase = certificate_passphrase
        self.team_id = team_id
        self.key_id = key_id
        self.root_ca_file = (
            _ensure_readable(root_ca_file, "Certificate Authority file") if root_ca_file else None
        )

        if self.credential_kind is CredentialKind.TOKEN and not (team_id and key_id):
            raise ConfigurationError("Token-based authentication requires a team ID and a key ID")

        self.connect_timeout = CONNECT_TIMEOUT
        self.connect_retry_times = CONNECT_RETRY_TIMES
        self.connect_retry_interval = CONNECT_RETRY_INTERVAL
        self.write_interval = WRITE_INTERVAL

        self._transport: Optional[HttpTransport] = None
        self._provider_token: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return self._transport is not None

    def connect(self) -> None:
        """
        Connect to the APNS service.

        Retries connect_retry_times times, waiting connect_retry_interval
        between attempts.

        Raises:
            ApnsConnectionError: If every attempt failed
        """
        retry_sync(
            self._http_init,
            config=fixed_interval(
                retries=self.connect_retry_times,
                delay=self.connect_retry_interval / 1_000_000,
                retryable_exceptions=(ApnsConnectionError,),
            ),
            operation_name="connect",
        )

    def disconnect(self) -> bool:
        """
        Disconnect from the APNS service.

        Returns:
            True if a connection was closed, False if not connected
        """
        if self._transport is None:
            return False

        self._transport.close()
        self._transport = None
        logger.info("Disconnected.")
        return True

    def _http_init(self) -> bool:
        """
        Initialize the HTTP/2 backend.

        Raises:
            ApnsConnectionError: If the backend cannot be initialized
        """
        logger.info("Trying to initialize HTTP/2 backend...")

        if self.credential_kind is CredentialKind.TOKEN:
            logger.info("Initializing HTTP/2 backend with key.")
            try:
                self._provider_token = mint_token(self.team_id, self.key_id, self.certificate_file)
            except ConfigurationError as e:
                raise ApnsConnectionError(f"Unable to initialize HTTP/2 backend: {e}") from e
            transport = HttpTransport(
                self.environment.url,
                connect_timeout=self.connect_timeout,
                provider_token=self._provider_token,
                root_ca_file=self.root_ca_file,
            )
        else:
            logger.info("Initializing HTTP/2 backend with certificate.")
            transport = HttpTransport(
                self.environment.url,
                connect_timeout=self.connect_timeout,
                certificate_file=self.certificate_file,
                certificate_passphrase=self.certificate_passphrase,
                root_ca_file=self.root_ca_file,
            )

        transport.open()
        previous, self._transport = self._transport, transport
        if previous is not None:
            previous.close()

        logger.info("Initialized HTTP/2 backend.")
        return True
