"""
HTTP/2 transport to the APNS provider API.

One HttpTransport wraps one httpx client. Each send() performs exactly one
POST and reports the outcome as data; it never touches the delivery queue.
"""

import logging
import ssl
import time
from typing import Dict, Optional

import httpx

from apnspush.core.logging_config import mask_token
from apnspush.push.constants import (
    APNS_DEVICE_PATH,
    CONNECT_TIMEOUT,
    HTTP_ERROR_RESPONSE_MESSAGES,
    REQUEST_TIMEOUT,
    STATUS_CODE_INTERNAL_ERROR,
    USER_AGENT,
)
from apnspush.push.exceptions import ApnsConnectionError
from apnspush.push.models import PushMessage, TransportResponse

logger = logging.getLogger(__name__)


class HttpTransport:
    """
    httpx based HTTP/2 client for APNS.

    Authenticates either with a bearer token (token-based auth) or with a
    TLS client certificate loaded into the SSL context.

    Attributes:
        base_url: Service URL of the selected environment
        connect_timeout: TCP/TLS connect timeout in seconds
        provider_token: JWT sent as bearer token, None for certificate auth
        certificate_file: Client certificate bundle for certificate auth
        certificate_passphrase: Passphrase of the certificate's private key
        root_ca_file: CA bundle used to verify the APNS server
    """

    def __init__(
        self,
        base_url: str,
        connect_timeout: float = CONNECT_TIMEOUT,
        provider_token: Optional[str] = None,
        certificate_file: Optional[str] = None,
        certificate_passphrase: Optional[str] = None,
        root_ca_file: Optional[str] = None,
    ):
        self.base_url = base_url
        self.connect_timeout = connect_timeout
        self.provider_token = provider_token
        self.certificate_file = certificate_file
        self.certificate_passphrase = certificate_passphrase
        self.root_ca_file = root_ca_file

        self._client: Optional[httpx.Client] = None

    @property
    def is_open(self) -> bool:
        return self._client is not None and not self._client.is_closed

    def _build_ssl_context(self) -> ssl.SSLContext:
        context = ssl.create_default_context(cafile=self.root_ca_file)
        if self.certificate_file:
            context.load_cert_chain(
                self.certificate_file,
                password=self.certificate_passphrase or None,
            )
        return context

    def open(self) -> None:
        """
        Create the HTTP/2 client.

        Raises:
            ApnsConnectionError: If the TLS setup or client creation fails
        """
        if self.is_open:
            return

        try:
            self._client = httpx.Client(
                http2=True,
                base_url=self.base_url,
                verify=self._build_ssl_context(),
                timeout=httpx.Timeout(REQUEST_TIMEOUT, connect=self.connect_timeout),
                headers={"user-agent": USER_AGENT},
            )
        except (OSError, ImportError) as e:
            # ssl.SSLError is an OSError; ImportError means the h2 extra is missing
            raise ApnsConnectionError(f"Unable to initialize HTTP/2 backend: {e}") from e

    def close(self) -> None:
        """Close the HTTP client and release resources."""
        if self._client is not None:
            self._client.close()
            self._client = None
            logger.debug("APNS transport closed")

    def build_headers(self, message: PushMessage) -> Dict[str, str]:
        """Build request headers for a message."""
        headers = {"content-type": "application/json"}

        if message.topic:
            headers["apns-topic"] = message.topic
        if message.expiry:
            # Relative seconds become an absolute UNIX timestamp
            expiration = int(time.time()) + message.expiry if message.expiry > 0 else 0
            headers["apns-expiration"] = str(expiration)
        if message.priority:
            headers["apns-priority"] = str(int(message.priority))
        if message.collapse_id:
            headers["apns-collapse-id"] = message.collapse_id
        if message.custom_identifier:
            headers["apns-id"] = message.custom_identifier
        if message.push_type:
            headers["apns-push-type"] = str(getattr(message.push_type, "value", message.push_type))
        if self.provider_token:
            headers["authorization"] = f"bearer {self.provider_token}"

        return headers

    def send(self, message: PushMessage) -> TransportResponse:
        """
        POST a single message to APNS.

        Args:
            message: Single-recipient message

        Returns:
            TransportResponse; success is True only for HTTP 200. Transport
            level failures are reported with the internal error status code.

        Raises:
            ApnsConnectionError: If the transport is not open
        """
        if not self.is_open:
            raise ApnsConnectionError("Not connected to Push Notification Service")

        device_token = message.get_recipient()
        url = APNS_DEVICE_PATH.format(device_token=device_token)

        try:
            response = self._client.post(
                url,
                content=message.get_payload(),
                headers=self.build_headers(message),
            )
        except httpx.HTTPError as e:
            logger.warning(
                f"APNS transport error: {e}",
                extra={"device_token": mask_token(device_token)},
            )
            return TransportResponse(
                success=False,
                status_code=STATUS_CODE_INTERNAL_ERROR,
                body=str(e) or HTTP_ERROR_RESPONSE_MESSAGES[STATUS_CODE_INTERNAL_ERROR],
            )

        status_code = response.status_code
        body = response.text

        if status_code != 200:
            logger.debug(
                "APNS rejected notification",
                extra={
                    "device_token": mask_token(device_token),
                    "status_code": status_code,
                    "apns_id": response.headers.get("apns-id"),
                },
            )
            return TransportResponse(
                success=False,
                status_code=status_code,
                body=body or HTTP_ERROR_RESPONSE_MESSAGES.get(status_code, "None (unknown)"),
            )

        return TransportResponse(success=True, status_code=status_code, body=body)
