"""Pytest fixtures and configuration for test suite

This module provides:
1. Credential fixtures (generated .p8 auth key and .pem client certificate)
2. Factory functions for messages and queued attempts
3. Push fixtures wired to a mock transport

Factory Functions:
    - make_token(seed) -> str
    - make_message(**overrides) -> Message
    - make_attempt(identifier, status_code, **overrides) -> AttemptRecord
"""
import datetime
import hashlib
import pytest
from unittest.mock import MagicMock

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

from apnspush.push.message import Message
from apnspush.push.models import AttemptRecord, TransportResponse
from apnspush.push.push_service import Push
from apnspush.push.transport import HttpTransport


# =============================================================================
# Factory Functions for Test Objects
# =============================================================================

def make_token(seed: str = "device") -> str:
    """Build a valid 64 character hex device token."""
    return hashlib.sha256(seed.encode("utf-8")).hexdigest()


def make_message(recipients=None, **overrides) -> Message:
    """
    Factory function to create Message instances for testing.

    Args:
        recipients: Device tokens. Defaults to a single generated token.
        **overrides: Any additional Message field.

    Example:
        message = make_message(text="Hi", topic="com.example.app")
        message = make_message(recipients=[make_token("a"), make_token("b")])
    """
    if recipients is None:
        recipients = [make_token()]

    defaults = {
        "text": "Hello APNs-enabled device!",
        "topic": "com.example.app",
    }
    defaults.update(overrides)
    return Message(recipients=list(recipients), **defaults)


def make_attempt(identifier: int = 1, status_code: int = 429, **overrides) -> AttemptRecord:
    """Factory function to create AttemptRecord instances for testing."""
    return AttemptRecord(
        identifier=identifier,
        status_code=status_code,
        status_message=overrides.pop("status_message", f"status {status_code}"),
        **overrides,
    )


# =============================================================================
# Credential Fixtures
# =============================================================================

@pytest.fixture
def ec_private_key():
    """Generate a P-256 private key."""
    return ec.generate_private_key(ec.SECP256R1())


@pytest.fixture
def test_key_file(tmp_path, ec_private_key):
    """Create a temporary .p8 key file for testing."""
    pem = ec_private_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    key_file = tmp_path / "AuthKey_KEYID12345.p8"
    key_file.write_bytes(pem)
    return str(key_file)


@pytest.fixture
def test_cert_file(tmp_path, ec_private_key):
    """Create a self-signed .pem certificate bundled with its key."""
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "Apple Push Services: com.example.app")])
    now = datetime.datetime.now(datetime.timezone.utc)
    certificate = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(ec_private_key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - datetime.timedelta(days=1))
        .not_valid_after(now + datetime.timedelta(days=30))
        .sign(ec_private_key, hashes.SHA256())
    )

    cert_file = tmp_path / "server_certificates_bundle_sandbox.pem"
    cert_file.write_bytes(
        certificate.public_bytes(serialization.Encoding.PEM)
        + ec_private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.TraditionalOpenSSL,
            encryption_algorithm=serialization.NoEncryption(),
        )
    )
    return str(cert_file)


# =============================================================================
# Push Fixtures
# =============================================================================

@pytest.fixture
def mock_transport():
    """Create a mock transport whose sends succeed."""
    transport = MagicMock(spec=HttpTransport)
    transport.send.return_value = TransportResponse(success=True, status_code=200, body="")
    return transport


@pytest.fixture
def push(test_key_file):
    """Create a token-auth Push instance with no delays."""
    instance = Push(
        "sandbox",
        test_key_file,
        team_id="TEAMID1234",
        key_id="KEYID12345",
    )
    instance.write_interval = 0
    instance.connect_retry_interval = 0
    return instance


@pytest.fixture
def connected_push(push, mock_transport):
    """
    Push instance attached to mock_transport.

    connect() is replaced by a mock that re-attaches the same transport, so
    reconnects after failed sends can be counted.
    """
    def reattach():
        push._transport = mock_transport

    push.connect = MagicMock(side_effect=reattach)
    push._transport = mock_transport
    return push
