"""
Provider authentication for APNS.

Credentials come from a single file whose extension selects the method:
- `.p8`: token-based auth, an ES256 JWT signed with the auth key
- `.pem`: certificate-based auth, a client certificate bundled with its key
"""

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Union

import jwt
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import ec

from apnspush.push.constants import JWT_ALGORITHM
from apnspush.push.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


class CredentialKind(str, Enum):
    TOKEN = "token"
    CERTIFICATE = "certificate"


def credential_kind(credential_file: Union[str, Path]) -> CredentialKind:
    """Tell token from certificate credentials by file extension."""
    suffix = Path(credential_file).suffix.lower()
    if suffix == ".p8":
        return CredentialKind.TOKEN
    if suffix == ".pem":
        return CredentialKind.CERTIFICATE
    raise ConfigurationError(
        f"Unsupported credential file '{credential_file}': expected a .p8 key or a .pem certificate"
    )


def _load_private_key(key_file: Union[str, Path]) -> ec.EllipticCurvePrivateKey:
    """Load the EC private key from a .p8 file."""
    key_path = Path(key_file)
    try:
        key_data = key_path.read_bytes()
    except OSError as e:
        raise ConfigurationError(f"Unable to read key file '{key_path}': {e}") from e

    try:
        private_key = serialization.load_pem_private_key(key_data, password=None)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid APNS auth key '{key_path}': {e}") from e

    if not isinstance(private_key, ec.EllipticCurvePrivateKey):
        raise ConfigurationError("APNS key must be an EC private key (ES256)")

    return private_key


def mint_token(team_id: str, key_id: str, key_file: Union[str, Path]) -> str:
    """
    Generate a provider authentication token.

    Args:
        team_id: 10-character Apple team identifier (JWT issuer)
        key_id: 10-character key identifier (JWT kid header)
        key_file: Path to the .p8 auth key

    Returns:
        JWT string for the Authorization header
    """
    private_key = _load_private_key(key_file)

    token = jwt.encode(
        {"iss": team_id, "iat": int(time.time())},
        private_key,
        algorithm=JWT_ALGORITHM,
        headers={"kid": key_id},
    )

    logger.debug(
        "Generated new APNS JWT",
        extra={"team_id": team_id, "key_id": key_id},
    )
    return token
