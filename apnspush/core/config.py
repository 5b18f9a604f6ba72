"""Library configuration using Pydantic Settings"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator
from typing import Optional
import os


class Settings(BaseSettings):
    """Settings loaded from environment variables or a .env file"""

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None  # File logging is disabled when unset
    LOG_JSON: bool = True  # Human-readable console output when False

    # APNS connection
    APNS_ENVIRONMENT: str = "sandbox"  # production, sandbox, alt_production, alt_sandbox
    APNS_CERTIFICATE_FILE: Optional[str] = None  # .pem certificate bundle or .p8 auth key
    APNS_CERTIFICATE_PASSPHRASE: Optional[str] = None
    APNS_TEAM_ID: Optional[str] = None  # Required with a .p8 key
    APNS_KEY_ID: Optional[str] = None  # Required with a .p8 key
    APNS_ROOT_CA_FILE: Optional[str] = None

    # Delivery tuning (intervals in microseconds, timeout in seconds)
    APNS_SEND_RETRY_TIMES: int = 3
    APNS_CONNECT_RETRY_TIMES: int = 3
    APNS_CONNECT_RETRY_INTERVAL: int = 1_000_000
    APNS_WRITE_INTERVAL: int = 10_000
    APNS_CONNECT_TIMEOUT: int = 10

    @field_validator('APNS_ENVIRONMENT', mode='after')
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Normalize and validate the APNS environment name."""
        normalized = v.strip().lower()
        valid_environments = ['production', 'sandbox', 'alt_production', 'alt_sandbox']
        if normalized not in valid_environments:
            raise ValueError(f"APNS_ENVIRONMENT must be one of {valid_environments}")
        return normalized

    @field_validator(
        'APNS_SEND_RETRY_TIMES',
        'APNS_CONNECT_RETRY_TIMES',
        'APNS_CONNECT_RETRY_INTERVAL',
        'APNS_WRITE_INTERVAL',
        'APNS_CONNECT_TIMEOUT',
        mode='after',
    )
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Retry counts, intervals and timeouts cannot be negative."""
        if v < 0:
            raise ValueError("Value must be zero or greater")
        return v

    @property
    def apns_uses_token_auth(self) -> bool:
        """Check if the configured credential is a .p8 signing key."""
        return bool(self.APNS_CERTIFICATE_FILE) and self.APNS_CERTIFICATE_FILE.endswith('.p8')

    @property
    def apns_ready(self) -> bool:
        """Check if APNS is properly configured and ready to use."""
        if self.APNS_CERTIFICATE_FILE is None or not os.path.exists(self.APNS_CERTIFICATE_FILE):
            return False
        if self.apns_uses_token_auth:
            return self.APNS_TEAM_ID is not None and self.APNS_KEY_ID is not None
        return True

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        # The host application's .env may carry its own keys
        extra="ignore",
    )


# Global settings instance
settings = Settings()
