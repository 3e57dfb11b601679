"""
Vault Configuration — Validated session policy settings.

Reads optional overrides from environment variables:
    VAULT_MIN_PASSWORD_LENGTH = <integer>
    VAULT_SESSION_TTL = <seconds, 0 or "none" to disable auto-lock>
    VAULT_MAX_ENTRIES = <integer>

Cryptographic parameters (iterations, salt/nonce sizes) are part of the
container format and are not configurable here.

Security Note:
    Never log passwords. Only log policy values.
"""
import os
import logging
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from ..exceptions import WeakPassword

logger = logging.getLogger("fortress.vault")

DEFAULT_MIN_PASSWORD_LENGTH = 8
DEFAULT_SESSION_TTL = 900
DEFAULT_MAX_ENTRIES = 10_000


def _env_int(name: str, default: Optional[int]) -> Optional[int]:
    """Read an integer env var; ``none``/``off`` map to None.

    Raises:
        ValueError: If the value is not a valid integer.
    """
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    raw = raw.strip()
    if raw.lower() in ("none", "off"):
        return None
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None
    return value


class VaultConfig(BaseModel):
    """Validated vault session policy."""

    min_password_length: int = Field(default=DEFAULT_MIN_PASSWORD_LENGTH, ge=1)
    session_ttl: Optional[int] = Field(default=DEFAULT_SESSION_TTL)
    max_entries: int = Field(default=DEFAULT_MAX_ENTRIES, ge=1, le=1_000_000)

    @field_validator("session_ttl")
    @classmethod
    def validate_ttl(cls, v: Optional[int]) -> Optional[int]:
        """A TTL of 0 disables auto-lock; negatives are rejected."""
        if v is None or v == 0:
            return None
        if v < 0:
            raise ValueError(f"session_ttl must be positive, got {v}")
        return v

    def check_password(self, password: str) -> None:
        """Apply the master password policy to a new password.

        Raises:
            WeakPassword: If the password is shorter than min_password_length.
        """
        if len(password) < self.min_password_length:
            raise WeakPassword(
                f"Master password must be at least "
                f"{self.min_password_length} characters."
            )

    @classmethod
    def from_env(cls) -> "VaultConfig":
        """Create VaultConfig by loading values from environment.

        Returns:
            Populated VaultConfig instance.
        """
        min_len = _env_int("VAULT_MIN_PASSWORD_LENGTH", DEFAULT_MIN_PASSWORD_LENGTH)
        max_entries = _env_int("VAULT_MAX_ENTRIES", DEFAULT_MAX_ENTRIES)
        config = cls(
            min_password_length=(
                DEFAULT_MIN_PASSWORD_LENGTH if min_len is None else min_len
            ),
            session_ttl=_env_int("VAULT_SESSION_TTL", DEFAULT_SESSION_TTL),
            max_entries=DEFAULT_MAX_ENTRIES if max_entries is None else max_entries,
        )
        logger.debug(
            "Vault config: min_password_length=%d session_ttl=%s max_entries=%d",
            config.min_password_length, config.session_ttl, config.max_entries,
        )
        return config
