"""
Vault Errors — Typed failures raised by the encryption engine and session.

Security Note:
    AuthenticationFailure covers both a wrong password and a tampered
    container. The two cases cannot be told apart and must not be.
"""


class VaultError(Exception):
    """Base error for every vault failure."""
    pass


class InvalidEncoding(VaultError, ValueError):
    """Container text is not valid base64."""
    pass


class MalformedContainer(VaultError, ValueError):
    """Container bytes are too short or its payload cannot be parsed."""
    pass


class AuthenticationFailure(VaultError):
    """Tag verification failed: incorrect password or corrupted data."""

    def __init__(self, message: str = "Incorrect password or corrupted data"):
        super().__init__(message)


class EncryptionFailure(VaultError):
    """The encrypt path could not complete (random source or primitive error)."""
    pass


class VaultLocked(VaultError):
    """The session has been locked or has expired."""
    pass


class WeakPassword(VaultError, ValueError):
    """A new master password does not meet the configured policy."""
    pass


class EntryNotFound(VaultError, KeyError):
    """No record with the requested id exists in the vault."""
    pass
