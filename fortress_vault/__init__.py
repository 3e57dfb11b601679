"""FortressVault.

Password-based encryption engine for a personal credential vault.
"""
from .version import __version__
from .exceptions import (
    VaultError,
    InvalidEncoding,
    MalformedContainer,
    AuthenticationFailure,
    EncryptionFailure,
    VaultLocked,
    WeakPassword,
    EntryNotFound,
)
from .data import PasswordEntry, VaultData
from .vault import (
    VaultConfig,
    VaultSession,
    MemoryStore,
    FileStore,
    seal,
    seal_vault,
    open_vault,
)

__all__ = [
    "__version__",
    "VaultError",
    "InvalidEncoding",
    "MalformedContainer",
    "AuthenticationFailure",
    "EncryptionFailure",
    "VaultLocked",
    "WeakPassword",
    "EntryNotFound",
    "PasswordEntry",
    "VaultData",
    "VaultConfig",
    "VaultSession",
    "MemoryStore",
    "FileStore",
    "seal",
    "seal_vault",
    "open_vault",
]
