"""Vault Engine — Password-sealed, tamper-evident container for credential records.

Security Note (Threat Model):
    Wrong password and tampered data both surface as AuthenticationFailure
    and cannot be told apart. While a VaultSession is unlocked the master
    password and decrypted records live in process memory; a memory dump
    of the application process can expose them. This is an accepted
    limitation — mitigation requires hardware-backed key storage, which is
    out of scope.
"""

from .crypto import (
    derive_key,
    seal,
    open,
    seal_bytes,
    open_bytes,
    seal_async,
    open_async,
    encode,
    decode,
    serialize_vault,
    deserialize_vault,
    seal_vault,
    open_vault,
)
from .config import VaultConfig
from .storage import ContainerStore, MemoryStore, FileStore
from .session_vault import VaultSession

__all__ = [
    "derive_key",
    "seal",
    "open",
    "seal_bytes",
    "open_bytes",
    "seal_async",
    "open_async",
    "encode",
    "decode",
    "serialize_vault",
    "deserialize_vault",
    "seal_vault",
    "open_vault",
    "VaultConfig",
    "ContainerStore",
    "MemoryStore",
    "FileStore",
    "VaultSession",
]
