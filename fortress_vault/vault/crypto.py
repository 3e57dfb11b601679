"""
Vault Crypto Core — Key derivation, container sealing/opening, and text encoding.

Container layout:
    [salt 16B][nonce 12B][encrypted_payload + GCM_tag 16B]

- Key derivation: PBKDF2-HMAC-SHA256(password, salt, 100000) → 32-byte key
- Encryption: AES-256-GCM, no associated data
- Text form: standard base64 of the whole container

The container carries no version byte: salt/nonce sizes, the iteration count
and the hash are fixed by the constants below. Changing any of them makes
every existing container unreadable.

Security Note:
    Never log passwords, derived keys, plaintext or ciphertext values.
    Salt and nonce are fresh on every seal, so a (key, nonce) pair never repeats.
"""
import os
import base64
import asyncio
import binascii
import logging
from typing import Union

import orjson
from pydantic import ValidationError
from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from ..data import VaultData
from ..exceptions import (
    AuthenticationFailure,
    EncryptionFailure,
    InvalidEncoding,
    MalformedContainer,
)

logger = logging.getLogger("fortress.vault")

PBKDF2_ITERATIONS = 100_000
SALT_SIZE = 16
NONCE_SIZE = 12  # 96-bit nonce
TAG_SIZE = 16
KEY_LENGTH = 32  # AES-256
HEADER_SIZE = SALT_SIZE + NONCE_SIZE
MIN_CONTAINER_SIZE = HEADER_SIZE + TAG_SIZE

Password = Union[str, bytes]


def _password_bytes(password: Password) -> bytes:
    if isinstance(password, str):
        return password.encode("utf-8")
    return bytes(password)


# ---------------------------------------------------------------------------
# Key derivation
# ---------------------------------------------------------------------------

def derive_key(password: Password, salt: bytes) -> bytes:
    """Derive a 32-byte encryption key using PBKDF2-HMAC-SHA256.

    Any password is accepted, including an empty one; strength policy
    belongs to the caller.

    Args:
        password: Master password (str is UTF-8 encoded).
        salt: 16-byte salt taken from, or destined for, a container.

    Returns:
        32-byte derived key.

    Raises:
        ValueError: If salt is not exactly 16 bytes.
    """
    if len(salt) != SALT_SIZE:
        raise ValueError(
            f"salt must be exactly {SALT_SIZE} bytes, got {len(salt)}"
        )
    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_LENGTH,
        salt=bytes(salt),
        iterations=PBKDF2_ITERATIONS,
    )
    return kdf.derive(_password_bytes(password))


# ---------------------------------------------------------------------------
# Binary container
# ---------------------------------------------------------------------------

def seal_bytes(payload: bytes, password: Password) -> bytes:
    """Encrypt payload into a self-contained container.

    Args:
        payload: Serialized vault contents.
        password: Master password.

    Returns:
        salt + nonce + ciphertext_with_tag, exactly
        ``28 + len(payload) + 16`` bytes long.

    Raises:
        EncryptionFailure: If the random source or the cipher fails.
    """
    try:
        salt = os.urandom(SALT_SIZE)
        nonce = os.urandom(NONCE_SIZE)
    except (OSError, NotImplementedError) as err:
        raise EncryptionFailure(
            f"Secure random source unavailable: {err}"
        ) from err
    key = derive_key(password, salt)
    try:
        ct = AESGCM(key).encrypt(nonce, bytes(payload), None)
    except (OverflowError, ValueError, TypeError) as err:
        raise EncryptionFailure(f"Unable to encrypt payload: {err}") from err
    logger.debug("Sealed container: payload=%d bytes", len(payload))
    return salt + nonce + ct


def open_bytes(container: bytes, password: Password) -> bytes:
    """Decrypt a container produced by :func:`seal_bytes`.

    Args:
        container: salt + nonce + ciphertext_with_tag.
        password: Master password.

    Returns:
        The original payload bytes.

    Raises:
        MalformedContainer: If container is shorter than header plus tag.
            Raised before any key derivation takes place.
        AuthenticationFailure: On wrong password or any altered byte.
    """
    if len(container) < MIN_CONTAINER_SIZE:
        raise MalformedContainer(
            f"container too short: {len(container)} bytes "
            f"(minimum {MIN_CONTAINER_SIZE})"
        )
    salt = container[:SALT_SIZE]
    nonce = container[SALT_SIZE:HEADER_SIZE]
    ct = container[HEADER_SIZE:]
    key = derive_key(password, salt)
    try:
        return AESGCM(key).decrypt(nonce, bytes(ct), None)
    except InvalidTag as err:
        logger.warning(
            "Container authentication failed (%d bytes)", len(container),
        )
        raise AuthenticationFailure() from err


# ---------------------------------------------------------------------------
# Text encoding
# ---------------------------------------------------------------------------

def encode(data: bytes) -> str:
    """Encode container bytes as a standard base64 string."""
    return base64.b64encode(data).decode("ascii")


def decode(text: Union[str, bytes]) -> bytes:
    """Decode a base64 container string.

    Surrounding whitespace is ignored; anything outside the base64 alphabet
    or with broken padding is rejected.

    Raises:
        InvalidEncoding: If text is not valid standard base64.
    """
    try:
        if isinstance(text, str):
            text = text.strip().encode("ascii")
        else:
            text = bytes(text).strip()
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as err:
        raise InvalidEncoding(f"Container is not valid base64: {err}") from err


# ---------------------------------------------------------------------------
# Text-level API
# ---------------------------------------------------------------------------

def seal(payload: bytes, password: Password) -> str:
    """Seal payload and return the base64 container text."""
    return encode(seal_bytes(payload, password))


def open(container_text: Union[str, bytes], password: Password) -> bytes:  # noqa: A001
    """Open base64 container text and return the payload bytes.

    Raises:
        InvalidEncoding: If container_text is not valid base64.
        MalformedContainer: If the decoded bytes are too short.
        AuthenticationFailure: On wrong password or tampering.
    """
    return open_bytes(decode(container_text), password)


async def seal_async(payload: bytes, password: Password) -> str:
    """Run :func:`seal` on a worker thread so the event loop stays free."""
    return await asyncio.to_thread(seal, payload, password)


async def open_async(container_text: Union[str, bytes], password: Password) -> bytes:
    """Run :func:`open` on a worker thread so the event loop stays free."""
    return await asyncio.to_thread(open, container_text, password)


# ---------------------------------------------------------------------------
# Vault serialization
# ---------------------------------------------------------------------------

def serialize_vault(data: VaultData) -> bytes:
    """Serialize vault contents to orjson-encoded bytes."""
    return orjson.dumps(data.model_dump(mode="json", by_alias=True))


def deserialize_vault(payload: bytes) -> VaultData:
    """Parse bytes produced by :func:`serialize_vault`.

    Raises:
        MalformedContainer: If the payload is not a valid vault document.
    """
    try:
        return VaultData.model_validate(orjson.loads(payload))
    except (orjson.JSONDecodeError, ValidationError) as err:
        raise MalformedContainer(
            f"Decrypted payload is not a valid vault: {err}"
        ) from err


def seal_vault(data: VaultData, password: Password) -> str:
    """Serialize and seal vault contents into container text."""
    return seal(serialize_vault(data), password)


def open_vault(container_text: Union[str, bytes], password: Password) -> VaultData:
    """Open container text and parse the vault contents."""
    return deserialize_vault(open(container_text, password))


async def seal_vault_async(data: VaultData, password: Password) -> str:
    return await asyncio.to_thread(seal_vault, data, password)


async def open_vault_async(
    container_text: Union[str, bytes], password: Password
) -> VaultData:
    return await asyncio.to_thread(open_vault, container_text, password)
