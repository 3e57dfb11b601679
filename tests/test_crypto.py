"""
Tests for the vault crypto core.

Tests cover:
- Key derivation determinism and salt handling
- Container sealing/opening and its byte layout
- Wrong password and tamper detection
- Base64 text boundary
- Vault payload serialization and async variants
"""
import base64
import orjson
import pytest
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from fortress_vault.data import PasswordEntry, VaultData
from fortress_vault.exceptions import (
    AuthenticationFailure,
    EncryptionFailure,
    InvalidEncoding,
    MalformedContainer,
)
from fortress_vault.vault import crypto


PASSWORD = "correctly-horse-battery"
WRONG_PASSWORD = "wrong-password-12"


@pytest.fixture
def sealed():
    """A container sealed over a short payload."""
    return crypto.seal_bytes(b"attack at dawn", PASSWORD)


# --- Key Derivation ---

class TestDeriveKey:
    """Tests for PBKDF2 key derivation."""

    def test_key_is_32_bytes(self):
        key = crypto.derive_key(PASSWORD, b"\x00" * 16)
        assert isinstance(key, bytes)
        assert len(key) == 32

    def test_deterministic(self):
        salt = bytes(range(16))
        assert crypto.derive_key(PASSWORD, salt) == crypto.derive_key(PASSWORD, salt)

    def test_str_and_utf8_bytes_agree(self):
        salt = bytes(range(16))
        password = "pässwörd-ключ"
        assert crypto.derive_key(password, salt) == crypto.derive_key(
            password.encode("utf-8"), salt
        )

    def test_salt_changes_key(self):
        assert crypto.derive_key(PASSWORD, b"\x00" * 16) != crypto.derive_key(
            PASSWORD, b"\x01" * 16
        )

    def test_password_changes_key(self):
        salt = b"\x07" * 16
        assert crypto.derive_key(PASSWORD, salt) != crypto.derive_key(
            WRONG_PASSWORD, salt
        )

    def test_empty_password_accepted(self):
        assert len(crypto.derive_key("", b"\x00" * 16)) == 32

    def test_long_password_accepted(self):
        assert len(crypto.derive_key("x" * 100_000, b"\x00" * 16)) == 32

    def test_bad_salt_length(self):
        with pytest.raises(ValueError):
            crypto.derive_key(PASSWORD, b"short")


# --- Binary Container ---

class TestContainer:
    """Tests for seal_bytes/open_bytes."""

    def test_roundtrip(self, sealed):
        assert crypto.open_bytes(sealed, PASSWORD) == b"attack at dawn"

    def test_empty_payload_roundtrip(self):
        container = crypto.seal_bytes(b"", PASSWORD)
        assert len(container) == 16 + 12 + 16
        assert crypto.open_bytes(container, PASSWORD) == b""

    @pytest.mark.parametrize("size", [0, 1, 15, 16, 17, 1024])
    def test_length_invariant(self, size):
        container = crypto.seal_bytes(b"\xab" * size, PASSWORD)
        assert len(container) == 16 + 12 + size + 16

    def test_layout_salt_first(self, sealed):
        salt = sealed[:16]
        nonce = sealed[16:28]
        key = crypto.derive_key(PASSWORD, salt)
        assert AESGCM(key).decrypt(nonce, sealed[28:], None) == b"attack at dawn"

    def test_non_deterministic(self):
        first = crypto.seal_bytes(b"same", PASSWORD)
        second = crypto.seal_bytes(b"same", PASSWORD)
        assert first != second
        assert first[:16] != second[:16]
        assert first[16:28] != second[16:28]

    def test_wrong_password(self, sealed):
        with pytest.raises(AuthenticationFailure) as exc:
            crypto.open_bytes(sealed, WRONG_PASSWORD)
        assert "Incorrect password or corrupted data" in str(exc.value)

    @pytest.mark.parametrize("offset", [0, 15, 16, 27, 28, -17, -1])
    def test_single_bit_flip_detected(self, sealed, offset):
        tampered = bytearray(sealed)
        tampered[offset] ^= 0x01
        with pytest.raises(AuthenticationFailure):
            crypto.open_bytes(bytes(tampered), PASSWORD)

    @pytest.mark.parametrize("size", [0, 1, 27, 28, 43])
    def test_too_short_is_malformed(self, size):
        with pytest.raises(MalformedContainer):
            crypto.open_bytes(b"\x00" * size, PASSWORD)

    def test_malformed_skips_derivation(self, monkeypatch):
        def _fail(*args, **kwargs):
            raise AssertionError("derive_key must not run")
        monkeypatch.setattr(crypto, "derive_key", _fail)
        with pytest.raises(MalformedContainer):
            crypto.open_bytes(b"\x00" * 27, PASSWORD)

    def test_random_source_failure(self, monkeypatch):
        def _urandom(n):
            raise OSError("no entropy")
        monkeypatch.setattr(crypto.os, "urandom", _urandom)
        with pytest.raises(EncryptionFailure):
            crypto.seal_bytes(b"data", PASSWORD)

    def test_error_hierarchy(self):
        assert issubclass(MalformedContainer, ValueError)
        assert issubclass(InvalidEncoding, ValueError)
        assert not issubclass(AuthenticationFailure, ValueError)


# --- Text Boundary ---

class TestEncoding:
    """Tests for the base64 text boundary."""

    def test_encode_is_standard_base64(self):
        assert crypto.encode(b"\xfb\xff\x00") == base64.b64encode(b"\xfb\xff\x00").decode()

    def test_decode_inverse(self):
        data = bytes(range(256))
        assert crypto.decode(crypto.encode(data)) == data

    def test_decode_accepts_bytes(self):
        assert crypto.decode(b"aGVsbG8=") == b"hello"

    def test_decode_strips_whitespace(self):
        assert crypto.decode("aGVsbG8=\n") == b"hello"

    @pytest.mark.parametrize("text", ["not base64!", "aGVsbG8", "a$b=", "héllo==", "-_-_"])
    def test_decode_rejects_bad_input(self, text):
        with pytest.raises(InvalidEncoding):
            crypto.decode(text)

    def test_text_roundtrip(self):
        text = crypto.seal(b"payload", PASSWORD)
        assert isinstance(text, str)
        assert crypto.open(text, PASSWORD) == b"payload"

    def test_text_import_roundtrip(self):
        """Container text survives being written out and read back."""
        text = crypto.seal(b'{"entries": []}', PASSWORD)
        exported = (text + "\n").encode("ascii")
        assert crypto.open(exported.decode("ascii"), PASSWORD) == b'{"entries": []}'

    def test_open_invalid_text(self):
        with pytest.raises(InvalidEncoding):
            crypto.open("%%%%", PASSWORD)

    def test_open_short_text(self):
        with pytest.raises(MalformedContainer):
            crypto.open(crypto.encode(b"\x00" * 20), PASSWORD)


# --- Vault Serialization ---

class TestVaultSerialization:
    """Tests for sealing VaultData payloads."""

    def test_empty_vault_scenario(self):
        text = crypto.seal_vault(VaultData(), PASSWORD)
        raw = crypto.decode(text)
        payload = crypto.serialize_vault(VaultData())
        assert len(raw) == 28 + len(payload) + 16

        opened = crypto.open_vault(text, PASSWORD)
        assert opened.empty
        assert opened == VaultData()

        with pytest.raises(AuthenticationFailure):
            crypto.open_vault(text, WRONG_PASSWORD)

    def test_vault_roundtrip(self):
        data = VaultData(entries=[
            PasswordEntry(title="mail", username="bob", password="s3cret",
                          url="https://mail.example.com", notes="2FA on"),
            PasswordEntry(title="bank", username="bob@example.com", password="pw"),
        ])
        opened = crypto.open_vault(crypto.seal_vault(data, PASSWORD), PASSWORD)
        assert opened == data

    def test_opens_camel_case_payload(self):
        """Containers written by the browser app keep their timestamps."""
        payload = (
            b'{"entries":[{"id":"e1","title":"mail","username":"alice",'
            b'"password":"pw","createdAt":1700000000000,'
            b'"updatedAt":1700000000001}],"lastExport":1700000000002}'
        )
        opened = crypto.open_vault(crypto.seal(payload, PASSWORD), PASSWORD)
        entry = opened.find("e1")
        assert entry.created_at == 1700000000000
        assert entry.updated_at == 1700000000001
        assert opened.last_export == 1700000000002

    def test_serializes_camel_case_keys(self):
        data = VaultData(
            entries=[PasswordEntry(title="mail", created_at=5, updated_at=6)],
            last_export=7,
        )
        parsed = orjson.loads(crypto.serialize_vault(data))
        assert parsed["lastExport"] == 7
        assert parsed["entries"][0]["createdAt"] == 5
        assert parsed["entries"][0]["updatedAt"] == 6
        assert "created_at" not in parsed["entries"][0]

    def test_deserialize_rejects_garbage(self):
        with pytest.raises(MalformedContainer):
            crypto.deserialize_vault(b"not json")

    def test_deserialize_rejects_wrong_shape(self):
        with pytest.raises(MalformedContainer):
            crypto.deserialize_vault(b'{"entries": [{"id": 1}]}')

    def test_sealed_non_vault_payload(self):
        text = crypto.seal(b"[1, 2, 3]", PASSWORD)
        with pytest.raises(MalformedContainer):
            crypto.open_vault(text, PASSWORD)


# --- Async Variants ---

class TestAsync:
    """Tests for the worker-thread variants."""

    @pytest.mark.asyncio
    async def test_seal_open_async(self):
        text = await crypto.seal_async(b"async payload", PASSWORD)
        assert await crypto.open_async(text, PASSWORD) == b"async payload"

    @pytest.mark.asyncio
    async def test_open_async_wrong_password(self):
        text = await crypto.seal_async(b"async payload", PASSWORD)
        with pytest.raises(AuthenticationFailure):
            await crypto.open_async(text, WRONG_PASSWORD)

    @pytest.mark.asyncio
    async def test_vault_async(self):
        data = VaultData(entries=[PasswordEntry(title="x")])
        text = await crypto.seal_vault_async(data, PASSWORD)
        assert await crypto.open_vault_async(text, PASSWORD) == data


# --- Package Exports ---

class TestPackageExports:
    """Tests for the top-level package namespace."""

    def test_builtin_open_not_shadowed(self):
        import fortress_vault
        assert "open" not in fortress_vault.__all__
        assert not hasattr(fortress_vault, "open")

    def test_text_open_lives_in_vault(self):
        from fortress_vault import vault
        assert vault.open is crypto.open
