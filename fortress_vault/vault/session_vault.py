"""
VaultSession — Explicit credential handle for an unlocked vault.

Provides the public API for working with a vault between unlock and lock:
- ``create(password, store)`` / ``unlock(password, store)`` — factories
- ``entries()`` / ``get(entry_id)`` — read decrypted records
- ``add_entry()`` / ``update_entry()`` / ``delete_entry()`` — edit and re-seal
- ``export()`` / ``import_container(text)`` — portable container text
- ``lock()`` / ``wipe()`` — end the session, optionally erasing the store

Every mutation re-seals the whole vault under the session password with a
fresh salt and nonce, then overwrites the store. Mutations are serialised by a
per-session ``asyncio.Lock`` so two seals never race on the same slot.

Security Note:
    The master password stays in process memory until ``lock()`` or the
    inactivity timeout. Never log passwords or record contents; only log
    entry ids and counts.
"""
import time
import uuid
import asyncio
import logging
from typing import Any, Callable, Optional

from ..data import PasswordEntry, VaultData, now_ms
from ..exceptions import VaultError, VaultLocked
from .config import VaultConfig
from .crypto import open_vault_async, seal_vault_async
from .storage import ContainerStore

logger = logging.getLogger("fortress.vault")

_EDITABLE_FIELDS = frozenset({"title", "username", "password", "url", "notes"})


class VaultSession:
    """Unlocked vault bound to a master password and a container store.

    Instances are normally built through :meth:`create` or :meth:`unlock`.
    After :meth:`lock` (or inactivity longer than ``config.session_ttl``)
    every operation raises :class:`VaultLocked`.
    """

    def __init__(
        self,
        data: VaultData,
        password: str,
        store: ContainerStore,
        config: Optional[VaultConfig] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._data: Optional[VaultData] = data
        self._password: Optional[str] = password
        self._store = store
        self._config = config or VaultConfig()
        self._clock = clock
        self._last_access = clock()
        self._id = uuid.uuid4().hex
        self._write_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Factories
    # ------------------------------------------------------------------

    @classmethod
    async def create(
        cls,
        password: str,
        store: ContainerStore,
        config: Optional[VaultConfig] = None,
        **kwargs: Any,
    ) -> "VaultSession":
        """Create a new empty vault, persist it, and return it unlocked.

        Any container already in the store is replaced.

        Raises:
            WeakPassword: If password does not meet the configured policy.
        """
        config = config or VaultConfig()
        config.check_password(password)
        data = VaultData(last_export=now_ms())
        text = await seal_vault_async(data, password)
        await store.write(text)
        session = cls(data, password, store, config, **kwargs)
        logger.info("Vault created: session=%s", session.session_id)
        return session

    @classmethod
    async def unlock(
        cls,
        password: str,
        store: ContainerStore,
        config: Optional[VaultConfig] = None,
        **kwargs: Any,
    ) -> "VaultSession":
        """Open the container held by store and return an unlocked session.

        Raises:
            VaultError: If the store holds no container.
            AuthenticationFailure: On wrong password or corrupted data.
        """
        text = await store.read()
        if text is None:
            raise VaultError("No vault container found in store")
        data = await open_vault_async(text, password)
        session = cls(data, password, store, config, **kwargs)
        logger.info(
            "Vault unlocked: session=%s entries=%d",
            session.session_id, len(data.entries),
        )
        return session

    # ------------------------------------------------------------------
    # Lifetime
    # ------------------------------------------------------------------

    @property
    def session_id(self) -> str:
        return self._id

    @property
    def locked(self) -> bool:
        return self._password is None

    @property
    def config(self) -> VaultConfig:
        return self._config

    def _touch(self) -> VaultData:
        """Check the session is usable and refresh its inactivity timer."""
        if self._password is None or self._data is None:
            raise VaultLocked("Vault is locked")
        ttl = self._config.session_ttl
        now = self._clock()
        if ttl is not None and now - self._last_access > ttl:
            logger.info("Vault session %s expired after %ss", self._id, ttl)
            self.lock()
            raise VaultLocked("Vault session expired")
        self._last_access = now
        return self._data

    def lock(self) -> None:
        """Drop the password and decrypted records. Safe to call twice."""
        if self._password is None:
            return
        self._password = None
        self._data = None
        logger.info("Vault locked: session=%s", self._id)

    async def wipe(self) -> None:
        """Erase the stored container and lock the session."""
        self._touch()
        async with self._write_lock:
            await self._store.clear()
        self.lock()

    async def __aenter__(self) -> "VaultSession":
        return self

    async def __aexit__(self, *exc_info) -> None:
        self.lock()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    async def _commit(self, data: VaultData) -> str:
        """Seal data, overwrite the store, then adopt data as current.

        In-memory state only changes once the store write succeeded.
        """
        password = self._password
        if password is None:
            raise VaultLocked("Vault is locked")
        text = await seal_vault_async(data, password)
        await self._store.write(text)
        if self._password is not None:
            self._data = data
        return text

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def entries(self) -> list[PasswordEntry]:
        """Return copies of all records, in insertion order."""
        data = self._touch()
        return [e.model_copy() for e in data.entries]

    def get(self, entry_id: str) -> PasswordEntry:
        """Return a copy of one record.

        Raises:
            EntryNotFound: If entry_id is not in the vault.
        """
        return self._touch().find(entry_id).model_copy()

    def __contains__(self, entry_id: object) -> bool:
        return entry_id in self._touch()

    async def add_entry(
        self,
        title: str,
        username: str = "",
        password: str = "",
        url: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> PasswordEntry:
        """Add a record and re-seal the vault.

        Raises:
            ValueError: If the title is empty or max_entries is reached.
        """
        self._touch()
        async with self._write_lock:
            current = self._touch()
            if len(current.entries) >= self._config.max_entries:
                raise ValueError(
                    f"Max entries per vault ({self._config.max_entries}) exceeded"
                )
            entry = PasswordEntry(
                title=title,
                username=username,
                password=password,
                url=url,
                notes=notes,
            )
            data = current.model_copy(deep=True)
            data.entries.append(entry)
            await self._commit(data)
        logger.debug("Vault add: session=%s entry=%s", self._id, entry.id)
        return entry.model_copy()

    async def update_entry(self, entry_id: str, **changes: Any) -> PasswordEntry:
        """Change fields of a record and re-seal the vault.

        Only title, username, password, url and notes may be changed.

        Raises:
            EntryNotFound: If entry_id is not in the vault.
            ValueError: On unknown fields or an empty title.
        """
        self._touch()
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {sorted(unknown)}")
        async with self._write_lock:
            current = self._touch()
            idx = current.index_of(entry_id)
            fields = current.entries[idx].model_dump()
            fields.update(changes)
            fields["updated_at"] = max(now_ms(), fields["created_at"])
            entry = PasswordEntry.model_validate(fields)
            data = current.model_copy(deep=True)
            data.entries[idx] = entry
            await self._commit(data)
        logger.debug("Vault update: session=%s entry=%s", self._id, entry_id)
        return entry.model_copy()

    async def delete_entry(self, entry_id: str) -> None:
        """Remove a record and re-seal the vault.

        Raises:
            EntryNotFound: If entry_id is not in the vault.
        """
        self._touch()
        async with self._write_lock:
            current = self._touch()
            idx = current.index_of(entry_id)
            data = current.model_copy(deep=True)
            del data.entries[idx]
            await self._commit(data)
        logger.debug("Vault delete: session=%s entry=%s", self._id, entry_id)

    # ------------------------------------------------------------------
    # Export / import
    # ------------------------------------------------------------------

    async def export(self) -> str:
        """Stamp the export time, re-seal, and return the container text."""
        self._touch()
        async with self._write_lock:
            data = self._touch().model_copy(deep=True)
            data.last_export = now_ms()
            text = await self._commit(data)
        logger.info("Vault exported: session=%s", self._id)
        return text

    async def import_container(self, text: str) -> VaultData:
        """Replace the vault with an exported container.

        The container must open under the current session password; if it
        does not, the error propagates and nothing is changed.

        Raises:
            InvalidEncoding, MalformedContainer, AuthenticationFailure:
                If text cannot be opened with the session password.
        """
        self._touch()
        async with self._write_lock:
            password = self._password
            if password is None:
                raise VaultLocked("Vault is locked")
            data = await open_vault_async(text, password)
            await self._store.write(text.strip())
            if self._password is not None:
                self._data = data
        logger.info(
            "Vault imported: session=%s entries=%d", self._id, len(data.entries),
        )
        return data.model_copy(deep=True)

    def __repr__(self) -> str:
        if self.locked:
            return f'<VaultSession {self._id} locked>'
        return (
            f'<VaultSession {self._id} unlocked '
            f'entries={len(self._data.entries)}>'
        )
