"""Vault payload models.

A vault is a list of credential records plus a little metadata. These models
are what gets serialized, sealed and stored; the engine itself only ever sees
the serialized bytes. Serialized field names are camelCase (``createdAt``,
``lastExport``), matching containers written by the browser app.
"""
import uuid
import time
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from .exceptions import EntryNotFound


def now_ms() -> int:
    """Current time as epoch milliseconds."""
    return int(time.time() * 1000)


class PasswordEntry(BaseModel):
    """A single credential record."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    title: str
    username: str = ""
    password: str = ""
    url: Optional[str] = None
    notes: Optional[str] = None
    created_at: int = Field(default_factory=now_ms)
    updated_at: int = Field(default_factory=now_ms)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Titles are required and stripped."""
        v = v.strip()
        if not v:
            raise ValueError("Entry title cannot be empty")
        return v

    def __repr__(self) -> str:
        # keep secrets out of logs and tracebacks
        return f'<PasswordEntry id={self.id} title={self.title!r}>'

    __str__ = __repr__


class VaultData(BaseModel):
    """Decrypted vault contents."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    entries: list[PasswordEntry] = Field(default_factory=list)
    last_export: Optional[int] = None

    def __contains__(self, entry_id: object) -> bool:
        return any(e.id == entry_id for e in self.entries)

    @property
    def empty(self) -> bool:
        return not self.entries

    def find(self, entry_id: str) -> PasswordEntry:
        """Return the entry with the given id.

        Raises:
            EntryNotFound: If no entry has that id.
        """
        for entry in self.entries:
            if entry.id == entry_id:
                return entry
        raise EntryNotFound(entry_id)

    def index_of(self, entry_id: str) -> int:
        for idx, entry in enumerate(self.entries):
            if entry.id == entry_id:
                return idx
        raise EntryNotFound(entry_id)

    def __repr__(self) -> str:
        return (
            f'<VaultData entries={len(self.entries)} '
            f'last_export={self.last_export}>'
        )

    __str__ = __repr__
