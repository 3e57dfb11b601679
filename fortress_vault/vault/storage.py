"""
Container Stores — Where the sealed container text lives between sessions.

A store holds exactly one container slot. Writes replace the slot wholesale;
nothing is ever merged. Stores only ever see base64 container text.
"""
import os
import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Optional, Protocol, Union, runtime_checkable

logger = logging.getLogger("fortress.vault")


@runtime_checkable
class ContainerStore(Protocol):
    """Single-slot persistence for container text."""

    async def read(self) -> Optional[str]:
        ...

    async def write(self, text: str) -> None:
        ...

    async def clear(self) -> None:
        ...


class MemoryStore:
    """In-process container slot."""

    def __init__(self, text: Optional[str] = None):
        self._text = text

    async def read(self) -> Optional[str]:
        return self._text

    async def write(self, text: str) -> None:
        self._text = text

    async def clear(self) -> None:
        self._text = None

    def __repr__(self) -> str:
        return f'<MemoryStore empty={self._text is None}>'


class FileStore:
    """Container slot backed by a single text file.

    Writes go to a temporary file in the same directory which is then
    moved over the target with ``os.replace``, so readers only ever see
    the old or the new container.
    """

    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)

    def _read(self) -> Optional[str]:
        try:
            return self.path.read_text(encoding="ascii")
        except FileNotFoundError:
            return None

    def _write(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="ascii") as fp:
                fp.write(text)
                fp.flush()
                os.fsync(fp.fileno())
            os.replace(tmp, self.path)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise

    def _clear(self) -> None:
        try:
            self.path.unlink()
        except FileNotFoundError:
            pass

    async def read(self) -> Optional[str]:
        return await asyncio.to_thread(self._read)

    async def write(self, text: str) -> None:
        await asyncio.to_thread(self._write, text)
        logger.debug("Container written to %s (%d chars)", self.path, len(text))

    async def clear(self) -> None:
        await asyncio.to_thread(self._clear)
        logger.info("Container removed: %s", self.path)

    def __repr__(self) -> str:
        return f'<FileStore path={str(self.path)!r}>'
