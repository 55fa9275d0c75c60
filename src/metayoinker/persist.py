from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveRequest:
    data: bytes
    suggested_name: str
    extension: str
    directory: Path


class PersistenceSink(Protocol):
    async def save(self, request: SaveRequest) -> Path | None:
        """Write ``request.data`` somewhere; ``None`` means the user cancelled."""
        ...


class FileSink:
    """Sink with a destination chosen up front (command line use).

    ``target`` may be a file or an existing directory. Without a target the
    suggested name is written into the request's directory.
    """

    def __init__(self, target: Path | None = None) -> None:
        self._target = target

    async def save(self, request: SaveRequest) -> Path | None:
        if self._target is None:
            path = request.directory / request.suggested_name
        elif self._target.is_dir():
            path = self._target / request.suggested_name
        else:
            path = self._target
        path = ensure_extension(path, request.extension)
        return await write_bytes(path, request.data)


def filesystem_root() -> Path:
    anchor = Path.cwd().anchor
    return Path(anchor) if anchor else Path("/")


def default_save_dir(last_dir: str | None = None) -> Path:
    if last_dir:
        path = Path(last_dir).expanduser()
        if path.is_dir():
            return path
    return filesystem_root()


def ensure_extension(path: Path, extension: str) -> Path:
    ext = extension.lower().lstrip(".")
    if path.suffix.lower() == f".{ext}":
        return path
    return path.with_name(f"{path.name}.{ext}")


def has_extension(path: Path, extension: str) -> bool:
    return path.suffix.lower() == f".{extension.lower().lstrip('.')}"


async def write_bytes(path: Path, data: bytes) -> Path:
    await asyncio.to_thread(_write_file, path, data)
    logger.info("Wrote %d bytes to %s", len(data), path)
    return path


def _write_file(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(data)
