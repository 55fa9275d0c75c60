"""Copy and paste of metadata chunks between loaded sprite sheets.

Copy moves a record's metadata chunk into the shared clipboard. Paste writes
a new file: the target's container with its metadata chunk swapped for the
clipboard's, handed to a persistence sink. Paste is a coroutine so the TUI
can run it as a worker; :meth:`ExchangeEngine.paste_blocking` drives the
same coroutine to completion for callers without an event loop.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Coroutine, TypeVar

from .clipboard import MetadataClipboard
from .dmi import DMI_EXTENSION, Container, encode
from .persist import PersistenceSink, SaveRequest, default_save_dir
from .viewer import ViewerRecord

logger = logging.getLogger(__name__)

T = TypeVar("T")

COPY_TOAST_SECONDS = 1.5
FALLBACK_BASENAME = "untitled"


class NotificationKind(Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Notification:
    kind: NotificationKind
    text: str
    duration: float = COPY_TOAST_SECONDS
    show_progress: bool = True


Notifier = Callable[[Notification], None]
Encoder = Callable[[Container], bytes]


class PasteStatus(Enum):
    SKIPPED = "skipped"
    CANCELLED = "cancelled"
    SAVED = "saved"


@dataclass(frozen=True)
class PasteResult:
    status: PasteStatus
    path: Path | None = None
    origin_name: str | None = None


class ExchangeEngine:
    def __init__(
        self,
        clipboard: MetadataClipboard,
        sink: PersistenceSink,
        notify: Notifier | None = None,
        encoder: Encoder | None = None,
        save_dir: Callable[[], Path] | None = None,
    ) -> None:
        self.clipboard = clipboard
        self.sink = sink
        self._notify = notify or _discard
        self._encoder = encoder or encode
        self._save_dir = save_dir or default_save_dir

    def can_copy(self, record: ViewerRecord) -> bool:
        return record.has_metadata

    def can_paste(self) -> bool:
        return not self.clipboard.is_empty

    def copy(self, record: ViewerRecord) -> bool:
        chunk = record.metadata
        if chunk is None:
            logger.debug("Copy skipped: %s has no metadata", record.display_name)
            return False
        self.clipboard.copy_in(record.display_name, chunk)
        logger.info("Copied metadata from %s", record.display_name)
        self._notify(
            Notification(
                NotificationKind.SUCCESS,
                f"Copied metadata for {record.display_name}",
            )
        )
        return True

    async def paste(self, record: ViewerRecord) -> PasteResult:
        entry = self.clipboard.read()
        if entry is None:
            logger.debug("Paste skipped: clipboard is empty")
            return PasteResult(PasteStatus.SKIPPED)

        patched = record.container.with_metadata(entry.chunk)
        data = self._encoder(patched)
        suggested = suggest_output_name(record.display_name, DMI_EXTENSION)
        request = SaveRequest(
            data=data,
            suggested_name=suggested,
            extension=DMI_EXTENSION,
            directory=self._save_dir(),
        )
        path = await self.sink.save(request)
        if path is None:
            logger.info("Paste into %s cancelled", record.display_name)
            return PasteResult(PasteStatus.CANCELLED, origin_name=entry.origin_name)

        logger.info(
            "Pasted metadata from %s into %s -> %s",
            entry.origin_name,
            record.display_name,
            path,
        )
        self._notify(Notification(NotificationKind.SUCCESS, f"Downloaded {suggested}"))
        return PasteResult(PasteStatus.SAVED, path=path, origin_name=entry.origin_name)

    def paste_blocking(self, record: ViewerRecord) -> PasteResult:
        return run_blocking(self.paste(record))


def run_blocking(coro: Coroutine[Any, Any, T]) -> T:
    """Run ``coro`` to completion on a private event loop.

    Raises ``RuntimeError`` when the calling thread already runs a loop,
    since that loop cannot be re-entered.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    coro.close()
    raise RuntimeError("run_blocking() cannot be called from a running event loop")


def suggest_output_name(display_name: str, extension: str = DMI_EXTENSION) -> str:
    ext = extension.lower().lstrip(".")
    base, dot, _suffix = display_name.rpartition(".")
    if not dot or not base:
        base = display_name
    base = base.strip()
    if not base:
        base = FALLBACK_BASENAME
    return f"{base}.{ext}"


def _discard(_: Notification) -> None:
    return None
