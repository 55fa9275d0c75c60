from __future__ import annotations

import threading
from dataclasses import dataclass

from .dmi import MetadataChunk


@dataclass(frozen=True)
class ClipboardEntry:
    origin_name: str
    chunk: MetadataChunk


class MetadataClipboard:
    """Single-slot store shared by every open viewer.

    The occupant is always swapped as a whole under the lock, so a reader
    sees either the previous entry or the new one. Entries are immutable,
    which makes the value returned by :meth:`read` safe to hold on to.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entry: ClipboardEntry | None = None

    def copy_in(self, origin_name: str, chunk: MetadataChunk) -> None:
        entry = ClipboardEntry(origin_name=origin_name, chunk=chunk)
        with self._lock:
            self._entry = entry

    def read(self) -> ClipboardEntry | None:
        with self._lock:
            return self._entry

    def clear(self) -> None:
        with self._lock:
            self._entry = None

    @property
    def is_empty(self) -> bool:
        return self.read() is None
