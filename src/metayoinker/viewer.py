from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from urllib.parse import unquote, urlparse

from .dmi import Container, MetadataChunk
from .preview import PreviewBitmap

UNKNOWN_NAME = "???"


@dataclass(eq=False)
class ViewerRecord:
    container: Container
    display_name: str
    bitmap: PreviewBitmap | None = None
    source: str | None = None
    identity: uuid.UUID = field(default_factory=uuid.uuid4)
    open: bool = True

    @property
    def metadata(self) -> MetadataChunk | None:
        return self.container.metadata

    @property
    def has_metadata(self) -> bool:
        return self.metadata is not None


def display_name_for(path: Path | None = None, upload_name: str | None = None) -> str:
    if path is not None:
        name = path.name
        return name if name else UNKNOWN_NAME
    if upload_name:
        return upload_name
    return UNKNOWN_NAME


def display_name_for_url(url: str) -> str:
    parsed = urlparse(url)
    name = PurePosixPath(unquote(parsed.path)).name
    return display_name_for(upload_name=name or None)


class ViewerSet:
    """Live viewer records in load order.

    The presentation layer never removes records directly. It files close
    requests during a frame, and :meth:`sweep` applies them once the frame's
    intents are all in.
    """

    def __init__(self) -> None:
        self._records: list[ViewerRecord] = []
        self._close_requests: list[uuid.UUID] = []

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self):
        return iter(list(self._records))

    def add(self, record: ViewerRecord) -> None:
        self._records.append(record)

    def request_close(self, identity: uuid.UUID) -> None:
        if identity not in self._close_requests:
            self._close_requests.append(identity)

    def sweep(self) -> list[ViewerRecord]:
        pending = set(self._close_requests)
        self._close_requests.clear()
        removed: list[ViewerRecord] = []
        kept: list[ViewerRecord] = []
        for record in self._records:
            if record.identity in pending:
                record.open = False
            if record.open:
                kept.append(record)
            else:
                removed.append(record)
        self._records = kept
        return removed
