from __future__ import annotations

import logging
import os
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterable
from urllib.parse import unquote, urlparse

import httpx
from PIL import Image, UnidentifiedImageError

from .dmi import DmiError, decode
from .preview import DEFAULT_PREVIEW_BOX, build_preview
from .viewer import ViewerRecord, display_name_for, display_name_for_url

logger = logging.getLogger(__name__)

Fetcher = Callable[[str], bytes]


class LoadError(Exception):
    pass


@dataclass(frozen=True)
class LoadFailure:
    name: str
    source: str
    message: str


@dataclass
class LoadBatch:
    records: list[ViewerRecord] = field(default_factory=list)
    failures: list[LoadFailure] = field(default_factory=list)


def is_url(value: str) -> bool:
    scheme = urlparse(value).scheme.lower()
    return scheme in {"http", "https"}


def split_sources(text: str) -> list[str]:
    """Split pasted or typed input into individual paths and URLs.

    Terminals paste dropped files as (possibly quoted) paths or ``file://``
    URIs separated by spaces or newlines.
    """

    sources: list[str] = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        try:
            tokens = shlex.split(line, posix=os.name != "nt")
        except ValueError:
            tokens = [line]
        for token in tokens:
            token = token.strip().strip('"')
            if not token:
                continue
            if token.lower().startswith("file://"):
                token = unquote(urlparse(token).path)
            sources.append(token)
    return sources


def load_source(
    source: str,
    *,
    fetcher: Fetcher | None = None,
    preview_box: tuple[int, int] = DEFAULT_PREVIEW_BOX,
    preview_max_scale: int = 4,
) -> ViewerRecord:
    if is_url(source):
        name = display_name_for_url(source)
        raw = _read_url(source, fetcher or _http_fetch)
    else:
        path = Path(source).expanduser()
        name = display_name_for(path)
        raw = _read_path(path)
    if not raw:
        raise LoadError("File is empty")
    try:
        container = decode(raw)
    except DmiError as exc:
        raise LoadError(str(exc)) from exc
    try:
        bitmap = build_preview(raw, preview_box, preview_max_scale)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as exc:
        raise LoadError(f"Cannot decode image: {exc}") from exc
    logger.info("Loaded %s (%d bytes, metadata=%s)", name, len(raw), container.metadata is not None)
    return ViewerRecord(container=container, display_name=name, bitmap=bitmap, source=source)


def load_sources(
    sources: Iterable[str],
    *,
    fetcher: Fetcher | None = None,
    preview_box: tuple[int, int] = DEFAULT_PREVIEW_BOX,
    preview_max_scale: int = 4,
) -> LoadBatch:
    batch = LoadBatch()
    for source in sources:
        try:
            record = load_source(
                source,
                fetcher=fetcher,
                preview_box=preview_box,
                preview_max_scale=preview_max_scale,
            )
        except LoadError as exc:
            logger.warning("Error loading %s: %s", source, exc)
            batch.failures.append(LoadFailure(name=_failure_name(source), source=source, message=str(exc)))
            continue
        except Exception as exc:
            logger.exception("Unexpected error loading %s", source)
            batch.failures.append(LoadFailure(name=_failure_name(source), source=source, message=str(exc)))
            continue
        batch.records.append(record)
    return batch


def _failure_name(source: str) -> str:
    return display_name_for_url(source) if is_url(source) else display_name_for(Path(source))


def _read_path(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        raise LoadError(f"Failed to read file: {exc}") from exc


def _read_url(url: str, fetcher: Fetcher) -> bytes:
    try:
        return fetcher(url)
    except httpx.HTTPError as exc:
        raise LoadError(f"Download failed: {exc}") from exc


def _http_fetch(url: str) -> bytes:
    with httpx.Client(follow_redirects=True, timeout=10.0) as client:
        response = client.get(url)
        response.raise_for_status()
        return response.content
