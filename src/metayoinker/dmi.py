"""PNG chunk-stream codec for BYOND ``.dmi`` sprite sheets.

A DMI file is a plain PNG whose icon-state table lives in a ``zTXt`` chunk
with the keyword ``Description``. This module only splits the file into its
ordered chunks and puts them back together; pixel data is never touched.
"""

from __future__ import annotations

import struct
import zlib
from dataclasses import dataclass

PNG_SIGNATURE = bytes([137, 80, 78, 71, 13, 10, 26, 10])
DMI_EXTENSION = "dmi"
METADATA_KEYWORD = "Description"

IHDR = b"IHDR"
IEND = b"IEND"
ZTXT = b"zTXt"

_LENGTH_AND_TYPE = struct.Struct("!L4s")
_CRC = struct.Struct("!L")
_MAX_KEYWORD_LENGTH = 79


class DmiError(ValueError):
    pass


@dataclass(frozen=True)
class Chunk:
    kind: bytes
    data: bytes

    def crc(self) -> int:
        return zlib.crc32(self.kind + self.data) & 0xFFFFFFFF


@dataclass(frozen=True)
class MetadataChunk:
    keyword: str
    compressed: bytes
    compression_method: int = 0

    @classmethod
    def from_text(cls, text: str, keyword: str = METADATA_KEYWORD) -> MetadataChunk:
        return cls(keyword=keyword, compressed=zlib.compress(text.encode("latin-1")))

    @classmethod
    def from_chunk(cls, chunk: Chunk) -> MetadataChunk:
        if chunk.kind != ZTXT:
            raise DmiError(f"Expected a zTXt chunk, got {chunk.kind!r}")
        keyword, sep, rest = chunk.data.partition(b"\x00")
        if not sep or not rest:
            raise DmiError("Malformed zTXt chunk")
        return cls(
            keyword=keyword.decode("latin-1"),
            compression_method=rest[0],
            compressed=bytes(rest[1:]),
        )

    def to_chunk(self) -> Chunk:
        keyword = self.keyword.encode("latin-1")
        if not 1 <= len(keyword) <= _MAX_KEYWORD_LENGTH:
            raise ValueError(f"Invalid zTXt keyword length: {len(keyword)}")
        data = keyword + b"\x00" + bytes([self.compression_method]) + self.compressed
        return Chunk(ZTXT, data)

    def text(self) -> str:
        if self.compression_method != 0:
            raise DmiError(f"Unsupported zTXt compression method: {self.compression_method}")
        try:
            return zlib.decompress(self.compressed).decode("latin-1")
        except zlib.error as exc:
            raise DmiError(f"Corrupt metadata text: {exc}") from exc


@dataclass(frozen=True)
class Container:
    """Ordered chunks of one decoded file.

    Containers are immutable; :meth:`with_metadata` returns a rewritten copy
    and leaves every non-metadata chunk exactly as decoded.
    """

    chunks: tuple[Chunk, ...]

    @property
    def metadata(self) -> MetadataChunk | None:
        index = _metadata_index(self.chunks)
        if index is None:
            return None
        return MetadataChunk.from_chunk(self.chunks[index])

    def with_metadata(self, metadata: MetadataChunk) -> Container:
        replacement = metadata.to_chunk()
        chunks = list(self.chunks)
        index = _metadata_index(self.chunks)
        if index is not None:
            chunks[index] = replacement
        else:
            chunks.insert(_insert_position(chunks), replacement)
        return Container(tuple(chunks))


def decode(raw: bytes) -> Container:
    if not raw.startswith(PNG_SIGNATURE):
        raise DmiError("Not a PNG file (bad signature)")
    chunks: list[Chunk] = []
    offset = len(PNG_SIGNATURE)
    while offset < len(raw):
        header_end = offset + _LENGTH_AND_TYPE.size
        if header_end > len(raw):
            raise DmiError("Truncated chunk header")
        length, kind = _LENGTH_AND_TYPE.unpack_from(raw, offset)
        data_end = header_end + length
        crc_end = data_end + _CRC.size
        if crc_end > len(raw):
            raise DmiError(f"Truncated {kind.decode('latin-1', 'replace')} chunk")
        chunk = Chunk(kind, bytes(raw[header_end:data_end]))
        (crc,) = _CRC.unpack_from(raw, data_end)
        if crc != chunk.crc():
            raise DmiError(f"Bad CRC in {kind.decode('latin-1', 'replace')} chunk")
        chunks.append(chunk)
        offset = crc_end
        if kind == IEND:
            break

    if not chunks or chunks[0].kind != IHDR:
        raise DmiError("Missing IHDR chunk")
    if chunks[-1].kind != IEND:
        raise DmiError("Missing IEND chunk")
    found = [chunk for chunk in chunks if _is_metadata_chunk(chunk)]
    if len(found) > 1:
        raise DmiError("Multiple metadata chunks")
    if found:
        MetadataChunk.from_chunk(found[0])
    return Container(tuple(chunks))


def encode(container: Container) -> bytes:
    if not container.chunks or container.chunks[0].kind != IHDR:
        raise ValueError("Container must start with IHDR")
    if container.chunks[-1].kind != IEND:
        raise ValueError("Container must end with IEND")
    parts = [PNG_SIGNATURE]
    for chunk in container.chunks:
        if len(chunk.kind) != 4:
            raise ValueError(f"Invalid chunk type: {chunk.kind!r}")
        parts.append(_LENGTH_AND_TYPE.pack(len(chunk.data), chunk.kind))
        parts.append(chunk.data)
        parts.append(_CRC.pack(chunk.crc()))
    return b"".join(parts)


def _is_metadata_chunk(chunk: Chunk) -> bool:
    if chunk.kind != ZTXT:
        return False
    keyword = chunk.data.partition(b"\x00")[0]
    return keyword == METADATA_KEYWORD.encode("latin-1")


def _metadata_index(chunks: tuple[Chunk, ...]) -> int | None:
    for index, chunk in enumerate(chunks):
        if _is_metadata_chunk(chunk):
            return index
    return None


def _insert_position(chunks: list[Chunk]) -> int:
    for index, chunk in enumerate(chunks):
        if chunk.kind == IHDR:
            return index + 1
    return 0
