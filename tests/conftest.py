from __future__ import annotations

import io
from pathlib import Path

import pytest
from PIL import Image

from metayoinker.dmi import MetadataChunk, decode, encode
from metayoinker.viewer import ViewerRecord

DESCRIPTION = (
    "# BEGIN DMI\n"
    "version = 4.0\n"
    "\twidth = 32\n"
    "\theight = 32\n"
    'state = "idle"\n'
    "\tdirs = 4\n"
    "\tframes = 1\n"
    'state = "walk"\n'
    "\tdirs = 4\n"
    "\tframes = 2\n"
    "# END DMI\n"
)


def _png_bytes(size: tuple[int, int]) -> bytes:
    image = Image.new("RGBA", size, (200, 40, 40, 255))
    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return buffer.getvalue()


@pytest.fixture
def make_png():
    def factory(size: tuple[int, int] = (32, 32)) -> bytes:
        return _png_bytes(size)

    return factory


@pytest.fixture
def make_dmi():
    def factory(description: str | None = DESCRIPTION, size: tuple[int, int] = (32, 32)) -> bytes:
        container = decode(_png_bytes(size))
        if description is not None:
            container = container.with_metadata(MetadataChunk.from_text(description))
        return encode(container)

    return factory


@pytest.fixture
def make_record(make_dmi):
    def factory(name: str = "icons.dmi", description: str | None = DESCRIPTION) -> ViewerRecord:
        return ViewerRecord(container=decode(make_dmi(description)), display_name=name)

    return factory


@pytest.fixture
def write_file(tmp_path: Path):
    def factory(name: str, data: bytes) -> Path:
        path = tmp_path / name
        path.write_bytes(data)
        return path

    return factory
