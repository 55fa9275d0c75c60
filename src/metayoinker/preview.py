from __future__ import annotations

import io
from dataclasses import dataclass

from PIL import Image

DEFAULT_PREVIEW_BOX = (512, 512)


@dataclass(frozen=True)
class PreviewBitmap:
    image: Image.Image
    source_size: tuple[int, int]

    @property
    def size(self) -> tuple[int, int]:
        return self.image.size


def build_preview(
    raw: bytes,
    box: tuple[int, int] = DEFAULT_PREVIEW_BOX,
    max_scale: int = 4,
) -> PreviewBitmap:
    with Image.open(io.BytesIO(raw)) as opened:
        opened.load()
        image = opened.convert("RGBA")
    source_size = image.size
    scale = preview_scale(source_size, box, max_scale)
    if scale != 1.0:
        width = max(1, round(source_size[0] * scale))
        height = max(1, round(source_size[1] * scale))
        image = image.resize((width, height), Image.Resampling.NEAREST)
    return PreviewBitmap(image=image, source_size=source_size)


def preview_scale(
    size: tuple[int, int], box: tuple[int, int], max_scale: int = 4
) -> float:
    width, height = size
    box_width, box_height = box
    if width <= 0 or height <= 0 or box_width <= 0 or box_height <= 0:
        return 1.0
    fit = min(box_width / width, box_height / height)
    if fit >= 1:
        # Whole-number upscale keeps sprite pixels square.
        return float(max(1, min(int(fit), max_scale)))
    return fit
