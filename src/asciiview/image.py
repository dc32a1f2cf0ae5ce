"""Direct raster-image to glyph sampling.

This is the simpler secondary path: no geometry, no depth, just one area
sample per output cell after the zoom/pan/rotation framing is applied.
Pillow does the cropping, box resampling and rotation.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple, Union

from PIL import Image, ImageSequence

from .engine import MIN_ZOOM
from .ramps import DEFAULT_RAMP, GlyphRamp, char_for_brightness

RGB = Tuple[int, int, int]

ZOOM_OFFSET_STEP = 0.1
PAN_FRACTION = 0.1


@dataclass(frozen=True)
class RasterImage:
    """An RGBA8 pixel buffer, row-major, four bytes per pixel."""

    width: int
    height: int
    pixels: bytes

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError("RasterImage requires positive dimensions")
        expected = self.width * self.height * 4
        if len(self.pixels) != expected:
            raise ValueError(f"Expected {expected} RGBA bytes, got {len(self.pixels)}")

    @classmethod
    def from_pil(cls, image: Image.Image) -> "RasterImage":
        rgba = image.convert("RGBA")
        return cls(rgba.width, rgba.height, rgba.tobytes())

    def to_pil(self) -> Image.Image:
        return Image.frombytes("RGBA", (self.width, self.height), self.pixels)


@dataclass
class ImageView:
    zoom: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0
    offset_z: float = 0.0
    rotation: float = 0.0


@dataclass(frozen=True)
class Framing:
    """Source rectangle and where it lands on the output grid."""

    source_x: float
    source_y: float
    region_width: float
    region_height: float
    draw_x: float
    draw_y: float
    output_width: float
    output_height: float


def compute_framing(
    image_width: int, image_height: int, width: int, height: int, view: ImageView
) -> Framing:
    effective_zoom = max(MIN_ZOOM, view.zoom * (1 + view.offset_z * ZOOM_OFFSET_STEP))
    region_width = min(image_width / effective_zoom, image_width)
    region_height = min(image_height / effective_zoom, image_height)

    # Keep the image's own aspect ratio inside the grid.
    image_aspect = image_width / image_height
    output_width: float = width
    output_height: float = height
    if image_aspect > width / height:
        output_height = width / image_aspect
    else:
        output_width = height * image_aspect

    base_x = (image_width - region_width) / 2
    base_y = (image_height - region_height) / 2
    pan = max(region_width, region_height) * PAN_FRACTION
    source_x = max(0.0, min(image_width - region_width, base_x - view.offset_x * pan))
    source_y = max(0.0, min(image_height - region_height, base_y - view.offset_y * pan))

    return Framing(
        source_x=source_x,
        source_y=source_y,
        region_width=region_width,
        region_height=region_height,
        draw_x=(width - output_width) / 2 + view.offset_x,
        draw_y=(height - output_height) / 2 + view.offset_y,
        output_width=output_width,
        output_height=output_height,
    )


def luminance(r: int, g: int, b: int) -> float:
    return (0.299 * r + 0.587 * g + 0.114 * b) / 255


def _compose(
    image: RasterImage, width: int, height: int, view: ImageView, background: RGB
) -> Image.Image:
    framing = compute_framing(image.width, image.height, width, height, view)
    box = (
        framing.source_x,
        framing.source_y,
        framing.source_x + framing.region_width,
        framing.source_y + framing.region_height,
    )
    size = (max(1, round(framing.output_width)), max(1, round(framing.output_height)))
    scaled = image.to_pil().resize(size, Image.Resampling.BOX, box=box)

    layer = Image.new("RGBA", (width, height), (0, 0, 0, 0))
    layer.paste(scaled, (round(framing.draw_x), round(framing.draw_y)))
    if view.rotation:
        # Pillow rotates counter-clockwise; positive rotation turns clockwise on screen.
        layer = layer.rotate(
            -math.degrees(view.rotation),
            resample=Image.Resampling.BILINEAR,
            center=(width / 2, height / 2),
        )

    canvas = Image.new("RGBA", (width, height), background + (255,))
    canvas.alpha_composite(layer)
    return canvas.convert("RGB")


def sample_rows(
    image: RasterImage,
    width: int,
    height: int,
    view: Optional[ImageView] = None,
    ramp: GlyphRamp = DEFAULT_RAMP,
    background: RGB = (0, 0, 0),
) -> List[str]:
    if width < 1 or height < 1:
        raise ValueError("Output grid must be at least 1x1")
    composed = _compose(image, width, height, view or ImageView(), background)
    data = composed.tobytes()
    rows: List[str] = []
    for y in range(height):
        row_start = y * width * 3
        row = []
        for x in range(width):
            idx = row_start + x * 3
            row.append(char_for_brightness(luminance(data[idx], data[idx + 1], data[idx + 2]), ramp))
        rows.append("".join(row))
    return rows


def sample_image(
    image: RasterImage,
    width: int,
    height: int,
    view: Optional[ImageView] = None,
    ramp: GlyphRamp = DEFAULT_RAMP,
    background: RGB = (0, 0, 0),
) -> str:
    return "\n".join(sample_rows(image, width, height, view, ramp, background))


def load_image(path: Union[str, Path]) -> RasterImage:
    with Image.open(path) as image:
        return RasterImage.from_pil(image)


def load_frames(path: Union[str, Path]) -> List[RasterImage]:
    """Return every frame of a (possibly animated) image, in order."""

    with Image.open(path) as image:
        return [RasterImage.from_pil(frame) for frame in ImageSequence.Iterator(image)]
