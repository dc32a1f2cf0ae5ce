"""Glyph ramps mapping brightness to characters."""

from __future__ import annotations

import math
from enum import Enum

_BOURKE = " .'`^\",:;Il!i><~+_-?][}{1)(|\\/tfjrxnuvczXYUJCLQ0OZmwqpdbkhao*#MW&8%B@$"


class GlyphRamp(Enum):
    """Named character ramps, ordered sparse to dense."""

    CLASSIC = "classic"
    BLOCKS = "blocks"
    DETAILED = "detailed"
    MINIMAL = "minimal"
    RETRO = "retro"
    BOLD = "bold"
    GRADIENT = "gradient"
    MATRIX = "matrix"
    PROFESSIONAL = "professional"

    @property
    def chars(self) -> str:
        return _RAMP_CHARS[self]

    @classmethod
    def from_name(cls, name: str) -> "GlyphRamp":
        try:
            return cls(name.strip().lower())
        except ValueError as exc:
            choices = ", ".join(ramp.value for ramp in cls)
            raise ValueError(f"Unknown glyph ramp '{name}' (choose from {choices})") from exc

    def next(self) -> "GlyphRamp":
        members = list(GlyphRamp)
        return members[(members.index(self) + 1) % len(members)]


_RAMP_CHARS = {
    GlyphRamp.CLASSIC: " .:-=+*#%@",
    GlyphRamp.BLOCKS: " ░▒▓█",
    GlyphRamp.DETAILED: _BOURKE,
    GlyphRamp.MINIMAL: " .oO0",
    GlyphRamp.RETRO: " .oO@",
    GlyphRamp.BOLD: " █",
    GlyphRamp.GRADIENT: " .:;+=xX$&",
    GlyphRamp.MATRIX: " .:-=+*#%@█",
    GlyphRamp.PROFESSIONAL: _BOURKE,
}

DEFAULT_RAMP = GlyphRamp.PROFESSIONAL


def glyph_index(brightness: float, ramp_length: int) -> int:
    """Return ``floor(brightness * (ramp_length - 1))`` clamped to the ramp."""

    if ramp_length <= 0:
        raise ValueError("Glyph ramp must not be empty")
    if math.isnan(brightness):
        return 0
    idx = math.floor(max(0.0, min(1.0, brightness)) * (ramp_length - 1))
    return max(0, min(ramp_length - 1, idx))


def char_for_brightness(brightness: float, ramp: GlyphRamp = DEFAULT_RAMP) -> str:
    chars = ramp.chars
    return chars[glyph_index(brightness, len(chars))]
