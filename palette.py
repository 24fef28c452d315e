#!/usr/bin/env python3
"""
Build the exhaustive color palette and order it for placement.

Colors are stored blue-first (b, g, r) so the first channel, which marks
unset canvas pixels, is blue.
"""

from dataclasses import dataclass

import numpy as np


# =============================================================================
# Constants
# =============================================================================

# Per-channel (levels, step) for blue, green, red. Values run step..levels*step.
DEFAULT_LEVELS = (63, 127, 127)
DEFAULT_STEPS = (4, 2, 2)

DEFAULT_SEED = 1
MAX_CHANNEL = 255


class PaletteMismatch(ValueError):
    """Generated palette does not have the expected number of distinct colors."""


@dataclass(frozen=True)
class PaletteSpec:
    """Reduced-resolution color cube, one (levels, step) pair per channel."""
    levels: tuple = DEFAULT_LEVELS
    steps: tuple = DEFAULT_STEPS

    def __post_init__(self):
        if len(self.levels) != 3 or len(self.steps) != 3:
            raise ValueError("Palette needs exactly three channels")
        for levels, step in zip(self.levels, self.steps):
            if levels < 1 or step < 1:
                raise ValueError(f"Invalid channel levels={levels} step={step}")
            if levels * step > MAX_CHANNEL:
                raise ValueError(
                    f"Channel top value {levels * step} exceeds {MAX_CHANNEL}"
                )

    @property
    def size(self) -> int:
        return int(np.prod(self.levels))


# =============================================================================
# Color Conversion
# =============================================================================

def bgr_to_hsv(bgr: np.ndarray) -> np.ndarray:
    """
    Convert blue-first colors (0-255) to HSV.

    Args:
        bgr: Array of shape (n, 3) with columns [b, g, r]

    Returns:
        Array of shape (n, 3) with columns [h, s, v]; h in degrees [0, 360),
        s and v in [0, 1]. Gray colors get h = s = 0.
    """
    bgr = np.asarray(bgr).reshape(-1, 3)
    channels = bgr.astype(np.int32)
    bc, gc, rc = channels[:, 0], channels[:, 1], channels[:, 2]
    b, g, r = bc / 255.0, gc / 255.0, rc / 255.0

    v = np.maximum(np.maximum(r, g), b)
    delta = v - np.minimum(np.minimum(r, g), b)
    gray = delta == 0
    safe_delta = np.where(gray, 1.0, delta)
    s = np.where(gray, 0.0, delta / np.where(v == 0, 1.0, v))

    # Ties on the maximum resolve red, then green, then blue
    maxc = np.maximum(np.maximum(rc, gc), bc)
    h = np.select(
        [maxc == rc, maxc == gc],
        [60 * (g - b) / safe_delta, 120 + 60 * (b - r) / safe_delta],
        default=240 + 60 * (r - g) / safe_delta,
    )
    h = np.where(h < 0, h + 360, h)
    h = np.where(gray, 0.0, h)

    return np.column_stack([h, s, v])


# =============================================================================
# Sequencing
# =============================================================================

def build_palette(spec: PaletteSpec = PaletteSpec()) -> np.ndarray:
    """
    Enumerate every color of the palette cube.

    Enumeration starts at one step on each channel, never at zero, so no
    palette color can be confused with the unset sentinel.

    Returns:
        uint8 array of shape (spec.size, 3), blue-major order.

    Raises:
        PaletteMismatch: If the enumeration does not yield spec.size distinct colors
    """
    axes = [
        np.arange(1, levels + 1, dtype=np.int32) * step
        for levels, step in zip(spec.levels, spec.steps)
    ]
    grid = np.stack(np.meshgrid(*axes, indexing='ij'), axis=-1)
    colors = grid.reshape(-1, 3).astype(np.uint8)

    distinct = len(np.unique(colors, axis=0))
    if len(colors) != spec.size or distinct != spec.size:
        raise PaletteMismatch(
            f"Palette has {len(colors)} colors ({distinct} distinct), "
            f"expected {spec.size}"
        )
    return colors


def order_palette(colors: np.ndarray, rng: np.random.Generator) -> np.ndarray:
    """
    Shuffle, then stable-sort by hue.

    The shuffle jitters the order of colors sharing a hue; the stable sort
    keeps that jitter within each hue.
    """
    shuffled = colors[rng.permutation(len(colors))]
    hue = bgr_to_hsv(shuffled)[:, 0]
    return shuffled[np.argsort(hue, kind='stable')]


def color_queue(spec: PaletteSpec, rng: np.random.Generator) -> np.ndarray:
    """Full placement queue; the loop consumes it from the end."""
    return order_palette(build_palette(spec), rng)


if __name__ == '__main__':
    spec = PaletteSpec()
    queue = color_queue(spec, np.random.default_rng(DEFAULT_SEED))
    hues = bgr_to_hsv(queue)[:, 0]
    print(f"Palette: {len(queue):,} colors "
          f"({' x '.join(str(n) for n in spec.levels)})")
    print(f"Hue range: {hues.min():.1f}° - {hues.max():.1f}°")
    print(f"First placed: {tuple(int(c) for c in queue[-1])}, "
          f"last placed: {tuple(int(c) for c in queue[0])}")
