"""
Display colors for decomposed pieces.

Each convex sub-mesh gets its own color so the pieces are easy to tell
apart in a viewer. Two modes:
- palette: hues spaced by the golden ratio - deterministic, and
  neighbouring indices never look alike
- random: pseudo-random RGB from a seeded numpy generator, so a given
  seed always reproduces the same colors
"""

import colorsys
from typing import List, Tuple
import numpy as np

from .constants import PALETTE_SATURATION, PALETTE_VALUE

Color = Tuple[float, float, float]

GOLDEN_RATIO_CONJUGATE = 0.618033988749895


def palette_color(index: int) -> Color:
    """Deterministic color for the index-th piece."""
    hue = (index * GOLDEN_RATIO_CONJUGATE) % 1.0
    return colorsys.hsv_to_rgb(hue, PALETTE_SATURATION, PALETTE_VALUE)


def assign_colors(count: int, mode: str = "palette", seed: int = 0) -> List[Color]:
    """
    Generate `count` display colors, each channel in [0, 1].

    Args:
        count: Number of colors needed
        mode: "palette" or "random"
        seed: Seed for the "random" mode

    Returns:
        List of (r, g, b) float tuples
    """
    if mode == "palette":
        return [palette_color(i) for i in range(count)]
    if mode == "random":
        rng = np.random.default_rng(seed)
        # Keep away from near-black so pieces stay visible
        channels = rng.uniform(0.2, 1.0, size=(count, 3))
        return [tuple(float(c) for c in row) for row in channels]
    raise ValueError(f"color mode must be 'palette' or 'random', got {mode!r}")


def color_to_rgb255(color: Color) -> Tuple[int, int, int]:
    """Float color in [0, 1] to 8-bit RGB."""
    return tuple(int(round(max(0.0, min(1.0, c)) * 255)) for c in color)
