"""Flat-color diagnostic tiles for checking atlas placement."""

from typing import Optional

import torch

from .buffer import PixelBuffer, Origin


# RGBA: blue, cyan, green, yellow, red, magenta
DEBUG_PALETTE = (
    (0, 0, 255, 255),
    (0, 255, 255, 255),
    (0, 255, 0, 255),
    (255, 255, 0, 255),
    (255, 0, 0, 255),
    (255, 0, 255, 255),
)


def debug_color(slot: int):
    return DEBUG_PALETTE[slot % len(DEBUG_PALETTE)]


def generate_debug_tile(slot: int, size: int, out: Optional[PixelBuffer] = None) -> PixelBuffer:
    """Fill a tile with the palette color of its slot."""
    if out is None:
        out = PixelBuffer.zeros(size, size, Origin.TOP_LEFT)
    out.pixels[...] = torch.tensor(debug_color(slot), dtype=torch.uint8, device=out.pixels.device)
    return out
