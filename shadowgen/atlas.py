"""
Atlas packing.

The atlas is a grid of tile_size cells; slot i lives in cell
(i % cells_per_row, i // cells_per_row), counted from the top-left of the
image. Atlas storage is bottom-up, so tile row r of a cell whose top edge is
at image row y0 goes to storage row (atlas_height - 1) - (y0 + r).
"""

from typing import Any, Dict, List, Optional, Tuple

import torch

from .buffer import PixelBuffer, Origin
from .neighbors import NUM_MASKS, mask_to_slot_table


def new_atlas(width: int, height: int, device: torch.device = None) -> PixelBuffer:
    """Zero-initialized bottom-up atlas buffer."""
    return PixelBuffer.zeros(width, height, Origin.BOTTOM_LEFT, device=device)


def cell_rect(slot: int, tile_size: int, atlas_width: int) -> Tuple[int, int, int, int]:
    """(x, y, width, height) of a slot's cell in top-down image coordinates."""
    cells_per_row = atlas_width // tile_size
    return (slot % cells_per_row) * tile_size, (slot // cells_per_row) * tile_size, tile_size, tile_size


def _cell_storage_rows(atlas: PixelBuffer, y0: int, size: int) -> Tuple[int, int]:
    """Storage row range [lo, hi) covering image rows y0 .. y0 + size - 1."""
    if atlas.origin is Origin.BOTTOM_LEFT:
        lo = atlas.height - y0 - size
    else:
        lo = y0
    return lo, lo + size


def place_tile(atlas: PixelBuffer, tile: PixelBuffer, slot: int) -> None:
    """
    Copy a tile into its atlas cell, in place.

    Raises:
        IndexError: the slot's cell lies outside the atlas
    """
    size = tile.width
    x0, y0, _, _ = cell_rect(slot, size, atlas.width)

    if slot < 0 or x0 + size > atlas.width or y0 + size > atlas.height:
        raise IndexError(f"Slot {slot} is outside the {atlas.width}x{atlas.height} atlas")

    lo, hi = _cell_storage_rows(atlas, y0, size)
    rows = tile.top_down()
    if atlas.origin is Origin.BOTTOM_LEFT:
        # image row y0 + r -> storage row (H - 1) - (y0 + r)
        rows = torch.flip(rows, dims=[0])

    atlas.pixels[lo:hi, x0:x0 + size] = rows


def extract_tile(atlas: PixelBuffer, slot: int, tile_size: int) -> PixelBuffer:
    """Top-down copy of the tile stored at a slot."""
    x0, y0, _, _ = cell_rect(slot, tile_size, atlas.width)
    lo, hi = _cell_storage_rows(atlas, y0, tile_size)
    rows = atlas.pixels[lo:hi, x0:x0 + tile_size]
    if atlas.origin is Origin.BOTTOM_LEFT:
        rows = torch.flip(rows, dims=[0])
    return PixelBuffer(rows.clone(), Origin.TOP_LEFT)


def build_manifest(
    assignments: Dict[int, int],
    tile_size: int,
    atlas_width: int,
    atlas_height: int,
    image_name: Optional[str],
) -> Dict[str, Any]:
    """
    JSON-ready description of the atlas.

    Args:
        assignments: slot -> neighbor mask that produced it
        tile_size, atlas_width, atlas_height: atlas geometry
        image_name: atlas image file name, None if the atlas was not written

    Returns:
        Dict with geometry, the full mask -> slot lookup and one entry per slot.
        Rects are in top-down image coordinates of the written atlas image.
    """
    slots: List[Dict[str, Any]] = []
    for slot in sorted(assignments):
        x, y, w, h = cell_rect(slot, tile_size, atlas_width)
        slots.append({
            "slot": slot,
            "mask": assignments[slot],
            "rect": [x, y, w, h],
            "uv": [x / atlas_width, y / atlas_height, (x + w) / atlas_width, (y + h) / atlas_height],
        })

    return {
        "image": image_name,
        "tile_size": tile_size,
        "atlas_size": [atlas_width, atlas_height],
        "cells_per_row": atlas_width // tile_size,
        "origin": Origin.TOP_LEFT.value,
        "num_masks": NUM_MASKS,
        "mask_to_slot": mask_to_slot_table(),
        "slots": slots,
    }
