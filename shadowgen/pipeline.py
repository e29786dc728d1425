"""
Batch generation: resolve, render, pack and encode every neighbor mask.

One synchronous pass over masks 0..255. Nothing in the batch is fatal:
fallout and slot conflicts are reported, failed writes are skipped, and the
atlas is always written with whatever tiles were packed.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from .atlas import new_atlas, place_tile, build_manifest
from .buffer import PixelBuffer, Origin
from .config import ShadowConfig
from .debug import generate_debug_tile
from .falloff import ShadowTileRenderer
from .image_io import ImageEncoder
from .neighbors import NUM_MASKS, NeighborSet, Slot, TableReport, Unclassified, resolve_mask


ATLAS_NAME = "atlas"
MANIFEST_NAME = "atlas.json"


def tile_name(slot: int) -> str:
    return f"shadow_{slot:03d}"


def describe_mask(mask: int) -> str:
    """Human-readable flag list, e.g. 'n+w' or 'nw+se'."""
    neighbors = NeighborSet.from_mask(mask)
    names = [name for name, flag in zip(NeighborSet._fields, neighbors) if flag]
    return "+".join(names) or "-"


@dataclass
class GenerationResult:
    """
    What a generation run produced.

    Attributes:
        atlas: packed atlas buffer (bottom-up storage)
        table: slot assignments, conflicts, fallout and invalid masks of the run
        tile_paths: slot -> written tile file
        failed_tiles: slots whose tile file could not be written
        atlas_path: written atlas file, None if that write failed
        manifest_path: written manifest file, None if that write failed
    """
    atlas: PixelBuffer
    table: TableReport = field(default_factory=TableReport)
    tile_paths: Dict[int, Path] = field(default_factory=dict)
    failed_tiles: List[int] = field(default_factory=list)
    atlas_path: Optional[Path] = None
    manifest_path: Optional[Path] = None

    @property
    def assignments(self) -> Dict[int, int]:
        return self.table.assignments

    @property
    def conflicts(self) -> List[Tuple[int, int, int]]:
        return self.table.conflicts

    @property
    def fallout(self) -> List[int]:
        return self.table.fallout

    @property
    def invalid(self) -> List[int]:
        return self.table.invalid

    def summary(self) -> str:
        return (f"{len(self.assignments)} tiles packed, {len(self.invalid)} invalid, "
                f"{len(self.fallout)} fallout, {len(self.conflicts)} conflicts, "
                f"{len(self.failed_tiles)} failed writes")


def write_manifest(manifest: dict, path: Path) -> Optional[Path]:
    try:
        with open(path, "w") as f:
            json.dump(manifest, f, indent=2)
    except OSError as e:
        print(f"ERROR: could not write {path}: {e}")
        return None
    print(f"Saved: {path}")
    return path


def generate(
    config: ShadowConfig,
    debug: bool = False,
    write_tiles: bool = True,
    timestamp: bool = False,
) -> GenerationResult:
    """
    Generate every shadow tile, pack the atlas and write all outputs.

    Args:
        config: validated run configuration
        debug: fill tiles with flat palette colors instead of shadows
        write_tiles: also write one image per tile
        timestamp: inject a timestamp into every image filename

    Returns:
        GenerationResult with per-category outcomes
    """
    renderer = ShadowTileRenderer.from_config(config)
    tile = PixelBuffer.zeros(config.tile_size, config.tile_size, Origin.TOP_LEFT)
    result = GenerationResult(atlas=new_atlas(config.atlas_width, config.atlas_height))

    print("=" * 60)
    print("Shadow Tile Generation")
    print("=" * 60)
    print(f"  Tile: {config.tile_size}px, atlas: {config.atlas_width}x{config.atlas_height} "
          f"({config.cells_per_row} per row)")
    print(f"  Spread: side={config.spread_side} up={config.spread_up} down={config.spread_down}")
    print(f"  Output: {config.output_dir}{' (debug tiles)' if debug else ''}\n")

    with ImageEncoder(config.output_dir, config.image_format, timestamp=timestamp) as encoder:
        for mask in range(NUM_MASKS):
            slot_result = resolve_mask(mask)
            conflict = result.table.record(mask, slot_result)

            if isinstance(slot_result, Unclassified):
                print(f"WARNING: Fallout for mask {mask} ({describe_mask(mask)})")
                continue
            if not isinstance(slot_result, Slot):
                continue

            slot = slot_result.index
            if conflict is not None:
                print(f"WARNING: Conflict for slot {slot} (masks {conflict[1]} and {mask})")

            print(f"[{mask:3d}] slot {slot:2d} <- {describe_mask(mask)}")

            if debug:
                generate_debug_tile(slot, config.tile_size, out=tile)
            else:
                renderer.render(NeighborSet.from_mask(mask), out=tile)
            place_tile(result.atlas, tile, slot)

            if write_tiles:
                path = encoder.encode(tile, tile_name(slot))
                if path is None:
                    result.failed_tiles.append(slot)
                else:
                    result.tile_paths[slot] = path

        result.atlas_path = encoder.encode(result.atlas, ATLAS_NAME)

    image_name = result.atlas_path.name if result.atlas_path is not None else None
    manifest = build_manifest(result.assignments, config.tile_size,
                              config.atlas_width, config.atlas_height, image_name)
    result.manifest_path = write_manifest(manifest, Path(config.output_dir) / MANIFEST_NAME)

    print(f"\nDone: {result.summary()}")
    return result
