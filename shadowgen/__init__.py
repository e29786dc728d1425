"""
Shadowgen: soft-shadow tiles for tile-based map geometry.

Generates one shadow tile per valid neighbor configuration of a map cell and
packs them into a single texture atlas.

Main API:
    - resolve / resolve_mask: neighbor configuration -> atlas slot
    - ShadowTileRenderer: neighbor configuration -> RGBA shadow tile
    - place_tile: tile -> atlas cell (bottom-up atlas storage)
    - generate: full batch over all 256 masks

Example:
    >>> from shadowgen import ShadowConfig, generate
    >>> result = generate(ShadowConfig(output_dir="shadows"))
    >>> print(result.summary())
"""

from .neighbors import (
    Neighbor, NeighborSet,
    Invalid, Unclassified, Slot, SlotResult, INVALID, UNCLASSIFIED,
    resolve, resolve_mask, verify_table, mask_to_slot_table, TableReport,
    NUM_MASKS, NUM_SLOTS,
)
from .falloff import (
    edge_falloff, corner_falloff, encode_alpha,
    SideShadow, CornerShadow, ShadowTileRenderer,
)
from .buffer import PixelBuffer, Origin
from .atlas import new_atlas, place_tile, extract_tile, cell_rect, build_manifest
from .debug import generate_debug_tile, DEBUG_PALETTE
from .config import ShadowConfig, ConfigError, DEFAULT_CONFIG, load_config
from .image_io import ImageEncoder, save_image, load_image
from .pipeline import generate, GenerationResult

__all__ = [
    # Resolver
    'Neighbor', 'NeighborSet',
    'Invalid', 'Unclassified', 'Slot', 'SlotResult', 'INVALID', 'UNCLASSIFIED',
    'resolve', 'resolve_mask', 'verify_table', 'mask_to_slot_table', 'TableReport',
    'NUM_MASKS', 'NUM_SLOTS',
    # Falloff / rendering
    'edge_falloff', 'corner_falloff', 'encode_alpha',
    'SideShadow', 'CornerShadow', 'ShadowTileRenderer',
    # Buffers and atlas
    'PixelBuffer', 'Origin',
    'new_atlas', 'place_tile', 'extract_tile', 'cell_rect', 'build_manifest',
    'generate_debug_tile', 'DEBUG_PALETTE',
    # Config
    'ShadowConfig', 'ConfigError', 'DEFAULT_CONFIG', 'load_config',
    # I/O and batch
    'ImageEncoder', 'save_image', 'load_image',
    'generate', 'GenerationResult',
]
