"""
Soft-shadow falloff model and tile renderer.

Pure-torch: coordinate grids are registered buffers, every pass is a handful
of elementwise tensor ops over the (S, S) tile.

Coordinates: px[i, j] = j (column, grows east), py[i, j] = i (row, grows
south). Opposite edges reuse the same formula through flip(n) = (S - 1) - n.

Spreads are asymmetric. North shadows use spread_up, south shadows use
spread_down, east/west use spread_side.
"""

from typing import Optional, Tuple, Union

import torch
import torch.nn as nn

from .buffer import PixelBuffer, Origin
from .neighbors import NeighborSet


Number = Union[int, float, torch.Tensor]


def edge_falloff(distance: Number, spread: float) -> torch.Tensor:
    """
    Linear ramp away from an edge.

    Args:
        distance: orthogonal texel distance from the edge (0 at the edge)
        spread: distance at which the shadow reaches zero

    Returns:
        1 - distance/spread where distance < spread, else 0
    """
    d = torch.as_tensor(distance, dtype=torch.float32)
    return torch.where(d < spread, 1.0 - d / spread, torch.zeros_like(d))


def corner_falloff(x: Number, y: Number, spread_y: float, spread_x: float) -> torch.Tensor:
    """
    Radial falloff away from a corner.

    Proximities sX = 1 - edge_falloff(x, spread_x) and sY likewise are combined
    as a Euclidean norm, so iso-lines are quarter ellipses around the corner
    instead of the hyperbolas a product of two ramps would give.
    """
    x = torch.as_tensor(x, dtype=torch.float32)
    y = torch.as_tensor(y, dtype=torch.float32)

    sx = 1.0 - edge_falloff(x, spread_x)
    sy = 1.0 - edge_falloff(y, spread_y)
    shadow = 1.0 - torch.clamp(torch.sqrt(sx * sx + sy * sy), 0.0, 1.0)

    outside = (x > spread_x) | (y > spread_y)
    return torch.where(outside, torch.zeros_like(shadow), shadow)


def encode_alpha(shadow: torch.Tensor) -> torch.Tensor:
    """Shadow intensity in [0, 1] -> uint8 alpha."""
    return torch.round(torch.clamp(shadow, 0.0, 1.0) * 255.0).to(torch.uint8)


class _TileGrid(nn.Module):
    """Shared texel coordinate grid for one tile size."""

    def __init__(self, size: int):
        super().__init__()
        self.size = size
        coords = torch.arange(size, dtype=torch.float32)
        # meshgrid "xy": px[i, j] = coords[j], py[i, j] = coords[i]
        px, py = torch.meshgrid(coords, coords, indexing="xy")
        self.register_buffer("px", px)
        self.register_buffer("py", py)

    def flip(self, n: torch.Tensor) -> torch.Tensor:
        return (self.size - 1) - n


class SideShadow(_TileGrid):
    """Edge pass: per-edge ramps combined as a clamped Euclidean norm.

    Two open edges meeting at a tile corner therefore shadow it more than
    either edge alone.
    """

    def __init__(self, size: int, spread_side: float, spread_up: float, spread_down: float):
        super().__init__(size)
        self.spread_side = spread_side
        self.spread_up = spread_up
        self.spread_down = spread_down

    def forward(self, n: bool, e: bool, s: bool, w: bool) -> torch.Tensor:
        """Edge flags -> (S, S) shadow intensity."""
        px, py = self.px, self.py
        energy = torch.zeros_like(px)

        if w:
            energy = energy + edge_falloff(px, self.spread_side) ** 2
        if e:
            energy = energy + edge_falloff(self.flip(px), self.spread_side) ** 2
        if n:
            energy = energy + edge_falloff(py, self.spread_up) ** 2
        if s:
            energy = energy + edge_falloff(self.flip(py), self.spread_down) ** 2

        return torch.clamp(torch.sqrt(energy), max=1.0)


class CornerShadow(_TileGrid):
    """Corner pass: per-corner radial falloffs combined by maximum.

    Corner shadows do not compound; the strongest one wins at each texel.
    """

    def __init__(self, size: int, spread_side: float, spread_up: float, spread_down: float):
        super().__init__(size)
        self.spread_side = spread_side
        self.spread_up = spread_up
        self.spread_down = spread_down

    def forward(self, nw: bool, ne: bool, se: bool, sw: bool) -> torch.Tensor:
        """Corner flags -> (S, S) shadow intensity."""
        px, py = self.px, self.py
        fx, fy = self.flip(px), self.flip(py)
        shadow = torch.zeros_like(px)

        if nw:
            shadow = torch.maximum(shadow, corner_falloff(px, py, self.spread_up, self.spread_side))
        if ne:
            shadow = torch.maximum(shadow, corner_falloff(fx, py, self.spread_up, self.spread_side))
        if se:
            shadow = torch.maximum(shadow, corner_falloff(fx, fy, self.spread_down, self.spread_side))
        if sw:
            shadow = torch.maximum(shadow, corner_falloff(px, fy, self.spread_down, self.spread_side))

        return shadow


class ShadowTileRenderer(nn.Module):
    """Render one shadow tile for a neighbor configuration.

    The side and corner passes are merged with an explicit per-texel maximum,
    so a texel touched by both passes gets the stronger shadow, never a blend
    of their encoded bytes.
    """

    def __init__(
        self,
        size: int = 128,
        spread_side: float = 24,
        spread_up: float = 16,
        spread_down: float = 32,
        color: Tuple[int, int, int] = (255, 255, 255),
    ):
        super().__init__()
        self.size = size
        self.sides = SideShadow(size, spread_side, spread_up, spread_down)
        self.corners = CornerShadow(size, spread_side, spread_up, spread_down)
        self.register_buffer("color", torch.tensor(color, dtype=torch.uint8))

    @classmethod
    def from_config(cls, config) -> "ShadowTileRenderer":
        return cls(
            size=config.tile_size,
            spread_side=config.spread_side,
            spread_up=config.spread_up,
            spread_down=config.spread_down,
            color=tuple(config.shadow_color),
        )

    def forward(self, neighbors: NeighborSet) -> torch.Tensor:
        """NeighborSet -> (S, S) shadow intensity in [0, 1]."""
        side = self.sides(*neighbors.edges)
        corner = self.corners(*neighbors.corners)
        return torch.maximum(side, corner)

    @torch.no_grad()
    def render(self, neighbors: NeighborSet, out: Optional[PixelBuffer] = None) -> PixelBuffer:
        """
        Render into an RGBA tile buffer.

        Args:
            neighbors: decoded neighbor mask
            out: reusable top-down tile buffer; allocated when None

        Returns:
            The tile buffer: RGB = shadow color everywhere, A = shadow strength
        """
        if out is None:
            out = PixelBuffer.zeros(self.size, self.size, Origin.TOP_LEFT, device=self.color.device)
        elif out.origin is not Origin.TOP_LEFT:
            raise ValueError("Tiles are rendered top-down; got a bottom-left buffer")

        out.clear()
        out.pixels[..., :3] = self.color
        out.pixels[..., 3] = encode_alpha(self(neighbors))
        return out
