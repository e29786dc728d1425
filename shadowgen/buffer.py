"""
RGBA pixel buffers with an explicit storage origin.

Tiles are generated top-down (row 0 is the top scanline). The atlas is stored
bottom-up (row 0 is the last scanline of the image). The origin flag records
which convention a buffer uses so that packing and encoding never have to
guess.
"""

from dataclasses import dataclass
from enum import Enum

import torch


class Origin(Enum):
    TOP_LEFT = "top_left"
    BOTTOM_LEFT = "bottom_left"


@dataclass
class PixelBuffer:
    """
    (H, W, 4) uint8 RGBA tensor plus its storage origin.

    Attributes:
        pixels: (height, width, 4) uint8 tensor
        origin: which image scanline is stored in row 0
    """
    pixels: torch.Tensor
    origin: Origin = Origin.TOP_LEFT

    def __post_init__(self):
        if self.pixels.dim() != 3 or self.pixels.shape[2] != 4:
            raise ValueError(f"Expected (H, W, 4) pixels, got {tuple(self.pixels.shape)}")
        if self.pixels.dtype != torch.uint8:
            raise ValueError(f"Expected uint8 pixels, got {self.pixels.dtype}")

    @classmethod
    def zeros(cls, width: int, height: int, origin: Origin = Origin.TOP_LEFT,
              device: torch.device = None) -> "PixelBuffer":
        return cls(torch.zeros(height, width, 4, dtype=torch.uint8, device=device), origin)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def clear(self) -> None:
        self.pixels.zero_()

    def top_down(self) -> torch.Tensor:
        """Pixels in image order (row 0 = top scanline), regardless of origin."""
        if self.origin is Origin.BOTTOM_LEFT:
            return torch.flip(self.pixels, dims=[0])
        return self.pixels

    def storage_row(self, image_row: int) -> int:
        """Storage row holding the given top-down image row."""
        if self.origin is Origin.BOTTOM_LEFT:
            return (self.height - 1) - image_row
        return image_row
