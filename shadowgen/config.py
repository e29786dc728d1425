"""
Run configuration.

All dimensions are fixed for a generation run: they are read once, validated
once, and never change while masks are being processed.
"""

import json
from dataclasses import dataclass, field, asdict, fields
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from .image_io import is_supported_format
from .neighbors import NUM_SLOTS


class ConfigError(ValueError):
    """Configuration that cannot produce a valid atlas."""


_INT_FIELDS = ("tile_size", "atlas_width", "atlas_height",
               "spread_side", "spread_up", "spread_down")


DEFAULT_CONFIG = {
    "tile_size": 128,
    "atlas_width": 1024,
    "atlas_height": 1024,
    "spread_side": 24,
    "spread_up": 16,
    "spread_down": 32,
    "shadow_color": (255, 255, 255),
    "output_dir": "shadow_output",
    "image_format": "png",
}


@dataclass
class ShadowConfig:
    """
    Shadow tile generation settings.

    Attributes:
        tile_size: side of one square tile, in texels
        atlas_width: atlas width in texels (multiple of tile_size)
        atlas_height: atlas height in texels (multiple of tile_size)
        spread_side: east/west shadow reach
        spread_up: north shadow reach
        spread_down: south shadow reach
        shadow_color: RGB written to every texel; only alpha varies
        output_dir: directory for tiles, atlas and manifest
        image_format: file extension handed to the encoder
    """
    tile_size: int = DEFAULT_CONFIG["tile_size"]
    atlas_width: int = DEFAULT_CONFIG["atlas_width"]
    atlas_height: int = DEFAULT_CONFIG["atlas_height"]
    spread_side: int = DEFAULT_CONFIG["spread_side"]
    spread_up: int = DEFAULT_CONFIG["spread_up"]
    spread_down: int = DEFAULT_CONFIG["spread_down"]
    shadow_color: Tuple[int, int, int] = field(default_factory=lambda: DEFAULT_CONFIG["shadow_color"])
    output_dir: Path = field(default_factory=lambda: Path(DEFAULT_CONFIG["output_dir"]))
    image_format: str = DEFAULT_CONFIG["image_format"]

    def __post_init__(self):
        self._check_types()
        if isinstance(self.output_dir, str):
            self.output_dir = Path(self.output_dir)
        self.shadow_color = tuple(self.shadow_color)
        self.image_format = self.image_format.lstrip(".").lower()
        self.validate()

    def _check_types(self) -> None:
        """Reject wrongly typed values (e.g. from JSON) before they are coerced."""
        for name in _INT_FIELDS:
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(f"{name} must be an integer, got {value!r}")

        color = self.shadow_color
        if (not isinstance(color, (list, tuple)) or len(color) != 3
                or any(isinstance(c, bool) or not isinstance(c, int) for c in color)):
            raise ConfigError(f"shadow_color must be three integers, got {color!r}")

        if not isinstance(self.output_dir, (str, Path)):
            raise ConfigError(f"output_dir must be a path, got {self.output_dir!r}")

        if not isinstance(self.image_format, str):
            raise ConfigError(f"image_format must be a string, got {self.image_format!r}")

    def validate(self) -> None:
        self._check_types()

        for name in _INT_FIELDS:
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be a positive integer, got {getattr(self, name)!r}")

        if self.atlas_width % self.tile_size or self.atlas_height % self.tile_size:
            raise ConfigError(
                f"Atlas {self.atlas_width}x{self.atlas_height} is not a whole number "
                f"of {self.tile_size}px tiles"
            )

        if self.capacity < NUM_SLOTS:
            raise ConfigError(
                f"Atlas holds {self.capacity} tiles, {NUM_SLOTS} slots are needed"
            )

        if len(self.shadow_color) != 3 or not all(0 <= c <= 255 for c in self.shadow_color):
            raise ConfigError(f"shadow_color must be three bytes, got {self.shadow_color!r}")

        if not self.image_format:
            raise ConfigError("image_format must not be empty")

        if not is_supported_format(self.image_format):
            raise ConfigError(f"Pillow cannot write .{self.image_format} files")

    @property
    def cells_per_row(self) -> int:
        return self.atlas_width // self.tile_size

    @property
    def cells_per_column(self) -> int:
        return self.atlas_height // self.tile_size

    @property
    def capacity(self) -> int:
        return self.cells_per_row * self.cells_per_column

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["output_dir"] = str(self.output_dir)
        d["shadow_color"] = list(self.shadow_color)
        return d

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ShadowConfig":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(d) - known)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(unknown)}")
        return cls(**d)

    @classmethod
    def from_json(cls, path: Union[str, Path]) -> "ShadowConfig":
        return load_config(path)


def load_config(path: Union[str, Path, None] = None, **overrides) -> ShadowConfig:
    """
    Load a JSON config file over the defaults.

    Args:
        path: JSON file with any subset of ShadowConfig fields, or None
        **overrides: values applied after the file (None values are ignored)

    Returns:
        Validated ShadowConfig
    """
    values: Dict[str, Any] = {}

    if path is not None:
        path = Path(path)
        try:
            with open(path) as f:
                loaded = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigError(f"{path}: {e}") from e
        if not isinstance(loaded, dict):
            raise ConfigError(f"{path}: expected a JSON object")
        values.update(loaded)

    values.update({k: v for k, v in overrides.items() if v is not None})
    return ShadowConfig.from_dict(values)
