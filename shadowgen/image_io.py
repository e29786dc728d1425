"""
Image encoder for pixel buffers.

Writes RGBA buffers through Pillow. Bottom-up buffers are flipped on the way
out so every written file reads top-down.
"""
from datetime import datetime
from pathlib import Path
from typing import Optional, Union

import numpy as np
import torch
from PIL import Image

from .buffer import PixelBuffer


def _get_timestamp() -> str:
    """Get current timestamp string for filenames."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def _inject_timestamp(path: Path) -> Path:
    """Inject timestamp into filename: foo.png -> foo_20260204_041500.png"""
    ts = _get_timestamp()
    return path.parent / f"{path.stem}_{ts}{path.suffix}"


def is_supported_format(image_format: str) -> bool:
    """True if Pillow has a plugin registered for the file extension."""
    Image.init()
    return f".{image_format.lstrip('.').lower()}" in Image.registered_extensions()


def to_array(data: Union[PixelBuffer, torch.Tensor, np.ndarray]) -> np.ndarray:
    """PixelBuffer / tensor / array -> top-down (H, W, C) uint8 numpy array."""
    if isinstance(data, PixelBuffer):
        data = data.top_down()

    if isinstance(data, torch.Tensor):
        arr = data.detach().cpu().numpy()
    else:
        arr = np.asarray(data)

    if arr.dtype == np.float32 or arr.dtype == np.float64:
        arr = (arr * 255).clip(0, 255).astype(np.uint8)
    elif arr.dtype != np.uint8:
        arr = arr.astype(np.uint8)

    return np.ascontiguousarray(arr)


def save_image(
    data: Union[PixelBuffer, torch.Tensor, np.ndarray],
    path: Union[str, Path],
    timestamp: bool = False,
) -> Path:
    """
    Save an RGBA image. Format follows the file extension.

    Args:
        data: PixelBuffer, or (H, W, 4) tensor/array in top-down order
        path: Output path
        timestamp: If True, inject a timestamp before the extension

    Returns:
        Actual path where file was saved

    Raises:
        OSError, ValueError, KeyError: from Pillow when the file cannot be written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    if timestamp:
        path = _inject_timestamp(path)

    Image.fromarray(to_array(data)).save(path)
    print(f"Saved: {path}")
    return path


def load_image(path: Union[str, Path]) -> PixelBuffer:
    """Load an image file as a top-down RGBA PixelBuffer."""
    with Image.open(path) as img:
        arr = np.array(img.convert("RGBA"))
    return PixelBuffer(torch.from_numpy(arr))


class ImageEncoder:
    """
    Encoder collaborator for one generation run.

    Use as a context manager: Pillow's format plugins are registered and the
    output directory created once on entry. Failed writes are reported and
    counted, never raised, so a batch keeps going.

    Example:
        >>> with ImageEncoder("out", "png") as encoder:
        ...     encoder.encode(tile, "shadow_000")
    """

    def __init__(self, output_dir: Union[str, Path], image_format: str = "png",
                 timestamp: bool = False):
        self.output_dir = Path(output_dir)
        self.image_format = image_format.lstrip(".").lower()
        self.timestamp = timestamp
        self.written = []
        self.failed = []
        self._open = False

    def __enter__(self) -> "ImageEncoder":
        if not is_supported_format(self.image_format):
            raise ValueError(f"Pillow cannot write .{self.image_format} files")
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._open = True
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._open = False
        print(f"Encoder: {len(self.written)} written, {len(self.failed)} failed")

    def path_for(self, name: str) -> Path:
        return self.output_dir / f"{name}.{self.image_format}"

    def encode(self, buffer: PixelBuffer, name: str) -> Optional[Path]:
        """
        Write one buffer as <output_dir>/<name>.<format>.

        Returns:
            Written path, or None if encoding or writing failed
        """
        if not self._open:
            raise RuntimeError("ImageEncoder used outside its context")

        path = self.path_for(name)
        try:
            path = save_image(buffer, path, timestamp=self.timestamp)
        except (OSError, ValueError, KeyError) as e:
            print(f"ERROR: could not write {path}: {e}")
            self.failed.append(path)
            return None

        self.written.append(path)
        return path
