"""Raster image adapter used as the pipeline's pixel source."""

from pathlib import Path
from typing import Union

import numpy as np
import structlog
from PIL import Image

logger = structlog.get_logger()


def round_half_up(value):
    """Round to the nearest integer with halves going up (not to even)."""
    return np.floor(np.asarray(value, dtype=np.float64) + 0.5).astype(np.int64)


class RasterImage:
    """
    Read-only view over an image array.

    Pixels are addressed as ``(x, y)`` = (column, row). Brightness follows
    HSB brightness, the max of the RGB channels, in 0..255.
    """

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.ndim == 3:
            if pixels.shape[2] not in (3, 4):
                raise ValueError(f"Expected 3 or 4 channels, got {pixels.shape[2]}")
            brightness = pixels[:, :, :3].max(axis=2)
        elif pixels.ndim == 2:
            brightness = pixels
        else:
            raise ValueError(f"Expected a 2D or 3D array, got shape {pixels.shape}")

        if brightness.shape[0] == 0 or brightness.shape[1] == 0:
            raise ValueError("Image must contain at least one pixel")

        self._brightness = np.clip(brightness.astype(np.float64), 0, 255)
        self._brightness.setflags(write=False)

    @classmethod
    def from_array(cls, pixels: np.ndarray) -> "RasterImage":
        return cls(pixels)

    @classmethod
    def open(cls, path: Union[str, Path]) -> "RasterImage":
        """Load an image file through Pillow."""
        with Image.open(path) as im:
            pixels = np.array(im.convert("RGB"), dtype=np.uint8)
        logger.info("Loaded image", path=str(path), width=pixels.shape[1], height=pixels.shape[0])
        return cls(pixels)

    @property
    def width(self) -> int:
        return self._brightness.shape[1]

    @property
    def height(self) -> int:
        return self._brightness.shape[0]

    @property
    def brightness_map(self) -> np.ndarray:
        """(height, width) brightness array, read-only."""
        return self._brightness

    def brightness(self, x: int, y: int) -> float:
        return float(self._brightness[y, x])

    def brightness_at(self, x: float, y: float) -> float:
        """Brightness at a real-valued position, rounded and clamped to the image."""
        col = min(max(int(round_half_up(x)), 0), self.width - 1)
        row = min(max(int(round_half_up(y)), 0), self.height - 1)
        return float(self._brightness[row, col])
