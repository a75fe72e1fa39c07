"""
Density modes.

A mode decides which pixels attract more generating points and which colours
a host should use to draw the result.
"""

from enum import Enum
from typing import Union

import numpy as np

# Signed 32-bit ARGB, as used by the sketch host
BLACK = -16777216
WHITE = -1


class Mode(str, Enum):
    """Closed set of density strategies."""

    # Dark pixels are dense: density 1 at brightness 0, 0 at brightness 255
    WHITE_ON_BLACK = "white_on_black"
    # Bright pixels are dense: density 0 at brightness 0, 1 at brightness 255
    BLACK_ON_WHITE = "black_on_white"

    def density(self, brightness: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
        """Map brightness in [0, 255] to a normalized density in [0, 1]."""
        level = np.asarray(brightness, dtype=np.float64) / 255.0
        if self is Mode.WHITE_ON_BLACK:
            level = 1.0 - level
        if level.ndim == 0:
            return float(level)
        return level

    @property
    def background(self) -> int:
        return BLACK if self is Mode.WHITE_ON_BLACK else WHITE

    @property
    def foreground(self) -> int:
        return WHITE if self is Mode.WHITE_ON_BLACK else BLACK
