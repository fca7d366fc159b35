from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class PixelBuffer:
    """Fixed-size 32-bit pixel buffer fed to the model (shape (H, W, 4), uint8)."""

    data: np.ndarray
    pixel_format: str

    @property
    def width(self) -> int:
        return int(self.data.shape[1])

    @property
    def height(self) -> int:
        return int(self.data.shape[0])

    @property
    def size(self) -> tuple[int, int]:
        """(width, height) of the buffer."""
        return (self.width, self.height)
