from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class MaskOverlay:
    """Highlight overlay for one label, rendered at label-grid resolution."""

    label: str
    rgba: np.ndarray  # uint8 (H,W,4), RGBA

    @property
    def width(self) -> int:
        return int(self.rgba.shape[1])

    @property
    def height(self) -> int:
        return int(self.rgba.shape[0])
