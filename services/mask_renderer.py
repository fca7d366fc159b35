"""Rendu du masque de surbrillance d'un label à la résolution de la grille."""

from __future__ import annotations

import logging
from typing import Tuple

import numpy as np

from config.constants import DIM_COLOR_RGBA, HIGHLIGHT_COLOR_RGBA
from models.errors import RenderError
from models.label_grid import LabelGrid
from models.overlay_data import MaskOverlay


class MaskRenderer:
    """Construit un overlay RGBA : label sélectionné opaque, reste en teinte sombre."""

    def __init__(
        self,
        highlight_color: Tuple[int, int, int, int] = HIGHLIGHT_COLOR_RGBA,
        dim_color: Tuple[int, int, int, int] = DIM_COLOR_RGBA,
    ) -> None:
        self.highlight_color = tuple(int(c) for c in highlight_color)
        self.dim_color = tuple(int(c) for c in dim_color)
        self.logger = logging.getLogger(__name__)

    def __call__(self, grid: LabelGrid, label: str) -> MaskOverlay:
        return self.render(grid, label)

    def render(self, grid: LabelGrid, label: str) -> MaskOverlay:
        """
        Retourne un MaskOverlay (H,W,4) pour ``label``.

        Un label absent de la grille donne un overlay entièrement sombre.

        Raises:
            RenderError: Si le buffer de l'overlay ne peut pas être alloué
        """
        try:
            selected = grid.mask_for(label)
            palette = np.array([self.dim_color, self.highlight_color], dtype=np.uint8)
            rgba = palette[selected.astype(np.uint8)]
        except MemoryError as exc:
            raise RenderError(f"Impossible d'allouer l'overlay {grid.width}x{grid.height}") from exc

        rgba = np.ascontiguousarray(rgba)
        rgba.setflags(write=False)
        self.logger.debug(
            "Masque rendu | label=%s | pixels=%d/%d", label, int(selected.sum()), selected.size
        )
        return MaskOverlay(label=str(label), rgba=rgba)
