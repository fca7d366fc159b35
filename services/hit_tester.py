"""Conversion d'une position normalisée (tap) en cellule de la grille de labels."""

from __future__ import annotations

import math
from typing import Optional, Tuple

from models.label_grid import LabelGrid


def round_half_up(value: float) -> int:
    """Arrondi au plus proche, les demis vers le haut (0.5 -> 1)."""
    return int(math.floor(value + 0.5))


class HitTester:
    """
    Maps a normalized position (0..1 on each axis of the displayed image) to a grid cell.

    X drives the column over the grid width, Y drives the row over the grid height.
    Positions outside [0, 1] (or not finite) are declined with ``None``.
    """

    def cell_at(self, grid: Optional[LabelGrid], nx: float, ny: float) -> Optional[Tuple[int, int]]:
        """Return ``(row, col)`` for the position, or None if it is declined."""
        if grid is None:
            return None
        try:
            x, y = float(nx), float(ny)
        except (TypeError, ValueError):
            return None
        if not (math.isfinite(x) and math.isfinite(y)):
            return None
        if not (0.0 <= x <= 1.0 and 0.0 <= y <= 1.0):
            return None

        height, width = grid.shape
        col = round_half_up(x * (width - 1))
        row = round_half_up(y * (height - 1))
        return (row, col)

    def label_at(self, grid: Optional[LabelGrid], nx: float, ny: float) -> Optional[str]:
        """Return the label name under the position, or None if it is declined."""
        cell = self.cell_at(grid, nx, ny)
        if cell is None:
            return None
        row, col = cell
        return grid.label_at(row, col)
