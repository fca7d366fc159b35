"""Cache des overlays rendus, valable pour un seul résultat d'inférence."""

from __future__ import annotations

import logging
from typing import Callable, Dict, Optional

from models.errors import UnknownLabelError
from models.label_grid import LabelGrid
from models.overlay_data import MaskOverlay

Renderer = Callable[[LabelGrid, str], MaskOverlay]


class MaskCache:
    """Mémorise un overlay par nom de label pour la grille courante."""

    def __init__(self, renderer: Renderer) -> None:
        self._renderer = renderer
        self._grid: Optional[LabelGrid] = None
        self._entries: Dict[str, MaskOverlay] = {}
        self.logger = logging.getLogger(__name__)

    @property
    def grid(self) -> Optional[LabelGrid]:
        return self._grid

    def reset(self, grid: Optional[LabelGrid]) -> None:
        """Associe une nouvelle grille et vide le cache."""
        self._grid = grid
        self.invalidate_all()

    def get(self, label: str) -> MaskOverlay:
        """
        Retourne l'overlay du label, en le rendant au premier appel.

        Raises:
            UnknownLabelError: Si aucune grille n'est chargée ou si le label est inconnu
        """
        cached = self._entries.get(label)
        if cached is not None:
            self.logger.debug("Masque en cache: %s", label)
            return cached
        if self._grid is None:
            raise UnknownLabelError(label)
        if label not in self._grid.label_table:
            raise UnknownLabelError(label)

        overlay = self._renderer(self._grid, label)
        self._entries[label] = overlay
        return overlay

    def invalidate_all(self) -> None:
        if self._entries:
            self.logger.debug("Cache de masques vidé (%d entrées)", len(self._entries))
        self._entries.clear()

    def __contains__(self, label: object) -> bool:
        return label in self._entries

    def __len__(self) -> int:
        return len(self._entries)
