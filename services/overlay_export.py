"""Service d'export des overlays vers un fichier PNG."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import cv2
import numpy as np

from models.overlay_data import MaskOverlay
from services.overlay_service import OverlayService


class OverlayExport:
    """Sauvegarde l'overlay seul (RGBA) ou composé sur l'image source (RGB) en PNG."""

    def __init__(self, overlay_service: Optional[OverlayService] = None) -> None:
        self.logger = logging.getLogger(__name__)
        self.overlay_service = overlay_service or OverlayService()

    def save_png(
        self,
        overlay: MaskOverlay,
        destination: str,
        image: Optional[np.ndarray] = None,
    ) -> str:
        """
        Sauvegarde l'overlay dans un fichier .png et retourne le chemin final.

        Args:
            overlay: overlay rendu pour le label sélectionné.
            destination: chemin cible (l'extension .png est ajoutée si absente).
            image: image source (optionnel). Si fournie, l'overlay est composé dessus
                à la résolution de l'image, sinon l'overlay est écrit à la résolution de la grille.
        """
        if overlay is None:
            raise ValueError("Aucun overlay à sauvegarder.")

        path = Path(destination)
        if path.suffix.lower() != ".png":
            path = path.with_suffix(".png")
        path.parent.mkdir(parents=True, exist_ok=True)

        if image is not None:
            rgb = self.overlay_service.composite(image, overlay)
            bgr = cv2.cvtColor(rgb, cv2.COLOR_RGB2BGR)
        else:
            bgr = cv2.cvtColor(np.asarray(overlay.rgba, dtype=np.uint8), cv2.COLOR_RGBA2BGRA)

        ok, encoded = cv2.imencode(".png", bgr)
        if not ok:
            raise ValueError(f"Encodage PNG impossible pour: {path}")
        encoded.tofile(str(path))
        self.logger.info("Overlay sauvegardé: %s (label=%s)", path, overlay.label)
        return str(path)
