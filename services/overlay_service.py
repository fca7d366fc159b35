from __future__ import annotations

from typing import Optional, Tuple

import cv2
import numpy as np

from config.constants import OVERLAY_OPACITY
from models.overlay_data import MaskOverlay


class OverlayService:
    """Prépare l'overlay pour l'affichage : mise à l'échelle et composition avec l'image source."""

    def upscale(self, overlay: MaskOverlay, size: Tuple[int, int]) -> np.ndarray:
        """Agrandit l'overlay (plus proche voisin) à ``size`` = (largeur, hauteur)."""
        width, height = (int(v) for v in size)
        if width <= 0 or height <= 0:
            raise ValueError(f"Taille d'affichage invalide: {size}")
        rgba = np.asarray(overlay.rgba, dtype=np.uint8)
        if rgba.shape[1] == width and rgba.shape[0] == height:
            return rgba.copy()
        return cv2.resize(rgba, (width, height), interpolation=cv2.INTER_NEAREST)

    def composite(
        self,
        image: np.ndarray,
        overlay: Optional[MaskOverlay],
        opacity: float = OVERLAY_OPACITY,
    ) -> np.ndarray:
        """
        Compose l'overlay sur l'image en mode "darken" et retourne une image RGB uint8.

        Sans overlay, retourne l'image convertie en RGB.
        """
        rgb = self._to_rgb(image)
        if overlay is None:
            return rgb

        height, width = rgb.shape[:2]
        rgba = self.upscale(overlay, (width, height)).astype(np.float32)
        alpha = (rgba[..., 3:4] / 255.0) * float(np.clip(opacity, 0.0, 1.0))
        base = rgb.astype(np.float32)
        darkened = np.minimum(base, rgba[..., :3])
        out = base * (1.0 - alpha) + darkened * alpha
        return np.clip(np.rint(out), 0, 255).astype(np.uint8)

    @staticmethod
    def _to_rgb(image: np.ndarray) -> np.ndarray:
        arr = np.asarray(image, dtype=np.uint8)
        if arr.ndim == 2 or (arr.ndim == 3 and arr.shape[2] == 1):
            return cv2.cvtColor(arr.reshape(arr.shape[0], arr.shape[1]), cv2.COLOR_GRAY2RGB)
        if arr.ndim == 3 and arr.shape[2] == 4:
            return cv2.cvtColor(arr, cv2.COLOR_RGBA2RGB)
        if arr.ndim == 3 and arr.shape[2] == 3:
            return arr.copy()
        raise ValueError(f"Image attendue (H,W), (H,W,3) ou (H,W,4), reçu {arr.shape}.")
