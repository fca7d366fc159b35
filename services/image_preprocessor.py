"""Préparation d'une image source en buffer de pixels 32 bits à la taille attendue par le modèle."""

from __future__ import annotations

import logging
from typing import Tuple

import cv2
import numpy as np

from config.constants import DEFAULT_PIXEL_FORMAT, PIXEL_FORMATS, TARGET_SIZE
from models.errors import FormatError
from models.pixel_buffer import PixelBuffer

_RGBA = "RGBA"


class ImagePreprocessor:
    """Redimensionne (étirement non uniforme) puis rastérise une image RGB(A) ou niveaux de gris."""

    def __init__(
        self,
        target_size: Tuple[int, int] = TARGET_SIZE,
        pixel_format: str = DEFAULT_PIXEL_FORMAT,
    ) -> None:
        width, height = (int(v) for v in target_size)
        if width <= 0 or height <= 0:
            raise ValueError(f"Taille cible invalide: {target_size}")
        self.target_size = (width, height)
        self.pixel_format = str(pixel_format).upper()
        self.logger = logging.getLogger(__name__)

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def prepare(self, image: np.ndarray) -> PixelBuffer:
        """Redimensionne puis rastérise l'image dans le format de pixel configuré."""
        resized = self.resize(image)
        return self.render(resized)

    def resize(self, image: np.ndarray) -> np.ndarray:
        """
        Met l'image exactement à la taille cible.

        Les axes X et Y sont mis à l'échelle indépendamment (Wt/W0, Ht/H0) :
        le ratio d'aspect n'est pas conservé et il n'y a pas de bandes.
        """
        src = self._validate(image)
        width, height = self.target_size
        if src.shape[1] == width and src.shape[0] == height:
            return src.copy()
        try:
            resized = cv2.resize(src, (width, height), interpolation=cv2.INTER_LINEAR)
        except cv2.error as exc:
            raise FormatError(f"Redimensionnement impossible: {exc}") from exc
        if src.ndim == 3 and resized.ndim == 2:
            resized = resized[..., np.newaxis]
        return resized

    def render(self, image: np.ndarray) -> PixelBuffer:
        """Rastérise une image déjà à la taille cible dans un nouveau buffer 32 bits."""
        order = PIXEL_FORMATS.get(self.pixel_format)
        if order is None:
            raise FormatError(f"Format de pixel non supporté: {self.pixel_format}")

        src = self._validate(image)
        width, height = self.target_size
        if src.shape[0] != height or src.shape[1] != width:
            raise FormatError(
                f"Image de taille {src.shape[1]}x{src.shape[0]}, attendu {width}x{height}."
            )

        try:
            rgba = self._to_rgba(src)
            buffer = np.empty((height, width, 4), dtype=np.uint8)
            buffer[...] = rgba[..., [_RGBA.index(channel) for channel in order]]
        except (MemoryError, cv2.error) as exc:
            raise FormatError(f"Impossible d'allouer le buffer de pixels: {exc}") from exc

        self.logger.debug("Buffer %s rendu (%dx%d)", self.pixel_format, width, height)
        return PixelBuffer(data=buffer, pixel_format=self.pixel_format)

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #
    @staticmethod
    def _validate(image: np.ndarray) -> np.ndarray:
        if image is None:
            raise FormatError("Aucune image fournie.")
        arr = np.asarray(image)
        if arr.size == 0 or arr.ndim not in (2, 3):
            raise FormatError(f"Image vide ou de dimension invalide: shape={arr.shape}")
        if arr.dtype != np.uint8:
            raise FormatError(f"Type de pixel non supporté: {arr.dtype} (uint8 attendu)")
        if arr.ndim == 3 and arr.shape[2] not in (1, 3, 4):
            raise FormatError(f"Nombre de canaux non supporté: {arr.shape[2]}")
        # OpenCV refuse les vues à pas négatifs ou non contiguës
        return np.ascontiguousarray(arr)

    @staticmethod
    def _to_rgba(image: np.ndarray) -> np.ndarray:
        if image.ndim == 2 or image.shape[2] == 1:
            gray = image.reshape(image.shape[0], image.shape[1])
            return cv2.cvtColor(gray, cv2.COLOR_GRAY2RGBA)
        if image.shape[2] == 3:
            return cv2.cvtColor(image, cv2.COLOR_RGB2RGBA)
        return image
