# === services/image_loader.py ===
import os
import logging

import cv2
import numpy as np

from models.errors import FormatError

IMAGE_EXTENSIONS = (".png", ".jpg", ".jpeg", ".bmp", ".tiff", ".tif", ".webp")


def load_image(image_path: str) -> np.ndarray:
    """
    Charge une image depuis le disque et la convertit en RGB(A).

    Args:
        image_path: Chemin du fichier image

    Returns:
        np.ndarray: Image uint8 (H,W), (H,W,3) RGB ou (H,W,4) RGBA

    Raises:
        FileNotFoundError: Si le fichier n'existe pas
        FormatError: Si le fichier ne peut pas être décodé
    """
    logger = logging.getLogger(__name__)
    logger.info(f"Chargement de l'image: {image_path}")

    if not os.path.isfile(image_path):
        error_msg = f"Le fichier n'existe pas: {image_path}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    # np.fromfile + imdecode pour supporter les chemins non ASCII
    raw = np.fromfile(image_path, dtype=np.uint8)
    image = cv2.imdecode(raw, cv2.IMREAD_UNCHANGED) if raw.size else None
    if image is None:
        error_msg = f"Impossible de décoder l'image: {image_path}"
        logger.error(error_msg)
        raise FormatError(error_msg)

    if image.dtype != np.uint8:
        # PNG/TIFF 16 bits -> 8 bits
        image = cv2.convertScaleAbs(image, alpha=255.0 / 65535.0)

    if image.ndim == 3 and image.shape[2] == 3:
        image = cv2.cvtColor(image, cv2.COLOR_BGR2RGB)
    elif image.ndim == 3 and image.shape[2] == 4:
        image = cv2.cvtColor(image, cv2.COLOR_BGRA2RGBA)

    logger.info(f"Image chargée: {image.shape[1]}x{image.shape[0]}")
    return image
