"""Paramètres de l'application lus depuis l'environnement (et un éventuel fichier .env)."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

from config.constants import DEFAULT_PIXEL_FORMAT, PIXEL_FORMATS, TARGET_SIZE


@dataclass(frozen=True)
class AppSettings:
    """Settings required to load the model and run the viewer."""

    model_path: Optional[str] = None
    labels_path: Optional[str] = None
    target_size: Tuple[int, int] = TARGET_SIZE
    pixel_format: str = DEFAULT_PIXEL_FORMAT
    log_level: str = "INFO"
    log_file: Optional[str] = None


def parse_target_size(value: str) -> Tuple[int, int]:
    """
    Convertit une chaîne "LARGEURxHAUTEUR" en tuple d'entiers.

    Raises:
        ValueError: Si le format est invalide ou les dimensions non positives
    """
    parts = value.lower().replace(" ", "").split("x")
    if len(parts) != 2:
        raise ValueError(f"Taille cible invalide: {value!r} (attendu LARGEURxHAUTEUR)")
    try:
        width, height = int(parts[0]), int(parts[1])
    except ValueError as exc:
        raise ValueError(f"Taille cible invalide: {value!r}") from exc
    if width <= 0 or height <= 0:
        raise ValueError(f"Taille cible invalide: {value!r} (dimensions positives requises)")
    return width, height


def build_settings(env_file: Optional[str] = ".env") -> AppSettings:
    """Construit les paramètres depuis l'environnement courant."""
    if env_file:
        load_dotenv(env_file, override=False)

    raw_size = os.getenv("SEGTAP_TARGET_SIZE")
    target_size = parse_target_size(raw_size) if raw_size else TARGET_SIZE

    pixel_format = os.getenv("SEGTAP_PIXEL_FORMAT", DEFAULT_PIXEL_FORMAT).upper()
    if pixel_format not in PIXEL_FORMATS:
        raise ValueError(
            f"Format de pixel inconnu: {pixel_format} (valeurs possibles: {', '.join(PIXEL_FORMATS)})"
        )

    return AppSettings(
        model_path=os.getenv("SEGTAP_MODEL_PATH") or None,
        labels_path=os.getenv("SEGTAP_LABELS_PATH") or None,
        target_size=target_size,
        pixel_format=pixel_format,
        log_level=os.getenv("SEGTAP_LOG_LEVEL", "INFO"),
        log_file=os.getenv("SEGTAP_LOG_FILE") or None,
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return cached application settings."""
    return build_settings()
