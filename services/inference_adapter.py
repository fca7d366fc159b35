"""Contrat du modèle de segmentation et implémentation ONNX Runtime."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence, Tuple

import numpy as np

from config.constants import PIXEL_FORMATS
from models.errors import InferenceError, ModelLoadError
from models.label_grid import LabelTable
from models.pixel_buffer import PixelBuffer

# Clé de métadonnées des modèles convertis depuis Core ML
PREVIEW_PARAMS_KEY = "com.apple.coreml.model.preview.params"


@dataclass(frozen=True)
class LoadedModel:
    labels: LabelTable
    handle: Any


@dataclass(frozen=True)
class InferenceOutput:
    indices: np.ndarray
    shape: Tuple[int, int]  # (H, W)


class InferenceAdapter(ABC):
    """Black-box segmentation model: load once, then infer on fixed-size buffers."""

    @abstractmethod
    def load(self) -> LoadedModel:
        """Load the model and its label table. Raises ModelLoadError."""

    @abstractmethod
    def infer(self, pixel_buffer: PixelBuffer, handle: Any) -> InferenceOutput:
        """Run the model on one buffer. Raises InferenceError."""


def parse_labels_metadata(metadata: Mapping[str, str]) -> list[str]:
    """
    Extrait la liste des labels des métadonnées du modèle.

    Accepte une clé ``labels`` (liste JSON) ou la clé de prévisualisation Core ML
    (objet JSON contenant ``labels``). Retourne une liste vide si rien n'est trouvé.
    """
    raw = metadata.get("labels")
    if raw:
        try:
            labels = json.loads(raw)
        except json.JSONDecodeError:
            labels = [item.strip() for item in raw.split(",") if item.strip()]
        if isinstance(labels, list):
            return [str(label) for label in labels]

    params = metadata.get(PREVIEW_PARAMS_KEY)
    if params:
        try:
            parsed = json.loads(params)
        except json.JSONDecodeError:
            return []
        labels = parsed.get("labels") if isinstance(parsed, dict) else None
        if isinstance(labels, list):
            return [str(label) for label in labels]
    return []


def read_labels_file(path: str | Path) -> list[str]:
    """Lit un fichier de labels : liste JSON ou un nom par ligne."""
    file_path = Path(path)
    if not file_path.exists():
        raise ModelLoadError(f"Fichier de labels introuvable: {file_path}")
    text = file_path.read_text(encoding="utf-8")
    stripped = text.strip()
    if stripped.startswith("["):
        try:
            labels = json.loads(stripped)
        except json.JSONDecodeError as exc:
            raise ModelLoadError(f"Fichier de labels JSON invalide: {file_path}") from exc
        return [str(label) for label in labels]
    return [line.strip() for line in text.splitlines() if line.strip()]


def buffer_to_tensor(pixel_buffer: PixelBuffer, *, layout: str = "NCHW", dtype: Any = np.float32) -> np.ndarray:
    """Convertit un PixelBuffer 32 bits en tenseur RGB (1,3,H,W) ou (1,H,W,3)."""
    order = PIXEL_FORMATS.get(pixel_buffer.pixel_format)
    if order is None:
        raise InferenceError(f"Format de pixel non supporté: {pixel_buffer.pixel_format}")
    rgb = pixel_buffer.data[..., [order.index(channel) for channel in "RGB"]]
    if np.issubdtype(np.dtype(dtype), np.floating):
        tensor = rgb.astype(dtype) / 255.0
    else:
        tensor = rgb.astype(dtype)
    if layout.upper() == "NCHW":
        tensor = np.transpose(tensor, (2, 0, 1))
    return np.ascontiguousarray(tensor[np.newaxis, ...])


def logits_to_indices(
    output: np.ndarray,
    num_classes: Optional[int] = None,
    channels_last: bool = False,
) -> np.ndarray:
    """
    Réduit la sortie brute du modèle à une grille (H,W) d'indices.

    Une sortie 3D est lue comme des scores par classe, (C,H,W) ou (H,W,C).
    L'axe des classes est celui dont la taille vaut ``num_classes`` ; à défaut,
    ``channels_last`` tranche (la disposition de l'entrée du modèle).
    """
    arr = np.asarray(output)
    # Retirer la dimension batch (1, ...)
    while arr.ndim > 3 and arr.shape[0] == 1:
        arr = arr[0]
    if arr.ndim == 3:
        axis = -1 if _classes_last(arr.shape, num_classes, channels_last) else 0
        if arr.shape[axis] > 1:
            return np.argmax(arr, axis=axis).astype(np.int32)
        # une seule "classe" : ce sont déjà des indices
        arr = np.take(arr, 0, axis=axis)
    if arr.ndim != 2:
        raise InferenceError(f"Sortie du modèle inattendue: shape={np.asarray(output).shape}")
    if np.issubdtype(arr.dtype, np.floating):
        arr = np.rint(arr)
    return arr.astype(np.int32)


def _classes_last(shape: Sequence[int], num_classes: Optional[int], default: bool) -> bool:
    if num_classes is not None:
        if shape[-1] == num_classes and shape[0] != num_classes:
            return True
        if shape[0] == num_classes and shape[-1] != num_classes:
            return False
    return default


class OnnxSegmentationAdapter(InferenceAdapter):
    """Exécute un modèle de segmentation sémantique ONNX via onnxruntime."""

    def __init__(
        self,
        model_path: str | Path,
        *,
        labels_path: Optional[str | Path] = None,
        providers: Optional[Sequence[str]] = None,
    ) -> None:
        self.model_path = Path(model_path)
        self.labels_path = Path(labels_path) if labels_path else None
        self.providers = list(providers) if providers else None
        self.num_classes: Optional[int] = None
        self.logger = logging.getLogger(__name__)

    def load(self) -> LoadedModel:
        if not self.model_path.is_file():
            raise ModelLoadError(f"Modèle introuvable: {self.model_path}")

        # Import lourd différé au moment du chargement
        try:
            import onnxruntime as ort
        except ImportError as exc:  # pragma: no cover - runtime dependency
            raise ModelLoadError("La dépendance onnxruntime est requise pour charger le modèle.") from exc

        providers = self.providers or list(ort.get_available_providers())
        try:
            session = ort.InferenceSession(str(self.model_path), providers=providers)
        except Exception as exc:
            raise ModelLoadError(f"Le modèle n'a pas pu être chargé: {exc}") from exc

        if self.labels_path is not None:
            labels = read_labels_file(self.labels_path)
        else:
            metadata = session.get_modelmeta().custom_metadata_map or {}
            labels = parse_labels_metadata(metadata)
        if not labels:
            raise ModelLoadError(f"Aucun label trouvé pour le modèle: {self.model_path}")
        self.num_classes = len(labels)

        self.logger.info(
            "Modèle chargé: %s | labels=%d | providers=%s", self.model_path.name, len(labels), providers
        )
        return LoadedModel(labels=LabelTable(labels), handle=session)

    def infer(self, pixel_buffer: PixelBuffer, handle: Any) -> InferenceOutput:
        try:
            model_input = handle.get_inputs()[0]
            layout = "NHWC" if _is_channels_last(model_input.shape) else "NCHW"
            dtype = np.uint8 if "uint8" in str(model_input.type) else np.float32
            tensor = buffer_to_tensor(pixel_buffer, layout=layout, dtype=dtype)
            outputs = handle.run(None, {model_input.name: tensor})
        except InferenceError:
            raise
        except Exception as exc:
            raise InferenceError(f"Échec de l'inférence: {exc}") from exc

        indices = logits_to_indices(
            outputs[0], num_classes=self.num_classes, channels_last=(layout == "NHWC")
        )
        return InferenceOutput(indices=indices, shape=(int(indices.shape[0]), int(indices.shape[1])))


def _is_channels_last(shape: Sequence[Any]) -> bool:
    return len(shape) == 4 and shape[-1] == 3 and shape[1] != 3
