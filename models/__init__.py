"""
Modèles pour l'architecture MVC de l'application.

- LabelTable / LabelGrid : sortie du modèle de segmentation (indices par pixel)
- PixelBuffer : image redimensionnée prête pour l'inférence
- MaskOverlay : masque de surbrillance rendu pour un label
- SegmentationViewState : état publié vers l'interface (sélection, erreurs)
"""

from .errors import (
    FormatError,
    GridIndexError,
    InferenceError,
    ModelLoadError,
    RenderError,
    SegmentationError,
    UnknownLabelError,
)
from .label_grid import LabelGrid, LabelTable
from .overlay_data import MaskOverlay
from .pixel_buffer import PixelBuffer
from .view_state_model import SegmentationViewState

__all__ = [
    'FormatError',
    'GridIndexError',
    'InferenceError',
    'LabelGrid',
    'LabelTable',
    'MaskOverlay',
    'ModelLoadError',
    'PixelBuffer',
    'RenderError',
    'SegmentationError',
    'SegmentationViewState',
    'UnknownLabelError',
]
