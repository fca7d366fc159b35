from typing import Optional

import numpy as np

from models.overlay_data import MaskOverlay


class SegmentationViewState:
    """
    Stores the state published to the display layer: source image, overlay,
    predicted labels, selection, loading flags and the user-facing error message.
    Pure model: no UI, no Qt, no services.
    """

    def __init__(self) -> None:

        # --- Image & Overlay ---
        self.image: Optional[np.ndarray] = None
        self.masked_image: Optional[MaskOverlay] = None

        # --- Labels / Selection ---
        self.predicted_labels: list[str] = []
        self.selected_label: Optional[str] = None

        # --- Status ---
        self.is_model_loaded: bool = False
        self.is_busy: bool = False
        self.error_message: Optional[str] = None

    # ------------------------------------------------------------------ #
    # Image & overlay
    # ------------------------------------------------------------------ #
    def set_image(self, image: Optional[np.ndarray]) -> None:
        self.image = image

    def set_masked_image(self, overlay: Optional[MaskOverlay]) -> None:
        self.masked_image = overlay

    # ------------------------------------------------------------------ #
    # Labels & selection
    # ------------------------------------------------------------------ #
    def set_predicted_labels(self, labels) -> None:
        self.predicted_labels = [str(label) for label in labels]

    def set_selected_label(self, label: Optional[str]) -> None:
        self.selected_label = None if label is None else str(label)

    def clear_selection(self) -> None:
        """Drop the selected label and its overlay."""
        self.selected_label = None
        self.masked_image = None

    # ------------------------------------------------------------------ #
    # Status
    # ------------------------------------------------------------------ #
    def set_model_loaded(self, loaded: bool) -> None:
        self.is_model_loaded = bool(loaded)

    def set_busy(self, busy: bool) -> None:
        self.is_busy = bool(busy)

    def set_error(self, message: Optional[str]) -> None:
        self.error_message = message or None

    def clear_error(self) -> None:
        self.error_message = None
