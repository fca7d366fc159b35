"""Image view showing the source photo composited with the selected-label mask."""

from __future__ import annotations

from typing import Any, Optional, Tuple

import numpy as np
from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtGui import QImage, QMouseEvent, QPixmap
from PyQt6.QtWidgets import QFrame, QGraphicsPixmapItem, QGraphicsScene, QGraphicsView, QVBoxLayout

from models.overlay_data import MaskOverlay
from services.overlay_service import OverlayService


class SegmentationView(QFrame):
    """Displays the image and emits normalized (0..1) tap positions."""

    tapped = pyqtSignal(float, float)

    def __init__(self, parent=None, overlay_service: Optional[OverlayService] = None) -> None:
        super().__init__(parent)
        self._overlay_service = overlay_service or OverlayService()
        self._image: Optional[np.ndarray] = None
        self._overlay: Optional[MaskOverlay] = None

        self._scene = QGraphicsScene(self)
        self._view = QGraphicsView(self._scene)
        self._view.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self._view.setVerticalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self._view.viewport().installEventFilter(self)

        self._image_item = QGraphicsPixmapItem()
        self._image_item.setTransformationMode(Qt.TransformationMode.SmoothTransformation)
        self._scene.addItem(self._image_item)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.addWidget(self._view)

        self.setMinimumSize(320, 320)
        self.setStyleSheet("background-color: #202020; color: #bbbbbb;")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def set_image(self, image: Optional[np.ndarray]) -> None:
        """Assign the source image (RGB/RGBA/gray uint8) and drop any overlay."""
        self._image = None if image is None else np.asarray(image)
        self._overlay = None
        self._refresh()

    def set_overlay(self, overlay: Optional[MaskOverlay]) -> None:
        """Composite the mask overlay over the current image (None removes it)."""
        if overlay is self._overlay:
            return
        self._overlay = overlay
        self._refresh()

    # ------------------------------------------------------------------ #
    # Event handling
    # ------------------------------------------------------------------ #
    def eventFilter(self, obj: Any, event) -> bool:
        if obj is self._view.viewport() and isinstance(event, QMouseEvent):
            if event.type() == QMouseEvent.Type.MouseButtonPress:
                return self._handle_mouse_press(event)
        return super().eventFilter(obj, event)

    def resizeEvent(self, event) -> None:
        super().resizeEvent(event)
        self._fit()

    def _handle_mouse_press(self, event: QMouseEvent) -> bool:
        if event.button() != Qt.MouseButton.LeftButton:
            return False
        normalized = self._normalized_from_event(event)
        if normalized is None:
            return False
        self.tapped.emit(*normalized)
        return True

    # ------------------------------------------------------------------ #
    # Rendering helpers
    # ------------------------------------------------------------------ #
    def _refresh(self) -> None:
        if self._image is None:
            self._image_item.setPixmap(QPixmap())
            return
        rgb = self._overlay_service.composite(self._image, self._overlay)
        pixmap = self._rgb_to_pixmap(rgb)
        self._image_item.setPixmap(pixmap)
        self._scene.setSceneRect(self._image_item.boundingRect())
        self._fit()

    def _fit(self) -> None:
        if self._image is None:
            return
        self._view.fitInView(self._image_item, Qt.AspectRatioMode.KeepAspectRatio)

    @staticmethod
    def _rgb_to_pixmap(rgb: np.ndarray) -> QPixmap:
        data = np.ascontiguousarray(rgb, dtype=np.uint8)
        if data.size == 0:
            return QPixmap()
        h, w, _ = data.shape
        qimage = QImage(data.data, w, h, w * 3, QImage.Format.Format_RGB888)
        return QPixmap.fromImage(qimage.copy())

    def _normalized_from_event(self, event: QMouseEvent) -> Optional[Tuple[float, float]]:
        if self._image is None:
            return None
        scene_pos = self._view.mapToScene(event.position().toPoint())
        height, width = self._image.shape[:2]
        # Clamp to [0, 1] like the display layer is expected to
        nx = min(max(scene_pos.x() / width, 0.0), 1.0)
        ny = min(max(scene_pos.y() / height, 0.0), 1.0)
        return (nx, ny)
