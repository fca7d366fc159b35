"""Controller de l'état de segmentation : image, inférence, sélection de label et masque."""

from __future__ import annotations

import logging
from typing import Callable, Optional

import numpy as np

from models.errors import RenderError, UnknownLabelError
from models.label_grid import LabelGrid
from models.view_state_model import SegmentationViewState
from services.hit_tester import HitTester
from services.inference_adapter import LoadedModel
from services.mask_cache import MaskCache
from services.mask_renderer import MaskRenderer
from services.segmentation_service import SegmentationService

Dispatch = Callable[[Callable[[], None]], None]


def _call_now(fn: Callable[[], None]) -> None:
    fn()


class SegmentationController:
    """
    Owns the label grid, the selection and the mask cache.

    Every method must run on the owner (UI) thread. Background results re-enter
    through ``dispatch`` and are tagged with the generation of the image they
    were computed for; results for an older image are dropped.
    """

    def __init__(
        self,
        *,
        view_state: SegmentationViewState,
        segmentation_service: Optional[SegmentationService] = None,
        mask_cache: Optional[MaskCache] = None,
        hit_tester: Optional[HitTester] = None,
        dispatch: Optional[Dispatch] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.view_state = view_state
        self.segmentation_service = segmentation_service
        self.mask_cache = mask_cache if mask_cache is not None else MaskCache(MaskRenderer())
        self.hit_tester = hit_tester if hit_tester is not None else HitTester()
        self.logger = logger or logging.getLogger(__name__)
        self._dispatch: Dispatch = dispatch if dispatch is not None else _call_now
        self._listeners: list[Callable[[SegmentationViewState], None]] = []
        self._model: Optional[LoadedModel] = None
        self._label_grid: Optional[LabelGrid] = None
        self._grid_generation = 0
        self._generation = 0
        self._model_request = 0

    # ------------------------------------------------------------------ #
    # Observers
    # ------------------------------------------------------------------ #
    def add_listener(self, callback: Callable[[SegmentationViewState], None]) -> None:
        """Register a callback invoked with the view state after each transition."""
        self._listeners.append(callback)

    def _notify(self) -> None:
        for callback in list(self._listeners):
            callback(self.view_state)

    # ------------------------------------------------------------------ #
    # Accessors
    # ------------------------------------------------------------------ #
    @property
    def label_grid(self) -> Optional[LabelGrid]:
        return self._label_grid

    @property
    def grid_is_current(self) -> bool:
        """True when the grid was computed for the image on display."""
        return self._label_grid is not None and self._grid_generation == self._generation

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def model(self) -> Optional[LoadedModel]:
        return self._model

    # ------------------------------------------------------------------ #
    # Model loading
    # ------------------------------------------------------------------ #
    def use_service(self, service: SegmentationService) -> None:
        """
        Remplace le service de segmentation (changement de modèle).

        Le modèle courant est oublié et les résultats en vol de l'ancien
        service sont ignorés à leur arrivée.
        """
        previous = self.segmentation_service
        self.segmentation_service = service
        self._model = None
        self._model_request += 1
        self._generation += 1
        self.view_state.set_model_loaded(False)
        self.view_state.set_busy(False)
        if previous is not None and previous is not service:
            previous.shutdown(wait=False)

    def load_model(self) -> None:
        """Lance le chargement du modèle en arrière-plan."""
        if self.segmentation_service is None:
            self.on_model_load_failed(RuntimeError("Aucun modèle configuré"))
            return
        self._model_request += 1
        request = self._model_request
        self.logger.info("Chargement du modèle de segmentation (requête %d)...", request)
        self.segmentation_service.load_model_async(
            on_success=lambda model: self._dispatch(lambda: self.on_model_loaded(model, request)),
            on_error=lambda exc: self._dispatch(lambda: self.on_model_load_failed(exc, request)),
        )

    def _is_stale_request(self, request: Optional[int]) -> bool:
        if request is not None and request != self._model_request:
            self.logger.info("Chargement de modèle obsolète ignoré (requête %d)", request)
            return True
        return False

    def on_model_loaded(self, model: LoadedModel, request: Optional[int] = None) -> None:
        """Enregistre le modèle ; relance l'inférence si une image attend."""
        if self._is_stale_request(request):
            return
        self._model = model
        self.view_state.set_model_loaded(True)
        self.logger.info("Modèle prêt | %d labels", len(model.labels))
        if self.view_state.image is not None:
            self._start_inference(self._generation)
        self._notify()

    def on_model_load_failed(self, exc: Exception, request: Optional[int] = None) -> None:
        if self._is_stale_request(request):
            return
        self._model = None
        self.view_state.set_model_loaded(False)
        self.view_state.set_busy(False)
        self.view_state.set_error(str(exc))
        self._notify()

    # ------------------------------------------------------------------ #
    # Image & inference
    # ------------------------------------------------------------------ #
    def on_image_selected(self, image: Optional[np.ndarray]) -> int:
        """
        Affiche la nouvelle image et lance l'inférence. Retourne la génération de la requête.

        La sélection, les labels prédits et le cache sont effacés. La grille
        précédente reste en mémoire mais ne répond plus aux sélections tant que
        le résultat de la nouvelle image n'est pas arrivé.
        """
        self._generation += 1
        self.view_state.clear_selection()
        self.view_state.set_predicted_labels([])
        self.mask_cache.invalidate_all()
        if image is None or np.asarray(image).size == 0:
            self.view_state.set_image(None)
            self.view_state.set_busy(False)
            self.view_state.set_error("Image vide")
            self._notify()
            return self._generation

        self.view_state.set_image(image)
        self.view_state.clear_error()
        if self._model is None:
            self.logger.info("Modèle non chargé: inférence différée (génération %d)", self._generation)
        else:
            self._start_inference(self._generation)
        self._notify()
        return self._generation

    def _start_inference(self, generation: int) -> None:
        image = self.view_state.image
        model = self._model
        if image is None or model is None:
            return
        self.view_state.set_busy(True)
        self.segmentation_service.run_inference(
            image=image,
            model=model,
            on_success=lambda grid: self._dispatch(lambda: self.on_inference_complete(generation, grid)),
            on_error=lambda exc: self._dispatch(lambda: self.on_inference_failed(generation, exc)),
        )

    def on_inference_complete(self, generation: int, grid: LabelGrid) -> bool:
        """Applique un résultat d'inférence ; retourne False s'il est obsolète."""
        if generation != self._generation:
            self.logger.info(
                "Résultat obsolète ignoré (génération %d, courante %d)", generation, self._generation
            )
            return False

        self._label_grid = grid
        self._grid_generation = generation
        self.mask_cache.reset(grid)
        self.view_state.clear_selection()
        self.view_state.set_predicted_labels(grid.unique_labels())
        self.view_state.set_busy(False)
        self.logger.info("Labels prédits: %s", self.view_state.predicted_labels)
        self._notify()
        return True

    def on_inference_failed(self, generation: int, exc: Exception) -> bool:
        """Publie l'erreur d'inférence ; la grille précédente n'est pas modifiée."""
        if generation != self._generation:
            self.logger.info("Erreur obsolète ignorée (génération %d): %s", generation, exc)
            return False
        self.view_state.set_busy(False)
        self.view_state.set_error(str(exc))
        self._notify()
        return True

    # ------------------------------------------------------------------ #
    # Selection
    # ------------------------------------------------------------------ #
    def on_label_selected(self, label: Optional[str]) -> None:
        """Sélectionne un label (ou efface la sélection) et met à jour le masque."""
        if label is None:
            self.view_state.clear_selection()
            self._notify()
            return
        if not self.grid_is_current:
            self.logger.info("Sélection ignorée: pas de grille pour l'image courante (%s)", label)
            self.view_state.clear_selection()
            self._notify()
            return

        try:
            overlay = self.mask_cache.get(label)
        except UnknownLabelError:
            self.logger.warning("Label inconnu pour la grille courante: %s", label)
            self.view_state.clear_selection()
        except RenderError as exc:
            self.logger.error("Échec du rendu du masque pour %s: %s", label, exc)
            self.view_state.set_selected_label(label)
            self.view_state.set_masked_image(None)
            self.view_state.set_error(f"Échec du rendu du masque: {exc}")
        else:
            self.view_state.set_selected_label(label)
            self.view_state.set_masked_image(overlay)
        self._notify()

    def select_label_at(self, nx: float, ny: float) -> Optional[str]:
        """Sélectionne le label sous une position normalisée (0..1) ; hors limites, la sélection est effacée."""
        grid = self._label_grid if self.grid_is_current else None
        label = self.hit_tester.label_at(grid, nx, ny)
        self.on_label_selected(label)
        return label
