from __future__ import annotations

import logging
from typing import Any, Callable, Optional

import numpy as np

from models.errors import FormatError, InferenceError, ModelLoadError, SegmentationError
from models.label_grid import LabelGrid
from services.image_preprocessor import ImagePreprocessor
from services.inference_adapter import InferenceAdapter, LoadedModel
from utils.async_worker import ThreadedAsyncWorker


class SegmentationService:
    """Wraps the model adapter: preprocessing, inference and label-grid construction, off the UI thread."""

    def __init__(
        self,
        adapter: InferenceAdapter,
        *,
        preprocessor: Optional[ImagePreprocessor] = None,
        worker: Any = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self.adapter = adapter
        self.preprocessor = preprocessor or ImagePreprocessor()
        self.worker = worker if worker is not None else ThreadedAsyncWorker(name="segmentation-inference")
        self.logger = logger or logging.getLogger(__name__)

    # ------------------------------------------------------------------ #
    # Synchronous API
    # ------------------------------------------------------------------ #
    def load_model(self) -> LoadedModel:
        """Charge le modèle et sa table de labels."""
        try:
            model = self.adapter.load()
        except ModelLoadError:
            raise
        except Exception as exc:
            raise ModelLoadError(f"Le modèle n'a pas pu être chargé: {exc}") from exc
        if len(model.labels) == 0:
            raise ModelLoadError("Le modèle ne déclare aucun label.")
        return model

    def predict(self, image: np.ndarray, model: LoadedModel) -> LabelGrid:
        """Prépare l'image, exécute le modèle et construit la grille de labels."""
        pixel_buffer = self.preprocessor.prepare(image)
        try:
            output = self.adapter.infer(pixel_buffer, model.handle)
        except (InferenceError, FormatError):
            raise
        except Exception as exc:
            raise InferenceError(f"Échec de l'inférence: {exc}") from exc

        try:
            grid = LabelGrid(output.indices, model.labels, shape=output.shape)
        except ValueError as exc:
            raise InferenceError(f"Résultat du modèle invalide: {exc}") from exc

        self.logger.info(
            "Inférence terminée | grille=%s | labels=%s", grid.shape, grid.unique_labels()
        )
        return grid

    # ------------------------------------------------------------------ #
    # Asynchronous API (callbacks run on the worker thread)
    # ------------------------------------------------------------------ #
    def load_model_async(
        self,
        *,
        on_success: Callable[[LoadedModel], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        """Charge le modèle en arrière-plan."""
        self.worker.enqueue_task(self.load_model, callback=self._route(on_success, on_error, "chargement du modèle"))

    def run_inference(
        self,
        *,
        image: np.ndarray,
        model: LoadedModel,
        on_success: Callable[[LabelGrid], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        """Exécute l'inférence en arrière-plan sur l'image fournie."""
        self.worker.enqueue_task(
            self.predict,
            callback=self._route(on_success, on_error, "inférence"),
            args=(image, model),
        )

    def shutdown(self, wait: bool = True) -> None:
        """Arrête le worker ; sans attente, la tâche en cours se termine en arrière-plan."""
        stop = getattr(self.worker, "stop", None)
        if callable(stop):
            stop(wait=wait)

    def _route(
        self,
        on_success: Callable[[Any], None],
        on_error: Callable[[Exception], None],
        what: str,
    ) -> Callable[[Any], None]:
        def _handle_result(res: Any) -> None:
            if isinstance(res, Exception):
                if isinstance(res, SegmentationError):
                    self.logger.error("Erreur lors de %s: %s", what, res)
                else:
                    self.logger.error("Erreur inattendue lors de %s", what, exc_info=res)
                on_error(res)
                return
            on_success(res)

        return _handle_result
