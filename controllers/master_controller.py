import logging
from typing import Callable, Optional

from PyQt6.QtCore import QObject, Qt, pyqtSignal, pyqtSlot
from PyQt6.QtWidgets import QFileDialog, QMainWindow, QMessageBox, QSplitter

from config.settings import AppSettings
from controllers.segmentation_controller import SegmentationController
from models.view_state_model import SegmentationViewState
from services.image_loader import IMAGE_EXTENSIONS, load_image
from services.image_preprocessor import ImagePreprocessor
from services.inference_adapter import InferenceAdapter, OnnxSegmentationAdapter
from services.overlay_export import OverlayExport
from services.overlay_service import OverlayService
from services.segmentation_service import SegmentationService
from views.labels_panel import LabelsPanel
from views.segmentation_view import SegmentationView


class _MainThreadDispatcher(QObject):
    """Re-runs callables emitted from worker threads on the GUI thread."""

    invoke = pyqtSignal(object)

    def __init__(self) -> None:
        super().__init__()
        self.invoke.connect(self._run, Qt.ConnectionType.QueuedConnection)

    def __call__(self, fn: Callable[[], None]) -> None:
        self.invoke.emit(fn)

    @pyqtSlot(object)
    def _run(self, fn: Callable[[], None]) -> None:
        fn()


class MasterController:
    """Coordinates the models, services and the main window without embedding business logic."""

    def __init__(
        self,
        settings: AppSettings,
        main_window: Optional[QMainWindow] = None,
        adapter: Optional[InferenceAdapter] = None,
    ) -> None:
        self.logger = logging.getLogger(__name__)
        self.settings = settings
        self.main_window = main_window or QMainWindow()
        self.main_window.setWindowTitle("Segmentation")

        self.view_state = SegmentationViewState()
        self.overlay_service = OverlayService()
        self.overlay_export = OverlayExport(overlay_service=self.overlay_service)
        self.preprocessor = ImagePreprocessor(
            target_size=settings.target_size,
            pixel_format=settings.pixel_format,
        )
        self.dispatcher = _MainThreadDispatcher()
        self._adapter = adapter
        self.segmentation_controller = SegmentationController(
            view_state=self.view_state,
            dispatch=self.dispatcher,
            logger=self.logger,
        )
        self.segmentation_controller.add_listener(self._render_state)

        self.segmentation_view = SegmentationView(overlay_service=self.overlay_service)
        self.labels_panel = LabelsPanel()
        splitter = QSplitter(Qt.Orientation.Horizontal)
        splitter.addWidget(self.segmentation_view)
        splitter.addWidget(self.labels_panel)
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        self.main_window.setCentralWidget(splitter)

        self._build_menu()
        self._connect_signals()

    # ------------------------------------------------------------------ #
    # Wiring
    # ------------------------------------------------------------------ #
    def _build_menu(self) -> None:
        menu = self.main_window.menuBar().addMenu("Fichier")
        menu.addAction("Ouvrir une image...", self._on_open_image)
        menu.addAction("Choisir un modèle...", self._on_choose_model)
        menu.addAction("Exporter l'overlay...", self._on_export_overlay)
        menu.addSeparator()
        menu.addAction("Quitter", self._on_quit)

    def _connect_signals(self) -> None:
        self.labels_panel.open_requested.connect(self._on_open_image)
        self.labels_panel.label_selected.connect(self._on_label_selected)
        self.segmentation_view.tapped.connect(self._on_tapped)

    def _load_model(self, adapter: InferenceAdapter) -> None:
        service = SegmentationService(adapter, preprocessor=self.preprocessor, logger=self.logger)
        self.segmentation_controller.use_service(service)
        self.labels_panel.set_status("Chargement du modèle...")
        self.segmentation_controller.load_model()
        # Ré-applique une image déjà choisie avec le nouveau modèle
        if self.view_state.image is not None:
            self.segmentation_controller.on_image_selected(self.view_state.image)

    # ------------------------------------------------------------------ #
    # Handlers
    # ------------------------------------------------------------------ #
    def _on_open_image(self) -> None:
        patterns = " ".join(f"*{ext}" for ext in IMAGE_EXTENSIONS)
        file_path, _ = QFileDialog.getOpenFileName(
            self.main_window,
            "Choisir une image",
            "",
            f"Images ({patterns});;Tous les fichiers (*)",
        )
        if not file_path:
            return
        try:
            image = load_image(file_path)
        except Exception as exc:
            self.view_state.set_error(f"Impossible de charger l'image: {exc}")
            self._render_state(self.view_state)
            return
        self.segmentation_view.set_image(image)
        self.segmentation_controller.on_image_selected(image)

    def _on_choose_model(self) -> None:
        model_path, _ = QFileDialog.getOpenFileName(
            self.main_window,
            "Choisir le modèle de segmentation",
            "",
            "Modèles ONNX (*.onnx);;Tous les fichiers (*)",
        )
        if not model_path:
            return
        self._load_model(OnnxSegmentationAdapter(model_path, labels_path=self.settings.labels_path))

    def _on_export_overlay(self) -> None:
        overlay = self.view_state.masked_image
        if overlay is None:
            QMessageBox.warning(self.main_window, "Overlay", "Sélectionnez un label avant d'exporter.")
            return
        save_path, _ = QFileDialog.getSaveFileName(
            self.main_window,
            "Exporter l'overlay (.png)",
            f"{overlay.label}.png",
            "PNG (*.png)",
        )
        if not save_path:
            return
        try:
            saved = self.overlay_export.save_png(overlay, save_path, image=self.view_state.image)
            self.main_window.statusBar().showMessage(f"Overlay exporté: {saved}", 5000)
        except Exception as exc:
            QMessageBox.critical(self.main_window, "Erreur export", str(exc))

    def _on_label_selected(self, label: str) -> None:
        self.segmentation_controller.on_label_selected(label)

    def _on_tapped(self, nx: float, ny: float) -> None:
        self.segmentation_controller.select_label_at(nx, ny)

    def _on_quit(self) -> None:
        self.main_window.close()

    # ------------------------------------------------------------------ #
    # State -> views
    # ------------------------------------------------------------------ #
    def _render_state(self, state: SegmentationViewState) -> None:
        self.segmentation_view.set_overlay(state.masked_image)
        self.labels_panel.set_labels(state.predicted_labels, state.selected_label)
        self.labels_panel.set_error(state.error_message)

        if state.image is None:
            self.labels_panel.set_hint("Choisissez une image pour lancer l'analyse")
        elif state.predicted_labels:
            self.labels_panel.set_hint("Touchez l'image pour voir les segments prédits")
        else:
            self.labels_panel.set_hint("")

        if not state.is_model_loaded and not state.error_message:
            self.labels_panel.set_status("Chargement du modèle...")
        elif state.is_busy:
            self.labels_panel.set_status("Analyse en cours...")
        else:
            self.labels_panel.set_status("")

    def run(self) -> None:
        adapter = self._adapter
        if adapter is None and self.settings.model_path:
            adapter = OnnxSegmentationAdapter(
                self.settings.model_path,
                labels_path=self.settings.labels_path,
            )
        if adapter is not None:
            self._load_model(adapter)
        else:
            self.logger.warning("Aucun modèle configuré (SEGTAP_MODEL_PATH)")
            self.labels_panel.set_error("Aucun modèle configuré. Utilisez Fichier > Choisir un modèle.")
        self.main_window.resize(1000, 700)
        self.main_window.show()
