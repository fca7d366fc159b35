from PyQt6.QtWidgets import QApplication
import sys
import logging

from config.logging_config import configure_logging
from config.settings import get_settings
from controllers.master_controller import MasterController

if __name__ == "__main__":
    settings = get_settings()

    # Configuration du logging
    configure_logging(settings.log_level, settings.log_file)
    logging.getLogger(__name__).info(
        "Démarrage | modèle=%s | taille cible=%s | format=%s",
        settings.model_path,
        settings.target_size,
        settings.pixel_format,
    )

    app = QApplication(sys.argv)

    # Créer le contrôleur principal
    master_controller = MasterController(settings)

    # Démarrer l'application
    master_controller.run()

    sys.exit(app.exec())
