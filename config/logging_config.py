"""
Configuration du logging de la visionneuse de segmentation.
"""
import logging
from pathlib import Path
from typing import Optional

from config.constants import LOG_FORMAT

# Bibliothèques trop bavardes au niveau DEBUG
_QUIET_LOGGERS = ("PIL", "onnxruntime", "PyQt6")


def configure_logging(log_level: str = 'INFO', log_file: Optional[str] = None) -> logging.Logger:
    """
    Installe les handlers du logger racine et le retourne.

    Args:
        log_level: DEBUG, INFO, WARNING ou ERROR (INFO si inconnu)
        log_file: fichier de log UTF-8 en plus de la console (optionnel)
    """
    level = getattr(logging, str(log_level).upper(), logging.INFO)
    formatter = logging.Formatter(LOG_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_path, encoding='utf-8'))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return logging.getLogger()
