"""Side panel: predicted labels, photo button, hints and status messages."""

from __future__ import annotations

from typing import Optional, Sequence

from PyQt6.QtCore import Qt, pyqtSignal
from PyQt6.QtWidgets import QFrame, QLabel, QListWidget, QListWidgetItem, QPushButton, QVBoxLayout


class LabelsPanel(QFrame):
    """Lists predicted labels and reports user selections."""

    label_selected = pyqtSignal(str)
    open_requested = pyqtSignal()

    def __init__(self, parent=None) -> None:
        super().__init__(parent)
        self._updating = False

        self._hint = QLabel("Choisissez une image pour lancer l'analyse")
        self._hint.setWordWrap(True)
        self._list = QListWidget()
        self._list.itemClicked.connect(self._on_item_clicked)
        self._open_button = QPushButton("Photos")
        self._open_button.clicked.connect(self.open_requested.emit)
        self._status = QLabel("")
        self._status.setWordWrap(True)
        self._error = QLabel("")
        self._error.setWordWrap(True)
        self._error.setStyleSheet("color: #e06060;")

        layout = QVBoxLayout(self)
        layout.addWidget(self._hint)
        layout.addWidget(self._list, stretch=1)
        layout.addWidget(self._open_button)
        layout.addWidget(self._status)
        layout.addWidget(self._error)
        self.setMinimumWidth(200)

    def set_labels(self, labels: Sequence[str], selected: Optional[str]) -> None:
        """Replace the list content and highlight the selected label."""
        self._updating = True
        try:
            current = [self._list.item(i).text() for i in range(self._list.count())]
            if current != list(labels):
                self._list.clear()
                for label in labels:
                    self._list.addItem(QListWidgetItem(label))
            self._list.clearSelection()
            if selected is not None:
                matches = self._list.findItems(selected, Qt.MatchFlag.MatchExactly)
                if matches:
                    matches[0].setSelected(True)
                    self._list.setCurrentItem(matches[0])
        finally:
            self._updating = False

    def set_hint(self, text: str) -> None:
        self._hint.setText(text)

    def set_status(self, text: str) -> None:
        self._status.setText(text)

    def set_error(self, message: Optional[str]) -> None:
        self._error.setText(f"Erreur : {message}" if message else "")

    def _on_item_clicked(self, item: QListWidgetItem) -> None:
        if self._updating:
            return
        self.label_selected.emit(item.text())
