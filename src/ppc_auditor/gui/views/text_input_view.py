"""
Text input view used by the upload, ad copy and landing page steps.

This module contains the TextInputView widget: a multi-line editor with an
optional file upload button and a submit button that stays disabled while
the input is empty or an analysis call is running.
"""

import logging
from pathlib import Path
from typing import Optional, Union

from PyQt6.QtCore import pyqtSignal, pyqtSlot
from PyQt6.QtWidgets import (
    QFileDialog,
    QHBoxLayout,
    QLabel,
    QMessageBox,
    QPlainTextEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from ...utils.input_files import INPUT_FILE_FILTER, read_text_input

logger = logging.getLogger(__name__)


class TextInputView(QWidget):
    """
    Widget for entering text by typing or by loading a file.

    Loading a file submits its content straight away.
    """

    # Signals
    submitted = pyqtSignal(str)

    def __init__(
        self,
        title: str,
        placeholder: str,
        submit_text: str,
        allow_upload: bool = True,
        parent: Optional[QWidget] = None,
    ):
        """
        Initialize the input view.

        Args:
            title: Heading shown above the editor
            placeholder: Placeholder text for the empty editor
            submit_text: Caption of the submit button
            allow_upload: Whether to offer the "Or Upload CSV/TXT" button
            parent: Parent widget
        """
        super().__init__(parent)
        self._busy = False
        self._init_ui(title, placeholder, submit_text, allow_upload)
        self._update_submit_enabled()

    def _init_ui(self, title: str, placeholder: str, submit_text: str, allow_upload: bool) -> None:
        layout = QVBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)

        self.title_label = QLabel(f"<h2>{title}</h2>")
        layout.addWidget(self.title_label)

        self.editor = QPlainTextEdit()
        self.editor.setPlaceholderText(placeholder)
        self.editor.textChanged.connect(self._update_submit_enabled)
        layout.addWidget(self.editor, 1)

        button_layout = QHBoxLayout()
        self.upload_button = QPushButton("Or Upload CSV/TXT")
        self.upload_button.clicked.connect(self._on_upload_clicked)
        self.upload_button.setVisible(allow_upload)
        button_layout.addWidget(self.upload_button)
        button_layout.addStretch(1)

        self.submit_button = QPushButton(submit_text)
        self.submit_button.setDefault(True)
        self.submit_button.clicked.connect(self._on_submit_clicked)
        button_layout.addWidget(self.submit_button)
        layout.addLayout(button_layout)

    @property
    def text(self) -> str:
        return self.editor.toPlainText()

    def set_text(self, text: str) -> None:
        self.editor.setPlainText(text)

    def clear(self) -> None:
        self.editor.clear()

    def set_busy(self, busy: bool) -> None:
        self._busy = busy
        self.editor.setReadOnly(busy)
        self.upload_button.setEnabled(not busy)
        self._update_submit_enabled()

    @pyqtSlot()
    def _update_submit_enabled(self) -> None:
        self.submit_button.setEnabled(bool(self.text.strip()) and not self._busy)

    @pyqtSlot()
    def _on_submit_clicked(self) -> None:
        if self.text.strip() and not self._busy:
            self.submitted.emit(self.text)

    @pyqtSlot()
    def _on_upload_clicked(self) -> None:
        file_path, _ = QFileDialog.getOpenFileName(self, "Open File", "", INPUT_FILE_FILTER)
        if file_path:
            self.load_file(file_path)

    def load_file(self, path: Union[str, Path]) -> bool:
        """
        Load a file into the editor and submit it.

        Returns:
            True if the file was read
        """
        try:
            content = read_text_input(path)
        except OSError as e:
            logger.error(f"Could not read {path}: {e}")
            QMessageBox.warning(self, "Upload Failed", f"Could not read {path}:\n{e}")
            return False

        self.set_text(content)
        logger.info(f"Loaded {path} into input")
        self._on_submit_clicked()
        return True
