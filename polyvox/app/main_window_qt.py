from __future__ import annotations

from polyvox.contracts import LANGUAGE_NAMES

try:
    from PyQt6 import QtCore, QtWidgets

    _PYQT_IMPORT_ERROR: ModuleNotFoundError | None = None
except ModuleNotFoundError as e:  # pragma: no cover - import guard path
    QtCore = None  # type: ignore[assignment]
    QtWidgets = None  # type: ignore[assignment]
    _PYQT_IMPORT_ERROR = e


if QtWidgets is not None:
    class MainWindow(QtWidgets.QMainWindow):
        record_requested = QtCore.pyqtSignal()
        language_requested = QtCore.pyqtSignal(str)
        play_requested = QtCore.pyqtSignal()

        def __init__(self) -> None:
            super().__init__()
            self.setWindowTitle("Polyglot AI Translator")
            self.resize(560, 720)
            self._rendering = False

            root = QtWidgets.QWidget(self)
            self.setCentralWidget(root)
            lay = QtWidgets.QVBoxLayout(root)
            lay.setContentsMargins(22, 20, 22, 20)
            lay.setSpacing(12)

            title = QtWidgets.QLabel("Polyglot AI Translator", root)
            title.setObjectName("title")
            lay.addWidget(title)

            self.btn_record = QtWidgets.QPushButton("Record", root)
            self.btn_record.setObjectName("primary")
            lay.addWidget(self.btn_record)

            self.status_label = QtWidgets.QLabel("", root)
            self.status_label.setObjectName("status")
            self.status_label.setWordWrap(True)
            lay.addWidget(self.status_label)

            lang_row = QtWidgets.QHBoxLayout()
            lang_row.addWidget(QtWidgets.QLabel("Translate to:", root))
            self.language_combo = QtWidgets.QComboBox(root)
            for code, name in LANGUAGE_NAMES.items():
                self.language_combo.addItem(name, code)
            lang_row.addWidget(self.language_combo, 1)
            lay.addLayout(lang_row)

            self.transcript_box = self._card(lay, "1. Source Transcription (English):")
            self.corrected_box = self._card(lay, "2. Corrected English (Proofreading):")
            self.alternatives_box = self._card(lay, "Alternative Phrasing (Rewrite):")
            self.notes_box = self._card(lay, "3. Tone & Cultural Insight:")
            self.translation_title = QtWidgets.QLabel("", root)
            self.translation_title.setObjectName("subhead")
            lay.addWidget(self.translation_title)
            self.translation_box = self._card(lay, None)

            self.btn_play = QtWidgets.QPushButton("Play Translation", root)
            lay.addWidget(self.btn_play)
            lay.addStretch(1)

            self.btn_record.clicked.connect(self.record_requested.emit)
            self.btn_play.clicked.connect(self.play_requested.emit)
            self.language_combo.currentIndexChanged.connect(self._on_language_index)

            self.setStyleSheet(
                """
                QMainWindow { background: #f3f4f6; }
                QLabel#title { font-size: 24px; font-weight: 800; color: #1f2937; }
                QLabel#status { font-size: 13px; color: #4f46e5; }
                QLabel#subhead { font-weight: 700; color: #1f2937; }
                QPushButton { padding: 8px 14px; border-radius: 8px; font-weight: 600; }
                QPushButton#primary { background: #4f46e5; color: white; font-size: 18px; padding: 14px; }
                QPushButton:disabled { background: #d1d5db; color: #6b7280; }
                """
            )

        def _card(self, lay, heading: str | None):
            if heading:
                label = QtWidgets.QLabel(heading, self)
                label.setObjectName("subhead")
                lay.addWidget(label)
            body = QtWidgets.QLabel("", self)
            body.setWordWrap(True)
            body.setTextInteractionFlags(QtCore.Qt.TextInteractionFlag.TextSelectableByMouse)
            lay.addWidget(body)
            return body

        def _on_language_index(self, index: int) -> None:
            if self._rendering:
                return
            code = self.language_combo.itemData(index)
            if code:
                self.language_requested.emit(str(code))

        def render(self, view) -> None:
            self._rendering = True
            try:
                self.btn_record.setText("Stop" if view.recording else "Record")
                self.btn_record.setEnabled(view.recording or not (view.busy or view.finalizing))
                self.status_label.setText(view.status_text)
                color = "#ef4444" if view.is_error else ("#d97706" if view.busy else "#4f46e5")
                self.status_label.setStyleSheet(f"color: {color};")
                idx = self.language_combo.findData(view.language)
                if idx >= 0:
                    self.language_combo.setCurrentIndex(idx)
                self.language_combo.setEnabled(view.can_change_language)
                self.transcript_box.setText(view.transcript or "[waiting for transcription...]")
                self.corrected_box.setText(view.corrected_english or "[AI corrected text will appear here]")
                self.alternatives_box.setText("\n".join(f"• {alt}" for alt in view.alternatives))
                self.notes_box.setText(view.cultural_notes or "[Tone and cultural notes will appear here]")
                self.translation_title.setText(f"4. Final AI Translation ({LANGUAGE_NAMES[view.language]}):")
                self.translation_box.setText(view.translation or "[Translation will appear here]")
                self.btn_play.setEnabled(view.can_play)
            finally:
                self._rendering = False
else:
    class MainWindow:
        def __init__(self) -> None:
            raise ModuleNotFoundError(
                "PyQt6 is required for MainWindow. Install with: python -m pip install PyQt6"
            ) from _PYQT_IMPORT_ERROR
