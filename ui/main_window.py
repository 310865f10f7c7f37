# ui/main_window.py
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout,
    QFileDialog, QMessageBox, QPushButton, QLabel,
)
from PySide6.QtCore import Qt, QTimer, Slot
import logging

from app.settings import EngineSettings
from app.state import SessionStatus
from core.threads import TextLoadWorker, Workers
from services.session import SessionController
from ui.session_summary import SessionSummary
from ui.widgets.typing_surface import TypingSurfaceWidget
from utils.file_handler import load_default_text

log = logging.getLogger(__name__)


class MainWindow(QMainWindow):
    def __init__(self, settings: EngineSettings):
        super().__init__()
        self.setWindowTitle("Typemaster")
        self.resize(1200, 720)

        self.controller = SessionController(settings, parent=self)
        self.controller.statusChanged.connect(self._on_status_changed)
        self.controller.statusUpdated.connect(self._show_status)
        self.controller.clock.elapsedChanged.connect(self._on_elapsed)
        self.controller.reportReady.connect(self._on_report)
        self.controller.message.connect(self._on_message)

        root = QWidget(self)
        root_v = QVBoxLayout(root)
        root_v.setContentsMargins(16, 40, 16, 16)
        root_v.setSpacing(24)
        self._build_top_bar(root_v)

        self.lblStatus = QLabel("Press any key in the text to start.", self)
        self.lblStatus.setObjectName("lblStatus")
        self.lblStatus.setAlignment(Qt.AlignCenter)
        root_v.addWidget(self.lblStatus)

        self.surface = TypingSurfaceWidget(self)
        root_v.addWidget(self.surface, 1)
        self.setCentralWidget(root)

        self._start_session(load_default_text())

    # ---------------- Top Bar ----------------
    def _build_top_bar(self, parent_layout):
        bar = QWidget(self)
        bar.setObjectName("TopBar")
        h = QHBoxLayout(bar)
        h.setContentsMargins(14, 16, 14, 16)
        h.setSpacing(10)

        btn_load = QPushButton("Load text…", bar)
        btn_load.clicked.connect(self._on_load)
        btn_new = QPushButton("New session", bar)
        btn_new.clicked.connect(lambda: self._start_session(load_default_text()))
        btn_words = QPushButton("Practice words", bar)
        btn_words.clicked.connect(self._practice_words)
        btn_trans = QPushButton("Practice transitions", bar)
        btn_trans.clicked.connect(self._practice_transitions)
        for b in (btn_load, btn_new, btn_words, btn_trans):
            b.setObjectName("TopBtn")
            b.setFocusPolicy(Qt.NoFocus)   # keep keyboard focus on the surface
            h.addWidget(b)

        h.addStretch(1)

        self.btnPause = QPushButton("Pause", bar)
        self.btnResume = QPushButton("Resume", bar)
        self.btnFinish = QPushButton("Finish", bar)
        for button, handler in [
            (self.btnPause, lambda: self.controller.pause()),
            (self.btnResume, self._on_resume),
            (self.btnFinish, lambda: self.controller.stop()),
        ]:
            button.clicked.connect(handler)
            button.setObjectName("TopBtn")
            button.setFocusPolicy(Qt.NoFocus)
            h.addWidget(button)

        parent_layout.addWidget(bar)

    # ---------------- Session ----------------
    def _start_session(self, text: str):
        if not text.strip():
            self._on_message("The text is empty.")
            return
        self.controller.start(text, self.surface)
        self.lblStatus.setText("Press any key in the text to start.")
        self.surface.setFocus()

    def _on_resume(self):
        if self.controller.resume():
            self.surface.setFocus()

    @Slot(str)
    def _on_status_changed(self, status: str):
        self.btnPause.setEnabled(status == SessionStatus.RUNNING.value)
        self.btnResume.setEnabled(status == SessionStatus.PAUSED.value)
        self.btnFinish.setEnabled(status != SessionStatus.FINISHED.value)
        self.setWindowTitle(f"Typemaster — {status}")
        if status == SessionStatus.PAUSED.value:
            self.lblStatus.setText("Paused. Press Resume to continue.")

    @Slot(object)
    def _show_status(self, snapshot):
        if snapshot is not None:
            self.lblStatus.setText(snapshot.describe())

    @Slot(float)
    def _on_elapsed(self, _secs: float):
        self._show_status(self.controller.status())

    @Slot(object)
    def _on_report(self, report):
        # may arrive from inside a document change; show it once that has unwound
        QTimer.singleShot(0, lambda: self._show_summary(report))

    def _show_summary(self, report):
        self.setWindowTitle("Typemaster — finished")
        dlg = SessionSummary(report, self)
        dlg.exec()
        if dlg.requested_practice == "words":
            self._practice_words()
        elif dlg.requested_practice == "transitions":
            self._practice_transitions()

    @Slot(str)
    def _on_message(self, msg: str):
        QMessageBox.information(self, "Typemaster", msg)

    # ---------------- Practice ----------------
    def _practice_words(self):
        text = self.controller.mistyped_words_practice()
        if text:
            self._start_session(text)

    def _practice_transitions(self):
        text = self.controller.hard_transitions_practice()
        if text:
            self._start_session(text)

    # ---------------- Text Loading ----------------
    def _on_load(self):
        path, _ = QFileDialog.getOpenFileName(self, "Open text", "", "Text (*.txt)")
        if not path:
            return
        worker = TextLoadWorker(path)
        worker.signals.loaded.connect(self._start_session)
        worker.signals.failed.connect(self._on_load_failed)
        Workers.pool.start(worker)

    def _on_load_failed(self, msg):
        log.warning("Loading text failed: %s", msg)
        QMessageBox.warning(self, "Load Text", msg)

    def closeEvent(self, event):
        self.controller.teardown()
        super().closeEvent(event)
