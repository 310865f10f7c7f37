# core/threads.py
from typing import Tuple

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal

from core.run_log import SealedRun
from services.report import build_report


class TextLoadWorkerSignals(QObject):
    loaded = Signal(str)
    failed = Signal(str)


class TextLoadWorker(QRunnable):
    def __init__(self, path: str):
        super().__init__()
        self.path = path
        self.signals = TextLoadWorkerSignals()

    def run(self):
        try:
            with open(self.path, "r", encoding="utf-8", errors="ignore") as f:
                data = f.read()
            self.signals.loaded.emit(data)
        except OSError as e:
            self.signals.failed.emit(str(e))


class ReportWorkerSignals(QObject):
    rendered = Signal(int, object)   # tag, services.report.Report
    failed = Signal(int, str)


class ReportWorker(QRunnable):
    """Builds the final report from an immutable snapshot of sealed runs."""

    def __init__(self, tag: int, runs: Tuple[SealedRun, ...], source_text: str,
                 word_length: float):
        super().__init__()
        self.tag = tag
        self.runs = tuple(runs)
        self.source_text = source_text
        self.word_length = word_length
        self.signals = ReportWorkerSignals()

    def run(self):
        try:
            report = build_report(self.runs, self.source_text, self.word_length)
        except Exception as e:
            self.signals.failed.emit(self.tag, f"{type(e).__name__}: {e}")
            return
        self.signals.rendered.emit(self.tag, report)


class Workers:
    pool = QThreadPool.globalInstance()
