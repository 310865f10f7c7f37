# ui/session_summary.py
from __future__ import annotations
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QHBoxLayout, QPushButton,
    QTableWidget, QTableWidgetItem, QTextBrowser,
)
import pyqtgraph as pg

from app.calculation import smooth
from services.practice import ranked
from services.report import Report
from utils.graph_helper import setup_wpm_plot, add_run_curve


class SessionSummary(QDialog):
    """
    Final report: per-run figures with the annotated replay, a WPM-over-time
    curve per run, and the most frequent mistyped words / hard transitions.
    The two practice buttons close the dialog with a request the main window
    acts on (``requested_practice`` is "words", "transitions" or None).
    """

    def __init__(self, report: Report, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Session Summary")
        self.resize(900, 640)
        self.requested_practice = None

        root = QVBoxLayout(self)

        browser = QTextBrowser(self)
        browser.setHtml(report.html)
        root.addWidget(browser, stretch=3)

        plot = pg.PlotWidget()
        setup_wpm_plot(plot)
        for number, (times, wpms) in enumerate(report.series, start=1):
            if times:
                add_run_curve(plot, number, times, smooth(wpms))
        root.addWidget(plot, stretch=2)

        tables = QHBoxLayout()
        tables.addWidget(self._table("Mistyped word", ranked(report.mistyped_words)))
        tables.addWidget(self._table("Transition", ranked(report.hard_transitions)))
        root.addLayout(tables, stretch=1)

        row = QHBoxLayout()
        btn_words = QPushButton("Practice mistyped words", self)
        btn_words.clicked.connect(lambda: self._request("words"))
        btn_words.setEnabled(bool(report.mistyped_words))
        btn_trans = QPushButton("Practice hard transitions", self)
        btn_trans.clicked.connect(lambda: self._request("transitions"))
        btn_trans.setEnabled(bool(report.hard_transitions))
        btn = QPushButton("OK", self)
        btn.clicked.connect(self.accept)
        for b in (btn_words, btn_trans):
            row.addWidget(b)
        row.addStretch(1)
        row.addWidget(btn)
        root.addLayout(row)

    def _table(self, heading: str, rows) -> QTableWidget:
        table = QTableWidget(len(rows), 2, self)
        table.setHorizontalHeaderLabels([heading, "Count"])
        table.horizontalHeader().setStretchLastSection(True)
        table.verticalHeader().setVisible(False)
        table.setEditTriggers(QTableWidget.NoEditTriggers)
        for i, (item, count) in enumerate(rows):
            table.setItem(i, 0, QTableWidgetItem(item))
            table.setItem(i, 1, QTableWidgetItem(str(count)))
        if not rows:
            table.setRowCount(1)
            table.setItem(0, 0, QTableWidgetItem("No errors"))
        return table

    def _request(self, kind: str):
        self.requested_practice = kind
        self.accept()
