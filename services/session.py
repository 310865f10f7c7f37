# services/session.py
from __future__ import annotations
from typing import Optional
import logging

from PySide6.QtCore import QObject, Signal, Slot

from app.calculation import delta_metrics
from app.errors import SessionNotStartedError
from app.settings import DEFAULT_SETTINGS, EngineSettings
from app.state import SessionState, SessionStatus, StatusSnapshot
from core.buffer import Edit, TextBuffer, TypingSurface
from core.chrono import IdleWatchdog, RunClock
from core.threads import ReportWorker, Workers
from services import practice
from services.report import Report, build_report
from services.typing_engine import ChangeProcessor, EditOutcome
from utils.file_handler import prepare_text

log = logging.getLogger(__name__)

ALREADY_FINISHED_MESSAGE = "This session is finished. Start a new one to keep typing."


class SessionController(QObject):
    """
    Owns one typing session at a time and is the only place where the session
    moves between not-started, running, paused and finished.

    Edits reach ``on_edit`` through the surface listener while the session
    accepts input; pausing or finishing detaches the listener and makes the
    surface read-only.
    """
    statusChanged = Signal(str)          # SessionStatus value
    statusUpdated = Signal(object)       # StatusSnapshot
    reportReady = Signal(object)         # Report
    finished = Signal(str)               # report text
    message = Signal(str)

    def __init__(self, settings: EngineSettings = DEFAULT_SETTINGS, clock=None, parent=None):
        super().__init__(parent)
        self.settings = settings
        self.clock = clock if clock is not None else RunClock(parent=self)
        self.watchdog = IdleWatchdog(settings.idle_timeout_seconds, self._watchdog_live, self)
        self.watchdog.idle.connect(self._on_idle)

        self.state: Optional[SessionState] = None
        self.surface: Optional[TypingSurface] = None
        self.processor: Optional[ChangeProcessor] = None
        self.report: Optional[Report] = None
        self._since_refresh = 0
        self._generation = 0
        self._worker: Optional[ReportWorker] = None

    # ---------------- lifecycle ----------------
    def start(self, text: str, surface: Optional[TypingSurface] = None) -> SessionState:
        self.teardown()
        source = prepare_text(text, self.settings.fill_column)
        self.state = SessionState(source)
        self.surface = surface if surface is not None else TextBuffer()
        self.surface.load(source)
        self.processor = ChangeProcessor(self.state, self.surface, self.clock.seconds, self.settings)
        self.report = None
        self._since_refresh = 0
        self.state.runs.open_run()
        self._attach()
        log.info("Session started (%d chars)", self.state.length)
        self.statusChanged.emit(self.state.status.value)
        return self.state

    def pause(self) -> bool:
        st = self.state
        if st is None or st.status is not SessionStatus.RUNNING:
            return False
        self.clock.stop()
        self.watchdog.cancel()
        sealed = st.runs.close_run()
        self._detach()
        self._set_status(SessionStatus.PAUSED)
        log.info("Session paused after a run of %d entries", len(sealed) if sealed else 0)
        return True

    def resume(self) -> bool:
        st = self.state
        if st is None:
            return False
        if st.is_finished:
            self.message.emit(ALREADY_FINISHED_MESSAGE)
            return False
        if st.status is not SessionStatus.PAUSED:
            return False
        st.runs.open_run()
        self._attach()
        self._set_status(SessionStatus.RUNNING)
        log.info("Session resumed")
        return True

    def stop(self) -> Optional[str]:
        """Finish the session. Returns the report text once it is available."""
        st = self.state
        if st is None:
            return None
        if not st.is_finished:
            self._finish()
        return self.report.text if self.report else None

    def teardown(self) -> None:
        self.watchdog.cancel()
        self.clock.stop()
        self._detach()
        self._generation += 1
        self.state = None
        self.processor = None
        self.surface = None

    # ---------------- input ----------------
    def process_edit(self, start: int, end: int, replaced_length: int,
                     plain_keystroke: bool = False) -> Optional[EditOutcome]:
        return self.on_edit(Edit(start, end, replaced_length, plain_keystroke))

    def on_edit(self, edit: Edit) -> Optional[EditOutcome]:
        st = self.state
        if st is None or self.processor is None:
            raise SessionNotStartedError("no session to receive edits")
        if st.status in (SessionStatus.PAUSED, SessionStatus.FINISHED):
            log.debug("edit ignored while %s", st.status.value)
            return None

        if st.status is SessionStatus.NOT_STARTED:
            self._set_status(SessionStatus.RUNNING)
        if not self.clock.running:
            self.clock.start()

        outcome = self.processor.handle(edit)
        if outcome is EditOutcome.COMPLETE:
            self._finish()
            return outcome

        self.watchdog.kick()
        self._since_refresh += 1
        if self._since_refresh >= self.settings.status_refresh_interval:
            self._since_refresh = 0
            self.statusUpdated.emit(self.status())
        return outcome

    # ---------------- read models ----------------
    def status(self) -> Optional[StatusSnapshot]:
        st = self.state
        if st is None:
            return None
        seconds = self.clock.seconds()
        last = st.runs.current.last_entry if st.runs.current is not None else None
        if last is None:
            return StatusSnapshot(None, None, None, seconds, 0.0, 0, 0)
        m = delta_metrics(last, st.runs.previous_entry(), seconds, self.settings.word_length)
        if m.words < self.settings.min_words_for_wpm:
            net = gross = None
        else:
            net, gross = m.net_wpm, m.gross_wpm
        return StatusSnapshot(
            net_wpm=net,
            gross_wpm=gross,
            accuracy=m.accuracy,
            elapsed_time=seconds,
            words_typed=m.words,
            corrections=m.corrections,
            errors=m.errors,
        )

    def mistyped_words_practice(self) -> Optional[str]:
        words = self.state.mistyped_words if self.state else []
        text = practice.mistyped_words_practice(words, self.settings.downcase_practice)
        if text is None:
            self.message.emit(practice.NO_ERRORS_MESSAGE)
        return text

    def hard_transitions_practice(self) -> Optional[str]:
        transitions = self.state.hard_transitions if self.state else []
        text = practice.hard_transitions_practice(transitions, self.settings.min_transitions)
        if text is None:
            self.message.emit(practice.NO_ERRORS_MESSAGE)
        return text

    # ---------------- internals ----------------
    def _attach(self):
        self.surface.set_read_only(False)
        self.surface.set_listener(self.on_edit)

    def _detach(self):
        if self.surface is not None:
            self.surface.set_listener(None)
            self.surface.set_read_only(True)

    def _set_status(self, status: SessionStatus):
        self.state.status = status
        self.statusChanged.emit(status.value)

    def _watchdog_live(self) -> bool:
        return self.state is not None and self.state.is_running

    @Slot()
    def _on_idle(self):
        log.info("No input for %.1f s, pausing", self.settings.idle_timeout_seconds)
        self.pause()

    def _finish(self):
        st = self.state
        self.clock.stop()
        self.watchdog.cancel()
        st.runs.close_run()
        self._detach()
        self._set_status(SessionStatus.FINISHED)

        runs = st.runs.runs_chronological()
        entries = sum(len(r) for r in runs)
        log.info("Session finished: %d runs, %d entries", len(runs), entries)
        if entries >= self.settings.background_render_min_entries:
            worker = ReportWorker(self._generation, runs, st.source_text, self.settings.word_length)
            worker.signals.rendered.connect(self._on_report_rendered)
            worker.signals.failed.connect(self._on_report_failed)
            self._worker = worker
            Workers.pool.start(worker)
        else:
            self._on_report_rendered(
                self._generation, build_report(runs, st.source_text, self.settings.word_length)
            )

    @Slot(int, object)
    def _on_report_rendered(self, tag: int, report: Report):
        self._worker = None
        if tag != self._generation or self.state is None:
            log.debug("dropping report for a session that is gone")
            return
        self.report = report
        self.state.mistyped_words.extend(report.mistyped_words)
        self.state.hard_transitions.extend(report.hard_transitions)
        self.reportReady.emit(report)
        self.finished.emit(report.text)

    @Slot(int, str)
    def _on_report_failed(self, tag: int, error: str):
        log.error("Report rendering failed: %s", error)
        if tag == self._generation:
            self.message.emit(f"Could not build the session report: {error}")
