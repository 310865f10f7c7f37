# core/chrono.py
from typing import Callable

from PySide6.QtCore import QObject, QElapsedTimer, QTimer, Signal


class RunClock(QObject):
    """Active time of the current run. Restarted for every run."""
    elapsedChanged = Signal(float)  # seconds

    def __init__(self, tick_ms: int = 100, parent=None):
        super().__init__(parent)
        self._elapsed = 0.0
        self._running = False
        self._t = QElapsedTimer()

        self._tick = QTimer(self)
        self._tick.setInterval(tick_ms)
        self._tick.timeout.connect(self._on_tick)

    @property
    def running(self) -> bool:
        return self._running

    def start(self):
        self._elapsed = 0.0
        self._running = True
        self._t.start()
        self._tick.start()

    def stop(self):
        if self._running:
            self._elapsed += self._t.elapsed() / 1000.0
            self._running = False
            self._tick.stop()

    def seconds(self) -> float:
        if self._running:
            return self._elapsed + (self._t.elapsed() / 1000.0)
        return self._elapsed

    def _on_tick(self):
        self.elapsedChanged.emit(self.seconds())


class IdleWatchdog(QObject):
    """
    Single-shot idle timer. ``kick()`` re-arms it on activity, ``cancel()`` disarms
    it. When it fires, ``is_live`` is asked again before ``idle`` is emitted, so a
    session that was paused, finished or torn down in the meantime is left alone.
    """
    idle = Signal()

    def __init__(self, timeout_s: float, is_live: Callable[[], bool], parent=None):
        super().__init__(parent)
        self._is_live = is_live
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(int(timeout_s * 1000))
        self._timer.timeout.connect(self._on_timeout)

    @property
    def armed(self) -> bool:
        return self._timer.isActive()

    def kick(self):
        self._timer.start()

    def cancel(self):
        self._timer.stop()

    def _on_timeout(self):
        if self._is_live():
            self.idle.emit()
