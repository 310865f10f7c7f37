import os

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

import pytest
from PySide6.QtWidgets import QApplication

from app.settings import DEFAULT_SETTINGS
from core.buffer import TextBuffer
from services.session import SessionController


class FakeClock:
    """Stands in for RunClock; tests move ``now`` by hand."""

    def __init__(self):
        self.now = 0.0
        self.running = False

    def start(self):
        self.now = 0.0
        self.running = True

    def stop(self):
        self.running = False

    def seconds(self) -> float:
        return self.now


def type_text(buffer: TextBuffer, index: int, text: str):
    """Overwrite one character at a time, the way a keyboard would."""
    for offset, ch in enumerate(text):
        buffer.overwrite(index + offset, ch)


@pytest.fixture(scope="session")
def qapp():
    app = QApplication.instance() or QApplication([])
    yield app


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings():
    return DEFAULT_SETTINGS.with_overrides(status_refresh_interval=1)


@pytest.fixture
def controller(qapp, clock, settings):
    ctrl = SessionController(settings, clock=clock)
    yield ctrl
    ctrl.teardown()


@pytest.fixture
def buffer():
    return TextBuffer()
