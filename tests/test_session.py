import time

import pytest

from app.calculation import run_metrics
from app.errors import SessionNotStartedError
from app.state import SessionStatus
from core.threads import Workers
from services.practice import NO_ERRORS_MESSAGE
from services.session import ALREADY_FINISHED_MESSAGE, SessionController

from conftest import FakeClock, type_text


def wait_for_report(qapp, controller, timeout=5.0):
    Workers.pool.waitForDone(int(timeout * 1000))
    deadline = time.monotonic() + timeout
    while controller.report is None and time.monotonic() < deadline:
        qapp.processEvents()
        time.sleep(0.01)


def test_edit_without_session(controller):
    with pytest.raises(SessionNotStartedError):
        controller.process_edit(1, 2, 0)


def test_start_loads_the_source(controller, buffer):
    state = controller.start("cat dog\r\n", buffer)
    assert state.source_text == "cat dog"
    assert buffer.contents == "cat dog"
    assert state.status is SessionStatus.NOT_STARTED
    assert not buffer.read_only


def test_first_keystroke_starts_the_session(controller, buffer, clock):
    changes = []
    controller.statusChanged.connect(changes.append)
    controller.start("cat dog", buffer)
    buffer.overwrite(1, "c")
    assert controller.state.status is SessionStatus.RUNNING
    assert clock.running
    assert changes == ["not-started", "running"]
    assert controller.watchdog.armed


def test_typing_the_whole_text_finishes_with_a_report(controller, buffer, clock):
    finished = []
    controller.finished.connect(finished.append)
    controller.start("cat dog", buffer)
    type_text(buffer, 1, "cat do")
    clock.now = 60.0
    buffer.overwrite(7, "g")

    st = controller.state
    assert st.status is SessionStatus.FINISHED
    assert st.remaining_counter == 0
    assert buffer.read_only
    assert not controller.watchdog.armed
    assert finished == [controller.report.text]
    assert "Gross WPM:     1" in finished[0]
    assert "Accuracy:      100.00%" in finished[0]
    assert "\ncat dog\n" in finished[0]

    assert buffer.overwrite(1, "x") is None
    assert controller.process_edit(1, 2, 1) is None


def test_correction_is_mined_for_practice(controller, buffer):
    controller.start("cat dog", buffer)
    buffer.overwrite(1, "x")
    buffer.delete_backward(2)
    type_text(buffer, 1, "cat dog")

    st = controller.state
    assert st.correction_count == 1
    assert st.error_count == 0
    assert controller.report.mistyped_words == ["cat"]
    assert st.mistyped_words == ["cat"]
    assert controller.mistyped_words_practice() == "cat"


def test_uncorrected_error_feeds_transition_practice(controller, buffer):
    controller.start("cat dog", buffer)
    type_text(buffer, 1, "cax dog")
    assert controller.state.hard_transitions == ["at"]
    text = controller.hard_transitions_practice()
    assert text.split(" ") == ["at"] * controller.settings.min_transitions


def test_practice_without_errors_sends_a_message(controller, buffer):
    messages = []
    controller.message.connect(messages.append)
    controller.start("ab", buffer)
    type_text(buffer, 1, "ab")
    assert controller.mistyped_words_practice() is None
    assert controller.hard_transitions_practice() is None
    assert messages == [NO_ERRORS_MESSAGE, NO_ERRORS_MESSAGE]


def test_pause_and_resume_keep_counters_and_split_runs(controller, buffer, clock):
    controller.start("cat dog", buffer)
    buffer.overwrite(1, "c")
    clock.now = 30.0
    buffer.overwrite(2, "x")

    assert controller.pause()
    st = controller.state
    assert st.status is SessionStatus.PAUSED
    assert not clock.running
    assert buffer.read_only
    assert (st.entries_counter, st.error_count, st.correction_count) == (2, 1, 0)
    assert len(st.runs.runs_chronological()) == 1
    assert controller.process_edit(3, 4, 1) is None

    assert controller.resume()
    assert st.status is SessionStatus.RUNNING
    assert (st.entries_counter, st.error_count, st.correction_count) == (2, 1, 0)

    buffer.overwrite(3, "t")
    clock.now = 12.0
    buffer.overwrite(4, " ")

    snap = controller.status()
    assert snap.elapsed_time == 12.0
    assert snap.errors == 0
    assert snap.corrections == 0
    assert snap.words_typed == pytest.approx(0.4)
    assert snap.accuracy == pytest.approx(100.0)
    assert snap.net_wpm is None and snap.gross_wpm is None

    text = controller.stop()
    assert "Run 2 of 2" in text and "Run 1 of 2" in text
    assert "Overall" in text
    assert "Total time:    0:42" in text


def test_status_before_any_keystroke(controller, buffer):
    controller.start("cat", buffer)
    snap = controller.status()
    assert snap.net_wpm is None
    assert snap.accuracy is None
    assert snap.words_typed == 0.0


def test_status_refresh_is_emitted(controller, buffer):
    snaps = []
    controller.statusUpdated.connect(snaps.append)
    controller.start("cat dog", buffer)
    type_text(buffer, 1, "ca")
    assert len(snaps) == 2
    assert snaps[-1].errors == 0


def test_pause_and_resume_only_from_the_right_state(controller, buffer):
    controller.start("cat", buffer)
    assert not controller.pause()
    assert not controller.resume()
    buffer.overwrite(1, "c")
    assert not controller.resume()


def test_resume_after_finish_reports_it(controller, buffer):
    messages = []
    controller.message.connect(messages.append)
    controller.start("ab", buffer)
    type_text(buffer, 1, "ab")
    assert not controller.resume()
    assert messages == [ALREADY_FINISHED_MESSAGE]


def test_stop_is_idempotent(controller, buffer):
    reports = []
    controller.reportReady.connect(reports.append)
    controller.start("cat dog", buffer)
    buffer.overwrite(1, "c")
    first = controller.stop()
    assert controller.stop() == first
    assert len(reports) == 1


def test_empty_run_is_reported(controller, buffer):
    controller.start("cat dog", buffer)
    buffer.overwrite(1, "c")
    controller.pause()
    controller.resume()
    text = controller.stop()
    assert "No keystrokes." in text
    assert len(controller.state.runs.runs_chronological()) == 2


def test_idle_timeout_pauses_once(controller, buffer):
    controller.start("cat dog", buffer)
    buffer.overwrite(1, "c")
    assert controller.watchdog.armed

    controller.watchdog._on_timeout()
    assert controller.state.status is SessionStatus.PAUSED
    assert not controller.watchdog.armed

    runs = len(controller.state.runs.runs_chronological())
    controller.watchdog._on_timeout()
    assert controller.state.status is SessionStatus.PAUSED
    assert len(controller.state.runs.runs_chronological()) == runs


def test_resume_does_not_arm_the_watchdog(controller, buffer):
    controller.start("cat dog", buffer)
    buffer.overwrite(1, "c")
    controller.pause()
    controller.resume()
    assert not controller.watchdog.armed


def test_restart_replaces_the_session(controller, buffer):
    controller.start("cat", buffer)
    buffer.overwrite(1, "x")
    state = controller.start("dog", buffer)
    assert state.error_count == 0
    assert buffer.contents == "dog"
    assert state.runs.total_entries() == 0


def test_large_sessions_render_in_the_background(qapp, buffer, settings):
    ctrl = SessionController(settings.with_overrides(background_render_min_entries=1),
                             clock=FakeClock())
    try:
        ctrl.start("cat dog", buffer)
        type_text(buffer, 1, "cax dog")
        wait_for_report(qapp, ctrl)
        assert ctrl.report is not None
        assert ctrl.state.hard_transitions == ["at"]
    finally:
        ctrl.teardown()


def test_report_for_a_replaced_session_is_dropped(qapp, buffer, settings):
    ctrl = SessionController(settings.with_overrides(background_render_min_entries=1),
                             clock=FakeClock())
    try:
        ctrl.start("cat dog", buffer)
        type_text(buffer, 1, "cax dog")
        ctrl.start("owl", buffer)
        wait_for_report(qapp, ctrl, timeout=0.5)
        assert ctrl.report is None
        assert ctrl.state.hard_transitions == []
    finally:
        ctrl.teardown()


def test_resumed_run_fixing_an_old_error(controller, buffer, clock):
    controller.start("cat dog", buffer)
    type_text(buffer, 1, "cxt")
    controller.pause()
    controller.resume()
    buffer.overwrite(2, "a")
    clock.now = 6.0
    buffer.overwrite(4, " ")

    snap = controller.status()
    assert snap.errors == 0
    assert snap.corrections == 1

    controller.stop()
    runs = controller.state.runs.runs_chronological()
    second = run_metrics(runs)[1]
    assert second.errors == 0
    assert second.net_wpm <= second.gross_wpm
