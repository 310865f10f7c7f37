# services/typing_engine.py
from enum import Enum
from typing import Callable
import logging

from app.settings import EngineSettings, DEFAULT_SETTINGS
from app.state import CharState, SessionState
from core.buffer import Edit, TypingSurface
from core.run_log import TypedEntry

log = logging.getLogger(__name__)


class EditOutcome(Enum):
    ACCEPTED = "accepted"
    COMPLETE = "complete"


def same_char(a: str, b: str, newline_as_space: bool = False) -> bool:
    if a == b:
        return True
    return newline_as_space and a.isspace() and b.isspace()


class ChangeProcessor:
    """
    Turns surface edits into progress updates and typed entries.

    The surface always shows the source text: whatever the user typed over it
    is read, scored and then replaced by the original characters again, so
    the only lasting effect of an edit is on the progress vector, the counters
    and the current run.
    """

    def __init__(
        self,
        state: SessionState,
        surface: TypingSurface,
        elapsed: Callable[[], float],
        settings: EngineSettings = DEFAULT_SETTINGS,
    ):
        self.state = state
        self.surface = surface
        self.elapsed = elapsed
        self.settings = settings

    def handle(self, edit: Edit) -> EditOutcome:
        return self.process_edit(
            edit.start, edit.end, edit.replaced_length, edit.plain_keystroke
        )

    def process_edit(self, start: int, end: int, replaced_length: int,
                     plain_keystroke: bool = False) -> EditOutcome:
        st = self.state
        n = st.length
        if end - 2 > n:
            log.debug("edit %d..%d runs past the text (%d chars)", start, end, n)
            return EditOutcome.COMPLETE

        typed = self.surface.text(start, end)
        inserted = end - start

        # Step 1: positions overwritten or deleted lose their previous verdict
        rollback_end = min(start + max(replaced_length, inserted), n + 1)
        for pos in range(start, rollback_end):
            self._release(pos)
        self.surface.replace(start, end, st.source_text[start - 1:start - 1 + replaced_length])

        # Step 3 (armed before the diff): swallow the re-insert half of a phantom pair
        if (self.settings.debounce_phantom_edits and inserted == 0
                and replaced_length > 0 and plain_keystroke):
            st.ignored_change_counter = replaced_length

        # Steps 2 and 4
        for offset, ch in enumerate(typed):
            pos = start + offset
            if pos > n:
                break
            source_ch = st.source_char(pos)
            if same_char(ch, source_ch, self.settings.newline_as_space):
                verdict = CharState.CORRECT
            else:
                verdict = CharState.ERROR
                st.error_count += 1
            st.set_state(pos, verdict)
            st.entries_counter += 1
            st.remaining_counter -= 1
            self.surface.mark(pos, verdict)
            self._record(pos, ch, source_ch, verdict)

        if st.remaining_counter == 0:
            return EditOutcome.COMPLETE
        return EditOutcome.ACCEPTED

    def _release(self, pos: int) -> None:
        st = self.state
        prior = st.state_at(pos)
        if prior is CharState.UNTYPED:
            return
        st.entries_counter -= 1
        st.remaining_counter += 1
        if prior is CharState.ERROR:
            st.error_count -= 1
            st.correction_count += 1
        st.set_state(pos, CharState.UNTYPED)
        self.surface.mark(pos, CharState.UNTYPED)

    def _record(self, pos: int, typed_ch: str, source_ch: str, verdict: CharState) -> None:
        st = self.state
        if st.ignored_change_counter > 0:
            st.ignored_change_counter -= 1
            log.debug("suppressed entry for position %d (%d credits left)",
                      pos, st.ignored_change_counter)
            return
        st.input_counter += 1
        entry = TypedEntry(
            sequence_number=st.input_counter,
            source_index=pos,
            typed_char=typed_ch,
            source_char=source_ch,
            error_count_at_time=st.error_count,
            correction_count_at_time=st.correction_count,
            resulting_state=int(verdict),
            elapsed_seconds_at_time=self.elapsed(),
            entries_count_at_time=st.entries_counter,
        )
        st.runs.open_run().add(entry)
