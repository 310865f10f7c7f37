from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import List, Optional

from core.run_log import RunLog


class CharState(IntEnum):
    UNTYPED = 0
    CORRECT = 1
    ERROR = 2


class SessionStatus(Enum):
    NOT_STARTED = "not-started"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"


@dataclass(frozen=True)
class StatusSnapshot:
    """What the status line shows for the current run."""
    net_wpm: Optional[float]
    gross_wpm: Optional[float]
    accuracy: Optional[float]
    elapsed_time: float
    words_typed: float
    corrections: int
    errors: int

    def describe(self) -> str:
        def num(v, fmt):
            return "--" if v is None else format(v, fmt)
        return (
            f"{num(self.net_wpm, '.0f')}/{num(self.gross_wpm, '.0f')} WPM"
            f"  {num(self.accuracy, '.1f')}%"
            f"  {self.elapsed_time:0.1f} s"
            f"  {self.words_typed:.1f} words"
            f"  {self.corrections} corr  {self.errors} err"
        )


@dataclass
class SessionState:
    """
    Everything one typing session owns: the fixed source text, the per-character
    progress vector, running counters, the run log and the mined practice lists.
    Counters and progress are written by the change processor only; status and
    run boundaries by the session controller only.
    """
    source_text: str
    progress: bytearray = field(init=False)
    entries_counter: int = 0
    error_count: int = 0
    correction_count: int = 0
    remaining_counter: int = field(init=False)
    input_counter: int = 0
    ignored_change_counter: int = 0
    status: SessionStatus = SessionStatus.NOT_STARTED
    runs: RunLog = field(default_factory=RunLog)
    mistyped_words: List[str] = field(default_factory=list)
    hard_transitions: List[str] = field(default_factory=list)

    def __post_init__(self):
        self.progress = bytearray(len(self.source_text))
        self.remaining_counter = len(self.source_text)

    @property
    def length(self) -> int:
        return len(self.source_text)

    @property
    def is_running(self) -> bool:
        return self.status is SessionStatus.RUNNING

    @property
    def is_finished(self) -> bool:
        return self.status is SessionStatus.FINISHED

    def state_at(self, index: int) -> CharState:
        """Progress of the 1-based source position ``index``."""
        return CharState(self.progress[index - 1])

    def set_state(self, index: int, state: CharState) -> None:
        self.progress[index - 1] = state

    def source_char(self, index: int) -> str:
        return self.source_text[index - 1]
