# core/run_log.py
from __future__ import annotations
from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Iterator, Optional, Tuple
import time


@dataclass(frozen=True)
class TypedEntry:
    sequence_number: int
    source_index: int            # 1-based position in the source text
    typed_char: str
    source_char: str
    error_count_at_time: int
    correction_count_at_time: int
    resulting_state: int         # CharState.CORRECT or CharState.ERROR
    elapsed_seconds_at_time: float
    entries_count_at_time: int


@dataclass(frozen=True)
class SealedRun:
    """Immutable snapshot of a closed run. Entries are most-recent-first."""
    started_at: Optional[float]
    finished_at: Optional[float]
    entries: Tuple[TypedEntry, ...]

    def entries_recent_first(self) -> Tuple[TypedEntry, ...]:
        return self.entries

    def entries_chronological(self) -> Tuple[TypedEntry, ...]:
        return tuple(reversed(self.entries))

    @property
    def last_entry(self) -> Optional[TypedEntry]:
        return self.entries[0] if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)


@dataclass
class Run:
    """
    One contiguous typing attempt. New entries go to the left end of a deque,
    so iteration order is most-recent-first.
    """
    started_at: Optional[float] = None
    finished_at: Optional[float] = None
    _entries: Deque[TypedEntry] = field(default_factory=deque)

    @property
    def is_open(self) -> bool:
        return self.finished_at is None

    def add(self, entry: TypedEntry) -> None:
        if not self.is_open:
            raise RuntimeError("cannot add entries to a closed run")
        if self.started_at is None:
            self.started_at = time.time()
        self._entries.appendleft(entry)

    def entries_recent_first(self) -> Tuple[TypedEntry, ...]:
        return tuple(self._entries)

    def entries_chronological(self) -> Tuple[TypedEntry, ...]:
        return tuple(reversed(self._entries))

    @property
    def last_entry(self) -> Optional[TypedEntry]:
        return self._entries[0] if self._entries else None

    def close(self) -> SealedRun:
        if self.finished_at is None:
            self.finished_at = time.time()
        return self.seal()

    def seal(self) -> SealedRun:
        return SealedRun(self.started_at, self.finished_at, tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)


class RunLog:
    """Runs of one session, most-recent-first. Closed runs are kept sealed."""

    def __init__(self):
        self._sealed: Deque[SealedRun] = deque()
        self.current: Optional[Run] = None

    def open_run(self) -> Run:
        if self.current is not None:
            return self.current
        self.current = Run()
        return self.current

    def close_run(self) -> Optional[SealedRun]:
        """Seal the open run (empty runs included). Returns None if none is open."""
        if self.current is None:
            return None
        sealed = self.current.close()
        self._sealed.appendleft(sealed)
        self.current = None
        return sealed

    def runs_recent_first(self) -> Tuple[SealedRun, ...]:
        return tuple(self._sealed)

    def runs_chronological(self) -> Tuple[SealedRun, ...]:
        return tuple(reversed(self._sealed))

    def previous_run(self) -> Optional[SealedRun]:
        """The most recently sealed run; the predecessor of the open one."""
        return self._sealed[0] if self._sealed else None

    def previous_entry(self) -> Optional[TypedEntry]:
        """Final entry of the latest sealed run that has one."""
        for run in self._sealed:
            if run.last_entry is not None:
                return run.last_entry
        return None

    def last_entry(self) -> Optional[TypedEntry]:
        """Most recent entry of the session, looking back across sealed runs."""
        if self.current is not None and self.current.last_entry is not None:
            return self.current.last_entry
        return self.previous_entry()

    def total_entries(self) -> int:
        open_len = len(self.current) if self.current is not None else 0
        return open_len + sum(len(r) for r in self._sealed)

    def __iter__(self) -> Iterator[SealedRun]:
        return iter(self._sealed)
