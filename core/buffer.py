# core/buffer.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Optional, Protocol


@dataclass(frozen=True)
class Edit:
    """
    One change notification from a typing surface. ``[start, end)`` is the
    1-based region holding the inserted text after the change, and
    ``replaced_length`` counts the characters the change removed at ``start``.
    """
    start: int
    end: int
    replaced_length: int
    plain_keystroke: bool = False

    @property
    def inserted_length(self) -> int:
        return self.end - self.start


EditListener = Callable[[Edit], None]


class TypingSurface(Protocol):
    def load(self, text: str) -> None: ...
    def text(self, start: int, end: int) -> str: ...
    def replace(self, start: int, end: int, text: str) -> None: ...
    def mark(self, index: int, state: int) -> None: ...
    def set_read_only(self, read_only: bool) -> None: ...
    def set_listener(self, listener: Optional[EditListener]) -> None: ...


class TextBuffer:
    """
    In-memory typing surface. ``overwrite`` and ``delete_backward`` behave like
    an editor in overwrite mode and report each change to the attached listener.
    Changes the listener itself makes through ``replace`` are not reported.
    """

    def __init__(self, text: str = ""):
        self._chars = list(text)
        self.marks: dict = {}
        self.read_only = False
        self._listener: Optional[EditListener] = None
        self._applying = False

    # ---------- surface protocol ----------
    def load(self, text: str) -> None:
        self._chars = list(text)
        self.marks.clear()

    def text(self, start: int, end: int) -> str:
        return "".join(self._chars[start - 1:end - 1])

    def replace(self, start: int, end: int, text: str) -> None:
        self._chars[start - 1:end - 1] = list(text)

    def mark(self, index: int, state: int) -> None:
        if state:
            self.marks[index] = state
        else:
            self.marks.pop(index, None)

    def set_read_only(self, read_only: bool) -> None:
        self.read_only = read_only

    def set_listener(self, listener: Optional[EditListener]) -> None:
        self._listener = listener

    # ---------- simulated host edits ----------
    @property
    def contents(self) -> str:
        return "".join(self._chars)

    def overwrite(self, index: int, text: str, plain_keystroke: bool = True) -> Optional[Edit]:
        """Type ``text`` at 1-based ``index`` replacing what is there."""
        if self.read_only:
            return None
        start0 = index - 1
        replaced = max(0, min(len(text), len(self._chars) - start0))
        self._chars[start0:start0 + replaced] = list(text)
        return self._notify(Edit(index, index + len(text), replaced, plain_keystroke))

    def insert(self, index: int, text: str, plain_keystroke: bool = False) -> Optional[Edit]:
        if self.read_only:
            return None
        self._chars[index - 1:index - 1] = list(text)
        return self._notify(Edit(index, index + len(text), 0, plain_keystroke))

    def delete_backward(self, index: int, count: int = 1,
                        plain_keystroke: bool = False) -> Optional[Edit]:
        """Delete ``count`` characters ending just before 1-based ``index``."""
        if self.read_only:
            return None
        start = max(1, index - count)
        removed = index - start
        del self._chars[start - 1:index - 1]
        return self._notify(Edit(start, start, removed, plain_keystroke))

    def _notify(self, edit: Edit) -> Edit:
        if self._listener is not None and not self._applying:
            self._applying = True
            try:
                self._listener(edit)
            finally:
                self._applying = False
        return edit
