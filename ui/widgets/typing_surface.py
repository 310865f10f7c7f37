# ui/widgets/typing_surface.py
from typing import Optional

from PySide6.QtCore import Qt
from PySide6.QtGui import QColor, QFont, QTextCharFormat, QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from app.state import CharState
from core.buffer import Edit, EditListener


def _pick(theme, attr, default):
    return getattr(theme, attr, default)


class TypingSurfaceWidget(QPlainTextEdit):
    """
    Text edit in overwrite mode that shows the source text and reports every
    document change as an ``Edit`` (1-based). The listener restores the source
    characters itself; those follow-up changes, and colour changes from
    ``mark``, are not reported back.
    """

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setOverwriteMode(True)
        self.setUndoRedoEnabled(False)
        self.setLineWrapMode(QPlainTextEdit.WidgetWidth)
        self.setFont(QFont("JetBrains Mono, Consolas, Menlo, monospace", 18))
        self.setFocusPolicy(Qt.StrongFocus)

        self._listener: Optional[EditListener] = None
        self._applying = False
        self._plain_key = False
        self._formats = {}
        self.set_colors()

        self.document().contentsChange.connect(self._on_contents_change)

    def set_colors(self, theme=None):
        colors = {
            CharState.UNTYPED: _pick(theme, "text_muted", "#9aa1a9"),
            CharState.CORRECT: _pick(theme, "correct", "#22c55e"),
            CharState.ERROR: _pick(theme, "error", "#ef4444"),
        }
        self._formats = {}
        for state, color in colors.items():
            fmt = QTextCharFormat()
            fmt.setForeground(QColor(color))
            if state == CharState.ERROR:
                fmt.setUnderlineStyle(QTextCharFormat.SingleUnderline)
                fmt.setUnderlineColor(QColor(color))
            self._formats[state] = fmt

    # ---------- surface protocol ----------
    def load(self, text: str) -> None:
        self._applying = True
        try:
            self.setPlainText(text)
            cursor = QTextCursor(self.document())
            cursor.select(QTextCursor.Document)
            cursor.setCharFormat(self._formats[CharState.UNTYPED])
        finally:
            self._applying = False
        self.moveCursor(QTextCursor.Start)

    def text(self, start: int, end: int) -> str:
        return self.toPlainText()[start - 1:end - 1]

    def replace(self, start: int, end: int, text: str) -> None:
        cursor = QTextCursor(self.document())
        cursor.setPosition(start - 1)
        cursor.setPosition(end - 1, QTextCursor.KeepAnchor)
        self._apply(lambda: cursor.insertText(text, self._formats[CharState.UNTYPED]))

    def mark(self, index: int, state: int) -> None:
        cursor = QTextCursor(self.document())
        cursor.setPosition(index - 1)
        cursor.setPosition(index, QTextCursor.KeepAnchor)
        fmt = self._formats[CharState(state)]
        self._apply(lambda: cursor.setCharFormat(fmt))

    def set_read_only(self, read_only: bool) -> None:
        self.setReadOnly(read_only)

    def set_listener(self, listener: Optional[EditListener]) -> None:
        self._listener = listener

    # ---------- input ----------
    def keyPressEvent(self, ev):
        mods = ev.modifiers() & (Qt.ControlModifier | Qt.AltModifier | Qt.MetaModifier)
        t = ev.text()
        self._plain_key = bool(t) and not mods and (t >= " " or t == "\t")
        # overwrite mode deletes then inserts; one edit block reports a single change
        block = QTextCursor(self.document())
        block.beginEditBlock()
        try:
            super().keyPressEvent(ev)
        finally:
            block.endEditBlock()
            self._plain_key = False

    def _apply(self, change):
        was = self._applying
        self._applying = True
        try:
            change()
        finally:
            self._applying = was

    def _on_contents_change(self, position: int, removed: int, added: int):
        if self._applying or self._listener is None:
            return
        edit = Edit(position + 1, position + 1 + added, removed, self._plain_key)
        self._applying = True
        try:
            self._listener(edit)
        finally:
            self._applying = False
        cursor = self.textCursor()
        cursor.setPosition(min(position + added, len(self.toPlainText())))
        self.setTextCursor(cursor)
