# services/replay.py
from __future__ import annotations
from dataclasses import dataclass, field
from itertools import groupby
from typing import Dict, List, Optional, Sequence
import html

from app.state import CharState
from core.run_log import SealedRun, TypedEntry

EOL_GLYPH = "⏎"
SPACE_GLYPH = "·"

CORRECT = "correct"
ERROR = "error"
CORRECTION_CORRECT = "correction-correct"
CORRECTION_ERROR = "correction-error"

DEFAULT_COLORS = {
    CORRECT: "#22c55e",
    ERROR: "#ef4444",
    CORRECTION_CORRECT: "#86efac",
    CORRECTION_ERROR: "#fca5a5",
    None: "#9aa1a9",
}


@dataclass(frozen=True)
class Segment:
    text: str
    style: Optional[str] = None     # None -> untouched source text


@dataclass
class Replay:
    segments: List[Segment] = field(default_factory=list)
    mistyped_words: List[str] = field(default_factory=list)
    hard_transitions: List[str] = field(default_factory=list)

    def body(self) -> str:
        return "".join(s.text for s in self.segments)

    def plain_text(self) -> str:
        return "\n" + self.body() + "\n"

    def to_html(self, colors: Optional[Dict] = None) -> str:
        palette = dict(DEFAULT_COLORS)
        if colors:
            palette.update(colors)

        def span(txt: str, style: Optional[str]) -> str:
            bits = [f"color:{palette[style]}"]
            if style in (CORRECTION_CORRECT, CORRECTION_ERROR):
                bits.append("text-decoration:line-through")
            if style == ERROR:
                bits.append(f"border-bottom:2px solid {palette[ERROR]}")
            body = html.escape(txt).replace("\n", "<br>")
            return f'<span style="{";".join(bits)}">{body}</span>'

        return "<br>" + "".join(span(s.text, s.style) for s in self.segments) + "<br>"


@dataclass(frozen=True)
class WordMaps:
    """
    char_to_word: 1-based source index -> word index (whitespace is unmapped)
    words:        word index -> word
    """
    char_to_word: Dict[int, int]
    words: List[str]

    def word_at(self, index: int) -> Optional[str]:
        w = self.char_to_word.get(index)
        return None if w is None else self.words[w]


def build_word_maps(text: str) -> WordMaps:
    char_to_word: Dict[int, int] = {}
    words: List[str] = []
    current: List[str] = []
    for i, ch in enumerate(text, start=1):
        if ch in (" ", "\n"):
            if current:
                words.append("".join(current))
                current = []
            continue
        char_to_word[i] = len(words)
        current.append(ch)
    if current:
        words.append("".join(current))
    return WordMaps(char_to_word, words)


def display_char(entry: TypedEntry) -> str:
    typed, src = entry.typed_char, entry.source_char
    if src == "\n":
        if typed == src:
            return EOL_GLYPH + "\n"
        shown = SPACE_GLYPH if typed == " " else typed
        return shown + EOL_GLYPH + "\n"
    if typed == " " and src != " ":
        return SPACE_GLYPH
    if typed == "\n":
        return EOL_GLYPH
    return typed


def _settled_style(entry: TypedEntry) -> str:
    return CORRECT if entry.resulting_state == CharState.CORRECT else ERROR


def _try_style(entry: TypedEntry) -> str:
    return CORRECTION_CORRECT if entry.resulting_state == CharState.CORRECT else CORRECTION_ERROR


def group_tries(entries: Sequence[TypedEntry]) -> List[List[TypedEntry]]:
    """Consecutive chronological entries for the same position form one group."""
    return [list(g) for _, g in groupby(entries, key=lambda e: e.source_index)]


def build_replay(run: SealedRun, source_text: str,
                 word_maps: Optional[WordMaps] = None) -> Replay:
    maps = word_maps or build_word_maps(source_text)
    replay = Replay()
    cursor = 1      # next source position not yet rendered

    for group in group_tries(run.entries_chronological()):
        index = group[0].source_index
        if index > cursor:
            replay.segments.append(Segment(source_text[cursor - 1:index - 1]))

        settled = group[-1]
        replay.segments.append(Segment(display_char(settled), _settled_style(settled)))

        if len(group) > 1:
            for attempt in group[:-1]:
                replay.segments.append(Segment(display_char(attempt), _try_style(attempt)))
            word = maps.word_at(index)
            if word:
                replay.mistyped_words.append(word)
        elif settled.resulting_state == CharState.ERROR and not settled.source_char.isspace():
            word = maps.word_at(index)
            if word:
                replay.mistyped_words.append(word)
            if index > 2:
                pair = source_text[index - 2:index]
                if not any(c.isspace() for c in pair):
                    replay.hard_transitions.append(pair)

        cursor = max(cursor, index + 1)

    return replay
