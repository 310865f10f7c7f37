from pathlib import Path
from typing import Optional
import random
import logging
import textwrap

log = logging.getLogger(__name__)

_DEFAULT_FILE = Path("assets/texts/default.txt")

_FALLBACK = (
    "Welcome to Typemaster!\n\n"
    "Type this paragraph to test the app. "
    "Mistakes you fix are remembered, and the words you stumble on "
    "become your next practice text."
)


def prepare_text(text: str, fill_column: Optional[int] = None) -> str:
    """
    Normalise line endings, drop trailing whitespace on every line and at the
    end, and optionally reflow each paragraph to ``fill_column``.
    """
    text = text.replace("\r\n", "\n").replace("\r", "\n").expandtabs(4)
    lines = [ln.rstrip() for ln in text.split("\n")]
    text = "\n".join(lines).strip("\n").rstrip()
    if fill_column:
        text = "\n\n".join(
            textwrap.fill(" ".join(p.split()), width=fill_column)
            for p in text.split("\n\n")
        )
    return text


def load_default_text() -> str:
    try:
        if _DEFAULT_FILE.exists():
            blocks = [b for b in _DEFAULT_FILE.read_text(encoding="utf-8").split("\n\n") if b.strip()]
            if blocks:
                return prepare_text(random.choice(blocks))
    except OSError as e:
        log.warning("Could not read %s: %s", _DEFAULT_FILE, e)
    return _FALLBACK
