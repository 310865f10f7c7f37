# services/practice.py
from collections import Counter
from typing import List, Optional, Sequence
import logging
import math
import random

log = logging.getLogger(__name__)

NO_ERRORS_MESSAGE = "No errors to practice. Well done!"


def mistyped_words_practice(words: Sequence[str], downcase: bool = True) -> Optional[str]:
    """Practice text made of every mined mistyped word, or None if there are none."""
    if not words:
        log.info(NO_ERRORS_MESSAGE)
        return None
    cleaned = []
    for w in words:
        w = w.replace(" ", "")
        if downcase:
            w = w.casefold()
        if w:
            cleaned.append(w)
    if not cleaned:
        log.info(NO_ERRORS_MESSAGE)
        return None
    return " ".join(cleaned)


def hard_transitions_practice(
    transitions: Sequence[str],
    minimum: int,
    rng: Optional[random.Random] = None,
) -> Optional[str]:
    """
    Repeat the transitions until at least ``minimum`` of them are present,
    shuffle and join. None when nothing was mined.
    """
    if not transitions:
        log.info(NO_ERRORS_MESSAGE)
        return None
    repeats = math.ceil(minimum / len(transitions))
    expanded: List[str] = list(transitions) * max(1, repeats)
    (rng or random).shuffle(expanded)
    return " ".join(expanded)


def ranked(items: Sequence[str], limit: int = 10) -> List[tuple]:
    """Most frequent mined items, e.g. for a summary table."""
    return Counter(items).most_common(limit)
