# services/report.py
from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from app.calculation import (
    WORD_LENGTH, format_metrics, overall_metrics, run_metrics, wpm_series,
)
from core.run_log import SealedRun
from services.replay import Replay, build_replay


@dataclass
class Report:
    text: str
    html: str
    mistyped_words: List[str] = field(default_factory=list)
    hard_transitions: List[str] = field(default_factory=list)
    # (times, wpms) per run, oldest first
    series: List[Tuple[List[float], List[float]]] = field(default_factory=list)


def build_report(runs: Sequence[SealedRun], source_text: str,
                 word_length: float = WORD_LENGTH) -> Report:
    """
    Final report for a session. ``runs`` is oldest first; the text lists the
    most recent run first, each with its replay, followed by the overall block.
    Safe to call off the GUI thread: it only reads sealed runs.
    """
    per_run = run_metrics(runs, word_length)
    replays: List[Replay] = [build_replay(run, source_text) for run in runs]

    text_blocks, html_blocks = [], []
    total = len(runs)
    for number in range(total, 0, -1):
        metrics = per_run[number - 1]
        replay = replays[number - 1]
        title = f"Run {number} of {total}" if total > 1 else "Run"
        stats = format_metrics(metrics) if metrics else "No keystrokes."
        text_blocks.append(f"{title}\n{stats}\n{replay.plain_text()}")
        html_blocks.append(
            f"<h3>{title}</h3><pre>{stats}</pre>{replay.to_html()}"
        )

    overall = overall_metrics(runs, word_length)
    if overall is not None and total > 1:
        text_blocks.append("Overall\n" + format_metrics(overall))
        html_blocks.append(f"<h3>Overall</h3><pre>{format_metrics(overall)}</pre>")

    mistyped: List[str] = []
    transitions: List[str] = []
    for replay in replays:
        mistyped.extend(replay.mistyped_words)
        transitions.extend(replay.hard_transitions)

    return Report(
        text="\n".join(text_blocks),
        html="".join(html_blocks),
        mistyped_words=mistyped,
        hard_transitions=transitions,
        series=[wpm_series(run, word_length) for run in runs],
    )
