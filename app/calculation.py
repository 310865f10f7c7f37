from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from core.run_log import SealedRun, TypedEntry

WORD_LENGTH = 5.0


def seconds_to_minutes(seconds: float) -> float:
    return seconds / 60.0


def gross_wpm(chars: int, minutes: float, word_length: float = WORD_LENGTH) -> Optional[float]:
    """WPM = (chars / word_length) / minutes. None when no time has passed."""
    if minutes <= 0:
        return None
    return (chars / word_length) / minutes


def gross_cpm(chars: int, minutes: float) -> Optional[float]:
    if minutes <= 0:
        return None
    return chars / minutes


def net_wpm(chars: int, uncorrected_errors: int, minutes: float,
            word_length: float = WORD_LENGTH) -> Optional[float]:
    gross = gross_wpm(chars, minutes, word_length)
    if gross is None:
        return None
    return max(0.0, gross - uncorrected_errors / minutes)


def net_cpm(chars: int, uncorrected_errors: int, minutes: float) -> Optional[float]:
    gross = gross_cpm(chars, minutes)
    if gross is None:
        return None
    return max(0.0, gross - uncorrected_errors / minutes)


def accuracy(chars: int, correct_chars: int, corrections: int) -> Optional[float]:
    """Percentage of settled characters that were right first time."""
    if chars <= 0:
        return None
    return max(0, correct_chars - corrections) / chars * 100.0


@dataclass(frozen=True)
class Metrics:
    seconds: float
    chars: int
    errors: int
    corrections: int
    word_length: float = WORD_LENGTH

    @property
    def minutes(self) -> float:
        return seconds_to_minutes(self.seconds)

    @property
    def words(self) -> float:
        return self.chars / self.word_length

    @property
    def gross_wpm(self) -> Optional[float]:
        return gross_wpm(self.chars, self.minutes, self.word_length)

    @property
    def net_wpm(self) -> Optional[float]:
        return net_wpm(self.chars, self.errors, self.minutes, self.word_length)

    @property
    def gross_cpm(self) -> Optional[float]:
        return gross_cpm(self.chars, self.minutes)

    @property
    def net_cpm(self) -> Optional[float]:
        return net_cpm(self.chars, self.errors, self.minutes)

    @property
    def accuracy(self) -> Optional[float]:
        return accuracy(self.chars, self.chars - self.errors, self.corrections)


def delta_metrics(last: TypedEntry, previous: Optional[TypedEntry], seconds: float,
                  word_length: float = WORD_LENGTH) -> Metrics:
    """
    Counters of ``last`` minus those of ``previous`` (absolute when there is none).
    Characters and errors are floored at zero: a run that fixes errors left by
    an earlier one has no uncorrected errors of its own.
    """
    if previous is None:
        return Metrics(seconds, last.entries_count_at_time, last.error_count_at_time,
                       last.correction_count_at_time, word_length)
    return Metrics(
        seconds,
        max(0, last.entries_count_at_time - previous.entries_count_at_time),
        max(0, last.error_count_at_time - previous.error_count_at_time),
        last.correction_count_at_time - previous.correction_count_at_time,
        word_length,
    )


def run_metrics(runs: Sequence[SealedRun],
                word_length: float = WORD_LENGTH) -> List[Optional[Metrics]]:
    """
    Per-run figures for runs given oldest first. Each run is measured against
    the final entry of the closest earlier run that has one; runs without
    entries yield None.
    """
    out: List[Optional[Metrics]] = []
    previous: Optional[TypedEntry] = None
    for run in runs:
        last = run.last_entry
        if last is None:
            out.append(None)
            continue
        out.append(delta_metrics(last, previous, last.elapsed_seconds_at_time, word_length))
        previous = last
    return out


def overall_metrics(runs: Sequence[SealedRun],
                    word_length: float = WORD_LENGTH) -> Optional[Metrics]:
    """Whole-session figures: summed run time, absolute counters of the latest entry."""
    seconds = 0.0
    latest: Optional[TypedEntry] = None
    for run in runs:
        last = run.last_entry
        if last is None:
            continue
        seconds += last.elapsed_seconds_at_time
        latest = last
    if latest is None:
        return None
    return delta_metrics(latest, None, seconds, word_length)


def wpm_series(run: SealedRun, word_length: float = WORD_LENGTH,
               min_seconds: float = 1.0) -> Tuple[List[float], List[float]]:
    """
    Gross WPM after each keystroke of a run, counted from the run's first entry.
    Samples earlier than ``min_seconds`` are skipped to avoid start-up spikes.
    """
    entries = run.entries_chronological()
    if not entries:
        return [], []
    base = entries[0].entries_count_at_time - 1
    times, wpms = [], []
    for e in entries:
        t = e.elapsed_seconds_at_time
        if t < min_seconds:
            continue
        w = gross_wpm(e.entries_count_at_time - base, seconds_to_minutes(t), word_length)
        if w is not None:
            times.append(t)
            wpms.append(w)
    return times, wpms


def smooth(values: List[float], factor: float = 0.25) -> List[float]:
    out, last = [], None
    for v in values:
        last = v if last is None else last + factor * (v - last)
        out.append(last)
    return out


def _fmt(value: Optional[float], suffix: str = "") -> str:
    return "n/a" if value is None else f"{value:.0f}{suffix}"


def format_metrics(m: Metrics) -> str:
    acc = "n/a" if m.accuracy is None else f"{m.accuracy:.2f}%"
    return "\n".join([
        f"Net WPM:       {_fmt(m.net_wpm)}",
        f"Gross WPM:     {_fmt(m.gross_wpm)}",
        f"Net CPM:       {_fmt(m.net_cpm)}",
        f"Gross CPM:     {_fmt(m.gross_cpm)}",
        f"Accuracy:      {acc}",
        f"Total time:    {format_duration(m.seconds)}",
        f"Total chars:   {m.chars}",
        f"Corrections:   {m.corrections}",
        f"Total errors:  {m.errors}",
    ])


def format_duration(seconds: float) -> str:
    minutes, secs = divmod(int(round(seconds)), 60)
    return f"{minutes}:{secs:02d}"
