# chronosync/coach.py
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from . import config
from .models import ScheduleWindow, SyncResult


Span = Tuple[float, float]   # (start hour, end hour), end may exceed 24


@dataclass
class StudyBlock:
    start: float               # hour of day
    end: float
    label: str                 # "Deep Study" / "Review"
    rationale: str


def _bin_hours(n: int) -> float:
    return 24.0 / n if n else 0.25


def _mask_to_spans(mask: Sequence[bool]) -> List[Span]:
    """Convert a boolean mask over the day's bins into (start, end) hour spans, merging across midnight."""
    spans: List[Span] = []
    if not mask:
        return spans
    step = _bin_hours(len(mask))

    in_span = False
    start = 0
    for i, m in enumerate(mask):
        if m and not in_span:
            in_span = True
            start = i
        elif not m and in_span:
            in_span = False
            spans.append((start * step, i * step))
    if in_span:
        spans.append((start * step, len(mask) * step))

    # A span ending at 24:00 continues into one starting at 00:00.
    if len(spans) >= 2 and spans[0][0] == 0.0 and spans[-1][1] == 24.0:
        first = spans.pop(0)
        last = spans.pop()
        spans.append((last[0], 24.0 + first[1]))
    return spans


def _span_hours(span: Span) -> float:
    return span[1] - span[0]


def _format_hour(h: float) -> str:
    minutes = int(round((h % 24.0) * 60)) % (24 * 60)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _format_range(span: Span) -> str:
    return f"{_format_hour(span[0])}–{_format_hour(span[1])}"


def peak_windows(timeline: Sequence[float], threshold: float = config.PEAK_THRESHOLD) -> List[Span]:
    """
    Spans where readiness is at least `threshold` times the day's maximum,
    longest first. A flat curve is one long span; an all-zero curve has none.
    """
    if not timeline:
        return []
    top = max(timeline)
    if top <= 0:
        return []
    spans = _mask_to_spans([v >= threshold * top for v in timeline])
    return sorted(spans, key=_span_hours, reverse=True)


def _block_start(timeline: Sequence[float], span: Span, hours: float) -> float:
    """Centre a block on the best bin of the span without leaving the span."""
    n = len(timeline)
    step = _bin_hours(n)
    first = int(round(span[0] / step))
    last = max(first + 1, int(round(span[1] / step)))
    best = max(range(first, last), key=lambda i: (timeline[i % n], -i))
    centre = best * step
    return min(max(centre - hours / 2.0, span[0]), span[1] - hours)


def suggest_study_blocks(
    result: SyncResult,
    target_minutes: int = 120,
    max_blocks: int = 3,
    min_block_minutes: int = 30,
) -> List[StudyBlock]:
    """Greedy: fill the study target from the longest peak windows, then add one review block."""
    peaks = peak_windows(result.learning_timeline)
    blocks: List[StudyBlock] = []

    remaining = float(target_minutes)
    for span in peaks:
        if remaining <= 0 or len(blocks) >= max_blocks:
            break
        minutes = _span_hours(span) * 60.0
        if minutes < min_block_minutes:
            continue
        take = min(minutes, remaining)
        start = _block_start(result.learning_timeline, span, take / 60.0)
        blocks.append(
            StudyBlock(
                start=start % 24.0,
                end=(start + take / 60.0) % 24.0,
                label="Deep Study",
                rationale="Readiness is at its highest here; put the hardest material in this block.",
            )
        )
        remaining -= take

    if len(blocks) < max_blocks and result.trend_analysis.weekly_trend == "declining":
        # Second-best window becomes a light review slot rather than more new material.
        for span in peaks[len(blocks):]:
            if _span_hours(span) * 60.0 >= min_block_minutes:
                start = _block_start(result.learning_timeline, span, min_block_minutes / 60.0)
                blocks.append(
                    StudyBlock(
                        start=start % 24.0,
                        end=(start + min_block_minutes / 60.0) % 24.0,
                        label="Review",
                        rationale="Scores have dipped this week; short review sessions help consolidate.",
                    )
                )
                break

    return sorted(blocks, key=lambda b: b.start)


def interpret_timeline(
    result: SyncResult,
    school: Optional[ScheduleWindow] = None,
    study: Optional[ScheduleWindow] = None,
) -> List[str]:
    """Short plain-language notes about the day's curve and how the schedule fits it."""
    notes: List[str] = []
    peaks = peak_windows(result.learning_timeline)

    if peaks:
        ranges = ", ".join(_format_range(s) for s in peaks[:2])
        notes.append(f"Your learning readiness peaks around {ranges}. Schedule the most challenging subjects there.")
    else:
        notes.append("No clear peak stands out today; short focused blocks of 25–45 minutes may work better.")

    if result.school_alignment < 50:
        notes.append(
            f"School hours match your rhythm poorly ({result.school_alignment}%). "
            "Use your peak times for review to compensate."
        )
    if result.study_alignment >= 70:
        notes.append(f"Your homework slot fits your rhythm well ({result.study_alignment}%).")
    elif study is not None and peaks:
        notes.append(
            f"Moving homework from {_format_hour(study.start)} towards {_format_hour(peaks[0][0])} could help."
        )

    if result.social_jetlag_penalty < 80:
        notes.append("School-day wake times are far from your natural ones; a steadier sleep schedule reduces the gap.")

    if school is not None and peaks:
        s, e = peaks[0]
        if school.contains(s % 24.0) or school.contains(e % 24.0):
            notes.append("Part of your peak falls inside school hours, which is a good match for new material.")

    return notes
