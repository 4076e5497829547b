from __future__ import annotations

from typing import Iterable, List, Optional
import math

from chronosync.models import LifestyleFactor, SleepMetrics, SleepValue


def parse_hhmm_hours(s: Optional[str]) -> Optional[float]:
    """'23:30' -> 23.5. Returns None for anything unparseable."""
    if not s:
        return None
    try:
        hh, mm = str(s).strip().split(":")[:2]
        h, m = int(hh), int(mm)
    except ValueError:
        return None
    if not (0 <= h < 24 and 0 <= m < 60):
        return None
    return h + m / 60.0


def _unwrap_bedtime(h: float) -> float:
    # 00:30 belongs to the same night as 23:30
    return h + 24.0 if h < 12.0 else h


def _variance(xs: List[float]) -> float:
    if not xs:
        return 0.0
    mean = math.fsum(xs) / len(xs)
    return math.fsum((x - mean) ** 2 for x in xs) / len(xs)


def sleep_duration_hours(v: SleepValue) -> Optional[float]:
    if v.duration_minutes is not None and v.duration_minutes > 0:
        return float(v.duration_minutes) / 60.0
    bed = parse_hhmm_hours(v.bed_time)
    wake = parse_hhmm_hours(v.wake_time)
    if bed is None or wake is None:
        return None
    d = wake - bed
    if d < 0:
        d += 24.0
    return d


def sleep_quality(v: SleepValue) -> float:
    """Reported quality if present, otherwise a duration/continuity estimate (0..100)."""
    if v.quality_score is not None:
        return max(0.0, min(100.0, float(v.quality_score)))
    duration = sleep_duration_hours(v) or 0.0
    duration_score = min(duration / 8.0, 1.0) * 70.0
    continuity_score = max(0.0, 30.0 - max(0, int(v.waking_events or 0)) * 5.0)
    return min(100.0, duration_score + continuity_score)


def compute_sleep_metrics(factors: Iterable[LifestyleFactor]) -> SleepMetrics:
    entries = [f.value for f in factors if f.kind == "sleep"]
    if not entries:
        return SleepMetrics()

    qualities = [sleep_quality(v) for v in entries]

    bed_times = [parse_hhmm_hours(v.bed_time) for v in entries]
    wake_times = [parse_hhmm_hours(v.wake_time) for v in entries]
    beds = [_unwrap_bedtime(b) for b in bed_times if b is not None]
    wakes = [w for w in wake_times if w is not None]
    timed = sum(1 for b, w in zip(bed_times, wake_times) if b is not None or w is not None)
    if timed:
        consistency = max(0.0, 100.0 - (_variance(beds) + _variance(wakes)) * 10.0)
    else:
        consistency = 0.0

    durations = [d for d in (sleep_duration_hours(v) for v in entries) if d is not None]

    return SleepMetrics(
        average_quality=math.fsum(qualities) / len(qualities),
        consistency=min(100.0, consistency),
        duration=(math.fsum(durations) / len(durations)) if durations else 0.0,
        nights=len(entries),
        timed_nights=timed,
    )
