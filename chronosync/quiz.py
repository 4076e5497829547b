# chronosync/quiz.py
from __future__ import annotations

from typing import Dict, Optional

from . import config
from .blending import blend_phase
from .models import CorrelationInsight, QuizResponses, ScheduleWindow


NATURAL_WAKE_HOURS: Dict[str, float] = {
    "Before 8 AM": 7.0,
    "8–10 AM": 9.0,
    "After 10 AM": 11.0,
}
DEFAULT_NATURAL_WAKE = 9.0

FOCUS_TIME_OFFSETS: Dict[str, float] = {
    "Morning": 2.0,
    "Afternoon": 7.0,
    "Evening": 9.0,
}
DEFAULT_FOCUS_OFFSET = 5.0

TEST_TIME_OFFSETS: Dict[str, float] = {
    "Morning": 2.0,
    "Midday": 5.0,
    "Evening": 9.0,
}
DEFAULT_TEST_OFFSET = 5.0

SCHOOL_START_HOURS: Dict[str, float] = {
    "Before 7:30 AM": 7.25,
    "7:30–8:00 AM": 7.75,
    "After 8:00 AM": 8.5,
}
DEFAULT_SCHOOL_START = 7.75
SCHOOL_DAY_HOURS = 6.5

SCHOOL_WAKE_HOURS: Dict[str, float] = {
    "Before 6 AM": 5.5,
    "6–6:59 AM": 6.5,
    "7–7:59 AM": 7.5,
    "8 AM or later": 8.5,
}
DEFAULT_SCHOOL_WAKE = 7.5

WAKE_FEEL_SHIFT: Dict[str, float] = {
    "Super groggy": 1.0,
    "Wide awake": -0.5,
}

BED_WEEKEND_SHIFT: Dict[str, float] = {
    "After Midnight": 1.0,
    "Before 10 PM": -1.0,
}


def _normalize_answer(v: Optional[str]) -> str:
    # Hosts sometimes send plain hyphens instead of en dashes.
    return str(v or "").strip().replace(" - ", "–").replace("-", "–")


def _lookup(table: Dict[str, float], answer: Optional[str], default: float) -> float:
    key = _normalize_answer(answer)
    for k, v in table.items():
        if _normalize_answer(k) == key:
            return v
    return default


def natural_wake_hour(responses: QuizResponses) -> float:
    return _lookup(NATURAL_WAKE_HOURS, responses.natural_wake, DEFAULT_NATURAL_WAKE)


def school_wake_hour(responses: QuizResponses) -> Optional[float]:
    """Enforced wake time on school days, or None when the question was skipped."""
    if not responses.wake_school:
        return None
    return _lookup(SCHOOL_WAKE_HOURS, responses.wake_school, DEFAULT_SCHOOL_WAKE)


def school_window(responses: QuizResponses) -> ScheduleWindow:
    start = _lookup(SCHOOL_START_HOURS, responses.school_start, DEFAULT_SCHOOL_START)
    return ScheduleWindow(start=start, duration=SCHOOL_DAY_HOURS)


def homework_window(responses: QuizResponses, school_end: Optional[float] = None) -> ScheduleWindow:
    if school_end is None:
        school_end = school_window(responses).end
    answer = _normalize_answer(responses.homework_time)
    if answer == "After dinner":
        return ScheduleWindow(start=19.0, duration=1.5)
    if answer == "Late at night":
        return ScheduleWindow(start=21.0, duration=1.5)
    if answer == "Depends":
        return ScheduleWindow(start=school_end + 0.5, duration=1.0)
    # "Right after school" and anything unrecognised
    return ScheduleWindow(start=school_end + 0.5, duration=1.5)


def learning_phase(responses: QuizResponses, timing_insight: Optional[CorrelationInsight] = None) -> float:
    """
    Theoretical learning acrophase (hours) from the questionnaire.
    A strong time-of-day insight from the user's own data pulls the estimate
    towards the observed optimal hour.
    """
    w_nat = natural_wake_hour(responses)
    d_focus = _lookup(FOCUS_TIME_OFFSETS, responses.focus_time, DEFAULT_FOCUS_OFFSET)
    d_test = _lookup(TEST_TIME_OFFSETS, responses.test_time, DEFAULT_TEST_OFFSET)

    phi = (w_nat + config.FOCUS_WEIGHT * d_focus + config.TEST_WEIGHT * d_test) % 24.0
    phi += WAKE_FEEL_SHIFT.get(_normalize_answer(responses.wake_feel), 0.0)
    phi += BED_WEEKEND_SHIFT.get(_normalize_answer(responses.bed_weekend), 0.0)
    phi %= 24.0

    if (
        timing_insight is not None
        and timing_insight.optimal_hour is not None
        and abs(timing_insight.correlation) > config.TIMING_INSIGHT_MIN_CORRELATION
    ):
        phi = blend_phase(phi, timing_insight.optimal_hour, config.TIMING_INSIGHT_WEIGHT)

    return phi % 24.0
