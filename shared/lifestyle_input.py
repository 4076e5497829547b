# shared/lifestyle_input.py
"""
Host records (dicts, JSON) -> engine models.

The host app has stored these under a few different key spellings over time
(camelCase from the web client, snake_case from exports); both are accepted.
Rows that are not objects are skipped. Rows that are objects but carry an
invalid timestamp or domain raise ValidationError.
"""
from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional
import datetime as dt
import json

from chronosync.models import (
    ActivityValue,
    Challenge,
    ChallengeData,
    ChallengeValue,
    CognitiveSession,
    LifestyleFactor,
    NutritionValue,
    QuizResponses,
    SleepValue,
    ValidationError,
)


def _first(item: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    for k in keys:
        if k in item and item[k] is not None:
            return item[k]
    return default


def _as_float(v: Any, default: float = 0.0) -> float:
    try:
        return float(v)
    except (TypeError, ValueError):
        return default


def _as_int(v: Any, default: int = 0) -> int:
    try:
        return int(float(v))
    except (TypeError, ValueError):
        return default


def _load_json_list(s: Optional[str]) -> List[Any]:
    if not s:
        return []
    try:
        arr = json.loads(s)
    except (TypeError, ValueError):
        return []
    return arr if isinstance(arr, list) else []


def _hour_from_timestamp(ts: Any, tz: dt.tzinfo) -> float:
    try:
        t = dt.datetime.fromtimestamp(float(ts) / 1000.0, tz=tz)
    except (TypeError, ValueError, OverflowError, OSError):
        raise ValidationError(f"cannot derive hour of day from timestamp {ts!r}")
    return t.hour + t.minute / 60.0


# ----------------------------
# Cognitive sessions
# ----------------------------

def session_from_record(item: Dict[str, Any], tz: dt.tzinfo = dt.timezone.utc) -> CognitiveSession:
    ts = _first(item, "timestamp", "ts")
    if ts is None:
        raise ValidationError("cognitive session without timestamp")

    score = _first(item, "normalizedScore", "normalized_score")
    if score is None:
        # Legacy rows carry a 0..100 "score" only.
        score = _as_float(_first(item, "score", default=0.0)) / 100.0

    hour = _first(item, "hourOfDay", "hour_of_day")
    if hour is None:
        meta = item.get("sessionMetadata") or {}
        hour = meta.get("timeOfDay") if isinstance(meta, dict) else None
    if hour is None:
        hour = _hour_from_timestamp(ts, tz)

    return CognitiveSession(
        timestamp=ts,
        domain=str(_first(item, "domain", default="")),
        normalized_score=score,
        hour_of_day=hour,
        raw_score=_as_float(_first(item, "rawScore", "raw_score", "score", default=0.0)),
        game_type=str(_first(item, "gameType", "game_type", default="")),
    )


def sessions_from_records(rows: Iterable[Any], tz: dt.tzinfo = dt.timezone.utc) -> List[CognitiveSession]:
    return [session_from_record(r, tz) for r in rows if isinstance(r, dict)]


def sessions_from_json(s: Optional[str], tz: dt.tzinfo = dt.timezone.utc) -> List[CognitiveSession]:
    return sessions_from_records(_load_json_list(s), tz)


# ----------------------------
# Lifestyle factors
# ----------------------------

def _sleep_value(v: Dict[str, Any]) -> SleepValue:
    duration = _first(v, "durationMinutes", "duration_minutes")
    if duration is None:
        nested = v.get("sleepDuration")
        if isinstance(nested, dict):
            duration = nested.get("totalMinutes")
    quality = _first(v, "sleepQualityScore", "quality_score", "qualityScore")
    return SleepValue(
        quality_score=None if quality is None else _as_float(quality),
        duration_minutes=None if duration is None else _as_float(duration),
        bed_time=_first(v, "bedTime", "bed_time"),
        wake_time=_first(v, "wakeTime", "wake_time"),
        waking_events=_as_int(_first(v, "wakingEvents", "waking_events", default=0)),
    )


def _nutrition_value(v: Dict[str, Any]) -> NutritionValue:
    return NutritionValue(
        caffeine_mg=_as_float(_first(v, "totalCaffeine", "caffeine_mg", "caffeineMg", default=0.0)),
        meal_count=_as_int(_first(v, "mealCount", "meal_count", default=0)),
        fluids_ml=_as_float(_first(v, "totalFluids", "fluids_ml", default=0.0)),
    )


def _activity_value(v: Dict[str, Any]) -> ActivityValue:
    intensity = _first(v, "intensity", "type", default="Light")
    if isinstance(intensity, (int, float)):
        intensity = {1: "Light", 2: "Medium", 3: "Intense"}.get(int(intensity), "Light")
    return ActivityValue(
        duration_minutes=_as_float(_first(v, "duration", "durationMinutes", "duration_minutes", default=0.0)),
        intensity=str(intensity),
    )


def _challenge_value(v: Dict[str, Any]) -> ChallengeValue:
    return ChallengeValue(
        challenge_id=str(_first(v, "challengeId", "challenge_id", "id", default="")),
        completed=bool(_first(v, "completed", default=False)),
    )


_VALUE_PARSERS = {
    "sleep": _sleep_value,
    "nutrition": _nutrition_value,
    "activity": _activity_value,
    "challenge": _challenge_value,
}


def factor_from_record(item: Dict[str, Any]) -> LifestyleFactor:
    kind = str(_first(item, "kind", "type", default="")).strip().lower()
    parser = _VALUE_PARSERS.get(kind)
    if parser is None:
        raise ValidationError(f"unknown lifestyle factor kind {kind!r}")
    value = item.get("value")
    if not isinstance(value, dict):
        value = {}
    return LifestyleFactor(kind=kind, timestamp=_first(item, "timestamp", "ts"), value=parser(value))


def factors_from_records(rows: Iterable[Any]) -> List[LifestyleFactor]:
    return [factor_from_record(r) for r in rows if isinstance(r, dict)]


def factors_from_json(s: Optional[str]) -> List[LifestyleFactor]:
    return factors_from_records(_load_json_list(s))


# ----------------------------
# Questionnaire & challenges
# ----------------------------

_QUIZ_KEYS = {
    "natural_wake": ("naturalWake", "natural_wake"),
    "focus_time": ("focusTime", "focus_time"),
    "test_time": ("testTime", "test_time"),
    "school_start": ("schoolStart", "school_start"),
    "homework_time": ("homeworkTime", "homework_time"),
    "wake_school": ("wakeSchool", "wake_school"),
    "home_time": ("homeTime", "home_time"),
    "extra_time": ("extraTime", "extra_time"),
    "extras": ("extras",),
    "wake_feel": ("wakeFeel", "wake_feel"),
    "bed_weekend": ("bedWeekend", "bed_weekend"),
}

_REQUIRED_QUIZ_FIELDS = ("natural_wake", "focus_time", "test_time", "school_start", "homework_time")


def quiz_from_dict(d: Optional[Dict[str, Any]]) -> QuizResponses:
    """Missing answers become "" (required) or None (optional); never raises."""
    d = d if isinstance(d, dict) else {}
    kwargs: Dict[str, Any] = {}
    for field_name, keys in _QUIZ_KEYS.items():
        v = _first(d, *keys)
        if v is None:
            kwargs[field_name] = "" if field_name in _REQUIRED_QUIZ_FIELDS else None
        else:
            kwargs[field_name] = str(v)
    return QuizResponses(**kwargs)


def _challenges(rows: Any) -> List[Challenge]:
    out: List[Challenge] = []
    if not isinstance(rows, list):
        return out
    for item in rows:
        if not isinstance(item, dict):
            continue
        progress = _first(item, "dailyProgress", "daily_progress", default={})
        if not isinstance(progress, dict):
            progress = {}
        out.append(
            Challenge(
                challenge_id=str(_first(item, "id", "challengeId", "challenge_id", default="")),
                daily_progress={str(k): bool(v) for k, v in progress.items()},
            )
        )
    return out


def challenges_from_dict(d: Optional[Dict[str, Any]]) -> Optional[ChallengeData]:
    if not isinstance(d, dict):
        return None
    return ChallengeData(
        active=_challenges(_first(d, "activeChallenges", "active", default=[])),
        completed=_challenges(_first(d, "completedChallenges", "completed", default=[])),
    )
