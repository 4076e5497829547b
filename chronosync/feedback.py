# chronosync/feedback.py
"""
Lifestyle -> cognition correlation analysis.

Each lifestyle entry is paired with the game sessions played within 12 hours of
(entry time + lag). A Pearson correlation is reported only once at least 7
pairs exist; below that the factor is simply left out of the insights.
"""
from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple
import datetime as dt
import logging
import math

from . import config
from .blending import clip
from .cosinor import fit_cosinor
from .models import (
    DOMAINS,
    ActivityValue,
    ChallengeData,
    CognitiveSession,
    CorrelationInsight,
    FeedbackAnalysis,
    LifestyleFactor,
    NutritionValue,
    ProgressSummary,
    Recommendation,
    SleepValue,
)
from shared.sleep_metrics import parse_hhmm_hours, sleep_duration_hours, sleep_quality

logger = logging.getLogger(__name__)

HOUR_MS = 3600 * 1000
DAY_MS = 24 * HOUR_MS

INTENSITY_LEVELS: Dict[str, float] = {"Light": 1.0, "Medium": 2.0, "Intense": 3.0}

OVERALL = "Overall Cognitive Performance"

Pair = Tuple[float, float, int]   # (factor value, outcome score, outcome timestamp)


# ----------------------------
# Statistics
# ----------------------------

def pearson(xs: Sequence[float], ys: Sequence[float]) -> float:
    """Pearson r clipped to [-1, 1]; 0 for empty, mismatched or zero-variance input."""
    n = len(xs)
    if n == 0 or n != len(ys):
        return 0.0
    mx = math.fsum(xs) / n
    my = math.fsum(ys) / n
    sxy = math.fsum((x - mx) * (y - my) for x, y in zip(xs, ys))
    sxx = math.fsum((x - mx) ** 2 for x in xs)
    syy = math.fsum((y - my) ** 2 for y in ys)
    denom = math.sqrt(sxx * syy)
    if denom <= 0 or not math.isfinite(denom):
        return 0.0
    return clip(sxy / denom, -1.0, 1.0)


def significance(r: float) -> str:
    a = abs(r)
    if a > 0.6:
        return "high"
    if a > 0.3:
        return "medium"
    return "low"


def trend(recent: float, overall: float) -> str:
    diff = recent - overall
    if abs(diff) < 0.1:
        return "stable"
    return "improving" if diff > 0 else "declining"


def confidence(sample_size: int) -> float:
    return min(0.95, sample_size / 30.0)


# ----------------------------
# Pairing
# ----------------------------

def pair_outcomes(
    factors: Iterable[LifestyleFactor],
    sessions: Sequence[CognitiveSession],
    extract: Callable[[LifestyleFactor], Optional[float]],
    lag_hours: float = 0.0,
) -> List[Pair]:
    window = config.PAIRING_WINDOW_HOURS * HOUR_MS
    pairs: List[Pair] = []
    for f in factors:
        x = extract(f)
        if x is None or not math.isfinite(x):
            continue
        target = f.timestamp + lag_hours * HOUR_MS
        for s in sessions:
            if abs(s.timestamp - target) < window:
                pairs.append((float(x), s.normalized_score, s.timestamp))
    return pairs


def _insight_from_pairs(
    pairs: List[Pair],
    factor: str,
    outcome: str,
    lag_hours: float,
    now_ms: int,
) -> Optional[CorrelationInsight]:
    n = len(pairs)
    if n < config.MIN_CORRELATION_SAMPLES:
        return None
    r = pearson([p[0] for p in pairs], [p[1] for p in pairs])
    cutoff = now_ms - config.RECENT_WINDOW_DAYS * DAY_MS
    recent = [p for p in pairs if p[2] > cutoff]
    recent_r = pearson([p[0] for p in recent], [p[1] for p in recent]) if len(recent) >= config.MIN_RECENT_PAIRS else r
    return CorrelationInsight(
        factor=factor,
        outcome=outcome,
        correlation=r,
        confidence=confidence(n),
        sample_size=n,
        timelag=lag_hours,
        significance=significance(r),
        trend=trend(recent_r, r),
    )


# ----------------------------
# Extractors
# ----------------------------

def _sleep_quality(f: LifestyleFactor) -> Optional[float]:
    return sleep_quality(f.value) if isinstance(f.value, SleepValue) else None


def _sleep_duration(f: LifestyleFactor) -> Optional[float]:
    if not isinstance(f.value, SleepValue):
        return None
    return sleep_duration_hours(f.value)


def _caffeine(f: LifestyleFactor) -> Optional[float]:
    return max(0.0, float(f.value.caffeine_mg)) if isinstance(f.value, NutritionValue) else None


def _meals(f: LifestyleFactor) -> Optional[float]:
    return max(0.0, float(f.value.meal_count)) if isinstance(f.value, NutritionValue) else None


def exercise_intensity_score(v: ActivityValue) -> float:
    """Intensity-weighted hours of activity."""
    level = INTENSITY_LEVELS.get(str(v.intensity or "").strip().capitalize(), 1.0)
    return max(0.0, float(v.duration_minutes)) * level / 60.0


def _exercise(f: LifestyleFactor) -> Optional[float]:
    return exercise_intensity_score(f.value) if isinstance(f.value, ActivityValue) else None


def _bedtime(f: LifestyleFactor) -> Optional[float]:
    if not isinstance(f.value, SleepValue):
        return None
    h = parse_hhmm_hours(f.value.bed_time)
    if h is None:
        return None
    return h + 24.0 if h < 12.0 else h


# ----------------------------
# Insight builders
# ----------------------------

def sleep_insights(sleep: List[LifestyleFactor], sessions: Sequence[CognitiveSession], now_ms: int) -> List[CorrelationInsight]:
    out: List[CorrelationInsight] = []

    ins = _insight_from_pairs(pair_outcomes(sleep, sessions, _sleep_quality), "Sleep Quality", OVERALL, 0, now_ms)
    if ins:
        out.append(ins)

    for domain in DOMAINS:
        domain_sessions = [s for s in sessions if s.domain == domain]
        ins = _insight_from_pairs(
            pair_outcomes(sleep, domain_sessions, _sleep_duration),
            "Sleep Duration",
            f"{domain} Performance",
            0,
            now_ms,
        )
        if ins:
            out.append(ins)

    # Consistency: distance of each night's bedtime from the user's mean bedtime.
    beds = [b for b in (_bedtime(f) for f in sleep) if b is not None]
    if beds:
        mean_bed = math.fsum(beds) / len(beds)

        def _regularity(f: LifestyleFactor) -> Optional[float]:
            b = _bedtime(f)
            return None if b is None else -abs(b - mean_bed)

        ins = _insight_from_pairs(pair_outcomes(sleep, sessions, _regularity), "Sleep Consistency", OVERALL, 0, now_ms)
        if ins:
            out.append(ins)
    return out


def nutrition_insights(nutrition: List[LifestyleFactor], sessions: Sequence[CognitiveSession], now_ms: int) -> List[CorrelationInsight]:
    out: List[CorrelationInsight] = []
    attention = [s for s in sessions if s.domain == "attention"]
    ins = _insight_from_pairs(pair_outcomes(nutrition, attention, _caffeine, 2), "Caffeine Intake", "Attention Performance", 2, now_ms)
    if ins:
        out.append(ins)
    ins = _insight_from_pairs(pair_outcomes(nutrition, sessions, _meals), "Meal Count", OVERALL, 0, now_ms)
    if ins:
        out.append(ins)
    return out


def activity_insights(activity: List[LifestyleFactor], sessions: Sequence[CognitiveSession], now_ms: int) -> List[CorrelationInsight]:
    ins = _insight_from_pairs(
        pair_outcomes(activity, sessions, _exercise, 12),
        "Exercise Intensity",
        "Next-Day Cognitive Performance",
        12,
        now_ms,
    )
    return [ins] if ins else []


def challenge_insights(
    challenges: Optional[ChallengeData],
    sessions: Sequence[CognitiveSession],
    now_ms: int,
    tz: dt.tzinfo = dt.timezone.utc,
) -> List[CorrelationInsight]:
    """Point-biserial correlation between daily challenge completion and same-day scores."""
    if challenges is None:
        return []
    by_day: Dict[str, List[CognitiveSession]] = {}
    for s in sessions:
        by_day.setdefault(local_day(s.timestamp, tz).isoformat(), []).append(s)

    out: List[CorrelationInsight] = []
    for ch in list(challenges.active) + list(challenges.completed):
        pairs: List[Pair] = []
        for day_iso, done in sorted(ch.daily_progress.items()):
            for s in by_day.get(day_iso, []):
                pairs.append((1.0 if done else 0.0, s.normalized_score, s.timestamp))
        ins = _insight_from_pairs(pairs, f"Challenge: {ch.challenge_id}", OVERALL, 0, now_ms)
        if ins:
            out.append(ins)
    return out


def timing_insight(sessions: Sequence[CognitiveSession], now_ms: int) -> Optional[CorrelationInsight]:
    """
    Time-of-day effect from a pooled cosinor fit over every session.
    The correlation is the multiple correlation of the harmonic fit, sqrt(R^2).
    """
    n = len(sessions)
    if n < config.MIN_CORRELATION_SAMPLES:
        return None
    fit = fit_cosinor((s.hour_of_day, s.normalized_score) for s in sessions)
    if fit.amplitude <= 0:
        return None
    r = math.sqrt(clip(fit.r_squared, 0.0, 1.0))

    cutoff = now_ms - config.RECENT_WINDOW_DAYS * DAY_MS
    recent = [s for s in sessions if s.timestamp > cutoff]
    recent_r = r
    if len(recent) >= config.MIN_RECENT_PAIRS:
        recent_fit = fit_cosinor((s.hour_of_day, s.normalized_score) for s in recent)
        recent_r = math.sqrt(clip(recent_fit.r_squared, 0.0, 1.0))

    return CorrelationInsight(
        factor="Time of Day",
        outcome=OVERALL,
        correlation=r,
        confidence=confidence(n),
        sample_size=n,
        timelag=0,
        significance=significance(r),
        trend=trend(recent_r, r),
        optimal_hour=fit.acrophase,
    )


# ----------------------------
# Recommendations
# ----------------------------

def _hhmm(hour: float) -> str:
    minutes = int(round((hour % 24.0) * 60)) % (24 * 60)
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def _sleep_challenge(factor: str) -> str:
    if "Quality" in factor:
        return "evening-dim-down"
    if "Duration" in factor:
        return "consistent-pre-sleep-routine"
    if "Consistency" in factor:
        return "wake-time-anchor"
    return "fifteen-minute-shift"


def _nutrition_challenge(factor: str) -> str:
    if "Caffeine" in factor:
        return "smart-caffeine-window"
    if "Meal" in factor:
        return "consistent-meal-windows"
    return "study-snack-swap"


def recommendation_from_insight(insight: CorrelationInsight, priority: str, index: int) -> Optional[Recommendation]:
    r = insight.correlation
    common = dict(
        priority=priority,
        confidence=insight.confidence,
        evidence_correlation=r,
        based_on_days=insight.sample_size,
    )

    if "Sleep" in insight.factor:
        if r <= 0.4:
            return None
        return Recommendation(
            id=f"sleep-{index}",
            category="sleep",
            title="Optimize Your Sleep Pattern",
            description=(
                f"Your {insight.factor.lower()} strongly correlates with {insight.outcome.lower()}. "
                "Focus on maintaining consistent sleep habits."
            ),
            expected_improvement=round(r * 15),
            timeframe="1-2 weeks",
            suggested_challenge=_sleep_challenge(insight.factor),
            **common,
        )

    if "Caffeine" in insight.factor or "Meal" in insight.factor:
        direction = "positive" if r > 0 else "negative"
        return Recommendation(
            id=f"nutrition-{index}",
            category="nutrition",
            title="Adjust Your Nutrition Timing",
            description=f"Your {insight.factor.lower()} shows a {direction} relationship with {insight.outcome.lower()}.",
            expected_improvement=round(abs(r) * 12),
            timeframe="1 week",
            suggested_challenge=_nutrition_challenge(insight.factor),
            **common,
        )

    if "Exercise" in insight.factor:
        return Recommendation(
            id=f"activity-{index}",
            category="activity",
            title="Optimize Exercise Timing",
            description=f"Regular exercise appears to boost your {insight.outcome.lower()} by {round(abs(r) * 100)}%.",
            expected_improvement=round(abs(r) * 10),
            timeframe="2-3 weeks",
            **common,
        )

    if insight.factor == "Time of Day" and insight.optimal_hour is not None:
        return Recommendation(
            id=f"timing-{index}",
            category="timing",
            title="Study Around Your Peak Hour",
            description=(
                f"Your scores peak around {_hhmm(insight.optimal_hour)}. "
                "Schedule the most demanding subjects close to that time."
            ),
            expected_improvement=round(abs(r) * 10),
            timeframe="1 week",
            suggested_challenge="fifteen-minute-shift",
            **common,
        )

    return None


def build_recommendations(insights: Sequence[CorrelationInsight]) -> List[Recommendation]:
    significant = sorted(
        (i for i in insights if abs(i.correlation) > config.RECOMMENDATION_MIN_CORRELATION and i.significance != "low"),
        key=lambda i: abs(i.correlation),
        reverse=True,
    )
    recs: List[Recommendation] = []
    for idx, insight in enumerate(significant):
        rec = recommendation_from_insight(insight, "high" if idx < 3 else "medium", idx)
        if rec is not None:
            recs.append(rec)
    return recs


def progress_summary(insights: Sequence[CorrelationInsight]) -> ProgressSummary:
    improving = sum(1 for i in insights if i.trend == "improving")
    declining = sum(1 for i in insights if i.trend == "declining")
    if improving > declining:
        overall = "improving"
    elif declining > improving:
        overall = "declining"
    else:
        overall = "stable"
    best = [i.factor for i in sorted(insights, key=lambda i: -i.correlation) if i.correlation > 0.3]
    worst = [i.factor for i in sorted(insights, key=lambda i: i.correlation) if i.correlation < -0.3]
    return ProgressSummary(
        overall_trend=overall,
        best_performing_factors=list(dict.fromkeys(best)),
        areas_for_improvement=list(dict.fromkeys(worst)),
    )


# ----------------------------
# Public API
# ----------------------------

def local_day(timestamp_ms: int, tz: dt.tzinfo = dt.timezone.utc) -> dt.date:
    return dt.datetime.fromtimestamp(timestamp_ms / 1000.0, tz=tz).date()


def analyze_feedback(
    factors: Sequence[LifestyleFactor],
    sessions: Sequence[CognitiveSession],
    challenges: Optional[ChallengeData] = None,
    tz: dt.tzinfo = dt.timezone.utc,
) -> FeedbackAnalysis:
    """
    Correlate lifestyle factors with game performance and turn the strong ones
    into recommendations. "Recent" is measured from the newest timestamp in the
    data, so the same snapshot always gives the same answer.
    """
    timestamps = [f.timestamp for f in factors] + [s.timestamp for s in sessions]
    if not timestamps:
        return FeedbackAnalysis()
    now_ms = max(timestamps)

    sleep = [f for f in factors if f.kind == "sleep"]
    nutrition = [f for f in factors if f.kind == "nutrition"]
    activity = [f for f in factors if f.kind == "activity"]

    insights: List[CorrelationInsight] = []
    insights += sleep_insights(sleep, sessions, now_ms)
    insights += nutrition_insights(nutrition, sessions, now_ms)
    insights += activity_insights(activity, sessions, now_ms)
    insights += challenge_insights(challenges, sessions, now_ms, tz)
    t = timing_insight(sessions, now_ms)
    if t:
        insights.append(t)

    logger.debug("feedback analysis: %d insights from %d factors / %d sessions", len(insights), len(factors), len(sessions))

    conf = math.fsum(i.confidence for i in insights) / len(insights) if insights else 0.0
    return FeedbackAnalysis(
        insights=insights,
        recommendations=build_recommendations(insights),
        progress_summary=progress_summary(insights),
        confidence_level=conf,
    )


def find_insight(
    feedback: Optional[FeedbackAnalysis],
    keywords: Sequence[str],
    predicate: Optional[Callable[[float], bool]] = None,
) -> Optional[CorrelationInsight]:
    """First insight whose factor name contains one of the keywords (and whose r passes predicate)."""
    if feedback is None:
        return None
    for i in feedback.insights:
        if any(k in i.factor for k in keywords) and (predicate is None or predicate(i.correlation)):
            return i
    return None
