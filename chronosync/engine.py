# chronosync/engine.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence, Tuple
import datetime as dt
import logging
import math

from . import config
from .blending import blend, circular_difference, clip
from .cosinor import fit_domains, overall_reliability
from .feedback import analyze_feedback, find_insight
from .importance import category_weights as compute_category_weights
from .models import (
    DOMAINS,
    AdaptiveComponents,
    ChallengeData,
    ChronotypeResult,
    CognitiveSession,
    CosinorResult,
    DynamicAdjustments,
    FeedbackAnalysis,
    LifestyleFactor,
    QuizResponses,
    ScheduleWindow,
    SleepMetrics,
    SyncResult,
    TrendAnalysis,
    WindowPair,
)
from .quiz import (
    homework_window,
    learning_phase,
    natural_wake_hour,
    school_wake_hour,
    school_window,
)
from shared.sleep_metrics import compute_sleep_metrics

logger = logging.getLogger(__name__)


# ----------------------------
# Readiness
# ----------------------------

def readiness(t: float, phase: float, wake_time: Optional[float] = None, beta: float = config.READINESS_BETA) -> float:
    """
    Modeled learning readiness at hour t (0..1):
    circadian cosine peaking at `phase` plus an afternoon bump at 17:00,
    forced to zero during the first hour after waking.
    """
    t = t % 24.0
    if wake_time is not None and 0.0 <= (t - wake_time) % 24.0 < config.GROGGY_WINDOW_HOURS:
        return 0.0
    lc = 0.5 * (1 + math.cos(config.OMEGA * (t - phase)))
    sigma = config.BUMP_SIGMA_HOURS
    bump = math.exp(-((t - config.BUMP_CENTER_HOUR) ** 2) / (2 * sigma * sigma))
    return clip((1 - beta) * lc + beta * bump, 0.0, 1.0)


def mean_readiness(
    start: float,
    duration: float,
    phase: float,
    wake_time: Optional[float] = None,
    samples: int = config.WINDOW_SAMPLES,
) -> float:
    if samples <= 0 or duration <= 0:
        return readiness(start, phase, wake_time)
    total = math.fsum(readiness(start + i * duration / samples, phase, wake_time) for i in range(samples))
    return total / samples


def window_readiness(window: ScheduleWindow, phase: float, wake_time: Optional[float] = None) -> float:
    return mean_readiness(window.start, window.duration, phase, wake_time)


# ----------------------------
# Social jetlag
# ----------------------------

def social_jetlag_penalty(
    natural_wake: float,
    school_wake: Optional[float] = None,
    consistency: Optional[float] = None,
    k: float = config.JETLAG_K,
) -> float:
    """
    exp(-k * d^2) where d is the circular gap between natural and school-day
    midsleep. Erratic sleepers (low consistency) lose up to a further 20%;
    pass consistency=None when no bed or wake times were logged.
    """
    if school_wake is None:
        school_wake = natural_wake
    natural_mid = (natural_wake - config.MIDSLEEP_OFFSET_HOURS) % 24.0
    actual_mid = (school_wake - config.MIDSLEEP_OFFSET_HOURS) % 24.0
    delta = abs(circular_difference(actual_mid, natural_mid))
    penalty = math.exp(-k * delta * delta)
    if consistency is not None:
        floor = config.CONSISTENCY_FLOOR
        penalty *= floor + (1 - floor) * clip(consistency / 100.0, 0.0, 1.0)
    return clip(penalty, 0.0, 1.0)


# ----------------------------
# Observed alignment
# ----------------------------

def _logistic(x: float, gain: float = config.OBSERVED_LOGISTIC_GAIN) -> float:
    return 1.0 / (1.0 + math.exp(-gain * (x - 0.5)))


def observed_window_alignment(sessions: Sequence[CognitiveSession], window: ScheduleWindow) -> Optional[float]:
    """Squashed mean score of sessions played inside the window; None if none were."""
    scores = [s.normalized_score for s in sessions if window.contains(s.hour_of_day)]
    if not scores:
        return None
    return _logistic(math.fsum(scores) / len(scores))


# ----------------------------
# Composer
# ----------------------------

def compose_score(
    penalty: float,
    predicted: WindowPair,
    observed: WindowPair,
    reliability: float,
    adjustments: Optional[DynamicAdjustments] = None,
) -> Tuple[float, int]:
    """(base score, final 0..100 sync score) for the weighted school/study alignments."""
    theory = config.SCHOOL_WEIGHT * predicted.school + config.STUDY_WEIGHT * predicted.study
    evidence = config.SCHOOL_WEIGHT * observed.school + config.STUDY_WEIGHT * observed.study
    base = 100.0 * clip(penalty, 0.0, 1.0) * blend(theory, evidence, reliability)
    bonus = adjustments.total() if adjustments is not None else 0
    return base, int(round(clip(base + bonus, 0.0, 100.0)))


# ----------------------------
# Chronotype
# ----------------------------

def classify_chronotype(phase: float) -> ChronotypeResult:
    phase = phase % 24.0
    if phase < 10:
        label, raw = "Lion", abs(phase - 8) * 5
    elif phase < 14:
        label, raw = "Bear", abs(phase - 12) * 4
    elif phase < 18:
        label, raw = "Wolf", abs(phase - 16) * 5
    else:
        label, raw = "Dolphin", min(abs(phase - 20), abs(phase - 6)) * 6
    return ChronotypeResult(chronotype=label, out_of_sync=int(round(clip(raw, 0.0, 100.0))))


# ----------------------------
# Timeline
# ----------------------------

def learning_timeline(
    phase: float,
    fits: Optional[Dict[str, CosinorResult]] = None,
    wake_time: Optional[float] = None,
    bins: int = config.TIMELINE_BINS,
) -> List[float]:
    """Readiness over the day in 15-minute bins, pulled towards the fitted domain curves."""
    step = 24.0 / bins
    hours = [i * step for i in range(bins)]
    theoretical = [readiness(h, phase, wake_time) for h in hours]

    fits = fits or {}
    rel = overall_reliability(fits)
    if rel < config.TIMELINE_MIN_RELIABILITY:
        return theoretical

    reliable = [f for f in fits.values() if f.reliability > 0]
    rel_sum = math.fsum(f.reliability for f in reliable)
    if rel_sum <= 0:
        return theoretical

    out: List[float] = []
    for h, th in zip(hours, theoretical):
        observed = math.fsum(
            f.reliability * 0.5 * (1 + f.amplitude * math.cos(config.OMEGA * (h - f.acrophase))) for f in reliable
        ) / rel_sum
        out.append(clip(blend(th, observed, rel), 0.0, 1.0))
    return out


# ----------------------------
# Adjustments & trend
# ----------------------------

def dynamic_adjustments(
    feedback: Optional[FeedbackAnalysis],
    sleep: SleepMetrics,
    challenges: Optional[ChallengeData] = None,
) -> DynamicAdjustments:
    """Additive score terms; each one is bounded on its own."""
    sleep_bonus = 0.0
    if sleep.nights > 0:
        sleep_bonus += (sleep.average_quality - 70.0) * 0.1        # [-7, 3]
    nutrition_bonus = 0
    exercise_bonus = 0

    if feedback is not None:
        sleep_insight = find_insight(feedback, ("Sleep",), lambda r: r > 0.3)
        if sleep_insight is not None:
            sleep_bonus += round(sleep_insight.correlation * 10)

        nutrition_insight = find_insight(feedback, ("Caffeine", "Meal"))
        if nutrition_insight is not None:
            nutrition_bonus = int(round(abs(nutrition_insight.correlation) * 8))
            if nutrition_insight.correlation < 0:
                nutrition_bonus = -nutrition_bonus

        exercise_insight = find_insight(feedback, ("Exercise", "Activity"))
        if exercise_insight is not None and exercise_insight.correlation > 0:
            exercise_bonus = int(round(exercise_insight.correlation * 6))

    challenge_bonus = 0
    if challenges is not None and challenges.active:
        rate = math.fsum(c.completion_rate() for c in challenges.active) / len(challenges.active)
        challenge_bonus = int(round(clip(rate, 0.0, 1.0) * 8))

    consistency_bonus = 0
    if sleep.consistency > 80:
        consistency_bonus = int(round((min(sleep.consistency, 100.0) - 80) * 0.2))

    return DynamicAdjustments(
        sleep_quality_bonus=int(round(clip(sleep_bonus, -10, 10))),
        nutrition_timing_bonus=int(clip(nutrition_bonus, -8, 8)),
        exercise_bonus=int(clip(exercise_bonus, 0, 6)),
        challenge_progress_bonus=int(clip(challenge_bonus, 0, 8)),
        consistency_bonus=int(clip(consistency_bonus, 0, 4)),
    )


def _session_order(s: CognitiveSession):
    return (s.timestamp, s.domain, s.normalized_score, s.hour_of_day, s.raw_score, s.game_type)


def trend_analysis(sessions: Sequence[CognitiveSession], feedback: Optional[FeedbackAnalysis] = None) -> TrendAnalysis:
    if len(sessions) < config.TREND_MIN_SESSIONS:
        return TrendAnalysis(weekly_trend="stable", key_factors=[], projected_score=config.NEUTRAL_PROJECTED_SCORE)

    ordered = sorted(sessions, key=_session_order)
    recent = ordered[-7:]
    previous = ordered[-14:-7]
    recent_avg = math.fsum(s.normalized_score for s in recent) / len(recent)
    previous_avg = math.fsum(s.normalized_score for s in previous) / len(previous) if previous else recent_avg

    if recent_avg > previous_avg + config.TREND_BAND:
        trend, direction = "improving", 1
    elif recent_avg < previous_avg - config.TREND_BAND:
        trend, direction = "declining", -1
    else:
        trend, direction = "stable", 0

    key_factors: List[str] = []
    if feedback is not None:
        key_factors = [i.factor for i in feedback.insights if abs(i.correlation) > 0.4][:3]

    projected = int(round(clip(round(recent_avg * 100 + direction * 5), 0, 100)))
    return TrendAnalysis(weekly_trend=trend, key_factors=key_factors, projected_score=projected)


# ----------------------------
# Public API
# ----------------------------

def compute_sync(
    responses: QuizResponses,
    sessions: Sequence[CognitiveSession] = (),
    factors: Sequence[LifestyleFactor] = (),
    challenges: Optional[ChallengeData] = None,
    tz: dt.tzinfo = dt.timezone.utc,
) -> SyncResult:
    """
    One stateless batch pass: questionnaire theory, cosinor evidence and
    lifestyle signals are combined into a SyncResult. Never fails on sparse or
    degenerate data; only malformed inputs (rejected by the models) raise.
    """
    sessions = list(sessions)
    factors = list(factors)

    feedback = analyze_feedback(factors, sessions, challenges, tz=tz)
    timing_insight = find_insight(feedback, ("Time of Day",))
    phi = learning_phase(responses, timing_insight)

    school = school_window(responses)
    study = homework_window(responses, school.end)
    wake_time = school_wake_hour(responses)

    predicted_school = window_readiness(school, phi, wake_time)
    predicted_study = window_readiness(study, phi, wake_time)

    fits = fit_domains(sessions)
    reliability = overall_reliability(fits)

    obs_school = observed_window_alignment(sessions, school)
    obs_study = observed_window_alignment(sessions, study)
    observed_school = predicted_school if obs_school is None else obs_school
    observed_study = predicted_study if obs_study is None else obs_study

    sleep = compute_sleep_metrics(factors)
    consistency = sleep.consistency if sleep.timed_nights else None
    penalty = social_jetlag_penalty(natural_wake_hour(responses), wake_time, consistency)

    predicted = WindowPair(school=predicted_school, study=predicted_study)
    observed = WindowPair(school=observed_school, study=observed_study)
    adjustments = dynamic_adjustments(feedback, sleep, challenges)
    base_score, sync_score = compose_score(penalty, predicted, observed, reliability, adjustments)

    weights = compute_category_weights(factors, sessions, tz=tz)

    logger.debug(
        "sync computed: phase=%.2f reliability=%.3f penalty=%.3f base=%.1f adjustments=%d",
        phi, reliability, penalty, base_score, adjustments.total(),
    )

    return SyncResult(
        sync_score=sync_score,
        school_alignment=int(round(predicted_school * 100)),
        study_alignment=int(round(predicted_study * 100)),
        learning_phase=round(phi, 1) % 24.0,
        social_jetlag_penalty=int(round(penalty * 100)),
        adaptive_components=AdaptiveComponents(
            observed_alignment=observed,
            predicted_alignment=predicted,
            adaptation_level=reliability,
            domain_reliability={d: fits[d].reliability for d in DOMAINS},
        ),
        sleep_metrics=sleep,
        learning_timeline=learning_timeline(phi, fits, wake_time),
        chronotype=classify_chronotype(phi),
        dynamic_adjustments=adjustments,
        trend_analysis=trend_analysis(sessions, feedback),
        category_weights=weights,
        lifestyle_feedback=feedback,
    )
