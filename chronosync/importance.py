# chronosync/importance.py
"""
Which lifestyle category explains most of a user's day-to-day cognitive
variance? A per-domain ridge regression over daily features answers that, and
the averaged weights decide the order recommendations are shown in.

The system is at most 4x4, so it is solved by hand with Gauss-Jordan
elimination. If the feature set grows, switch to a proper linear-algebra
routine rather than extending this one.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence
import datetime as dt
import logging
import math

from . import config
from .blending import clip
from .models import (
    CATEGORIES,
    ActivityValue,
    CognitiveSession,
    LifestyleFactor,
    NutritionValue,
    Recommendation,
    SleepValue,
)
from shared.sleep_metrics import sleep_quality

logger = logging.getLogger(__name__)

FEATURES = ("sleepQuality", "totalCaffeine", "activityMinutes", "mealCount")


@dataclass
class DayFeatures:
    sleep_quality: float = 0.0       # 0..1, best night logged for the day
    caffeine_mg: float = 0.0         # summed over the day
    activity_minutes: float = 0.0    # summed over the day
    meal_count: float = 0.0          # summed over the day

    def vector(self) -> List[float]:
        return [
            clip(self.sleep_quality, 0.0, 1.0),
            min(1.0, max(0.0, self.caffeine_mg) / config.CAFFEINE_CAP_MG),
            min(1.0, max(0.0, self.activity_minutes) / config.ACTIVITY_CAP_MINUTES),
            min(1.0, max(0.0, self.meal_count) / config.MEAL_CAP),
        ]


def _day(timestamp_ms: int, tz: dt.tzinfo) -> dt.date:
    return dt.datetime.fromtimestamp(timestamp_ms / 1000.0, tz=tz).date()


def daily_features(factors: Sequence[LifestyleFactor], tz: dt.tzinfo = dt.timezone.utc) -> Dict[dt.date, DayFeatures]:
    sleep: Dict[dt.date, List[float]] = {}
    caffeine: Dict[dt.date, List[float]] = {}
    activity: Dict[dt.date, List[float]] = {}
    meals: Dict[dt.date, List[float]] = {}
    for f in factors:
        day = _day(f.timestamp, tz)
        v = f.value
        if isinstance(v, SleepValue):
            sleep.setdefault(day, []).append(sleep_quality(v) / 100.0)
        elif isinstance(v, NutritionValue):
            caffeine.setdefault(day, []).append(max(0.0, float(v.caffeine_mg)))
            meals.setdefault(day, []).append(float(max(0, int(v.meal_count))))
        elif isinstance(v, ActivityValue):
            activity.setdefault(day, []).append(max(0.0, float(v.duration_minutes)))

    days: Dict[dt.date, DayFeatures] = {}
    for day in set(sleep) | set(caffeine) | set(activity) | set(meals):
        days[day] = DayFeatures(
            sleep_quality=max(sleep.get(day, [0.0])),
            caffeine_mg=math.fsum(caffeine.get(day, [])),
            activity_minutes=math.fsum(activity.get(day, [])),
            meal_count=math.fsum(meals.get(day, [])),
        )
    return days


def daily_outcomes(sessions: Sequence[CognitiveSession], tz: dt.tzinfo = dt.timezone.utc) -> Dict[str, Dict[dt.date, float]]:
    """domain -> day -> mean normalized score."""
    buckets: Dict[str, Dict[dt.date, List[float]]] = {}
    for s in sessions:
        buckets.setdefault(s.domain, {}).setdefault(_day(s.timestamp, tz), []).append(s.normalized_score)
    return {
        domain: {day: math.fsum(scores) / len(scores) for day, scores in days.items()}
        for domain, days in buckets.items()
    }


# ----------------------------
# Solver
# ----------------------------

def solve_ridge(X: Sequence[Sequence[float]], y: Sequence[float], lam: float = config.RIDGE_LAMBDA) -> List[float]:
    """
    Solve (X^T X + lam*I) w = X^T y by Gauss-Jordan with partial pivoting.
    A column whose best pivot is below PIVOT_EPS is skipped and its weight
    stays at 0, so degenerate features never raise.
    """
    n_feat = len(X[0]) if X else 0
    if n_feat == 0:
        return []

    xtx = [[0.0] * n_feat for _ in range(n_feat)]
    xty = [0.0] * n_feat
    for row, target in zip(X, y):
        for a in range(n_feat):
            xty[a] += row[a] * target
            for b in range(n_feat):
                xtx[a][b] += row[a] * row[b]
    for d in range(n_feat):
        xtx[d][d] += lam

    A = [xtx[i] + [xty[i]] for i in range(n_feat)]
    skipped = [False] * n_feat

    for col in range(n_feat):
        piv = col
        for r in range(col + 1, n_feat):
            if abs(A[r][col]) > abs(A[piv][col]):
                piv = r
        if abs(A[piv][col]) < config.PIVOT_EPS:
            logger.debug("ridge solve: skipping near-singular column %d", col)
            skipped[col] = True
            continue
        A[col], A[piv] = A[piv], A[col]

        div = A[col][col]
        for c in range(col, n_feat + 1):
            A[col][c] /= div

        for r in range(n_feat):
            if r == col:
                continue
            factor = A[r][col]
            if factor == 0.0:
                continue
            for c in range(col, n_feat + 1):
                A[r][c] -= factor * A[col][c]

    w = [0.0 if skipped[i] else A[i][n_feat] for i in range(n_feat)]
    return [v if math.isfinite(v) else 0.0 for v in w]


def feature_importances(X: Sequence[Sequence[float]], y: Sequence[float], lam: float = config.RIDGE_LAMBDA) -> List[float]:
    """Ridge weights scaled so that sum(|w|) = 1 (all zeros if nothing was learned)."""
    w = solve_ridge(X, y, lam)
    s = math.fsum(abs(v) for v in w)
    if s <= 0:
        return [0.0 for _ in w]
    return [v / s for v in w]


# ----------------------------
# Category weights
# ----------------------------

def _zero_weights() -> Dict[str, float]:
    return {c: 0.0 for c in CATEGORIES}


def category_weights(
    factors: Sequence[LifestyleFactor],
    sessions: Sequence[CognitiveSession],
    tz: dt.tzinfo = dt.timezone.utc,
    lam: float = config.RIDGE_LAMBDA,
) -> Dict[str, float]:
    """
    Average per-domain importances and fold them into recommendation
    categories. "timing" has no feature of its own yet and borrows the mean of
    the sleep and caffeine weights.
    """
    features = daily_features(factors, tz)
    outcomes = daily_outcomes(sessions, tz)

    accum = [0.0] * len(FEATURES)
    domains_used = 0
    for domain in sorted(outcomes):
        days = sorted(d for d in outcomes[domain] if d in features)
        if not days:
            continue
        X = [features[d].vector() for d in days]
        y = [clip(outcomes[domain][d], 0.0, 1.0) for d in days]
        w = feature_importances(X, y, lam)
        for i, v in enumerate(w):
            accum[i] += v
        domains_used += 1

    if domains_used == 0:
        return _zero_weights()

    avg = [v / domains_used for v in accum]
    raw = {
        "sleep": avg[0],
        "nutrition": avg[1] + avg[3],
        "activity": avg[2],
        "timing": (avg[0] + avg[1]) / 2,
    }
    total = math.fsum(abs(v) for v in raw.values())
    if total <= 0:
        return _zero_weights()
    return {c: abs(raw[c]) / total for c in CATEGORIES}


def reorder_recommendations(
    recommendations: Sequence[Recommendation],
    weights: Optional[Dict[str, float]],
) -> List[Recommendation]:
    """Stable sort: highest-weight category first, original order within a category."""
    if not weights:
        return list(recommendations)
    return sorted(recommendations, key=lambda r: -weights.get(r.category, 0.0))
