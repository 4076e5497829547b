# chronosync/models.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union
import math


DOMAINS = ("memory", "attention", "recall", "problemSolving", "creativity")
FACTOR_KINDS = ("sleep", "nutrition", "activity", "challenge")
CATEGORIES = ("sleep", "nutrition", "activity", "timing")


class ValidationError(ValueError):
    """Raised for calls that cannot be absorbed (bad timestamps, unknown enums)."""


def _check_timestamp(ts: Any) -> int:
    try:
        v = float(ts)
    except (TypeError, ValueError):
        raise ValidationError(f"timestamp must be numeric, got {ts!r}")
    if not math.isfinite(v) or v < 0:
        raise ValidationError(f"timestamp must be a non-negative epoch millis value, got {ts!r}")
    return int(v)


def _check_finite(name: str, x: Any) -> float:
    try:
        v = float(x)
    except (TypeError, ValueError):
        raise ValidationError(f"{name} must be numeric, got {x!r}")
    if not math.isfinite(v):
        raise ValidationError(f"{name} must be finite, got {x!r}")
    return v


# ----------------------------
# Inputs
# ----------------------------

@dataclass(frozen=True)
class CognitiveSession:
    """One completed game/test attempt."""
    timestamp: int                   # epoch millis
    domain: str                      # one of DOMAINS
    normalized_score: float          # 0..1
    hour_of_day: float               # 0..24
    raw_score: float = 0.0
    game_type: str = ""

    def __post_init__(self):
        object.__setattr__(self, "timestamp", _check_timestamp(self.timestamp))
        if self.domain not in DOMAINS:
            raise ValidationError(f"unknown cognitive domain {self.domain!r}")
        score = _check_finite("normalized_score", self.normalized_score)
        object.__setattr__(self, "normalized_score", min(1.0, max(0.0, score)))
        hour = _check_finite("hour_of_day", self.hour_of_day)
        object.__setattr__(self, "hour_of_day", hour % 24.0)


@dataclass(frozen=True)
class SleepValue:
    quality_score: Optional[float] = None      # 0..100
    duration_minutes: Optional[float] = None
    bed_time: Optional[str] = None             # "HH:MM"
    wake_time: Optional[str] = None            # "HH:MM"
    waking_events: int = 0


@dataclass(frozen=True)
class NutritionValue:
    caffeine_mg: float = 0.0
    meal_count: int = 0
    fluids_ml: float = 0.0


@dataclass(frozen=True)
class ActivityValue:
    duration_minutes: float = 0.0
    intensity: str = "Light"                   # Light | Medium | Intense


@dataclass(frozen=True)
class ChallengeValue:
    challenge_id: str = ""
    completed: bool = False


FactorValue = Union[SleepValue, NutritionValue, ActivityValue, ChallengeValue]

_VALUE_TYPES = {
    "sleep": SleepValue,
    "nutrition": NutritionValue,
    "activity": ActivityValue,
    "challenge": ChallengeValue,
}


@dataclass(frozen=True)
class LifestyleFactor:
    kind: str                        # sleep | nutrition | activity | challenge
    timestamp: int                   # epoch millis
    value: FactorValue

    def __post_init__(self):
        if self.kind not in FACTOR_KINDS:
            raise ValidationError(f"unknown lifestyle factor kind {self.kind!r}")
        object.__setattr__(self, "timestamp", _check_timestamp(self.timestamp))
        expected = _VALUE_TYPES[self.kind]
        if not isinstance(self.value, expected):
            raise ValidationError(f"{self.kind} factor needs a {expected.__name__}, got {type(self.value).__name__}")


@dataclass(frozen=True)
class QuizResponses:
    """
    Categorical survey answers. Any string is accepted; unknown answers map to
    the default anchor of their table.
    """
    natural_wake: str = ""
    focus_time: str = ""
    test_time: str = ""
    school_start: str = ""
    homework_time: str = ""
    wake_school: Optional[str] = None
    home_time: Optional[str] = None
    extra_time: Optional[str] = None
    extras: Optional[str] = None
    wake_feel: Optional[str] = None
    bed_weekend: Optional[str] = None


@dataclass(frozen=True)
class Challenge:
    challenge_id: str
    daily_progress: Dict[str, bool] = field(default_factory=dict)   # date iso -> completed

    def completion_rate(self) -> float:
        total = len(self.daily_progress)
        if total == 0:
            return 0.0
        return sum(1 for v in self.daily_progress.values() if v) / total


@dataclass(frozen=True)
class ChallengeData:
    active: List[Challenge] = field(default_factory=list)
    completed: List[Challenge] = field(default_factory=list)


# ----------------------------
# Intermediate results
# ----------------------------

@dataclass(frozen=True)
class CosinorResult:
    amplitude: float = 0.0
    acrophase: float = 12.0          # hours, 0..24
    reliability: float = 0.0         # 0..RHO_MAX
    r_squared: float = 0.0


@dataclass(frozen=True)
class ScheduleWindow:
    start: float                     # hour of day
    duration: float                  # hours

    @property
    def end(self) -> float:
        return self.start + self.duration

    def contains(self, hour: float) -> bool:
        return (hour - self.start) % 24.0 <= self.duration


@dataclass(frozen=True)
class CorrelationInsight:
    factor: str
    outcome: str
    correlation: float               # -1..1
    confidence: float                # 0..0.95
    sample_size: int
    timelag: float                   # hours between factor and outcome
    significance: str                # high | medium | low
    trend: str                       # improving | stable | declining
    optimal_hour: Optional[float] = None


@dataclass(frozen=True)
class Recommendation:
    id: str
    category: str                    # sleep | nutrition | activity | timing
    priority: str                    # high | medium | low
    title: str
    description: str
    expected_improvement: float      # percentage points
    confidence: float
    timeframe: str
    evidence_correlation: float
    based_on_days: int
    suggested_challenge: Optional[str] = None


@dataclass(frozen=True)
class ProgressSummary:
    overall_trend: str = "stable"
    best_performing_factors: List[str] = field(default_factory=list)
    areas_for_improvement: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class FeedbackAnalysis:
    insights: List[CorrelationInsight] = field(default_factory=list)
    recommendations: List[Recommendation] = field(default_factory=list)
    progress_summary: ProgressSummary = field(default_factory=ProgressSummary)
    confidence_level: float = 0.0


# ----------------------------
# Output
# ----------------------------

@dataclass(frozen=True)
class WindowPair:
    school: float
    study: float


@dataclass(frozen=True)
class AdaptiveComponents:
    observed_alignment: WindowPair
    predicted_alignment: WindowPair
    adaptation_level: float          # 0..1
    domain_reliability: Dict[str, float]


@dataclass(frozen=True)
class SleepMetrics:
    average_quality: float = 0.0
    consistency: float = 0.0
    duration: float = 0.0            # hours
    nights: int = 0                  # sleep entries seen
    timed_nights: int = 0            # entries with a bed or wake time


@dataclass(frozen=True)
class ChronotypeResult:
    chronotype: str
    out_of_sync: int


@dataclass(frozen=True)
class DynamicAdjustments:
    sleep_quality_bonus: int = 0
    nutrition_timing_bonus: int = 0
    exercise_bonus: int = 0
    challenge_progress_bonus: int = 0
    consistency_bonus: int = 0

    def total(self) -> int:
        return (
            self.sleep_quality_bonus
            + self.nutrition_timing_bonus
            + self.exercise_bonus
            + self.challenge_progress_bonus
            + self.consistency_bonus
        )


@dataclass(frozen=True)
class TrendAnalysis:
    weekly_trend: str = "stable"     # improving | stable | declining
    key_factors: List[str] = field(default_factory=list)
    projected_score: int = 50


@dataclass(frozen=True)
class SyncResult:
    sync_score: int
    school_alignment: int
    study_alignment: int
    learning_phase: float
    social_jetlag_penalty: int
    adaptive_components: AdaptiveComponents
    sleep_metrics: SleepMetrics
    learning_timeline: List[float]
    chronotype: ChronotypeResult
    dynamic_adjustments: DynamicAdjustments
    trend_analysis: TrendAnalysis
    category_weights: Optional[Dict[str, float]] = None
    lifestyle_feedback: Optional[FeedbackAnalysis] = None

    def as_dict(self) -> Dict[str, Any]:
        """camelCase view matching the host application's field names."""
        ac = self.adaptive_components
        adj = self.dynamic_adjustments
        out: Dict[str, Any] = {
            "syncScore": self.sync_score,
            "schoolAlignment": self.school_alignment,
            "studyAlignment": self.study_alignment,
            "learningPhase": self.learning_phase,
            "socialJetlagPenalty": self.social_jetlag_penalty,
            "adaptiveComponents": {
                "observedAlignment": {"school": ac.observed_alignment.school, "study": ac.observed_alignment.study},
                "predictedAlignment": {"school": ac.predicted_alignment.school, "study": ac.predicted_alignment.study},
                "adaptationLevel": ac.adaptation_level,
                "domainReliability": dict(ac.domain_reliability),
            },
            "sleepMetrics": {
                "averageQuality": self.sleep_metrics.average_quality,
                "consistency": self.sleep_metrics.consistency,
                "duration": self.sleep_metrics.duration,
            },
            "learningTimeline": list(self.learning_timeline),
            "chronotype": {"chronotype": self.chronotype.chronotype, "outOfSync": self.chronotype.out_of_sync},
            "dynamicAdjustments": {
                "sleepQualityBonus": adj.sleep_quality_bonus,
                "nutritionTimingBonus": adj.nutrition_timing_bonus,
                "exerciseBonus": adj.exercise_bonus,
                "challengeProgressBonus": adj.challenge_progress_bonus,
                "consistencyBonus": adj.consistency_bonus,
            },
            "trendAnalysis": {
                "weeklyTrend": self.trend_analysis.weekly_trend,
                "keyFactors": list(self.trend_analysis.key_factors),
                "projectedScore": self.trend_analysis.projected_score,
            },
        }
        if self.category_weights is not None:
            out["categoryWeights"] = dict(self.category_weights)
        return out
