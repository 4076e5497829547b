# services/analysis_service.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import List, Optional
import datetime as dt
import logging

from chronosync import config
from chronosync.engine import compute_sync
from chronosync.importance import reorder_recommendations
from chronosync.models import ChallengeData, CognitiveSession, LifestyleFactor, QuizResponses, SyncResult
from data.cache import ResultCache

logger = logging.getLogger(__name__)

DAY_MS = 24 * 3600 * 1000


@dataclass
class AnalysisSnapshot:
    """Everything the host loaded for one user before calling the engine."""
    responses: QuizResponses
    sessions: List[CognitiveSession] = field(default_factory=list)
    factors: List[LifestyleFactor] = field(default_factory=list)
    challenges: Optional[ChallengeData] = None


def recent_window(snapshot: AnalysisSnapshot, now_ms: int, days: int = config.ANALYSIS_WINDOW_DAYS) -> AnalysisSnapshot:
    """Keep only entries from the last `days` days up to now_ms."""
    start = now_ms - days * DAY_MS
    return AnalysisSnapshot(
        responses=snapshot.responses,
        sessions=[s for s in snapshot.sessions if start <= s.timestamp <= now_ms],
        factors=[f for f in snapshot.factors if start <= f.timestamp <= now_ms],
        challenges=snapshot.challenges,
    )


class AnalysisService:
    """
    Host-facing entry point: windowing, caching, and recommendation ordering
    around the pure engine.
    """

    def __init__(
        self,
        cache: Optional[ResultCache[SyncResult]] = None,
        window_days: int = config.ANALYSIS_WINDOW_DAYS,
        tz: dt.tzinfo = dt.timezone.utc,
    ):
        self.cache = cache if cache is not None else ResultCache()
        self.window_days = window_days
        self.tz = tz

    def analyze(self, user_id: str, snapshot: AnalysisSnapshot, now_ms: int, force: bool = False) -> SyncResult:
        if not force:
            cached = self.cache.get(user_id)
            if cached is not None:
                logger.info("sync analysis cache hit for %s", user_id)
                return cached

        window = recent_window(snapshot, now_ms, self.window_days)
        result = compute_sync(
            window.responses,
            sessions=window.sessions,
            factors=window.factors,
            challenges=window.challenges,
            tz=self.tz,
        )

        feedback = result.lifestyle_feedback
        if feedback is not None and feedback.recommendations:
            ordered = reorder_recommendations(feedback.recommendations, result.category_weights)
            result = replace(result, lifestyle_feedback=replace(feedback, recommendations=ordered))

        self.cache.set(user_id, result)
        logger.info(
            "sync analysis for %s: score=%d sessions=%d factors=%d",
            user_id, result.sync_score, len(window.sessions), len(window.factors),
        )
        return result

    def invalidate(self, user_id: str) -> None:
        """Call after new data is recorded for the user."""
        self.cache.invalidate(user_id)

    def clear(self) -> None:
        self.cache.clear()
