# chronosync/cosinor.py
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple
import logging
import math

from . import config
from .blending import clip
from .models import DOMAINS, CognitiveSession, CosinorResult

logger = logging.getLogger(__name__)

NO_SIGNAL = CosinorResult(amplitude=0.0, acrophase=config.NEUTRAL_ACROPHASE, reliability=0.0, r_squared=0.0)


def fit_cosinor(
    points: Iterable[Tuple[float, float]],
    rho_max: float = config.RHO_MAX,
    n0: float = config.N0,
) -> CosinorResult:
    """
    Least-squares fit of y = mean + a*cos(wt) + b*sin(wt) over (hour, score) pairs.
    Only sufficient statistics are used (exactly rounded sums), so the result
    does not depend on the order of the points.
    """
    pts = [(float(h) % 24.0, float(y)) for h, y in points]
    n = len(pts)
    if n < config.MIN_COSINOR_SAMPLES:
        return NO_SIGNAL

    w = config.OMEGA
    cs = [math.cos(w * t) for t, _ in pts]
    ss = [math.sin(w * t) for t, _ in pts]
    ys = [y for _, y in pts]

    mean_y = math.fsum(ys) / n
    mean_c = math.fsum(cs) / n
    mean_s = math.fsum(ss) / n

    # centred second moments
    scc = math.fsum(c * c for c in cs) - n * mean_c * mean_c
    sss = math.fsum(s * s for s in ss) - n * mean_s * mean_s
    scs = math.fsum(c * s for c, s in zip(cs, ss)) - n * mean_c * mean_s
    syc = math.fsum(y * c for y, c in zip(ys, cs)) - n * mean_y * mean_c
    sys_ = math.fsum(y * s for y, s in zip(ys, ss)) - n * mean_y * mean_s

    det = scc * sss - scs * scs
    if abs(det) < config.SINGULAR_EPS:
        logger.debug("cosinor normal equations singular (det=%.3g, n=%d)", det, n)
        return NO_SIGNAL

    a = (syc * sss - sys_ * scs) / det
    b = (sys_ * scc - syc * scs) / det

    amplitude = math.hypot(a, b)
    acrophase = (math.atan2(b, a) / w) % 24.0

    # Fitted mean is the intercept of the centred regression.
    intercept = mean_y - a * mean_c - b * mean_s
    ss_res = math.fsum((y - (intercept + a * c + b * s)) ** 2 for y, c, s in zip(ys, cs, ss))
    ss_tot = math.fsum((y - mean_y) ** 2 for y in ys)
    r_squared = 1.0 - ss_res / ss_tot if ss_tot > 0 else 0.0
    r_squared = min(1.0, r_squared)

    reliability = min(rho_max, (n / (n + n0)) * max(0.0, r_squared))

    if not all(math.isfinite(v) for v in (amplitude, acrophase, r_squared, reliability)):
        return NO_SIGNAL

    return CosinorResult(amplitude=amplitude, acrophase=acrophase, reliability=reliability, r_squared=r_squared)


def fit_domains(sessions: Iterable[CognitiveSession]) -> Dict[str, CosinorResult]:
    by_domain: Dict[str, List[Tuple[float, float]]] = {d: [] for d in DOMAINS}
    for s in sessions:
        by_domain[s.domain].append((s.hour_of_day, s.normalized_score))
    return {d: fit_cosinor(pts) for d, pts in by_domain.items()}


def overall_reliability(fits: Dict[str, CosinorResult]) -> float:
    if not fits:
        return 0.0
    return clip(math.fsum(f.reliability for f in fits.values()) / len(DOMAINS), 0.0, config.RHO_MAX)
