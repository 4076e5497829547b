# chronosync/blending.py
from __future__ import annotations

from . import config


def clip(x: float, lo: float, hi: float) -> float:
    return lo if x < lo else hi if x > hi else x


def circular_difference(target: float, origin: float, period: float = config.PERIOD_HOURS) -> float:
    """Signed shortest distance from origin to target on a clock, in (-period/2, period/2]."""
    d = (target - origin) % period
    if d > period / 2:
        d -= period
    return d


def blend(theoretical: float, empirical: float, weight: float) -> float:
    """
    Mix a theory-driven value with an empirical one.
    weight=0 keeps the theory, weight=1 trusts the data completely.
    Used for the phase, the window alignments and every timeline sample.
    """
    w = clip(weight, 0.0, 1.0)
    return (1 - w) * theoretical + w * empirical


def blend_phase(theoretical: float, empirical: float, weight: float) -> float:
    """blend() on the 24h circle: 23h and 1h mix towards midnight, not noon."""
    unwrapped = theoretical + circular_difference(empirical, theoretical)
    return blend(theoretical, unwrapped, weight) % config.PERIOD_HOURS
