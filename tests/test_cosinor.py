from __future__ import annotations

import math
import random
import unittest

from chronosync import config
from chronosync.cosinor import NO_SIGNAL, fit_cosinor, fit_domains, overall_reliability
from chronosync.models import CognitiveSession


def _sinusoid(acrophase: float, amplitude: float = 0.3, mesor: float = 0.5):
    return [(h, mesor + amplitude * math.cos(config.OMEGA * (h - acrophase))) for h in range(24)]


class CosinorTests(unittest.TestCase):
    def test_perfect_sinusoid_recovers_acrophase_and_amplitude(self):
        fit = fit_cosinor(_sinusoid(9.0))
        self.assertAlmostEqual(fit.acrophase, 9.0, delta=0.2)
        self.assertAlmostEqual(fit.amplitude, 0.3, places=6)
        self.assertAlmostEqual(fit.r_squared, 1.0, places=6)
        # n / (n + N0) shrinkage with n = 24
        self.assertAlmostEqual(fit.reliability, 24 / 44, places=6)

    def test_acrophase_near_midnight(self):
        fit = fit_cosinor(_sinusoid(23.5))
        self.assertAlmostEqual(fit.acrophase, 23.5, delta=0.2)

    def test_fewer_than_five_points_gives_neutral_result(self):
        fit = fit_cosinor([(8, 0.4), (12, 0.9), (16, 0.5), (20, 0.3)])
        self.assertEqual(fit, NO_SIGNAL)
        self.assertEqual(fit.acrophase, 12.0)
        self.assertEqual(fit.reliability, 0.0)

    def test_single_hour_is_singular(self):
        fit = fit_cosinor([(10, 0.2 + 0.1 * i) for i in range(8)])
        self.assertEqual(fit, NO_SIGNAL)

    def test_constant_scores_have_no_reliability(self):
        fit = fit_cosinor([(h, 0.6) for h in range(0, 24, 3)])
        self.assertEqual(fit.r_squared, 0.0)
        self.assertEqual(fit.reliability, 0.0)

    def test_reliability_never_exceeds_cap(self):
        rng = random.Random(3)
        for n in (5, 20, 200, 2000):
            pts = [(rng.uniform(0, 24), rng.random()) for _ in range(n)]
            fit = fit_cosinor(pts)
            self.assertGreaterEqual(fit.reliability, 0.0)
            self.assertLessEqual(fit.reliability, config.RHO_MAX)
        fit = fit_cosinor(_sinusoid(14.0) * 100)
        self.assertAlmostEqual(fit.reliability, config.RHO_MAX)

    def test_result_does_not_depend_on_point_order(self):
        rng = random.Random(11)
        pts = [(rng.uniform(0, 24), rng.random()) for _ in range(60)]
        shuffled = list(pts)
        rng.shuffle(shuffled)
        self.assertEqual(fit_cosinor(pts), fit_cosinor(shuffled))

    def test_fit_domains_covers_every_domain(self):
        sessions = [
            CognitiveSession(timestamp=1_000 * h, domain="memory", normalized_score=0.5 + 0.3 * math.cos(config.OMEGA * (h - 10)), hour_of_day=h)
            for h in range(24)
        ]
        fits = fit_domains(sessions)
        self.assertEqual(set(fits), {"memory", "attention", "recall", "problemSolving", "creativity"})
        self.assertAlmostEqual(fits["memory"].acrophase, 10.0, delta=0.2)
        self.assertEqual(fits["attention"], NO_SIGNAL)
        # one reliable domain out of five
        self.assertAlmostEqual(overall_reliability(fits), fits["memory"].reliability / 5)

    def test_overall_reliability_of_nothing_is_zero(self):
        self.assertEqual(overall_reliability({}), 0.0)


if __name__ == "__main__":
    unittest.main()
