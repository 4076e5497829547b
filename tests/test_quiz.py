from __future__ import annotations

import unittest

from chronosync.blending import blend, blend_phase, circular_difference
from chronosync.models import CorrelationInsight, QuizResponses
from chronosync.quiz import homework_window, learning_phase, natural_wake_hour, school_wake_hour, school_window


def _timing(optimal_hour: float, r: float) -> CorrelationInsight:
    return CorrelationInsight(
        factor="Time of Day",
        outcome="Overall Cognitive Performance",
        correlation=r,
        confidence=0.5,
        sample_size=15,
        timelag=0,
        significance="medium",
        trend="stable",
        optimal_hour=optimal_hour,
    )


class BlendingTests(unittest.TestCase):
    def test_blend_endpoints_and_clipping(self):
        self.assertEqual(blend(0.2, 0.8, 0.0), 0.2)
        self.assertEqual(blend(0.2, 0.8, 1.0), 0.8)
        self.assertEqual(blend(0.2, 0.8, 5.0), 0.8)
        self.assertEqual(blend(0.2, 0.8, -1.0), 0.2)
        self.assertAlmostEqual(blend(0.2, 0.8, 0.5), 0.5)

    def test_circular_difference_takes_short_way_round(self):
        self.assertAlmostEqual(circular_difference(1.0, 23.0), 2.0)
        self.assertAlmostEqual(circular_difference(23.0, 1.0), -2.0)
        self.assertAlmostEqual(circular_difference(12.0, 0.0), 12.0)

    def test_blend_phase_crosses_midnight(self):
        self.assertAlmostEqual(blend_phase(23.0, 1.0, 0.5), 0.0)
        self.assertAlmostEqual(blend_phase(22.0, 2.0, 0.25), 23.0)


class QuizTests(unittest.TestCase):
    def test_default_answers(self):
        phi = learning_phase(QuizResponses())
        # 9 + 0.6 * 5 + 0.4 * 5
        self.assertAlmostEqual(phi, 14.0)

    def test_morning_person(self):
        r = QuizResponses(natural_wake="Before 8 AM", focus_time="Morning", test_time="Morning")
        self.assertAlmostEqual(learning_phase(r), 9.0)

    def test_evening_person(self):
        r = QuizResponses(natural_wake="After 10 AM", focus_time="Evening", test_time="Evening")
        self.assertAlmostEqual(learning_phase(r), 20.0)

    def test_wake_feel_and_weekend_bedtime_shift_phase(self):
        base = QuizResponses(natural_wake="8–10 AM", focus_time="Afternoon", test_time="Midday")
        phi = learning_phase(base)
        self.assertAlmostEqual(phi, 9 + 4.2 + 2.0)

        groggy = QuizResponses(natural_wake="8–10 AM", focus_time="Afternoon", test_time="Midday", wake_feel="Super groggy")
        awake = QuizResponses(natural_wake="8–10 AM", focus_time="Afternoon", test_time="Midday", wake_feel="Wide awake")
        late = QuizResponses(natural_wake="8–10 AM", focus_time="Afternoon", test_time="Midday", bed_weekend="After Midnight")
        early = QuizResponses(natural_wake="8–10 AM", focus_time="Afternoon", test_time="Midday", bed_weekend="Before 10 PM")
        self.assertAlmostEqual(learning_phase(groggy), phi + 1.0)
        self.assertAlmostEqual(learning_phase(awake), phi - 0.5)
        self.assertAlmostEqual(learning_phase(late), phi + 1.0)
        self.assertAlmostEqual(learning_phase(early), phi - 1.0)

    def test_unknown_answers_fall_back_to_defaults(self):
        r = QuizResponses(natural_wake="sometime", focus_time="never", test_time="???")
        self.assertAlmostEqual(learning_phase(r), 14.0)
        self.assertEqual(natural_wake_hour(r), 9.0)

    def test_plain_hyphen_matches_en_dash_answer(self):
        self.assertEqual(natural_wake_hour(QuizResponses(natural_wake="8-10 AM")), 9.0)
        self.assertEqual(school_wake_hour(QuizResponses(wake_school="6-6:59 AM")), 6.5)

    def test_phase_is_always_on_the_clock(self):
        r = QuizResponses(
            natural_wake="After 10 AM",
            focus_time="Evening",
            test_time="Evening",
            wake_feel="Super groggy",
            bed_weekend="After Midnight",
        )
        phi = learning_phase(r, _timing(4.0, 0.9))
        self.assertGreaterEqual(phi, 0.0)
        self.assertLess(phi, 24.0)

    def test_strong_timing_insight_pulls_phase(self):
        phi = learning_phase(QuizResponses(), _timing(20.0, 0.5))
        self.assertAlmostEqual(phi, 14.0 + 0.3 * 6.0)

    def test_weak_timing_insight_is_ignored(self):
        self.assertAlmostEqual(learning_phase(QuizResponses(), _timing(20.0, 0.3)), 14.0)

    def test_timing_insight_blend_wraps_midnight(self):
        r = QuizResponses(
            natural_wake="After 10 AM",
            focus_time="Evening",
            test_time="Evening",
            wake_feel="Super groggy",
            bed_weekend="After Midnight",
        )
        self.assertAlmostEqual(learning_phase(r), 22.0)
        self.assertAlmostEqual(learning_phase(r, _timing(2.0, 0.8)), 23.2)


class ScheduleWindowTests(unittest.TestCase):
    def test_school_window(self):
        w = school_window(QuizResponses(school_start="Before 7:30 AM"))
        self.assertEqual(w.start, 7.25)
        self.assertEqual(w.end, 13.75)
        self.assertEqual(school_window(QuizResponses()).start, 7.75)
        self.assertEqual(school_window(QuizResponses(school_start="After 8:00 AM")).start, 8.5)

    def test_homework_window(self):
        after_school = homework_window(QuizResponses(homework_time="Right after school"))
        self.assertEqual((after_school.start, after_school.duration), (14.75, 1.5))
        depends = homework_window(QuizResponses(homework_time="Depends"))
        self.assertEqual((depends.start, depends.duration), (14.75, 1.0))
        dinner = homework_window(QuizResponses(homework_time="After dinner"))
        self.assertEqual((dinner.start, dinner.duration), (19.0, 1.5))
        night = homework_window(QuizResponses(homework_time="Late at night"))
        self.assertEqual((night.start, night.duration), (21.0, 1.5))

    def test_window_contains_wraps_midnight(self):
        w = homework_window(QuizResponses(homework_time="Late at night"))
        self.assertTrue(w.contains(22.5))
        self.assertFalse(w.contains(20.9))
        late = school_window(QuizResponses())
        self.assertTrue(late.contains(10.0))
        self.assertFalse(late.contains(2.0))

    def test_school_wake_hour(self):
        self.assertIsNone(school_wake_hour(QuizResponses()))
        self.assertEqual(school_wake_hour(QuizResponses(wake_school="Before 6 AM")), 5.5)
        self.assertEqual(school_wake_hour(QuizResponses(wake_school="8 AM or later")), 8.5)
        self.assertEqual(school_wake_hour(QuizResponses(wake_school="noon")), 7.5)


if __name__ == "__main__":
    unittest.main()
