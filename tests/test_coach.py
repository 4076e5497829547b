from __future__ import annotations

import unittest

from chronosync.coach import _mask_to_spans, interpret_timeline, peak_windows, suggest_study_blocks
from chronosync.engine import compute_sync
from chronosync.models import QuizResponses
from chronosync.quiz import homework_window, school_window

MORNING = QuizResponses(
    natural_wake="Before 8 AM",
    focus_time="Morning",
    test_time="Morning",
    school_start="7:30–8:00 AM",
    homework_time="Right after school",
)

NIGHT_OWL = QuizResponses(
    natural_wake="After 10 AM",
    focus_time="Evening",
    test_time="Evening",
    school_start="Before 7:30 AM",
    homework_time="Right after school",
    wake_school="Before 6 AM",
)


class CoachTests(unittest.TestCase):
    def test_mask_to_spans_merges_across_midnight(self):
        mask = [False] * 96
        for i in list(range(0, 4)) + list(range(40, 48)) + list(range(92, 96)):
            mask[i] = True
        spans = _mask_to_spans(mask)
        self.assertIn((10.0, 12.0), spans)
        self.assertIn((23.0, 25.0), spans)
        self.assertEqual(len(spans), 2)

    def test_peak_windows_relative_to_daily_maximum(self):
        timeline = [0.9 if 36 <= i < 44 else 0.2 for i in range(96)]
        self.assertEqual(peak_windows(timeline), [(9.0, 11.0)])
        spike = [0.3] * 96
        spike[50] = 0.6
        self.assertEqual(peak_windows(spike), [(12.5, 12.75)])
        self.assertEqual(peak_windows([0.4] * 96), [(0.0, 24.0)])
        self.assertEqual(peak_windows([0.0] * 96), [])
        self.assertEqual(peak_windows([]), [])

    def test_study_blocks_fill_target_from_peaks(self):
        res = compute_sync(MORNING)
        blocks = suggest_study_blocks(res, target_minutes=120)
        self.assertTrue(blocks)
        self.assertTrue(all(b.label == "Deep Study" for b in blocks))
        minutes = sum(((b.end - b.start) % 24.0) * 60 for b in blocks)
        self.assertLessEqual(minutes, 120 + 1e-6)
        # morning person peaks around 09:00
        self.assertTrue(any(7.0 <= b.start <= 10.0 for b in blocks))

    def test_interpretation_mentions_peak_and_poor_school_fit(self):
        res = compute_sync(NIGHT_OWL)
        notes = interpret_timeline(res, school_window(NIGHT_OWL), homework_window(NIGHT_OWL))
        self.assertTrue(notes[0].startswith("Your learning readiness peaks around"))
        self.assertTrue(any("School hours match your rhythm poorly" in n for n in notes))
        self.assertTrue(any("wake times" in n for n in notes))


if __name__ == "__main__":
    unittest.main()
