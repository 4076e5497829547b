from __future__ import annotations

import json
import unittest
from zoneinfo import ZoneInfo

from chronosync.models import ActivityValue, NutritionValue, SleepValue, ValidationError
from shared.lifestyle_input import (
    challenges_from_dict,
    factor_from_record,
    factors_from_json,
    quiz_from_dict,
    session_from_record,
    sessions_from_json,
)

# 2026-03-02 14:30 UTC
TS = 1_772_461_800_000


class SessionInputTests(unittest.TestCase):
    def test_camel_case_record_with_metadata_hour(self):
        s = session_from_record(
            {
                "timestamp": TS,
                "domain": "problemSolving",
                "normalizedScore": 0.72,
                "rawScore": 1440,
                "gameType": "tower",
                "sessionMetadata": {"timeOfDay": 19.5},
            }
        )
        self.assertEqual(s.domain, "problemSolving")
        self.assertEqual(s.normalized_score, 0.72)
        self.assertEqual(s.hour_of_day, 19.5)
        self.assertEqual(s.raw_score, 1440.0)
        self.assertEqual(s.game_type, "tower")

    def test_legacy_score_and_hour_from_timestamp(self):
        s = session_from_record({"ts": TS, "domain": "memory", "score": 80})
        self.assertAlmostEqual(s.normalized_score, 0.8)
        self.assertEqual(s.hour_of_day, 14.5)

    def test_hour_uses_timezone(self):
        s = session_from_record({"timestamp": TS, "domain": "recall", "normalized_score": 0.5}, ZoneInfo("Asia/Seoul"))
        self.assertEqual(s.hour_of_day, 23.5)

    def test_score_is_clipped(self):
        s = session_from_record({"timestamp": TS, "domain": "attention", "normalizedScore": 1.7, "hourOfDay": 9})
        self.assertEqual(s.normalized_score, 1.0)

    def test_invalid_rows_raise(self):
        with self.assertRaises(ValidationError):
            session_from_record({"timestamp": TS, "domain": "juggling", "normalizedScore": 0.5, "hourOfDay": 9})
        with self.assertRaises(ValidationError):
            session_from_record({"timestamp": -5, "domain": "memory", "normalizedScore": 0.5, "hourOfDay": 9})
        with self.assertRaises(ValidationError):
            session_from_record({"domain": "memory", "normalizedScore": 0.5})

    def test_validation_error_is_a_value_error(self):
        self.assertTrue(issubclass(ValidationError, ValueError))

    def test_sessions_from_json_skips_non_objects_and_bad_json(self):
        raw = json.dumps([{"timestamp": TS, "domain": "memory", "normalizedScore": 0.4, "hourOfDay": 8}, "junk", 3])
        self.assertEqual(len(sessions_from_json(raw)), 1)
        self.assertEqual(sessions_from_json("{not json"), [])
        self.assertEqual(sessions_from_json(None), [])


class FactorInputTests(unittest.TestCase):
    def test_sleep_record_with_nested_duration(self):
        f = factor_from_record(
            {
                "type": "sleep",
                "timestamp": TS,
                "value": {"sleepDuration": {"totalMinutes": 455}, "bedTime": "23:10", "wakeTime": "06:45", "wakingEvents": 1},
            }
        )
        self.assertEqual(f.kind, "sleep")
        self.assertEqual(f.value, SleepValue(quality_score=None, duration_minutes=455.0, bed_time="23:10", wake_time="06:45", waking_events=1))

    def test_nutrition_and_activity_records(self):
        rows = json.dumps(
            [
                {"kind": "nutrition", "timestamp": TS, "value": {"totalCaffeine": 95, "mealCount": 2}},
                {"kind": "activity", "timestamp": TS, "value": {"duration": 40, "intensity": 3}},
            ]
        )
        nutrition, activity = factors_from_json(rows)
        self.assertEqual(nutrition.value, NutritionValue(caffeine_mg=95.0, meal_count=2, fluids_ml=0.0))
        self.assertEqual(activity.value, ActivityValue(duration_minutes=40.0, intensity="Intense"))

    def test_unknown_kind_raises(self):
        with self.assertRaises(ValidationError):
            factor_from_record({"kind": "mood", "timestamp": TS, "value": {}})


class QuizAndChallengeInputTests(unittest.TestCase):
    def test_quiz_missing_answers(self):
        q = quiz_from_dict({"naturalWake": "Before 8 AM", "wake_feel": "Wide awake"})
        self.assertEqual(q.natural_wake, "Before 8 AM")
        self.assertEqual(q.wake_feel, "Wide awake")
        self.assertEqual(q.focus_time, "")
        self.assertIsNone(q.wake_school)
        self.assertEqual(quiz_from_dict(None).natural_wake, "")

    def test_challenges(self):
        data = challenges_from_dict(
            {
                "activeChallenges": [{"id": "smart-caffeine-window", "dailyProgress": {"2026-03-01": True, "2026-03-02": False}}],
                "completedChallenges": [{"id": "evening-dim-down"}],
            }
        )
        self.assertEqual(len(data.active), 1)
        self.assertEqual(data.active[0].completion_rate(), 0.5)
        self.assertEqual(data.completed[0].challenge_id, "evening-dim-down")
        self.assertEqual(data.completed[0].completion_rate(), 0.0)
        self.assertIsNone(challenges_from_dict(None))


if __name__ == "__main__":
    unittest.main()
