#!/usr/bin/env python3
"""
scripts/run_analysis.py

Run the sync analysis over a JSON snapshot exported by the host app and print
a summary. Snapshot layout:

  {"userId": "...", "nowMs": 1760000000000,
   "quiz": {...}, "sessions": [...], "lifestyle": [...], "challenges": {...}}
"""
import argparse
import json
import logging
import os
import sys
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

# Add parent directory to path to import project modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from chronosync.coach import interpret_timeline, suggest_study_blocks
from chronosync.models import ValidationError
from chronosync.quiz import homework_window, school_window
from services.analysis_service import AnalysisService, AnalysisSnapshot
from shared.lifestyle_input import challenges_from_dict, factors_from_records, quiz_from_dict, sessions_from_records


def _load_snapshot(path: str, tz) -> tuple:
    with open(path, "r", encoding="utf-8") as f:
        raw = json.load(f)
    snapshot = AnalysisSnapshot(
        responses=quiz_from_dict(raw.get("quiz")),
        sessions=sessions_from_records(raw.get("sessions") or [], tz),
        factors=factors_from_records(raw.get("lifestyle") or []),
        challenges=challenges_from_dict(raw.get("challenges")),
    )
    timestamps = [s.timestamp for s in snapshot.sessions] + [x.timestamp for x in snapshot.factors]
    now_ms = int(raw.get("nowMs") or (max(timestamps) if timestamps else 0))
    return str(raw.get("userId") or "anonymous"), snapshot, now_ms


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Estimate learning phase and sync score from a data snapshot.")
    parser.add_argument("snapshot", help="path to the JSON snapshot")
    parser.add_argument("--tz", default="UTC", help="IANA timezone used for day bucketing (default: UTC)")
    parser.add_argument("--json", action="store_true", help="print the full result as JSON")
    parser.add_argument("--plot", metavar="PNG", help="write the learning timeline plot to this file")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, format="%(levelname)s %(name)s: %(message)s")

    try:
        tz = ZoneInfo(args.tz)
    except ZoneInfoNotFoundError:
        print(f"Unknown timezone: {args.tz}")
        return 2

    try:
        user_id, snapshot, now_ms = _load_snapshot(args.snapshot, tz)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Failed to read snapshot: {e}")
        return 1
    except ValidationError as e:
        print(f"Invalid snapshot data: {e}")
        return 1

    result = AnalysisService(tz=tz).analyze(user_id, snapshot, now_ms)

    if args.json:
        print(json.dumps(result.as_dict(), indent=2))
    else:
        print(f"User: {user_id}")
        print(f"  Sync score:        {result.sync_score}")
        print(f"  Learning phase:    {result.learning_phase:.1f}h ({result.chronotype.chronotype}, out of sync {result.chronotype.out_of_sync})")
        print(f"  School alignment:  {result.school_alignment}%")
        print(f"  Study alignment:   {result.study_alignment}%")
        print(f"  Social jetlag:     {result.social_jetlag_penalty}%")
        print(f"  Adaptation level:  {result.adaptive_components.adaptation_level:.2f}")
        print(f"  Weekly trend:      {result.trend_analysis.weekly_trend}")
        for note in interpret_timeline(result, school_window(snapshot.responses), homework_window(snapshot.responses)):
            print(f"  - {note}")
        for b in suggest_study_blocks(result):
            print(f"  [{b.label}] {b.start:05.2f}h–{b.end:05.2f}h  {b.rationale}")
        if result.lifestyle_feedback is not None:
            for rec in result.lifestyle_feedback.recommendations:
                print(f"  * ({rec.category}) {rec.title}: {rec.description}")

    if args.plot:
        import matplotlib
        matplotlib.use("Agg")
        from chronosync.plots import plot_learning_timeline

        fig = plot_learning_timeline(
            result,
            school=school_window(snapshot.responses),
            study=homework_window(snapshot.responses),
        )
        fig.savefig(args.plot, dpi=120, bbox_inches="tight")
        print(f"Timeline plot written to {args.plot}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
