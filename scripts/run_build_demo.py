"""Demo runner: build a weekly class timetable from sample JSON.

Loads the sample school into a throwaway SQLite DB, builds one class and
prints the grid.

Usage:
    python scripts/run_build_demo.py
    python scripts/run_build_demo.py --class-id 2 --seed 7 --debug
    python scripts/run_build_demo.py --markdown > timetable.md

"""

from __future__ import annotations

import argparse
import sys
import tempfile
from pathlib import Path

# Ensure project root is on PYTHONPATH when running as a script
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.class_scheduler import BuildSettings
from modules.errors import ScheduleBuildError
from modules.schedule_service import auto_build_schedule
from modules.time_grid import build_period_spans
from ui.database import crud
from ui.database.db import DBConfig, db_session
from utils.log import init_app_logging
from utils.timetable_export import df_to_markdown, schedule_to_df, subject_day_counts_df


def main() -> int:
    parser = argparse.ArgumentParser(description="Build a weekly class timetable from sample data")
    parser.add_argument(
        "--data",
        default=str(ROOT / "data" / "sample_school.json"),
        help="Path to the school JSON file (classes, teachers, subjects)",
    )
    parser.add_argument("--class-id", type=int, default=1, help="Class to build")
    parser.add_argument("--seed", type=int, default=None, help="Seed (default: current time)")
    parser.add_argument("--attempts", type=int, default=6, help="Maximum randomized attempts")
    parser.add_argument("--debug", action="store_true", help="Log every failed attempt")
    parser.add_argument("--markdown", action="store_true", help="Print the grid as a Markdown table")

    args = parser.parse_args()
    init_app_logging(debug=args.debug)

    with tempfile.TemporaryDirectory() as tmp:
        config = DBConfig(db_path=Path(tmp) / "demo.db")
        with db_session(config) as conn:
            counts = crud.load_school_from_json(conn, args.data)
            conn.commit()
            print(f"Loaded {counts['classes']} classes, {counts['teachers']} teachers, {counts['subjects']} subjects")

            try:
                result = auto_build_schedule(
                    conn,
                    args.class_id,
                    seed=args.seed,
                    settings=BuildSettings(max_attempts=args.attempts),
                )
            except ScheduleBuildError as exc:
                print(f"\nBuild failed ({exc.status_code}): {exc.message}")
                for k, v in exc.payload.items():
                    print(f"{k}: {v}")
                return 1

    meta = result.meta
    spans = build_period_spans(meta["break_after"])

    print(f"\n=== {meta['class_name']} (seed={meta['seed']}, attempts={meta['attempts']}) ===")
    grid = schedule_to_df(result.schedule, break_after=meta["break_after"], spans=spans)
    print(df_to_markdown(grid) if args.markdown else grid.to_string(index=False))

    print("\n=== Periods per subject per day ===")
    print(subject_day_counts_df(result.schedule).to_string(index=False))

    print("\n=== Metrics ===")
    for k, v in meta["metrics"].items():
        print(f"{k}: {v}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
