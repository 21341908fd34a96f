"""Weekly Class Timetable page.

Builds one class's weekly (day x period) timetable from the SQLite DB using
the randomized placement engine, and lets the user load or hand-edit the
stored schedule.

Outputs:
- Generation metadata (seed, attempts)
- Class timetable view + per-day subject counts
- Diagnostics table when the build fails
- CSV / XLSX export

"""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pandas as pd
import streamlit as st

ROOT = Path(__file__).resolve().parents[2]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from modules.class_scheduler import BuildSettings
from modules.errors import ScheduleBuildError, SchedulePersistenceError
from modules.schedule_service import auto_build_schedule, fetch_class_info, get_schedule, put_schedule
from modules.time_grid import build_period_spans
from ui.database import crud
from ui.database.db import db_session
from ui.utils.validators import parse_schedule_json, validate_positive_int, validate_seed
from utils.timetable_export import (
    df_to_markdown,
    schedule_to_df,
    schedule_to_rows,
    schedule_workbook_bytes,
    subject_day_counts_df,
)


def _class_label(c: dict) -> str:
    name = c.get("name") or f"{c.get('grade') or ''} {c.get('section') or ''}".strip() or f"Class {c['id']}"
    return f"{c['id']} — {name}"


def _failure_df(payload: dict) -> pd.DataFrame:
    """Tabular view of a build failure payload (per-subject diagnostics)."""

    if payload.get("candidates") is not None:
        return pd.DataFrame(
            payload["candidates"],
            columns=["subject", "remaining", "used_today", "teacher", "teacher_available"],
        )
    if payload.get("by_subject") is not None:
        return pd.DataFrame(payload["by_subject"], columns=["subject", "weekly_hours"])
    if payload.get("subject") is not None:
        return pd.DataFrame(
            [
                {
                    "subject": payload["subject"],
                    "required": payload.get("required"),
                    "max_available_with_rule": payload.get("max_available_with_rule"),
                    "teacher": payload.get("teacher"),
                }
            ]
        )
    return pd.DataFrame()


def _show_schedule(schedule: dict, *, class_name: str, break_after: int) -> None:
    spans = build_period_spans(break_after)
    grid = schedule_to_df(schedule, break_after=break_after, spans=spans)
    st.dataframe(grid, use_container_width=True)

    with st.expander("Periods per subject per day"):
        st.dataframe(subject_day_counts_df(schedule), use_container_width=True)

    c1, c2, c3 = st.columns(3)
    c1.download_button(
        "Download CSV",
        data=schedule_to_rows(schedule, spans=spans).to_csv(index=False).encode("utf-8"),
        file_name=f"timetable_{class_name}.csv",
        mime="text/csv",
    )
    c2.download_button(
        "Download XLSX",
        data=schedule_workbook_bytes(schedule, class_name=class_name, break_after=break_after, spans=spans),
        file_name=f"timetable_{class_name}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    )
    c3.download_button(
        "Download Markdown",
        data=df_to_markdown(grid).encode("utf-8"),
        file_name=f"timetable_{class_name}.md",
        mime="text/markdown",
    )


def main() -> None:
    st.title("Weekly Class Timetable")
    st.caption("Auto-build a conflict-free weekly timetable that respects teacher availability and the 3-per-day rule.")

    with db_session() as conn:
        classes = crud.list_classes(conn)

    if not classes:
        st.warning("No classes found. Load demo data with scripts/run_build_demo.py or add classes first.")
        return

    labels = [_class_label(c) for c in classes]
    sel = st.selectbox("Class", options=labels)
    class_id = classes[labels.index(sel)]["id"]

    with db_session() as conn:
        info = fetch_class_info(conn, class_id)

    st.subheader("Auto-build")
    c1, c2 = st.columns(2)
    seed_text = c1.text_input("Seed (optional)", value="", help="Same seed + same data => same timetable.")
    attempts = int(c2.number_input("Max attempts", min_value=1, max_value=50, value=6))

    if st.button("Build timetable", type="primary"):
        ok, msg = validate_seed(seed_text)
        ok2, msg2 = validate_positive_int(attempts, "Max attempts", max_value=50)
        if not ok or not ok2:
            st.error(msg or msg2)
            return

        seed = int(seed_text) if seed_text.strip() else None
        try:
            with db_session() as conn:
                result = auto_build_schedule(conn, class_id, seed=seed, settings=BuildSettings(max_attempts=attempts))
        except ScheduleBuildError as exc:
            st.error(exc.message)
            st.dataframe(_failure_df(exc.payload), use_container_width=True)
            return
        except SchedulePersistenceError as exc:
            st.warning(str(exc))
            result = exc.result

        m = result.meta
        cA, cB, cC = st.columns(3)
        cA.metric("Seed", m["seed"])
        cB.metric("Attempts", m["attempts"])
        cC.metric("Weekly capacity", m["weekly_capacity"])
        _show_schedule(result.schedule, class_name=info.name, break_after=info.break_after)

    st.divider()
    st.subheader("Saved timetable")
    with db_session() as conn:
        saved = get_schedule(conn, class_id)

    if not isinstance(saved, dict) or not saved:
        st.info("No timetable saved for this class yet.")
    else:
        _show_schedule(saved, class_name=info.name, break_after=info.break_after)

    with st.expander("Edit manually (JSON)"):
        st.caption("Manual edits are saved as-is; the availability and 3-per-day rules are not checked.")
        text = st.text_area(
            "Schedule JSON",
            value=json.dumps(saved or {}, ensure_ascii=False, indent=2),
            height=300,
        )
        if st.button("Save manual edit"):
            data, err = parse_schedule_json(text)
            if data is None:
                st.error(err)
            else:
                with db_session() as conn:
                    put_schedule(conn, class_id, data)
                st.success("Saved.")
                st.rerun()


if __name__ == "__main__":
    main()
