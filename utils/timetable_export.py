from __future__ import annotations

import io
from typing import Iterable, Optional, Sequence

import pandas as pd


def _period_labels(periods_per_day: int, spans: Optional[Sequence] = None) -> list[str]:
    if spans:
        return [f"{s.index} ({s.start}-{s.end})" for s in spans][: int(periods_per_day)]
    return [str(i) for i in range(1, int(periods_per_day) + 1)]


def _timetable_df_from_table(
    *,
    day_names: list[str],
    periods_per_day: int,
    table: list[list[str]],
    break_boundaries: Iterable[int] | None = None,
    boundary_label: str = "BREAK",
    spans: Optional[Sequence] = None,
) -> pd.DataFrame:
    """Convert a (days x periods) table into a spreadsheet-style DataFrame.

    We visualize a break boundary b (between period b and b+1) by injecting a labeled column.
    """

    boundaries = sorted({int(b) for b in (break_boundaries or []) if 1 <= int(b) < int(periods_per_day)})
    labels = _period_labels(periods_per_day, spans)

    columns: list[str] = []
    col_map: list[int | None] = []  # None => break column
    for i in range(1, int(periods_per_day) + 1):
        columns.append(labels[i - 1])
        col_map.append(i)
        if i in boundaries:
            columns.append(boundary_label)
            col_map.append(None)

    out_rows: list[list[str]] = []
    for row in table:
        out_row: list[str] = []
        for c in col_map:
            if c is None:
                out_row.append("")
            else:
                out_row.append(row[int(c) - 1])
        out_rows.append(out_row)

    df = pd.DataFrame(out_rows, columns=columns)
    df.insert(0, "DAY", day_names)
    return df


def schedule_to_df(
    schedule: dict,
    *,
    break_after: Optional[int] = None,
    spans: Optional[Sequence] = None,
) -> pd.DataFrame:
    """Weekly grid as a DataFrame: one row per working day, one column per period."""

    from modules.class_scheduler import format_class_timetable
    from modules.time_grid import PERIODS_PER_DAY, WORKING_DAYS

    return _timetable_df_from_table(
        day_names=list(WORKING_DAYS),
        periods_per_day=PERIODS_PER_DAY,
        table=format_class_timetable(schedule or {}),
        break_boundaries=[break_after] if break_after else [],
        spans=spans,
    )


def schedule_to_rows(schedule: dict, *, spans: Optional[Sequence] = None) -> pd.DataFrame:
    """Slot-level table (one row per filled period)."""

    from modules.time_grid import PERIODS_PER_DAY, WORKING_DAYS

    rows = []
    for day in WORKING_DAYS:
        for p, cell in enumerate(((schedule or {}).get(day) or [])[:PERIODS_PER_DAY]):
            if not isinstance(cell, dict) or not cell.get("subject"):
                continue
            span = spans[p] if spans and p < len(spans) else None
            rows.append(
                {
                    "day": day,
                    "period": p + 1,
                    "start": span.start if span is not None else None,
                    "end": span.end if span is not None else None,
                    "subject": cell.get("subject"),
                    "teacher": cell.get("teacher") or "",
                    "room": cell.get("room") or "",
                }
            )
    return pd.DataFrame(rows, columns=["day", "period", "start", "end", "subject", "teacher", "room"])


def subject_day_counts_df(schedule: dict) -> pd.DataFrame:
    """Periods per subject per day (handy to eyeball the 3-per-day rule)."""

    from modules.time_grid import WORKING_DAYS

    rows = schedule_to_rows(schedule)
    if rows.empty:
        return pd.DataFrame()
    out = pd.crosstab(rows["subject"], rows["day"]).reindex(columns=list(WORKING_DAYS), fill_value=0)
    out["Total"] = out.sum(axis=1)
    return out.reset_index().sort_values(["Total", "subject"], ascending=[False, True])


SLOTS_SHEET = "Slots"
COUNTS_SHEET = "Subjects per day"


def _safe_sheet_name(name: str) -> str:
    """Excel sheet names: max 31 chars, cannot contain: `: \\ / ? * [ ]`."""

    bad = [":", "\\", "/", "?", "*", "[", "]"]
    out = str(name or "Sheet")
    for b in bad:
        out = out.replace(b, "-")
    out = out.strip() or "Sheet"
    return out[:31]


def schedule_workbook_bytes(
    schedule: dict,
    *,
    class_name: str = "",
    break_after: Optional[int] = None,
    spans: Optional[Sequence] = None,
) -> bytes:
    """Build an Excel workbook with the class timetable, the slot list and per-day counts."""

    # Pandas uses openpyxl to write .xlsx by default.
    out = io.BytesIO()

    grid = schedule_to_df(schedule, break_after=break_after, spans=spans)
    header_df = pd.DataFrame([["CLASS", class_name]], columns=["Field", "Value"])

    with pd.ExcelWriter(out, engine="openpyxl") as writer:
        sheet = _safe_sheet_name(class_name or "Timetable")
        # Excel sheet names are case-insensitive
        if sheet.lower() in (SLOTS_SHEET.lower(), COUNTS_SHEET.lower()):
            sheet = _safe_sheet_name(f"{sheet} timetable")
        header_df.to_excel(writer, sheet_name=sheet, index=False, startrow=0)
        grid.to_excel(writer, sheet_name=sheet, index=False, startrow=len(header_df) + 2)
        schedule_to_rows(schedule, spans=spans).to_excel(writer, sheet_name=SLOTS_SHEET, index=False)
        subject_day_counts_df(schedule).to_excel(writer, sheet_name=COUNTS_SHEET, index=False)

    return out.getvalue()


def df_to_markdown(df: pd.DataFrame) -> str:
    """Render a DataFrame (e.g. the weekly grid) as a GitHub-flavored Markdown table.

    Pipes inside cells are escaped and line breaks flattened, so a label like
    "Math (A|B)" stays in one column.
    """

    def cell(value) -> str:
        return str(value).replace("\n", " ").replace("|", "\\|")

    def line(values) -> str:
        return "| " + " | ".join(cell(v) for v in values) + " |"

    out = [line(df.columns), line(["---"] * len(df.columns))]
    out.extend(line(row) for row in df.astype(str).itertuples(index=False, name=None))
    return "\n".join(out) + "\n"
