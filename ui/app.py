"""Main Streamlit app entrypoint.

Run:
    streamlit run ui/app.py

"""

from __future__ import annotations

import sys
from pathlib import Path

import streamlit as st

# Ensure project root is on PYTHONPATH when Streamlit runs this file
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from ui.database import crud
from ui.database.db import db_session
from utils.log import init_app_logging


st.set_page_config(
    page_title="Class Timetable Builder",
    page_icon="🗓️",
    layout="wide",
)


def main() -> None:
    init_app_logging(debug=False)

    with db_session() as conn:
        school_name = crud.get_setting(conn, "school_name", default="School")
        classes = crud.list_classes(conn)
        teachers = crud.list_teachers_with_availability(conn)
        scheduled = sum(1 for c in classes if crud.get_class_schedule(conn, c["id"]))

    st.sidebar.title("Timetable")
    st.sidebar.caption(school_name)

    st.title("Dashboard")
    st.write(
        "Open the Class Timetable page to auto-build a weekly timetable for a class. "
        "Each class gets 5 working days (Monday-Thursday, Saturday) x 7 periods."
    )

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Classes", len(classes))
    c2.metric("Teachers", len(teachers))
    c3.metric("Teachers without profile", sum(1 for t in teachers if t.get("availability_json") is None))
    c4.metric("Classes scheduled", scheduled)

    st.divider()
    st.info(
        "Teachers without an availability profile are treated as always available. "
        "A profile with no enabled windows means the teacher cannot be scheduled at all."
    )


if __name__ == "__main__":
    main()
