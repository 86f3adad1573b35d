import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import pandas as pd
import streamlit as st

from survey_core import editor
from survey_core.config import APP_NAME, configure_logging, load_config
from survey_core.csv_codec import EXPORT_FILENAME, CsvImportError, decode, encode
from survey_core.dashboard import compute_dashboard
from survey_core.filters import ALL_COURSES, ALL_YEARS, filter_options, normalize_filters
from survey_core.numbers import format_score, format_score_columns
from survey_core.store import RecordStore
from survey_core.uploads import claim_upload

logger = logging.getLogger(__name__)


# ---------- UI / layout helpers ----------
def inject_base_styles():
    if st.session_state.get("_base_css_injected"):
        return
    st.markdown(
        """
        <style>
        .app-top-bar {padding: 6px 0 4px;border-bottom: 1px solid #e5e7eb;margin-bottom: 10px;}
        .app-top-bar .breadcrumb {color: #6b7280;font-size: 0.9rem;margin-bottom: 2px;}
        .app-top-bar .page-title {font-size: 1.4rem;font-weight: 700;color: #111827;}
        .card {border: 1px solid #e5e7eb;border-radius: 12px;padding: 16px;background: #ffffff;
               box-shadow: 0 1px 2px rgba(0,0,0,0.04); margin-bottom: 12px;}
        .card-header {display: flex;justify-content: space-between;align-items: center;margin-bottom: 8px;}
        .card-title {font-weight: 600;font-size: 1.0rem;color: #111827;}
        .chip-row {display: flex;flex-wrap: wrap;gap: 6px;margin-top: 6px;}
        .chip {background: #f3f4f6;border: 1px solid #e5e7eb;border-radius: 14px;padding: 4px 10px;font-size: 0.85rem;color: #374151;}
        </style>
        """,
        unsafe_allow_html=True,
    )
    st.session_state["_base_css_injected"] = True


@contextmanager
def card(title: str):
    container = st.container()
    container.markdown(
        f"""
        <div class="card">
          <div class="card-header">
            <div class="card-title">{title}</div>
          </div>
        """,
        unsafe_allow_html=True,
    )
    body = container.container()
    with body:
        yield body
    container.markdown("</div>", unsafe_allow_html=True)


def format_filter_summary(year: Optional[int], course: Optional[str]) -> str:
    year_chip = f"Year: {year}" if year is not None else "Year: All"
    course_chip = f"Course: {course}" if course else "Course: All"
    return "".join([f"<span class='chip'>{txt}</span>" for txt in [year_chip, course_chip]])


def render_page_header(title: str, breadcrumb: str, filter_summary_html: str, export_csv: Optional[str] = None):
    inject_base_styles()
    c1, c2 = st.columns([8, 2])
    with c1:
        st.markdown(
            f"<div class='app-top-bar'><div class='breadcrumb'>{breadcrumb}</div><div class='page-title'>{title}</div></div>",
            unsafe_allow_html=True,
        )
    with c2:
        if export_csv is not None:
            st.download_button(
                "Export CSV",
                data=export_csv.encode("utf-8"),
                file_name=EXPORT_FILENAME,
                mime="text/csv",
            )
    st.markdown(f"<div class='chip-row'>{filter_summary_html}</div>", unsafe_allow_html=True)


@st.cache_resource
def get_store(data_dir: str, scale_min: float, scale_max: float) -> RecordStore:
    store = RecordStore(data_dir, scale_min=scale_min, scale_max=scale_max)
    store.load()
    return store


# ---------- UI setup ----------
config = load_config()
configure_logging(config.log_level)

st.set_page_config(page_title=APP_NAME, layout="wide")
inject_base_styles()
st.title(APP_NAME)
st.caption("Record monthly course survey results and track participant-weighted trends.")

store = get_store(str(config.data_dir), config.scale_min, config.scale_max)
settings = store.settings
labels = settings.display_labels()

# ----- Sidebar: navigation + filters -----
options = filter_options(store.entries)
with st.sidebar:
    st.markdown("### Navigate")
    nav_choice = st.radio("Navigate", ["Dashboard", "Entries", "Settings"], index=0)

    st.markdown("---")
    st.markdown("### Quick filters")
    year_choice = st.selectbox("Year", options=[ALL_YEARS] + options["years"], index=0)
    course_choice = st.selectbox("Course", options=[ALL_COURSES] + options["courses"], index=0)

    st.markdown("---")
    st.caption(f"Score scale: {format_score(settings.scale_min, 0)}–{format_score(settings.scale_max, 0)}")
    if config.source_url:
        st.caption(f"Source data: {config.source_url}")

filters = normalize_filters({"year": year_choice, "course": course_choice})
filter_summary_html = format_filter_summary(filters.year, filters.course)


def months_frame(months: List[Dict[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            "Month": m["label"],
            "Entries": m["entries"],
            "Participants": m["participants"],
            "Overall": m["overall"],
            **{labels.get(qid, qid): value for qid, value in m["questions"].items()},
        }
        for m in months
    ]
    return pd.DataFrame(rows)


def render_kpi_tiles(stats: Dict[str, Any]):
    cols = st.columns(4)
    cols[0].metric("Courses", f"{stats['courses']:,}")
    cols[1].metric("Entries", f"{stats['entries']:,}")
    cols[2].metric("Participants", f"{stats['participants']:,}")
    cols[3].metric(
        "Weighted overall",
        format_score(stats["overall"]),
        help="Mean of each entry's own average score, weighted by its participant count.",
    )


# ----- Page renderers -----

def render_dashboard_page():
    payload = compute_dashboard(filters, settings, store.entries)
    render_page_header("Dashboard", "Home / Dashboard", filter_summary_html)

    with card("Quick Stats"):
        render_kpi_tiles(payload["stats"])

    if not payload["months"]:
        st.info("No entries match the selected filters.")
        return

    chart_cols = st.columns(2)
    with chart_cols[0]:
        with card("Overall Trend"):
            spec = payload["charts"].get("overall_trend")
            if spec is None:
                st.info("No scored entries to plot.")
            else:
                st.vega_lite_chart(spec, use_container_width=True)
    with chart_cols[1]:
        with card("Questions Trend"):
            spec = payload["charts"].get("question_trend")
            if spec is None:
                st.info("No scored entries to plot.")
            else:
                st.vega_lite_chart(spec, use_container_width=True)

    with card("Monthly Summary"):
        monthly = months_frame(payload["months"])
        score_cols = ["Overall"] + list(labels.values())
        st.dataframe(format_score_columns(monthly, score_cols), use_container_width=True, hide_index=True)

    with card("By Course"):
        by_course = pd.DataFrame(payload["courses"]).rename(
            columns={"course": "Course", "overall": "Overall", "participants": "Participants", "entries": "Entries"}
        )
        st.dataframe(format_score_columns(by_course, ["Overall"]), use_container_width=True, hide_index=True)


def _import_csv(uploaded) -> None:
    if not claim_upload(st.session_state, uploaded.file_id if uploaded is not None else None):
        return
    try:
        text = uploaded.getvalue().decode("utf-8-sig")
        imported = decode(text, settings.question_ids, scale_min=settings.scale_min, scale_max=settings.scale_max)
    except (CsvImportError, UnicodeDecodeError):
        logger.exception("CSV import failed for %s", uploaded.name)
        st.error("Could not import this file. Check that it is a CSV exported from this dashboard.")
        return
    counts = store.merge(imported)
    st.session_state["_import_message"] = f"Imported {counts['inserted']} new and {counts['updated']} updated entries."
    st.rerun()


def render_entry_form():
    editing_id = st.session_state.get("editing_id")
    existing = store.get(editing_id) if editing_id else None
    form_values = editor.form_from_entry(existing) if existing else editor.EntryForm()
    today = pd.Timestamp.today()
    defaults = editor.widget_defaults(form_values, today.year, today.month)

    with st.form("entry_form", clear_on_submit=existing is None):
        st.markdown(f"**{'Edit entry' if existing else 'New entry'}**")
        c1, c2, c3, c4 = st.columns([4, 2, 2, 2])
        course = c1.text_input("Course", value=form_values.course)
        year = c2.number_input("Year", min_value=editor.YEAR_MIN, max_value=editor.YEAR_MAX, step=1, value=defaults["year"])
        month = c3.selectbox("Month", options=list(range(1, 13)), index=defaults["month"] - 1)
        participants = c4.number_input("Participants", min_value=0, step=1, value=defaults["participants"])

        score_cols = st.columns(len(settings.questions))
        scores: Dict[str, object] = {}
        for col, q in zip(score_cols, settings.questions):
            current = form_values.scores.get(q.id)
            scores[q.id] = col.text_input(
                labels[q.id],
                key=f"score-{existing.id if existing else 'new'}-{q.id}",
                value="" if current is None else format_score(current),
                help=f"{format_score(settings.scale_min, 0)}–{format_score(settings.scale_max, 0)}; leave blank if not asked.",
            )

        b1, b2 = st.columns([1, 1])
        submitted = b1.form_submit_button("Save entry")
        cancelled = b2.form_submit_button("Cancel edit", disabled=existing is None)

    if cancelled:
        st.session_state.pop("editing_id", None)
        st.rerun()
    if submitted:
        form = editor.EntryForm(course=course, year=year, month=month, participants=participants, scores=scores)
        saved = editor.submit(store, form, entry_id=existing.id if existing else None)
        if saved is None:
            st.warning("Enter a course name and a participant count above zero.")
            return
        st.session_state.pop("editing_id", None)
        st.rerun()


def render_entries_page():
    payload = compute_dashboard(filters, settings, store.entries)
    render_page_header(
        "Entries",
        "Home / Entries",
        filter_summary_html,
        export_csv=encode(store.entries, settings.question_ids),
    )

    with card("Add or Edit"):
        render_entry_form()

    with card("Import CSV"):
        uploaded = st.file_uploader("CSV file", type=["csv"], help="Columns: id, course, year, month, participants, then one per question.")
        _import_csv(uploaded)
        message = st.session_state.pop("_import_message", None)
        if message:
            st.success(message)

    with card("Recorded Entries"):
        rows = payload["entries"]
        if not rows:
            st.info("No entries match the selected filters.")
            return
        header = st.columns([2, 4, 2] + [1] * len(settings.questions) + [1, 1])
        for col, title in zip(header, ["Month", "Course", "Participants"] + list(labels.values())):
            col.markdown(f"**{title}**")
        for row in rows:
            cols = st.columns([2, 4, 2] + [1] * len(settings.questions) + [1, 1])
            cols[0].write(row["period"])
            cols[1].write(row["course"])
            cols[2].write(f"{row['participants']:,}")
            for offset, qid in enumerate(settings.question_ids):
                value = row.get(qid)
                cols[3 + offset].write("" if value is None else format_score(value))
            if cols[-2].button("Edit", key=f"edit-{row['id']}"):
                st.session_state["editing_id"] = row["id"]
                st.rerun()
            if cols[-1].button("Delete", key=f"delete-{row['id']}"):
                store.remove(row["id"])
                if st.session_state.get("editing_id") == row["id"]:
                    st.session_state.pop("editing_id", None)
                st.rerun()


def render_settings_page():
    render_page_header("Settings", "Home / Settings", filter_summary_html)
    with card("Question Labels"):
        with st.form("labels_form"):
            new_labels = {q.id: st.text_input(f"{q.id}", value=q.label) for q in settings.questions}
            saved = st.form_submit_button("Save labels")
        if saved:
            changed = [qid for qid, label in new_labels.items() if store.update_question_label(qid, label)]
            if changed:
                st.success(f"Updated {len(changed)} label(s).")
                st.rerun()
            else:
                st.info("No label changes to save.")
    st.caption(f"Data is stored locally in {store.data_dir}.")


if nav_choice == "Dashboard":
    render_dashboard_page()
elif nav_choice == "Entries":
    render_entries_page()
else:
    render_settings_page()
