from survey_core.dashboard import compute_dashboard, entry_rows
from survey_core.filters import DashboardFilters
from survey_core.models import default_settings

SETTINGS = default_settings(1, 10)


def test_dashboard_payload(make_entry):
    entries = [
        make_entry("a", course="X", year=2024, month=1, participants=16, q1=9.2),
        make_entry("b", course="Y", year=2024, month=1, participants=20, q1=9.1),
        make_entry("c", course="X", year=2024, month=2, participants=10, q1=8, q2=6),
    ]
    payload = compute_dashboard(DashboardFilters(), SETTINGS, entries)
    assert payload["stats"]["entries"] == 3
    assert payload["stats"]["courses"] == 2
    assert [m["label"] for m in payload["months"]] == ["2024-01", "2024-02"]
    assert payload["months"][0]["overall"] == 9.14
    assert set(payload["charts"]) == {"overall_trend", "question_trend"}
    assert payload["charts"]["overall_trend"]["mark"]["type"] == "line"
    assert [row["id"] for row in payload["entries"]][0] == "c"
    assert payload["options"]["courses"] == ["X", "Y"]


def test_dashboard_with_no_matches_has_no_buckets_or_charts(make_entry):
    payload = compute_dashboard(DashboardFilters(course="Nope"), SETTINGS, [make_entry("a", q1=5)])
    assert payload["months"] == []
    assert payload["charts"] == {}
    assert payload["stats"]["entries"] == 0
    assert payload["options"]["courses"] == ["X"]


def test_entry_rows_sorted_newest_first(make_entry):
    rows = entry_rows(
        [make_entry("old", year=2023, month=12), make_entry("new", year=2024, month=2), make_entry("mid", year=2024, month=1)],
        SETTINGS,
    )
    assert [r["id"] for r in rows] == ["new", "mid", "old"]
    assert rows[0]["period"] == "2024-02"
    assert set(SETTINGS.question_ids).issubset(rows[0])


def test_display_labels_stay_distinct_when_labels_repeat():
    settings = SETTINGS.with_label("q2", "Course content")
    labels = settings.display_labels()
    assert labels["q1"] == "Course content (q1)"
    assert labels["q2"] == "Course content (q2)"
    assert labels["q3"] == "Materials"
    assert len(set(labels.values())) == len(labels)


def test_question_chart_keeps_one_series_per_question_with_repeated_labels(make_entry):
    settings = SETTINGS.with_label("q2", "Course content")
    payload = compute_dashboard(DashboardFilters(), settings, [make_entry("a", participants=10, q1=4, q2=8)])
    spec = payload["charts"]["question_trend"]
    rows = [row for dataset in spec["datasets"].values() for row in dataset]
    assert {row["question_id"] for row in rows} == {"q1", "q2"}
    assert {row["question"] for row in rows} == {"Course content (q1)", "Course content (q2)"}
    assert {row["question_id"]: row["score"] for row in rows} == {"q1": 4.0, "q2": 8.0}
