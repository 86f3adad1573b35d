from survey_core.aggregation import aggregate
from survey_core.filters import ALL_COURSES, ALL_YEARS, DashboardFilters, apply_filters, filter_options, normalize_filters


def test_normalize_filters_treats_all_choices_as_unset():
    assert normalize_filters({"year": ALL_YEARS, "course": ALL_COURSES}) == DashboardFilters()
    assert normalize_filters({}) == DashboardFilters()
    assert normalize_filters({"year": "2024", "course": " Bio "}) == DashboardFilters(year=2024, course="Bio")
    assert normalize_filters({"year": "soon"}).year is None


def test_apply_filters_by_year_and_course(make_entry):
    entries = [
        make_entry("a", course="Bio", year=2023),
        make_entry("b", course="Bio", year=2024),
        make_entry("c", course="Chem", year=2024),
    ]
    assert [e.id for e in apply_filters(entries, DashboardFilters(year=2024))] == ["b", "c"]
    assert [e.id for e in apply_filters(entries, DashboardFilters(course="Bio"))] == ["a", "b"]
    assert [e.id for e in apply_filters(entries, DashboardFilters(year=2024, course="Bio"))] == ["b"]


def test_unknown_course_gives_empty_aggregation(make_entry):
    entries = [make_entry("a", course="Bio", q1=5)]
    filtered = apply_filters(entries, DashboardFilters(course="Nope"))
    assert filtered == []
    assert aggregate(filtered, ["q1"]) == []


def test_filter_options(make_entry):
    entries = [make_entry("a", course="Chem", year=2023), make_entry("b", course="Bio", year=2024), make_entry("c", course="Bio", year=2024)]
    assert filter_options(entries) == {"years": [2024, 2023], "courses": ["Bio", "Chem"]}
