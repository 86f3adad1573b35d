import pytest

from survey_core.csv_codec import CsvImportError, decode, encode, format_number

QIDS = ["q1", "q2", "q3"]


def test_encode_header_and_empty_scores(make_entry):
    text = encode([make_entry("abc", course="Stats 101", year=2024, month=5, participants=12, q1=9.25, q2=None, q3=7.0)], QIDS)
    lines = text.strip().split("\n")
    assert lines[0] == "id,course,year,month,participants,q1,q2,q3"
    assert lines[1] == "abc,Stats 101,2024,5,12,9.25,,7"


def test_encode_empty_collection_writes_header_only():
    assert encode([], QIDS).strip() == "id,course,year,month,participants,q1,q2,q3"


def test_format_number_rounds_to_two_decimals():
    assert format_number(8.0) == "8"
    assert format_number(8.5) == "8.5"
    assert format_number(8.125) == "8.13"
    assert format_number(None) == ""


def test_round_trip_reproduces_entries(make_entry):
    entries = [
        make_entry("a", course="Algebra, Intro", year=2023, month=11, participants=16, q1=9.2, q2=8.0, q3=None),
        make_entry("b", course='The "Big" Course', year=2024, month=1, participants=20, q1=9.1),
    ]
    decoded = decode(encode(entries, QIDS), QIDS)
    expected = [
        make_entry("a", course="Algebra, Intro", year=2023, month=11, participants=16, q1=9.2, q2=8.0, q3=None),
        make_entry("b", course='The "Big" Course', year=2024, month=1, participants=20, q1=9.1, q2=None, q3=None),
    ]
    assert decoded == expected


def test_round_trip_does_not_need_matching_header_names(make_entry):
    text = encode([make_entry("a", participants=10, q1=5, q2=6, q3=7)], QIDS)
    _, body = text.split("\n", 1)
    renamed = "id,course,year,month,participants,x,y,z\n" + body
    [entry] = decode(renamed, QIDS)
    assert entry.id == "a"
    assert entry.participants == 10
    assert entry.scores == {"q1": 5.0, "q2": 6.0, "q3": 7.0}


def test_header_names_map_reordered_columns():
    text = "course,id,q3,q1,q2,participants,month,year\nBio,b1,3,1,2,8,4,2024\n"
    [entry] = decode(text, QIDS)
    assert entry.id == "b1"
    assert entry.course == "Bio"
    assert (entry.year, entry.month, entry.participants) == (2024, 4, 8)
    assert entry.scores == {"q1": 1.0, "q2": 2.0, "q3": 3.0}


def test_blank_lines_are_ignored_and_missing_id_gets_fresh_id():
    text = "id,course,year,month,participants,q1,q2,q3\n\n,Chem,2024,2,5,4,,x\n\n,Chem,2024,3,5,,,\n"
    entries = decode(text, QIDS)
    assert len(entries) == 2
    assert entries[0].id and entries[1].id
    assert entries[0].id != entries[1].id
    assert entries[0].scores == {"q1": 4.0, "q2": None, "q3": None}


def test_rows_with_invalid_period_or_participants_are_skipped():
    text = "\n".join(
        [
            "id,course,year,month,participants,q1,q2,q3",
            "a,X,abc,1,5,1,1,1",
            "b,X,2024,13,5,1,1,1",
            "c,X,2024,1,many,1,1,1",
            "d,X,2024,1,5,1,1,1",
        ]
    )
    entries = decode(text, QIDS)
    assert [e.id for e in entries] == ["d"]


def test_import_keeps_non_positive_participants():
    [entry] = decode("id,course,year,month,participants,q1,q2,q3\na,X,2024,1,0,5,,\n", QIDS)
    assert entry.participants == 0


def test_scores_clamped_when_bounds_given():
    text = "id,course,year,month,participants,q1,q2,q3\na,X,2024,1,5,11,0,5.5\n"
    [entry] = decode(text, QIDS, scale_min=1, scale_max=10)
    assert entry.scores == {"q1": 10.0, "q2": 1.0, "q3": 5.5}


def test_scores_not_clamped_without_bounds():
    [entry] = decode("id,course,year,month,participants,q1,q2,q3\na,X,2024,1,5,11,0,\n", QIDS)
    assert entry.scores["q1"] == 11.0
    assert entry.scores["q2"] == 0.0


def test_short_rows_leave_trailing_scores_empty():
    [entry] = decode("id,course,year,month,participants,q1,q2,q3\na,X,2024,1,5,6\n", QIDS)
    assert entry.scores == {"q1": 6.0, "q2": None, "q3": None}


def test_header_only_yields_no_entries():
    assert decode("id,course,year,month,participants,q1,q2,q3\n", QIDS) == []


@pytest.mark.parametrize("text", ["", "   \n\n  "])
def test_empty_text_raises(text):
    with pytest.raises(CsvImportError):
        decode(text, QIDS)


def test_rows_wider_than_header_are_skipped_and_logged(caplog):
    text = "\n".join(
        [
            "id,course,year,month,participants,q1,q2,q3",
            "a,X,2024,1,5,1,1,1",
            "b,X,2024,1,5,2,2,2,extra,more",
            "c,X,abc,1,5,3,3,3",
        ]
    )
    with caplog.at_level("WARNING", logger="survey_core.csv_codec"):
        entries = decode(text, QIDS)
    assert [e.id for e in entries] == ["a"]
    assert "Skipped 2 CSV rows" in caplog.text
