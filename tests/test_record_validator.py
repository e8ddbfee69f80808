import pytest

from services.exceptions import InvalidNameError, InvalidOrdinalError, InvalidScoreError
from services.record_validator import parse_score, validate_row
from services.report_parser import ParsedRow


def make_row(raw_name="Ivanov", raw_score="85", ordinal=1, position=1):
    return ParsedRow(position=position, ordinal=ordinal, raw_name=raw_name, raw_score=raw_score,
                     line_no=position, line=f"{ordinal} {raw_name} {raw_score}")


@pytest.mark.parametrize("text, expected", [("0", 0.0), ("100", 100.0), ("85,5", 85.5), (" 77.25 ", 77.25)])
def test_parse_score_accepts(text, expected):
    assert parse_score(text) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["100.01", "-0.01", "abc", "", "nan", "inf"])
def test_parse_score_rejects(text):
    with pytest.raises(InvalidScoreError):
        parse_score(text)


def test_out_of_range_is_rejected_not_clamped():
    with pytest.raises(InvalidScoreError):
        validate_row(make_row(raw_score="150"))


def test_validate_row_normalizes_name():
    row = validate_row(make_row(raw_name="  Sidorov   Ivan  ", raw_score="90,5", ordinal=3, position=2))
    assert row.student_name == "Sidorov Ivan"
    assert row.score == pytest.approx(90.5)
    assert row.ordinal == 3
    assert row.position == 2


def test_missing_ordinal_uses_emission_position():
    row = validate_row(make_row(ordinal=None, position=4))
    assert row.ordinal == 4


def test_blank_name_is_rejected():
    with pytest.raises(InvalidNameError):
        validate_row(make_row(raw_name="   "))


def test_zero_ordinal_is_rejected():
    with pytest.raises(InvalidOrdinalError):
        validate_row(make_row(ordinal=0))


def test_ordinal_beyond_integer_column_is_rejected():
    with pytest.raises(InvalidOrdinalError):
        validate_row(make_row(ordinal=99999999999999999999))
