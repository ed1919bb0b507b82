from datetime import timedelta

import pytest
from hypothesis import given
from hypothesis import strategies as st

from ddnsconf.duration import DurationError, format_duration, parse_duration


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (timedelta(hours=6), "6h0m0s"),
        (timedelta(seconds=5), "5s"),
        (timedelta(seconds=30), "30s"),
        (timedelta(0), "0s"),
        (timedelta(minutes=20), "20m0s"),
        (timedelta(seconds=10), "10s"),
    ],
)
def test_format_known_values(value, expected):
    assert format_duration(value) == expected


@pytest.mark.parametrize(
    ("text", "expected"),
    [
        ("100s", timedelta(seconds=100)),
        ("0h", timedelta(0)),
        ("0", timedelta(0)),
        ("-1s", timedelta(seconds=-1)),
        ("1h30m", timedelta(hours=1, minutes=30)),
        ("+5m", timedelta(minutes=5)),
    ],
)
def test_parse_known_values(text, expected):
    assert parse_duration(text) == expected


@pytest.mark.parametrize("text", ["1", "", "5ss", ".", "1.", "-", "s", "1s2", "abc"])
def test_parse_errors(text):
    with pytest.raises(DurationError):
        parse_duration(text)


def test_missing_unit_message():
    with pytest.raises(DurationError, match="missing unit"):
        parse_duration("1")


def test_unknown_unit_message():
    with pytest.raises(DurationError, match="unknown unit"):
        parse_duration("5ss")


@pytest.mark.parametrize("text", ["1.5ms", "-1s", "2h0m0s", "1m30s", "250\u00b5s", "1.25s"])
def test_format_of_parse_is_identity(text):
    assert format_duration(parse_duration(text)) == text


@pytest.mark.parametrize("text", ["1.5ms", "1500us", "1500\u03bcs"])
def test_equivalent_units(text):
    assert parse_duration(text) == parse_duration("1500\u00b5s")


@given(st.timedeltas(min_value=timedelta(days=-10000), max_value=timedelta(days=10000)))
def test_round_trip(value):
    assert parse_duration(format_duration(value)) == value


@given(st.timedeltas(min_value=timedelta(0), max_value=timedelta(days=1000)))
def test_format_never_negative_sign_for_nonnegative(value):
    assert not format_duration(value).startswith("-")