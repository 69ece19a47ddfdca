"""
Unit tests for simplecal.rrule_codec.

Covers parse(), serialize() and describe().
"""
from datetime import date

import pytest

from simplecal.recur_exceptions import RuleParseError
from simplecal.recur_models import Frequency, RecurrenceRule, Termination, Weekday
from simplecal.rrule_codec import RECURRENCE_PRESETS, describe, parse, serialize

pytestmark = pytest.mark.unit


@pytest.mark.parametrize("empty", [None, "", "   "])
def test_parse_empty_means_non_recurring(empty) -> None:
    assert parse(empty) is None


def test_parse_weekly_with_weekdays() -> None:
    rule = parse("FREQ=WEEKLY;BYDAY=MO,WE")
    assert rule is not None
    assert rule.frequency == Frequency.WEEKLY
    assert rule.interval == 1
    assert rule.by_weekday == frozenset({Weekday.MO, Weekday.WE})
    assert rule.termination == Termination.UNBOUNDED


def test_parse_accepts_prefix_and_lowercase_keys() -> None:
    rule = parse("RRULE:freq=daily;interval=3")
    assert rule == RecurrenceRule(frequency=Frequency.DAILY, interval=3)


@pytest.mark.parametrize(
    "until_text",
    ["20240131", "20240131T235959Z", "20240131T000000", "2024-01-31"],
)
def test_parse_until_keeps_calendar_day(until_text: str) -> None:
    rule = parse(f"FREQ=DAILY;UNTIL={until_text}")
    assert rule is not None
    assert rule.until == date(2024, 1, 31)
    assert rule.termination == Termination.UNTIL


def test_parse_count() -> None:
    rule = parse("FREQ=MONTHLY;COUNT=3")
    assert rule is not None
    assert rule.count == 3
    assert rule.termination == Termination.COUNT


def test_parse_drops_byday_for_non_weekly_rules() -> None:
    rule = parse("FREQ=MONTHLY;BYDAY=MO")
    assert rule is not None
    assert rule.by_weekday == frozenset()


@pytest.mark.parametrize(
    "bad_rule",
    [
        "FREQ=HOURLY",
        "INTERVAL=2",
        "FREQ=",
        "FREQ=DAILY;INTERVAL=bad",
        "FREQ=DAILY;INTERVAL=0",
        "FREQ=DAILY;COUNT=abc",
        "FREQ=DAILY;COUNT=-1",
        "FREQ=DAILY;UNTIL=notadate",
        "FREQ=DAILY;COUNT=3;UNTIL=20240101",
        "FREQ=WEEKLY;BYDAY=1MO",
        "FREQ=WEEKLY;BYDAY=XX",
        "FREQ=DAILY;WKST=MO",
        "FREQ=DAILY;garbage",
        "FREQ=DAILY;FREQ=WEEKLY",
    ],
)
def test_parse_invalid_raises(bad_rule: str) -> None:
    with pytest.raises(RuleParseError) as exc_info:
        parse(bad_rule)
    assert exc_info.value.rule_text == bad_rule


def test_parse_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        parse("FREQ=SOMETIMES")


def test_serialize_omits_defaults() -> None:
    assert serialize(RecurrenceRule(frequency=Frequency.DAILY)) == "FREQ=DAILY"


def test_serialize_orders_weekdays_monday_first() -> None:
    rule = RecurrenceRule(
        frequency=Frequency.WEEKLY,
        interval=2,
        by_weekday=frozenset({Weekday.FR, Weekday.MO, Weekday.SU}),
        count=6,
    )
    assert serialize(rule) == "FREQ=WEEKLY;INTERVAL=2;BYDAY=MO,FR,SU;COUNT=6"


def test_serialize_until_as_basic_date() -> None:
    rule = RecurrenceRule(frequency=Frequency.YEARLY, until=date(2030, 12, 25))
    assert serialize(rule) == "FREQ=YEARLY;UNTIL=20301225"


@pytest.mark.parametrize(
    "rule",
    [
        RecurrenceRule(frequency=Frequency.WEEKLY, by_weekday=frozenset({Weekday.MO, Weekday.WE})),
        RecurrenceRule(frequency=Frequency.WEEKLY, until=date(2024, 1, 9)),
        RecurrenceRule(frequency=Frequency.DAILY, interval=2, until=date(2024, 2, 29)),
        RecurrenceRule(frequency=Frequency.MONTHLY, count=12),
        RecurrenceRule(frequency=Frequency.YEARLY, interval=5),
    ],
)
def test_parse_serialize_round_trip(rule: RecurrenceRule) -> None:
    assert parse(serialize(rule)) == rule


def test_presets_all_parse() -> None:
    for rule_text, _label in RECURRENCE_PRESETS:
        if rule_text:
            assert parse(rule_text) is not None


@pytest.mark.parametrize(
    "rule_text,expected",
    [
        ("FREQ=DAILY", "every day"),
        ("FREQ=WEEKLY;BYDAY=MO,WE", "every week on Monday, Wednesday"),
        ("FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR", "every weekday"),
        ("FREQ=DAILY;INTERVAL=2;COUNT=5", "every 2 days for 5 times"),
        ("FREQ=YEARLY;COUNT=1", "every year for 1 time"),
        ("FREQ=MONTHLY;UNTIL=20240131", "every month until January 31, 2024"),
    ],
)
def test_describe(rule_text: str, expected: str) -> None:
    assert describe(rule_text) == expected


def test_describe_falls_back_to_raw_text() -> None:
    assert describe("FREQ=FORTNIGHTLY") == "FREQ=FORTNIGHTLY"


def test_describe_empty() -> None:
    assert describe("") == ""
    assert describe(None) == ""
