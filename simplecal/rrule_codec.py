"""Recurrence rule text codec for simplecal.

Parses and serializes the compact ``FREQ=...;INTERVAL=...`` rule text stored
on a series, and renders rules as English text.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from dateutil.parser import isoparse
from pydantic import ValidationError

from .recur_exceptions import RuleParseError
from .recur_models import Frequency, RecurrenceRule, Termination, Weekday, sorted_weekdays

logger = logging.getLogger(__name__)

RRULE_PREFIX = "RRULE:"

# Preset choices offered by the event dialog
RECURRENCE_PRESETS: list[tuple[str, str]] = [
    ("", "Does not repeat"),
    ("FREQ=DAILY", "Daily"),
    ("FREQ=WEEKLY", "Weekly"),
    ("FREQ=WEEKLY;BYDAY=MO,TU,WE,TH,FR", "Every weekday (Mon-Fri)"),
    ("FREQ=MONTHLY", "Monthly"),
    ("FREQ=YEARLY", "Yearly"),
]

_KNOWN_KEYS = ("FREQ", "INTERVAL", "BYDAY", "COUNT", "UNTIL")

_UNIT_NAMES = {
    Frequency.DAILY: "day",
    Frequency.WEEKLY: "week",
    Frequency.MONTHLY: "month",
    Frequency.YEARLY: "year",
}


def _parse_positive_int(key: str, value: str, rule_text: str) -> int:
    try:
        number = int(value)
    except ValueError as e:
        raise RuleParseError(f"{key} must be an integer, got {value!r}", rule_text) from e
    if number < 1:
        raise RuleParseError(f"{key} must be positive, got {number}", rule_text)
    return number


def _parse_until(value: str, rule_text: str) -> date:
    """Parse an UNTIL value, keeping only its calendar day."""
    try:
        return isoparse(value.rstrip("Zz")).date()
    except (ValueError, OverflowError) as e:
        raise RuleParseError(f"Unparseable UNTIL date {value!r}", rule_text) from e


def _parse_byday(value: str, rule_text: str) -> frozenset[Weekday]:
    days = set()
    for raw in value.split(","):
        code = raw.strip().upper()
        if not code:
            continue
        try:
            days.add(Weekday(code))
        except ValueError as e:
            raise RuleParseError(f"Unsupported BYDAY entry {raw!r}", rule_text) from e
    return frozenset(days)


def parse(rule_text: Optional[str]) -> Optional[RecurrenceRule]:
    """Parse rule text into a ``RecurrenceRule``.

    Args:
        rule_text: Semicolon-separated ``KEY=VALUE`` text, optionally prefixed
            with ``RRULE:``

    Returns:
        Parsed rule, or None for empty/absent text (non-recurring)

    Raises:
        RuleParseError: If the text is structurally invalid
    """
    if rule_text is None or not rule_text.strip():
        return None

    text = rule_text.strip()
    if text.upper().startswith(RRULE_PREFIX):
        text = text[len(RRULE_PREFIX):]

    parts: dict[str, str] = {}
    for segment in text.split(";"):
        if not segment.strip():
            continue
        if "=" not in segment:
            raise RuleParseError(f"Malformed rule segment {segment!r}", rule_text)
        key, value = segment.split("=", 1)
        key = key.strip().upper()
        if key not in _KNOWN_KEYS:
            raise RuleParseError(f"Unsupported rule key {key!r}", rule_text)
        if key in parts:
            raise RuleParseError(f"Duplicate rule key {key!r}", rule_text)
        parts[key] = value.strip()

    freq_text = parts.get("FREQ", "").upper()
    if not freq_text:
        raise RuleParseError("Rule is missing FREQ", rule_text)
    try:
        frequency = Frequency(freq_text)
    except ValueError as e:
        raise RuleParseError(f"Unknown FREQ {freq_text!r}", rule_text) from e

    kwargs: dict = {"frequency": frequency}
    if "INTERVAL" in parts:
        kwargs["interval"] = _parse_positive_int("INTERVAL", parts["INTERVAL"], rule_text)
    if "COUNT" in parts:
        kwargs["count"] = _parse_positive_int("COUNT", parts["COUNT"], rule_text)
    if "UNTIL" in parts:
        kwargs["until"] = _parse_until(parts["UNTIL"], rule_text)
    if "BYDAY" in parts:
        kwargs["by_weekday"] = _parse_byday(parts["BYDAY"], rule_text)
        if frequency != Frequency.WEEKLY:
            logger.debug("Ignoring BYDAY on %s rule %r", frequency.value, rule_text)

    try:
        return RecurrenceRule(**kwargs)
    except ValidationError as e:
        raise RuleParseError(f"Invalid rule {rule_text!r}: {e.errors()[0]['msg']}", rule_text) from e


def serialize(rule: RecurrenceRule) -> str:
    """Serialize a rule to compact text (inverse of ``parse``).

    The default interval is omitted, and BYDAY is written only for weekly
    rules with at least one weekday selected.
    """
    parts = [f"FREQ={rule.frequency.value}"]
    if rule.interval != 1:
        parts.append(f"INTERVAL={rule.interval}")
    if rule.frequency == Frequency.WEEKLY and rule.by_weekday:
        parts.append("BYDAY=" + ",".join(d.value for d in sorted_weekdays(rule.by_weekday)))
    if rule.count is not None:
        parts.append(f"COUNT={rule.count}")
    if rule.until is not None:
        parts.append(f"UNTIL={rule.until.strftime('%Y%m%d')}")
    return ";".join(parts)


def _describe_rule(rule: RecurrenceRule) -> str:
    unit = _UNIT_NAMES[rule.frequency]
    text = f"every {unit}" if rule.interval == 1 else f"every {rule.interval} {unit}s"

    if rule.by_weekday:
        days = sorted_weekdays(rule.by_weekday)
        if len(days) == 5 and all(d.index < 5 for d in days) and rule.interval == 1:
            text = "every weekday"
        else:
            text += " on " + ", ".join(d.label for d in days)

    if rule.termination == Termination.COUNT:
        text += " for 1 time" if rule.count == 1 else f" for {rule.count} times"
    elif rule.termination == Termination.UNTIL and rule.until is not None:
        text += f" until {rule.until.strftime('%B')} {rule.until.day}, {rule.until.year}"
    return text


def describe(rule_text: Optional[str]) -> str:
    """Render rule text as English; returns the raw text if it cannot be described."""
    if not rule_text:
        return ""
    try:
        rule = parse(rule_text)
        if rule is None:
            return ""
        return _describe_rule(rule)
    except Exception:
        logger.warning("Could not describe recurrence rule %r", rule_text, exc_info=True)
        return rule_text
