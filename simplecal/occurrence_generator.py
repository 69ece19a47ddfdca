"""Occurrence generation for simplecal recurrence rules.

Occurrences are produced with ``dateutil.rrule`` anchored at the series' own
start, in the series' own calendar (naive wall-clock or the tzinfo the start
carries). A fresh ``rrule`` is built per call so iteration never shares state
between series. COUNT is honoured across the whole series history because the
rule is always anchored at dtstart, not at the window start.
"""

import logging
from collections.abc import Iterator
from datetime import date, datetime
from itertools import islice
from typing import Optional

from dateutil.rrule import DAILY, MONTHLY, WEEKLY, YEARLY, rrule

from .date_utils import DateLike, window_end, window_start
from .recur_models import Frequency, RecurrenceRule, sorted_weekdays

logger = logging.getLogger(__name__)

_DATEUTIL_FREQ = {
    Frequency.DAILY: DAILY,
    Frequency.WEEKLY: WEEKLY,
    Frequency.MONTHLY: MONTHLY,
    Frequency.YEARLY: YEARLY,
}


def build_rrule(rule: RecurrenceRule, dtstart: datetime) -> rrule:
    """Build a dateutil ``rrule`` for ``rule`` anchored at ``dtstart``.

    UNTIL is a calendar day, so the bound is the last instant of that day in
    the anchor's zone.
    """
    kwargs: dict = {
        "freq": _DATEUTIL_FREQ[rule.frequency],
        "dtstart": dtstart,
        "interval": rule.interval,
        "cache": False,
    }
    if rule.by_weekday:
        kwargs["byweekday"] = [d.index for d in sorted_weekdays(rule.by_weekday)]
    if rule.count is not None:
        kwargs["count"] = rule.count
    if rule.until is not None:
        kwargs["until"] = window_end(rule.until, dtstart)
    return rrule(**kwargs)


def _iter_window(
    recurrence: rrule, start: datetime, end: datetime, max_occurrences: Optional[int]
) -> Iterator[datetime]:
    produced = 0
    for occurrence in recurrence.xafter(start, inc=True):
        if occurrence > end:
            return
        if max_occurrences is not None and produced >= max_occurrences:
            logger.warning(
                "Occurrence generation capped at %d occurrences for window %s..%s",
                max_occurrences,
                start,
                end,
            )
            return
        produced += 1
        yield occurrence


def generate_occurrences(
    rule: RecurrenceRule,
    dtstart: datetime,
    range_start: DateLike,
    range_end: DateLike,
    max_occurrences: Optional[int] = None,
) -> Iterator[datetime]:
    """Enumerate occurrence starts of ``rule`` inside a closed window.

    Args:
        rule: Recurrence rule
        dtstart: Anchor instant (the series' own start)
        range_start: Window start; a bare date means the start of that day
        range_end: Window end (inclusive); a bare date means the end of that day
        max_occurrences: Optional safety cap on occurrences yielded

    Returns:
        Lazy ascending iterator of occurrence starts; empty for an empty or
        inverted window
    """
    recurrence = build_rrule(rule, dtstart)
    start = window_start(range_start, dtstart)
    end = window_end(range_end, dtstart)
    if end <= start:
        logger.debug("Empty window %s..%s; no occurrences generated", start, end)
        return iter(())
    return _iter_window(recurrence, start, end, max_occurrences)


def first_occurrences(rule: RecurrenceRule, dtstart: datetime, limit: int) -> list[datetime]:
    """Return up to ``limit`` occurrences from the start of the series."""
    return list(islice(build_rrule(rule, dtstart), limit))


def is_occurrence_date(rule: RecurrenceRule, dtstart: datetime, day: date) -> bool:
    """Return True if the rule generates an occurrence on calendar day ``day``.

    Exclusions are not consulted.
    """
    return next(generate_occurrences(rule, dtstart, day, day), None) is not None
