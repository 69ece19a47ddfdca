"""Exclusion set (EXDATE) handling for simplecal.

Exclusions are stored on a series as a comma-separated list and compared at
calendar-day granularity.
"""

import logging
from collections.abc import Iterable
from datetime import date, datetime
from typing import Optional, Union

from dateutil.parser import isoparse

logger = logging.getLogger(__name__)


def parse_exdates(exdates_text: Optional[str]) -> set[date]:
    """Parse comma-separated exclusion text into a set of calendar days.

    Entries may be dates or datetimes (only the day is kept). Blank and
    unparseable entries are dropped with a warning instead of failing the set.
    """
    if not exdates_text:
        return set()

    result: set[date] = set()
    for raw in exdates_text.split(","):
        entry = raw.strip()
        if not entry:
            continue
        try:
            result.add(isoparse(entry.rstrip("Zz")).date())
        except (ValueError, OverflowError) as e:
            logger.warning("Dropping malformed exclusion date %r: %s", entry, e)
            continue
    return result


def serialize_exdates(days: Iterable[date]) -> str:
    """Serialize exclusion days as comma-joined ISO dates in ascending order."""
    return ",".join(d.isoformat() for d in sorted(set(days)))


def contains(days: set[date], when: Union[date, datetime]) -> bool:
    """Return True if the calendar day of ``when`` is excluded (time of day ignored)."""
    if isinstance(when, datetime):
        when = when.date()
    return when in days


def add_exdate(exdates_text: Optional[str], when: Union[date, datetime]) -> str:
    """Return exclusion text with the day of ``when`` added."""
    day = when.date() if isinstance(when, datetime) else when
    days = parse_exdates(exdates_text)
    days.add(day)
    return serialize_exdates(days)
