"""Date and window helpers for simplecal."""

from datetime import date, datetime, time
from typing import Union

from dateutil.relativedelta import relativedelta

DateLike = Union[date, datetime]


def to_date(value: DateLike) -> date:
    """Return the calendar day of a date or datetime."""
    if isinstance(value, datetime):
        return value.date()
    return value


def align_to(value: datetime, reference: datetime) -> datetime:
    """Give ``value`` the same awareness as ``reference``.

    Naive values are treated as wall-clock time in the reference's zone; aware
    values compared against a naive reference keep their wall-clock time.

    Args:
        value: Datetime to align
        reference: Datetime whose tzinfo (or lack of it) should be matched

    Returns:
        Datetime comparable with ``reference``
    """
    if reference.tzinfo is None:
        return value.replace(tzinfo=None) if value.tzinfo is not None else value
    if value.tzinfo is None:
        return value.replace(tzinfo=reference.tzinfo)
    return value.astimezone(reference.tzinfo)


def window_start(value: DateLike, reference: datetime) -> datetime:
    """Lower window bound; a bare date means the start of that day."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    return align_to(value, reference)


def window_end(value: DateLike, reference: datetime) -> datetime:
    """Upper window bound; a bare date means the last instant of that day."""
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.max)
    return align_to(value, reference)


def get_month_view_range(current: DateLike, padding_months: int = 1) -> tuple[date, date]:
    """Return the date window shown around a month view.

    The window spans the month containing ``current`` padded by
    ``padding_months`` whole months on each side, so days of adjacent months
    visible in the grid are covered.
    """
    first_of_month = to_date(current).replace(day=1)
    start = first_of_month - relativedelta(months=padding_months)
    end = first_of_month + relativedelta(months=padding_months + 1, days=-1)
    return start, end


def format_instance_date(value: datetime) -> str:
    """Format an occurrence instant as ``YYYY-MM-DDTHH:MM:SS`` (no zone suffix)."""
    return value.strftime("%Y-%m-%dT%H:%M:%S")


def chronological_key(value: datetime) -> datetime:
    """Sort key that orders naive and aware datetimes together.

    Naive values are local wall-clock time; aware values are converted to the
    local zone and made naive.
    """
    if value.tzinfo is None:
        return value
    return value.astimezone().replace(tzinfo=None)
