"""Per-series lookup of exceptions by original occurrence day."""

import logging
from collections.abc import Iterable
from datetime import date

from .recur_models import EventException

logger = logging.getLogger(__name__)


def build_exception_index(
    series_id: str, exceptions: Iterable[EventException]
) -> dict[date, EventException]:
    """Index the exceptions of one series by the day of their original occurrence.

    Args:
        series_id: Series whose exceptions should be selected
        exceptions: Full exception collection (any series)

    Returns:
        Mapping of original occurrence day to exception; empty when the series
        has none
    """
    index: dict[date, EventException] = {}
    for exception in exceptions:
        if exception.series_id != series_id:
            continue
        key = exception.original_date
        if key in index:
            # Stores reject duplicates; keep the first if one slipped through
            logger.warning(
                "Duplicate exception %s for series %s on %s ignored (keeping %s)",
                exception.id,
                series_id,
                key,
                index[key].id,
            )
            continue
        index[key] = exception
    return index
