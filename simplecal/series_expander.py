"""Series expansion for simplecal.

Turns stored series plus their exceptions and exclusions into the concrete
instances visible in a date window.
"""

import logging
from collections.abc import Iterable
from typing import Any, Optional

from .config_manager import RecurrenceConfig
from .date_utils import DateLike
from .exception_index import build_exception_index
from .exdate_set import contains, parse_exdates
from .occurrence_generator import generate_occurrences
from .recur_exceptions import ExpansionError, RuleParseError, SimpleCalError
from .recur_models import (
    EventException,
    ExceptionInstance,
    Instance,
    NonRecurringInstance,
    PlainInstance,
    Series,
)
from .rrule_codec import parse

logger = logging.getLogger(__name__)


def as_single_instance(series: Series) -> NonRecurringInstance:
    """Wrap a series, unexpanded, as one instance."""
    return NonRecurringInstance(
        event=series.event_fields(),
        series_id=series.id,
        calendar_id=series.calendar_id,
    )


class SeriesExpander:
    """Expands recurring series into instances for a view window.

    Expansion is a pure function of its inputs; one expander can be shared
    across series and threads.
    """

    def __init__(self, settings: Any = None):
        """Initialize expander with configuration settings.

        Args:
            settings: ``RecurrenceConfig``, mapping or settings object; None
                uses defaults
        """
        if isinstance(settings, RecurrenceConfig):
            self.config = settings
        else:
            self.config = RecurrenceConfig.from_settings(settings)

    def expand_series(
        self,
        series: Series,
        range_start: DateLike,
        range_end: DateLike,
        exceptions: Iterable[EventException] = (),
    ) -> list[Instance]:
        """Expand one series into ordered instances within ``[range_start, range_end]``.

        A series without a rule is returned unchanged as a single instance
        (window filtering of non-recurring events is left to the caller). For
        each generated occurrence an exception for that day is emitted if one
        exists, even when the day is also excluded; otherwise excluded days are
        dropped and the rest become plain instances.

        Args:
            series: Series to expand
            range_start: Window start (date or datetime)
            range_end: Window end, inclusive (date or datetime)
            exceptions: Exception collection; entries of other series are ignored

        Returns:
            Instances in ascending occurrence order

        Raises:
            RuleParseError: If the series' rule text is malformed
            ExpansionError: If occurrences cannot be generated
        """
        rule = parse(series.rrule)
        if rule is None:
            return [as_single_instance(series)]

        excluded = parse_exdates(series.exdates)
        overrides = build_exception_index(series.id, exceptions)
        base_fields = series.event_fields()
        duration = series.duration

        instances: list[Instance] = []
        try:
            for occurrence in generate_occurrences(
                rule,
                series.start,
                range_start,
                range_end,
                max_occurrences=self.config.max_occurrences_per_window,
            ):
                override = overrides.get(occurrence.date())
                if override is not None:
                    instances.append(
                        ExceptionInstance(
                            event=override.event_fields(),
                            series_id=series.id,
                            calendar_id=series.calendar_id,
                            occurrence_start=occurrence,
                            exception_id=override.id,
                        )
                    )
                elif contains(excluded, occurrence):
                    continue
                else:
                    instances.append(
                        PlainInstance(
                            event=base_fields.model_copy(
                                update={"start": occurrence, "end": occurrence + duration}
                            ),
                            series_id=series.id,
                            calendar_id=series.calendar_id,
                            occurrence_start=occurrence,
                        )
                    )
        except RuleParseError:
            raise
        except (ValueError, TypeError, OverflowError) as e:
            raise ExpansionError(f"Failed to expand series {series.id}: {e}") from e

        logger.debug(
            "Expanded series %s into %d instances (%d exclusions, %d exceptions)",
            series.id,
            len(instances),
            len(excluded),
            len(overrides),
        )
        return instances

    def expand_events(
        self,
        series_list: Iterable[Series],
        range_start: DateLike,
        range_end: DateLike,
        exceptions: Iterable[EventException] = (),
        fallback: Optional[bool] = None,
        calendar_ids: Optional[Iterable[str]] = None,
    ) -> list[Instance]:
        """Expand every series and concatenate the results in input order.

        Results are not re-sorted across series. A series that fails to expand
        degrades to a single unexpanded instance so one bad record does not
        blank the whole view. When ``calendar_ids`` is given, only series of
        those (visible) calendars are expanded; exceptions follow their series.

        Args:
            series_list: Series to expand
            range_start: Window start
            range_end: Window end, inclusive
            exceptions: All exceptions (any series)
            fallback: Degrade failing series instead of raising; None uses
                ``config.expansion_fallback``
            calendar_ids: Visible calendar ids; None shows every calendar

        Returns:
            Flattened instance list
        """
        use_fallback = self.config.expansion_fallback if fallback is None else fallback
        visible = None if calendar_ids is None else set(calendar_ids)
        all_exceptions = list(exceptions)
        expanded: list[Instance] = []

        for series in series_list:
            if visible is not None and series.calendar_id not in visible:
                continue
            if not series.is_recurring:
                expanded.append(as_single_instance(series))
                continue
            try:
                expanded.extend(
                    self.expand_series(series, range_start, range_end, all_exceptions)
                )
            except SimpleCalError:
                if not use_fallback:
                    raise
                logger.exception(
                    "Expansion failed for series %s; showing it unexpanded", series.id
                )
                expanded.append(as_single_instance(series))

        return expanded


def expand_series(
    series: Series,
    range_start: DateLike,
    range_end: DateLike,
    exceptions: Iterable[EventException] = (),
) -> list[Instance]:
    """Expand one series with default configuration."""
    return SeriesExpander().expand_series(series, range_start, range_end, exceptions)


def expand_events(
    series_list: Iterable[Series],
    range_start: DateLike,
    range_end: DateLike,
    exceptions: Iterable[EventException] = (),
    fallback: Optional[bool] = None,
    calendar_ids: Optional[Iterable[str]] = None,
) -> list[Instance]:
    """Expand many series with default configuration."""
    return SeriesExpander().expand_events(
        series_list, range_start, range_end, exceptions, fallback=fallback, calendar_ids=calendar_ids
    )
