"""Edit/delete planning for recurring series.

A plan describes the writes a save or delete needs (series rewrite, new
exception, exception deletions, series deletion) for one of three scopes:
``this_only``, ``this_and_future`` and ``all``. Planning reads through the
stores it was given and never writes; ``apply_*`` performs the writes.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import timedelta
from typing import Optional, Union

from pydantic import ValidationError

from .event_store import EventStore, ExceptionStore, SeriesStore
from .exdate_set import add_exdate
from .occurrence_generator import is_occurrence_date
from .recur_exceptions import (
    ExceptionConflictError,
    InvalidEventError,
    OccurrenceNotFoundError,
    SeriesNotFoundError,
    UnsupportedScopeError,
)
from .recur_models import (
    DeletePlan,
    EditScope,
    EventException,
    InstanceRef,
    RecurrenceRule,
    SavePlan,
    Series,
    SeriesUpdate,
)
from .rrule_codec import parse, serialize

logger = logging.getLogger(__name__)

# Series-level fields an exception does not carry
_SERIES_ONLY_FIELDS = ("calendar_id", "rrule")


def _default_id_factory() -> str:
    return uuid.uuid4().hex


def _coerce_scope(scope: Union[EditScope, str]) -> EditScope:
    try:
        return EditScope(scope)
    except ValueError as e:
        raise UnsupportedScopeError(f"Unknown scope {scope!r}") from e


class MutationPlanner:
    """Plans and applies scoped saves and deletes against explicit stores."""

    def __init__(
        self,
        series_store: SeriesStore,
        exception_store: ExceptionStore,
        id_factory: Optional[Callable[[], str]] = None,
    ) -> None:
        """Initialize the planner.

        Args:
            series_store: Store holding series records
            exception_store: Store holding exception records
            id_factory: Generates ids for new exceptions (default: uuid4 hex)
        """
        self.series_store = series_store
        self.exception_store = exception_store
        self._new_id = id_factory or _default_id_factory

    @classmethod
    def for_store(
        cls, store: EventStore, id_factory: Optional[Callable[[], str]] = None
    ) -> "MutationPlanner":
        """Build a planner over both halves of an ``EventStore``."""
        return cls(store.series, store.exceptions, id_factory=id_factory)

    def _require_series(self, series_id: str) -> Series:
        series = self.series_store.get_by_id(series_id)
        if series is None:
            raise SeriesNotFoundError(series_id)
        return series

    @staticmethod
    def _require_occurrence(ref: InstanceRef, series: Series, scope: EditScope) -> RecurrenceRule:
        """Return the series rule after checking ``ref`` names one of its occurrences.

        Raises:
            UnsupportedScopeError: If the series does not recur or no date is given
            OccurrenceNotFoundError: If the rule has no occurrence that day
            RuleParseError: If the series rule text is malformed
        """
        if not series.is_recurring:
            raise UnsupportedScopeError(
                f"Scope {scope.value} requires a recurring series; {series.id} does not recur"
            )
        if ref.occurrence_start is None:
            raise UnsupportedScopeError(f"Scope {scope.value} requires an occurrence date")
        rule = parse(series.rrule)
        day = ref.occurrence_start.date()
        if not is_occurrence_date(rule, series.start, day):
            raise OccurrenceNotFoundError(series.id, day)
        return rule

    def plan_save(
        self, ref: InstanceRef, scope: Union[EditScope, str], update: SeriesUpdate
    ) -> SavePlan:
        """Plan a save of ``update`` onto the instance identified by ``ref``.

        ``this_only`` creates an exception at the original occurrence and
        excludes that day from the plain series; ``all`` overwrites the series
        itself. ``this_and_future`` is not offered for saves.

        Raises:
            SeriesNotFoundError: If the series does not exist
            UnsupportedScopeError: If the scope is not offered for this instance
            OccurrenceNotFoundError: If the rule has no occurrence on that day
            ExceptionConflictError: If that day already has an exception
            InvalidEventError: If the update would leave end before start
            RuleParseError: If the series (or updated) rule text is malformed
        """
        scope = _coerce_scope(scope)
        series = self._require_series(ref.series_id)

        if scope == EditScope.ALL:
            changes = update.changes()
            if "start" in changes and "end" not in changes:
                # Moving only the start keeps the duration
                changes["end"] = changes["start"] + series.duration
            try:
                updated = Series.model_validate({**series.model_dump(), **changes})
            except ValidationError as e:
                raise InvalidEventError(
                    f"Update would make series {series.id} invalid: {e.errors()[0]['msg']}",
                    series.id,
                ) from e
            # Surface malformed rule text before anything is written
            parse(updated.rrule)
            return SavePlan(series_write=updated)

        if scope == EditScope.THIS_AND_FUTURE:
            raise UnsupportedScopeError("this_and_future is not offered for saves")

        self._require_occurrence(ref, series, scope)
        occurrence = ref.occurrence_start

        for existing in self.series_store.find_exceptions_of(series.id):
            if existing.original_date == occurrence.date():
                logger.warning(
                    "Exception %s already overrides series %s on %s",
                    existing.id,
                    series.id,
                    occurrence.date(),
                )
                raise ExceptionConflictError(series.id, occurrence.date())

        changes = update.changes()
        for name in _SERIES_ONLY_FIELDS:
            if changes.pop(name, None) is not None:
                logger.debug("Ignoring %s on single-occurrence save of %s", name, series.id)

        fields = series.event_fields().model_dump()
        fields["start"] = changes.get("start", occurrence)
        fields["end"] = changes.get("end", fields["start"] + series.duration)
        fields.update({k: v for k, v in changes.items() if k not in ("start", "end")})

        try:
            exception = EventException(
                **fields,
                id=self._new_id(),
                series_id=series.id,
                original_start=occurrence,
            )
        except ValidationError as e:
            raise InvalidEventError(
                f"Update would make the {occurrence.date()} occurrence of {series.id} invalid: "
                f"{e.errors()[0]['msg']}",
                series.id,
            ) from e
        series_write = series.model_copy(update={"exdates": add_exdate(series.exdates, occurrence)})
        return SavePlan(series_write=series_write, exception_write=exception)

    def plan_delete(self, ref: InstanceRef, scope: Union[EditScope, str]) -> DeletePlan:
        """Plan deletion of the instance identified by ``ref``.

        ``this_only`` excludes the occurrence day (existing exceptions are
        kept); ``this_and_future`` ends the rule the day before the occurrence;
        ``all`` deletes the series and every exception of it.

        Raises:
            SeriesNotFoundError: If the series does not exist
            UnsupportedScopeError: If the scope is not offered for this instance
            OccurrenceNotFoundError: If the rule has no occurrence on that day
            RuleParseError: If the series rule text is malformed
        """
        scope = _coerce_scope(scope)
        series = self._require_series(ref.series_id)

        if scope == EditScope.ALL:
            return DeletePlan(
                exception_deletes=[e.id for e in self.series_store.find_exceptions_of(series.id)],
                series_delete=series.id,
            )

        # The day must be generated by the rule so truncation never extends the series
        rule = self._require_occurrence(ref, series, scope)
        occurrence = ref.occurrence_start

        if scope == EditScope.THIS_ONLY:
            return DeletePlan(
                series_write=series.model_copy(
                    update={"exdates": add_exdate(series.exdates, occurrence)}
                )
            )

        last_day = occurrence.date() - timedelta(days=1)
        if last_day < series.start.date():
            logger.info(
                "Series %s truncated before its first occurrence; it will generate nothing",
                series.id,
            )
        truncated = rule.ending_on(last_day)
        return DeletePlan(series_write=series.model_copy(update={"rrule": serialize(truncated)}))

    def apply_save_plan(self, plan: SavePlan) -> SavePlan:
        """Persist a save plan; the exception is added before the series rewrite."""
        if plan.exception_write is not None:
            self.exception_store.add(plan.exception_write)
        if plan.series_write is not None:
            self.series_store.save(plan.series_write)
        return plan

    def apply_delete_plan(self, plan: DeletePlan) -> DeletePlan:
        """Persist a delete plan."""
        if plan.series_write is not None:
            self.series_store.save(plan.series_write)
        for exception_id in plan.exception_deletes:
            self.exception_store.delete(exception_id)
        if plan.series_delete is not None:
            self.series_store.delete(plan.series_delete)
        return plan

    def save_instance(
        self, ref: InstanceRef, scope: Union[EditScope, str], update: SeriesUpdate
    ) -> SavePlan:
        """Plan and apply a save."""
        return self.apply_save_plan(self.plan_save(ref, scope, update))

    def delete_instance(self, ref: InstanceRef, scope: Union[EditScope, str]) -> DeletePlan:
        """Plan and apply a delete."""
        return self.apply_delete_plan(self.plan_delete(ref, scope))

    def delete_calendar(self, calendar_id: str) -> list[DeletePlan]:
        """Delete every series of a calendar together with its exceptions.

        Each series goes through an ``all`` delete. The calendar record itself
        is owned by the caller.
        """
        plans = [
            self.delete_instance(InstanceRef(series_id=series.id), EditScope.ALL)
            for series in self.series_store.list_all(calendar_id=calendar_id)
        ]
        logger.info("Deleted calendar %s: %d series removed", calendar_id, len(plans))
        return plans
