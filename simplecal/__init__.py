"""simplecal - recurrence expansion and scoped mutations for a personal calendar.

The two consumer entry points are ``expand_events`` (series + exceptions into
the instances visible in a window) and ``MutationPlanner`` (scoped save/delete
plans for recurring series).
"""

__version__ = "0.1.0"

from .recur_exceptions import (
    ExceptionConflictError,
    ExceptionNotFoundError,
    ExpansionError,
    InvalidEventError,
    NotFoundError,
    OccurrenceNotFoundError,
    RuleParseError,
    SeriesNotFoundError,
    SimpleCalError,
    UnsupportedScopeError,
)
from .recur_models import (
    DeletePlan,
    EditScope,
    EventException,
    EventFields,
    ExceptionInstance,
    Frequency,
    Instance,
    InstanceRef,
    NonRecurringInstance,
    PlainInstance,
    RecurrenceRule,
    SavePlan,
    Series,
    SeriesUpdate,
    Termination,
    Weekday,
)
from .event_store import EventStore, JsonEventStore
from .mutation_planner import MutationPlanner
from .series_expander import SeriesExpander, expand_events, expand_series

__all__ = [
    "DeletePlan",
    "EditScope",
    "EventException",
    "EventFields",
    "EventStore",
    "ExceptionConflictError",
    "ExceptionInstance",
    "ExceptionNotFoundError",
    "ExpansionError",
    "Frequency",
    "Instance",
    "InstanceRef",
    "InvalidEventError",
    "JsonEventStore",
    "MutationPlanner",
    "NonRecurringInstance",
    "NotFoundError",
    "OccurrenceNotFoundError",
    "PlainInstance",
    "RecurrenceRule",
    "RuleParseError",
    "SavePlan",
    "Series",
    "SeriesExpander",
    "SeriesNotFoundError",
    "SeriesUpdate",
    "SimpleCalError",
    "Termination",
    "UnsupportedScopeError",
    "Weekday",
    "expand_events",
    "expand_series",
]
