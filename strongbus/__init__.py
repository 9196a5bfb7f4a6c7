"""Typed synchronous event bus library."""

from .errors import ReservedEventError, UnhandledEventError
from .event_bus import Bus
from .event_table import EventTable, Listener
from .lifecycle import Lifecycle, LifecycleStateMachine
from .middlewares import LifecycleLogger
from .options import BusOptions
from .subscription import Subscription

__all__ = [
    'Bus',
    'BusOptions',
    'Lifecycle',
    'LifecycleStateMachine',
    'LifecycleLogger',
    'EventTable',
    'Listener',
    'Subscription',
    'ReservedEventError',
    'UnhandledEventError',
]
