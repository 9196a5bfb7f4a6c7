import logging
from collections.abc import Callable
from typing import Any

from strongbus.errors import ReservedEventError
from strongbus.event_table import EventTable, Listener
from strongbus.lifecycle import LifecycleStateMachine
from strongbus.options import BusOptions
from strongbus.subscription import Subscription

logger = logging.getLogger('strongbus')

EVERY = '*'
PROXY = '@@PROXY@@'
RESERVED_EVENTS = frozenset({EVERY, PROXY})


class Dispatcher:
    """Layers diagnostics, lifecycle signals and unhandled-event policy around an EventTable.

    The table itself is never patched: every register/unregister/invoke goes
    through this object, which calls the table primitives in between the
    lifecycle signals.
    """

    def __init__(
        self,
        table: EventTable,
        lifecycle: LifecycleStateMachine,
        options: BusOptions,
        label: Callable[[], str],
        forward: Callable[[str, Any], bool],
        on_unhandled: Callable[[str, Any], Any],
    ) -> None:
        self.table = table
        self.lifecycle = lifecycle
        self.options = options
        self._label = label
        self._forward = forward
        self._on_unhandled = on_unhandled

    def register(self, event: str, handler: Callable[..., Any], invoke: Callable[..., Any] | None = None) -> Subscription:
        self._check_listener_pressure(event)

        self.lifecycle.will_add_listener(event)
        listener = self.table.register(event, handler, invoke)
        self.lifecycle.did_add_listener(event)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('👂 %s.on(%s) registered listener %s', self._label(), event, _handler_name(handler))
        return Subscription(lambda: self.unregister(listener))

    def unregister(self, listener: Listener) -> None:
        # handles may outlive a destroy(), in which case there is nothing left to remove
        if not self.table.contains(listener):
            return

        self.lifecycle.will_remove_listener(listener.event)
        self.table.unregister(listener)
        self.lifecycle.did_remove_listener(listener.event)

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('🔕 %s removed listener %s for %s', self._label(), _handler_name(listener.handler), listener.event)

    def dispatch(self, event: str, payload: Any = None) -> bool:
        if event in RESERVED_EVENTS:
            raise ReservedEventError(event)

        handled = False
        handled = self.table.invoke(event, payload) or handled
        handled = self.table.invoke(EVERY, payload) or handled
        handled = self.table.invoke(PROXY, event, payload) or handled
        handled = self._forward(event, payload) or handled

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('📣 %s.emit(%s) handled=%s', self._label(), event, handled)

        if not handled and not self.options.allow_unhandled_events:
            self._on_unhandled(event, payload)
        return handled

    def _check_listener_pressure(self, event: str) -> None:
        n = self.table.count(event)
        threshold = self.options.potential_memory_leak_warning_threshold
        max_listeners = self.options.max_listeners
        if n > max_listeners:
            logger.info('%s has %d listeners for "%s", %d max listeners expected.', self._label(), n, event, max_listeners)
        if n > threshold:
            logger.warning(
                '⚠️ Potential Memory Leak. %s has %d listeners for "%s", exceeds threshold set to %d',
                self._label(),
                n,
                event,
                threshold,
            )


def _handler_name(handler: Callable[..., Any]) -> str:
    return getattr(handler, '__qualname__', None) or repr(handler)
