from collections.abc import Callable
from enum import StrEnum
from typing import Any

from strongbus.event_table import EventTable
from strongbus.subscription import Subscription


class Lifecycle(StrEnum):
    """Internal-only signals describing listener and activation transitions.

    Bus state is strictly ``idle`` -> ``active`` -> ``idle``. The four listener
    signals are emitted with the event name, the four state signals without
    arguments.
    """

    WILL_ACTIVATE = 'willActivate'
    ACTIVE = 'active'
    WILL_IDLE = 'willIdle'
    IDLE = 'idle'
    WILL_ADD_LISTENER = 'willAddListener'
    DID_ADD_LISTENER = 'didAddListener'
    WILL_REMOVE_LISTENER = 'willRemoveListener'
    DID_REMOVE_LISTENER = 'didRemoveListener'


LifecycleHandler = Callable[..., Any]


class LifecycleStateMachine:
    """Derives the active/idle state of a bus from listener count transitions.

    The owning bus supplies two probes: `has_listeners` (own or delegate
    listeners exist) and `listener_count` (distinct listeners across own and delegate tables).
    """

    def __init__(self, has_listeners: Callable[[], bool], listener_count: Callable[[], int]) -> None:
        self._signals = EventTable()
        self._has_listeners = has_listeners
        self._listener_count = listener_count
        self.active = False
        # a delegate reachable through several edges reports the same transition once per edge
        self._will_activate_pending = False
        self._will_idle_pending = False

    def hook(self, signal: Lifecycle | str, handler: LifecycleHandler) -> Subscription:
        try:
            signal = Lifecycle(signal)
        except ValueError as exc:
            raise ValueError(f'Unknown lifecycle signal: {signal!r}, expected one of {[s.value for s in Lifecycle]}') from exc
        listener = self._signals.register(signal, handler)
        return Subscription(lambda: self._signals.unregister(listener))

    def emit(self, signal: Lifecycle, *args: Any) -> bool:
        return self._signals.invoke(signal, *args)

    def will_add_listener(self, event: str) -> None:
        if not self.active and not self._will_activate_pending:
            self._will_activate_pending = True
            self.emit(Lifecycle.WILL_ACTIVATE)
        self.emit(Lifecycle.WILL_ADD_LISTENER, event)

    def did_add_listener(self, event: str) -> None:
        self.emit(Lifecycle.DID_ADD_LISTENER, event)
        self._will_activate_pending = False
        if not self.active and self._has_listeners():
            self.active = True
            self.emit(Lifecycle.ACTIVE)

    def will_remove_listener(self, event: str) -> None:
        if self.active and not self._will_idle_pending and self._listener_count() == 1:
            self._will_idle_pending = True
            self.emit(Lifecycle.WILL_IDLE)
        self.emit(Lifecycle.WILL_REMOVE_LISTENER, event)

    def did_remove_listener(self, event: str) -> None:
        self.emit(Lifecycle.DID_REMOVE_LISTENER, event)
        self._will_idle_pending = False
        if self.active and not self._has_listeners():
            self.active = False
            self.emit(Lifecycle.IDLE)

    def reconcile(self) -> None:
        """Re-derive the active flag after a delegation edge was added or removed."""
        self._will_activate_pending = self._will_idle_pending = False
        has_listeners = self._has_listeners()
        if has_listeners and not self.active:
            self.active = True
            self.emit(Lifecycle.ACTIVE)
        elif not has_listeners and self.active:
            self.active = False
            self.emit(Lifecycle.IDLE)

    def clear(self) -> None:
        self._signals.clear()
        self.active = False
        self._will_activate_pending = self._will_idle_pending = False

    def __repr__(self) -> str:
        return f'LifecycleStateMachine(active={self.active}, hooks={len(self._signals)})'
