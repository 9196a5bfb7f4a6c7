import logging
from collections.abc import Callable, Mapping, Sequence
from typing import Any, ClassVar, Generic, Literal, overload

from pydantic_core import to_json
from typing_extensions import TypeVar  # needed to get TypeVar(default=...) above python 3.11
from uuid_extensions import uuid7str  # pyright: ignore[reportMissingImports, reportUnknownVariableType]

uuid7str: Callable[[], str] = uuid7str  # pyright: ignore

from strongbus.dispatch import EVERY, PROXY, Dispatcher
from strongbus.errors import UnhandledEventError
from strongbus.event_table import EventTable, Listener
from strongbus.lifecycle import Lifecycle, LifecycleHandler, LifecycleStateMachine
from strongbus.options import BusOptions
from strongbus.subscription import Subscription

logger = logging.getLogger('strongbus')

# Mapping of event name -> payload type, only consumed by type checkers.
T_EventMap = TypeVar('T_EventMap', default=dict[str, Any])
T_Delegate = TypeVar('T_Delegate', bound='Bus[Any]')

PayloadHandler = Callable[[Any], Any]
ProxyHandler = Callable[[str, Any], Any]
AmbiguousHandler = Callable[[], Any]
Listenable = str | Sequence[str] | Literal['*']


class Bus(Generic[T_EventMap]):
    """
    Synchronous in-process publish/subscribe bus with lifecycle signals and delegation.

    Features:
    - Subscribe by event name, list of names, or '*' and get back an idempotent unsubscribe handle
    - emit() runs exact-name, every, proxy handlers and then every piped delegate, returning whether anything handled it
    - Lifecycle signals (willActivate, active, willIdle, idle, ...) track when the bus gains its first / loses its last listener
    - pipe() composes buses into hierarchies: a parent is active while any delegate has listeners
    """

    reserved_events: ClassVar[Mapping[str, str]] = {'EVERY': EVERY, 'PROXY': PROXY}

    # Process-wide defaults, read once when each bus is constructed.
    default_options: ClassVar[BusOptions] = BusOptions()

    id: str
    options: BusOptions

    def __init__(
        self,
        options: BusOptions | Mapping[str, Any] | None = None,
        *,
        defaults: BusOptions | None = None,
        **overrides: Any,
    ) -> None:
        base = defaults if defaults is not None else type(self).default_options
        self.options = base.merged(options, **overrides)
        self.id = uuid7str()

        self._delegates: dict[Bus[Any], list[Subscription]] = {}
        self._table = EventTable()
        self._lifecycle = LifecycleStateMachine(
            has_listeners=lambda: self.has_listeners,
            listener_count=self._listener_count,
        )
        self._dispatcher = Dispatcher(
            table=self._table,
            lifecycle=self._lifecycle,
            options=self.options,
            label=lambda: self.label,
            forward=self._forward,
            on_unhandled=self.handle_unexpected_event,
        )

    # Process-wide default setters

    @classmethod
    def set_default_allow_unhandled_events(cls, allow: bool) -> None:
        cls.default_options = cls.default_options.merged(allow_unhandled_events=allow)

    @classmethod
    def set_default_max_listeners(cls, max_listeners: int) -> None:
        cls.default_options = cls.default_options.merged(max_listeners=max_listeners)

    @classmethod
    def set_default_memory_leak_warning_threshold(cls, threshold: int) -> None:
        cls.default_options = cls.default_options.merged(potential_memory_leak_warning_threshold=threshold)

    def __str__(self) -> str:
        icon = '🟢' if self.active else '🔴'
        return f'{self.label}{icon}(handlers={len(self._table)} delegates={len(self._delegates)})'

    def __repr__(self) -> str:
        return str(self)

    @property
    def name(self) -> str:
        return f'{self.options.name} {type(self).__name__}'

    @property
    def label(self) -> str:
        return f'{self.name}#{self.id[-4:]}'

    def handle_unexpected_event(self, event: str, payload: Any) -> None:
        """Called when nothing handled `event` and unhandled events are not allowed.

        Override to change the policy; the default raises UnhandledEventError.
        """
        contents = to_json(payload, indent=2, fallback=repr).decode()
        message = f"{self.name} received unexpected message type '{event}' with contents:\n{contents}"
        raise UnhandledEventError(message, event=event, payload=payload, bus_name=self.name)

    # Subscribing

    @overload
    def on(self, event: Literal['*'], handler: AmbiguousHandler) -> Subscription: ...

    @overload
    def on(self, event: str, handler: PayloadHandler) -> Subscription: ...

    @overload
    def on(self, event: Sequence[str], handler: ProxyHandler) -> Subscription: ...

    def on(self, event: Listenable, handler: Callable[..., Any]) -> Subscription:
        """
        Subscribe a handler to one event, several events, or all events.

        Examples:
                bus.on('saved', lambda payload: ...)  # handler(payload)
                bus.on(['saved', 'deleted'], lambda event, payload: ...)  # alias of bus.any()
                bus.on('*', lambda: ...)  # alias of bus.every()
        """
        if not isinstance(event, str):
            return self.any(event, handler)
        if event == EVERY:
            return self.every(handler)
        return self._dispatcher.register(event, handler)

    def any(self, events: Sequence[str], handler: ProxyHandler) -> Subscription:
        """Handle several events with one handler, called as handler(event, payload)."""
        assert not isinstance(events, str), f'any() expects a list of event names, got: {events!r}'
        return Subscription.combine(*(self._dispatcher.register(event, handler, _bind_event(handler, event)) for event in events))

    def every(self, handler: AmbiguousHandler) -> Subscription:
        """Handle every emitted event. The handler is called without arguments and is unaware of the event."""
        return self._dispatcher.register(EVERY, handler, lambda _payload: handler())

    def all(self, handler: AmbiguousHandler) -> Subscription:
        """Alias of every()."""
        return self.every(handler)

    def proxy(self, handler: ProxyHandler) -> Subscription:
        """Receive every emitted event as handler(event, payload), a combination of any() and every()."""
        return self._dispatcher.register(PROXY, handler)

    # Emitting

    def emit(self, event: str, payload: Any = None) -> bool:
        """
        Synchronously dispatch `event` to own handlers, every/proxy handlers, then all delegates.

        Returns True if anything handled it. Raises ReservedEventError for '*' and '@@PROXY@@',
        and UnhandledEventError if nothing handled it and allow_unhandled_events is False.
        Handler exceptions propagate to the caller and abort the remaining handlers.
        """
        return self._dispatcher.dispatch(event, payload)

    def _forward(self, event: str, payload: Any) -> bool:
        if not self._delegates:
            return False
        handled = False
        for delegate in tuple(self._delegates):
            handled = delegate.emit(event, payload) or handled
        return handled

    # Delegation

    def pipe(self, delegate: T_Delegate) -> T_Delegate:
        """Forward every event emitted on this bus into `delegate`. Returns `delegate` for chaining."""
        if delegate is self or delegate in self._delegates:
            return delegate

        self._delegates[delegate] = [
            delegate.hook(Lifecycle.WILL_ADD_LISTENER, self._lifecycle.will_add_listener),
            delegate.hook(Lifecycle.DID_ADD_LISTENER, self._lifecycle.did_add_listener),
            delegate.hook(Lifecycle.WILL_REMOVE_LISTENER, self._lifecycle.will_remove_listener),
            delegate.hook(Lifecycle.DID_REMOVE_LISTENER, self._lifecycle.did_remove_listener),
        ]
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('🔗 %s piped into %s', self.label, delegate.label)
        self._lifecycle.reconcile()
        return delegate

    def unpipe(self, delegate: 'Bus[Any]') -> None:
        subscriptions = self._delegates.pop(delegate, None)
        if subscriptions is None:
            return
        for subscription in subscriptions:
            subscription()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('⛓️ %s unpiped from %s', self.label, delegate.label)
        self._lifecycle.reconcile()

    @property
    def delegates(self) -> tuple['Bus[Any]', ...]:
        return tuple(self._delegates)

    # Lifecycle

    def hook(self, signal: Lifecycle | str, handler: LifecycleHandler) -> Subscription:
        return self._lifecycle.hook(signal, handler)

    def monitor(self, handler: Callable[[bool], Any]) -> Subscription:
        """Call handler(True) when the bus becomes active and handler(False) when it becomes idle."""
        return Subscription.combine(
            self.hook(Lifecycle.ACTIVE, lambda: handler(True)),
            self.hook(Lifecycle.IDLE, lambda: handler(False)),
        )

    # Introspection

    @property
    def active(self) -> bool:
        return self._lifecycle.active

    @property
    def has_listeners(self) -> bool:
        return self.has_own_listeners or self.has_delegate_listeners

    @property
    def has_own_listeners(self) -> bool:
        return any(self._table.count(event) for event in self._table.event_names())

    @property
    def has_delegate_listeners(self) -> bool:
        return any(delegate.has_listeners for delegate in self._delegates)

    @property
    def listeners(self) -> dict[str, list[Callable[..., Any]]]:
        """Handlers per event name, own first then each delegate's (recursively). Empty entries are omitted."""
        merged: dict[str, list[Callable[..., Any]]] = {}
        for event in self._table.event_names():
            merged.setdefault(event, []).extend(listener.handler for listener in self._table.listeners(event))
        for delegate in self._delegates:
            for event, handlers in delegate.listeners.items():
                merged.setdefault(event, []).extend(handlers)
        return {event: handlers for event, handlers in merged.items() if handlers}

    def _listener_count(self) -> int:
        # a delegate piped through several edges shows up once per edge in `listeners`, count each registration once
        seen: dict[int, Listener] = {}
        self._collect_listeners(seen)
        return len(seen)

    def _collect_listeners(self, seen: dict[int, Listener]) -> None:
        for event in self._table.event_names():
            for listener in self._table.listeners(event):
                seen[id(listener)] = listener
        for delegate in self._delegates:
            delegate._collect_listeners(seen)

    # Teardown

    def destroy(self) -> None:
        """Drop all handlers, lifecycle hooks and delegation edges. Safe to call more than once."""
        for subscriptions in self._delegates.values():
            for subscription in subscriptions:
                subscription()
        self._delegates.clear()
        self._table.clear()
        self._lifecycle.clear()
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug('🧹 %s destroyed', self.label)


def _bind_event(handler: ProxyHandler, event: str) -> PayloadHandler:
    def any_handler(payload: Any) -> Any:
        return handler(event, payload)

    return any_handler
