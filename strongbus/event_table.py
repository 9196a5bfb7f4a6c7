from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(slots=True, eq=False)
class Listener:
    """A single registration in an EventTable.

    `handler` is what the caller subscribed and what listener views report,
    `invoke` is what the table calls (a wrapper for the any/every forms).
    """

    event: str
    handler: Callable[..., Any]
    invoke: Callable[..., Any]


class EventTable:
    """Ordered registry of listeners keyed by event name."""

    __slots__ = ('_listeners',)

    def __init__(self) -> None:
        self._listeners: dict[str, list[Listener]] = {}

    def register(self, event: str, handler: Callable[..., Any], invoke: Callable[..., Any] | None = None) -> Listener:
        listener = Listener(event=event, handler=handler, invoke=invoke or handler)
        self._listeners.setdefault(event, []).append(listener)
        return listener

    def unregister(self, listener: Listener) -> bool:
        entries = self._listeners.get(listener.event)
        if not entries:
            return False
        for index, entry in enumerate(entries):
            if entry is listener:
                del entries[index]
                break
        else:
            return False
        if not entries:
            self._listeners.pop(listener.event, None)
        return True

    def contains(self, listener: Listener) -> bool:
        return any(entry is listener for entry in self._listeners.get(listener.event, ()))

    def listeners(self, event: str) -> list[Listener]:
        return list(self._listeners.get(event, ()))

    def count(self, event: str) -> int:
        return len(self._listeners.get(event, ()))

    def event_names(self) -> list[str]:
        return list(self._listeners)

    def invoke(self, event: str, *args: Any) -> bool:
        """Call every listener for `event` in registration order.

        Returns True when at least one listener was registered. Exceptions
        raised by a listener propagate and skip the listeners after it.
        """
        entries = self._listeners.get(event)
        if not entries:
            return False
        # snapshot: listeners may subscribe/unsubscribe while we iterate
        for listener in tuple(entries):
            listener.invoke(*args)
        return True

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._listeners.values())

    def __repr__(self) -> str:
        counts = ', '.join(f'{event}={len(entries)}' for event, entries in self._listeners.items())
        return f'EventTable({counts})'
