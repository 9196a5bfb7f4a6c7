from typing import Any


class ReservedEventError(ValueError):
    """A reserved marker ('*' or '@@PROXY@@') was passed to emit()."""

    def __init__(self, event: str) -> None:
        self.event = event
        super().__init__(f'Do not emit "{event}" manually. Reserved for internal use.')


class UnhandledEventError(RuntimeError):
    """An event reached no handler on a bus that does not allow unhandled events."""

    def __init__(self, message: str, *, event: str, payload: Any, bus_name: str) -> None:
        self.event = event
        self.payload = payload
        self.bus_name = bus_name
        super().__init__(message)
