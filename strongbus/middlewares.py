"""Reusable Bus observability helpers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from strongbus.lifecycle import Lifecycle
from strongbus.subscription import Subscription

if TYPE_CHECKING:
    from strongbus.event_bus import Bus

__all__ = ['LifecycleLogger']


class LifecycleLogger:
    """Log every lifecycle transition of the buses it is attached to.

    ```python
    bus = Bus(name='Orders')
    detach = LifecycleLogger(level=logging.INFO).attach(bus)
    ...
    detach()
    ```
    """

    def __init__(self, level: int = logging.DEBUG, logger: logging.Logger | None = None):
        self.level = level
        self.logger = logger if logger is not None else logging.getLogger('strongbus.lifecycle')

    def attach(self, bus: Bus[Any]) -> Subscription:
        return Subscription.combine(*(bus.hook(signal, self._make_hook(bus, signal)) for signal in Lifecycle))

    def _make_hook(self, bus: Bus[Any], signal: Lifecycle):
        def log_signal(*args: Any) -> None:
            if not self.logger.isEnabledFor(self.level):
                return
            if args:
                self.logger.log(self.level, '🔁 %s %s(%s)', bus.label, signal.value, args[0])
            else:
                self.logger.log(self.level, '🔁 %s %s', bus.label, signal.value)

        return log_signal
