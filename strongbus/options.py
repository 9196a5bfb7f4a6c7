import logging
import os
from collections.abc import Mapping
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger('strongbus')

STRONGBUS_LOGGING_LEVEL = os.getenv('STRONGBUS_LOGGING_LEVEL', 'WARNING').upper()  # WARNING normally, otherwise DEBUG when testing

logger.setLevel(STRONGBUS_LOGGING_LEVEL)


class BusOptions(BaseModel):
    """Per-bus configuration.

    allow_unhandled_events: when False, emit() raises UnhandledEventError if nothing handled the event.
    max_listeners: listeners expected per event name, exceeding it logs a benign info message.
        The bus still accepts listeners past this threshold.
    name: label included in log messages and errors.
    potential_memory_leak_warning_threshold: listeners per event name past which a warning is logged.
    """

    model_config = ConfigDict(frozen=True, extra='forbid', validate_default=True)

    allow_unhandled_events: bool = True
    max_listeners: int = Field(default=50, ge=0)
    name: str = 'Anonymous'
    potential_memory_leak_warning_threshold: int = Field(default=500, ge=0)

    def merged(self, overrides: 'BusOptions | Mapping[str, Any] | None' = None, **extra: Any) -> Self:
        """Return a copy with the explicitly set fields of `overrides` (and `extra`) applied."""
        update: dict[str, Any] = {}
        if isinstance(overrides, BusOptions):
            update.update(overrides.model_dump(exclude_unset=True))
        elif overrides is not None:
            update.update(overrides)
        update.update(extra)
        if not update:
            return self
        # validate through the model rather than model_copy(update=...) which skips validation
        return self.model_validate({**self.model_dump(), **update})
