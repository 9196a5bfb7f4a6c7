from collections.abc import Callable
from typing import Any


class Subscription:
    """Zero-argument handle that undoes exactly one registration.

    Calling it more than once is a no-op after the first call.
    """

    __slots__ = ('_remove', '_closed')

    def __init__(self, remove: Callable[[], Any]) -> None:
        self._remove = remove
        self._closed = False

    def __call__(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._remove()

    @property
    def closed(self) -> bool:
        return self._closed

    def __repr__(self) -> str:
        return f'Subscription(closed={self._closed})'

    @classmethod
    def combine(cls, *subscriptions: 'Subscription') -> 'Subscription':
        """Merge several handles into one that releases all of them in order."""

        def remove_all() -> None:
            for subscription in subscriptions:
                subscription()

        return cls(remove_all)
