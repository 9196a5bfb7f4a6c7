#!/usr/bin/env -S uv run python
"""Run: uv run python examples/simple.py"""

from typing import Any, TypedDict

from strongbus import Bus, Lifecycle, UnhandledEventError


class UserRegistered(TypedDict):
    email: str
    plan: str


class AppEvents(TypedDict):
    user_registered: UserRegistered
    audit: str


def main() -> None:
    bus: Bus[AppEvents] = Bus(name='SimpleExampleBus')

    # 1) Watch the bus become active / idle.
    bus.monitor(lambda active: print(f'[monitor] bus is now {"active" if active else "idle"}'))
    bus.hook(Lifecycle.DID_ADD_LISTENER, lambda event: print(f'[hook] listener added for {event!r}'))

    # 2) Observe every event without caring which one it was.
    stop_every = bus.every(lambda: print('[every] something happened'))

    # 3) Register by event name, handler receives the payload.
    def on_user_registered(payload: UserRegistered) -> None:
        print(f'[on] Creating account for {payload["email"]} ({payload["plan"]})')

    stop_registered = bus.on('user_registered', on_user_registered)

    # 4) One handler for several events, called with (event, payload).
    def on_any(event: str, payload: Any) -> None:
        print(f'[any] {event}: {payload!r}')

    stop_any = bus.on(['user_registered', 'audit'], on_any)

    handled = bus.emit('user_registered', {'email': 'ada@example.com', 'plan': 'pro'})
    print(f'user_registered handled={handled}')
    bus.emit('audit', 'user signed in')

    # 5) Unsubscribe everything, the bus goes idle again.
    for stop in (stop_every, stop_registered, stop_any):
        stop()
    print(f'unhandled emit returns {bus.emit("audit", "nobody listening")}')

    strict = Bus(name='StrictExampleBus', allow_unhandled_events=False)
    try:
        strict.emit('audit', {'message': 'dropped'})
    except UnhandledEventError as exc:
        print(f'[strict] {exc}')

    bus.destroy()
    strict.destroy()


if __name__ == '__main__':
    main()
