#!/usr/bin/env -S uv run python
"""Run: uv run python examples/forwarding_between_busses.py"""

from typing import Any

from strongbus import Bus, LifecycleLogger


def main() -> None:
    bus_a = Bus(name='BusA')
    bus_b = bus_a.pipe(Bus(name='BusB'))
    bus_c = bus_b.pipe(Bus(name='BusC'))

    handle_counts = {'BusA': 0, 'BusB': 0, 'BusC': 0}

    def counter(bus_name: str):
        def on_forwarded(payload: Any) -> None:
            handle_counts[bus_name] += 1
            print(f'[{bus_name}] handled {payload!r} (count={handle_counts[bus_name]})')

        return on_forwarded

    # BusA becomes active as soon as anything downstream has a listener.
    bus_a.monitor(lambda active: print(f'[BusA] {"active" if active else "idle"}'))
    detach_logger = LifecycleLogger().attach(bus_a)

    stop_c = bus_c.on('forwarded', counter('BusC'))
    bus_b.on('forwarded', counter('BusB'))
    bus_a.on('forwarded', counter('BusA'))

    print('emit on BusA ->', bus_a.emit('forwarded', {'message': 'hello from A'}))
    print('emit on BusB ->', bus_b.emit('forwarded', {'message': 'hello from B'}))
    print('emit on BusC ->', bus_c.emit('forwarded', {'message': 'hello from C'}))
    print('counts:', handle_counts)

    stop_c()
    bus_a.unpipe(bus_b)
    print('after unpipe, emit on BusA ->', bus_a.emit('other', None))
    print('listeners on BusA:', list(bus_a.listeners))

    detach_logger()
    for bus in (bus_a, bus_b, bus_c):
        bus.destroy()


if __name__ == '__main__':
    main()
