import logging
from typing import Any

import pytest

from strongbus import Bus, ReservedEventError, UnhandledEventError


@pytest.mark.parametrize('event', ['*', '@@PROXY@@'])
def test_emitting_reserved_event_always_raises(event: str) -> None:
    bus = Bus(name='ReservedBus')
    bus.every(lambda: None)
    bus.proxy(lambda _event, _payload: None)

    with pytest.raises(ReservedEventError, match='Reserved for internal use') as exc_info:
        bus.emit(event, 1)

    assert exc_info.value.event == event
    assert isinstance(exc_info.value, ValueError)


def test_reserved_event_raises_even_when_unhandled_events_are_disallowed() -> None:
    bus = Bus(name='ReservedStrictBus', allow_unhandled_events=False)

    with pytest.raises(ReservedEventError):
        bus.emit('*', None)


def test_unhandled_event_raises_when_not_allowed() -> None:
    bus = Bus(name='Strict', allow_unhandled_events=False)

    with pytest.raises(UnhandledEventError) as exc_info:
        bus.emit('x', {'id': 1, 'tags': ['a']})

    error = exc_info.value
    assert error.event == 'x'
    assert error.payload == {'id': 1, 'tags': ['a']}
    assert error.bus_name == 'Strict Bus'
    message = str(error)
    assert "Strict Bus received unexpected message type 'x' with contents:" in message
    assert '"id": 1' in message
    assert '"tags": [' in message


def test_unhandled_event_message_falls_back_to_repr_for_non_json_payloads() -> None:
    bus = Bus(name='StrictRepr', allow_unhandled_events=False)

    class Opaque:
        def __repr__(self) -> str:
            return '<Opaque payload>'

    with pytest.raises(UnhandledEventError, match='Opaque payload'):
        bus.emit('x', Opaque())


def test_unhandled_policy_can_be_overridden_by_subclass() -> None:
    seen: list[tuple[str, Any]] = []

    class RecordingBus(Bus):
        def handle_unexpected_event(self, event: str, payload: Any) -> None:
            seen.append((event, payload))

    bus = RecordingBus(allow_unhandled_events=False)

    assert bus.emit('x', 1) is False
    assert seen == [('x', 1)]


def test_unhandled_error_not_raised_when_delegate_handles() -> None:
    bus = Bus(name='StrictParent', allow_unhandled_events=False)
    delegate = bus.pipe(Bus(name='Child'))
    delegate.on('x', lambda _payload: None)

    assert bus.emit('x', 1) is True


def test_strict_delegate_raises_through_parent_emit() -> None:
    bus = Bus(name='LenientParent')
    bus.pipe(Bus(name='StrictChild', allow_unhandled_events=False))

    with pytest.raises(UnhandledEventError) as exc_info:
        bus.emit('x', 1)
    assert exc_info.value.bus_name == 'StrictChild Bus'


def test_max_listeners_exceeded_logs_info_and_still_registers(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger='strongbus')
    bus = Bus(name='Crowded', max_listeners=2, potential_memory_leak_warning_threshold=10)

    for _ in range(4):
        bus.on('x', lambda _payload: None)

    infos = [record for record in caplog.records if record.levelno == logging.INFO]
    # counts of 0, 1 and 2 existing listeners are within bounds, only the 4th registration sees 3
    assert len(infos) == 1
    assert 'Crowded Bus' in infos[0].getMessage()
    assert '3 listeners for "x", 2 max listeners expected' in infos[0].getMessage()
    assert len(bus.listeners['x']) == 4


def test_memory_leak_threshold_exceeded_logs_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger='strongbus')
    bus = Bus(name='Leaky', max_listeners=1, potential_memory_leak_warning_threshold=2)

    for _ in range(4):
        bus.on('x', lambda _payload: None)

    warnings = [record for record in caplog.records if record.levelno == logging.WARNING]
    assert len(warnings) == 1
    assert 'Potential Memory Leak' in warnings[0].getMessage()
    assert 'exceeds threshold set to 2' in warnings[0].getMessage()

    # past both limits the info message is still logged alongside the warning
    infos = [record.getMessage() for record in caplog.records if record.levelno == logging.INFO]
    assert len(infos) == 2
    assert '3 listeners for "x", 1 max listeners expected' in infos[-1]
    assert bus.emit('x', None) is True


def test_both_limits_exceeded_logs_info_and_warning(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger='strongbus')
    bus = Bus(name='Flooded', max_listeners=1, potential_memory_leak_warning_threshold=1)

    for _ in range(3):
        bus.on('x', lambda _payload: None)

    levels = [record.levelno for record in caplog.records if record.name == 'strongbus']
    assert levels == [logging.INFO, logging.WARNING]


def test_listener_pressure_counts_per_event_name(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger='strongbus')
    bus = Bus(name='Spread', max_listeners=1)

    for event in ('a', 'b', 'c', 'd'):
        bus.on(event, lambda _payload: None)

    assert not [record for record in caplog.records if record.levelno >= logging.INFO]
