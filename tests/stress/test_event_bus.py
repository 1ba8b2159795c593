"""
Tests for watermeter.runtime.event_bus.EventBus.

Unit tests validate:
- published alarm events come out of the queue in publish order
- a full queue drops the new event, counts it and never blocks the producer

The stress test publishes from several engine-like producers at once and
checks that every event is either queued or counted as dropped.
"""

from __future__ import annotations

import threading
from datetime import datetime, timedelta
from queue import Empty, Queue
from typing import List

import pytest

from watermeter.domain.events import AlarmEvent
from watermeter.domain.models import Alarm, AlarmKind
from watermeter.runtime.event_bus import EventBus

T0 = datetime(2026, 1, 1, 10, 0, 0)


def _opened(n: int, kind: AlarmKind = AlarmKind.BURST) -> AlarmEvent:
    alarm = Alarm(id=f"alarm-{n}", kind=kind, start_time=T0, trigger_value=0.2)
    return AlarmEvent.opened(alarm, T0 + timedelta(seconds=n))


def _drain(q: "Queue[AlarmEvent]") -> List[AlarmEvent]:
    out: List[AlarmEvent] = []
    while True:
        try:
            out.append(q.get_nowait())
        except Empty:
            return out


def test_events_are_delivered_in_publish_order() -> None:
    bus = EventBus()

    for n in range(3):
        bus.publish_alarm(_opened(n))

    assert [ev.alarm_id for ev in _drain(bus.alarm_events_q)] == ["alarm-0", "alarm-1", "alarm-2"]
    assert bus.dropped == 0


def test_full_bus_drops_and_counts_new_events() -> None:
    bus = EventBus(alarm_events_q=Queue(maxsize=2))

    for n in range(5):
        bus.publish_alarm(_opened(n, AlarmKind.LEAK))

    kept = _drain(bus.alarm_events_q)
    assert [ev.alarm_id for ev in kept] == ["alarm-0", "alarm-1"]
    assert bus.dropped == 3


@pytest.mark.stress
def test_concurrent_publishers_lose_nothing_silently() -> None:
    """
    Four producers publish 2000 events each into a bus of 5000 slots.

    Every event must end up either in the queue or in the drop counter, and
    the queue must never exceed its bound.
    """
    bus = EventBus()
    producers = 4
    per_producer = 2000
    start = threading.Barrier(producers)
    errors: List[BaseException] = []

    def publish(offset: int) -> None:
        try:
            start.wait()
            kind = list(AlarmKind)[offset % 4]
            for k in range(per_producer):
                bus.publish_alarm(_opened(offset * per_producer + k, kind))
        except BaseException as e:
            errors.append(e)

    threads = [threading.Thread(target=publish, args=(i,)) for i in range(producers)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=10)

    assert all(not t.is_alive() for t in threads), "A producer did not finish (possible deadlock)"
    if errors:
        raise AssertionError(f"Concurrency test caught exceptions: {errors!r}")

    queued = _drain(bus.alarm_events_q)
    assert len(queued) <= 5000
    assert len(queued) + bus.dropped == producers * per_producer
    assert len({ev.alarm_id for ev in queued}) == len(queued)
