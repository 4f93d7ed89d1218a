"""
test_events.py - in-process event bus delivery semantics.
"""

import asyncio
import logging

from events import EventBus
from logging_config import request_id_var


class Ping:
    def __init__(self, n):
        self.n = n


class Other:
    pass


def test_handlers_receive_events_in_order():
    async def scenario():
        bus = EventBus()
        got = []

        async def handler(event):
            got.append(event.n)

        bus.subscribe(Ping, handler)
        await bus.start()
        for n in range(5):
            bus.publish(Ping(n))
        await bus.drain()
        await bus.stop()
        return got

    assert asyncio.run(scenario()) == [0, 1, 2, 3, 4]


def test_events_without_handlers_are_dropped():
    async def scenario():
        bus = EventBus()
        got = []

        async def handler(event):
            got.append(event)

        bus.subscribe(Ping, handler)
        await bus.start()
        bus.publish(Other())
        await bus.stop()
        return got

    assert asyncio.run(scenario()) == []


def test_failing_handler_is_logged_and_does_not_stop_delivery(caplog):
    async def scenario():
        bus = EventBus()
        got = []

        async def broken(event):
            raise RuntimeError("smtp down")

        async def healthy(event):
            got.append(event.n)

        bus.subscribe(Ping, broken)
        bus.subscribe(Ping, healthy)
        await bus.start()
        bus.publish(Ping(1))
        bus.publish(Ping(2))
        await bus.stop()
        return got, bus.running

    with caplog.at_level(logging.ERROR, logger="okna-events"):
        got, running = asyncio.run(scenario())
    assert got == [1, 2]
    assert running is False
    assert any("failed for Ping" in r.getMessage() for r in caplog.records)


def test_publish_before_start_is_delivered_on_start():
    async def scenario():
        bus = EventBus()
        got = []

        async def handler(event):
            got.append(event.n)

        bus.subscribe(Ping, handler)
        bus.publish(Ping(7))
        await bus.start()
        await bus.stop()
        return got

    assert asyncio.run(scenario()) == [7]


def test_handler_sees_publishing_request_id():
    async def scenario():
        bus = EventBus()
        seen = []

        async def handler(event):
            seen.append((event.n, request_id_var.get()))

        bus.subscribe(Ping, handler)
        await bus.start()
        token = request_id_var.set("req-1")
        bus.publish(Ping(1))
        request_id_var.reset(token)
        bus.publish(Ping(2))
        await bus.stop()
        return seen

    assert asyncio.run(scenario()) == [(1, "req-1"), (2, None)]
