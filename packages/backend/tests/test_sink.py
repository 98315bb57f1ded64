"""QueueSink + framing tests."""

import asyncio
import json

import pytest

from conftest import make_event
from eventcast.realtime.registry import BroadcastRegistry
from eventcast.realtime.sink import KEEPALIVE_FRAME, DeliveryError, QueueSink, format_frame


async def _collect(sink: QueueSink, keepalive=None) -> list[str]:
    return [frame async for frame in sink.frames(keepalive=keepalive)]


def test_format_frame():
    frame = format_frame(make_event(3))
    assert frame == (
        'data: {"id":3,"eventName":"click","eventTimestamp":"t3",'
        '"prop1":"x","prop2":"y","prop3":"z","imgURL":""}\n\n'
    )
    assert json.loads(frame[len("data: "):]) == make_event(3).to_dict()


async def test_frames_drain_then_stop_after_close():
    sink = QueueSink(maxsize=10)
    sink.write("data: 1\n\n")
    sink.write("data: 2\n\n")
    sink.close()
    assert await _collect(sink) == ["data: 1\n\n", "data: 2\n\n"]


async def test_close_wakes_waiting_reader():
    sink = QueueSink(maxsize=10)
    reader = asyncio.create_task(_collect(sink))
    await asyncio.sleep(0)
    sink.write("data: a\n\n")
    await asyncio.sleep(0)
    sink.close()
    assert await asyncio.wait_for(reader, timeout=1) == ["data: a\n\n"]


async def test_write_after_close_raises():
    sink = QueueSink(maxsize=10)
    sink.close()
    sink.close()  # idempotent
    assert sink.closed
    with pytest.raises(DeliveryError):
        sink.write("data: late\n\n")


async def test_full_buffer_raises_instead_of_blocking():
    sink = QueueSink(maxsize=2)
    sink.write("data: 1\n\n")
    sink.write("data: 2\n\n")
    with pytest.raises(DeliveryError):
        sink.write("data: 3\n\n")


async def test_keepalive_when_idle():
    sink = QueueSink(maxsize=10)
    frames = sink.frames(keepalive=0.01)
    assert await asyncio.wait_for(frames.__anext__(), timeout=1) == KEEPALIVE_FRAME
    sink.write("data: x\n\n")
    assert await asyncio.wait_for(frames.__anext__(), timeout=1) == "data: x\n\n"
    await frames.aclose()


async def test_stalled_listener_dropped_others_unaffected():
    registry = BroadcastRegistry()
    stalled = QueueSink(maxsize=1)
    healthy = QueueSink(maxsize=10)
    stalled_listener = registry.register(stalled)
    healthy_listener = registry.register(healthy)

    for i in range(1, 4):
        registry.publish(make_event(i))

    assert stalled_listener not in registry
    assert healthy_listener in registry
    assert stalled.closed

    registry.deregister(healthy_listener)
    received = [json.loads(f[len("data: "):])["id"] for f in await _collect(healthy)]
    assert received == [1, 2, 3]
    # The stalled listener still gets what it had buffered
    assert len(await _collect(stalled)) == 1


async def test_publish_from_worker_thread():
    registry = BroadcastRegistry()
    sink = QueueSink(maxsize=10)
    listener = registry.register(sink)

    delivered = await asyncio.to_thread(registry.publish, make_event(1))
    assert delivered == 1
    await asyncio.sleep(0)

    registry.deregister(listener)
    frames = await asyncio.wait_for(_collect(sink), timeout=1)
    assert frames == [format_frame(make_event(1))]


async def test_no_frame_lost_to_keepalive_timeouts():
    sink = QueueSink(maxsize=1000)
    count = 200

    async def writer():
        for i in range(count):
            sink.write(f"data: {i}\n\n")
            # Alternate between racing the keepalive timer and outlasting it
            await asyncio.sleep(0 if i % 2 else 0.002)
        sink.close()

    task = asyncio.create_task(writer())
    frames = await asyncio.wait_for(_collect(sink, keepalive=0.001), timeout=10)
    await task

    data = [f for f in frames if f != KEEPALIVE_FRAME]
    assert data == [f"data: {i}\n\n" for i in range(count)]


async def test_overflow_from_worker_thread_is_a_delivery_failure(logs):
    registry = BroadcastRegistry()
    sink = QueueSink(maxsize=2)
    listener = registry.register(sink)

    def publish_three():
        return [registry.publish(make_event(i)) for i in (1, 2, 3)]

    assert await asyncio.to_thread(publish_three) == [1, 1, 0]
    assert listener not in registry
    failures = [e for e in logs if e["event"] == "eventcast.delivery_failed"]
    assert [(e["listener_id"], e["event_id"]) for e in failures] == [(listener.id, 3)]

    frames = await asyncio.wait_for(_collect(sink), timeout=1)
    assert frames == [format_frame(make_event(1)), format_frame(make_event(2))]
