import asyncio
import json
from gyansetu.services.live_hub import LiveHub, format_sse

STUDENT = {"name": "Asha Roy", "role": "user"}


def parse(frame):
    lines = frame.strip().split("\n")
    return lines[0][len("event: "):], json.loads(lines[1][len("data: "):])


def drain(queue):
    frames = []
    while not queue.empty():
        frames.append(queue.get_nowait())
    return frames


def test_format_sse():
    assert format_sse("chat", {"a": 1}) == 'event: chat\ndata: {"a":1}\n\n'


def test_snapshot_is_first_frame():
    async def scenario():
        hub = LiveHub()
        hub.set_live_url("https://meet.example.com/class")
        hub.post_chat(STUDENT, "hello")
        queue = hub.subscribe()
        hub.set_notification("Class starts at 5")

        frames = [parse(frame) for frame in drain(queue)]
        assert [event for event, _ in frames] == ["snapshot", "notification"]
        snapshot = frames[0][1]
        assert snapshot["live"]["url"] == "https://meet.example.com/class"
        assert [m["message"] for m in snapshot["chat"]] == ["hello"]
        assert frames[1][1]["message"] == "Class starts at 5"

    asyncio.run(scenario())


def test_events_arrive_in_order_for_every_subscriber():
    async def scenario():
        hub = LiveHub()
        queues = [hub.subscribe() for _ in range(3)]
        for i in range(5):
            assert hub.post_chat(STUDENT, f"m{i}")["id"] == i + 1

        for queue in queues:
            frames = [parse(frame) for frame in drain(queue)][1:]
            assert [data["message"] for _, data in frames] == ["m0", "m1", "m2", "m3", "m4"]

    asyncio.run(scenario())


def test_chat_history_is_capped():
    hub = LiveHub(chat_limit=3)
    for i in range(5):
        hub.post_chat(STUDENT, f"m{i}")
    assert [m["message"] for m in hub.snapshot()["chat"]] == ["m2", "m3", "m4"]
    assert hub.chat[0]["author"] == "Asha Roy"
    assert hub.chat[0]["role"] == "user"


def test_blank_values_clear_state():
    hub = LiveHub()
    hub.set_live_url("https://meet.example.com/class")
    assert hub.set_live_url("")["url"] is None
    assert hub.set_notification(None)["message"] is None
    assert hub.snapshot()["live"]["updatedAt"]


def test_slow_subscriber_is_dropped():
    async def scenario():
        hub = LiveHub(queue_size=2)
        slow = hub.subscribe()
        fast = hub.subscribe()

        assert hub.broadcast("live", {"n": 1}) == 2
        drain(fast)
        assert hub.broadcast("live", {"n": 2}) == 1

        assert hub.subscriber_count == 1
        # The dropped queue only holds the end marker
        assert drain(slow) == [None]
        assert parse(drain(fast)[0])[1] == {"n": 2}

    asyncio.run(scenario())


def test_announce_application():
    async def scenario():
        hub = LiveHub()
        queue = hub.subscribe()
        hub.announce_application({"id": 7, "class_name": "10", "created_at": "2025-01-01T00:00:00"})
        event, data = parse(drain(queue)[-1])
        assert event == "scholarship"
        assert data == {"studentId": 7, "className": "10", "submittedAt": "2025-01-01T00:00:00"}

    asyncio.run(scenario())


def test_stream_yields_until_closed():
    async def never_disconnected():
        return False

    async def scenario():
        hub = LiveHub()
        stream = hub.stream(never_disconnected, keepalive=5)

        assert parse(await stream.__anext__())[0] == "snapshot"
        assert hub.subscriber_count == 1

        hub.post_chat(STUDENT, "hi")
        event, data = parse(await stream.__anext__())
        assert (event, data["message"]) == ("chat", "hi")

        hub.close()
        assert [frame async for frame in stream] == []
        assert hub.subscriber_count == 0

    asyncio.run(scenario())


def test_stream_keepalive_and_disconnect():
    disconnected = False

    async def is_disconnected():
        return disconnected

    async def scenario():
        nonlocal disconnected
        hub = LiveHub()
        stream = hub.stream(is_disconnected, keepalive=0.01)

        await stream.__anext__()  # snapshot
        assert await stream.__anext__() == ": keep-alive\n\n"

        disconnected = True
        assert [frame async for frame in stream] == []
        assert hub.subscriber_count == 0

    asyncio.run(scenario())
