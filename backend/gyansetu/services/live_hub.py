# gyansetu/services/live_hub.py
import asyncio
import itertools
import json
import logging
from collections import deque
from datetime import datetime, timezone
from typing import AsyncIterator, Callable, Awaitable, Optional, Set

logger = logging.getLogger(__name__)


def format_sse(event: str, data) -> str:
    """Serialize one server-sent event frame"""
    payload = json.dumps(data, separators=(",", ":"), default=str)
    return f"event: {event}\ndata: {payload}\n\n"


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LiveHub:
    """
    Live class state (stream URL, notification, chat) and SSE fan-out.

    Every subscriber owns a bounded queue. The hub is only touched from the
    event loop, so broadcasting is a synchronous walk over a copy of the
    subscriber set. A subscriber whose queue is full is dropped.
    """

    def __init__(self, chat_limit: int = 100, queue_size: int = 64):
        self.queue_size = queue_size
        self.live_url: Optional[str] = None
        self.live_updated_at: Optional[str] = None
        self.notification: Optional[str] = None
        self.notification_updated_at: Optional[str] = None
        self.chat = deque(maxlen=chat_limit)
        self._chat_ids = itertools.count(1)
        self._subscribers: Set[asyncio.Queue] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def snapshot(self) -> dict:
        return {
            "live": {"url": self.live_url, "updatedAt": self.live_updated_at},
            "notification": {"message": self.notification, "updatedAt": self.notification_updated_at},
            "chat": list(self.chat),
        }

    def subscribe(self) -> asyncio.Queue:
        queue = asyncio.Queue(maxsize=self.queue_size)
        # Snapshot goes in before the queue is visible to broadcasts
        queue.put_nowait(format_sse("snapshot", self.snapshot()))
        self._subscribers.add(queue)
        logger.info(f"Live subscriber joined ({len(self._subscribers)} connected)")
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        if queue in self._subscribers:
            self._subscribers.discard(queue)
            logger.info(f"Live subscriber left ({len(self._subscribers)} connected)")

    def _drop(self, queue: asyncio.Queue) -> None:
        self._subscribers.discard(queue)
        # Make room for the end-of-stream marker
        while not queue.empty():
            queue.get_nowait()
        queue.put_nowait(None)

    def broadcast(self, event: str, data) -> int:
        """Send one event to every subscriber; returns how many received it"""
        message = format_sse(event, data)
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(message)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning(f"Dropping a live subscriber that stopped reading ({event})")
                self._drop(queue)
        return delivered

    def post_chat(self, author: dict, message: str) -> dict:
        entry = {
            "id": next(self._chat_ids),
            "author": author.get("name"),
            "role": author.get("role"),
            "message": message,
            "sentAt": _now(),
        }
        self.chat.append(entry)
        self.broadcast("chat", entry)
        return entry

    def set_live_url(self, url: Optional[str]) -> dict:
        self.live_url = url or None
        self.live_updated_at = _now()
        data = {"url": self.live_url, "updatedAt": self.live_updated_at}
        self.broadcast("live", data)
        return data

    def set_notification(self, message: Optional[str]) -> dict:
        self.notification = message or None
        self.notification_updated_at = _now()
        data = {"message": self.notification, "updatedAt": self.notification_updated_at}
        self.broadcast("notification", data)
        return data

    def announce_application(self, student: dict) -> None:
        self.broadcast("scholarship", {
            "studentId": student.get("id"),
            "className": student.get("class_name"),
            "submittedAt": student.get("created_at") or _now(),
        })

    def close(self) -> None:
        """End every open stream (application shutdown)"""
        for queue in list(self._subscribers):
            self._drop(queue)

    async def stream(
        self,
        is_closed: Callable[[], Awaitable[bool]],
        keepalive: float = 15.0
    ) -> AsyncIterator[str]:
        """
        Yield SSE frames for one subscriber until the hub drops it or
        `is_closed()` turns true. `is_closed` is polled before every frame
        and on every keep-alive tick.
        """
        queue = self.subscribe()
        try:
            while True:
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=keepalive)
                except asyncio.TimeoutError:
                    message = ": keep-alive\n\n"
                if message is None or await is_closed():
                    break
                yield message
        finally:
            self.unsubscribe(queue)
