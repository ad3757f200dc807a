"""In-process fan-out of realtime events to connected family sessions.

The registry lives in this process only. Running more than one server
instance would need a shared pub/sub layer in front of ``broadcast``.
"""

import asyncio
import json
import logging
import threading
import uuid
from typing import Any, Dict, Protocol

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    def send(self, message: dict[str, Any]) -> None: ...


class QueueSubscriber:
    """Feeds an SSE response running on an asyncio loop.

    ``send`` may be called from any thread (request handlers run in the
    threadpool), so messages are handed over with ``call_soon_threadsafe``.
    """

    def __init__(self, loop: asyncio.AbstractEventLoop):
        self._loop = loop
        self.queue: asyncio.Queue[dict[str, Any]] = asyncio.Queue()

    def send(self, message: dict[str, Any]) -> None:
        if self._loop.is_closed():
            raise RuntimeError("event loop closed")
        self._loop.call_soon_threadsafe(self.queue.put_nowait, message)


class EventBus:
    """Manages active realtime subscribers per family."""

    def __init__(self):
        self._lock = threading.Lock()
        self._clients: Dict[str, Dict[str, Subscriber]] = {}  # family_id -> {client_id: subscriber}

    def connect(self, family_id: str, subscriber: Subscriber) -> str:
        client_id = uuid.uuid4().hex
        with self._lock:
            self._clients.setdefault(family_id, {})[client_id] = subscriber
        return client_id

    def disconnect(self, client_id: str) -> None:
        with self._lock:
            for family_id, clients in list(self._clients.items()):
                if clients.pop(client_id, None) is not None:
                    if not clients:
                        del self._clients[family_id]
                    return

    def broadcast(self, family_id: str, message: dict[str, Any]) -> int:
        """Send a message to every subscriber of a family. Returns the delivery count."""
        with self._lock:
            targets = list(self._clients.get(family_id, {}).items())
        delivered = 0
        dead = []
        for client_id, subscriber in targets:
            try:
                subscriber.send(message)
                delivered += 1
            except Exception as e:
                logger.warning("Dropping realtime client %s: %s", client_id, e)
                dead.append(client_id)
        for client_id in dead:
            self.disconnect(client_id)
        return delivered

    @property
    def connection_count(self) -> int:
        with self._lock:
            return sum(len(v) for v in self._clients.values())


def format_sse(message: dict[str, Any]) -> str:
    return f"data: {json.dumps(message, ensure_ascii=False)}\n\n"


event_bus = EventBus()
