import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Dict, List, Tuple

from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

QUEUE_SIZE = 100


class PushEvent(str, Enum):
    ORDER_STATUS_UPDATE = "order_status_update"
    ORDER_UPDATE = "order_update"
    NEW_ORDER = "new_order"
    ORDER_ASSIGNED = "order_assigned"


class ConnectionManager:
    """
    Real-time delivery channel.

    Each open websocket owns an asyncio.Queue on the server loop. Pushes
    can come from worker threads (sync routes, background tasks), so they
    are handed to the loop with call_soon_threadsafe and never block or
    raise into the caller.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Dict[int, List[Tuple[asyncio.Queue, asyncio.AbstractEventLoop]]] = {}

    async def connect(self, user_id: int) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=QUEUE_SIZE)
        loop = asyncio.get_running_loop()
        with self._lock:
            self._subscribers.setdefault(user_id, []).append((queue, loop))
        logger.info("Socket connected: user %s", user_id)
        return queue

    def disconnect(self, user_id: int, queue: asyncio.Queue) -> None:
        with self._lock:
            subscribers = [
                entry for entry in self._subscribers.get(user_id, [])
                if entry[0] is not queue
            ]
            if subscribers:
                self._subscribers[user_id] = subscribers
            else:
                self._subscribers.pop(user_id, None)
        logger.info("Socket disconnected: user %s", user_id)

    def is_connected(self, user_id: int) -> bool:
        with self._lock:
            return bool(self._subscribers.get(user_id))

    def push_to_user(self, user_id: int, event: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            subscribers = list(self._subscribers.get(user_id, []))

        if not subscribers:
            return

        try:
            message = {"event": str(getattr(event, "value", event)), "data": jsonable_encoder(payload)}
        except (TypeError, ValueError):
            logger.exception("Could not encode push payload for user %s", user_id)
            return

        for queue, loop in subscribers:
            try:
                loop.call_soon_threadsafe(self._offer, queue, message, user_id)
            except RuntimeError:
                # loop already closed; the socket is going away
                logger.warning("Dropping push for user %s: event loop closed", user_id)

    @staticmethod
    def _offer(queue: asyncio.Queue, message: dict, user_id: int) -> None:
        try:
            queue.put_nowait(message)
        except asyncio.QueueFull:
            logger.warning("Push queue full for user %s, dropping %s", user_id, message["event"])


connection_manager = ConnectionManager()
