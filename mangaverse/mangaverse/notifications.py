"""
In-process push channel for user notifications.

Events are queued per user and handed out by `drain`, which backs the
notification polling endpoint.
"""

import threading
from collections import defaultdict, deque
from typing import Any, Deque, Dict, List

from .logging import get_logger

logger = get_logger(__name__)


class NotificationHub:
    def __init__(self, max_pending: int = 100):
        self.max_pending = max_pending
        self._queues: Dict[str, Deque[Dict[str, Any]]] = defaultdict(lambda: deque(maxlen=self.max_pending))
        self._lock = threading.Lock()

    def send_to_user(self, user_id: str, payload: Dict[str, Any]) -> None:
        with self._lock:
            self._queues[str(user_id)].append(payload)
        logger.debug(f"Queued {payload.get('type', 'event')} for user {user_id}")

    def pending(self, user_id: str) -> int:
        with self._lock:
            return len(self._queues.get(str(user_id), ()))

    def drain(self, user_id: str) -> List[Dict[str, Any]]:
        """Returns and forgets every pending event for a user, oldest first."""
        with self._lock:
            queue = self._queues.pop(str(user_id), None)
        return list(queue) if queue else []
