"""In-process publish/subscribe for real-time notifications."""
from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from typing import Any

logger = logging.getLogger(__name__)

ACHIEVEMENT_EARNED = "achievementEarned"
LEADERBOARD_UPDATED = "leaderboardUpdated"
WASTE_PHOTO_STATUS_UPDATED = "wastePhotoStatusUpdated"

CHANNELS = (ACHIEVEMENT_EARNED, LEADERBOARD_UPDATED, WASTE_PHOTO_STATUS_UPDATED)


class PubSubService:
    def __init__(self, max_queue_size: int = 100) -> None:
        self._subscribers: dict[str, set[asyncio.Queue]] = {}
        self._max_queue_size = max_queue_size

    def publish(self, channel: str, payload: dict[str, Any]) -> int:
        """Fan a payload out to current subscribers. Returns how many received it."""
        delivered = 0
        for queue in list(self._subscribers.get(channel, ())):
            try:
                queue.put_nowait(payload)
                delivered += 1
            except asyncio.QueueFull:
                logger.warning("Dropping %s message for a slow subscriber", channel)
        logger.debug("Published %s to %s subscriber(s)", channel, delivered)
        return delivered

    def open(self, channel: str) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.setdefault(channel, set()).add(queue)
        return queue

    def close(self, channel: str, queue: asyncio.Queue) -> None:
        subscribers = self._subscribers.get(channel)
        if subscribers is None:
            return
        subscribers.discard(queue)
        if not subscribers:
            del self._subscribers[channel]

    async def subscribe(self, channel: str, company_id: str | None = None) -> AsyncIterator[dict[str, Any]]:
        """Yield payloads published on the channel, only one company's when given."""
        queue = self.open(channel)
        try:
            while True:
                payload = await queue.get()
                if company_id is None or payload.get("company_id") == company_id:
                    yield payload
        finally:
            self.close(channel, queue)

    def subscriber_count(self, channel: str) -> int:
        return len(self._subscribers.get(channel, ()))


pubsub = PubSubService()
