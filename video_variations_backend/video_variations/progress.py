"""Process-wide progress broadcast.

Events are pushed to whoever is subscribed at publish time and then
forgotten; there is no replay, so a subscriber that attaches late only sees
later events.
"""
import asyncio, logging
from typing import List, Optional
from .models import ProgressEvent

logger = logging.getLogger(__name__)

TERMINAL_STATUSES = ("completed", "failed")

class Subscription:
    def __init__(self, channel: "ProgressChannel", job_id: str):
        self.channel = channel
        self.job_id = job_id
        self.queue: asyncio.Queue = asyncio.Queue()

    def __aiter__(self):
        return self

    async def __anext__(self) -> ProgressEvent:
        return await self.queue.get()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc):
        self.close()

    def drain(self) -> List[ProgressEvent]:
        events = []
        while not self.queue.empty():
            events.append(self.queue.get_nowait())
        return events

    def close(self):
        self.channel.unsubscribe(self)

class ProgressChannel:
    def __init__(self):
        self._subscribers: List[Subscription] = []

    def subscribe(self, job_id: str) -> Subscription:
        sub = Subscription(self, job_id)
        self._subscribers.append(sub)
        logger.debug(f"[{job_id}] progress subscriber attached")
        return sub

    def unsubscribe(self, sub: Subscription):
        if sub in self._subscribers:
            self._subscribers.remove(sub)
            logger.debug(f"[{sub.job_id}] progress subscriber detached")

    def publish(self, job_id: str, message: str, progress: Optional[int] = None, status: str = "running"):
        event = ProgressEvent(job_id=job_id, message=message, progress=progress, status=status)
        for sub in list(self._subscribers):
            if sub.job_id == job_id:
                sub.queue.put_nowait(event)
        return event

    def subscriber_count(self, job_id: Optional[str] = None) -> int:
        if job_id is None:
            return len(self._subscribers)
        return sum(1 for s in self._subscribers if s.job_id == job_id)
