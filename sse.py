import asyncio
import logging
from typing import Literal, Optional, Set

from pydantic import BaseModel

logger = logging.getLogger(__name__)

_SUBSCRIBE = "subscribe"
_UNSUBSCRIBE = "unsubscribe"
_PUBLISH = "publish"


class Event(BaseModel):
    type: Literal["update", "gps"]
    message: str


class EventBroker:
    """
    Fan-out of state change events to SSE listeners.
    Each subscriber gets its own bounded asyncio.Queue.

    The subscriber set is owned by a single loop task (_run). subscribe,
    unsubscribe and publish only post messages to its inbox, so they can be
    called from request worker threads as well as from the event loop.
    Delivery is best-effort: a listener whose queue is full misses the event.
    """
    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self.dropped = 0
        self._subscribers: Set[asyncio.Queue] = set()
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self):
        if self.running:
            return
        self._loop = asyncio.get_running_loop()
        # asyncio queues bind to the loop that first waits on them
        pending, self._inbox = self._inbox, asyncio.Queue()
        while not pending.empty():
            self._inbox.put_nowait(pending.get_nowait())
        self._task = asyncio.create_task(self._run(), name="event-broker")

    async def stop(self):
        task, self._task = self._task, None
        self._loop = None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._subscribers.clear()
        # messages still queued for the stopped loop are discarded
        self._inbox = asyncio.Queue()


    def subscribe(self) -> asyncio.Queue:
        q: asyncio.Queue = asyncio.Queue(maxsize=self.queue_size)
        self._submit(_SUBSCRIBE, q)
        return q

    def unsubscribe(self, q: asyncio.Queue):
        self._submit(_UNSUBSCRIBE, q)

    def publish(self, event: Event):
        if not self.running:
            logger.debug("Broker not running, dropping %s event", event.type)
            return
        self._submit(_PUBLISH, event)

    def _submit(self, op: str, payload):
        loop = self._loop
        if loop is None:
            # not started yet: nothing else is touching the inbox
            self._inbox.put_nowait((op, payload))
            return
        try:
            loop.call_soon_threadsafe(self._inbox.put_nowait, (op, payload))
        except RuntimeError:
            # loop closed under us during shutdown
            logger.debug("Event loop closed, dropping %s message", op)

    async def _run(self):
        while True:
            op, payload = await self._inbox.get()
            if op == _SUBSCRIBE:
                self._subscribers.add(payload)
                logger.debug("Listener subscribed (%d active)", len(self._subscribers))
            elif op == _UNSUBSCRIBE:
                self._subscribers.discard(payload)
                logger.debug("Listener unsubscribed (%d active)", len(self._subscribers))
            else:
                self._fan_out(payload)

    def _fan_out(self, event: Event):
        for q in self._subscribers:
            try:
                q.put_nowait(event)
            except asyncio.QueueFull:
                self.dropped += 1
                logger.debug("Listener queue full, dropped %s event", event.type)
