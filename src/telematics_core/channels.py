"""Latest-value result channels."""

import asyncio
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Generic, List, Optional, Tuple, TypeVar

import structlog

from telematics_core import metrics

logger = structlog.get_logger(__name__)

T = TypeVar("T")

_NOTHING = object()


def _running_loop() -> Optional[asyncio.AbstractEventLoop]:
    try:
        return asyncio.get_running_loop()
    except RuntimeError:
        return None


class LatestValueChannel(Generic[T]):
    """Holds the most recent published value and fans it out to subscribers.

    Each publish overwrites the previous value and returns without waiting
    on any subscriber. Callbacks run in order on a single dispatcher thread
    per channel; if they fall behind, values published in the meantime
    collapse into the newest one. Callback errors are logged, never raised
    to the publisher.

    Queue subscribers get a size-1 queue bound to the event loop that
    created it, where a new value replaces an unread one. Publishing from
    another thread hands the value to that loop.
    """

    def __init__(self, name: str):
        self.name = name
        self._latest: Optional[T] = None
        self._callbacks: List[Callable[[T], None]] = []
        self._queues: List[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = []
        self._lock = threading.Lock()
        self._idle = threading.Condition(self._lock)
        self._pending = _NOTHING
        self._dispatching = False
        self._executor: Optional[ThreadPoolExecutor] = None

    @property
    def latest(self) -> Optional[T]:
        with self._lock:
            return self._latest

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unsubscribes it."""
        with self._lock:
            self._callbacks.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unsubscribe

    def queue(self) -> "asyncio.Queue[T]":
        """Async subscription holding at most the latest unread value.

        Must be called from the event loop that will read the queue.
        """
        loop = asyncio.get_running_loop()
        q: asyncio.Queue = asyncio.Queue(maxsize=1)
        with self._lock:
            self._queues.append((loop, q))
        return q

    def unsubscribe_queue(self, q: asyncio.Queue) -> None:
        with self._lock:
            self._queues = [(loop, queue) for loop, queue in self._queues if queue is not q]

    def publish(self, value: T) -> None:
        with self._lock:
            self._latest = value
            queues = list(self._queues)
            start_dispatch = False
            if self._callbacks:
                self._pending = value
                if not self._dispatching:
                    self._dispatching = start_dispatch = True
                    if self._executor is None:
                        self._executor = ThreadPoolExecutor(
                            max_workers=1, thread_name_prefix=f"channel-{self.name}"
                        )

        current = _running_loop()
        for loop, q in queues:
            if loop is current:
                self._offer(q, value)
            else:
                self._offer_threadsafe(loop, q, value)

        if start_dispatch:
            self._executor.submit(self._dispatch)

        metrics.results_published.labels(channel=self.name).inc()

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until callbacks have seen the latest value.

        Returns False if the dispatcher is still busy after ``timeout`` seconds.
        """
        with self._idle:
            return self._idle.wait_for(lambda: not self._dispatching, timeout)

    def clear(self) -> None:
        with self._lock:
            self._latest = None

    def _dispatch(self) -> None:
        while True:
            with self._lock:
                value = self._pending
                if value is _NOTHING:
                    self._dispatching = False
                    self._idle.notify_all()
                    return
                self._pending = _NOTHING
                callbacks = list(self._callbacks)

            for callback in callbacks:
                try:
                    callback(value)
                except Exception as e:
                    logger.error("Result subscriber failed", channel=self.name, error=str(e))

    @staticmethod
    def _offer(q: asyncio.Queue, value) -> None:
        if q.full():
            try:
                q.get_nowait()
            except asyncio.QueueEmpty:
                pass
        q.put_nowait(value)

    def _offer_threadsafe(self, loop: asyncio.AbstractEventLoop, q: asyncio.Queue, value) -> None:
        try:
            loop.call_soon_threadsafe(self._offer, q, value)
        except RuntimeError:
            # Owning loop is closed
            logger.warning("Dropping queue subscriber", channel=self.name)
            self.unsubscribe_queue(q)
