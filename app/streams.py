"""
Broadcast value streams.

A ValueStream fans every emitted value out to all current subscribers, in
emit order. Consumers either register a callback or iterate with
`async for value in stream.listen()`. Late subscribers do not get a replay;
`latest` holds the last emitted value for them.
"""

from __future__ import annotations

import asyncio
from typing import Callable, Generic, List, Optional, TypeVar

import config
from logger import setup_logger


logger = setup_logger(__name__, config.LOG_FILE, config.LOG_LEVEL)

T = TypeVar("T")

_CLOSED = object()


class ValueStream(Generic[T]):
    def __init__(self, name: str = "stream") -> None:
        self.name = name
        self._callbacks: List[Callable[[T], None]] = []
        self._queues: List[asyncio.Queue] = []
        self._latest: Optional[T] = None
        self._closed = False

    @property
    def latest(self) -> Optional[T]:
        return self._latest

    @property
    def is_closed(self) -> bool:
        return self._closed

    def emit(self, value: T) -> None:
        if self._closed:
            return
        self._latest = value
        for cb in list(self._callbacks):
            try:
                cb(value)
            except Exception as e:
                # A broken subscriber must not starve the others
                logger.error(f"[{self.name}] subscriber failed: {e}", exc_info=True)
        for q in list(self._queues):
            q.put_nowait(value)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._callbacks.append(callback)

        def _unsubscribe() -> None:
            if callback in self._callbacks:
                self._callbacks.remove(callback)

        return _unsubscribe

    def listen(self) -> "Listener[T]":
        """
        Iterate values emitted after this call until the stream is closed.

        The listener is registered immediately, not on first iteration, so
        nothing emitted in between is lost. Call aclose() when abandoning it
        early.
        """
        q: asyncio.Queue = asyncio.Queue()
        if self._closed:
            q.put_nowait(_CLOSED)
        else:
            self._queues.append(q)
        return Listener(self, q)

    def _detach(self, q: asyncio.Queue) -> None:
        if q in self._queues:
            self._queues.remove(q)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._callbacks.clear()
        for q in list(self._queues):
            q.put_nowait(_CLOSED)

    @property
    def subscriber_count(self) -> int:
        return len(self._callbacks) + len(self._queues)


class Listener(Generic[T]):
    def __init__(self, stream: ValueStream[T], queue: asyncio.Queue) -> None:
        self._stream = stream
        self._queue = queue
        self._done = False

    def __aiter__(self) -> "Listener[T]":
        return self

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        value = await self._queue.get()
        if value is _CLOSED:
            await self.aclose()
            raise StopAsyncIteration
        return value

    async def aclose(self) -> None:
        self._done = True
        self._stream._detach(self._queue)
