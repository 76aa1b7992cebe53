from __future__ import annotations
import queue
import threading
from typing import Generic, Iterator, Optional, TypeVar

T = TypeVar("T")

_CLOSED = object()
_WAIT_SLICE = 0.05


class ChannelClosed(Exception):
    pass


class Channel(Generic[T]):
    """Bounded FIFO between the polling thread and one consumer.

    ``put`` blocks while the channel is full. Once ``close`` is called,
    consumers still receive what was queued before, then ``ChannelClosed``
    (or the end of iteration).
    """

    def __init__(self, maxsize: int = 1):
        if maxsize < 1:
            raise ValueError("channel needs room for at least one item")
        self._q: queue.Queue = queue.Queue(maxsize=maxsize)
        self._closed = threading.Event()
        self._drained = False

    @property
    def closed(self) -> bool:
        return self._closed.is_set()

    def put(self, item: T, stop: Optional[threading.Event] = None) -> bool:
        """Queue item; False if the channel was closed or stop fired while waiting."""
        while not self._closed.is_set():
            if stop is not None and stop.is_set():
                return False
            try:
                self._q.put(item, timeout=_WAIT_SLICE)
                return True
            except queue.Full:
                continue
        return False

    def close(self) -> None:
        if self._closed.is_set():
            return
        self._closed.set()
        # wakes a consumer blocked in get(); only enqueued when there is room
        try:
            self._q.put_nowait(_CLOSED)
        except queue.Full:
            pass

    def get(self, timeout: Optional[float] = None) -> T:
        """Next item. Raises ChannelClosed when closed and empty, queue.Empty on timeout."""
        waited = 0.0
        while True:
            if self._drained:
                raise ChannelClosed()
            try:
                item = self._q.get(timeout=_WAIT_SLICE)
            except queue.Empty:
                if self._closed.is_set() and self._q.empty():
                    self._drained = True
                    raise ChannelClosed() from None
                waited += _WAIT_SLICE
                if timeout is not None and waited >= timeout:
                    raise
                continue
            if item is _CLOSED:
                if self._q.empty():
                    self._drained = True
                    raise ChannelClosed()
                continue
            return item

    def __iter__(self) -> Iterator[T]:
        while True:
            try:
                yield self.get()
            except ChannelClosed:
                return
