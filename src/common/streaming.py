"""Bounded producer/consumer queues between record streams and stages.

A producer thread fills a fixed-capacity queue and closes it when its source is
exhausted; the consumer drains it in order. Either side blocks when the queue
is full or empty, which caps memory regardless of how large the stream is.
Errors raised on the background side are re-raised on the calling side.
"""

from __future__ import annotations

import logging
import queue
import threading
from contextlib import contextmanager
from typing import Callable, Generic, Iterable, Iterator, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_POLL_SECONDS = 0.1


class QueueAbandoned(Exception):
    """The other side of a queue stopped before the stream was exhausted."""


class BoundedQueue(Generic[T]):
    """Fixed-capacity FIFO that the producer closes on stream exhaustion."""

    _CLOSED = object()

    def __init__(self, maxsize: int) -> None:
        if maxsize < 1:
            raise ValueError(f"Queue capacity must be positive, got {maxsize}")
        self._queue: queue.Queue = queue.Queue(maxsize=maxsize)
        self._abandoned = threading.Event()

    @property
    def abandoned(self) -> bool:
        return self._abandoned.is_set()

    def put(self, item: T) -> None:
        """Block until there is room for item.

        Raises:
            QueueAbandoned: If the consumer gave up while we were waiting.
        """
        if not self._offer(item):
            raise QueueAbandoned("Consumer stopped before the stream was exhausted")

    def close(self) -> None:
        """Mark the end of the stream. A no-op once the consumer is gone."""
        self._offer(self._CLOSED)

    def abandon(self) -> None:
        """Tell a blocked producer that nobody will drain the queue."""
        self._abandoned.set()

    def _offer(self, item: object) -> bool:
        while not self._abandoned.is_set():
            try:
                self._queue.put(item, timeout=_POLL_SECONDS)
                return True
            except queue.Full:
                continue
        return False

    def __iter__(self) -> Iterator[T]:
        while True:
            item = self._queue.get()
            if item is self._CLOSED:
                return
            yield item


def produce(source: Iterable[T], maxsize: int, name: str = "producer") -> Iterator[T]:
    """
    Iterate over source on a background thread, yielding through a bounded queue.

    Items arrive in source order. If iterating source raises, the items queued
    before the failure are delivered first and then the error is re-raised here.

    Args:
        source: Iterable to drain on the producer thread
        maxsize: Queue capacity
        name: Thread name, for diagnostics

    Yields:
        Items of source, in order
    """
    channel: BoundedQueue[T] = BoundedQueue(maxsize)
    errors: list[BaseException] = []

    def _run() -> None:
        try:
            for item in source:
                channel.put(item)
        except QueueAbandoned:
            logger.debug("%s: consumer stopped early", name)
        except BaseException as exc:
            errors.append(exc)
        finally:
            channel.close()

    thread = threading.Thread(target=_run, name=name, daemon=True)
    thread.start()
    try:
        yield from channel
    finally:
        channel.abandon()
        thread.join()

    if errors:
        raise errors[0]


@contextmanager
def consume(
    sink: Callable[[Iterable[T]], None],
    maxsize: int,
    name: str = "consumer",
) -> Iterator[BoundedQueue[T]]:
    """
    Run sink on a background thread, fed by the queue yielded to the caller.

    The caller puts items; leaving the block closes the queue and waits on the
    sink's done event. A sink failure is re-raised in the caller, either from
    the next put() or when the block exits.

    Example:
        >>> with consume(write_all, maxsize=100) as channel:
        ...     for record in records:
        ...         channel.put(record)
    """
    channel: BoundedQueue[T] = BoundedQueue(maxsize)
    done = threading.Event()
    errors: list[BaseException] = []

    def _run() -> None:
        try:
            sink(channel)
        except BaseException as exc:
            errors.append(exc)
        finally:
            channel.abandon()
            done.set()

    thread = threading.Thread(target=_run, name=name, daemon=True)
    thread.start()
    try:
        yield channel
    except QueueAbandoned:
        done.wait()
        thread.join()
        if errors:
            raise errors[0]
        raise
    except BaseException:
        channel.close()
        done.wait()
        thread.join()
        raise

    channel.close()
    done.wait()
    thread.join()
    if errors:
        raise errors[0]
