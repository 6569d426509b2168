"""Tests for common.streaming module."""

import itertools
import threading

import pytest

from common.streaming import BoundedQueue, QueueAbandoned, consume, produce


class TestBoundedQueue:
    def test_rejects_non_positive_capacity(self) -> None:
        with pytest.raises(ValueError):
            BoundedQueue(0)

    def test_iterates_until_closed(self) -> None:
        channel = BoundedQueue(3)
        channel.put("a")
        channel.put("b")
        channel.close()
        assert list(channel) == ["a", "b"]

    def test_put_after_abandon_raises(self) -> None:
        channel = BoundedQueue(1)
        channel.put("a")
        channel.abandon()
        with pytest.raises(QueueAbandoned):
            channel.put("b")


class TestProduce:
    def test_preserves_order_through_small_queue(self) -> None:
        assert list(produce(range(100), maxsize=1)) == list(range(100))

    def test_empty_source(self) -> None:
        assert list(produce([], maxsize=2)) == []

    def test_producer_error_reraised_after_queued_items(self) -> None:
        def source():
            yield 1
            yield 2
            raise OSError("disk gone")

        received = []
        with pytest.raises(OSError, match="disk gone"):
            for item in produce(source(), maxsize=5):
                received.append(item)
        assert received == [1, 2]

    def test_consumer_stopping_early_releases_producer(self) -> None:
        stream = produce(itertools.count(), maxsize=2, name="endless")
        assert next(stream) == 0
        assert next(stream) == 1
        stream.close()
        assert not any(t.name == "endless" for t in threading.enumerate())


class TestConsume:
    def test_sink_receives_all_items_in_order(self) -> None:
        received = []
        with consume(lambda items: received.extend(items), maxsize=2) as channel:
            for i in range(50):
                channel.put(i)
        assert received == list(range(50))

    def test_sink_error_reraised_on_exit(self) -> None:
        def sink(items):
            for _ in items:
                pass
            raise ValueError("bad sink")

        with pytest.raises(ValueError, match="bad sink"):
            with consume(sink, maxsize=2) as channel:
                channel.put(1)

    def test_sink_failing_midstream_does_not_hang_producer(self) -> None:
        def sink(items):
            for item in items:
                if item == 3:
                    raise RuntimeError("write failed")

        with pytest.raises(RuntimeError, match="write failed"):
            with consume(sink, maxsize=1) as channel:
                for i in range(1000):
                    channel.put(i)

    def test_producer_side_error_propagates_and_sink_finishes(self) -> None:
        received = []
        with pytest.raises(KeyError):
            with consume(lambda items: received.extend(items), maxsize=2) as channel:
                channel.put("a")
                raise KeyError("boom")
        assert received == ["a"]
