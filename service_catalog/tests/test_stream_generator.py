"""
Tests for movie event streams.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from service_catalog.app.events.stream_generator import (
    EventStreamGenerator, MovieEventStream, SSEFrames, StreamSignal, sse_frames
)
from service_catalog.app.movies.models import Movie, MovieEvent
from shared.metrics import MetricsCollector


INTERVAL = 0.05


@pytest.fixture
def movie():
    return Movie(id="m1", title="Flux Gordon")


@pytest.fixture
def on_complete():
    return MagicMock()


@pytest.fixture
def generator(on_complete):
    return EventStreamGenerator(interval_seconds=INTERVAL, on_complete=on_complete)


async def take(stream, count):
    events = []
    async for event in stream:
        events.append(event)
        if len(events) == count:
            break
    return events


class TestMovieEventStream:
    """Test cases for MovieEventStream."""

    @pytest.mark.asyncio
    async def test_events_are_paced_by_interval(self, generator, movie):
        """Consecutive events are at least one interval apart."""
        stream = generator.stream_for(movie)

        events = await take(stream, 4)
        await stream.aclose()

        assert len(events) == 4
        for previous, current in zip(events, events[1:]):
            gap = (current.when - previous.when).total_seconds()
            assert gap >= INTERVAL

    @pytest.mark.asyncio
    async def test_every_event_carries_the_bound_movie(self, generator, movie):
        stream = generator.stream_for(movie)

        events = await take(stream, 3)
        await stream.aclose()

        assert all(isinstance(event, MovieEvent) for event in events)
        assert all(event.movie.id == "m1" for event in events)
        assert all(event.movie == movie for event in events)

    @pytest.mark.asyncio
    async def test_first_event_waits_one_interval(self, generator, movie):
        stream = generator.stream_for(movie)
        loop = asyncio.get_running_loop()

        started = loop.time()
        await stream.__anext__()
        elapsed = loop.time() - started
        stream.cancel()

        assert elapsed >= INTERVAL

    @pytest.mark.asyncio
    async def test_cancel_stops_ticks(self, generator, movie):
        """No ticks are produced once a subscriber cancels."""
        stream = generator.stream_for(movie)
        received = []

        async def consume():
            async for event in stream:
                received.append(event)

        task = asyncio.create_task(consume())
        await asyncio.sleep(INTERVAL * 3.5)

        stream.cancel()
        await asyncio.wait_for(task, timeout=INTERVAL * 2)
        emitted = stream.events_emitted

        await asyncio.sleep(INTERVAL * 3)

        assert emitted >= 2
        assert stream.events_emitted == emitted
        assert len(received) == emitted
        assert stream.signal == StreamSignal.CANCEL

    @pytest.mark.asyncio
    async def test_cancel_wakes_pending_wait(self, movie):
        """A pending tick is abandoned immediately rather than at the next interval."""
        stream = EventStreamGenerator(interval_seconds=10).stream_for(movie)

        task = asyncio.create_task(stream.__anext__())
        await asyncio.sleep(0.01)
        stream.cancel()

        with pytest.raises(StopAsyncIteration):
            await asyncio.wait_for(task, timeout=1.0)
        assert stream.events_emitted == 0

    @pytest.mark.asyncio
    async def test_task_cancellation_ends_stream(self, generator, movie, on_complete):
        """Client disconnect cancels the consuming task."""
        stream = generator.stream_for(movie)

        async def consume():
            async for _ in stream:
                pass

        task = asyncio.create_task(consume())
        await asyncio.sleep(INTERVAL * 1.5)
        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task

        emitted = stream.events_emitted
        await asyncio.sleep(INTERVAL * 2)

        assert stream.events_emitted == emitted
        assert stream.closed
        on_complete.assert_called_once_with(movie, StreamSignal.CANCEL)

    @pytest.mark.asyncio
    async def test_stream_cannot_restart(self, generator, movie):
        stream = generator.stream_for(movie)
        stream.cancel()

        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_completion_hook_runs_once(self, generator, movie, on_complete):
        stream = generator.stream_for(movie)
        await take(stream, 1)

        stream.cancel()
        stream.cancel()
        await stream.aclose()

        on_complete.assert_called_once_with(movie, StreamSignal.CANCEL)

    @pytest.mark.asyncio
    async def test_fail_reports_error_signal(self, generator, movie, on_complete):
        stream = generator.stream_for(movie)

        stream.fail(RuntimeError("transport broke"))

        on_complete.assert_called_once_with(movie, StreamSignal.ERROR)
        with pytest.raises(StopAsyncIteration):
            await stream.__anext__()

    @pytest.mark.asyncio
    async def test_slow_consumer_backpressures_producer(self, generator, movie):
        """Nothing is produced ahead of the consumer, skipped or coalesced."""
        stream = generator.stream_for(movie)
        received = []

        async for event in stream:
            received.append(event)
            assert stream.events_emitted == len(received)
            if len(received) == 3:
                break
            await asyncio.sleep(INTERVAL * 2)

        stream.cancel()

        assert stream.events_emitted == 3
        for previous, current in zip(received, received[1:]):
            assert (current.when - previous.when).total_seconds() >= INTERVAL * 2.7

    @pytest.mark.asyncio
    async def test_streams_are_independent(self, generator, movie):
        other = Movie(id="m2", title="AEon Flux")
        first = generator.stream_for(movie)
        second = generator.stream_for(other)

        first_events, second_events = await asyncio.gather(take(first, 2), take(second, 2))
        first.cancel()

        assert [e.movie.id for e in first_events] == ["m1", "m1"]
        assert [e.movie.id for e in second_events] == ["m2", "m2"]
        assert first.closed and not second.closed
        second.cancel()

    @pytest.mark.asyncio
    async def test_metrics_track_open_streams(self, movie):
        metrics = MetricsCollector("catalog")
        generator = EventStreamGenerator(interval_seconds=INTERVAL, metrics=metrics)

        stream = generator.stream_for(movie)
        assert metrics.registry.get_sample_value("active_event_streams") == 0.0

        await take(stream, 2)
        assert metrics.registry.get_sample_value("active_event_streams") == 1.0
        stream.cancel()

        assert metrics.registry.get_sample_value("active_event_streams") == 0.0
        assert metrics.registry.get_sample_value("stream_events_total") == 2.0

    @pytest.mark.asyncio
    async def test_unread_stream_closes_cleanly(self, movie, on_complete):
        """A stream closed before its first pull still reports how it ended."""
        metrics = MetricsCollector("catalog")
        generator = EventStreamGenerator(interval_seconds=INTERVAL, on_complete=on_complete, metrics=metrics)

        stream = generator.stream_for(movie)
        await stream.aclose()

        on_complete.assert_called_once_with(movie, StreamSignal.CANCEL)
        assert stream.events_emitted == 0
        assert metrics.registry.get_sample_value("active_event_streams") == 0.0
        assert metrics.registry.get_sample_value(
            "event_stream_duration_seconds_count", {"signal": "cancel"}
        ) is None

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            EventStreamGenerator(interval_seconds=0)


class TestSSEFrames:
    """Test cases for SSE frame rendering."""

    @pytest.mark.asyncio
    async def test_frames_encode_movie_events(self, generator, movie):
        stream = generator.stream_for(movie)
        frames = sse_frames(stream)

        frame = await frames.__anext__()
        await frames.aclose()

        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        payload = json.loads(frame[len("data: "):])
        assert payload["movie"] == {"id": "m1", "title": "Flux Gordon"}
        assert "when" in payload

    @pytest.mark.asyncio
    async def test_closing_frames_cancels_stream(self, generator, movie, on_complete):
        stream = generator.stream_for(movie)
        frames = sse_frames(stream)

        await frames.__anext__()
        await frames.aclose()

        assert stream.signal == StreamSignal.CANCEL
        on_complete.assert_called_once_with(movie, StreamSignal.CANCEL)

    @pytest.mark.asyncio
    async def test_closing_unread_frames_cancels_stream(self, generator, movie, on_complete):
        stream = generator.stream_for(movie)
        frames = sse_frames(stream)

        await frames.aclose()

        assert isinstance(frames, SSEFrames)
        assert stream.signal == StreamSignal.CANCEL
        on_complete.assert_called_once_with(movie, StreamSignal.CANCEL)
        with pytest.raises(StopAsyncIteration):
            await frames.__anext__()

    @pytest.mark.asyncio
    async def test_producer_failure_ends_stream_with_error(self):
        stream = MagicMock()
        stream.__anext__ = AsyncMock(side_effect=RuntimeError("clock broke"))
        frames = sse_frames(stream)

        with pytest.raises(RuntimeError):
            await frames.__anext__()

        stream.fail.assert_called_once()
        assert str(stream.fail.call_args.args[0]) == "clock broke"


def test_movie_event_stream_defaults_to_logging_hook(movie):
    stream = MovieEventStream(movie)

    stream.cancel()

    assert stream.signal == StreamSignal.CANCEL
