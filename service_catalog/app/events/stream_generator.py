"""
Per-movie event streams for the catalog service.

A stream is pull-driven: the interval for the next event only starts once the
consumer asks for it, so a slow client backpressures the producer at the
transport instead of events being dropped or queued.
"""

import asyncio
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Callable, Optional

from shared.logging import get_logger
from shared.metrics import MetricsCollector
from ..movies.models import Movie, MovieEvent


logger = get_logger("catalog.events.stream")


class StreamSignal(str, Enum):
    """Why a stream ended."""
    CANCEL = "cancel"
    ERROR = "error"


CompletionHook = Callable[[Movie, StreamSignal], None]


def log_stream_completion(movie: Movie, signal: StreamSignal) -> None:
    """Default completion hook."""
    logger.info(
        "Streaming info ended",
        title=movie.title,
        movie_id=movie.id,
        signal=signal.value
    )


class MovieEventStream:
    """Unbounded, time-paced sequence of events for one movie snapshot.

    Iterating waits ``interval_seconds`` on the cancellation token and then
    produces a :class:`MovieEvent` stamped with the current time. Setting the
    token through :meth:`cancel` wakes a pending wait at once and no further
    tick is scheduled. The stream counts as open from its first pull. It
    cannot be restarted, and the completion hook runs exactly once with the
    signal that ended it, even when it is closed before it was ever read.
    """

    def __init__(
        self,
        movie: Movie,
        interval_seconds: float = 1.0,
        on_complete: Optional[CompletionHook] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        self.movie = movie
        self.interval_seconds = interval_seconds
        self.on_complete = on_complete or log_stream_completion
        self.metrics = metrics
        self.events_emitted = 0
        self.signal: Optional[StreamSignal] = None
        self._cancelled = asyncio.Event()
        self._started_at: Optional[float] = None

    @property
    def closed(self) -> bool:
        return self.signal is not None

    def __aiter__(self) -> "MovieEventStream":
        return self

    async def __anext__(self) -> MovieEvent:
        if self._cancelled.is_set() or self.closed:
            self._finish(StreamSignal.CANCEL)
            raise StopAsyncIteration

        if self._started_at is None:
            self._started_at = time.monotonic()
            if self.metrics:
                self.metrics.stream_opened()

        try:
            await asyncio.wait_for(self._cancelled.wait(), timeout=self.interval_seconds)
        except asyncio.TimeoutError:
            pass
        except asyncio.CancelledError:
            # Task cancelled underneath us, e.g. the client went away
            self._finish(StreamSignal.CANCEL)
            raise
        else:
            self._finish(StreamSignal.CANCEL)
            raise StopAsyncIteration

        event = MovieEvent(movie=self.movie, when=datetime.now(timezone.utc))
        self.events_emitted += 1
        if self.metrics:
            self.metrics.stream_event_emitted()
        return event

    def cancel(self) -> None:
        """Stop the ticker. Safe to call more than once."""
        self._cancelled.set()
        self._finish(StreamSignal.CANCEL)

    def fail(self, error: BaseException) -> None:
        """Terminate the stream because producing an event failed."""
        logger.error(
            "Movie event stream failed",
            movie_id=self.movie.id,
            error=str(error)
        )
        self._cancelled.set()
        self._finish(StreamSignal.ERROR)

    async def aclose(self) -> None:
        self.cancel()

    def _finish(self, signal: StreamSignal) -> None:
        if self.signal is not None:
            return
        self.signal = signal

        if self.metrics and self._started_at is not None:
            self.metrics.stream_closed(signal.value, time.monotonic() - self._started_at)

        self.on_complete(self.movie, signal)


class EventStreamGenerator:
    """Builds independent event streams bound to movie snapshots."""

    def __init__(
        self,
        interval_seconds: float = 1.0,
        on_complete: Optional[CompletionHook] = None,
        metrics: Optional[MetricsCollector] = None
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.interval_seconds = interval_seconds
        self.on_complete = on_complete or log_stream_completion
        self.metrics = metrics

    def stream_for(self, movie: Movie) -> MovieEventStream:
        """Build a new stream for ``movie``; its clock starts on the first pull."""
        logger.info(
            "Movie event stream started",
            title=movie.title,
            movie_id=movie.id,
            interval_seconds=self.interval_seconds
        )
        return MovieEventStream(
            movie,
            interval_seconds=self.interval_seconds,
            on_complete=self.on_complete,
            metrics=self.metrics
        )


class SSEFrames:
    """Server-Sent Events rendering of a stream.

    Closing the frames closes the stream, whether or not a frame was ever
    pulled. An exception raised while producing an event ends the stream with
    the error signal. The ASGI server never throws send failures into the
    body iterator; it stops pulling and closes it, which ends the stream with
    the cancel signal.
    """

    def __init__(self, stream: MovieEventStream):
        self.stream = stream

    def __aiter__(self) -> "SSEFrames":
        return self

    async def __anext__(self) -> str:
        try:
            event = await self.stream.__anext__()
        except StopAsyncIteration:
            raise
        except Exception as e:
            self.stream.fail(e)
            raise
        return event.to_sse()

    async def aclose(self) -> None:
        await self.stream.aclose()


def sse_frames(stream: MovieEventStream) -> SSEFrames:
    """Render ``stream`` as SSE frames."""
    return SSEFrames(stream)
