"""
Per-movie event streams delivered as Server-Sent Events.
"""

from .stream_generator import EventStreamGenerator, MovieEventStream, SSEFrames, StreamSignal, sse_frames

__all__ = [
    "EventStreamGenerator",
    "MovieEventStream",
    "StreamSignal",
    "SSEFrames",
    "sse_frames",
]
