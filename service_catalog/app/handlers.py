"""
HTTP handlers for the catalog routes.
"""

from fastapi import BackgroundTasks, Request
from fastapi.responses import StreamingResponse

from shared.errors import NotFoundError
from .movies.service import CatalogService
from .events.stream_generator import sse_frames


class MovieHandler:
    """Adapts catalog operations to HTTP responses."""

    def __init__(self, catalog: CatalogService):
        self.catalog = catalog

    async def all(self, request: Request):
        """List every movie."""
        movies = await self.catalog.list()
        return [movie.model_dump() for movie in movies]

    async def by_id(self, request: Request):
        """Fetch a single movie."""
        movie_id = request.path_params["id"]
        movie = await self.catalog.get_by_id(movie_id)
        if movie is None:
            raise NotFoundError(
                f"Movie '{movie_id}' not found",
                details={"movie_id": movie_id}
            )
        return movie.model_dump()

    async def events(self, request: Request):
        """Stream events for a movie as Server-Sent Events."""
        stream = await self.catalog.stream_events_for(request.path_params["id"])
        frames = sse_frames(stream)

        # Closes the stream once the response ends, read or not
        cleanup = BackgroundTasks()
        cleanup.add_task(frames.aclose)

        return StreamingResponse(
            frames,
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive"
            },
            background=cleanup
        )
