"""
Catalog facade over movie storage and event streams.
"""

from typing import List, Optional

from shared.logging import get_logger
from shared.errors import NotFoundError
from .models import Movie
from .repository import MovieRepository
from ..events.stream_generator import EventStreamGenerator, MovieEventStream


class CatalogService:
    """Read operations of the catalog.

    Store failures are not caught here; they reach the caller unchanged.
    """

    def __init__(self, repository: MovieRepository, generator: EventStreamGenerator):
        self.repository = repository
        self.generator = generator
        self.logger = get_logger("catalog.service")

    async def list(self) -> List[Movie]:
        """All movies, in store order."""
        return await self.repository.find_all()

    async def get_by_id(self, movie_id: str) -> Optional[Movie]:
        """The movie with ``movie_id``, or None."""
        return await self.repository.find_by_id(movie_id)

    async def stream_events_for(self, movie_id: str) -> MovieEventStream:
        """Event stream for a movie, bound to the snapshot read now.

        Raises NotFoundError before any stream is created when the movie
        does not exist.
        """
        movie = await self.get_by_id(movie_id)
        if movie is None:
            self.logger.info("Event stream requested for unknown movie", movie_id=movie_id)
            raise NotFoundError(
                f"Movie '{movie_id}' not found",
                details={"movie_id": movie_id}
            )
        return self.generator.stream_for(movie)
