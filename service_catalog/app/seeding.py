"""
Startup data for the catalog.
"""

from typing import Iterable, List

from shared.logging import get_logger
from .movies.models import Movie
from .movies.repository import MovieRepository


class MovieDataSeeder:
    """Replaces the catalog contents with one movie per title."""

    def __init__(self, repository: MovieRepository, titles: Iterable[str]):
        self.repository = repository
        self.titles = list(titles)
        self.logger = get_logger("catalog.seeding")

    async def seed(self) -> List[Movie]:
        await self.repository.delete_all()

        saved = []
        for title in self.titles:
            movie = await self.repository.save(Movie.create(title))
            self.logger.info("Saved movie", title=movie.title, movie_id=movie.id)
            saved.append(movie)

        return saved
