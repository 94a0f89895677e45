"""
Movie storage backends for the catalog service.
"""

from abc import ABC, abstractmethod
from typing import Dict, Iterable, List, Optional

import redis.asyncio as redis

from shared.config import BaseConfig
from shared.logging import get_logger
from shared.errors import ExternalServiceError
from .models import Movie


class MovieRepository(ABC):
    """Async CRUD interface over the movie document collection."""

    async def start(self):
        """Open backend resources."""

    async def stop(self):
        """Release backend resources."""

    @abstractmethod
    async def find_all(self) -> List[Movie]:
        ...

    @abstractmethod
    async def find_by_id(self, movie_id: str) -> Optional[Movie]:
        ...

    @abstractmethod
    async def save(self, movie: Movie) -> Movie:
        ...

    @abstractmethod
    async def delete_all(self) -> None:
        ...

    async def health_check(self) -> bool:
        return True


class InMemoryMovieRepository(MovieRepository):
    """Dict-backed repository, ordered by insertion."""

    def __init__(self, movies: Iterable[Movie] = ()):
        self._movies: Dict[str, Movie] = {movie.id: movie for movie in movies}

    async def find_all(self) -> List[Movie]:
        return list(self._movies.values())

    async def find_by_id(self, movie_id: str) -> Optional[Movie]:
        return self._movies.get(movie_id)

    async def save(self, movie: Movie) -> Movie:
        self._movies[movie.id] = movie
        return movie

    async def delete_all(self) -> None:
        self._movies.clear()


class RedisMovieRepository(MovieRepository):
    """Redis document store: one JSON document per movie plus an id index set."""

    MOVIE_PREFIX = "movie:"
    INDEX_KEY = "movies"

    def __init__(self, redis_url: str, client: Optional[redis.Redis] = None):
        self.redis_url = redis_url
        self.logger = get_logger("catalog.repository.redis")
        self.redis: Optional[redis.Redis] = client

    async def start(self):
        """Connect to Redis."""
        try:
            if self.redis is None:
                self.redis = redis.from_url(
                    self.redis_url,
                    encoding="utf-8",
                    decode_responses=True,
                    socket_connect_timeout=5,
                    socket_timeout=5,
                    retry_on_timeout=True,
                    health_check_interval=30
                )

            await self.redis.ping()
            self.logger.info("Redis movie repository started", redis_url=self.redis_url)

        except redis.RedisError as e:
            self.logger.error("Failed to start Redis movie repository", error=str(e))
            raise ExternalServiceError("redis", str(e))

    async def stop(self):
        """Close the Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.logger.info("Redis movie repository stopped")

    def _key(self, movie_id: str) -> str:
        return f"{self.MOVIE_PREFIX}{movie_id}"

    async def find_all(self) -> List[Movie]:
        try:
            movie_ids = await self.redis.smembers(self.INDEX_KEY)
            if not movie_ids:
                return []

            documents = await self.redis.mget([self._key(movie_id) for movie_id in sorted(movie_ids)])
        except redis.RedisError as e:
            raise ExternalServiceError("redis", str(e), {"operation": "find_all"})

        return [Movie.model_validate_json(doc) for doc in documents if doc is not None]

    async def find_by_id(self, movie_id: str) -> Optional[Movie]:
        try:
            document = await self.redis.get(self._key(movie_id))
        except redis.RedisError as e:
            raise ExternalServiceError("redis", str(e), {"operation": "find_by_id", "movie_id": movie_id})

        if document is None:
            return None
        return Movie.model_validate_json(document)

    async def save(self, movie: Movie) -> Movie:
        try:
            await self.redis.set(self._key(movie.id), movie.model_dump_json())
            await self.redis.sadd(self.INDEX_KEY, movie.id)
        except redis.RedisError as e:
            raise ExternalServiceError("redis", str(e), {"operation": "save", "movie_id": movie.id})
        return movie

    async def delete_all(self) -> None:
        try:
            movie_ids = await self.redis.smembers(self.INDEX_KEY)
            keys = [self._key(movie_id) for movie_id in movie_ids]
            await self.redis.delete(*keys, self.INDEX_KEY)
        except redis.RedisError as e:
            raise ExternalServiceError("redis", str(e), {"operation": "delete_all"})

    async def health_check(self) -> bool:
        if self.redis is None:
            return False
        try:
            return bool(await self.redis.ping())
        except redis.RedisError:
            return False


def create_repository(config: BaseConfig) -> MovieRepository:
    """Build the repository selected by configuration."""
    if config.repository_backend == "redis":
        return RedisMovieRepository(config.redis_url)
    return InMemoryMovieRepository()
