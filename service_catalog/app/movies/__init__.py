"""
Movie catalog domain: models and storage backends.

The catalog facade lives in ``movies.service``; it depends on the events
package, which in turn depends on the models here.
"""

from .models import Movie, MovieEvent
from .repository import MovieRepository, InMemoryMovieRepository, RedisMovieRepository, create_repository

__all__ = [
    "InMemoryMovieRepository",
    "Movie",
    "MovieEvent",
    "MovieRepository",
    "RedisMovieRepository",
    "create_repository",
]
