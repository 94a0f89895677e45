"""
Movie data models for the catalog service.
"""

import uuid
from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field


class Movie(BaseModel):
    """Catalog record. The id is assigned once and never changes."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Opaque unique movie id")
    title: str = Field(..., description="Display title")

    @classmethod
    def create(cls, title: str) -> "Movie":
        """Create a movie with a freshly generated id."""
        return cls(id=str(uuid.uuid4()), title=title)


class MovieEvent(BaseModel):
    """A movie snapshot paired with the time it was emitted."""

    model_config = ConfigDict(frozen=True)

    movie: Movie
    when: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_sse(self) -> str:
        """Format as a Server-Sent Events frame."""
        return f"data: {self.model_dump_json()}\n\n"
