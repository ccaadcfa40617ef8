"""
Request Bodies

Pydantic models for the JSON bodies of the API. Field names follow the
camelCase wire format; every field is optional so that a missing value is
reported by the service as a 400 with a readable message instead of a
generic validation error.
"""

from pydantic import BaseModel


class FactRequest(BaseModel):
    movieTitle: str | None = None
    # null and missing both mean false
    forceNew: bool | None = None


class UpdateMovieRequest(BaseModel):
    favoriteMovie: str | None = None


class ManageMoviesRequest(BaseModel):
    # "add" or "remove"
    action: str | None = None
    # Title to remove
    movieTitle: str | None = None
    # Comma-separated titles to add
    newMovies: str | None = None
