"""
User Routes - Favorites and Quota

- POST /api/user/update-movie: Replace the favorites with one title
- POST /api/user/manage-movies: Add comma-separated titles or remove one
- GET /api/user/rate-limit-status: Today's fact quota
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from moviefacts.database import get_db
from moviefacts.dependencies import get_identity, get_movie_collection, get_quota_ledger
from moviefacts.errors import InvalidInput
from moviefacts.schemas import ManageMoviesRequest, UpdateMovieRequest
from moviefacts.services.movies import MovieCollection, serialize_favorites
from moviefacts.services.quota import QuotaLedger
from moviefacts.services.users import Identity, get_user
from moviefacts.utils.validators import is_valid_movie_title, sanitize_input, sanitize_title_list


router = APIRouter(prefix="/api/user", tags=["user"])


@router.post("/update-movie")
async def update_movie(
    payload: UpdateMovieRequest,
    identity: Identity = Depends(get_identity),
    movies: MovieCollection = Depends(get_movie_collection),
):
    """
    Set the user's favorite movie.

    Request body:
        {"favoriteMovie": "  The Matrix  "}

    Response:
        {"message": "...", "favoriteMovie": "The Matrix"}
    """
    raw = payload.favoriteMovie
    if not raw or not raw.strip():
        raise InvalidInput("Favorite movie is required")
    if not is_valid_movie_title(raw.strip()):
        raise InvalidInput("Invalid movie title")

    titles = await movies.replace(identity.user_id, sanitize_title_list(raw))
    return {
        "message": "Favorite movie updated successfully",
        "favoriteMovie": serialize_favorites(titles),
    }


@router.post("/manage-movies")
async def manage_movies(
    payload: ManageMoviesRequest,
    identity: Identity = Depends(get_identity),
    movies: MovieCollection = Depends(get_movie_collection),
):
    """
    Add or remove favorite movies.

    Request bodies:
        {"action": "add", "newMovies": "Alien, Heat"}
        {"action": "remove", "movieTitle": "Alien"}

    Response:
        {"message": "...", "movies": "The Matrix, Heat"}   ("movies" is null when empty)
    """
    if payload.action == "add":
        if payload.newMovies is None:
            raise InvalidInput("newMovies is required")
        titles = await movies.add(identity.user_id, sanitize_title_list(payload.newMovies))
    elif payload.action == "remove":
        if payload.movieTitle is None:
            raise InvalidInput("movieTitle is required")
        titles = await movies.remove(identity.user_id, sanitize_input(payload.movieTitle))
    else:
        raise InvalidInput("Action must be 'add' or 'remove'")

    return {
        "message": "Movies updated successfully",
        "movies": serialize_favorites(titles),
    }


@router.get("/rate-limit-status")
async def rate_limit_status(
    identity: Identity = Depends(get_identity),
    ledger: QuotaLedger = Depends(get_quota_ledger),
    db: AsyncSession = Depends(get_db),
):
    """
    Response:
        {"remainingCalls": 6, "usedCalls": 4, "totalCalls": 10}
    """
    await get_user(db, identity.user_id)
    used = await ledger.usage(identity.user_id)
    return {
        "remainingCalls": ledger.remaining_after(used),
        "usedCalls": used,
        "totalCalls": ledger.limit,
    }
