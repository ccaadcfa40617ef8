"""
Movie Fact Routes

- POST /api/movie/fact: Fact about any title, cached per user, 10 new facts per day
- GET /api/movie/fact: Fresh fact about the user's first favorite movie

Errors raised by the services (ServiceError subclasses) are turned into
JSON responses by the handler registered in main.py.
"""

from fastapi import APIRouter, Depends, Request

from moviefacts.dependencies import get_fact_service, get_identity
from moviefacts.errors import InvalidInput
from moviefacts.limiter import FACT_REQUESTS_PER_MINUTE, limiter
from moviefacts.schemas import FactRequest
from moviefacts.services.facts import FactService
from moviefacts.services.users import Identity
from moviefacts.utils.validators import is_valid_movie_title, sanitize_input


router = APIRouter(prefix="/api/movie", tags=["movie"])


@router.post("/fact")
@limiter.limit(FACT_REQUESTS_PER_MINUTE)
async def create_fact(
    request: Request,
    payload: FactRequest,
    identity: Identity = Depends(get_identity),
    service: FactService = Depends(get_fact_service),
):
    """
    Return a fact about `movieTitle`.

    Request body:
        {"movieTitle": "Alien", "forceNew": false}

    Response:
        {"fact": "...", "cached": true, "remainingCalls": 7}

    A cached fact is returned without using quota unless forceNew is true.
    When the daily limit is reached the answer is 429 with remainingCalls=0.
    """
    title = payload.movieTitle
    if title and title.strip() and not is_valid_movie_title(title.strip()):
        raise InvalidInput("Invalid movie title")

    result = await service.get_fact(identity.user_id, sanitize_input(title), bool(payload.forceNew))
    return result.to_dict()


@router.get("/fact")
@limiter.limit(FACT_REQUESTS_PER_MINUTE)
async def favorite_fact(
    request: Request,
    identity: Identity = Depends(get_identity),
    service: FactService = Depends(get_fact_service),
):
    """
    Generate a fact about the signed-in user's favorite movie.

    Not counted against the daily quota, so the per-IP throttle is the
    only bound on provider calls here.

    Response:
        {"fact": "...", "movie": "The Matrix"}
    """
    fact, movie = await service.fact_for_favorite(identity.user_id)
    return {"fact": fact, "movie": movie}
