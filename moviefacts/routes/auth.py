"""
Authentication Routes

Sign-in uses Google's OAuth authorization code flow:
1. /auth/login stores a random state in a short-lived cookie and redirects to Google
2. Google sends the browser back to /auth/callback with a code and the same state
3. The code is exchanged for the user's profile, the user is created on first sign-in
4. A session JWT is stored in an HTTP-only cookie

/auth/session returns the signed-in user's profile, including favorites.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from moviefacts.config import settings
from moviefacts.database import get_db
from moviefacts.dependencies import get_identity
from moviefacts.errors import InvalidInput, UpstreamFailure
from moviefacts.services import oauth
from moviefacts.services.auth import SESSION_COOKIE, create_access_token, session_cookie_value
from moviefacts.services.users import Identity, enrich_identity, upsert_oauth_user


logger = logging.getLogger(__name__)

# Create router with /auth prefix
# All routes defined here will be accessible at /auth/...
router = APIRouter(prefix="/auth", tags=["auth"])

STATE_COOKIE = "oauth_state"

# The state only has to survive the round trip to Google
STATE_MAX_AGE = 600


def redirect_uri(request: Request) -> str:
    if settings.OAUTH_REDIRECT_URL:
        return settings.OAUTH_REDIRECT_URL
    return str(request.url_for("oauth_callback"))


@router.get("/login")
async def login(request: Request):
    """
    Start the sign-in: redirect the browser to Google's consent screen.

    Raises:
        UpstreamFailure: Google client id/secret are not configured
    """
    if not oauth.is_configured():
        raise UpstreamFailure("Sign-in is not configured")

    state = oauth.new_state()
    response = RedirectResponse(url=oauth.authorization_url(redirect_uri(request), state))
    response.set_cookie(
        key=STATE_COOKIE,
        value=state,
        httponly=True,
        max_age=STATE_MAX_AGE,
        samesite="lax",
        secure=not settings.is_development,
    )
    return response


@router.get("/callback", name="oauth_callback")
async def callback(
    request: Request,
    code: str | None = None,
    state: str | None = None,
    db: AsyncSession = Depends(get_db),
):
    """
    Finish the sign-in and set the session cookie.

    Returns:
        Redirect to homepage with the session cookie set

    Raises:
        InvalidInput: Missing code, or state not matching the cookie (CSRF)
    """
    expected_state = request.cookies.get(STATE_COOKIE)
    if not code or not state or not expected_state or state != expected_state:
        raise InvalidInput("Invalid sign-in request")

    profile = await oauth.fetch_profile(code, redirect_uri(request))
    user = await upsert_oauth_user(
        db,
        provider=oauth.PROVIDER,
        provider_account_id=profile.provider_account_id,
        email=profile.email,
        name=profile.name,
        image=profile.image,
    )
    logger.info(f"User {user.id} signed in")

    token = create_access_token({"sub": user.id, "email": user.email})

    # Status code 303 ensures the browser makes a GET request
    response = RedirectResponse(url="/", status_code=303)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_cookie_value(token),
        httponly=True,  # JavaScript can't access (prevents XSS attacks)
        max_age=settings.SESSION_MAX_AGE,
        samesite="lax",  # CSRF protection
        secure=not settings.is_development,
    )
    response.delete_cookie(STATE_COOKIE)
    return response


@router.get("/logout")
async def logout():
    """
    Log user out by deleting the session cookie.
    """
    response = RedirectResponse(url="/", status_code=303)
    response.delete_cookie(SESSION_COOKIE)
    return response


@router.get("/session")
async def session(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Profile of the signed-in user.

    Response:
        {"user": {"id": ..., "email": ..., "name": ..., "image": ..., "favoriteMovie": ...}}
    """
    return {"user": await enrich_identity(db, identity)}
