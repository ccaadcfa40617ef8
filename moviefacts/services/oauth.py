"""
Google OAuth Sign-In

Implements the authorization code flow against Google:

1. /auth/login redirects the browser to Google with a random `state`
2. Google redirects back to /auth/callback with `code` and `state`
3. The code is exchanged for an access token
4. The access token fetches the user's profile (sub, email, name, picture)

The HTTP calls use requests, run in a worker thread so they don't block
the event loop.
"""

import asyncio
import logging
import secrets
from dataclasses import dataclass
from urllib.parse import urlencode

import requests

from moviefacts.config import settings
from moviefacts.errors import InvalidInput, UpstreamFailure


logger = logging.getLogger(__name__)

PROVIDER = "google"

AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URL = "https://oauth2.googleapis.com/token"
USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"

SCOPES = "openid email profile"

# Seconds before giving up on Google
REQUEST_TIMEOUT = 10


@dataclass
class OAuthProfile:
    provider_account_id: str
    email: str
    name: str | None = None
    image: str | None = None


def is_configured() -> bool:
    return bool(settings.GOOGLE_CLIENT_ID and settings.GOOGLE_CLIENT_SECRET)


def new_state() -> str:
    """Random value tying the callback to the browser that started the login."""
    return secrets.token_urlsafe(32)


def authorization_url(redirect_uri: str, state: str) -> str:
    params = {
        "client_id": settings.GOOGLE_CLIENT_ID,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": SCOPES,
        "state": state,
        "access_type": "online",
        "prompt": "select_account",
    }
    return f"{AUTHORIZE_URL}?{urlencode(params)}"


async def fetch_profile(code: str, redirect_uri: str) -> OAuthProfile:
    """
    Exchange an authorization code for the signed-in user's profile.

    Raises:
        InvalidInput: Google rejected the code (expired, reused, forged)
        UpstreamFailure: Google could not be reached or sent something unusable
    """

    def _fetch_sync() -> OAuthProfile:
        try:
            token_response = requests.post(
                TOKEN_URL,
                data={
                    "code": code,
                    "client_id": settings.GOOGLE_CLIENT_ID,
                    "client_secret": settings.GOOGLE_CLIENT_SECRET,
                    "redirect_uri": redirect_uri,
                    "grant_type": "authorization_code",
                },
                timeout=REQUEST_TIMEOUT,
            )
            if token_response.status_code != 200:
                logger.warning(f"Google token exchange failed: {token_response.status_code}")
                raise InvalidInput("Invalid or expired authorization code")

            access_token = token_response.json().get("access_token")
            if not access_token:
                raise UpstreamFailure("Sign-in failed")

            userinfo_response = requests.get(
                USERINFO_URL,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=REQUEST_TIMEOUT,
            )
            if userinfo_response.status_code != 200:
                logger.error(f"Google userinfo error: {userinfo_response.status_code}")
                raise UpstreamFailure("Sign-in failed")

            data = userinfo_response.json()
        except requests.RequestException as e:
            logger.error(f"Error talking to Google: {e}")
            raise UpstreamFailure("Sign-in failed") from e

        if not data.get("sub") or not data.get("email"):
            raise UpstreamFailure("Sign-in failed")

        return OAuthProfile(
            provider_account_id=str(data["sub"]),
            email=data["email"],
            name=data.get("name"),
            image=data.get("picture"),
        )

    return await asyncio.to_thread(_fetch_sync)
