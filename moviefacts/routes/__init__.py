"""
API Routes Package

This package contains FastAPI route handlers for the application.
Each module defines routes for a specific feature area:

- auth.py: Sign-in with Google, sign-out, session profile
- movie.py: Movie facts (cached, rate-limited generation)
- user.py: Favorite movies and quota status

Routes are registered in main.py using FastAPI's router system,
which allows for modular organization and shared route prefixes.
"""
