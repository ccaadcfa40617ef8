"""
Movie Facts Application Package

Users sign in with Google, keep a list of favorite movies, and ask for
AI-generated trivia about them, limited to 10 new facts per day with
previously generated facts served from a cache.

- config.py: Application configuration and environment settings
- database.py: Database engine and per-request session management
- dependencies.py: FastAPI dependency injection functions
- errors.py: Service errors and their HTTP status codes
- limiter.py: Per-IP request throttling
- main.py: FastAPI application entry point
- models.py: SQLAlchemy ORM database models
- schemas.py: JSON request bodies

Subpackages:
- routes/: API route handlers (auth, movie, user)
- services/: Business logic (facts, quota, cache, generator, movies, users, auth, oauth)
- utils/: Input sanitization
"""
