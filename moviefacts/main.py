"""
Main Application Entry Point

This module sets up the FastAPI application with:
- Database engine and OpenAI client created on startup, closed on shutdown
- Request size limit and quota header middleware
- Error handlers that turn service errors into JSON responses
- Route registration

Run with:
    uvicorn moviefacts.main:app --reload
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from moviefacts.config import settings
from moviefacts.database import create_engine, create_session_factory
from moviefacts.errors import ServiceError
from moviefacts.limiter import limiter
from moviefacts.models import Base
from moviefacts.routes import auth, movie, user
from moviefacts.services.generator import FactGenerator
from moviefacts.services.quota import DAILY_FACT_LIMIT


logging.basicConfig(
    level=logging.DEBUG if settings.is_development else logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

# Requests with a larger declared body are refused before routing (1 MiB)
MAX_BODY_BYTES = 1024 * 1024


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager - runs on startup and shutdown.

    Startup tasks:
    - Create the database engine and session factory
    - Create database tables if they don't exist
    - Create the OpenAI-backed fact generator

    Shutdown tasks:
    - Close the OpenAI client
    - Dispose of the engine's connection pool
    """
    engine = create_engine(settings.DATABASE_URL)
    async with engine.begin() as conn:
        # create_all() creates tables for all models that inherit from Base
        await conn.run_sync(Base.metadata.create_all)

    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)
    app.state.fact_generator = FactGenerator.from_api_key(
        settings.OPENAI_API_KEY, model=settings.OPENAI_MODEL
    )

    yield

    await app.state.fact_generator.close()
    await engine.dispose()


# Create FastAPI application instance
app = FastAPI(title="Movie Facts", lifespan=lifespan)

# slowapi looks the limiter up on app.state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.middleware("http")
async def limit_request_size(request: Request, call_next):
    """
    Reject oversized bodies and advertise the daily fact limit.

    The size check trusts Content-Length; bodies without one are left to
    the server's own limits.
    """
    content_length = request.headers.get("content-length")
    if content_length and content_length.isdigit() and int(content_length) > MAX_BODY_BYTES:
        return PlainTextResponse("Request too large", status_code=413)

    response = await call_next(request)
    if request.url.path.startswith("/api/"):
        response.headers["X-RateLimit-Limit"] = str(DAILY_FACT_LIMIT)
    return response


@app.exception_handler(ServiceError)
async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    # Malformed JSON or wrong field types are a client error like any other
    return JSONResponse(status_code=400, content={"message": "Invalid request body"})


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"message": "Internal server error"})


# Register route modules
app.include_router(auth.router)
app.include_router(movie.router)
app.include_router(user.router)


@app.get("/")
async def root():
    # Health check for load balancers
    return {"ok": True, "service": "moviefacts"}
