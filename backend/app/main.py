from contextlib import asynccontextmanager
import logging
import os

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException

from backend.app.config import settings
from backend.app.logging_setup import setup_logging
from backend.app.db import connect, init_db, get_db_path
from backend.app.responses import (
    ApiError,
    api_error_handler,
    http_error_handler,
    validation_error_handler,
)
from backend.app.routers import (
    auth,
    genre_interests,
    lookups,
    movies,
    profile,
    recommendations,
    statuses,
    user_movies,
    users,
)

setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # ensure DB exists and the status lookup is seeded
    conn = connect()
    init_db(conn)
    conn.close()

    os.makedirs(profile.avatars_dir(), exist_ok=True)
    logger.info("Started %s (%s), db=%s", settings.app_name, settings.app_env, get_db_path())

    yield
    # nothing to clean up for sqlite here


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        lifespan=lifespan,
    )

    origins = settings.cors_origins_list
    if origins:
        # the SPA sends the auth cookie cross-origin
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ApiError, api_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)

    app.include_router(auth.router)
    app.include_router(movies.router)
    app.include_router(lookups.genres_router)
    app.include_router(lookups.tags_router)
    app.include_router(lookups.countries_router)
    app.include_router(statuses.router)
    app.include_router(user_movies.router)
    app.include_router(profile.router)
    app.include_router(genre_interests.router)
    app.include_router(users.router)
    app.include_router(recommendations.router)

    # uploaded avatars; the directory is created on startup
    app.mount(
        "/avatars",
        StaticFiles(directory=profile.avatars_dir(), check_dir=False),
        name="avatars",
    )

    @app.get("/health")
    def health():
        return {"status": "ok", "app": settings.app_name, "env": settings.app_env}

    @app.get("/")
    def root():
        return {"message": "OnlineMovies API is running", "docs": "/docs", "health": "/health"}

    return app


app = create_app()
