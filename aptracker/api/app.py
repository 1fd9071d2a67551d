"""
FastAPI application factory
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from aptracker import __version__
from aptracker.config import Settings, get_settings
from aptracker.core.db import RecordNotFoundError, init_db
from aptracker.travel.client import GeocodingClient, RoutingClient

from .routes import router

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure the API application

    The database handle and HTTP clients are built once in the lifespan
    handler and shared through app.state.

    Args:
        settings: Settings to use, read from the environment when omitted

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        database = await init_db(settings.database_url)
        app.state.database = database
        app.state.routing_client = RoutingClient(
            api_key=settings.openrouteservice_api_key, timeout=settings.http_timeout
        )
        app.state.geocoding_client = GeocodingClient(
            api_key=settings.geoapify_api_key,
            locality=settings.geocode_locality,
            country_code=settings.geocode_country_code,
            bias_lat=settings.geocode_bias_lat,
            bias_lng=settings.geocode_bias_lng,
            timeout=settings.http_timeout,
        )
        if not settings.routing_configured:
            logger.warning("OPENROUTESERVICE_API_KEY not set, transit times will be approximate")
        if not settings.geocoding_configured:
            logger.warning("GEOAPIFY_API_KEY not set, geocoding disabled")
        logger.info(f"API ready (database: {settings.database_url})")
        try:
            yield
        finally:
            await database.close()

    app = FastAPI(title="aptracker", version=__version__, lifespan=lifespan)
    app.state.settings = settings

    if settings.cors_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[settings.cors_origin],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    @app.exception_handler(RecordNotFoundError)
    async def not_found_handler(request: Request, exc: RecordNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(ValidationError)
    async def validation_handler(request: Request, exc: ValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": exc.errors(include_url=False, include_context=False)},
        )

    app.include_router(router)
    return app


def run_server(
    settings: Optional[Settings] = None,
    host: Optional[str] = None,
    port: Optional[int] = None,
):
    """Run the API with uvicorn"""
    settings = settings or get_settings()
    host = host or settings.host
    port = port or settings.port

    logger.info(f"Starting server on {host}:{port}")
    uvicorn.run(create_app(settings), host=host, port=port, log_level=settings.log_level.lower())
