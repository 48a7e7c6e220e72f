#!/usr/bin/env python3
"""
FastAPI application factory.

Wires the training data service and the simulation generator into the
routes, maps Phisherman errors to HTTP responses and serves the built
single-page app when one is present.
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse

from ..database import TrainingDataService, get_training_data_service
from ..exceptions import (
    PhishermanBaseError,
    InvalidInputError,
    RecordNotFoundError,
    ConfigurationError,
    ProcessingError,
    AudioGenerationError,
    DatabaseError,
)
from ..simulate import SimulationGenerator
from .config import ServerConfig
from .routes import router

logger = logging.getLogger(__name__)

# First match wins, so subclasses come before their parents
ERROR_STATUS = [
    (InvalidInputError, 400),
    (RecordNotFoundError, 404),
    (ConfigurationError, 503),
    (ProcessingError, 502),
    (AudioGenerationError, 502),
    (DatabaseError, 500),
]


def status_for_error(exc: Exception) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 500


def create_app(config: Optional[ServerConfig] = None,
               data_service: Optional[TrainingDataService] = None,
               generator: Optional[SimulationGenerator] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        config: Server settings. If None, read from the environment
        data_service: Training data service. If None, uses the global service
        generator: Simulation generator. If None, one is created with default models

    Returns:
        Configured FastAPI application
    """
    config = config or ServerConfig()
    data_service = data_service or get_training_data_service()
    generator = generator or SimulationGenerator()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        data_service.initialize()
        if config.seed and data_service.seed_if_empty():
            logger.info("Inserted demo organisation")
        logger.info("Phisherman API ready")
        yield
        logger.info("Phisherman API shutting down")

    app = FastAPI(
        title="Phisherman",
        description="Security-awareness training with AI-generated phishing, vishing and deepfake simulations",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.data_service = data_service
    app.state.generator = generator

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PhishermanBaseError)
    async def phisherman_error_handler(request: Request, exc: PhishermanBaseError):
        status_code = status_for_error(exc)
        if status_code >= 500:
            logger.error(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
        else:
            logger.warning(f"{type(exc).__name__} on {request.method} {request.url.path}: {exc}")
        return JSONResponse(status_code=status_code, content={"error": str(exc)})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        logger.warning(f"Validation error on {request.method} {request.url.path}: {exc.errors()}")
        return JSONResponse(
            status_code=422,
            content={"error": "Invalid request", "details": jsonable_encoder(exc.errors())}
        )

    app.include_router(router)

    if config.serves_static:
        _mount_spa(app, config)
        logger.info(f"Serving web app from {config.static_dir}")

    return app


def _mount_spa(app: FastAPI, config: ServerConfig):
    """Serve files from the SPA bundle, falling back to index.html for client-side routes."""
    static_root = config.static_dir.resolve()
    index_file = static_root / "index.html"

    @app.get("/{full_path:path}", include_in_schema=False)
    async def spa(full_path: str):
        if full_path == "api" or full_path.startswith("api/"):
            return JSONResponse(status_code=404, content={"error": "Not found"})

        candidate = (static_root / full_path).resolve()
        if full_path and candidate.is_relative_to(static_root) and candidate.is_file():
            return FileResponse(candidate)
        return FileResponse(index_file)
