"""Application factory and CLI entry point.

``create_app()`` builds the FastAPI application with:
  - Lifespan handler that loads FHIR settings and builds the workflow once
  - CORS middleware
  - Global exception handlers (SubmissionError → 400/500 JSON envelope)
  - All API routes mounted under ``/api/v1``
  - A ``/health`` endpoint for readiness probes

The ``cli()`` function is the ``epds-server`` console-script entry point.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import httpx
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from epds_fhir.auth import TokenCache
from epds_fhir.client import FHIRClient
from epds_fhir.config import FHIRSettings, load_fhir_settings
from epds_fhir.search import EncounterResolver, PatientResolver
from epds_fhir.writer import RecordWriter
from epds_screening.errors import SubmissionError
from epds_screening.workflow import SubmissionWorkflow

from epds_server.config import ServerSettings, load_settings
from epds_server.errors import (
    generic_error_handler,
    http_error_handler,
    submission_error_handler,
    validation_error_handler,
)
from epds_server.routes import register_routes

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def build_workflow(fhir_settings: FHIRSettings, http: httpx.AsyncClient) -> SubmissionWorkflow:
    """Wire the token cache, resolvers and writer around one HTTP client."""
    client = FHIRClient(fhir_settings, http)
    return SubmissionWorkflow(
        TokenCache(fhir_settings, http),
        PatientResolver(client),
        EncounterResolver(client),
        RecordWriter(client),
        alert_provider_ref=fhir_settings.alert_provider_ref,
    )


# ------------------------------------------------------------------
# Lifespan: runs once at startup/shutdown
# ------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Initialise shared resources at startup, tear down on shutdown.

    Startup:
      1. Load ``OYSTEHR_*`` settings (fails fast if any is missing)
      2. Open one ``httpx.AsyncClient`` shared by auth and FHIR calls
      3. Build the ``SubmissionWorkflow`` and stash it on ``app.state``

    Shutdown:
      1. Close the HTTP client's connection pool
    """
    fhir_settings: FHIRSettings = app.state.fhir_settings or load_fhir_settings()
    logger.info("Loaded FHIR settings: %r", fhir_settings)

    http = httpx.AsyncClient()
    app.state.workflow = build_workflow(fhir_settings, http)

    yield

    # --- Shutdown ---
    app.state.workflow = None
    await http.aclose()
    logger.info("HTTP client closed")


# ------------------------------------------------------------------
# Factory
# ------------------------------------------------------------------

def create_app(
    settings: ServerSettings | None = None,
    fhir_settings: FHIRSettings | None = None,
) -> FastAPI:
    """Build and return the configured FastAPI application."""
    if settings is None:
        settings = load_settings()

    # --- Configure logging ---
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )

    app = FastAPI(
        title="EPDS Service",
        description="Scores EPDS questionnaires and records results in the FHIR store",
        version="0.1.0",
        lifespan=lifespan,
    )

    # Read by the lifespan handler; None means "load from environment"
    app.state.settings = settings
    app.state.fhir_settings = fhir_settings
    app.state.workflow = None

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # --- Exception handlers ---
    app.add_exception_handler(SubmissionError, submission_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    # --- Health check (outside /api/v1 prefix) ---
    @app.get("/health")
    async def health() -> dict:
        """Readiness probe — reports whether the workflow was initialised."""
        if app.state.workflow is None:
            return {"status": "starting"}
        return {"status": "ok"}

    # --- Mount all API routes ---
    register_routes(app)

    return app


# ------------------------------------------------------------------
# Module-level ASGI export (for uvicorn epds_server.app:app)
# ------------------------------------------------------------------
app = create_app()


# ------------------------------------------------------------------
# CLI entry point
# ------------------------------------------------------------------

def cli() -> None:
    """Console-script entry point: ``epds-server``."""
    import uvicorn

    settings = load_settings()
    logger.info("Starting EPDS service on %s:%d", settings.host, settings.port)
    uvicorn.run(
        "epds_server.app:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
        reload=False,
    )
