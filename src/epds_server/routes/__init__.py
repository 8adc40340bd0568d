"""Route registration — mounts all routers under ``/api/v1``."""

from fastapi import FastAPI

from epds_server.routes.submissions import router as submissions_router

API_PREFIX = "/api/v1"


def register_routes(app: FastAPI) -> None:
    """Include all sub-routers under the versioned API prefix."""
    app.include_router(submissions_router, prefix=API_PREFIX)
