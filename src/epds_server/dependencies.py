"""FastAPI dependency injection — provides the submission workflow.

The workflow (and the token cache it owns) is built once in the lifespan
handler and stashed on ``app.state``.  Tests override :func:`get_workflow`
through ``app.dependency_overrides``.
"""

from fastapi import HTTPException, Request

from epds_screening.workflow import SubmissionWorkflow


def get_workflow(request: Request) -> SubmissionWorkflow:
    """Return the workflow singleton from ``app.state``."""
    workflow = getattr(request.app.state, "workflow", None)
    if workflow is None:
        raise HTTPException(status_code=503, detail="Service not initialised")
    return workflow
