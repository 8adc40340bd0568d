"""Submission endpoint — receive an EPDS form and record the result.

The body is ``application/x-www-form-urlencoded`` (multipart also works).
All validation lives in the SDK; this handler only converts the form to a
plain mapping and shapes the success response.  Failures are raised as
``SubmissionError`` and rendered by the global handlers.
"""

import logging
from typing import Literal

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel

from epds_screening.workflow import SubmissionWorkflow

from epds_server.dependencies import get_workflow

logger = logging.getLogger(__name__)

router = APIRouter(tags=["submissions"])


# ------------------------------------------------------------------
# Response models
# ------------------------------------------------------------------

class SubmissionResponse(BaseModel):
    """Body returned once the Observation has been written."""
    status: Literal["success"] = "success"
    observationId: str
    calculatedScore: int


# ------------------------------------------------------------------
# Endpoints
# ------------------------------------------------------------------

@router.post("/submit-epds")
async def submit_epds(
    request: Request,
    workflow: SubmissionWorkflow = Depends(get_workflow),
) -> SubmissionResponse:
    """Score the questionnaire and write it to the FHIR store.

    High-risk results additionally raise a Flag and a Communication; their
    outcome is logged but does not change this response.
    """
    client = request.client.host if request.client else "unknown"
    logger.info("Received request for %s from %s", request.url.path, client)

    form = await request.form()
    # A repeated key resolves to its first value; uploaded files are dropped
    fields: dict[str, str] = {}
    for key in form.keys():
        first = form.getlist(key)[0]
        if isinstance(first, str):
            fields[key] = first

    receipt = await workflow.submit(fields)
    return SubmissionResponse(
        observationId=receipt.observation_id,
        calculatedScore=receipt.total,
    )
