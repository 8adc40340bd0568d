"""Submission failures reported back to the caller.

Each subclass fixes the HTTP status class and a client-safe message.  The
underlying cause (upstream status, response body, identifiers) is chained
via ``__cause__`` and logged server-side; it is never sent to the client.
"""


class SubmissionError(Exception):
    """Base class for failures that abort a submission."""

    status_code: int = 500
    default_message: str = "Internal server error"

    def __init__(self, message: str | None = None) -> None:
        self.public_message = message or self.default_message
        super().__init__(self.public_message)


class InvalidInputError(SubmissionError):
    """A request field is missing, malformed or out of range."""

    status_code = 400
    default_message = "Invalid input"

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class PatientNotFoundError(SubmissionError):
    """The identifier pair did not resolve to a usable Patient."""

    status_code = 400
    default_message = "patient not found from identifier"


class AuthFailureError(SubmissionError):
    """The identity service did not issue a token."""

    status_code = 500
    default_message = "Internal server error - authentication failed"


class UpstreamFailureError(SubmissionError):
    """The FHIR store failed on a step the submission cannot proceed without."""

    status_code = 500
    default_message = "Failed to create FHIR Observation"
