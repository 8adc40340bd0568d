"""Exceptions raised by the identity service and FHIR store layer.

Every failure of a remote call surfaces as a :class:`FHIRError` subclass so
callers can decide per operation whether it is fatal or merely logged.
Transport-level problems (connection refused, timeouts) are wrapped as
:class:`UpstreamError` without a status code.
"""


class FHIRError(Exception):
    """Base class for remote identity/FHIR failures."""


class AuthenticationError(FHIRError):
    """The client-credentials exchange failed or returned no usable token."""


class ResourceNotFoundError(FHIRError):
    """A search returned an empty bundle, or a read returned 404."""


class MalformedResourceError(FHIRError):
    """The store answered successfully but the payload is unusable."""


class UpstreamError(FHIRError):
    """The store returned an unexpected status, or the request never completed."""

    def __init__(self, message: str, status_code: int | None = None, body: str = "") -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(message)
