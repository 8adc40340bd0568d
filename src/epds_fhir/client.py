"""Thin async wrapper around ``httpx.AsyncClient`` for the FHIR store.

Adds the headers every call needs (bearer token, project id, FHIR media
types), applies the configured per-call timeout, and turns transport and
status failures into :mod:`epds_fhir.errors` exceptions.  The client makes
exactly one attempt per call.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from epds_fhir.config import FHIRSettings
from epds_fhir.errors import (
    MalformedResourceError,
    ResourceNotFoundError,
    UpstreamError,
)
from epds_fhir.resources import Bundle

logger = logging.getLogger(__name__)

FHIR_JSON = "application/fhir+json"
JSON_PATCH = "application/json-patch+json"


class FHIRClient:
    """Authenticated request helper bound to one FHIR base URL and project.

    Args:
        settings: store location, project id and timeout.
        http: shared ``httpx.AsyncClient``; the caller owns its lifecycle.
    """

    def __init__(self, settings: FHIRSettings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    def _headers(self, token: str, content_type: str | None = None) -> dict[str, str]:
        headers = {
            "Authorization": f"Bearer {token}",
            "x-zapehr-project-id": self._settings.project_id,
            "Accept": FHIR_JSON,
        }
        if content_type is not None:
            headers["Content-Type"] = content_type
        return headers

    def _url(self, path: str) -> str:
        return f"{self._settings.fhir_base_url}/{path.lstrip('/')}"

    async def _send(
        self,
        method: str,
        path: str,
        token: str,
        *,
        params: dict[str, str] | None = None,
        body: Any = None,
        content_type: str | None = None,
    ) -> httpx.Response:
        url = self._url(path)
        content = json.dumps(body).encode("utf-8") if body is not None else None
        try:
            return await self._http.request(
                method,
                url,
                params=params,
                content=content,
                headers=self._headers(token, content_type),
                timeout=self._settings.fhir_timeout,
            )
        except httpx.HTTPError as exc:
            raise UpstreamError(f"{method} {path} failed: {exc}") from exc

    # ------------------------------------------------------------------
    # Read operations
    # ------------------------------------------------------------------

    async def search(
        self, resource_type: str, params: dict[str, str], token: str,
    ) -> list[dict[str, Any]]:
        """Run a search and return the entry resources in server order."""
        resp = await self._send("GET", resource_type, token, params=params)
        if resp.status_code != 200:
            raise UpstreamError(
                f"{resource_type} search status {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )
        try:
            bundle = Bundle.model_validate(resp.json())
        except ValueError as exc:
            raise MalformedResourceError(
                f"{resource_type} bundle decode: {exc}"
            ) from exc
        return [entry.resource for entry in bundle.entry]

    async def read(self, resource_type: str, resource_id: str, token: str) -> dict[str, Any]:
        """Fetch a single resource by id; 404 raises ResourceNotFoundError."""
        path = f"{resource_type}/{resource_id}"
        resp = await self._send("GET", path, token)
        if resp.status_code == 404:
            raise ResourceNotFoundError(f"{path} not found")
        if resp.status_code != 200:
            raise UpstreamError(
                f"{path} read status {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return _decode_object(resp, path)

    # ------------------------------------------------------------------
    # Write operations
    # ------------------------------------------------------------------

    async def create(self, resource_type: str, payload: dict[str, Any], token: str) -> str:
        """POST a new resource and return the id the store assigned.

        Anything other than ``201 Created`` is an :class:`UpstreamError`; a
        201 without an ``id`` is a :class:`MalformedResourceError`.
        """
        logger.info("Sending POST %s", self._url(resource_type))
        resp = await self._send(
            "POST", resource_type, token, body=payload, content_type=FHIR_JSON,
        )
        if resp.status_code != 201:
            logger.error(
                "FHIR %s creation failed. Status: %d, Body: %s",
                resource_type, resp.status_code, resp.text,
            )
            raise UpstreamError(
                f"FHIR API error creating {resource_type} (status {resp.status_code})",
                status_code=resp.status_code,
                body=resp.text,
            )
        created = _decode_object(resp, resource_type)
        resource_id = created.get("id")
        if not isinstance(resource_id, str) or not resource_id:
            raise MalformedResourceError(
                f"FHIR {resource_type} created but response missing ID"
            )
        return resource_id

    async def patch(
        self, resource_type: str, resource_id: str, operations: list[dict[str, Any]], token: str,
    ) -> dict[str, Any]:
        """Apply a JSON Patch document and return the updated resource."""
        path = f"{resource_type}/{resource_id}"
        resp = await self._send(
            "PATCH", path, token, body=operations, content_type=JSON_PATCH,
        )
        if resp.status_code != 200:
            raise UpstreamError(
                f"{path} patch status {resp.status_code}",
                status_code=resp.status_code,
                body=resp.text,
            )
        return _decode_object(resp, path)


def _decode_object(resp: httpx.Response, what: str) -> dict[str, Any]:
    try:
        data = resp.json()
    except ValueError as exc:
        raise MalformedResourceError(f"failed to parse {what} response body: {exc}") from exc
    if not isinstance(data, dict):
        raise MalformedResourceError(f"{what} response body is not a JSON object")
    return data
