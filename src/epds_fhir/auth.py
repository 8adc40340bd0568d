"""Bearer-token cache for the Oystehr M2M client-credentials flow.

One :class:`TokenCache` lives for the whole process and is shared by every
request.  Reads are lock-free: the current :class:`Credential` is an
immutable snapshot swapped in a single assignment.  Only the fetch path is
serialised, and it re-checks the snapshot after acquiring the lock so that
callers queued behind an in-flight fetch reuse its result instead of
issuing their own.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable

import httpx

from epds_fhir.config import FHIRSettings
from epds_fhir.errors import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Credential:
    """An access token and the clock reading at which it expires."""

    token: str
    expires_at: float

    def is_fresh(self, now: float, lead_time: float) -> bool:
        """True while at least ``lead_time`` seconds of validity remain."""
        return now < self.expires_at - lead_time


class TokenCache:
    """Fetches and caches the bearer token used for every FHIR call.

    Args:
        settings: identity-service URL, client credentials, audience,
            timeout and refresh lead time.
        http: shared ``httpx.AsyncClient``; the caller owns its lifecycle.
        clock: monotonic time source in seconds (injectable for tests).
    """

    def __init__(
        self,
        settings: FHIRSettings,
        http: httpx.AsyncClient,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._settings = settings
        self._http = http
        self._clock = clock
        self._lead_time = settings.token_lead_time
        self._credential: Credential | None = None
        self._lock = asyncio.Lock()

    @property
    def credential(self) -> Credential | None:
        """The currently cached credential, if any."""
        return self._credential

    async def get_token(self) -> str:
        """Return a token with at least the lead time left, fetching if needed."""
        credential = self._credential
        if credential is not None and credential.is_fresh(self._clock(), self._lead_time):
            logger.debug("Using cached Oystehr token")
            return credential.token

        async with self._lock:
            # Another caller may have refreshed while we waited for the lock
            credential = self._credential
            if credential is not None and credential.is_fresh(self._clock(), self._lead_time):
                logger.debug("Token refreshed by a concurrent caller while waiting")
                return credential.token

            credential = await self._fetch()
            self._credential = credential
            return credential.token

    async def _fetch(self) -> Credential:
        """Run the client-credentials exchange once; no retry."""
        logger.info("Fetching new Oystehr token...")
        body = {
            "client_id": self._settings.client_id,
            "client_secret": self._settings.client_secret,
            "grant_type": "client_credentials",
            "audience": self._settings.audience,
        }
        try:
            resp = await self._http.post(
                self._settings.auth_url,
                json=body,
                headers={"Accept": "application/json"},
                timeout=self._settings.auth_timeout,
            )
        except httpx.HTTPError as exc:
            raise AuthenticationError(f"failed to execute auth request: {exc}") from exc

        if resp.status_code != 200:
            raise AuthenticationError(_describe_failure(resp))

        try:
            data = resp.json()
        except ValueError as exc:
            raise AuthenticationError(f"failed to decode auth response JSON: {exc}") from exc

        token = data.get("access_token") if isinstance(data, dict) else None
        if not isinstance(token, str) or not token:
            raise AuthenticationError("received empty access token from Oystehr auth API")

        try:
            expires_in = float(data.get("expires_in", 0))
        except (TypeError, ValueError) as exc:
            raise AuthenticationError(f"invalid expires_in in auth response: {exc}") from exc

        logger.info("Fetched new Oystehr token. Expires in: %d seconds", expires_in)
        return Credential(token=token, expires_at=self._clock() + expires_in)


def _describe_failure(resp: httpx.Response) -> str:
    """Prefer the OAuth ``error``/``error_description`` pair when present."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict) and data.get("error"):
        return (
            f"oystehr auth API error ({resp.status_code}): "
            f"{data['error']} - {data.get('error_description', '')}"
        )
    return f"oystehr auth API request failed with status code {resp.status_code}: {resp.text}"
