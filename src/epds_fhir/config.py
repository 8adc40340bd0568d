"""FHIR store configuration — reads connection parameters from environment.

Six variables are mandatory (base URLs, project id, M2M client credentials,
and the practitioner that receives high-risk alerts).  Everything else has
a default suitable for the Oystehr sandbox.
"""

import os
from dataclasses import dataclass

# --- Required variables and the FHIRSettings field each one populates ---
_REQUIRED_VARS: list[tuple[str, str]] = [
    ("OYSTEHR_FHIR_BASE_URL", "fhir_base_url"),
    ("OYSTEHR_AUTH_URL", "auth_url"),
    ("OYSTEHR_PROJECT_ID", "project_id"),
    ("OYSTEHR_M2M_CLIENT_ID", "client_id"),
    ("OYSTEHR_M2M_CLIENT_SECRET", "client_secret"),
    ("ALERT_PROVIDER_FHIR_ID", "alert_provider_ref"),
]

DEFAULT_AUDIENCE = "https://api.zapehr.com"


class ConfigurationError(RuntimeError):
    """Raised when a required environment variable is missing."""


@dataclass(frozen=True)
class FHIRSettings:
    """Immutable connection settings for the identity service and FHIR store."""

    fhir_base_url: str
    auth_url: str
    project_id: str
    client_id: str
    client_secret: str
    # Full reference, e.g. "Practitioner/f5d7cbdf-..."
    alert_provider_ref: str

    audience: str = DEFAULT_AUDIENCE

    # Per-call timeouts in seconds; no retries are attempted.
    fhir_timeout: float = 15.0
    auth_timeout: float = 10.0

    # Refresh the bearer token this many seconds before it expires.
    token_lead_time: float = 300.0

    def __post_init__(self) -> None:
        # Resource paths are joined as base + "/Observation"
        object.__setattr__(self, "fhir_base_url", self.fhir_base_url.rstrip("/"))

    def __repr__(self) -> str:
        return (
            f"FHIRSettings(fhir_base_url={self.fhir_base_url!r}, "
            f"project_id={self.project_id!r}, client_id={self.client_id!r})"
        )


def _seconds(env_var: str, default: str) -> float:
    raw = os.getenv(env_var, default).strip() or default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(
            f"environment variable {env_var} must be a number of seconds, got {raw!r}"
        ) from None


def load_fhir_settings() -> FHIRSettings:
    """Build settings from ``OYSTEHR_*`` environment variables.

    Raises :class:`ConfigurationError` naming the first missing variable
    or the first non-numeric duration.
    """
    values: dict[str, str] = {}
    for env_var, field_name in _REQUIRED_VARS:
        value = os.getenv(env_var, "").strip()
        if not value:
            raise ConfigurationError(
                f"required environment variable {env_var} is not set"
            )
        values[field_name] = value

    return FHIRSettings(
        **values,
        audience=os.getenv("OYSTEHR_AUDIENCE") or DEFAULT_AUDIENCE,
        fhir_timeout=_seconds("FHIR_TIMEOUT_SECONDS", "15"),
        auth_timeout=_seconds("AUTH_TIMEOUT_SECONDS", "10"),
        token_lead_time=_seconds("TOKEN_REFRESH_LEAD_SECONDS", "300"),
    )
