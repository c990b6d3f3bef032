"""Public API response contracts."""

from eventplan.api.contracts.models import (
    ApiErrorResponse,
    AuthMeResponse,
    AuthResponse,
    HealthResponse,
)

__all__ = [
    "ApiErrorResponse",
    "AuthMeResponse",
    "AuthResponse",
    "HealthResponse",
]
