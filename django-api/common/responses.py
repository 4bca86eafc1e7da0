"""Mapping from domain errors to HTTP responses."""

from typing import Any

from rest_framework import status
from rest_framework.response import Response

from common.errors import DomainError

HTTP_STATUS_BY_CODE = {
    "CONFLICTING_ORDER": status.HTTP_409_CONFLICT,
    "STALE_CART_ITEM": status.HTTP_409_CONFLICT,
    "ALREADY_FINALIZED": status.HTTP_409_CONFLICT,
    "UNTRUSTED_CALLBACK": status.HTTP_401_UNAUTHORIZED,
    "PERMISSION_DENIED": status.HTTP_403_FORBIDDEN,
    "ALLOCATION_EXCEEDS_BUDGET": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "ALLOCATION_BELOW_USAGE": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "COLLABORATOR_LIMIT": status.HTTP_422_UNPROCESSABLE_ENTITY,
    "TRANSIENT_PERSISTENCE": status.HTTP_503_SERVICE_UNAVAILABLE,
    "GATEWAY_UNAVAILABLE": status.HTTP_502_BAD_GATEWAY,
}


def http_status_for(error: DomainError) -> int:
    code = error.code.value
    if code in HTTP_STATUS_BY_CODE:
        return HTTP_STATUS_BY_CODE[code]
    if code.endswith("_NOT_FOUND") or code == "UNKNOWN_ORDER":
        return status.HTTP_404_NOT_FOUND
    return status.HTTP_400_BAD_REQUEST


def domain_error_response(error: DomainError, current: Any = None) -> Response:
    """Build the error body; `current` carries the canonical entity when the
    client needs it to roll back an optimistic update."""
    body: dict[str, Any] = {"error": {"code": error.code.value, "message": error.message}}
    if current is not None:
        body["current"] = current
    return Response(body, status=http_status_for(error))


def validation_error_response(errors: Any) -> Response:
    body = {
        "error": {
            "code": "VALIDATION_ERROR",
            "message": "Request data is invalid",
            "fields": errors,
        }
    }
    return Response(body, status=status.HTTP_400_BAD_REQUEST)
