"""Base view shared by the API apps."""

from typing import Any

from rest_framework.exceptions import ValidationError
from rest_framework.response import Response
from rest_framework.views import APIView

from common.errors import DomainError
from common.responses import domain_error_response, validation_error_response


class DomainAPIView(APIView):
    """APIView that renders domain and input errors in the shared error body."""

    def serialize_current(self, current: Any) -> Any:
        """Render the canonical entity an error carries. Views that hold
        optimistic client state override this."""
        return None

    def handle_exception(self, exc: Exception) -> Response:
        if isinstance(exc, DomainError):
            current = getattr(exc, "current", None)
            if current is not None:
                current = self.serialize_current(current)
            return domain_error_response(exc, current)
        if isinstance(exc, ValidationError):
            return validation_error_response(exc.detail)
        return super().handle_exception(exc)
