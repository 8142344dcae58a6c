"""Shared API-layer helpers.

``DomainErrorMixin`` translates service-layer exceptions into
``{"detail": ...}`` responses.  Each ViewSet declares its own
``domain_errors`` mapping; anything not listed falls through to DRF's
default handling (and ultimately a 500), so unexpected errors are never
swallowed here.
"""

from __future__ import annotations

from typing import ClassVar, Dict, Type

import structlog
from pydantic import ValidationError as PydanticValidationError
from rest_framework import status
from rest_framework.response import Response

logger = structlog.get_logger(__name__)


class DomainErrorMixin:
    domain_errors: ClassVar[Dict[Type[Exception], int]] = {}

    def handle_exception(self, exc: Exception) -> Response:
        if isinstance(exc, PydanticValidationError):
            detail = "; ".join(error["msg"] for error in exc.errors())
            return Response({"detail": detail}, status=status.HTTP_400_BAD_REQUEST)

        for exc_class, status_code in self.domain_errors.items():
            if isinstance(exc, exc_class):
                logger.info(
                    "api.domain_error",
                    error=exc_class.__name__,
                    status_code=status_code,
                )
                return Response({"detail": str(exc)}, status=status_code)

        return super().handle_exception(exc)  # type: ignore[misc]
