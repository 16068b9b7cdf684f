"""Domain error taxonomy and the DRF exception handler that renders it.

Every failure leaves the API as ``{"error": <tag>, "detail": <message>}``.
"""

import logging
from typing import Any

from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class PortalError(exceptions.APIException):
    """Base class for domain errors raised by service functions."""
    tag = "error"


class ValidationError(PortalError):
    """Malformed or out-of-range input."""
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid input."
    default_code = "validation"
    tag = "validation"


class AuthorizationError(PortalError):
    """Role or ownership mismatch."""
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not allowed to perform this action."
    default_code = "authorization"
    tag = "authorization"


class NotFoundError(PortalError):
    """A referenced entity does not exist."""
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"
    tag = "not_found"


class ConflictError(PortalError):
    """An invariant would be violated (duplicate allocation, re-decision, full group)."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict with current state."
    default_code = "conflict"
    tag = "conflict"


_FRAMEWORK_TAGS: list[tuple[type[Exception], str]] = [
    (exceptions.ValidationError, "validation"),
    (exceptions.ParseError, "validation"),
    (exceptions.NotAuthenticated, "authentication"),
    (exceptions.AuthenticationFailed, "authentication"),
    (exceptions.PermissionDenied, "authorization"),
    (exceptions.NotFound, "not_found"),
    (Http404, "not_found"),
    (DjangoPermissionDenied, "authorization"),
    (exceptions.Throttled, "throttled"),
]


def tag_for(exc: Exception) -> str:
    """Return the taxonomy tag for an exception."""
    if isinstance(exc, PortalError):
        return exc.tag
    for exc_type, tag in _FRAMEWORK_TAGS:
        if isinstance(exc, exc_type):
            return tag
    return "error"


def portal_exception_handler(exc: Exception, context: dict[str, Any]) -> Response | None:
    """Wrap DRF's default handler so every error body carries a taxonomy tag."""
    response = exception_handler(exc, context)
    if response is None:
        return None

    tag = tag_for(exc)
    data = response.data
    if isinstance(data, dict) and set(data) == {"detail"}:
        detail = data["detail"]
    else:
        detail = data
    response.data = {"error": tag, "detail": detail}

    if response.status_code >= 500:
        logger.error("Request failed: %s", exc)
    elif tag == "conflict":
        view = context.get("view")
        logger.warning("Conflict in %s: %s", type(view).__name__ if view else "-", detail)
    return response
