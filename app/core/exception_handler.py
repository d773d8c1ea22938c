"""
DRF exception handler for application errors.

Service code raises BaseApplicationError subclasses for faults that abort
a request (missing reservation, malformed claim token, replayed release).
This handler turns them into JSON responses using each class's
http_status, and defers everything else to DRF's default handler.

Expected rejections come back from services as failed ServiceResults
instead; views render those with service_failure_response.

Configured in settings:
    REST_FRAMEWORK = {
        "EXCEPTION_HANDLER": "core.exception_handler.api_exception_handler",
    }
"""

from __future__ import annotations

import logging

from rest_framework.response import Response
from rest_framework.views import exception_handler

from core.exceptions import BaseApplicationError

logger = logging.getLogger(__name__)


def api_exception_handler(exc, context):
    """
    Render BaseApplicationError as {"error", "error_code", "details"}.

    Args:
        exc: The raised exception
        context: DRF handler context (view, request, ...)

    Returns:
        Response, or None to let Django produce a 500
    """
    if isinstance(exc, BaseApplicationError):
        view = context.get("view")
        log = logger.error if exc.http_status >= 500 else logger.warning
        log(
            f"{exc.__class__.__name__} in {view.__class__.__name__ if view else 'unknown view'}",
            extra={"error_code": exc.error_code, "details": exc.details},
        )
        return Response(exc.to_dict(), status=exc.http_status)

    return exception_handler(exc, context)


# HTTP status for ServiceResult business rejections returned by services
SERVICE_ERROR_STATUS = {
    "INSUFFICIENT_BALANCE": 402,
    "PAYOUT_NOT_FOUND": 404,
    "PAYOUT_ALREADY_CLAIMED": 409,
    "PAYOUT_NOT_CLAIMABLE": 409,
    "PAYOUT_EXPIRED": 410,
}


def service_failure_response(result) -> Response:
    """
    Render a failed ServiceResult with the status for its error_code.

    Unknown error codes are treated as bad requests.
    """
    status_code = SERVICE_ERROR_STATUS.get(result.error_code, 400)
    return Response(result.to_response(), status=status_code)
