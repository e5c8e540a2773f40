"""
Domain errors and the REST framework exception handler.

Every error leaves the API as ``{"error": "<message>"}`` with the status
carried by the exception.
"""
import logging

from django.core.exceptions import ObjectDoesNotExist, PermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class DashboardError(Exception):
    """Base class for business rule violations raised by the services."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class InvalidInput(DashboardError):
    default_message = "Invalid input"


class DuplicateEmail(DashboardError):
    default_message = "A customer with this email already exists"


class NotFound(DashboardError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class InsufficientStock(DashboardError):
    def __init__(self, product_name: str):
        self.product_name = product_name
        super().__init__(f"Insufficient stock for {product_name}")


class HasOrders(DashboardError):
    default_message = "Cannot delete customer with existing orders"


class HasDependentOrders(DashboardError):
    default_message = "Cannot delete product with existing orders"


class InvalidStatusTransition(DashboardError):
    def __init__(self, current: str, requested: str):
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change order status from {current} to {requested}")


def flatten_errors(detail, prefix: str = "") -> str:
    """Collapse a DRF error structure into a single ``field: message`` string."""
    if isinstance(detail, dict):
        for field, value in detail.items():
            if field in ("non_field_errors", "detail"):
                return flatten_errors(value, prefix)
            key = f"{prefix}.{field}" if prefix else str(field)
            return flatten_errors(value, key)
        return prefix or "Invalid input"
    if isinstance(detail, (list, tuple)):
        for index, value in enumerate(detail):
            if not value:
                continue
            if isinstance(value, (dict, list)):
                key = f"{prefix}[{index}]" if prefix else f"[{index}]"
                return flatten_errors(value, key)
            return flatten_errors(value, prefix)
        return prefix or "Invalid input"
    message = str(detail)
    return f"{prefix}: {message}" if prefix else message


def api_exception_handler(exc, context):
    """REST framework EXCEPTION_HANDLER producing ``{"error": ...}`` bodies."""
    if isinstance(exc, DashboardError):
        return Response({"error": exc.message}, status=exc.status_code)

    if isinstance(exc, drf_exceptions.ValidationError):
        return Response(
            {"error": flatten_errors(exc.detail)},
            status=status.HTTP_400_BAD_REQUEST,
        )

    if isinstance(exc, (Http404, ObjectDoesNotExist)):
        exc = drf_exceptions.NotFound()
    elif isinstance(exc, PermissionDenied):
        exc = drf_exceptions.PermissionDenied()

    response = exception_handler(exc, context)
    if response is not None:
        response.data = {"error": flatten_errors(exc.detail)}
        return response

    view = context.get("view")
    logger.error(
        f"Unhandled error in {view.__class__.__name__ if view else 'unknown view'}: {exc}",
        exc_info=exc,
    )
    return Response(
        {"error": "Internal server error"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
