import logging

from django.core.exceptions import ObjectDoesNotExist
from django.db.models import ProtectedError
from django.http import Http404
from rest_framework import exceptions, status
from rest_framework.response import Response

logger = logging.getLogger("shop")


class ShopError(Exception):
    """Base for business-rule failures raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST
    field = "non_field_errors"

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.message = message
        if field is not None:
            self.field = field

    def as_payload(self) -> dict:
        return {"error": self.message, "details": {self.field: [self.message]}}


class EmptyOrderError(ShopError):
    field = "items"


class OutOfStockError(ShopError):
    field = "items"


class PriceMismatchError(ShopError):
    field = "items"


class TotalMismatchError(ShopError):
    field = "totalAmount"


class IdempotencyConflictError(ShopError):
    field = "Idempotency-Key"


class ResourceNotFound(ShopError):
    status_code = status.HTTP_404_NOT_FOUND

    def as_payload(self) -> dict:
        return {"error": self.message}


def shop_exception_handler(exc, context):
    """Map every exception raised in a view onto 400/401/403/404/500."""
    if isinstance(exc, ShopError):
        return Response(exc.as_payload(), status=exc.status_code)

    if isinstance(exc, ProtectedError):
        return Response({"error": "Still referenced by existing orders"}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, (Http404, ObjectDoesNotExist, exceptions.NotFound)):
        return Response({"error": "Not found"}, status=status.HTTP_404_NOT_FOUND)

    if isinstance(exc, exceptions.ValidationError):
        details = exc.detail if isinstance(exc.detail, dict) else {"non_field_errors": exc.detail}
        return Response({"error": "Validation failed", "details": details}, status=status.HTTP_400_BAD_REQUEST)

    if isinstance(exc, (exceptions.NotAuthenticated, exceptions.AuthenticationFailed)):
        auth_header = getattr(exc, "auth_header", None)
        headers = {"WWW-Authenticate": auth_header} if auth_header else None
        return Response({"error": "Unauthorized"}, status=status.HTTP_401_UNAUTHORIZED, headers=headers)

    if isinstance(exc, exceptions.PermissionDenied):
        return Response({"error": "Forbidden"}, status=status.HTTP_403_FORBIDDEN)

    if isinstance(exc, exceptions.APIException):
        return Response({"error": str(exc.detail)}, status=exc.status_code)

    view = context.get("view")
    logger.exception(f"unhandled error in {type(view).__name__ if view else 'view'}: {exc}")
    return Response({"error": "Internal server error"}, status=status.HTTP_500_INTERNAL_SERVER_ERROR)
