"""Domain exceptions shared by the shop apps and the DRF handler that renders them."""
import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)


class ShopError(Exception):
    """Base exception for business-rule failures raised by the service layer."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Request could not be processed"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationFailure(ShopError):
    """Caller input breaks a business rule; retrying with corrected input can succeed."""

    default_message = "Invalid request"


class EmptyCartError(ValidationFailure):
    default_message = "Cart is empty"


class InvalidAddressError(ValidationFailure):
    default_message = "Invalid address"


class InsufficientStockError(ValidationFailure):
    def __init__(self, product_name=None, available=None, requested=None):
        self.product_name = product_name
        self.available = available
        self.requested = requested
        if product_name:
            message = f"Insufficient stock for {product_name}"
        else:
            message = "Insufficient stock"
        super().__init__(message)


class InvalidTransitionError(ValidationFailure):
    def __init__(self, current, event):
        self.current = current
        self.event = event
        super().__init__(f"Cannot {event} an order with status {current}")


class OwnershipError(ShopError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


class NotFoundError(ShopError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


def shop_exception_handler(exc, context):
    """
    REST_FRAMEWORK["EXCEPTION_HANDLER"].

    - ShopError subclasses -> {"message": ...} with the error's status code
    - DRF / Django HTTP exceptions -> DRF's default rendering
    - anything else -> logged, generic 500 envelope
    """
    if isinstance(exc, ShopError):
        return Response({"message": exc.message}, status=exc.status_code)

    response = exception_handler(exc, context)
    if response is not None:
        return response

    view = context.get("view")
    logger.exception("Unhandled error in %s", view.__class__.__name__ if view else "unknown view", exc_info=exc)
    return Response(
        {"message": "An unexpected error occurred"},
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
    )
