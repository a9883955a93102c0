"""Error rendering by the DRF exception handler."""
from rest_framework import status
from rest_framework.exceptions import NotAuthenticated

from django_shop.exceptions import (
    InsufficientStockError,
    InvalidTransitionError,
    NotFoundError,
    OwnershipError,
    ValidationFailure,
    shop_exception_handler,
)


def _handle(exc):
    return shop_exception_handler(exc, {"view": None})


class TestShopErrors:
    def test_validation_failure(self):
        response = _handle(ValidationFailure("Quantity must be at least 1"))
        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.data == {"message": "Quantity must be at least 1"}

    def test_not_found(self):
        assert _handle(NotFoundError()).status_code == status.HTTP_404_NOT_FOUND

    def test_ownership(self):
        response = _handle(OwnershipError())
        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.data == {"message": "Access denied"}

    def test_insufficient_stock_carries_details(self):
        exc = InsufficientStockError("Lamp", 1, 3)
        assert (exc.available, exc.requested) == (1, 3)
        assert _handle(exc).data == {"message": "Insufficient stock for Lamp"}

    def test_invalid_transition_is_a_validation_failure(self):
        exc = InvalidTransitionError("Delivered", "cancel")
        assert isinstance(exc, ValidationFailure)
        assert exc.message == "Cannot cancel an order with status Delivered"


class TestOtherErrors:
    def test_drf_exceptions_keep_default_rendering(self):
        response = _handle(NotAuthenticated())
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert "detail" in response.data

    def test_unexpected_error_is_500(self):
        response = _handle(RuntimeError("database on fire"))
        assert response.status_code == status.HTTP_500_INTERNAL_SERVER_ERROR
        assert response.data == {"message": "An unexpected error occurred"}
        assert "database on fire" not in str(response.data)
