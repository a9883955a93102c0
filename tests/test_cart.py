"""Cart service and cart endpoints."""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.management import call_command
from django.utils import timezone

from cart.models import Cart, CartItem
from cart.services import (
    CartOwner,
    CartService,
    abandoned_cart_count,
    average_cart_value,
    merge_session_cart,
)
from django_shop.exceptions import (
    InsufficientStockError,
    NotFoundError,
    OwnershipError,
    ValidationFailure,
)
from product.models import Product


class TestReadCart:
    def test_unknown_session_gets_transient_cart(self, session_cart):
        cart = session_cart.get_cart()
        assert cart.pk is None
        assert cart.lines() == []
        assert Cart.objects.count() == 0

    def test_totals_of_transient_cart(self, session_cart):
        assert session_cart.totals() == {"subtotal": Decimal("0.00"), "item_count": 0, "line_count": 0}

    def test_totals(self, user_cart, make_product):
        user_cart.add_item(make_product(price="10.00").pk, 2)
        user_cart.add_item(make_product(price="2.50").pk, 4)
        totals = user_cart.totals()
        assert totals["subtotal"] == Decimal("30.00")
        assert totals["item_count"] == 6
        assert totals["line_count"] == 2


class TestAddItem:
    def test_merges_into_existing_line(self, user_cart, product):
        user_cart.add_item(product.pk, 2)
        user_cart.add_item(product.pk, 3)
        line = CartItem.objects.get()
        assert line.quantity == 5

    def test_freezes_effective_price(self, user_cart, make_product):
        product = make_product(price="100.00", discount_price=Decimal("75.00"))
        user_cart.add_item(product.pk, 1)
        Product.objects.filter(pk=product.pk).update(price=Decimal("1.00"), discount_price=None)

        line = user_cart.get_cart().lines()[0]
        assert line.price == Decimal("75.00")

    def test_inactive_product(self, user_cart, make_product):
        product = make_product(is_active=False)
        with pytest.raises(NotFoundError):
            user_cart.add_item(product.pk, 1)

    def test_missing_product(self, user_cart, db):
        with pytest.raises(NotFoundError):
            user_cart.add_item(987654, 1)

    def test_existing_plus_new_exceeds_stock(self, user_cart, make_product):
        product = make_product(stock=5)
        user_cart.add_item(product.pk, 3)
        with pytest.raises(InsufficientStockError):
            user_cart.add_item(product.pk, 3)
        assert CartItem.objects.get().quantity == 3

    def test_quantity_must_be_positive(self, user_cart, product):
        with pytest.raises(ValidationFailure):
            user_cart.add_item(product.pk, 0)


class TestUpdateAndRemove:
    def test_update_quantity(self, user_cart, product):
        line = user_cart.add_item(product.pk, 1)
        updated = user_cart.update_item(line.pk, 4)
        assert updated.quantity == 4

    def test_zero_quantity_deletes_line(self, user_cart, product):
        line = user_cart.add_item(product.pk, 1)
        assert user_cart.update_item(line.pk, 0) is None
        assert CartItem.objects.count() == 0

    def test_update_rechecks_stock(self, user_cart, product):
        line = user_cart.add_item(product.pk, 1)
        with pytest.raises(InsufficientStockError):
            user_cart.update_item(line.pk, 11)

    def test_other_owner_is_rejected(self, user_cart, session_cart, product):
        line = session_cart.add_item(product.pk, 1)
        with pytest.raises(OwnershipError):
            user_cart.update_item(line.pk, 2)
        with pytest.raises(OwnershipError):
            user_cart.remove_item(line.pk)
        assert CartItem.objects.get().quantity == 1

    def test_missing_line(self, user_cart, db):
        with pytest.raises(NotFoundError):
            user_cart.update_item(12345, 1)
        with pytest.raises(NotFoundError):
            user_cart.remove_item(12345)

    def test_remove(self, user_cart, product):
        line = user_cart.add_item(product.pk, 1)
        user_cart.remove_item(line.pk)
        assert CartItem.objects.count() == 0


class TestClear:
    def test_clear_transient_cart_is_noop(self, user_cart):
        assert user_cart.clear() == 0
        assert user_cart.totals()["item_count"] == 0

    def test_clear_twice(self, user_cart, product):
        user_cart.add_item(product.pk, 2)
        assert user_cart.clear() == 1
        assert user_cart.clear() == 0
        assert user_cart.totals()["item_count"] == 0


class TestMerge:
    def test_sums_shared_products_and_moves_others(self, user, user_cart, session_cart, make_product):
        shared = make_product(name="Shared")
        only_session = make_product(name="Session only")
        user_cart.add_item(shared.pk, 1)
        session_cart.add_item(shared.pk, 2)
        session_cart.add_item(only_session.pk, 1)

        cart = merge_session_cart(user, "anon-session-1")

        quantities = {line.product.name: line.quantity for line in cart.lines()}
        assert quantities == {"Shared": 3, "Session only": 1}
        assert not Cart.objects.filter(session_id="anon-session-1").exists()

    def test_session_cart_handed_over_when_user_has_none(self, user, session_cart, product):
        session_cart.add_item(product.pk, 2)
        session_pk = session_cart.get_cart().pk

        cart = merge_session_cart(user, "anon-session-1")

        assert cart.pk == session_pk
        assert cart.user_id == user.pk
        assert cart.session_id is None

    def test_unknown_session_is_harmless(self, user, user_cart, product):
        user_cart.add_item(product.pk, 1)
        cart = merge_session_cart(user, "nope")
        assert cart.lines()[0].quantity == 1


class TestStats:
    def test_stock_issues(self, user_cart, make_product):
        product = make_product(name="Lamp", stock=5)
        user_cart.add_item(product.pk, 4)
        Product.objects.filter(pk=product.pk).update(stock_quantity=1)

        issues = user_cart.stock_issues()
        assert issues == [{
            "item_id": CartItem.objects.get().pk,
            "product_id": product.pk,
            "product_name": "Lamp",
            "available": 1,
            "requested": 4,
        }]

    def test_average_cart_value(self, user_cart, session_cart, make_product):
        user_cart.add_item(make_product(price="10.00").pk, 1)
        session_cart.add_item(make_product(price="30.00").pk, 1)
        assert average_cart_value() == Decimal("20.00")

    def test_abandoned_carts(self, user_cart, product):
        user_cart.add_item(product.pk, 1)
        Cart.objects.update(updated_at=timezone.now() - timedelta(days=3))
        assert abandoned_cart_count(timezone.now() - timedelta(days=1)) == 1
        assert abandoned_cart_count(timezone.now() - timedelta(days=5)) == 0

    def test_purge_command(self, user_cart, session_cart, make_product):
        user_cart.add_item(make_product().pk, 1)
        session_cart.add_item(make_product().pk, 1)
        Cart.objects.filter(session_id="anon-session-1").update(updated_at=timezone.now() - timedelta(days=40))

        call_command("purge_abandoned_carts", "--days", "30")

        assert Cart.objects.count() == 1
        assert Cart.objects.get().session_id is None


@pytest.mark.django_db
class TestCartApi:
    def test_anonymous_add_issues_session_cookie(self, api_client, product):
        response = api_client.post("/api/cart/items/", {"product_id": product.pk, "quantity": 2}, format="json")

        assert response.status_code == 201
        session_id = response.cookies["cart_session"].value
        assert session_id
        assert response.json()["item_count"] == 2

        follow_up = api_client.get("/api/cart/", HTTP_X_CART_SESSION=session_id)
        assert follow_up.json()["items"][0]["product"] == product.pk

    def test_get_without_cart(self, api_client):
        response = api_client.get("/api/cart/")
        assert response.status_code == 200
        assert response.json()["items"] == []
        assert Cart.objects.count() == 0

    def test_oversized_session_token_is_ignored(self, api_client, product):
        token = "x" * 65

        response = api_client.post(
            "/api/cart/items/", {"product_id": product.pk, "quantity": 1}, format="json",
            HTTP_X_CART_SESSION=token,
        )

        assert response.status_code == 201
        assert response.cookies["cart_session"].value != token
        assert not Cart.objects.filter(session_id=token).exists()
        assert api_client.get("/api/cart/", HTTP_X_CART_SESSION=token).json()["items"] == []

    def test_clear_empty_cart(self, auth_client):
        response = auth_client.delete("/api/cart/")
        assert response.status_code == 200
        assert response.json()["item_count"] == 0

    def test_insufficient_stock_message(self, auth_client, make_product):
        product = make_product(name="Tablet", stock=1)
        response = auth_client.post("/api/cart/items/", {"product_id": product.pk, "quantity": 2}, format="json")
        assert response.status_code == 400
        assert response.json() == {"message": "Insufficient stock for Tablet"}

    def test_update_foreign_line_is_forbidden(self, auth_client, session_cart, product):
        line = session_cart.add_item(product.pk, 1)
        response = auth_client.patch(f"/api/cart/items/{line.pk}/", {"quantity": 3}, format="json")
        assert response.status_code == 403

    def test_merge_endpoint(self, auth_client, session_cart, product):
        session_cart.add_item(product.pk, 2)
        response = auth_client.post("/api/cart/merge/", {"session_id": "anon-session-1"}, format="json")
        assert response.status_code == 200
        assert response.json()["item_count"] == 2

    def test_login_merges_session_cart(self, api_client, user, session_cart, product):
        session_cart.add_item(product.pk, 2)
        response = api_client.post(
            "/api/auth/login/",
            {"email": "ada@example.com", "password": "S3cure-pass!"},
            format="json",
            HTTP_X_CART_SESSION="anon-session-1",
        )
        assert response.status_code == 200
        assert CartService(CartOwner(user=user)).totals()["item_count"] == 2
