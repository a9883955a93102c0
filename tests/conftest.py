"""Pytest fixtures for the shop tests."""
from decimal import Decimal
from itertools import count

import pytest
from rest_framework.test import APIClient

from cart.services import CartOwner, CartService
from product.models import Category, Product
from user.models import Address, User

PASSWORD = "S3cure-pass!"

_sku = count(1)


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def user(db):
    return User.objects.create_user(
        email="ada@example.com", password=PASSWORD, first_name="Ada", last_name="Buyer"
    )


@pytest.fixture
def other_user(db):
    return User.objects.create_user(
        email="bob@example.com", password=PASSWORD, first_name="Bob", last_name="Other"
    )


@pytest.fixture
def seller(db):
    return User.objects.create_user(
        email="seller@example.com", password=PASSWORD, first_name="Sam", last_name="Seller",
        role=User.Role.SELLER,
    )


@pytest.fixture
def staff(db):
    return User.objects.create_superuser(email="admin@example.com", password=PASSWORD)


def _client_for(account):
    client = APIClient()
    client.force_authenticate(account)
    return client


@pytest.fixture
def auth_client(user):
    return _client_for(user)


@pytest.fixture
def other_client(other_user):
    return _client_for(other_user)


@pytest.fixture
def seller_client(seller):
    return _client_for(seller)


@pytest.fixture
def staff_client(staff):
    return _client_for(staff)


@pytest.fixture
def category(db):
    return Category.objects.create(name="Electronics")


@pytest.fixture
def make_product(category):
    def make(name="Laptop", price="100.00", stock=10, **extra):
        extra.setdefault("sku", f"SKU-{next(_sku):05d}")
        extra.setdefault("category", category)
        return Product.objects.create(
            name=name, price=Decimal(price), stock_quantity=stock, **extra
        )
    return make


@pytest.fixture
def product(make_product):
    return make_product()


@pytest.fixture
def address(user):
    return Address.objects.create(
        user=user,
        title="Home",
        first_name="Ada",
        last_name="Buyer",
        phone="5550001111",
        address_line1="Istiklal Cd. 1",
        address_line2="Daire 3",
        city="Istanbul",
        postal_code="34000",
        country="Turkey",
        is_default=True,
    )


@pytest.fixture
def user_cart(user):
    return CartService(CartOwner(user=user))


@pytest.fixture
def session_cart(db):
    return CartService(CartOwner(session_id="anon-session-1"))
