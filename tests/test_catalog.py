"""Product catalog query, stock helpers and public product endpoints."""
from decimal import Decimal

import pytest
from django.db import IntegrityError, transaction

from django_shop.exceptions import NotFoundError, ValidationFailure
from product import services
from product.models import Category, Product, ProductImage


@pytest.fixture
def catalog(make_product, category):
    books = Category.objects.create(name="Books")
    return {
        "laptop": make_product("Laptop", "1500.00", brand="Acme", description="Fast machine"),
        "mouse": make_product("Mouse", "25.00", brand="Acme"),
        "novel": make_product("Novel", "12.50", category=books, description="A long story"),
        "hidden": make_product("Hidden lamp", "40.00", is_active=False),
    }


class TestListProducts:
    def test_pagination_over_23_products(self, make_product):
        for i in range(23):
            make_product(f"Item {i:02d}")

        first = services.list_products({"page": "1", "pageSize": "10"})
        last = services.list_products({"page": "3", "pageSize": "10"})

        assert first.pagination == {"currentPage": 1, "pageSize": 10, "totalItems": 23, "totalPages": 3}
        assert len(first.products) == 10
        assert [p.name for p in last.products] == ["Item 20", "Item 21", "Item 22"]

    def test_page_past_the_end_is_empty(self, make_product):
        make_product()
        result = services.list_products({"page": "5", "pageSize": "10"})
        assert result.products == []
        assert result.total_items == 1

    def test_inactive_products_are_hidden(self, catalog):
        names = [p.name for p in services.list_products({}).products]
        assert "Hidden lamp" not in names
        assert len(names) == 3

    def test_admin_listing_includes_inactive(self, catalog):
        result = services.list_products({}, include_inactive=True)
        assert result.total_items == 4

    def test_search_matches_name_description_and_brand(self, catalog):
        def names(term):
            return {p.name for p in services.list_products({"search": term}).products}

        assert names("lapt") == {"Laptop"}
        assert names("STORY") == {"Novel"}
        assert names("acme") == {"Laptop", "Mouse"}

    def test_category_and_price_range(self, catalog):
        books = catalog["novel"].category
        assert [p.name for p in services.list_products({"categoryId": str(books.pk)}).products] == ["Novel"]

        in_range = services.list_products({"minPrice": "20", "maxPrice": "100"})
        assert [p.name for p in in_range.products] == ["Mouse"]

    def test_sorting(self, catalog):
        by_price = services.list_products({"sortBy": "price"}).products
        assert [p.name for p in by_price] == ["Novel", "Mouse", "Laptop"]

        by_price_desc = services.list_products({"sortBy": "price_desc"}).products
        assert [p.name for p in by_price_desc] == ["Laptop", "Mouse", "Novel"]

    def test_unknown_sort_falls_back_to_name(self, catalog):
        result = services.list_products({"sortBy": "whatever"}).products
        assert [p.name for p in result] == ["Laptop", "Mouse", "Novel"]

    def test_invalid_price_filter(self, catalog):
        with pytest.raises(ValidationFailure):
            services.list_products({"minPrice": "cheap"})


class TestStockHelpers:
    def test_check_stock_availability(self, make_product):
        product = make_product(stock=3)
        assert services.check_stock_availability(product.pk, 3)
        assert not services.check_stock_availability(product.pk, 4)
        assert not services.check_stock_availability(999999, 1)

    def test_inactive_product_has_no_availability(self, make_product):
        product = make_product(stock=3, is_active=False)
        assert not services.check_stock_availability(product.pk, 1)

    def test_set_stock(self, product):
        services.set_stock(product.pk, 42)
        product.refresh_from_db()
        assert product.stock_quantity == 42

    def test_set_stock_rejects_negative(self, product):
        with pytest.raises(ValidationFailure):
            services.set_stock(product.pk, -1)

    def test_set_stock_missing_product(self, db):
        with pytest.raises(NotFoundError):
            services.set_stock(424242, 1)

    def test_database_refuses_negative_stock(self, product):
        with pytest.raises(IntegrityError):
            with transaction.atomic():
                Product.objects.filter(pk=product.pk).update(stock_quantity=-1)

    def test_stock_report(self, make_product):
        make_product(stock=0)
        make_product(stock=4)
        make_product(stock=50)
        report = services.stock_report(threshold=10)
        assert report == {"total_products": 3, "out_of_stock": 1, "low_stock": 1, "in_stock": 1, "threshold": 10}
        assert [p.stock_quantity for p in services.low_stock_products(10)] == [0, 4]


class TestCatalogHelpers:
    def test_suggestions_need_two_characters(self, catalog):
        assert services.search_suggestions("l") == []
        assert services.search_suggestions("  ") == []

    def test_suggestions_are_distinct_and_capped(self, make_product):
        for i in range(12):
            make_product(f"Phone {i:02d}")
        make_product("Phone 00")

        suggestions = services.search_suggestions("phone")
        assert len(suggestions) == 10
        assert len(set(suggestions)) == 10
        assert suggestions[0] == "Phone 00"

    def test_suggestions_skip_inactive(self, catalog):
        assert services.search_suggestions("lamp") == []

    def test_featured(self, make_product):
        make_product("B", is_featured=True)
        make_product("A", is_featured=True)
        make_product("C")
        assert [p.name for p in services.featured_products(5)] == ["A", "B"]

    def test_discounted_price(self, product):
        assert services.discounted_price(product, 15) == Decimal("85.00")
        with pytest.raises(ValidationFailure):
            services.discounted_price(product, 120)

    def test_soft_delete(self, product):
        services.soft_delete_product(product.pk)
        product.refresh_from_db()
        assert product.is_active is False
        with pytest.raises(NotFoundError):
            services.get_active_product(product.pk)


class TestImages:
    def test_set_main_image_is_exclusive(self, product):
        first = ProductImage.objects.create(product=product, image_url="a.jpg", is_main_image=True)
        second = ProductImage.objects.create(product=product, image_url="b.jpg")

        result = services.set_main_image(second.pk)

        assert result
        first.refresh_from_db()
        second.refresh_from_db()
        assert not first.is_main_image
        assert second.is_main_image

    def test_missing_image_reports_failure(self, db):
        result = services.set_main_image(31337)
        assert not result
        assert result.detail == "image not found"
        assert not services.delete_image(31337)

    def test_delete_image(self, product):
        image = ProductImage.objects.create(product=product, image_url="a.jpg")
        assert services.delete_image(image.pk)
        assert not ProductImage.objects.exists()


@pytest.mark.django_db
class TestProductApi:
    def test_list_envelope(self, api_client, catalog):
        response = api_client.get("/api/products/", {"pageSize": 2, "sortBy": "price"})
        body = response.json()
        assert response.status_code == 200
        assert [p["name"] for p in body["products"]] == ["Novel", "Mouse"]
        assert body["pagination"]["totalPages"] == 2

    def test_invalid_filter_is_a_bad_request(self, api_client, catalog):
        response = api_client.get("/api/products/", {"minPrice": "abc"})
        assert response.status_code == 400
        assert "message" in response.json()

    def test_detail_counts_views(self, api_client, product):
        api_client.get(f"/api/products/{product.pk}/")
        api_client.get(f"/api/products/{product.pk}/")
        product.refresh_from_db()
        assert product.view_count == 2

    def test_inactive_detail_is_not_found(self, api_client, catalog):
        response = api_client.get(f"/api/products/{catalog['hidden'].pk}/")
        assert response.status_code == 404
        assert response.json() == {"message": "Product not found"}

    def test_search_suggestions(self, api_client, catalog):
        response = api_client.get("/api/products/search-suggestions/", {"q": "mo"})
        assert response.json() == ["Mouse"]

    def test_category_products(self, api_client, catalog):
        books = catalog["novel"].category
        response = api_client.get(f"/api/categories/{books.pk}/products/")
        assert [p["name"] for p in response.json()["products"]] == ["Novel"]
