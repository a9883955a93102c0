"""
Catalog queries and stock helpers.

Customer-facing reads always restrict to active products; admin callers pass
``include_inactive=True``. Stock is never decremented here: order placement
owns that through a conditional update in ``order.services``.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import transaction
from django.db.models import F

from django_shop.exceptions import NotFoundError, ValidationFailure
from django_shop.notifications import Advisory
from django_shop.pagination import page_params, page_slice, pagination_envelope
from .filters import ProductFilter
from .models import Product, ProductImage

logger = logging.getLogger(__name__)

SORT_ORDERS = {
    "name": ("name", "id"),
    "price": ("price", "id"),
    "price_desc": ("-price", "id"),
    "newest": ("-created_at", "-id"),
    "popular": ("-view_count", "id"),
}
DEFAULT_SORT = "name"

SUGGESTION_MIN_LENGTH = 2
SUGGESTION_LIMIT = 10


@dataclass
class ProductPage:
    products: list
    total_items: int
    page: int
    page_size: int

    @property
    def pagination(self):
        return pagination_envelope(self.total_items, self.page, self.page_size)


def catalog_queryset(include_inactive=False):
    qs = Product.objects.select_related("category").prefetch_related("images")
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs


def sort_key(value):
    value = (value or DEFAULT_SORT).lower()
    return value if value in SORT_ORDERS else DEFAULT_SORT


def list_products(params, include_inactive=False):
    """
    Filter, sort, count, then slice.

    ``params`` is any mapping of query parameters (``search``, ``categoryId``,
    ``minPrice``, ``maxPrice``, ``sortBy``, ``page``, ``pageSize``). The total
    is counted over the same filtered queryset before the page slice is taken.
    """
    page, page_size = page_params(params)
    filterset = ProductFilter(params, queryset=catalog_queryset(include_inactive))
    if not filterset.is_valid():
        field_name, errors = next(iter(filterset.errors.items()))
        raise ValidationFailure(f"Invalid {field_name}: {errors[0]}")

    qs = filterset.qs.order_by(*SORT_ORDERS[sort_key(params.get("sortBy"))])
    total_items = qs.count()
    products = list(page_slice(qs, page, page_size))
    return ProductPage(products=products, total_items=total_items, page=page, page_size=page_size)


def get_active_product(product_id):
    try:
        return catalog_queryset().get(pk=product_id)
    except (Product.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Product not found")


def check_stock_availability(product_id, quantity):
    """Plain read of current stock. Only a pre-check; order placement re-checks atomically."""
    stock = (
        Product.objects.filter(pk=product_id, is_active=True)
        .values_list("stock_quantity", flat=True)
        .first()
    )
    return stock is not None and stock >= quantity


def increment_view_count(product_id):
    return Product.objects.filter(pk=product_id).update(view_count=F("view_count") + 1) == 1


def featured_products(count=None):
    count = count or settings.SHOP["FEATURED_COUNT"]
    return list(catalog_queryset().filter(is_featured=True).order_by("name", "id")[:count])


def search_suggestions(query):
    query = (query or "").strip()
    if len(query) < SUGGESTION_MIN_LENGTH:
        return []
    names = (
        Product.objects.filter(is_active=True, name__icontains=query)
        .order_by("name")
        .values_list("name", flat=True)
        .distinct()
    )
    return list(names[:SUGGESTION_LIMIT])


def low_stock_products(threshold=None):
    if threshold is None:
        threshold = settings.SHOP["LOW_STOCK_THRESHOLD"]
    return list(
        Product.objects.select_related("category")
        .filter(is_active=True, stock_quantity__lt=threshold)
        .order_by("stock_quantity", "id")
    )


def stock_report(threshold=None):
    if threshold is None:
        threshold = settings.SHOP["LOW_STOCK_THRESHOLD"]
    active = Product.objects.filter(is_active=True)
    return {
        "total_products": active.count(),
        "out_of_stock": active.filter(stock_quantity=0).count(),
        "low_stock": active.filter(stock_quantity__gt=0, stock_quantity__lt=threshold).count(),
        "in_stock": active.filter(stock_quantity__gte=threshold).count(),
        "threshold": threshold,
    }


def soft_delete_product(product_id):
    updated = Product.objects.filter(pk=product_id, is_active=True).update(is_active=False)
    if not updated:
        raise NotFoundError("Product not found")
    logger.info("Product soft deleted: %s", product_id)


def set_stock(product_id, quantity):
    if quantity < 0:
        raise ValidationFailure("Stock quantity cannot be negative")
    if not Product.objects.filter(pk=product_id).update(stock_quantity=quantity):
        raise NotFoundError("Product not found")
    logger.info("Stock set for product %s: %s", product_id, quantity)


def discounted_price(product, percent):
    """Price after taking ``percent`` off the list price, rounded to cents."""
    percent = Decimal(str(percent))
    if percent < 0 or percent > 100:
        raise ValidationFailure("Discount percent must be between 0 and 100")
    price = Decimal(product.price) * (Decimal(100) - percent) / Decimal(100)
    return price.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


# best-effort image helpers: failures are logged and reported, never raised

def set_main_image(image_id):
    try:
        with transaction.atomic():
            image = ProductImage.objects.select_for_update().get(pk=image_id)
            ProductImage.objects.filter(product_id=image.product_id).update(is_main_image=False)
            image.is_main_image = True
            image.save(update_fields=["is_main_image", "updated_at"])
    except ProductImage.DoesNotExist:
        return Advisory(False, "image not found")
    except Exception as exc:
        logger.exception("Could not set main image %s", image_id)
        return Advisory(False, str(exc)[:300])
    return Advisory(True)


def delete_image(image_id):
    try:
        with transaction.atomic():
            deleted, _ = ProductImage.objects.filter(pk=image_id).delete()
    except Exception as exc:
        logger.exception("Could not delete image %s", image_id)
        return Advisory(False, str(exc)[:300])
    if not deleted:
        return Advisory(False, "image not found")
    return Advisory(True)
