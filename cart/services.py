"""
Cart operations for one owner: a registered user or an anonymous session.

Stock checks here are advisory. Nothing is reserved until the order is
placed, where the decrement is conditional and transactional.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction
from django.db.models import Count, DecimalField, ExpressionWrapper, F, Sum
from django.utils import timezone

from django_shop.exceptions import (
    InsufficientStockError,
    NotFoundError,
    OwnershipError,
    ValidationFailure,
)
from product.models import Product
from product.services import check_stock_availability
from .models import Cart, CartItem
from .session import session_id_from_request

logger = logging.getLogger(__name__)

LINE_TOTAL = ExpressionWrapper(F("quantity") * F("price"), output_field=DecimalField(max_digits=12, decimal_places=2))


@dataclass(frozen=True)
class CartOwner:
    user: object = None
    session_id: str = None

    @classmethod
    def from_request(cls, request, session_id=None):
        if request.user and request.user.is_authenticated:
            return cls(user=request.user)
        return cls(session_id=session_id or session_id_from_request(request))

    @property
    def is_known(self):
        return self.user is not None or bool(self.session_id)

    def lookup(self):
        if self.user is not None:
            return {"user": self.user}
        return {"session_id": self.session_id}

    def owns(self, cart):
        if self.user is not None:
            return cart.user_id == self.user.pk
        return bool(self.session_id) and cart.session_id == self.session_id


class CartService:
    def __init__(self, owner):
        self.owner = owner

    # ----------------------------
    # reads
    # ----------------------------
    def get_cart(self):
        """Persisted cart, or an unsaved empty one. Reading never creates a row."""
        if self.owner.is_known:
            cart = Cart.objects.filter(**self.owner.lookup()).first()
            if cart is not None:
                return cart
        return Cart(**self.owner.lookup()) if self.owner.is_known else Cart()

    def get_or_create_cart(self):
        if not self.owner.is_known:
            raise ValidationFailure("Cart session is required")
        cart, created = Cart.objects.get_or_create(**self.owner.lookup())
        if created:
            logger.info("New cart %s created for %s", cart.pk, self.owner)
        return cart

    def totals(self, cart=None):
        cart = cart if cart is not None else self.get_cart()
        if cart.pk is None:
            return {"subtotal": Decimal("0.00"), "item_count": 0, "line_count": 0}
        agg = cart.items.aggregate(subtotal=Sum(LINE_TOTAL), item_count=Sum("quantity"), line_count=Count("id"))
        return {
            "subtotal": agg["subtotal"] or Decimal("0.00"),
            "item_count": agg["item_count"] or 0,
            "line_count": agg["line_count"],
        }

    def stock_issues(self, cart=None):
        """Lines asking for more than the product currently holds."""
        cart = cart if cart is not None else self.get_cart()
        issues = []
        for line in cart.lines():
            product = line.product
            if not product.is_active or product.stock_quantity < line.quantity:
                issues.append({
                    "item_id": line.pk,
                    "product_id": product.pk,
                    "product_name": product.name,
                    "available": product.stock_quantity if product.is_active else 0,
                    "requested": line.quantity,
                })
        return issues

    # ----------------------------
    # mutations
    # ----------------------------
    def add_item(self, product_id, quantity=1):
        if quantity < 1:
            raise ValidationFailure("Quantity must be at least 1")

        product = Product.objects.filter(pk=product_id, is_active=True).first()
        if product is None:
            raise NotFoundError("Product not found")

        with transaction.atomic():
            cart = self.get_or_create_cart()
            item = CartItem.objects.select_for_update().filter(cart=cart, product=product).first()
            requested = quantity + (item.quantity if item else 0)
            if not check_stock_availability(product.pk, requested):
                raise InsufficientStockError(product.name, product.stock_quantity, requested)

            if item is None:
                item = CartItem.objects.create(
                    cart=cart, product=product, quantity=quantity, price=product.effective_price
                )
                logger.info("Added product %s to cart %s", product.pk, cart.pk)
            else:
                item.quantity = requested
                item.save(update_fields=["quantity", "updated_at"])
                logger.info("Cart %s: product %s quantity now %s", cart.pk, product.pk, requested)
            self._touch(cart)
        return item

    def update_item(self, item_id, quantity):
        """quantity <= 0 removes the line. Returns the updated line or None if removed."""
        item = self._owned_item(item_id)
        if quantity <= 0:
            item.delete()
            self._touch(item.cart)
            logger.info("Removed cart item %s", item_id)
            return None

        product = item.product
        if not product.is_active:
            raise NotFoundError("Product not found")
        if not check_stock_availability(product.pk, quantity):
            raise InsufficientStockError(product.name, product.stock_quantity, quantity)

        item.quantity = quantity
        item.save(update_fields=["quantity", "updated_at"])
        self._touch(item.cart)
        logger.info("Updated cart item %s to quantity %s", item_id, quantity)
        return item

    def remove_item(self, item_id):
        item = self._owned_item(item_id)
        item.delete()
        self._touch(item.cart)
        logger.info("Removed cart item %s", item_id)

    def clear(self):
        cart = self.get_cart()
        if cart.pk is None:
            return 0
        deleted, _ = cart.items.all().delete()
        if deleted:
            self._touch(cart)
            logger.info("Cleared cart %s", cart.pk)
        return deleted

    # ----------------------------
    # helpers
    # ----------------------------
    def _owned_item(self, item_id):
        item = CartItem.objects.select_related("cart", "product").filter(pk=item_id).first()
        if item is None:
            raise NotFoundError("Cart item not found")
        if not self.owner.owns(item.cart):
            raise OwnershipError("Access denied to this cart item")
        return item

    @staticmethod
    def _touch(cart):
        Cart.objects.filter(pk=cart.pk).update(updated_at=timezone.now())


def merge_session_cart(user, session_id):
    """
    Fold the anonymous cart identified by ``session_id`` into ``user``'s cart.

    Shared products have their quantities summed, other lines are re-owned,
    and the session cart is deleted. When the user has no cart yet the
    session cart itself is handed over.
    """
    if not session_id:
        return None

    with transaction.atomic():
        session_cart = Cart.objects.select_for_update().filter(session_id=session_id).first()
        user_cart = Cart.objects.select_for_update().filter(user=user).first()

        if session_cart is None:
            return user_cart

        if user_cart is None:
            session_cart.user = user
            session_cart.session_id = None
            session_cart.save(update_fields=["user", "session_id", "updated_at"])
            logger.info("Transferred session cart %s to user %s", session_cart.pk, user.pk)
            return session_cart

        existing = {item.product_id: item for item in user_cart.items.select_for_update()}
        for line in session_cart.items.all():
            target = existing.get(line.product_id)
            if target is not None:
                target.quantity += line.quantity
                target.save(update_fields=["quantity", "updated_at"])
            else:
                line.cart = user_cart
                line.save(update_fields=["cart", "updated_at"])

        session_cart.delete()
        user_cart.save(update_fields=["updated_at"])
        logger.info("Merged session cart into cart %s for user %s", user_cart.pk, user.pk)
        return user_cart


def abandoned_carts(since, limit=10):
    """Carts with lines that nobody touched after ``since``, most recent first."""
    return list(
        Cart.objects.filter(updated_at__lt=since, items__isnull=False)
        .distinct()
        .select_related("user")
        .prefetch_related("items__product")
        .order_by("-updated_at")[:limit]
    )


def abandoned_cart_count(since):
    return Cart.objects.filter(updated_at__lt=since, items__isnull=False).distinct().count()


def average_cart_value():
    agg = (
        CartItem.objects.aggregate(total=Sum(LINE_TOTAL), carts=Count("cart", distinct=True))
    )
    if not agg["carts"]:
        return Decimal("0.00")
    return (agg["total"] / agg["carts"]).quantize(Decimal("0.01"))
