from decimal import Decimal

from django.conf import settings
from django.db import models
from django.db.models import Q
from product.models import Product

User = settings.AUTH_USER_MODEL


class Cart(models.Model):
    """
    Owned by a registered user or by an anonymous session token, never both.
    Ownership moves to the user when the session cart is merged on login.
    """
    user = models.OneToOneField(User, on_delete=models.CASCADE, null=True, blank=True, related_name="cart")
    session_id = models.CharField(max_length=64, unique=True, null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=(
                    Q(user__isnull=False, session_id__isnull=True)
                    | Q(user__isnull=True, session_id__isnull=False)
                ),
                name="cart_single_owner",
            ),
        ]

    def __str__(self):
        owner = f"user {self.user_id}" if self.user_id else f"session {self.session_id}"
        return f"Cart {self.pk} ({owner})"

    def lines(self):
        # an unsaved cart has no usable reverse manager
        if self.pk is None:
            return []
        return list(self.items.select_related("product").all())


class CartItem(models.Model):
    cart = models.ForeignKey(Cart, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="cart_items")
    quantity = models.PositiveIntegerField(default=1)
    # frozen at add time, never re-read from the product
    price = models.DecimalField(max_digits=10, decimal_places=2)
    added_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        unique_together = ("cart", "product")
        ordering = ("added_at", "id")

    def __str__(self):
        return f"{self.cart_id} - {self.product_id} x{self.quantity}"

    @property
    def subtotal(self):
        return Decimal(self.price) * self.quantity
