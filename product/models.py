from decimal import Decimal, ROUND_HALF_UP

from django.db import models
from django.db.models import Q
from django.utils.text import slugify


class Category(models.Model):
    name = models.CharField(max_length=100, unique=True)
    slug = models.SlugField(max_length=120, unique=True, blank=True)
    description = models.TextField(blank=True, default="")
    image_url = models.CharField(max_length=500, blank=True, default="")
    parent = models.ForeignKey(
        "self", on_delete=models.SET_NULL, null=True, blank=True, related_name="children"
    )
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        verbose_name_plural = "categories"

    def __str__(self):
        return self.name

    def save(self, *args, **kwargs):
        if not self.slug:
            self.slug = slugify(self.name)
        super().save(*args, **kwargs)


class Product(models.Model):
    category = models.ForeignKey(
        Category, on_delete=models.PROTECT, related_name="products"
    )
    name = models.CharField(max_length=200)
    description = models.TextField(blank=True, default="")
    price = models.DecimalField(max_digits=10, decimal_places=2)
    discount_price = models.DecimalField(max_digits=10, decimal_places=2, null=True, blank=True)
    stock_quantity = models.IntegerField(default=0)
    sku = models.CharField(max_length=50, unique=True)
    brand = models.CharField(max_length=100, blank=True, default="")
    is_featured = models.BooleanField(default=False)
    is_active = models.BooleanField(default=True)
    # denormalized counter, bumped with F() on every detail view
    view_count = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.CheckConstraint(
                condition=Q(stock_quantity__gte=0), name="product_stock_non_negative"
            ),
        ]

    def __str__(self):
        return self.name

    @property
    def has_discount(self):
        return self.discount_price is not None and self.discount_price < self.price

    @property
    def effective_price(self):
        """Price a customer pays right now: discount price when set, list price otherwise."""
        if self.discount_price is not None:
            return self.discount_price
        return self.price

    @property
    def discount_percent(self):
        if not self.has_discount or not self.price:
            return Decimal("0.0")
        percent = (Decimal(self.price) - Decimal(self.discount_price)) / Decimal(self.price) * Decimal(100)
        return percent.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP)

    @property
    def main_image(self):
        images = list(self.images.all())
        for image in images:
            if image.is_main_image:
                return image
        return images[0] if images else None


class ProductImage(models.Model):
    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="images")
    image_url = models.CharField(max_length=500)
    alt_text = models.CharField(max_length=200, blank=True, default="")
    is_main_image = models.BooleanField(default=False)
    display_order = models.PositiveIntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["display_order", "id"]

    def __str__(self):
        return f"{self.product_id}: {self.image_url}"
