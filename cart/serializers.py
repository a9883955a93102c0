from decimal import Decimal

from rest_framework import serializers
from .models import Cart, CartItem
from product.models import Product


class ProductBriefSerializer(serializers.ModelSerializer):
    class Meta:
        model = Product
        fields = ("id", "name", "price", "discount_price", "stock_quantity", "is_active")


class CartItemSerializer(serializers.ModelSerializer):
    product_detail = ProductBriefSerializer(source="product", read_only=True)
    subtotal = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True)

    class Meta:
        model = CartItem
        fields = ("id", "product", "product_detail", "quantity", "price", "subtotal", "added_at")
        read_only_fields = fields


class CartSerializer(serializers.BaseSerializer):
    """Read-only cart view; lines are loaded once and totals derived from them."""

    def to_representation(self, cart):
        lines = cart.lines()
        subtotal = sum((line.subtotal for line in lines), Decimal("0.00"))
        return {
            "id": cart.pk,
            "session_id": cart.session_id,
            "items": CartItemSerializer(lines, many=True).data,
            "subtotal": f"{subtotal:.2f}",
            "item_count": sum(line.quantity for line in lines),
        }


class AddItemSerializer(serializers.Serializer):
    product_id = serializers.IntegerField()
    quantity = serializers.IntegerField(default=1, min_value=1)


class UpdateItemSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
