# admin_products/serializers.py
from rest_framework import serializers
from django.db import transaction
from product.models import Product, ProductImage, Category
from product.serializers import ProductImageSerializer


class AdminCategorySerializer(serializers.ModelSerializer):
    product_count = serializers.IntegerField(read_only=True, required=False)

    class Meta:
        model = Category
        fields = ["id", "name", "slug", "description", "image_url", "parent", "is_active", "product_count"]
        read_only_fields = ["slug"]

    def validate_parent(self, value):
        if value is not None and self.instance is not None and value.pk == self.instance.pk:
            raise serializers.ValidationError("A category cannot be its own parent")
        return value


class AdminProductSerializer(serializers.ModelSerializer):
    category = AdminCategorySerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=Category.objects.all(), write_only=True, source="category"
    )
    images = ProductImageSerializer(many=True, read_only=True)
    # images_input: list of image urls; the first one becomes the main image
    images_input = serializers.ListField(child=serializers.CharField(max_length=500), write_only=True, required=False)

    class Meta:
        model = Product
        fields = [
            "id", "name", "description", "price", "discount_price", "stock_quantity",
            "sku", "brand", "is_featured", "is_active", "view_count",
            "category", "category_id", "images", "images_input",
            "created_at", "updated_at",
        ]
        read_only_fields = ("view_count", "created_at", "updated_at")

    # ---------------- VALIDATION ----------------

    def validate_price(self, value):
        if value < 0:
            raise serializers.ValidationError("Price cannot be negative")
        return value

    def validate_discount_price(self, value):
        if value is not None and value < 0:
            raise serializers.ValidationError("Discount price cannot be negative")
        return value

    def validate_stock_quantity(self, value):
        if value < 0:
            raise serializers.ValidationError("Stock quantity cannot be negative")
        return value

    def validate(self, attrs):
        price = attrs.get("price", getattr(self.instance, "price", None))
        discount = attrs.get("discount_price", getattr(self.instance, "discount_price", None))
        if price is not None and discount is not None and discount > price:
            raise serializers.ValidationError({"discount_price": "Discount price cannot exceed price"})
        return attrs

    def _add_images(self, product, urls):
        has_main = product.images.filter(is_main_image=True).exists()
        start = product.images.count()
        for offset, url in enumerate(u.strip() for u in urls if u and u.strip()):
            ProductImage.objects.create(
                product=product,
                image_url=url,
                alt_text=product.name,
                is_main_image=not has_main and offset == 0,
                display_order=start + offset,
            )

    @transaction.atomic
    def create(self, validated_data):
        images_input = validated_data.pop("images_input", None)
        product = super().create(validated_data)
        if images_input:
            self._add_images(product, images_input)
        return product

    @transaction.atomic
    def update(self, instance, validated_data):
        images_input = validated_data.pop("images_input", None)
        product = super().update(instance, validated_data)
        if images_input:
            self._add_images(product, images_input)
        return product


class StockUpdateSerializer(serializers.Serializer):
    stock_quantity = serializers.IntegerField(min_value=0)


class LowStockSerializer(serializers.ModelSerializer):
    category = serializers.CharField(source="category.name", read_only=True)

    class Meta:
        model = Product
        fields = ["id", "name", "sku", "stock_quantity", "category"]


class DiscountSerializer(serializers.Serializer):
    # 0 removes the discount
    percent = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=0, max_value=100)
