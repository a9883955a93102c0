from rest_framework import serializers
from .models import Product, Category, ProductImage


class CategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = Category
        fields = ("id", "name", "slug", "description", "image_url", "parent", "is_active")
        read_only_fields = ("slug",)


class ProductImageSerializer(serializers.ModelSerializer):
    class Meta:
        model = ProductImage
        fields = ("id", "image_url", "alt_text", "is_main_image", "display_order")


class ProductMiniSerializer(serializers.ModelSerializer):
    # minimal product shape for lists and cart previews
    category = serializers.CharField(source="category.name", read_only=True)
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    main_image = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = (
            "id", "name", "price", "discount_price", "effective_price",
            "stock_quantity", "brand", "category", "main_image",
        )

    def get_main_image(self, obj):
        image = obj.main_image
        return image.image_url if image else None


class ProductSerializer(serializers.ModelSerializer):
    category = CategorySerializer(read_only=True)
    category_id = serializers.PrimaryKeyRelatedField(
        source="category", queryset=Category.objects.all(), write_only=True
    )
    images = ProductImageSerializer(many=True, read_only=True)
    effective_price = serializers.DecimalField(max_digits=10, decimal_places=2, read_only=True)
    discount_percent = serializers.DecimalField(max_digits=4, decimal_places=1, read_only=True)

    class Meta:
        model = Product
        fields = (
            "id", "name", "description", "price", "discount_price", "effective_price",
            "has_discount", "discount_percent", "stock_quantity", "sku", "brand",
            "category", "category_id", "images", "is_featured", "is_active",
            "view_count", "created_at", "updated_at",
        )
        read_only_fields = ("view_count", "created_at", "updated_at")

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
