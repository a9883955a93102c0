# order/serializers.py
from rest_framework import serializers
from .models import Order, OrderItem, Notification


class OrderItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderItem
        fields = ["id", "product", "product_name", "unit_price", "quantity", "total_price"]
        read_only_fields = fields


class OrderSerializer(serializers.ModelSerializer):
    items = OrderItemSerializer(many=True, read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Order
        fields = [
            "id",
            "order_number",
            "order_date",
            "status",
            "status_display",
            "shipping_first_name",
            "shipping_last_name",
            "shipping_email",
            "shipping_phone",
            "shipping_address",
            "shipping_city",
            "shipping_postal_code",
            "shipping_country",
            "payment_method",
            "payment_transaction_id",
            "payment_date",
            "subtotal",
            "shipping_cost",
            "tax_amount",
            "total_amount",
            "tracking_number",
            "cancelled_at",
            "items",
        ]
        read_only_fields = fields  # all are read-only for output only


class AdminOrderSerializer(OrderSerializer):
    user_email = serializers.EmailField(source="user.email", read_only=True)

    class Meta(OrderSerializer.Meta):
        fields = OrderSerializer.Meta.fields + ["user", "user_email", "refund_reason", "updated_at"]
        read_only_fields = fields


class OrderTrackingSerializer(serializers.ModelSerializer):
    """Public subset for anonymous tracking by order number."""
    item_count = serializers.IntegerField(read_only=True)

    class Meta:
        model = Order
        fields = ["order_number", "status", "order_date", "shipping_city", "item_count", "total_amount", "tracking_number"]
        read_only_fields = fields


class CreateOrderSerializer(serializers.Serializer):
    """
    Body: { "addressId": <id>, "paymentMethod": "<method>" }
    ``address_id`` / ``payment_method`` are accepted as well.
    """
    ALIASES = {"address_id": "addressId", "payment_method": "paymentMethod"}

    addressId = serializers.IntegerField(source="address_id")
    paymentMethod = serializers.CharField(source="payment_method", max_length=50)

    def to_internal_value(self, data):
        if hasattr(data, "keys"):
            data = {key: data[key] for key in data.keys()}
            for snake, camel in self.ALIASES.items():
                if snake in data and camel not in data:
                    data[camel] = data.pop(snake)
        return super().to_internal_value(data)


class NotificationReadSerializer(serializers.Serializer):
    ids = serializers.ListField(child=serializers.IntegerField(min_value=1), required=False, allow_empty=True)


class PaymentSerializer(serializers.Serializer):
    transaction_id = serializers.CharField(max_length=255, allow_blank=True)


class NotificationSerializer(serializers.ModelSerializer):
    class Meta:
        model = Notification
        fields = ["id", "order", "message", "created_at", "read"]
        read_only_fields = ["id", "order", "message", "created_at"]
