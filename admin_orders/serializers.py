# admin_orders/serializers.py
from rest_framework import serializers
from order.models import OrderStatus


class OrderStatusChangeSerializer(serializers.Serializer):
    """
    Body of PATCH admin/orders/<id>/status/.
    Extra fields only matter for the event that reaches ``status``.
    """
    status = serializers.ChoiceField(choices=OrderStatus.choices)
    tracking_number = serializers.CharField(max_length=100, required=False, allow_blank=True)
    transaction_id = serializers.CharField(max_length=255, required=False, allow_blank=True)
    reason = serializers.CharField(required=False, allow_blank=True)
