from decimal import Decimal

from rest_framework import serializers
from user.models import User


class AdminUserSerializer(serializers.ModelSerializer):
    order_count = serializers.IntegerField(read_only=True, default=0)
    total_spent = serializers.DecimalField(max_digits=12, decimal_places=2, read_only=True, default=Decimal("0.00"))

    class Meta:
        model = User
        fields = (
            "id",
            "email",
            "first_name",
            "last_name",
            "phone_number",
            "role",
            "is_active",
            "is_staff",
            "date_joined",
            "order_count",
            "total_spent",
        )
        read_only_fields = ("id", "email", "is_staff", "date_joined")
