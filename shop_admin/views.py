from datetime import datetime, time, timedelta
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.utils import timezone
from django.utils.dateparse import parse_date
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAdminUser
from rest_framework.response import Response

from cart.services import abandoned_cart_count, abandoned_carts, average_cart_value
from django_shop.exceptions import ValidationFailure
from order import services as order_services
from order.models import Order
from order.serializers import AdminOrderSerializer
from product import services as product_services
from product.models import Product

User = get_user_model()

REPORT_DAYS = 30


def _day_bound(value, end=False):
    day = parse_date(value)
    if day is None:
        raise ValidationFailure(f"Invalid date: {value}")
    return timezone.make_aware(datetime.combine(day, time.max if end else time.min))


def _abandoned_cart_rows(carts):
    rows = []
    for cart in carts:
        items = cart.items.all()
        rows.append({
            "id": cart.pk,
            "user": cart.user.email if cart.user_id else None,
            "session_id": cart.session_id,
            "item_count": sum(item.quantity for item in items),
            "value": sum((item.subtotal for item in items), Decimal("0.00")),
            "updated_at": cart.updated_at,
        })
    return rows


# ---- DASHBOARD ----
@api_view(["GET"])
@permission_classes([IsAdminUser])
def dashboard(request):
    idle_since = timezone.now() - timedelta(days=1)
    revenue = order_services.revenue_summary()
    recent = Order.objects.select_related("user").prefetch_related("items")[:5]
    return Response({
        "users": User.objects.count(),
        "products": Product.objects.filter(is_active=True).count(),
        "orders": revenue["total_orders"],
        "pending_orders": revenue["pending"],
        "processing_orders": revenue["processing"],
        "revenue": revenue["revenue"],
        "low_stock_products": len(product_services.low_stock_products()),
        "average_cart_value": average_cart_value(),
        "abandoned_carts": abandoned_cart_count(idle_since),
        "recent_abandoned_carts": _abandoned_cart_rows(abandoned_carts(idle_since, limit=5)),
        "top_products": order_services.top_selling_products(5),
        "recent_orders": AdminOrderSerializer(recent, many=True).data,
    })


# ---- SALES REPORT ----
@api_view(["GET"])
@permission_classes([IsAdminUser])
def sales_report(request):
    """
    GET /api/admin/reports/sales/?startDate=2025-01-01&endDate=2025-01-31
    Defaults to the last 30 days. Cancelled orders are left out.
    """
    end_param = request.query_params.get("endDate")
    start_param = request.query_params.get("startDate")
    end = _day_bound(end_param, end=True) if end_param else timezone.now()
    start = _day_bound(start_param) if start_param else end - timedelta(days=REPORT_DAYS)
    if start > end:
        raise ValidationFailure("startDate must not be after endDate")

    days = order_services.daily_sales(start, end)
    return Response({
        "start": start,
        "end": end,
        "total": sum((row["total"] for row in days), 0),
        "orders": sum(row["orders"] for row in days),
        "days": days,
        "top_products": order_services.top_selling_products(10),
    })
