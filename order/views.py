# order/views.py
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from django_shop.exceptions import ValidationFailure

from . import services
from .models import Notification
from .serializers import (
    CreateOrderSerializer,
    NotificationReadSerializer,
    NotificationSerializer,
    OrderSerializer,
    OrderTrackingSerializer,
    PaymentSerializer,
)


def _workflow_response(result, message, status_code=status.HTTP_200_OK):
    return Response(
        {
            "message": message,
            "order": OrderSerializer(result.order).data,
            "notification_sent": result.notification_sent,
        },
        status=status_code,
    )


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def orders(request):
    """
    GET  /api/orders/ -> caller's orders, newest first
    POST /api/orders/ -> place an order from the caller's cart
         Body: { "addressId": <id>, "paymentMethod": "<method>" }
    """
    if request.method == "GET":
        return Response(OrderSerializer(services.user_orders(request.user), many=True).data)

    serializer = CreateOrderSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = services.create_order(
        request.user,
        serializer.validated_data["address_id"],
        serializer.validated_data["payment_method"],
    )
    return _workflow_response(result, "Order placed", status.HTTP_201_CREATED)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def order_detail(request, order_id):
    order = services.get_user_order(order_id, request.user)
    return Response(OrderSerializer(order).data)


@api_view(["PUT", "POST"])
@permission_classes([IsAuthenticated])
def cancel_order(request, order_id):
    result = services.cancel_order(order_id, request.user)
    return _workflow_response(result, "Order cancelled")


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def pay_order(request, order_id):
    """
    POST /api/orders/<id>/pay/
    Body: { "transaction_id": "<gateway reference>" }
    """
    serializer = PaymentSerializer(data=request.data)
    serializer.is_valid(raise_exception=True)
    result = services.process_payment(order_id, serializer.validated_data["transaction_id"], user=request.user)
    return _workflow_response(result, "Payment recorded")


@api_view(["GET"])
@permission_classes([AllowAny])
def track_order(request, order_number):
    order = services.get_by_order_number(order_number)
    return Response(OrderTrackingSerializer(order).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def order_summary(request):
    return Response(services.order_summary(request.user))


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def checkout_quote(request):
    """
    GET /api/orders/quote/?addressId=<id>
    Totals the caller's cart against the shipping rate for that address.
    """
    raw = request.query_params.get("addressId") or request.query_params.get("address_id")
    try:
        address_id = int(raw)
    except (TypeError, ValueError):
        raise ValidationFailure("addressId is required")
    return Response(services.checkout_quote(request.user, address_id))


@api_view(["GET", "PATCH"])
@permission_classes([IsAuthenticated])
def notifications(request):
    """
    GET   -> caller's in-app notifications
    PATCH -> mark them read; body { "ids": [..] } limits it to some
    """
    qs = Notification.objects.filter(user=request.user)
    if request.method == "PATCH":
        serializer = NotificationReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        ids = serializer.validated_data.get("ids")
        if ids:
            qs = qs.filter(id__in=ids)
        updated = qs.filter(read=False).update(read=True)
        return Response({"updated": updated})
    return Response(NotificationSerializer(qs, many=True).data)
