from rest_framework.views import APIView
from rest_framework.response import Response

from django_shop.exceptions import NotFoundError
from django_shop.pagination import page_params, page_slice, pagination_envelope
from django_shop.permissions import IsSellerOrAdmin
from order import services
from order.models import Order
from order.serializers import AdminOrderSerializer
from .serializers import OrderStatusChangeSerializer


class AdminOrderList(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get(self, request):
        """
        GET /api/admin/orders/?page=1&pageSize=10&status=PENDING&startDate=..&endDate=..&search=ORD-
        """
        qs = services.filter_orders(request.query_params)
        page, page_size = page_params(request.query_params)
        total = qs.count()
        serializer = AdminOrderSerializer(page_slice(qs, page, page_size), many=True, context={"request": request})
        return Response({
            "orders": serializer.data,
            "pagination": pagination_envelope(total, page, page_size),
        })


class AdminOrderDetail(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get_object(self, pk):
        order = Order.objects.select_related("user").prefetch_related("items").filter(pk=pk).first()
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def get(self, request, pk):
        serializer = AdminOrderSerializer(self.get_object(pk), context={"request": request})
        return Response(serializer.data)


class AdminOrderStatus(APIView):
    permission_classes = [IsSellerOrAdmin]

    def patch(self, request, pk):
        """
        Move an order along its workflow.
        Body: { "status": "SHIPPED", "tracking_number": "..." }
        Only transitions the workflow allows are accepted.
        """
        serializer = OrderStatusChangeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = dict(serializer.validated_data)
        target = data.pop("status")

        result = services.transition_to(pk, target, **data)
        return Response({
            "message": f"Order status updated to {result.order.get_status_display()}",
            "order": AdminOrderSerializer(result.order, context={"request": request}).data,
            "notification_sent": result.notification_sent,
        })
