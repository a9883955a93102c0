from decimal import Decimal

from django.db.models import Count, DecimalField, Q, Sum, Value
from django.db.models.functions import Coalesce
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status, permissions
from rest_framework.pagination import PageNumberPagination

from django_shop.exceptions import NotFoundError, ValidationFailure
from order.models import OrderStatus
from user.models import User
from .serializers import AdminUserSerializer

ALLOWED_ORDERING = {"id", "-id", "email", "-email", "date_joined", "-date_joined", "total_spent", "-total_spent"}


class StandardResultsSetPagination(PageNumberPagination):
    page_size = 10
    page_size_query_param = "page_size"
    max_page_size = 100


def users_with_stats():
    return User.objects.annotate(
        order_count=Count("orders", distinct=True),
        total_spent=Coalesce(
            Sum("orders__total_amount", filter=~Q(orders__status=OrderStatus.CANCELLED)),
            Value(Decimal("0.00")),
            output_field=DecimalField(max_digits=12, decimal_places=2),
        ),
    )


def _get_user(pk):
    user = users_with_stats().filter(pk=pk).first()
    if user is None:
        raise NotFoundError("User not found")
    return user


class UserListAPIView(APIView):
    """
    GET: list users with pagination, search and ordering.
    Query params:
      - page, page_size
      - search (first/last name, email, phone_number)
      - role, is_active
      - ordering (e.g. 'email' or '-total_spent')
    """
    permission_classes = [permissions.IsAdminUser]

    def get(self, request, format=None):
        qs = users_with_stats()

        search_q = request.query_params.get("search")
        if search_q:
            qs = qs.filter(
                Q(first_name__icontains=search_q)
                | Q(last_name__icontains=search_q)
                | Q(email__icontains=search_q)
                | Q(phone_number__icontains=search_q)
            )

        role = request.query_params.get("role")
        if role:
            qs = qs.filter(role=role.upper())

        is_active = request.query_params.get("is_active")
        if is_active is not None:
            qs = qs.filter(is_active=is_active.lower() in ("1", "true", "yes"))

        ordering = request.query_params.get("ordering")
        qs = qs.order_by(ordering if ordering in ALLOWED_ORDERING else "-id")

        paginator = StandardResultsSetPagination()
        page = paginator.paginate_queryset(qs, request)
        serializer = AdminUserSerializer(page, many=True, context={"request": request})
        return paginator.get_paginated_response(serializer.data)


class UserDetailAPIView(APIView):
    """
    GET: retrieve single user with order stats
    PATCH: partial update (names, phone, role)
    """
    permission_classes = [permissions.IsAdminUser]

    def get(self, request, pk, format=None):
        serializer = AdminUserSerializer(_get_user(pk), context={"request": request})
        return Response(serializer.data)

    def patch(self, request, pk, format=None):
        user = _get_user(pk)
        serializer = AdminUserSerializer(user, data=request.data, partial=True, context={"request": request})
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_200_OK)


class SetActiveAPIView(APIView):
    """
    POST /api/admin/users/{pk}/activate/ or .../deactivate/
    Deactivated users can no longer log in; their orders stay.
    """
    permission_classes = [permissions.IsAdminUser]
    active = True

    def post(self, request, pk, format=None):
        user = _get_user(pk)
        if not self.active and user.pk == request.user.pk:
            raise ValidationFailure("You cannot deactivate your own account")
        user.is_active = self.active
        user.save(update_fields=["is_active", "updated_at"])
        serializer = AdminUserSerializer(user, context={"request": request})
        return Response(serializer.data, status=status.HTTP_200_OK)
