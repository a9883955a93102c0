import django_filters
from django.db.models import Q

from .models import Order, OrderStatus


class OrderFilter(django_filters.FilterSet):
    """Back-office order listing: status, order-date window and free text."""
    status = django_filters.ChoiceFilter(choices=OrderStatus.choices)
    startDate = django_filters.IsoDateTimeFilter(field_name="order_date", lookup_expr="gte")
    endDate = django_filters.IsoDateTimeFilter(field_name="order_date", lookup_expr="lte")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = Order
        fields = ["status", "startDate", "endDate", "search"]

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(order_number__icontains=value)
            | Q(shipping_email__icontains=value)
            | Q(shipping_last_name__icontains=value)
        )
