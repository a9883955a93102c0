# product/filters.py
import django_filters
from django.db.models import Q

from .models import Product


class ProductFilter(django_filters.FilterSet):
    """
    Shared catalog predicate. Query parameter names follow the public API
    (``categoryId``, ``minPrice``, ``maxPrice``).
    """
    search = django_filters.CharFilter(method="filter_search")
    categoryId = django_filters.NumberFilter(field_name="category_id")
    minPrice = django_filters.NumberFilter(field_name="price", lookup_expr="gte")
    maxPrice = django_filters.NumberFilter(field_name="price", lookup_expr="lte")

    class Meta:
        model = Product
        fields = ["search", "categoryId", "minPrice", "maxPrice"]

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(name__icontains=value)
            | Q(description__icontains=value)
            | Q(brand__icontains=value)
        )
