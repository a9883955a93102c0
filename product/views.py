from rest_framework import viewsets, permissions
from rest_framework.decorators import action
from rest_framework.response import Response
from rest_framework.views import APIView

from django_shop.pagination import page_params, page_slice, pagination_envelope
from .models import Category
from .serializers import CategorySerializer, ProductSerializer, ProductMiniSerializer
from . import services


class ProductListView(APIView):
    """
    GET /api/products/?page&pageSize&search&categoryId&minPrice&maxPrice&sortBy
    """
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        result = services.list_products(request.query_params)
        serializer = ProductMiniSerializer(result.products, many=True, context={"request": request})
        return Response({"products": serializer.data, "pagination": result.pagination})


class ProductDetailView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request, pk):
        product = services.get_active_product(pk)
        services.increment_view_count(product.pk)
        return Response(ProductSerializer(product, context={"request": request}).data)


class FeaturedProductsView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        try:
            count = int(request.query_params.get("count", 0)) or None
        except (TypeError, ValueError):
            count = None
        products = services.featured_products(count)
        return Response(ProductMiniSerializer(products, many=True, context={"request": request}).data)


class SearchSuggestionsView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response(services.search_suggestions(request.query_params.get("q", "")))


class CategoryViewSet(viewsets.ReadOnlyModelViewSet):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]
    queryset = Category.objects.filter(is_active=True).order_by("name")
    serializer_class = CategorySerializer

    @action(detail=True, methods=["get"])
    def products(self, request, pk=None):
        """
        GET /api/categories/<id>/products/ - active products of one category, paginated.
        """
        category = self.get_object()
        page, page_size = page_params(request.query_params)
        qs = services.catalog_queryset().filter(category=category).order_by("name", "id")
        total = qs.count()
        serializer = ProductMiniSerializer(page_slice(qs, page, page_size), many=True, context={"request": request})
        return Response({
            "products": serializer.data,
            "pagination": pagination_envelope(total, page, page_size),
        })
