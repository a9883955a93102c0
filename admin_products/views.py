# admin_products/views.py
from django.db.models import Count
from rest_framework.views import APIView
from rest_framework.response import Response
from rest_framework import status

from django_shop.exceptions import NotFoundError
from django_shop.permissions import IsSellerOrAdmin
from product import services
from product.models import Product, Category
from .serializers import (
    AdminCategorySerializer,
    AdminProductSerializer,
    LowStockSerializer,
    StockUpdateSerializer,
    DiscountSerializer,
)


def _threshold(request):
    try:
        return int(request.query_params["threshold"])
    except (KeyError, TypeError, ValueError):
        return None


class AdminProductListCreate(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get(self, request):
        """
        Same filters and sorting as the public catalog, inactive products included.
        """
        result = services.list_products(request.query_params, include_inactive=True)
        serializer = AdminProductSerializer(result.products, many=True, context={"request": request})
        return Response({"products": serializer.data, "pagination": result.pagination})

    def post(self, request):
        serializer = AdminProductSerializer(data=request.data, context={"request": request})
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        return Response(AdminProductSerializer(product, context={"request": request}).data, status=status.HTTP_201_CREATED)


class AdminProductDetail(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get_object(self, pk):
        product = Product.objects.select_related("category").prefetch_related("images").filter(pk=pk).first()
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def get(self, request, pk):
        return Response(AdminProductSerializer(self.get_object(pk), context={"request": request}).data)

    def patch(self, request, pk):
        serializer = AdminProductSerializer(self.get_object(pk), data=request.data, partial=True, context={"request": request})
        serializer.is_valid(raise_exception=True)
        product = serializer.save()
        return Response(AdminProductSerializer(product, context={"request": request}).data)

    def delete(self, request, pk):
        # soft delete; order history keeps pointing at the row
        services.soft_delete_product(pk)
        return Response(status=status.HTTP_204_NO_CONTENT)


class AdminProductStock(APIView):
    permission_classes = [IsSellerOrAdmin]

    def patch(self, request, pk):
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        services.set_stock(pk, serializer.validated_data["stock_quantity"])
        return Response({"id": pk, "stock_quantity": serializer.validated_data["stock_quantity"]})


class AdminProductDiscount(APIView):
    permission_classes = [IsSellerOrAdmin]

    def patch(self, request, pk):
        """
        Body: { "percent": 15 } -> discount_price = price minus 15%
        """
        serializer = DiscountSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        percent = serializer.validated_data["percent"]

        product = Product.objects.filter(pk=pk).first()
        if product is None:
            raise NotFoundError("Product not found")
        product.discount_price = services.discounted_price(product, percent) if percent else None
        product.save(update_fields=["discount_price", "updated_at"])
        return Response(AdminProductSerializer(product, context={"request": request}).data)


class AdminStockReport(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get(self, request):
        return Response(services.stock_report(_threshold(request)))


class AdminLowStock(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get(self, request):
        products = services.low_stock_products(_threshold(request))
        return Response(LowStockSerializer(products, many=True).data)


class AdminImageMain(APIView):
    permission_classes = [IsSellerOrAdmin]

    def patch(self, request, pk):
        outcome = services.set_main_image(pk)
        return Response(
            {"success": outcome.delivered, "detail": outcome.detail},
            status=status.HTTP_200_OK if outcome else status.HTTP_400_BAD_REQUEST,
        )


class AdminImageDetail(APIView):
    permission_classes = [IsSellerOrAdmin]

    def delete(self, request, pk):
        outcome = services.delete_image(pk)
        return Response(
            {"success": outcome.delivered, "detail": outcome.detail},
            status=status.HTTP_200_OK if outcome else status.HTTP_400_BAD_REQUEST,
        )


class AdminCategoryList(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get(self, request):
        qs = Category.objects.annotate(product_count=Count("products")).order_by("name")
        return Response(AdminCategorySerializer(qs, many=True).data)

    def post(self, request):
        serializer = AdminCategorySerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data, status=status.HTTP_201_CREATED)


class AdminCategoryDetail(APIView):
    permission_classes = [IsSellerOrAdmin]

    def get_object(self, pk):
        category = Category.objects.filter(pk=pk).first()
        if category is None:
            raise NotFoundError("Category not found")
        return category

    def get(self, request, pk):
        return Response(AdminCategorySerializer(self.get_object(pk)).data)

    def patch(self, request, pk):
        serializer = AdminCategorySerializer(self.get_object(pk), data=request.data, partial=True)
        serializer.is_valid(raise_exception=True)
        serializer.save()
        return Response(serializer.data)

    def delete(self, request, pk):
        category = self.get_object(pk)
        category.is_active = False
        category.save(update_fields=["is_active", "updated_at"])
        return Response(status=status.HTTP_204_NO_CONTENT)
