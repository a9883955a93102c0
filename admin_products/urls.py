# admin_products/urls.py
from django.urls import path
from .views import (
    AdminProductListCreate, AdminProductDetail, AdminProductStock, AdminProductDiscount,
    AdminStockReport, AdminLowStock, AdminImageMain, AdminImageDetail,
    AdminCategoryList, AdminCategoryDetail,
)

urlpatterns = [
    path("products/", AdminProductListCreate.as_view(), name="admin-products-list"),
    path("products/stock-report/", AdminStockReport.as_view(), name="admin-products-stock-report"),
    path("products/low-stock/", AdminLowStock.as_view(), name="admin-products-low-stock"),
    path("products/images/<int:pk>/main/", AdminImageMain.as_view(), name="admin-products-image-main"),
    path("products/images/<int:pk>/", AdminImageDetail.as_view(), name="admin-products-image-detail"),
    path("products/<int:pk>/", AdminProductDetail.as_view(), name="admin-products-detail"),
    path("products/<int:pk>/stock/", AdminProductStock.as_view(), name="admin-products-stock"),
    path("products/<int:pk>/discount/", AdminProductDiscount.as_view(), name="admin-products-discount"),
    path("categories/", AdminCategoryList.as_view(), name="admin-categories-list"),
    path("categories/<int:pk>/", AdminCategoryDetail.as_view(), name="admin-categories-detail"),
]
