"""
URL configuration for django_shop project.

Public API lives under /api/, back-office endpoints under /api/admin/.
"""
from django.contrib import admin
from django.urls import path, include
from drf_spectacular.views import (
    SpectacularAPIView,
    SpectacularRedocView,
    SpectacularSwaggerView,
)

urlpatterns = [
    path("django-admin/", admin.site.urls),
    path("api/", include("user.urls")),
    path("api/", include("product.urls")),
    path("api/cart/", include("cart.urls")),
    path("api/orders/", include("order.urls")),
    path("api/admin/", include("shop_admin.urls")),
    path("api/admin/", include("admin_orders.urls")),
    path("api/admin/", include("admin_products.urls")),
    path("api/admin/", include("admin_user.urls")),
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),  # OpenAPI JSON/YAML
    path("api/schema/swagger-ui/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/schema/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
]
