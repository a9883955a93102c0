# product/urls.py
from rest_framework.routers import DefaultRouter
from django.urls import path, include
from .views import (
    ProductListView, ProductDetailView, FeaturedProductsView,
    SearchSuggestionsView, CategoryViewSet,
)

router = DefaultRouter()
router.register(r"categories", CategoryViewSet, basename="category")

urlpatterns = [
    path("products/", ProductListView.as_view(), name="product-list"),
    path("products/featured/", FeaturedProductsView.as_view(), name="product-featured"),
    path("products/search-suggestions/", SearchSuggestionsView.as_view(), name="product-search-suggestions"),
    path("products/<int:pk>/", ProductDetailView.as_view(), name="product-detail"),
    path("", include(router.urls)),
]
