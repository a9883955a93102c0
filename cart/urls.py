from django.urls import path
from .views import CartView, CartItemListView, CartItemDetailView, CartMergeView

urlpatterns = [
    path("", CartView.as_view(), name="cart"),
    path("items/", CartItemListView.as_view(), name="cart-items"),
    path("items/<int:pk>/", CartItemDetailView.as_view(), name="cart-item-detail"),
    path("merge/", CartMergeView.as_view(), name="cart-merge"),
]
