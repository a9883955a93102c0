from django.urls import path
from .views import (
    orders,
    order_detail,
    cancel_order,
    pay_order,
    track_order,
    order_summary,
    checkout_quote,
    notifications,
)

urlpatterns = [
    path("", orders, name="orders"),
    path("summary/", order_summary, name="order_summary"),
    path("quote/", checkout_quote, name="checkout_quote"),
    path("notifications/", notifications, name="order_notifications"),
    path("track/<str:order_number>/", track_order, name="track_order"),
    path("<int:order_id>/", order_detail, name="order_detail"),
    path("<int:order_id>/cancel/", cancel_order, name="cancel_order"),
    path("<int:order_id>/pay/", pay_order, name="pay_order"),
]
