from django.contrib import admin
from .models import Order, OrderItem, Notification


class OrderItemInline(admin.TabularInline):
    model = OrderItem
    extra = 0
    readonly_fields = ("product", "product_name", "unit_price", "quantity", "total_price")


@admin.register(Order)
class OrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "user", "status", "total_amount", "order_date")
    list_filter = ("status",)
    search_fields = ("order_number", "shipping_email")
    readonly_fields = ("order_number", "subtotal", "shipping_cost", "tax_amount", "total_amount")
    inlines = [OrderItemInline]


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("user", "order", "read", "created_at")
