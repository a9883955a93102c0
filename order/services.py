"""
Order workflow.

An order is created from the caller's cart and then moves through a fixed set
of events::

    PENDING --process_payment--> PROCESSING --mark_shipped--> SHIPPED
    SHIPPED --mark_delivered--> DELIVERED --refund--> REFUNDED
    PENDING | PROCESSING --cancel--> CANCELLED

Any other (status, event) pair raises InvalidTransitionError and leaves the
row untouched. Stock only moves inside the same transaction as the status
change that causes it.
"""
import logging
import random
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from django.conf import settings
from django.db import IntegrityError, transaction
from django.db.models import Count, F, Q, Sum
from django.db.models.functions import TruncDate
from django.utils import timezone

from cart.models import Cart
from django_shop.exceptions import (
    EmptyCartError,
    InsufficientStockError,
    InvalidAddressError,
    InvalidTransitionError,
    NotFoundError,
    ValidationFailure,
)
from django_shop.notifications import Advisory
from product.models import Product
from product.services import check_stock_availability
from user.models import Address
from . import notifications
from .filters import OrderFilter
from .models import Order, OrderItem, OrderStatus

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")

# event -> (allowed source statuses, target status)
TRANSITIONS = {
    "process_payment": ({OrderStatus.PENDING}, OrderStatus.PROCESSING),
    "cancel": ({OrderStatus.PENDING, OrderStatus.PROCESSING}, OrderStatus.CANCELLED),
    "mark_shipped": ({OrderStatus.PROCESSING}, OrderStatus.SHIPPED),
    "mark_delivered": ({OrderStatus.SHIPPED}, OrderStatus.DELIVERED),
    "refund": ({OrderStatus.DELIVERED}, OrderStatus.REFUNDED),
}

EVENT_LABELS = {
    "process_payment": "pay for",
    "cancel": "cancel",
    "mark_shipped": "ship",
    "mark_delivered": "deliver",
    "refund": "refund",
}


@dataclass
class WorkflowResult:
    """The order after a successful step, plus the outcome of notifying the customer."""

    order: Order
    notification: Advisory

    @property
    def notification_sent(self):
        return self.notification.delivered


# ----------------------------
# pricing
# ----------------------------
def quantize(amount):
    return Decimal(amount).quantize(CENT, rounding=ROUND_HALF_UP)


def calculate_tax(subtotal):
    return quantize(Decimal(subtotal) * settings.SHOP["TAX_RATE"])


def shipping_cost_for(city):
    """Flat per-city rate, matched case-insensitively; unknown cities pay the default."""
    rates = settings.SHOP["SHIPPING_RATES"]
    key = (city or "").strip().lower()
    return quantize(rates.get(key, settings.SHOP["DEFAULT_SHIPPING_RATE"]))


def shipping_cost_for_address(address_id, user=None):
    """Rate for a stored address; one that cannot be loaded pays the default."""
    addresses = Address.objects.filter(pk=address_id)
    if user is not None:
        addresses = addresses.filter(user=user)
    address = addresses.first()
    if address is None:
        logger.info("Address %s not available for a shipping rate, using the default", address_id)
        return quantize(settings.SHOP["DEFAULT_SHIPPING_RATE"])
    return shipping_cost_for(address.city)


def checkout_quote(user, address_id):
    """What placing an order from the caller's cart would cost, without placing it."""
    cart = Cart.objects.filter(user=user).first()
    lines = cart.lines() if cart is not None else []
    subtotal = quantize(sum((line.subtotal for line in lines), Decimal("0")))
    shipping = shipping_cost_for_address(address_id, user)
    tax = calculate_tax(subtotal)
    return {
        "subtotal": subtotal,
        "shipping_cost": shipping,
        "tax_amount": tax,
        "total_amount": subtotal + tax + shipping,
        "item_count": sum(line.quantity for line in lines),
    }


def order_totals(subtotal, city):
    subtotal = quantize(subtotal)
    shipping = shipping_cost_for(city)
    tax = calculate_tax(subtotal)
    return {
        "subtotal": subtotal,
        "shipping_cost": shipping,
        "tax_amount": tax,
        "total_amount": subtotal + tax + shipping,
    }


def generate_order_number():
    return f"ORD-{timezone.now():%Y%m%d%H%M%S}-{random.randint(1000, 9999)}"


# ----------------------------
# stock
# ----------------------------
def decrement_stock(product, quantity):
    """Take ``quantity`` off the product only if that much is still there."""
    updated = Product.objects.filter(
        pk=product.pk, is_active=True, stock_quantity__gte=quantity
    ).update(stock_quantity=F("stock_quantity") - quantity, updated_at=timezone.now())
    if not updated:
        available = Product.objects.filter(pk=product.pk).values_list("stock_quantity", flat=True).first()
        raise InsufficientStockError(product.name, available, quantity)


def restore_stock(order):
    for item in order.items.all():
        Product.objects.filter(pk=item.product_id).update(
            stock_quantity=F("stock_quantity") + item.quantity, updated_at=timezone.now()
        )


# ----------------------------
# creation
# ----------------------------
def _insert_with_unique_number(order):
    attempts = max(1, settings.SHOP["ORDER_NUMBER_ATTEMPTS"])
    for attempt in range(1, attempts + 1):
        order.order_number = generate_order_number()
        try:
            with transaction.atomic():
                order.save(force_insert=True)
            return order
        except IntegrityError:
            if attempt == attempts or not Order.objects.filter(order_number=order.order_number).exists():
                raise
            logger.warning("Order number %s already taken (attempt %s)", order.order_number, attempt)
            order.pk = None


def create_order(user, address_id, payment_method):
    with transaction.atomic():
        cart = Cart.objects.select_for_update().filter(user=user).first()
        lines = cart.lines() if cart is not None else []
        if not lines:
            raise EmptyCartError()

        address = Address.objects.filter(pk=address_id, user=user).first()
        if address is None:
            raise InvalidAddressError()

        for line in lines:
            if not check_stock_availability(line.product_id, line.quantity):
                raise InsufficientStockError(line.product.name, line.product.stock_quantity, line.quantity)

        totals = order_totals(sum((line.subtotal for line in lines), Decimal("0")), address.city)
        order = _insert_with_unique_number(Order(
            user=user,
            status=OrderStatus.PENDING,
            shipping_first_name=address.first_name,
            shipping_last_name=address.last_name,
            shipping_email=user.email,
            shipping_phone=address.phone,
            shipping_address=address.street,
            shipping_city=address.city,
            shipping_postal_code=address.postal_code,
            shipping_country=address.country,
            payment_method=payment_method,
            **totals,
        ))

        OrderItem.objects.bulk_create([
            OrderItem(
                order=order,
                product=line.product,
                product_name=line.product.name,
                unit_price=line.price,
                quantity=line.quantity,
                total_price=quantize(line.subtotal),
            )
            for line in lines
        ])

        # conditional decrement; losing a race here rolls the whole order back
        for line in lines:
            decrement_stock(line.product, line.quantity)

        cart.items.all().delete()

    logger.info("Order created: %s for user %s (total %s)", order.order_number, user.pk, order.total_amount)
    advisory = notifications.send_order_confirmation(order)
    return WorkflowResult(order, advisory)


# ----------------------------
# transitions
# ----------------------------
def _locked_order(order_id, user=None):
    qs = Order.objects.select_for_update()
    if user is not None:
        qs = qs.filter(user=user)
    order = qs.filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def _apply(order, event, **changes):
    allowed, target = TRANSITIONS[event]
    current = OrderStatus(order.status)
    if current not in allowed:
        logger.warning("Rejected %s on order %s in status %s", event, order.pk, current)
        raise InvalidTransitionError(current.label, EVENT_LABELS[event])
    order.status = target
    for name, value in changes.items():
        setattr(order, name, value)
    order.save(update_fields=["status", "updated_at", *changes])
    return order


def _notify(order):
    # in-app row and websocket push are written by order.signals
    return notifications.send_status_update(order)


def process_payment(order_id, transaction_id, user=None):
    transaction_id = (transaction_id or "").strip()
    if not transaction_id:
        raise ValidationFailure("Payment transaction id is required")
    with transaction.atomic():
        order = _locked_order(order_id, user)
        _apply(order, "process_payment", payment_transaction_id=transaction_id, payment_date=timezone.now())
    logger.info("Payment recorded for order %s", order.order_number)
    return WorkflowResult(order, _notify(order))


def _cancel(order_id, user=None):
    with transaction.atomic():
        order = _locked_order(order_id, user)
        _apply(order, "cancel", cancelled_at=timezone.now())
        restore_stock(order)
    logger.info("Order cancelled: %s", order.order_number)
    return WorkflowResult(order, _notify(order))


def cancel_order(order_id, user):
    """Customer cancel. Someone else's order is reported as not found."""
    return _cancel(order_id, user)


def admin_cancel_order(order_id):
    return _cancel(order_id)


def mark_shipped(order_id, tracking_number=None):
    changes = {"tracking_number": tracking_number} if tracking_number else {}
    with transaction.atomic():
        order = _locked_order(order_id)
        _apply(order, "mark_shipped", **changes)
    logger.info("Order shipped: %s", order.order_number)
    return WorkflowResult(order, _notify(order))


def mark_delivered(order_id):
    with transaction.atomic():
        order = _locked_order(order_id)
        _apply(order, "mark_delivered")
    logger.info("Order delivered: %s", order.order_number)
    return WorkflowResult(order, _notify(order))


def refund_order(order_id, reason=""):
    with transaction.atomic():
        order = _locked_order(order_id)
        _apply(order, "refund", refund_reason=reason or "")
    logger.info("Order refunded: %s (%s)", order.order_number, reason)
    return WorkflowResult(order, _notify(order))


def transition_to(order_id, target, **extra):
    """
    Back-office entry point: move an order to ``target`` through the one event
    that leads there.
    """
    try:
        target = OrderStatus(target)
    except ValueError:
        raise ValidationFailure(f"Unknown status: {target}")

    if target == OrderStatus.PROCESSING:
        return process_payment(order_id, extra.get("transaction_id"))
    if target == OrderStatus.CANCELLED:
        return admin_cancel_order(order_id)
    if target == OrderStatus.SHIPPED:
        return mark_shipped(order_id, extra.get("tracking_number"))
    if target == OrderStatus.DELIVERED:
        return mark_delivered(order_id)
    if target == OrderStatus.REFUNDED:
        return refund_order(order_id, extra.get("reason", ""))

    # nothing leads back to PENDING
    order = Order.objects.filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")
    raise InvalidTransitionError(OrderStatus(order.status).label, f"move to {target.label}")


# ----------------------------
# queries
# ----------------------------
def user_orders(user):
    return Order.objects.filter(user=user).prefetch_related("items")


def get_user_order(order_id, user):
    order = user_orders(user).filter(pk=order_id).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def get_by_order_number(order_number):
    order = Order.objects.prefetch_related("items").filter(order_number=order_number).first()
    if order is None:
        raise NotFoundError("Order not found")
    return order


def order_summary(user):
    orders = Order.objects.filter(user=user)
    counts = dict(orders.values_list("status").annotate(n=Count("id")).order_by())
    total_spent = orders.exclude(status=OrderStatus.CANCELLED).aggregate(s=Sum("total_amount"))["s"]
    return {
        "order_count": sum(counts.values()),
        "total_spent": total_spent or Decimal("0.00"),
        "by_status": {status.value: counts.get(status.value, 0) for status in OrderStatus},
    }


def daily_sales(start, end):
    rows = (
        Order.objects.filter(order_date__gte=start, order_date__lte=end)
        .exclude(status=OrderStatus.CANCELLED)
        .annotate(day=TruncDate("order_date"))
        .values("day")
        .annotate(total=Sum("total_amount"), orders=Count("id"))
        .order_by("day")
    )
    return [{"date": row["day"], "total": row["total"], "orders": row["orders"]} for row in rows]


def top_selling_products(count=10):
    return list(
        OrderItem.objects.exclude(order__status=OrderStatus.CANCELLED)
        .values("product_id", "product_name")
        .annotate(quantity=Sum("quantity"), revenue=Sum("total_price"))
        .order_by("-quantity", "product_id")[:count]
    )


def revenue_summary():
    """Order counts per status and revenue over non-cancelled orders."""
    agg = Order.objects.aggregate(
        total_orders=Count("id"),
        revenue=Sum("total_amount", filter=~Q(status=OrderStatus.CANCELLED)),
        pending=Count("id", filter=Q(status=OrderStatus.PENDING)),
        processing=Count("id", filter=Q(status=OrderStatus.PROCESSING)),
    )
    agg["revenue"] = agg["revenue"] or Decimal("0.00")
    return agg


def filter_orders(params):
    """All orders matching the back-office filters, newest first."""
    filterset = OrderFilter(params, queryset=Order.objects.select_related("user").prefetch_related("items"))
    if not filterset.is_valid():
        field_name, errors = next(iter(filterset.errors.items()))
        raise ValidationFailure(f"Invalid {field_name}: {errors[0]}")
    return filterset.qs.order_by("-order_date", "-id")
