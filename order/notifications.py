"""
Customer-facing messages about orders: confirmation email, status emails and
the websocket push to ``user_<id>`` groups. Every sender returns an Advisory.
"""
import logging
from collections import namedtuple

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.core.exceptions import ImproperlyConfigured

from django_shop.notifications import Advisory, send_templated_email
from .models import OrderStatus

logger = logging.getLogger(__name__)

StatusMessage = namedtuple("StatusMessage", ["text", "color"])

STATUS_MESSAGES = {
    OrderStatus.PENDING: StatusMessage("Your order has been received and is waiting for payment", "#ffa726"),
    OrderStatus.PROCESSING: StatusMessage("Your order is being prepared", "#42a5f5"),
    OrderStatus.SHIPPED: StatusMessage("Your order has been shipped", "#26a69a"),
    OrderStatus.DELIVERED: StatusMessage("Your order has been delivered", "#66bb6a"),
    OrderStatus.CANCELLED: StatusMessage("Your order has been cancelled", "#ef5350"),
    OrderStatus.REFUNDED: StatusMessage("Your order has been refunded", "#8d6e63"),
}

_missing = set(OrderStatus) - set(STATUS_MESSAGES)
if _missing:
    raise ImproperlyConfigured(f"No status message for: {', '.join(sorted(_missing))}")


def status_message(status):
    """Message for a status value; an unknown value raises ValueError."""
    return STATUS_MESSAGES[OrderStatus(status)]


def send_order_confirmation(order):
    return send_templated_email(
        order.shipping_email,
        f"Order confirmation - #{order.order_number}",
        "order/emails/order_confirmation.html",
        {
            "name": order.shipping_first_name,
            "order": order,
            "items": list(order.items.all()),
        },
    )


def send_status_update(order):
    message = status_message(order.status)
    return send_templated_email(
        order.shipping_email,
        f"Order update - #{order.order_number}",
        "order/emails/status_update.html",
        {
            "name": order.shipping_first_name,
            "order": order,
            "status_label": OrderStatus(order.status).label,
            "message": message.text,
            "color": message.color,
        },
    )


def push_status_update(order):
    """Send the status change to the customer's open websockets."""
    try:
        channel_layer = get_channel_layer()
        if channel_layer is None:
            return Advisory(False, "no channel layer configured")
        async_to_sync(channel_layer.group_send)(
            f"user_{order.user_id}",
            {
                "type": "send_notification",  # handler method name in the consumer
                "data": {
                    "order_id": order.pk,
                    "order_number": order.order_number,
                    "status": order.status,
                    "message": status_message(order.status).text,
                },
            },
        )
    except Exception as exc:
        logger.exception("Websocket push failed for order %s", order.pk)
        return Advisory(False, str(exc)[:300])
    return Advisory(True)
