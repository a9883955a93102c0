"""Status messages, outbound email and websocket push."""
from smtplib import SMTPException

import pytest
from asgiref.sync import async_to_sync
from channels.testing import WebsocketCommunicator

from django_shop import notifications as shop_notifications
from django_shop.notifications import Advisory, send_templated_email
from order import notifications
from order.consumers import OrderNotificationConsumer
from order.models import Order, OrderStatus
from order.ws_middleware import JWTAuthMiddleware, token_from_headers


class TestStatusMessages:
    @pytest.mark.parametrize("status", list(OrderStatus))
    def test_every_status_has_a_message(self, status):
        message = notifications.status_message(status)
        assert message.text
        assert message.color.startswith("#")

    def test_plain_string_status(self):
        assert notifications.status_message("SHIPPED").text == "Your order has been shipped"

    def test_unknown_status(self):
        with pytest.raises(ValueError):
            notifications.status_message("LOST")


class TestAdvisory:
    def test_truthiness_follows_delivery(self):
        assert Advisory(True)
        assert not Advisory(False, "boom")


class TestEmail:
    def test_sent(self, db, mailoutbox):
        result = send_templated_email("ada@example.com", "Hello", "user/emails/welcome.html", {"name": "Ada"})
        assert result.delivered
        assert mailoutbox[0].to == ["ada@example.com"]
        assert "Ada" in mailoutbox[0].alternatives[0][0]

    def test_no_recipient(self):
        result = send_templated_email("", "Hello", "user/emails/welcome.html", {})
        assert result == Advisory(False, "no recipient")

    def test_transport_failure_is_reported(self, monkeypatch):
        def broken(*args, **kwargs):
            raise SMTPException("relay down")

        monkeypatch.setattr(shop_notifications, "send_mail", broken)
        result = send_templated_email("ada@example.com", "Hello", "user/emails/welcome.html", {"name": "Ada"})
        assert not result
        assert "relay down" in result.detail

    def test_status_update_email(self, user, mailoutbox):
        order = Order(
            pk=7, user=user, order_number="ORD-1", status=OrderStatus.DELIVERED,
            shipping_first_name="Ada", shipping_email="ada@example.com",
        )
        assert notifications.send_status_update(order)
        assert mailoutbox[0].subject == "Order update - #ORD-1"
        assert "delivered" in mailoutbox[0].body


class TestPush:
    def test_push_to_in_memory_layer(self):
        order = Order(pk=3, user_id=1, order_number="ORD-3", status=OrderStatus.SHIPPED)
        assert notifications.push_status_update(order)

    def test_push_without_layer(self, monkeypatch):
        monkeypatch.setattr(notifications, "get_channel_layer", lambda: None)
        order = Order(pk=3, user_id=1, order_number="ORD-3", status=OrderStatus.SHIPPED)
        assert notifications.push_status_update(order) == Advisory(False, "no channel layer configured")

    def test_push_failure_is_reported(self, monkeypatch):
        class BrokenLayer:
            async def group_send(self, group, message):
                raise ConnectionError("redis unreachable")

        monkeypatch.setattr(notifications, "get_channel_layer", BrokenLayer)
        order = Order(pk=3, user_id=1, order_number="ORD-3", status=OrderStatus.SHIPPED)
        result = notifications.push_status_update(order)
        assert not result
        assert "redis unreachable" in result.detail


class TestWebsocketAuth:
    def test_token_from_cookie_header(self):
        headers = [(b"host", b"shop"), (b"cookie", b"theme=dark; access_token=abc.def.ghi")]
        assert token_from_headers(headers) == "abc.def.ghi"

    def test_no_cookie(self):
        assert token_from_headers([(b"host", b"shop")]) is None

    def test_quoted_cookie_values_are_parsed(self):
        headers = [(b"cookie", b'theme="dark mode"; access_token=abc.def; cart_session=s1')]
        assert token_from_headers(headers) == "abc.def"

    def test_empty_access_cookie(self):
        assert token_from_headers([(b"cookie", b"access_token=; theme=dark")]) is None

    def test_anonymous_socket_is_closed(self):
        application = JWTAuthMiddleware(OrderNotificationConsumer.as_asgi())

        async def attempt():
            communicator = WebsocketCommunicator(application, "/ws/notifications/")
            connected, _ = await communicator.connect()
            return connected

        assert async_to_sync(attempt)() is False
