from channels.generic.websocket import AsyncJsonWebsocketConsumer


class OrderNotificationConsumer(AsyncJsonWebsocketConsumer):
    """ws/notifications/ - status changes of the connected customer's orders."""

    async def connect(self):
        user = self.scope["user"]

        if user.is_anonymous:
            await self.close()
            return
        # one group per user; order.notifications sends to it
        self.group_name = f"user_{user.id}"
        await self.channel_layer.group_add(self.group_name, self.channel_name)
        await self.accept()

    async def disconnect(self, code):
        if hasattr(self, "group_name"):
            await self.channel_layer.group_discard(self.group_name, self.channel_name)

    async def send_notification(self, event):
        await self.send_json(event["data"])
