import json
from channels.generic.websocket import AsyncWebsocketConsumer

from clinique.permissions import ROLE_PERMISSIONS


class NotificationsConsumer(AsyncWebsocketConsumer):
    """Push newly seen high-priority notifications to connected staff."""
    GROUP = "notifications"

    async def connect(self):
        user = self.scope.get("user")
        if not (user and user.is_authenticated and getattr(user, "role", None) in ROLE_PERMISSIONS):
            await self.close()
            return
        await self.channel_layer.group_add(self.GROUP, self.channel_name)
        await self.accept()
        await self.send(json.dumps({"type": "welcome", "message": "connected"}))

    async def disconnect(self, close_code):
        await self.channel_layer.group_discard(self.GROUP, self.channel_name)

    async def notification_push(self, event):
        # event: {"type": "notification.push", "ts": "...", "items": [notification dicts]}
        await self.send(json.dumps(event))
