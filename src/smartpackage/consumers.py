"""WebSocket consumer that relays booking and asset events to browsers."""

import logging

from channels.generic.websocket import AsyncJsonWebsocketConsumer

from .services.broadcast import REGISTRY_GROUP, Broadcaster
from .workflows import WORKFLOWS

logger = logging.getLogger(__name__)


class SmartPackageConsumer(AsyncJsonWebsocketConsumer):
    """Pushes ``<module>:update`` and ``registerasset:upsert`` events.

    Every authenticated socket receives every event; clients filter by
    ``draft_id`` themselves.
    """

    async def connect(self):
        self.groups_joined = []
        user = self.scope.get("user")
        if user is None or not user.is_authenticated:
            await self.close()
            return

        for slug in WORKFLOWS:
            self.groups_joined.append(Broadcaster.group_for(slug))
        self.groups_joined.append(REGISTRY_GROUP)
        for group in self.groups_joined:
            await self.channel_layer.group_add(group, self.channel_name)
        await self.accept()
        logger.debug("SmartPackage socket opened for %s", user)

    async def disconnect(self, close_code):
        for group in getattr(self, "groups_joined", []):
            await self.channel_layer.group_discard(group, self.channel_name)

    async def receive_json(self, content, **kwargs):
        if content.get("type") == "ping":
            await self.send_json({"type": "pong"})

    async def smartpackage_event(self, event):
        await self.send_json({"event": event["event"], "data": event["data"]})
