"""Booking event fan-out over the Channels layer.

Every committed booking mutation is announced to the module group as
``<module>:update`` with ``{action, draft_id, data, version}``. Asset
changes are announced to the registry group as
``registerasset:upsert``. Clients filter by ``draft_id`` themselves.
"""

import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from django.db import transaction

logger = logging.getLogger(__name__)

REGISTRY_GROUP = "registry.assets"
ASSET_UPSERT_EVENT = "registerasset:upsert"
MESSAGE_TYPE = "smartpackage.event"


class Broadcaster:
    """Publishes booking and asset events after the surrounding commit."""

    def __init__(self, channel_layer=None):
        self._channel_layer = channel_layer

    @property
    def channel_layer(self):
        return self._channel_layer or get_channel_layer()

    @staticmethod
    def group_for(module, draft_id=None):
        """Return the group an event for ``draft_id`` is published to.

        All drafts of a module currently share one group.
        """
        return f"smartpackage.{module}"

    def publish(self, booking, action, data=None):
        """Queue a ``<module>:update`` event for ``booking``.

        The payload is captured now; it is sent only if the current
        transaction commits.
        """
        payload = {
            "action": action,
            "draft_id": booking.draft_id,
            "data": data,
            "version": booking.version,
        }
        group = self.group_for(booking.module, booking.draft_id)
        event = f"{booking.module}:update"
        transaction.on_commit(lambda: self.send(group, event, payload))

    def publish_asset(self, asset):
        """Queue a ``registerasset:upsert`` event with the asset snapshot."""
        payload = asset.to_payload()
        transaction.on_commit(
            lambda: self.send(REGISTRY_GROUP, ASSET_UPSERT_EVENT, payload)
        )

    def send(self, group, event, payload):
        """Send one event now. Failures are logged, never raised."""
        try:
            layer = self.channel_layer
            if layer is None:
                logger.warning(
                    "No channel layer configured; dropped %s for %s",
                    event,
                    payload.get("draft_id") or payload.get("asset_code"),
                )
                return False
            async_to_sync(layer.group_send)(
                group,
                {"type": MESSAGE_TYPE, "event": event, "data": payload},
            )
            return True
        except Exception:
            logger.exception("Failed to broadcast %s to %s", event, group)
            return False


broadcaster = Broadcaster()
