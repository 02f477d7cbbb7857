import logging

from django.core.management.base import BaseCommand
from django.core.cache import cache
from django.utils import timezone
from channels.layers import get_channel_layer
from asgiref.sync import async_to_sync

from clinique.realtime.consumers import NotificationsConsumer
from clinique.services.notifications import generate_notifications
from clinique.services.state import snapshot_from_db
from clinique.services.dashboard import cached_dashboard_stats

logger = logging.getLogger(__name__)

BROADCAST_SEEN_KEY = 'notifications:broadcast:seen'
BROADCAST_SEEN_SECONDS = 24 * 3600


class Command(BaseCommand):
    help = "Warm the dashboard stats cache; broadcast new high-priority notifications over WebSocket."

    def handle(self, *args, **options):
        now = timezone.localtime()

        cached_dashboard_stats(refresh=True)
        logger.info("dashboard stats cache warmed")

        state = snapshot_from_db()
        urgent = [n for n in generate_notifications(state, now, limit=None, include_reminders=True)
                  if n.priority == 'high']
        seen = set(cache.get(BROADCAST_SEEN_KEY) or ())
        fresh = [n for n in urgent if n.id not in seen]

        channel_layer = get_channel_layer()
        if fresh and channel_layer is not None:
            event = {"type": "notification.push", "ts": now.isoformat(), "items": [n.to_dict() for n in fresh]}
            async_to_sync(channel_layer.group_send)(NotificationsConsumer.GROUP, event)
            logger.info("broadcast %d notification(s)", len(fresh))
        # only ids still generated are remembered; a condition that comes back is broadcast again
        cache.set(BROADCAST_SEEN_KEY, sorted(n.id for n in urgent), BROADCAST_SEEN_SECONDS)

        self.stdout.write(self.style.SUCCESS(f"Stats refreshed, {len(fresh)} notification(s) broadcast at {now}"))
