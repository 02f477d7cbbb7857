import os
import time

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from clinique.client import BuchaTechClient, DataStore
from clinique.services.notifications import NotificationCenter, generate_notifications


class Command(BaseCommand):
    help = "Poll a BuchaTech API and print its notification feed (every minute by default)."

    def add_arguments(self, parser):
        parser.add_argument("--url", default=settings.BUCHATECH_API_URL)
        parser.add_argument("--token", default=os.getenv("BUCHATECH_API_TOKEN"))
        parser.add_argument("--username")
        parser.add_argument("--password", default=os.getenv("BUCHATECH_API_PASSWORD"))
        parser.add_argument("--interval", type=int, default=60, help="seconds between polls")
        parser.add_argument("--once", action="store_true", help="poll once and exit")

    def handle(self, *args, **opts):
        client = BuchaTechClient(opts["url"], token=opts["token"], timeout=settings.BUCHATECH_API_TIMEOUT)
        if not opts["token"]:
            if not (opts["username"] and opts["password"]):
                raise CommandError("--token or --username/--password required")
            client.login(opts["username"], opts["password"])

        store = DataStore(client)
        center = NotificationCenter(limit=settings.NOTIFICATIONS_CENTER_LIMIT)
        try:
            while True:
                store.refresh().result()
                if store.error:
                    # no retry: same behaviour as the web front end
                    raise CommandError(store.error)
                for toast in center.check(store.state):
                    self.stdout.write(self.style.WARNING(f"[{toast.title}] {toast.message}"))
                feed = generate_notifications(store.state, limit=settings.NOTIFICATIONS_FEED_LIMIT)
                self.stdout.write(f"{len(feed)} notification(s), {center.unread_count} unread")
                for n in feed:
                    self.stdout.write(f"  {n.priority:<6} {n.title}: {n.message} ({n.time})")
                if opts["once"]:
                    break
                time.sleep(opts["interval"])
        finally:
            store.close()
