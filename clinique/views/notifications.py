"""
Notification endpoints.

``/notifications/feed`` is the dashboard activity feed: the ranked
notifications of the current data, capped.  ``/notifications/center``
is the per-user notification drawer.  Its state (items, read flags,
seen ids) lives in the cache, never in the database, and each GET merges
a fresh generation into it and returns the newly seen high-priority
items as ``toasts``.
"""
from __future__ import annotations

from django.conf import settings
from django.core.cache import cache
from rest_framework.decorators import api_view, permission_classes
from rest_framework.response import Response

from clinique.permissions import DashboardAccess
from clinique.services.notifications import NotificationCenter, generate_notifications
from clinique.services.state import snapshot_from_db

CENTER_CACHE_SECONDS = 24 * 3600


def _center_key(user) -> str:
    return f"notifications:center:{user.id}"


def load_center(user) -> NotificationCenter:
    return NotificationCenter.from_dict(cache.get(_center_key(user)), limit=settings.NOTIFICATIONS_CENTER_LIMIT)


def save_center(user, center: NotificationCenter) -> None:
    cache.set(_center_key(user), center.to_dict(), CENTER_CACHE_SECONDS)


def _center_payload(center: NotificationCenter, **extra) -> dict:
    return {
        'ok': True,
        'items': [n.to_dict() for n in center.items],
        'unreadCount': center.unread_count,
        **extra,
    }


def _notification_id(request) -> str | None:
    value = request.data.get('id')
    return str(value) if value else None


def _missing_id() -> Response:
    return Response({'ok': False, 'error': {'code': 'api_error', 'message': 'id manquant'}}, status=400)


@api_view(['GET'])
@permission_classes([DashboardAccess])
def feed_view(request):
    items = generate_notifications(snapshot_from_db(), limit=settings.NOTIFICATIONS_FEED_LIMIT)
    return Response({'ok': True, 'data': [n.to_dict() for n in items]})


@api_view(['GET'])
@permission_classes([DashboardAccess])
def center_view(request):
    center = load_center(request.user)
    toasts = center.check(snapshot_from_db())
    save_center(request.user, center)
    return Response(_center_payload(center, toasts=[n.to_dict() for n in toasts]))


@api_view(['POST'])
@permission_classes([DashboardAccess])
def center_read_view(request):
    nid = _notification_id(request)
    if not nid:
        return _missing_id()
    center = load_center(request.user)
    found = center.mark_read(nid)
    save_center(request.user, center)
    return Response(_center_payload(center, found=found), status=200 if found else 404)


@api_view(['POST'])
@permission_classes([DashboardAccess])
def center_read_all_view(request):
    center = load_center(request.user)
    changed = center.mark_all_read()
    save_center(request.user, center)
    return Response(_center_payload(center, changed=changed))


@api_view(['POST'])
@permission_classes([DashboardAccess])
def center_delete_view(request):
    nid = _notification_id(request)
    if not nid:
        return _missing_id()
    center = load_center(request.user)
    found = center.delete(nid)
    save_center(request.user, center)
    return Response(_center_payload(center, found=found), status=200 if found else 404)


@api_view(['POST'])
@permission_classes([DashboardAccess])
def center_activate_view(request):
    """Mark read and return the page the front end should navigate to."""
    nid = _notification_id(request)
    if not nid:
        return _missing_id()
    center = load_center(request.user)
    found = center.find(nid) is not None
    action_url = center.activate(nid)
    save_center(request.user, center)
    return Response(_center_payload(center, found=found, actionUrl=action_url), status=200 if found else 404)
