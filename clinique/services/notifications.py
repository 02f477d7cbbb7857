"""
Notification generator and notification center.

``generate_notifications`` derives a ranked list of alerts from an
``AppState``.  Every step is a single pass over one collection and never
raises on bad data: a record whose date cannot be parsed simply does not
match.  ``NotificationCenter`` keeps the per-user history shown in the
notification drawer and reports newly seen high-priority items as toasts.
"""
from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta
from typing import Iterable, Optional

from .dates import combine_heure, day_start, resolve_now
from .records import ConsultationRecord, MedecinRecord, PatientRecord, RendezVousRecord
from .state import AppState

logger = logging.getLogger(__name__)

PRIORITY_WEIGHT = {'high': 3, 'medium': 2, 'low': 1}

# type -> (icon, colour)
PRESENTATION = {
    'appointment': ('calendar', '#3b82f6'),
    'urgent': ('alert-circle', '#ef4444'),
    'reminder': ('clock', '#f59e0b'),
    'info': ('info', '#06b6d4'),
    'success': ('check-circle', '#10b981'),
    'warning': ('alert-triangle', '#f59e0b'),
}
DEFAULT_PRESENTATION = ('bell', '#64748b')
PRIORITY_COLORS = {'high': '#ef4444', 'medium': '#f59e0b', 'low': '#3b82f6'}
HIGH_PRIORITY_COLORS = {'urgent': '#ef4444', 'reminder': '#f59e0b'}

FEED_LIMIT = 10
CENTER_LIMIT = 20
REMINDER_HORIZON = timedelta(hours=2)
RECENT_WINDOW = timedelta(hours=24)


@dataclass
class Notification:
    id: str
    type: str
    title: str
    message: str
    time: str
    priority: str
    read: bool = False
    related_id: Optional[str] = None
    action_url: Optional[str] = None

    @property
    def weight(self) -> int:
        return PRIORITY_WEIGHT.get(self.priority, 0)

    def presentation(self) -> dict:
        icon, color = PRESENTATION.get(self.type, DEFAULT_PRESENTATION)
        if self.priority == 'high':
            color = HIGH_PRIORITY_COLORS.get(self.type, '#3b82f6')
        return {'icon': icon, 'color': color, 'priorityColor': PRIORITY_COLORS.get(self.priority, '#64748b')}

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'type': self.type,
            'title': self.title,
            'message': self.message,
            'time': self.time,
            'priority': self.priority,
            'read': self.read,
            'relatedId': self.related_id,
            'actionUrl': self.action_url,
            **self.presentation(),
        }


def _elapsed_label(since: datetime, now: datetime) -> str:
    hours = int((now - since).total_seconds() // 3600)
    return f"Il y a {hours}h" if hours > 0 else "Récemment"


# -----------------------------------------------------------------------------
# Generation steps
# -----------------------------------------------------------------------------

def same_day_appointments(rendez_vous: Iterable[RendezVousRecord], now: datetime) -> list[Notification]:
    today = day_start(now)
    yesterday = today - timedelta(days=1)
    out = []
    for rdv in rendez_vous:
        if rdv.date is None or not (yesterday <= rdv.date <= now) or rdv.date.date() != now.date():
            continue
        out.append(Notification(
            id=f"appointment-today-{rdv.id}",
            type='appointment',
            title="Rendez-vous aujourd'hui",
            message=f"{rdv.patient} - {rdv.heure} ({rdv.type})",
            time=_elapsed_label(rdv.date, now),
            priority='medium',
            related_id=rdv.id,
            action_url='/planning',
        ))
    return out


def upcoming_reminders(rendez_vous: Iterable[RendezVousRecord], now: datetime) -> list[Notification]:
    out = []
    for rdv in rendez_vous:
        start = combine_heure(rdv.date, rdv.heure)
        if start is None or not (now < start <= now + REMINDER_HORIZON):
            continue
        out.append(Notification(
            id=f"appointment-{rdv.id}",
            type='reminder',
            title="Rendez-vous dans 2h",
            message=f"{rdv.patient} - {rdv.heure} avec Dr. {rdv.medecin}",
            time=f"{now:%H:%M}",
            priority='high',
            related_id=rdv.id,
            action_url='/planning',
        ))
    return out


def urgent_appointments(rendez_vous: Iterable[RendezVousRecord], now: datetime) -> list[Notification]:
    today = day_start(now)
    out = []
    for rdv in rendez_vous:
        if rdv.type != 'Urgence' or rdv.date is None or rdv.date < today:
            continue
        out.append(Notification(
            id=f"urgent-{rdv.id}",
            type='urgent',
            title="URGENCE",
            message=f"{rdv.patient} - {rdv.heure} - {rdv.medecin}",
            time="Maintenant",
            priority='high',
            related_id=rdv.id,
            action_url='/planning',
        ))
    return out


def new_patients(patients: Iterable[PatientRecord], now: datetime) -> list[Notification]:
    since = now - RECENT_WINDOW
    count = sum(1 for p in patients if p.last_activity is not None and since <= p.last_activity <= now)
    if not count:
        return []
    return [Notification(
        id='new-patients',
        type='success',
        title="Nouveaux patients",
        message=f"{count} nouveau(x) patient(s) ajouté(s)",
        time="Aujourd'hui",
        priority='low',
        action_url='/patients',
    )]


def doctors_on_leave(medecins: Iterable[MedecinRecord]) -> list[Notification]:
    count = sum(1 for m in medecins if m.status == 'En congé')
    if not count:
        return []
    return [Notification(
        id='doctors-leave',
        type='warning',
        title="Médecins en congé",
        message=f"{count} médecin(s) actuellement en congé",
        time="Aujourd'hui",
        priority='medium',
        action_url='/medecins',
    )]


def recent_consultations(consultations: Iterable[ConsultationRecord], now: datetime) -> list[Notification]:
    since = now - RECENT_WINDOW
    count = sum(1 for c in consultations if c.date is not None and since <= c.date <= now)
    if not count:
        return []
    return [Notification(
        id='recent-consultations',
        type='info',
        title="Consultations récentes",
        message=f"{count} consultation(s) effectuée(s) récemment",
        time="Dernières 24h",
        priority='low',
        action_url='/statistiques',
    )]


def rank(notifications: Iterable[Notification], limit: Optional[int] = None) -> list[Notification]:
    """Sort by priority, highest first; ties keep their emission order."""
    ranked = sorted(notifications, key=lambda n: n.weight, reverse=True)
    return ranked if limit is None else ranked[:limit]


def generate_notifications(
    state: AppState,
    now: Optional[datetime] = None,
    *,
    limit: Optional[int] = FEED_LIMIT,
    include_reminders: bool = False,
) -> list[Notification]:
    """Derive the ranked notification list for ``state`` at ``now``.

    The dashboard feed uses the default ``limit``; the notification center
    passes ``limit=None`` and ``include_reminders=True`` and caps its own
    history instead.
    """
    now = resolve_now(now)
    emitted: list[Notification] = []
    today = same_day_appointments(state.rendez_vous, now)
    if include_reminders:
        reminders = upcoming_reminders(state.rendez_vous, now)
        reminded = {n.related_id for n in reminders}
        emitted += reminders
        today = [n for n in today if n.related_id not in reminded]
    emitted += today
    emitted += urgent_appointments(state.rendez_vous, now)
    emitted += new_patients(state.patients, now)
    emitted += doctors_on_leave(state.medecins)
    emitted += recent_consultations(state.consultations, now)
    return rank(emitted, limit)


# -----------------------------------------------------------------------------
# Notification center
# -----------------------------------------------------------------------------

class NotificationCenter:
    """Per-user notification history.

    The center is plain data so it can be stored in the cache between
    requests (see :meth:`to_dict` / :meth:`from_dict`).
    """

    def __init__(self, items: Optional[list[Notification]] = None, seen: Optional[Iterable[str]] = None,
                 limit: int = CENTER_LIMIT):
        self.items: list[Notification] = list(items or [])
        self.seen: set[str] = set(seen or ()) | {n.id for n in self.items}
        self.limit = limit

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.items if not n.read)

    def check(self, state: AppState, now: Optional[datetime] = None) -> list[Notification]:
        """Merge a fresh generation; return the newly seen high-priority items.

        ``seen`` is reduced to the ids of this generation and of the kept
        history, so a condition that went away is reported again when it
        comes back.
        """
        generated = generate_notifications(state, now, limit=None, include_reminders=True)
        fresh = [n for n in generated if n.id not in self.seen]
        if fresh:
            self.items = (fresh + self.items)[:self.limit]
        self.seen = {n.id for n in generated} | {n.id for n in self.items}
        if not fresh:
            return []
        toasts = [n for n in fresh if n.priority == 'high']
        logger.debug("notification center: %d new, %d toast(s)", len(fresh), len(toasts))
        return toasts

    def find(self, notification_id: str) -> Optional[Notification]:
        return next((n for n in self.items if n.id == notification_id), None)

    def mark_read(self, notification_id: str) -> bool:
        item = self.find(notification_id)
        if item is None:
            return False
        item.read = True
        return True

    def mark_all_read(self) -> int:
        changed = 0
        for item in self.items:
            if not item.read:
                item.read = True
                changed += 1
        return changed

    def delete(self, notification_id: str) -> bool:
        before = len(self.items)
        self.items = [n for n in self.items if n.id != notification_id]
        return len(self.items) != before

    def activate(self, notification_id: str) -> Optional[str]:
        """Mark read and return the navigation target, if any."""
        item = self.find(notification_id)
        if item is None:
            return None
        item.read = True
        return item.action_url

    def to_dict(self) -> dict:
        return {
            'items': [asdict(n) for n in self.items],
            'seen': sorted(self.seen),
            'limit': self.limit,
        }

    @classmethod
    def from_dict(cls, data: Optional[dict], limit: int = CENTER_LIMIT) -> 'NotificationCenter':
        if not data:
            return cls(limit=limit)
        items = [Notification(**item) for item in data.get('items', [])]
        return cls(items=items, seen=data.get('seen', ()), limit=limit)
