"""
Planning rules: required fields and double-booking detection.

The same checks run in the API client before a request is sent and in
the rendez-vous views before anything is written, so a conflicting
appointment is never persisted.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Iterable, Mapping, Optional

from django.db import transaction

from ..exceptions import ConflitHoraire, ValidationRendezVous
from ..models import RendezVous
from .audit import log_action
from .records import RendezVousRecord
from .state import invalidate_stats_cache

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    ('patient', "Veuillez indiquer le nom du patient"),
    ('medecin', "Veuillez sélectionner un médecin"),
    ('type', "Veuillez sélectionner le type de consultation"),
    ('date', "Veuillez sélectionner une date"),
    ('heure', "Veuillez sélectionner une heure"),
)


def normalize_heure(value: Any) -> str:
    """``9:5`` -> ``09:05``; unusable values are returned stripped."""
    raw = str(value or '').strip()
    try:
        hours, minutes = raw.split(':')[:2]
        return f"{int(hours):02d}:{int(minutes):02d}"
    except ValueError:
        return raw


def normalize_date(value: Any) -> str:
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value or '').strip()[:10]


def _same_doctor(a: str, b: str) -> bool:
    return a.strip().casefold() == b.strip().casefold()


def validate_rendez_vous(data: Mapping[str, Any]) -> None:
    for key, message in REQUIRED_FIELDS:
        value = data.get(key)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ValidationRendezVous(message)


def find_conflit(
    rendez_vous: Iterable[RendezVousRecord],
    *,
    medecin: str,
    date: Any,
    heure: Any,
    exclude_id: Optional[Any] = None,
) -> Optional[RendezVousRecord]:
    """Return an existing appointment of ``medecin`` at the same date and time."""
    day, slot = normalize_date(date), normalize_heure(heure)
    excluded = str(exclude_id) if exclude_id is not None else None
    for rdv in rendez_vous:
        if excluded is not None and rdv.id == excluded:
            continue
        if rdv.date is None or rdv.date.date().isoformat() != day:
            continue
        if normalize_heure(rdv.heure) == slot and _same_doctor(rdv.medecin, medecin):
            return rdv
    return None


def ensure_bookable(
    rendez_vous: Iterable[RendezVousRecord],
    data: Mapping[str, Any],
    exclude_id: Optional[Any] = None,
) -> None:
    """Raise ``ValidationRendezVous`` or ``ConflitHoraire`` if ``data`` cannot be booked."""
    validate_rendez_vous(data)
    existing = find_conflit(
        rendez_vous, medecin=str(data['medecin']), date=data['date'], heure=data['heure'], exclude_id=exclude_id,
    )
    if existing is not None:
        logger.warning(
            "double booking rejected: %s on %s at %s (existing rdv %s)",
            data['medecin'], normalize_date(data['date']), normalize_heure(data['heure']), existing.id,
        )
        raise ConflitHoraire()


def bookings_for_slot(medecin: str, day: Any, exclude_id: Optional[Any] = None) -> list[RendezVousRecord]:
    """Load the doctor's appointments of ``day`` from the database as records."""
    qs = RendezVous.objects.filter(date=normalize_date(day), medecin__iexact=medecin.strip())
    if exclude_id is not None:
        qs = qs.exclude(pk=exclude_id)
    return [
        RendezVousRecord.from_dict({'id': r.pk, 'date': r.date, 'heure': r.heure, 'medecin': r.medecin})
        for r in qs
    ]


def _booking(data: Mapping[str, Any], instance=None) -> dict:
    merged = {key: getattr(instance, key) for key, _ in REQUIRED_FIELDS} if instance is not None else {}
    merged.update({k: v for k, v in data.items() if k in dict(REQUIRED_FIELDS)})
    return merged


def create_rendez_vous(current_user, data: dict[str, Any]):
    booking = _booking(data)
    with transaction.atomic():
        ensure_bookable(bookings_for_slot(str(booking.get('medecin') or ''), booking.get('date')), booking)
        rdv = RendezVous.objects.create(**data)
    log_action(user=current_user, action='rdv_create', object_type='rendez_vous', object_id=rdv.id,
               detail={'medecin': rdv.medecin, 'date': normalize_date(rdv.date), 'heure': rdv.heure})
    logger.info("rdv %s booked: %s on %s at %s", rdv.id, rdv.medecin, normalize_date(rdv.date), rdv.heure)
    invalidate_stats_cache()
    return rdv


def update_rendez_vous(current_user, rdv, data: dict[str, Any]):
    booking = _booking(data, rdv)
    with transaction.atomic():
        ensure_bookable(
            bookings_for_slot(str(booking.get('medecin') or ''), booking.get('date'), exclude_id=rdv.pk),
            booking,
            exclude_id=rdv.pk,
        )
        for field, value in data.items():
            setattr(rdv, field, value)
        rdv.save()
    log_action(user=current_user, action='rdv_update', object_type='rendez_vous', object_id=rdv.id,
               detail={'fields': sorted(data)})
    invalidate_stats_cache()
    return rdv
