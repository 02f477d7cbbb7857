"""
Patient persistence and treatment-status lifecycle.

Every status change appends a ``StatutHistory`` row.  History dates never
go backwards and the patient's current ``statut`` always equals the
status of its last history row; both are enforced here, which is the
only place that writes ``Patient.statut``.
"""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Optional

from django.db import transaction
from django.utils import timezone

from clinique.exceptions import StatutHistoryError
from clinique.models import Patient, StatutHistory
from .audit import log_action
from .state import invalidate_stats_cache

logger = logging.getLogger(__name__)


def append_statut(patient: Patient, statut: str, *, at: Optional[datetime] = None) -> Optional[StatutHistory]:
    """Record ``statut`` for ``patient`` at ``at`` (now by default).

    Returns ``None`` when the patient already has that status and a
    history; raises ``StatutHistoryError`` for an entry older than the
    last one.
    """
    at = at or timezone.now()
    last = patient.statut_history.order_by('-date', '-id').first()
    if last is not None:
        if last.statut == statut and patient.statut == statut:
            return None
        if at < last.date:
            raise StatutHistoryError()
    entry = StatutHistory.objects.create(patient=patient, statut=statut, date=at)
    if patient.statut != statut:
        patient.statut = statut
        patient.save(update_fields=['statut', 'updated_at'])
    return entry


@transaction.atomic
def create_patient(current_user, data: dict[str, Any]) -> Patient:
    data = dict(data)
    statut = data.pop('statut', None) or Patient.STATUT_NOUVEAU
    patient = Patient.objects.create(statut=statut, **data)
    append_statut(patient, statut, at=patient.created_at)
    log_action(user=current_user, action='patient_create', object_type='patient', object_id=patient.id,
               detail={'nom': patient.nom_complet, 'statut': statut})
    logger.info("patient %s created by %s", patient.id, getattr(current_user, 'username', None))
    invalidate_stats_cache()
    return patient


@transaction.atomic
def update_patient(current_user, patient: Patient, data: dict[str, Any]) -> Patient:
    data = dict(data)
    statut = data.pop('statut', None)
    for field, value in data.items():
        setattr(patient, field, value)
    patient.save()
    detail: dict[str, Any] = {'fields': sorted(data)}
    if statut and append_statut(patient, statut) is not None:
        detail['statut'] = statut
        logger.info("patient %s statut -> %s", patient.id, statut)
    log_action(user=current_user, action='patient_update', object_type='patient', object_id=patient.id,
               detail=detail)
    invalidate_stats_cache()
    return patient


def delete_patient(current_user, patient: Patient) -> None:
    pid = patient.id
    patient.delete()
    log_action(user=current_user, action='patient_delete', object_type='patient', object_id=pid)
    logger.info("patient %s deleted by %s", pid, getattr(current_user, 'username', None))
    invalidate_stats_cache()
