"""
Application state snapshot.

``AppState`` is the immutable value handed to the notification generator
and the dashboard aggregator.  On the server it is built from the
database through the API serializers (:func:`snapshot_from_db`); the API
client builds it from the JSON it fetched (:meth:`AppState.from_payload`).
Both paths go through the same record builders.
"""
from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import tzinfo
from typing import Any, Iterable, Optional

from django.core.cache import cache

from .records import ConsultationRecord, MedecinRecord, PatientRecord, RendezVousRecord

STATS_CACHE_KEY = 'stats:dashboard'

_BUILDERS = {
    'patients': PatientRecord,
    'medecins': MedecinRecord,
    'rendez_vous': RendezVousRecord,
    'consultations': ConsultationRecord,
}


def _build(kind: str, items: Optional[Iterable[Any]], tz: Optional[tzinfo]) -> tuple:
    builder = _BUILDERS[kind]
    return tuple(builder.from_dict(item, tz) for item in (items or ()) if isinstance(item, dict))


@dataclass(frozen=True)
class AppState:
    patients: tuple[PatientRecord, ...] = ()
    medecins: tuple[MedecinRecord, ...] = ()
    rendez_vous: tuple[RendezVousRecord, ...] = ()
    consultations: tuple[ConsultationRecord, ...] = ()

    @classmethod
    def from_payload(
        cls,
        *,
        patients: Optional[Iterable[dict]] = None,
        medecins: Optional[Iterable[dict]] = None,
        rendez_vous: Optional[Iterable[dict]] = None,
        consultations: Optional[Iterable[dict]] = None,
        tz: Optional[tzinfo] = None,
    ) -> 'AppState':
        return cls(
            patients=_build('patients', patients, tz),
            medecins=_build('medecins', medecins, tz),
            rendez_vous=_build('rendez_vous', rendez_vous, tz),
            consultations=_build('consultations', consultations, tz),
        )

    # -- pure updates used for optimistic mutations ---------------------------

    def added(self, kind: str, item: dict, tz: Optional[tzinfo] = None) -> 'AppState':
        record = _BUILDERS[kind].from_dict(item, tz)
        return dataclasses.replace(self, **{kind: getattr(self, kind) + (record,)})

    def updated(self, kind: str, item: dict, tz: Optional[tzinfo] = None) -> 'AppState':
        record = _BUILDERS[kind].from_dict(item, tz)
        items = tuple(record if r.id == record.id else r for r in getattr(self, kind))
        return dataclasses.replace(self, **{kind: items})

    def removed(self, kind: str, record_id: Any) -> 'AppState':
        items = tuple(r for r in getattr(self, kind) if r.id != str(record_id))
        return dataclasses.replace(self, **{kind: items})


def snapshot_from_db(tz: Optional[tzinfo] = None) -> AppState:
    """Load every collection from the database into an ``AppState``."""
    from ..models import Consultation, Medecin, Patient, RendezVous
    from ..serializers.consultation import ConsultationSerializer
    from ..serializers.medecin import MedecinSerializer
    from ..serializers.patient import PatientSerializer
    from ..serializers.rendezvous import RendezVousSerializer

    patients = Patient.objects.prefetch_related('statut_history').order_by('id')
    consultations = Consultation.objects.select_related('patient', 'medecin').order_by('id')
    return AppState.from_payload(
        patients=PatientSerializer(patients, many=True).data,
        medecins=MedecinSerializer(Medecin.objects.order_by('id'), many=True).data,
        rendez_vous=RendezVousSerializer(RendezVous.objects.order_by('id'), many=True).data,
        consultations=ConsultationSerializer(consultations, many=True).data,
        tz=tz,
    )


def invalidate_stats_cache() -> None:
    cache.delete(STATS_CACHE_KEY)
