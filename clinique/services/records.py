"""
Typed, immutable records consumed by the dashboard and notification code.

The records are built from the JSON representation served by the API
(camelCase keys, see :mod:`clinique.serializers`), which lets the server
and the API client derive exactly the same view models.  Builders never
raise on malformed input: unknown shapes become empty sections and bad
dates become ``None``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, tzinfo
from typing import Any, Mapping, Optional

from .dates import coerce_datetime


def _text(value: Any) -> str:
    if value is None:
        return ''
    return str(value).strip()


def _section(data: Mapping, key: str) -> Mapping:
    value = data.get(key) if isinstance(data, Mapping) else None
    return value if isinstance(value, Mapping) else {}


def _record_id(data: Mapping) -> str:
    """``id``, else the ``_id`` of imported documents; ``0`` is a valid id."""
    value = data.get('id')
    return _text(data.get('_id') if value is None else value)


def _ref_id(value: Any) -> Optional[str]:
    """Foreign references arrive either as ids or as populated objects."""
    if isinstance(value, Mapping):
        value = _record_id(value)
    return _text(value) or None


def _ref_name(value: Any) -> str:
    if isinstance(value, Mapping):
        return _text(value.get('nomComplet') or value.get('nom'))
    return ''


def _float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _int(value: Any) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class StatutEntry:
    statut: str
    date: Optional[datetime]


@dataclass(frozen=True)
class FacteursRisque:
    hta: bool = False
    diabete: bool = False
    dyslipidemie: bool = False
    obesite: bool = False
    tabac: bool = False
    cancer: bool = False
    autres: str = ''

    @classmethod
    def from_dict(cls, data: Mapping) -> 'FacteursRisque':
        return cls(
            hta=bool(data.get('hta')),
            diabete=bool(data.get('diabete')),
            dyslipidemie=bool(data.get('dyslipidemie')),
            obesite=bool(data.get('obesite')),
            tabac=bool(data.get('tabac')),
            cancer=bool(data.get('cancer')),
            autres=_text(data.get('autres')),
        )


@dataclass(frozen=True)
class Diagnostic:
    type_operation: str = ''
    laterality: str = ''
    reprise: str = ''
    date_operation: Optional[datetime] = None
    facteurs_risque: FacteursRisque = field(default_factory=FacteursRisque)
    maladie_cardiovasculaire: str = ''
    maladie_cardiovasculaire_fe: str = ''

    @classmethod
    def from_dict(cls, data: Mapping, tz: Optional[tzinfo] = None) -> 'Diagnostic':
        return cls(
            type_operation=_text(data.get('typeOperation')),
            laterality=_text(data.get('laterality')),
            reprise=_text(data.get('reprise')),
            date_operation=coerce_datetime(data.get('dateOperation'), tz),
            facteurs_risque=FacteursRisque.from_dict(_section(data, 'facteursRisque')),
            maladie_cardiovasculaire=_text(data.get('maladieCardiovasculaire')),
            maladie_cardiovasculaire_fe=_text(data.get('maladieCardiovasculaireFE')),
        )


ANTECEDENTS_MEDICAUX = ('angorEffort', 'sca', 'idm', 'aomi', 'avc')


@dataclass(frozen=True)
class Antecedents:
    medicaux: tuple[str, ...] = ()
    amputation_anterieure: str = ''
    amputation_familiale: str = ''

    @classmethod
    def from_dict(cls, data: Mapping) -> 'Antecedents':
        details = _section(data, 'medicauxDetails')
        chirurgicaux = _section(data, 'chirurgicauxDetails')
        return cls(
            medicaux=tuple(k for k in ANTECEDENTS_MEDICAUX if details.get(k)),
            amputation_anterieure=_text(chirurgicaux.get('amputationAnterieure')),
            amputation_familiale=_text(chirurgicaux.get('amputationFamiliale')),
        )


@dataclass(frozen=True)
class PatientRecord:
    id: str
    nom: str = ''
    prenom: str = ''
    age: Optional[int] = None
    sexe: str = ''
    diabete: str = ''
    derniere_visite: Optional[datetime] = None
    date_consultation: Optional[datetime] = None
    created_at: Optional[datetime] = None
    statut: str = 'nouveau'
    statut_history: tuple[StatutEntry, ...] = ()
    diagnostic: Diagnostic = field(default_factory=Diagnostic)
    antecedents: Antecedents = field(default_factory=Antecedents)

    @property
    def nom_complet(self) -> str:
        return f"{self.prenom} {self.nom}".strip()

    @property
    def last_activity(self) -> Optional[datetime]:
        """Last visit, else consultation date, else creation time."""
        return self.derniere_visite or self.date_consultation or self.created_at

    def statut_at(self, moment: datetime) -> Optional[str]:
        """Status in force at ``moment``; ``None`` if the patient did not exist yet."""
        dated = [e for e in self.statut_history if e.date is not None and e.date <= moment]
        if dated:
            return dated[-1].statut
        if self.created_at is not None and self.created_at <= moment and not self.statut_history:
            return self.statut
        return None

    @classmethod
    def from_dict(cls, data: Mapping, tz: Optional[tzinfo] = None) -> 'PatientRecord':
        history = []
        for entry in data.get('statutHistory') or ():
            if isinstance(entry, Mapping) and entry.get('statut'):
                history.append(StatutEntry(_text(entry['statut']), coerce_datetime(entry.get('date'), tz)))
        return cls(
            id=_record_id(data),
            nom=_text(data.get('nom')),
            prenom=_text(data.get('prenom')),
            age=_int(data.get('age')),
            sexe=_text(data.get('sexe')),
            diabete=_text(data.get('diabete')),
            derniere_visite=coerce_datetime(data.get('derniereVisite'), tz),
            date_consultation=coerce_datetime(data.get('dateConsultation'), tz),
            created_at=coerce_datetime(data.get('createdAt'), tz),
            statut=_text(data.get('statut')) or 'nouveau',
            statut_history=tuple(history),
            diagnostic=Diagnostic.from_dict(_section(data, 'diagnostic'), tz),
            antecedents=Antecedents.from_dict(_section(data, 'antecedents')),
        )


@dataclass(frozen=True)
class MedecinRecord:
    id: str
    nom: str = ''
    prenom: str = ''
    specialite: str = ''
    status: str = 'En service'

    @property
    def nom_complet(self) -> str:
        return f"{self.prenom} {self.nom}".strip()

    @classmethod
    def from_dict(cls, data: Mapping, tz: Optional[tzinfo] = None) -> 'MedecinRecord':
        return cls(
            id=_record_id(data),
            nom=_text(data.get('nom')),
            prenom=_text(data.get('prenom')),
            specialite=_text(data.get('specialite')),
            status=_text(data.get('status')) or 'En service',
        )


@dataclass(frozen=True)
class RendezVousRecord:
    id: str
    date: Optional[datetime] = None
    heure: str = ''
    patient: str = ''
    medecin: str = ''
    type: str = ''
    statut: str = ''
    notes: str = ''

    @classmethod
    def from_dict(cls, data: Mapping, tz: Optional[tzinfo] = None) -> 'RendezVousRecord':
        return cls(
            id=_record_id(data),
            date=coerce_datetime(data.get('date'), tz),
            heure=_text(data.get('heure')),
            patient=_text(data.get('patient')),
            medecin=_text(data.get('medecin')),
            type=_text(data.get('type')),
            statut=_text(data.get('statut')),
            notes=_text(data.get('notes')),
        )


@dataclass(frozen=True)
class ConsultationRecord:
    id: str
    date: Optional[datetime] = None
    patient_id: Optional[str] = None
    medecin_id: Optional[str] = None
    patient: str = ''
    medecin: str = ''
    type: str = ''
    montant: float = 0.0
    paiement: str = ''

    @classmethod
    def from_dict(cls, data: Mapping, tz: Optional[tzinfo] = None) -> 'ConsultationRecord':
        return cls(
            id=_record_id(data),
            date=coerce_datetime(data.get('date'), tz),
            patient_id=_ref_id(data.get('patientId')),
            medecin_id=_ref_id(data.get('medecinId')),
            patient=_text(data.get('patient')) or _ref_name(data.get('patientId')),
            medecin=_text(data.get('medecin')) or _ref_name(data.get('medecinId')),
            type=_text(data.get('type')),
            montant=_float(data.get('montant')),
            paiement=_text(data.get('paiement')),
        )
