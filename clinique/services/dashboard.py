"""
Dashboard aggregation.

Weekly windows run from Monday 00:00:00 to Sunday 23:59:59.999999 in the
time zone of ``now``.  Windows never overlap, so a dated record is counted
in at most one of them; records without a usable date are counted in
none.  Only appointments whose ``statut`` is Confirmé or Terminé take part
in the weekly series.
"""
from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Iterable, Optional, Sequence

from django.conf import settings
from django.core.cache import cache

from .dates import resolve_now
from .records import ANTECEDENTS_MEDICAUX
from .state import STATS_CACHE_KEY, AppState, snapshot_from_db

logger = logging.getLogger(__name__)

QUALIFYING_STATUTS = frozenset({'Confirmé', 'Terminé'})
URGENCE = 'Urgence'
STATUT_NON_DEFINI = 'Non défini'
PATIENT_STATUTS = ('nouveau', 'sous_trt', 'apres_trt', 'decede')
RISK_FACTORS = ('hta', 'diabete', 'dyslipidemie', 'obesite', 'tabac', 'cancer')
AGE_BRACKETS = (
    ('<30', 0, 29),
    ('30-44', 30, 44),
    ('45-59', 45, 59),
    ('60+', 60, None),
)


@dataclass(frozen=True)
class WeekWindow:
    start: datetime
    end: datetime

    @property
    def label(self) -> str:
        return f"{self.start.day}/{self.start.month}"

    def contains(self, moment: Optional[datetime]) -> bool:
        return moment is not None and self.start <= moment <= self.end

    @classmethod
    def for_monday(cls, monday: date, tz) -> 'WeekWindow':
        return cls(
            start=datetime.combine(monday, time.min, tzinfo=tz),
            end=datetime.combine(monday + timedelta(days=6), time.max, tzinfo=tz),
        )


def week_windows(now: Optional[datetime] = None, n: int = 12) -> list[WeekWindow]:
    """``n`` consecutive weekly windows ending with the week of ``now``, oldest first."""
    now = resolve_now(now)
    monday = now.date() - timedelta(days=now.weekday())
    return [WeekWindow.for_monday(monday - timedelta(weeks=i), now.tzinfo) for i in range(n - 1, -1, -1)]


def windows_from_labels(labels: Iterable[str], now: Optional[datetime] = None) -> list[WeekWindow]:
    """Rebuild windows from ``d/m`` labels produced for the same ``now``.

    Each label resolves to the most recent Monday with that day and month
    that is not after the current week.  Labels that do not name a Monday
    are skipped.
    """
    now = resolve_now(now)
    current = now.date() - timedelta(days=now.weekday())
    windows = []
    for label in labels:
        try:
            day, month = (int(part) for part in str(label).split('/')[:2])
        except ValueError:
            continue
        for year in (current.year, current.year - 1):
            try:
                monday = date(year, month, day)
            except ValueError:
                continue
            if monday <= current and monday.weekday() == 0:
                windows.append(WeekWindow.for_monday(monday, now.tzinfo))
                break
    return windows


def window_index(moment: Optional[datetime], windows: Sequence[WeekWindow]) -> Optional[int]:
    for index, window in enumerate(windows):
        if window.contains(moment):
            return index
    return None


def occupancy(count: int, doctor_count: int) -> float:
    if doctor_count <= 0:
        return 0.0
    return round(count / doctor_count, 2)


@dataclass
class WeekSummary:
    window: WeekWindow
    rendez_vous: int = 0
    by_type: Counter = field(default_factory=Counter)
    new_patients: int = 0
    medecins: set = field(default_factory=set)
    occupancy: float = 0.0

    @property
    def urgences(self) -> int:
        return self.by_type.get(URGENCE, 0)

    @property
    def consultations(self) -> int:
        return self.rendez_vous - self.urgences

    def to_dict(self) -> dict:
        return {
            'week': self.window.label,
            'start': self.window.start.isoformat(),
            'end': self.window.end.isoformat(),
            'rendezVous': self.rendez_vous,
            'byType': dict(self.by_type),
            'consultations': self.consultations,
            'urgences': self.urgences,
            'newPatients': self.new_patients,
            'medecinsActifs': len(self.medecins),
            'occupancy': self.occupancy,
        }


def weekly_summaries(
    state: AppState,
    now: Optional[datetime] = None,
    n: int = 12,
    windows: Optional[Sequence[WeekWindow]] = None,
) -> list[WeekSummary]:
    windows = list(windows) if windows is not None else week_windows(now, n)
    summaries = [WeekSummary(window=w) for w in windows]
    for rdv in state.rendez_vous:
        if rdv.statut not in QUALIFYING_STATUTS:
            continue
        index = window_index(rdv.date, windows)
        if index is None:
            continue
        summary = summaries[index]
        summary.rendez_vous += 1
        summary.by_type[rdv.type or STATUT_NON_DEFINI] += 1
        if rdv.medecin:
            summary.medecins.add(rdv.medecin)
    for patient in state.patients:
        index = window_index(patient.created_at, windows)
        if index is not None:
            summaries[index].new_patients += 1
    doctor_count = len(state.medecins)
    for summary in summaries:
        summary.occupancy = occupancy(summary.rendez_vous, doctor_count)
    return summaries


def status_distribution(state: AppState) -> list[dict]:
    counts = Counter(rdv.statut or STATUT_NON_DEFINI for rdv in state.rendez_vous)
    return [{'name': name, 'value': value} for name, value in counts.most_common()]


# -----------------------------------------------------------------------------
# Aggregate breakdowns served at /stats/dashboard
# -----------------------------------------------------------------------------

def _grouped(values: Iterable[str]) -> list[dict]:
    counts = Counter(v for v in values if v)
    return [{'_id': key, 'count': count} for key, count in counts.most_common()]


def age_bracket(age: Optional[int]) -> Optional[str]:
    if age is None or age < 0:
        return None
    for label, low, high in AGE_BRACKETS:
        if age >= low and (high is None or age <= high):
            return label
    return None


def _breakdowns(state: AppState) -> dict:
    patients = state.patients
    diagnostics = [p.diagnostic for p in patients]
    return {
        'patientsByDiabetesType': _grouped(p.diabete for p in patients),
        'sexDistribution': _grouped(p.sexe for p in patients),
        'ageDistribution': [
            {'_id': label, 'count': sum(1 for p in patients if age_bracket(p.age) == label)}
            for label, _, _ in AGE_BRACKETS
        ],
        'operationTypes': _grouped(d.type_operation for d in diagnostics),
        'laterality': _grouped(d.laterality for d in diagnostics),
        'reprise': _grouped(d.reprise for d in diagnostics),
        'riskFactors': {
            name: sum(1 for d in diagnostics if getattr(d.facteurs_risque, name)) for name in RISK_FACTORS
        },
        'antecedentsMedicaux': {
            name: sum(1 for p in patients if name in p.antecedents.medicaux) for name in ANTECEDENTS_MEDICAUX
        },
        'amputationAnterieure': _grouped(p.antecedents.amputation_anterieure for p in patients),
        'amputationFamiliale': _grouped(p.antecedents.amputation_familiale for p in patients),
        'maladieCardioTypes': _grouped(d.maladie_cardiovasculaire for d in diagnostics),
        'maladieCardioFE': _grouped(d.maladie_cardiovasculaire_fe for d in diagnostics),
    }


def _monthly_trend(state: AppState) -> list[dict]:
    counts: dict[tuple[int, int], int] = defaultdict(int)
    for consultation in state.consultations:
        if consultation.date is not None:
            counts[(consultation.date.year, consultation.date.month)] += 1
    return [
        {'_id': {'year': year, 'month': month}, 'consultations': count}
        for (year, month), count in sorted(counts.items())
    ]


def taux_suivi(consultations: int, patients: int) -> str:
    if patients <= 0:
        return "0.0%"
    return f"{consultations / patients * 100:.1f}%"


def dashboard_stats(state: AppState, now: Optional[datetime] = None, weeks: int = 12) -> dict:
    now = resolve_now(now)
    windows = week_windows(now, weeks)
    summaries = weekly_summaries(state, windows=windows)

    def this_month(moment: Optional[datetime]) -> bool:
        return moment is not None and (moment.year, moment.month) == (now.year, now.month)

    revenue = sum(c.montant for c in state.consultations)
    month_consultations = [c for c in state.consultations if this_month(c.date)]

    evolution = []
    for window in windows:
        row = {'week': window.label, **{s: 0 for s in PATIENT_STATUTS}}
        for patient in state.patients:
            statut = patient.statut_at(window.end)
            if statut in row:
                row[statut] += 1
        evolution.append(row)

    return {
        'overview': {
            'totalPatients': len(state.patients),
            'totalMedecins': len(state.medecins),
            'totalRendezVous': len(state.rendez_vous),
            'totalConsultations': len(state.consultations),
            'totalRevenue': round(revenue, 2),
        },
        'thisMonth': {
            'newPatients': sum(1 for p in state.patients if this_month(p.created_at)),
            'rendezVous': sum(1 for r in state.rendez_vous if this_month(r.date)),
            'consultations': len(month_consultations),
            'revenue': round(sum(c.montant for c in month_consultations), 2),
        },
        'today': {
            'rendezVous': sum(1 for r in state.rendez_vous if r.date is not None and r.date.date() == now.date()),
        },
        'tauxSuivi': taux_suivi(len(state.consultations), len(state.patients)),
        'trends': {'monthly': _monthly_trend(state)},
        'breakdowns': _breakdowns(state),
        'patientsEvolutionData': evolution,
        'consultationsUrgencesData': [
            {'week': s.window.label, 'consultations': s.consultations, 'urgences': s.urgences} for s in summaries
        ],
        'medecinsServiceData': [{'week': s.window.label, 'enService': len(s.medecins)} for s in summaries],
        'newPatientsData': [{'week': s.window.label, 'count': s.new_patients} for s in summaries],
        'occupationData': [{'week': s.window.label, 'taux': s.occupancy} for s in summaries],
        'rdvStatusData': status_distribution(state),
    }


def cached_dashboard_stats(*, refresh: bool = False) -> dict:
    """``dashboard_stats`` over the database, kept in the cache for ``STATS_CACHE_SECONDS``."""
    payload = None if refresh else cache.get(STATS_CACHE_KEY)
    if payload is None:
        payload = dashboard_stats(snapshot_from_db(), weeks=settings.DASHBOARD_WEEKS)
        cache.set(STATS_CACHE_KEY, payload, settings.STATS_CACHE_SECONDS)
        logger.debug("dashboard stats recomputed")
    return payload
