import datetime as dt
from zoneinfo import ZoneInfo

import pytest
from django.contrib.auth import get_user_model

from clinique.exceptions import ConflitHoraire, ValidationRendezVous
from clinique.models import AuditEvent, RendezVous
from clinique.services.planning import (
    create_rendez_vous,
    ensure_bookable,
    find_conflit,
    normalize_heure,
    update_rendez_vous,
)
from clinique.services.state import AppState

TZ = ZoneInfo('Africa/Algiers')


def booked(*rows):
    return AppState.from_payload(tz=TZ, rendez_vous=[
        {'id': pk, 'date': date, 'heure': heure, 'medecin': medecin, 'patient': 'P', 'type': 'Consultation'}
        for pk, date, heure, medecin in rows
    ]).rendez_vous


def booking(**overrides):
    data = {'patient': 'Karim D.', 'medecin': 'Dr Benali', 'type': 'Consultation',
            'date': '2024-03-13', 'heure': '10:00'}
    data.update(overrides)
    return data


def test_normalize_heure():
    assert normalize_heure('9:5') == '09:05'
    assert normalize_heure(' 14:30 ') == '14:30'
    assert normalize_heure('midi') == 'midi'


def test_third_booking_on_same_slot_is_rejected():
    existing = booked((1, '2024-03-13', '10:00', 'Dr Benali'), (2, '2024-03-13', '10:00', 'Dr Benali'))
    with pytest.raises(ConflitHoraire) as exc:
        ensure_bookable(existing, booking())
    assert exc.value.default_code == 'conflit_horaire'


def test_conflict_is_per_doctor_date_and_time():
    existing = booked((1, '2024-03-13', '10:00', 'Dr Benali'))
    ensure_bookable(existing, booking(heure='10:30'))
    ensure_bookable(existing, booking(date='2024-03-14'))
    ensure_bookable(existing, booking(medecin='Dr Saidi'))
    assert find_conflit(existing, medecin='dr benali ', date=dt.date(2024, 3, 13), heure='10:0').id == '1'


def test_update_does_not_conflict_with_itself():
    existing = booked((1, '2024-03-13', '10:00', 'Dr Benali'))
    ensure_bookable(existing, booking(), exclude_id=1)
    with pytest.raises(ConflitHoraire):
        ensure_bookable(existing, booking(), exclude_id=2)


@pytest.mark.parametrize('field,message', [
    ('patient', "Veuillez indiquer le nom du patient"),
    ('medecin', "Veuillez sélectionner un médecin"),
    ('type', "Veuillez sélectionner le type de consultation"),
    ('date', "Veuillez sélectionner une date"),
    ('heure', "Veuillez sélectionner une heure"),
])
def test_missing_field_is_reported(field, message):
    with pytest.raises(ValidationRendezVous) as exc:
        ensure_bookable((), booking(**{field: ''}))
    assert str(exc.value.detail) == message


# ---------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------

@pytest.mark.django_db
def test_create_rejects_double_booking_without_writing():
    user = get_user_model().objects.create_user(username='sec', password='x', role='secretaire')
    data = {'patient': 'Karim D.', 'medecin': 'Dr Benali', 'type': 'Consultation',
            'date': dt.date(2024, 3, 13), 'heure': '10:00'}
    rdv = create_rendez_vous(user, dict(data))
    assert AuditEvent.objects.filter(action='rdv_create', object_id=rdv.id).exists()

    with pytest.raises(ConflitHoraire):
        create_rendez_vous(user, dict(data, patient='Nadia F.', medecin='DR BENALI'))
    assert RendezVous.objects.count() == 1


@pytest.mark.django_db
def test_update_moves_appointment_unless_slot_taken():
    user = get_user_model().objects.create_user(username='sec', password='x', role='secretaire')
    day = dt.date(2024, 3, 13)
    first = RendezVous.objects.create(patient='A', medecin='Dr Benali', type='Consultation', date=day, heure='10:00')
    second = RendezVous.objects.create(patient='B', medecin='Dr Benali', type='Consultation', date=day, heure='11:00')

    update_rendez_vous(user, first, {'notes': 'à jeun'})
    with pytest.raises(ConflitHoraire):
        update_rendez_vous(user, second, {'heure': '10:00'})
    second.refresh_from_db()
    assert second.heure == '11:00'

    update_rendez_vous(user, second, {'heure': '11:30'})
    second.refresh_from_db()
    assert second.heure == '11:30'
