from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

from clinique.services.notifications import (
    Notification,
    NotificationCenter,
    generate_notifications,
    rank,
)
from clinique.services.state import AppState

TZ = ZoneInfo('Africa/Algiers')
# Wednesday afternoon
NOW = datetime(2024, 3, 13, 15, 0, tzinfo=TZ)


def rdv(pk, date='2024-03-13', heure='10:00', type='Consultation', medecin='Dr Benali', patient='Amine K.'):
    return {'id': pk, 'date': date, 'heure': heure, 'type': type, 'medecin': medecin,
            'patient': patient, 'statut': 'Confirmé'}


def state(**collections):
    return AppState.from_payload(tz=TZ, **collections)


def test_scenario_urgences_new_patient_and_doctor_on_leave():
    s = state(
        rendez_vous=[rdv(i, type='Urgence') for i in (1, 2, 3)],
        patients=[{'id': 1, 'nom': 'Haddad', 'createdAt': (NOW - timedelta(hours=2)).isoformat()}],
        medecins=[{'id': 1, 'nom': 'Saidi', 'status': 'En congé'}, {'id': 2, 'nom': 'Amrani'}],
    )
    result = generate_notifications(s, NOW)

    urgences = [n for n in result if n.title == 'URGENCE']
    assert len(urgences) == 3
    assert all(n.priority == 'high' for n in urgences)
    assert [n.id for n in urgences] == ['urgent-1', 'urgent-2', 'urgent-3']

    nouveaux = [n for n in result if n.title == 'Nouveaux patients']
    assert len(nouveaux) == 1 and nouveaux[0].priority == 'low'
    assert nouveaux[0].message == '1 nouveau(x) patient(s) ajouté(s)'

    conges = [n for n in result if n.title == 'Médecins en congé']
    assert len(conges) == 1 and conges[0].priority == 'medium'
    assert conges[0].message == '1 médecin(s) actuellement en congé'

    weights = [n.weight for n in result]
    assert weights == sorted(weights, reverse=True)
    assert result[0].title == 'URGENCE'
    assert result[-1].title == 'Nouveaux patients'


def test_same_day_appointment_message_and_elapsed_time():
    result = generate_notifications(state(rendez_vous=[rdv(7, heure='09:30')]), NOW)
    assert len(result) == 1
    n = result[0]
    assert n.id == 'appointment-today-7'
    assert n.message == 'Amine K. - 09:30 (Consultation)'
    assert n.time == 'Il y a 15h'
    assert n.priority == 'medium'
    assert n.action_url == '/planning'


def test_yesterday_urgence_is_not_reported():
    assert generate_notifications(state(rendez_vous=[rdv(1, date='2024-03-12', type='Urgence')]), NOW) == []


def test_invalid_dates_never_raise():
    s = state(
        rendez_vous=[rdv(1, date='pas une date', type='Urgence'), rdv(2, date='2024-13-45'), rdv(3, date=None)],
        patients=[{'id': 1, 'nom': 'X', 'createdAt': 'n/a', 'derniereVisite': 42}],
        consultations=[{'id': 1, 'date': '', 'patientId': 1}],
    )
    assert generate_notifications(s, NOW) == []


def test_recent_consultations_aggregate():
    s = state(consultations=[
        {'id': 1, 'date': (NOW - timedelta(hours=3)).isoformat(), 'patientId': 1},
        {'id': 2, 'date': (NOW - timedelta(hours=30)).isoformat(), 'patientId': 1},
        {'id': 3, 'date': (NOW - timedelta(hours=1)).isoformat(), 'patientId': {'id': 2, 'nomComplet': 'Y'}},
    ])
    [n] = generate_notifications(s, NOW)
    assert n.id == 'recent-consultations'
    assert n.message == '2 consultation(s) effectuée(s) récemment'
    assert n.action_url == '/statistiques'


def test_no_low_before_high_and_ties_keep_emission_order():
    items = [
        Notification('a', 'info', 'a', '', '', 'low'),
        Notification('b', 'urgent', 'b', '', '', 'high'),
        Notification('c', 'warning', 'c', '', '', 'medium'),
        Notification('d', 'urgent', 'd', '', '', 'high'),
    ]
    assert [n.id for n in rank(items)] == ['b', 'd', 'c', 'a']


def test_feed_is_capped_at_ten():
    s = state(rendez_vous=[rdv(i, type='Urgence') for i in range(15)])
    result = generate_notifications(s, NOW)
    assert len(result) == 10
    assert all(n.title == 'URGENCE' for n in result)


def test_presentation_table():
    assert Notification('x', 'urgent', '', '', '', 'high').presentation()['color'] == '#ef4444'
    assert Notification('x', 'appointment', '', '', '', 'high').presentation()['color'] == '#3b82f6'
    assert Notification('x', 'success', '', '', '', 'low').presentation() == {
        'icon': 'check-circle', 'color': '#10b981', 'priorityColor': '#3b82f6',
    }
    assert Notification('x', 'autre', '', '', '', 'low').presentation()['icon'] == 'bell'


# ---------------------------------------------------------------------
# Notification center
# ---------------------------------------------------------------------

def test_center_reports_toasts_once():
    s = state(rendez_vous=[rdv(1, type='Urgence'), rdv(2)], medecins=[{'id': 1, 'nom': 'S', 'status': 'En congé'}])
    center = NotificationCenter()
    toasts = center.check(s, NOW)
    assert [t.id for t in toasts] == ['urgent-1']
    assert center.unread_count == len(center.items) == 4

    assert center.check(s, NOW) == []
    assert len(center.items) == 4


def test_center_caps_history_at_twenty():
    center = NotificationCenter()
    center.check(state(rendez_vous=[rdv(i, type='Urgence') for i in range(25)]), NOW)
    assert len(center.items) == 20


def test_center_reminder_replaces_same_day_item():
    s = state(rendez_vous=[rdv(5, heure='16:30')])
    center = NotificationCenter()
    toasts = center.check(s, NOW)
    assert [n.id for n in center.items] == ['appointment-5']
    assert toasts[0].title == 'Rendez-vous dans 2h'
    assert toasts[0].message == 'Amine K. - 16:30 avec Dr. Dr Benali'


def test_center_actions_and_persistence():
    s = state(rendez_vous=[rdv(1, type='Urgence')], medecins=[{'id': 1, 'nom': 'S', 'status': 'En congé'}])
    center = NotificationCenter()
    center.check(s, NOW)

    assert center.activate('doctors-leave') == '/medecins'
    assert center.unread_count == 2
    assert center.mark_read('urgent-1') is True
    assert center.mark_read('inconnu') is False
    assert center.delete('urgent-1') is True

    restored = NotificationCenter.from_dict(center.to_dict())
    # deleted items are not brought back by the next generation
    assert restored.check(s, NOW) == []
    assert [n.id for n in restored.items] == [n.id for n in center.items]
    assert restored.mark_all_read() == 1
    assert restored.unread_count == 0


def test_center_reports_a_condition_again_once_it_cleared():
    leave = [{'id': 1, 'nom': 'Saidi', 'status': 'En congé'}]
    urgences = [rdv(i, type='Urgence', heure='09:00') for i in range(1, 21)]
    center = NotificationCenter()

    center.check(state(medecins=leave), NOW)
    center.check(state(rendez_vous=urgences), NOW)
    assert 'doctors-leave' not in [n.id for n in center.items]
    assert 'doctors-leave' not in center.seen
    assert len(center.seen) == 40

    center.check(state(medecins=leave, rendez_vous=urgences), NOW)
    assert center.items[0].id == 'doctors-leave'


def test_record_with_id_zero_keeps_its_id():
    s = state(rendez_vous=[rdv(0, type='Urgence')], consultations=[{'id': 5, 'patientId': {'id': 0}}])
    urgent = [n for n in generate_notifications(s, NOW) if n.title == 'URGENCE']
    assert [n.id for n in urgent] == ['urgent-0']
    assert s.consultations[0].patient_id == '0'
