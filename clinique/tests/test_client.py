import threading
from concurrent.futures import Future
from unittest import mock

import pytest
import requests

from clinique.client import LOAD_ERROR, ApiError, BuchaTechClient, DataStore
from clinique.exceptions import ConflitHoraire


class ManualExecutor:
    """Runs submitted jobs only when the test says so."""

    def __init__(self):
        self.jobs = []

    def submit(self, fn, *args):
        future = Future()
        self.jobs.append((future, fn, args))
        return future

    def run(self, index):
        future, fn, args = self.jobs[index]
        future.set_result(fn(*args))
        return future.result()

    def shutdown(self, wait=True):
        pass


class FakeClient:
    def __init__(self, patients=(), rendez_vous=()):
        self.data = {'patients': list(patients), 'medecins': [], 'rendez_vous': list(rendez_vous),
                     'consultations': []}
        self.created = []
        self.fail = None

    def list(self, kind):
        if self.fail:
            raise self.fail
        return list(self.data[kind])

    def stats(self):
        return {'overview': {'totalPatients': len(self.data['patients'])}}

    def create(self, kind, data):
        record = dict(data, id=100 + len(self.created))
        self.created.append(record)
        return record

    def update(self, kind, record_id, data):
        return dict(data, id=record_id)

    def delete(self, kind, record_id):
        pass


def test_refresh_loads_every_collection():
    client = FakeClient(patients=[{'id': 1, 'nom': 'Haddad'}])
    executor = ManualExecutor()
    store = DataStore(client, executor=executor)

    store.refresh()
    assert store.loading is True
    assert executor.run(0) is True
    assert store.loading is False
    assert store.error is None
    assert [p.nom for p in store.state.patients] == ['Haddad']
    assert store.stats == {'overview': {'totalPatients': 1}}


def test_stale_completion_is_discarded():
    client = FakeClient()
    executor = ManualExecutor()
    store = DataStore(client, executor=executor)

    store.refresh()
    store.refresh()

    client.data['patients'] = [{'id': 2, 'nom': 'Nouveau'}]
    assert executor.run(1) is True
    client.data['patients'] = [{'id': 1, 'nom': 'Ancien'}]
    assert executor.run(0) is False

    assert [p.nom for p in store.state.patients] == ['Nouveau']
    assert store.loading is False


def test_failed_load_sets_error_message():
    client = FakeClient()
    client.fail = requests.ConnectionError('refused')
    executor = ManualExecutor()
    store = DataStore(client, executor=executor)

    store.refresh()
    executor.run(0)
    assert store.error == LOAD_ERROR
    assert store.loading is False

    client.fail = None
    store.refresh()
    assert store.error is None
    executor.run(1)
    assert store.error is None


def test_mutation_is_applied_before_refresh_completes():
    client = FakeClient()
    executor = ManualExecutor()
    store = DataStore(client, executor=executor)

    created = store.add_patient({'nom': 'Haddad'})
    assert [p.id for p in store.state.patients] == [str(created['id'])]
    assert len(executor.jobs) == 1

    store.update_patient(created['id'], {'nom': 'Haddad-Benali'})
    assert [p.nom for p in store.state.patients] == ['Haddad-Benali']

    store.delete_patient(created['id'])
    assert store.state.patients == ()


def test_double_booking_is_rejected_before_the_request():
    slot = {'patient': 'A', 'medecin': 'Dr Benali', 'type': 'Consultation', 'date': '2024-03-13', 'heure': '10:00'}
    client = FakeClient(rendez_vous=[dict(slot, id=1)])
    executor = ManualExecutor()
    store = DataStore(client, executor=executor)
    store.refresh()
    executor.run(0)

    with pytest.raises(ConflitHoraire):
        store.add_rendez_vous(dict(slot, patient='B'))
    assert client.created == []

    store.update_rendez_vous(1, {'notes': 'rappel'})
    store.add_rendez_vous(dict(slot, heure='11:00'))
    assert len(client.created) == 1


def test_api_errors_carry_the_server_code():
    session = mock.Mock(spec=requests.Session)
    response = mock.Mock(status_code=409, reason='Conflict', content=b'{}')
    response.json.return_value = {'ok': False, 'error': {'code': 'conflit_horaire', 'message': 'occupé'}}
    session.request.return_value = response

    client = BuchaTechClient('http://api.test/api/', token='abc', session=session)
    with pytest.raises(ApiError) as exc:
        client.create('rendez_vous', {})
    assert exc.value.status == 409
    assert exc.value.code == 'conflit_horaire'
    assert str(exc.value) == 'occupé'
    session.request.assert_called_once_with('POST', 'http://api.test/api/rendez-vous',
                                            headers={'Authorization': 'Token abc'}, timeout=10, json={})


def failing_session(status_code, body):
    session = mock.Mock(spec=requests.Session)
    response = mock.Mock(status_code=status_code, reason='Bad Gateway', content=b'x')
    response.json.return_value = body
    session.request.return_value = response
    return session


@pytest.mark.parametrize('body', [[], 'upstream down', {'error': 'texte'}, {'ok': False}])
def test_error_bodies_of_any_shape_raise_api_error(body):
    client = BuchaTechClient('http://api.test/api', session=failing_session(502, body))
    with pytest.raises(ApiError) as exc:
        client.list('patients')
    assert exc.value.status == 502
    assert exc.value.code == 'api_error'
    assert str(exc.value) == 'Bad Gateway'


def test_error_body_that_is_not_json_raises_api_error():
    session = failing_session(500, None)
    session.request.return_value.json.side_effect = ValueError('no json')
    client = BuchaTechClient('http://api.test/api', session=session)
    with pytest.raises(ApiError):
        client.stats()


def test_load_ends_with_error_on_a_list_error_body():
    executor = ManualExecutor()
    store = DataStore(BuchaTechClient('http://api.test/api', session=failing_session(502, [])), executor=executor)
    store.refresh()
    assert executor.run(0) is True
    assert store.loading is False
    assert store.error == LOAD_ERROR


def test_load_ends_with_error_on_unexpected_exception():
    client = FakeClient()
    client.fail = AttributeError('boom')
    executor = ManualExecutor()
    store = DataStore(client, executor=executor)
    store.refresh()
    assert executor.run(0) is True
    assert store.loading is False
    assert store.error == LOAD_ERROR


def test_each_thread_gets_its_own_session():
    client = BuchaTechClient('http://api.test/api', token='abc')
    sessions = []
    workers = [threading.Thread(target=lambda: sessions.append(client.session)) for _ in range(3)]
    for w in workers:
        w.start()
    for w in workers:
        w.join()
    assert len({id(s) for s in sessions}) == 3
    assert client.session is client.session
    assert client.headers == {'Authorization': 'Token abc'}
