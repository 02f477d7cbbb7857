"""
Python client for the BuchaTech API.

``BuchaTechClient`` wraps the HTTP endpoints.  ``DataStore`` keeps a local
``AppState`` in sync with the server: ``refresh()`` fetches the four
collections and the dashboard aggregate in parallel and hands the
combined result to a single reducer step.  Each refresh takes a sequence
number and a completion that is no longer the latest is discarded, so
out-of-order responses never overwrite newer data.  Mutations apply the
record returned by the server locally, then trigger a refresh.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any, Callable, Optional

import requests

from clinique.services.planning import ensure_bookable
from clinique.services.state import AppState

logger = logging.getLogger(__name__)

LOAD_ERROR = "Erreur lors du chargement des données"

ENDPOINTS = {
    'patients': '/patients',
    'medecins': '/medecins',
    'rendez_vous': '/rendez-vous',
    'consultations': '/consultations',
}
STATS_ENDPOINT = '/stats/dashboard'


class ApiError(RuntimeError):
    def __init__(self, status: int, message: str, code: str = 'api_error'):
        super().__init__(message)
        self.status = status
        self.code = code


class BuchaTechClient:
    """HTTP client; safe to call from several threads.

    Without an explicit ``session`` every thread gets its own
    ``requests.Session``.  A session passed in is used as is by all threads.
    """

    def __init__(self, base_url: str, token: Optional[str] = None, timeout: float = 10,
                 session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.headers: dict[str, str] = {}
        self._session = session
        self._local = threading.local()
        if token:
            self.set_token(token)

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, 'session', None)
        if session is None:
            session = self._local.session = requests.Session()
        return session

    def set_token(self, token: str) -> None:
        self.headers['Authorization'] = f'Token {token}'

    def login(self, username: str, password: str) -> dict:
        data = self.request('POST', '/auth/login', json={'username': username, 'password': password})
        self.set_token(data['token'])
        return data

    def request(self, method: str, path: str, **kwargs) -> Any:
        r = self.session.request(method, f"{self.base_url}{path}", headers=self.headers, timeout=self.timeout,
                                 **kwargs)
        if r.status_code >= 400:
            try:
                body = r.json()
            except ValueError:
                body = None
            error = body.get('error') if isinstance(body, dict) else None
            if not isinstance(error, dict):
                error = {}
            raise ApiError(r.status_code, str(error.get('message') or r.reason), error.get('code') or 'api_error')
        if r.status_code == 204 or not r.content:
            return None
        return r.json()

    def list(self, kind: str) -> list[dict]:
        return self.request('GET', ENDPOINTS[kind])

    def stats(self) -> dict:
        return self.request('GET', STATS_ENDPOINT)

    def create(self, kind: str, data: dict) -> dict:
        return self.request('POST', ENDPOINTS[kind], json=data)

    def update(self, kind: str, record_id: Any, data: dict) -> dict:
        return self.request('PUT', f"{ENDPOINTS[kind]}/{record_id}", json=data)

    def delete(self, kind: str, record_id: Any) -> None:
        self.request('DELETE', f"{ENDPOINTS[kind]}/{record_id}")


class DataStore:
    """Local, thread-safe mirror of the server data."""

    def __init__(self, client: BuchaTechClient, executor: Optional[ThreadPoolExecutor] = None, tz=None):
        self.client = client
        self.tz = tz
        self.state = AppState()
        self.stats: Optional[dict] = None
        self.loading = False
        self.error: Optional[str] = None
        self._seq = 0
        self._lock = threading.Lock()
        self._executor = executor or ThreadPoolExecutor(max_workers=2, thread_name_prefix='datastore')

    def close(self) -> None:
        self._executor.shutdown(wait=True)

    # -- loading ---------------------------------------------------------------

    def refresh(self) -> Future:
        """Start a full reload; the future resolves to True if its result was applied."""
        with self._lock:
            self._seq += 1
            seq = self._seq
            self.loading = True
            self.error = None
        return self._executor.submit(self._load, seq)

    def _fetch_all(self) -> dict:
        with ThreadPoolExecutor(max_workers=len(ENDPOINTS) + 1) as pool:
            futures = {kind: pool.submit(self.client.list, kind) for kind in ENDPOINTS}
            futures['stats'] = pool.submit(self.client.stats)
            return {kind: f.result() for kind, f in futures.items()}

    def _load(self, seq: int) -> bool:
        try:
            payload = self._fetch_all()
        except (requests.RequestException, ApiError, ValueError) as e:
            logger.error("fetch failed (seq=%d): %s", seq, e)
            return self._reduce(seq, error=LOAD_ERROR)
        except Exception:
            logger.exception("fetch failed (seq=%d)", seq)
            return self._reduce(seq, error=LOAD_ERROR)
        return self._reduce(seq, payload=payload)

    def _reduce(self, seq: int, payload: Optional[dict] = None, error: Optional[str] = None) -> bool:
        with self._lock:
            if seq != self._seq:
                logger.debug("discarding stale completion seq=%d (latest=%d)", seq, self._seq)
                return False
            if error is not None:
                self.error = error
            else:
                self.state = AppState.from_payload(
                    patients=payload['patients'],
                    medecins=payload['medecins'],
                    rendez_vous=payload['rendez_vous'],
                    consultations=payload['consultations'],
                    tz=self.tz,
                )
                self.stats = payload['stats']
            self.loading = False
            return True

    # -- mutations -------------------------------------------------------------

    def _apply(self, change: Callable[[AppState], AppState]) -> None:
        with self._lock:
            self.state = change(self.state)

    def _add(self, kind: str, data: dict) -> dict:
        created = self.client.create(kind, data)
        self._apply(lambda s: s.added(kind, created, self.tz))
        self.refresh()
        return created

    def _update(self, kind: str, record_id: Any, data: dict) -> dict:
        updated = self.client.update(kind, record_id, data)
        self._apply(lambda s: s.updated(kind, updated, self.tz))
        self.refresh()
        return updated

    def _delete(self, kind: str, record_id: Any) -> None:
        self.client.delete(kind, record_id)
        self._apply(lambda s: s.removed(kind, record_id))
        self.refresh()

    def add_patient(self, data: dict) -> dict:
        return self._add('patients', data)

    def update_patient(self, record_id: Any, data: dict) -> dict:
        return self._update('patients', record_id, data)

    def delete_patient(self, record_id: Any) -> None:
        self._delete('patients', record_id)

    def add_medecin(self, data: dict) -> dict:
        return self._add('medecins', data)

    def update_medecin(self, record_id: Any, data: dict) -> dict:
        return self._update('medecins', record_id, data)

    def delete_medecin(self, record_id: Any) -> None:
        self._delete('medecins', record_id)

    def add_rendez_vous(self, data: dict) -> dict:
        """Reject locally known double bookings before calling the API."""
        ensure_bookable(self.state.rendez_vous, data)
        return self._add('rendez_vous', data)

    def update_rendez_vous(self, record_id: Any, data: dict) -> dict:
        current = next((r for r in self.state.rendez_vous if r.id == str(record_id)), None)
        if current is not None:
            merged = {'patient': current.patient, 'medecin': current.medecin, 'type': current.type,
                      'date': current.date, 'heure': current.heure, **data}
            ensure_bookable(self.state.rendez_vous, merged, exclude_id=record_id)
        return self._update('rendez_vous', record_id, data)

    def delete_rendez_vous(self, record_id: Any) -> None:
        self._delete('rendez_vous', record_id)
