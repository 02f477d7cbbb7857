import pytest
from django.core.cache import cache
from django.urls import reverse
from rest_framework.test import APIClient

from clinique.models import User

pytestmark = pytest.mark.django_db


def test_login_returns_token_and_jwt_pair():
    cache.clear()
    User.objects.create_user(username="sec", email="sec@buchatech.dz", password="pw-test-1", role="secretaire")
    client = APIClient()
    resp = client.post(reverse("login_view"), {"username": "sec", "password": "pw-test-1"}, format="json")
    assert resp.status_code == 200
    assert resp.data["role"] == "secretaire"
    assert resp.data["token"] and resp.data["jwt_access"] and resp.data["jwt_refresh"]
    assert "parametres" not in resp.data["user"]["sections"]

    client.credentials(HTTP_AUTHORIZATION=f"Token {resp.data['token']}")
    assert client.get("/api/patients").status_code == 200

    jwt_client = APIClient()
    jwt_client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['jwt_access']}")
    assert jwt_client.get("/api/rendez-vous").status_code == 200


def test_login_by_email_and_bad_password():
    cache.clear()
    User.objects.create_user(username="dr", email="dr@buchatech.dz", password="pw-test-2", role="medecin")
    client = APIClient()
    ok = client.post(reverse("login_view"), {"email": "dr@buchatech.dz", "password": "pw-test-2"}, format="json")
    assert ok.status_code == 200
    assert ok.data["user"]["username"] == "dr"

    bad = client.post(reverse("login_view"), {"username": "dr", "password": "nope"}, format="json")
    assert bad.status_code == 400
    assert bad.data["error"]["code"] == "invalid_credentials"


def test_healthz_is_public():
    assert APIClient().get("/healthz").status_code == 200
