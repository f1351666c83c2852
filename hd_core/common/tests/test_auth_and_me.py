# hd_core/common/tests/test_auth_and_me.py
import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from hd_core.conftest import make_user

pytestmark = pytest.mark.django_db


def test_me_requires_auth():
    # fresh client: the api_client fixture is already authenticated
    res = APIClient().get("/api/me/")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "not_authenticated"


def test_login_sets_cookies_and_cookie_authenticates(settings):
    make_user("nurse", "INQUIRY")
    c = APIClient()

    res = c.post("/api/auth/login/", {"username": "nurse", "password": "testpass"}, format="json")
    assert res.status_code == 200
    assert res.json()["access"]

    access_cookie = settings.SIMPLE_JWT["AUTH_COOKIE"]
    refresh_cookie = settings.SIMPLE_JWT["AUTH_COOKIE_REFRESH"]
    assert access_cookie in res.cookies
    assert refresh_cookie in res.cookies

    me = c.get("/api/me/")
    assert me.status_code == 200
    assert me.json()["roles"] == ["INQUIRY"]


def test_bad_password_is_rejected():
    make_user("nurse", "INQUIRY")
    res = APIClient().post("/api/auth/login/", {"username": "nurse", "password": "wrong"}, format="json")
    assert res.status_code == 401
    assert res["WWW-Authenticate"].startswith("Bearer")


def test_refresh_with_garbage_token_is_401():
    res = APIClient().post("/api/v1/auth/refresh/", {"refresh": "not-a-jwt"}, format="json")
    assert res.status_code == 401
    assert "error" in res.json()


def test_refresh_accepts_body_token():
    user = make_user("tech", "LAB")
    refresh = RefreshToken.for_user(user)

    res = APIClient().post("/api/v1/auth/refresh/", {"refresh": str(refresh)}, format="json")
    assert res.status_code == 200
    assert res.json()["access"]


def test_bearer_token_and_roles():
    user = make_user("multi", "LAB", "PHARMACIST")
    c = APIClient()
    c.credentials(HTTP_AUTHORIZATION=f"Bearer {RefreshToken.for_user(user).access_token}")

    res = c.get("/api/v1/me/")
    assert res.status_code == 200
    assert res.json() == {"id": user.id, "username": "multi", "roles": ["LAB", "PHARMACIST"]}


def test_logout_clears_cookies(api_client, settings):
    res = api_client.post("/api/auth/logout/")
    assert res.status_code == 200
    assert res.cookies[settings.SIMPLE_JWT["AUTH_COOKIE"]].value == ""
