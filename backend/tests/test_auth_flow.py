from __future__ import annotations

from session_authority.core import config as app_config
from session_authority.models.refresh_token import RefreshToken
from session_authority.routes.cookies import cookie_name, cookie_path


def test_auth_login_refresh_me_logout(client, db_session):
    res = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 200
    body = res.json()
    assert isinstance(body.get("access_token"), str) and body["access_token"]
    assert isinstance(body.get("refresh_token"), str) and body["refresh_token"]
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 15 * 60
    assert body["user"]["email"] == "a@x.com"
    assert set(body["user"].keys()) == {"id", "email", "created_at"}
    assert "set-cookie" in {k.lower() for k in res.headers.keys()}

    # Refresh via JSON body
    res2 = client.post("/auth/refresh", json={"refresh_token": body["refresh_token"]})
    assert res2.status_code == 200
    new_access = res2.json()["access_token"]
    assert isinstance(new_access, str) and new_access

    res3 = client.get("/auth/me", headers={"Authorization": f"Bearer {new_access}"})
    assert res3.status_code == 200
    assert res3.json()["id"] == body["user"]["id"]
    assert res3.json()["email"] == "a@x.com"

    res4 = client.post("/auth/logout", json={"refresh_token": body["refresh_token"]})
    assert res4.status_code == 200
    assert res4.json()["message"] == "Logged out"
    assert db_session.query(RefreshToken).count() == 0


def test_login_wrong_password_is_401(client):
    res = client.post("/auth/login", json={"email": "a@x.com", "password": "nope"})
    assert res.status_code == 401
    assert res.json()["details"]["reason"] == "INVALID_CREDENTIALS"


def test_login_unknown_email_looks_like_wrong_password(client):
    unknown = client.post("/auth/login", json={"email": "ghost@x.com", "password": "secret1"})
    wrong = client.post("/auth/login", json={"email": "a@x.com", "password": "nope"})
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.json() == wrong.json()


def test_refresh_via_cookie(client):
    res = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 200
    assert client.cookies.get(cookie_name())

    res2 = client.post("/auth/refresh")
    assert res2.status_code == 200
    assert res2.json()["access_token"]


def test_refresh_does_not_rotate(client, login):
    body = login()

    res1 = client.post("/auth/refresh", json={"refresh_token": body["refresh_token"]})
    res2 = client.post("/auth/refresh", json={"refresh_token": body["refresh_token"]})
    assert res1.status_code == 200
    assert res2.status_code == 200


def test_refresh_never_issued_token_is_401(client):
    client.cookies.clear()
    res = client.post("/auth/refresh", json={"refresh_token": "never-issued"})
    assert res.status_code == 401
    assert res.json()["details"]["reason"] == "INVALID_REFRESH_TOKEN"


def test_refresh_missing_token_is_401(client):
    client.cookies.clear()
    res = client.post("/auth/refresh")
    assert res.status_code == 401
    assert res.json()["details"]["reason"] == "INVALID_REFRESH_TOKEN"


def test_logout_without_token_succeeds(client):
    client.cookies.clear()
    res = client.post("/auth/logout")
    assert res.status_code == 200
    assert res.json()["message"] == "Logged out"


def test_logout_twice_and_unknown_token_succeed(client, login):
    body = login()
    for token in (body["refresh_token"], body["refresh_token"], "never-existed"):
        res = client.post("/auth/logout", json={"refresh_token": token})
        assert res.status_code == 200


def test_logout_via_cookie_revokes_session(client, db_session):
    res = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 200
    refresh_token = client.cookies.get(cookie_name())
    assert refresh_token

    res2 = client.post("/auth/logout")
    assert res2.status_code == 200
    assert db_session.query(RefreshToken).count() == 0

    client.cookies.set(cookie_name(), refresh_token, path=cookie_path())
    res3 = client.post("/auth/refresh")
    assert res3.status_code == 401


def test_logout_all_revokes_every_session(client, login):
    first = login()
    second = login()

    res = client.post("/auth/logout-all", headers={"Authorization": f"Bearer {second['access_token']}"})
    assert res.status_code == 200
    assert res.json()["revoked"] == 2

    for body in (first, second):
        r = client.post("/auth/refresh", json={"refresh_token": body["refresh_token"]})
        assert r.status_code == 401
        assert r.json()["details"]["reason"] == "INVALID_REFRESH_TOKEN"


def test_logout_all_requires_bearer(client):
    res = client.post("/auth/logout-all")
    assert res.status_code == 401
    assert res.json()["details"]["reason"] == "MISSING_CREDENTIAL"


def test_me_with_garbage_token_is_invalid_signature(client):
    res = client.get("/auth/me", headers={"Authorization": "Bearer garbage"})
    assert res.status_code == 401
    assert res.json()["details"]["reason"] == "INVALID_SIGNATURE"
    assert res.headers.get("www-authenticate") == "Bearer"


def test_me_with_malformed_header_is_missing_credential(client):
    res = client.get("/auth/me", headers={"Authorization": "Token abc"})
    assert res.status_code == 401
    assert res.json()["details"]["reason"] == "MISSING_CREDENTIAL"


def test_me_after_user_deleted_is_user_not_found(client, login, db_session, user):
    body = login()

    db_session.delete(user)
    db_session.commit()

    res = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert res.status_code == 401
    assert res.json()["details"]["reason"] == "USER_NOT_FOUND"


def test_settings_changes_after_startup_do_not_affect_issued_tokens(client, login):
    body = login()

    app_config.settings.JWT_SECRET = "changed_after_startup"
    app_config.settings.ACCESS_TOKEN_TTL = "1s"

    res = client.get("/auth/me", headers={"Authorization": f"Bearer {body['access_token']}"})
    assert res.status_code == 200
    assert res.json()["email"] == "a@x.com"

    res2 = client.post("/auth/refresh", json={"refresh_token": body["refresh_token"]})
    assert res2.status_code == 200
    assert res2.json()["expires_in"] == 15 * 60


def test_login_cookie_max_age_matches_refresh_ttl(client):
    app_config.settings.REFRESH_TOKEN_TTL = "1d"

    res = client.post("/auth/login", json={"email": "a@x.com", "password": "secret1"})
    assert res.status_code == 200
    assert f"Max-Age={7 * 24 * 60 * 60}" in res.headers["set-cookie"]
