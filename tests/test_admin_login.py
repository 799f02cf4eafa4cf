import threading
from datetime import datetime, timedelta, timezone

import pytest

from app.errors import AuthenticationError
from app.services import auth as auth_service
from app.services.auth import decode_session_token, issue_session_token
from tests.conftest import ADMIN_PASSWORD, CUSTOMER_PASSWORD


async def test_admin_login_sets_cookie(client, make_profile, settings):
    profile = await make_profile(email="admin@example.com", role="admin", password=ADMIN_PASSWORD)

    response = await client.post(
        "/api/admin/login",
        json={"identifier": "Admin@Example.com", "password": ADMIN_PASSWORD}
    )

    assert response.status_code == 200
    assert response.json() == {"success": True}

    cookie = response.headers["set-cookie"]
    assert cookie.startswith("admin_session=")
    assert "HttpOnly" in cookie
    assert "Max-Age=604800" in cookie
    assert "Path=/" in cookie
    assert "samesite=strict" in cookie.lower()
    assert "Secure" not in cookie

    token = response.cookies["admin_session"]
    assert decode_session_token(token, settings)["sub"] == profile.id


async def test_staff_can_log_in_with_phone(client, make_profile):
    await make_profile(
        email="p905321234567@phone.lezzettetek.local",
        role="staff",
        password=ADMIN_PASSWORD
    )

    response = await client.post(
        "/api/admin/login",
        json={"identifier": "0532 123 45 67", "password": ADMIN_PASSWORD}
    )

    assert response.status_code == 200


async def test_allowlisted_email_gets_in_without_role(client, make_profile):
    await make_profile(email="orders@lezzettetek.example.com", role="customer", password=ADMIN_PASSWORD)

    response = await client.post(
        "/api/admin/login",
        json={"identifier": "orders@lezzettetek.example.com", "password": ADMIN_PASSWORD}
    )

    assert response.status_code == 200


async def test_wrong_password(client, make_profile):
    await make_profile(email="admin@example.com", role="admin", password=ADMIN_PASSWORD)

    response = await client.post(
        "/api/admin/login",
        json={"identifier": "admin@example.com", "password": "nope"}
    )

    assert response.status_code == 401
    assert "set-cookie" not in response.headers


async def test_unknown_user(client):
    response = await client.post(
        "/api/admin/login",
        json={"identifier": "ghost@example.com", "password": "whatever"}
    )

    assert response.status_code == 401


async def test_customer_is_forbidden(client, make_profile):
    await make_profile(role="customer", password=CUSTOMER_PASSWORD)

    response = await client.post(
        "/api/admin/login",
        json={"identifier": "musteri@example.com", "password": CUSTOMER_PASSWORD}
    )

    assert response.status_code == 403
    assert "set-cookie" not in response.headers


async def test_logout_clears_cookie(client):
    response = await client.post("/api/admin/logout")

    cookie = response.headers["set-cookie"]
    assert cookie.startswith("admin_session=")
    assert "Max-Age=0" in cookie


def test_session_token_expires(settings):
    class _Profile:
        id = "profile-1"
        role = "admin"

    issued = datetime.now(timezone.utc) - timedelta(days=8)
    token = issue_session_token(_Profile(), settings, now=issued)

    with pytest.raises(AuthenticationError):
        decode_session_token(token, settings)


def test_session_token_signed_with_other_secret(settings):
    class _Profile:
        id = "profile-1"
        role = "admin"

    token = issue_session_token(_Profile(), settings)
    other = settings.model_copy(update={"session_secret": "another-secret"})

    with pytest.raises(AuthenticationError):
        decode_session_token(token, other)


async def test_customer_login_sets_user_cookie(client, make_profile):
    await make_profile(password=CUSTOMER_PASSWORD)

    response = await client.post(
        "/api/auth/login",
        json={"identifier": "musteri@example.com", "password": CUSTOMER_PASSWORD}
    )

    assert response.status_code == 200
    assert response.json()["user"]["full_name"] == "Ayşe Yılmaz"
    assert "samesite=lax" in response.headers["set-cookie"].lower()


async def test_password_check_runs_off_the_event_loop(session, make_profile, monkeypatch):
    profile = await make_profile(email="admin@example.com", role="admin", password=ADMIN_PASSWORD)
    threads = []
    real_verify = auth_service.verify_password

    def recording_verify(password, password_hash):
        threads.append(threading.get_ident())
        return real_verify(password, password_hash)

    monkeypatch.setattr(auth_service, "verify_password", recording_verify)

    found = await auth_service.authenticate(session, "admin@example.com", ADMIN_PASSWORD)

    assert found.id == profile.id
    assert len(threads) == 1
    assert threads[0] != threading.get_ident()
