from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from backend.main import create_app
from backend.sessions import SESSION_COOKIE


async def test_register_and_login(aclient):
    # регистрация
    resp = await aclient.post(
        "/register",
        json={"username": "bob", "password": "123456", "confirm_password": "123456"},
    )
    assert resp.status_code == 200
    assert resp.json()["username"] == "bob"
    assert resp.json()["id"]

    # вход и получение токена сессии
    token_resp = await aclient.post(
        "/login",
        data={"username": "bob", "password": "123456"},
        headers={"Content-Type": "application/x-www-form-urlencoded"},
    )
    assert token_resp.status_code == 200
    token_data = token_resp.json()
    assert token_data["token_type"] == "bearer"
    assert token_data["username"] == "bob"

    cookie = token_resp.headers["set-cookie"]
    assert cookie.startswith(f"{SESSION_COOKIE}=")
    assert "HttpOnly" in cookie
    assert "Max-Age=86400" in cookie
    assert "Secure" not in cookie


async def test_cookie_alone_authenticates(aclient):
    await aclient.post("/register", json={"username": "kim", "password": "123456"})
    await aclient.post("/login", data={"username": "kim", "password": "123456"})

    # без заголовка Authorization: клиент сам отправляет cookie
    resp = await aclient.get("/dashboard")
    assert resp.status_code == 200
    assert resp.json()["username"] == "kim"


@pytest.mark.parametrize(
    "payload, detail",
    [
        ({"username": "a", "password": "abc"}, "Пароль должен содержать не менее 6 символов"),
        ({"username": "", "password": "123456"}, "Имя пользователя обязательно"),
        ({"username": "   ", "password": "123456"}, "Имя пользователя обязательно"),
        ({"username": "a", "password": "123456", "confirm_password": "1234567"}, "Пароли не совпадают"),
    ],
)
async def test_register_validation_errors(aclient, payload, detail):
    resp = await aclient.post("/register", json=payload)
    assert resp.status_code == 400
    assert resp.json()["detail"] == detail


async def test_register_missing_field(aclient):
    resp = await aclient.post("/register", json={"username": "bob"})
    assert resp.status_code == 422


async def test_register_duplicate(aclient):
    await aclient.post("/register", json={"username": "dup", "password": "123456"})
    resp = await aclient.post("/register", json={"username": "dup", "password": "654321"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Пользователь уже существует"


@pytest.mark.parametrize(
    "form",
    [
        {"username": "eve", "password": "wrongpassword"},
        {"username": "nosuchuser", "password": "pass123"},
    ],
)
async def test_login_failures_look_the_same(aclient, form):
    await aclient.post("/register", json={"username": "eve", "password": "pass123"})
    resp = await aclient.post("/login", data=form)
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Неверные имя пользователя или пароль"
    assert "set-cookie" not in resp.headers


async def test_login_requires_both_fields(aclient):
    resp = await aclient.post("/login", data={"username": "eve"})
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Имя пользователя и пароль обязательны"


async def test_logout_invalidates_session(aclient):
    await aclient.post("/register", json={"username": "leo", "password": "123456"})
    token = (await aclient.post("/login", data={"username": "leo", "password": "123456"})).json()["access_token"]
    headers = {"Authorization": f"Bearer {token}"}

    assert (await aclient.get("/logout", headers=headers)).status_code == 200
    # повторный выход не ошибка
    assert (await aclient.get("/logout", headers=headers)).status_code == 200

    resp = await aclient.get("/dashboard", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Требуется вход в систему"


async def test_logout_without_session(aclient):
    resp = await aclient.get("/logout")
    assert resp.status_code == 200


@pytest.mark.parametrize("token", ["invalidtoken", "abc.def.ghi"])
async def test_bad_token_rejected(aclient, token):
    resp = await aclient.get("/dashboard", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.parametrize(
    "method, path",
    [
        ("GET", "/dashboard"),
        ("POST", "/tasks"),
        ("POST", "/tasks/abc/status"),
        ("POST", "/tasks/abc/delete"),
        ("GET", "/tasks/abc/edit"),
        ("POST", "/tasks/abc/edit"),
    ],
)
async def test_protected_routes_require_session(aclient, method, path):
    resp = await aclient.request(method, path, json={"title": "t", "status": "completed"})
    assert resp.status_code == 401


def test_secure_cookie_when_configured(settings, database):
    app = create_app(replace(settings, cookie_secure=True), database=database)
    client = TestClient(app)
    client.post("/register", json={"username": "sec", "password": "123456"})
    resp = client.post("/login", data={"username": "sec", "password": "123456"})
    assert resp.status_code == 200
    assert "Secure" in resp.headers["set-cookie"]
