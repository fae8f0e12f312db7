from datetime import datetime, timedelta, timezone

import jwt

from backend.app.config import settings
from conftest import PASSWORD


def test_register_sets_cookie_and_returns_identity(client):
    r = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": PASSWORD},
    )
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "Успешно"
    assert body["data"]["username"] == "alice"
    assert body["data"]["role"] == "user"
    assert isinstance(body["data"]["id"], int)

    cookie = r.headers["set-cookie"].lower()
    assert cookie.startswith(settings.auth_cookie_name)
    assert "httponly" in cookie
    assert "secure" in cookie
    assert "samesite=none" in cookie

    token = client.cookies.get(settings.auth_cookie_name)
    claims = jwt.decode(token, settings.jwt_secret, algorithms=["HS512"])
    assert claims["sub"] == str(body["data"]["id"])
    assert claims["name"] == "alice"
    assert claims["role"] == "user"


def test_register_duplicate_username_and_email(client, register):
    register("alice")

    r = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "other@example.com", "password": PASSWORD},
    )
    assert r.status_code == 400
    assert r.json() == {
        "status": "Ошибка",
        "message": "Пользователь с таким именем уже существует.",
        "data": None,
    }

    r = client.post(
        "/api/auth/register",
        json={"username": "bob", "email": "alice@example.com", "password": PASSWORD},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Пользователь с такой почтой уже существует."


def test_register_validation_messages(client):
    r = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "alice@example.com", "password": "123"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Пароль должен содержать минимум 6 символов."

    r = client.post(
        "/api/auth/register",
        json={"username": "alice", "email": "not-an-email", "password": PASSWORD},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Некорректный адрес электронной почты."

    r = client.post("/api/auth/register", json={"username": "alice", "password": PASSWORD})
    assert r.status_code == 400
    assert r.json()["message"] == "Поле email обязательно для заполнения."


def test_login(client, register):
    register("alice")

    r = client.post("/api/auth/login", json={"username": "alice", "password": "wrong-password"})
    assert r.status_code == 400
    assert r.json()["message"] == "Неверное имя пользователя или пароль."

    r = client.post("/api/auth/login", json={"username": "nobody", "password": PASSWORD})
    assert r.status_code == 400

    r = client.post("/api/auth/login", json={"username": "alice", "password": PASSWORD})
    assert r.status_code == 200
    assert r.json()["data"]["username"] == "alice"

    r = client.get("/api/auth/check-auth")
    assert r.status_code == 200
    assert r.json()["data"]["username"] == "alice"


def test_check_auth_requires_cookie(client):
    r = client.get("/api/auth/check-auth")
    assert r.status_code == 401
    body = r.json()
    assert body["status"] == "Ошибка"
    assert body["data"] is None


def test_invalid_and_expired_tokens_are_rejected(client, new_client):
    c = new_client()
    r = c.get("/api/auth/check-auth", headers={"Cookie": f"{settings.auth_cookie_name}=garbage"})
    assert r.status_code == 401
    assert r.json()["message"] == "Требуется авторизация."

    expired = jwt.encode(
        {"sub": "1", "name": "alice", "role": "user", "exp": datetime.now(timezone.utc) - timedelta(hours=1)},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    r = c.get("/api/auth/check-auth", headers={"Cookie": f"{settings.auth_cookie_name}={expired}"})
    assert r.status_code == 401
    assert r.json()["message"] == "Срок действия сессии истёк. Войдите снова."


def test_check_auth_after_account_deleted(register, db):
    c = register("alice")
    db.execute("DELETE FROM users WHERE username = 'alice'")
    db.commit()

    r = c.get("/api/auth/check-auth")
    assert r.status_code == 401
    assert r.json()["message"] == "Пользователь не найден. Возможно, ваш аккаунт был удален."


def test_logout_clears_cookie(register):
    c = register("alice")
    r = c.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json()["status"] == "Успешно"

    assert c.get("/api/auth/check-auth").status_code == 401


def test_change_password(register, new_client):
    c = register("alice")

    r = c.post(
        "/api/auth/change-password",
        json={"oldPassword": PASSWORD, "newPassword": "newpass1", "confirmPassword": "different"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Пароли не совпадают."

    r = c.post(
        "/api/auth/change-password",
        json={"oldPassword": PASSWORD, "newPassword": "123", "confirmPassword": "123"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Новый пароль должен содержать минимум 6 символов."

    r = c.post(
        "/api/auth/change-password",
        json={"oldPassword": "not-my-password", "newPassword": "newpass1", "confirmPassword": "newpass1"},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Неверный старый пароль."

    r = c.post(
        "/api/auth/change-password",
        json={"oldPassword": PASSWORD, "newPassword": "newpass1", "confirmPassword": "newpass1"},
    )
    assert r.status_code == 200

    other = new_client()
    assert other.post("/api/auth/login", json={"username": "alice", "password": PASSWORD}).status_code == 400
    assert other.post("/api/auth/login", json={"username": "alice", "password": "newpass1"}).status_code == 200


def test_change_password_requires_auth(client):
    r = client.post(
        "/api/auth/change-password",
        json={"oldPassword": PASSWORD, "newPassword": "newpass1", "confirmPassword": "newpass1"},
    )
    assert r.status_code == 401
