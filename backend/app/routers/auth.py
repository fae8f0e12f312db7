import logging
import sqlite3

from fastapi import APIRouter, Depends, Response

from backend.app.db import get_conn
from backend.app.models import ChangePasswordRequest, LoginRequest, RegisterRequest
from backend.app.responses import ApiError, ok
from backend.app.security import (
    ROLE_USER,
    Identity,
    clear_auth_cookie,
    create_token,
    get_current_user,
    get_identity,
    hash_password,
    set_auth_cookie,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


def _issue_cookie(response: Response, user_id: int, username: str, role: str) -> dict:
    set_auth_cookie(response, create_token(user_id, username, role))
    return {"id": user_id, "username": username, "role": role}


@router.post("/register")
def register(body: RegisterRequest, response: Response, conn: sqlite3.Connection = Depends(get_conn)):
    if conn.execute("SELECT 1 FROM users WHERE username = ?", (body.username,)).fetchone():
        raise ApiError(400, "Пользователь с таким именем уже существует.")

    if conn.execute("SELECT 1 FROM users WHERE email = ?", (body.email,)).fetchone():
        raise ApiError(400, "Пользователь с такой почтой уже существует.")

    cur = conn.execute(
        "INSERT INTO users(username, email, hashed_password, role) VALUES(?,?,?,?)",
        (body.username, body.email, hash_password(body.password), ROLE_USER),
    )
    conn.commit()
    user_id = int(cur.lastrowid)
    logger.info("Registered user %s (id=%s)", body.username, user_id)

    data = _issue_cookie(response, user_id, body.username, ROLE_USER)
    return ok("Вы успешно зарегистрировались", data)


@router.post("/login")
def login(body: LoginRequest, response: Response, conn: sqlite3.Connection = Depends(get_conn)):
    user = conn.execute(
        "SELECT user_id, username, hashed_password, role FROM users WHERE username = ?",
        (body.username,),
    ).fetchone()

    if not user or not verify_password(body.password, user["hashed_password"]):
        logger.info("Failed login for %r", body.username)
        raise ApiError(400, "Неверное имя пользователя или пароль.")

    data = _issue_cookie(response, int(user["user_id"]), user["username"], user["role"])
    return ok("Вход в систему выполнен", data)


@router.post("/change-password")
def change_password(
    body: ChangePasswordRequest,
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    user = conn.execute(
        "SELECT user_id, username, hashed_password, role FROM users WHERE username = ?",
        (identity.username,),
    ).fetchone()
    if not user:
        raise ApiError(404, "Пользователь не найден.")

    if not verify_password(body.old_password, user["hashed_password"]):
        raise ApiError(400, "Неверный старый пароль.")

    conn.execute(
        "UPDATE users SET hashed_password = ? WHERE user_id = ?",
        (hash_password(body.new_password), user["user_id"]),
    )
    conn.commit()
    logger.info("User %s changed password", user["user_id"])

    return ok(
        "Пароль успешно изменен",
        {"id": int(user["user_id"]), "username": user["username"], "role": user["role"]},
    )


@router.get("/check-auth")
def check_auth(identity: Identity = Depends(get_current_user)):
    return ok("Вы активны в системе", identity.as_dict())


@router.post("/logout")
def logout(response: Response, identity: Identity = Depends(get_identity)):
    clear_auth_cookie(response)
    return ok("Вы успешно вышли из системы")
