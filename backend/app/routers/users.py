import logging
import sqlite3
from typing import Optional

from fastapi import APIRouter, Depends, Query

from backend.app.db import get_conn
from backend.app.mappers import map_user_admin
from backend.app.models import Int32Path, UserAdminUpdateRequest
from backend.app.responses import ApiError, ok
from backend.app.security import ALLOWED_ROLES, Identity, get_identity, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/users", tags=["users"])

USER_COLUMNS = "user_id, username, email, role"


@router.get("")
def list_users(
    search: Optional[str] = Query(None),
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    sql = f"SELECT {USER_COLUMNS} FROM users"
    params: list = []
    trimmed = (search or "").strip()
    if trimmed:
        sql += " WHERE username LIKE ?"
        params.append(f"%{trimmed}%")
    sql += " ORDER BY user_id"

    rows = conn.execute(sql, params).fetchall()
    return ok("Список пользователей получен", [map_user_admin(r) for r in rows])


@router.get("/by-username/{username}")
def get_user_by_username(
    username: str,
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    trimmed = (username or "").strip()
    if not trimmed:
        raise ApiError(400, "Имя пользователя не может быть пустым.")

    row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE username = ?", (trimmed,)).fetchone()
    if not row:
        raise ApiError(404, "Пользователь не найден")
    return ok("Пользователь найден", map_user_admin(row))


@router.get("/{user_id}")
def get_user(
    user_id: Int32Path,
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE user_id = ?", (user_id,)).fetchone()
    if not row:
        raise ApiError(404, "Пользователь не найден")
    return ok("Пользователь найден", map_user_admin(row))


@router.put("/{user_id}")
def update_user(
    user_id: Int32Path,
    body: UserAdminUpdateRequest,
    admin: Identity = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_conn),
):
    if not conn.execute("SELECT 1 FROM users WHERE user_id = ?", (user_id,)).fetchone():
        raise ApiError(404, "Пользователь не найден")

    if conn.execute(
        "SELECT 1 FROM users WHERE username = ? AND user_id != ?", (body.username, user_id)
    ).fetchone():
        raise ApiError(400, "Имя пользователя уже занято.")

    if conn.execute(
        "SELECT 1 FROM users WHERE email = ? AND user_id != ?", (body.email, user_id)
    ).fetchone():
        raise ApiError(400, "Электронная почта уже используется.")

    if body.role not in ALLOWED_ROLES:
        raise ApiError(400, "Недопустимая роль. Разрешены: admin, user.")

    conn.execute(
        "UPDATE users SET username = ?, email = ?, role = ? WHERE user_id = ?",
        (body.username, body.email, body.role, user_id),
    )
    conn.commit()
    logger.info("Admin %s updated user %s (role=%s)", admin.user_id, user_id, body.role)

    row = conn.execute(f"SELECT {USER_COLUMNS} FROM users WHERE user_id = ?", (user_id,)).fetchone()
    return ok("Данные пользователя обновлены", map_user_admin(row))


@router.delete("/{user_id}")
def delete_user(
    user_id: Int32Path,
    admin: Identity = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_conn),
):
    cur = conn.execute("DELETE FROM users WHERE user_id = ?", (user_id,))
    if cur.rowcount == 0:
        raise ApiError(404, "Пользователь не найден")
    conn.commit()
    logger.info("Admin %s deleted user %s", admin.user_id, user_id)
    return ok("Пользователь удалён")
