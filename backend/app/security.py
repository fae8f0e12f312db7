"""
Password hashing, JWT issuing and the cookie-based auth dependencies.

The token is never read from an Authorization header: the SPA sends it back
as an HttpOnly cookie.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import logging
import sqlite3

import bcrypt
import jwt
from fastapi import Depends, Request, Response

from backend.app.config import settings
from backend.app.db import get_conn
from backend.app.responses import ApiError

logger = logging.getLogger(__name__)

ROLE_USER = "user"
ROLE_ADMIN = "admin"
ALLOWED_ROLES = (ROLE_ADMIN, ROLE_USER)


@dataclass
class Identity:
    user_id: int
    username: str
    role: str

    def as_dict(self) -> dict:
        return {"id": self.user_id, "username": self.username, "role": self.role}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # malformed hash in the db, treat as a mismatch
        return False


def create_token(user_id: int, username: str, role: str) -> str:
    expires = datetime.now(timezone.utc) + timedelta(hours=settings.jwt_ttl_hours)
    payload = {
        "sub": str(user_id),
        "name": username,
        "role": role,
        "exp": expires,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> dict:
    return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])


def set_auth_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=settings.auth_cookie_name,
        value=token,
        max_age=settings.jwt_ttl_hours * 3600,
        path="/",
        secure=settings.auth_cookie_secure,
        httponly=True,
        samesite="none" if settings.auth_cookie_secure else "lax",
    )


def clear_auth_cookie(response: Response) -> None:
    response.delete_cookie(
        key=settings.auth_cookie_name,
        path="/",
        secure=settings.auth_cookie_secure,
        httponly=True,
        samesite="none" if settings.auth_cookie_secure else "lax",
    )


def get_identity(request: Request) -> Identity:
    """Claims from the auth cookie; no database lookup."""
    token = request.cookies.get(settings.auth_cookie_name)
    if not token:
        raise ApiError(401, "Требуется авторизация.")

    try:
        claims = decode_token(token)
    except jwt.ExpiredSignatureError:
        raise ApiError(401, "Срок действия сессии истёк. Войдите снова.")
    except jwt.InvalidTokenError:
        raise ApiError(401, "Требуется авторизация.")

    try:
        user_id = int(claims.get("sub", ""))
    except (TypeError, ValueError):
        raise ApiError(401, "Не удалось определить пользователя.")

    return Identity(
        user_id=user_id,
        username=str(claims.get("name") or ""),
        role=str(claims.get("role") or ROLE_USER),
    )


def get_current_user(
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
) -> Identity:
    """Like get_identity, but rejects tokens whose account was deleted meanwhile."""
    row = conn.execute("SELECT 1 FROM users WHERE user_id = ?", (identity.user_id,)).fetchone()
    if not row:
        raise ApiError(401, "Пользователь не найден. Возможно, ваш аккаунт был удален.")
    return identity


def require_admin(identity: Identity = Depends(get_identity)) -> Identity:
    if identity.role != ROLE_ADMIN:
        logger.warning("User %s (%s) tried an admin-only action", identity.user_id, identity.role)
        raise ApiError(403, "Недостаточно прав для выполнения операции.")
    return identity
