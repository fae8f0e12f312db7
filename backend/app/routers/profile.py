import logging
import os
import sqlite3
import uuid
from typing import Optional

from fastapi import APIRouter, Depends, File, UploadFile

from backend.app.config import settings
from backend.app.db import get_conn
from backend.app.mappers import map_profile
from backend.app.models import ProfileDescriptionRequest
from backend.app.responses import ApiError, ok
from backend.app.security import Identity, get_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user/profile", tags=["profile"])

AVATAR_URL_PREFIX = "/avatars/"
ALLOWED_AVATAR_EXTENSIONS = (".jpg", ".jpeg", ".png", ".webp")

PROFILE_COLUMNS = "user_id, username, email, role, avatar_url, profile_description"


def avatars_dir() -> str:
    return os.path.join(settings.web_root, "avatars")


def _load_user(conn: sqlite3.Connection, user_id: int) -> sqlite3.Row:
    row = conn.execute(f"SELECT {PROFILE_COLUMNS} FROM users WHERE user_id = ?", (user_id,)).fetchone()
    if not row:
        raise ApiError(401, "Пользователь не найден.")
    return row


def _delete_old_avatar(avatar_url: Optional[str]) -> None:
    # only files we stored ourselves, never external urls
    if not avatar_url or not avatar_url.lower().startswith(AVATAR_URL_PREFIX):
        return
    path = os.path.join(avatars_dir(), os.path.basename(avatar_url))
    if os.path.isfile(path):
        os.remove(path)


@router.get("")
def get_profile(identity: Identity = Depends(get_identity), conn: sqlite3.Connection = Depends(get_conn)):
    return ok("Данные профиля получены", map_profile(_load_user(conn, identity.user_id)))


@router.put("/description")
def update_description(
    body: ProfileDescriptionRequest,
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    _load_user(conn, identity.user_id)

    text = body.profile_description
    text = text.strip() if text and text.strip() else None
    conn.execute("UPDATE users SET profile_description = ? WHERE user_id = ?", (text, identity.user_id))
    conn.commit()

    return ok("Описание профиля обновлено", map_profile(_load_user(conn, identity.user_id)))


@router.post("/avatar")
def upload_avatar(
    avatar: Optional[UploadFile] = File(None),
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    if avatar is None:
        raise ApiError(400, "Файл аватара не найден.")

    # read one byte past the limit so oversize uploads are detectable
    content = avatar.file.read(settings.max_avatar_bytes + 1)
    if len(content) == 0 or len(content) > settings.max_avatar_bytes:
        raise ApiError(400, "Размер файла должен быть больше 0 и не превышать 4 МБ.")

    extension = os.path.splitext(avatar.filename or "")[1].lower()
    if extension not in ALLOWED_AVATAR_EXTENSIONS:
        raise ApiError(400, "Допустимые форматы: jpg, jpeg, png, webp.")

    user = _load_user(conn, identity.user_id)

    os.makedirs(avatars_dir(), exist_ok=True)
    file_name = f"avatar_user_{identity.user_id}_{uuid.uuid4().hex}{extension}"
    with open(os.path.join(avatars_dir(), file_name), "wb") as f:
        f.write(content)

    _delete_old_avatar(user["avatar_url"])

    conn.execute(
        "UPDATE users SET avatar_url = ? WHERE user_id = ?",
        (AVATAR_URL_PREFIX + file_name, identity.user_id),
    )
    conn.commit()
    logger.info("User %s uploaded avatar %s (%d bytes)", identity.user_id, file_name, len(content))

    return ok("Аватар обновлён", map_profile(_load_user(conn, identity.user_id)))
