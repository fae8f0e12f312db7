"""
Per-user movie lists: one row per (user, movie) with a watch status, and a
score once the movie has been rated.

Rating is gated on the current status: only "watched" or already "rated"
entries accept a score, and a successful rating moves the entry to "rated".
"""
from typing import List, Optional
import logging
import sqlite3

from fastapi import APIRouter, Depends

from backend.app.db import get_conn
from backend.app.mappers import USER_MOVIE_COLUMNS, map_user_movies
from backend.app.models import Int32Path, RateMovieRequest, UserMovieRequest
from backend.app.responses import ApiError, ok
from backend.app.schema import RATED_STATUS, WATCHED_STATUS
from backend.app.security import Identity, get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user/movies", tags=["user-movies"])

LIST_MESSAGE = "Список фильмов пользователя получен"


def _clean_comment(comment: Optional[str]) -> Optional[str]:
    if comment is None or not comment.strip():
        return None
    return comment.strip()


def _list_for_user(conn: sqlite3.Connection, user_id: int) -> List[dict]:
    rows = conn.execute(
        f"""
        SELECT {USER_MOVIE_COLUMNS}
        FROM user_movies um
        JOIN movies m ON m.movie_id = um.movie_id
        LEFT JOIN statuses s ON s.status_id = um.status_id
        WHERE um.user_id = ?
        ORDER BY um.added_at DESC, um.user_movie_id DESC
        """,
        (user_id,),
    ).fetchall()
    return map_user_movies(conn, rows)


def _load_entry(conn: sqlite3.Connection, user_id: int, movie_id: int) -> Optional[dict]:
    rows = conn.execute(
        f"""
        SELECT {USER_MOVIE_COLUMNS}
        FROM user_movies um
        JOIN movies m ON m.movie_id = um.movie_id
        LEFT JOIN statuses s ON s.status_id = um.status_id
        WHERE um.user_id = ? AND um.movie_id = ?
        """,
        (user_id, movie_id),
    ).fetchall()
    entries = map_user_movies(conn, rows)
    return entries[0] if entries else None


def _status_id_by_name(conn: sqlite3.Connection, name: str) -> Optional[int]:
    row = conn.execute("SELECT status_id FROM statuses WHERE name = ?", (name,)).fetchone()
    return int(row["status_id"]) if row else None


def _require_movie(conn: sqlite3.Connection, movie_id: int) -> None:
    if not conn.execute("SELECT 1 FROM movies WHERE movie_id = ?", (movie_id,)).fetchone():
        raise ApiError(404, "Фильм не найден.")


@router.get("")
def my_movies(
    identity: Identity = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_conn),
):
    return ok(LIST_MESSAGE, _list_for_user(conn, identity.user_id))


@router.get("/public/{username}")
def public_movies(username: str, conn: sqlite3.Connection = Depends(get_conn)):
    trimmed = (username or "").strip()
    if not trimmed:
        raise ApiError(400, "Имя пользователя не может быть пустым.")

    user = conn.execute("SELECT user_id FROM users WHERE username = ?", (trimmed,)).fetchone()
    if not user:
        raise ApiError(404, "Пользователь не найден.")

    return ok(LIST_MESSAGE, _list_for_user(conn, int(user["user_id"])))


@router.post("")
def add_or_update(
    body: UserMovieRequest,
    identity: Identity = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_conn),
):
    _require_movie(conn, body.movie_id)

    if not conn.execute("SELECT 1 FROM statuses WHERE status_id = ?", (body.status_id,)).fetchone():
        raise ApiError(400, "Статус не найден.")

    # added_at keeps the first insert time
    conn.execute(
        """
        INSERT INTO user_movies(user_id, movie_id, status_id, comment)
        VALUES(?,?,?,?)
        ON CONFLICT(user_id, movie_id)
        DO UPDATE SET status_id = excluded.status_id, comment = excluded.comment
        """,
        (identity.user_id, body.movie_id, body.status_id, _clean_comment(body.comment)),
    )
    conn.commit()
    logger.info("User %s set movie %s to status %s", identity.user_id, body.movie_id, body.status_id)

    return ok("Фильм добавлен в список пользователя", _load_entry(conn, identity.user_id, body.movie_id))


@router.post("/rate")
def rate_movie(
    body: RateMovieRequest,
    identity: Identity = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_conn),
):
    _require_movie(conn, body.movie_id)

    rated_id = _status_id_by_name(conn, RATED_STATUS)
    if rated_id is None:
        raise ApiError(400, f'Статус "{RATED_STATUS}" отсутствует. Добавьте его в справочник статусов.')

    watched_id = _status_id_by_name(conn, WATCHED_STATUS)
    if watched_id is None:
        raise ApiError(400, f'Статус "{WATCHED_STATUS}" отсутствует. Добавьте его в справочник статусов.')

    entry = conn.execute(
        "SELECT user_movie_id, status_id FROM user_movies WHERE user_id = ? AND movie_id = ?",
        (identity.user_id, body.movie_id),
    ).fetchone()

    # re-rating an already rated movie is allowed
    if entry is None or entry["status_id"] not in (watched_id, rated_id):
        raise ApiError(400, f'Нельзя оценить фильм, пока он не добавлен в статус "{WATCHED_STATUS}".')

    conn.execute(
        "UPDATE user_movies SET score = ?, status_id = ?, comment = ? WHERE user_movie_id = ?",
        (body.score, rated_id, _clean_comment(body.comment), entry["user_movie_id"]),
    )
    conn.commit()
    logger.info("User %s rated movie %s with %s", identity.user_id, body.movie_id, body.score)

    return ok("Оценка сохранена", _load_entry(conn, identity.user_id, body.movie_id))


@router.delete("/{movie_id}")
def remove_from_list(
    movie_id: Int32Path,
    identity: Identity = Depends(get_current_user),
    conn: sqlite3.Connection = Depends(get_conn),
):
    if movie_id <= 0:
        raise ApiError(400, "Некорректный идентификатор фильма.")

    cur = conn.execute(
        "DELETE FROM user_movies WHERE user_id = ? AND movie_id = ?",
        (identity.user_id, movie_id),
    )
    if cur.rowcount == 0:
        raise ApiError(404, "Фильм не найден в вашем списке.")
    conn.commit()

    return ok("Фильм удалён из списка.")
