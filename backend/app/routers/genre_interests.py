import logging
import sqlite3
from typing import Dict, List

from fastapi import APIRouter, Depends

from backend.app.db import get_conn
from backend.app.models import GenreInterestsUpdateRequest
from backend.app.responses import ApiError, ok
from backend.app.security import Identity, get_identity

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/user/genre-interests", tags=["genre-interests"])


def _interests(conn: sqlite3.Connection, user_id: int) -> List[dict]:
    rows = conn.execute(
        """
        SELECT ugi.genre_id, g.name AS genre_name, ugi.weight
        FROM user_genre_interests ugi
        JOIN genres g ON g.genre_id = ugi.genre_id
        WHERE ugi.user_id = ?
        ORDER BY g.name
        """,
        (user_id,),
    ).fetchall()
    return [
        {"genreId": int(r["genre_id"]), "genreName": r["genre_name"], "weight": float(r["weight"])}
        for r in rows
    ]


@router.get("")
def get_interests(identity: Identity = Depends(get_identity), conn: sqlite3.Connection = Depends(get_conn)):
    return ok("Предпочтения пользователя получены", _interests(conn, identity.user_id))


@router.put("")
def replace_interests(
    body: GenreInterestsUpdateRequest,
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    if not conn.execute("SELECT 1 FROM users WHERE user_id = ?", (identity.user_id,)).fetchone():
        raise ApiError(401, "Пользователь не найден или больше не существует.")

    # a repeated genre keeps its last weight; dict preserves first-seen order
    incoming: Dict[int, float] = {}
    for item in body.interests:
        if item is not None:
            incoming[item.genre_id] = item.weight

    if any(genre_id <= 0 for genre_id in incoming):
        raise ApiError(400, "Идентификатор жанра должен быть положительным числом.")

    # written as a range check so NaN fails it too
    if any(not 0 < weight <= 1 for weight in incoming.values()):
        raise ApiError(400, "Вес предпочтения должен быть в диапазоне (0; 1].")

    requested = list(incoming.keys())
    if requested:
        q_marks = ",".join(["?"] * len(requested))
        rows = conn.execute(
            f"SELECT genre_id FROM genres WHERE genre_id IN ({q_marks})",
            requested,
        ).fetchall()
        existing = {int(r["genre_id"]) for r in rows}
        missing = [g for g in requested if g not in existing]
        if missing:
            raise ApiError(400, f"Некоторые жанры не найдены: {', '.join(str(g) for g in missing)}.")

    if requested:
        q_marks = ",".join(["?"] * len(requested))
        conn.execute(
            f"DELETE FROM user_genre_interests WHERE user_id = ? AND genre_id NOT IN ({q_marks})",
            [identity.user_id, *requested],
        )
    else:
        conn.execute("DELETE FROM user_genre_interests WHERE user_id = ?", (identity.user_id,))

    conn.executemany(
        """
        INSERT INTO user_genre_interests(user_id, genre_id, weight)
        VALUES(?,?,?)
        ON CONFLICT(user_id, genre_id) DO UPDATE SET weight = excluded.weight
        """,
        [(identity.user_id, g, w) for g, w in incoming.items()],
    )
    conn.commit()
    logger.info("User %s now has %d genre interests", identity.user_id, len(incoming))

    return ok("Предпочтения обновлены", _interests(conn, identity.user_id))
