import logging
import sqlite3

from fastapi import APIRouter, Depends

from backend.app.db import get_conn
from backend.app.responses import ok
from backend.app.security import Identity, get_identity
from backend.recommender.genre_weights import (
    get_genre_weights,
    pick_random_unlisted,
    recommend_by_genres,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recommendations", tags=["recommendations"])


@router.get("/movies")
def movie_recommendations(
    identity: Identity = Depends(get_identity),
    conn: sqlite3.Connection = Depends(get_conn),
):
    weights = get_genre_weights(conn, identity.user_id)

    # no declared interests: fall back to one random movie outside the user's list
    if not weights:
        movie = pick_random_unlisted(conn, identity.user_id)
        if movie is None:
            return ok("В каталоге не осталось фильмов вне вашего списка.", [])
        return ok(
            "Предпочтения не заданы, показан случайный фильм.",
            [{"movie": movie, "score": 0.0}],
        )

    recs = recommend_by_genres(conn, identity.user_id, weights)
    logger.info("Recommended %d movies to user %s from %d genres", len(recs), identity.user_id, len(weights))

    if recs:
        message = "Рекомендации сформированы на основе любимых жанров."
    else:
        message = "Не удалось сформировать рекомендации по текущим предпочтениям."
    return ok(message, [r.as_dict() for r in recs])
