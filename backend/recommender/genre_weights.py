from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, List, Optional
import sqlite3

from backend.app.mappers import MOVIE_COLUMNS, load_movies

DEFAULT_LIMIT = 20


@dataclass
class RecItem:
    movie: dict
    score: float

    def as_dict(self) -> dict:
        return {"movie": self.movie, "score": self.score}


def _get_user_listed_movie_ids(conn: sqlite3.Connection, user_id: int) -> set[int]:
    rows = conn.execute(
        "SELECT movie_id FROM user_movies WHERE user_id = ?",
        (user_id,),
    ).fetchall()
    return {int(r["movie_id"]) for r in rows}


def get_genre_weights(conn: sqlite3.Connection, user_id: int) -> Dict[int, float]:
    """
    genre_id -> weight from the user's declared interests.
    there is one row per (user, genre) in practice, duplicates are averaged
    """
    rows = conn.execute(
        "SELECT genre_id, weight FROM user_genre_interests WHERE user_id = ?",
        (user_id,),
    ).fetchall()

    grouped: Dict[int, List[float]] = defaultdict(list)
    for r in rows:
        grouped[int(r["genre_id"])].append(float(r["weight"]))

    return {g: sum(ws) / len(ws) for g, ws in grouped.items()}


def pick_random_unlisted(conn: sqlite3.Connection, user_id: int) -> Optional[dict]:
    row = conn.execute(
        f"""
        SELECT {MOVIE_COLUMNS}
        FROM movies m
        WHERE m.movie_id NOT IN (SELECT movie_id FROM user_movies WHERE user_id = ?)
        ORDER BY RANDOM()
        LIMIT 1
        """,
        (user_id,),
    ).fetchone()
    if not row:
        return None
    return load_movies(conn, [row])[0]


def recommend_by_genres(
    conn: sqlite3.Connection,
    user_id: int,
    weights: Dict[int, float],
    limit: int = DEFAULT_LIMIT,
) -> List[RecItem]:
    """
      linear genre scorer:
    - candidates = movies having at least one weighted genre, minus the user's list
    - score = sum of the weights of the movie's genres
    - keep score > 0, best first, ties by title, top 'limit'
    """
    if not weights:
        return []

    excluded = _get_user_listed_movie_ids(conn, user_id)
    genre_ids = list(weights.keys())
    q_marks = ",".join(["?"] * len(genre_ids))

    link_rows = conn.execute(
        f"SELECT movie_id, genre_id FROM movie_genres WHERE genre_id IN ({q_marks})",
        genre_ids,
    ).fetchall()

    scores: Dict[int, float] = defaultdict(float)
    for r in link_rows:
        movie_id = int(r["movie_id"])
        if movie_id in excluded:
            continue
        scores[movie_id] += weights[int(r["genre_id"])]

    candidate_ids = [m for m, s in scores.items() if s > 0]
    if not candidate_ids:
        return []

    movie_rows = conn.execute(
        f"SELECT {MOVIE_COLUMNS} FROM movies m WHERE m.movie_id IN ({','.join(['?'] * len(candidate_ids))})",
        candidate_ids,
    ).fetchall()

    scored = [RecItem(movie=m, score=scores[m["movieId"]]) for m in load_movies(conn, movie_rows)]
    scored.sort(key=lambda x: (-x.score, x.movie["title"]))
    return scored[:limit]
