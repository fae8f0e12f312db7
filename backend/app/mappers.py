from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence
import sqlite3

MOVIE_COLUMNS = """
    m.movie_id, m.title, m.description, m.release_year,
    m.director, m.poster_url, m.duration_minutes
"""

# (link table, lookup table, lookup id column, json key)
_LOOKUP_LINKS = (
    ("movie_genres", "genres", "genre_id", "genres"),
    ("movie_tags", "tags", "tag_id", "tags"),
    ("movie_countries", "countries", "country_id", "countries"),
)


def _placeholders(values: Sequence[object]) -> str:
    return ",".join(["?"] * len(values))


def map_movie(row: sqlite3.Row) -> dict:
    """Bare movie JSON, relations left empty (filled by load_movies)."""
    return {
        "movieId": int(row["movie_id"]),
        "title": row["title"],
        "description": row["description"],
        "releaseYear": row["release_year"],
        "director": row["director"],
        "posterUrl": row["poster_url"],
        "durationMinutes": row["duration_minutes"],
        "genres": [],
        "tags": [],
        "countries": [],
        "trailers": [],
    }


def _attach_relations(conn: sqlite3.Connection, movies: Dict[int, dict]) -> None:
    ids = list(movies.keys())
    if not ids:
        return
    q_marks = _placeholders(ids)

    for link_table, lookup_table, id_col, key in _LOOKUP_LINKS:
        rows = conn.execute(
            f"""
            SELECT l.movie_id, x.{id_col} AS id, x.name
            FROM {link_table} l
            JOIN {lookup_table} x ON x.{id_col} = l.{id_col}
            WHERE l.movie_id IN ({q_marks})
            ORDER BY x.name, x.{id_col}
            """,
            ids,
        ).fetchall()
        for r in rows:
            movies[int(r["movie_id"])][key].append({"id": int(r["id"]), "name": r["name"]})

    rows = conn.execute(
        f"""
        SELECT trailer_id, movie_id, trailer_url
        FROM trailers
        WHERE movie_id IN ({q_marks})
        ORDER BY trailer_id
        """,
        ids,
    ).fetchall()
    for r in rows:
        movies[int(r["movie_id"])]["trailers"].append(
            {"id": int(r["trailer_id"]), "url": r["trailer_url"]}
        )


def load_movies(conn: sqlite3.Connection, rows: Iterable[sqlite3.Row]) -> List[dict]:
    """Map movie rows (in the given order) to full JSON with genres, tags, countries and trailers."""
    ordered: List[dict] = []
    by_id: Dict[int, dict] = {}
    for row in rows:
        movie = map_movie(row)
        ordered.append(movie)
        by_id[movie["movieId"]] = movie
    _attach_relations(conn, by_id)
    return ordered


def fetch_movie(conn: sqlite3.Connection, movie_id: int) -> Optional[dict]:
    row = conn.execute(
        f"SELECT {MOVIE_COLUMNS} FROM movies m WHERE m.movie_id = ?",
        (movie_id,),
    ).fetchone()
    if not row:
        return None
    return load_movies(conn, [row])[0]


def fetch_movies_by_ids(conn: sqlite3.Connection, movie_ids: Sequence[int]) -> Dict[int, dict]:
    if not movie_ids:
        return {}
    rows = conn.execute(
        f"SELECT {MOVIE_COLUMNS} FROM movies m WHERE m.movie_id IN ({_placeholders(movie_ids)})",
        list(movie_ids),
    ).fetchall()
    return {m["movieId"]: m for m in load_movies(conn, rows)}


# user lists

USER_MOVIE_COLUMNS = """
    um.movie_id, um.status_id, um.score, um.comment, um.added_at,
    s.name AS status_name, m.title AS movie_title
"""


def map_user_movies(conn: sqlite3.Connection, rows: Sequence[sqlite3.Row]) -> List[dict]:
    movies = fetch_movies_by_ids(conn, [int(r["movie_id"]) for r in rows])
    result = []
    for r in rows:
        movie = movies.get(int(r["movie_id"]))
        result.append(
            {
                "movieId": int(r["movie_id"]),
                "movieTitle": r["movie_title"] or "",
                "statusId": r["status_id"],
                "statusName": r["status_name"],
                "score": r["score"],
                "comment": r["comment"],
                "addedAt": r["added_at"],
                "movie": movie,
            }
        )
    return result


def map_profile(row: sqlite3.Row) -> dict:
    return {
        "userId": int(row["user_id"]),
        "username": row["username"],
        "email": row["email"],
        "role": row["role"],
        "avatarUrl": row["avatar_url"],
        "profileDescription": row["profile_description"],
    }


def map_user_admin(row: sqlite3.Row) -> dict:
    return {
        "userId": int(row["user_id"]),
        "username": row["username"],
        "email": row["email"],
        "role": row["role"],
    }
