from typing import List, Optional, Tuple
import logging
import sqlite3

from fastapi import APIRouter, Depends, Query

from backend.app.db import get_conn
from backend.app.mappers import MOVIE_COLUMNS, fetch_movie, load_movies
from backend.app.models import INT32_MAX, INT32_MIN, Int32, Int32Path, MovieWriteRequest
from backend.app.responses import ApiError, created, ok
from backend.app.security import Identity, require_admin

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/movies", tags=["movies"])

MIN_RELEASE_YEAR = 1888  # Roundhay Garden Scene
MAX_FIELD_LENGTH = 255

# (request attr, link table, lookup table, id column, "missing" message prefix)
_LOOKUP_FIELDS = (
    ("genre_ids", "movie_genres", "genres", "genre_id", "Не найдены жанры с идентификаторами"),
    ("tag_ids", "movie_tags", "tags", "tag_id", "Не найдены теги с идентификаторами"),
    ("country_ids", "movie_countries", "countries", "country_id", "Не найдены страны с идентификаторами"),
)


def _distinct(ids: Optional[List[int]]) -> List[int]:
    seen = []
    for i in ids or []:
        if i not in seen:
            seen.append(i)
    return seen


def _clean(value: Optional[str]) -> Optional[str]:
    if value is None or not value.strip():
        return None
    return value.strip()


def _trailer_urls(body: MovieWriteRequest) -> List[str]:
    urls: List[str] = []
    for url in body.trailer_urls or []:
        if url is None or not url.strip():
            continue
        url = url.strip()
        if url not in urls:
            urls.append(url)
    return urls


def _build_filters(
    title: Optional[str],
    genre_ids: Optional[List[int]],
    tag_ids: Optional[List[int]],
    country_ids: Optional[List[int]],
    release_year_from: Optional[int],
    release_year_to: Optional[int],
    duration_from: Optional[int],
    duration_to: Optional[int],
) -> Tuple[str, list]:
    clauses: List[str] = []
    params: list = []

    trimmed = (title or "").strip()
    if trimmed:
        clauses.append("m.title LIKE ?")
        params.append(f"%{trimmed}%")

    for ids, link_table, id_col in (
        (genre_ids, "movie_genres", "genre_id"),
        (tag_ids, "movie_tags", "tag_id"),
        (country_ids, "movie_countries", "country_id"),
    ):
        ids = _distinct(ids)
        if not ids:
            continue
        q_marks = ",".join(["?"] * len(ids))
        clauses.append(
            f"EXISTS (SELECT 1 FROM {link_table} l WHERE l.movie_id = m.movie_id AND l.{id_col} IN ({q_marks}))"
        )
        params.extend(ids)

    # a bound excludes movies where the field is unknown
    if release_year_from is not None:
        clauses.append("m.release_year IS NOT NULL AND m.release_year >= ?")
        params.append(release_year_from)
    if release_year_to is not None:
        clauses.append("m.release_year IS NOT NULL AND m.release_year <= ?")
        params.append(release_year_to)
    if duration_from is not None:
        clauses.append("m.duration_minutes IS NOT NULL AND m.duration_minutes >= ?")
        params.append(duration_from)
    if duration_to is not None:
        clauses.append("m.duration_minutes IS NOT NULL AND m.duration_minutes <= ?")
        params.append(duration_to)

    where = (" WHERE " + " AND ".join(f"({c})" for c in clauses)) if clauses else ""
    return where, params


def _order_by(sort_by: Optional[str], sort_direction: Optional[str]) -> str:
    key = (sort_by or "").strip().lower()
    desc = (sort_direction or "").strip().lower() == "desc"
    direction = "DESC" if desc else "ASC"

    # unknown years/durations go last either way
    if key == "releaseyear":
        return f" ORDER BY m.release_year IS NULL, m.release_year {direction}, m.title"
    if key == "duration":
        return f" ORDER BY m.duration_minutes IS NULL, m.duration_minutes {direction}, m.title"
    if key == "recent":
        return f" ORDER BY m.movie_id {direction}"
    return f" ORDER BY m.title {direction}, m.movie_id {direction}"


def _validate(conn: sqlite3.Connection, body: MovieWriteRequest) -> Optional[str]:
    if body.title is None or not body.title.strip():
        return "Название фильма обязательно для заполнения."

    if len(body.title.strip()) > MAX_FIELD_LENGTH:
        return "Название фильма не может превышать 255 символов."

    if body.duration_minutes is not None and body.duration_minutes <= 0:
        return "Продолжительность должна быть положительным числом."

    if body.release_year is not None and body.release_year < MIN_RELEASE_YEAR:
        return "Год релиза не может быть меньше 1888."

    poster = _clean(body.poster_url)
    if poster is not None and len(poster) > MAX_FIELD_LENGTH:
        return "Ссылка на постер не может превышать 255 символов."

    director = _clean(body.director)
    if director is not None and len(director) > MAX_FIELD_LENGTH:
        return "Имя режиссёра не может превышать 255 символов."

    if any(len(url) > MAX_FIELD_LENGTH for url in _trailer_urls(body)):
        return "Ссылка на трейлер не может превышать 255 символов."

    for attr, _, lookup_table, id_col, message in _LOOKUP_FIELDS:
        ids = _distinct(getattr(body, attr))
        if not ids:
            continue
        q_marks = ",".join(["?"] * len(ids))
        rows = conn.execute(
            f"SELECT {id_col} FROM {lookup_table} WHERE {id_col} IN ({q_marks})",
            ids,
        ).fetchall()
        existing = {int(r[0]) for r in rows}
        missing = [i for i in ids if i not in existing]
        if missing:
            return f"{message}: {', '.join(str(i) for i in missing)}."

    return None


def _replace_relations(conn: sqlite3.Connection, movie_id: int, body: MovieWriteRequest) -> None:
    for attr, link_table, _, id_col, _ in _LOOKUP_FIELDS:
        desired = _distinct(getattr(body, attr))
        if desired:
            q_marks = ",".join(["?"] * len(desired))
            conn.execute(
                f"DELETE FROM {link_table} WHERE movie_id = ? AND {id_col} NOT IN ({q_marks})",
                [movie_id, *desired],
            )
        else:
            conn.execute(f"DELETE FROM {link_table} WHERE movie_id = ?", (movie_id,))
        conn.executemany(
            f"INSERT OR IGNORE INTO {link_table}(movie_id, {id_col}) VALUES(?,?)",
            [(movie_id, i) for i in desired],
        )

    conn.execute("DELETE FROM trailers WHERE movie_id = ?", (movie_id,))
    conn.executemany(
        "INSERT INTO trailers(movie_id, trailer_url) VALUES(?,?)",
        [(movie_id, url) for url in _trailer_urls(body)],
    )


def _movie_values(body: MovieWriteRequest) -> tuple:
    return (
        body.title.strip(),
        body.description,
        body.release_year,
        _clean(body.director),
        _clean(body.poster_url),
        body.duration_minutes,
    )


@router.get("")
def list_movies(
    title: Optional[str] = Query(None),
    genre_ids: Optional[List[Int32]] = Query(None, alias="genreIds"),
    tag_ids: Optional[List[Int32]] = Query(None, alias="tagIds"),
    country_ids: Optional[List[Int32]] = Query(None, alias="countryIds"),
    release_year_from: Optional[int] = Query(None, alias="releaseYearFrom", ge=INT32_MIN, le=INT32_MAX),
    release_year_to: Optional[int] = Query(None, alias="releaseYearTo", ge=INT32_MIN, le=INT32_MAX),
    duration_from: Optional[int] = Query(None, alias="durationFrom", ge=INT32_MIN, le=INT32_MAX),
    duration_to: Optional[int] = Query(None, alias="durationTo", ge=INT32_MIN, le=INT32_MAX),
    sort_by: Optional[str] = Query(None, alias="sortBy"),
    sort_direction: Optional[str] = Query(None, alias="sortDirection"),
    conn: sqlite3.Connection = Depends(get_conn),
):
    where, params = _build_filters(
        title,
        genre_ids,
        tag_ids,
        country_ids,
        release_year_from,
        release_year_to,
        duration_from,
        duration_to,
    )
    sql = f"SELECT {MOVIE_COLUMNS} FROM movies m" + where + _order_by(sort_by, sort_direction)
    rows = conn.execute(sql, params).fetchall()
    return ok("Список фильмов получен", load_movies(conn, rows))


@router.get("/random")
def random_movie(conn: sqlite3.Connection = Depends(get_conn)):
    row = conn.execute(f"SELECT {MOVIE_COLUMNS} FROM movies m ORDER BY RANDOM() LIMIT 1").fetchone()
    if not row:
        raise ApiError(404, "В базе нет фильмов.")
    return ok("Случайный фильм получен", load_movies(conn, [row])[0])


@router.get("/by-title/{title}")
def movie_by_title(title: str, conn: sqlite3.Connection = Depends(get_conn)):
    trimmed = (title or "").strip()
    if not trimmed:
        raise ApiError(400, "Название фильма не может быть пустым.")

    row = conn.execute(
        f"SELECT {MOVIE_COLUMNS} FROM movies m WHERE m.title = ? ORDER BY m.movie_id LIMIT 1",
        (trimmed,),
    ).fetchone()
    if not row:
        raise ApiError(404, "Фильм не найден")
    return ok("Фильм найден", load_movies(conn, [row])[0])


@router.get("/{movie_id}")
def get_movie(movie_id: Int32Path, conn: sqlite3.Connection = Depends(get_conn)):
    movie = fetch_movie(conn, movie_id)
    if movie is None:
        raise ApiError(404, "Фильм не найден")
    return ok("Фильм найден", movie)


@router.post("", status_code=201)
def create_movie(
    body: MovieWriteRequest,
    admin: Identity = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_conn),
):
    error = _validate(conn, body)
    if error:
        raise ApiError(400, error)

    cur = conn.execute(
        """
        INSERT INTO movies(title, description, release_year, director, poster_url, duration_minutes)
        VALUES(?,?,?,?,?,?)
        """,
        _movie_values(body),
    )
    movie_id = int(cur.lastrowid)
    _replace_relations(conn, movie_id, body)
    conn.commit()
    logger.info("Admin %s created movie %s (%r)", admin.user_id, movie_id, body.title)

    return created("Фильм успешно создан", fetch_movie(conn, movie_id))


@router.put("/{movie_id}")
def update_movie(
    movie_id: Int32Path,
    body: MovieWriteRequest,
    admin: Identity = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_conn),
):
    if not conn.execute("SELECT 1 FROM movies WHERE movie_id = ?", (movie_id,)).fetchone():
        raise ApiError(404, "Фильм не найден")

    error = _validate(conn, body)
    if error:
        raise ApiError(400, error)

    conn.execute(
        """
        UPDATE movies
        SET title = ?, description = ?, release_year = ?, director = ?, poster_url = ?, duration_minutes = ?
        WHERE movie_id = ?
        """,
        (*_movie_values(body), movie_id),
    )
    _replace_relations(conn, movie_id, body)
    conn.commit()
    logger.info("Admin %s updated movie %s", admin.user_id, movie_id)

    return ok("Фильм успешно обновлен", fetch_movie(conn, movie_id))


@router.delete("/{movie_id}")
def delete_movie(
    movie_id: Int32Path,
    admin: Identity = Depends(require_admin),
    conn: sqlite3.Connection = Depends(get_conn),
):
    cur = conn.execute("DELETE FROM movies WHERE movie_id = ?", (movie_id,))
    if cur.rowcount == 0:
        raise ApiError(404, "Фильм не найден")
    conn.commit()
    logger.info("Admin %s deleted movie %s", admin.user_id, movie_id)
    return ok("Фильм успешно удален")
