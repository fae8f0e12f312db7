"""
Genres, tags and countries: three reference tables with identical CRUD.

Each is described by a LookupKind (table, id column, JSON key, messages) and
gets its own router from build_lookup_router.
"""
from dataclasses import dataclass
from typing import Optional
import logging
import sqlite3

from fastapi import APIRouter, Depends, Body
from pydantic import Field, create_model

from backend.app.db import get_conn
from backend.app.models import Int32, Int32Path, LookupWriteRequest
from backend.app.responses import ApiError, created, ok
from backend.app.security import Identity, require_admin

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LookupKind:
    path: str             # url segment, e.g. "genres"
    table: str
    id_column: str        # e.g. "genre_id"
    id_key: str           # JSON key, e.g. "genreId"
    listed: str
    found: str
    not_found: str
    duplicate: str
    id_mismatch: str
    created: str
    updated: str
    deleted: str


GENRES = LookupKind(
    path="genres",
    table="genres",
    id_column="genre_id",
    id_key="genreId",
    listed="Список жанров получен",
    found="Жанр найден",
    not_found="Жанр не найден",
    duplicate="Жанр с таким названием уже существует.",
    id_mismatch="ID жанра не совпадает.",
    created="Жанр успешно создан",
    updated="Жанр успешно обновлен",
    deleted="Жанр успешно удален",
)

TAGS = LookupKind(
    path="tags",
    table="tags",
    id_column="tag_id",
    id_key="tagId",
    listed="Список тегов получен",
    found="Тег найден",
    not_found="Тег не найден",
    duplicate="Тег с таким названием уже существует.",
    id_mismatch="ID тега не совпадает.",
    created="Тег успешно создан",
    updated="Тег успешно обновлен",
    deleted="Тег успешно удален",
)

COUNTRIES = LookupKind(
    path="countries",
    table="countries",
    id_column="country_id",
    id_key="countryId",
    listed="Список стран получен",
    found="Страна найдена",
    not_found="Страна не найдена",
    duplicate="Страна с таким названием уже существует.",
    id_mismatch="ID страны не совпадает.",
    created="Страна успешно создана",
    updated="Страна успешно обновлена",
    deleted="Страна успешно удалена",
)


def build_lookup_router(kind: LookupKind) -> APIRouter:
    router = APIRouter(prefix=f"/api/{kind.path}", tags=[kind.path])

    # body model carries the entity's own id key, e.g. {"genreId": 3, "name": "..."}
    write_model = create_model(
        f"{kind.table.capitalize()}WriteRequest",
        __base__=LookupWriteRequest,
        item_id=(Optional[Int32], Field(None, alias=kind.id_key)),
    )

    def to_json(row: sqlite3.Row) -> dict:
        return {kind.id_key: int(row[kind.id_column]), "name": row["name"]}

    def name_taken(conn: sqlite3.Connection, name: str, exclude_id: Optional[int] = None) -> bool:
        row = conn.execute(
            f"SELECT 1 FROM {kind.table} WHERE name = ? AND {kind.id_column} != ?",
            (name, exclude_id if exclude_id is not None else -1),
        ).fetchone()
        return row is not None

    @router.get("")
    def list_items(conn: sqlite3.Connection = Depends(get_conn)):
        rows = conn.execute(
            f"SELECT {kind.id_column}, name FROM {kind.table} ORDER BY {kind.id_column}"
        ).fetchall()
        return ok(kind.listed, [to_json(r) for r in rows])

    @router.get("/{item_id}")
    def get_item(item_id: Int32Path, conn: sqlite3.Connection = Depends(get_conn)):
        row = conn.execute(
            f"SELECT {kind.id_column}, name FROM {kind.table} WHERE {kind.id_column} = ?",
            (item_id,),
        ).fetchone()
        if not row:
            raise ApiError(404, kind.not_found)
        return ok(kind.found, to_json(row))

    @router.post("", status_code=201)
    def create_item(
        body: write_model = Body(...),
        admin: Identity = Depends(require_admin),
        conn: sqlite3.Connection = Depends(get_conn),
    ):
        if name_taken(conn, body.name):
            raise ApiError(400, kind.duplicate)

        cur = conn.execute(f"INSERT INTO {kind.table}(name) VALUES(?)", (body.name,))
        conn.commit()
        new_id = int(cur.lastrowid)
        logger.info("Admin %s created %s %s (%r)", admin.user_id, kind.table, new_id, body.name)
        return created(kind.created, {kind.id_key: new_id, "name": body.name})

    @router.put("/{item_id}")
    def update_item(
        item_id: Int32Path,
        body: write_model = Body(...),
        admin: Identity = Depends(require_admin),
        conn: sqlite3.Connection = Depends(get_conn),
    ):
        if body.item_id != item_id:
            raise ApiError(400, kind.id_mismatch)

        if name_taken(conn, body.name, exclude_id=item_id):
            raise ApiError(400, kind.duplicate)

        cur = conn.execute(
            f"UPDATE {kind.table} SET name = ? WHERE {kind.id_column} = ?",
            (body.name, item_id),
        )
        if cur.rowcount == 0:
            raise ApiError(404, kind.not_found + ".")
        conn.commit()
        logger.info("Admin %s renamed %s %s to %r", admin.user_id, kind.table, item_id, body.name)
        return ok(kind.updated, {kind.id_key: item_id, "name": body.name})

    @router.delete("/{item_id}")
    def delete_item(
        item_id: Int32Path,
        admin: Identity = Depends(require_admin),
        conn: sqlite3.Connection = Depends(get_conn),
    ):
        cur = conn.execute(f"DELETE FROM {kind.table} WHERE {kind.id_column} = ?", (item_id,))
        if cur.rowcount == 0:
            raise ApiError(404, kind.not_found + ".")
        conn.commit()
        logger.info("Admin %s deleted %s %s", admin.user_id, kind.table, item_id)
        return ok(kind.deleted)

    return router


genres_router = build_lookup_router(GENRES)
tags_router = build_lookup_router(TAGS)
countries_router = build_lookup_router(COUNTRIES)
