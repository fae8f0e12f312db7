import sqlite3

from fastapi import APIRouter, Depends

from backend.app.db import get_conn
from backend.app.responses import ok

router = APIRouter(prefix="/api/statuses", tags=["statuses"])


@router.get("")
def list_statuses(conn: sqlite3.Connection = Depends(get_conn)):
    rows = conn.execute("SELECT status_id, name FROM statuses ORDER BY status_id").fetchall()
    return ok(
        "Справочник статусов получен",
        [{"statusId": int(r["status_id"]), "name": r["name"]} for r in rows],
    )
