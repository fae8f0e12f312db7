import os
import sqlite3
from typing import Iterator, Optional

from backend.app.config import settings
from backend.app.schema import SCHEMA_SQL, DEFAULT_STATUSES

SQLITE_PREFIX = "sqlite:///"


def sqlite_path_from_url(database_url: str) -> str:
    """
    sqlite:///./data/app.db -> ./data/app.db
    sqlite:////abs/app.db   -> /abs/app.db
    sqlite:///:memory:      -> :memory:
    """
    if not database_url.startswith(SQLITE_PREFIX):
        raise ValueError(f"Only sqlite:/// database urls are supported, got {database_url!r}")
    return database_url[len(SQLITE_PREFIX):]


def get_db_path() -> str:
    return sqlite_path_from_url(settings.database_url)


def connect(db_path: Optional[str] = None, check_same_thread: bool = True) -> sqlite3.Connection:
    path = db_path or get_db_path()
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, exist_ok=True)
    conn = sqlite3.connect(path, check_same_thread=check_same_thread)
    conn.row_factory = sqlite3.Row
    # sqlite leaves foreign keys off per connection
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def seed_statuses(conn: sqlite3.Connection) -> None:
    conn.executemany(
        "INSERT OR IGNORE INTO statuses(name) VALUES(?)",
        [(name,) for name in DEFAULT_STATUSES],
    )


def init_db(conn: sqlite3.Connection) -> None:
    conn.executescript(SCHEMA_SQL)
    seed_statuses(conn)
    conn.commit()


def get_conn() -> Iterator[sqlite3.Connection]:
    """FastAPI dependency: one connection per request, closed afterwards."""
    # dependency and endpoint may run on different worker threads
    conn = connect(check_same_thread=False)
    try:
        yield conn
    finally:
        conn.close()
