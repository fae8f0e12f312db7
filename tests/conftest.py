import sqlite3
from typing import Iterable, Optional

import pytest
from fastapi.testclient import TestClient

from backend.app.config import settings
from backend.app.db import connect
from backend.app.main import app

# https so the Secure auth cookie is sent back
BASE_URL = "https://testserver"

PASSWORD = "secret1"


@pytest.fixture
def client(tmp_path, monkeypatch):
    """Anonymous client on a fresh database; entering it runs the lifespan (schema + statuses)."""
    monkeypatch.setattr(settings, "database_url", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setattr(settings, "web_root", str(tmp_path / "wwwroot"))
    with TestClient(app, base_url=BASE_URL) as c:
        yield c


@pytest.fixture
def db(client):
    conn = connect()
    yield conn
    conn.close()


@pytest.fixture
def new_client(client):
    """Extra clients with their own cookie jars, sharing the same database."""
    opened = []

    def factory() -> TestClient:
        c = TestClient(app, base_url=BASE_URL)
        opened.append(c)
        return c

    yield factory
    for c in opened:
        c.close()


@pytest.fixture
def register(new_client):
    def _register(username: str, password: str = PASSWORD, email: Optional[str] = None) -> TestClient:
        c = new_client()
        r = c.post(
            "/api/auth/register",
            json={"username": username, "email": email or f"{username}@example.com", "password": password},
        )
        assert r.status_code == 200, r.text
        return c
    return _register


@pytest.fixture
def admin(register, db):
    c = register("admin")
    db.execute("UPDATE users SET role = 'admin' WHERE username = 'admin'")
    db.commit()
    # the role lives in the token, so log in again
    r = c.post("/api/auth/login", json={"username": "admin", "password": PASSWORD})
    assert r.status_code == 200, r.text
    assert r.json()["data"]["role"] == "admin"
    return c


@pytest.fixture
def user(register):
    return register("alice")


def add_lookup(conn: sqlite3.Connection, table: str, name: str) -> int:
    cur = conn.execute(f"INSERT INTO {table}(name) VALUES(?)", (name,))
    conn.commit()
    return int(cur.lastrowid)


def add_movie(
    conn: sqlite3.Connection,
    title: str,
    release_year: Optional[int] = None,
    duration_minutes: Optional[int] = None,
    genre_ids: Iterable[int] = (),
) -> int:
    cur = conn.execute(
        "INSERT INTO movies(title, release_year, duration_minutes) VALUES(?,?,?)",
        (title, release_year, duration_minutes),
    )
    movie_id = int(cur.lastrowid)
    conn.executemany(
        "INSERT INTO movie_genres(movie_id, genre_id) VALUES(?,?)",
        [(movie_id, g) for g in genre_ids],
    )
    conn.commit()
    return movie_id


def user_id(conn: sqlite3.Connection, username: str) -> int:
    return int(conn.execute("SELECT user_id FROM users WHERE username = ?", (username,)).fetchone()[0])


def status_id(conn: sqlite3.Connection, name: str) -> int:
    return int(conn.execute("SELECT status_id FROM statuses WHERE name = ?", (name,)).fetchone()[0])
