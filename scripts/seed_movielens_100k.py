#!/usr/bin/env python3
import argparse
import os
import re
import sqlite3
from typing import Optional, Tuple

from backend.app.db import connect, init_db

# "Toy Story (1995)" -> ("Toy Story", 1995)
TITLE_YEAR_RE = re.compile(r"^(?P<title>.*?)\s*\((?P<year>\d{4})\)\s*$")


def split_title(raw: str) -> Tuple[str, Optional[int]]:
    raw = raw.strip()
    m = TITLE_YEAR_RE.match(raw)
    if not m:
        return raw, None
    return m.group("title"), int(m.group("year"))


def load_genres(path: str) -> list[str]:
    id_to_name: dict[int, str] = {}
    max_id = -1

    with open(path, "r", encoding="latin-1") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            name, gid = line.split("|")
            gid = int(gid)
            id_to_name[gid] = name
            if gid > max_id:
                max_id = gid

    # index == flag position in u.item
    return [id_to_name[i] for i in range(max_id + 1)]


def seed_genres(conn: sqlite3.Connection, genres_order: list[str]) -> dict[str, int]:
    names = [g for g in genres_order if g.lower() != "unknown"]
    conn.executemany("INSERT OR IGNORE INTO genres(name) VALUES(?)", [(n,) for n in names])

    rows = conn.execute("SELECT genre_id, name FROM genres").fetchall()
    return {r["name"]: int(r["genre_id"]) for r in rows}


def seed_movies(
    conn: sqlite3.Connection,
    u_item_path: str,
    genres_order: list[str],
    genre_ids: dict[str, int],
) -> int:
    count = 0
    with open(u_item_path, "r", encoding="latin-1") as f:
        for line in f:
            parts = line.strip().split("|")
            if len(parts) < 5:
                continue

            title, year = split_title(parts[1])
            if not title:
                continue

            # the same title and year already imported on a previous run
            existing = conn.execute(
                "SELECT movie_id FROM movies WHERE title = ? AND release_year IS ?",
                (title, year),
            ).fetchone()
            if existing:
                continue

            cur = conn.execute(
                "INSERT INTO movies(title, release_year) VALUES(?, ?)",
                (title, year),
            )
            movie_id = cur.lastrowid

            # genre flags start after imdb_url (index 5)
            links = []
            for i, flag in enumerate(parts[5:]):
                if i >= len(genres_order):
                    break
                gid = genre_ids.get(genres_order[i])
                if flag == "1" and gid is not None:
                    links.append((movie_id, gid))

            conn.executemany(
                "INSERT OR IGNORE INTO movie_genres(movie_id, genre_id) VALUES(?, ?)",
                links,
            )
            count += 1
    return count


def clear_catalog(conn: sqlite3.Connection) -> None:
    # link tables, trailers and user lists cascade from movies
    conn.execute("DELETE FROM movies;")
    conn.execute("DELETE FROM genres;")


def main():
    ap = argparse.ArgumentParser(description="Import MovieLens 100k movies and genres into the catalog")
    ap.add_argument("--dataset-dir", default="data/movielens/ml-100k")
    ap.add_argument("--reset", action="store_true", help="Clear movies and genres before seeding")
    args = ap.parse_args()

    u_item = os.path.join(args.dataset_dir, "u.item")
    u_genre = os.path.join(args.dataset_dir, "u.genre")

    for p in [u_item, u_genre]:
        if not os.path.exists(p):
            raise SystemExit(f"Missing dataset file: {p}\nRun fetch script first.")

    conn = connect()
    init_db(conn)

    if args.reset:
        clear_catalog(conn)

    genres_order = load_genres(u_genre)
    genre_ids = seed_genres(conn, genres_order)
    added = seed_movies(conn, u_item, genres_order, genre_ids)

    conn.commit()
    conn.close()
    print(f"Seeding complete: {added} movies, {len(genre_ids)} genres.")


if __name__ == "__main__":
    main()
