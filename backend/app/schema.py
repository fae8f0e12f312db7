SCHEMA_SQL = """
PRAGMA foreign_keys = ON;

CREATE TABLE IF NOT EXISTS users (
  user_id             INTEGER PRIMARY KEY AUTOINCREMENT,
  username            TEXT NOT NULL UNIQUE,
  email               TEXT NOT NULL UNIQUE,
  hashed_password     TEXT NOT NULL,
  role                TEXT NOT NULL DEFAULT 'user',   -- 'user' | 'admin'
  avatar_url          TEXT,                           -- /avatars/<file>
  profile_description TEXT
);

CREATE TABLE IF NOT EXISTS movies (
  movie_id         INTEGER PRIMARY KEY AUTOINCREMENT,
  title            TEXT NOT NULL,
  description      TEXT,
  release_year     INTEGER,
  director         TEXT,
  poster_url       TEXT,
  duration_minutes INTEGER
);

CREATE INDEX IF NOT EXISTS idx_movies_title ON movies(title);

-- lookup tables

CREATE TABLE IF NOT EXISTS genres (
  genre_id INTEGER PRIMARY KEY AUTOINCREMENT,
  name     TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS tags (
  tag_id INTEGER PRIMARY KEY AUTOINCREMENT,
  name   TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS countries (
  country_id INTEGER PRIMARY KEY AUTOINCREMENT,
  name       TEXT NOT NULL UNIQUE
);

CREATE TABLE IF NOT EXISTS statuses (
  status_id INTEGER PRIMARY KEY AUTOINCREMENT,
  name      TEXT NOT NULL UNIQUE
);

-- movie <-> lookup links

CREATE TABLE IF NOT EXISTS movie_genres (
  movie_id INTEGER NOT NULL,
  genre_id INTEGER NOT NULL,
  PRIMARY KEY (movie_id, genre_id),
  FOREIGN KEY (movie_id) REFERENCES movies(movie_id) ON DELETE CASCADE,
  FOREIGN KEY (genre_id) REFERENCES genres(genre_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_movie_genres_genre_id ON movie_genres(genre_id);

CREATE TABLE IF NOT EXISTS movie_tags (
  movie_id INTEGER NOT NULL,
  tag_id   INTEGER NOT NULL,
  PRIMARY KEY (movie_id, tag_id),
  FOREIGN KEY (movie_id) REFERENCES movies(movie_id) ON DELETE CASCADE,
  FOREIGN KEY (tag_id) REFERENCES tags(tag_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS movie_countries (
  movie_id   INTEGER NOT NULL,
  country_id INTEGER NOT NULL,
  PRIMARY KEY (movie_id, country_id),
  FOREIGN KEY (movie_id) REFERENCES movies(movie_id) ON DELETE CASCADE,
  FOREIGN KEY (country_id) REFERENCES countries(country_id) ON DELETE CASCADE
);

CREATE TABLE IF NOT EXISTS trailers (
  trailer_id  INTEGER PRIMARY KEY AUTOINCREMENT,
  movie_id    INTEGER NOT NULL,
  trailer_url TEXT NOT NULL,
  FOREIGN KEY (movie_id) REFERENCES movies(movie_id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_trailers_movie_id ON trailers(movie_id);

-- per-user state

CREATE TABLE IF NOT EXISTS user_movies (
  user_movie_id INTEGER PRIMARY KEY AUTOINCREMENT,
  user_id       INTEGER NOT NULL,
  movie_id      INTEGER NOT NULL,
  status_id     INTEGER,
  score         INTEGER,          -- 1..10, only once rated
  comment       TEXT,
  added_at      TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
  UNIQUE (user_id, movie_id),
  FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE,
  FOREIGN KEY (movie_id) REFERENCES movies(movie_id) ON DELETE CASCADE,
  FOREIGN KEY (status_id) REFERENCES statuses(status_id) ON DELETE SET NULL
);

CREATE INDEX IF NOT EXISTS idx_user_movies_user_added
ON user_movies(user_id, added_at);

CREATE TABLE IF NOT EXISTS user_genre_interests (
  user_id  INTEGER NOT NULL,
  genre_id INTEGER NOT NULL,
  weight   REAL NOT NULL DEFAULT 1.0,   -- (0, 1]
  PRIMARY KEY (user_id, genre_id),
  FOREIGN KEY (user_id) REFERENCES users(user_id) ON DELETE CASCADE,
  FOREIGN KEY (genre_id) REFERENCES genres(genre_id) ON DELETE CASCADE
);
"""

# the fixed status lookup, in display order
PLANNED_STATUS = "Буду смотреть"
WATCHED_STATUS = "Просмотрено"
RATED_STATUS = "Оценен"

DEFAULT_STATUSES = (PLANNED_STATUS, WATCHED_STATUS, RATED_STATUS)
