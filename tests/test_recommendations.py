from backend.recommender.genre_weights import get_genre_weights, recommend_by_genres
from conftest import add_lookup, add_movie, status_id, user_id


def _catalog(db):
    drama = add_lookup(db, "genres", "Drama")
    crime = add_lookup(db, "genres", "Crime")
    comedy = add_lookup(db, "genres", "Comedy")
    movies = {
        "Heat": add_movie(db, "Heat", genre_ids=[drama, crime]),
        "Fargo": add_movie(db, "Fargo", genre_ids=[crime, comedy]),
        "Amelie": add_movie(db, "Amelie", genre_ids=[comedy]),
        "Babel": add_movie(db, "Babel", genre_ids=[drama]),
        "Untagged": add_movie(db, "Untagged"),
    }
    return {"drama": drama, "crime": crime, "comedy": comedy}, movies


def test_scores_sum_weights_and_exclude_listed(user, db):
    genres, movies = _catalog(db)
    alice = user_id(db, "alice")
    db.executemany(
        "INSERT INTO user_genre_interests(user_id, genre_id, weight) VALUES(?,?,?)",
        [(alice, genres["drama"], 0.5), (alice, genres["crime"], 0.5)],
    )
    db.execute(
        "INSERT INTO user_movies(user_id, movie_id, status_id) VALUES(?,?,?)",
        (alice, movies["Babel"], status_id(db, "Просмотрено")),
    )
    db.commit()

    weights = get_genre_weights(db, alice)
    assert weights == {genres["drama"]: 0.5, genres["crime"]: 0.5}

    recs = recommend_by_genres(db, alice, weights)
    # Babel is already in the list, Amelie has no weighted genre
    assert [(r.movie["title"], r.score) for r in recs] == [("Heat", 1.0), ("Fargo", 0.5)]


def test_ties_break_on_title_and_limit_applies(user, db):
    drama = add_lookup(db, "genres", "Drama")
    for title in ("Delta", "Alpha", "Charlie", "Bravo"):
        add_movie(db, title, genre_ids=[drama])
    alice = user_id(db, "alice")

    recs = recommend_by_genres(db, alice, {drama: 0.7}, limit=3)
    assert [r.movie["title"] for r in recs] == ["Alpha", "Bravo", "Charlie"]
    assert all(r.score == 0.7 for r in recs)


def test_no_weights_gives_nothing(user, db):
    add_movie(db, "Heat")
    assert recommend_by_genres(db, user_id(db, "alice"), {}) == []


def test_endpoint_uses_interests(user, db):
    genres, movies = _catalog(db)
    user.put(
        "/api/user/genre-interests",
        json={"interests": [{"genreId": genres["comedy"], "weight": 0.9}, {"genreId": genres["drama"], "weight": 0.2}]},
    )

    r = user.get("/api/recommendations/movies")
    assert r.status_code == 200
    data = r.json()["data"]
    assert [d["movie"]["title"] for d in data] == ["Amelie", "Fargo", "Babel", "Heat"]
    assert data[0]["score"] == 0.9
    assert set(data[0]["movie"]) >= {"movieId", "title", "genres", "trailers"}


def test_endpoint_is_capped_at_twenty(user, db):
    drama = add_lookup(db, "genres", "Drama")
    for i in range(25):
        add_movie(db, f"Movie {i:02d}", genre_ids=[drama])
    user.put("/api/user/genre-interests", json={"interests": [{"genreId": drama, "weight": 1}]})

    data = user.get("/api/recommendations/movies").json()["data"]
    assert len(data) == 20
    assert data[0]["movie"]["title"] == "Movie 00"


def test_endpoint_without_interests_returns_one_random_unlisted(user, db):
    _, movies = _catalog(db)

    r = user.get("/api/recommendations/movies")
    data = r.json()["data"]
    assert len(data) == 1
    assert data[0]["score"] == 0
    assert data[0]["movie"]["movieId"] in movies.values()

    planned = status_id(db, "Буду смотреть")
    for movie_id in movies.values():
        user.post("/api/user/movies", json={"movieId": movie_id, "statusId": planned})

    r = user.get("/api/recommendations/movies")
    assert r.status_code == 200
    assert r.json()["data"] == []


def test_endpoint_requires_auth(client):
    assert client.get("/api/recommendations/movies").status_code == 401
