from conftest import add_lookup


def test_replace_and_read_interests(user, db):
    drama = add_lookup(db, "genres", "Drama")
    action = add_lookup(db, "genres", "Action")
    comedy = add_lookup(db, "genres", "Comedy")

    r = user.put(
        "/api/user/genre-interests",
        json={
            "interests": [
                {"genreId": drama, "weight": 0.3},
                None,
                {"genreId": action},
                {"genreId": drama, "weight": 0.8},
            ]
        },
    )
    assert r.status_code == 200, r.text
    # sorted by genre name, the last duplicate wins, weight defaults to 1
    assert r.json()["data"] == [
        {"genreId": action, "genreName": "Action", "weight": 1.0},
        {"genreId": drama, "genreName": "Drama", "weight": 0.8},
    ]

    r = user.put("/api/user/genre-interests", json={"interests": [{"genreId": comedy, "weight": 0.5}]})
    assert r.json()["data"] == [{"genreId": comedy, "genreName": "Comedy", "weight": 0.5}]

    r = user.get("/api/user/genre-interests")
    assert r.json()["data"] == [{"genreId": comedy, "genreName": "Comedy", "weight": 0.5}]


def test_empty_list_clears_interests(user, db):
    drama = add_lookup(db, "genres", "Drama")
    user.put("/api/user/genre-interests", json={"interests": [{"genreId": drama, "weight": 1}]})

    r = user.put("/api/user/genre-interests", json={"interests": []})
    assert r.status_code == 200
    assert r.json()["data"] == []
    assert user.get("/api/user/genre-interests").json()["data"] == []


def test_interest_validation(user, db):
    drama = add_lookup(db, "genres", "Drama")

    r = user.put("/api/user/genre-interests", json={"interests": [{"genreId": 0, "weight": 0.5}]})
    assert r.status_code == 400
    assert r.json()["message"] == "Идентификатор жанра должен быть положительным числом."

    for weight in (0, -0.1, 1.5):
        r = user.put("/api/user/genre-interests", json={"interests": [{"genreId": drama, "weight": weight}]})
        assert r.status_code == 400
        assert r.json()["message"] == "Вес предпочтения должен быть в диапазоне (0; 1]."

    # NaN and Infinity are accepted by the JSON parser, so they reach the range check
    for literal in ("NaN", "Infinity"):
        r = user.put(
            "/api/user/genre-interests",
            content=f'{{"interests": [{{"genreId": {drama}, "weight": {literal}}}]}}',
            headers={"Content-Type": "application/json"},
        )
        assert r.status_code == 400
        assert r.json()["message"] == "Вес предпочтения должен быть в диапазоне (0; 1]."

    r = user.put(
        "/api/user/genre-interests",
        json={"interests": [{"genreId": 2 ** 40}]},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Значение поля genreId вне допустимого диапазона."

    r = user.put(
        "/api/user/genre-interests",
        json={"interests": [{"genreId": drama}, {"genreId": 77}, {"genreId": 78}]},
    )
    assert r.status_code == 400
    assert r.json()["message"] == "Некоторые жанры не найдены: 77, 78."

    # nothing was written by the rejected requests
    assert user.get("/api/user/genre-interests").json()["data"] == []


def test_interests_require_auth(client):
    assert client.get("/api/user/genre-interests").status_code == 401
    assert client.put("/api/user/genre-interests", json={"interests": []}).status_code == 401
