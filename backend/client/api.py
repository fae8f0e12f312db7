"""
Python client for the OnlineMovies REST API.

Mirrors what the web frontend does with fetch: every call goes through
`request`, the auth cookie is kept by the session between calls, and the
envelope is unwrapped so helpers return `data` directly. Failures raise
ApiClientError carrying the server's message.
"""
from typing import Any, Dict, Iterable, Optional
from urllib.parse import quote
import logging

import requests

logger = logging.getLogger(__name__)

DEFAULT_ERROR_MESSAGE = "Ошибка запроса"


class ApiClientError(Exception):
    def __init__(self, message: str, status: int, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


def _drop_none(params: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if params is None:
        return None
    return {k: v for k, v in params.items() if v is not None and v != []}


class OnlineMoviesClient:
    def __init__(self, base_url: str = "http://localhost:5000", session=None):
        self.base_url = base_url.rstrip("/")
        # anything with a requests-style .request() works, e.g. a test client
        self.session = session if session is not None else requests.Session()

        self.auth = _AuthApi(self)
        self.profile = _ProfileApi(self)
        self.movies = _MoviesApi(self)
        self.recommendations = _RecommendationsApi(self)
        self.directories = _DirectoriesApi(self)
        self.user_movies = _UserMoviesApi(self)
        self.genre_interests = _GenreInterestsApi(self)
        self.users = _UsersApi(self)

    def request(
        self,
        method: str,
        path: str,
        json: Any = None,
        params: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        kwargs: Dict[str, Any] = {}
        if json is not None:
            kwargs["json"] = json
        if params:
            kwargs["params"] = _drop_none(params)
        if files:
            kwargs["files"] = files

        response = self.session.request(method, url, **kwargs)

        try:
            payload = response.json()
        except ValueError:
            payload = None

        if not 200 <= response.status_code < 300:
            message = DEFAULT_ERROR_MESSAGE
            if isinstance(payload, dict) and payload.get("message"):
                message = payload["message"]
            logger.debug("%s %s -> %s: %s", method, path, response.status_code, message)
            raise ApiClientError(message, response.status_code, payload)

        if isinstance(payload, dict) and "data" in payload:
            return payload["data"]
        return payload


class _Group:
    def __init__(self, client: OnlineMoviesClient):
        self.client = client


class _AuthApi(_Group):
    def register(self, username: str, email: str, password: str):
        return self.client.request(
            "POST", "/api/auth/register", json={"username": username, "email": email, "password": password}
        )

    def login(self, username: str, password: str):
        return self.client.request("POST", "/api/auth/login", json={"username": username, "password": password})

    def check_auth(self):
        return self.client.request("GET", "/api/auth/check-auth")

    def logout(self):
        return self.client.request("POST", "/api/auth/logout")

    def change_password(self, old_password: str, new_password: str, confirm_password: str):
        return self.client.request(
            "POST",
            "/api/auth/change-password",
            json={
                "oldPassword": old_password,
                "newPassword": new_password,
                "confirmPassword": confirm_password,
            },
        )


class _ProfileApi(_Group):
    def get(self):
        return self.client.request("GET", "/api/user/profile")

    def update_description(self, profile_description: Optional[str]):
        return self.client.request(
            "PUT", "/api/user/profile/description", json={"profileDescription": profile_description}
        )

    def upload_avatar(self, filename: str, content: bytes, content_type: str = "application/octet-stream"):
        return self.client.request(
            "POST", "/api/user/profile/avatar", files={"avatar": (filename, content, content_type)}
        )


class _MoviesApi(_Group):
    def list(
        self,
        title: Optional[str] = None,
        genre_ids: Iterable[int] = (),
        tag_ids: Iterable[int] = (),
        country_ids: Iterable[int] = (),
        release_year_from: Optional[int] = None,
        release_year_to: Optional[int] = None,
        duration_from: Optional[int] = None,
        duration_to: Optional[int] = None,
        sort_by: Optional[str] = None,
        sort_direction: Optional[str] = None,
    ):
        params = {
            "title": title,
            "genreIds": list(genre_ids),
            "tagIds": list(tag_ids),
            "countryIds": list(country_ids),
            "releaseYearFrom": release_year_from,
            "releaseYearTo": release_year_to,
            "durationFrom": duration_from,
            "durationTo": duration_to,
            "sortBy": sort_by,
            "sortDirection": sort_direction,
        }
        return self.client.request("GET", "/api/movies", params=params)

    def get(self, movie_id: int):
        return self.client.request("GET", f"/api/movies/{movie_id}")

    def by_title(self, title: str):
        return self.client.request("GET", f"/api/movies/by-title/{quote(title, safe='')}")

    def random(self):
        return self.client.request("GET", "/api/movies/random")

    def create(self, movie: Dict[str, Any]):
        return self.client.request("POST", "/api/movies", json=movie)

    def update(self, movie_id: int, movie: Dict[str, Any]):
        return self.client.request("PUT", f"/api/movies/{movie_id}", json=movie)

    def delete(self, movie_id: int):
        return self.client.request("DELETE", f"/api/movies/{movie_id}")


class _RecommendationsApi(_Group):
    def movies(self):
        return self.client.request("GET", "/api/recommendations/movies")


class _DirectoriesApi(_Group):
    """Reference lists: genres, tags, countries and statuses."""

    def list(self, kind: str):
        return self.client.request("GET", f"/api/{kind}")

    def get(self, kind: str, item_id: int):
        return self.client.request("GET", f"/api/{kind}/{item_id}")

    def create(self, kind: str, name: str):
        return self.client.request("POST", f"/api/{kind}", json={"name": name})

    def update(self, kind: str, item_id: int, id_key: str, name: str):
        return self.client.request("PUT", f"/api/{kind}/{item_id}", json={id_key: item_id, "name": name})

    def delete(self, kind: str, item_id: int):
        return self.client.request("DELETE", f"/api/{kind}/{item_id}")

    def genres(self):
        return self.list("genres")

    def tags(self):
        return self.list("tags")

    def countries(self):
        return self.list("countries")

    def statuses(self):
        return self.list("statuses")


class _UserMoviesApi(_Group):
    def list(self):
        return self.client.request("GET", "/api/user/movies")

    def public(self, username: str):
        return self.client.request("GET", f"/api/user/movies/public/{quote(username, safe='')}")

    def save(self, movie_id: int, status_id: int, comment: Optional[str] = None):
        return self.client.request(
            "POST", "/api/user/movies", json={"movieId": movie_id, "statusId": status_id, "comment": comment}
        )

    def rate(self, movie_id: int, score: int, comment: Optional[str] = None):
        return self.client.request(
            "POST", "/api/user/movies/rate", json={"movieId": movie_id, "score": score, "comment": comment}
        )

    def remove(self, movie_id: int):
        return self.client.request("DELETE", f"/api/user/movies/{movie_id}")


class _GenreInterestsApi(_Group):
    def get(self):
        return self.client.request("GET", "/api/user/genre-interests")

    def replace(self, weights: Dict[int, float]):
        interests = [{"genreId": g, "weight": w} for g, w in weights.items()]
        return self.client.request("PUT", "/api/user/genre-interests", json={"interests": interests})


class _UsersApi(_Group):
    def list(self, search: Optional[str] = None):
        return self.client.request("GET", "/api/users", params={"search": search})

    def get(self, user_id: int):
        return self.client.request("GET", f"/api/users/{user_id}")

    def by_username(self, username: str):
        return self.client.request("GET", f"/api/users/by-username/{quote(username, safe='')}")

    def update(self, user_id: int, username: str, email: str, role: str):
        return self.client.request(
            "PUT", f"/api/users/{user_id}", json={"username": username, "email": email, "role": role}
        )

    def delete(self, user_id: int):
        return self.client.request("DELETE", f"/api/users/{user_id}")
