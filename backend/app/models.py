"""
Request bodies. JSON keys are camelCase on the wire (the SPA's convention),
snake_case in Python.
"""
from typing import Annotated, List, Optional
import re

from fastapi import Path
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

# loose shape check, like a browser does for type=email
EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

MAX_COMMENT_LENGTH = 2000

# ids, years and durations are 32-bit on the wire; larger values never reach sqlite
INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

Int32 = Annotated[int, Field(ge=INT32_MIN, le=INT32_MAX)]
Int32Path = Annotated[int, Path(ge=INT32_MIN, le=INT32_MAX)]


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


def _check_max_length(value: Optional[str], limit: int, message: str) -> Optional[str]:
    if value is not None and len(value) > limit:
        raise ValueError(message)
    return value


# Auth

class RegisterRequest(CamelModel):
    username: str
    email: str
    password: str

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Имя пользователя обязательно.")
        return _check_max_length(v, 100, "Имя пользователя не может превышать 100 символов.")

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_RE.match(v):
            raise ValueError("Некорректный адрес электронной почты.")
        return _check_max_length(v, 100, "Адрес почты не может превышать 100 символов.")

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Пароль должен содержать минимум 6 символов.")
        return v


class LoginRequest(CamelModel):
    username: str
    password: str

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Имя пользователя обязательно для входа.")
        return v.strip()

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if not v:
            raise ValueError("Пароль не может быть пустым.")
        return v


class ChangePasswordRequest(CamelModel):
    old_password: str
    new_password: str
    confirm_password: str

    @field_validator("new_password")
    @classmethod
    def _new_password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Новый пароль должен содержать минимум 6 символов.")
        return v

    @model_validator(mode="after")
    def _passwords_match(self) -> "ChangePasswordRequest":
        if self.new_password != self.confirm_password:
            raise ValueError("Пароли не совпадают.")
        return self


# Movies

class MovieWriteRequest(CamelModel):
    """Create/update body. Field checks that need the db live in the router."""

    title: Optional[str] = None
    description: Optional[str] = None
    release_year: Optional[Int32] = None
    director: Optional[str] = None
    poster_url: Optional[str] = None
    duration_minutes: Optional[Int32] = None
    genre_ids: Optional[List[Int32]] = None
    tag_ids: Optional[List[Int32]] = None
    country_ids: Optional[List[Int32]] = None
    trailer_urls: Optional[List[Optional[str]]] = None


# Lookups (genres, tags, countries)

class LookupWriteRequest(CamelModel):
    name: str

    @field_validator("name")
    @classmethod
    def _name(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Название обязательно для заполнения.")
        return _check_max_length(v, 100, "Название не может превышать 100 символов.")


# User lists

class UserMovieRequest(CamelModel):
    movie_id: Int32
    status_id: Int32
    comment: Optional[str] = None

    @field_validator("movie_id")
    @classmethod
    def _movie_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Идентификатор фильма должен быть положительным.")
        return v

    @field_validator("status_id")
    @classmethod
    def _status_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Идентификатор статуса должен быть положительным.")
        return v

    @field_validator("comment")
    @classmethod
    def _comment(cls, v: Optional[str]) -> Optional[str]:
        return _check_max_length(v, MAX_COMMENT_LENGTH, "Комментарий не может превышать 2000 символов.")


class RateMovieRequest(CamelModel):
    movie_id: Int32
    score: Int32 = Field(0, validate_default=True)
    comment: Optional[str] = None

    @field_validator("movie_id")
    @classmethod
    def _movie_id(cls, v: int) -> int:
        if v < 1:
            raise ValueError("Идентификатор фильма должен быть положительным.")
        return v

    @field_validator("score")
    @classmethod
    def _score(cls, v: int) -> int:
        if v < 1 or v > 10:
            raise ValueError("Оценка должна быть в диапазоне от 1 до 10.")
        return v

    @field_validator("comment")
    @classmethod
    def _comment(cls, v: Optional[str]) -> Optional[str]:
        return _check_max_length(v, MAX_COMMENT_LENGTH, "Комментарий не может превышать 2000 символов.")


# Profile

class ProfileDescriptionRequest(CamelModel):
    profile_description: Optional[str] = None

    @field_validator("profile_description")
    @classmethod
    def _description(cls, v: Optional[str]) -> Optional[str]:
        return _check_max_length(v, MAX_COMMENT_LENGTH, "Описание профиля не может превышать 2000 символов.")


# Genre interests

class GenreInterestItem(CamelModel):
    genre_id: Int32
    weight: float = 1.0


class GenreInterestsUpdateRequest(CamelModel):
    interests: List[Optional[GenreInterestItem]]


# Admin: users

class UserAdminUpdateRequest(CamelModel):
    username: str
    email: str
    role: str

    @field_validator("username")
    @classmethod
    def _username(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Имя пользователя обязательно.")
        return _check_max_length(v, 100, "Имя пользователя не может превышать 100 символов.")

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        v = v.strip()
        if not EMAIL_RE.match(v):
            raise ValueError("Некорректный адрес электронной почты.")
        return _check_max_length(v, 100, "Адрес почты не может превышать 100 символов.")

    @field_validator("role")
    @classmethod
    def _role(cls, v: str) -> str:
        return _check_max_length(v.strip(), 50, "Роль не может превышать 50 символов.")
