"""
Uniform response envelope: every endpoint answers {"status", "message", "data"}.

Handlers return `ok(...)` on success and raise `ApiError` on failure; the
exception handlers registered in main.py turn errors into the same shape.
"""
from typing import Any, Optional
import logging

from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

SUCCESS = "Успешно"
FAILURE = "Ошибка"

DEFAULT_INVALID_MESSAGE = "Переданы некорректные данные."

logger = logging.getLogger(__name__)


class ApiError(HTTPException):
    def __init__(self, status_code: int, message: str):
        super().__init__(status_code=status_code, detail=message)
        self.message = message


def envelope(status: str, message: str, data: Any = None) -> dict:
    return {"status": status, "message": message, "data": data}


def ok(message: str, data: Any = None) -> dict:
    return envelope(SUCCESS, message, data)


def created(message: str, data: Any = None) -> JSONResponse:
    return JSONResponse(status_code=201, content=ok(message, data))


# pydantic error types that carry an English message of their own
_FORMAT_ERRORS = {
    "int_parsing", "int_type", "int_from_float", "float_parsing", "float_type",
    "bool_parsing", "bool_type", "string_type", "list_type", "dict_type",
    "model_type", "model_attributes_type", "json_invalid", "json_type",
}
_RANGE_ERRORS = {
    "less_than", "less_than_equal", "greater_than", "greater_than_equal", "finite_number",
}


def _field_name(loc) -> str:
    # ("body", "genreIds", 0) -> genreIds
    names = [str(part) for part in loc or () if isinstance(part, str) and part not in ("body", "query", "path")]
    return names[-1] if names else "?"


def _first_validation_message(exc: RequestValidationError) -> Optional[str]:
    for err in exc.errors():
        kind = err.get("type")
        field = _field_name(err.get("loc"))
        if field == "?" and kind != "value_error":
            continue
        if kind == "missing":
            return f"Поле {field} обязательно для заполнения."
        if kind == "value_error":
            # pydantic prefixes messages raised from validators
            msg = str(err.get("msg") or "").strip()
            if msg.startswith("Value error, "):
                msg = msg[len("Value error, "):]
            if msg:
                return msg
            continue
        if kind in _FORMAT_ERRORS:
            return f"Поле {field} имеет некорректный формат."
        if kind in _RANGE_ERRORS:
            return f"Значение поля {field} вне допустимого диапазона."
    return None


async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=envelope(FAILURE, exc.message))


async def http_error_handler(request: Request, exc: HTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else DEFAULT_INVALID_MESSAGE
    return JSONResponse(
        status_code=exc.status_code,
        content=envelope(FAILURE, message),
        headers=getattr(exc, "headers", None),
    )


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    message = _first_validation_message(exc) or DEFAULT_INVALID_MESSAGE
    logger.debug("Rejected %s %s: %s", request.method, request.url.path, message)
    return JSONResponse(status_code=400, content=envelope(FAILURE, message))
