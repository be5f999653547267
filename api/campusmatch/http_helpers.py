from typing import Any, NoReturn

from fastapi import HTTPException
from pydantic import ValidationError

from .errors import DependencyFailure, EngineError, InputError, NotFoundError

FEED_RETRY_MESSAGE = "No recommendations available, retry"
SWIPE_RETRY_MESSAGE = "Action not saved, retry"


def first_validation_message(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Validation failed"
    err = errors[0]
    loc = ".".join(str(p) for p in err.get("loc", ()) if p != "__root__")
    msg = str(err.get("msg") or "Validation failed")
    return f"{loc}: {msg}" if loc else msg


def raise_http_error(exc: EngineError, *, unavailable_detail: str | None = None) -> NoReturn:
    if isinstance(exc, InputError):
        raise HTTPException(status_code=400, detail=exc.message) from exc
    if isinstance(exc, NotFoundError):
        raise HTTPException(status_code=404, detail=exc.message) from exc
    if isinstance(exc, DependencyFailure):
        raise HTTPException(status_code=503, detail=unavailable_detail or exc.message) from exc
    raise HTTPException(status_code=500, detail="An unexpected error occurred") from exc


def parse_bool_flag(value: Any, name: str) -> bool:
    if value is None or value == "":
        return False
    v = str(value).strip().lower()
    if v in {"true", "1", "yes"}:
        return True
    if v in {"false", "0", "no"}:
        return False
    raise HTTPException(status_code=400, detail=f"{name} must be true or false")
