"""Translate domain errors into HTTP responses.

Every error body has the same shape: ``{"error": kind, "message", "errors"}``
where ``errors`` maps field names to messages. Storage details never leave the
service.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError

from reviews.exceptions import ReviewError


def _body(kind: str, messages: dict) -> dict:
    message = "; ".join(str(msg) for msgs in messages.values() for msg in (msgs if isinstance(msgs, list) else [msgs]))
    return {"error": kind, "message": message, "errors": messages}


async def review_error_handler(request: Request, exc: ReviewError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=_body(exc.kind, exc.messages))


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content=_body("validation_error", exc.messages))


async def request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    messages: dict[str, list[str]] = {}
    for error in exc.errors():
        field = str(error["loc"][-1]) if error.get("loc") else "request"
        messages.setdefault(field, []).append(error.get("msg", "Invalid value"))
    return JSONResponse(status_code=400, content=_body("validation_error", messages))


async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content=_body("not_found", {"_entity": ["Not found"]}))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ReviewError, review_error_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
