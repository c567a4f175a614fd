"""Translation of domain failures into HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import ObjectNotFoundError, ValidationError
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.exc import IntegrityError

from sales.errors import SaleClosed, error_summary
from sales.utils.logging import get_logger

logger = get_logger(__name__)


def _pydantic_details(errors) -> dict[str, list[str]]:
    details: dict[str, list[str]] = {}
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        details.setdefault(".".join(location) or "_entity", []).append(error.get("msg", "Invalid value"))
    return details


def _error(status_code: int, error: str, details: dict | None = None) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error, "details": details or {}})


async def sale_closed_handler(request: Request, exc: SaleClosed):
    return _error(410, error_summary(exc.messages), exc.messages)


async def validation_error_handler(request: Request, exc: ValidationError):
    logger.info("Request rejected", path=request.url.path, error=type(exc).__name__, messages=exc.messages)
    return _error(400, error_summary(exc.messages), exc.messages)


async def not_found_handler(request: Request, exc: ObjectNotFoundError):
    return _error(404, error_summary(exc.messages))


async def request_validation_handler(request: Request, exc: RequestValidationError):
    return _error(400, "Invalid request", _pydantic_details(exc.errors()))


async def command_validation_handler(request: Request, exc: PydanticValidationError):
    return _error(400, "Invalid request", _pydantic_details(exc.errors()))


async def integrity_error_handler(request: Request, exc: IntegrityError):
    logger.warning("Conflicting write", path=request.url.path, error=str(exc.orig))
    return _error(409, "The request conflicts with data saved concurrently, please retry")


def register_exception_handlers(app: FastAPI) -> None:
    # SaleClosed is a ValidationError; Starlette picks the handler of the most specific class
    app.add_exception_handler(SaleClosed, sale_closed_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(ObjectNotFoundError, not_found_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(PydanticValidationError, command_validation_handler)
    app.add_exception_handler(IntegrityError, integrity_error_handler)
