import logging
from typing import Any, Dict

from fastapi import FastAPI, HTTPException, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class NotFoundError(LookupError):
    """A referenced record does not exist or has been soft-deleted."""

    def __init__(self, entity_type: str, entity_id: str) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} {entity_id} not found.")


class DomainValidationError(ValueError):
    pass


class OverpaymentError(DomainValidationError):
    pass


class DuplicateDueError(ValueError):
    pass


class InvalidTransitionError(ValueError):
    pass


class ConcurrentUpdateError(RuntimeError):
    pass


class BackendUnavailableError(RuntimeError):
    pass


def _error_response(status_code: int, detail: Any, request: Request) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"detail": detail, "path": str(request.url)})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:  # type: ignore[override]
        return JSONResponse(
            status_code=422,
            content={
                "detail": "Validation failed.",
                "errors": jsonable_encoder(exc.errors()),
                "path": str(request.url),
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return _error_response(404, str(exc), request)

    @app.exception_handler(DomainValidationError)
    async def domain_validation_handler(request: Request, exc: DomainValidationError) -> JSONResponse:
        return _error_response(422, str(exc), request)

    @app.exception_handler(DuplicateDueError)
    async def duplicate_due_handler(request: Request, exc: DuplicateDueError) -> JSONResponse:
        return _error_response(409, str(exc), request)

    @app.exception_handler(InvalidTransitionError)
    async def invalid_transition_handler(request: Request, exc: InvalidTransitionError) -> JSONResponse:
        return _error_response(409, str(exc), request)

    @app.exception_handler(ConcurrentUpdateError)
    async def concurrent_update_handler(request: Request, exc: ConcurrentUpdateError) -> JSONResponse:
        return _error_response(409, str(exc), request)

    @app.exception_handler(BackendUnavailableError)
    async def backend_unavailable_handler(request: Request, exc: BackendUnavailableError) -> JSONResponse:
        logger.error("Ledger store failure on %s %s: %s", request.method, request.url.path, exc)
        return _error_response(503, "Operation failed.", request)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:  # type: ignore[override]
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _error_response(500, "Internal server error.", request)

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:  # type: ignore[override]
        payload: Dict[str, Any] = {"detail": exc.detail or "HTTP error.", "path": str(request.url)}
        if exc.headers:
            payload["headers"] = exc.headers
        return JSONResponse(status_code=exc.status_code, content=payload, headers=exc.headers)
