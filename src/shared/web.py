"""FastAPI glue shared by every router: service lookup and error mapping."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import (
    ExpectedVersionError,
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    ProteanException,
    TransactionError,
    ValidationError,
)

from shared.exceptions import LedgerInconsistency

_STATUS_CODES = [
    (LedgerInconsistency, 500),
    (ObjectNotFoundError, 404),
    (ValidationError, 422),
    (InvalidOperationError, 409),
    (InvalidStateError, 409),
    (ExpectedVersionError, 409),
    (TransactionError, 500),
]


def get_services(request: Request):
    """FastAPI dependency returning the application's assembled services."""
    return request.app.state.services


def status_code_for(exc: ProteanException) -> int:
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return status_code
    return 400


def error_detail(exc: ProteanException) -> dict:
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    if exc.args and isinstance(exc.args[0], dict):
        return exc.args[0]
    return {"_entity": [str(exc)]}


async def domain_error_handler(request: Request, exc: ProteanException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code_for(exc),
        content={"error": type(exc).__name__, "detail": error_detail(exc)},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ProteanException, domain_error_handler)
