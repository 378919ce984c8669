"""Translate the shared error taxonomy into HTTP responses."""

from fastapi import FastAPI, Header, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from shared.errors import ConcurrentUpdate, NotFound, OrderStatusError, QuotaExceeded, Unauthorized, Validation

_STATUS_CODES = {
    NotFound: 404,
    Validation: 400,
    QuotaExceeded: 403,
    Unauthorized: 401,
    OrderStatusError: 409,
    ConcurrentUpdate: 409,
}


def _error_body(exc: Exception):
    messages = getattr(exc, "messages", None)
    if isinstance(messages, dict):
        return messages
    if isinstance(messages, str):
        return {"_entity": [messages]}
    return {"_entity": [str(exc)]}


def _request_errors(exc: RequestValidationError) -> dict:
    """Group pydantic errors by field, the way domain validation errors are shaped."""
    errors: dict[str, list[str]] = {}
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part not in ("body", "query", "path")]
        errors.setdefault(".".join(location) or "_entity", []).append(error.get("msg", "Invalid value"))
    return errors


def register_error_handlers(app: FastAPI) -> None:
    for exc_class, status_code in _STATUS_CODES.items():

        async def handler(request: Request, exc: Exception, status_code=status_code):
            return JSONResponse(status_code=status_code, content={"error": _error_body(exc)})

        app.add_exception_handler(exc_class, handler)

    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content={"error": _request_errors(exc)})

    app.add_exception_handler(RequestValidationError, request_validation_handler)


def tenant_id(x_tenant_id: str | None = Header(default=None)) -> str:
    """Tenant of the request, as established by the upstream auth layer."""
    if not x_tenant_id or not x_tenant_id.strip():
        raise Unauthorized("Tenant is not identified")
    return x_tenant_id.strip()
