"""Error taxonomy and centralized FastAPI error handlers."""

import logging
import traceback

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

log = logging.getLogger("errors")


class PortalError(Exception):
    """Base exception carrying the HTTP status and an error source tag."""

    status_code = 500
    source = "internal"

    def __init__(self, message: str, status_code: int | None = None, source: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if source is not None:
            self.source = source


class ValidationError(PortalError):
    status_code = 400
    source = "validation"


class UpstreamError(PortalError):
    """Non-2xx or unreachable IBGE endpoint. 504 when no status is known."""

    status_code = 504
    source = "external-api"

    def __init__(self, message: str, status_code: int | None = None, url: str = ""):
        super().__init__(
            message,
            status_code=status_code or 504,
            source="external-api" if status_code else "network",
        )
        self.upstream_status = status_code
        self.url = url


class UnsupportedFormatError(PortalError):
    status_code = 400
    source = "validation"

    def __init__(self, fmt: str, supported: list[str]):
        super().__init__(f"Formato inválido: {fmt}. Formatos suportados: {', '.join(supported)}")
        self.format = fmt


class NotFoundError(PortalError):
    status_code = 404
    source = "not-found"


class InternalError(PortalError):
    status_code = 500
    source = "internal"


class AuthError(PortalError):
    status_code = 401
    source = "auth"


class SyncInProgressError(PortalError):
    status_code = 409
    source = "sync"


def error_body(message: str, source: str, **extra) -> dict:
    body = {"success": False, "error": message, "source": source}
    body.update({k: v for k, v in extra.items() if v is not None})
    return body


def register_error_handlers(app: FastAPI, show_details: bool = False) -> None:
    """Register envelope-producing exception handlers on the FastAPI app.

    show_details echoes exception text and stack traces of unexpected
    errors; it is off in production.
    """

    @app.exception_handler(PortalError)
    async def handle_portal_error(_request: Request, exc: PortalError):
        if exc.status_code >= 500:
            log.error(f"{type(exc).__name__}: {exc.message}")
        return JSONResponse(error_body(exc.message, exc.source), status_code=exc.status_code)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(_request: Request, exc: RequestValidationError):
        details = [
            {"campo": ".".join(str(p) for p in err.get("loc", ())), "mensagem": err.get("msg", "")}
            for err in exc.errors()
        ]
        return JSONResponse(
            error_body("Erro de validação", "validation", details=details),
            status_code=400,
        )

    @app.exception_handler(Exception)
    async def handle_unexpected(_request: Request, exc: Exception):
        log.exception("Unhandled error: %s", exc)
        extra = {}
        if show_details:
            extra["details"] = str(exc)
            extra["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return JSONResponse(
            error_body("Ocorreu um erro ao processar sua solicitação.", "internal", **extra),
            status_code=500,
        )
