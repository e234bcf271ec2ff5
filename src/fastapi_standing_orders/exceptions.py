"""Exception types and handlers mapping them to HTTP responses."""

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class StandingOrdersError(Exception):
    """Base class for service errors."""


class InvalidSignatureError(StandingOrdersError):
    def __init__(self, message: str = "invalid signature") -> None:
        super().__init__(message)


class MissingRequiredFieldError(StandingOrdersError):
    def __init__(self, field: str) -> None:
        self.field = field
        super().__init__(f"missing {field}")


class ConfigurationError(StandingOrdersError):
    """A setting required by the requested feature is not configured."""


class RemoteApiError(StandingOrdersError):
    """The admin API call did not succeed.

    ``status`` is ``None`` when the retries ran out on network errors or
    timeouts. ``body`` is the raw response text and need not be JSON.
    """

    def __init__(
        self,
        status: int | None,
        path: str,
        body: str = "",
    ) -> None:
        self.status = status
        self.path = path
        self.body = body
        label = status if status is not None else "network error"
        super().__init__(f"Admin API {label} {path}: {body}")

    @property
    def is_auth_failure(self) -> bool:
        return self.status in (401, 403)


class InvoiceRequestError(RemoteApiError):
    """The draft order was created but sending its invoice failed."""

    def __init__(self, draft_id: int | str, cause: RemoteApiError) -> None:
        self.draft_id = draft_id
        super().__init__(cause.status, cause.path, cause.body)


def _error(status_code: int, exc: Exception, code: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": str(exc), "code": code},
    )


def _validation_message(exc: RequestValidationError) -> str:
    for error in exc.errors():
        if error.get("type") == "json_invalid":
            continue
        fields = [
            str(part)
            for part in error.get("loc", ())
            if part not in ("body", "query") and not isinstance(part, int)
        ]
        if fields:
            return f"invalid {fields[0]}"
    return "invalid request body"


def register_exception_handlers(app: FastAPI) -> None:
    """Register service exception handlers on a FastAPI app.

    Handler order (most specific first):
    1. InvalidSignatureError → 401
    2. MissingRequiredFieldError → 400
    3. RemoteApiError → 500
    4. ConfigurationError → 500
    5. StandingOrdersError → 500
    6. RequestValidationError → 400
    7. Exception → 500 (catch-all, logged)
    """

    @app.exception_handler(InvalidSignatureError)
    async def _invalid_signature(
        request: Request,
        exc: InvalidSignatureError,
    ) -> JSONResponse:
        return _error(401, exc, "invalid_signature")

    @app.exception_handler(MissingRequiredFieldError)
    async def _missing_field(
        request: Request,
        exc: MissingRequiredFieldError,
    ) -> JSONResponse:
        return _error(400, exc, "missing_field")

    @app.exception_handler(RemoteApiError)
    async def _remote_api_error(
        request: Request,
        exc: RemoteApiError,
    ) -> JSONResponse:
        return _error(500, exc, "remote_api_error")

    @app.exception_handler(ConfigurationError)
    async def _configuration_error(
        request: Request,
        exc: ConfigurationError,
    ) -> JSONResponse:
        return _error(500, exc, "configuration_error")

    @app.exception_handler(StandingOrdersError)
    async def _standing_orders_error(
        request: Request,
        exc: StandingOrdersError,
    ) -> JSONResponse:
        return _error(500, exc, "internal_error")

    @app.exception_handler(RequestValidationError)
    async def _validation_error(
        request: Request,
        exc: RequestValidationError,
    ) -> JSONResponse:
        logger.warning(
            "Invalid request on %s: %s", request.url.path, exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={
                "error": _validation_message(exc),
                "code": "invalid_request",
            },
        )

    @app.exception_handler(Exception)
    async def _unexpected_error(
        request: Request,
        exc: Exception,
    ) -> JSONResponse:
        logger.exception("Unhandled error on %s", request.url.path)
        return _error(500, exc, "internal_error")
