"""Custom exception handlers for the FastAPI application.

Every error leaves the API as JSON ``{"error": <code>, "message": <text>}``, plus
``details`` for validation errors and ``retry_after`` for rate limits. Stack traces
go to the log, never to the client.
"""

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from setlistsync.domain.exceptions import (
    AuthenticationError,
    ConfigurationError,
    DomainException,
    DuplicateEntityException,
    EntityNotFoundException,
    ExternalServiceError,
    RateLimitExceededError,
    UpstreamCredentialError,
    UpstreamTimeoutError,
    ValidationException,
)

logger = logging.getLogger(__name__)


def error_body(error: str, message: str, **extra: Any) -> dict[str, Any]:
    return {"error": error, "message": message, **extra}


# Hey future me - pydantic's exc.errors() can carry raw bytes in "input" and exception
# objects in "ctx" (from model validators). Neither is JSON serializable, so we only
# keep location, message and type.
def _simplify_validation_errors(errors: list[Any]) -> list[dict[str, Any]]:
    simplified: list[dict[str, Any]] = []
    for error in errors:
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        simplified.append(
            {
                "field": ".".join(location) or None,
                "message": str(error.get("msg", "")).removeprefix("Value error, "),
                "type": error.get("type"),
            }
        )
    return simplified


# Hey future me - FastAPI looks handlers up along the exception's MRO, so the specific
# ExternalServiceError subclasses below win over the generic 502 handler.
def register_exception_handlers(app: FastAPI) -> None:
    """Register handlers for domain exceptions, request validation and the catch-all."""

    @app.exception_handler(ValidationException)
    async def validation_exception_handler(
        request: Request, exc: ValidationException
    ) -> JSONResponse:
        logger.warning(
            "Validation error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("validation_error", exc.message, details=exc.details),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = _simplify_validation_errors(list(exc.errors()))
        logger.warning(
            "Request validation error at %s: %s",
            request.url.path,
            details,
            extra={"path": request.url.path, "errors": details},
        )
        message = details[0]["message"] if len(details) == 1 else "Invalid request"
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("validation_error", message, details=details),
        )

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        logger.warning(
            "Authentication error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content=error_body("unauthorized", exc.message),
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(EntityNotFoundException)
    async def entity_not_found_exception_handler(
        request: Request, exc: EntityNotFoundException
    ) -> JSONResponse:
        logger.info(
            "Entity not found at %s: %s %s",
            request.url.path,
            exc.entity_type,
            exc.entity_id,
            extra={
                "path": request.url.path,
                "entity_type": exc.entity_type,
                "entity_id": str(exc.entity_id),
            },
        )
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content=error_body("not_found", exc.message),
        )

    @app.exception_handler(DuplicateEntityException)
    async def duplicate_entity_exception_handler(
        request: Request, exc: DuplicateEntityException
    ) -> JSONResponse:
        logger.warning("Duplicate entity at %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content=error_body("conflict", exc.message),
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        logger.error(
            "Configuration error at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "error": exc.message},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body("service_unavailable", exc.message),
        )

    # Credential problems are OUR config problem, the client just sees "unavailable"
    @app.exception_handler(UpstreamCredentialError)
    async def upstream_credential_error_handler(
        request: Request, exc: UpstreamCredentialError
    ) -> JSONResponse:
        logger.error(
            "Provider credentials rejected at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "provider": exc.provider},
        )
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body(
                "service_unavailable", f"{exc.provider or 'Provider'} is not available"
            ),
        )

    @app.exception_handler(RateLimitExceededError)
    async def rate_limit_exceeded_handler(
        request: Request, exc: RateLimitExceededError
    ) -> JSONResponse:
        logger.warning(
            "Rate limit exceeded at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "provider": exc.provider},
        )
        headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content=error_body("rate_limited", exc.message, retry_after=exc.retry_after),
            headers=headers,
        )

    @app.exception_handler(UpstreamTimeoutError)
    async def upstream_timeout_handler(
        request: Request, exc: UpstreamTimeoutError
    ) -> JSONResponse:
        logger.warning(
            "Provider timeout at %s: %s",
            request.url.path,
            exc.message,
            extra={"path": request.url.path, "provider": exc.provider},
        )
        return JSONResponse(
            status_code=status.HTTP_408_REQUEST_TIMEOUT,
            content=error_body("upstream_timeout", exc.message),
        )

    @app.exception_handler(ExternalServiceError)
    async def external_service_error_handler(
        request: Request, exc: ExternalServiceError
    ) -> JSONResponse:
        logger.error(
            "External service error at %s: %s",
            request.url.path,
            exc.message,
            extra={
                "path": request.url.path,
                "provider": exc.provider,
                "upstream_status": exc.status_code,
            },
        )
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content=error_body("upstream_error", exc.message),
        )

    @app.exception_handler(DomainException)
    async def domain_exception_handler(
        request: Request, exc: DomainException
    ) -> JSONResponse:
        logger.warning("Domain error at %s: %s", request.url.path, exc.message)
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body("bad_request", exc.message),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        log = logger.error if exc.status_code >= 500 else logger.info
        log("HTTP error %d at %s: %s", exc.status_code, request.url.path, exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body("http_error", str(exc.detail)),
            headers=getattr(exc, "headers", None),
        )

    # Last resort. Starlette still re-raises after this so the server logs the trace.
    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled error at %s",
            request.url.path,
            extra={"path": request.url.path, "error_type": type(exc).__name__},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("internal_error", "An unexpected error occurred"),
        )
