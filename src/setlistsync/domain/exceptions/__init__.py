"""Domain exceptions.

Every exception carries a human-readable ``message`` attribute and maps to
exactly one HTTP status in ``setlistsync.api.exception_handlers``.

A partially failed sync is NOT an exception. Per-item and per-phase failures
are collected as strings in the sync results and the run still reports success.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message lives on the instance so handlers never parse str(exc).
    # Don't raise this directly, pick a subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when a requested entity does not exist.

    HTTP Status: 404
    """

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationException(DomainException):
    """Request body or query parameters failed validation.

    HTTP Status: 400

    Example:
        raise ValidationException(
            "One of artistId, artistName or artistMbid is required",
            details=[{"field": "artistId", "message": "missing"}],
        )
    """

    def __init__(
        self, message: str, details: list[dict[str, Any]] | None = None
    ) -> None:
        super().__init__(message)
        self.details = details or []


# Short alias, both names are used by callers
ValidationError = ValidationException


class AuthenticationError(DomainException):
    """Missing or wrong shared secret on a protected endpoint.

    HTTP Status: 401
    """

    pass


class ConfigurationError(DomainException):
    """Required server configuration is missing.

    HTTP Status: 503

    Example:
        raise ConfigurationError("CRON_SECRET is not configured")
    """

    pass


class ExternalServiceError(DomainException):
    """A provider (Spotify, Ticketmaster, Setlist.fm) call failed.

    Carries the provider name and, when the provider answered at all, the
    HTTP status it answered with.

    HTTP Status: 502
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code


class UpstreamCredentialError(ExternalServiceError):
    """Provider API key missing, or rejected with 401/403.

    HTTP Status: 503
    """

    pass


class RateLimitExceededError(ExternalServiceError):
    """Provider kept answering 429 after our retries.

    HTTP Status: 429

    Example:
        raise RateLimitExceededError(
            "Ticketmaster rate limit exceeded", provider="ticketmaster",
            status_code=429, retry_after=30,
        )
    """

    def __init__(
        self,
        message: str,
        provider: str | None = None,
        status_code: int | None = 429,
        retry_after: int | None = None,
    ) -> None:
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after = retry_after


class UpstreamTimeoutError(ExternalServiceError):
    """Provider did not answer within the configured timeout.

    HTTP Status: 408
    """

    pass


class DuplicateEntityException(DomainException):
    """Business rule says this entity must be unique and it already exists.

    HTTP Status: 409
    """

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} already exists")
        self.entity_type = entity_type
        self.entity_id = entity_id


__all__ = [
    "DomainException",
    "EntityNotFoundException",
    "DuplicateEntityException",
    "ValidationException",
    "ValidationError",
    "AuthenticationError",
    "ConfigurationError",
    "ExternalServiceError",
    "UpstreamCredentialError",
    "RateLimitExceededError",
    "UpstreamTimeoutError",
]
