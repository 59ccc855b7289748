"""Domain exceptions."""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is stored as an attribute so handlers can read it without
    # parsing str(exception). Never raise this directly - always a specific subclass so
    # callers (and the HTTP exception handlers) can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class ValidationError(DomainException):
    """Uploaded image failed format/size/dimension checks.

    Carries EVERY violated constraint, not just the first one, so the admin UI can
    show "wrong format AND too big" in one go.

    HTTP Status: 400
    """

    def __init__(self, errors: list[str], message: str = "Image validation failed") -> None:
        super().__init__(message)
        self.errors = list(errors)

    def __str__(self) -> str:
        if not self.errors:
            return self.message
        return f"{self.message}: {'; '.join(self.errors)}"


class InvalidImageError(DomainException):
    """Buffer could not be decoded as an image.

    HTTP Status: 422
    """

    def __init__(self, message: str = "Not a decodable image") -> None:
        super().__init__(message)


class UnsupportedFormatError(DomainException):
    """Requested output format is not one of jpeg/png/webp.

    HTTP Status: 422
    """

    def __init__(self, image_format: str) -> None:
        super().__init__(f"Unsupported output format: {image_format}")
        self.image_format = image_format


class UploadError(DomainException):
    """A storage backend failed to persist (or delete) a buffer.

    Raised for transport, auth and quota failures from the provider. The original
    provider exception is chained via ``raise ... from``.

    HTTP Status: 502 (Bad Gateway)
    """

    def __init__(self, provider: str, message: str, operation: str = "upload") -> None:
        super().__init__(f"{provider} {operation} failed: {message}")
        self.provider = provider
        self.operation = operation


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    # Stored separately so error handlers can log them structured.
    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


NotFoundError = EntityNotFoundException


class ConfigurationError(DomainException):
    """Application misconfiguration (missing credentials, unknown provider).

    HTTP Status: 503 (Service Unavailable)
    """

    pass


class PersistenceError(DomainException):
    """Writing the ingested wallpaper to the database failed.

    Raised by the upload use case after (optional) compensation ran.

    HTTP Status: 500
    """

    def __init__(self, message: str, deleted_assets: int = 0) -> None:
        super().__init__(message)
        self.deleted_assets = deleted_assets


__all__ = [
    "ConfigurationError",
    "DomainException",
    "EntityNotFoundException",
    "InvalidImageError",
    "NotFoundError",
    "PersistenceError",
    "UnsupportedFormatError",
    "UploadError",
    "ValidationError",
]
