"""Error types for Cosmos REST operations."""

from enum import StrEnum


class ErrorKind(StrEnum):
    """Classification of client errors."""

    VALIDATION = "validation"
    AUTH = "auth"
    INVALID_RESPONSE_PAYLOAD = "invalid_response_payload"
    UNKNOWN_RESOURCE_KIND = "unknown_resource_kind"
    API = "api"
    TRANSPORT = "transport"


class CosmosError(Exception):
    """Base error for all client operations."""

    default_kind = ErrorKind.API

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        status_code: int | None = None,
        source: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind if kind is not None else self.default_kind
        self.status_code = status_code
        self.source = source

    def __repr__(self) -> str:
        name = type(self).__name__
        if self.status_code is not None:
            return f"{name}({self.message!r}, kind={self.kind!r}, status_code={self.status_code})"
        return f"{name}({self.message!r}, kind={self.kind!r})"


class ValidationError(CosmosError):
    """Caller misuse: bad option values or malformed input."""

    default_kind = ErrorKind.VALIDATION


class AuthError(ValidationError):
    """Token is empty, malformed, or of an unknown type."""

    default_kind = ErrorKind.AUTH


class ProtocolError(CosmosError):
    """Service response does not match the protocol contract."""

    default_kind = ErrorKind.INVALID_RESPONSE_PAYLOAD


class ApiError(CosmosError):
    """Service answered with a non-success status."""

    default_kind = ErrorKind.API

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code=status_code)


class TransportError(CosmosError):
    """Network or HTTP failure below the protocol layer."""

    default_kind = ErrorKind.TRANSPORT

    def __init__(self, message: str, source: BaseException | None = None) -> None:
        super().__init__(message, source=source)
