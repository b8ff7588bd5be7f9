"""Error taxonomy for the provider layer.

Every stage of a dispatch (model check, secret lookup, serialization,
HTTP exchange, status classification, parsing) fails with exactly one of the
``ChatServiceError`` subclasses below, so callers can tell configuration
defects apart from transient network conditions.
"""

from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ValidationError


class ErrorKind(Enum):
    """Closed set of failure kinds exposed to callers."""
    UNSUPPORTED_MODEL = "unsupported_model"
    MISSING_API_KEY = "missing_api_key"
    INVALID_CONFIGURATION = "invalid_configuration"
    INVALID_RESPONSE = "invalid_response"
    AUTHENTICATION_FAILED = "authentication_failed"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    SERVER_ERROR = "server_error"
    NETWORK_ERROR = "network_error"
    INVALID_SESSION_ID = "invalid_session_id"


class ProviderErrorDetail(BaseModel):
    """Error object found inside a vendor error envelope."""
    message: str = ""
    type: Optional[str] = None
    code: Optional[Union[str, int]] = None
    param: Optional[str] = None


class ProviderErrorBody(BaseModel):
    """Vendor-neutral error envelope: ``{"error": {...}}``.

    OpenAI-compatible vendors and Anthropic both wrap failures this way.
    """
    error: ProviderErrorDetail

    @classmethod
    def from_bytes(cls, data: bytes) -> Optional["ProviderErrorBody"]:
        """Parse an error body, returning None when it is not an envelope."""
        if not data:
            return None
        try:
            return cls.model_validate_json(data)
        except ValidationError:
            return None


class ChatServiceError(Exception):
    """Base exception for every failure surfaced by a chat service."""

    kind: ErrorKind = ErrorKind.INVALID_CONFIGURATION

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        recoverable: bool = False,
    ):
        """Initialize the error.

        Args:
            message: Error message.
            provider: Name of the provider involved, when known.
            recoverable: Whether retrying the same request may succeed
                (e.g. rate limit) or not (e.g. invalid API key).
        """
        super().__init__(f"[{provider}] {message}" if provider else message)
        self.message = message
        self.provider = provider
        self.recoverable = recoverable
        self.provider_error: Optional[ProviderErrorDetail] = None


class UnsupportedModelError(ChatServiceError):
    """Raised when a model is not in the provider's supported list."""

    kind = ErrorKind.UNSUPPORTED_MODEL

    def __init__(self, model: str, provider: Optional[str] = None):
        super().__init__(f"Unsupported model: {model}", provider)
        self.model = model


class MissingAPIKeyError(ChatServiceError):
    """Raised when the secret store holds no key for the provider."""

    kind = ErrorKind.MISSING_API_KEY

    def __init__(self, provider: str):
        super().__init__(f"Missing API key for {provider}", provider)


class InvalidConfigurationError(ChatServiceError):
    """Raised for configuration or serialization defects."""

    kind = ErrorKind.INVALID_CONFIGURATION

    def __init__(self, message: str = "Invalid configuration", provider: Optional[str] = None):
        super().__init__(message, provider)


class UnknownProviderError(InvalidConfigurationError):
    """Raised when a provider identifier has no registry entry."""

    def __init__(self, identifier: Any):
        super().__init__(f"Unknown provider: {identifier}")
        self.identifier = identifier


class InvalidResponseError(ChatServiceError):
    """Raised when a success body cannot be parsed."""

    kind = ErrorKind.INVALID_RESPONSE

    def __init__(self, message: str = "Invalid response", provider: Optional[str] = None):
        super().__init__(message, provider)


class AuthenticationFailedError(ChatServiceError):
    """Raised on HTTP 401."""

    kind = ErrorKind.AUTHENTICATION_FAILED

    def __init__(self, provider: Optional[str] = None):
        super().__init__("Authentication failed", provider)


class RateLimitExceededError(ChatServiceError):
    """Raised on HTTP 429."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED

    def __init__(self, provider: Optional[str] = None, retry_after: Optional[int] = None):
        """Initialize the rate limit error.

        Args:
            provider: Name of the provider.
            retry_after: Seconds to wait before retrying, if the vendor said so.
        """
        message = "Rate limit exceeded"
        if retry_after is not None:
            message += f". Retry after {retry_after}s"
        super().__init__(message, provider, recoverable=True)
        self.retry_after = retry_after


class ServerError(ChatServiceError):
    """Raised for any non-success status other than 401 and 429."""

    kind = ErrorKind.SERVER_ERROR

    def __init__(self, detail: str, provider: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(
            detail,
            provider,
            recoverable=status_code is not None and 500 <= status_code <= 599,
        )
        self.detail = detail
        self.status_code = status_code


class NetworkError(ChatServiceError):
    """Raised when the HTTP exchange itself fails."""

    kind = ErrorKind.NETWORK_ERROR

    def __init__(self, cause: BaseException, provider: Optional[str] = None):
        super().__init__(f"Network error: {cause}", provider, recoverable=True)
        self.cause = cause


class InvalidSessionIdError(ChatServiceError):
    """Raised by session orchestration for malformed session identifiers."""

    kind = ErrorKind.INVALID_SESSION_ID

    def __init__(self, session_id: str):
        super().__init__(f"Invalid session id: {session_id}")
        self.session_id = session_id


class SerializationError(Exception):
    """Raised by a transformer that cannot encode a unified request."""


class ParseError(Exception):
    """Raised by a parser that cannot decode a vendor response."""


class InvalidParameterError(ValueError):
    """Raised when a parameter or message fails validation at construction."""

    def __init__(self, field: str, message: str):
        super().__init__(message)
        self.field = field
