"""Provider unification layer.

One normalized chat request is serialized into each vendor's wire format,
dispatched over HTTP, classified by status, and parsed back into one
response shape.
"""

from .base import (
    ChatMessage,
    ProviderConfiguration,
    RequestParameters,
    RequestTransformer,
    ResponseParser,
    TokenUsage,
    UnifiedChatRequest,
    UnifiedChatResponse,
)
from .errors import (
    AuthenticationFailedError,
    ChatServiceError,
    ErrorKind,
    InvalidConfigurationError,
    InvalidParameterError,
    InvalidResponseError,
    InvalidSessionIdError,
    MissingAPIKeyError,
    NetworkError,
    ParseError,
    ProviderErrorBody,
    RateLimitExceededError,
    SerializationError,
    ServerError,
    UnknownProviderError,
    UnsupportedModelError,
)
from .configurations import ProviderType, PROVIDER_CONFIGURATIONS
from .policies import RetryPolicy, TimeoutPolicy
from .http_service import BaseHTTPService, classify_status, send
from .registry import ProviderEntry, ProviderRegistry, get_registry
from .factory import AgentChatService, ServiceFactory

__all__ = [
    "ChatMessage",
    "ProviderConfiguration",
    "RequestParameters",
    "RequestTransformer",
    "ResponseParser",
    "TokenUsage",
    "UnifiedChatRequest",
    "UnifiedChatResponse",
    "AuthenticationFailedError",
    "ChatServiceError",
    "ErrorKind",
    "InvalidConfigurationError",
    "InvalidParameterError",
    "InvalidResponseError",
    "InvalidSessionIdError",
    "MissingAPIKeyError",
    "NetworkError",
    "ParseError",
    "ProviderErrorBody",
    "RateLimitExceededError",
    "SerializationError",
    "ServerError",
    "UnknownProviderError",
    "UnsupportedModelError",
    "ProviderType",
    "PROVIDER_CONFIGURATIONS",
    "RetryPolicy",
    "TimeoutPolicy",
    "BaseHTTPService",
    "classify_status",
    "send",
    "ProviderEntry",
    "ProviderRegistry",
    "get_registry",
    "AgentChatService",
    "ServiceFactory",
]
