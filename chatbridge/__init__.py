"""chatbridge: one chat contract over many LLM vendors."""

from .agents import AgentConfiguration, AgentParameters
from .secrets import EnvironmentSecretStore, InMemorySecretStore, SecretStore
from .providers import (
    BaseHTTPService,
    ChatServiceError,
    ProviderType,
    RequestParameters,
    ServiceFactory,
    UnifiedChatRequest,
    UnifiedChatResponse,
)

__all__ = [
    "AgentConfiguration",
    "AgentParameters",
    "EnvironmentSecretStore",
    "InMemorySecretStore",
    "SecretStore",
    "BaseHTTPService",
    "ChatServiceError",
    "ProviderType",
    "RequestParameters",
    "ServiceFactory",
    "UnifiedChatRequest",
    "UnifiedChatResponse",
]
