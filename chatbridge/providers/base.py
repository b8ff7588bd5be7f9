"""Provider abstraction layer for LLM providers.

This module defines the vendor-agnostic request/response model shared by every
provider, the static per-vendor configuration shape, and the transformer/parser
interface each vendor implements.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from .errors import InvalidConfigurationError, InvalidParameterError

VALID_ROLES = ("system", "user", "assistant")


@dataclass(frozen=True)
class ProviderConfiguration:
    """Static description of one vendor endpoint."""

    name: str
    base_url: str
    default_model: Optional[str] = None
    supported_models: Tuple[str, ...] = ()
    auth_header_name: str = "Authorization"
    auth_header_prefix: str = "Bearer"
    api_version: Optional[str] = None
    custom_headers: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "supported_models", tuple(self.supported_models))
        if not self.supported_models:
            raise InvalidConfigurationError("No supported models configured", self.name)
        if self.default_model is None:
            object.__setattr__(self, "default_model", self.supported_models[0])
        elif self.default_model not in self.supported_models:
            raise InvalidConfigurationError(
                f"Default model {self.default_model} is not a supported model",
                self.name,
            )

    @property
    def keychain_key(self) -> str:
        """Key under which the secret store holds this provider's API key."""
        return self.name.lower()

    def supports_model(self, model: str) -> bool:
        return model in self.supported_models


@dataclass(frozen=True)
class ChatMessage:
    """A single conversation turn."""

    role: str
    content: str

    def __post_init__(self) -> None:
        if self.role not in VALID_ROLES:
            raise InvalidParameterError("role", f"Unknown message role: {self.role}")

    def to_dict(self) -> Dict[str, str]:
        return {"role": self.role, "content": self.content}


@dataclass(frozen=True)
class RequestParameters:
    """Generation parameters. ``None`` means "use the vendor default"."""

    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    stream: Optional[bool] = False
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop: Optional[Tuple[str, ...]] = None
    # Vendor-specific extras (e.g. random_seed, top_k), merged into the payload
    extra: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.temperature is not None and not 0 <= self.temperature <= 2:
            raise InvalidParameterError(
                "temperature", "Temperature must be between 0 and 2"
            )
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise InvalidParameterError("max_tokens", "Max tokens must be positive")
        if self.top_p is not None and not 0 <= self.top_p <= 1:
            raise InvalidParameterError("top_p", "top_p must be between 0 and 1")
        if self.stop is not None:
            object.__setattr__(self, "stop", tuple(self.stop))


@dataclass(frozen=True)
class UnifiedChatRequest:
    """Vendor-agnostic chat request."""

    model: str
    messages: Tuple[ChatMessage, ...]
    parameters: RequestParameters = field(default_factory=RequestParameters)

    def __post_init__(self) -> None:
        object.__setattr__(self, "messages", tuple(self.messages))

    @classmethod
    def from_dicts(
        cls,
        model: str,
        messages: Iterable[Mapping[str, str]],
        parameters: Optional[RequestParameters] = None,
    ) -> "UnifiedChatRequest":
        """Build a request from ``{"role": ..., "content": ...}`` dicts."""
        return cls(
            model=model,
            messages=tuple(ChatMessage(m["role"], m["content"]) for m in messages),
            parameters=parameters or RequestParameters(),
        )

    @property
    def system_prompt(self) -> Optional[str]:
        """All system turns joined by a blank line, or None."""
        parts = [m.content for m in self.messages if m.role == "system"]
        return "\n\n".join(parts) if parts else None

    @property
    def conversation(self) -> List[ChatMessage]:
        """Non-system turns in order."""
        return [m for m in self.messages if m.role != "system"]


@dataclass(frozen=True)
class TokenUsage:
    """Token accounting normalized across vendors."""

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None

    @classmethod
    def from_counts(
        cls,
        prompt_tokens: Optional[int],
        completion_tokens: Optional[int],
        total_tokens: Optional[int] = None,
    ) -> "TokenUsage":
        """Build usage, synthesizing the total when only the halves are known."""
        if total_tokens is None and prompt_tokens is not None and completion_tokens is not None:
            total_tokens = prompt_tokens + completion_tokens
        return cls(prompt_tokens, completion_tokens, total_tokens)


@dataclass(frozen=True)
class UnifiedChatResponse:
    """Unified response format from all providers."""

    content: str
    model: str
    usage: Optional[TokenUsage] = None
    raw_response: Optional[Any] = field(default=None, compare=False, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        usage = self.usage or TokenUsage()
        return {
            "content": self.content,
            "model": self.model,
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        }


class RequestTransformer(ABC):
    """Turns a unified request into one vendor's wire bytes."""

    @abstractmethod
    def transform(self, request: UnifiedChatRequest) -> bytes:
        """Serialize the request.

        Raises:
            SerializationError: If the request cannot be expressed in the
                vendor's format.
        """


class ResponseParser(ABC):
    """Turns one vendor's wire bytes into a unified response."""

    @abstractmethod
    def parse(self, data: bytes) -> UnifiedChatResponse:
        """Deserialize a success body.

        Raises:
            ParseError: If the payload is malformed or has an unexpected shape.
        """


def flatten_content(content: Any) -> Optional[str]:
    """Normalize message content to a single string.

    Vendors return either a flat string or a list of typed content blocks;
    only ``text`` blocks contribute, concatenated in order.
    """
    if content is None or isinstance(content, str):
        return content
    if isinstance(content, Sequence):
        texts = []
        for block in content:
            if isinstance(block, str):
                texts.append(block)
            elif isinstance(block, Mapping):
                if block.get("type", "text") == "text" and isinstance(block.get("text"), str):
                    texts.append(block["text"])
            elif getattr(block, "type", "text") == "text" and isinstance(getattr(block, "text", None), str):
                texts.append(block.text)
        return "".join(texts)
    return None
