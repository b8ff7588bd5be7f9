"""Agent configuration consumed by the service factory."""

from dataclasses import dataclass, field
from typing import Optional, Tuple, Union

from .providers.base import RequestParameters
from .providers.configurations import ProviderType
from .providers.errors import InvalidParameterError


@dataclass(frozen=True)
class AgentParameters:
    """Generation and transport settings for an agent.

    ``timeout`` and ``retry_attempts`` are applied by the agent service as
    opt-in policies; the plain provider service ignores them.
    """

    temperature: float = 0.7
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop_sequences: Optional[Tuple[str, ...]] = None
    timeout: float = 30.0
    retry_attempts: int = 3

    def __post_init__(self) -> None:
        if not 0 <= self.temperature <= 2:
            raise InvalidParameterError("temperature", "Temperature must be between 0 and 2")
        if self.max_tokens is not None and self.max_tokens <= 0:
            raise InvalidParameterError("max_tokens", "Max tokens must be positive")
        if self.timeout <= 0:
            raise InvalidParameterError("timeout", "Timeout must be positive")
        if self.retry_attempts < 0:
            raise InvalidParameterError("retry_attempts", "Retry attempts must be non-negative")

    def to_request_parameters(self) -> RequestParameters:
        return RequestParameters(
            temperature=self.temperature,
            max_tokens=self.max_tokens,
            top_p=self.top_p,
            stream=False,
            frequency_penalty=self.frequency_penalty,
            presence_penalty=self.presence_penalty,
            stop=self.stop_sequences,
        )


@dataclass(frozen=True)
class AgentConfiguration:
    """A named agent bound to one provider."""

    name: str
    provider: Union[ProviderType, str]
    model: Optional[str] = None
    system_prompt: str = ""
    parameters: AgentParameters = field(default_factory=AgentParameters)

    def validate(self) -> None:
        """Reject blank names and blank explicit models.

        Raises:
            InvalidParameterError: If a field is invalid.
        """
        if not self.name.strip():
            raise InvalidParameterError("name", "Agent name must not be empty")
        if self.model is not None and not self.model.strip():
            raise InvalidParameterError("model", "Agent model must not be empty")
