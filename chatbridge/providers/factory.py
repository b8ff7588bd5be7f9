"""Service factory wiring provider identifiers to chat services.

This is the one composition point that turns a provider or agent into a
``BaseHTTPService`` bound to the registry's {configuration, transformer,
parser} triple. The factory keeps no request-time state.
"""

import logging
from typing import List, Mapping, Optional, Sequence, TYPE_CHECKING

import httpx

from ..secrets import SecretStore
from .base import ChatMessage, UnifiedChatRequest, UnifiedChatResponse
from .errors import ChatServiceError, UnknownProviderError
from .http_service import BaseHTTPService
from .policies import RetryPolicy, TimeoutPolicy
from .registry import ProviderIdentifier, ProviderRegistry, get_registry

if TYPE_CHECKING:
    from ..agents import AgentConfiguration

logger = logging.getLogger(__name__)


class AgentChatService:
    """Chat service that speaks as a configured agent.

    Prepends the agent's system prompt, applies its parameters, and honours
    its timeout and retry settings.
    """

    def __init__(self, agent: "AgentConfiguration", service: BaseHTTPService):
        self.agent = agent
        self.service = service

    @property
    def supported_models(self) -> List[str]:
        return self.service.supported_models

    @property
    def provider_name(self) -> str:
        return self.service.provider_name

    @property
    def model(self) -> str:
        return self.agent.model or self.service.configuration.default_model

    async def validate_configuration(self) -> bool:
        self.agent.validate()
        return await self.service.validate_configuration()

    def build_request(
        self,
        message: str,
        history: Optional[Sequence[Mapping[str, str]]] = None,
    ) -> UnifiedChatRequest:
        messages = []
        if self.agent.system_prompt:
            messages.append(ChatMessage("system", self.agent.system_prompt))
        for turn in history or ():
            messages.append(ChatMessage(turn["role"], turn["content"]))
        messages.append(ChatMessage("user", message))
        return UnifiedChatRequest(
            model=self.model,
            messages=tuple(messages),
            parameters=self.agent.parameters.to_request_parameters(),
        )

    async def send(
        self,
        message: str,
        history: Optional[Sequence[Mapping[str, str]]] = None,
    ) -> UnifiedChatResponse:
        return await self.service.send(self.build_request(message, history))

    async def send_message(
        self,
        message: str,
        history: Optional[Sequence[Mapping[str, str]]] = None,
    ) -> str:
        response = await self.send(message, history)
        return response.content


class ServiceFactory:
    """Builds chat services for providers and agents."""

    def __init__(
        self,
        secrets: SecretStore,
        registry: Optional[ProviderRegistry] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        """Initialize the factory.

        Args:
            secrets: Secret store handed to every service.
            registry: Provider registry; defaults to the static registry.
            client: Optional caller-owned HTTP client shared by the services.
        """
        self.secrets = secrets
        self.registry = registry or get_registry()
        self.client = client

    def create_chat_service(
        self,
        provider: ProviderIdentifier,
        timeout_policy: Optional[TimeoutPolicy] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ) -> Optional[BaseHTTPService]:
        """Create a service for a provider.

        Returns:
            The service, or None if the provider is unknown.
        """
        try:
            entry = self.registry.get_entry(provider)
        except UnknownProviderError:
            logger.warning(f"No chat service for unknown provider: {provider}")
            return None

        return BaseHTTPService(
            configuration=entry.configuration,
            transformer=entry.create_transformer(),
            parser=entry.create_parser(),
            secrets=self.secrets,
            client=self.client,
            timeout_policy=timeout_policy,
            retry_policy=retry_policy,
        )

    def create_agent_service(self, agent: "AgentConfiguration") -> Optional[AgentChatService]:
        """Create a service for an agent, applying its timeout and retries.

        Returns:
            The agent service, or None if the agent's provider is unknown.
        """
        parameters = agent.parameters
        service = self.create_chat_service(
            agent.provider,
            timeout_policy=TimeoutPolicy(parameters.timeout),
            retry_policy=RetryPolicy(parameters.retry_attempts),
        )
        if service is None:
            return None
        logger.info(f"Created agent service {agent.name} on {service.provider_name}")
        return AgentChatService(agent, service)

    def get_all_services(self) -> List[BaseHTTPService]:
        return [
            service
            for service in (
                self.create_chat_service(provider)
                for provider in self.registry.list_providers()
            )
            if service is not None
        ]

    def get_supported_models(self, provider: ProviderIdentifier) -> List[str]:
        service = self.create_chat_service(provider)
        if service is None:
            return []
        return service.supported_models

    async def is_provider_available(self, provider: ProviderIdentifier) -> bool:
        """Report whether a provider is usable, without raising."""
        service = self.create_chat_service(provider)
        if service is None:
            return False
        try:
            return await service.validate_configuration()
        except ChatServiceError as e:
            logger.info(f"Provider {service.provider_name} unavailable: {e}")
            return False

    async def is_agent_available(self, agent: "AgentConfiguration") -> bool:
        """Report whether an agent is usable, without raising."""
        service = self.create_agent_service(agent)
        if service is None:
            return False
        try:
            return await service.validate_configuration()
        except (ChatServiceError, ValueError) as e:
            logger.info(f"Agent {agent.name} unavailable: {e}")
            return False
