"""Provider Registry mapping each vendor to its configuration and codec pair.

The registry is the single source of truth other components consult for
"which endpoint, which models, which transformer/parser" questions. It is
built once from static data and exposes no mutation API.
"""

import logging
from dataclasses import dataclass
from functools import lru_cache
from typing import Dict, List, Mapping, Optional, Type, Union

from .anthropic_provider import AnthropicParser, AnthropicTransformer
from .base import ProviderConfiguration, RequestTransformer, ResponseParser
from .configurations import PROVIDER_CONFIGURATIONS, ProviderType
from .deepseek_provider import DeepSeekParser, DeepSeekTransformer
from .errors import UnknownProviderError
from .grok_provider import GrokParser, GrokTransformer
from .mistral_provider import MistralParser, MistralTransformer
from .openai_provider import OpenAIParser, OpenAITransformer
from .perplexity_provider import PerplexityParser, PerplexityTransformer
from .workflow_provider import WorkflowParser, WorkflowTransformer

logger = logging.getLogger(__name__)

ProviderIdentifier = Union[ProviderType, str]


@dataclass(frozen=True)
class ProviderEntry:
    """Everything needed to talk to one vendor."""

    provider_type: ProviderType
    configuration: ProviderConfiguration
    transformer_class: Type[RequestTransformer]
    parser_class: Type[ResponseParser]

    def create_transformer(self) -> RequestTransformer:
        return self.transformer_class()

    def create_parser(self) -> ResponseParser:
        return self.parser_class()


CODECS = {
    ProviderType.OPENAI: (OpenAITransformer, OpenAIParser),
    ProviderType.ANTHROPIC: (AnthropicTransformer, AnthropicParser),
    ProviderType.MISTRAL: (MistralTransformer, MistralParser),
    ProviderType.PERPLEXITY: (PerplexityTransformer, PerplexityParser),
    ProviderType.GROK: (GrokTransformer, GrokParser),
    ProviderType.DEEPSEEK: (DeepSeekTransformer, DeepSeekParser),
    ProviderType.N8N: (WorkflowTransformer, WorkflowParser),
}


def resolve_provider_type(provider: ProviderIdentifier) -> ProviderType:
    """Normalize a provider identifier to a ProviderType.

    Raises:
        UnknownProviderError: If the identifier names no known vendor.
    """
    if isinstance(provider, ProviderType):
        return provider
    provider_type = ProviderType.from_string(str(provider))
    if provider_type is None:
        raise UnknownProviderError(provider)
    return provider_type


class ProviderRegistry:
    """Read-only lookup of vendor entries."""

    def __init__(self, entries: Mapping[ProviderType, ProviderEntry]) -> None:
        self._entries: Dict[ProviderType, ProviderEntry] = dict(entries)

    @classmethod
    def from_static_data(
        cls,
        configurations: Optional[Mapping[ProviderType, ProviderConfiguration]] = None,
    ) -> "ProviderRegistry":
        """Build the registry from the static vendor tables."""
        configurations = configurations or PROVIDER_CONFIGURATIONS
        entries = {}
        for provider_type, configuration in configurations.items():
            transformer_class, parser_class = CODECS[provider_type]
            entries[provider_type] = ProviderEntry(
                provider_type, configuration, transformer_class, parser_class
            )
        logger.info(f"Built provider registry with {len(entries)} providers")
        return cls(entries)

    def get_entry(self, provider: ProviderIdentifier) -> ProviderEntry:
        """Get the entry for a provider.

        Raises:
            UnknownProviderError: If the provider is not registered.
        """
        provider_type = resolve_provider_type(provider)
        entry = self._entries.get(provider_type)
        if entry is None:
            raise UnknownProviderError(provider)
        return entry

    def get_configuration(self, provider: ProviderIdentifier) -> ProviderConfiguration:
        return self.get_entry(provider).configuration

    def list_providers(self) -> List[ProviderType]:
        """List registered providers in declaration order."""
        return list(self._entries.keys())

    def supported_models(self, provider: ProviderIdentifier) -> List[str]:
        return list(self.get_configuration(provider).supported_models)

    def default_model(self, provider: ProviderIdentifier) -> str:
        return self.get_configuration(provider).default_model

    def __contains__(self, provider: ProviderIdentifier) -> bool:
        try:
            self.get_entry(provider)
        except UnknownProviderError:
            return False
        return True


@lru_cache
def get_registry() -> ProviderRegistry:
    """Get the default registry built from the static vendor tables."""
    return ProviderRegistry.from_static_data()
