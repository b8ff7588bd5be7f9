"""Static per-vendor configuration.

One ProviderConfiguration per vendor, created at import time and never
mutated. Adding a vendor means adding an entry here plus a transformer/parser
pair in the registry.
"""

from enum import Enum
from typing import Optional

from ..config import get_settings
from .base import ProviderConfiguration


class ProviderType(Enum):
    """Vendors the application can talk to."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    MISTRAL = "mistral"
    PERPLEXITY = "perplexity"
    GROK = "grok"
    DEEPSEEK = "deepseek"
    N8N = "n8n"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def from_string(cls, value: str) -> Optional["ProviderType"]:
        """Look up a provider by value or display name, case-insensitively."""
        needle = value.strip().lower()
        for provider_type in cls:
            if needle in (provider_type.value, provider_type.display_name.lower()):
                return provider_type
        return None


_DISPLAY_NAMES = {
    ProviderType.OPENAI: "OpenAI",
    ProviderType.ANTHROPIC: "Anthropic",
    ProviderType.MISTRAL: "Mistral",
    ProviderType.PERPLEXITY: "Perplexity",
    ProviderType.GROK: "Grok",
    ProviderType.DEEPSEEK: "DeepSeek",
    ProviderType.N8N: "n8n",
}


OPENAI = ProviderConfiguration(
    name="OpenAI",
    base_url="https://api.openai.com/v1/chat/completions",
    default_model="gpt-4o",
    supported_models=(
        "o3", "o4-mini",
        "gpt-4.1", "gpt-4.1-mini", "gpt-4.1-nano",
        "gpt-4o", "gpt-4o-mini",
        "o1", "o1-mini",
    ),
)

ANTHROPIC = ProviderConfiguration(
    name="Anthropic",
    base_url="https://api.anthropic.com/v1/messages",
    auth_header_name="x-api-key",
    auth_header_prefix="",
    api_version="2023-06-01",
    default_model="claude-3-5-sonnet-20241022",
    supported_models=(
        "claude-opus-4-20250514",
        "claude-sonnet-4-20250514",
        "claude-3-7-sonnet-20250219",
        "claude-3-5-sonnet-20241022",
        "claude-3-5-haiku-20241022",
        "claude-3-opus-20240229",
        "claude-3-haiku-20240307",
    ),
)

MISTRAL = ProviderConfiguration(
    name="Mistral",
    base_url="https://api.mistral.ai/v1/chat/completions",
    default_model="mistral-medium-2505",
    supported_models=(
        "mistral-medium-2505", "magistral-medium-2506", "codestral-2501",
        "devstral-medium-2507", "mistral-large-2411", "pixtral-large-2411",
        "ministral-8b-2410", "ministral-3b-2410", "magistral-small-2506",
        "mistral-small-2506", "devstral-small-2507", "mistral-nemo-2407",
        "pixtral-12b-2409", "mistral-embed", "mistral-moderation-2411",
        "mistral-ocr-2505",
    ),
)

PERPLEXITY = ProviderConfiguration(
    name="Perplexity",
    base_url="https://api.perplexity.ai/chat/completions",
    default_model="sonar-pro",
    supported_models=(
        "sonar-reasoning-pro", "sonar-reasoning", "sonar-pro", "sonar",
        "sonar-deep-research", "r1-1776",
        "llama-3.1-sonar-large-128k-online", "llama-3.1-sonar-small-128k-online",
        "llama-3.1-sonar-large-128k-chat", "llama-3.1-sonar-small-128k-chat",
        "llama-3.1-8b-instruct", "llama-3.1-70b-instruct",
    ),
)

GROK = ProviderConfiguration(
    name="Grok",
    base_url="https://api.x.ai/v1/chat/completions",
    default_model="grok-2-1212",
    supported_models=(
        "grok-3", "grok-2-1212", "grok-2-vision-1212",
        "grok-2-public", "grok-beta", "grok-vision-beta",
    ),
)

DEEPSEEK = ProviderConfiguration(
    name="DeepSeek",
    base_url="https://api.deepseek.com/v1/chat/completions",
    default_model="deepseek-v3-0324",
    supported_models=(
        "deepseek-v3-0324", "deepseek-r1-0528", "deepseek-r1-lite-preview",
        "deepseek-r1-distill-llama-70b", "deepseek-r1-distill-qwen-32b",
        "deepseek-r1-distill-qwen-14b", "deepseek-r1-distill-qwen-7b",
        "deepseek-r1-distill-qwen-1.5b", "deepseek-coder-v2-instruct",
        "deepseek-coder-v2-lite-instruct", "deepseek-math-7b-instruct",
    ),
)

N8N = ProviderConfiguration(
    name="n8n",
    base_url=get_settings().n8n_webhook_url,
    default_model="blog-workflow",
    supported_models=("blog-workflow",),
)

PROVIDER_CONFIGURATIONS = {
    ProviderType.OPENAI: OPENAI,
    ProviderType.ANTHROPIC: ANTHROPIC,
    ProviderType.MISTRAL: MISTRAL,
    ProviderType.PERPLEXITY: PERPLEXITY,
    ProviderType.GROK: GROK,
    ProviderType.DEEPSEEK: DEEPSEEK,
    ProviderType.N8N: N8N,
}
