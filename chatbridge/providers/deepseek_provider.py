"""DeepSeek provider implementation (OpenAI-compatible wire format)."""

from .openai_provider import OpenAICompatibleParser, OpenAICompatibleTransformer, OpenAIRequest


class DeepSeekTransformer(OpenAICompatibleTransformer):
    """DeepSeek accepts the OpenAI request body unchanged."""

    request_model = OpenAIRequest


class DeepSeekParser(OpenAICompatibleParser):
    """Parser for DeepSeek chat completion responses."""
