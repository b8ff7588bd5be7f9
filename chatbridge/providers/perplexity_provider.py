"""Perplexity chat completions provider implementation."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .openai_provider import (
    ChatCompletionMessage,
    OpenAICompatibleParser,
    OpenAICompatibleTransformer,
)


class PerplexityRequest(BaseModel):
    """Wire body of ``POST /chat/completions`` on api.perplexity.ai."""

    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[ChatCompletionMessage]
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    stream: Optional[bool] = None
    presence_penalty: Optional[float] = None
    frequency_penalty: Optional[float] = None


class PerplexityTransformer(OpenAICompatibleTransformer):
    """Penalties and ``top_k`` are declared on the wire model."""

    request_model = PerplexityRequest


class PerplexityParser(OpenAICompatibleParser):
    """Parser for Perplexity chat completion responses."""
