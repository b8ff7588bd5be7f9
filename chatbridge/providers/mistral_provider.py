"""Mistral chat completions provider implementation."""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .openai_provider import (
    ChatCompletionMessage,
    OpenAICompatibleParser,
    OpenAICompatibleTransformer,
)


class MistralRequest(BaseModel):
    """Wire body of ``POST /v1/chat/completions`` on api.mistral.ai."""

    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[ChatCompletionMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    random_seed: Optional[int] = None
    stop: Optional[List[str]] = None
    stream: Optional[bool] = None


class MistralTransformer(OpenAICompatibleTransformer):
    """``random_seed`` is only reachable through ``RequestParameters.extra``."""

    request_model = MistralRequest


class MistralParser(OpenAICompatibleParser):
    """Parser for Mistral chat completion responses."""
