"""xAI Grok chat completions provider implementation."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .base import UnifiedChatRequest
from .openai_provider import (
    ChatCompletionMessage,
    OpenAICompatibleParser,
    OpenAICompatibleTransformer,
)


class GrokRequest(BaseModel):
    """Wire body of ``POST /v1/chat/completions`` on api.x.ai.

    Optional sampling keys are left out entirely when unset; xAI rejects
    explicit nulls.
    """

    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[ChatCompletionMessage]
    stream: bool = False
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None


class GrokTransformer(OpenAICompatibleTransformer):
    """Always sends an explicit ``stream`` flag."""

    request_model = GrokRequest

    def build_payload(self, request: UnifiedChatRequest) -> Dict[str, Any]:
        payload = super().build_payload(request)
        payload["stream"] = bool(request.parameters.stream)
        return payload


class GrokParser(OpenAICompatibleParser):
    """Parser for Grok chat completion responses."""
