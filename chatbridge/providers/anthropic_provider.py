"""Anthropic Messages API provider implementation."""

import logging
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, ValidationError

from ..config import get_settings
from .base import (
    RequestTransformer,
    ResponseParser,
    TokenUsage,
    UnifiedChatRequest,
    UnifiedChatResponse,
    flatten_content,
)
from .errors import ParseError
from .openai_provider import ChatCompletionMessage, ContentBlock, encode_request

logger = logging.getLogger(__name__)


class AnthropicRequest(BaseModel):
    """Wire body of ``POST /v1/messages``."""

    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[ChatCompletionMessage]
    max_tokens: int
    system: Optional[str] = None
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    stop_sequences: Optional[List[str]] = None
    stream: Optional[bool] = None


class AnthropicUsage(BaseModel):
    """Input and output token counts."""

    model_config = ConfigDict(extra="allow")

    input_tokens: Optional[int] = None
    output_tokens: Optional[int] = None


class AnthropicResponse(BaseModel):
    """Success body of ``POST /v1/messages``."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    type: Optional[str] = None
    role: Optional[str] = None
    content: Union[str, List[ContentBlock]]
    model: Optional[str] = None
    stop_reason: Optional[str] = None
    stop_sequence: Optional[str] = None
    usage: Optional[AnthropicUsage] = None


class AnthropicTransformer(RequestTransformer):
    """System turns move to the top-level ``system`` field."""

    def __init__(self, default_max_tokens: Optional[int] = None):
        self.default_max_tokens = default_max_tokens or get_settings().anthropic_default_max_tokens

    def transform(self, request: UnifiedChatRequest) -> bytes:
        params = request.parameters
        payload = dict(params.extra)
        payload.update(
            model=request.model,
            messages=[m.to_dict() for m in request.conversation],
            max_tokens=params.max_tokens or self.default_max_tokens,
        )
        if request.system_prompt is not None:
            payload["system"] = request.system_prompt
        if params.temperature is not None:
            payload["temperature"] = params.temperature
        if params.top_p is not None:
            payload["top_p"] = params.top_p
        if params.stop is not None:
            payload["stop_sequences"] = list(params.stop)
        if params.stream:
            payload["stream"] = True

        return encode_request(AnthropicRequest, payload)


class AnthropicParser(ResponseParser):
    """Joins the ``text`` content blocks and maps input/output token counts."""

    def parse(self, data: bytes) -> UnifiedChatResponse:
        try:
            body = AnthropicResponse.model_validate_json(data)
        except ValidationError as e:
            raise ParseError(f"Unexpected response shape: {e}") from e

        if isinstance(body.content, list) and not body.content:
            raise ParseError("Response contained no content blocks")

        usage = None
        if body.usage is not None:
            usage = TokenUsage.from_counts(body.usage.input_tokens, body.usage.output_tokens)

        if body.stop_reason == "max_tokens":
            logger.warning(f"Anthropic response for {body.model} was truncated at max_tokens")

        return UnifiedChatResponse(
            content=flatten_content(body.content),
            model=body.model or "",
            usage=usage,
            raw_response=body.model_dump(),
        )
