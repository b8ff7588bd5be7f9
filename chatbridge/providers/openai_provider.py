"""OpenAI provider implementation.

Also hosts the OpenAI-compatible transformer/parser that the Mistral,
Perplexity, Grok and DeepSeek variants specialize with their own wire models.
"""

import logging
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic_core import PydanticSerializationError

from .base import (
    RequestTransformer,
    ResponseParser,
    TokenUsage,
    UnifiedChatRequest,
    UnifiedChatResponse,
    flatten_content,
)
from .errors import ParseError, SerializationError

logger = logging.getLogger(__name__)


def encode_request(request_model: Type[BaseModel], payload: Dict[str, Any]) -> bytes:
    """Validate a wire payload and encode it as JSON.

    Args:
        request_model: Vendor wire model the payload must satisfy.
        payload: Body fields, including any caller extras.

    Returns:
        UTF-8 JSON bytes with unset optional fields left out.

    Raises:
        SerializationError: If the payload fails validation or holds a value
            that cannot be encoded as JSON.
    """
    try:
        body = request_model.model_validate(payload)
        return body.model_dump_json(exclude_none=True).encode("utf-8")
    except (ValidationError, PydanticSerializationError) as e:
        raise SerializationError(str(e)) from e


class ChatCompletionMessage(BaseModel):
    """One ``{role, content}`` turn as sent on the wire."""

    role: str
    content: str


class ContentBlock(BaseModel):
    """Typed content block; only ``text`` blocks carry readable content."""

    model_config = ConfigDict(extra="allow")

    type: str = "text"
    text: Optional[str] = None


class ResponseMessage(BaseModel):
    """Assistant message of a choice; content is a string or a block list."""

    model_config = ConfigDict(extra="allow")

    role: str = "assistant"
    content: Union[str, List[ContentBlock], None] = None


class ChatCompletionChoice(BaseModel):
    """One entry of ``choices``."""

    model_config = ConfigDict(extra="allow")

    index: int = 0
    message: ResponseMessage
    finish_reason: Optional[str] = None


class ChatCompletionUsage(BaseModel):
    """Token counts as reported by chat-completion vendors."""

    model_config = ConfigDict(extra="allow")

    prompt_tokens: Optional[int] = None
    completion_tokens: Optional[int] = None
    total_tokens: Optional[int] = None


class ChatCompletionResponse(BaseModel):
    """Success body of a chat completion."""

    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    object: Optional[str] = None
    created: Optional[int] = None
    model: Optional[str] = None
    choices: List[ChatCompletionChoice]
    usage: Optional[ChatCompletionUsage] = None


class OpenAIRequest(BaseModel):
    """Wire body of ``POST /v1/chat/completions``."""

    model_config = ConfigDict(extra="allow")

    model: str
    messages: List[ChatCompletionMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop: Optional[List[str]] = None
    stream: Optional[bool] = None


class OpenAICompatibleTransformer(RequestTransformer):
    """Serializer for chat-completion style vendors.

    Subclasses choose the wire model; any parameter the wire model does not
    declare is dropped unless the caller passed it through ``extra``.
    """

    request_model: Type[BaseModel] = OpenAIRequest

    def build_payload(self, request: UnifiedChatRequest) -> Dict[str, Any]:
        params = request.parameters
        payload: Dict[str, Any] = dict(params.extra)
        declared = self.request_model.model_fields
        candidates = {
            "temperature": params.temperature,
            "max_tokens": params.max_tokens,
            "top_p": params.top_p,
            "frequency_penalty": params.frequency_penalty,
            "presence_penalty": params.presence_penalty,
            "stop": list(params.stop) if params.stop is not None else None,
            "stream": params.stream,
        }
        for key, value in candidates.items():
            if key in declared and value is not None:
                payload[key] = value
        payload["model"] = request.model
        payload["messages"] = [m.to_dict() for m in request.messages]
        return payload

    def dump(self, payload: Dict[str, Any]) -> bytes:
        """Encode a payload built by ``build_payload``.

        Raises:
            SerializationError: If the payload cannot be encoded.
        """
        return encode_request(self.request_model, payload)

    def transform(self, request: UnifiedChatRequest) -> bytes:
        return self.dump(self.build_payload(request))


class OpenAICompatibleParser(ResponseParser):
    """Parser for ``choices[0].message.content`` style responses."""

    response_model: Type[ChatCompletionResponse] = ChatCompletionResponse

    def parse(self, data: bytes) -> UnifiedChatResponse:
        try:
            body = self.response_model.model_validate_json(data)
        except ValidationError as e:
            raise ParseError(f"Unexpected response shape: {e}") from e

        if not body.choices:
            raise ParseError("Response contained no choices")
        if len(body.choices) > 1:
            logger.debug(f"Ignoring {len(body.choices) - 1} extra choices")

        content = flatten_content(body.choices[0].message.content)
        if content is None:
            raise ParseError("Response choice has no text content")

        usage = None
        if body.usage is not None:
            usage = TokenUsage.from_counts(
                body.usage.prompt_tokens,
                body.usage.completion_tokens,
                body.usage.total_tokens,
            )

        return UnifiedChatResponse(
            content=content,
            model=body.model or "",
            usage=usage,
            raw_response=body.model_dump(),
        )


class OpenAITransformer(OpenAICompatibleTransformer):
    """Serializer for the OpenAI chat completions API."""

    request_model = OpenAIRequest


class OpenAIParser(OpenAICompatibleParser):
    """Parser for OpenAI chat completion responses."""
