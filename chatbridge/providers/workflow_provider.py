"""Webhook-style automation provider (n8n and similar).

Workflow backends do not speak chat-completion JSON. The request carries the
latest user message plus the transcript, and the response is whatever the
workflow's final node returns: a JSON object, a list of items, or plain text.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict

from .base import (
    RequestTransformer,
    ResponseParser,
    UnifiedChatRequest,
    UnifiedChatResponse,
    flatten_content,
)
from .errors import ParseError, SerializationError
from .openai_provider import ChatCompletionMessage, encode_request

logger = logging.getLogger(__name__)

# Keys checked in order when a workflow answers with a JSON object
CONTENT_KEYS = ("output", "response", "content", "text", "message")


class WorkflowRequest(BaseModel):
    """Webhook body: latest user message, full transcript and workflow name."""

    model_config = ConfigDict(extra="allow")

    message: str
    messages: List[ChatCompletionMessage]
    workflow: str


class WorkflowTransformer(RequestTransformer):
    """Serializer for webhook workflows.

    The model name is sent as ``workflow``; caller extras become extra
    top-level fields.
    """

    def transform(self, request: UnifiedChatRequest) -> bytes:
        user_turns = [m.content for m in request.messages if m.role == "user"]
        if not user_turns:
            raise SerializationError("Workflow requests need at least one user message")

        payload: Dict[str, Any] = dict(request.parameters.extra)
        payload.update(
            message=user_turns[-1],
            messages=[m.to_dict() for m in request.messages],
            workflow=request.model,
        )
        return encode_request(WorkflowRequest, payload)


class WorkflowParser(ResponseParser):
    """Parser for whatever a workflow's final node returns.

    JSON objects are searched for a content field, lists yield their first
    item, and any body that is not a JSON object or list is plain text.
    """

    def parse(self, data: bytes) -> UnifiedChatResponse:
        if not data or not data.strip():
            raise ParseError("Workflow returned an empty body")

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ParseError("Workflow response is not UTF-8 text") from e

        try:
            decoded = json.loads(text)
        except json.JSONDecodeError:
            # Plain-text webhook responses are passed through untouched
            return UnifiedChatResponse(content=text, model="", raw_response=text)

        if not isinstance(decoded, (dict, list, str)):
            # Non-string JSON scalars pass through as text
            return UnifiedChatResponse(content=text, model="", raw_response=text)

        if isinstance(decoded, list):
            if not decoded:
                raise ParseError("Workflow returned an empty list")
            item = decoded[0]
        else:
            item = decoded

        content = self._extract_content(item)
        if content is None:
            raise ParseError("Workflow response has no recognizable content field")

        model = item.get("model") if isinstance(item, dict) else None
        if not isinstance(model, str):
            model = ""
        return UnifiedChatResponse(content=content, model=model, raw_response=decoded)

    @staticmethod
    def _extract_content(item: Any) -> Optional[str]:
        if isinstance(item, str):
            return item
        if not isinstance(item, dict):
            return None
        for key in CONTENT_KEYS:
            value = item.get(key)
            if isinstance(value, (str, list)):
                return flatten_content(value)
            if isinstance(value, dict):
                nested = WorkflowParser._extract_content(value)
                if nested is not None:
                    return nested
        logger.debug(f"Workflow response keys: {sorted(item)}")
        return None
