"""Pytest configuration and fixtures for chatbridge tests."""

import json
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from chatbridge.secrets import InMemorySecretStore


class StubEndpoint:
    """Records outgoing requests and replays queued responses.

    The last queued response is repeated once the queue is down to one entry.
    """

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._responses: List[Dict[str, Any]] = []

    def queue(
        self,
        status_code: int = 200,
        json: Optional[Any] = None,
        content: Optional[bytes] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> "StubEndpoint":
        self._responses.append(
            {"status_code": status_code, "json": json, "content": content, "headers": headers}
        )
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queued = self._responses.pop(0) if len(self._responses) > 1 else self._responses[0]
        return httpx.Response(
            queued["status_code"],
            json=queued["json"],
            content=queued["content"],
            headers=queued["headers"],
        )

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def last_json(self) -> Dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def stub_endpoint() -> StubEndpoint:
    """Fresh stubbed HTTP endpoint."""
    return StubEndpoint()


@pytest.fixture
def secrets() -> InMemorySecretStore:
    """Secret store holding a key for every registered provider."""
    return InMemorySecretStore({
        "openai": "sk-openai-test",
        "anthropic": "sk-ant-test",
        "mistral": "mistral-test",
        "perplexity": "pplx-test",
        "grok": "xai-test",
        "deepseek": "deepseek-test",
        "n8n": "n8n-test",
    })


@pytest.fixture
def empty_secrets() -> InMemorySecretStore:
    """Secret store with no keys at all."""
    return InMemorySecretStore()


@pytest.fixture
def sample_openai_response() -> Dict[str, Any]:
    """Sample OpenAI chat completion response."""
    return {
        "id": "chatcmpl-123",
        "object": "chat.completion",
        "created": 1720000000,
        "model": "gpt-4o",
        "choices": [
            {
                "index": 0,
                "message": {"role": "assistant", "content": "Hello! How can I help?"},
                "finish_reason": "stop",
            }
        ],
        "usage": {"prompt_tokens": 9, "completion_tokens": 7, "total_tokens": 16},
    }


@pytest.fixture
def sample_anthropic_response() -> Dict[str, Any]:
    """Sample Anthropic messages response."""
    return {
        "id": "msg_01",
        "type": "message",
        "role": "assistant",
        "content": [{"type": "text", "text": "Bonjour!"}],
        "model": "claude-3-5-sonnet-20241022",
        "stop_reason": "end_turn",
        "stop_sequence": None,
        "usage": {"input_tokens": 10, "output_tokens": 5},
    }


@pytest.fixture
def mock_httpx_client(sample_openai_response):
    """Mock httpx.AsyncClient for services that open their own client."""
    with patch("httpx.AsyncClient") as mock_client_class:
        mock_client = AsyncMock()
        mock_response = MagicMock()
        mock_response.status_code = 200
        mock_response.headers = httpx.Headers()
        mock_response.content = json.dumps(sample_openai_response).encode()
        mock_client.post = AsyncMock(return_value=mock_response)
        mock_client.__aenter__ = AsyncMock(return_value=mock_client)
        mock_client.__aexit__ = AsyncMock(return_value=None)
        mock_client_class.return_value = mock_client
        yield mock_client
