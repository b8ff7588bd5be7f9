"""Tests for the dispatch service."""

import asyncio
import json
from unittest.mock import Mock

import httpx
import pytest

from chatbridge.providers import configurations
from chatbridge.providers.configurations import ProviderType
from chatbridge.providers.anthropic_provider import AnthropicParser, AnthropicTransformer
from chatbridge.providers.base import (
    ProviderConfiguration,
    RequestParameters,
    UnifiedChatRequest,
)
from chatbridge.providers.errors import (
    AuthenticationFailedError,
    InvalidConfigurationError,
    InvalidResponseError,
    MissingAPIKeyError,
    NetworkError,
    RateLimitExceededError,
    SerializationError,
    ServerError,
    UnsupportedModelError,
)
from chatbridge.providers.http_service import BaseHTTPService, send
from chatbridge.providers.mistral_provider import MistralParser, MistralTransformer
from chatbridge.providers.openai_provider import OpenAIParser, OpenAITransformer
from chatbridge.providers.policies import RetryPolicy, TimeoutPolicy
from chatbridge.providers.registry import get_registry
from chatbridge.providers.workflow_provider import WorkflowParser, WorkflowTransformer


def openai_service(secrets, client, **kwargs):
    return BaseHTTPService(
        configurations.OPENAI, OpenAITransformer(), OpenAIParser(), secrets, client=client, **kwargs
    )


def anthropic_service(secrets, client, **kwargs):
    return BaseHTTPService(
        configurations.ANTHROPIC,
        AnthropicTransformer(default_max_tokens=512),
        AnthropicParser(),
        secrets,
        client=client,
        **kwargs,
    )


def hello_request(model="gpt-4o"):
    return UnifiedChatRequest.from_dicts(
        model,
        [{"role": "user", "content": "hello"}],
        RequestParameters(temperature=0.7),
    )


class TestEndToEnd:
    """Full request/response cycles against stubbed endpoints."""

    @pytest.mark.asyncio
    async def test_openai_scenario(self, secrets, stub_endpoint, sample_openai_response):
        stub_endpoint.queue(200, json=sample_openai_response)
        service = openai_service(secrets, stub_endpoint.client())

        response = await service.send(hello_request())

        assert response.content == "Hello! How can I help?"
        assert response.model == "gpt-4o"
        assert response.usage.total_tokens == 16
        assert stub_endpoint.call_count == 1

        sent = stub_endpoint.requests[0]
        assert sent.method == "POST"
        assert str(sent.url) == "https://api.openai.com/v1/chat/completions"
        assert sent.headers["Content-Type"] == "application/json"
        assert stub_endpoint.last_json() == {
            "model": "gpt-4o",
            "messages": [{"role": "user", "content": "hello"}],
            "temperature": 0.7,
            "stream": False,
        }

    @pytest.mark.asyncio
    async def test_anthropic_scenario(self, secrets, stub_endpoint, sample_anthropic_response):
        stub_endpoint.queue(200, json=sample_anthropic_response)
        service = anthropic_service(secrets, stub_endpoint.client())

        response = await service.send(hello_request("claude-3-5-sonnet-20241022"))

        assert response.content == "Bonjour!"
        assert response.usage.total_tokens == 15
        assert stub_endpoint.last_json()["max_tokens"] == 512

    @pytest.mark.asyncio
    async def test_send_message_uses_default_model_and_parameters(
        self, secrets, stub_endpoint, sample_openai_response
    ):
        stub_endpoint.queue(200, json=sample_openai_response)
        service = openai_service(secrets, stub_endpoint.client())

        text = await service.send_message("hi there")

        assert text == "Hello! How can I help?"
        body = stub_endpoint.last_json()
        assert body["model"] == "gpt-4o"
        assert body["messages"] == [{"role": "user", "content": "hi there"}]
        assert body["temperature"] == 0.7
        assert body["max_tokens"] == 4000

    @pytest.mark.asyncio
    async def test_send_message_with_explicit_model(self, secrets, stub_endpoint, sample_openai_response):
        stub_endpoint.queue(200, json=sample_openai_response)
        service = openai_service(secrets, stub_endpoint.client())

        await service.send_message("hi", model="o3")

        assert stub_endpoint.last_json()["model"] == "o3"

    @pytest.mark.asyncio
    async def test_empty_model_resolves_to_default(self, secrets, stub_endpoint, sample_openai_response):
        stub_endpoint.queue(200, json=sample_openai_response)
        service = openai_service(secrets, stub_endpoint.client())

        await service.send(hello_request(model=""))

        assert stub_endpoint.last_json()["model"] == "gpt-4o"

    @pytest.mark.asyncio
    async def test_model_echoed_when_vendor_omits_it(self, secrets, stub_endpoint):
        stub_endpoint.queue(200, json={"output": "Draft ready"})
        service = BaseHTTPService(
            configurations.N8N, WorkflowTransformer(), WorkflowParser(), secrets,
            client=stub_endpoint.client(),
        )

        response = await service.send(hello_request("blog-workflow"))

        assert response.content == "Draft ready"
        assert response.model == "blog-workflow"

    @pytest.mark.asyncio
    async def test_module_level_send(self, secrets, stub_endpoint, sample_openai_response):
        stub_endpoint.queue(200, json=sample_openai_response)

        response = await send(
            hello_request(),
            configurations.OPENAI,
            OpenAITransformer(),
            OpenAIParser(),
            secrets=secrets,
            client=stub_endpoint.client(),
        )

        assert response.content == "Hello! How can I help?"

    @pytest.mark.asyncio
    async def test_opens_own_client_when_none_injected(self, secrets, mock_httpx_client):
        service = openai_service(secrets, client=None)

        response = await service.send(hello_request())

        assert response.content == "Hello! How can I help?"
        mock_httpx_client.post.assert_called_once()
        mock_httpx_client.__aexit__.assert_called_once()


class TestShortCircuitOrder:
    """Failures before the network never touch it."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "configuration",
        list(configurations.PROVIDER_CONFIGURATIONS.values()),
        ids=lambda c: c.name,
    )
    async def test_unsupported_model_makes_no_calls(self, configuration, stub_endpoint):
        stub_endpoint.queue(200, json={})
        secret_store = Mock()
        transformer = Mock()
        service = BaseHTTPService(
            configuration, transformer, Mock(), secret_store, client=stub_endpoint.client()
        )

        with pytest.raises(UnsupportedModelError) as exc_info:
            await service.send(hello_request("not-a-real-model"))

        assert exc_info.value.model == "not-a-real-model"
        assert stub_endpoint.call_count == 0
        secret_store.get_api_key.assert_not_called()
        transformer.transform.assert_not_called()

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "configuration",
        list(configurations.PROVIDER_CONFIGURATIONS.values()),
        ids=lambda c: c.name,
    )
    async def test_missing_key_makes_no_calls(self, configuration, empty_secrets, stub_endpoint):
        stub_endpoint.queue(200, json={})
        transformer = Mock()
        service = BaseHTTPService(
            configuration, transformer, Mock(), empty_secrets, client=stub_endpoint.client()
        )

        with pytest.raises(MissingAPIKeyError) as exc_info:
            await service.send(hello_request(configuration.default_model))

        assert exc_info.value.provider == configuration.name
        assert stub_endpoint.call_count == 0
        transformer.transform.assert_not_called()

    @pytest.mark.asyncio
    async def test_serialization_failure_is_invalid_configuration(self, secrets, stub_endpoint):
        stub_endpoint.queue(200, json={})
        transformer = Mock()
        transformer.transform.side_effect = SerializationError("cannot encode")
        service = BaseHTTPService(
            configurations.OPENAI, transformer, OpenAIParser(), secrets, client=stub_endpoint.client()
        )

        with pytest.raises(InvalidConfigurationError):
            await service.send(hello_request())

        assert stub_endpoint.call_count == 0

    @pytest.mark.asyncio
    @pytest.mark.parametrize("provider_type", list(ProviderType), ids=lambda p: p.value)
    async def test_unencodable_extra_is_invalid_configuration(self, provider_type, secrets, stub_endpoint):
        stub_endpoint.queue(200, json={})
        entry = get_registry().get_entry(provider_type)
        service = BaseHTTPService(
            entry.configuration,
            entry.create_transformer(),
            entry.create_parser(),
            secrets,
            client=stub_endpoint.client(),
        )
        request = UnifiedChatRequest.from_dicts(
            entry.configuration.default_model,
            [{"role": "user", "content": "hi"}],
            RequestParameters(extra={"metadata": object()}),
        )

        with pytest.raises(InvalidConfigurationError) as exc_info:
            await service.send(request)

        assert isinstance(exc_info.value.__cause__, SerializationError)
        assert stub_endpoint.call_count == 0

    @pytest.mark.asyncio
    async def test_error_status_skips_parser(self, secrets, stub_endpoint):
        stub_endpoint.queue(500, content=b"oops")
        parser = Mock()
        service = BaseHTTPService(
            configurations.OPENAI, OpenAITransformer(), parser, secrets, client=stub_endpoint.client()
        )

        with pytest.raises(ServerError):
            await service.send(hello_request())

        parser.parse.assert_not_called()


class TestAuthHeaders:
    """Auth header shape per vendor."""

    @pytest.mark.asyncio
    async def test_anthropic_uses_x_api_key(self, secrets, stub_endpoint, sample_anthropic_response):
        stub_endpoint.queue(200, json=sample_anthropic_response)
        service = anthropic_service(secrets, stub_endpoint.client())

        await service.send(hello_request("claude-3-5-sonnet-20241022"))

        headers = stub_endpoint.requests[0].headers
        assert headers["x-api-key"] == "sk-ant-test"
        assert headers["anthropic-version"] == "2023-06-01"
        assert "authorization" not in headers

    @pytest.mark.asyncio
    async def test_openai_uses_bearer(self, secrets, stub_endpoint, sample_openai_response):
        stub_endpoint.queue(200, json=sample_openai_response)
        service = openai_service(secrets, stub_endpoint.client())

        await service.send(hello_request())

        headers = stub_endpoint.requests[0].headers
        assert headers["Authorization"] == "Bearer sk-openai-test"
        assert "x-api-key" not in headers
        assert "anthropic-version" not in headers

    @pytest.mark.asyncio
    async def test_custom_headers_and_empty_prefix(self, secrets, stub_endpoint, sample_openai_response):
        stub_endpoint.queue(200, json=sample_openai_response)
        configuration = ProviderConfiguration(
            name="OpenAI",
            base_url="https://proxy.example.com/v1/chat/completions",
            auth_header_name="api-key",
            auth_header_prefix="",
            supported_models=("gpt-4o",),
            custom_headers={"X-Title": "chatbridge", "OpenAI-Organization": "org-1"},
        )
        service = BaseHTTPService(
            configuration, OpenAITransformer(), OpenAIParser(), secrets, client=stub_endpoint.client()
        )

        await service.send(hello_request())

        headers = stub_endpoint.requests[0].headers
        assert headers["api-key"] == "sk-openai-test"
        assert headers["X-Title"] == "chatbridge"
        assert headers["OpenAI-Organization"] == "org-1"
        assert str(stub_endpoint.requests[0].url) == "https://proxy.example.com/v1/chat/completions"


class TestStatusHandling:
    """HTTP outcomes surface as typed errors."""

    @pytest.mark.asyncio
    async def test_401(self, secrets, stub_endpoint):
        stub_endpoint.queue(
            401, json={"error": {"message": "Incorrect API key", "type": "invalid_request_error"}}
        )
        service = openai_service(secrets, stub_endpoint.client())

        with pytest.raises(AuthenticationFailedError) as exc_info:
            await service.send(hello_request())

        assert exc_info.value.provider_error.message == "Incorrect API key"

    @pytest.mark.asyncio
    async def test_429_with_retry_after(self, secrets, stub_endpoint):
        stub_endpoint.queue(429, content=b"slow down", headers={"Retry-After": "30"})
        service = openai_service(secrets, stub_endpoint.client())

        with pytest.raises(RateLimitExceededError) as exc_info:
            await service.send(hello_request())

        assert exc_info.value.retry_after == 30
        assert exc_info.value.provider_error is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "status_code,detail",
        [(500, "Server error: 500"), (599, "Server error: 599"), (300, "HTTP error: 300"), (404, "HTTP error: 404")],
    )
    async def test_server_and_generic_errors(self, secrets, stub_endpoint, status_code, detail):
        stub_endpoint.queue(status_code, content=b"")
        service = openai_service(secrets, stub_endpoint.client())

        with pytest.raises(ServerError) as exc_info:
            await service.send(hello_request())

        assert exc_info.value.detail == detail

    @pytest.mark.asyncio
    async def test_sent_exactly_once_without_retry_policy(self, secrets, stub_endpoint):
        stub_endpoint.queue(503, content=b"")
        service = openai_service(secrets, stub_endpoint.client())

        with pytest.raises(ServerError):
            await service.send(hello_request())

        assert stub_endpoint.call_count == 1

    @pytest.mark.asyncio
    async def test_malformed_success_body(self, secrets, stub_endpoint):
        stub_endpoint.queue(200, json={"unexpected": True})
        service = openai_service(secrets, stub_endpoint.client())

        with pytest.raises(InvalidResponseError):
            await service.send(hello_request())

    @pytest.mark.asyncio
    async def test_network_error(self, secrets):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(refuse))
        service = openai_service(secrets, client)

        with pytest.raises(NetworkError) as exc_info:
            await service.send(hello_request())

        assert isinstance(exc_info.value.cause, httpx.ConnectError)

    @pytest.mark.asyncio
    async def test_read_timeout_is_network_error(self, secrets):
        def stall(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(stall))
        service = openai_service(secrets, client)

        with pytest.raises(NetworkError):
            await service.send(hello_request())


class TestValidateConfiguration:
    """Tests for validate_configuration and read-only properties."""

    @pytest.mark.asyncio
    async def test_key_present(self, secrets):
        service = openai_service(secrets, client=None)

        assert await service.validate_configuration() is True

    @pytest.mark.asyncio
    async def test_key_missing(self, empty_secrets):
        service = openai_service(empty_secrets, client=None)

        with pytest.raises(MissingAPIKeyError):
            await service.validate_configuration()

    def test_properties(self, secrets):
        service = openai_service(secrets, client=None)

        assert service.provider_name == "OpenAI"
        assert "gpt-4o" in service.supported_models
        assert service.get_keychain_key() == "openai"


class TestPolicies:
    """Opt-in timeout and retry hooks."""

    @pytest.mark.asyncio
    async def test_timeout_policy_reaches_transport(self, secrets, stub_endpoint, sample_openai_response):
        stub_endpoint.queue(200, json=sample_openai_response)
        service = openai_service(
            secrets, stub_endpoint.client(), timeout_policy=TimeoutPolicy(12.0)
        )

        await service.send(hello_request())

        timeout = stub_endpoint.requests[0].extensions["timeout"]
        assert timeout["read"] == 12.0
        assert timeout["connect"] == 12.0

    @pytest.mark.asyncio
    async def test_retry_policy_recovers_from_server_error(
        self, secrets, stub_endpoint, sample_openai_response
    ):
        stub_endpoint.queue(503, content=b"").queue(200, json=sample_openai_response)
        service = openai_service(
            secrets,
            stub_endpoint.client(),
            retry_policy=RetryPolicy(retry_attempts=2, min_wait=0, max_wait=0),
        )

        response = await service.send(hello_request())

        assert response.content == "Hello! How can I help?"
        assert stub_endpoint.call_count == 2

    @pytest.mark.asyncio
    async def test_retry_policy_gives_up(self, secrets, stub_endpoint):
        stub_endpoint.queue(429, content=b"")
        service = openai_service(
            secrets,
            stub_endpoint.client(),
            retry_policy=RetryPolicy(retry_attempts=2, min_wait=0, max_wait=0),
        )

        with pytest.raises(RateLimitExceededError):
            await service.send(hello_request())

        assert stub_endpoint.call_count == 3

    @pytest.mark.asyncio
    async def test_retry_policy_skips_non_transient_errors(self, secrets, stub_endpoint):
        stub_endpoint.queue(401, content=b"")
        service = openai_service(
            secrets,
            stub_endpoint.client(),
            retry_policy=RetryPolicy(retry_attempts=5, min_wait=0, max_wait=0),
        )

        with pytest.raises(AuthenticationFailedError):
            await service.send(hello_request())

        assert stub_endpoint.call_count == 1

    @pytest.mark.asyncio
    async def test_retry_policy_skips_404(self, secrets, stub_endpoint):
        stub_endpoint.queue(404, content=b"")
        service = openai_service(
            secrets,
            stub_endpoint.client(),
            retry_policy=RetryPolicy(retry_attempts=5, min_wait=0, max_wait=0),
        )

        with pytest.raises(ServerError):
            await service.send(hello_request())

        assert stub_endpoint.call_count == 1

    def test_invalid_policies_rejected(self):
        with pytest.raises(ValueError):
            TimeoutPolicy(0)
        with pytest.raises(ValueError):
            RetryPolicy(retry_attempts=-1)


class TestConcurrency:
    """Concurrent sends are independent."""

    @pytest.mark.asyncio
    async def test_independent_providers(
        self, secrets, sample_openai_response, sample_anthropic_response
    ):
        async def slow_ok(request):
            await asyncio.sleep(0.01)
            return httpx.Response(200, json=sample_openai_response)

        def failing(request):
            return httpx.Response(500, content=b"")

        def mistral_ok(request):
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "model": body["model"],
                "choices": [{"message": {"role": "assistant", "content": "Salut"}}],
            })

        services = [
            openai_service(secrets, httpx.AsyncClient(transport=httpx.MockTransport(slow_ok))),
            anthropic_service(secrets, httpx.AsyncClient(transport=httpx.MockTransport(failing))),
            BaseHTTPService(
                configurations.MISTRAL, MistralTransformer(), MistralParser(), secrets,
                client=httpx.AsyncClient(transport=httpx.MockTransport(mistral_ok)),
            ),
        ]
        requests = [
            hello_request("gpt-4o"),
            hello_request("claude-3-5-sonnet-20241022"),
            hello_request("mistral-small-2506"),
        ]

        results = await asyncio.gather(
            *(service.send(request) for service, request in zip(services, requests)),
            return_exceptions=True,
        )

        assert results[0].content == "Hello! How can I help?"
        assert isinstance(results[1], ServerError)
        assert results[2].content == "Salut"
        assert results[2].model == "mistral-small-2506"

    @pytest.mark.asyncio
    async def test_same_service_many_calls(self, secrets):
        def echo(request):
            body = json.loads(request.content)
            return httpx.Response(200, json={
                "model": body["model"],
                "choices": [{"message": {"role": "assistant", "content": body["messages"][-1]["content"]}}],
            })

        service = openai_service(secrets, httpx.AsyncClient(transport=httpx.MockTransport(echo)))

        replies = await asyncio.gather(*(service.send_message(f"msg {i}") for i in range(10)))

        assert replies == [f"msg {i}" for i in range(10)]

    @pytest.mark.asyncio
    async def test_cancellation_propagates(self, secrets):
        started = asyncio.Event()
        never = asyncio.Event()

        async def hang(request):
            started.set()
            await never.wait()
            return httpx.Response(200, json={})

        service = openai_service(secrets, httpx.AsyncClient(transport=httpx.MockTransport(hang)))
        task = asyncio.create_task(service.send(hello_request()))
        await asyncio.wait_for(started.wait(), timeout=1)

        task.cancel()

        with pytest.raises(asyncio.CancelledError):
            await task
