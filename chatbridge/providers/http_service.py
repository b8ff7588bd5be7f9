"""Dispatch service shared by every HTTP provider.

``BaseHTTPService`` executes the validate -> assemble -> send -> classify ->
parse sequence for one provider. Each step can short-circuit with a typed
``ChatServiceError`` and no later step runs.
"""

import logging
from dataclasses import replace
from typing import Dict, List, Optional

import httpx

from ..config import get_settings
from ..secrets import SecretStore
from .base import (
    ChatMessage,
    ProviderConfiguration,
    RequestParameters,
    RequestTransformer,
    ResponseParser,
    UnifiedChatRequest,
    UnifiedChatResponse,
)
from .errors import (
    AuthenticationFailedError,
    ChatServiceError,
    InvalidConfigurationError,
    InvalidResponseError,
    MissingAPIKeyError,
    NetworkError,
    ParseError,
    ProviderErrorBody,
    RateLimitExceededError,
    SerializationError,
    ServerError,
    UnsupportedModelError,
)
from .policies import RetryPolicy, TimeoutPolicy

logger = logging.getLogger(__name__)

API_VERSION_HEADER = "anthropic-version"


def classify_status(
    status_code: int,
    provider: Optional[str] = None,
    headers: Optional[httpx.Headers] = None,
) -> Optional[ChatServiceError]:
    """Map an HTTP status to the error it represents.

    Args:
        status_code: HTTP status of the vendor response.
        provider: Provider name attached to the error.
        headers: Response headers, used for ``Retry-After`` on 429.

    Returns:
        None for 2xx, otherwise the classified error (not raised).
    """
    if 200 <= status_code <= 299:
        return None
    if status_code == 401:
        return AuthenticationFailedError(provider)
    if status_code == 429:
        retry_after = None
        if headers is not None:
            value = headers.get("Retry-After")
            if value is not None and value.isdigit():
                retry_after = int(value)
        return RateLimitExceededError(provider, retry_after=retry_after)
    if 500 <= status_code <= 599:
        return ServerError(f"Server error: {status_code}", provider, status_code=status_code)
    return ServerError(f"HTTP error: {status_code}", provider, status_code=status_code)


class BaseHTTPService:
    """Chat service for one provider, bound to its transformer and parser.

    Instances hold only immutable configuration and the injected collaborators,
    so concurrent calls share no mutable state.
    """

    def __init__(
        self,
        configuration: ProviderConfiguration,
        transformer: RequestTransformer,
        parser: ResponseParser,
        secrets: SecretStore,
        client: Optional[httpx.AsyncClient] = None,
        timeout_policy: Optional[TimeoutPolicy] = None,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """Initialize the service.

        Args:
            configuration: Static vendor configuration.
            transformer: Serializer for the vendor's request format.
            parser: Deserializer for the vendor's response format.
            secrets: Secret store queried for the API key on every call.
            client: Optional caller-owned HTTP client. When omitted each call
                opens and closes its own client.
            timeout_policy: Optional per-request timeout; defaults to
                ``Settings.request_timeout``.
            retry_policy: Optional retry policy; without one each request is
                sent exactly once.
        """
        self.configuration = configuration
        self.transformer = transformer
        self.parser = parser
        self.secrets = secrets
        self._client = client
        self.timeout_policy = timeout_policy
        self.retry_policy = retry_policy

    @property
    def supported_models(self) -> List[str]:
        return list(self.configuration.supported_models)

    @property
    def provider_name(self) -> str:
        return self.configuration.name

    def get_keychain_key(self) -> str:
        return self.configuration.keychain_key

    def get_default_parameters(self) -> RequestParameters:
        return get_settings().default_parameters()

    async def send_message(self, message: str, model: Optional[str] = None) -> str:
        """Send a single user turn and return the response text.

        Raises:
            ChatServiceError: The specific failure kind, never swallowed.
        """
        request = UnifiedChatRequest(
            model=model or self.configuration.default_model,
            messages=(ChatMessage("user", message),),
            parameters=self.get_default_parameters(),
        )
        response = await self.send(request)
        return response.content

    async def validate_configuration(self) -> bool:
        """Check that an API key is available for this provider.

        Raises:
            MissingAPIKeyError: If the secret store holds no key.
        """
        if not self.secrets.has_api_key(self.get_keychain_key()):
            raise MissingAPIKeyError(self.provider_name)
        return True

    async def send(self, request: UnifiedChatRequest) -> UnifiedChatResponse:
        """Dispatch a unified request and return the unified response.

        Raises:
            UnsupportedModelError: Model not in the provider's list (no I/O).
            MissingAPIKeyError: No secret for this provider (no I/O).
            InvalidConfigurationError: The transformer rejected the request.
            AuthenticationFailedError: HTTP 401.
            RateLimitExceededError: HTTP 429.
            ServerError: Any other non-2xx status.
            NetworkError: The HTTP exchange failed.
            InvalidResponseError: The success body could not be parsed.
        """
        model = request.model or self.configuration.default_model
        if not self.configuration.supports_model(model):
            raise UnsupportedModelError(model, self.provider_name)
        if model != request.model:
            request = replace(request, model=model)

        api_key = self.secrets.get_api_key(self.get_keychain_key())
        if not api_key:
            raise MissingAPIKeyError(self.provider_name)

        headers = self._build_headers(api_key)

        try:
            body = self.transformer.transform(request)
        except SerializationError as e:
            logger.error(f"Failed to serialize request for {self.provider_name}: {e}")
            raise InvalidConfigurationError(
                f"Could not serialize request: {e}", self.provider_name
            ) from e

        if self.retry_policy is not None:
            response = await self.retry_policy.run(lambda: self._exchange(headers, body))
        else:
            response = await self._exchange(headers, body)

        if not response.model:
            response = replace(response, model=model)
        return response

    def _build_headers(self, api_key: str) -> Dict[str, str]:
        config = self.configuration
        headers = {"Content-Type": "application/json"}
        prefix = config.auth_header_prefix
        headers[config.auth_header_name] = f"{prefix} {api_key}" if prefix else api_key
        if config.api_version is not None:
            headers[API_VERSION_HEADER] = config.api_version
        headers.update(config.custom_headers)
        return headers

    def _timeout(self) -> httpx.Timeout:
        if self.timeout_policy is not None:
            return self.timeout_policy.as_httpx()
        return httpx.Timeout(get_settings().request_timeout)

    async def _post(self, client: httpx.AsyncClient, headers: Dict[str, str], body: bytes) -> httpx.Response:
        return await client.post(
            self.configuration.base_url,
            headers=headers,
            content=body,
            timeout=self._timeout(),
        )

    async def _exchange(self, headers: Dict[str, str], body: bytes) -> UnifiedChatResponse:
        """Send once, classify the status, parse the body."""
        logger.info(f"Sending request to {self.provider_name}")
        try:
            if self._client is not None:
                http_response = await self._post(self._client, headers, body)
            else:
                async with httpx.AsyncClient() as client:
                    http_response = await self._post(client, headers, body)
        except httpx.InvalidURL as e:
            raise InvalidConfigurationError(
                f"Invalid endpoint URL: {self.configuration.base_url}", self.provider_name
            ) from e
        except httpx.RequestError as e:
            logger.warning(f"Network error talking to {self.provider_name}: {e}")
            raise NetworkError(e, self.provider_name) from e

        error = classify_status(
            http_response.status_code, self.provider_name, http_response.headers
        )
        if error is not None:
            envelope = ProviderErrorBody.from_bytes(http_response.content)
            if envelope is not None:
                error.provider_error = envelope.error
            logger.warning(
                f"{self.provider_name} returned HTTP {http_response.status_code}: {error.message}"
            )
            raise error

        try:
            return self.parser.parse(http_response.content)
        except ParseError as e:
            logger.error(f"Failed to parse {self.provider_name} response: {e}")
            raise InvalidResponseError(str(e), self.provider_name) from e


async def send(
    request: UnifiedChatRequest,
    configuration: ProviderConfiguration,
    transformer: RequestTransformer,
    parser: ResponseParser,
    *,
    secrets: SecretStore,
    client: Optional[httpx.AsyncClient] = None,
) -> UnifiedChatResponse:
    """Dispatch one request without keeping a service around."""
    service = BaseHTTPService(configuration, transformer, parser, secrets, client=client)
    return await service.send(request)
